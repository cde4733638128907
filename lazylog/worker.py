"""Detached delivery worker.

Invoked as ``python -m lazylog.worker <staging-file> <url> [timeout]`` by the
async dispatcher. Reads the staging file, deletes it, POSTs it once, exits.
"""

import logging
import sys

from lazylog.sender import post_json
from lazylog.task import DEFAULT_TIMEOUT, consume_staging_file

logger = logging.getLogger(__name__)


def parse_timeout(raw: str | None) -> int:
    try:
        return int(raw) if raw is not None else DEFAULT_TIMEOUT
    except ValueError:
        return DEFAULT_TIMEOUT


def main(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    staging_path = argv[0] if len(argv) > 0 else ""
    url = argv[1] if len(argv) > 1 else ""
    if not staging_path or not url:
        return 1
    timeout = parse_timeout(argv[2] if len(argv) > 2 else None)

    data = consume_staging_file(staging_path)
    if data is None:
        return 0
    post_json(url, data, timeout)
    return 0


if __name__ == "__main__":
    sys.exit(main())
