"""Detached delivery task and its staging-file handoff."""

import json
import logging
import os
import tempfile
import uuid
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)

STAGING_PREFIX = "lazylog_"
STAGING_SUFFIX = ".json"
DEFAULT_TIMEOUT = 10


def encode_payload(payload) -> bytes:
    """Serialize a payload to the bytes that get POSTed.

    Raises TypeError or ValueError, or RecursionError for nesting too deep to encode.
    """
    if isinstance(payload, bytes):
        return payload
    if isinstance(payload, str):
        return payload.encode("utf-8")
    return json.dumps(payload, ensure_ascii=False, separators=(",", ":")).encode("utf-8")


def staging_file_name() -> str:
    return f"{STAGING_PREFIX}{uuid.uuid4().hex}{STAGING_SUFFIX}"


@dataclass
class DetachedTask:
    """A pre-serialized payload bound for one destination.

    The staging file is created by the caller (``materialize``) and read and
    deleted by exactly one worker (``consume_staging_file``).
    """

    payload: bytes
    destination_url: str
    timeout_seconds: int = DEFAULT_TIMEOUT
    staging_path: str | None = field(default=None, compare=False)

    def materialize(self, staging_dir: str | None = None) -> str:
        """Write the payload to a uniquely named staging file in one write.

        On failure any partial file is removed and the OSError propagates.
        """
        directory = staging_dir or tempfile.gettempdir()
        path = os.path.join(directory, staging_file_name())
        # "xb" refuses to clobber an existing file
        f = open(path, "xb")
        try:
            with f:
                f.write(self.payload)
        except OSError:
            try:
                os.remove(path)
            except OSError:
                pass
            raise
        self.staging_path = path
        return path

    def worker_args(self) -> list[str]:
        if self.staging_path is None:
            raise ValueError("task has not been materialized")
        return [self.staging_path, self.destination_url, str(self.timeout_seconds)]


def consume_staging_file(path: str) -> bytes | None:
    """Read a staging file and delete it immediately. Returns None if it is gone."""
    try:
        with open(path, "rb") as f:
            data = f.read()
    except FileNotFoundError:
        return None
    except OSError as e:
        logger.warning("Could not read staging file %s: %s", path, e)
        data = None
    try:
        os.remove(path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("Could not remove staging file %s: %s", path, e)
    return data
