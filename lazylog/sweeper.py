"""Optional cleanup of orphaned staging files left by workers that never ran."""

import logging
import os
import time

from lazylog.task import STAGING_PREFIX, STAGING_SUFFIX

logger = logging.getLogger(__name__)


def list_staging_files(staging_dir: str) -> list[str]:
    """Return staging file names in *staging_dir*, sorted."""
    try:
        names = os.listdir(staging_dir)
    except OSError:
        return []
    return sorted(
        n for n in names if n.startswith(STAGING_PREFIX) and n.endswith(STAGING_SUFFIX)
    )


def sweep_stale_staging(staging_dir: str, max_age_seconds: float, now: float | None = None) -> list[str]:
    """Delete staging files older than *max_age_seconds*. Returns deleted file names."""
    cutoff = (now if now is not None else time.time()) - max_age_seconds
    deleted = []
    for name in list_staging_files(staging_dir):
        path = os.path.join(staging_dir, name)
        try:
            if os.path.getmtime(path) < cutoff:
                os.remove(path)
                deleted.append(name)
        except FileNotFoundError:
            # consumed by a worker in the meantime
            continue
        except OSError as e:
            logger.warning("Could not sweep %s: %s", path, e)
    return deleted
