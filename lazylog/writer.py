"""Append-only local log writer with cross-process locking and size/line-based rotation."""

import json
import logging
import os
import time
from dataclasses import dataclass
from datetime import datetime

from lazylog.errors import WriteError, WriteResult
from lazylog.policy import RotationThresholds, needs_rotation

if os.name == "nt":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
ROTATION_SUFFIX_FORMAT = "%Y%m%d_%H%M%S"
LOCK_RETRY_INTERVAL = 0.005


@dataclass(frozen=True)
class LogEntry:
    timestamp: datetime
    title: str
    body: str

    def render(self) -> bytes:
        line = f"[{self.timestamp.strftime(TIMESTAMP_FORMAT)}] {self.title}\n{self.body}\n\n"
        return line.encode("utf-8", errors="replace")


def _public_attrs(obj):
    if hasattr(obj, "__dict__"):
        return {k: v for k, v in vars(obj).items() if not k.startswith("_")}
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def serialize_content(content) -> str:
    """Turn log content into the entry body. Raises TypeError, ValueError or RecursionError if impossible."""
    if isinstance(content, str):
        return content
    if isinstance(content, bytes):
        return content.decode("utf-8", errors="replace")
    if content is None:
        return ""
    if isinstance(content, (int, float)) and not isinstance(content, bool):
        return str(content)
    return json.dumps(content, ensure_ascii=False, separators=(",", ":"), default=_public_attrs)


def rotation_target(path: str, when: datetime) -> str:
    """Return ``<path>.<YYYYMMDD_HHMMSS>``, with a ``.N`` counter if that name is taken.

    Two rotations within the same second produce ``app.log.20250115_120000``,
    then ``app.log.20250115_120000.1`` and so on, so anything that parses
    rotated names must accept the optional trailing ``.N``
    (see ``inspector.parse_rotation_timestamp``).
    """
    candidate = f"{path}.{when.strftime(ROTATION_SUFFIX_FORMAT)}"
    counter = 1
    base = candidate
    while os.path.exists(candidate):
        candidate = f"{base}.{counter}"
        counter += 1
    return candidate


def _try_lock(fd: int) -> bool:
    try:
        if os.name == "nt":
            os.lseek(fd, 0, os.SEEK_SET)
            msvcrt.locking(fd, msvcrt.LK_NBLCK, 1)
        else:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except OSError:
        return False
    return True


def _unlock(fd: int):
    if os.name == "nt":
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
    else:
        fcntl.flock(fd, fcntl.LOCK_UN)


def acquire_lock(fd: int, timeout: float) -> bool:
    """Take an exclusive advisory lock on *fd*, giving up after *timeout* seconds."""
    deadline = time.monotonic() + timeout
    while True:
        if _try_lock(fd):
            return True
        if time.monotonic() >= deadline:
            return False
        time.sleep(LOCK_RETRY_INTERVAL)


def _is_current(fd: int, path: str) -> bool:
    """True if *fd* still refers to the file at *path* (not a rotated-away one)."""
    try:
        opened = os.fstat(fd)
        current = os.stat(path)
    except OSError:
        return False
    return (opened.st_dev, opened.st_ino) == (current.st_dev, current.st_ino)


def _release(f, locked: bool):
    if locked:
        try:
            _unlock(f.fileno())
        except OSError:
            pass
    try:
        f.close()
    except OSError:
        pass


class LocalLogWriter:
    """Best-effort writer: every call opens, locks, appends, and closes its own handle.

    The rotation check and rename run while holding the lock on the file being
    rotated, so two writers cannot rename the same file onto one target. A
    writer that was waiting on a file that got rotated away reopens the path
    before appending. The append is serialized across threads and processes.
    """

    def __init__(self, clock=None, lock_timeout: float = 2.0):
        self._clock = clock or datetime.now
        self._lock_timeout = lock_timeout

    def write(self, base_path: str, file_name: str, title: str, content,
              max_lines: int = 10000, max_size_kb: int = 2048) -> None:
        """Append an entry. Never raises."""
        self.try_write(base_path, file_name, title, content, max_lines, max_size_kb)

    def try_write(self, base_path: str, file_name: str, title: str, content,
                  max_lines: int = 10000, max_size_kb: int = 2048) -> WriteResult:
        """Append an entry and report what happened. Never raises."""
        try:
            return self._write(base_path, file_name, title, content,
                               RotationThresholds(max_lines, max_size_kb))
        except Exception:
            logger.exception("Unexpected failure writing to %s", file_name)
            return WriteResult(written=False, error=WriteError.IO)

    def _open_locked(self, path: str, deadline: float):
        """Open *path* for append and lock it before the monotonic *deadline*.

        A handle whose file was rotated away while waiting is dropped and the
        path reopened, as often as the deadline allows. Returns (file, None)
        or (None, WriteError.LOCK). OSError from ``open`` propagates.
        """
        while True:
            f = open(path, "ab")
            if not acquire_lock(f.fileno(), max(0.0, deadline - time.monotonic())):
                _release(f, locked=False)
                logger.warning("Could not lock %s within %.2fs, entry dropped", path, self._lock_timeout)
                return None, WriteError.LOCK
            if _is_current(f.fileno(), path):
                return f, None
            _release(f, locked=True)
            if time.monotonic() >= deadline:
                logger.warning("%s kept being rotated away for %.2fs, entry dropped",
                               path, self._lock_timeout)
                return None, WriteError.LOCK
            logger.debug("%s was rotated while waiting for the lock, reopening", path)

    def _write(self, base_path, file_name, title, content, thresholds) -> WriteResult:
        path = os.path.join(base_path, file_name)

        try:
            body = serialize_content(content)
        except (TypeError, ValueError, RecursionError) as e:
            logger.warning("Could not serialize log content for %s: %s", path, e)
            return WriteResult(written=False, error=WriteError.SERIALIZE)

        dir_error = False
        try:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        except OSError as e:
            logger.warning("Could not create log directory for %s: %s", path, e)
            dir_error = True

        now = self._clock()
        blob = LogEntry(now, str(title), body).render()
        existed = os.path.exists(path)
        deadline = time.monotonic() + self._lock_timeout

        try:
            f, error = self._open_locked(path, deadline)
        except OSError as e:
            logger.warning("Could not open log file %s: %s", path, e)
            return WriteResult(written=False, error=WriteError.DIRECTORY if dir_error else WriteError.OPEN)
        if f is None:
            return WriteResult(written=False, error=error)

        rotated_path = None
        try:
            if existed and needs_rotation(path, thresholds):
                target = rotation_target(path, now)
                try:
                    os.rename(path, target)
                except OSError as e:
                    logger.debug("Rotation of %s skipped: %s", path, e)
                else:
                    rotated_path = target
                    _release(f, locked=True)
                    f = None
                    try:
                        f, error = self._open_locked(path, deadline)
                    except OSError as e:
                        logger.warning("Could not reopen %s after rotation: %s", path, e)
                        return WriteResult(written=False, rotated_path=rotated_path, error=WriteError.OPEN)
                    if f is None:
                        return WriteResult(written=False, rotated_path=rotated_path, error=error)

            try:
                f.write(blob)
                f.flush()
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning("Write to %s failed: %s", path, e)
                return WriteResult(written=False, rotated_path=rotated_path, error=WriteError.IO)
        finally:
            if f is not None:
                _release(f, locked=True)

        return WriteResult(written=True, rotated_path=rotated_path)


_default_writer = LocalLogWriter()


def write(base_path: str, file_name: str, title: str, content,
          max_lines: int = 10000, max_size_kb: int = 2048) -> None:
    """Module-level shortcut for ``LocalLogWriter().write``."""
    _default_writer.write(base_path, file_name, title, content, max_lines, max_size_kb)
