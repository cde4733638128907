"""List the active log file and its rotated history."""

import os
import re
from datetime import datetime

from lazylog.writer import ROTATION_SUFFIX_FORMAT

# <YYYYMMDD_HHMMSS> with an optional .N collision counter
_SUFFIX_RE = re.compile(r"^(\d{8}_\d{6})(?:\.(\d+))?$")


def get_rotated_files(log_dir: str, log_filename: str) -> list[str]:
    """Rotated files for *log_filename*, oldest first."""
    prefix = log_filename + "."
    try:
        names = os.listdir(log_dir)
    except OSError:
        return []
    rotated = [n for n in names if n.startswith(prefix) and _SUFFIX_RE.match(n[len(prefix):])]
    rotated.sort(key=lambda n: _sort_key(n[len(prefix):]))
    return rotated


def _sort_key(suffix: str) -> tuple[str, int]:
    m = _SUFFIX_RE.match(suffix)
    return m.group(1), int(m.group(2) or 0)


def parse_rotation_timestamp(filename: str, log_filename: str) -> datetime | None:
    """Extract the rotation time from a rotated filename. Returns None on failure."""
    prefix = log_filename + "."
    if not filename.startswith(prefix):
        return None
    m = _SUFFIX_RE.match(filename[len(prefix):])
    if m is None:
        return None
    try:
        return datetime.strptime(m.group(1), ROTATION_SUFFIX_FORMAT)
    except ValueError:
        return None


def list_log_files(base_path: str, file_name: str) -> list[tuple[str, int]]:
    """(relative name, size in bytes) for rotated files then the active file."""
    path = os.path.join(base_path, file_name)
    log_dir, log_filename = os.path.split(path)
    sub_dir = os.path.dirname(file_name)
    result = []
    for name in get_rotated_files(log_dir, log_filename) + [log_filename]:
        full = os.path.join(log_dir, name)
        try:
            size = os.path.getsize(full)
        except OSError:
            continue
        result.append((os.path.join(sub_dir, name), size))
    return result


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"
