"""Rotation policy: decide whether an existing log file must be rotated before the next write."""

import os
from dataclasses import dataclass

LINE_COUNT_CAP = 20000


@dataclass(frozen=True)
class RotationThresholds:
    max_lines: int = 10000
    max_size_kb: int = 2048

    def __post_init__(self):
        if self.max_lines <= 0:
            raise ValueError(f"max_lines must be positive, got {self.max_lines}")
        if self.max_size_kb <= 0:
            raise ValueError(f"max_size_kb must be positive, got {self.max_size_kb}")


def should_rotate(size_bytes: int, line_count: int, thresholds: RotationThresholds) -> bool:
    return size_bytes / 1024 > thresholds.max_size_kb or line_count > thresholds.max_lines


def count_lines(path: str, cap: int = LINE_COUNT_CAP) -> int:
    """Count newline-separated segments in *path*, stopping at *cap*.

    A scan that reads until end of file performs one read per segment, so an
    empty file counts 1 and N newline-terminated lines count N + 1. Files past
    the cap report the cap. Unreadable files count 0.
    """
    count = 0
    try:
        with open(path, "rb") as f:
            for _ in f:
                count += 1
                if count >= cap:
                    return cap
            # the read that hits EOF after a trailing newline (or on an empty file)
            f.seek(0, os.SEEK_END)
            size = f.tell()
            if size == 0:
                return 1
            f.seek(size - 1)
            if f.read(1) == b"\n":
                count += 1
    except OSError:
        return 0
    return min(count, cap)


def needs_rotation(path: str, thresholds: RotationThresholds) -> bool:
    """Apply the policy to an existing file. Missing files never rotate."""
    try:
        size = os.path.getsize(path)
    except OSError:
        return False
    if size / 1024 > thresholds.max_size_kb:
        return True
    return should_rotate(size, count_lines(path), thresholds)
