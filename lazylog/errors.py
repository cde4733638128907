"""Result types for the never-raising write and dispatch paths."""

from dataclasses import dataclass
from enum import Enum


class WriteError(Enum):
    DIRECTORY = "directory"
    SERIALIZE = "serialize"
    OPEN = "open"
    LOCK = "lock"
    IO = "io"


@dataclass(frozen=True)
class WriteResult:
    written: bool
    rotated_path: str | None = None
    error: WriteError | None = None


class SpawnError(Enum):
    SERIALIZE = "serialize"
    STAGING = "staging"
    SPAWN = "spawn"


@dataclass(frozen=True)
class SpawnResult:
    started: bool
    staging_path: str | None = None
    error: SpawnError | None = None
