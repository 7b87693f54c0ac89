from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

HEADER_SIZE = 16
TRAILER_SENTINEL = 0


class Status(str, Enum):
    IDENTICAL = "I"
    MODIFIED = "M"
    DELETED = "D"
    ADDED = "A"


@dataclass
class Coze:
    """Running count of entries and sum of their sizes."""

    count: int = 0
    size: int = 0

    def update(self, size: int) -> None:
        self.count += 1
        self.size += int(size)

    def as_dict(self) -> Dict[str, int]:
        return {"count": self.count, "size": self.size}


@dataclass(frozen=True)
class FileRecord:
    path: str
    size: int
    checksum: bytes


@dataclass(frozen=True)
class Trailer:
    count: int
    size: int
    checksum: bytes

    @property
    def aggregate(self) -> Coze:
        return Coze(count=self.count, size=self.size)


@dataclass
class Entry:
    status: Status
    record: FileRecord
    location: Optional[Path] = None
    checksum: bytes = b""
    error: Optional[Exception] = None
