from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List

from core.config import MB
from core.errors import StatFailed


@dataclass(frozen=True)
class MediaArtifact:
    path: str
    size: int

    @property
    def size_mb(self) -> float:
        return self.size / MB

    @classmethod
    def from_path(cls, path: str) -> "MediaArtifact":
        try:
            return cls(path=path, size=os.path.getsize(path))
        except OSError as e:
            raise StatFailed(f"Failed to get file info for {path}: {e}")


@dataclass(frozen=True)
class ChunkPlan:
    duration: float
    chunk_duration: float
    count: int

    def start_of(self, index: int) -> float:
        return index * self.chunk_duration


@dataclass
class DeliveryReport:
    total: int = 0
    sent: List[int] = field(default_factory=list)
    skipped: List[int] = field(default_factory=list)
    failed: List[int] = field(default_factory=list)

    @property
    def all_sent(self) -> bool:
        return len(self.sent) == self.total
