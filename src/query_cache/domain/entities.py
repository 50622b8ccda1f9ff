from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class CacheEntry:
    """A stored producer result and the moment it was written."""

    value: Any
    stored_at: float  # time.monotonic() seconds


@dataclass
class CacheStats:
    """Diagnostic snapshot of cache occupancy."""

    size: int
    keys: list[str] = field(default_factory=list)  # insertion order

    def to_dict(self) -> dict[str, Any]:
        return {"size": self.size, "keys": list(self.keys)}
