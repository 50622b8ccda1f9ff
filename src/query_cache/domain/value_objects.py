from __future__ import annotations

from enum import Enum


class FetchOrigin(str, Enum):
    """Why a producer was invoked.

    Using (str, Enum) for Python 3.10 compatibility (StrEnum requires 3.11+).
    """

    COLD = "cold"  # miss or stale entry, caller sees loading=True
    BACKGROUND = "background"  # fresh hit with refetch_in_background
    REFETCH = "refetch"  # explicit refetch(), TTL ignored
