from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping

from query_cache.infrastructure.sweeper import DEFAULT_RETENTION, DEFAULT_SWEEP_INTERVAL
from query_cache.infrastructure.time_utils import minutes

DEFAULT_TTL = minutes(5)
DEFAULT_HTTP_TIMEOUT = 15.0  # seconds

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class CacheSettings:
    """Cache tuning read from the environment. All durations in seconds."""

    default_ttl: float = DEFAULT_TTL
    sweep_interval: float = DEFAULT_SWEEP_INTERVAL
    retention: float = DEFAULT_RETENTION
    dedupe_in_flight: bool = False
    guard_out_of_order: bool = False
    http_timeout: float = DEFAULT_HTTP_TIMEOUT

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CacheSettings:
        """Build settings from QUERY_CACHE_* / HTTP_TIMEOUT variables.

        Unset variables keep their defaults. Raises ValueError on malformed numbers.
        """
        env = os.environ if environ is None else environ
        return cls(
            default_ttl=_float(env, "QUERY_CACHE_TTL", DEFAULT_TTL, allow_zero=True),
            sweep_interval=_float(env, "QUERY_CACHE_SWEEP_INTERVAL", DEFAULT_SWEEP_INTERVAL),
            retention=_float(env, "QUERY_CACHE_RETENTION", DEFAULT_RETENTION),
            dedupe_in_flight=_bool(env, "QUERY_CACHE_DEDUPE"),
            guard_out_of_order=_bool(env, "QUERY_CACHE_GUARD_ORDER"),
            http_timeout=_float(env, "HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT),
        )


def _float(
    env: Mapping[str, str], name: str, default: float, allow_zero: bool = False
) -> float:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}")
    if value < 0 or (value == 0 and not allow_zero):
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _bool(env: Mapping[str, str], name: str) -> bool:
    return env.get(name, "").strip().lower() in _TRUE_VALUES
