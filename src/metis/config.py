"""Client configuration shared by the transport and the stream consumer."""

from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_BASE_URL = "https://api.metisai.ir"
DEFAULT_TIMEOUT_SECONDS = 70.0
DEFAULT_STREAM_TIMEOUT_SECONDS = 60.0


def _as_float(name: str, raw: str | None, default: float) -> float:
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class MetisConfig:
    """Connection settings for one client instance.

    ``timeout`` applies uniformly to connect, read, write and pool acquisition
    on the shared connection pool. ``stream_timeout`` applies to the
    dedicated per-stream connections.
    """

    api_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    stream_timeout: float = DEFAULT_STREAM_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ValueError("api_key must not be empty")
        if self.timeout <= 0:
            raise ValueError("timeout must be positive")
        if self.stream_timeout <= 0:
            raise ValueError("stream_timeout must be positive")
        # Paths are joined with a single "/".
        object.__setattr__(self, "base_url", self.base_url.rstrip("/"))

    @classmethod
    def from_env(cls) -> MetisConfig:
        """Build a config from ``METIS_*`` environment variables."""
        return cls(
            api_key=os.environ.get("METIS_API_KEY", ""),
            base_url=os.environ.get("METIS_BASE_URL", DEFAULT_BASE_URL),
            timeout=_as_float("METIS_TIMEOUT", os.environ.get("METIS_TIMEOUT"), DEFAULT_TIMEOUT_SECONDS),
            stream_timeout=_as_float(
                "METIS_STREAM_TIMEOUT",
                os.environ.get("METIS_STREAM_TIMEOUT"),
                DEFAULT_STREAM_TIMEOUT_SECONDS,
            ),
        )
