"""
Client configuration for the telemetry feeds.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_DWLR_BASE_URL = "https://mock-api-jsia.onrender.com"
DEFAULT_DWLR_ENDPOINT = "DWLR_DATA"
DEFAULT_SENSOR_URL = "https://api-creation-1hfb.onrender.com/data"


@dataclass(frozen=True)
class ClientConfig:
    """Connection settings for TelemetryClient and SnapshotPoller."""

    dwlr_base_url: str = DEFAULT_DWLR_BASE_URL
    dwlr_endpoint: str = DEFAULT_DWLR_ENDPOINT
    sensor_url: str = DEFAULT_SENSOR_URL
    timeout: float = 30.0
    poll_interval: float = 30.0
    user_agent: str = "dwlr-telemetry-client/0.1.0"

    def __post_init__(self) -> None:
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.poll_interval <= 0:
            raise ValueError(
                f"poll_interval must be positive, got {self.poll_interval}"
            )

    @property
    def dwlr_url(self) -> str:
        return f"{self.dwlr_base_url.rstrip('/')}/{self.dwlr_endpoint.lstrip('/')}"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ClientConfig":
        """
        Build a configuration from environment variables.

        Reads DWLR_API_BASE_URL, DWLR_ENDPOINT, DWLR_SENSOR_URL, DWLR_TIMEOUT
        and DWLR_POLL_INTERVAL; unset variables keep their defaults.

        Raises:
            ValueError: If a numeric variable is not a number
        """
        env = os.environ if environ is None else environ

        def _float(name: str, default: float) -> float:
            raw = env.get(name)
            if raw is None or raw.strip() == "":
                return default
            try:
                return float(raw)
            except ValueError:
                raise ValueError(f"{name} must be a number, got {raw!r}") from None

        return cls(
            dwlr_base_url=env.get("DWLR_API_BASE_URL", DEFAULT_DWLR_BASE_URL),
            dwlr_endpoint=env.get("DWLR_ENDPOINT", DEFAULT_DWLR_ENDPOINT),
            sensor_url=env.get("DWLR_SENSOR_URL", DEFAULT_SENSOR_URL),
            timeout=_float("DWLR_TIMEOUT", 30.0),
            poll_interval=_float("DWLR_POLL_INTERVAL", 30.0),
        )
