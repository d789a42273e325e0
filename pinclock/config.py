"""Global configuration values for PinClock."""
from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


def _default_data_dir() -> Path:
    override = os.environ.get("PINCLOCK_DATA_DIR")
    if override:
        return Path(override).expanduser()
    return (Path.home() / ".pinclock").expanduser()


@dataclass(slots=True)
class PinClockConfig:
    """Runtime configuration for the clock client."""

    api_base_url: str = "http://localhost:8888/api"
    request_timeout_seconds: float = 10.0
    pin_length: int = 4
    max_attempts: int = 3
    lockout_seconds: int = 300
    tick_seconds: float = 1.0
    geolocation_timeout_seconds: float = 10.0
    position_max_age_seconds: float = 300.0
    data_path: Path = field(default_factory=_default_data_dir)
    lockout_state_file: str = "lockouts.json"
    log_path: Path = field(default_factory=_default_data_dir)
    log_file: str = "pinclock.log"

    @classmethod
    def from_env(cls) -> "PinClockConfig":
        config = cls()
        base_url = os.environ.get("PINCLOCK_API_URL")
        if base_url:
            config.api_base_url = base_url.rstrip("/")
        timeout = os.environ.get("PINCLOCK_TIMEOUT")
        if timeout:
            config.request_timeout_seconds = float(timeout)
        return config

    def ensure_directories(self) -> None:
        """Create directories for application data if they do not exist."""
        self.data_path.mkdir(parents=True, exist_ok=True)
        self.log_path.mkdir(parents=True, exist_ok=True)

    @property
    def lockout_duration_ms(self) -> int:
        return self.lockout_seconds * 1000

    @property
    def lockout_state_location(self) -> Path:
        return self.data_path / self.lockout_state_file

    @property
    def log_location(self) -> Path:
        return self.log_path / self.log_file


DEFAULT_CONFIG = PinClockConfig()
