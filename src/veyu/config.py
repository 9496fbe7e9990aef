"""
Configuration for the Veyu SDK.

Values come from defaults, then from the environment (optionally via a .env
file in the working directory). The data directory follows the platform's
usual per-user application data location unless VEYU_APP_DATA or
VEYU_DATA_DIR overrides it.
"""

import os
import platform
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from veyu.logger import get_logger

logger = get_logger(__name__)

APP_DIR_NAME = "com.veyu.sdk"
LOG_DIR_NAME = "veyu-logs"

_ENV_KEYS = {
    "data_dir": "VEYU_DATA_DIR",
    "flush_interval": "VEYU_FLUSH_INTERVAL",
    "build_version": "VEYU_BUILD_VERSION",
    "upload_delay": "VEYU_UPLOAD_DELAY",
    "tick_interval": "VEYU_TICK_INTERVAL",
}


def default_data_dir() -> Path:
    """Resolve the per-user writable data directory for this platform."""
    if override := os.getenv("VEYU_APP_DATA"):
        return Path(override)

    system = platform.system()
    if system == "Windows":
        roaming = os.getenv("APPDATA")
        base = Path(roaming) if roaming else Path.home() / "AppData" / "Roaming"
    elif system == "Darwin":
        base = Path.home() / "Library" / "Application Support"
    else:  # Linux
        xdg = os.getenv("XDG_DATA_HOME")
        base = Path(xdg) if xdg else Path.home() / ".local" / "share"
    return base / APP_DIR_NAME


class VeyuConfig(BaseModel):
    """Runtime settings for a telemetry session."""

    data_dir: Path = Field(default_factory=default_data_dir)
    log_dir_name: str = LOG_DIR_NAME
    flush_interval: float = 5.0
    build_version: str = "0.0.0"
    upload_delay: float = 0.5
    tick_interval: float = 1.0

    @property
    def log_dir(self) -> Path:
        return Path(self.data_dir) / self.log_dir_name

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "VeyuConfig":
        """Build a config from defaults overridden by VEYU_* variables."""
        load_dotenv(dotenv_path)

        values: dict[str, object] = {}
        for field_name, env_key in _ENV_KEYS.items():
            raw = os.getenv(env_key)
            if raw is None or raw == "":
                continue
            values[field_name] = raw

        try:
            return cls(**values)
        except ValueError as e:
            logger.warning(f"Ignoring invalid Veyu environment settings: {e}")
            return cls()
