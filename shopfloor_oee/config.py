"""
Application configuration management.

Centralized configuration using environment variables with sensible defaults.
Supports .env file loading for local development.
"""

from __future__ import annotations
import os
from pathlib import Path
from typing import Optional


def load_env_file(env_path: Path = Path(".env")) -> None:
    """Load environment variables from .env file."""
    if env_path.exists():
        with open(env_path, 'r') as f:
            for line in f:
                line = line.strip()
                if line and not line.startswith('#') and '=' in line:
                    key, value = line.split('=', 1)
                    os.environ.setdefault(key.strip(), value.strip())


# Load .env file if it exists, before the class attributes read the environment
load_env_file()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Config:
    """Application configuration class."""

    # Local store
    DB_PATH: Path = Path(os.getenv("DB_PATH", "data/shopfloor.db"))
    DEFAULT_MACHINE_COUNT: int = int(os.getenv("DEFAULT_MACHINE_COUNT", "8"))

    # Shift settings (wall-clock, HH:MM)
    WORK_HOURS_ENABLED: bool = _env_bool("WORK_HOURS_ENABLED", "true")
    SHIFT_START: str = os.getenv("SHIFT_START", "08:00")
    SHIFT_END: str = os.getenv("SHIFT_END", "18:49")

    # Analytics settings
    DEFAULT_CYCLE_TIME_S: float = float(os.getenv("DEFAULT_CYCLE_TIME_S", "30"))
    MTBF_WINDOW_DAYS: int = int(os.getenv("MTBF_WINDOW_DAYS", "30"))
    UNKNOWN_REASON: str = os.getenv("UNKNOWN_REASON", "Unknown")

    # Insight thresholds (percent)
    FLEET_OEE_ALERT: float = float(os.getenv("FLEET_OEE_ALERT", "60"))
    MACHINE_OEE_ALERT: float = float(os.getenv("MACHINE_OEE_ALERT", "70"))
    OEE_WORLD_CLASS: float = float(os.getenv("OEE_WORLD_CLASS", "85"))

    # UI settings
    DEFAULT_OPERATOR: str = os.getenv("DEFAULT_OPERATOR", "Shift A Operator")

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE: Optional[Path] = Path(os.getenv("LOG_FILE", "logs/app.log")) if os.getenv("LOG_FILE") else None

    @classmethod
    def default_work_hours(cls):
        """Build the WorkHoursConfig described by the environment."""
        from shopfloor_oee.models import WorkHoursConfig
        return WorkHoursConfig.parse(cls.WORK_HOURS_ENABLED, cls.SHIFT_START, cls.SHIFT_END)
