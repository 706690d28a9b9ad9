"""Environment-based configuration for GranjaPro.

Values come from the process environment, optionally seeded from a ``.env``
file in the working directory. Every setting has a default so the console
starts without any configuration.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from granjapro.utils.helpers.exceptions import ConfigurationError

PROJECT_DIR = Path(__file__).resolve().parent.parent

DEFAULT_LAYING_RATE_THRESHOLD = 70.0
DEFAULT_FEED_KG_PER_BIRD = 0.115  # 115 g of feed per bird per day
DEFAULT_EGG_WEIGHT_KG = 0.060  # 60 g per egg


def default_db_path() -> Path:
    configured = os.getenv("GRANJAPRO_DB_PATH")
    if configured:
        return Path(configured)
    return PROJECT_DIR / "data" / "granjapro.db"


class Settings(BaseModel):
    """Resolved runtime settings."""

    db_path: str
    log_level: str = "INFO"
    log_dir: Path = Field(default=PROJECT_DIR / "artifacts" / "logs")
    laying_rate_threshold: float = Field(default=DEFAULT_LAYING_RATE_THRESHOLD, ge=0.0)
    feed_kg_per_bird: float = Field(default=DEFAULT_FEED_KG_PER_BIRD, gt=0.0)
    egg_weight_kg: float = Field(default=DEFAULT_EGG_WEIGHT_KG, gt=0.0)
    admin_name: Optional[str] = None
    admin_password: Optional[str] = None


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Load settings from the environment (and ``.env`` when present)."""
    load_dotenv(env_file)
    log_dir = os.getenv("GRANJAPRO_LOG_DIR")
    try:
        return Settings(
            db_path=str(default_db_path()),
            log_level=os.getenv("GRANJAPRO_LOG_LEVEL", "INFO").upper(),
            log_dir=Path(log_dir) if log_dir else PROJECT_DIR / "artifacts" / "logs",
            laying_rate_threshold=_float_env(
                "GRANJAPRO_LAYING_RATE_THRESHOLD", DEFAULT_LAYING_RATE_THRESHOLD
            ),
            feed_kg_per_bird=_float_env("GRANJAPRO_FEED_KG_PER_BIRD", DEFAULT_FEED_KG_PER_BIRD),
            egg_weight_kg=_float_env("GRANJAPRO_EGG_WEIGHT_KG", DEFAULT_EGG_WEIGHT_KG),
            admin_name=os.getenv("GRANJAPRO_ADMIN_NAME") or None,
            admin_password=os.getenv("GRANJAPRO_ADMIN_PASSWORD") or None,
        )
    except ValueError as exc:
        # pydantic.ValidationError subclasses ValueError
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
