"""
Engine configuration.

Settings come from the environment (``PAYMENTS_`` prefix) or a ``.env`` file,
e.g. ``PAYMENTS_LOCKED_ACCOUNT_POLICY=reject PAYMENTS_NUM_WORKERS=4``.
"""

import decimal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from models import LockedAccountPolicy


class EngineSettings(BaseSettings):
    """Payments engine configuration"""

    model_config = SettingsConfigDict(
        env_prefix="PAYMENTS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Processing
    num_workers: int = Field(default=1, ge=1)  # 1 = strictly sequential
    locked_account_policy: LockedAccountPolicy = LockedAccountPolicy.ACCEPT

    # Output formatting
    output_precision: int = Field(default=4, ge=0)
    rounding: str = decimal.ROUND_HALF_EVEN

    # Logging
    log_level: str = "WARNING"

    @field_validator("rounding")
    @classmethod
    def _known_rounding(cls, value: str) -> str:
        value = value.upper()
        if not value.startswith("ROUND_") or not hasattr(decimal, value):
            raise ValueError(f"unknown decimal rounding mode: {value}")
        return value

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {value}")
        return value


_settings = None


def get_settings() -> EngineSettings:
    """Get the process-wide settings, loading them on first use"""
    global _settings
    if _settings is None:
        _settings = EngineSettings()
    return _settings


def reload_settings() -> EngineSettings:
    """Reload settings from the environment"""
    global _settings
    _settings = EngineSettings()
    return _settings
