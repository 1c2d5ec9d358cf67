"""Centralized engine settings using pydantic-settings.

All environment variable reads are consolidated here. Import `get_settings`
from this module rather than reading os.environ directly.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ALL_RULES = "rule1,rule2,rule3,rule4,rule5,rule6,rule7,rule8"


class Settings(BaseSettings):
    """Engine settings loaded from environment variables.

    All env vars are prefixed with SPCCORE_ (case-insensitive).
    """

    model_config = SettingsConfigDict(
        env_prefix="SPCCORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Control limits
    default_sigma_level: float = Field(default=3.0, gt=0)

    # Rule evaluation
    enabled_rules: str = ALL_RULES

    # Logging
    log_format: str = "console"
    log_level: str = "INFO"

    @property
    def enabled_rule_list(self) -> list[str]:
        """Parse comma-separated rule ids into a list."""
        return [r.strip() for r in self.enabled_rules.split(",") if r.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return the cached engine settings singleton."""
    return Settings()
