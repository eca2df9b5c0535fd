"""
Application settings.

Values come from environment variables (or a local ``.env`` file), e.g.::

    PERENUAL_API_KEY=sk-...
    TOXICSHROOMS_ENABLED=false
    CACHE_TTL_HOURS=12
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from flora_catalog.schemas import SourceConfig, SourceTag


class Settings(BaseSettings):
    """Runtime configuration for the catalog core and CLI."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_name: str = "flora-catalog"
    app_env: str = "development"
    debug: bool = False

    data_dir: Path = Path("data")
    store_quota_bytes: int | None = Field(
        default=5 * 1024 * 1024,
        description="Upper bound for persisted cache bytes; None disables the quota",
    )

    perenual_api_key: str = ""

    perenual_enabled: bool = True
    inaturalist_enabled: bool = True
    toxicshrooms_enabled: bool = True

    cache_ttl_hours: float = 24.0
    api_cooldown_seconds: float = 2.0
    retry_delay_seconds: float = 0.5

    def source_config(self) -> dict[SourceTag, SourceConfig]:
        """Static ``source -> {enabled}`` mapping in declared priority order."""
        return {
            SourceTag.PERENUAL: SourceConfig(enabled=self.perenual_enabled),
            SourceTag.INATURALIST: SourceConfig(enabled=self.inaturalist_enabled),
            SourceTag.TOXICSHROOMS: SourceConfig(enabled=self.toxicshrooms_enabled),
        }

    @property
    def cache_ttl_ms(self) -> int:
        return int(self.cache_ttl_hours * 3600 * 1000)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (loaded once)."""
    return Settings()
