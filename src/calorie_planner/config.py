"""Application configuration."""

import os
from dataclasses import dataclass

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

WORLD_OFF_BASE_URL = "https://world.openfoodfacts.org"

_DEFAULT_GEMINI_MODELS = (
    "gemini-2.5-flash-lite,gemini-1.5-flash-latest,"
    "gemini-1.5-pro-latest,gemini-1.0-pro-vision"
)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    fatsecret_client_id: str
    fatsecret_client_secret: str
    fatsecret_token_url: str = "https://oauth.fatsecret.com/connect/token"
    fatsecret_api_url: str = "https://platform.fatsecret.com/rest/server.api"
    fatsecret_region: str = "ES"
    off_base_url: str | None = None
    off_strict_country: bool = False
    off_user_agent: str = "CaloriePlanner/1.0"
    gemini_api_key: str | None = None
    gemini_models: str = _DEFAULT_GEMINI_MODELS
    gemini_api_versions: str = "v1,v1beta"
    gemini_base_url: str = "https://generativelanguage.googleapis.com"
    search_cache_ttl_seconds: int = 300
    static_dir: str = "."
    host: str = "0.0.0.0"  # noqa: S104
    port: int = 8787
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


@dataclass(frozen=True)
class RegionProfile:
    """Locale settings of a region on the open product database."""

    language: str
    country: str
    base_url: str


REGION_PROFILES: dict[str, RegionProfile] = {
    "ES": RegionProfile("es", "Spain", "https://es.openfoodfacts.org"),
    "FR": RegionProfile("fr", "France", "https://fr.openfoodfacts.org"),
    "IT": RegionProfile("it", "Italy", "https://it.openfoodfacts.org"),
    "DE": RegionProfile("de", "Germany", "https://de.openfoodfacts.org"),
    "PT": RegionProfile("pt", "Portugal", "https://pt.openfoodfacts.org"),
    "MX": RegionProfile("es", "Mexico", "https://mx.openfoodfacts.org"),
    "GB": RegionProfile("en", "United Kingdom", "https://uk.openfoodfacts.org"),
    "US": RegionProfile("en", "United States", "https://us.openfoodfacts.org"),
}


def region_profile(region: str) -> RegionProfile | None:
    """Return the locale profile for a region code, if one is known."""
    return REGION_PROFILES.get(region.strip().upper())


def resolve_off_base_url(settings: Settings) -> str:
    """Pick the primary open product database URL for the configured region."""
    if settings.off_base_url:
        return settings.off_base_url.rstrip("/")
    profile = region_profile(settings.fatsecret_region)
    if profile is None:
        return WORLD_OFF_BASE_URL
    return profile.base_url


def parse_csv_list(raw: str | None) -> list[str]:
    """Parse a comma-separated env value into a list of non-empty entries."""
    if raw is None:
        return []
    return [chunk.strip() for chunk in raw.split(",") if chunk.strip()]
