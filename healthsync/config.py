"""Application configuration loaded from environment variables."""

from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """All configuration is loaded from HEALTHSYNC_* environment variables (or .env file)."""

    # --- App ---
    app_version: str = "0.1.0"
    log_level: str = "INFO"
    environment: str = "development"  # development | staging | production

    # --- Remote service ---
    api_base_url: str = "http://localhost:8080/api/v1"
    login_path: str = "/auth/login"
    persist_path: str = "/health/persist"
    exercises_path: str = "/exercises"
    workouts_path: str = "/workouts"
    http_timeout_seconds: float = 30.0

    # --- Local data ---
    timezone: str = "UTC"  # IANA zone that defines calendar days
    state_path: Path = Path.home() / ".healthsync" / "state.json"
    health_export_path: Path | None = None  # Apple Health export.xml or .json

    # --- CORS ---
    cors_origins: list[str] = ["http://localhost:3000"]

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "HEALTHSYNC_"}

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def url(self, path: str) -> str:
        return self.api_base_url.rstrip("/") + "/" + path.lstrip("/")


@lru_cache
def get_settings() -> Settings:
    return Settings()
