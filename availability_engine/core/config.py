from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from the project root so it loads regardless of cwd
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./availability.db"
    database_ssl: bool = False

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Scheduling defaults, used until an actor stores its own availability settings
    default_time_zone: str = "Europe/London"

    # Pending bookings that never get confirmed are cancelled after this many minutes
    pending_booking_ttl_minutes: int = 60
    maintenance_interval_seconds: int = 15 * 60

    # Env
    env: str = "development"

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


settings = Settings()
