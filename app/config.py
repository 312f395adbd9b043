from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    ENV: str = "development"  # development | production | test
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "sqlite:///./content_hub.db"
    # create tables at startup instead of running alembic (tests, local dev)
    AUTO_CREATE_TABLES: bool = False

    # Tokens
    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 8 * 60

    # Media
    UPLOADS_DIR: str = "uploads"

    # Comma-separated list of allowed origins
    CORS_ORIGINS: str = "http://localhost:5174"

    # Publication scheduler
    SCHEDULER_ENABLED: bool = True
    SCHEDULER_INTERVAL_SECONDS: float = 60.0

    # First administrator (scripts/create_admin.py)
    ADMIN_EMAIL: str = "admin@app.com"
    ADMIN_PASSWORD: Optional[str] = None
    ADMIN_NAME: str = "Administrator"

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


def get_settings() -> Settings:
    return Settings()
