"""Application settings loaded from the environment and an optional .env file."""
from pathlib import Path

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database
    DATABASE_URL: str = "sqlite:///./eduportal.db"
    SQL_DEBUG: bool = False

    # JWT & Security
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    REFRESH_TOKEN_EXPIRE_DAYS: int = 7
    LOGIN_LOCK_THRESHOLD: int = 5
    LOGIN_LOCK_MINUTES: int = 30

    # HTTP
    CORS_ORIGINS: str = "http://localhost:3000"

    # File Storage
    UPLOAD_DIR: Path = Path("uploads")
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    # Populate demo data on start up
    SEED_DATABASE: bool = False

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins(self) -> list[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


settings = Settings()
