
from functools import lru_cache
from typing import FrozenSet, List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    PROJECT_NAME: str = "Cuba Clasificados API"
    API_V1_STR: str = "/api/v1"
    ENVIRONMENT: str = "production"  # development, production
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    FRONTEND_URL: str = "*"

    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000

    # Telegram
    TELEGRAM_BOT_TOKEN: str = ""
    TELEGRAM_ADMIN_ID: Optional[str] = None
    TELEGRAM_ADMIN_IDS: str = ""  # comma-separated
    TELEGRAM_API_URL: str = "https://api.telegram.org"
    TELEGRAM_TIMEOUT_SECONDS: float = 10.0
    REQUIRED_CHANNEL: str = "@CubaClasificados"
    # 0 disables the auth_date freshness check
    INIT_DATA_MAX_AGE_SECONDS: int = 0

    # Database
    POSTGRES_SERVER: str = "localhost"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "cuba_clasificados"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: str = ""
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_TIMEOUT: int = 30
    DB_CONNECT_TIMEOUT: int = 10
    DB_STATEMENT_TIMEOUT_MS: int = 30000

    # Uploads
    UPLOAD_DIR: str = "./uploads"
    UPLOAD_URL_PREFIX: str = "/uploads"
    MAX_PHOTO_SIZE_BYTES: int = 5 * 1024 * 1024
    MAX_PHOTOS_PER_LISTING: int = 5
    ALLOWED_PHOTO_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".webp"]

    ACTIVE_LISTING_CAP: int = 10

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore"
    )

    def assemble_db_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

    @property
    def is_development(self) -> bool:
        return self.DEBUG or self.ENVIRONMENT == "development"

    @property
    def admin_ids(self) -> FrozenSet[str]:
        """TELEGRAM_ADMIN_ID plus every entry of TELEGRAM_ADMIN_IDS."""
        ids = {part.strip() for part in self.TELEGRAM_ADMIN_IDS.split(",") if part.strip()}
        if self.TELEGRAM_ADMIN_ID and self.TELEGRAM_ADMIN_ID.strip():
            ids.add(self.TELEGRAM_ADMIN_ID.strip())
        return frozenset(ids)


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.DATABASE_URL = settings.assemble_db_url()
    return settings
