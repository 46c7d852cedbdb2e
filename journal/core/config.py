from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    APP_ENV: str = "development"
    LOG_LEVEL: str = "INFO"

    # "relational" = SQLAlchemy/SQLite, "flat" = whole-collection key-value store.
    STORAGE_BACKEND: Literal["relational", "flat"] = "relational"

    DATABASE_URL: str = "sqlite+aiosqlite:///./aijournal.db"
    SQL_ECHO: bool = False

    FLAT_STORE_KIND: Literal["file", "memory"] = "file"
    FLAT_STORE_DIR: str = "./aijournal_store"
    FLAT_KEY_PREFIX: str = "aijournal_"
    FLAT_QUOTA_BYTES: Optional[int] = None

    RECENT_DAYS_DEFAULT: int = 7

    # Bulk cleanup defaults
    CLEANUP_DEDUPE_CHAT: bool = True
    CLEANUP_CHAT_CROSS_SESSION: bool = False
    CLEANUP_STRICT_FINGERPRINTS: bool = False

    # Comma-separated allowed origins, or "*" to allow all.
    CORS_ORIGINS: str = "*"

    @property
    def cors_origins_list(self) -> list[str]:
        if self.CORS_ORIGINS.strip() == "*":
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]


settings = Settings()
