from dotenv import load_dotenv
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, computed_field

# Load .env file from the working directory
load_dotenv()


class Settings(BaseSettings):
    """Base settings for the sync job."""

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    APP_NAME: str = "readwise-sync"
    APP_VERSION: str = "0.3.0"
    APP_DESCRIPTION: str = "Sync Readwise Reader documents to a relational store"

    DATABASE_URL: str = ""
    LOCAL_SQLITE_PATH: str = "sqlite+aiosqlite:///./readwise.db"

    # Seconds a single store call may block before the driver gives up
    DB_TIMEOUT_SECONDS: float = 30.0
    # Create the reading / sync_state tables on startup when missing
    DB_CREATE_TABLES: bool = True

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """Resolve the database URL for the sync job.

        Priority:
        1. Explicit DATABASE_URL (Postgres, SQLite, etc.)
        2. Local SQLite fallback: LOCAL_SQLITE_PATH
        """
        if self.DATABASE_URL and self.DATABASE_URL.strip():
            return self.DATABASE_URL.strip()
        if self.LOCAL_SQLITE_PATH and self.LOCAL_SQLITE_PATH.strip():
            return self.LOCAL_SQLITE_PATH.strip()
        return "sqlite+aiosqlite:///./readwise.db"

    # Readwise Reader API settings
    READWISE_ACCESS_TOKEN: str = Field(default="", description="Reader API access token")
    READWISE_API_URL: str = Field(
        default="https://readwise.io/api/v3/list/",
        description="Reader list endpoint",
    )
    READWISE_AUTH_SCHEME: str = Field(
        default="Token",
        description="Authorization scheme prefixed to the access token",
    )
    READWISE_TIMEOUT_SECONDS: float = 30.0

    # Retry policy for transient failures (5xx, timeouts, connection errors).
    # Rate-limit responses carrying a wait hint are not counted here.
    READWISE_MAX_RETRIES: int = Field(default=5, ge=0)
    READWISE_BACKOFF_BASE_SECONDS: float = 1.0
    READWISE_BACKOFF_MAX_SECONDS: float = 60.0
    READWISE_BACKOFF_JITTER_SECONDS: float = 1.0

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = False


settings = Settings()
