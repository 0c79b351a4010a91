from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pydantic import field_validator

class Settings(BaseSettings):
    # Database settings
    POSTGRES_USER: str = 'ledger_user'
    POSTGRES_PASSWORD: str = 'ledger_pass'
    POSTGRES_DB: str = 'ledger_db'
    POSTGRES_HOST: str = 'postgres'
    POSTGRES_PORT: int = 5432
    # Full URL override (e.g. sqlite+pysqlite:///./ledger.db for local runs)
    DATABASE_URL: Optional[str] = None

    # JWT settings (tokens are issued by the external identity provider)
    APP_SECRET_STRING: str = 'your-super-secret-key-here-change-in-production-2024'
    ALGORITHM: str = 'HS256'

    # Business day
    BUSINESS_TIMEZONE: str = 'Asia/Kathmandu'
    DAY_END_HOUR: int = 0
    DAY_END_MINUTE: int = 0

    # Pagination
    DEFAULT_PAGE_SIZE: int = 20
    MAX_PAGE_SIZE: int = 100

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    model_config = SettingsConfigDict(
        extra="allow",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True
    )

    @field_validator("DEBUG", mode="before")
    @classmethod
    def parse_debug(cls, v):
        if isinstance(v, str):
            return v.lower().strip('"').strip("'") in ("true", "1", "yes", "on")
        return bool(v)

    @field_validator("DAY_END_HOUR")
    @classmethod
    def validate_day_end_hour(cls, v: int) -> int:
        if not 0 <= v <= 23:
            raise ValueError("DAY_END_HOUR must be between 0 and 23")
        return v

    @field_validator("DAY_END_MINUTE")
    @classmethod
    def validate_day_end_minute(cls, v: int) -> int:
        if not 0 <= v <= 59:
            raise ValueError("DAY_END_MINUTE must be between 0 and 59")
        return v

settings = Settings()
