from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Ledger service settings, read from the environment.
    A .env file is consulted only for values the environment does not set.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        env_ignore_empty=True,
    )

    # SQLAlchemy URL of the reference ledger host
    DATABASE_URL: str

    LOG_LEVEL: str


@lru_cache()
def get_settings() -> Settings:
    """Return the process-wide settings, built once."""
    return Settings()


settings = get_settings()
