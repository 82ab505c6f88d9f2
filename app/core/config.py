"""
Configuration module - loads all env vars using pydantic-settings.
This is the SINGLE SOURCE OF TRUTH for all config values.
"""

from functools import lru_cache
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # PostgreSQL
    postgres_host: str = "localhost"
    postgres_port: int = 5432
    postgres_user: str = "sponsormatch_user"
    postgres_password: str = "password"
    postgres_db: str = "sponsormatch_db"

    # Full SQLAlchemy URL; overrides the postgres_* fields when set
    database_url: Optional[str] = None

    # Scoring engine weights (renormalized over the dimensions that apply)
    weight_category_preference: float = 0.30
    weight_needs_offering: float = 0.25
    weight_industry_affinity: float = 0.20
    weight_audience_fit: float = 0.15
    weight_description_similarity: float = 0.10

    # Matches at or above this score are featured
    featured_threshold: int = 80

    # Sponsors below this completion are not matched yet
    sponsor_completion_threshold: int = 60

    # Match persistence retries
    match_write_attempts: int = 3
    match_write_backoff_seconds: float = 0.5
    match_write_backoff_max_seconds: float = 8.0

    # App
    debug: bool = False
    log_level: str = "INFO"

    @property
    def postgres_url(self) -> str:
        """Construct the database connection URL"""
        if self.database_url:
            return self.database_url
        return (
            f"postgresql://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def scoring_weights(self) -> dict:
        return {
            "category_preference": self.weight_category_preference,
            "needs_offering": self.weight_needs_offering,
            "industry_affinity": self.weight_industry_affinity,
            "audience_fit": self.weight_audience_fit,
            "description_similarity": self.weight_description_similarity,
        }

    # Pydantic v2 config
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )


@lru_cache()
def get_settings() -> Settings:
    return Settings()
