"""
Application configuration settings
FILE: quizapp/core/config.py
"""
from typing import List

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables

    Built once at startup and handed explicitly to the Mongo manager,
    the document store, the identity provider and the services.
    """

    # MongoDB Configuration
    mongodb_url: str = "mongodb://localhost:27017"
    database_name: str = "quiz_app"

    # Collection paths are scoped as artifacts/{app_id}/users/{user_id}/...
    app_id: str = "default-app-id"

    # Identity Configuration
    allow_anonymous: bool = True

    # Session Configuration
    tick_interval_seconds: float = 1.0
    submission_max_retries: int = 3
    submission_initial_backoff_seconds: float = 0.5
    session_idle_timeout_seconds: float = 3600.0
    finished_session_cache_size: int = 100

    # Scoring policy: open-ended questions count toward totalQuestions
    count_open_ended_in_total: bool = True

    # Subscription Configuration
    subscribe_poll_interval_seconds: float = 2.0

    # API Configuration
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:4000",
    ]
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = False  # This allows case-insensitive matching
        extra = "ignore"
