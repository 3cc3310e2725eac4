"""Application configuration from environment."""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """App settings loaded from env / .env."""

    app_name: str = "PhishGuard"
    debug: bool = False
    log_level: str = "INFO"

    # Storage: "sql" (SQLAlchemy, async driver) or "memory" (process-local)
    database_url: str = "sqlite+aiosqlite:///./phishguard.db"
    store_backend: str = "sql"
    seed_items: bool = True

    # JWT for the admin dashboard
    secret_key: str = "change-me-in-production-use-env"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 8

    # Login brute-force guard
    rate_limit_attempts: int = 5
    rate_limit_window_minutes: int = 15

    # Assessment defaults
    default_question_count: int = 10
    default_time_limit_minutes: int = 10

    # Risk scoring: base 50; +10 per phishing failure; +15 if average decision < 3s
    risk_base_score: int = 50
    risk_failure_weight: int = 10
    risk_fast_decision_penalty: int = 15
    risk_fast_decision_threshold_seconds: float = 3.0
    risk_default_latency_seconds: float = 10.0

    timeline_default_limit: int = 100

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


def get_settings() -> Settings:
    return Settings()
