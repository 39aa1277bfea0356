"""Configuration from .env file."""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Optional so the offline pipeline and tests import cleanly; the
    # completion client refuses to start without it.
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    MAX_TOKENS: int = 1000
    TEMPERATURE: float = 0.7
    HISTORY_WINDOW: int = 8  # Prior messages sent with each guided turn
    LOG_LEVEL: str = "INFO"

    # Per-session turn diagnostics for offline quality monitoring.
    TRACE_PATH: str = "data/turn_traces.json"

    class Config:
        env_file = ".env"


settings = Settings()
