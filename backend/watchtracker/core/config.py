import os
from pydantic_settings import BaseSettings



class Settings(BaseSettings):
    db_user: str = os.getenv("POSTGRES_USER", "watchtracker")
    db_password: str = os.getenv("POSTGRES_PASSWORD", "watchtracker")
    db_name: str = os.getenv("POSTGRES_DB", "watchtracker")
    database_url: str = os.getenv(
        "DATABASE_URL",
        f"postgresql+asyncpg://{os.getenv('POSTGRES_USER', 'watchtracker')}:{os.getenv('POSTGRES_PASSWORD', 'watchtracker')}@db:5432/{os.getenv('POSTGRES_DB', 'watchtracker')}",
    )
    redis_url: str = os.getenv("REDIS_URL", "redis://redis:6379/0")

    # TMDB (v4 read access token; falls back to the Redis-stored key)
    tmdb_token: str = os.getenv("TMDB_TOKEN", "")
    tmdb_base_url: str = os.getenv("TMDB_BASE_URL", "https://api.themoviedb.org/3")
    tmdb_timeout_seconds: int = int(os.getenv("TMDB_TIMEOUT_SECONDS", "10"))

    # Scheduler timezone used by Celery beat
    timezone: str = os.getenv("WATCHTRACKER_TIMEZONE") or os.getenv("TZ") or "UTC"

    # Change sweeps
    show_lookback_days: int = int(os.getenv("SHOW_LOOKBACK_DAYS", "2"))
    movie_lookback_days: int = int(os.getenv("MOVIE_LOOKBACK_DAYS", "10"))
    change_request_interval_ms: int = int(os.getenv("CHANGE_REQUEST_INTERVAL_MS", "500"))
    movie_update_window_days: int = int(os.getenv("MOVIE_UPDATE_WINDOW_DAYS", "180"))

    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Notifications fan-out channel
    content_updates_channel: str = os.getenv("CONTENT_UPDATES_CHANNEL", "notifications:content_updates")

settings = Settings()
