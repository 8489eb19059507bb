# core/config.py
import os
from typing import Optional
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    # App
    app_name: str = "Dhunx Music API"
    app_version: str = "1.0.0"
    log_level: str = "INFO"

    # Redis
    redis_url: Optional[str] = os.getenv("REDIS_URL")
    redis_host: str = os.getenv("REDIS_HOST", "localhost")
    redis_port: int = int(os.getenv("REDIS_PORT", "6379"))
    redis_password: Optional[str] = os.getenv("REDIS_PASSWORD")
    redis_db: int = int(os.getenv("REDIS_DB", "0"))

    # History log
    history_key_prefix: str = "dhunx_user_history"
    max_plays: int = 100
    max_likes: int = 50
    max_skips: int = 50
    max_searches: int = 20
    favorite_artist_limit: int = 10
    recently_played_limit: int = 10
    max_tracked_users: int = 1000

    # History sync
    history_sync_url: Optional[str] = None
    history_sync_token: Optional[str] = None
    history_sync_timeout: float = 10.0
    sync_delay_seconds: float = 5.0  # debounce window

    # YouTube Music
    ytmusic_auth_path: Optional[str] = None
    ytmusic_language: str = "en"
    chart_country: str = "US"

    # Recommendation
    recommendation_limit: int = 12
    contextual_limit: int = 8

    class Config:
        env_file = ".env"

settings = Settings()
