from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite:///./ordersync.db"
    commerce_proxy_url: str = ""  # e.g. https://example.com/.netlify/functions/commerce-proxy
    http_timeout_seconds: float = 30.0
    order_sync_minute: int = 0  # hourly cron: 0 * * * *
    auto_sync_channel: str = "smartstore"
    auto_sync_sub_account_id: Optional[str] = None
    auto_sync_state_dir: Path = Path.home() / ".ordersync"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
