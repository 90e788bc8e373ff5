from typing import Optional

from pydantic_settings import BaseSettings

APP_VERSION = "0.1.0"


class Settings(BaseSettings):
    database_url: str = "sqlite:///./tos.db"
    environment: str = "development"  # "development" or "production"
    log_level: str = "INFO"

    # Authoritative store connection pool; extra requests wait up to pool_timeout
    db_pool_size: int = 10
    db_max_overflow: int = 0
    db_pool_timeout: int = 30
    use_memory_fallback: bool = True

    # Offline client
    api_url: str = "http://localhost:8000"
    request_timeout_seconds: float = 10.0
    health_timeout_seconds: float = 5.0
    cache_path: str = "~/.tos/offline_cache.db"
    sync_interval_seconds: int = 60

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "TOS_"

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
