from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Vitrina"
    APP_PORT: int = 9210
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Persistence gateway (Supabase REST). Empty URL -> in-memory gateway
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: str = ""
    FETCH_TIMEOUT_MS: int = 8000

    # Catalog
    SEARCH_DEBOUNCE_MS: int = 300
    PRICE_SENTINEL_MAX: int = 300000

    # Inventory
    LOW_STOCK_THRESHOLD: int = 2
    ASSET_MIN_STOCK_DEFAULT: int = 5

    # Pricing
    DEFAULT_MARKUP: float = 2.5
    USD_EXCHANGE_RATE: int = 950

    # Validation limits
    NAME_MAX_LENGTH: int = 100
    DESCRIPTION_MAX_LENGTH: int = 2000

    @property
    def REST_URL(self) -> Optional[str]:
        if not self.SUPABASE_URL:
            return None
        return f"{self.SUPABASE_URL.rstrip('/')}/rest/v1"

    class Config:
        env_file = ".env"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
