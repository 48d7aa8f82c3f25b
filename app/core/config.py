from functools import lru_cache
from typing import Literal
import os
from pydantic_settings import BaseSettings, SettingsConfigDict

EnvName = Literal["development", "production"]

def _env_file_for(app_env: EnvName) -> str:
    return ".env.development" if app_env == "development" else ".env.production"

class Settings(BaseSettings):

    # Core
    APP_ENV: EnvName = "development"
    APP_NAME: str = "OtapiCatalog"
    DEBUG: bool = False
    GIT_SHA: str = "unknown"

    # Upstream marketplace API
    OTAPI_BASE_URL: str = "http://otapi.net/service-json"
    OTAPI_INSTANCE_KEY: str = ""        # default access key, empty = caller must send one
    DEFAULT_LANGUAGE: str = "es"

    # Redis (optional, shared rate cache)
    REDIS_URL: str = ""

    # Currency rates
    CURRENCY_API_URL: str = "https://api.exchangerate-api.com/v4/latest/CNY"
    currency_cache_ttl: int = 24 * 3600          # 24 hours
    currency_cache_key: str = "fx:CNY"
    fallback_rate_usd: float = 0.13867775
    fallback_rate_cop: float = 528.16

    # Timeouts (seconds)
    search_timeout_s: float = 30
    detail_timeout_s: float = 5
    path_timeout_s: float = 15
    currency_timeout_s: float = 5
    auth_timeout_s: float = 30

    # Search / enrichment
    search_batch_size: int = 100
    search_fetch_cap: int = 200
    enrich_batch_size: int = 50
    default_page_size: int = 20
    max_page_size: int = 200
    item_url_template: str = "https://item.taobao.com/item.htm?id={item_id}"

    # API
    ALLOWED_ORIGINS: str = ""

    # pydantic-settings config will be set dynamically in the factory below
    model_config = SettingsConfigDict(env_file=None, case_sensitive=True)

@lru_cache
def get_settings() -> Settings:
    """
    Factory that chooses the right .env file based on APP_ENV.
    Cache makes it cheap to inject via FastAPI dependencies.
    """
    app_env: EnvName = os.getenv("APP_ENV", "development")  # earliest switch
    env_file = _env_file_for(app_env)
    return Settings(
                _env_file=env_file,  # load .env.development or .env.production
                _env_file_encoding="utf-8"
    )
