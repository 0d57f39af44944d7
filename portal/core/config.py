from functools import lru_cache
import json
from typing import Optional

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors_origins(value: str) -> list[str]:
    if not value:
        return []

    parsed: list[str]
    raw = value.strip()
    if raw.startswith("["):
        try:
            items = json.loads(raw)
            parsed = [str(item).strip() for item in items if str(item).strip()]
        except (TypeError, ValueError):
            parsed = []
    else:
        parsed = [origin.strip() for origin in raw.split(",") if origin.strip()]

    # Preserve order and remove duplicates.
    return list(dict.fromkeys(parsed))


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_name: str = "Reseller Portal"
    environment: str = "development"
    api_v1_prefix: str = "/api/v1"
    log_level: str = "INFO"

    # Security
    secret_key: str
    access_token_expire_minutes: int = 60
    refresh_token_expire_days: int = 7
    password_bcrypt_rounds: int = 12

    # Database
    database_url: str
    db_pool_size: int = 5
    db_max_overflow: int = 5
    db_pool_timeout: int = 15
    db_pool_recycle: int = 1200
    db_pool_pre_ping: bool = True

    # Provisioning API (broadband.is). Credentials are scoped per master category.
    provisioning_base_url: AnyHttpUrl = "https://www.broadband.is/api"
    mtn_fixed_username: Optional[str] = None
    mtn_fixed_password: Optional[str] = None
    mtn_gsm_username: Optional[str] = None
    mtn_gsm_password: Optional[str] = None
    provisioning_timeout_seconds: int = 15
    provisioning_retry_count: int = 2
    provisioning_test_mode: bool = False

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"
    auto_create_tables: bool = False

    # Ops: promote these usernames to admin on startup (comma-separated).
    bootstrap_admin_usernames: str = ""


@lru_cache
def get_settings() -> Settings:
    return Settings()
