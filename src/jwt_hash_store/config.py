from __future__ import annotations

from typing import Any

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from jwt_hash_store.keys import KEY_DELIMITER


class StoreSettings(BaseSettings):
    model_config = SettingsConfigDict(extra="ignore")

    REDIS_URL: str | None = None
    REDIS_HOST: str = "127.0.0.1"
    REDIS_PORT: int = 6379
    REDIS_DB: int = 0
    REDIS_USERNAME: str | None = None
    REDIS_PASSWORD: str | None = None
    REDIS_SSL: bool = False
    REDIS_SOCKET_TIMEOUT_SECONDS: float = 5.0
    REDIS_CONNECT_TIMEOUT_SECONDS: float = 5.0
    VALID_PREFIX: str = "valid-jwt"
    BLACKLIST_PREFIX: str = "blacklisted-jwt"
    SCAN_COUNT: int = 100

    @field_validator("VALID_PREFIX", "BLACKLIST_PREFIX")
    @classmethod
    def _check_prefix(cls, value: str) -> str:
        if not value:
            raise ValueError("key prefix cannot be empty")
        if KEY_DELIMITER in value:
            raise ValueError(f"key prefix must not contain {KEY_DELIMITER!r}")
        return value

    @field_validator("SCAN_COUNT")
    @classmethod
    def _check_scan_count(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("SCAN_COUNT must be positive")
        return value


def load_settings(**overrides: Any) -> StoreSettings:
    return StoreSettings(**overrides)
