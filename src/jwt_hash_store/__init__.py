"""Hashed JWT validity and blacklist records stored in Redis."""

from jwt_hash_store.config import StoreSettings, load_settings
from jwt_hash_store.errors import (
    InvalidIdentifierError,
    StoreNotConnectedError,
    TokenBlacklistedError,
    TokenNotFoundError,
    TokenStoreError,
    TokenValidationError,
    ValidationErrorKind,
    ValidationResult,
)
from jwt_hash_store.keys import TokenCategory, compose_record_key, compose_scan_pattern, fingerprint_token
from jwt_hash_store.redis import AsyncRedisManager, create_redis_client
from jwt_hash_store.store import RedisLike, TokenRecord, TokenStateStore, create_token_state_store

__all__ = [
    "AsyncRedisManager",
    "InvalidIdentifierError",
    "RedisLike",
    "StoreNotConnectedError",
    "StoreSettings",
    "TokenBlacklistedError",
    "TokenCategory",
    "TokenNotFoundError",
    "TokenRecord",
    "TokenStateStore",
    "TokenStoreError",
    "TokenValidationError",
    "ValidationErrorKind",
    "ValidationResult",
    "compose_record_key",
    "compose_scan_pattern",
    "create_redis_client",
    "create_token_state_store",
    "fingerprint_token",
    "load_settings",
]
