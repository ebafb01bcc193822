from __future__ import annotations

from collections.abc import AsyncIterator
from dataclasses import dataclass
import logging
import math
from typing import TYPE_CHECKING, Any, Protocol

from redis.exceptions import RedisError

from jwt_hash_store.errors import ValidationErrorKind, ValidationResult
from jwt_hash_store.keys import TokenCategory, compose_record_key, compose_scan_pattern, fingerprint_token

if TYPE_CHECKING:
    from jwt_hash_store.config import StoreSettings

logger = logging.getLogger(__name__)

_COMPONENT = "jwt_hash_store"


class RedisLike(Protocol):
    async def hset(self, name: str, key: str | None = None, value: str | None = None, mapping: dict[str, str] | None = None) -> int: ...

    async def expire(self, name: str, time: int) -> bool: ...

    async def exists(self, *names: str) -> int: ...

    async def delete(self, *names: str) -> int: ...

    async def hgetall(self, name: str) -> dict[str, str]: ...

    async def ttl(self, name: str) -> int: ...

    def scan_iter(self, match: str | None = None, count: int | None = None) -> AsyncIterator[str]: ...


@dataclass(frozen=True)
class TokenRecord:
    identifier: str
    fingerprint: str
    context: str


class TokenStateStore:
    """Valid/blacklisted JWT bookkeeping over Redis hashes.

    Raw tokens never reach Redis: every key and record carries the token's
    SHA-256 fingerprint instead. Keys are laid out as
    ``<prefix>:<identifier>:<fingerprint>``.

    ``validate`` issues two independent EXISTS round trips (blacklist first),
    so a concurrent write between them can produce a stale verdict.
    """

    def __init__(
        self,
        redis_client: RedisLike,
        *,
        valid_prefix: str = "valid-jwt",
        blacklist_prefix: str = "blacklisted-jwt",
        scan_count: int = 100,
    ) -> None:
        self._redis = redis_client
        self._prefixes = {
            TokenCategory.VALID: valid_prefix,
            TokenCategory.BLACKLISTED: blacklist_prefix,
        }
        self._scan_count = scan_count

    @property
    def valid_prefix(self) -> str:
        return self._prefixes[TokenCategory.VALID]

    @property
    def blacklist_prefix(self) -> str:
        return self._prefixes[TokenCategory.BLACKLISTED]

    @staticmethod
    def fingerprint(raw_token: str | bytes) -> str:
        return fingerprint_token(raw_token)

    def prefix_for(self, category: TokenCategory | str) -> str:
        return self._prefixes[TokenCategory(category)]

    def record_key(self, category: TokenCategory | str, identifier: str, raw_token: str | bytes) -> str:
        return compose_record_key(self.prefix_for(category), identifier, fingerprint_token(raw_token))

    async def record(
        self,
        category: TokenCategory | str,
        identifier: str,
        raw_token: str | bytes,
        context: str,
        ttl_seconds: float | None = None,
    ) -> None:
        fingerprint = fingerprint_token(raw_token)
        key = compose_record_key(self.prefix_for(category), identifier, fingerprint)
        await self._redis.hset(
            key,
            mapping={
                "identifier": identifier,
                "fingerprint": fingerprint,
                "context": context,
            },
        )
        if ttl_seconds and ttl_seconds > 0:
            # EXPIRE takes whole seconds; rounding down could reach 0 and drop the key.
            await self._redis.expire(key, math.ceil(ttl_seconds))
        logger.debug(
            "token_recorded",
            extra={
                "component": _COMPONENT,
                "category": TokenCategory(category).value,
                "identifier": identifier,
                "fingerprint": fingerprint[:12],
                "ttl_seconds": ttl_seconds,
            },
        )

    async def record_valid(
        self,
        identifier: str,
        raw_token: str | bytes,
        context: str,
        ttl_seconds: float | None = None,
    ) -> None:
        await self.record(TokenCategory.VALID, identifier, raw_token, context, ttl_seconds)

    async def record_blacklisted(
        self,
        identifier: str,
        raw_token: str | bytes,
        context: str,
        ttl_seconds: float | None = None,
    ) -> None:
        await self.record(TokenCategory.BLACKLISTED, identifier, raw_token, context, ttl_seconds)

    async def validate(self, identifier: str, raw_token: str | bytes) -> ValidationResult:
        fingerprint = fingerprint_token(raw_token)
        blacklisted_key = compose_record_key(self.blacklist_prefix, identifier, fingerprint)
        valid_key = compose_record_key(self.valid_prefix, identifier, fingerprint)
        try:
            if await self._redis.exists(blacklisted_key):
                return self._rejected(ValidationErrorKind.BLACKLISTED, identifier, fingerprint)
            if not await self._redis.exists(valid_key):
                return self._rejected(ValidationErrorKind.NOT_FOUND, identifier, fingerprint)
        except RedisError as exc:
            logger.warning(
                "token_store_unreachable",
                extra={"component": _COMPONENT, "identifier": identifier, "error": type(exc).__name__},
            )
            return ValidationResult(kind=ValidationErrorKind.STORE_COMMUNICATION_FAILURE, error=exc)
        return ValidationResult()

    async def ensure_valid(self, identifier: str, raw_token: str | bytes) -> None:
        result = await self.validate(identifier, raw_token)
        result.raise_for_kind()

    async def get_record(
        self,
        category: TokenCategory | str,
        identifier: str,
        raw_token: str | bytes,
    ) -> TokenRecord | None:
        fields = await self._redis.hgetall(self.record_key(category, identifier, raw_token))
        if not fields:
            return None
        return TokenRecord(
            identifier=_as_text(fields.get("identifier", "")),
            fingerprint=_as_text(fields.get("fingerprint", "")),
            context=_as_text(fields.get("context", "")),
        )

    async def ttl(self, category: TokenCategory | str, identifier: str, raw_token: str | bytes) -> int:
        return int(await self._redis.ttl(self.record_key(category, identifier, raw_token)))

    async def delete_record(self, category: TokenCategory | str, identifier: str, raw_token: str | bytes) -> None:
        await self._redis.delete(self.record_key(category, identifier, raw_token))

    async def delete_all_by_identifier(self, category: TokenCategory | str, identifier: str) -> int:
        pattern = compose_scan_pattern(self.prefix_for(category), identifier)
        # SCAN may return a key more than once.
        keys = list(dict.fromkeys([key async for key in self._redis.scan_iter(match=pattern, count=self._scan_count)]))
        if not keys:
            return 0
        deleted = int(await self._redis.delete(*keys))
        logger.info(
            "token_records_purged",
            extra={
                "component": _COMPONENT,
                "category": TokenCategory(category).value,
                "identifier": identifier,
                "matched": len(keys),
                "deleted": deleted,
            },
        )
        return deleted

    def _rejected(self, kind: ValidationErrorKind, identifier: str, fingerprint: str) -> ValidationResult:
        logger.info(
            "token_validation_rejected",
            extra={
                "component": _COMPONENT,
                "kind": kind.value,
                "identifier": identifier,
                "fingerprint": fingerprint[:12],
            },
        )
        return ValidationResult(kind=kind)


def _as_text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    return str(value)


def create_token_state_store(redis_client: RedisLike, settings: StoreSettings | None = None) -> TokenStateStore:
    if settings is None:
        return TokenStateStore(redis_client)
    return TokenStateStore(
        redis_client,
        valid_prefix=settings.VALID_PREFIX,
        blacklist_prefix=settings.BLACKLIST_PREFIX,
        scan_count=settings.SCAN_COUNT,
    )
