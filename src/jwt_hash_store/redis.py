from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from jwt_hash_store.errors import StoreNotConnectedError

if TYPE_CHECKING:
    from jwt_hash_store.config import StoreSettings

logger = logging.getLogger(__name__)


class AsyncRedisManager:
    """Owns the single Redis client shared by every store operation.

    The client is created by ``connect()`` and released by ``close()``; there is
    no reconnect or retry layer, failures surface to the caller unchanged.
    """

    def __init__(
        self,
        settings: StoreSettings,
        *,
        client_factory: Callable[[StoreSettings], Any] | None = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._client: Any | None = None
        self._lock = asyncio.Lock()

    @property
    def connected(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> Any:
        if self._client is None:
            raise StoreNotConnectedError("redis client is not connected; call connect() first")
        return self._client

    async def connect(self) -> Any:
        async with self._lock:
            if self._client is not None:
                return self._client
            client = self._new_client()
            try:
                await client.ping()
            except Exception:
                await client.aclose()
                raise
            self._client = client
            logger.info("redis_connected", extra={"component": "jwt_hash_store", "target": self._describe_target()})
            return client

    async def close(self) -> None:
        async with self._lock:
            if self._client is not None:
                try:
                    await self._client.aclose()
                finally:
                    self._client = None
                    logger.info("redis_closed", extra={"component": "jwt_hash_store"})

    async def __aenter__(self) -> AsyncRedisManager:
        await self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()

    def _new_client(self) -> Any:
        if self._client_factory is not None:
            return self._client_factory(self._settings)
        import redis.asyncio as redis

        settings = self._settings
        options: dict[str, Any] = {
            "encoding": "utf-8",
            "decode_responses": True,
            "socket_connect_timeout": settings.REDIS_CONNECT_TIMEOUT_SECONDS,
            "socket_timeout": settings.REDIS_SOCKET_TIMEOUT_SECONDS,
        }
        if settings.REDIS_URL:
            return redis.from_url(settings.REDIS_URL, **options)
        return redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            username=settings.REDIS_USERNAME,
            password=settings.REDIS_PASSWORD,
            ssl=settings.REDIS_SSL,
            **options,
        )

    def _describe_target(self) -> str:
        if self._settings.REDIS_URL:
            return "url"
        return f"{self._settings.REDIS_HOST}:{self._settings.REDIS_PORT}/{self._settings.REDIS_DB}"

    def __getattr__(self, name: str):
        if name.startswith("_"):
            raise AttributeError(name)
        return getattr(self.client, name)


def create_redis_client(settings: StoreSettings | None = None) -> AsyncRedisManager:
    if settings is None:
        from jwt_hash_store.config import load_settings

        settings = load_settings()
    return AsyncRedisManager(settings)
