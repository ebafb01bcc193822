from __future__ import annotations

import asyncio
import logging

from jwt_hash_store import TokenCategory, create_redis_client, create_token_state_store, load_settings

logger = logging.getLogger("basic_usage")


async def main() -> None:
    settings = load_settings()
    raw_jwt = "eyJhbGcis..."
    user_key = "user123"
    locale = "127.0.0.1"

    async with create_redis_client(settings) as redis_client:
        store = create_token_state_store(redis_client, settings)

        await store.record_valid(user_key, raw_jwt, locale, 600)
        await store.ensure_valid(user_key, raw_jwt)
        logger.info("validation_succeeded")

        await store.record_blacklisted(user_key, raw_jwt, locale, 600)
        result = await store.validate(user_key, raw_jwt)
        logger.info("validation_rejected kind=%s", result.kind.value if result.kind else None)

        await store.delete_all_by_identifier(TokenCategory.VALID, user_key)
        await store.delete_all_by_identifier(TokenCategory.BLACKLISTED, user_key)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(main())
