from __future__ import annotations

from collections import Counter
from collections.abc import Callable
import re

import pytest

from jwt_hash_store import TokenStateStore


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _glob_to_regex(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    index = 0
    while index < len(pattern):
        char = pattern[index]
        if char == "\\" and index + 1 < len(pattern):
            parts.append(re.escape(pattern[index + 1]))
            index += 2
            continue
        if char == "*":
            parts.append(".*")
        elif char == "?":
            parts.append(".")
        else:
            # Character classes are not needed by the store's patterns.
            parts.append(re.escape(char))
        index += 1
    return re.compile("".join(parts) + r"\Z", re.DOTALL)


class FakeRedis:
    """Enough of redis.asyncio.Redis for the token store, with a manual clock."""

    def __init__(self, clock: FakeClock | None = None) -> None:
        self.clock = clock or FakeClock()
        self.hashes: dict[str, dict[str, str]] = {}
        self.expires_at: dict[str, float] = {}
        self.calls: Counter[str] = Counter()
        self.fail_on: dict[str, Exception] = {}
        # Calls of a command that succeed before fail_on kicks in.
        self.fail_after: dict[str, int] = {}
        # SCAN may hand back a key on more than one cursor page.
        self.scan_duplicates = False
        self.delete_batches: list[tuple[str, ...]] = []
        self.closed = False

    def _check(self, command: str) -> None:
        self.calls[command] += 1
        error = self.fail_on.get(command)
        if error is not None and self.calls[command] > self.fail_after.get(command, 0):
            raise error

    def _purge(self, key: str) -> None:
        expires = self.expires_at.get(key)
        if expires is not None and expires <= self.clock():
            self.hashes.pop(key, None)
            self.expires_at.pop(key, None)

    def _live_keys(self) -> list[str]:
        for key in list(self.hashes):
            self._purge(key)
        return list(self.hashes)

    async def ping(self) -> bool:
        self._check("ping")
        return True

    async def aclose(self) -> None:
        self.closed = True

    async def hset(self, name: str, key=None, value=None, mapping=None) -> int:
        self._check("hset")
        self._purge(name)
        fields = dict(mapping or {})
        if key is not None:
            fields[key] = value
        target = self.hashes.setdefault(name, {})
        added = len([field for field in fields if field not in target])
        target.update({field: str(item) for field, item in fields.items()})
        return added

    async def expire(self, name: str, time: int) -> bool:
        self._check("expire")
        self._purge(name)
        if name not in self.hashes:
            return False
        self.expires_at[name] = self.clock() + time
        return True

    async def exists(self, *names: str) -> int:
        self._check("exists")
        for name in names:
            self._purge(name)
        return sum(1 for name in names if name in self.hashes)

    async def delete(self, *names: str) -> int:
        self._check("delete")
        self.delete_batches.append(names)
        deleted = 0
        for name in names:
            self._purge(name)
            if self.hashes.pop(name, None) is not None:
                deleted += 1
            self.expires_at.pop(name, None)
        return deleted

    async def hgetall(self, name: str) -> dict[str, str]:
        self._check("hgetall")
        self._purge(name)
        return dict(self.hashes.get(name, {}))

    async def ttl(self, name: str) -> int:
        self._check("ttl")
        self._purge(name)
        if name not in self.hashes:
            return -2
        expires = self.expires_at.get(name)
        if expires is None:
            return -1
        return int(expires - self.clock())

    async def scan_iter(self, match: str | None = None, count: int | None = None):
        self._check("scan")
        regex = _glob_to_regex(match or "*")
        for key in sorted(self._live_keys()):
            if regex.match(key):
                yield key
                if self.scan_duplicates:
                    yield key

    async def keys(self, pattern: str = "*") -> list[str]:
        raise AssertionError("KEYS must not be used")


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_fake_redis(clock: FakeClock) -> Callable[[], FakeRedis]:
    def _make() -> FakeRedis:
        return FakeRedis(clock)

    return _make


@pytest.fixture
def fake_redis(make_fake_redis: Callable[[], FakeRedis]) -> FakeRedis:
    return make_fake_redis()


@pytest.fixture
def store(fake_redis: FakeRedis) -> TokenStateStore:
    return TokenStateStore(fake_redis)
