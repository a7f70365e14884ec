"""Persisted bearer token.

The browser front-end kept a single opaque token in local storage under
the key ``token``.  The portal keeps the same thing behind a small
protocol: absent means anonymous, present means "validate it once when
the session starts" (portal.services.session).

Two backends, picked at import time like the rest of the Redis-backed
services:

  InMemoryTokenStore: per-process, for dev and tests.
  RedisTokenStore: survives portal restarts and is shared by every
  portal instance pointing at the same Redis.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from portal.db.redis import redis_pool

TOKEN_KEY = "token"


@runtime_checkable
class TokenStore(Protocol):
    async def load(self) -> str | None:
        """Return the stored token, or None when logged out."""
        ...

    async def save(self, token: str) -> None: ...

    async def clear(self) -> None: ...


class InMemoryTokenStore:
    def __init__(self) -> None:
        self._store: dict[str, str] = {}

    async def load(self) -> str | None:
        return self._store.get(TOKEN_KEY)

    async def save(self, token: str) -> None:
        self._store[TOKEN_KEY] = token

    async def clear(self) -> None:
        self._store.pop(TOKEN_KEY, None)


class RedisTokenStore:
    # Prefix keeps the key apart from anything else sharing this Redis
    _PREFIX = "portal:session:"

    def __init__(self, redis_client) -> None:
        self._redis = redis_client

    async def load(self) -> str | None:
        return await self._redis.get(f"{self._PREFIX}{TOKEN_KEY}")

    async def save(self, token: str) -> None:
        await self._redis.set(f"{self._PREFIX}{TOKEN_KEY}", token)

    async def clear(self) -> None:
        await self._redis.delete(f"{self._PREFIX}{TOKEN_KEY}")


# ---------------------------------------------------------------------------
# Module-level singleton
# ---------------------------------------------------------------------------

if redis_pool is not None:
    token_store: TokenStore = RedisTokenStore(redis_pool)
else:
    token_store = InMemoryTokenStore()
