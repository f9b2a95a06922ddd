"""
Expiring key/value stores for short-lived entries such as password reset
codes. Values are JSON-serialisable dicts. The application creates one
store at startup (Redis-backed when Redis is available) and closes it at
shutdown; routes receive it through get_otp_store().
"""
import json
import time
from typing import Any, Dict, Optional

from fastapi import Request

KEY_PREFIX = "jobboard:"


class ExpiringStore:

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    async def set(self, key: str, value: Dict[str, Any], ttl: int) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError

    async def incr(self, key: str, ttl: int) -> int:
        """Atomically add one to a counter and return the new value.

        The counter expires `ttl` seconds after the latest increment.
        """
        raise NotImplementedError

    async def close(self) -> None:
        pass


class MemoryExpiringStore(ExpiringStore):
    """Per-application in-process store; expired entries vanish on read."""

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._entries: Dict[str, tuple] = {}

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return dict(value)

    async def set(self, key: str, value: Dict[str, Any], ttl: int) -> None:
        self._entries[key] = (self._clock() + ttl, dict(value))

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def incr(self, key: str, ttl: int) -> int:
        # No await between the read and the write
        now = self._clock()
        entry = self._entries.get(key)
        count = 1 if entry is None or now >= entry[0] else entry[1]["count"] + 1
        self._entries[key] = (now + ttl, {"count": count})
        return count

    async def close(self) -> None:
        self._entries.clear()

    def __len__(self):
        return len(self._entries)


class RedisExpiringStore(ExpiringStore):

    def __init__(self, client, prefix: str = KEY_PREFIX):
        self._client = client
        self._prefix = prefix

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        raw = await self._client.get(f"{self._prefix}{key}")
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Dict[str, Any], ttl: int) -> None:
        await self._client.set(f"{self._prefix}{key}", json.dumps(value), ex=max(int(ttl), 1))

    async def delete(self, key: str) -> None:
        await self._client.delete(f"{self._prefix}{key}")

    async def incr(self, key: str, ttl: int) -> int:
        full_key = f"{self._prefix}{key}"
        async with self._client.pipeline(transaction=True) as pipe:
            pipe.incr(full_key)
            pipe.expire(full_key, max(int(ttl), 1))
            count, _ = await pipe.execute()
        return int(count)


def get_otp_store(request: Request) -> ExpiringStore:
    return request.app.state.otp_store
