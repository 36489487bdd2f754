from __future__ import annotations

from typing import cast

import redis  # type: ignore[import-untyped]


class RedisKeyValueCache:
    """
    :class:`~storefront.services._shared.ports.KeyValueCache` over redis-py.

    The client is expected to be created with ``decode_responses=True``; bytes
    are decoded defensively for clients that are not.
    """

    def __init__(self, r: redis.Redis):
        self.r = r

    @staticmethod
    def _text(value: object) -> str | None:
        if value is None:
            return None
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return str(value)

    def get(self, key: str) -> str | None:
        return self._text(self.r.get(key))

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self.r.set(key, value, ex=int(ttl_seconds))

    def incr(self, key: str) -> int:
        # INCR is atomic server-side; concurrent callers each see a distinct value.
        return int(cast(int, self.r.incr(key)))

    def expire(self, key: str, ttl_seconds: int) -> None:
        self.r.expire(key, int(ttl_seconds))

    def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(cast(int, self.r.delete(*keys)))

    def exists(self, key: str) -> bool:
        return cast(int, self.r.exists(key)) == 1

    def ttl(self, key: str) -> int:
        return int(cast(int, self.r.ttl(key)))
