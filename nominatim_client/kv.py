import json, redis
from typing import Any, Optional


class RedisStore:
    """Cache store backed by Redis; values are JSON, TTLs in milliseconds."""

    def __init__(self, url: Optional[str] = None, client: Optional[redis.Redis] = None):
        if client is None and not url:
            raise ValueError("RedisStore needs a Redis URL or client")
        self.r = client if client is not None else redis.Redis.from_url(url, decode_responses=True)

    def get(self, key: str) -> Any:
        v = self.r.get(key)
        return json.loads(v) if v else None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        payload = json.dumps(value)
        if ttl:
            self.r.set(key, payload, px=int(ttl))
        else:
            self.r.set(key, payload)

    def delete(self, key: str) -> None:
        self.r.delete(key)

    def clear(self, prefix: str = "") -> None:
        keys = list(self.r.scan_iter(match=f"{prefix}*"))
        if keys:
            self.r.delete(*keys)

    def ttl_remaining(self, key: str) -> Optional[int]:
        # PTTL: -2 missing, -1 no expiry
        ms = self.r.pttl(key)
        if ms == -2:
            return None
        return ms
