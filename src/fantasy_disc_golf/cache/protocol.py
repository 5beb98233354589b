from typing import Protocol


class CacheStore(Protocol):
    """Namespaced string values that expire after a TTL in seconds."""

    def get(self, namespace: str, key: str) -> str | None: ...

    def put(self, namespace: str, key: str, value: str, ttl_seconds: int) -> None: ...

    def increment(self, namespace: str, key: str, ttl_seconds: int) -> int:
        """Bump a counter; its window starts at the first increment and is not extended."""
        ...

    def invalidate(self, namespace: str, key: str | None = None) -> None: ...
