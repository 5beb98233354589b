class FakeCacheStore:
    """Dict-backed cache with no expiry."""

    def __init__(self) -> None:
        self._data: dict[tuple[str, str], str] = {}

    def get(self, namespace: str, key: str) -> str | None:
        return self._data.get((namespace, key))

    def put(self, namespace: str, key: str, value: str, ttl_seconds: int) -> None:
        self._data[(namespace, key)] = value

    def increment(self, namespace: str, key: str, ttl_seconds: int) -> int:
        count = int(self._data.get((namespace, key), "0")) + 1
        self._data[(namespace, key)] = str(count)
        return count

    def invalidate(self, namespace: str, key: str | None = None) -> None:
        if key is not None:
            self._data.pop((namespace, key), None)
        else:
            for k in [k for k in self._data if k[0] == namespace]:
                del self._data[k]
