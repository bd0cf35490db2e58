"""What the engines and the weather client need from a cache."""

from typing import Any, Protocol


class CacheProtocol(Protocol):
    def is_available(self) -> bool: ...

    async def get(self, key: str) -> Any:
        """Cached value, or None on a miss."""
        ...

    async def set(self, key: str, value: Any, ttl: int = 300) -> bool: ...
