import time
from typing import Callable, List, Optional


class ModelListCache:
    """Holds the provider's model list until `ttl_seconds` have passed"""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._models: Optional[List[str]] = None
        self._expires_at: Optional[float] = None

    def get(self) -> Optional[List[str]]:
        if self._models is None or self._expires_at is None:
            return None
        if self._clock() >= self._expires_at:
            self.invalidate()
            return None
        return list(self._models)

    def set(self, models: List[str]) -> None:
        self._models = list(models)
        self._expires_at = self._clock() + self.ttl_seconds

    def invalidate(self) -> None:
        self._models = None
        self._expires_at = None
