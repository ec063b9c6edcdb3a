from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar

T = TypeVar("T")


@dataclass
class CachedValue(Generic[T]):
    value: T
    loaded_at: dt.datetime


class TimedCache(Generic[T]):
    """A simple in-process cache with TTL.

    Retrieval settings edited in the admin UI reach the live call path within
    one TTL window. `invalidate()` forces the next read to reload, so an admin
    save can take effect immediately in this process.

    This cache is process-local. With multiple Uvicorn workers each worker
    keeps its own copy (still <= TTL).
    """

    def __init__(
        self,
        ttl_seconds: float,
        loader: Callable[[], T],
        clock: Callable[[], dt.datetime] | None = None,
    ):
        self._ttl = dt.timedelta(seconds=ttl_seconds)
        self._loader = loader
        self._clock = clock or (lambda: dt.datetime.now(dt.timezone.utc))
        self._cached: CachedValue[T] | None = None
        self._invalidated = True

    def invalidate(self) -> None:
        self._invalidated = True

    def get(self) -> T:
        now = self._clock()

        if self._cached is None:
            self._cached = CachedValue(self._loader(), now)
            self._invalidated = False
            return self._cached.value

        is_expired = now - self._cached.loaded_at >= self._ttl
        if self._invalidated or is_expired:
            self._cached = CachedValue(self._loader(), now)
            self._invalidated = False
        return self._cached.value
