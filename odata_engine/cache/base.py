"""
odata_engine.cache.base - TTL response cache
=============================================

Responses are keyed by the full URL including query parameters. An entry
older than ``max_age`` seconds is invisible to readers and is purged on the
next write. Time is taken from an injectable clock, and both ``get`` and
``put`` accept an explicit ``now``/``max_age`` for deterministic use.
"""

from __future__ import annotations

import logging
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, TYPE_CHECKING

from odata_engine.constants import DEFAULT_CACHE_MAX_AGE
from odata_engine.resources.responses import ODataResponse

if TYPE_CHECKING:
    from odata_engine.resources.request import ODataRequest

logger = logging.getLogger("odata_engine.cache")

Clock = Callable[[], float]

CACHEABLE_METHODS = frozenset({"GET"})


@dataclass
class CacheEntry:
    """
    One cached response.

    Attributes
    ----------
    url : str
        Full URL with query string
    response : any
        Stored response (``ODataResponse`` in memory, a snapshot dict in storage)
    last_read : float
        Clock time the response was stored
    """
    url: str
    response: Any
    last_read: float

    def is_expired(self, now: float, max_age: float) -> bool:
        return self.last_read < now - max_age


class ODataCache(ABC):
    """
    Base class for response caches.

    Parameters
    ----------
    max_age : float
        Seconds an entry stays visible
    clock : callable
        Returns the current time in seconds
    """

    def __init__(self, max_age: float = DEFAULT_CACHE_MAX_AGE, clock: Clock = time.time):
        self.max_age = max_age
        self.clock = clock
        self._lock = threading.Lock()

    # ---------------- storage primitives ----------------

    @abstractmethod
    def _load(self, url: str) -> Optional[CacheEntry]:
        ...

    @abstractmethod
    def _store(self, entry: CacheEntry) -> None:
        ...

    @abstractmethod
    def _delete(self, url: str) -> None:
        ...

    @abstractmethod
    def _entries(self) -> List[CacheEntry]:
        ...

    def _to_response(self, entry: CacheEntry) -> ODataResponse:
        return entry.response

    def _from_response(self, url: str, response: ODataResponse, now: float) -> CacheEntry:
        return CacheEntry(url, response.with_request(None), now)  # type: ignore[arg-type]

    # ---------------- policy ----------------

    def is_cacheable(self, request: "ODataRequest") -> bool:
        """Only idempotent reads are cached."""
        return request.method.upper() in CACHEABLE_METHODS

    def _window(self, now: Optional[float], max_age: Optional[float]):
        return (self.clock() if now is None else now), (self.max_age if max_age is None else max_age)

    def get(self, url: str, *, now: Optional[float] = None, max_age: Optional[float] = None) -> Optional[ODataResponse]:
        """Stored response for ``url``, or None when absent or expired."""
        now, max_age = self._window(now, max_age)
        with self._lock:
            entry = self._load(url)
        if entry is None or entry.is_expired(now, max_age):
            return None
        return self._to_response(entry)

    def put(
        self,
        url: str,
        response: ODataResponse,
        *,
        now: Optional[float] = None,
        max_age: Optional[float] = None,
    ) -> None:
        """Store ``response`` under ``url`` and purge every expired entry."""
        now, max_age = self._window(now, max_age)
        entry = self._from_response(url, response, now)
        with self._lock:
            self._store(entry)
        self.remove_expired(now=now, max_age=max_age)

    def remove_expired(self, *, now: Optional[float] = None, max_age: Optional[float] = None) -> int:
        now, max_age = self._window(now, max_age)
        expired = [e.url for e in self._entries() if e.is_expired(now, max_age)]
        for url in expired:
            with self._lock:
                current = self._load(url)
                if current is not None and current.is_expired(now, max_age):
                    self._delete(url)
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")
        return len(expired)

    def remove(self, url: str) -> None:
        with self._lock:
            self._delete(url)

    def clear(self) -> None:
        for entry in self._entries():
            self.remove(entry.url)

    def __len__(self) -> int:
        return len(self._entries())

    def __contains__(self, url: object) -> bool:
        return isinstance(url, str) and self.get(url) is not None
