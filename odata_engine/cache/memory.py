"""
odata_engine.cache.memory - In-process response cache
======================================================
"""

from __future__ import annotations

from typing import Dict, List, Optional

from odata_engine.cache.base import CacheEntry, ODataCache


class ODataInMemoryCache(ODataCache):
    """
    Process-local cache backed by a dict.

    Examples
    --------
    >>> cache = ODataInMemoryCache(max_age=60)
    >>> cache.put(url, response, now=0)
    >>> cache.get(url, now=30) is not None
    True
    >>> cache.get(url, now=61) is None
    True
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._responses: Dict[str, CacheEntry] = {}

    def _load(self, url: str) -> Optional[CacheEntry]:
        return self._responses.get(url)

    def _store(self, entry: CacheEntry) -> None:
        self._responses[entry.url] = entry

    def _delete(self, url: str) -> None:
        self._responses.pop(url, None)

    def _entries(self) -> List[CacheEntry]:
        return list(self._responses.values())
