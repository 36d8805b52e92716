"""
odata_engine.cache - Response caches
=====================================

TTL caches consulted by the dispatcher for GET requests.
"""

from odata_engine.cache.base import CacheEntry, ODataCache
from odata_engine.cache.memory import ODataInMemoryCache
from odata_engine.cache.storage import JsonFileBackend, ODataStorageCache

__all__ = [
    "CacheEntry",
    "ODataCache",
    "ODataInMemoryCache",
    "ODataStorageCache",
    "JsonFileBackend",
]
