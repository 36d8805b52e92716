"""
odata_engine.cache.storage - Persistent response cache
=======================================================

Keeps cache entries in a ``MutableMapping[str, str]`` backend so they
survive the process. Entries are serialized as
``{"url", "response": {"body", "headers", "status", "statusText"}, "lastRead"}``.
Any mapping works (``shelve``, ``dbm``, a dict); ``JsonFileBackend`` stores
the mapping in one JSON file.
"""

from __future__ import annotations

import atexit
import json
import logging
from pathlib import Path
from typing import Dict, Iterator, List, MutableMapping, Optional, Union

from odata_engine.cache.base import CacheEntry, ODataCache
from odata_engine.resources.responses import ODataResponse

logger = logging.getLogger("odata_engine.cache")


class JsonFileBackend(MutableMapping[str, str]):
    """
    String mapping persisted to a JSON file.

    The file is read once on construction and rewritten on every change.

    Parameters
    ----------
    path : str or Path
        JSON file location; created on first write
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._data: Dict[str, str] = {}
        if self.path.exists():
            text = self.path.read_text(encoding="utf-8")
            self._data = json.loads(text) if text.strip() else {}

    def _write(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(self._data), encoding="utf-8")

    def __getitem__(self, key: str) -> str:
        return self._data[key]

    def __setitem__(self, key: str, value: str) -> None:
        self._data[key] = value
        self._write()

    def __delitem__(self, key: str) -> None:
        del self._data[key]
        self._write()

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)


class ODataStorageCache(ODataCache):
    """
    Cache persisted to a key-value backend.

    Entries are loaded from ``backend[name]`` at construction and written
    back by ``flush``, which is registered with ``atexit`` by default.

    Parameters
    ----------
    backend : MutableMapping[str, str]
        Durable store
    name : str
        Key under which the snapshot list is kept
    register_atexit : bool
        Flush automatically at interpreter exit
    max_age, clock
        See ``ODataCache``

    Examples
    --------
    >>> cache = ODataStorageCache(JsonFileBackend("~/.odata-cache.json"))
    """

    def __init__(
        self,
        backend: MutableMapping[str, str],
        name: str = "odata_cache",
        register_atexit: bool = True,
        **kwargs,
    ):
        super().__init__(**kwargs)
        self.backend = backend
        self.name = name
        self._responses: Dict[str, CacheEntry] = {}
        self.load()
        if register_atexit:
            atexit.register(self.flush)

    # ---------------- persistence ----------------

    def load(self) -> int:
        """Replace in-memory entries with the stored snapshot."""
        raw = self.backend.get(self.name)
        entries = json.loads(raw) if raw else []
        with self._lock:
            self._responses = {
                e["url"]: CacheEntry(e["url"], e["response"], float(e["lastRead"])) for e in entries
            }
        logger.info(f"Loaded {len(self._responses)} cached response(s) from '{self.name}'")
        return len(self._responses)

    def flush(self) -> int:
        """
        Write every entry back to the backend.

        Entries whose body cannot be encoded as JSON are left out with a
        warning. Returns the number of entries written.
        """
        encoded = []
        for e in self._entries():
            try:
                encoded.append(json.dumps({"url": e.url, "response": e.response, "lastRead": e.last_read}))
            except (TypeError, ValueError) as exc:
                logger.warning(f"Skipping cached response for {e.url}: {exc}")
        self.backend[self.name] = "[" + ",".join(encoded) + "]"
        logger.info(f"Flushed {len(encoded)} cached response(s) to '{self.name}'")
        return len(encoded)

    # ---------------- storage primitives ----------------

    def _to_response(self, entry: CacheEntry) -> ODataResponse:
        return ODataResponse.from_snapshot(entry.response, url=entry.url)

    def _from_response(self, url: str, response: ODataResponse, now: float) -> CacheEntry:
        return CacheEntry(url, response.to_snapshot(), now)

    def _load(self, url: str) -> Optional[CacheEntry]:
        return self._responses.get(url)

    def _store(self, entry: CacheEntry) -> None:
        self._responses[entry.url] = entry

    def _delete(self, url: str) -> None:
        self._responses.pop(url, None)

    def _entries(self) -> List[CacheEntry]:
        return list(self._responses.values())
