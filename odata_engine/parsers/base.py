"""
odata_engine.parsers.base - Parser interface and shared options
================================================================

Every parser implements ``deserialize`` (wire -> python) and ``serialize``
(python -> wire). The set of variants is closed: primitive (EDM), enum,
structured and callable parsers, plus the no-op pass-through used when a
type reference cannot be resolved.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, TYPE_CHECKING

from odata_engine.constants import (
    DEFAULT_VERSION,
    ODATA_CONTEXT,
    ODATA_COUNT,
    ODATA_ETAG,
    ODATA_NEXTLINK,
    ODATA_TYPE,
    ODATA_V2_COUNT,
    ODATA_V2_DATA,
    ODATA_V2_METADATA,
    ODATA_V2_NEXT,
    ODATA_V2_RESULTS,
    ODATA_VALUE,
)

if TYPE_CHECKING:
    from odata_engine.parsers.structured_type import FieldParser


class VersionHelper:
    """
    Reads protocol annotations from JSON payloads.

    OData v4 uses ``@odata.*`` annotations and wraps collections in
    ``value``; v2 uses ``__metadata`` and wraps everything in ``d``.
    """

    def __init__(self, version: str = DEFAULT_VERSION):
        self.version = version

    @property
    def is_v2(self) -> bool:
        return self.version.startswith("2") or self.version.startswith("3")

    def _v2_metadata(self, value: Any) -> Dict[str, Any]:
        if isinstance(value, dict):
            meta = value.get(ODATA_V2_METADATA)
            if isinstance(meta, dict):
                return meta
        return {}

    def type(self, value: Any) -> Optional[str]:
        """Qualified type name annotated on a payload object, if any."""
        if not isinstance(value, dict):
            return None
        if self.is_v2:
            return self._v2_metadata(value).get("type")
        annotated = value.get(ODATA_TYPE)
        if isinstance(annotated, str):
            return annotated.lstrip("#")
        return None

    def etag(self, value: Any) -> Optional[str]:
        if not isinstance(value, dict):
            return None
        if self.is_v2:
            return self._v2_metadata(value).get("etag")
        return value.get(ODATA_ETAG)

    def context(self, value: Any) -> Optional[str]:
        if isinstance(value, dict) and not self.is_v2:
            return value.get(ODATA_CONTEXT)
        return None

    def count(self, body: Any) -> Optional[int]:
        if not isinstance(body, dict):
            return None
        if self.is_v2:
            data = body.get(ODATA_V2_DATA, body)
            raw = data.get(ODATA_V2_COUNT) if isinstance(data, dict) else None
        else:
            raw = body.get(ODATA_COUNT)
        return int(raw) if raw is not None else None

    def next_link(self, body: Any) -> Optional[str]:
        if not isinstance(body, dict):
            return None
        if self.is_v2:
            data = body.get(ODATA_V2_DATA, body)
            return data.get(ODATA_V2_NEXT) if isinstance(data, dict) else None
        return body.get(ODATA_NEXTLINK)

    def entity(self, body: Any) -> Any:
        """Unwrap a single entity from a response body."""
        if self.is_v2 and isinstance(body, dict) and ODATA_V2_DATA in body:
            return body[ODATA_V2_DATA]
        return body

    def entities(self, body: Any) -> list:
        """Unwrap an entity collection from a response body."""
        if isinstance(body, list):
            return body
        if not isinstance(body, dict):
            return []
        if self.is_v2:
            data = body.get(ODATA_V2_DATA, body)
            if isinstance(data, dict):
                return data.get(ODATA_V2_RESULTS) or []
            return data or []
        return body.get(ODATA_VALUE) or []

    def property(self, body: Any, name: Optional[str] = None) -> Any:
        """Unwrap a property value from a response body."""
        if not isinstance(body, dict):
            return body
        if self.is_v2:
            data = body.get(ODATA_V2_DATA, body)
            if isinstance(data, dict):
                if ODATA_V2_RESULTS in data:
                    return data[ODATA_V2_RESULTS]
                if name is not None and name in data:
                    return data[name]
            return data
        if ODATA_VALUE in body:
            return body[ODATA_VALUE]
        return body


@dataclass(frozen=True)
class ParserOptions:
    """
    Context passed through every (de)serialization call.

    ``field`` is attached by field parsers so that enum or primitive parsers
    can consult field metadata (max length, precision, flags).
    """

    version: str = DEFAULT_VERSION
    string_as_enum: bool = False
    ieee754_compatible: bool = False
    field: Optional["FieldParser"] = None

    @property
    def helper(self) -> VersionHelper:
        return VersionHelper(self.version)

    def with_field(self, field: "FieldParser") -> "ParserOptions":
        return replace(self, field=field)


DEFAULT_OPTIONS = ParserOptions()


class Parser(ABC):
    """Abstract (de)serializer."""

    @abstractmethod
    def deserialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        ...

    @abstractmethod
    def serialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        ...

    def literal(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        """Value as used inside a URL (keys, function parameters, filters)."""
        return self.serialize(value, options)


class NoneParser(Parser):
    """Pass-through parser used for unresolved type references."""

    def deserialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        return value

    def serialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        return value

    def __repr__(self) -> str:
        return "NONE_PARSER"


NONE_PARSER = NoneParser()
