"""
odata_engine.resources.resource - Resource base class
======================================================

A resource is a path (immutable ``PathSegments``) plus query options bound
to an ``ODataApi``. Fluent methods return new resources; the ``query``
property gives in-place access to the options for callers that want it.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Type, TypeVar, TYPE_CHECKING

from odata_engine.parsers.base import NONE_PARSER, Parser
from odata_engine.parsers.edm import format_literal
from odata_engine.parsers.structured_type import StructuredTypeParser, is_empty
from odata_engine.resources.builder import ParamValue, encode_query_params
from odata_engine.resources.path_segments import PathSegments, Segment, SegmentKind
from odata_engine.resources.query_options import QueryOptionNames, QueryOptions, _UNSET

if TYPE_CHECKING:
    from odata_engine.api import ODataApi
    from odata_engine.schema.callable import ODataCallable

R = TypeVar("R", bound="ODataResource")

_CALLABLE_KINDS = (SegmentKind.ACTION, SegmentKind.FUNCTION)


class ODataResource:
    """
    Base class for every addressable resource.

    Parameters
    ----------
    api : ODataApi
        Owning API
    segments : PathSegments
        Path from the service root
    options : QueryOptions
        Query options; owned by this resource
    """

    def __init__(self, api: "ODataApi", segments: Optional[PathSegments] = None, options: Optional[QueryOptions] = None):
        self.api = api
        self.segments = segments if segments is not None else PathSegments()
        self.options = options if options is not None else QueryOptions()

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self})"

    def __str__(self) -> str:
        params = self.params()
        return f"{self.path()}?{encode_query_params(params)}" if params else self.path()

    def __eq__(self, other: object) -> bool:
        return (
            type(other) is type(self)
            and self.segments == other.segments  # type: ignore[attr-defined]
            and self.options == other.options  # type: ignore[attr-defined]
        )

    def clone(self: R) -> R:
        return type(self)(self.api, self.segments.clone(), self.options.clone())

    def _derive(self, cls: Type[R], segments: PathSegments, options: QueryOptions) -> R:
        return cls(self.api, segments, options)

    # ---------------- addressing ----------------

    @property
    def query(self) -> QueryOptions:
        """The option set itself; changes apply to this resource in place."""
        return self.options

    def path(self) -> str:
        return self.segments.path()

    def params(self) -> Dict[str, ParamValue]:
        return self.options.params()

    def url(self) -> str:
        return f"{self.api.service_root_url}{self.path()}"

    def type(self) -> Optional[str]:
        """Qualified type bound to the last segment."""
        last = self.segments.last()
        return last.type if last is not None else None

    # ---------------- schema ----------------

    def _callable_for(self, segment: Segment) -> Optional["ODataCallable"]:
        if segment.type is None:
            return None
        return self.api.find_callable_for_type(segment.type)

    def _value_type_of(self, segment: Optional[Segment]) -> Optional[str]:
        """Type a segment evaluates to (the return type for callables)."""
        if segment is None or segment.type is None:
            return None
        if segment.kind in _CALLABLE_KINDS:
            callable_ = self._callable_for(segment)
            return callable_.return_type if callable_ is not None else None
        return segment.type

    def value_type(self) -> Optional[str]:
        return self._value_type_of(self.segments.last())

    def structured_parser(self) -> Optional[StructuredTypeParser]:
        type_name = self.value_type()
        if type_name is None:
            return None
        parser = self.api.find_parser_for_type(type_name)
        return parser if isinstance(parser, StructuredTypeParser) else None

    @property
    def parser(self) -> Parser:
        type_name = self.value_type()
        return self.api.find_parser_for_type(type_name) if type_name else NONE_PARSER

    def member_type(self, name: str) -> Optional[str]:
        """Declared type of a property/navigation property of the current value."""
        parser = self.structured_parser()
        return parser.type_for(name) if parser is not None else None

    def deserialize(self, value: Any) -> Any:
        """
        Parse a payload value with the parser bound to this resource.

        Structured payloads annotated with a derived type are handed to the
        matching subtype parser.
        """
        options = self.api.options
        parser = self.parser
        if isinstance(parser, StructuredTypeParser):
            if isinstance(value, list):
                return [self.deserialize(v) for v in value]
            annotated = options.helper.type(value)
            if annotated is not None:
                parser = parser.find_parser(annotated) or parser
        return parser.deserialize(value, options)

    def serialize(self, value: Any) -> Any:
        options = self.api.options
        parser = self.parser
        if isinstance(parser, StructuredTypeParser):
            annotated = options.helper.type(value)
            if annotated is not None:
                parser = parser.find_parser(annotated) or parser
        return parser.serialize(value, options)

    # ---------------- keys ----------------

    def _key_segment(self) -> Optional[Segment]:
        """Segment carrying the entity key, skipping trailing type casts."""
        for segment in reversed(tuple(self.segments)):
            if segment.has_key() or segment.kind != SegmentKind.TYPE:
                return segment
        return None

    def has_key(self) -> bool:
        segment = self._key_segment()
        return segment is not None and segment.has_key()

    def _resolve_key(self, key: Any) -> Any:
        parser = self.structured_parser()
        if isinstance(key, dict) and parser is not None:
            return parser.resolve_key(key)
        return key

    def _literal_for(self, parser: Optional[StructuredTypeParser], name: Optional[str], value: Any) -> str:
        field = parser.field(name) if parser is not None and name is not None else None
        if field is not None and field.resolved:
            return str(field.literal(value, self.api.options))
        return format_literal(value)

    def _key_literal(self, key: Any) -> Optional[str]:
        if is_empty(key):
            return None
        parser = self.structured_parser()
        if isinstance(key, dict):
            return ",".join(f"{name}={self._literal_for(parser, name, value)}" for name, value in key.items())
        keys = parser.keys() if parser is not None else []
        return self._literal_for(parser, keys[0].name if len(keys) == 1 else None, key)

    def _keyed_segments(self, key: Any) -> PathSegments:
        resolved = self._resolve_key(key)
        if is_empty(resolved):
            return self.segments.with_last(key=None, key_literal=None)
        return self.segments.with_last(key=resolved, key_literal=self._key_literal(resolved))

    # ---------------- options ----------------

    def _with_option(self: R, name: Any, value: Any) -> R:
        options = self.options.clone()
        options.option(name, value)
        return self._derive(type(self), self.segments.clone(), options)

    def option(self, name: Any, value: Any = _UNSET) -> Any:
        """Read an option, or (with a value) return a copy carrying it."""
        if value is _UNSET:
            return self.options.get(name)
        return self._with_option(name, value)

    # ---------------- requests ----------------

    async def _request(
        self,
        method: str,
        *,
        body: Any = None,
        response_type: Optional[str] = None,
        etag: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, ParamValue]] = None,
        with_count: bool = False,
    ) -> Any:
        return await self.api.request(
            method,
            self,
            body=body,
            response_type=response_type,
            etag=etag,
            headers=headers,
            params=params,
            with_count=with_count,
        )

    def _etag_of(self, attrs: Any, etag: Optional[str]) -> Optional[str]:
        return etag or self.api.options.helper.etag(attrs)


class FormatMixin:
    """``$format`` and custom parameters."""

    def format(self, value: Optional[str]):
        return self._with_option(QueryOptionNames.FORMAT, value)

    def custom(self, value: Optional[Dict[str, Any]]):
        return self._with_option(QueryOptionNames.CUSTOM, value)


class ShapeMixin(FormatMixin):
    """``$select`` and ``$expand``."""

    def select(self, value: Any):
        return self._with_option(QueryOptionNames.SELECT, value)

    def expand(self, value: Any):
        return self._with_option(QueryOptionNames.EXPAND, value)


class CollectionMixin(ShapeMixin):
    """Options that only make sense on collections."""

    def filter(self, value: Any):
        return self._with_option(QueryOptionNames.FILTER, value)

    def search(self, value: Optional[str]):
        return self._with_option(QueryOptionNames.SEARCH, value)

    def order_by(self, value: Any):
        return self._with_option(QueryOptionNames.ORDER_BY, value)

    def top(self, value: Optional[int]):
        return self._with_option(QueryOptionNames.TOP, value)

    def skip(self, value: Optional[int]):
        return self._with_option(QueryOptionNames.SKIP, value)

    def skiptoken(self, value: Optional[str]):
        return self._with_option(QueryOptionNames.SKIPTOKEN, value)

    def transform(self, value: Any):
        return self._with_option(QueryOptionNames.TRANSFORM, value)

    def compute(self, value: Any):
        return self._with_option(QueryOptionNames.COMPUTE, value)
