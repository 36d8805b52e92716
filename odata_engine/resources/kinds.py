"""
odata_engine.resources.kinds - Concrete resource kinds
=======================================================

One class per addressable resource kind. Each ``factory`` appends its
segment to a copy of the parent's path and decides which of the parent's
query options survive the transition:

=====================  =========================================
Resource               Options carried over
=====================  =========================================
entity                 format, select, expand, custom
singleton              format, custom
navigation property    format, custom
property               format, custom
count                  filter, search, custom
$ref                   format
$value                 none
action / function      none
type cast              all
=====================  =========================================

Methods that need an entity key raise ``ODataIdentityError`` at call
time, before a coroutine is even created.
"""

from __future__ import annotations

from typing import Any, Awaitable, Dict, Optional, TYPE_CHECKING

from odata_engine.core.errors import ODataIdentityError
from odata_engine.parsers.base import NONE_PARSER, Parser
from odata_engine.parsers.edm import format_literal
from odata_engine.parsers.structured_type import StructuredTypeParser
from odata_engine.resources.path_segments import PathSegments, SegmentKind
from odata_engine.resources.query_options import QueryOptionNames as Q, QueryOptions
from odata_engine.resources.request import ENTITY, ENTITYSET, PROPERTY
from odata_engine.resources.resource import CollectionMixin, FormatMixin, ODataResource, ShapeMixin
from odata_engine.resources.responses import ODataEntities, ODataEntity, ODataProperty, ODataResponse
from odata_engine.schema.metadata import ODataMetadata

if TYPE_CHECKING:
    from odata_engine.api import ODataApi


def _entity_or_none(result: Any) -> Optional[Any]:
    return result.entity if isinstance(result, ODataEntity) else None


class _CallableFactoryMixin:
    """Bound action/function factories."""

    def _callable_path(self, name: str):
        callable_ = self.api.find_callable_for_type(name) or self.api.find_callable_by_name(name)
        if callable_ is None:
            return name, None
        return callable_.path, callable_.type

    def action(self, name: str) -> "ActionResource":
        path, type_name = self._callable_path(name)
        return ActionResource.factory(self.api, path, type_name, self.segments, self.options.clone())

    def function(self, name: str) -> "FunctionResource":
        path, type_name = self._callable_path(name)
        return FunctionResource.factory(self.api, path, type_name, self.segments, self.options.clone())


class _MemberFactoryMixin(_CallableFactoryMixin):
    """Navigation, property and cast factories for structured values."""

    def navigation_property(self, name: str) -> "NavigationPropertyResource":
        return NavigationPropertyResource.factory(
            self.api, name, self.member_type(name), self.segments, self.options.clone()
        )

    def property(self, name: str) -> "PropertyResource":
        return PropertyResource.factory(self.api, name, self.member_type(name), self.segments, self.options.clone())

    def cast(self, type_name: str):
        """Same kind of resource narrowed to a derived type."""
        return type(self)(self.api, self.segments.add(SegmentKind.TYPE, type_name, type_name), self.options.clone())


# ---------------- entity set ----------------

class EntitySetResource(CollectionMixin, _CallableFactoryMixin, ODataResource):
    """
    Collection of entities at the service root.

    Examples
    --------
    >>> people = api.entity_set("People")
    >>> await people.top(5).filter({"Age": {"gt": 30}}).get()
    ODataEntities(...)
    >>> people.entity(1).path()
    'People(1)'
    """

    @classmethod
    def factory(
        cls,
        api: "ODataApi",
        path: str,
        type: Optional[str],
        segments: PathSegments,
        options: QueryOptions,
    ) -> "EntitySetResource":
        return cls(api, segments.add(SegmentKind.ENTITY_SET, path, type), options)

    def entity(self, key: Any = None) -> "EntityResource":
        return EntityResource.factory(self.api, self.segments, self.options.clone(), key)

    def count(self) -> "CountResource":
        return CountResource.factory(self.api, self.segments, self.options.clone())

    def cast(self, type_name: str) -> "EntitySetResource":
        return EntitySetResource(self.api, self.segments.add(SegmentKind.TYPE, type_name, type_name), self.options.clone())

    async def get(self, *, with_count: bool = False, **kwargs: Any) -> ODataEntities:
        return await self._request("GET", response_type=ENTITYSET, with_count=with_count, **kwargs)

    async def post(self, attrs: Dict[str, Any], **kwargs: Any) -> Optional[ODataEntity]:
        """Create an entity in this collection."""
        return await self._request("POST", body=self.serialize(attrs), response_type=ENTITY, **kwargs)

    async def fetch(self, **kwargs: Any) -> list:
        result = await self.get(**kwargs)
        return result.entities


# ---------------- entity ----------------

class EntityResource(ShapeMixin, _MemberFactoryMixin, ODataResource):
    """
    One entity addressed by key.

    ``key`` accepts a scalar, a ``{name: value}`` mapping for composite keys,
    or any attribute mapping from which the key fields can be resolved.
    """

    @classmethod
    def factory(
        cls,
        api: "ODataApi",
        segments: PathSegments,
        options: QueryOptions,
        key: Any = None,
    ) -> "EntityResource":
        options.keep(Q.FORMAT, Q.SELECT, Q.EXPAND, Q.CUSTOM)
        resource = cls(api, segments, options)
        if key is not None:
            resource.segments = resource._keyed_segments(key)
        return resource

    def key(self, value: Any = None) -> Any:
        """Current key, or (with a value) a copy keyed by it."""
        if value is None:
            segment = self._key_segment()
            return segment.key if segment is not None else None
        return EntityResource(self.api, self._keyed_segments(value), self.options.clone())

    def _require_key(self) -> None:
        if not self.has_key():
            raise ODataIdentityError(f"Entity resource '{self.path()}' has no key", path=self.path())

    def ref(self) -> "ReferenceResource":
        return ReferenceResource.factory(self.api, self.segments, self.options.clone())

    def value(self) -> "ValueResource":
        """Media stream of a media entity."""
        return ValueResource.factory(self.api, self.segments, self.options.clone())

    def get(self, **kwargs: Any) -> Awaitable[ODataEntity]:
        self._require_key()
        return self._request("GET", response_type=ENTITY, **kwargs)

    def put(self, attrs: Dict[str, Any], *, etag: Optional[str] = None, **kwargs: Any) -> Awaitable[Optional[ODataEntity]]:
        self._require_key()
        return self._request(
            "PUT", body=self.serialize(attrs), etag=self._etag_of(attrs, etag), response_type=ENTITY, **kwargs
        )

    def patch(self, attrs: Dict[str, Any], *, etag: Optional[str] = None, **kwargs: Any) -> Awaitable[Optional[ODataEntity]]:
        self._require_key()
        return self._request(
            "PATCH", body=self.serialize(attrs), etag=self._etag_of(attrs, etag), response_type=ENTITY, **kwargs
        )

    def delete(self, *, etag: Optional[str] = None, **kwargs: Any) -> Awaitable[Any]:
        self._require_key()
        return self._request("DELETE", etag=etag, **kwargs)

    async def fetch(self, **kwargs: Any) -> Any:
        return _entity_or_none(await self.get(**kwargs))


# ---------------- singleton ----------------

class SingletonResource(ShapeMixin, _MemberFactoryMixin, ODataResource):
    """Single entity at the service root, addressed without a key."""

    @classmethod
    def factory(
        cls,
        api: "ODataApi",
        path: str,
        type: Optional[str],
        segments: PathSegments,
        options: QueryOptions,
    ) -> "SingletonResource":
        options.keep(Q.FORMAT, Q.CUSTOM)
        return cls(api, segments.add(SegmentKind.SINGLETON, path, type), options)

    async def get(self, **kwargs: Any) -> ODataEntity:
        return await self._request("GET", response_type=ENTITY, **kwargs)

    async def put(self, attrs: Dict[str, Any], *, etag: Optional[str] = None, **kwargs: Any) -> Optional[ODataEntity]:
        return await self._request(
            "PUT", body=self.serialize(attrs), etag=self._etag_of(attrs, etag), response_type=ENTITY, **kwargs
        )

    async def patch(self, attrs: Dict[str, Any], *, etag: Optional[str] = None, **kwargs: Any) -> Optional[ODataEntity]:
        return await self._request(
            "PATCH", body=self.serialize(attrs), etag=self._etag_of(attrs, etag), response_type=ENTITY, **kwargs
        )

    async def fetch(self, **kwargs: Any) -> Any:
        return _entity_or_none(await self.get(**kwargs))


# ---------------- navigation property ----------------

class NavigationPropertyResource(CollectionMixin, _MemberFactoryMixin, ODataResource):
    """Related entity or collection reached from an entity."""

    @classmethod
    def factory(
        cls,
        api: "ODataApi",
        path: str,
        type: Optional[str],
        segments: PathSegments,
        options: QueryOptions,
    ) -> "NavigationPropertyResource":
        options.keep(Q.FORMAT, Q.CUSTOM)
        return cls(api, segments.add(SegmentKind.NAVIGATION_PROPERTY, path, type), options)

    def _field(self):
        last = self.segments.last()
        previous = self.segments.previous()
        parent_type = self._value_type_of(previous)
        if last is None or parent_type is None:
            return None
        parser = self.api.find_parser_for_type(parent_type)
        return parser.field(last.name) if isinstance(parser, StructuredTypeParser) else None

    def is_collection(self) -> bool:
        """True for collection-valued navigation properties that are not keyed."""
        if self.has_key():
            return False
        field = self._field()
        return bool(field is not None and field.collection)

    def key(self, value: Any = None) -> Any:
        if value is None:
            last = self.segments.last()
            return last.key if last is not None else None
        return NavigationPropertyResource(self.api, self._keyed_segments(value), self.options.clone())

    def entity(self, key: Any) -> "NavigationPropertyResource":
        return self.key(key)

    def count(self) -> "CountResource":
        return CountResource.factory(self.api, self.segments, self.options.clone())

    def ref(self) -> "ReferenceResource":
        return ReferenceResource.factory(self.api, self.segments, self.options.clone())

    async def get(self, *, with_count: bool = False, **kwargs: Any) -> Any:
        if self.is_collection():
            return await self._request("GET", response_type=ENTITYSET, with_count=with_count, **kwargs)
        return await self._request("GET", response_type=ENTITY, **kwargs)

    async def post(self, attrs: Dict[str, Any], **kwargs: Any) -> Optional[ODataEntity]:
        return await self._request("POST", body=self.serialize(attrs), response_type=ENTITY, **kwargs)

    async def patch(self, attrs: Dict[str, Any], *, etag: Optional[str] = None, **kwargs: Any) -> Optional[ODataEntity]:
        return await self._request(
            "PATCH", body=self.serialize(attrs), etag=self._etag_of(attrs, etag), response_type=ENTITY, **kwargs
        )

    async def fetch(self, **kwargs: Any) -> Any:
        result = await self.get(**kwargs)
        if isinstance(result, ODataEntities):
            return result.entities
        return _entity_or_none(result)


# ---------------- property ----------------

class PropertyResource(FormatMixin, ODataResource):
    """Structural property of an entity (primitive, enum or complex)."""

    @classmethod
    def factory(
        cls,
        api: "ODataApi",
        path: str,
        type: Optional[str],
        segments: PathSegments,
        options: QueryOptions,
    ) -> "PropertyResource":
        options.keep(Q.FORMAT, Q.CUSTOM)
        return cls(api, segments.add(SegmentKind.PROPERTY, path, type), options)

    @property
    def parser(self) -> Parser:
        last = self.segments.last()
        parent_type = self._value_type_of(self.segments.previous())
        if last is None or parent_type is None:
            return NONE_PARSER
        parser = self.api.find_parser_for_type(parent_type)
        field = parser.field(last.name) if isinstance(parser, StructuredTypeParser) else None
        return field if field is not None else NONE_PARSER

    def property(self, name: str) -> "PropertyResource":
        """Nested property of a complex-typed property."""
        return PropertyResource.factory(self.api, name, self.member_type(name), self.segments, self.options.clone())

    def value(self) -> "ValueResource":
        return ValueResource.factory(self.api, self.segments, self.options.clone())

    def count(self) -> "CountResource":
        return CountResource.factory(self.api, self.segments, self.options.clone())

    async def get(self, **kwargs: Any) -> ODataProperty:
        return await self._request("GET", response_type=PROPERTY, **kwargs)

    async def put(self, value: Any, **kwargs: Any) -> Any:
        return await self._request("PUT", body={"value": self.serialize(value)}, **kwargs)

    async def delete(self, **kwargs: Any) -> Any:
        return await self._request("DELETE", **kwargs)

    async def fetch(self, **kwargs: Any) -> Any:
        result = await self.get(**kwargs)
        return result.property if isinstance(result, ODataProperty) else None


# ---------------- callables ----------------

def _return_shape(resource: ODataResource) -> Optional[str]:
    last = resource.segments.last()
    callable_ = resource._callable_for(last) if last is not None else None
    if callable_ is None or callable_.parser.return_field is None:
        return None
    returns = callable_.parser.return_field
    target = resource.api.find_parser_for_type(returns.type)
    if isinstance(target, StructuredTypeParser) and not target.is_complex_type():
        return ENTITYSET if returns.collection else ENTITY
    return PROPERTY


class _CallableResource(ODataResource):
    @property
    def parser(self) -> Parser:
        last = self.segments.last()
        callable_ = self._callable_for(last) if last is not None else None
        return callable_.parser if callable_ is not None else NONE_PARSER

    def deserialize(self, value: Any) -> Any:
        # return values are dispatched through the return field parser
        return self.parser.deserialize(value, self.api.options)

    def return_type(self) -> Optional[str]:
        return self.value_type()


class ActionResource(FormatMixin, _CallableResource):
    """Side-effecting operation, invoked with POST."""

    @classmethod
    def factory(
        cls,
        api: "ODataApi",
        path: str,
        type: Optional[str],
        segments: PathSegments,
        options: QueryOptions,
    ) -> "ActionResource":
        options.clear()
        return cls(api, segments.add(SegmentKind.ACTION, path, type), options)

    async def post(self, params: Optional[Dict[str, Any]] = None, *, response_type: Any = "auto", **kwargs: Any) -> Any:
        shape = _return_shape(self) if response_type == "auto" else response_type
        body = self.parser.serialize(params or {}, self.api.options)
        return await self._request("POST", body=body, response_type=shape, **kwargs)

    async def call(self, params: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Any:
        """Invoke and unwrap the return value."""
        return _unwrap(await self.post(params, **kwargs))


class FunctionResource(CollectionMixin, _CallableResource):
    """
    Side-effect free operation, invoked with GET.

    Parameters render inline, ``GetNearestAirport(lat=1.5,lon=2)``; on
    version 2 services they are sent as query parameters instead.
    """

    @classmethod
    def factory(
        cls,
        api: "ODataApi",
        path: str,
        type: Optional[str],
        segments: PathSegments,
        options: QueryOptions,
    ) -> "FunctionResource":
        options.clear()
        return cls(api, segments.add(SegmentKind.FUNCTION, path, type), options)

    def parameters(self, params: Optional[Dict[str, Any]]) -> "FunctionResource":
        """Copy with the given parameters (``None`` for the bare path, ``{}`` for ``()``)."""
        if params is None:
            return FunctionResource(self.api, self.segments.with_last(parameters=None), self.options.clone())
        parser = self.parser
        literals = parser.literals(params, self.api.options) if hasattr(parser, "literals") else {
            k: format_literal(v) for k, v in params.items()
        }
        if self.api.options.helper.is_v2:
            options = self.options.clone()
            custom = dict(options.get(Q.CUSTOM) or {})
            custom.update(literals)
            options.set(Q.CUSTOM, custom)
            return FunctionResource(self.api, self.segments.with_last(parameters=None), options)
        return FunctionResource(self.api, self.segments.with_last(parameters=tuple(literals.items())), self.options.clone())

    def _composable(self, what: str) -> None:
        last = self.segments.last()
        callable_ = self._callable_for(last) if last is not None else None
        if callable_ is not None and not callable_.composable:
            raise TypeError(f"Function '{callable_.type}' is not composable; cannot add {what}")

    def property(self, name: str) -> PropertyResource:
        self._composable(f"property '{name}'")
        return PropertyResource.factory(self.api, name, self.member_type(name), self.segments, self.options.clone())

    def navigation_property(self, name: str) -> NavigationPropertyResource:
        self._composable(f"navigation property '{name}'")
        return NavigationPropertyResource.factory(
            self.api, name, self.member_type(name), self.segments, self.options.clone()
        )

    def count(self) -> "CountResource":
        self._composable("$count")
        return CountResource.factory(self.api, self.segments, self.options.clone())

    async def get(self, params: Optional[Dict[str, Any]] = None, *, response_type: Any = "auto", **kwargs: Any) -> Any:
        resource = self.parameters(params) if params is not None else self
        shape = _return_shape(resource) if response_type == "auto" else response_type
        return await resource._request("GET", response_type=shape, **kwargs)

    async def call(self, params: Optional[Dict[str, Any]] = None, **kwargs: Any) -> Any:
        """Invoke and unwrap the return value."""
        return _unwrap(await self.get(params, **kwargs))


def _unwrap(result: Any) -> Any:
    if isinstance(result, ODataEntity):
        return result.entity
    if isinstance(result, ODataEntities):
        return result.entities
    if isinstance(result, ODataProperty):
        return result.property
    if isinstance(result, ODataResponse):
        return result.body
    return result


# ---------------- terminal segments ----------------

class CountResource(ODataResource):
    """``$count`` of a collection."""

    @classmethod
    def factory(cls, api: "ODataApi", segments: PathSegments, options: QueryOptions) -> "CountResource":
        options.keep(Q.FILTER, Q.SEARCH, Q.CUSTOM)
        return cls(api, segments.add(SegmentKind.COUNT, "$count", "Edm.Int32"), options)

    async def get(self, **kwargs: Any) -> int:
        headers = {"Accept": "text/plain"}
        headers.update(kwargs.pop("headers", None) or {})
        response: ODataResponse = await self._request("GET", headers=headers, **kwargs)
        return int(str(response.body).strip())


class ReferenceResource(ODataResource):
    """``$ref`` of an entity or navigation property."""

    @classmethod
    def factory(cls, api: "ODataApi", segments: PathSegments, options: QueryOptions) -> "ReferenceResource":
        options.keep(Q.FORMAT)
        return cls(api, segments.add(SegmentKind.REFERENCE, "$ref"), options)

    def _reference(self, target: ODataResource) -> Dict[str, str]:
        if self.api.options.helper.is_v2:
            return {"uri": target.url()}
        return {"@odata.id": target.url()}

    async def get(self, **kwargs: Any) -> Any:
        response: ODataResponse = await self._request("GET", **kwargs)
        return response.body

    async def put(self, target: ODataResource, **kwargs: Any) -> Any:
        """Point a single-valued navigation property at ``target``."""
        return await self._request("PUT", body=self._reference(target), **kwargs)

    async def post(self, target: ODataResource, **kwargs: Any) -> Any:
        """Add ``target`` to a collection-valued navigation property."""
        return await self._request("POST", body=self._reference(target), **kwargs)

    async def delete(self, target: Optional[ODataResource] = None, **kwargs: Any) -> Any:
        params = dict(kwargs.pop("params", None) or {})
        if target is not None:
            params["$id"] = target.url()
        return await self._request("DELETE", params=params or None, **kwargs)


class ValueResource(ODataResource):
    """Raw ``$value`` of a property or media entity."""

    @classmethod
    def factory(cls, api: "ODataApi", segments: PathSegments, options: QueryOptions) -> "ValueResource":
        options.clear()
        return cls(api, segments.add(SegmentKind.VALUE, "$value"), options)

    async def get(self, **kwargs: Any) -> Any:
        headers = {"Accept": "*/*"}
        headers.update(kwargs.pop("headers", None) or {})
        response: ODataResponse = await self._request("GET", headers=headers, **kwargs)
        return response.body

    async def put(self, data: Any, *, content_type: str = "application/octet-stream", **kwargs: Any) -> Any:
        headers = {"Content-Type": content_type}
        headers.update(kwargs.pop("headers", None) or {})
        return await self._request("PUT", body=data, headers=headers, **kwargs)


class MetadataResource(ODataResource):
    """Service ``$metadata`` document."""

    @classmethod
    def factory(cls, api: "ODataApi", segments: Optional[PathSegments] = None, options: Optional[QueryOptions] = None) -> "MetadataResource":
        return cls(api, (segments or PathSegments()).add(SegmentKind.METADATA, "$metadata"), QueryOptions())

    async def get(self, **kwargs: Any) -> str:
        headers = {"Accept": "application/xml"}
        headers.update(kwargs.pop("headers", None) or {})
        response: ODataResponse = await self._request("GET", headers=headers, **kwargs)
        body = response.body
        return body.decode("utf-8") if isinstance(body, (bytes, bytearray)) else str(body)

    async def fetch(self, **kwargs: Any) -> ODataMetadata:
        return ODataMetadata(await self.get(**kwargs))
