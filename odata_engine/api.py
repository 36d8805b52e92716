"""
odata_engine.api - Service API
==============================

``ODataApi`` is the entry point: it validates the service configuration,
builds the type registry, and hands out resources whose requests are
routed through its dispatcher.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

from odata_engine.cache.base import ODataCache
from odata_engine.cache.memory import ODataInMemoryCache
from odata_engine.core.config import ApiConfig, SchemaConfig
from odata_engine.core.errors import ODataConfigurationError
from odata_engine.dispatcher import ErrorHandler, RequestDispatcher, Transport
from odata_engine.parsers.base import Parser, ParserOptions
from odata_engine.resources.builder import ParamValue
from odata_engine.resources.kinds import (
    ActionResource,
    EntitySetResource,
    FunctionResource,
    MetadataResource,
    SingletonResource,
)
from odata_engine.resources.path_segments import PathSegments
from odata_engine.resources.query_options import QueryOptions
from odata_engine.resources.request import ODataRequest
from odata_engine.resources.resource import ODataResource
from odata_engine.schema.callable import ODataCallable
from odata_engine.schema.entity_container import ODataEntitySet
from odata_engine.schema.enum_type import ODataEnumType
from odata_engine.schema.registry import SchemaRegistry
from odata_engine.schema.schema import ODataSchema
from odata_engine.schema.structured_type import ODataStructuredType

logger = logging.getLogger("odata_engine")


class ODataApi:
    """
    Client for one OData service.

    Parameters
    ----------
    config : ApiConfig or dict
        Service description (camelCase or snake_case keys)
    transport : callable, optional
        See ``odata_engine.dispatcher``; may be supplied later to ``configure``
    cache : ODataCache, optional
        Defaults to an in-memory cache using ``config.cache_max_age``
    use_cache : bool
        Set False to disable response caching entirely
    error_handler : callable, optional
        ``handler(error, request)`` that may recover from transport errors
    parsers : dict, optional
        Extra primitive parsers by type name

    Raises
    ------
    ODataConfigurationError
        If ``service_root_url`` contains a query string.

    Examples
    --------
    >>> api = ODataApi({
    ...     "serviceRootUrl": "https://services.example.com/Acme/",
    ...     "schemas": [ACME_SCHEMA],
    ... }, transport=RequestsTransport(SessionConfig())).configure()
    >>> person = await api.entity_set("People").entity(1).fetch()
    """

    def __init__(
        self,
        config: Union[ApiConfig, Dict[str, Any]],
        *,
        transport: Optional[Transport] = None,
        cache: Optional[ODataCache] = None,
        use_cache: bool = True,
        error_handler: Optional[ErrorHandler] = None,
        parsers: Optional[Mapping[str, Parser]] = None,
    ) -> None:
        self.config = config if isinstance(config, ApiConfig) else ApiConfig.model_validate(config)
        root = self.config.service_root_url
        if "?" in root:
            raise ODataConfigurationError(
                "The 'service_root_url' should not contain a query string. "
                "Use 'params' to add extra parameters."
            )
        if not root.endswith("/"):
            root += "/"
        self.service_root_url = root
        self.metadata_url = f"{root}$metadata"
        self.name = self.config.name
        self.default = self.config.default
        self.options = ParserOptions(
            version=self.config.version,
            string_as_enum=self.config.string_as_enum,
            ieee754_compatible=self.config.ieee754_compatible,
        )

        if cache is None and use_cache:
            cache = ODataInMemoryCache(max_age=self.config.cache_max_age)
        self.cache = cache if use_cache else None
        self.dispatcher = RequestDispatcher(transport, cache=self.cache, error_handler=error_handler)

        self.registry = SchemaRegistry(parsers)
        for schema in self.config.schemas:
            self.registry.register_schema(schema)

    def __repr__(self) -> str:
        return f"ODataApi({self.name or self.service_root_url}, version={self.options.version})"

    def configure(self, transport: Optional[Transport] = None, *, strict: bool = False) -> "ODataApi":
        """
        Resolve the type graph; optionally attach the transport.

        Call once after construction (and after any ``register_schema``).
        """
        if transport is not None:
            self.dispatcher.transport = transport
        self.registry.configure(strict=strict)
        logger.info(f"Configured API {self.name or self.service_root_url} (OData {self.options.version})")
        return self

    def register_schema(self, definition: Union[SchemaConfig, Dict[str, Any]]) -> ODataSchema:
        return self.registry.register_schema(definition)

    # ---------------- lookups ----------------

    def find_schema_for_type(self, type_name: str) -> Optional[ODataSchema]:
        return self.registry.find_schema_for_type(type_name)

    def find_enum_type_for_type(self, type_name: str) -> Optional[ODataEnumType]:
        return self.registry.find_enum_type_for_type(type_name)

    def find_structured_type_for_type(self, type_name: str) -> Optional[ODataStructuredType]:
        return self.registry.find_structured_type_for_type(type_name)

    def find_callable_for_type(self, type_name: str) -> Optional[ODataCallable]:
        return self.registry.find_callable_for_type(type_name)

    def find_entity_set_for_type(self, type_name: str) -> Optional[ODataEntitySet]:
        return self.registry.find_entity_set_for_type(type_name)

    def find_parser_for_type(self, type_name: str) -> Parser:
        return self.registry.find_parser_for_type(type_name)

    def find_callable_by_name(self, name: str) -> Optional[ODataCallable]:
        return self.registry.find_callable_by_name(name)

    def find_entity_set_by_name(self, name: str) -> Optional[ODataEntitySet]:
        return self.registry.find_entity_set_by_name(name)

    # ---------------- resources ----------------

    def entity_set(self, name: str, type: Optional[str] = None) -> EntitySetResource:
        """Entity set resource; the member type is looked up when not given."""
        if type is None:
            entity_set = self.find_entity_set_by_name(name)
            type = entity_set.entity_type if entity_set is not None else None
        return EntitySetResource.factory(self, name, type, PathSegments(), QueryOptions())

    def singleton(self, name: str, type: Optional[str] = None) -> SingletonResource:
        if type is None:
            singleton = self.find_entity_set_by_name(name)
            type = singleton.entity_type if singleton is not None else None
        return SingletonResource.factory(self, name, type, PathSegments(), QueryOptions())

    def _callable(self, name: str):
        callable_ = self.find_callable_for_type(name) or self.find_callable_by_name(name)
        if callable_ is None:
            return name, None
        return callable_.path, callable_.type

    def action(self, name: str) -> ActionResource:
        """Unbound action (action import)."""
        path, type_name = self._callable(name)
        return ActionResource.factory(self, path, type_name, PathSegments(), QueryOptions())

    def function(self, name: str) -> FunctionResource:
        """Unbound function (function import)."""
        path, type_name = self._callable(name)
        return FunctionResource.factory(self, path, type_name, PathSegments(), QueryOptions())

    def metadata(self) -> MetadataResource:
        return MetadataResource.factory(self)

    # ---------------- requests ----------------

    def build_request(self, method: str, resource: ODataResource, **kwargs: Any) -> ODataRequest:
        return ODataRequest.build(self, method, resource, **kwargs)

    async def request(
        self,
        method: str,
        resource: ODataResource,
        *,
        body: Any = None,
        response_type: Optional[str] = None,
        etag: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, ParamValue]] = None,
        with_count: bool = False,
    ) -> Any:
        request = self.build_request(
            method,
            resource,
            body=body,
            response_type=response_type,
            etag=etag,
            headers=headers,
            params=params,
            with_count=with_count,
        )
        return await self.dispatcher.dispatch(request)
