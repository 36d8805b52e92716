"""
odata_engine.resources - Addressable resources
==============================================

- PathSegments: immutable URL path model
- QueryOptions: query option set and its URL rendering
- Resource kinds: entity set, entity, singleton, navigation property,
  property, action, function, $count, $ref, $value, $metadata
- ODataRequest / ODataResponse: what the transport receives and returns

"""

from odata_engine.resources.builder import build_query_params, encode_query_params
from odata_engine.resources.path_segments import PathSegments, Segment, SegmentKind
from odata_engine.resources.query_options import OptionHandler, QueryOptionNames, QueryOptions
from odata_engine.resources.responses import (
    ODataEntities,
    ODataEntitiesMeta,
    ODataEntity,
    ODataEntityMeta,
    ODataProgressEvent,
    ODataProperty,
    ODataResponse,
)
from odata_engine.resources.request import ODataRequest
from odata_engine.resources.resource import ODataResource
from odata_engine.resources.kinds import (
    ActionResource,
    CountResource,
    EntityResource,
    EntitySetResource,
    FunctionResource,
    MetadataResource,
    NavigationPropertyResource,
    PropertyResource,
    ReferenceResource,
    SingletonResource,
    ValueResource,
)

__all__ = [
    "build_query_params",
    "encode_query_params",
    "PathSegments",
    "Segment",
    "SegmentKind",
    "OptionHandler",
    "QueryOptionNames",
    "QueryOptions",
    "ODataEntities",
    "ODataEntitiesMeta",
    "ODataEntity",
    "ODataEntityMeta",
    "ODataProgressEvent",
    "ODataProperty",
    "ODataResponse",
    "ODataRequest",
    "ODataResource",
    "ActionResource",
    "CountResource",
    "EntityResource",
    "EntitySetResource",
    "FunctionResource",
    "MetadataResource",
    "NavigationPropertyResource",
    "PropertyResource",
    "ReferenceResource",
    "SingletonResource",
    "ValueResource",
]
