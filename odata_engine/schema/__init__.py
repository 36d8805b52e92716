"""
odata_engine.schema - Type registry
===================================

Schemas group enums, structured types, callables and containers by
namespace; the ``SchemaRegistry`` resolves qualified names across them.

"""

from odata_engine.schema.callable import ODataCallable
from odata_engine.schema.entity_container import ODataEntityContainer, ODataEntitySet
from odata_engine.schema.enum_type import ODataEnumType
from odata_engine.schema.metadata import EntitySetInfo, ODataMetadata
from odata_engine.schema.registry import SchemaRegistry, UnresolvedReference
from odata_engine.schema.schema import ODataSchema
from odata_engine.schema.structured_type import ODataStructuredType

__all__ = [
    "ODataCallable",
    "ODataEntityContainer",
    "ODataEntitySet",
    "ODataEnumType",
    "EntitySetInfo",
    "ODataMetadata",
    "SchemaRegistry",
    "UnresolvedReference",
    "ODataSchema",
    "ODataStructuredType",
]
