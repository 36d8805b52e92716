"""
odata_engine.schema.schema - Namespace scoped schema
=====================================================
"""

from __future__ import annotations

from typing import List, Optional, TYPE_CHECKING

from odata_engine.core.config import SchemaConfig
from odata_engine.schema.callable import ODataCallable
from odata_engine.schema.entity_container import ODataEntityContainer, ODataEntitySet
from odata_engine.schema.enum_type import ODataEnumType
from odata_engine.schema.structured_type import ODataStructuredType

if TYPE_CHECKING:
    from odata_engine.schema.registry import SchemaRegistry


class ODataSchema:
    """
    Enums, structured types, callables and containers of one namespace.

    Parameters
    ----------
    config : SchemaConfig
        Declared schema
    registry : SchemaRegistry
        Owning registry
    """

    def __init__(self, config: SchemaConfig, registry: "SchemaRegistry"):
        self.registry = registry
        self.namespace = config.namespace
        self.alias = config.alias
        self.enums: List[ODataEnumType] = [ODataEnumType(c, self) for c in config.enums]
        self.entities: List[ODataStructuredType] = [ODataStructuredType(c, self) for c in config.entities]
        self.callables: List[ODataCallable] = [ODataCallable(c, self) for c in config.callables]
        self.containers: List[ODataEntityContainer] = [ODataEntityContainer(c, self) for c in config.containers]

    def __repr__(self) -> str:
        return f"ODataSchema({self.namespace})"

    @property
    def entity_sets(self) -> List[ODataEntitySet]:
        return [es for c in self.containers for es in c.entity_sets]

    def is_namespace_of(self, type_name: str) -> bool:
        prefixes = [self.namespace]
        if self.alias:
            prefixes.append(self.alias)
        return any(type_name.startswith(f"{p}.") for p in prefixes)

    def namespace_length(self, type_name: str) -> int:
        """Length of the prefix (namespace or alias) that matches ``type_name``."""
        prefixes = [self.namespace] + ([self.alias] if self.alias else [])
        return max((len(p) for p in prefixes if type_name.startswith(f"{p}.")), default=0)

    def find_enum_type_for_type(self, type_name: str) -> Optional[ODataEnumType]:
        return next((e for e in self.enums if e.is_type_of(type_name)), None)

    def find_structured_type_for_type(self, type_name: str) -> Optional[ODataStructuredType]:
        return next((e for e in self.entities if e.is_type_of(type_name)), None)

    def find_callable_for_type(self, type_name: str) -> Optional[ODataCallable]:
        return next((c for c in self.callables if c.is_type_of(type_name)), None)

    def find_entity_set_for_type(self, type_name: str) -> Optional[ODataEntitySet]:
        return next((es for es in self.entity_sets if es.is_type_of(type_name)), None)
