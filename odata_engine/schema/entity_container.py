"""
odata_engine.schema.entity_container - Containers, entity sets, singletons
===========================================================================
"""

from __future__ import annotations

from typing import Dict, List, Optional, TYPE_CHECKING

from odata_engine.core.config import EntityContainerConfig, EntitySetConfig

if TYPE_CHECKING:
    from odata_engine.schema.schema import ODataSchema


class ODataEntitySet:
    """
    Entity set (or singleton) addressable from the service root.

    Attributes
    ----------
    entity_type : str
        Qualified type of the members
    navigation_property_bindings : dict
        Navigation path -> target entity set name
    """

    def __init__(self, config: EntitySetConfig, schema: "ODataSchema"):
        self.schema = schema
        self.name = config.name
        self.entity_type = config.entity_type
        self.singleton = config.singleton
        self.navigation_property_bindings: Dict[str, str] = dict(config.navigation_property_bindings)

    def __repr__(self) -> str:
        kind = "Singleton" if self.singleton else "EntitySet"
        return f"{kind}({self.name}: {self.entity_type})"

    @property
    def type(self) -> str:
        return f"{self.schema.namespace}.{self.name}"

    def is_type_of(self, type_name: str) -> bool:
        return type_name == self.type or (
            self.schema.alias is not None and type_name == f"{self.schema.alias}.{self.name}"
        )

    def is_entity_set_of(self, entity_type: str) -> bool:
        return self.entity_type == entity_type

    def binding_for(self, navigation_path: str) -> Optional[str]:
        """Entity set targeted by a navigation property path, if bound."""
        return self.navigation_property_bindings.get(navigation_path)


class ODataEntityContainer:
    def __init__(self, config: EntityContainerConfig, schema: "ODataSchema"):
        self.schema = schema
        self.name = config.name
        self.entity_sets: List[ODataEntitySet] = [ODataEntitySet(c, schema) for c in config.entity_sets]

    def __repr__(self) -> str:
        return f"ODataEntityContainer({self.name}, sets={len(self.entity_sets)})"
