"""
odata_engine.schema.structured_type - Entity/complex type element
==================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, TYPE_CHECKING

from odata_engine.core.config import StructuredTypeConfig
from odata_engine.parsers.structured_type import FieldParser, StructuredTypeParser

if TYPE_CHECKING:
    from odata_engine.schema.schema import ODataSchema


class ODataStructuredType:
    """
    An entity type (one or more key fields) or complex type (no keys).

    Parameters
    ----------
    config : StructuredTypeConfig
        Declared type
    schema : ODataSchema
        Owning schema
    """

    def __init__(self, config: StructuredTypeConfig, schema: "ODataSchema"):
        self.schema = schema
        self.name = config.name
        self.base = config.base
        self.annotations = list(config.annotations)
        registry = schema.registry
        self.parser = StructuredTypeParser(
            config,
            schema.namespace,
            registry.hierarchy,
            registry.structured_parsers,
            alias=schema.alias,
        )

    def __repr__(self) -> str:
        return f"ODataStructuredType({self.type})"

    @property
    def type(self) -> str:
        return f"{self.schema.namespace}.{self.name}"

    def is_type_of(self, type_name: str) -> bool:
        return self.parser.is_type_of(type_name)

    def is_complex_type(self) -> bool:
        return self.parser.is_complex_type()

    def fields(self, include_parents: bool = True, include_navigation: bool = True) -> List[FieldParser]:
        return self.parser.all_fields(include_parents, include_navigation)

    def keys(self) -> List[FieldParser]:
        return self.parser.keys()

    def resolve_key(self, attrs: Any) -> Any:
        return self.parser.resolve_key(attrs)

    def to_json_schema(self, select=None, expand=None) -> Dict[str, Any]:
        return self.parser.to_json_schema(select=select, expand=expand)

    @property
    def parent(self) -> Optional["ODataStructuredType"]:
        parent = self.parser.parent
        if parent is None:
            return None
        return self.schema.registry.find_structured_type_for_type(parent.type)
