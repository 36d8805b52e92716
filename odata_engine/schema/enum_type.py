"""
odata_engine.schema.enum_type - Enumeration type element
=========================================================
"""

from __future__ import annotations

from typing import Dict, Optional, TYPE_CHECKING

from odata_engine.core.config import EnumTypeConfig
from odata_engine.parsers.enum_type import EnumTypeParser

if TYPE_CHECKING:
    from odata_engine.schema.schema import ODataSchema


class ODataEnumType:
    """An enum declared in a schema."""

    def __init__(self, config: EnumTypeConfig, schema: "ODataSchema"):
        self.schema = schema
        self.name = config.name
        self.flags = config.flags
        self.members: Dict[str, int] = dict(config.members)
        self.parser = EnumTypeParser(
            config.name,
            schema.namespace,
            config.members,
            flags=config.flags,
            alias=schema.alias,
        )

    def __repr__(self) -> str:
        return f"ODataEnumType({self.type})"

    @property
    def type(self) -> str:
        return f"{self.schema.namespace}.{self.name}"

    def is_type_of(self, type_name: str) -> bool:
        return self.parser.is_type_of(type_name)

    def member(self, value: int) -> Optional[str]:
        return next((k for k, v in self.members.items() if v == value), None)
