"""
odata_engine.parsers.callable - Action/function parameter and return parser
============================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from odata_engine.core.config import CallableConfig, FieldConfig
from odata_engine.parsers.base import DEFAULT_OPTIONS, Parser, ParserOptions
from odata_engine.parsers.edm import format_literal
from odata_engine.parsers.structured_type import FieldParser, ParserLookup


class CallableParser(Parser):
    """
    Serializes parameters and deserializes the return value of a callable.

    ``serialize`` is applied to the parameter mapping (request body for
    actions, segment parameters for functions); ``deserialize`` to the value
    returned by the service.
    """

    def __init__(self, config: CallableConfig, namespace: str, alias: Optional[str] = None):
        self.name = config.name
        self.namespace = namespace
        self.alias = alias
        self.parameters: Dict[str, FieldParser] = {
            name: FieldParser(name, field) for name, field in config.parameters.items()
        }
        self.return_field: Optional[FieldParser] = None
        if config.return_type is not None:
            self.return_field = FieldParser("return", FieldConfig(
                type=config.return_type.type,
                collection=config.return_type.collection,
                nullable=config.return_type.nullable,
            ))

    def __repr__(self) -> str:
        return f"CallableParser({self.type})"

    @property
    def type(self) -> str:
        return f"{self.namespace}.{self.name}"

    @property
    def return_type(self) -> Optional[str]:
        return self.return_field.type if self.return_field else None

    def is_type_of(self, type_name: str) -> bool:
        names = [self.type]
        if self.alias:
            names.append(f"{self.alias}.{self.name}")
        return type_name in names

    def configure(self, find_parser: ParserLookup) -> List[FieldParser]:
        fields = list(self.parameters.values())
        if self.return_field is not None:
            fields.append(self.return_field)
        return [f for f in fields if not f.configure(find_parser)]

    def deserialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        if self.return_field is None:
            return value
        return self.return_field.deserialize(value, options)

    def serialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        if not isinstance(value, dict):
            return value
        out = dict(value)
        for name, param in self.parameters.items():
            if value.get(name) is not None:
                out[name] = param.serialize(value[name], options)
        return out

    def literals(self, value: Dict[str, Any], options: ParserOptions = DEFAULT_OPTIONS) -> Dict[str, str]:
        """Parameter mapping rendered as URL literals."""
        out: Dict[str, str] = {}
        for name, arg in value.items():
            param = self.parameters.get(name)
            if param is not None and param.resolved:
                out[name] = str(param.literal(arg, options))
            else:
                out[name] = format_literal(arg)
        return out
