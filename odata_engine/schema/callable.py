"""
odata_engine.schema.callable - Action/function element
=======================================================
"""

from __future__ import annotations

from typing import Optional, TYPE_CHECKING

from odata_engine.core.config import CallableConfig
from odata_engine.parsers.callable import CallableParser

if TYPE_CHECKING:
    from odata_engine.schema.schema import ODataSchema


class ODataCallable:
    """
    A server-side action or function.

    The path used in URLs is the configured ``path`` when given, otherwise
    ``Namespace.Name`` for bound callables and the bare name for unbound ones.
    """

    def __init__(self, config: CallableConfig, schema: "ODataSchema"):
        self.schema = schema
        self.name = config.name
        self.kind = config.kind
        self.bound = config.bound
        self.composable = config.composable
        self.path = config.path or (f"{schema.namespace}.{config.name}" if config.bound else config.name)
        self.parser = CallableParser(config, schema.namespace, alias=schema.alias)

    def __repr__(self) -> str:
        return f"ODataCallable({self.type}, kind={self.kind})"

    @property
    def type(self) -> str:
        return f"{self.schema.namespace}.{self.name}"

    @property
    def return_type(self) -> Optional[str]:
        return self.parser.return_type

    def is_action(self) -> bool:
        return self.kind == "action"

    def is_function(self) -> bool:
        return self.kind == "function"

    def is_type_of(self, type_name: str) -> bool:
        return self.parser.is_type_of(type_name)
