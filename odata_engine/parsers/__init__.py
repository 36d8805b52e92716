"""
odata_engine.parsers - Payload (de)serialization
================================================

- EdmParser: primitive ``Edm.*`` types
- EnumTypeParser: enumerations, including flags
- StructuredTypeParser / FieldParser: entity and complex types with inheritance
- CallableParser: action/function parameters and return values
- NONE_PARSER: pass-through used for unresolved type references

"""

from odata_engine.parsers.base import (
    DEFAULT_OPTIONS,
    NONE_PARSER,
    NoneParser,
    Parser,
    ParserOptions,
    VersionHelper,
)
from odata_engine.parsers.edm import EDM_PARSERS, EdmParser, escape_odata_literal, format_literal
from odata_engine.parsers.enum_type import EnumTypeParser
from odata_engine.parsers.hierarchy import TypeHierarchy, TypeNode
from odata_engine.parsers.structured_type import FieldParser, StructuredTypeParser
from odata_engine.parsers.callable import CallableParser

__all__ = [
    "DEFAULT_OPTIONS",
    "NONE_PARSER",
    "NoneParser",
    "Parser",
    "ParserOptions",
    "VersionHelper",
    "EDM_PARSERS",
    "EdmParser",
    "escape_odata_literal",
    "format_literal",
    "EnumTypeParser",
    "TypeHierarchy",
    "TypeNode",
    "FieldParser",
    "StructuredTypeParser",
    "CallableParser",
]
