"""
odata_engine.parsers.structured_type - Entity and complex type parsers
=======================================================================

A structured parser owns one field parser per declared field. Inherited
fields are handled by applying the parent's transform first and overlaying
the fields declared on the subtype.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Dict, List, Optional, TYPE_CHECKING

from odata_engine.core.config import FieldConfig, StructuredTypeConfig
from odata_engine.parsers.base import DEFAULT_OPTIONS, NONE_PARSER, Parser, ParserOptions

if TYPE_CHECKING:
    from odata_engine.parsers.hierarchy import TypeHierarchy

ParserLookup = Callable[[str], Parser]

_PATH_SEP = re.compile(r"[/.]")


def is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, (dict, list)) and not value)


class FieldParser(Parser):
    """
    Parser for one field of a structured type (or one callable parameter).

    The concrete type parser is resolved once in ``configure``; until then
    (or when the type cannot be resolved) the field passes values through.
    """

    def __init__(self, name: str, config: FieldConfig):
        self.name = name
        self.type = config.type
        self.default = config.default
        self.max_length = config.max_length
        self.key = config.key
        self.collection = config.collection
        self.nullable = config.nullable
        self.navigation = config.navigation
        self.field = config.field
        self.precision = config.precision
        self.scale = config.scale
        self.ref = config.ref
        self.annotations = list(config.annotations)
        self.parser: Parser = NONE_PARSER

    def __repr__(self) -> str:
        return f"FieldParser({self.name}: {self.type})"

    def configure(self, find_parser: ParserLookup) -> bool:
        """Resolve the field type; returns False when it stays unresolved."""
        self.parser = find_parser(self.type)
        return self.parser is not NONE_PARSER

    @property
    def resolved(self) -> bool:
        return self.parser is not NONE_PARSER

    def annotation(self, term: str) -> Optional[Dict[str, Any]]:
        return next((a for a in self.annotations if a.get("type") == term), None)

    def resolve(self, attrs: Any) -> Any:
        """Look the value up in ``attrs`` following ``ref`` (or the wire/field name)."""
        path = self.ref or self.field or self.name
        value = attrs
        for part in _PATH_SEP.split(path):
            if not isinstance(value, dict) or part not in value:
                return None
            value = value[part]
        return value

    def is_navigation(self) -> bool:
        return self.navigation

    def is_structured(self) -> bool:
        return isinstance(self.parser, StructuredTypeParser)

    def is_complex_type(self) -> bool:
        return isinstance(self.parser, StructuredTypeParser) and self.parser.is_complex_type()

    # ---------------- polymorphic dispatch ----------------

    @staticmethod
    def _dispatch(parser: "StructuredTypeParser", value: Any, options: ParserOptions) -> Parser:
        type_name = options.helper.type(value)
        if type_name is not None:
            return parser.find_parser(type_name) or parser
        return parser

    def deserialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        if value is None:
            return None
        parser = self.parser
        if isinstance(parser, StructuredTypeParser):
            if isinstance(value, list):
                return [self._dispatch(parser, v, options).deserialize(v, options) for v in value]
            return self._dispatch(parser, value, options).deserialize(value, options)
        return parser.deserialize(value, options.with_field(self))

    def serialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        if value is None:
            return None
        parser = self.parser
        if isinstance(parser, StructuredTypeParser):
            if isinstance(value, list):
                return [self._dispatch(parser, v, options).serialize(v, options) for v in value]
            return self._dispatch(parser, value, options).serialize(value, options)
        return parser.serialize(value, options.with_field(self))

    def literal(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        return self.parser.literal(value, options.with_field(self))

    # ---------------- json schema ----------------

    def to_json_schema(self, select=None, expand=None) -> Dict[str, Any]:
        parser = self.parser
        if isinstance(parser, StructuredTypeParser):
            prop = parser.to_json_schema(select=select, expand=expand, root=False)
        elif hasattr(parser, "to_json_schema"):
            prop = dict(parser.to_json_schema())
            prop.setdefault("title", f"The {self.name} field")
        else:
            prop = {"title": f"The {self.name} field", "type": "object"}
        if self.max_length:
            prop["maxLength"] = self.max_length
        if self.default is not None:
            prop["default"] = self.default
        if self.collection:
            prop = {"type": "array", "items": prop, "additionalItems": False}
        return prop


class StructuredTypeParser(Parser):
    """
    Parser for an entity or complex type.

    Parameters
    ----------
    config : StructuredTypeConfig
        Declared type
    namespace : str
        Owning schema namespace
    hierarchy : TypeHierarchy
        Registry-owned inheritance index, used to reach parent and children
    parsers : dict
        Registry-owned index of structured parsers by qualified type id
    alias : str, optional
        Schema alias
    """

    def __init__(
        self,
        config: StructuredTypeConfig,
        namespace: str,
        hierarchy: "TypeHierarchy",
        parsers: Dict[str, "StructuredTypeParser"],
        alias: Optional[str] = None,
    ):
        self.name = config.name
        self.base = config.base
        self.namespace = namespace
        self.alias = alias
        self.open = config.open
        self.fields: List[FieldParser] = [FieldParser(n, f) for n, f in config.fields.items()]
        self._hierarchy = hierarchy
        self._parsers = parsers

    def __repr__(self) -> str:
        return f"StructuredTypeParser({self.type})"

    @property
    def type(self) -> str:
        return f"{self.namespace}.{self.name}"

    def is_type_of(self, type_name: str) -> bool:
        names = [self.type]
        if self.alias:
            names.append(f"{self.alias}.{self.name}")
        return type_name in names

    # ---------------- hierarchy ----------------

    @property
    def parent(self) -> Optional["StructuredTypeParser"]:
        parent_id = self._hierarchy.parent(self.type)
        return self._parsers.get(parent_id) if parent_id else None

    @property
    def children(self) -> List["StructuredTypeParser"]:
        return [self._parsers[c] for c in self._hierarchy.children(self.type) if c in self._parsers]

    def find(self, predicate: Callable[["StructuredTypeParser"], bool]) -> Optional["StructuredTypeParser"]:
        """Depth-first search over this parser and its descendants."""
        if predicate(self):
            return self
        for child in self.children:
            found = child.find(predicate)
            if found is not None:
                return found
        return None

    def find_parser(self, type_name: str) -> Optional["StructuredTypeParser"]:
        """Most derived parser (self included) matching ``type_name``."""
        return self.find(lambda p: p.is_type_of(type_name))

    def is_subtype_of(self, type_name: str) -> bool:
        parser: Optional[StructuredTypeParser] = self
        while parser is not None:
            if parser.is_type_of(type_name):
                return True
            parser = parser.parent
        return False

    # ---------------- configuration ----------------

    def configure(self, find_parser: ParserLookup) -> List[FieldParser]:
        """Resolve every declared field; returns the ones left unresolved."""
        return [f for f in self.fields if not f.configure(find_parser)]

    # ---------------- fields & keys ----------------

    def all_fields(self, include_parents: bool = True, include_navigation: bool = True) -> List[FieldParser]:
        """Fields, inherited first in declaration order."""
        own = [f for f in self.fields if include_navigation or not f.navigation]
        parent = self.parent
        if include_parents and parent is not None:
            return parent.all_fields(include_parents, include_navigation) + own
        return own

    def field(self, name: str) -> Optional[FieldParser]:
        found = next((f for f in self.fields if f.name == name), None)
        if found is None and self.parent is not None:
            return self.parent.field(name)
        return found

    def type_for(self, name: str) -> Optional[str]:
        field = self.field(name)
        return field.type if field is not None else None

    def keys(self) -> List[FieldParser]:
        parent = self.parent
        inherited = parent.keys() if parent is not None else []
        return inherited + [f for f in self.fields if f.key]

    def resolve_key(self, attrs: Any) -> Any:
        """
        Entity key from an arbitrary attribute bag.

        Returns
        -------
        scalar, dict or None
            The value itself for a single key field, a ``{name: value}``
            mapping for a complete composite key, ``None`` otherwise.
        """
        if not isinstance(attrs, dict):
            return None
        key = {f.name: f.resolve(attrs) for f in self.keys()}
        values = list(key.values())
        if len(values) == 1:
            resolved: Any = values[0]
        elif any(v is None for v in values):
            resolved = None
        else:
            resolved = key
        return None if is_empty(resolved) else resolved

    def is_complex_type(self) -> bool:
        return len(self.keys()) == 0

    def defaults(self) -> Dict[str, Any]:
        return {f.name: f.default for f in self.all_fields() if f.default is not None}

    # ---------------- transforms ----------------

    def _overlay(self, value: Dict[str, Any], transform: Callable[[FieldParser, Any], Any]) -> Dict[str, Any]:
        result = dict(value)
        for f in self.fields:
            if value.get(f.name) is not None:
                result[f.name] = transform(f, value[f.name])
        return result

    def deserialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        if not isinstance(value, dict):
            if isinstance(value, list):
                return [self.deserialize(v, options) for v in value]
            return value
        parent = self.parent
        if parent is not None:
            value = parent.deserialize(value, options)
        return self._overlay(value, lambda f, v: f.deserialize(v, options))

    def serialize(self, value: Any, options: ParserOptions = DEFAULT_OPTIONS) -> Any:
        if not isinstance(value, dict):
            if isinstance(value, list):
                return [self.serialize(v, options) for v in value]
            return value
        parent = self.parent
        if parent is not None:
            value = parent.serialize(value, options)
        return self._overlay(value, lambda f, v: f.serialize(v, options))

    # ---------------- json schema ----------------

    def to_json_schema(self, select=None, expand=None, root: bool = True) -> Dict[str, Any]:
        """
        Draft-07 style JSON schema for this type.

        Navigation fields are excluded unless named in ``expand``. ``expand``
        may be a list of names or a mapping of name -> nested options with
        their own ``select``/``expand``.
        """
        if isinstance(expand, (list, tuple, set)):
            expand = {name: {} for name in expand}
        expand = expand or {}
        properties: Dict[str, Any] = {}
        fields = [
            f for f in self.all_fields()
            if (not f.navigation or f.name in expand) and (not select or f.name in select)
        ]
        for f in fields:
            nested = expand.get(f.name) or {}
            properties[f.name] = f.to_json_schema(select=nested.get("select"), expand=nested.get("expand"))
        schema: Dict[str, Any] = {
            "title": f"The {self.name} schema",
            "type": "object",
            "description": f"The {self.name} configuration",
            "properties": properties,
            "required": [f.name for f in fields if not f.nullable],
        }
        if root:
            schema = {"$schema": "http://json-schema.org/draft-07/schema#", **schema}
        return schema
