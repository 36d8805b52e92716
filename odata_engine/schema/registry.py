"""
odata_engine.schema.registry - Type registry
=============================================

Holds every registered schema and resolves qualified type names to their
definitions and parsers.

Building the registry is two-phase: ``register_schema`` only indexes
definitions (forward references are allowed), ``configure`` links the
inheritance hierarchy and resolves every field type once all types are known.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Union

from odata_engine.constants import EDM_PREFIX
from odata_engine.core.config import SchemaConfig
from odata_engine.core.errors import ODataConfigurationError
from odata_engine.parsers.base import NONE_PARSER, Parser
from odata_engine.parsers.edm import EDM_PARSERS
from odata_engine.parsers.hierarchy import TypeHierarchy
from odata_engine.parsers.structured_type import StructuredTypeParser
from odata_engine.schema.callable import ODataCallable
from odata_engine.schema.entity_container import ODataEntitySet
from odata_engine.schema.enum_type import ODataEnumType
from odata_engine.schema.schema import ODataSchema
from odata_engine.schema.structured_type import ODataStructuredType

logger = logging.getLogger("odata_engine.schema")


@dataclass(frozen=True)
class UnresolvedReference:
    """
    A type reference that could not be resolved during ``configure``.

    Attributes
    ----------
    owner : str
        Qualified name of the type or callable holding the reference
    member : str
        Field/parameter name, ``"base"`` or ``"return"``
    type_name : str
        The type name that did not resolve
    """
    owner: str
    member: str
    type_name: str


def strip_collection(type_name: str) -> str:
    """``Collection(Ns.T)`` -> ``Ns.T``."""
    text = type_name.strip()
    if text.startswith("Collection(") and text.endswith(")"):
        return text[len("Collection("):-1]
    return text


class SchemaRegistry:
    """
    Registry of schemas keyed by namespace.

    Parameters
    ----------
    parsers : dict, optional
        Primitive parsers by type name; defaults to the built-in EDM parsers.
        Entries here take priority over every schema lookup.

    Examples
    --------
    >>> registry = SchemaRegistry()
    >>> registry.register_schema({"namespace": "Acme", "entities": [...]})
    >>> registry.configure()
    >>> registry.find_parser_for_type("Acme.Person")
    StructuredTypeParser(Acme.Person)
    """

    def __init__(self, parsers: Optional[Mapping[str, Parser]] = None) -> None:
        self.parsers: Dict[str, Parser] = dict(EDM_PARSERS)
        if parsers:
            self.parsers.update(parsers)
        self.schemas: List[ODataSchema] = []
        self.hierarchy = TypeHierarchy()
        self.structured_parsers: Dict[str, StructuredTypeParser] = {}
        self.unresolved: List[UnresolvedReference] = []
        self.configured = False

    def __repr__(self) -> str:
        return f"SchemaRegistry({', '.join(s.namespace for s in self.schemas)})"

    # ---------------- registration ----------------

    def register_schema(self, definition: Union[SchemaConfig, Dict[str, Any]]) -> ODataSchema:
        """
        Index a schema definition.

        Unresolved references are tolerated until ``configure``.

        Raises
        ------
        ODataConfigurationError
            If a schema with the same namespace is already registered.
        """
        config = definition if isinstance(definition, SchemaConfig) else SchemaConfig.model_validate(definition)
        if any(s.namespace == config.namespace for s in self.schemas):
            raise ODataConfigurationError(f"Namespace '{config.namespace}' is already registered")
        schema = ODataSchema(config, self)
        self.schemas.append(schema)
        self.configured = False
        return schema

    # ---------------- configuration ----------------

    def _unresolved(self, owner: str, member: str, type_name: str) -> None:
        ref = UnresolvedReference(owner, member, type_name)
        self.unresolved.append(ref)
        logger.warning(f"Unresolved type reference {type_name!r} on {owner}.{member}")

    def configure(self, strict: bool = False) -> "SchemaRegistry":
        """
        Link inheritance and resolve all field, parameter and return types.

        Parameters
        ----------
        strict : bool
            Raise instead of degrading when a reference stays unresolved.

        Raises
        ------
        ODataConfigurationError
            On inheritance cycles, or on any unresolved reference when
            ``strict`` is set.
        """
        self.hierarchy.clear()
        self.structured_parsers.clear()
        self.unresolved = []

        entities = [e for s in self.schemas for e in s.entities]
        for entity in entities:
            self.structured_parsers[entity.type] = entity.parser
            self.hierarchy.add(entity.type)

        for entity in entities:
            if not entity.base:
                continue
            parent = self.find_structured_type_for_type(entity.base)
            if parent is None:
                self._unresolved(entity.type, "base", entity.base)
                continue
            self.hierarchy.link(entity.type, parent.type)

        for entity in entities:
            for f in entity.parser.configure(self.find_parser_for_type):
                self._unresolved(entity.type, f.name, f.type)

        for callable_ in self.callables:
            for f in callable_.parser.configure(self.find_parser_for_type):
                self._unresolved(callable_.type, f.name, f.type)

        if strict and self.unresolved:
            names = ", ".join(sorted({r.type_name for r in self.unresolved}))
            raise ODataConfigurationError(f"Unresolved type references: {names}")

        self.configured = True
        logger.info(
            f"Configured {len(self.schemas)} schema(s): {len(entities)} structured types, "
            f"{len(self.enums)} enums, {len(self.callables)} callables, "
            f"{len(self.unresolved)} unresolved reference(s)"
        )
        return self

    # ---------------- find for type ----------------

    def find_schema_for_type(self, type_name: str) -> Optional[ODataSchema]:
        """
        Schema whose namespace (or alias) prefixes ``type_name``.

        When several match, the longest namespace wins, so ``A.B.Widget``
        resolves to ``A.B`` rather than ``A``.
        """
        type_name = strip_collection(type_name)
        matches = [s for s in self.schemas if s.is_namespace_of(type_name)]
        if not matches:
            return None
        return max(matches, key=lambda s: s.namespace_length(type_name))

    def find_enum_type_for_type(self, type_name: str) -> Optional[ODataEnumType]:
        schema = self.find_schema_for_type(type_name)
        return schema.find_enum_type_for_type(strip_collection(type_name)) if schema else None

    def find_structured_type_for_type(self, type_name: str) -> Optional[ODataStructuredType]:
        schema = self.find_schema_for_type(type_name)
        return schema.find_structured_type_for_type(strip_collection(type_name)) if schema else None

    def find_callable_for_type(self, type_name: str) -> Optional[ODataCallable]:
        schema = self.find_schema_for_type(type_name)
        return schema.find_callable_for_type(strip_collection(type_name)) if schema else None

    def find_entity_set_for_type(self, type_name: str) -> Optional[ODataEntitySet]:
        schema = self.find_schema_for_type(type_name)
        return schema.find_entity_set_for_type(type_name) if schema else None

    def find_entity_set_for_entity_type(self, entity_type: str) -> Optional[ODataEntitySet]:
        """First entity set whose members are of ``entity_type``."""
        return next((es for es in self.entity_sets if es.is_entity_set_of(entity_type)), None)

    def find_parser_for_type(self, type_name: str) -> Parser:
        """
        Parser for a qualified type name.

        Primitive ``Edm.*`` names resolve to built-in parsers; otherwise enum,
        structured and callable parsers are tried in that order. A miss
        returns ``NONE_PARSER`` rather than raising.
        """
        type_name = strip_collection(type_name)
        if type_name in self.parsers:
            return self.parsers[type_name]
        if type_name.startswith(EDM_PREFIX):
            return NONE_PARSER
        found = (
            self.find_enum_type_for_type(type_name)
            or self.find_structured_type_for_type(type_name)
            or self.find_callable_for_type(type_name)
        )
        if found is None:
            logger.debug(f"No parser for type {type_name!r}")
            return NONE_PARSER
        return found.parser

    # ---------------- find by name ----------------

    @property
    def enums(self) -> List[ODataEnumType]:
        return [e for s in self.schemas for e in s.enums]

    @property
    def entities(self) -> List[ODataStructuredType]:
        return [e for s in self.schemas for e in s.entities]

    @property
    def callables(self) -> List[ODataCallable]:
        return [c for s in self.schemas for c in s.callables]

    @property
    def entity_sets(self) -> List[ODataEntitySet]:
        return [es for s in self.schemas for es in s.entity_sets]

    def find_enum_type_by_name(self, name: str) -> Optional[ODataEnumType]:
        return next((e for e in self.enums if e.name == name), None)

    def find_structured_type_by_name(self, name: str) -> Optional[ODataStructuredType]:
        return next((e for e in self.entities if e.name == name), None)

    def find_callable_by_name(self, name: str) -> Optional[ODataCallable]:
        return next((c for c in self.callables if c.name == name), None)

    def find_entity_set_by_name(self, name: str) -> Optional[ODataEntitySet]:
        return next((es for es in self.entity_sets if es.name == name), None)
