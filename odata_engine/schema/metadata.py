"""
odata_engine.schema.metadata - CSDL $metadata import
=====================================================

Parses OData v2/v4 ``$metadata`` (EDMX/CSDL XML) into schema configuration
that can be fed to the registry.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
import xml.etree.ElementTree as ET

from odata_engine.core.config import (
    CallableConfig,
    EntityContainerConfig,
    EntitySetConfig,
    EnumTypeConfig,
    FieldConfig,
    ReturnTypeConfig,
    SchemaConfig,
    StructuredTypeConfig,
)
from odata_engine.core.errors import ODataConfigurationError


@dataclass
class EntitySetInfo:
    """
    Information about an OData entity set.

    Attributes
    ----------
    name : str
        Entity set name (e.g., "People")
    entity_type : str
        Full entity type name including namespace
    properties : list of str
        Property names available on this entity set, inherited ones included
    """
    name: str
    entity_type: str
    properties: List[str]


def _strip_ns(tag: str) -> str:
    """Strip XML namespace from a tag name."""
    return tag.split("}", 1)[-1] if "}" in tag else tag


def _attr(node: ET.Element, name: str) -> Optional[str]:
    """Attribute lookup ignoring XML namespaces (m:HttpMethod etc.)."""
    if name in node.attrib:
        return node.attrib[name]
    for key, value in node.attrib.items():
        if _strip_ns(key) == name:
            return value
    return None


def _children(node: ET.Element, tag: str) -> List[ET.Element]:
    return [c for c in node if _strip_ns(c.tag) == tag]


def _split_type(type_name: str) -> Tuple[str, bool]:
    if type_name.startswith("Collection(") and type_name.endswith(")"):
        return type_name[len("Collection("):-1], True
    return type_name, False


def _int(value: Optional[str]) -> Optional[int]:
    if value is None or not value.strip().isdigit():
        return None
    return int(value)


class ODataMetadata:
    """
    Parsed ``$metadata`` document.

    Parameters
    ----------
    xml_text : str
        EDMX document text

    Examples
    --------
    >>> meta = ODataMetadata(xml_text)
    >>> meta.entity_sets()
    ['Airlines', 'People']
    >>> registry.register_schema(meta.schemas[0])
    """

    def __init__(self, xml_text: str):
        try:
            self._root = ET.fromstring(xml_text)
        except ET.ParseError as exc:
            raise ODataConfigurationError(f"Invalid $metadata document: {exc}") from exc
        self.version = _attr(self._root, "Version") or "4.0"
        if self.version == "1.0":
            # v2/v3 services carry the protocol version on DataServices
            services = next((n for n in self._root if _strip_ns(n.tag) == "DataServices"), None)
            self.version = (_attr(services, "DataServiceVersion") if services is not None else None) or "2.0"
        self._associations: Dict[str, Dict[str, Tuple[str, bool]]] = {}
        self.schemas: List[SchemaConfig] = [self._parse_schema(s) for s in self._root.iter() if _strip_ns(s.tag) == "Schema"]
        self._entity_sets: Dict[str, EntitySetInfo] = self._collect_entity_sets()

    # ---------------- parsing ----------------

    def _parse_schema(self, node: ET.Element) -> SchemaConfig:
        namespace = _attr(node, "Namespace") or ""
        self._collect_associations(node, namespace)
        entities = [self._parse_structured(n, namespace) for n in node if _strip_ns(n.tag) in ("EntityType", "ComplexType")]
        enums = [self._parse_enum(n) for n in _children(node, "EnumType")]
        callables = [self._parse_callable(n) for n in node if _strip_ns(n.tag) in ("Function", "Action")]
        containers = []
        for container in _children(node, "EntityContainer"):
            config, imports = self._parse_container(container, namespace)
            containers.append(config)
            callables.extend(imports)
        return SchemaConfig(
            namespace=namespace,
            alias=_attr(node, "Alias"),
            enums=enums,
            entities=entities,
            callables=callables,
            containers=containers,
        )

    def _collect_associations(self, node: ET.Element, namespace: str) -> None:
        # v2: Association name -> role -> (type, many)
        for assoc in _children(node, "Association"):
            ends = {}
            for end in _children(assoc, "End"):
                ends[_attr(end, "Role") or ""] = (_attr(end, "Type") or "", _attr(end, "Multiplicity") == "*")
            self._associations[f"{namespace}.{_attr(assoc, 'Name')}"] = ends

    def _parse_field(self, node: ET.Element, keys: List[str]) -> FieldConfig:
        type_name, collection = _split_type(_attr(node, "Type") or "")
        return FieldConfig(
            type=type_name,
            collection=collection,
            nullable=_attr(node, "Nullable") != "false",
            key=_attr(node, "Name") in keys,
            default=_attr(node, "DefaultValue"),
            max_length=_int(_attr(node, "MaxLength")),
            precision=_int(_attr(node, "Precision")),
            scale=_int(_attr(node, "Scale")),
        )

    def _parse_navigation(self, node: ET.Element) -> FieldConfig:
        type_attr = _attr(node, "Type")
        if type_attr is not None:
            type_name, collection = _split_type(type_attr)
        else:
            ends = self._associations.get(_attr(node, "Relationship") or "", {})
            type_name, collection = ends.get(_attr(node, "ToRole") or "", ("", False))
        return FieldConfig(
            type=type_name,
            collection=collection,
            nullable=_attr(node, "Nullable") != "false",
            navigation=True,
        )

    def _parse_structured(self, node: ET.Element, namespace: str) -> StructuredTypeConfig:
        keys = [_attr(ref, "Name") or "" for key in _children(node, "Key") for ref in _children(key, "PropertyRef")]
        fields: Dict[str, FieldConfig] = {}
        for child in node:
            tag = _strip_ns(child.tag)
            name = _attr(child, "Name")
            if not name:
                continue
            if tag == "Property":
                fields[name] = self._parse_field(child, keys)
            elif tag == "NavigationProperty":
                fields[name] = self._parse_navigation(child)
        return StructuredTypeConfig(
            name=_attr(node, "Name") or "",
            base=_attr(node, "BaseType"),
            open=_attr(node, "OpenType") == "true",
            fields=fields,
        )

    def _parse_enum(self, node: ET.Element) -> EnumTypeConfig:
        members: Dict[str, int] = {}
        for index, member in enumerate(_children(node, "Member")):
            value = _attr(member, "Value")
            members[_attr(member, "Name") or ""] = int(value) if value is not None else index
        return EnumTypeConfig(name=_attr(node, "Name") or "", members=members, flags=_attr(node, "IsFlags") == "true")

    def _parse_return(self, node: ET.Element) -> Optional[ReturnTypeConfig]:
        returns = _children(node, "ReturnType")
        type_attr = _attr(returns[0], "Type") if returns else _attr(node, "ReturnType")
        if not type_attr:
            return None
        type_name, collection = _split_type(type_attr)
        return ReturnTypeConfig(type=type_name, collection=collection)

    def _parse_callable(self, node: ET.Element) -> CallableConfig:
        parameters = {
            _attr(p, "Name") or "": self._parse_field(p, [])
            for p in _children(node, "Parameter")
        }
        return CallableConfig(
            name=_attr(node, "Name") or "",
            kind="action" if _strip_ns(node.tag) == "Action" else "function",
            bound=_attr(node, "IsBound") == "true",
            composable=_attr(node, "IsComposable") == "true",
            parameters=parameters,
            return_type=self._parse_return(node),
        )

    def _parse_container(self, node: ET.Element, namespace: str) -> Tuple[EntityContainerConfig, List[CallableConfig]]:
        entity_sets: List[EntitySetConfig] = []
        imports: List[CallableConfig] = []
        for child in node:
            tag = _strip_ns(child.tag)
            if tag in ("EntitySet", "Singleton"):
                bindings = {
                    _attr(b, "Path") or "": _attr(b, "Target") or ""
                    for b in _children(child, "NavigationPropertyBinding")
                }
                entity_type = _attr(child, "EntityType") or _attr(child, "Type") or ""
                if entity_type and "." not in entity_type:
                    entity_type = f"{namespace}.{entity_type}"
                entity_sets.append(EntitySetConfig(
                    name=_attr(child, "Name") or "",
                    entity_type=entity_type,
                    singleton=tag == "Singleton",
                    navigation_property_bindings=bindings,
                ))
            elif tag == "FunctionImport" and _attr(child, "Function") is None:
                # v2 function imports declare parameters inline
                config = self._parse_callable(child)
                method = (_attr(child, "HttpMethod") or "GET").upper()
                imports.append(config.model_copy(update={"kind": "function" if method == "GET" else "action"}))
        return EntityContainerConfig(name=_attr(node, "Name") or "", entity_sets=entity_sets), imports

    # ---------------- discovery ----------------

    def _structured(self, type_name: str) -> Optional[Tuple[SchemaConfig, StructuredTypeConfig]]:
        for schema in self.schemas:
            for entity in schema.entities:
                if type_name in (f"{schema.namespace}.{entity.name}", f"{schema.alias}.{entity.name}", entity.name):
                    return schema, entity
        return None

    def _properties(self, type_name: str) -> List[str]:
        found = self._structured(type_name)
        if found is None:
            return []
        _, entity = found
        inherited = self._properties(entity.base) if entity.base else []
        return inherited + [n for n, f in entity.fields.items() if not f.navigation]

    def _collect_entity_sets(self) -> Dict[str, EntitySetInfo]:
        out: Dict[str, EntitySetInfo] = {}
        for schema in self.schemas:
            for container in schema.containers:
                for es in container.entity_sets:
                    out[es.name] = EntitySetInfo(es.name, es.entity_type, self._properties(es.entity_type))
        return out

    def entity_sets(self) -> List[str]:
        """
        Get list of entity set names in the service.

        Returns
        -------
        list of str
            Sorted list of entity set (and singleton) names
        """
        return sorted(self._entity_sets.keys())

    def properties(self, entity_set: str) -> List[str]:
        """Non-navigation property names for an entity set."""
        info = self._entity_sets.get(entity_set)
        return list(info.properties) if info else []

    def validate_select(self, entity_set: str, fields: List[str]) -> Tuple[List[str], List[str]]:
        """
        Validate fields against entity set metadata.

        Returns
        -------
        tuple of (list, list)
            (valid_fields, unknown_fields)
        """
        props = set(self.properties(entity_set))
        valid, unknown = [], []
        for f in fields:
            (valid if f in props else unknown).append(f)
        return valid, unknown

    def get_entity_set_info(self, entity_set: str) -> Optional[EntitySetInfo]:
        return self._entity_sets.get(entity_set)
