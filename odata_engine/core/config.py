"""
odata_engine.core.config - Declarative service configuration
=============================================================

Pydantic models for the per-service configuration document. Keys may be
given in camelCase (as found in JSON service descriptions) or snake_case.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from odata_engine.constants import DEFAULT_CACHE_MAX_AGE, DEFAULT_VERSION


class _ConfigModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FieldConfig(_ConfigModel):
    """Definition of a structured type field or callable parameter."""

    type: str
    collection: bool = False
    nullable: bool = True
    key: bool = False
    navigation: bool = False
    default: Any = None
    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    field: Optional[str] = Field(
        default=None,
        description="Wire name of the value when it differs from the field name",
    )
    ref: Optional[str] = Field(
        default=None,
        description="Path ('a/b' or 'a.b') used to resolve the value from a payload",
    )
    annotations: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("type")
    @classmethod
    def _strip_type(cls, value: str) -> str:
        return value.strip()


class EnumTypeConfig(_ConfigModel):
    """Enumeration type: member name -> numeric value."""

    name: str
    members: Dict[str, int]
    flags: bool = Field(default=False, alias="isFlags")


class StructuredTypeConfig(_ConfigModel):
    """Entity or complex type."""

    name: str
    base: Optional[str] = None
    open: bool = False
    fields: Dict[str, FieldConfig] = Field(default_factory=dict)
    annotations: List[Dict[str, Any]] = Field(default_factory=list)


class ReturnTypeConfig(_ConfigModel):
    type: str
    collection: bool = False
    nullable: bool = True


class CallableConfig(_ConfigModel):
    """Action or function definition."""

    name: str
    kind: Literal["action", "function"] = "function"
    bound: bool = False
    composable: bool = False
    path: Optional[str] = None
    parameters: Dict[str, FieldConfig] = Field(default_factory=dict)
    return_type: Optional[ReturnTypeConfig] = None


class EntitySetConfig(_ConfigModel):
    """Entity set or singleton exposed by a container."""

    name: str
    entity_type: str
    singleton: bool = False
    navigation_property_bindings: Dict[str, str] = Field(default_factory=dict)


class EntityContainerConfig(_ConfigModel):
    name: str
    entity_sets: List[EntitySetConfig] = Field(default_factory=list)


class SchemaConfig(_ConfigModel):
    """Everything declared under one namespace."""

    namespace: str
    alias: Optional[str] = None
    enums: List[EnumTypeConfig] = Field(default_factory=list)
    entities: List[StructuredTypeConfig] = Field(default_factory=list)
    callables: List[CallableConfig] = Field(default_factory=list)
    containers: List[EntityContainerConfig] = Field(default_factory=list)


class ApiConfig(_ConfigModel):
    """
    Top level service configuration.

    Examples
    --------
    >>> cfg = ApiConfig.model_validate({
    ...     "serviceRootUrl": "https://services.example.com/TripPin/",
    ...     "schemas": [{"namespace": "Acme", "entities": [...]}],
    ... })
    """

    service_root_url: str
    name: Optional[str] = None
    version: Literal["2.0", "3.0", "4.0", "4.01"] = DEFAULT_VERSION
    default: bool = False
    params: Dict[str, Union[str, List[str]]] = Field(default_factory=dict)
    headers: Dict[str, str] = Field(default_factory=dict)
    string_as_enum: bool = False
    ieee754_compatible: bool = False
    cache_max_age: float = DEFAULT_CACHE_MAX_AGE
    schemas: List[SchemaConfig] = Field(default_factory=list)
