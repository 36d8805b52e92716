"""
odata_engine.core - Configuration, errors and connectivity
==========================================================

- ApiConfig / SchemaConfig: pydantic models for the service description
- ODataError hierarchy: configuration, identity and upstream errors
- ODataAuth / SessionConfig / RequestsTransport: requests-based transport
- ConnectionContext: environment-driven connection manager

"""

from odata_engine.core.errors import (
    ODataError,
    ODataConfigurationError,
    ODataIdentityError,
    ODataUpstreamError,
)

from odata_engine.core.config import (
    ApiConfig,
    SchemaConfig,
    EnumTypeConfig,
    StructuredTypeConfig,
    FieldConfig,
    CallableConfig,
    ReturnTypeConfig,
    EntityContainerConfig,
    EntitySetConfig,
)

from odata_engine.core.session import ODataAuth, SessionConfig, RequestsTransport

from odata_engine.core.connection import ConnectionContext

__all__ = [
    "ODataError",
    "ODataConfigurationError",
    "ODataIdentityError",
    "ODataUpstreamError",
    "ApiConfig",
    "SchemaConfig",
    "EnumTypeConfig",
    "StructuredTypeConfig",
    "FieldConfig",
    "CallableConfig",
    "ReturnTypeConfig",
    "EntityContainerConfig",
    "EntitySetConfig",
    "ODataAuth",
    "SessionConfig",
    "RequestsTransport",
    "ConnectionContext",
]
