"""
OData client engine (odata_engine)
==================================

Turns a declarative OData service description into type-aware payload
parsers and a composable builder for protocol-correct request URLs.

Usage
-----
>>> from odata_engine import ODataApi, RequestsTransport
>>>
>>> api = ODataApi({
...     "serviceRootUrl": "https://services.example.com/Acme/",
...     "schemas": [acme_schema],
... }, transport=RequestsTransport()).configure()
>>>
>>> people = api.entity_set("People")
>>> people.filter({"Name": {"startswith": "A"}}).top(5).path()
'People'
>>> result = await people.entity(1).get()
>>> result.entity
{'id': 1, 'name': 'Ann'}

Subpackages
-----------
- odata_engine.core: Configuration models, errors, transport, connection
- odata_engine.schema: Type registry and $metadata import
- odata_engine.parsers: EDM, enum, structured and callable parsers
- odata_engine.resources: Path segments, query options, resources
- odata_engine.cache: TTL response caches

"""

__version__ = "0.1.0"

# Core exports - available at package root
from odata_engine.core import (
    ApiConfig,
    ConnectionContext,
    ODataAuth,
    ODataConfigurationError,
    ODataError,
    ODataIdentityError,
    ODataUpstreamError,
    RequestsTransport,
    SchemaConfig,
    SessionConfig,
)

from odata_engine.api import ODataApi
from odata_engine.dispatcher import RequestDispatcher

# Convenience re-exports
from odata_engine.cache import JsonFileBackend, ODataInMemoryCache, ODataStorageCache
from odata_engine.resources import ODataRequest, ODataResponse
from odata_engine.schema import ODataMetadata, SchemaRegistry

__all__ = [
    # Version
    "__version__",
    # Core
    "ApiConfig",
    "SchemaConfig",
    "ConnectionContext",
    "ODataAuth",
    "SessionConfig",
    "RequestsTransport",
    "ODataError",
    "ODataConfigurationError",
    "ODataIdentityError",
    "ODataUpstreamError",
    # Engine
    "ODataApi",
    "RequestDispatcher",
    "SchemaRegistry",
    "ODataMetadata",
    "ODataRequest",
    "ODataResponse",
    # Cache
    "ODataInMemoryCache",
    "ODataStorageCache",
    "JsonFileBackend",
]
