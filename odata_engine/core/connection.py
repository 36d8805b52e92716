"""
odata_engine.core.connection - High-level connection management
===============================================================

Provides a ConnectionContext that wires environment-based credentials, a
``RequestsTransport`` and an ``ODataApi`` together.
"""

from __future__ import annotations

import os
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

from odata_engine.core.config import SchemaConfig
from odata_engine.core.errors import ODataConfigurationError
from odata_engine.core.session import ODataAuth, RequestsTransport, SessionConfig

if TYPE_CHECKING:
    from odata_engine.api import ODataApi


class ConnectionContext:
    """
    High-level connection manager for an OData service.

    Supports environment variable configuration and context manager usage.

    Parameters
    ----------
    service_root : str, optional
        Service root URL. Falls back to ODATA_SERVICE_ROOT env var.
    user : str, optional
        Username for basic auth. Falls back to ODATA_USER env var.
    password : str, optional
        Password for basic auth. Falls back to ODATA_PASS env var.
    bearer_token : str, optional
        Bearer token for OAuth. Falls back to ODATA_BEARER_TOKEN env var.
    verify : bool, optional
        SSL verification. Falls back to ODATA_VERIFY_TLS env var.
    timeout : float
        Request timeout in seconds.
    version : str
        OData protocol version of the service.

    Credentials are optional: without them the service is accessed
    anonymously.

    Examples
    --------
    >>> # Using explicit credentials
    >>> conn = ConnectionContext(
    ...     service_root="https://services.example.com/TripPin/",
    ...     user="USER",
    ...     password="PASS",
    ... )

    >>> # Using environment variables
    >>> conn = ConnectionContext()  # reads from ODATA_* env vars

    >>> # As context manager
    >>> with ConnectionContext() as conn:
    ...     api = conn.get_api(schemas=[schema])
    ...     people = await api.entity_set("People").top(10).fetch()
    """

    def __init__(
        self,
        service_root: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        bearer_token: Optional[str] = None,
        verify: Optional[bool] = None,
        timeout: float = 60.0,
        version: str = "4.0",
    ) -> None:
        # Resolve from environment if not provided
        self._service_root = (service_root or os.environ.get("ODATA_SERVICE_ROOT", "")).rstrip("/") + "/"
        self._user = user or os.environ.get("ODATA_USER", "")
        self._password = password or os.environ.get("ODATA_PASS", "")
        self._bearer_token = bearer_token or os.environ.get("ODATA_BEARER_TOKEN", "")

        if verify is not None:
            self._verify = verify
        else:
            self._verify = os.environ.get("ODATA_VERIFY_TLS", "true").lower() != "false"

        self._timeout = timeout
        self._version = version

        if not self._service_root or self._service_root == "/":
            raise ODataConfigurationError(
                "Missing service_root. Set ODATA_SERVICE_ROOT environment variable "
                "or pass service_root parameter."
            )

        if self._user and not self._password:
            raise ODataConfigurationError(
                "Missing credentials. Set ODATA_PASS together with ODATA_USER, "
                "or pass both user and password."
            )

        self._transport: Optional[RequestsTransport] = None
        self._apis: Dict[str, "ODataApi"] = {}

    @property
    def transport(self) -> RequestsTransport:
        """Get or create the underlying transport."""
        if self._transport is None:
            self._transport = self._build_transport()
        return self._transport

    def _build_auth(self) -> Optional[ODataAuth]:
        if self._bearer_token:
            return ODataAuth("bearer", self._bearer_token)
        if self._user:
            return ODataAuth("basic", (self._user, self._password))
        return None

    def _build_transport(self) -> RequestsTransport:
        cfg = SessionConfig(
            auth=self._build_auth(),
            verify=self._verify,
            timeout=self._timeout,
        )
        return RequestsTransport(cfg)

    def close(self) -> None:
        """Close the connection."""
        if self._transport is not None:
            self._transport.close()
            self._transport = None
        self._apis.clear()

    def __enter__(self) -> "ConnectionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def get_api(
        self,
        schemas: Optional[List[Union[SchemaConfig, Dict[str, Any]]]] = None,
        *,
        name: Optional[str] = None,
        strict: bool = False,
        **config: Any,
    ) -> "ODataApi":
        """
        Get a configured ``ODataApi`` for this service.

        Parameters
        ----------
        schemas : list, optional
            Schema definitions (dicts or ``SchemaConfig``); see
            ``ODataMetadata`` for importing them from ``$metadata``
        name : str, optional
            API name; instances are cached per name
        strict : bool
            Fail on unresolved type references
        **config
            Further ``ApiConfig`` fields (headers, params, ...)

        Returns
        -------
        ODataApi
            Configured API using this context's transport
        """
        # Import here to avoid circular imports
        from odata_engine.api import ODataApi

        key = name or self._service_root
        if key not in self._apis:
            api = ODataApi(
                {
                    "service_root_url": self._service_root,
                    "name": name,
                    "version": self._version,
                    "schemas": schemas or [],
                    **config,
                },
                transport=self.transport,
            )
            self._apis[key] = api.configure(strict=strict)
        return self._apis[key]

    @property
    def service_root(self) -> str:
        """The configured service root URL."""
        return self._service_root

    @property
    def verify(self) -> bool:
        """Whether TLS certificates are verified."""
        return self._verify
