"""
odata_engine.core.errors - Exception hierarchy
===============================================

Configuration and identity errors are programmer errors and fail early;
upstream errors carry the HTTP details returned by the service.
"""

from __future__ import annotations

from typing import Any, Dict, Optional


class ODataError(Exception):
    """Base class for all odata_engine errors."""


class ODataConfigurationError(ODataError, ValueError):
    """
    Raised when the service description is malformed or contradictory.

    Examples include a service root URL carrying a query string, two schemas
    registered under the same namespace, or an inheritance cycle.
    """


class ODataIdentityError(ODataError, LookupError):
    """
    Raised when an operation needs an entity key that cannot be resolved.

    Always raised before any request reaches the transport.
    """

    def __init__(self, message: str, path: Optional[str] = None):
        super().__init__(message)
        self.path = path


class ODataUpstreamError(ODataError, RuntimeError):
    """
    Exception raised when the OData service returns an error.

    Attributes
    ----------
    status : int
        HTTP status code
    body : str
        Response body (truncated for display)
    url : str
        The URL that was called
    headers : dict
        Response headers
    """

    def __init__(
        self,
        status: int,
        body: str,
        url: str,
        headers: Optional[Dict[str, str]] = None
    ):
        snippet = (body or "")[:1200]
        super().__init__(f"OData upstream error {status} for {url}: {snippet}")
        self.status = status
        self.body = body or ""
        self.url = url
        self.headers = headers or {}


def describe_error_body(data: Any, fallback: str = "") -> str:
    """
    Condense an OData JSON error payload to a one-line description.

    Understands the v4 ``{"error": {...}}`` shape and the v2 variant where
    ``message`` is an object with a ``value``. Anything else yields
    ``fallback``.

    Examples
    --------
    >>> describe_error_body({"error": {"code": "E1", "message": "Bad key"}})
    'code=E1 | message=Bad key'
    """
    if not isinstance(data, dict):
        return fallback
    err = data.get("error") or data.get("odata.error")
    if not isinstance(err, dict):
        return fallback

    code = err.get("code")
    message = None
    if isinstance(err.get("message"), dict):
        message = err["message"].get("value")
    elif isinstance(err.get("message"), str):
        message = err.get("message")

    inner = err.get("innererror") or err.get("innerError")
    txid = inner.get("transactionid") if isinstance(inner, dict) else None

    parts = []
    if code:
        parts.append(f"code={code}")
    if message:
        parts.append(f"message={message}")
    if txid:
        parts.append(f"txid={txid}")
    return " | ".join(parts) or fallback
