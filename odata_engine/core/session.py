"""
odata_engine.core.session - requests-based transport
====================================================

HTTP transport for ``ODataApi`` built on ``requests``:
- Basic and Bearer token authentication
- Session-level default headers
- JSON request bodies, JSON/text/bytes response decoding
- Async entry point running the blocking call in a worker thread
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Union, TYPE_CHECKING

import requests
from requests import Response, Session
from requests.adapters import HTTPAdapter

from odata_engine.resources.responses import ODataResponse

if TYPE_CHECKING:
    from odata_engine.resources.request import ODataRequest


@dataclass
class ODataAuth:
    """
    Authentication configuration.

    Parameters
    ----------
    kind : str
        Either "basic" or "bearer"
    value : tuple or str
        For basic: (username, password) tuple
        For bearer: access token string

    Examples
    --------
    >>> auth = ODataAuth("basic", ("USER", "PASSWORD"))
    >>> auth = ODataAuth("bearer", "eyJ...")
    """
    kind: str  # "basic" | "bearer"
    value: Union[Tuple[str, str], str]  # (user, pass) or access_token


@dataclass
class SessionConfig:
    """
    HTTP settings for ``RequestsTransport``.

    Parameters
    ----------
    auth : ODataAuth, optional
        Authentication; anonymous when omitted
    timeout : float
        Request timeout in seconds (default: 60.0)
    verify : bool or str
        SSL verification (True, False, or path to CA bundle)
    user_agent : str
        User-Agent header value
    headers : dict
        Extra headers sent with every request
    pool_maxsize : int
        Connections kept per host

    Examples
    --------
    >>> cfg = SessionConfig(auth=ODataAuth("basic", ("USER", "PASS")), timeout=30.0)
    """
    auth: Optional[ODataAuth] = None
    timeout: float = 60.0
    verify: Union[bool, str] = True
    user_agent: str = "odata-engine/0.1"
    headers: Dict[str, str] = field(default_factory=dict)
    pool_maxsize: int = 50


def dump_json(value: Any) -> str:
    """
    Compact JSON encoding that writes ``Decimal`` values as exact numbers.

    Examples
    --------
    >>> dump_json({"price": Decimal("12345678901234567.89")})
    '{"price":12345678901234567.89}'
    """
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise ValueError(f"Cannot encode {value} as a JSON number")
        return str(value)
    if isinstance(value, dict):
        items = (f"{json.dumps(str(k))}:{dump_json(v)}" for k, v in value.items())
        return "{" + ",".join(items) + "}"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(dump_json(v) for v in value) + "]"
    return json.dumps(value, separators=(",", ":"), default=str)


class RequestsTransport:
    """
    Transport callable backed by a ``requests.Session``.

    Calling the transport with an ``ODataRequest`` returns an awaitable
    ``ODataResponse``. Non-success statuses are returned, not raised; the
    dispatcher turns them into ``ODataUpstreamError``.

    Parameters
    ----------
    cfg : SessionConfig, optional
        HTTP settings
    session : requests.Session, optional
        Pre-built session (auth and headers from ``cfg`` are not applied)

    Examples
    --------
    >>> with RequestsTransport(SessionConfig()) as transport:
    ...     api = ODataApi(config, transport=transport).configure()
    """

    def __init__(self, cfg: Optional[SessionConfig] = None, session: Optional[Session] = None) -> None:
        self.cfg = cfg or SessionConfig()
        self.timeout = float(self.cfg.timeout)
        self.verify = self.cfg.verify
        self.logger = logging.getLogger("odata_engine.http")
        self.session = session if session is not None else self._build_session()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        try:
            self.session.close()
        except Exception as exc:
            self.logger.debug(f"Ignoring error while closing session: {exc}")

    def __enter__(self) -> "RequestsTransport":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- auth/session ----------------

    def _build_session(self) -> Session:
        sess = requests.Session()

        auth = self.cfg.auth
        if auth is not None:
            if auth.kind == "basic":
                sess.auth = auth.value  # type: ignore[assignment]
            elif auth.kind == "bearer":
                sess.headers.update({"Authorization": f"Bearer {auth.value}"})
            else:
                raise ValueError("auth.kind must be 'basic' or 'bearer'")

        sess.headers.update({
            "Accept": "application/json",
            "User-Agent": self.cfg.user_agent,
        })
        sess.headers.update(self.cfg.headers)

        adapter = HTTPAdapter(pool_connections=20, pool_maxsize=self.cfg.pool_maxsize)
        sess.mount("https://", adapter)
        sess.mount("http://", adapter)
        return sess

    # ---------------- helpers ----------------

    def _encode_body(self, body: Any) -> Optional[Union[str, bytes]]:
        if body is None or isinstance(body, (str, bytes, bytearray)):
            return body
        return dump_json(body)

    def _decode_body(self, r: Response) -> Any:
        if not r.content:
            return None
        ctype = (r.headers.get("Content-Type") or "").lower()
        if "json" in ctype:
            try:
                return r.json()
            except ValueError:
                return r.text
        if ctype.startswith("text/") or "xml" in ctype or not ctype:
            return r.text
        return r.content

    # ---------------- transport ----------------

    def send(self, request: "ODataRequest") -> ODataResponse:
        """Blocking request; the query string is already encoded in the URL."""
        url = request.url_with_params
        t0 = time.perf_counter()
        r = self.session.request(
            method=request.method,
            url=url,
            headers=request.headers,
            data=self._encode_body(request.body),
            timeout=self.timeout,
            verify=self.verify,
        )
        dt = (time.perf_counter() - t0) * 1000.0
        self.logger.debug("%s %s %s %sms", request.method, url, r.status_code, round(dt, 1))
        return ODataResponse(
            status=r.status_code,
            body=self._decode_body(r),
            headers=dict(r.headers),
            status_text=r.reason or "",
            url=url,
        )

    async def __call__(self, request: "ODataRequest") -> ODataResponse:
        return await asyncio.to_thread(self.send, request)
