"""
odata_engine.resources.responses - Response wrappers
=====================================================

``ODataResponse`` is what every transport returns: status, headers and the
decoded body. Its ``entity``/``entities``/``property`` accessors unwrap the
body for the protocol version in use and run it through the parser of the
resource that was requested.
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, TYPE_CHECKING
from urllib.parse import parse_qs, urlsplit

from odata_engine.parsers.base import DEFAULT_OPTIONS, ParserOptions

if TYPE_CHECKING:
    from odata_engine.resources.request import ODataRequest


@dataclass
class ODataProgressEvent:
    """Non-terminal transport event (upload/download progress)."""
    loaded: int = 0
    total: Optional[int] = None


@dataclass
class ODataEntityMeta:
    etag: Optional[str] = None
    type: Optional[str] = None
    context: Optional[str] = None


@dataclass
class ODataEntitiesMeta:
    count: Optional[int] = None
    next_link: Optional[str] = None
    context: Optional[str] = None
    skip: Optional[int] = None
    skiptoken: Optional[str] = None


@dataclass
class ODataEntity:
    entity: Any
    meta: ODataEntityMeta = field(default_factory=ODataEntityMeta)


@dataclass
class ODataEntities:
    entities: List[Any]
    meta: ODataEntitiesMeta = field(default_factory=ODataEntitiesMeta)

    def __len__(self) -> int:
        return len(self.entities)

    def __iter__(self):
        return iter(self.entities)


@dataclass
class ODataProperty:
    property: Any
    context: Optional[str] = None


def _page_params(next_link: Optional[str]) -> Dict[str, str]:
    if not next_link:
        return {}
    query = parse_qs(urlsplit(next_link).query)
    return {k: v[0] for k, v in query.items() if v}


@dataclass
class ODataResponse:
    """
    Raw response from the transport.

    Attributes
    ----------
    status : int
        HTTP status code
    body : any
        Decoded JSON body, text, bytes or None
    headers : dict
        Response headers
    status_text : str
        Reason phrase
    url : str, optional
        URL that produced the response
    request : ODataRequest, optional
        The request this answers; attached by the dispatcher
    """

    status: int = 200
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    status_text: str = ""
    url: Optional[str] = None
    request: Optional["ODataRequest"] = field(default=None, repr=False, compare=False)

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        lowered = name.lower()
        return next((v for k, v in self.headers.items() if k.lower() == lowered), None)

    def with_request(self, request: "ODataRequest") -> "ODataResponse":
        return replace(self, request=request)

    # ---------------- typed accessors ----------------

    @property
    def options(self) -> ParserOptions:
        return self.request.options if self.request is not None else DEFAULT_OPTIONS

    def _deserialize(self, value: Any) -> Any:
        if self.request is None:
            return value
        return self.request.resource.deserialize(value)

    def entity(self) -> ODataEntity:
        helper = self.options.helper
        data = helper.entity(self.body)
        meta = ODataEntityMeta(
            etag=helper.etag(data) or self.header("ETag"),
            type=helper.type(data),
            context=helper.context(data),
        )
        return ODataEntity(self._deserialize(data), meta)

    def entities(self) -> ODataEntities:
        helper = self.options.helper
        next_link = helper.next_link(self.body)
        page = _page_params(next_link)
        skip = page.get("$skip")
        meta = ODataEntitiesMeta(
            count=helper.count(self.body),
            next_link=next_link,
            context=helper.context(self.body),
            skip=int(skip) if skip and skip.isdigit() else None,
            skiptoken=page.get("$skiptoken"),
        )
        return ODataEntities([self._deserialize(v) for v in helper.entities(self.body)], meta)

    def property(self) -> ODataProperty:
        helper = self.options.helper
        name = None
        if self.request is not None:
            last = self.request.resource.segments.last()
            name = last.name if last is not None else None
        value = helper.property(self.body, name)
        return ODataProperty(self._deserialize(value), helper.context(self.body))

    # ---------------- persistence ----------------

    def to_snapshot(self) -> Dict[str, Any]:
        """JSON-ready copy; binary bodies are stored base64-encoded."""
        snapshot = {
            "body": self.body,
            "headers": dict(self.headers),
            "status": self.status,
            "statusText": self.status_text,
        }
        if isinstance(self.body, (bytes, bytearray)):
            snapshot["body"] = base64.b64encode(bytes(self.body)).decode("ascii")
            snapshot["bodyEncoding"] = "base64"
        return snapshot

    @classmethod
    def from_snapshot(cls, snapshot: Dict[str, Any], url: Optional[str] = None) -> "ODataResponse":
        body = snapshot.get("body")
        if snapshot.get("bodyEncoding") == "base64":
            body = base64.b64decode(body)
        return cls(
            status=int(snapshot.get("status", 200)),
            body=body,
            headers=dict(snapshot.get("headers") or {}),
            status_text=snapshot.get("statusText", ""),
            url=url,
        )
