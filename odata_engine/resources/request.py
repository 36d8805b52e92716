"""
odata_engine.resources.request - Rendered request
==================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, TYPE_CHECKING

from odata_engine.constants import (
    IF_MATCH_HEADER,
    ODATA_MAX_VERSION_HEADER,
    ODATA_VERSION_HEADER,
)
from odata_engine.parsers.base import ParserOptions
from odata_engine.resources.builder import ParamValue, encode_query_params

if TYPE_CHECKING:
    from odata_engine.api import ODataApi
    from odata_engine.resources.resource import ODataResource

# response shapes understood by the dispatcher
ENTITY = "entity"
ENTITYSET = "entityset"
PROPERTY = "property"
RESPONSE_TYPES = (ENTITY, ENTITYSET, PROPERTY)


@dataclass
class ODataRequest:
    """
    A request ready for the transport.

    Attributes
    ----------
    method : str
        HTTP verb
    api : ODataApi
        Owning API (service root, parser options)
    resource : ODataResource
        Addressed resource; its parser deserializes the response
    body : any
        Serialized payload
    headers : dict
        Final headers (API defaults, version headers, If-Match, caller's)
    params : dict
        Final query parameters (API defaults, resource options, caller's)
    response_type : str, optional
        ``"entity"``, ``"entityset"``, ``"property"`` or None for raw
    etag : str, optional
        Concurrency token sent as ``If-Match``
    """

    method: str
    api: "ODataApi"
    resource: "ODataResource"
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)
    params: Dict[str, ParamValue] = field(default_factory=dict)
    response_type: Optional[str] = None
    etag: Optional[str] = None

    def __repr__(self) -> str:
        return f"ODataRequest({self.method} {self.url_with_params})"

    @classmethod
    def build(
        cls,
        api: "ODataApi",
        method: str,
        resource: "ODataResource",
        *,
        body: Any = None,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, ParamValue]] = None,
        response_type: Optional[str] = None,
        etag: Optional[str] = None,
        with_count: bool = False,
    ) -> "ODataRequest":
        """Merge API defaults, resource options and caller overrides."""
        if response_type is not None and response_type not in RESPONSE_TYPES:
            raise ValueError(f"Unknown response type '{response_type}'")
        merged_headers: Dict[str, str] = {"Accept": "application/json"}
        if api.options.helper.is_v2:
            merged_headers["DataServiceVersion"] = "2.0"
            merged_headers["MaxDataServiceVersion"] = api.options.version
        else:
            merged_headers[ODATA_VERSION_HEADER] = api.options.version
            merged_headers[ODATA_MAX_VERSION_HEADER] = api.options.version
        if body is not None:
            merged_headers["Content-Type"] = "application/json"
        merged_headers.update(api.config.headers)
        if etag:
            merged_headers[IF_MATCH_HEADER] = etag
        if headers:
            merged_headers.update(headers)

        merged_params: Dict[str, ParamValue] = dict(api.config.params)
        merged_params.update(resource.params())
        if with_count:
            if api.options.helper.is_v2:
                merged_params["$inlinecount"] = "allpages"
            else:
                merged_params["$count"] = "true"
        if params:
            merged_params.update(params)

        return cls(
            method=method.upper(),
            api=api,
            resource=resource,
            body=body,
            headers=merged_headers,
            params=merged_params,
            response_type=response_type,
            etag=etag,
        )

    @property
    def options(self) -> ParserOptions:
        return self.api.options

    @property
    def path(self) -> str:
        return self.resource.path()

    @property
    def url(self) -> str:
        return f"{self.api.service_root_url}{self.path}"

    @property
    def url_with_params(self) -> str:
        """Full URL including the encoded query string; this is the cache key."""
        if not self.params:
            return self.url
        return f"{self.url}?{encode_query_params(self.params)}"
