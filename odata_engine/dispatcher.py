"""
odata_engine.dispatcher - Request dispatch
==========================================

Sends an ``ODataRequest`` through an externally supplied transport and
shapes the response.

A transport is any callable taking the request and returning either an
awaitable ``ODataResponse`` or an async iterator of events, the terminal
one being the ``ODataResponse`` (earlier ones are typically
``ODataProgressEvent``).
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Union

from odata_engine.cache.base import ODataCache
from odata_engine.core.errors import ODataConfigurationError, ODataUpstreamError, describe_error_body
from odata_engine.resources.request import ENTITY, ENTITYSET, PROPERTY, RESPONSE_TYPES, ODataRequest
from odata_engine.resources.responses import ODataProgressEvent, ODataResponse

logger = logging.getLogger("odata_engine.dispatcher")

TransportResult = Union[Awaitable[ODataResponse], AsyncIterator[Union[ODataProgressEvent, ODataResponse]]]
Transport = Callable[[ODataRequest], TransportResult]
ErrorHandler = Callable[[Exception, ODataRequest], Any]


def raise_for_status(response: ODataResponse, url: str) -> None:
    """Raise ``ODataUpstreamError`` for non-2xx/3xx responses."""
    if response.status < 400:
        return
    body = response.body
    text = body if isinstance(body, str) else ("" if body is None else str(body))
    raise ODataUpstreamError(response.status, describe_error_body(body, text), url, dict(response.headers))


class RequestDispatcher:
    """
    Routes requests to the transport, the cache and the error handler.

    Parameters
    ----------
    transport : callable, optional
        Transport function; may also be set later
    cache : ODataCache, optional
        GET responses are looked up and stored here
    error_handler : callable, optional
        ``handler(error, request)``; its return value (awaited if needed)
        replaces the failed response, or it re-raises

    Examples
    --------
    >>> dispatcher = RequestDispatcher(transport, cache=ODataInMemoryCache())
    >>> entity = await dispatcher.dispatch(request)
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        *,
        cache: Optional[ODataCache] = None,
        error_handler: Optional[ErrorHandler] = None,
    ):
        self.transport = transport
        self.cache = cache
        self.error_handler = error_handler

    async def _call_transport(self, request: ODataRequest) -> ODataResponse:
        if self.transport is None:
            raise ODataConfigurationError("No transport configured; pass one to ODataApi or configure()")
        result = self.transport(request)
        if inspect.isawaitable(result):
            response = await result
        else:
            response = None
            async for event in result:
                if isinstance(event, ODataResponse):
                    response = event
            if response is None:
                raise ODataUpstreamError(0, "Transport finished without a response", request.url)
        raise_for_status(response, request.url_with_params)
        return response

    async def send(self, request: ODataRequest) -> ODataResponse:
        """Return the raw response, from the cache when possible."""
        cacheable = self.cache is not None and self.cache.is_cacheable(request)
        key = request.url_with_params
        if cacheable:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug(f"Cache hit {key}")
                return cached.with_request(request)
            logger.debug(f"Cache miss {key}")

        recovered_from_error = False
        try:
            response = await self._call_transport(request)
        except Exception as error:
            if self.error_handler is None:
                raise
            recovered_from_error = True
            recovered = self.error_handler(error, request)
            if inspect.isawaitable(recovered):
                recovered = await recovered
            logger.debug(f"Error handler recovered {request.method} {key} from {type(error).__name__}")
            if not isinstance(recovered, ODataResponse):
                recovered = ODataResponse(body=recovered, url=request.url)
            response = recovered

        response = response.with_request(request)
        if cacheable and response.ok and not recovered_from_error:
            self.cache.put(key, response)
        return response

    async def dispatch(self, request: ODataRequest) -> Any:
        """
        Send and shape the response per ``request.response_type``.

        Returns ``ODataEntity``, ``ODataEntities``, ``ODataProperty``, or
        the raw ``ODataResponse`` when no shape was requested. An empty body
        yields None for shaped requests.
        """
        shape = request.response_type
        if shape is not None and shape not in RESPONSE_TYPES:
            raise ValueError(f"Unknown response type '{shape}'")
        response = await self.send(request)
        if shape is None:
            return response
        if response.body is None or response.body == "":
            return None
        if shape == ENTITY:
            return response.entity()
        if shape == ENTITYSET:
            return response.entities()
        return response.property()
