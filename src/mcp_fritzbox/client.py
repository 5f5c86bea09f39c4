"""FRITZ!Box API client with composable middleware.

A :class:`FritzClient` turns an endpoint descriptor and a payload into an
:class:`~mcp_fritzbox.transport.OutgoingRequest`, runs it through its
middleware chain, and wraps the answer in a
:class:`~mcp_fritzbox.response.FritzResponse`.

Middleware is attached with :meth:`FritzClient.use`, which returns a new
client. The middleware attached last sees requests first:

    >>> client = FritzClient("http://fritz.box").use(first).use(second)
    >>> # second.request -> first.request -> HTTP transport

Example:
    >>> async with FritzClient("http://fritz.box").use(
    ...     auth(UserPassword(NetworkCredential("fritz1234", "secret")))
    ... ) as client:
    ...     devices = await client.call(Devices.LIST, {"switchcmd": "getdevicelistinfos"})
"""

from __future__ import annotations

import inspect
import logging
from types import TracebackType
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Mapping,
    Optional,
    Type,
    Union,
)

import httpx

from .errors import ClientClosedError
from .protocol.types import EndpointDescriptor, HttpMethod
from .response import FritzResponse
from .schema import validate
from .transport import DEFAULT_TIMEOUT, HttpTransport, OutgoingRequest

# Configure module logger
logger = logging.getLogger(__name__)

RequestFunc = Callable[[OutgoingRequest], Awaitable[httpx.Response]]
TestHandler = Callable[
    [OutgoingRequest], Union[httpx.Response, Awaitable[httpx.Response]]
]
DisposeFunc = Callable[[], Awaitable[None]]


class Middleware:
    """Base class for request/response interceptors.

    Subclasses override :meth:`request` and, when they hold state, :meth:`dispose`.
    """

    async def request(
        self,
        request: OutgoingRequest,
        next_: RequestFunc,
        client: FritzClient,
    ) -> httpx.Response:
        """Handle an outgoing request.

        Args:
            request: The request; may be modified in place.
            next_: Sends the request through the rest of the chain.
            client: The client this middleware was attached to. Requests
                made through it bypass this middleware.

        Returns:
            The response, usually the one returned by ``next_``.
        """
        return await next_(request)

    async def dispose(self, client: FritzClient) -> None:
        """Release resources when the owning client is closed."""
        pass


def encode_form(payload: Mapping[str, Any]) -> Dict[str, str]:
    """Encode a payload as form fields.

    ``None`` values are dropped, booleans become ``"1"``/``"0"``, everything
    else is converted with ``str()``.
    """
    fields: Dict[str, str] = {}
    for key, value in payload.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "1" if value else "0"
        fields[key] = str(value)
    return fields


class FritzClient:
    """Client for a FRITZ!Box device.

    Attributes:
        base_url: Base URL of the router, e.g. ``http://fritz.box``.

    Example:
        >>> async with FritzClient("http://fritz.box") as client:
        ...     async with await client.request(REQUEST_SID) as response:
        ...         print(await response.data())
    """

    def __init__(
        self,
        base_url: Union[str, httpx.URL],
        *,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Base URL of the router.
            timeout: HTTP request timeout in seconds.
            verify: Verify TLS certificates.
            transport: Optional custom httpx transport (e.g. for tests).
        """
        self.base_url = httpx.URL(base_url)
        http = HttpTransport(timeout=timeout, verify=verify, transport=transport)
        self._execute: RequestFunc = http.send
        self._dispose_chain: DisposeFunc = http.aclose
        self._disposed = False

    @classmethod
    def _derived(
        cls,
        base_url: httpx.URL,
        execute: RequestFunc,
        dispose_chain: DisposeFunc,
    ) -> FritzClient:
        client = cls.__new__(cls)
        client.base_url = base_url
        client._execute = execute
        client._dispose_chain = dispose_chain
        client._disposed = False
        return client

    @classmethod
    def create_test_client(
        cls,
        base_url: Union[str, httpx.URL],
        handler: TestHandler,
    ) -> FritzClient:
        """Create a client that hands every request to ``handler``.

        No network access happens and no middleware applies until some is
        attached with :meth:`use`.

        Args:
            base_url: Base URL used to build request URLs.
            handler: Function (sync or async) returning an ``httpx.Response``.
        """

        async def execute(request: OutgoingRequest) -> httpx.Response:
            result = handler(request)
            if inspect.isawaitable(result):
                result = await result
            return result

        async def dispose() -> None:
            pass

        return cls._derived(httpx.URL(base_url), execute, dispose)

    @property
    def is_closed(self) -> bool:
        return self._disposed

    def build_request(
        self,
        endpoint: EndpointDescriptor,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> OutgoingRequest:
        """Build the request for an endpoint call.

        The method is the endpoint's explicit method, else POST when a
        payload is given, else GET. For GET the payload goes into the query
        string, for POST into a form body.

        Raises:
            SchemaValidationError: If the payload does not match the
                endpoint's request shape.
        """
        has_payload = payload is not None
        if endpoint.method is not None:
            method = endpoint.method
        else:
            method = HttpMethod.POST if has_payload else HttpMethod.GET

        url = self.base_url.join(endpoint.path)
        body: Optional[Dict[str, str]] = None

        if has_payload:
            if endpoint.request is not None:
                payload = validate(endpoint.request, payload, "$payload")
            fields = encode_form(payload)
            if method == HttpMethod.GET:
                for key, value in fields.items():
                    url = url.copy_add_param(key, value)
            else:
                body = fields

        return OutgoingRequest(
            url=url,
            method=method.value,
            headers=httpx.Headers({"Accept": "application/json"}),
            body=body,
        )

    async def request(
        self,
        endpoint: EndpointDescriptor,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> FritzResponse:
        """Send a request to an endpoint.

        Args:
            endpoint: The endpoint descriptor.
            payload: Optional payload matching ``endpoint.request``.

        Returns:
            The response envelope; use it with ``async with`` to release
            the body.

        Raises:
            SchemaValidationError: If the payload does not match.
            ClientClosedError: If the client was closed with :meth:`aclose`.
            httpx.RequestError: If the request cannot be sent.
        """
        if self._disposed:
            raise ClientClosedError("Cannot send a request through a closed client")
        request = self.build_request(endpoint, payload)
        response = await self._execute(request)
        return FritzResponse(endpoint.response, response)

    async def call(
        self,
        endpoint: EndpointDescriptor,
        payload: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """Send a request and return the validated response data."""
        async with await self.request(endpoint, payload) as response:
            return await response.data()

    def use(self, middleware: Middleware) -> FritzClient:
        """Create a new client with ``middleware`` wrapped around this one.

        Closing the new client disposes ``middleware`` first and then this
        client.

        Args:
            middleware: The middleware to apply.

        Returns:
            The composed client.
        """
        base_client = self
        next_ = self._execute

        async def execute(request: OutgoingRequest) -> httpx.Response:
            return await middleware.request(request, next_, base_client)

        async def dispose() -> None:
            try:
                await middleware.dispose(base_client)
            finally:
                await base_client.aclose()

        logger.debug("Attached middleware %s", type(middleware).__name__)
        return self._derived(self.base_url, execute, dispose)

    async def aclose(self) -> None:
        """Dispose middleware and close the transport. Idempotent."""
        if self._disposed:
            return
        self._disposed = True
        await self._dispose_chain()

    async def __aenter__(self) -> FritzClient:
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        try:
            await self.aclose()
        except Exception:
            if exc_val is None:
                raise
            logger.warning("Error while closing client", exc_info=True)
