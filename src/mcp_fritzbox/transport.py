"""HTTP transport for the FRITZ!Box client.

Performs exactly one HTTP exchange per call. Responses are returned in
streaming mode so the body stays unread until a
:class:`~mcp_fritzbox.response.FritzResponse` asks for it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Optional

import httpx

# Configure module logger
logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


@dataclass
class OutgoingRequest:
    """A request on its way through the middleware chain.

    Middleware may replace ``url`` and mutate ``headers`` and ``body`` in
    place before handing the request on.

    Attributes:
        url: Absolute request URL, including query parameters.
        method: HTTP verb.
        headers: Request headers.
        body: Form fields sent as ``application/x-www-form-urlencoded``,
            or ``None`` when the request has no body.
    """

    url: httpx.URL
    method: str
    headers: httpx.Headers = field(default_factory=httpx.Headers)
    body: Optional[Dict[str, str]] = None

    def set_query_param(self, name: str, value: str) -> None:
        """Set (or replace) a query parameter on the URL."""
        self.url = self.url.copy_set_param(name, value)


class HttpTransport:
    """Sends :class:`OutgoingRequest` objects with an ``httpx.AsyncClient``.

    The underlying client is created on first use and closed by
    :meth:`aclose`.

    Attributes:
        timeout: Request timeout in seconds.
        verify: Whether to verify TLS certificates.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        verify: bool = True,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the transport.

        Args:
            timeout: HTTP request timeout in seconds.
            verify: Verify TLS certificates. Routers often use self-signed
                certificates, in which case this has to be disabled.
            transport: Optional custom httpx transport (e.g. for tests).
        """
        self.timeout = timeout
        self.verify = verify
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_closed(self) -> bool:
        return self._client is None or self._client.is_closed

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                verify=self.verify,
                transport=self._transport,
            )
        return self._client

    async def send(self, request: OutgoingRequest) -> httpx.Response:
        """Perform one HTTP exchange.

        Args:
            request: The fully prepared request.

        Returns:
            The response with its body still unread.

        Raises:
            httpx.RequestError: If the request cannot be sent.
        """
        client = self._get_client()
        http_request = client.build_request(
            request.method,
            request.url,
            headers=request.headers,
            data=request.body,
        )
        logger.debug("%s %s", request.method, request.url.copy_remove_param("sid"))
        response = await client.send(http_request, stream=True)
        logger.debug("Response status: %d", response.status_code)
        return response

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("HTTP transport closed")
