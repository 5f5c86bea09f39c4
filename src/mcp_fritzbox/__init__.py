"""FRITZ!Box client library and MCP server.

This package talks to the HTTP/XML API of AVM FRITZ!Box routers: session
login with the router's challenge-response procedure, a composable
middleware chain around the HTTP transport, and validated decoding of JSON,
XML and text responses. An MCP (Model Context Protocol) server exposes the
smart home functions to AI assistants.

Example usage:
    >>> from mcp_fritzbox import FritzClient, NetworkCredential, UserPassword, auth
    >>> from mcp_fritzbox.smarthome import list_devices
    >>> handler = UserPassword(NetworkCredential("fritz1234", "secret"))
    >>> async with FritzClient("http://fritz.box").use(auth(handler)) as client:
    ...     devices = await list_devices(client)
    ...     print(f"Found {len(devices)} devices")

For MCP server usage, run:
    $ mcp-fritzbox
"""

from .auth import (
    AuthHandler,
    AuthMiddleware,
    NetworkCredential,
    SessionInfo,
    SessionStore,
    UserPassword,
    auth,
    validate_session,
)
from .challenge import compute_response
from .client import FritzClient, Middleware
from .errors import (
    AuthenticationError,
    ClientClosedError,
    DeviceNotFoundError,
    FritzError,
    MalformedChallengeError,
    RequestFailedError,
    ResponseDecodeError,
    SchemaValidationError,
    UnsupportedFeatureError,
)
from .protocol import EndpointDescriptor, HttpMethod
from .response import FritzResponse
from .smarthome import (
    ColorTemperature,
    DeviceFunction,
    HueSaturation,
    SmartHomeDevice,
)
from .transport import OutgoingRequest
from .users import FritzUser

__version__ = "0.1.0"

__all__ = [
    # Client
    "FritzClient",
    "Middleware",
    "OutgoingRequest",
    "FritzResponse",
    "EndpointDescriptor",
    "HttpMethod",
    # Authentication
    "auth",
    "AuthHandler",
    "AuthMiddleware",
    "NetworkCredential",
    "SessionInfo",
    "SessionStore",
    "UserPassword",
    "compute_response",
    "validate_session",
    # Domain
    "ColorTemperature",
    "DeviceFunction",
    "FritzUser",
    "HueSaturation",
    "SmartHomeDevice",
    # Exceptions
    "FritzError",
    "AuthenticationError",
    "ClientClosedError",
    "DeviceNotFoundError",
    "MalformedChallengeError",
    "RequestFailedError",
    "ResponseDecodeError",
    "SchemaValidationError",
    "UnsupportedFeatureError",
]
