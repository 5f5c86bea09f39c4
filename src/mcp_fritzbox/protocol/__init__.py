"""Endpoint descriptors for the FRITZ!Box HTTP API."""

from .homeauto_switch import Devices, Switches
from .login_sid import LOGIN_SID, LOGOUT_SID, REQUEST_SID, VALIDATE_SID
from .types import EndpointDescriptor, HttpMethod

__all__ = [
    "EndpointDescriptor",
    "HttpMethod",
    "REQUEST_SID",
    "LOGIN_SID",
    "VALIDATE_SID",
    "LOGOUT_SID",
    "Switches",
    "Devices",
]
