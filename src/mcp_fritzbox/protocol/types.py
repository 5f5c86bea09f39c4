"""Descriptor type and shared shapes for endpoint definitions."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Optional

from ..schema import LiteralShape, ObjectShape, Shape, union


class HttpMethod(str, Enum):
    """HTTP verbs used by the router API."""

    GET = "GET"
    POST = "POST"


@dataclass(frozen=True)
class EndpointDescriptor:
    """Static description of one API operation.

    Attributes:
        path: Path relative to the router base URL, may carry a query.
        response: Shape of the decoded response body.
        request: Shape of the payload, ``None`` for payload-less calls.
        method: Explicit HTTP verb. When ``None`` the client picks POST
            for calls with a payload and GET otherwise.
    """

    path: str
    response: Shape
    request: Optional[ObjectShape] = None
    method: Optional[HttpMethod] = None

    def with_request(self, request: ObjectShape) -> EndpointDescriptor:
        """Copy of this descriptor taking the given payload shape."""
        return replace(self, request=request)


FRITZ_TRUE = LiteralShape("1")
FRITZ_FALSE = LiteralShape("0")
FRITZ_BOOL = union(FRITZ_FALSE, FRITZ_TRUE)
