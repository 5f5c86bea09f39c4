"""Response envelope for FRITZ!Box API calls.

A :class:`FritzResponse` owns exactly one streamed ``httpx.Response``. It
decodes the body according to its ``Content-Type``, validates it against
the endpoint's response shape, and makes sure an unread body is released
when the envelope goes out of scope.

Example:
    >>> async with await client.request(REQUEST_SID) as response:
    ...     info = await response.data()
    ...     print(info["sessionInfo"]["challenge"])
"""

from __future__ import annotations

import json
import logging
import xml.etree.ElementTree as ET
from types import TracebackType
from typing import Any, Dict, Optional, Type

import httpx

from .errors import RequestFailedError, ResponseDecodeError
from .schema import Shape, validate

# Configure module logger
logger = logging.getLogger(__name__)

JSON_CONTENT_TYPES = frozenset({"application/json", "text/json"})
XML_CONTENT_TYPES = frozenset({"application/xml", "text/xml"})


def normalize_content_type(value: Optional[str]) -> Optional[str]:
    """Lower-case media type without parameters.

    ``"Text/XML; charset=utf-8"`` becomes ``"text/xml"``.
    """
    if not value:
        return None
    return value.split(";", 1)[0].strip().lower() or None


def xml_to_dict(content: bytes) -> Dict[str, Any]:
    """Parse an XML document into nested dictionaries.

    Attributes become ``@name`` keys, repeated child elements become lists,
    elements without content become ``None``. Text is kept under ``#text``
    only when the element also carries attributes or children.

    Args:
        content: Raw XML document.

    Returns:
        A single-key mapping from the root tag to its converted content.

    Raises:
        ResponseDecodeError: If the document is not well-formed.
    """
    # Bodies come from the router on the local network
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise ResponseDecodeError(f"Invalid XML body: {e}", "xml") from e
    return {root.tag: _element_to_value(root)}


def _element_to_value(element: ET.Element) -> Any:
    children = list(element)
    text = element.text
    if children and text is not None and not text.strip():
        text = None

    if not children and not element.attrib:
        return text if text else None

    result: Dict[str, Any] = {f"@{key}": value for key, value in element.attrib.items()}
    repeated = set()
    for child in children:
        value = _element_to_value(child)
        tag = child.tag
        if tag in repeated:
            result[tag].append(value)
        elif tag in result:
            result[tag] = [result[tag], value]
            repeated.add(tag)
        else:
            result[tag] = value
    if text:
        result["#text"] = text
    return result


class FritzResponse:
    """Wrapper around one raw router response.

    Attributes:
        schema: Shape the decoded body is validated against.
    """

    def __init__(self, schema: Shape, response: httpx.Response) -> None:
        self.schema = schema
        self._response = response
        self._disposed = False

    @property
    def ok(self) -> bool:
        """True if the status code is in the 2xx range."""
        return self._response.is_success

    @property
    def status_code(self) -> int:
        return self._response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def content_type(self) -> Optional[str]:
        """Normalized media type of the body."""
        return normalize_content_type(self._response.headers.get("content-type"))

    async def ensure_ok(self) -> None:
        """Raise if the response status is not a success.

        Raises:
            RequestFailedError: With status, reason phrase and the body
                decoded on a best-effort basis.
        """
        if self.ok:
            return

        response = self._response
        try:
            data = await self.raw_data(throw_on_error=False)
        except ResponseDecodeError:
            data = response.text
        raise RequestFailedError(
            f"Request failed with status {response.status_code}",
            status=response.status_code,
            status_text=response.reason_phrase,
            data=data,
        )

    async def raw_data(self, *, throw_on_error: bool = True) -> Any:
        """Decode the body without validating it.

        JSON and XML bodies are parsed; everything else is returned as text.

        Args:
            throw_on_error: Call :meth:`ensure_ok` first.

        Raises:
            RequestFailedError: If ``throw_on_error`` and the status is not ok.
            ResponseDecodeError: If a JSON or XML body cannot be parsed.
        """
        if throw_on_error:
            await self.ensure_ok()

        content_type = self.content_type
        content = await self._response.aread()

        if content_type in JSON_CONTENT_TYPES:
            try:
                return json.loads(self._response.text)
            except ValueError as e:
                raise ResponseDecodeError(f"Invalid JSON body: {e}", content_type) from e

        if content_type in XML_CONTENT_TYPES:
            return xml_to_dict(content)

        return self._response.text

    async def data(self, *, throw_on_error: bool = True) -> Any:
        """Decode the body and validate it against :attr:`schema`.

        Raises:
            RequestFailedError: If ``throw_on_error`` and the status is not ok.
            ResponseDecodeError: If the body cannot be parsed.
            SchemaValidationError: If the body does not match the schema.
        """
        raw = await self.raw_data(throw_on_error=throw_on_error)
        return validate(self.schema, raw)

    async def raw_json(self, *, throw_on_error: bool = True) -> Any:
        """Parse the body as JSON regardless of its content type."""
        if throw_on_error:
            await self.ensure_ok()
        await self._response.aread()
        try:
            return self._response.json()
        except ValueError as e:
            raise ResponseDecodeError(f"Invalid JSON body: {e}", self.content_type) from e

    async def raw_text(self, *, throw_on_error: bool = True) -> str:
        """Return the body as text."""
        if throw_on_error:
            await self.ensure_ok()
        await self._response.aread()
        return self._response.text

    async def aclose(self) -> None:
        """Release the body.

        An unread body is closed without reading it. A body that was read,
        is being read elsewhere, or is already closed is left alone. Safe to
        call more than once.
        """
        if self._disposed:
            return
        self._disposed = True

        response = self._response
        if response.is_closed or response.is_stream_consumed:
            return
        logger.debug("Closing unread response body")
        await response.aclose()

    async def __aenter__(self) -> FritzResponse:
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
            # Keep the original error, but do not lose this one
            logger.warning("Error while closing response body", exc_info=True)
