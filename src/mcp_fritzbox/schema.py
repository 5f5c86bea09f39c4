"""Shape descriptions for request payloads and response bodies.

Shapes are plain frozen dataclasses describing what a payload or a decoded
body looks like. :func:`validate` walks a value against a shape and returns
the coerced value, raising :class:`SchemaValidationError` on the first
mismatch.

Example:
    >>> shape = ObjectShape({"sid": StringShape(), "blockTime": NumberShape()})
    >>> validate(shape, {"sid": "0000000000000000", "blockTime": 0})
    {'sid': '0000000000000000', 'blockTime': 0}
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union
from urllib.parse import urlparse

from .errors import SchemaValidationError

Number = Union[int, float]


class Shape:
    """Base class for all shape descriptions."""

    pass


@dataclass(frozen=True)
class StringShape(Shape):
    """Any string; ``url=True`` additionally requires an absolute URL."""

    url: bool = False


@dataclass(frozen=True)
class LiteralShape(Shape):
    """Exactly one value, e.g. a command name."""

    value: Any


@dataclass(frozen=True)
class NumberShape(Shape):
    """A JSON number or Python int/float within optional bounds."""

    minimum: Optional[Number] = None
    maximum: Optional[Number] = None


@dataclass(frozen=True)
class NumericStringShape(Shape):
    """Decimal text coerced to a number, as the XML API sends numbers."""

    minimum: Optional[Number] = None
    maximum: Optional[Number] = None


@dataclass(frozen=True)
class OptionalShape(Shape):
    """Object member that may be missing (and ``None`` when nullable)."""

    inner: Shape
    nullable: bool = False


@dataclass(frozen=True)
class ObjectShape(Shape):
    """A mapping with known members. Unknown members are dropped."""

    fields: Mapping[str, Shape]


@dataclass(frozen=True)
class ArrayShape(Shape):
    """A list of items.

    XML collapses a single repeated element into a mapping, so a lone
    mapping is accepted as a one-element list.
    """

    item: Shape


@dataclass(frozen=True)
class UnionShape(Shape):
    """First matching option wins."""

    options: Tuple[Shape, ...]


@dataclass(frozen=True)
class TrimmedShape(Shape):
    """Strip surrounding whitespace from a string before validating it."""

    inner: Shape


@dataclass(frozen=True)
class UnknownShape(Shape):
    """Anything; the value is passed through unchanged."""

    pass


def optional(shape: Shape) -> OptionalShape:
    """Member that may be missing."""
    return OptionalShape(shape)


def nullish(shape: Shape) -> OptionalShape:
    """Member that may be missing or ``None``."""
    return OptionalShape(shape, nullable=True)


def union(*options: Shape) -> UnionShape:
    return UnionShape(tuple(options))


def validate(shape: Shape, value: Any, path: str = "$") -> Any:
    """Validate a value against a shape.

    Args:
        shape: Shape description.
        value: Decoded value (JSON, XML mapping, text, or request payload).
        path: Location used in error messages.

    Returns:
        The validated value, coerced where the shape says so.

    Raises:
        SchemaValidationError: If the value does not match.
    """
    if isinstance(shape, UnknownShape):
        return value

    if isinstance(shape, StringShape):
        if not isinstance(value, str):
            raise SchemaValidationError(f"expected string, got {_type_name(value)}", path)
        if shape.url and not _is_absolute_url(value):
            raise SchemaValidationError(f"expected URL, got {value!r}", path)
        return value

    if isinstance(shape, LiteralShape):
        if type(value) is not type(shape.value) or value != shape.value:
            raise SchemaValidationError(f"expected {shape.value!r}, got {value!r}", path)
        return value

    if isinstance(shape, NumberShape):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise SchemaValidationError(f"expected number, got {_type_name(value)}", path)
        return _check_range(value, shape.minimum, shape.maximum, path)

    if isinstance(shape, NumericStringShape):
        if not isinstance(value, str):
            raise SchemaValidationError(
                f"expected numeric string, got {_type_name(value)}", path
            )
        number = _parse_number(value, path)
        return _check_range(number, shape.minimum, shape.maximum, path)

    if isinstance(shape, OptionalShape):
        if value is None and shape.nullable:
            return None
        return validate(shape.inner, value, path)

    if isinstance(shape, ObjectShape):
        return _validate_object(shape, value, path)

    if isinstance(shape, ArrayShape):
        if isinstance(value, Mapping):
            value = [value]
        if not isinstance(value, list):
            raise SchemaValidationError(f"expected array, got {_type_name(value)}", path)
        return [validate(shape.item, item, f"{path}[{i}]") for i, item in enumerate(value)]

    if isinstance(shape, UnionShape):
        errors: List[str] = []
        for option in shape.options:
            try:
                return validate(option, value, path)
            except SchemaValidationError as e:
                errors.append(str(e))
        raise SchemaValidationError(
            f"no union option matched ({'; '.join(errors)})", path
        )

    if isinstance(shape, TrimmedShape):
        if isinstance(value, str):
            value = value.strip()
        return validate(shape.inner, value, path)

    raise TypeError(f"Unsupported shape: {shape!r}")


def _validate_object(shape: ObjectShape, value: Any, path: str) -> Dict[str, Any]:
    if not isinstance(value, Mapping):
        raise SchemaValidationError(f"expected object, got {_type_name(value)}", path)

    result: Dict[str, Any] = {}
    for key, member in shape.fields.items():
        member_path = f"{path}.{key}"
        if key not in value:
            if isinstance(member, OptionalShape):
                continue
            raise SchemaValidationError("missing required member", member_path)
        result[key] = validate(member, value[key], member_path)
    return result


def _parse_number(text: str, path: str) -> Number:
    stripped = text.strip()
    try:
        return int(stripped, 10)
    except ValueError:
        pass
    try:
        number = float(stripped)
    except ValueError:
        raise SchemaValidationError(f"expected number, got {text!r}", path) from None
    if not math.isfinite(number):
        raise SchemaValidationError(f"expected finite number, got {text!r}", path)
    return number


def _check_range(
    number: Number,
    minimum: Optional[Number],
    maximum: Optional[Number],
    path: str,
) -> Number:
    if minimum is not None and number < minimum:
        raise SchemaValidationError(f"{number} is below minimum {minimum}", path)
    if maximum is not None and number > maximum:
        raise SchemaValidationError(f"{number} is above maximum {maximum}", path)
    return number


def _is_absolute_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme and parsed.netloc)


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__
