"""Parameter values and explicit result-value coercion.

Parameters are a closed tagged variant (``Param``). Native Python values are
mapped by ``to_param``; nothing is converted implicitly beyond that mapping.
Results come back as plain JSON values and the caller picks a coercion
function (``as_int``, ``as_json``, ...) for each column. SQL ``NULL`` (JSON
``null``) passes through every coercion as ``None``.
"""

from __future__ import annotations

import json
import math
from collections.abc import Iterable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from sql_over_http.errors import CoercionError

JSONScalar = str | int | float | bool | None


class ParamKind(StrEnum):
    """Tag of a bound parameter."""

    TEXT = "text"
    INTEGER = "integer"
    FLOAT = "float"
    BOOLEAN = "boolean"
    LITERAL = "literal"


_VALUE_TYPES: dict[ParamKind, type | tuple[type, ...]] = {
    ParamKind.TEXT: str,
    ParamKind.INTEGER: int,
    ParamKind.FLOAT: (int, float),
    ParamKind.BOOLEAN: bool,
    ParamKind.LITERAL: str,
}


class Param(BaseModel):
    """A single bound statement parameter."""

    model_config = ConfigDict(frozen=True, strict=True)

    kind: ParamKind
    value: str | bool | int | float

    @model_validator(mode="after")
    def _check_value_type(self) -> Param:
        """Reject values that do not match the tag."""
        if isinstance(self.value, bool) and self.kind is not ParamKind.BOOLEAN:
            raise ValueError(f"{self.kind} parameter cannot hold a boolean")
        if not isinstance(self.value, _VALUE_TYPES[self.kind]):
            raise ValueError(f"{self.kind} parameter cannot hold {type(self.value).__name__}")
        return self

    @classmethod
    def text(cls, value: str) -> Param:
        """Text parameter."""
        return cls(kind=ParamKind.TEXT, value=value)

    @classmethod
    def integer(cls, value: int) -> Param:
        """Integer parameter."""
        return cls(kind=ParamKind.INTEGER, value=value)

    @classmethod
    def float_(cls, value: float) -> Param:
        """Floating-point parameter."""
        return cls(kind=ParamKind.FLOAT, value=value)

    @classmethod
    def boolean(cls, value: bool) -> Param:
        """Boolean parameter."""
        return cls(kind=ParamKind.BOOLEAN, value=value)

    @classmethod
    def literal(cls, value: str) -> Param:
        """Pre-formatted literal, cast by the statement text (``$1::int[]``)."""
        return cls(kind=ParamKind.LITERAL, value=value)

    def to_wire(self) -> JSONScalar:
        """Return the JSON value sent in the ``params`` array."""
        if self.kind is ParamKind.FLOAT:
            number = float(self.value)
            if math.isnan(number):
                return "NaN"
            if math.isinf(number):
                return "Infinity" if number > 0 else "-Infinity"
            return number
        return self.value


def to_param(value: Any) -> Param:
    """Map a native Python value to a ``Param``.

    ``bool`` is checked before ``int`` since it is an ``int`` subclass.
    Other types raise ``TypeError``; use ``array_literal`` / ``json_literal``
    for composite values.
    """
    if isinstance(value, Param):
        return value
    if isinstance(value, bool):
        return Param.boolean(value)
    if isinstance(value, int):
        return Param.integer(value)
    if isinstance(value, float):
        return Param.float_(value)
    if isinstance(value, str):
        return Param.text(value)
    raise TypeError(
        f"Unsupported parameter type {type(value).__name__}; "
        "use array_literal() or json_literal() for composite values"
    )


# -- Literal builders --


def _array_element(value: Any) -> str:
    if value is None:
        return "NULL"
    if isinstance(value, bool):
        return "t" if value else "f"
    if isinstance(value, int | float):
        return str(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, list | tuple):
        return "{" + ",".join(_array_element(v) for v in value) + "}"
    raise TypeError(f"Unsupported array element type {type(value).__name__}")


def array_literal(values: Iterable[Any]) -> Param:
    """Build a PostgreSQL array literal, e.g. ``{1,2,"a b"}``.

    Strings are always quoted; nested lists become nested arrays.
    """
    return Param.literal(_array_element(list(values)))


def json_literal(document: Any) -> Param:
    """Serialize ``document`` as JSON text for a ``$n::json``/``::jsonb`` cast."""
    return Param.literal(json.dumps(document, separators=(",", ":")))


# -- Result coercion --


def as_text(value: Any) -> str | None:
    """Return a string column value."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool | int | float):
        return json.dumps(value)
    raise CoercionError(f"Cannot read {type(value).__name__} as text")


def as_int(value: Any) -> int | None:
    """Return an integer from a JSON number or its text form."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise CoercionError("Cannot read boolean as integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise CoercionError(f"Non-integral number {value!r}")
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as e:
            raise CoercionError(f"Cannot read {value!r} as integer") from e
    raise CoercionError(f"Cannot read {type(value).__name__} as integer")


def as_float(value: Any) -> float | None:
    """Return a float from a JSON number or its text form (incl. ``NaN``)."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise CoercionError("Cannot read boolean as float")
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError as e:
            raise CoercionError(f"Cannot read {value!r} as float") from e
    raise CoercionError(f"Cannot read {type(value).__name__} as float")


_TRUE_TEXT = frozenset({"t", "true"})
_FALSE_TEXT = frozenset({"f", "false"})


def as_bool(value: Any) -> bool | None:
    """Return a boolean from JSON ``true``/``false`` or ``t``/``f`` text."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_TEXT:
            return True
        if lowered in _FALSE_TEXT:
            return False
    raise CoercionError(f"Cannot read {value!r} as boolean")


def as_json(value: Any) -> Any:
    """Return a decoded JSON/JSONB column.

    Text is re-parsed as a JSON document; already-structured values are
    returned unchanged.
    """
    if isinstance(value, str):
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise CoercionError(f"Invalid JSON column value: {e}") from e
    return value


def as_list(value: Any) -> list[Any] | None:
    """Return an array column from a JSON array or PostgreSQL array text.

    Elements of a text array are returned as strings (or ``None`` for
    ``NULL``); coerce them individually.
    """
    if value is None:
        return None
    if isinstance(value, list):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text.startswith("["):
            parsed = as_json(text)
            if isinstance(parsed, list):
                return parsed
        elif text.startswith("{"):
            items, end = _parse_pg_array(text, 0)
            if text[end:].strip():
                raise CoercionError(f"Trailing data after array literal: {value!r}")
            return items
    raise CoercionError(f"Cannot read {value!r} as array")


def _parse_pg_array(text: str, pos: int) -> tuple[list[Any], int]:
    """Parse ``{...}`` starting at ``pos``; return (items, index after ``}``)."""
    items: list[Any] = []
    pos += 1
    if pos < len(text) and text[pos] == "}":
        return items, pos + 1
    while pos < len(text):
        char = text[pos]
        if char == "{":
            nested, pos = _parse_pg_array(text, pos)
            items.append(nested)
        elif char == '"':
            pos += 1
            chunk: list[str] = []
            while pos < len(text) and text[pos] != '"':
                if text[pos] == "\\" and pos + 1 < len(text):
                    pos += 1
                chunk.append(text[pos])
                pos += 1
            if pos >= len(text):
                raise CoercionError(f"Unterminated quoted element in {text!r}")
            items.append("".join(chunk))
            pos += 1
        else:
            start = pos
            while pos < len(text) and text[pos] not in ",}":
                pos += 1
            raw = text[start:pos].strip()
            items.append(None if raw.upper() == "NULL" else raw)
        if pos >= len(text):
            break
        if text[pos] == "}":
            return items, pos + 1
        if text[pos] != ",":
            raise CoercionError(f"Malformed array literal {text!r}")
        pos += 1
    raise CoercionError(f"Unterminated array literal {text!r}")
