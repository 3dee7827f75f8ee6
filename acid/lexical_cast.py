"""Conversion of values between strings, numbers and booleans."""

from __future__ import annotations

import re
from typing import Any

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_PREFIX = re.compile(
    r"\s*([+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan))",
    re.IGNORECASE,
)


def _parse_int(text: str) -> int:
    """Parse the leading integer of ``text``; trailing characters are ignored."""
    match = _INT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"invalid integer: {text!r}")
    return int(match.group(1))


def _parse_float(text: str) -> float:
    """Parse the leading floating point number of ``text``."""
    match = _FLOAT_PREFIX.match(text)
    if match is None:
        raise ValueError(f"invalid number: {text!r}")
    return float(match.group(1))


def parse_bool(text: str) -> bool:
    """Accept exactly ``"true"`` or ``"false"``; anything else is an error."""
    if text == "true":
        return True
    if text == "false":
        return False
    raise ValueError(f"invalid boolean: {text!r}")


def _to_string(value: int | float) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, int):
        return str(value)
    return f"{value:f}"


def lexical_cast(value: Any, target: type) -> Any:
    """Convert ``value`` to ``target`` (one of ``str``, ``int``, ``float``, ``bool``).

    Raises ``ValueError`` when a string cannot be parsed and ``TypeError``
    when the conversion is not supported.
    """
    if type(value) is target:
        return value
    if isinstance(value, str):
        if target is bool:
            return parse_bool(value)
        if target is int:
            return _parse_int(value)
        if target is float:
            return _parse_float(value)
    elif target is str and isinstance(value, (int, float)):
        return _to_string(value)
    elif target is bool and isinstance(value, int):
        return bool(value)
    raise TypeError(
        f"cannot convert {type(value).__name__} to {getattr(target, '__name__', target)}"
    )