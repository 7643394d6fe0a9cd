"""Coercion helpers for loosely-typed environment values."""
import math
from typing import Union

RawValue = Union[str, int, float, bool, None]

_TRUE_TOKENS = {"true", "1"}


def boolean(val: RawValue) -> bool:
    """Convert a raw value to a boolean.

    Numbers use their truthiness, booleans pass through, and only the
    tokens ``"true"`` and ``"1"`` are truthy strings. Everything else is False.
    """
    if isinstance(val, bool):
        return val
    if isinstance(val, (int, float)):
        return bool(val) and not math.isnan(val)
    if isinstance(val, str):
        return val in _TRUE_TOKENS
    return False


def string(val: RawValue) -> str:
    """Convert a raw value to a string, mapping falsy values to ``""``."""
    if isinstance(val, float) and math.isnan(val):
        return ""
    if not val:
        return ""
    if isinstance(val, bool):
        return "true"
    return str(val)


def number(val: RawValue) -> Union[int, float]:
    """Convert a raw value to a number, mapping anything non-numeric to 0."""
    if isinstance(val, bool):
        return int(val)
    if isinstance(val, (int, float)):
        result = float(val)
    elif isinstance(val, str):
        result = _parse_numeric(val)
    else:
        return 0

    if math.isnan(result):
        return 0
    if math.isfinite(result) and result.is_integer():
        return int(result)
    return result


def _parse_numeric(text: str) -> float:
    text = text.strip()
    if not text:
        return 0.0
    if "_" in text:
        return math.nan
    if text[:2].lower() in ("0x", "0o", "0b"):
        try:
            return float(int(text, 0))
        except ValueError:
            return math.nan
    if text.lower().lstrip("+-") in ("inf", "infinity", "nan"):
        # only the spelled-out "Infinity" counts as a number
        if text.lstrip("+-") == "Infinity":
            return -math.inf if text.startswith("-") else math.inf
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan
