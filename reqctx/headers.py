"""Request header lookup and response header writes."""
from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Tuple, Union

from starlette.datastructures import Headers

from reqctx.context import RequestContext, ResponseContext

logger = logging.getLogger(__name__)

HeaderValue = Union[str, List[str]]
HeaderInit = Union[Headers, Mapping[str, Any], Iterable[Tuple[str, Any]]]


def get_header(context: RequestContext, field: str) -> HeaderValue:
    """Case-insensitive header lookup.

    Returns ``""`` when the header is absent, the value when it occurs once
    and a list when the transport delivered it repeatedly. ``referer`` and
    ``referrer`` are interchangeable, with ``referrer`` winning when both
    are present.
    """
    name = field.lower()
    if name in ("referer", "referrer"):
        return _lookup(context, "referrer") or _lookup(context, "referer")
    return _lookup(context, name)


def get_user_agent(context: RequestContext) -> str:
    return first_value(get_header(context, "user-agent"))


def first_value(value: HeaderValue) -> str:
    """Scalar view of a header value: the first element of a repeated header."""
    if isinstance(value, list):
        return value[0] if value else ""
    return value or ""


def _lookup(context: RequestContext, name: str) -> HeaderValue:
    values = [value for value in context.headers.getlist(name) if value]
    if not values:
        return ""
    if len(values) == 1:
        return values[0]
    return values


def _stringify(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def set_header(response: ResponseContext, field: Union[str, Mapping[str, Any]], value: Any = None) -> None:
    """Set one header, or every header of a mapping, on the response.

    Lists and tuples are written as repeated header lines in order. Writes
    after the headers were sent are dropped.
    """
    if response.headers_sent:
        logger.debug(f"Headers already sent, ignoring write to {field!r}")
        return

    if not isinstance(field, str):
        for key, val in field.items():
            set_header(response, key, val)
        return

    if isinstance(value, (list, tuple)):
        values = [_stringify(v) for v in value]
    else:
        values = [_stringify(value)]

    if field in response.headers:
        del response.headers[field]
    for item in values:
        response.headers.append(field, item)


def append_header(response: ResponseContext, field: str, value: Any) -> None:
    """Add ``value`` after any value already set for ``field``."""
    previous = response.headers.getlist(field)
    if previous:
        extra = list(value) if isinstance(value, (list, tuple)) else [value]
        value = previous + extra
    set_header(response, field, value)


def append_headers(response: ResponseContext, headers: HeaderInit) -> None:
    """Append every entry of a header collection to the response."""
    for key, value in _iter_headers(headers):
        append_header(response, key, value)


def _iter_headers(headers: HeaderInit) -> Iterable[Tuple[str, str]]:
    if isinstance(headers, Headers):
        return headers.items()
    if isinstance(headers, Mapping):
        items = headers.items()
    else:
        items = headers
    raw = []
    for key, val in items:
        values = val if isinstance(val, (list, tuple)) else [val]
        for item in values:
            raw.append((str(key).lower().encode("latin-1"), _stringify(item).encode("latin-1")))
    return Headers(raw=raw).items()
