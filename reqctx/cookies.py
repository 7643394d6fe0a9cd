"""Cookie parsing, serialization and response cookie helpers."""
from __future__ import annotations

import math
import re
from datetime import datetime, timedelta, timezone
from http.cookies import CookieError
from typing import Any, Dict, Mapping, Optional, Union
from urllib.parse import quote, unquote

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from starlette.requests import cookie_parser
from starlette.responses import Response

from reqctx.context import RequestContext, ResponseContext
from reqctx.headers import append_header, get_header
from reqctx.utils.exceptions import InvalidCookieError

# Attribute values must not carry CTLs or ";"
_ATTRIBUTE_RE = re.compile(r"^[ -:<-~]*$")

_SAME_SITE = {"lax": "Lax", "strict": "Strict", "none": "None"}
_PRIORITY = {"low": "Low", "medium": "Medium", "high": "High"}

# encodeURIComponent keeps "(" and ")", but SimpleCookie would quote them
_VALUE_SAFE = "!*'"

CLEARED_EXPIRES = datetime(1970, 1, 1, tzinfo=timezone.utc) + timedelta(milliseconds=1)


class CookieOptions(BaseModel):
    """Attributes of a Set-Cookie line.

    ``max_age`` is in milliseconds when passed to :func:`set_cookie` and in
    seconds when passed to :func:`serialize_cookie`. Unknown option names
    are rejected.
    """
    model_config = ConfigDict(extra="forbid")

    path: Optional[str] = None
    expires: Optional[datetime] = None
    max_age: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("max_age", "maxAge")
    )
    domain: Optional[str] = None
    secure: bool = False
    http_only: bool = Field(
        default=False, validation_alias=AliasChoices("http_only", "httpOnly", "httponly")
    )
    same_site: Optional[Union[bool, str]] = Field(
        default=None, validation_alias=AliasChoices("same_site", "sameSite", "samesite")
    )
    priority: Optional[str] = None
    partitioned: bool = False


OptionsInit = Union[CookieOptions, Mapping[str, Any], None]


def parse_cookie(header: str) -> Dict[str, str]:
    """Parse a Cookie header into a mapping of percent-decoded values."""
    if not header:
        return {}
    return {name: _decode(value) for name, value in cookie_parser(header).items()}


def _decode(value: str) -> str:
    return unquote(value) if "%" in value else value


def serialize_cookie(name: str, value: str, options: OptionsInit = None) -> str:
    """Render ``name=value`` and its attributes as a Set-Cookie string.

    The line is produced by Starlette's ``Response.set_cookie``; the value is
    percent-encoded first. ``Partitioned`` and ``Priority`` are appended after
    the attributes Starlette writes.
    """
    opts = _coerce_options(options)

    max_age = None
    if opts.max_age is not None:
        if not math.isfinite(opts.max_age):
            raise InvalidCookieError(f"Invalid max_age: {opts.max_age!r}")
        max_age = math.floor(opts.max_age)

    for attribute in ("domain", "path"):
        attr_value = getattr(opts, attribute)
        if attr_value and not _ATTRIBUTE_RE.match(attr_value):
            raise InvalidCookieError(f"Invalid cookie {attribute}: {attr_value!r}")

    same_site = None
    if opts.same_site:
        if opts.same_site is True:
            same_site = "Strict"
        else:
            same_site = _SAME_SITE.get(str(opts.same_site).lower())
        if same_site is None:
            raise InvalidCookieError(f"Invalid cookie same_site: {opts.same_site!r}")

    priority = None
    if opts.priority:
        priority = _PRIORITY.get(opts.priority.lower())
        if priority is None:
            raise InvalidCookieError(f"Invalid cookie priority: {opts.priority!r}")

    expires = opts.expires
    if expires is not None:
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        expires = expires.astimezone(timezone.utc)

    scratch = Response()
    try:
        scratch.set_cookie(
            name,
            quote(value, safe=_VALUE_SAFE),
            max_age=max_age,
            expires=expires,
            path=opts.path or None,
            domain=opts.domain or None,
            secure=opts.secure,
            httponly=opts.http_only,
            samesite=same_site,
        )
    except (CookieError, UnicodeEncodeError) as e:
        raise InvalidCookieError(f"Invalid cookie {name!r}: {e}")

    cookie = scratch.headers.getlist("set-cookie")[-1]
    if opts.partitioned:
        cookie += "; Partitioned"
    if priority:
        cookie += f"; Priority={priority}"
    return cookie


def _coerce_options(options: OptionsInit) -> CookieOptions:
    if options is None:
        return CookieOptions()
    if isinstance(options, CookieOptions):
        return options
    try:
        return CookieOptions.model_validate(dict(options))
    except ValidationError as e:
        raise InvalidCookieError(f"Invalid cookie options: {e}")


def _merge_options(defaults: Dict[str, Any], options: OptionsInit) -> CookieOptions:
    provided = _coerce_options(options).model_dump(exclude_unset=True)
    return CookieOptions(**{**defaults, **provided})


def get_cookies(context: RequestContext) -> Dict[str, str]:
    """All request cookies, parsed once per request."""
    if context.memoized_cookies is None:
        header = get_header(context, "cookie")
        if isinstance(header, list):
            header = "; ".join(header)
        context.memoized_cookies = parse_cookie(header)
    return context.memoized_cookies


def get_cookie(context: RequestContext, name: str) -> Optional[str]:
    """Value of cookie ``name``, or None when the request does not carry it."""
    return get_cookies(context).get(name)


def set_cookie(response: ResponseContext, name: str, value: str, options: OptionsInit = None) -> None:
    """Append a Set-Cookie header.

    ``max_age`` is given in milliseconds; it is turned into an absolute
    ``Expires`` and written as ``Max-Age`` in seconds. ``path`` defaults to "/".
    """
    opts = _merge_options({}, options)

    if opts.max_age is not None:
        max_age = opts.max_age or 0
        try:
            expires = datetime.now(timezone.utc) + timedelta(milliseconds=max_age)
        except (OverflowError, ValueError):
            raise InvalidCookieError(f"Invalid max_age: {opts.max_age!r}")
        opts = opts.model_copy(update={"expires": expires, "max_age": max_age / 1000})

    if not opts.path:
        opts = opts.model_copy(update={"path": "/"})

    append_header(response, "Set-Cookie", serialize_cookie(name, value, opts))


def clear_cookie(response: ResponseContext, name: str, options: OptionsInit = None) -> None:
    """Expire cookie ``name`` on the client.

    Caller options such as ``domain`` or ``path`` apply, but the expiry is
    always forced into the past and any ``max_age`` is dropped.
    """
    opts = _merge_options({"path": "/"}, options)
    opts = opts.model_copy(update={"expires": CLEARED_EXPIRES, "max_age": None})
    set_cookie(response, name, "", opts)
