"""Resolve client-facing request facts across the proxy trust boundary.

Transport facts (TLS state, peer address) always win over header claims,
and ``X-Forwarded-*`` headers are only consulted when proxy trust is
enabled in the settings.
"""
import logging
import re
from typing import List

from starlette.datastructures import URL

from reqctx.context import RequestContext
from reqctx.headers import first_value, get_header

logger = logging.getLogger(__name__)

_LIST_SEPARATOR = re.compile(r"\s*,\s*")
_ABSOLUTE_URL = re.compile(r"^https?://", re.IGNORECASE)


def _first_token(value: str) -> str:
    return _LIST_SEPARATOR.split(value.strip(), maxsplit=1)[0]


def get_host(context: RequestContext) -> str:
    """Host the client addressed, honoring X-Forwarded-Host behind a proxy."""
    host = ""
    if context.settings.proxy_trusted:
        host = first_value(get_header(context, "x-forwarded-host"))
    if not host:
        if context.http_version_major >= 2:
            host = first_value(get_header(context, ":authority"))
        if not host:
            host = first_value(get_header(context, "host"))
    if not host:
        return ""
    return _first_token(host)


def get_hostname(context: RequestContext) -> str:
    """Host without its port. IPv6 literals are read from the parsed URL."""
    host = get_host(context)
    if not host:
        return ""
    if host.startswith("["):
        return get_url(context).hostname or ""
    return host.split(":", 1)[0]


def get_protocol(context: RequestContext) -> str:
    """Return "https" for TLS connections, otherwise trust X-Forwarded-Proto
    only when the proxy setting is enabled. Without a forwarded value the
    protocol is "http".
    """
    if context.encrypted:
        return "https"
    if not context.settings.proxy_trusted:
        return "http"
    proto = first_value(get_header(context, "x-forwarded-proto"))
    return _first_token(proto) if proto else "http"


def get_origin(context: RequestContext) -> str:
    return f"{get_protocol(context)}://{get_host(context)}"


def _original_url(context: RequestContext) -> str:
    return context.original_url or context.url or ""


def get_url(context: RequestContext) -> URL:
    """Parsed URL of the request, memoized.

    An unparseable URL yields an empty ``URL`` whose properties are all
    blank, so callers never have to handle a parse error.
    """
    if context.memoized_url is None:
        href = f"{get_origin(context)}{_original_url(context)}"
        try:
            url = URL(href)
            # Force parsing so invalid hosts and ports surface here
            if not url.netloc:
                raise ValueError(f"missing host in {href!r}")
            _ = (url.hostname, url.port)
        except ValueError as e:
            logger.debug(f"Unparseable request URL: {e}")
            url = URL("")
        context.memoized_url = url
    return context.memoized_url


def get_href(context: RequestContext) -> str:
    original_url = _original_url(context)
    if _ABSOLUTE_URL.match(original_url):
        return original_url
    return get_origin(context) + original_url


def get_ips(context: RequestContext) -> List[str]:
    """When proxy trust is enabled, parse the forwarded IP chain.

    For "client, proxy1, proxy2" this returns ["client", "proxy1", "proxy2"],
    where "proxy2" is the furthest downstream. With ``max_ips_count`` set,
    only that many trailing entries are kept so a client cannot push the
    real hops out with a long spoofed prefix.
    """
    settings = context.settings
    if not settings.proxy_trusted:
        return []
    value = first_value(get_header(context, settings.proxy_ip_header or "x-forwarded-for"))
    if not value.strip():
        return []
    ips = _LIST_SEPARATOR.split(value.strip())
    if settings.max_ips_count > 0:
        ips = ips[-settings.max_ips_count:]
    return ips


def get_ip(context: RequestContext) -> str:
    """Client address: first forwarded IP, else the transport peer, memoized."""
    if context.memoized_ip is None:
        ips = get_ips(context)
        context.memoized_ip = (ips[0] if ips else "") or context.remote_address
    return context.memoized_ip


def set_ip(context: RequestContext, ip: str) -> None:
    """Override the resolved client IP for the rest of the request."""
    context.memoized_ip = ip
