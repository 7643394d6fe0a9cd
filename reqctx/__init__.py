"""Request context resolution for ASGI applications behind reverse proxies.

The public helpers are re-exported here for convenient imports.
"""
from reqctx.config import Settings, get_settings
from reqctx.context import RequestContext, ResponseContext, build_request_context
from reqctx.cookies import (
    CookieOptions,
    clear_cookie,
    get_cookie,
    get_cookies,
    parse_cookie,
    serialize_cookie,
    set_cookie,
)
from reqctx.headers import (
    append_header,
    append_headers,
    get_header,
    get_user_agent,
    set_header,
)
from reqctx.resolver import (
    get_host,
    get_hostname,
    get_href,
    get_ip,
    get_ips,
    get_origin,
    get_protocol,
    get_url,
    set_ip,
)
from reqctx.utils import env

__all__ = [
    "Settings",
    "get_settings",
    "RequestContext",
    "ResponseContext",
    "build_request_context",
    "CookieOptions",
    "clear_cookie",
    "get_cookie",
    "get_cookies",
    "parse_cookie",
    "serialize_cookie",
    "set_cookie",
    "append_header",
    "append_headers",
    "get_header",
    "get_user_agent",
    "set_header",
    "get_host",
    "get_hostname",
    "get_href",
    "get_ip",
    "get_ips",
    "get_origin",
    "get_protocol",
    "get_url",
    "set_ip",
    "env",
]
