"""Per-request and per-response context objects.

A ``RequestContext`` owns the values derived from one inbound request (parsed
URL, client IP, cookie mapping). Each is computed on first access and cached
for the lifetime of the request; headers are treated as immutable once the
request has been received.

A ``ResponseContext`` owns the header set of one in-flight response and the
flag telling whether those headers have already gone out.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from starlette.datastructures import URL, Headers, MutableHeaders
from starlette.requests import HTTPConnection, Request
from starlette.responses import Response

from reqctx.config import Settings, get_settings

logger = logging.getLogger(__name__)

_ENCRYPTED_SCHEMES = {"https", "wss"}


class RequestContext:
    """Wrap one request together with the proxy settings used to read it."""

    def __init__(
        self,
        request: HTTPConnection,
        settings: Optional[Settings] = None,
        original_url: Optional[str] = None,
    ):
        self.request = request
        self.settings = settings or get_settings()
        self.original_url = original_url

        # Memoized fields
        self.memoized_url: Optional[URL] = None
        self.memoized_ip: Optional[str] = None
        self.memoized_cookies: Optional[Dict[str, str]] = None

    @property
    def scope(self) -> Dict[str, Any]:
        return self.request.scope

    @property
    def headers(self) -> Headers:
        return self.request.headers

    @property
    def url(self) -> str:
        """Request target as received: raw path plus query string."""
        raw_path = self.scope.get("raw_path")
        if raw_path:
            path = raw_path.decode("latin-1")
        else:
            path = self.scope.get("path") or ""
        query = self.scope.get("query_string") or b""
        if query:
            return f"{path}?{query.decode('latin-1')}"
        return path

    @property
    def http_version_major(self) -> int:
        version = str(self.scope.get("http_version") or "1.1")
        try:
            return int(version.split(".", 1)[0])
        except ValueError:
            return 1

    @property
    def encrypted(self) -> bool:
        """Whether the transport connection itself is TLS."""
        if self.scope.get("scheme") in _ENCRYPTED_SCHEMES:
            return True
        extensions = self.scope.get("extensions") or {}
        return "tls" in extensions

    @property
    def remote_address(self) -> str:
        """Peer address reported by the transport, or ``""`` when unavailable."""
        try:
            client = self.scope.get("client")
            if client and client[0]:
                return str(client[0])
        except (AttributeError, IndexError, TypeError) as e:
            logger.debug(f"Transport peer address unavailable: {e}")
        return ""


class ResponseContext:
    """Header set of one in-flight response."""

    def __init__(self, headers: Optional[MutableHeaders] = None):
        self.headers = headers if headers is not None else MutableHeaders()
        self.headers_sent = False

    @classmethod
    def for_response(cls, response: Response) -> "ResponseContext":
        """Bind directly to the header collection of a Starlette response."""
        return cls(response.headers)

    def commit(self, response: Response) -> None:
        """Copy pending headers onto ``response`` and mark them as sent.

        ``Set-Cookie`` lines are added to whatever the endpoint already set;
        any other field replaces the response's value.
        """
        if self.headers_sent:
            return
        if self.headers is not response.headers:
            seen = set()
            for field, _ in self.headers.items():
                if field in seen:
                    continue
                seen.add(field)
                values = self.headers.getlist(field)
                if field != "set-cookie" and field in response.headers:
                    del response.headers[field]
                for value in values:
                    response.headers.append(field, value)
        self.headers_sent = True


def build_request_context(request: Request, settings: Optional[Settings] = None) -> RequestContext:
    """Create a context for ``request``, recording its target as the original URL."""
    context = RequestContext(request, settings)
    context.original_url = context.url
    return context
