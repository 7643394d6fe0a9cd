"""Configuration for pytest."""
from typing import Dict, List, Optional, Tuple, Union

# Common test fixtures can be defined here
import pytest
from starlette.requests import Request

from reqctx.config import Settings
from reqctx.context import RequestContext, ResponseContext

HeaderItems = Union[Dict[str, str], List[Tuple[str, str]]]


def _build_request(
    headers: Optional[HeaderItems] = None,
    path: str = "/",
    query: str = "",
    scheme: str = "http",
    client: Optional[Tuple[str, int]] = ("10.0.0.1", 51000),
    http_version: str = "1.1",
) -> Request:
    """Build a Starlette request from a minimal ASGI scope."""
    items = headers.items() if isinstance(headers, dict) else (headers or [])
    scope = {
        "type": "http",
        "http_version": http_version,
        "method": "GET",
        "scheme": scheme,
        "path": path,
        "raw_path": path.encode("latin-1"),
        "query_string": query.encode("latin-1"),
        "headers": [(k.lower().encode("latin-1"), v.encode("latin-1")) for k, v in items],
        "client": client,
        "server": ("testserver", 80),
    }
    return Request(scope)


def _build_context(
    headers: Optional[HeaderItems] = None,
    proxy_trusted: bool = False,
    max_ips_count: int = 0,
    proxy_ip_header: str = "x-forwarded-for",
    original_url: Optional[str] = None,
    **request_kwargs,
) -> RequestContext:
    """Build a RequestContext with explicit proxy settings."""
    settings = Settings(
        proxy_trusted=proxy_trusted,
        max_ips_count=max_ips_count,
        proxy_ip_header=proxy_ip_header,
    )
    return RequestContext(_build_request(headers, **request_kwargs), settings, original_url=original_url)


@pytest.fixture
def response():
    """A fresh response header set."""
    return ResponseContext()


@pytest.fixture
def make_request():
    """Factory for Starlette requests."""
    return _build_request


@pytest.fixture
def make_context():
    """Factory for request contexts with explicit proxy settings."""
    return _build_context
