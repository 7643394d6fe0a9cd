"""Middleware attaching request/response contexts to every request."""
from __future__ import annotations

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from reqctx.config import Settings, get_settings
from reqctx.context import RequestContext, ResponseContext, build_request_context

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Build one RequestContext and ResponseContext per request.

    The original request target is captured before any inner rewrite, and
    headers written through the ResponseContext are committed onto the
    endpoint's response once it returns.
    """

    def __init__(self, app, settings: Settings | None = None):
        super().__init__(app)
        self.settings = settings or get_settings()

    async def dispatch(self, request: Request, call_next):
        context = build_request_context(request, self.settings)
        response_context = ResponseContext()
        request.state.request_context = context
        request.state.response_context = response_context

        response = await call_next(request)

        response_context.commit(response)
        return response


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency returning the context for the current request."""
    context = getattr(request.state, "request_context", None)
    if context is None:
        context = build_request_context(request)
        request.state.request_context = context
    return context


def get_response_context(request: Request) -> ResponseContext:
    """FastAPI dependency returning the pending response headers."""
    response_context = getattr(request.state, "response_context", None)
    if response_context is None:
        logger.debug("RequestContextMiddleware not installed; response headers will not be committed")
        response_context = ResponseContext()
        request.state.response_context = response_context
    return response_context
