"""Request context demo FastAPI application."""
from datetime import datetime
from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse
import logging

from reqctx.config import get_settings
from reqctx.context import RequestContext, ResponseContext
from reqctx.cookies import clear_cookie, get_cookie, set_cookie
from reqctx.headers import first_value, get_header, get_user_agent
from reqctx.middleware.request_context import (
    RequestContextMiddleware,
    get_request_context,
    get_response_context,
)
from reqctx.models.schemas import ClientInfo, CookieResponse, HealthCheck, SetCookieRequest
from reqctx.resolver import (
    get_host,
    get_hostname,
    get_href,
    get_ip,
    get_ips,
    get_origin,
    get_protocol,
)
from reqctx.utils.exceptions import CookieNotFoundError, InvalidCookieError

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Get settings
settings = get_settings()

logger.info(
    f"Proxy trust: {settings.proxy_trusted}, ip header: {settings.proxy_ip_header}, "
    f"max ips: {settings.max_ips_count}"
)

app = FastAPI(
    title="Request Context API",
    description="Client connection facts resolved across the proxy trust boundary",
    version="1.0.0"
)

app.add_middleware(RequestContextMiddleware, settings=settings)

Context = Annotated[RequestContext, Depends(get_request_context)]
PendingResponse = Annotated[ResponseContext, Depends(get_response_context)]


@app.get("/", response_model=HealthCheck)
async def health_check():
    """Health check endpoint."""
    return HealthCheck(
        status="healthy",
        timestamp=datetime.utcnow()
    )


@app.get("/api/client", response_model=ClientInfo)
async def client_info(context: Context):
    """Describe the client as seen through the configured proxy policy."""
    return ClientInfo(
        ip=get_ip(context),
        ips=get_ips(context),
        protocol=get_protocol(context),
        host=get_host(context),
        hostname=get_hostname(context),
        origin=get_origin(context),
        href=get_href(context),
        user_agent=get_user_agent(context),
        referrer=first_value(get_header(context, "referrer")),
    )


@app.get("/api/cookies/{name}", response_model=CookieResponse)
async def read_cookie(name: str, context: Context):
    """Return the value of a request cookie."""
    value = get_cookie(context, name)
    if value is None:
        raise CookieNotFoundError(detail=f"Cookie '{name}' not found")
    return CookieResponse(name=name, value=value)


@app.post("/api/cookies/{name}", status_code=204)
async def write_cookie(name: str, payload: SetCookieRequest, response: PendingResponse):
    """Set a cookie on the client."""
    options = payload.model_dump(exclude={"value"}, exclude_none=True)
    set_cookie(response, name, payload.value, options)


@app.delete("/api/cookies/{name}", status_code=204)
async def delete_cookie(name: str, response: PendingResponse):
    """Clear a cookie on the client."""
    clear_cookie(response, name)


@app.exception_handler(CookieNotFoundError)
async def cookie_not_found_handler(request, exc):
    logger.debug(f"Cookie lookup failed: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail}
    )


@app.exception_handler(InvalidCookieError)
async def invalid_cookie_handler(request, exc):
    logger.warning(f"Rejected cookie write: {exc}")
    return JSONResponse(
        status_code=400,
        content={"detail": str(exc)}
    )
