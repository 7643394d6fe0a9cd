"""Pydantic models for request/response schemas."""
from datetime import datetime
from pydantic import BaseModel, Field
from typing import List, Optional


class ClientInfo(BaseModel):
    """Resolved facts about the client connection."""
    ip: str = Field(..., description="Client IP address")
    ips: List[str] = Field(default_factory=list, description="Forwarded IP chain (empty unless proxy trust is enabled)")
    protocol: str = Field(..., description="'http' or 'https'")
    host: str
    hostname: str
    origin: str
    href: str
    user_agent: str = ""
    referrer: str = ""


class SetCookieRequest(BaseModel):
    """Request model for setting a cookie."""
    value: str = Field(..., max_length=4096, description="Cookie value")
    max_age: Optional[int] = Field(None, ge=0, description="Lifetime in milliseconds")
    http_only: bool = False
    secure: bool = False
    same_site: Optional[str] = Field(None, description="'lax', 'strict' or 'none'")


class CookieResponse(BaseModel):
    """Response model for cookie lookups."""
    name: str
    value: str


class HealthCheck(BaseModel):
    """Health check response model."""
    status: str
    timestamp: datetime
    version: str = "1.0.0"
