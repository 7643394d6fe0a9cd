"""Custom exceptions for the request context layer."""
from fastapi import HTTPException


class InvalidCookieError(ValueError):
    """Cookie name, value or attribute cannot be serialized."""


class CookieNotFoundError(HTTPException):
    """Requested cookie is not present on the request."""
    def __init__(self, detail: str = "Cookie not found"):
        super().__init__(status_code=404, detail=detail)
