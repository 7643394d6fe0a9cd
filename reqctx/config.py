"""Configuration management for the request context layer."""
from functools import lru_cache
from typing import Any, Mapping

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from reqctx.utils import env

DEFAULT_PROXY_IP_HEADER = "x-forwarded-for"

# Environment key -> field name
ENV_KEYS = {
    "HTTP_BEHIND_PROXY": "proxy_trusted",
    "HTTP_FORWARDED_IP_HEADERS": "proxy_ip_header",
    "HTTP_MAX_IPS_COUNT": "max_ips_count",
}


class Settings(BaseSettings):
    """Proxy trust settings, read once at process start."""

    # Whether the deployment sits behind a reverse proxy whose headers we believe
    proxy_trusted: bool = Field(
        default=False,
        validation_alias=AliasChoices("proxy_trusted", "HTTP_BEHIND_PROXY"),
    )
    # Header carrying the client IP chain
    proxy_ip_header: str = Field(
        default=DEFAULT_PROXY_IP_HEADER,
        validation_alias=AliasChoices("proxy_ip_header", "HTTP_FORWARDED_IP_HEADERS"),
    )
    # Number of trailing hops kept from the IP chain (0 keeps all)
    max_ips_count: int = Field(
        default=0,
        validation_alias=AliasChoices("max_ips_count", "HTTP_MAX_IPS_COUNT"),
    )

    model_config = SettingsConfigDict(
        env_file=None,  # Don't load from .env file
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("proxy_trusted", mode="before")
    @classmethod
    def _coerce_proxy_trusted(cls, value: Any) -> bool:
        return env.boolean(value)

    @field_validator("proxy_ip_header", mode="before")
    @classmethod
    def _coerce_proxy_ip_header(cls, value: Any) -> str:
        return (env.string(value) or DEFAULT_PROXY_IP_HEADER).lower()

    @field_validator("max_ips_count", mode="before")
    @classmethod
    def _coerce_max_ips_count(cls, value: Any) -> int:
        count = env.number(value)
        if count in (float("inf"), float("-inf")):
            return 0
        return int(count)

    @classmethod
    def from_env(cls, environ: Mapping[str, Any]) -> "Settings":
        """Build a snapshot from an environment-style mapping.

        Keys are matched case-insensitively. Missing keys take their defaults
        rather than falling through to ``os.environ``.
        """
        values = {name: cls.model_fields[name].default for name in ENV_KEYS.values()}
        for key, raw in environ.items():
            field_name = ENV_KEYS.get(key.upper())
            if field_name:
                values[field_name] = raw
        return cls(**values)


@lru_cache
def get_settings() -> Settings:
    """Get the process-wide settings snapshot."""
    return Settings()
