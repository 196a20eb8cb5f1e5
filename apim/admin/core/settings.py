"""Client settings.

Settings are immutable pydantic-settings models: every field can be given
explicitly or read from the environment using the model's prefix (for
instance ``APIM_BASE_URL`` or ``ES_HEADERS``).

Architecture:
    ClientSettings carries what every HTTP target needs (base URL, default
    headers, TLS and timeout defaults). ManagementApiSettings and
    ElasticsearchSettings only change defaults and the environment prefix.
    The bearer token obtained at login is NOT stored here; see
    ``core.session.AuthenticatedSession``.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from .exceptions import SettingsError

HEADER_SEPARATOR = ":"
DEFAULT_AUTH_COOKIE = "Auth-Graviteeio-APIM"


def parse_header(header: str) -> tuple[str, str]:
    """Split a ``key:value`` header string on its first colon.

    Raises:
        SettingsError: If the string has no colon or an empty name
    """
    name, sep, value = header.partition(HEADER_SEPARATOR)
    name = name.strip()
    if not sep or not name:
        raise SettingsError(f"Invalid header {header!r}, expected 'name:value'")
    return name, value.strip()


def parse_headers(headers: Any) -> dict[str, str]:
    """Normalize headers given as a mapping, a list of strings or a text block.

    A text block holds one ``key:value`` header per line (the environment
    variable form).
    """
    if headers is None:
        return {}
    if isinstance(headers, dict):
        return {str(k): str(v) for k, v in headers.items()}
    if isinstance(headers, str):
        headers = [line for line in headers.splitlines() if line.strip()]
    return dict(parse_header(header) for header in headers)


class ClientSettings(BaseSettings):
    """Settings shared by every HTTP target."""

    model_config = SettingsConfigDict(
        env_prefix="APIM_ADMIN_",
        extra="ignore",
        frozen=True,
    )

    base_url: str | None = Field(
        default=None,
        description="Base URL every request path is resolved against.",
    )
    headers: Annotated[dict[str, str], NoDecode] = Field(
        default_factory=dict,
        description="Default headers, merged under per-request headers.",
    )
    verify_tls: bool = Field(
        default=False,
        description="Verify TLS certificates when a request does not say otherwise.",
    )
    timeout: float = Field(
        default=30.0,
        gt=0,
        description="Request timeout (seconds) when a request does not set one.",
    )
    auth_cookie_name: str = Field(
        default=DEFAULT_AUTH_COOKIE,
        min_length=1,
        description="Cookie carrying the bearer token on authenticated calls.",
    )

    @model_validator(mode="before")
    @classmethod
    def _require_base_url(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("base_url"):
            raise SettingsError(f"Cannot build {cls.__name__} with no base URL")
        return data

    @field_validator("headers", mode="before")
    @classmethod
    def _parse_headers(cls, value: Any) -> dict[str, str]:
        return parse_headers(value)

    def url_for(self, path: str) -> str:
        """Resolve a request path against the base URL.

        Absolute URLs are returned unchanged.
        """
        if path.startswith(("http://", "https://")):
            return path
        return f"{str(self.base_url).rstrip('/')}/{path.lstrip('/')}"


class ManagementApiSettings(ClientSettings):
    """Settings of a Management API client (env prefix ``APIM_``)."""

    model_config = SettingsConfigDict(env_prefix="APIM_")

    timeout: float = Field(default=120.0, gt=0)
    retry_attempts: int = Field(
        default=3,
        ge=0,
        le=10,
        description="Retries applied to GET calls by the Management API client.",
    )
    retry_delay: float = Field(
        default=5.0,
        ge=0,
        description="Delay between two GET retries (seconds).",
    )


class ElasticsearchSettings(ClientSettings):
    """Settings of an Elasticsearch client (env prefix ``ES_``)."""

    model_config = SettingsConfigDict(env_prefix="ES_")

    timeout: float = Field(default=10.0, gt=0)
