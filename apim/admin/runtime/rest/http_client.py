"""HTTP client helper."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any

import aiohttp

from ...core.exceptions import TransportError

logger = logging.getLogger(__name__)


def decode_body(text: str) -> Any:
    """Decode a response body: JSON when possible, raw text otherwise."""
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError:
        return text


class HTTPClient:
    """Async HTTP client wrapper.

    Maps every transport failure (HTTP status >= 400, connection errors,
    timeouts) to ``TransportError``. Does not retry.
    """

    def __init__(self, timeout: float = 30.0) -> None:
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: aiohttp.ClientSession | None = None

    @property
    def session(self) -> aiohttp.ClientSession:
        """Get or create session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def request(
        self,
        method: str,
        url: str,
        *,
        params: Mapping[str, Any] | None = None,
        json_body: Any = None,
        data: str | None = None,
        headers: Mapping[str, str] | None = None,
        auth: tuple[str, str] | None = None,
        verify_tls: bool = True,
        timeout: float | None = None,
    ) -> Any:
        """Issue one request and return its decoded body."""
        kwargs: dict[str, Any] = {
            "params": dict(params) if params else None,
            "headers": dict(headers) if headers else None,
            "ssl": verify_tls,
        }
        if json_body is not None:
            kwargs["json"] = json_body
        if data is not None:
            kwargs["data"] = data
        if auth is not None:
            kwargs["auth"] = aiohttp.BasicAuth(*auth)
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

        try:
            async with self.session.request(method, url, **kwargs) as response:
                text = await response.text()
                status = response.status
        except asyncio.TimeoutError as e:
            raise TransportError(f"{method} {url} timed out") from e
        except aiohttp.ClientError as e:
            raise TransportError(f"{method} {url} failed: {e}") from e

        logger.debug("http_response", extra={"method": method, "url": url, "status": status})
        body = decode_body(text)
        if status >= 400:
            raise TransportError(
                f"{method} {url} failed with HTTP {status}",
                status_code=status,
                body=body,
            )
        return body

    async def close(self) -> None:
        """Close session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def __aenter__(self) -> HTTPClient:
        """Context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit."""
        await self.close()
