"""Request executor: apply client defaults to a descriptor and dispatch it."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Protocol

from ...core.descriptor import RequestDescriptor
from ...core.session import AuthenticatedSession
from ...core.settings import ClientSettings
from .http_client import HTTPClient

logger = logging.getLogger(__name__)


class Executor(Protocol):
    """Anything able to run a RequestDescriptor.

    The paging engines only depend on this, so a wrapping executor (such as
    one adding retries) can stand in for RequestExecutor.
    """

    @property
    def settings(self) -> ClientSettings: ...

    async def execute(
        self,
        descriptor: RequestDescriptor,
        session: AuthenticatedSession | None = None,
    ) -> Any: ...

    async def close(self) -> None: ...


@dataclass(frozen=True)
class PreparedRequest:
    """A descriptor with every client default resolved, ready for the wire."""

    method: str
    url: str
    headers: Mapping[str, str]
    verify_tls: bool
    timeout: float
    params: Mapping[str, Any] | None = None
    json_body: dict[str, Any] | None = None
    data: str | None = None
    auth: tuple[str, str] | None = None


def prepare(
    descriptor: RequestDescriptor,
    settings: ClientSettings,
    session: AuthenticatedSession | None = None,
) -> PreparedRequest:
    """Resolve defaults for ``descriptor``.

    Order:
        1. default headers merged under the descriptor's headers
        2. bearer cookie injected when a session is given; basic auth dropped
        3. TLS verification defaulted from settings when unset
        4. timeout defaulted from settings when unset
    """
    headers = dict(settings.headers)
    headers.update(descriptor.headers)

    auth = descriptor.auth
    if session is not None:
        headers["Cookie"] = session.cookie(settings.auth_cookie_name)
        auth = None

    verify_tls = settings.verify_tls if descriptor.verify_tls is None else descriptor.verify_tls
    timeout = settings.timeout if descriptor.timeout is None else descriptor.timeout

    return PreparedRequest(
        method=descriptor.method,
        url=settings.url_for(descriptor.path),
        headers=headers,
        verify_tls=verify_tls,
        timeout=timeout,
        params=descriptor.params,
        json_body=descriptor.json_body(),
        data=descriptor.data,
        auth=auth,
    )


class RequestExecutor:
    """Executes request descriptors against one HTTP target.

    The executor owns its HTTPClient unless one is injected. It never
    retries: retry policy belongs to callers (see ``utils.retry``).
    """

    def __init__(self, settings: ClientSettings, http: HTTPClient | None = None) -> None:
        self._settings = settings
        self._http = http or HTTPClient(timeout=settings.timeout)

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    async def execute(
        self,
        descriptor: RequestDescriptor,
        session: AuthenticatedSession | None = None,
    ) -> Any:
        """Execute ``descriptor`` and return the decoded response body.

        Raises:
            TransportError: On any network or HTTP failure
        """
        request = prepare(descriptor, self._settings, session)
        logger.debug(
            "request_dispatched",
            extra={
                "method": request.method,
                "path": descriptor.path,
                "authenticated": session is not None,
            },
        )
        return await self._http.request(
            request.method,
            request.url,
            params=request.params,
            json_body=request.json_body,
            data=request.data,
            headers=request.headers,
            auth=request.auth,
            verify_tls=request.verify_tls,
            timeout=request.timeout,
        )

    async def close(self) -> None:
        await self._http.close()

    async def __aenter__(self) -> RequestExecutor:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
