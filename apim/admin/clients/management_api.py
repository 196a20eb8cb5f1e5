"""Management API client.

Facade over the throttled listing engine for the APIM Management API:
login, API and application listings, API exports and subscriptions, LDAP
users, health logs, audit events and documentation pages.

GET calls are retried according to the settings' retry policy. Other
methods are sent once.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Iterable, Mapping, Sequence
from typing import Any

from ..core.descriptor import RequestDescriptor, build_path
from ..core.exceptions import ResponseFormatError
from ..core.session import AuthenticatedSession
from ..core.settings import ClientSettings, ManagementApiSettings
from ..runtime.paging import (
    DEFAULT_DELAY,
    EmptyPageNumbering,
    PageCountNumbering,
    ThrottledLister,
    TotalCountNumbering,
)
from ..runtime.paging.listing import Sleep
from ..runtime.rest import Executor, RequestExecutor
from ..utils.retry import retry_async
from .filters import ApiFilters, ApplicationFilters, PageFilters

logger = logging.getLogger(__name__)

HEALTH_LOG_STATES = ("DOWN", "TRANSITIONALLY_DOWN", "TRANSITIONALLY_UP", "UP")
LDAP_SOURCE = "ldap"
SUBSCRIPTION_STATUSES = ("ACCEPTED", "PENDING", "PAUSED")


class RetryingExecutor:
    """Executor retrying GET requests on retryable failures."""

    def __init__(
        self,
        executor: Executor,
        attempts: int,
        delay: float,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._executor = executor
        self._attempts = attempts
        self._delay = delay
        self._sleep = sleep

    @property
    def settings(self) -> ClientSettings:
        return self._executor.settings

    async def execute(
        self,
        descriptor: RequestDescriptor,
        session: AuthenticatedSession | None = None,
    ) -> Any:
        if descriptor.method != "GET":
            return await self._executor.execute(descriptor, session=session)
        return await retry_async(
            lambda: self._executor.execute(descriptor, session=session),
            attempts=self._attempts,
            delay=self._delay,
            sleep=self._sleep,
        )

    async def close(self) -> None:
        await self._executor.close()


class HealthLogNumbering(TotalCountNumbering):
    """Health log pages: ``{total, logs, metadata}``.

    Each log's numeric ``state`` is replaced by its label and its ``gateway``
    id by the gateway hostname found in the page metadata.
    """

    def __init__(self) -> None:
        super().__init__(items_key="logs")

    def items(self, response: Any) -> list[Any]:
        logs = super().items(response)
        metadata = response.get("metadata") or {}
        return [self._resolve(log, metadata) for log in logs]

    @staticmethod
    def _resolve(log: Mapping[str, Any], metadata: Mapping[str, Any]) -> dict[str, Any]:
        resolved = dict(log)
        state = log.get("state")
        if isinstance(state, int) and 0 <= state < len(HEALTH_LOG_STATES):
            resolved["state"] = HEALTH_LOG_STATES[state]
        gateway = metadata.get(log.get("gateway"))
        if isinstance(gateway, Mapping) and "hostname" in gateway:
            resolved["gateway"] = gateway["hostname"]
        return resolved


def _now_millis() -> int:
    return int(time.time() * 1000)


class ManagementApiClient:
    """APIM Management API client.

    Authenticated calls take the AuthenticatedSession returned by ``login``.

    Example:
        >>> async with ManagementApiClient(ManagementApiSettings()) as apim:
        ...     session = await apim.login("admin", "admin")
        ...     async for api in apim.list_apis(ApiFilters(by_name="^echo"), session=session):
        ...         print(api["id"], api["name"])
    """

    def __init__(
        self,
        settings: ManagementApiSettings,
        executor: Executor | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._executor = RetryingExecutor(
            executor or RequestExecutor(settings),
            attempts=settings.retry_attempts,
            delay=settings.retry_delay,
            sleep=sleep,
        )
        self._lister = ThrottledLister(self._executor, sleep=sleep)

    @property
    def settings(self) -> ManagementApiSettings:
        return self._settings

    async def login(self, username: str, password: str) -> AuthenticatedSession:
        """Log in with basic credentials.

        Raises:
            TransportError: If the credentials are rejected
            ResponseFormatError: If the response carries no token
        """
        descriptor = RequestDescriptor(method="POST", path="/user/login", auth=(username, password))
        response = await self._executor.execute(descriptor)
        token = response.get("token") if isinstance(response, Mapping) else None
        if not token:
            raise ResponseFormatError("Login response has no 'token' field")
        logger.info("login_succeeded", extra={"username": username})
        return AuthenticatedSession(token=token, username=username)

    async def logout(self, session: AuthenticatedSession) -> None:
        """Invalidate ``session`` upstream. The session must not be used afterwards."""
        await self._executor.execute(RequestDescriptor(method="POST", path="/user/logout"), session=session)
        logger.info("logout_succeeded", extra={"username": session.username})

    def list_apis(
        self,
        filters: ApiFilters | None = None,
        delay: float = DEFAULT_DELAY,
        session: AuthenticatedSession | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[Any]:
        """Every API matching ``filters``, emitted ``delay`` seconds apart."""
        descriptor = RequestDescriptor(method="GET", path="/apis", timeout=timeout)
        return self._lister.list_all(
            descriptor,
            predicates=(filters or ApiFilters()).predicates(),
            delay=delay,
            session=session,
        )

    async def list_apis_details(
        self,
        filters: ApiFilters | None = None,
        delay: float = DEFAULT_DELAY,
        session: AuthenticatedSession | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[Any]:
        """Every API matching ``filters``, enriched with its export.

        Each API surfaced by ``list_apis`` costs one export request, so the
        throttling ``delay`` also spaces those requests. The export is
        attached under ``details`` and the export-based filters are applied
        to it. An API id is emitted at most once.
        """
        filters = filters or ApiFilters()
        detail_predicates = filters.detail_predicates()
        seen: set[Any] = set()
        async for api in self.list_apis(filters, delay=delay, session=session, timeout=timeout):
            if api.get("id") in seen:
                continue
            details = await self.export_api(api["id"], session=session)
            enriched = {**api, "details": details}
            if all(predicate(enriched) for predicate in detail_predicates):
                seen.add(api["id"])
                yield enriched

    async def export_api(
        self,
        api_id: str,
        exclude: Iterable[str] = (),
        session: AuthenticatedSession | None = None,
    ) -> dict[str, Any]:
        """Export of one API definition, with its ``id`` added.

        Args:
            api_id: API identifier
            exclude: Export sections to leave out (``groups``, ``members``,
                ``pages``, ``plans``)
        """
        excluded = ",".join(exclude)
        descriptor = RequestDescriptor(
            method="GET",
            path=build_path("/apis/{api_id}/export", api_id=api_id),
            params={"exclude": excluded} if excluded else None,
        )
        response = await self._executor.execute(descriptor, session=session)
        if not isinstance(response, Mapping):
            raise ResponseFormatError(f"Export of API {api_id!r} is not an object")
        return {**response, "id": api_id}

    async def get_api_subscriptions(
        self,
        api_id: str,
        statuses: Sequence[str] = SUBSCRIPTION_STATUSES,
        size: int = 10,
        session: AuthenticatedSession | None = None,
    ) -> Any:
        """Subscriptions of one API in any of ``statuses`` (first ``size`` only)."""
        return await self._get_subscriptions("/apis/{owner_id}/subscriptions", api_id, statuses, size, session)

    async def get_application_subscriptions(
        self,
        application_id: str,
        statuses: Sequence[str] = SUBSCRIPTION_STATUSES,
        size: int = 10,
        session: AuthenticatedSession | None = None,
    ) -> Any:
        """Subscriptions of one application in any of ``statuses`` (first ``size`` only)."""
        return await self._get_subscriptions(
            "/applications/{owner_id}/subscriptions", application_id, statuses, size, session
        )

    async def _get_subscriptions(
        self,
        template: str,
        owner_id: str,
        statuses: Sequence[str],
        size: int,
        session: AuthenticatedSession | None,
    ) -> Any:
        descriptor = RequestDescriptor(
            method="GET",
            path=build_path(template, owner_id=owner_id),
            params={"size": size, "status": ",".join(statuses)},
        )
        return await self._executor.execute(descriptor, session=session)

    def list_applications(
        self,
        filters: ApplicationFilters | None = None,
        delay: float = DEFAULT_DELAY,
        session: AuthenticatedSession | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[Any]:
        """Every application matching ``filters``, emitted ``delay`` seconds apart."""
        descriptor = RequestDescriptor(method="GET", path="/applications", timeout=timeout)
        return self._lister.list_all(
            descriptor,
            predicates=(filters or ApplicationFilters()).predicates(),
            delay=delay,
            session=session,
        )

    def list_ldap_users(
        self,
        page_size: int = 100,
        session: AuthenticatedSession | None = None,
    ) -> AsyncIterator[Any]:
        """Every user whose source is LDAP, all pages included."""
        descriptor = RequestDescriptor(
            method="GET",
            path="/users",
            params={"page": 1, "size": page_size},
        )
        return self._lister.list_pages(
            descriptor,
            PageCountNumbering(),
            predicates=[lambda user: user.get("source") == LDAP_SOURCE],
            delay=0,
            session=session,
        )

    def list_api_health_logs(
        self,
        api_id: str,
        transition: bool = True,
        page_size: int = 10,
        session: AuthenticatedSession | None = None,
    ) -> AsyncIterator[Any]:
        """Health logs of one API.

        Args:
            api_id: API identifier
            transition: Only retrieve state transitions
            page_size: Logs per page
        """
        descriptor = RequestDescriptor(
            method="GET",
            path=build_path("/apis/{api_id}/health/logs", api_id=api_id),
            params={"page": 1, "size": page_size, "transition": str(transition).lower()},
        )
        return self._lister.list_pages(descriptor, HealthLogNumbering(), delay=0, session=session)

    def list_audits(
        self,
        event_type: str | None = None,
        from_: int | None = None,
        to: int | None = None,
        page: int = 1,
        size: int = 2000,
        request_delay: float = 0.0,
        session: AuthenticatedSession | None = None,
    ) -> AsyncIterator[Any]:
        """Audit events, page after page until an empty one.

        Args:
            event_type: Event to select (e.g. ``USER_CONNECTED``)
            from_: Lower bound (epoch milliseconds)
            to: Upper bound (epoch milliseconds, default now)
            page: First page to fetch
            size: Events per page
            request_delay: Delay (seconds) between two page requests
        """
        params = {
            "event": event_type,
            "from": from_,
            "to": _now_millis() if to is None else to,
            "page": page,
            "size": size,
        }
        descriptor = RequestDescriptor(
            method="GET",
            path="/audit",
            params={key: value for key, value in params.items() if value is not None},
        )
        return self._lister.list_pages(
            descriptor,
            EmptyPageNumbering(items_key="content", request_delay=request_delay),
            delay=0,
            session=session,
        )

    def get_documentation_pages(
        self,
        api_id: str,
        filters: PageFilters | None = None,
        session: AuthenticatedSession | None = None,
    ) -> AsyncIterator[Any]:
        """Documentation pages of one API, without throttling."""
        descriptor = RequestDescriptor(
            method="GET",
            path=build_path("/apis/{api_id}/pages", api_id=api_id),
        )
        return self._lister.list_all(
            descriptor,
            predicates=(filters or PageFilters()).predicates(),
            delay=0,
            session=session,
        )

    async def close(self) -> None:
        await self._executor.close()

    async def __aenter__(self) -> ManagementApiClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
