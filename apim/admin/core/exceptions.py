"""Custom exception hierarchy."""

from __future__ import annotations

from typing import Any


class AdminError(Exception):
    """Base exception for all library errors."""

    pass


class SettingsError(AdminError):
    """Client settings are missing or malformed.

    Raised while building settings, before any request is issued.
    """

    pass


class TransportError(AdminError):
    """Network or HTTP level failure.

    Aborts any pagination in flight. ``status_code`` is ``None`` when no
    HTTP response was received (connection refused, timeout, ...).
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        body: Any = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class DescriptorError(AdminError, ValueError):
    """Request descriptor or builder input is invalid."""

    pass


class StagnationRiskError(DescriptorError):
    """Sort specification cannot guarantee forward progress.

    Cursor pagination continues from the last item's sort values. Without a
    unique tie-breaker key, items sharing the primary sort value may be
    repeated forever or silently skipped, so such descriptors are refused
    at construction time.
    """

    pass


class ResponseFormatError(AdminError):
    """Response does not have the shape the engine relies on."""

    pass
