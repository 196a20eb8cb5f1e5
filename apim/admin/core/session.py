"""Authenticated session value returned by login."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class AuthenticatedSession:
    """Bearer token obtained from a login call.

    Passed explicitly to every call that must be authenticated. Logging out
    does not mutate the session; callers simply stop using it.
    """

    token: str = field(repr=False)
    username: str | None = None

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("AuthenticatedSession requires a non-empty token")

    def cookie(self, cookie_name: str) -> str:
        """Render the ``Cookie`` header value carrying the bearer token."""
        return f"{cookie_name}=Bearer {self.token}"
