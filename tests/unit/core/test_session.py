"""Unit tests for AuthenticatedSession."""

import pytest

from apim.admin.core import AuthenticatedSession


def test_cookie_carries_bearer_token():
    session = AuthenticatedSession(token="t0k3n", username="admin")
    assert session.cookie("Auth-Graviteeio-APIM") == "Auth-Graviteeio-APIM=Bearer t0k3n"


def test_token_is_hidden_from_repr():
    assert "t0k3n" not in repr(AuthenticatedSession(token="t0k3n"))


def test_empty_token_rejected():
    with pytest.raises(ValueError):
        AuthenticatedSession(token="")
