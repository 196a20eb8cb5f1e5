"""Unit tests for HTTPClient.

Tests focus on session management, body decoding and error mapping.
"""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import aiohttp
import pytest

from apim.admin.core import TransportError
from apim.admin.runtime.rest import HTTPClient, decode_body


def mock_client(status: int = 200, text: str = "") -> tuple[HTTPClient, MagicMock]:
    """HTTPClient whose session returns one canned response."""
    client = HTTPClient(timeout=10.0)

    mock_response = AsyncMock()
    mock_response.status = status
    mock_response.text = AsyncMock(return_value=text)
    mock_response.__aenter__ = AsyncMock(return_value=mock_response)
    mock_response.__aexit__ = AsyncMock(return_value=None)

    mock_session = MagicMock()
    mock_session.closed = False  # session property checks this
    mock_session.request = MagicMock(return_value=mock_response)
    client._session = mock_session
    return client, mock_session


class TestDecodeBody:
    def test_json(self):
        assert decode_body('{"a": [1, 2]}') == {"a": [1, 2]}

    def test_plain_text(self):
        assert decode_body("not json") == "not json"

    def test_empty(self):
        assert decode_body("") is None


class TestHTTPClientSessionManagement:
    """Test HTTPClient session management."""

    def test_init(self):
        client = HTTPClient(timeout=10.0)
        assert client.timeout.total == 10.0
        assert client._session is None

    @pytest.mark.asyncio
    async def test_session_property_creates_session(self):
        client = HTTPClient()
        session = client.session
        assert isinstance(session, aiohttp.ClientSession)
        assert client._session is session
        await client.close()

    @pytest.mark.asyncio
    async def test_session_property_recreates_closed_session(self):
        client = HTTPClient()
        session1 = client.session
        await session1.close()

        session2 = client.session
        assert session1 is not session2
        assert not session2.closed
        await client.close()

    @pytest.mark.asyncio
    async def test_close_idempotent(self):
        client = HTTPClient()
        await client.close()
        await client.close()  # Should not raise

    @pytest.mark.asyncio
    async def test_context_manager(self):
        async with HTTPClient() as client:
            assert client.session is not None
        assert client._session.closed


class TestHTTPClientRequest:
    """Test request building and response handling."""

    @pytest.mark.asyncio
    async def test_json_response_is_decoded(self):
        client, session = mock_client(text='{"hits": {"hits": []}}')

        result = await client.request(
            "GET",
            "https://es/idx/_search",
            json_body={"size": 1},
            headers={"Host": "es"},
            verify_tls=False,
            timeout=5.0,
        )

        assert result == {"hits": {"hits": []}}
        args, kwargs = session.request.call_args
        assert args == ("GET", "https://es/idx/_search")
        assert kwargs["json"] == {"size": 1}
        assert kwargs["headers"] == {"Host": "es"}
        assert kwargs["ssl"] is False
        assert kwargs["timeout"].total == 5.0
        assert "data" not in kwargs
        assert "auth" not in kwargs

    @pytest.mark.asyncio
    async def test_raw_data_and_basic_auth(self):
        client, session = mock_client(text="")

        result = await client.request(
            "POST",
            "https://apim/user/login",
            data='{"delete":{"_id":"a"}}\n',
            auth=("admin", "secret"),
        )

        assert result is None
        kwargs = session.request.call_args.kwargs
        assert kwargs["data"] == '{"delete":{"_id":"a"}}\n'
        assert kwargs["auth"] == aiohttp.BasicAuth("admin", "secret")
        assert kwargs["ssl"] is True
        assert "json" not in kwargs

    @pytest.mark.asyncio
    async def test_http_error_becomes_transport_error(self):
        client, _ = mock_client(status=404, text='{"found": false}')

        with pytest.raises(TransportError) as exc_info:
            await client.request("DELETE", "https://es/idx/_doc/a")

        assert exc_info.value.status_code == 404
        assert exc_info.value.body == {"found": False}
        assert exc_info.value.is_not_found

    @pytest.mark.asyncio
    async def test_client_error_becomes_transport_error(self):
        client, session = mock_client()
        session.request = MagicMock(side_effect=aiohttp.ClientConnectionError("refused"))

        with pytest.raises(TransportError) as exc_info:
            await client.request("GET", "https://apim/apis")

        assert exc_info.value.status_code is None
        assert isinstance(exc_info.value.__cause__, aiohttp.ClientError)

    @pytest.mark.asyncio
    async def test_timeout_becomes_transport_error(self):
        client, session = mock_client()
        session.request = MagicMock(side_effect=asyncio.TimeoutError())

        with pytest.raises(TransportError, match="timed out"):
            await client.request("GET", "https://apim/apis")
