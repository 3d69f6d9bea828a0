import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from gh_app_auth import transport as transport_module
from gh_app_auth.errors import UnavailableCapabilityError
from gh_app_auth.transport import (
    USER_AGENT,
    HttpxTransport,
    TransportRequest,
    TransportResponse,
    resolve_transport,
)

class TestTransportResponse:
    @pytest.mark.parametrize("status, ok", [(200, True), (201, True), (299, True), (304, False), (404, False)])
    def test_ok_means_2xx(self, status, ok):
        assert TransportResponse(status=status).ok is ok

    def test_body_accessors(self):
        response = TransportResponse(status=200, status_text="OK", content='{"id": 1}')
        assert response.json() == {"id": 1}
        assert response.text() == '{"id": 1}'

    def test_invalid_json_raises_value_error(self):
        with pytest.raises(ValueError):
            TransportResponse(status=200, content="nope").json()

def _patch_async_client(status_code=200, reason_phrase="OK", text="{}"):
    """Patch ``httpx.AsyncClient`` so requests return a canned response."""

    patcher = patch("httpx.AsyncClient")
    mock_client_cls = patcher.start()
    client = mock_client_cls.return_value
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    client.request = AsyncMock(
        return_value=MagicMock(status_code=status_code, reason_phrase=reason_phrase, text=text)
    )
    return patcher, mock_client_cls

@pytest.fixture
def async_client():
    patchers = []

    def install(**kwargs):
        patcher, mock_client_cls = _patch_async_client(**kwargs)
        patchers.append(patcher)
        return mock_client_cls

    yield install
    for patcher in patchers:
        patcher.stop()

class TestHttpxTransport:
    @pytest.mark.asyncio
    async def test_maps_request_and_response(self, async_client):
        mock_client_cls = async_client(status_code=404, reason_phrase="Not Found", text="No install")
        transport = HttpxTransport(timeout=5)

        response = await transport(
            "https://api.github.com/repos/octo/hello/installation",
            TransportRequest("GET", {"Accept": "application/vnd.github+json"}),
        )

        assert response == TransportResponse(status=404, status_text="Not Found", content="No install")
        mock_client_cls.assert_called_once_with(timeout=5, headers={"User-Agent": USER_AGENT})
        mock_client_cls.return_value.request.assert_awaited_once_with(
            "GET",
            "https://api.github.com/repos/octo/hello/installation",
            headers={"Accept": "application/vnd.github+json"},
            content=None,
        )

    @pytest.mark.asyncio
    async def test_sends_body_as_utf8(self, async_client):
        mock_client_cls = async_client(status_code=201, reason_phrase="Created", text='{"token": "t"}')

        await HttpxTransport()("https://example.test", TransportRequest("POST", {}, '{"repositories":["hello"]}'))

        call = mock_client_cls.return_value.request.call_args
        assert call.kwargs["content"] == b'{"repositories":["hello"]}'

    @pytest.mark.asyncio
    async def test_client_is_closed_after_each_request(self, async_client):
        mock_client_cls = async_client()
        transport = HttpxTransport()

        await transport("https://example.test", TransportRequest())
        await transport("https://example.test", TransportRequest())

        assert mock_client_cls.call_count == 2
        assert mock_client_cls.return_value.__aexit__.await_count == 2

    @pytest.mark.asyncio
    async def test_concurrent_requests_use_separate_clients(self, async_client):
        mock_client_cls = async_client()
        transport = HttpxTransport()

        await asyncio.gather(*(transport("https://example.test", TransportRequest()) for _ in range(3)))

        assert mock_client_cls.call_count == 3
        assert mock_client_cls.return_value.__aexit__.await_count == 3

    @pytest.mark.asyncio
    async def test_network_errors_propagate(self, async_client):
        mock_client_cls = async_client()
        mock_client_cls.return_value.request.side_effect = httpx.ConnectError("DNS failure")

        with pytest.raises(httpx.ConnectError):
            await HttpxTransport()("https://example.test", TransportRequest())

        mock_client_cls.return_value.__aexit__.assert_awaited_once()

class TestResolveTransport:
    def test_override_is_returned(self):
        async def custom(url, request):
            return TransportResponse(status=200)

        assert resolve_transport(custom) is custom

    def test_default_is_httpx_transport(self):
        assert isinstance(resolve_transport(), HttpxTransport)

    def test_missing_httpx(self, monkeypatch):
        monkeypatch.setattr(transport_module, "httpx", None)
        with pytest.raises(UnavailableCapabilityError):
            resolve_transport()
