"""Tests for the shared HTTP client and response classification."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest
import requests
from urllib3.util.retry import Retry

from flora_catalog.errors import MalformedResponse, RateLimited, RequestFailed, Unreachable
from flora_catalog.services.http import (
    DEFAULT_RETRY,
    DEFAULT_TIMEOUT,
    create_session,
    get_json,
    session,
)


def _response(status: int, payload: object = None) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload
    return resp


class TestDefaultRetry:
    """Transport retries are off; RetryPolicy owns retrying."""

    def test_no_transport_retries(self) -> None:
        assert DEFAULT_RETRY.total == 0

    def test_statuses_not_raised(self) -> None:
        assert DEFAULT_RETRY.raise_on_status is False

    def test_only_safe_methods(self) -> None:
        allowed = DEFAULT_RETRY.allowed_methods
        assert "GET" in allowed
        assert "POST" not in allowed


class TestCreateSession:
    """Verify session factory."""

    def test_returns_session(self) -> None:
        s = create_session()
        assert isinstance(s, requests.Session)

    def test_mounts_adapters(self) -> None:
        s = create_session()
        for url in ("https://example.com", "http://example.com"):
            assert isinstance(s.get_adapter(url), requests.adapters.HTTPAdapter)

    def test_custom_retry(self) -> None:
        s = create_session(retry=Retry(total=3))
        adapter = s.get_adapter("https://example.com")
        assert adapter.max_retries.total == 3

    def test_headers(self) -> None:
        s = create_session()
        assert "flora-catalog" in s.headers["User-Agent"]
        assert s.headers["Accept"] == "application/json"

    def test_default_timeout_injected(self) -> None:
        s = create_session(timeout=42)
        prep = requests.Request("GET", "https://example.com").prepare()
        with patch.object(
            requests.adapters.HTTPAdapter, "send", return_value=requests.Response()
        ) as mock_send:
            s.send(prep)
            _, kwargs = mock_send.call_args
            assert kwargs.get("timeout") == 42

    def test_explicit_timeout_not_overridden(self) -> None:
        s = create_session(timeout=42)
        prep = requests.Request("GET", "https://example.com").prepare()
        with patch.object(
            requests.adapters.HTTPAdapter, "send", return_value=requests.Response()
        ) as mock_send:
            s.send(prep, timeout=99)
            _, kwargs = mock_send.call_args
            assert kwargs.get("timeout") == 99


class TestModuleSession:
    """Verify the module-level singleton."""

    def test_session_is_configured(self) -> None:
        adapter = session.get_adapter("https://example.com")
        assert adapter.max_retries.total == 0

    def test_default_timeout(self) -> None:
        assert DEFAULT_TIMEOUT == 30


class TestGetJson:
    """Every failure mode maps to one FetchError subclass."""

    @pytest.mark.asyncio
    @patch("flora_catalog.services.http.session.get")
    async def test_returns_decoded_body(self, mock_get: MagicMock) -> None:
        mock_get.return_value = _response(200, {"results": []})

        data = await get_json("https://api.example.com/taxa", {"q": "rose"}, source="example")

        assert data == {"results": []}
        mock_get.assert_called_once_with("https://api.example.com/taxa", params={"q": "rose"})

    @pytest.mark.asyncio
    @patch("flora_catalog.services.http.session.get")
    async def test_none_params_sent_empty(self, mock_get: MagicMock) -> None:
        mock_get.return_value = _response(200, [])
        await get_json("https://api.example.com/x", source="example")
        _, kwargs = mock_get.call_args
        assert kwargs["params"] == {}

    @pytest.mark.asyncio
    @patch("flora_catalog.services.http.session.get")
    async def test_429_is_rate_limited(self, mock_get: MagicMock) -> None:
        mock_get.return_value = _response(429)

        with pytest.raises(RateLimited) as exc_info:
            await get_json("https://api.example.com/x", source="example")

        assert exc_info.value.source == "example"
        assert "rate limit" in exc_info.value.message

    @pytest.mark.asyncio
    @patch("flora_catalog.services.http.session.get")
    async def test_429_custom_message(self, mock_get: MagicMock) -> None:
        mock_get.return_value = _response(429)

        with pytest.raises(RateLimited, match="upgrade"):
            await get_json(
                "https://api.example.com/x",
                source="example",
                rate_limit_message="Slow down or upgrade",
            )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [400, 404, 500, 503])
    @patch("flora_catalog.services.http.session.get")
    async def test_other_status_is_request_failed(self, mock_get: MagicMock, status: int) -> None:
        mock_get.return_value = _response(status)

        with pytest.raises(RequestFailed) as exc_info:
            await get_json("https://api.example.com/x", source="example")

        assert exc_info.value.status == status
        assert str(status) in exc_info.value.message

    @pytest.mark.asyncio
    @patch("flora_catalog.services.http.session.get")
    async def test_connection_error_is_unreachable(self, mock_get: MagicMock) -> None:
        mock_get.side_effect = requests.ConnectionError("DNS failure")

        with pytest.raises(Unreachable, match="DNS failure"):
            await get_json("https://api.example.com/x", source="example")

    @pytest.mark.asyncio
    @patch("flora_catalog.services.http.session.get")
    async def test_timeout_is_unreachable(self, mock_get: MagicMock) -> None:
        mock_get.side_effect = requests.Timeout("timed out")

        with pytest.raises(Unreachable):
            await get_json("https://api.example.com/x", source="example")

    @pytest.mark.asyncio
    @patch("flora_catalog.services.http.session.get")
    async def test_invalid_json_is_malformed(self, mock_get: MagicMock) -> None:
        resp = _response(200)
        resp.json.side_effect = ValueError("Expecting value")
        mock_get.return_value = resp

        with pytest.raises(MalformedResponse, match="invalid JSON"):
            await get_json("https://api.example.com/x", source="example")
