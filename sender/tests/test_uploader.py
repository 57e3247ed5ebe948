"""
Unit tests for the single-shot batch uploader.

Tests verify:
- One POST to the web app URL with the batch as JSON, redirects followed.
- JSON body with success=true is success; success=false or missing raises
  SubmissionRejectedError carrying the remote message.
- Non-JSON body: 2xx is success, 405 is a qualified success needing
  verification, anything else raises TransportError with a 500 char excerpt.
- Network errors raise TransportError without a status code.
- An empty batch is refused before any HTTP client is created.

CHANGELOG:
- 2026-10-16: Rewrite for sheet endpoint submission and classification
- 2026-02-14: Initial creation (STORY-006)

TODO:
- None
"""

from __future__ import annotations

from datetime import date
from unittest.mock import AsyncMock, patch

import httpx
import pytest
from sender.src.errors import EmptyResultError, SubmissionRejectedError, TransportError
from sender.src.models import Batch, Entry
from sender.src.uploader import Uploader

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

WEBAPP_URL = "https://script.example.com/macros/s/abc123/exec"
HTML_BODY = "<!DOCTYPE html><html><body>Moved Temporarily</body></html>"


def _make_batch(entries: int = 1) -> Batch:
    return Batch(
        device_name="test-device",
        cost_per_kwh=30,
        entries=[
            Entry(
                date=date(2025, 10, 1 + i),
                consumption_total=1.5,
                consumption_power_nap=0.3,
                duration_awake="100:30:15",
                duration_power_nap="20:15:00",
            )
            for i in range(entries)
        ],
    )


def _response(status: int, *, json_body: object = None, text: str = "") -> httpx.Response:
    request = httpx.Request("POST", WEBAPP_URL)
    if json_body is not None:
        return httpx.Response(status, json=json_body, request=request)
    return httpx.Response(status, text=text, request=request)


def _mock_client(response: httpx.Response | None = None, error: Exception | None = None) -> AsyncMock:
    client = AsyncMock()
    if error is not None:
        client.post = AsyncMock(side_effect=error)
    else:
        client.post = AsyncMock(return_value=response)
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    return client


async def _submit(response: httpx.Response, batch: Batch | None = None):
    client = _mock_client(response)
    with patch("sender.src.uploader.httpx.AsyncClient", return_value=client):
        return await Uploader(WEBAPP_URL).submit(batch or _make_batch())


# ---------------------------------------------------------------------------
# Request shape
# ---------------------------------------------------------------------------


class TestRequest:
    @pytest.mark.asyncio
    async def test_posts_batch_once(self) -> None:
        client = _mock_client(_response(200, json_body={"success": True}))

        with patch("sender.src.uploader.httpx.AsyncClient", return_value=client) as cls:
            await Uploader(WEBAPP_URL, timeout_s=12.5).submit(_make_batch(2))

        client.post.assert_awaited_once()
        args, kwargs = client.post.call_args
        assert args[0] == WEBAPP_URL
        assert kwargs["json"] == {
            "device_name": "test-device",
            "cost_per_kwh": 30.0,
            "entries": [
                {
                    "date": "2025-10-01",
                    "consumption_total": 1.5,
                    "consumption_power_nap": 0.3,
                    "duration_awake": "100:30:15",
                    "duration_power_nap": "20:15:00",
                },
                {
                    "date": "2025-10-02",
                    "consumption_total": 1.5,
                    "consumption_power_nap": 0.3,
                    "duration_awake": "100:30:15",
                    "duration_power_nap": "20:15:00",
                },
            ],
        }
        assert cls.call_args.kwargs["follow_redirects"] is True
        assert cls.call_args.kwargs["timeout"] == 12.5

    @pytest.mark.asyncio
    async def test_empty_batch_is_not_sent(self) -> None:
        batch = Batch(device_name="test-device", entries=[])

        with patch("sender.src.uploader.httpx.AsyncClient") as cls:
            with pytest.raises(EmptyResultError):
                await Uploader(WEBAPP_URL).submit(batch)

        cls.assert_not_called()


# ---------------------------------------------------------------------------
# JSON responses: the success flag decides
# ---------------------------------------------------------------------------


class TestJsonResponses:
    @pytest.mark.asyncio
    async def test_success_true(self) -> None:
        result = await _submit(
            _response(
                200,
                json_body={
                    "success": True,
                    "message": "Processed 1 entries",
                    "device": "test-device",
                    "sheet": "test-device",
                    "rows_added": 1,
                },
            )
        )

        assert result.success is True
        assert result.rows_added == 1
        assert result.message == "Processed 1 entries"
        assert result.needs_verification is False

    @pytest.mark.asyncio
    async def test_success_false_raises_with_error_text(self) -> None:
        with pytest.raises(SubmissionRejectedError, match="device_name is required"):
            await _submit(
                _response(200, json_body={"success": False, "error": "device_name is required"})
            )

    @pytest.mark.asyncio
    async def test_missing_flag_is_rejection(self) -> None:
        with pytest.raises(SubmissionRejectedError):
            await _submit(_response(200, json_body={"message": "hello"}))

    @pytest.mark.asyncio
    async def test_flag_wins_over_status(self) -> None:
        """A JSON body with success=true is success even on a 405."""
        result = await _submit(_response(405, json_body={"success": True}))

        assert result.success is True
        assert result.needs_verification is False

    @pytest.mark.asyncio
    async def test_flag_false_wins_over_2xx(self) -> None:
        with pytest.raises(SubmissionRejectedError):
            await _submit(_response(200, json_body={"success": False, "message": "sheet locked"}))


# ---------------------------------------------------------------------------
# Non-JSON responses: fall back to the status code
# ---------------------------------------------------------------------------


class TestNonJsonResponses:
    @pytest.mark.asyncio
    async def test_2xx_html_is_success(self) -> None:
        result = await _submit(_response(200, text=HTML_BODY))

        assert result.success is True
        assert result.status_code == 200
        assert result.needs_verification is False

    @pytest.mark.asyncio
    async def test_405_html_is_qualified_success(self) -> None:
        result = await _submit(_response(405, text=HTML_BODY))

        assert result.success is True
        assert result.status_code == 405
        assert result.needs_verification is True
        assert "verify" in result.message

    @pytest.mark.asyncio
    async def test_500_html_raises_transport_error(self) -> None:
        with pytest.raises(TransportError) as exc_info:
            await _submit(_response(500, text=HTML_BODY))

        assert exc_info.value.status_code == 500
        assert exc_info.value.body_excerpt == HTML_BODY
        assert "HTTP 500" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_excerpt_is_truncated_to_500_chars(self) -> None:
        with pytest.raises(TransportError) as exc_info:
            await _submit(_response(502, text="x" * 2000))

        assert len(exc_info.value.body_excerpt) == 500

    @pytest.mark.asyncio
    async def test_empty_body_404_raises(self) -> None:
        with pytest.raises(TransportError) as exc_info:
            await _submit(_response(404, text=""))

        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_json_array_body_uses_status(self) -> None:
        result = await _submit(_response(201, json_body=[1, 2, 3]))

        assert result.success is True
        assert result.status_code == 201


# ---------------------------------------------------------------------------
# Network failures
# ---------------------------------------------------------------------------


class TestNetworkErrors:
    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            httpx.ConnectError("connection refused"),
            httpx.ReadTimeout("timed out"),
            httpx.TooManyRedirects("loop"),
        ],
    )
    async def test_network_error_raises_transport_error(self, error: Exception) -> None:
        client = _mock_client(error=error)

        with patch("sender.src.uploader.httpx.AsyncClient", return_value=client):
            with pytest.raises(TransportError) as exc_info:
                await Uploader(WEBAPP_URL).submit(_make_batch())

        assert exc_info.value.status_code is None
        client.post.assert_awaited_once()
