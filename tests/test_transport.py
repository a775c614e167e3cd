"""Tests for GoogleSheetsTransport using httpx.MockTransport."""

import json
from collections.abc import Callable

import httpx
import pytest

from sheetbridge.exceptions import (
    APIError,
    AuthenticationError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    QuotaExceededError,
    TransientNetworkError,
)
from sheetbridge.transport import GoogleSheetsTransport, parse_metadata

API = "https://sheets.googleapis.com/v4/spreadsheets"


def _transport(handler: Callable[[httpx.Request], httpx.Response]) -> GoogleSheetsTransport:
    return GoogleSheetsTransport(
        access_token="test-token",
        http_transport=httpx.MockTransport(handler),
    )


def _error(code: int, message: str = "failed", **extra: object) -> httpx.Response:
    return httpx.Response(code, json={"error": {"code": code, "message": message, **extra}})


class TestRequests:
    """Tests for request construction."""

    @pytest.mark.asyncio
    async def test_metadata_request(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={
                    "spreadsheetId": "abc",
                    "properties": {"title": "Budget"},
                    "sheets": [
                        {"properties": {"sheetId": 5, "title": "Data", "index": 0}},
                    ],
                },
            )

        transport = _transport(handler)
        metadata = await transport.get_metadata("abc")
        await transport.close()

        assert metadata.title == "Budget"
        assert metadata.sheets[0].sheet_id == 5
        request = seen[0]
        assert request.headers["Authorization"] == "Bearer test-token"
        assert request.url.path == "/v4/spreadsheets/abc"
        assert request.url.params["fields"] == "spreadsheetId,properties.title,sheets.properties"

    @pytest.mark.asyncio
    async def test_range_is_url_quoted(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"updatedCells": 1})

        transport = _transport(handler)
        await transport.update_values("abc", "'My Sheet'!A1", [["x"]])
        await transport.close()

        request = seen[0]
        assert request.method == "PUT"
        assert "%27My%20Sheet%27%21A1" in str(request.url)
        assert request.url.params["valueInputOption"] == "USER_ENTERED"
        assert json.loads(request.content) == {"range": "'My Sheet'!A1", "values": [["x"]]}

    @pytest.mark.asyncio
    async def test_batch_update_body(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"spreadsheetId": "abc", "replies": [{}]})

        transport = _transport(handler)
        result = await transport.batch_update("abc", [{"deleteSheet": {"sheetId": 1}}])
        await transport.close()

        assert str(seen[0].url) == f"{API}/abc:batchUpdate"
        assert json.loads(seen[0].content) == {"requests": [{"deleteSheet": {"sheetId": 1}}]}
        assert result["replies"] == [{}]

    @pytest.mark.asyncio
    async def test_batch_get_repeats_ranges(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"valueRanges": []})

        transport = _transport(handler)
        await transport.batch_get_values("abc", ["A1:B2", "Data!C:C"])
        await transport.close()

        assert seen[0].url.params.get_list("ranges") == ["A1:B2", "Data!C:C"]

    @pytest.mark.asyncio
    async def test_empty_body(self) -> None:
        transport = _transport(lambda request: httpx.Response(200))
        assert await transport.clear_values("abc", "A1") == {}
        await transport.close()


class TestErrorMapping:
    """Tests for HTTP status to exception mapping."""

    @pytest.mark.parametrize(
        ("response", "exc_type"),
        [
            (_error(400, "Invalid requests[0]"), InvalidArgumentError),
            (_error(401), AuthenticationError),
            (_error(403, "The caller does not have permission"), PermissionDeniedError),
            (_error(403, status="RESOURCE_EXHAUSTED"), QuotaExceededError),
            (
                _error(403, errors=[{"reason": "rateLimitExceeded"}]),
                QuotaExceededError,
            ),
            (_error(404, "Requested entity was not found."), NotFoundError),
            (_error(429), QuotaExceededError),
            (_error(503), TransientNetworkError),
            (_error(500, "Internal error"), APIError),
            (httpx.Response(502, text="Bad Gateway"), TransientNetworkError),
            (httpx.Response(500, json=["unexpected", "list"]), APIError),
            (httpx.Response(403, json="denied"), PermissionDeniedError),
        ],
    )
    @pytest.mark.asyncio
    async def test_status_mapping(self, response: httpx.Response, exc_type: type) -> None:
        transport = _transport(lambda request: response)
        with pytest.raises(exc_type):
            await transport.get_spreadsheet("abc")
        await transport.close()

    @pytest.mark.asyncio
    async def test_api_error_keeps_status(self) -> None:
        transport = _transport(lambda request: _error(500, "boom"))
        with pytest.raises(APIError) as exc_info:
            await transport.get_spreadsheet("abc")
        await transport.close()
        assert exc_info.value.status_code == 500
        assert "boom" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_non_object_error_body_keeps_text(self) -> None:
        transport = _transport(lambda request: httpx.Response(500, json=["boom"]))
        with pytest.raises(APIError) as exc_info:
            await transport.get_spreadsheet("abc")
        await transport.close()
        assert exc_info.value.status_code == 500
        assert "boom" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        transport = _transport(handler)
        with pytest.raises(TransientNetworkError):
            await transport.get_values("abc", "A1")
        await transport.close()

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        transport = _transport(handler)
        with pytest.raises(TransientNetworkError, match="timed out"):
            await transport.get_values("abc", "A1")
        await transport.close()


class TestParseMetadata:
    """Tests for metadata parsing defaults."""

    def test_defaults(self) -> None:
        metadata = parse_metadata({"sheets": [{"properties": {"sheetId": 3, "title": "X"}}]}, "id")
        sheet = metadata.sheets[0]
        assert metadata.spreadsheet_id == "id"
        assert (sheet.index, sheet.row_count, sheet.column_count) == (0, 1000, 26)
