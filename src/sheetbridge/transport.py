"""Transport layer for the Google Sheets API.

Defines the Transport protocol and its production implementation:
- GoogleSheetsTransport: authenticated HTTP transport using httpx
"""

from __future__ import annotations

import ssl
import urllib.parse
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import certifi
import httpx
from loguru import logger

from sheetbridge.exceptions import (
    APIError,
    AuthenticationError,
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
    QuotaExceededError,
    TransientNetworkError,
    TransportError,
)

# API constants
API_BASE = "https://sheets.googleapis.com/v4/spreadsheets"
DEFAULT_TIMEOUT = 60

_TRANSIENT_STATUSES = frozenset({502, 503, 504})
_QUOTA_REASONS = frozenset({"rateLimitExceeded", "userRateLimitExceeded", "quotaExceeded"})

__all__ = [
    "API_BASE",
    "APIError",
    "AuthenticationError",
    "GoogleSheetsTransport",
    "NotFoundError",
    "SheetInfo",
    "SpreadsheetMetadata",
    "Transport",
    "TransportError",
]


@dataclass(frozen=True)
class SheetInfo:
    """Information about a single sheet within a spreadsheet."""

    sheet_id: int
    title: str
    index: int = 0
    row_count: int = 1000
    column_count: int = 26


@dataclass(frozen=True)
class SpreadsheetMetadata:
    """Metadata about a spreadsheet, including sheet information."""

    spreadsheet_id: str
    title: str
    sheets: tuple[SheetInfo, ...]
    raw: dict[str, Any]  # Original API response


def parse_metadata(response: dict[str, Any], spreadsheet_id: str) -> SpreadsheetMetadata:
    """Build SpreadsheetMetadata from a spreadsheets.get response."""
    sheets: list[SheetInfo] = []
    for position, sheet in enumerate(response.get("sheets", [])):
        props = sheet.get("properties", {})
        grid_props = props.get("gridProperties", {})
        sheets.append(
            SheetInfo(
                sheet_id=props.get("sheetId", 0),
                title=props.get("title", "Sheet1"),
                index=props.get("index", position),
                row_count=grid_props.get("rowCount", 1000),
                column_count=grid_props.get("columnCount", 26),
            )
        )

    return SpreadsheetMetadata(
        spreadsheet_id=response.get("spreadsheetId", spreadsheet_id),
        title=response.get("properties", {}).get("title", ""),
        sheets=tuple(sheets),
        raw=response,
    )


class Transport(ABC):
    """Abstract base class for the spreadsheet backend.

    Commands only talk to the backend through this interface, so tests can
    substitute an in-memory implementation.
    """

    @abstractmethod
    async def get_metadata(self, spreadsheet_id: str) -> SpreadsheetMetadata:
        """Fetch sheet names, ids and grid sizes without cell data."""
        ...

    @abstractmethod
    async def get_spreadsheet(
        self, spreadsheet_id: str, *, fields: str | None = None
    ) -> dict[str, Any]:
        """Fetch the raw spreadsheet resource, optionally restricted by a field mask."""
        ...

    @abstractmethod
    async def get_values(
        self,
        spreadsheet_id: str,
        range_: str,
        *,
        major_dimension: str = "ROWS",
        value_render_option: str = "FORMATTED_VALUE",
    ) -> dict[str, Any]:
        """GET values for a single range."""
        ...

    @abstractmethod
    async def batch_get_values(
        self,
        spreadsheet_id: str,
        ranges: list[str],
        *,
        major_dimension: str = "ROWS",
        value_render_option: str = "FORMATTED_VALUE",
    ) -> dict[str, Any]:
        """GET values for several ranges in one call."""
        ...

    @abstractmethod
    async def update_values(
        self,
        spreadsheet_id: str,
        range_: str,
        values: list[list[Any]],
        *,
        value_input_option: str = "USER_ENTERED",
    ) -> dict[str, Any]:
        """PUT values into a single range."""
        ...

    @abstractmethod
    async def batch_update_values(
        self,
        spreadsheet_id: str,
        data: list[dict[str, Any]],
        *,
        value_input_option: str = "USER_ENTERED",
    ) -> dict[str, Any]:
        """Write several ``{range, values}`` pairs in one call."""
        ...

    @abstractmethod
    async def append_values(
        self,
        spreadsheet_id: str,
        range_: str,
        values: list[list[Any]],
        *,
        value_input_option: str = "USER_ENTERED",
        insert_data_option: str = "OVERWRITE",
    ) -> dict[str, Any]:
        """Append rows after the table found in ``range_``."""
        ...

    @abstractmethod
    async def clear_values(self, spreadsheet_id: str, range_: str) -> dict[str, Any]:
        """Clear values (not formatting) in a range."""
        ...

    @abstractmethod
    async def batch_update(
        self, spreadsheet_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """Apply an ordered list of structural requests."""
        ...

    @abstractmethod
    async def copy_sheet_to(
        self, spreadsheet_id: str, sheet_id: int, destination_spreadsheet_id: str
    ) -> dict[str, Any]:
        """Copy one sheet into another spreadsheet."""
        ...

    @abstractmethod
    async def create_spreadsheet(self, body: dict[str, Any]) -> dict[str, Any]:
        """Create a new spreadsheet."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections."""
        ...


class GoogleSheetsTransport(Transport):
    """Production transport talking to the Google Sheets API.

    Handles authentication, SSL, and HTTP communication.
    """

    def __init__(
        self,
        access_token: str,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        api_base: str = API_BASE,
        http_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the transport.

        Args:
            access_token: OAuth2 access token with the spreadsheets scope
            timeout: Request timeout in seconds
            api_base: Base URL of the spreadsheets collection
            http_transport: Optional httpx transport (used by tests)
        """
        self._access_token = access_token
        self._timeout = timeout
        self._api_base = api_base.rstrip("/")
        ssl_context = ssl.create_default_context(cafile=certifi.where())
        self._client = httpx.AsyncClient(
            timeout=timeout,
            verify=ssl_context,
            transport=http_transport,
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
        )

    async def get_metadata(self, spreadsheet_id: str) -> SpreadsheetMetadata:
        """Fetch sheet properties from the API."""
        response = await self.get_spreadsheet(
            spreadsheet_id,
            fields="spreadsheetId,properties.title,sheets.properties",
        )
        return parse_metadata(response, spreadsheet_id)

    async def get_spreadsheet(
        self, spreadsheet_id: str, *, fields: str | None = None
    ) -> dict[str, Any]:
        """GET /v4/spreadsheets/{spreadsheetId}"""
        params: dict[str, Any] = {"includeGridData": "false"}
        if fields:
            params["fields"] = fields
        return await self._request("GET", self._url(spreadsheet_id), params=params)

    async def get_values(
        self,
        spreadsheet_id: str,
        range_: str,
        *,
        major_dimension: str = "ROWS",
        value_render_option: str = "FORMATTED_VALUE",
    ) -> dict[str, Any]:
        """GET /v4/spreadsheets/{spreadsheetId}/values/{range}"""
        return await self._request(
            "GET",
            self._url(spreadsheet_id, "values", _quote_range(range_)),
            params={
                "majorDimension": major_dimension,
                "valueRenderOption": value_render_option,
            },
        )

    async def batch_get_values(
        self,
        spreadsheet_id: str,
        ranges: list[str],
        *,
        major_dimension: str = "ROWS",
        value_render_option: str = "FORMATTED_VALUE",
    ) -> dict[str, Any]:
        """GET /v4/spreadsheets/{spreadsheetId}/values:batchGet"""
        params: list[tuple[str, str]] = [("ranges", r) for r in ranges]
        params.append(("majorDimension", major_dimension))
        params.append(("valueRenderOption", value_render_option))
        return await self._request(
            "GET", self._url(spreadsheet_id, "values:batchGet"), params=params
        )

    async def update_values(
        self,
        spreadsheet_id: str,
        range_: str,
        values: list[list[Any]],
        *,
        value_input_option: str = "USER_ENTERED",
    ) -> dict[str, Any]:
        """PUT /v4/spreadsheets/{spreadsheetId}/values/{range}"""
        return await self._request(
            "PUT",
            self._url(spreadsheet_id, "values", _quote_range(range_)),
            params={"valueInputOption": value_input_option},
            json={"range": range_, "values": values},
        )

    async def batch_update_values(
        self,
        spreadsheet_id: str,
        data: list[dict[str, Any]],
        *,
        value_input_option: str = "USER_ENTERED",
    ) -> dict[str, Any]:
        """POST /v4/spreadsheets/{spreadsheetId}/values:batchUpdate"""
        return await self._request(
            "POST",
            self._url(spreadsheet_id, "values:batchUpdate"),
            json={"valueInputOption": value_input_option, "data": data},
        )

    async def append_values(
        self,
        spreadsheet_id: str,
        range_: str,
        values: list[list[Any]],
        *,
        value_input_option: str = "USER_ENTERED",
        insert_data_option: str = "OVERWRITE",
    ) -> dict[str, Any]:
        """POST /v4/spreadsheets/{spreadsheetId}/values/{range}:append"""
        return await self._request(
            "POST",
            self._url(spreadsheet_id, "values", f"{_quote_range(range_)}:append"),
            params={
                "valueInputOption": value_input_option,
                "insertDataOption": insert_data_option,
            },
            json={"values": values},
        )

    async def clear_values(self, spreadsheet_id: str, range_: str) -> dict[str, Any]:
        """POST /v4/spreadsheets/{spreadsheetId}/values/{range}:clear"""
        return await self._request(
            "POST",
            self._url(spreadsheet_id, "values", f"{_quote_range(range_)}:clear"),
            json={},
        )

    async def batch_update(
        self, spreadsheet_id: str, requests: list[dict[str, Any]]
    ) -> dict[str, Any]:
        """POST /v4/spreadsheets/{spreadsheetId}:batchUpdate"""
        return await self._request(
            "POST",
            f"{self._url(spreadsheet_id)}:batchUpdate",
            json={"requests": requests},
        )

    async def copy_sheet_to(
        self, spreadsheet_id: str, sheet_id: int, destination_spreadsheet_id: str
    ) -> dict[str, Any]:
        """POST /v4/spreadsheets/{spreadsheetId}/sheets/{sheetId}:copyTo"""
        return await self._request(
            "POST",
            self._url(spreadsheet_id, "sheets", f"{sheet_id}:copyTo"),
            json={"destinationSpreadsheetId": destination_spreadsheet_id},
        )

    async def create_spreadsheet(self, body: dict[str, Any]) -> dict[str, Any]:
        """POST /v4/spreadsheets"""
        return await self._request("POST", self._api_base, json=body)

    def _url(self, spreadsheet_id: str, *parts: str) -> str:
        segments = [self._api_base, urllib.parse.quote(spreadsheet_id, safe="")]
        segments.extend(parts)
        return "/".join(segments)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: Any = None,
        json: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated request and map failures to TransportError."""
        logger.debug("{} {}", method, url)
        try:
            response = await self._client.request(method, url, params=params, json=json)
            response.raise_for_status()
            result: dict[str, Any] = response.json() if response.content else {}
            return result
        except httpx.HTTPStatusError as e:
            raise _classify_http_error(e.response) from e
        except httpx.TimeoutException as e:
            raise TransientNetworkError(f"Request timed out: {e}") from e
        except httpx.RequestError as e:
            raise TransientNetworkError(f"Network error: {e}") from e

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()


def _error_details(response: httpx.Response) -> tuple[str, str | None, set[str]]:
    """Extract (message, status, reasons) from a Google API error body."""
    try:
        body = response.json()
    except ValueError:
        return response.text, None, set()
    if not isinstance(body, dict):
        return response.text, None, set()
    error = body.get("error", {})
    if not isinstance(error, dict):
        return response.text, None, set()

    message = error.get("message") or response.text
    status = error.get("status")
    reasons = {
        detail.get("reason")
        for detail in error.get("errors", []) + error.get("details", [])
        if isinstance(detail, dict) and detail.get("reason")
    }
    return message, status, reasons


def _classify_http_error(response: httpx.Response) -> TransportError:
    """Map an HTTP error response to the matching TransportError subclass."""
    status = response.status_code
    message, error_status, reasons = _error_details(response)

    if status == 401:
        return AuthenticationError(f"Invalid or expired access token: {message}")
    if status == 429 or error_status == "RESOURCE_EXHAUSTED" or reasons & _QUOTA_REASONS:
        return QuotaExceededError(f"Rate limit or quota exceeded: {message}")
    if status == 403:
        return PermissionDeniedError(message)
    if status == 404:
        return NotFoundError(message)
    if status == 400:
        return InvalidArgumentError(message)
    if status in _TRANSIENT_STATUSES:
        return TransientNetworkError(f"Service unavailable ({status}): {message}")
    return APIError(f"API error ({status}): {message}", status_code=status)


def _quote_range(range_: str) -> str:
    """URL-quote an A1 range for use as a path segment."""
    return urllib.parse.quote(range_, safe="")
