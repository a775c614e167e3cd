"""
Response normalization.

Every command returns a CommandEnvelope. Successful backend responses go
through one narrow adapter per response family, which picks out only the
fields a caller needs. Failures go through ``failure_from_exception``, which
maps the exception to an ErrorKind and a stable message.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel

from sheetbridge.exceptions import (
    APIError,
    AuthenticationError,
    InvalidArgumentError,
    InvalidInputError,
    InvalidRangeError,
    NotFoundError,
    PermissionDeniedError,
    QuotaExceededError,
    RowCountMismatchError,
    SheetNotFoundError,
    TransientNetworkError,
)


class ErrorKind(str, Enum):
    INVALID_RANGE = "INVALID_RANGE"
    SHEET_NOT_FOUND = "SHEET_NOT_FOUND"
    AUTHENTICATION_FAILED = "AUTHENTICATION_FAILED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"
    INVALID_ARGUMENT = "INVALID_ARGUMENT"
    QUOTA_EXCEEDED = "QUOTA_EXCEEDED"
    TRANSIENT_NETWORK_ERROR = "TRANSIENT_NETWORK_ERROR"
    INVALID_INPUT = "INVALID_INPUT"
    ROW_COUNT_MISMATCH = "ROW_COUNT_MISMATCH"
    UNKNOWN = "UNKNOWN"


class CommandEnvelope(BaseModel):
    """Uniform command result.

    A failed envelope never carries ``data``; ``error`` is always set.
    """

    success: bool
    message: str | None = None
    data: dict[str, Any] | None = None
    error: str | None = None
    code: ErrorKind | None = None

    @classmethod
    def ok(cls, message: str, **data: Any) -> CommandEnvelope:
        return cls(success=True, message=message, data=data)

    @classmethod
    def fail(cls, kind: ErrorKind, error: str) -> CommandEnvelope:
        return cls(success=False, error=error, code=kind)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)


# =============================================================================
# Failure path
# =============================================================================


def classify_exception(exc: BaseException) -> tuple[ErrorKind, str]:
    """Map an exception to its ErrorKind and a caller-facing message."""
    if isinstance(exc, InvalidRangeError):
        return ErrorKind.INVALID_RANGE, str(exc)
    if isinstance(exc, SheetNotFoundError):
        return ErrorKind.SHEET_NOT_FOUND, str(exc)
    if isinstance(exc, RowCountMismatchError):
        return ErrorKind.ROW_COUNT_MISMATCH, str(exc)
    if isinstance(exc, InvalidInputError):
        return ErrorKind.INVALID_INPUT, str(exc)
    if isinstance(exc, AuthenticationError):
        return (
            ErrorKind.AUTHENTICATION_FAILED,
            f"Authentication failed: the access token was rejected ({exc})",
        )
    if isinstance(exc, PermissionDeniedError):
        return (
            ErrorKind.PERMISSION_DENIED,
            "Permission denied: the spreadsheet exists but is not shared with this "
            f"account, or the account lacks edit rights ({exc})",
        )
    if isinstance(exc, NotFoundError):
        return (
            ErrorKind.RESOURCE_NOT_FOUND,
            f"Not found: the spreadsheet, sheet or chart does not exist ({exc})",
        )
    if isinstance(exc, InvalidArgumentError):
        return ErrorKind.INVALID_ARGUMENT, f"The API rejected the request as invalid: {exc}"
    if isinstance(exc, QuotaExceededError):
        return (
            ErrorKind.QUOTA_EXCEEDED,
            f"Quota exceeded: too many requests, retry later ({exc})",
        )
    if isinstance(exc, TransientNetworkError):
        return ErrorKind.TRANSIENT_NETWORK_ERROR, f"Network error: {exc}"
    if isinstance(exc, APIError):
        return ErrorKind.UNKNOWN, str(exc)
    return ErrorKind.UNKNOWN, str(exc) or type(exc).__name__


def failure_from_exception(exc: BaseException) -> CommandEnvelope:
    kind, message = classify_exception(exc)
    return CommandEnvelope.fail(kind, message)


# =============================================================================
# Success adapters
# =============================================================================


def values_read(response: dict[str, Any]) -> dict[str, Any]:
    """Adapter for values.get."""
    values = response.get("values", [])
    return {
        "range": response.get("range"),
        "majorDimension": response.get("majorDimension", "ROWS"),
        "values": values,
        "rowCount": len(values),
    }


def values_batch_read(response: dict[str, Any]) -> dict[str, Any]:
    """Adapter for values.batchGet."""
    return {
        "spreadsheetId": response.get("spreadsheetId"),
        "valueRanges": [values_read(vr) for vr in response.get("valueRanges", [])],
    }


def values_updated(response: dict[str, Any]) -> dict[str, Any]:
    """Adapter for values.update (and the inner responses of batchUpdate)."""
    return {
        "spreadsheetId": response.get("spreadsheetId"),
        "updatedRange": response.get("updatedRange"),
        "updatedRows": response.get("updatedRows", 0),
        "updatedColumns": response.get("updatedColumns", 0),
        "updatedCells": response.get("updatedCells", 0),
    }


def values_batch_updated(response: dict[str, Any]) -> dict[str, Any]:
    """Adapter for values.batchUpdate."""
    return {
        "spreadsheetId": response.get("spreadsheetId"),
        "totalUpdatedRows": response.get("totalUpdatedRows", 0),
        "totalUpdatedColumns": response.get("totalUpdatedColumns", 0),
        "totalUpdatedCells": response.get("totalUpdatedCells", 0),
        "totalUpdatedSheets": response.get("totalUpdatedSheets", 0),
        "responses": [values_updated(r) for r in response.get("responses", [])],
    }


def values_appended(response: dict[str, Any]) -> dict[str, Any]:
    """Adapter for values.append."""
    updates = response.get("updates", {})
    return {
        "spreadsheetId": response.get("spreadsheetId"),
        "tableRange": response.get("tableRange"),
        "updatedRange": updates.get("updatedRange"),
        "updatedRows": updates.get("updatedRows", 0),
        "updatedCells": updates.get("updatedCells", 0),
    }


def values_cleared(response: dict[str, Any]) -> dict[str, Any]:
    """Adapter for values.clear."""
    return {
        "spreadsheetId": response.get("spreadsheetId"),
        "clearedRange": response.get("clearedRange"),
    }


def batch_update_replies(response: dict[str, Any]) -> dict[str, Any]:
    """Adapter for structural batchUpdate calls; per-request replies are kept."""
    return {
        "spreadsheetId": response.get("spreadsheetId"),
        "replies": response.get("replies", []),
    }


def _first_reply(response: dict[str, Any], key: str) -> dict[str, Any]:
    replies = response.get("replies") or [{}]
    return replies[0].get(key, {})


def sheet_added(response: dict[str, Any], reply_key: str = "addSheet") -> dict[str, Any]:
    """Adapter for addSheet and duplicateSheet replies."""
    properties = _first_reply(response, reply_key).get("properties", {})
    grid = properties.get("gridProperties", {})
    return {
        "spreadsheetId": response.get("spreadsheetId"),
        "sheetId": properties.get("sheetId"),
        "title": properties.get("title"),
        "index": properties.get("index"),
        "rowCount": grid.get("rowCount"),
        "columnCount": grid.get("columnCount"),
    }


def chart_added(response: dict[str, Any]) -> dict[str, Any]:
    chart = _first_reply(response, "addChart").get("chart", {})
    return {
        "spreadsheetId": response.get("spreadsheetId"),
        "chartId": chart.get("chartId"),
        "replies": response.get("replies", []),
    }


def sheet_copied(response: dict[str, Any]) -> dict[str, Any]:
    """Adapter for sheets.copyTo (returns the new SheetProperties)."""
    return {
        "sheetId": response.get("sheetId"),
        "title": response.get("title"),
        "index": response.get("index"),
    }


def spreadsheet_created(response: dict[str, Any]) -> dict[str, Any]:
    return {
        "spreadsheetId": response.get("spreadsheetId"),
        "spreadsheetUrl": response.get("spreadsheetUrl"),
        "title": response.get("properties", {}).get("title"),
        "sheets": [
            {
                "sheetId": sheet.get("properties", {}).get("sheetId"),
                "title": sheet.get("properties", {}).get("title"),
            }
            for sheet in response.get("sheets", [])
        ],
    }


def spreadsheet_metadata(response: dict[str, Any]) -> dict[str, Any]:
    """Adapter for spreadsheets.get without grid data."""
    properties = response.get("properties", {})
    sheets = []
    for sheet in response.get("sheets", []):
        props = sheet.get("properties", {})
        grid = props.get("gridProperties", {})
        sheets.append(
            {
                "sheetId": props.get("sheetId"),
                "title": props.get("title"),
                "index": props.get("index"),
                "sheetType": props.get("sheetType", "GRID"),
                "hidden": props.get("hidden", False),
                "rowCount": grid.get("rowCount"),
                "columnCount": grid.get("columnCount"),
                "frozenRowCount": grid.get("frozenRowCount", 0),
                "frozenColumnCount": grid.get("frozenColumnCount", 0),
                "chartIds": [c.get("chartId") for c in sheet.get("charts", [])],
            }
        )
    return {
        "spreadsheetId": response.get("spreadsheetId"),
        "title": properties.get("title"),
        "locale": properties.get("locale"),
        "timeZone": properties.get("timeZone"),
        "spreadsheetUrl": response.get("spreadsheetUrl"),
        "sheets": sheets,
    }
