"""Tests for envelope normalization."""

import pytest

from sheetbridge.exceptions import (
    APIError,
    AuthenticationError,
    ChartNotFoundError,
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
from sheetbridge.responses import (
    CommandEnvelope,
    ErrorKind,
    batch_update_replies,
    chart_added,
    failure_from_exception,
    sheet_added,
    spreadsheet_metadata,
    values_appended,
    values_read,
    values_updated,
)


class TestEnvelope:
    """Tests for CommandEnvelope serialization."""

    def test_ok(self) -> None:
        envelope = CommandEnvelope.ok("Done", updatedCells=4)
        assert envelope.to_dict() == {
            "success": True,
            "message": "Done",
            "data": {"updatedCells": 4},
        }

    def test_failure_has_no_data(self) -> None:
        result = failure_from_exception(InvalidRangeError("A0")).to_dict()
        assert result["success"] is False
        assert result["code"] == "INVALID_RANGE"
        assert "A0" in result["error"]
        assert "data" not in result


class TestClassification:
    """Tests for mapping exceptions to error kinds."""

    @pytest.mark.parametrize(
        ("exc", "kind"),
        [
            (InvalidRangeError("A0"), ErrorKind.INVALID_RANGE),
            (SheetNotFoundError("abc", "Nope"), ErrorKind.SHEET_NOT_FOUND),
            (RowCountMismatchError("A1:B2", 2, 3), ErrorKind.ROW_COUNT_MISMATCH),
            (InvalidInputError("bad"), ErrorKind.INVALID_INPUT),
            (AuthenticationError("expired"), ErrorKind.AUTHENTICATION_FAILED),
            (PermissionDeniedError("no"), ErrorKind.PERMISSION_DENIED),
            (NotFoundError("gone"), ErrorKind.RESOURCE_NOT_FOUND),
            (ChartNotFoundError(5), ErrorKind.RESOURCE_NOT_FOUND),
            (InvalidArgumentError("bad field"), ErrorKind.INVALID_ARGUMENT),
            (QuotaExceededError("slow down"), ErrorKind.QUOTA_EXCEEDED),
            (TransientNetworkError("timeout"), ErrorKind.TRANSIENT_NETWORK_ERROR),
            (APIError("API error (500): boom", status_code=500), ErrorKind.UNKNOWN),
            (RuntimeError("surprise"), ErrorKind.UNKNOWN),
        ],
    )
    def test_kinds(self, exc: Exception, kind: ErrorKind) -> None:
        assert failure_from_exception(exc).code == kind

    def test_not_shared_vs_missing(self) -> None:
        """Permission and not-found messages are distinguishable."""
        denied = failure_from_exception(PermissionDeniedError("403")).error
        missing = failure_from_exception(NotFoundError("404")).error
        assert denied is not None and "not shared" in denied
        assert missing is not None and "does not exist" in missing

    def test_unknown_passes_raw_message(self) -> None:
        assert failure_from_exception(RuntimeError("surprise")).error == "surprise"

    def test_row_mismatch_message_suggests_anchor(self) -> None:
        error = failure_from_exception(RowCountMismatchError("Sheet1!A1:B2", 2, 3)).error
        assert error is not None
        assert "expects exactly 2 rows" in error
        assert "'Sheet1!A1'" in error


class TestAdapters:
    """Tests for the narrow success adapters."""

    def test_values_read(self) -> None:
        data = values_read({"range": "Sheet1!A1:B2", "values": [[1, 2], [3]]})
        assert data == {
            "range": "Sheet1!A1:B2",
            "majorDimension": "ROWS",
            "values": [[1, 2], [3]],
            "rowCount": 2,
        }

    def test_values_read_empty_range(self) -> None:
        assert values_read({"range": "Sheet1!Z9"})["values"] == []

    def test_values_updated_drops_extra_fields(self) -> None:
        data = values_updated(
            {"spreadsheetId": "abc", "updatedRange": "A1:B1", "updatedCells": 2, "etag": "x"}
        )
        assert "etag" not in data
        assert data["updatedCells"] == 2

    def test_values_appended(self) -> None:
        data = values_appended({"updates": {"updatedRange": "A5:B5", "updatedRows": 1}})
        assert data["updatedRange"] == "A5:B5"
        assert data["updatedRows"] == 1

    def test_replies_passed_through(self) -> None:
        replies = [{}, {"addSheet": {"properties": {"sheetId": 3}}}]
        assert batch_update_replies({"spreadsheetId": "a", "replies": replies})["replies"] == (
            replies
        )

    def test_sheet_added(self) -> None:
        response = {
            "spreadsheetId": "abc",
            "replies": [{"addSheet": {"properties": {"sheetId": 77, "title": "Tmp"}}}],
        }
        data = sheet_added(response)
        assert data["sheetId"] == 77
        assert data["title"] == "Tmp"

    def test_chart_added(self) -> None:
        response = {"replies": [{"addChart": {"chart": {"chartId": 123}}}]}
        assert chart_added(response)["chartId"] == 123

    def test_spreadsheet_metadata(self) -> None:
        response = {
            "spreadsheetId": "abc",
            "properties": {"title": "Budget", "locale": "de_DE"},
            "sheets": [
                {
                    "properties": {
                        "sheetId": 0,
                        "title": "Sheet1",
                        "index": 0,
                        "gridProperties": {"rowCount": 10, "columnCount": 5},
                    },
                    "charts": [{"chartId": 9}],
                }
            ],
        }
        data = spreadsheet_metadata(response)
        assert data["title"] == "Budget"
        assert data["locale"] == "de_DE"
        assert data["sheets"][0]["rowCount"] == 10
        assert data["sheets"][0]["chartIds"] == [9]
