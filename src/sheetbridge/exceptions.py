"""Exceptions raised while translating and dispatching sheet commands."""

from __future__ import annotations


class SheetBridgeError(Exception):
    """Base exception for translation-time errors."""

    pass


class InvalidRangeError(SheetBridgeError):
    """Raised when an A1 reference cannot be parsed.

    Always raised before anything is sent to the backend.
    """

    def __init__(self, reference: str, reason: str | None = None) -> None:
        self.reference = reference
        self.reason = reason
        message = f"Invalid range '{reference}'"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class SheetNotFoundError(SheetBridgeError):
    """Raised when a sheet name does not match any sheet in the spreadsheet."""

    def __init__(
        self,
        spreadsheet_id: str,
        sheet_name: str | None,
        available: tuple[str, ...] = (),
    ) -> None:
        self.spreadsheet_id = spreadsheet_id
        self.sheet_name = sheet_name
        self.available = available
        if sheet_name is None:
            message = (
                f"No sheet specified and no default sheet available in spreadsheet "
                f"{spreadsheet_id}"
            )
        else:
            message = f"Sheet '{sheet_name}' not found in spreadsheet {spreadsheet_id}"
        if available:
            message += f". Available sheets: {', '.join(available)}"
        super().__init__(message)


class InvalidInputError(SheetBridgeError):
    """Raised when command parameters fail validation."""


class RowCountMismatchError(InvalidInputError):
    """Raised when a fixed range and the supplied rows disagree in height."""

    def __init__(self, range_ref: str, expected_rows: int, actual_rows: int) -> None:
        self.range_ref = range_ref
        self.expected_rows = expected_rows
        self.actual_rows = actual_rows
        anchor = range_ref.split(":")[0]
        super().__init__(
            f"Range mismatch: the range '{range_ref}' expects exactly {expected_rows} "
            f"rows, but {actual_rows} rows were provided (empty rows count too). "
            f"Provide exactly {expected_rows} rows, or use a flexible range such as "
            f"'{anchor}' that expands to fit the data."
        )


class TransportError(Exception):
    """Base exception for backend errors."""


class AuthenticationError(TransportError):
    """Raised when the backend rejects the credentials (401)."""


class PermissionDeniedError(TransportError):
    """Raised when credentials are valid but the operation is not allowed (403)."""


class NotFoundError(TransportError):
    """Raised when a spreadsheet, sheet or chart does not exist (404)."""


class ChartNotFoundError(NotFoundError):
    """Raised when a chart id is not present in any sheet."""

    def __init__(self, chart_id: int) -> None:
        self.chart_id = chart_id
        super().__init__(f"Chart with ID {chart_id} not found")


class InvalidArgumentError(TransportError):
    """Raised when the backend rejects a request as malformed (400)."""


class QuotaExceededError(TransportError):
    """Raised when the backend rate limit or quota is hit."""


class TransientNetworkError(TransportError):
    """Raised on connectivity failures, timeouts and gateway errors."""


class APIError(TransportError):
    """Raised when the API returns an error that fits no other category."""

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.status_code = status_code
