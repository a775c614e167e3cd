"""sheetbridge - Google Sheets commands with human-friendly addressing.

Translates named commands using sheet names and A1 ranges into Google
Sheets API requests and normalizes every outcome into one envelope.
"""

__version__ = "0.1.0"

from sheetbridge.a1 import GridRegion, ParsedRange, RowSpan, parse_range
from sheetbridge.commands import COMMANDS, dispatch
from sheetbridge.exceptions import (
    InvalidRangeError,
    SheetBridgeError,
    SheetNotFoundError,
    TransportError,
)
from sheetbridge.resolver import SheetResolver
from sheetbridge.responses import CommandEnvelope, ErrorKind
from sheetbridge.transport import GoogleSheetsTransport, SheetInfo, Transport

__all__ = [
    "COMMANDS",
    "CommandEnvelope",
    "ErrorKind",
    "GoogleSheetsTransport",
    "GridRegion",
    "InvalidRangeError",
    "ParsedRange",
    "RowSpan",
    "SheetBridgeError",
    "SheetInfo",
    "SheetNotFoundError",
    "SheetResolver",
    "Transport",
    "TransportError",
    "__version__",
    "dispatch",
    "parse_range",
]
