"""
A1 notation parsing and coordinate translation.

Provides column letter conversion, range parsing with optional sheet
qualifiers, and the row/region arithmetic used by the request builders.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any

from sheetbridge.exceptions import InvalidRangeError

_CELL_PATTERN = re.compile(r"^\$?([A-Za-z]*)\$?(\d*)$")


class InsertPosition(str, Enum):
    """Where inserted rows land relative to the anchor row."""

    BEFORE = "BEFORE"
    AFTER = "AFTER"


@dataclass(frozen=True)
class GridRegion:
    """A rectangular block of cells with zero-based, inclusive bounds.

    ``end_row`` / ``end_col`` of ``None`` mean the region runs to the end of
    the sheet in that dimension.
    """

    start_row: int
    end_row: int | None
    start_col: int
    end_col: int | None
    sheet_id: int | None = None

    @property
    def height(self) -> int | None:
        if self.end_row is None:
            return None
        return self.end_row - self.start_row + 1

    @property
    def width(self) -> int | None:
        if self.end_col is None:
            return None
        return self.end_col - self.start_col + 1

    @property
    def is_bounded(self) -> bool:
        return self.end_row is not None and self.end_col is not None

    def with_sheet(self, sheet_id: int) -> GridRegion:
        return replace(self, sheet_id=sheet_id)

    def bounded(self, row_count: int, column_count: int) -> GridRegion:
        """Fill unbounded ends from the sheet's declared grid size."""
        end_row = self.end_row if self.end_row is not None else row_count - 1
        end_col = self.end_col if self.end_col is not None else column_count - 1
        return replace(
            self,
            end_row=max(end_row, self.start_row),
            end_col=max(end_col, self.start_col),
        )

    def to_grid_range(self) -> dict[str, int]:
        """Convert to a GridRange dict (exclusive end indices).

        Unbounded ends are omitted, which the API reads as "to the end".
        """
        grid_range: dict[str, int] = {}
        if self.sheet_id is not None:
            grid_range["sheetId"] = self.sheet_id
        grid_range["startRowIndex"] = self.start_row
        if self.end_row is not None:
            grid_range["endRowIndex"] = self.end_row + 1
        grid_range["startColumnIndex"] = self.start_col
        if self.end_col is not None:
            grid_range["endColumnIndex"] = self.end_col + 1
        return grid_range


@dataclass(frozen=True)
class ParsedRange:
    """Result of parsing an A1 reference."""

    sheet_name: str | None
    region: GridRegion


@dataclass(frozen=True)
class RowSpan:
    """Half-open row span ``[start_row, end_row)``."""

    start_row: int
    end_row: int

    @property
    def count(self) -> int:
        return self.end_row - self.start_row


def column_index_to_letter(index: int) -> str:
    """Convert a zero-based column index to A1 notation letter(s).

    Examples:
        0 -> A, 1 -> B, 25 -> Z, 26 -> AA, 27 -> AB, 702 -> AAA
    """
    if index < 0:
        raise ValueError(f"Column index must be non-negative: {index}")
    result = ""
    while True:
        result = chr(ord("A") + (index % 26)) + result
        index = index // 26 - 1
        if index < 0:
            break
    return result


def letter_to_column_index(letter: str) -> int:
    """Convert A1 notation letter(s) to a zero-based column index.

    Examples:
        A -> 0, B -> 1, Z -> 25, AA -> 26, AB -> 27, AAA -> 702
    """
    if not letter or not letter.isalpha() or not letter.isascii():
        raise ValueError(f"Invalid column letters: {letter!r}")
    result = 0
    for char in letter.upper():
        result = result * 26 + (ord(char) - ord("A") + 1)
    return result - 1


def cell_to_a1(row_index: int, col_index: int) -> str:
    """Convert zero-based row and column indices to A1 notation.

    Examples:
        (0, 0) -> A1, (0, 1) -> B1, (9, 2) -> C10
    """
    return f"{column_index_to_letter(col_index)}{row_index + 1}"


def escape_sheet_title(title: str) -> str:
    """Escape sheet title for use in A1 notation ranges.

    Sheet names containing spaces, special characters, or starting with
    digits need to be wrapped in single quotes.
    """
    needs_quoting = (
        " " in title
        or "'" in title
        or "!" in title
        or ":" in title
        or (len(title) > 0 and title[0].isdigit())
        or not title.replace("_", "").isalnum()
    )
    if needs_quoting:
        escaped = title.replace("'", "''")
        return f"'{escaped}'"
    return title


def split_sheet_qualifier(reference: str) -> tuple[str | None, str]:
    """Split ``'My Sheet'!A1:B2`` into ``("My Sheet", "A1:B2")``.

    One layer of single or double quotes around the sheet name is stripped;
    inside single quotes, ``''`` stands for a literal quote.
    """
    if not reference:
        raise InvalidRangeError(reference, "empty reference")

    quote = reference[0]
    if quote in ("'", '"'):
        i = 1
        name_chars: list[str] = []
        while i < len(reference):
            char = reference[i]
            if char == quote:
                if quote == "'" and reference[i + 1 : i + 2] == "'":
                    name_chars.append("'")
                    i += 2
                    continue
                break
            name_chars.append(char)
            i += 1
        else:
            raise InvalidRangeError(reference, "unmatched quote in sheet name")

        rest = reference[i + 1 :]
        if not rest.startswith("!"):
            raise InvalidRangeError(reference, "expected '!' after quoted sheet name")
        sheet_name = "".join(name_chars)
        if not sheet_name:
            raise InvalidRangeError(reference, "empty sheet name")
        return sheet_name, rest[1:]

    if "!" in reference:
        sheet_name, _, cells = reference.rpartition("!")
        if not sheet_name:
            raise InvalidRangeError(reference, "empty sheet name")
        return sheet_name, cells

    return None, reference


def _parse_cell(part: str, reference: str) -> tuple[int | None, int]:
    """Parse one corner of a range into ``(row_or_None, col)``."""
    match = _CELL_PATTERN.match(part)
    if not match:
        raise InvalidRangeError(reference)
    letters, digits = match.groups()
    if not letters:
        raise InvalidRangeError(reference, "missing column letters")
    col = letter_to_column_index(letters)
    if not digits:
        return None, col
    row = int(digits)
    if row < 1:
        raise InvalidRangeError(reference, "row numbers start at 1")
    return row - 1, col


def parse_range(reference: str) -> ParsedRange:
    """Parse an A1 reference such as ``Sheet1!A1:C10`` or ``'My Sheet'!B2``.

    Raises:
        InvalidRangeError: if the reference is malformed
    """
    if reference is None or not reference.strip():
        raise InvalidRangeError(reference or "", "empty reference")

    sheet_name, cells = split_sheet_qualifier(reference.strip())
    if not cells:
        raise InvalidRangeError(reference, "missing cell range")

    if ":" in cells:
        start, _, end = cells.partition(":")
        if not start or not end or ":" in end:
            raise InvalidRangeError(reference)
        start_row, start_col = _parse_cell(start, reference)
        end_row, end_col = _parse_cell(end, reference)

        if start_row is None and end_row is not None:
            raise InvalidRangeError(reference, "column range cannot end at a row")
        if start_row is None:
            # Whole-column range such as A:C
            start_row = 0

        if end_row is not None and end_row < start_row:
            start_row, end_row = end_row, start_row
        if end_col < start_col:
            start_col, end_col = end_col, start_col

        region = GridRegion(
            start_row=start_row,
            end_row=end_row,
            start_col=start_col,
            end_col=end_col,
        )
    else:
        row, col = _parse_cell(cells, reference)
        if row is None:
            raise InvalidRangeError(reference, "missing row number")
        region = GridRegion(start_row=row, end_row=row, start_col=col, end_col=col)

    return ParsedRange(sheet_name=sheet_name, region=region)


def region_to_a1(region: GridRegion, sheet_title: str | None = None) -> str:
    """Convert a region back to A1 notation, optionally sheet-qualified.

    Examples:
        rows 0..9, cols 0..2 -> A1:C10
        rows 0..None, col 0 -> A:A
    """
    start_letter = column_index_to_letter(region.start_col)
    end_letter = (
        column_index_to_letter(region.end_col) if region.end_col is not None else None
    )

    if region.end_row is None:
        if region.start_row == 0:
            a1 = f"{start_letter}:{end_letter or start_letter}"
        else:
            a1 = f"{start_letter}{region.start_row + 1}:{end_letter or start_letter}"
    elif region.height == 1 and region.width == 1:
        a1 = cell_to_a1(region.start_row, region.start_col)
    else:
        end_col = region.end_col if region.end_col is not None else region.start_col
        start = cell_to_a1(region.start_row, region.start_col)
        a1 = f"{start}:{cell_to_a1(region.end_row, end_col)}"

    if sheet_title is not None:
        return f"{escape_sheet_title(sheet_title)}!{a1}"
    return a1


def compute_inserted_row_span(
    anchor: GridRegion, rows: int, position: InsertPosition | str
) -> RowSpan:
    """Compute where ``rows`` new rows land relative to ``anchor``.

    BEFORE inserts above the anchor's first row; AFTER inserts directly
    below it. Anchor row 4, 2 rows, AFTER -> [5, 7).
    """
    if rows < 1:
        raise ValueError(f"Row count must be positive: {rows}")
    start = anchor.start_row
    if InsertPosition(position) is InsertPosition.AFTER:
        start += 1
    return RowSpan(start_row=start, end_row=start + rows)


def compute_fill_region(
    anchor: GridRegion,
    payload_rows: list[list[Any]],
    row_shift: int = 0,
) -> GridRegion:
    """Compute the region covered by writing ``payload_rows`` at ``anchor``.

    Width is the longest payload row; shorter rows are not padded.
    """
    if not payload_rows:
        raise ValueError("Cannot compute a fill region for an empty payload")
    width = max((len(row) for row in payload_rows), default=0) or 1
    start_row = anchor.start_row + row_shift
    return GridRegion(
        start_row=start_row,
        end_row=start_row + len(payload_rows) - 1,
        start_col=anchor.start_col,
        end_col=anchor.start_col + width - 1,
        sheet_id=anchor.sheet_id,
    )
