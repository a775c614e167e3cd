"""Sheet name to sheet id resolution.

A resolver is created per command and never caches: each resolution
fetches the current sheet list, so renames or deletions made by other
actors between commands are always seen.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from loguru import logger

from sheetbridge.a1 import parse_range
from sheetbridge.exceptions import SheetNotFoundError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sheetbridge.a1 import GridRegion
    from sheetbridge.transport import SheetInfo, Transport


class SheetResolver:
    """Resolves sheet names within one spreadsheet."""

    def __init__(self, transport: Transport, spreadsheet_id: str) -> None:
        self._transport = transport
        self._spreadsheet_id = spreadsheet_id

    @property
    def spreadsheet_id(self) -> str:
        return self._spreadsheet_id

    async def resolve_sheet(
        self,
        sheet_name: str | None,
        *,
        first_sheet: bool = False,
    ) -> SheetInfo:
        """Look up a sheet by exact (case-sensitive) title.

        Args:
            sheet_name: Sheet title, or None for the first sheet
            first_sheet: Must be True for a None name to resolve to the first sheet

        Raises:
            SheetNotFoundError: if no sheet matches
        """
        if sheet_name is None and not first_sheet:
            raise SheetNotFoundError(self._spreadsheet_id, None)

        metadata = await self._transport.get_metadata(self._spreadsheet_id)
        titles = tuple(sheet.title for sheet in metadata.sheets)

        if sheet_name is None:
            if not metadata.sheets:
                raise SheetNotFoundError(self._spreadsheet_id, None)
            sheet = min(metadata.sheets, key=lambda s: s.index)
            logger.debug("Resolved first sheet -> {} ({})", sheet.title, sheet.sheet_id)
            return sheet

        for sheet in metadata.sheets:
            if sheet.title == sheet_name:
                logger.debug("Resolved sheet '{}' -> {}", sheet_name, sheet.sheet_id)
                return sheet

        raise SheetNotFoundError(self._spreadsheet_id, sheet_name, titles)

    async def resolve(
        self,
        sheet_name: str | None,
        *,
        default_sheet_id: int | None = None,
        first_sheet: bool = False,
    ) -> int:
        """Resolve a sheet name to its numeric id.

        A None name returns ``default_sheet_id`` without any backend call
        when one is supplied.
        """
        if sheet_name is None and default_sheet_id is not None:
            return default_sheet_id
        sheet = await self.resolve_sheet(sheet_name, first_sheet=first_sheet)
        return sheet.sheet_id

    async def resolve_range(self, reference: str) -> tuple[SheetInfo, GridRegion]:
        """Parse an A1 reference and attach the resolved sheet id to its region.

        An unqualified reference targets the first sheet.

        Raises:
            InvalidRangeError: before any backend call, if the reference is malformed
            SheetNotFoundError: if the named sheet does not exist
        """
        parsed = parse_range(reference)
        sheet = await self.resolve_sheet(parsed.sheet_name, first_sheet=True)
        return sheet, parsed.region.with_sheet(sheet.sheet_id)

    async def resolve_many(
        self,
        sheet_names: Iterable[str | None],
        *,
        default_sheet_id: int | None = None,
        first_sheet: bool = False,
    ) -> list[int]:
        """Resolve several independent names concurrently.

        Results are returned in input order.
        """
        return list(
            await asyncio.gather(
                *(
                    self.resolve(
                        name,
                        default_sheet_id=default_sheet_id,
                        first_sheet=first_sheet,
                    )
                    for name in sheet_names
                )
            )
        )
