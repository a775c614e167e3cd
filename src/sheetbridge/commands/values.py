"""Cell value commands: read, write, append, clear, rows, links and dates."""

from __future__ import annotations

import datetime as dt
import re
from typing import Any

from loguru import logger

from sheetbridge import responses
from sheetbridge.a1 import (
    InsertPosition,
    compute_fill_region,
    compute_inserted_row_span,
    parse_range,
    region_to_a1,
    split_sheet_qualifier,
)
from sheetbridge.commands.registry import command
from sheetbridge.exceptions import InvalidInputError, RowCountMismatchError
from sheetbridge.models import (
    AppendValuesInput,
    BatchGetValuesInput,
    BatchUpdateValuesInput,
    CellFormat,
    ClearValuesInput,
    GetValuesInput,
    InsertDateInput,
    InsertLinkInput,
    InsertRowsInput,
    NumberFormat,
    UpdateValuesInput,
)
from sheetbridge.request_builders import build_insert_rows_request, build_repeat_cell_request
from sheetbridge.resolver import SheetResolver
from sheetbridge.responses import CommandEnvelope
from sheetbridge.transport import Transport

_ISO_DATE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_EU_DATE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")

_RELATIVE_DAYS = {"today": 0, "tomorrow": 1, "yesterday": -1}


def check_row_count(range_ref: str, values: list[list[Any]]) -> None:
    """Reject payloads whose height disagrees with a fixed range.

    Single cells written without a colon (``A1``) and ranges without an end
    row (``A2:C``) expand to fit and are not checked. ``A1:A1`` is fixed.

    Raises:
        InvalidRangeError: if ``range_ref`` is malformed
        RowCountMismatchError: if the range is fixed and heights differ
    """
    region = parse_range(range_ref).region
    _, cells = split_sheet_qualifier(range_ref.strip())
    if region.height is None or ":" not in cells:
        return
    if region.height != len(values):
        raise RowCountMismatchError(range_ref, region.height, len(values))


@command("sheets_get_values", GetValuesInput)
async def get_values(params: GetValuesInput, transport: Transport) -> CommandEnvelope:
    """Read values from a range."""
    response = await transport.get_values(
        params.spreadsheet_id,
        params.range,
        major_dimension=params.major_dimension,
        value_render_option=params.value_render_option,
    )
    return CommandEnvelope.ok(
        f"Retrieved values from {params.range}", **responses.values_read(response)
    )


@command("sheets_batch_get_values", BatchGetValuesInput)
async def batch_get_values(params: BatchGetValuesInput, transport: Transport) -> CommandEnvelope:
    """Read values from several ranges in one call."""
    response = await transport.batch_get_values(
        params.spreadsheet_id,
        params.ranges,
        major_dimension=params.major_dimension,
        value_render_option=params.value_render_option,
    )
    return CommandEnvelope.ok(
        f"Retrieved values from {len(params.ranges)} ranges",
        **responses.values_batch_read(response),
    )


@command("sheets_update_values", UpdateValuesInput)
async def update_values(params: UpdateValuesInput, transport: Transport) -> CommandEnvelope:
    """Write values into a range."""
    check_row_count(params.range, params.values)
    response = await transport.update_values(
        params.spreadsheet_id,
        params.range,
        params.values,
        value_input_option=params.value_input_option,
    )
    return CommandEnvelope.ok(
        f"Updated values in {params.range}", **responses.values_updated(response)
    )


@command("sheets_batch_update_values", BatchUpdateValuesInput)
async def batch_update_values(
    params: BatchUpdateValuesInput, transport: Transport
) -> CommandEnvelope:
    """Write values into several ranges in one call."""
    for item in params.data:
        check_row_count(item.range, item.values)
    response = await transport.batch_update_values(
        params.spreadsheet_id,
        [item.to_api() for item in params.data],
        value_input_option=params.value_input_option,
    )
    return CommandEnvelope.ok(
        f"Updated values in {len(params.data)} ranges",
        **responses.values_batch_updated(response),
    )


@command("sheets_append_values", AppendValuesInput)
async def append_values(params: AppendValuesInput, transport: Transport) -> CommandEnvelope:
    """Append rows after the last row of a table."""
    response = await transport.append_values(
        params.spreadsheet_id,
        params.range,
        params.values,
        value_input_option=params.value_input_option,
        insert_data_option=params.insert_data_option,
    )
    return CommandEnvelope.ok(
        f"Appended {len(params.values)} rows", **responses.values_appended(response)
    )


@command("sheets_clear_values", ClearValuesInput)
async def clear_values(params: ClearValuesInput, transport: Transport) -> CommandEnvelope:
    """Clear values in a range, keeping formatting."""
    response = await transport.clear_values(params.spreadsheet_id, params.range)
    return CommandEnvelope.ok(
        f"Cleared values in {params.range}", **responses.values_cleared(response)
    )


@command("sheets_insert_rows", InsertRowsInput)
async def insert_rows(params: InsertRowsInput, transport: Transport) -> CommandEnvelope:
    """Insert rows before or after an anchor range, optionally filling them."""
    resolver = SheetResolver(transport, params.spreadsheet_id)
    sheet, anchor = await resolver.resolve_range(params.range)
    span = compute_inserted_row_span(anchor, params.rows, InsertPosition(params.position))
    logger.debug(
        "Inserting rows [{}, {}) into sheet {}", span.start_row, span.end_row, sheet.sheet_id
    )

    response = await transport.batch_update(
        params.spreadsheet_id,
        [build_insert_rows_request(sheet.sheet_id, span, params.inherit_from_before)],
    )

    data: dict[str, Any] = {
        "spreadsheetId": params.spreadsheet_id,
        "sheetId": sheet.sheet_id,
        "insertedRows": {"startRow": span.start_row, "endRow": span.end_row},
        "rowCount": span.count,
        "replies": response.get("replies", []),
    }

    if params.values:
        shift = span.start_row - anchor.start_row
        fill = compute_fill_region(anchor, params.values, row_shift=shift)
        fill_range = region_to_a1(fill, sheet.title)
        update = await transport.update_values(
            params.spreadsheet_id,
            fill_range,
            params.values,
            value_input_option=params.value_input_option,
        )
        data["valuesRange"] = update.get("updatedRange", fill_range)
        data["updatedCells"] = update.get("updatedCells", 0)

    return CommandEnvelope.ok(
        f"Inserted {span.count} rows {params.position.lower()} row {anchor.start_row + 1}",
        **data,
    )


def build_hyperlink_formula(url: str, text: str | None, use_eu_format: bool = True) -> str:
    """Build a HYPERLINK formula; EU locales separate arguments with ``;``."""
    separator = ";" if use_eu_format else ","
    label = text if text else url

    def quoted(value: str) -> str:
        return '"' + value.replace('"', '""') + '"'

    return f"=HYPERLINK({quoted(url)}{separator}{quoted(label)})"


@command("sheets_insert_link", InsertLinkInput)
async def insert_link(params: InsertLinkInput, transport: Transport) -> CommandEnvelope:
    """Insert a clickable HYPERLINK formula into a cell."""
    parse_range(params.range)
    formula = build_hyperlink_formula(params.url, params.text, params.use_eu_format)
    response = await transport.update_values(
        params.spreadsheet_id,
        params.range,
        [[formula]],
        value_input_option="USER_ENTERED",
    )
    return CommandEnvelope.ok(
        f"Inserted link in {params.range}",
        formula=formula,
        url=params.url,
        text=params.text or params.url,
        **responses.values_updated(response),
    )


def parse_date_input(value: str, today: dt.date | None = None) -> dt.date:
    """Parse ``today``/``tomorrow``/``yesterday``, ISO, ``d.m.yyyy`` or ``m/d/yyyy``.

    Raises:
        InvalidInputError: if the value matches none of the accepted forms
    """
    text = value.strip()
    lowered = text.lower()
    if lowered in _RELATIVE_DAYS:
        base = today or dt.date.today()
        return base + dt.timedelta(days=_RELATIVE_DAYS[lowered])

    try:
        if match := _ISO_DATE.match(text):
            year, month, day = (int(g) for g in match.groups())
            return dt.date(year, month, day)
        if match := _EU_DATE.match(text):
            day, month, year = (int(g) for g in match.groups())
            return dt.date(year, month, day)
        if match := _US_DATE.match(text):
            month, day, year = (int(g) for g in match.groups())
            return dt.date(year, month, day)
        return dt.datetime.fromisoformat(text).date()
    except ValueError as e:
        raise InvalidInputError(f"Unable to parse date: {value}") from e


def format_date(value: dt.date, fmt: str) -> str:
    """Render a date the way the target format expects.

    ``locale`` writes ISO text and relies on a DATE number format.
    """
    if fmt == "us":
        return f"{value.month}/{value.day}/{value.year}"
    if fmt == "eu":
        return f"{value.day}.{value.month}.{value.year}"
    return value.isoformat()


def date_pattern(use_eu_format: bool) -> str:
    return "d.M.yyyy" if use_eu_format else "M/d/yyyy"


@command("sheets_insert_date", InsertDateInput)
async def insert_date(params: InsertDateInput, transport: Transport) -> CommandEnvelope:
    """Insert a date into a cell, optionally applying a locale date format."""
    parsed_date = parse_date_input(params.date)
    formatted = format_date(parsed_date, params.format)

    target = None
    if params.format == "locale":
        resolver = SheetResolver(transport, params.spreadsheet_id)
        _, target = await resolver.resolve_range(params.range)
    else:
        parse_range(params.range)

    response = await transport.update_values(
        params.spreadsheet_id,
        params.range,
        [[formatted]],
        value_input_option="USER_ENTERED",
    )

    data: dict[str, Any] = {
        "originalDate": params.date,
        "parsedDate": parsed_date.isoformat(),
        "formattedDate": formatted,
        "format": params.format,
        **responses.values_updated(response),
    }

    if target is not None:
        pattern = date_pattern(params.use_eu_format)
        fmt = CellFormat(number_format=NumberFormat(type="DATE", pattern=pattern))
        await transport.batch_update(
            params.spreadsheet_id, [build_repeat_cell_request(target, fmt)]
        )
        data["numberFormatPattern"] = pattern

    return CommandEnvelope.ok(f"Inserted date in {params.range}", **data)
