"""Cell style, border and merge commands."""

from __future__ import annotations

import asyncio

from loguru import logger

from sheetbridge import responses
from sheetbridge.commands.registry import command
from sheetbridge.models import (
    BatchFormatCellsInput,
    FormatCellsInput,
    MergeCellsInput,
    UnmergeCellsInput,
    UpdateBordersInput,
)
from sheetbridge.request_builders import (
    build_merge_request,
    build_repeat_cell_request,
    build_unmerge_request,
    build_update_borders_request,
)
from sheetbridge.resolver import SheetResolver
from sheetbridge.responses import CommandEnvelope
from sheetbridge.transport import Transport


@command("sheets_format_cells", FormatCellsInput)
async def format_cells(params: FormatCellsInput, transport: Transport) -> CommandEnvelope:
    """Apply a partial cell style to a range."""
    resolver = SheetResolver(transport, params.spreadsheet_id)
    _, region = await resolver.resolve_range(params.range)
    request = build_repeat_cell_request(region, params.format)
    response = await transport.batch_update(params.spreadsheet_id, [request])
    return CommandEnvelope.ok(
        f"Formatted cells in {params.range}",
        range=params.range,
        fields=request["repeatCell"]["fields"],
        **responses.batch_update_replies(response),
    )


@command("sheets_batch_format_cells", BatchFormatCellsInput)
async def batch_format_cells(
    params: BatchFormatCellsInput, transport: Transport
) -> CommandEnvelope:
    """Apply several partial cell styles in one batchUpdate."""
    resolver = SheetResolver(transport, params.spreadsheet_id)
    resolved = await asyncio.gather(
        *(resolver.resolve_range(item.range) for item in params.format_requests)
    )
    requests = [
        build_repeat_cell_request(region, item.format)
        for (_, region), item in zip(resolved, params.format_requests, strict=True)
    ]
    logger.debug("Sending {} repeatCell requests", len(requests))
    response = await transport.batch_update(params.spreadsheet_id, requests)
    return CommandEnvelope.ok(
        f"Applied {len(requests)} format requests",
        formattedRanges=[item.range for item in params.format_requests],
        **responses.batch_update_replies(response),
    )


@command("sheets_update_borders", UpdateBordersInput)
async def update_borders(params: UpdateBordersInput, transport: Transport) -> CommandEnvelope:
    """Set or remove borders around and inside a range."""
    resolver = SheetResolver(transport, params.spreadsheet_id)
    _, region = await resolver.resolve_range(params.range)
    request = build_update_borders_request(region, params.borders)
    response = await transport.batch_update(params.spreadsheet_id, [request])
    edges = [key for key in request["updateBorders"] if key != "range"]
    return CommandEnvelope.ok(
        f"Updated borders in {params.range}",
        range=params.range,
        edges=edges,
        **responses.batch_update_replies(response),
    )


@command("sheets_merge_cells", MergeCellsInput)
async def merge_cells(params: MergeCellsInput, transport: Transport) -> CommandEnvelope:
    """Merge the cells of a range."""
    resolver = SheetResolver(transport, params.spreadsheet_id)
    sheet, region = await resolver.resolve_range(params.range)
    if not region.is_bounded:
        region = region.bounded(sheet.row_count, sheet.column_count)
    response = await transport.batch_update(
        params.spreadsheet_id, [build_merge_request(region, params.merge_type)]
    )
    return CommandEnvelope.ok(
        f"Merged cells in {params.range}",
        range=params.range,
        mergeType=params.merge_type,
        **responses.batch_update_replies(response),
    )


@command("sheets_unmerge_cells", UnmergeCellsInput)
async def unmerge_cells(params: UnmergeCellsInput, transport: Transport) -> CommandEnvelope:
    """Unmerge every merged block inside a range."""
    resolver = SheetResolver(transport, params.spreadsheet_id)
    _, region = await resolver.resolve_range(params.range)
    response = await transport.batch_update(
        params.spreadsheet_id, [build_unmerge_request(region)]
    )
    return CommandEnvelope.ok(
        f"Unmerged cells in {params.range}",
        range=params.range,
        **responses.batch_update_replies(response),
    )
