"""Sheet and spreadsheet level commands."""

from __future__ import annotations

from typing import Any

from loguru import logger

from sheetbridge import responses
from sheetbridge.commands.registry import command
from sheetbridge.exceptions import (
    InvalidArgumentError,
    NotFoundError,
    PermissionDeniedError,
)
from sheetbridge.models import (
    BatchDeleteSheetsInput,
    CheckAccessInput,
    CopyToInput,
    CreateSpreadsheetInput,
    DeleteSheetInput,
    DuplicateSheetInput,
    GetMetadataInput,
    InsertSheetInput,
    UpdateSheetPropertiesInput,
)
from sheetbridge.request_builders import (
    build_add_sheet_request,
    build_delete_sheet_request,
    build_duplicate_sheet_request,
    build_update_sheet_properties_request,
)
from sheetbridge.responses import CommandEnvelope
from sheetbridge.transport import Transport

DEFAULT_ROW_COUNT = 1000
DEFAULT_COLUMN_COUNT = 26


@command("sheets_insert_sheet", InsertSheetInput)
async def insert_sheet(params: InsertSheetInput, transport: Transport) -> CommandEnvelope:
    """Add a new sheet; the new sheetId is returned for later commands."""
    request = build_add_sheet_request(
        params.title,
        index=params.index,
        row_count=params.row_count,
        column_count=params.column_count,
    )
    response = await transport.batch_update(params.spreadsheet_id, [request])
    data = responses.sheet_added(response)
    logger.debug("Added sheet '{}' -> {}", params.title, data.get("sheetId"))
    return CommandEnvelope.ok(f"Added sheet '{params.title}'", **data)


@command("sheets_delete_sheet", DeleteSheetInput)
async def delete_sheet(params: DeleteSheetInput, transport: Transport) -> CommandEnvelope:
    """Delete a sheet by id."""
    response = await transport.batch_update(
        params.spreadsheet_id, [build_delete_sheet_request(params.sheet_id)]
    )
    return CommandEnvelope.ok(
        f"Deleted sheet {params.sheet_id}",
        deletedSheetId=params.sheet_id,
        **responses.batch_update_replies(response),
    )


@command("sheets_batch_delete_sheets", BatchDeleteSheetsInput)
async def batch_delete_sheets(
    params: BatchDeleteSheetsInput, transport: Transport
) -> CommandEnvelope:
    """Delete several sheets in one batchUpdate."""
    requests = [build_delete_sheet_request(sheet_id) for sheet_id in params.sheet_ids]
    response = await transport.batch_update(params.spreadsheet_id, requests)
    return CommandEnvelope.ok(
        f"Deleted {len(requests)} sheets",
        deletedSheetIds=params.sheet_ids,
        **responses.batch_update_replies(response),
    )


@command("sheets_duplicate_sheet", DuplicateSheetInput)
async def duplicate_sheet(params: DuplicateSheetInput, transport: Transport) -> CommandEnvelope:
    """Duplicate a sheet within the same spreadsheet."""
    request = build_duplicate_sheet_request(
        params.sheet_id,
        insert_sheet_index=params.insert_sheet_index,
        new_sheet_name=params.new_sheet_name,
    )
    response = await transport.batch_update(params.spreadsheet_id, [request])
    data = responses.sheet_added(response, reply_key="duplicateSheet")
    return CommandEnvelope.ok(
        f"Duplicated sheet {params.sheet_id}", sourceSheetId=params.sheet_id, **data
    )


@command("sheets_update_sheet_properties", UpdateSheetPropertiesInput)
async def update_sheet_properties(
    params: UpdateSheetPropertiesInput, transport: Transport
) -> CommandEnvelope:
    """Rename, hide, resize, freeze or recolor a sheet."""
    request = build_update_sheet_properties_request(params)
    response = await transport.batch_update(params.spreadsheet_id, [request])
    fields = request["updateSheetProperties"]["fields"]
    return CommandEnvelope.ok(
        f"Updated properties of sheet {params.sheet_id}",
        sheetId=params.sheet_id,
        updatedFields=fields.split(","),
        **responses.batch_update_replies(response),
    )


@command("sheets_copy_to", CopyToInput)
async def copy_to(params: CopyToInput, transport: Transport) -> CommandEnvelope:
    """Copy a sheet into another spreadsheet."""
    response = await transport.copy_sheet_to(
        params.spreadsheet_id, params.sheet_id, params.destination_spreadsheet_id
    )
    return CommandEnvelope.ok(
        f"Copied sheet {params.sheet_id} to {params.destination_spreadsheet_id}",
        destinationSpreadsheetId=params.destination_spreadsheet_id,
        **responses.sheet_copied(response),
    )


def build_create_spreadsheet_body(params: CreateSpreadsheetInput) -> dict[str, Any]:
    """Build the spreadsheets.create body; each sheet defaults to 1000x26."""
    body: dict[str, Any] = {"properties": {"title": params.title}}
    if params.sheets:
        body["sheets"] = [
            {
                "properties": {
                    "title": sheet.title or f"Sheet{position + 1}",
                    "gridProperties": {
                        "rowCount": sheet.row_count or DEFAULT_ROW_COUNT,
                        "columnCount": sheet.column_count or DEFAULT_COLUMN_COUNT,
                    },
                }
            }
            for position, sheet in enumerate(params.sheets)
        ]
    return body


@command("sheets_create_spreadsheet", CreateSpreadsheetInput)
async def create_spreadsheet(
    params: CreateSpreadsheetInput, transport: Transport
) -> CommandEnvelope:
    """Create a new spreadsheet."""
    response = await transport.create_spreadsheet(build_create_spreadsheet_body(params))
    return CommandEnvelope.ok(
        f"Created spreadsheet '{params.title}'", **responses.spreadsheet_created(response)
    )


@command("sheets_get_metadata", GetMetadataInput)
async def get_metadata(params: GetMetadataInput, transport: Transport) -> CommandEnvelope:
    """Read spreadsheet properties and the list of sheets."""
    response = await transport.get_spreadsheet(params.spreadsheet_id)
    return CommandEnvelope.ok(
        "Retrieved spreadsheet metadata", **responses.spreadsheet_metadata(response)
    )


@command("sheets_check_access", CheckAccessInput)
async def check_access(params: CheckAccessInput, transport: Transport) -> CommandEnvelope:
    """Report whether the token can read and write the spreadsheet."""
    permissions: dict[str, Any] = {
        "canRead": False,
        "canWrite": False,
        "canShare": False,
        "isOwner": False,
    }

    try:
        metadata = await transport.get_metadata(params.spreadsheet_id)
    except NotFoundError:
        permissions["error"] = "Spreadsheet not found. Check that the ID is correct."
    except PermissionDeniedError:
        permissions["error"] = (
            "Access denied. The spreadsheet must be shared with this account."
        )
    else:
        permissions["canRead"] = True
        try:
            await transport.batch_update(params.spreadsheet_id, [])
            permissions["canWrite"] = True
        except PermissionDeniedError:
            permissions["canWrite"] = False
        except InvalidArgumentError:
            # Empty batches are rejected only after the write permission check
            permissions["canWrite"] = True

        if permissions["canWrite"]:
            recommendation = "You have full read/write access to this spreadsheet."
        else:
            recommendation = (
                "You have read-only access to this spreadsheet. To write data, "
                "the owner needs to grant you Editor permissions."
            )
        return CommandEnvelope.ok(
            "Checked spreadsheet access",
            spreadsheetId=params.spreadsheet_id,
            title=metadata.title,
            permissions=permissions,
            sheets=[{"sheetId": s.sheet_id, "title": s.title} for s in metadata.sheets],
            recommendation=recommendation,
        )

    return CommandEnvelope.ok(
        "Checked spreadsheet access",
        spreadsheetId=params.spreadsheet_id,
        permissions=permissions,
        recommendation="Share the spreadsheet with this account and grant Editor access.",
    )
