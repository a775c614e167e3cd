"""
Builders for batchUpdate request objects.

Every builder is a pure function: it takes already-resolved coordinates
(sheet ids, zero-based regions) plus validated input models and returns
the request dict exactly as it is sent to the API.
"""

from __future__ import annotations

from typing import Any

from sheetbridge.a1 import GridRegion, RowSpan
from sheetbridge.exceptions import InvalidInputError
from sheetbridge.models import (
    Borders,
    CellFormat,
    GridPropertiesInput,
    MergeType,
    UpdateSheetPropertiesInput,
)

# Object-valued format fields that are replaced as a whole
_ATOMIC_FORMAT_FIELDS = frozenset({"backgroundColor", "foregroundColor", "numberFormat"})

_BORDER_EDGES = ("top", "bottom", "left", "right", "innerHorizontal", "innerVertical")


# =============================================================================
# Cell formatting
# =============================================================================


def _drop_empty_objects(data: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict) and key not in _ATOMIC_FORMAT_FIELDS:
            value = _drop_empty_objects(value)
            if not value:
                continue
        result[key] = value
    return result


def build_cell_format(fmt: CellFormat) -> dict[str, Any]:
    """Convert a CellFormat model to an API CellFormat with only present fields.

    Nested objects left empty (``{"textFormat": {}}``) are dropped, so they
    never reach the ``fields`` mask.
    """
    return _drop_empty_objects(fmt.to_api())


def _leaf_paths(data: dict[str, Any], prefix: str) -> list[str]:
    paths: list[str] = []
    for key, value in data.items():
        path = f"{prefix}.{key}"
        if isinstance(value, dict) and key not in _ATOMIC_FORMAT_FIELDS:
            paths.extend(_leaf_paths(value, path))
        else:
            paths.append(path)
    return paths


def format_fields_mask(cell_format: dict[str, Any]) -> str:
    """Build the leaf-level ``fields`` mask for a repeatCell request.

    Examples:
        {"textFormat": {"bold": True}} -> "userEnteredFormat.textFormat.bold"
    """
    return ",".join(_leaf_paths(cell_format, "userEnteredFormat"))


def build_repeat_cell_request(region: GridRegion, fmt: CellFormat) -> dict[str, Any]:
    """Build a repeatCell request applying ``fmt`` to every cell in ``region``.

    Raises:
        InvalidInputError: if the format has no fields set
    """
    cell_format = build_cell_format(fmt)
    if not cell_format:
        raise InvalidInputError("Format must set at least one property")
    return {
        "repeatCell": {
            "range": region.to_grid_range(),
            "cell": {"userEnteredFormat": cell_format},
            "fields": format_fields_mask(cell_format),
        }
    }


# =============================================================================
# Borders and merges
# =============================================================================


def build_update_borders_request(region: GridRegion, borders: Borders) -> dict[str, Any]:
    """Build an updateBorders request.

    Only edges present in ``borders`` are emitted; an edge with style NONE is
    emitted so the existing border is removed.
    """
    edges = borders.to_api()
    request: dict[str, Any] = {"range": region.to_grid_range()}
    for edge in _BORDER_EDGES:
        if edge in edges:
            request[edge] = edges[edge]
    if len(request) == 1:
        raise InvalidInputError("Borders must set at least one edge")
    return {"updateBorders": request}


def build_merge_request(region: GridRegion, merge_type: MergeType = "MERGE_ALL") -> dict[str, Any]:
    return {"mergeCells": {"range": region.to_grid_range(), "mergeType": merge_type}}


def build_unmerge_request(region: GridRegion) -> dict[str, Any]:
    return {"unmergeCells": {"range": region.to_grid_range()}}


# =============================================================================
# Rows
# =============================================================================


def build_insert_rows_request(
    sheet_id: int, span: RowSpan, inherit_from_before: bool = False
) -> dict[str, Any]:
    """Build an insertDimension request for the half-open row span."""
    return {
        "insertDimension": {
            "range": {
                "sheetId": sheet_id,
                "dimension": "ROWS",
                "startIndex": span.start_row,
                "endIndex": span.end_row,
            },
            "inheritFromBefore": inherit_from_before,
        }
    }


# =============================================================================
# Sheets and embedded objects
# =============================================================================


def build_add_sheet_request(
    title: str,
    *,
    index: int | None = None,
    row_count: int | None = None,
    column_count: int | None = None,
) -> dict[str, Any]:
    properties: dict[str, Any] = {"title": title}
    if index is not None:
        properties["index"] = index
    grid_properties: dict[str, Any] = {}
    if row_count is not None:
        grid_properties["rowCount"] = row_count
    if column_count is not None:
        grid_properties["columnCount"] = column_count
    if grid_properties:
        properties["gridProperties"] = grid_properties
    return {"addSheet": {"properties": properties}}


def build_delete_sheet_request(sheet_id: int) -> dict[str, Any]:
    return {"deleteSheet": {"sheetId": sheet_id}}


def build_duplicate_sheet_request(
    sheet_id: int,
    *,
    insert_sheet_index: int | None = None,
    new_sheet_name: str | None = None,
) -> dict[str, Any]:
    request: dict[str, Any] = {"sourceSheetId": sheet_id}
    if insert_sheet_index is not None:
        request["insertSheetIndex"] = insert_sheet_index
    if new_sheet_name is not None:
        request["newSheetName"] = new_sheet_name
    return {"duplicateSheet": request}


def build_update_sheet_properties_request(params: UpdateSheetPropertiesInput) -> dict[str, Any]:
    """Build an updateSheetProperties request with a matching ``fields`` mask.

    Raises:
        InvalidInputError: if no property was supplied
    """
    properties: dict[str, Any] = {"sheetId": params.sheet_id}
    fields: list[str] = []

    if params.title is not None:
        properties["title"] = params.title
        fields.append("title")
    if params.hidden is not None:
        properties["hidden"] = params.hidden
        fields.append("hidden")

    grid: GridPropertiesInput | None = params.grid_properties
    if grid is not None:
        grid_properties = grid.to_api()
        if grid_properties:
            properties["gridProperties"] = grid_properties
            fields.extend(f"gridProperties.{name}" for name in grid_properties)

    if params.tab_color is not None:
        properties["tabColor"] = params.tab_color.to_api()
        fields.append("tabColor")

    if not fields:
        raise InvalidInputError("No properties to update")

    return {
        "updateSheetProperties": {
            "properties": properties,
            "fields": ",".join(fields),
        }
    }


def build_delete_embedded_object_request(object_id: int) -> dict[str, Any]:
    return {"deleteEmbeddedObject": {"objectId": object_id}}
