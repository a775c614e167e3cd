"""Validated command parameters.

Every command parameter object is a pydantic model accepting the API's
camelCase keys (``spreadsheetId``, ``valueInputOption``...) as well as the
snake_case attribute names. Optional fields default to None and are dropped
when dumped with ``exclude_none=True``; a dropped field is never sent.
"""

from __future__ import annotations

import re
import urllib.parse
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

SPREADSHEET_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")

ValueInputOption = Literal["RAW", "USER_ENTERED"]
MajorDimension = Literal["ROWS", "COLUMNS"]
ValueRenderOption = Literal["FORMATTED_VALUE", "UNFORMATTED_VALUE", "FORMULA"]
ChartType = Literal[
    "COLUMN",
    "BAR",
    "LINE",
    "AREA",
    "PIE",
    "SCATTER",
    "COMBO",
    "HISTOGRAM",
    "CANDLESTICK",
    "WATERFALL",
]
SeriesType = Literal["COLUMN", "BAR", "LINE", "AREA", "PIE", "SCATTER"]
BorderStyle = Literal[
    "NONE", "SOLID", "DASHED", "DOTTED", "SOLID_MEDIUM", "SOLID_THICK", "DOUBLE"
]
MergeType = Literal["MERGE_ALL", "MERGE_COLUMNS", "MERGE_ROWS"]


class ApiModel(BaseModel):
    """Base for models that serialize to API-shaped dicts."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_api(self) -> dict[str, Any]:
        """Dump only the fields that were given a value, with API key names."""
        return self.model_dump(by_alias=True, exclude_none=True)


class CommandInput(ApiModel):
    """Base for command parameter objects.

    ``json_fields`` lists parameters that callers may send as JSON-encoded
    strings; ``a[].b`` addresses key ``b`` of every item of list ``a``.
    """

    json_fields: ClassVar[tuple[str, ...]] = ()


class SpreadsheetInput(CommandInput):
    spreadsheet_id: str = Field(min_length=1)


# =============================================================================
# Cell formatting
# =============================================================================


def hex_to_rgb(hex_color: str) -> dict[str, float]:
    """Convert hex color string to RGB dict for Google Sheets API."""
    hex_color = hex_color.lstrip("#")
    if len(hex_color) != 6:
        raise ValueError(f"Expected a #RRGGBB color, got '{hex_color}'")
    r = int(hex_color[0:2], 16) / 255.0
    g = int(hex_color[2:4], 16) / 255.0
    b = int(hex_color[4:6], 16) / 255.0
    return {"red": r, "green": g, "blue": b}


class Color(ApiModel):
    red: float | None = Field(default=None, ge=0, le=1)
    green: float | None = Field(default=None, ge=0, le=1)
    blue: float | None = Field(default=None, ge=0, le=1)
    alpha: float | None = Field(default=None, ge=0, le=1)

    @model_validator(mode="before")
    @classmethod
    def accept_hex(cls, data: Any) -> Any:
        if isinstance(data, str):
            return hex_to_rgb(data)
        return data


class TextFormat(ApiModel):
    foreground_color: Color | None = None
    font_family: str | None = None
    font_size: int | None = Field(default=None, gt=0)
    bold: bool | None = None
    italic: bool | None = None
    strikethrough: bool | None = None
    underline: bool | None = None


class NumberFormat(ApiModel):
    type: Literal[
        "TEXT",
        "NUMBER",
        "PERCENT",
        "CURRENCY",
        "DATE",
        "TIME",
        "DATE_TIME",
        "SCIENTIFIC",
    ]
    pattern: str | None = None


class Padding(ApiModel):
    top: int | None = None
    right: int | None = None
    bottom: int | None = None
    left: int | None = None


class CellFormat(ApiModel):
    """A partial cell style; only the fields given are applied."""

    background_color: Color | None = None
    text_format: TextFormat | None = None
    horizontal_alignment: Literal["LEFT", "CENTER", "RIGHT"] | None = None
    vertical_alignment: Literal["TOP", "MIDDLE", "BOTTOM"] | None = None
    wrap_strategy: Literal["OVERFLOW_CELL", "LEGACY_WRAP", "CLIP", "WRAP"] | None = None
    number_format: NumberFormat | None = None
    padding: Padding | None = None


class Border(ApiModel):
    style: BorderStyle
    color: Color | None = None
    width: int | None = Field(default=None, gt=0)


class Borders(ApiModel):
    """Six independently optional edges.

    An edge with style ``NONE`` removes an existing border; an omitted edge
    leaves the existing border untouched.
    """

    top: Border | None = None
    bottom: Border | None = None
    left: Border | None = None
    right: Border | None = None
    inner_horizontal: Border | None = None
    inner_vertical: Border | None = None


class FormatCellsInput(SpreadsheetInput):
    json_fields: ClassVar[tuple[str, ...]] = ("format",)

    range: str = Field(min_length=1)
    format: CellFormat


class FormatRequest(ApiModel):
    range: str = Field(min_length=1)
    format: CellFormat


class BatchFormatCellsInput(SpreadsheetInput):
    json_fields: ClassVar[tuple[str, ...]] = ("formatRequests", "formatRequests[].format")

    format_requests: list[FormatRequest] = Field(min_length=1)


class UpdateBordersInput(SpreadsheetInput):
    json_fields: ClassVar[tuple[str, ...]] = ("borders",)

    range: str = Field(min_length=1)
    borders: Borders


class MergeCellsInput(SpreadsheetInput):
    range: str = Field(min_length=1)
    merge_type: MergeType = "MERGE_ALL"


class UnmergeCellsInput(SpreadsheetInput):
    range: str = Field(min_length=1)


# =============================================================================
# Values
# =============================================================================


class GetValuesInput(SpreadsheetInput):
    range: str = Field(min_length=1)
    major_dimension: MajorDimension = "ROWS"
    value_render_option: ValueRenderOption = "FORMATTED_VALUE"


class BatchGetValuesInput(SpreadsheetInput):
    json_fields: ClassVar[tuple[str, ...]] = ("ranges",)

    ranges: list[str] = Field(min_length=1)
    major_dimension: MajorDimension = "ROWS"
    value_render_option: ValueRenderOption = "FORMATTED_VALUE"


class UpdateValuesInput(SpreadsheetInput):
    json_fields: ClassVar[tuple[str, ...]] = ("values",)

    range: str = Field(min_length=1)
    values: list[list[Any]]
    value_input_option: ValueInputOption = "USER_ENTERED"


class ValueRangeInput(ApiModel):
    range: str = Field(min_length=1)
    values: list[list[Any]]


class BatchUpdateValuesInput(SpreadsheetInput):
    json_fields: ClassVar[tuple[str, ...]] = ("data", "data[].values")

    data: list[ValueRangeInput] = Field(min_length=1)
    value_input_option: ValueInputOption = "USER_ENTERED"


class AppendValuesInput(SpreadsheetInput):
    json_fields: ClassVar[tuple[str, ...]] = ("values",)

    range: str = Field(min_length=1)
    values: list[list[Any]] = Field(min_length=1)
    value_input_option: ValueInputOption = "USER_ENTERED"
    insert_data_option: Literal["OVERWRITE", "INSERT_ROWS"] = "OVERWRITE"


class ClearValuesInput(SpreadsheetInput):
    range: str = Field(min_length=1)


class InsertRowsInput(SpreadsheetInput):
    json_fields: ClassVar[tuple[str, ...]] = ("values",)

    range: str = Field(min_length=1)
    rows: int = Field(default=1, ge=1)
    position: Literal["BEFORE", "AFTER"] = "BEFORE"
    inherit_from_before: bool = False
    values: list[list[Any]] | None = None
    value_input_option: ValueInputOption = "USER_ENTERED"


class InsertLinkInput(SpreadsheetInput):
    range: str = Field(min_length=1)
    url: str
    text: str | None = None
    use_eu_format: bool = Field(default=True, alias="useEUFormat")

    @field_validator("url")
    @classmethod
    def check_url(cls, v: str) -> str:
        parsed = urllib.parse.urlparse(v)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("Invalid URL format")
        return v


class InsertDateInput(SpreadsheetInput):
    range: str = Field(min_length=1)
    date: str = Field(min_length=1)
    format: Literal["locale", "iso", "us", "eu"] = "locale"
    use_eu_format: bool = Field(default=True, alias="useEUFormat")


# =============================================================================
# Charts
# =============================================================================


class AnchorCell(ApiModel):
    sheet_id: int
    row_index: int = Field(default=0, ge=0)
    column_index: int = Field(default=0, ge=0)


class OverlayPosition(ApiModel):
    anchor_cell: AnchorCell
    offset_x_pixels: int | None = None
    offset_y_pixels: int | None = None
    width_pixels: int | None = Field(default=None, gt=0)
    height_pixels: int | None = Field(default=None, gt=0)


class ChartPosition(ApiModel):
    overlay_position: OverlayPosition


class SeriesInput(ApiModel):
    source_range: str = Field(min_length=1)
    type: SeriesType | None = None
    target_axis: Literal["LEFT_AXIS", "RIGHT_AXIS"] | None = None


class AxisInput(ApiModel):
    title: str | None = None


class LegendInput(ApiModel):
    position: str | None = None


class CreateChartInput(SpreadsheetInput):
    json_fields: ClassVar[tuple[str, ...]] = (
        "position",
        "series",
        "legend",
        "domainAxis",
        "leftAxis",
        "rightAxis",
        "backgroundColor",
    )

    position: ChartPosition
    chart_type: ChartType
    series: list[SeriesInput] = Field(min_length=1)
    title: str | None = None
    subtitle: str | None = None
    domain_range: str | None = None
    domain_axis: AxisInput | None = None
    left_axis: AxisInput | None = None
    right_axis: AxisInput | None = None
    legend: LegendInput | None = None
    background_color: Color | None = None
    alt_text: str | None = None

    @model_validator(mode="after")
    def check_pie_series(self) -> CreateChartInput:
        if self.chart_type == "PIE" and len(self.series) != 1:
            raise ValueError("PIE charts take exactly one series")
        return self


class UpdateChartInput(SpreadsheetInput):
    json_fields: ClassVar[tuple[str, ...]] = CreateChartInput.json_fields

    chart_id: int
    position: ChartPosition | None = None
    chart_type: ChartType | None = None
    series: list[SeriesInput] | None = Field(default=None, min_length=1)
    title: str | None = None
    subtitle: str | None = None
    domain_range: str | None = None
    domain_axis: AxisInput | None = None
    left_axis: AxisInput | None = None
    right_axis: AxisInput | None = None
    legend: LegendInput | None = None
    background_color: Color | None = None
    alt_text: str | None = None


class DeleteChartInput(SpreadsheetInput):
    chart_id: int


# =============================================================================
# Sheets and spreadsheets
# =============================================================================


class InsertSheetInput(SpreadsheetInput):
    title: str = Field(min_length=1)
    index: int | None = Field(default=None, ge=0)
    row_count: int | None = Field(default=None, gt=0)
    column_count: int | None = Field(default=None, gt=0)


class DeleteSheetInput(SpreadsheetInput):
    sheet_id: int


class BatchDeleteSheetsInput(SpreadsheetInput):
    json_fields: ClassVar[tuple[str, ...]] = ("sheetIds",)

    sheet_ids: list[int] = Field(min_length=1)


class DuplicateSheetInput(SpreadsheetInput):
    sheet_id: int
    insert_sheet_index: int | None = Field(default=None, ge=0)
    new_sheet_name: str | None = None


class CopyToInput(SpreadsheetInput):
    sheet_id: int
    destination_spreadsheet_id: str = Field(min_length=1)


class GridPropertiesInput(ApiModel):
    row_count: int | None = Field(default=None, gt=0)
    column_count: int | None = Field(default=None, gt=0)
    frozen_row_count: int | None = Field(default=None, ge=0)
    frozen_column_count: int | None = Field(default=None, ge=0)


class UpdateSheetPropertiesInput(SpreadsheetInput):
    json_fields: ClassVar[tuple[str, ...]] = ("gridProperties", "tabColor")

    sheet_id: int
    title: str | None = None
    hidden: bool | None = None
    grid_properties: GridPropertiesInput | None = None
    tab_color: Color | None = None


class NewSheetSpec(ApiModel):
    title: str | None = None
    row_count: int | None = Field(default=None, gt=0)
    column_count: int | None = Field(default=None, gt=0)


class CreateSpreadsheetInput(CommandInput):
    json_fields: ClassVar[tuple[str, ...]] = ("sheets",)

    title: str = Field(min_length=1)
    sheets: list[NewSheetSpec] | None = None


class GetMetadataInput(SpreadsheetInput):
    @field_validator("spreadsheet_id")
    @classmethod
    def check_format(cls, v: str) -> str:
        if not SPREADSHEET_ID_PATTERN.match(v):
            raise ValueError("Invalid spreadsheet ID format")
        return v


class CheckAccessInput(SpreadsheetInput):
    pass
