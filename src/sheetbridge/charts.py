"""
Embedded chart spec assembly.

The functions here take series and domain regions that were already
resolved to sheet ids and build the ChartSpec dicts sent in addChart and
updateChartSpec requests.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, replace
from typing import Any

from sheetbridge.a1 import GridRegion
from sheetbridge.exceptions import ChartNotFoundError, InvalidInputError
from sheetbridge.models import (
    AxisInput,
    ChartPosition,
    CreateChartInput,
    LegendInput,
    UpdateChartInput,
)

DEFAULT_LEGEND_POSITION = "BOTTOM_LEGEND"
DEFAULT_TARGET_AXIS = "LEFT_AXIS"

_AXIS_POSITIONS = (
    ("domain_axis", "BOTTOM_AXIS"),
    ("left_axis", "LEFT_AXIS"),
    ("right_axis", "RIGHT_AXIS"),
)


@dataclass(frozen=True)
class ResolvedSeries:
    """One chart series with its source range resolved to a sheet id."""

    region: GridRegion
    type: str | None = None
    target_axis: str | None = None


def normalize_legend_position(position: str | None) -> str:
    """Append ``_LEGEND`` to bare positions such as ``RIGHT``.

    Examples:
        None -> BOTTOM_LEGEND, RIGHT -> RIGHT_LEGEND, NO_LEGEND -> NO_LEGEND
    """
    if not position:
        return DEFAULT_LEGEND_POSITION
    position = position.upper()
    if position == "NO_LEGEND" or position.endswith("_LEGEND"):
        return position
    return f"{position}_LEGEND"


def derive_domain_region(series_region: GridRegion) -> GridRegion:
    """Default domain: column A over the series row span, on the series sheet.

    ``Sheet1!B2:B10`` -> ``Sheet1!A2:A10``.
    """
    return replace(series_region, start_col=0, end_col=0)


def _source_range(region: GridRegion) -> dict[str, Any]:
    return {"sourceRange": {"sources": [region.to_grid_range()]}}


def build_axes(
    domain_axis: AxisInput | None,
    left_axis: AxisInput | None,
    right_axis: AxisInput | None,
) -> list[dict[str, Any]]:
    """Map titled axes to BasicChartAxis entries."""
    given = {"domain_axis": domain_axis, "left_axis": left_axis, "right_axis": right_axis}
    axes = []
    for name, position in _AXIS_POSITIONS:
        axis = given[name]
        if axis is not None and axis.title:
            axes.append({"position": position, "title": axis.title})
    return axes


def _basic_series(series: ResolvedSeries, chart_type: str) -> dict[str, Any]:
    return {
        "series": _source_range(series.region),
        "targetAxis": series.target_axis or DEFAULT_TARGET_AXIS,
        "type": series.type or chart_type,
    }


def build_chart_spec(
    params: CreateChartInput,
    series: list[ResolvedSeries],
    domain_region: GridRegion,
) -> dict[str, Any]:
    """Build the ChartSpec for a new chart."""
    spec: dict[str, Any] = {}
    if params.title is not None:
        spec["title"] = params.title
    if params.subtitle is not None:
        spec["subtitle"] = params.subtitle
    if params.background_color is not None:
        spec["backgroundColor"] = params.background_color.to_api()
    if params.alt_text is not None:
        spec["altText"] = params.alt_text

    legend_position = normalize_legend_position(
        params.legend.position if params.legend else None
    )

    if params.chart_type == "PIE":
        if len(series) != 1:
            raise InvalidInputError("PIE charts take exactly one series")
        spec["pieChart"] = {
            "legendPosition": legend_position,
            "domain": _source_range(domain_region),
            "series": _source_range(series[0].region),
        }
        return spec

    basic: dict[str, Any] = {
        "chartType": params.chart_type,
        "legendPosition": legend_position,
        "axis": build_axes(params.domain_axis, params.left_axis, params.right_axis),
        "domains": [{"domain": _source_range(domain_region)}],
        "series": [_basic_series(s, params.chart_type) for s in series],
    }
    spec["basicChart"] = basic
    return spec


def build_add_chart_request(spec: dict[str, Any], position: ChartPosition) -> dict[str, Any]:
    return {"addChart": {"chart": {"spec": spec, "position": position.to_api()}}}


def find_chart(spreadsheet: dict[str, Any], chart_id: int) -> dict[str, Any]:
    """Find an embedded chart by id across all sheets of a spreadsheet resource.

    Raises:
        ChartNotFoundError: if no sheet holds the chart
    """
    for sheet in spreadsheet.get("sheets", []):
        for chart in sheet.get("charts", []):
            if chart.get("chartId") == chart_id:
                return chart
    raise ChartNotFoundError(chart_id)


def chart_anchor_sheet_id(chart: dict[str, Any]) -> int | None:
    """Sheet id of the cell an existing chart is anchored to, if overlaid."""
    anchor = chart.get("position", {}).get("overlayPosition", {}).get("anchorCell", {})
    sheet_id = anchor.get("sheetId")
    if sheet_id is None:
        sheet_id = chart.get("position", {}).get("sheetId")
    return sheet_id


def _current_chart_type(spec: dict[str, Any]) -> str | None:
    if "pieChart" in spec:
        return "PIE"
    return spec.get("basicChart", {}).get("chartType")


def _convert_chart_family(spec: dict[str, Any], chart_type: str) -> None:
    """Switch ``spec`` between basicChart and pieChart, keeping data sources."""
    if chart_type == "PIE" and "basicChart" in spec:
        basic = spec.pop("basicChart")
        pie: dict[str, Any] = {
            "legendPosition": basic.get("legendPosition", DEFAULT_LEGEND_POSITION)
        }
        if basic.get("domains"):
            pie["domain"] = basic["domains"][0].get("domain", {})
        if basic.get("series"):
            pie["series"] = basic["series"][0].get("series", {})
        spec["pieChart"] = pie
    elif chart_type != "PIE" and "pieChart" in spec:
        pie = spec.pop("pieChart")
        basic = {
            "chartType": chart_type,
            "legendPosition": pie.get("legendPosition", DEFAULT_LEGEND_POSITION),
            "axis": [],
            "domains": [{"domain": pie["domain"]}] if pie.get("domain") else [],
            "series": (
                [
                    {
                        "series": pie["series"],
                        "targetAxis": DEFAULT_TARGET_AXIS,
                        "type": chart_type,
                    }
                ]
                if pie.get("series")
                else []
            ),
        }
        spec["basicChart"] = basic
    elif chart_type != "PIE" and "basicChart" in spec:
        spec["basicChart"]["chartType"] = chart_type


def _merge_axes(basic: dict[str, Any], update: UpdateChartInput) -> None:
    new_axes = build_axes(update.domain_axis, update.left_axis, update.right_axis)
    if not new_axes:
        return
    axes: list[dict[str, Any]] = basic.setdefault("axis", [])
    for new_axis in new_axes:
        for axis in axes:
            if axis.get("position") == new_axis["position"]:
                axis["title"] = new_axis["title"]
                break
        else:
            axes.append(new_axis)


def apply_chart_update(
    existing_spec: dict[str, Any],
    update: UpdateChartInput,
    series: list[ResolvedSeries] | None = None,
    domain_region: GridRegion | None = None,
) -> dict[str, Any]:
    """Return a copy of ``existing_spec`` with the fields present in ``update``.

    Fields that ``update`` leaves unset are carried over unchanged.
    """
    spec = copy.deepcopy(existing_spec)

    if update.title is not None:
        spec["title"] = update.title
    if update.subtitle is not None:
        spec["subtitle"] = update.subtitle
    if update.background_color is not None:
        spec["backgroundColor"] = update.background_color.to_api()
    if update.alt_text is not None:
        spec["altText"] = update.alt_text

    chart_type = update.chart_type or _current_chart_type(spec)
    if update.chart_type is not None:
        _convert_chart_family(spec, update.chart_type)

    body = spec.get("pieChart") if "pieChart" in spec else spec.get("basicChart")
    if body is None:
        raise InvalidInputError("Only basic and pie charts can be updated")

    legend: LegendInput | None = update.legend
    if legend is not None:
        body["legendPosition"] = normalize_legend_position(legend.position)

    if "pieChart" in spec:
        if series is not None:
            if len(series) != 1:
                raise InvalidInputError("PIE charts take exactly one series")
            body["series"] = _source_range(series[0].region)
        if domain_region is not None:
            body["domain"] = _source_range(domain_region)
        return spec

    _merge_axes(body, update)
    if series is not None:
        body["series"] = [_basic_series(s, chart_type or "COLUMN") for s in series]
    if domain_region is not None:
        body["domains"] = [{"domain": _source_range(domain_region)}]
    return spec


def build_update_chart_requests(
    chart_id: int,
    spec: dict[str, Any],
    position: ChartPosition | None = None,
) -> list[dict[str, Any]]:
    """Build updateChartSpec plus, only when given, updateEmbeddedObjectPosition."""
    requests: list[dict[str, Any]] = []
    if position is not None:
        requests.append(
            {
                "updateEmbeddedObjectPosition": {
                    "objectId": chart_id,
                    "newPosition": position.to_api(),
                    "fields": "*",
                }
            }
        )
    requests.append({"updateChartSpec": {"chartId": chart_id, "spec": spec}})
    return requests
