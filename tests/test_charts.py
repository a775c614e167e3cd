"""Tests for chart spec assembly."""

import pytest

from sheetbridge.a1 import parse_range, region_to_a1
from sheetbridge.charts import (
    ResolvedSeries,
    apply_chart_update,
    build_add_chart_request,
    build_axes,
    build_chart_spec,
    build_update_chart_requests,
    derive_domain_region,
    find_chart,
    normalize_legend_position,
)
from sheetbridge.exceptions import ChartNotFoundError, InvalidInputError, NotFoundError
from sheetbridge.models import AxisInput, ChartPosition, CreateChartInput, UpdateChartInput

POSITION = {"overlayPosition": {"anchorCell": {"sheetId": 0, "rowIndex": 1, "columnIndex": 4}}}


def _series(reference: str, sheet_id: int = 0, **kwargs: str) -> ResolvedSeries:
    return ResolvedSeries(region=parse_range(reference).region.with_sheet(sheet_id), **kwargs)


def _create(**overrides: object) -> CreateChartInput:
    params = {
        "spreadsheetId": "abc",
        "position": POSITION,
        "chartType": "COLUMN",
        "series": [{"sourceRange": "Sheet1!B2:B10"}],
    }
    params.update(overrides)
    return CreateChartInput.model_validate(params)


class TestLegendAndAxes:
    """Tests for legend position and axis mapping."""

    def test_legend_suffix_appended(self) -> None:
        assert normalize_legend_position("RIGHT") == "RIGHT_LEGEND"

    def test_legend_already_suffixed(self) -> None:
        assert normalize_legend_position("TOP_LEGEND") == "TOP_LEGEND"

    def test_no_legend_kept(self) -> None:
        assert normalize_legend_position("NO_LEGEND") == "NO_LEGEND"

    def test_default_legend(self) -> None:
        assert normalize_legend_position(None) == "BOTTOM_LEGEND"

    def test_axes(self) -> None:
        axes = build_axes(AxisInput(title="Month"), None, AxisInput(title="Revenue"))
        assert axes == [
            {"position": "BOTTOM_AXIS", "title": "Month"},
            {"position": "RIGHT_AXIS", "title": "Revenue"},
        ]

    def test_untitled_axis_skipped(self) -> None:
        assert build_axes(AxisInput(), None, None) == []


class TestDomainDerivation:
    """Tests for the default domain."""

    def test_pie_domain_from_series(self) -> None:
        """Sheet1!B2:B10 -> Sheet1!A2:A10."""
        series = parse_range("Sheet1!B2:B10").region.with_sheet(0)
        domain = derive_domain_region(series)
        assert region_to_a1(domain, "Sheet1") == "Sheet1!A2:A10"
        assert domain.sheet_id == 0


class TestBuildChartSpec:
    """Tests for new chart specs."""

    def test_pie_chart(self) -> None:
        params = _create(chartType="PIE", legend={"position": "RIGHT"}, title="Spend")
        series = [_series("B2:B10")]
        spec = build_chart_spec(params, series, derive_domain_region(series[0].region))
        assert spec["title"] == "Spend"
        pie = spec["pieChart"]
        assert pie["legendPosition"] == "RIGHT_LEGEND"
        assert pie["series"]["sourceRange"]["sources"][0]["startColumnIndex"] == 1
        domain = pie["domain"]["sourceRange"]["sources"][0]
        assert (domain["startColumnIndex"], domain["endColumnIndex"]) == (0, 1)
        assert (domain["startRowIndex"], domain["endRowIndex"]) == (1, 10)
        assert "basicChart" not in spec

    def test_pie_requires_one_series(self) -> None:
        with pytest.raises(ValueError):
            _create(
                chartType="PIE",
                series=[{"sourceRange": "B2:B10"}, {"sourceRange": "C2:C10"}],
            )

    def test_combo_series_defaults(self) -> None:
        params = _create(
            chartType="COMBO",
            leftAxis={"title": "Units"},
            series=[{"sourceRange": "B2:B10"}, {"sourceRange": "C2:C10", "type": "LINE"}],
        )
        series = [
            _series("B2:B10", 0),
            _series("C2:C10", 9, type="LINE", target_axis="RIGHT_AXIS"),
        ]
        spec = build_chart_spec(params, series, derive_domain_region(series[0].region))
        basic = spec["basicChart"]
        assert basic["chartType"] == "COMBO"
        assert basic["legendPosition"] == "BOTTOM_LEGEND"
        assert basic["axis"] == [{"position": "LEFT_AXIS", "title": "Units"}]
        assert basic["series"][0]["type"] == "COMBO"
        assert basic["series"][0]["targetAxis"] == "LEFT_AXIS"
        assert basic["series"][1]["type"] == "LINE"
        assert basic["series"][1]["targetAxis"] == "RIGHT_AXIS"
        assert basic["series"][1]["series"]["sourceRange"]["sources"][0]["sheetId"] == 9
        assert len(basic["domains"]) == 1

    def test_add_chart_request(self) -> None:
        params = _create()
        request = build_add_chart_request({"title": "x"}, params.position)
        chart = request["addChart"]["chart"]
        assert chart["spec"] == {"title": "x"}
        assert chart["position"] == POSITION


class TestFindChart:
    """Tests for locating existing charts."""

    def test_found_on_second_sheet(self) -> None:
        spreadsheet = {
            "sheets": [
                {"properties": {"sheetId": 0}},
                {"properties": {"sheetId": 1}, "charts": [{"chartId": 42, "spec": {}}]},
            ]
        }
        assert find_chart(spreadsheet, 42)["chartId"] == 42

    def test_missing_chart(self) -> None:
        with pytest.raises(ChartNotFoundError) as exc_info:
            find_chart({"sheets": []}, 42)
        assert isinstance(exc_info.value, NotFoundError)


class TestApplyChartUpdate:
    """Tests for partial chart updates."""

    @pytest.fixture
    def existing(self) -> dict:
        return {
            "title": "Old",
            "subtitle": "Keep me",
            "basicChart": {
                "chartType": "BAR",
                "legendPosition": "TOP_LEGEND",
                "axis": [{"position": "BOTTOM_AXIS", "title": "X"}],
                "domains": [{"domain": {"sourceRange": {"sources": [{"sheetId": 0}]}}}],
                "series": [{"series": {"sourceRange": {"sources": [{"sheetId": 0}]}}}],
            },
        }

    def test_title_only(self, existing: dict) -> None:
        update = UpdateChartInput.model_validate(
            {"spreadsheetId": "abc", "chartId": 1, "title": "New"}
        )
        spec = apply_chart_update(existing, update)
        assert spec["title"] == "New"
        assert spec["subtitle"] == "Keep me"
        assert spec["basicChart"] == existing["basicChart"]
        assert existing["title"] == "Old"

    def test_legend_and_axis(self, existing: dict) -> None:
        update = UpdateChartInput.model_validate(
            {
                "spreadsheetId": "abc",
                "chartId": 1,
                "legend": {"position": "LEFT"},
                "domainAxis": {"title": "Month"},
                "leftAxis": {"title": "Total"},
            }
        )
        basic = apply_chart_update(existing, update)["basicChart"]
        assert basic["legendPosition"] == "LEFT_LEGEND"
        assert basic["axis"] == [
            {"position": "BOTTOM_AXIS", "title": "Month"},
            {"position": "LEFT_AXIS", "title": "Total"},
        ]

    def test_series_replaced(self, existing: dict) -> None:
        update = UpdateChartInput.model_validate(
            {"spreadsheetId": "abc", "chartId": 1, "series": [{"sourceRange": "C1:C5"}]}
        )
        spec = apply_chart_update(existing, update, [_series("C1:C5", 3)])
        series = spec["basicChart"]["series"]
        assert len(series) == 1
        assert series[0]["type"] == "BAR"
        assert series[0]["series"]["sourceRange"]["sources"][0]["sheetId"] == 3
        assert spec["basicChart"]["domains"] == existing["basicChart"]["domains"]

    def test_switch_to_pie(self, existing: dict) -> None:
        update = UpdateChartInput.model_validate(
            {"spreadsheetId": "abc", "chartId": 1, "chartType": "PIE"}
        )
        spec = apply_chart_update(existing, update)
        assert "basicChart" not in spec
        assert spec["pieChart"]["legendPosition"] == "TOP_LEGEND"
        assert spec["pieChart"]["series"] == existing["basicChart"]["series"][0]["series"]

    def test_pie_to_pie_keeps_single_family(self) -> None:
        """Restating PIE on a pie chart must not add a basicChart."""
        existing = {"title": "Old", "pieChart": {"legendPosition": "RIGHT_LEGEND"}}
        update = UpdateChartInput.model_validate(
            {"spreadsheetId": "abc", "chartId": 1, "chartType": "PIE", "title": "New"}
        )
        spec = apply_chart_update(existing, update)
        assert "basicChart" not in spec
        assert spec == {"title": "New", "pieChart": {"legendPosition": "RIGHT_LEGEND"}}

    def test_change_basic_chart_type(self, existing: dict) -> None:
        update = UpdateChartInput.model_validate(
            {"spreadsheetId": "abc", "chartId": 1, "chartType": "LINE"}
        )
        spec = apply_chart_update(existing, update)
        assert spec["basicChart"]["chartType"] == "LINE"
        assert "pieChart" not in spec

    def test_pie_rejects_many_series(self) -> None:
        update = UpdateChartInput.model_validate(
            {
                "spreadsheetId": "abc",
                "chartId": 1,
                "series": [{"sourceRange": "B1:B5"}, {"sourceRange": "C1:C5"}],
            }
        )
        with pytest.raises(InvalidInputError):
            apply_chart_update(
                {"pieChart": {}}, update, [_series("B1:B5"), _series("C1:C5")]
            )


class TestUpdateRequests:
    """Tests for the update request list."""

    def test_spec_only_without_position(self) -> None:
        requests = build_update_chart_requests(7, {"title": "t"})
        assert requests == [{"updateChartSpec": {"chartId": 7, "spec": {"title": "t"}}}]

    def test_position_included_when_given(self) -> None:
        position = ChartPosition.model_validate(POSITION)
        requests = build_update_chart_requests(7, {}, position)
        assert requests[0]["updateEmbeddedObjectPosition"]["objectId"] == 7
        assert requests[0]["updateEmbeddedObjectPosition"]["newPosition"] == POSITION
        assert "updateChartSpec" in requests[1]
