"""Embedded chart commands."""

from __future__ import annotations

from loguru import logger

from sheetbridge import responses
from sheetbridge.a1 import GridRegion, ParsedRange, parse_range
from sheetbridge.charts import (
    ResolvedSeries,
    apply_chart_update,
    build_add_chart_request,
    build_chart_spec,
    build_update_chart_requests,
    chart_anchor_sheet_id,
    derive_domain_region,
    find_chart,
)
from sheetbridge.commands.registry import command
from sheetbridge.exceptions import InvalidInputError
from sheetbridge.models import (
    CreateChartInput,
    DeleteChartInput,
    SeriesInput,
    UpdateChartInput,
)
from sheetbridge.request_builders import build_delete_embedded_object_request
from sheetbridge.resolver import SheetResolver
from sheetbridge.responses import CommandEnvelope
from sheetbridge.transport import Transport

_CHART_FIELDS = "sheets(properties(sheetId,title),charts(chartId,spec,position))"


async def resolve_chart_sources(
    resolver: SheetResolver,
    series: list[SeriesInput],
    domain_range: str | None,
    fallback_sheet_id: int | None,
) -> tuple[list[ResolvedSeries], GridRegion | None]:
    """Resolve series and domain ranges to sheet-qualified regions.

    Unqualified ranges use the first series' sheet when it is named, else
    ``fallback_sheet_id``. Every distinct sheet name is resolved once, all
    concurrently. The domain is derived from the first series when not given.
    """
    parsed_series = [parse_range(s.source_range) for s in series]
    parsed_domain: ParsedRange | None = parse_range(domain_range) if domain_range else None

    named = [p.sheet_name for p in parsed_series]
    if parsed_domain is not None:
        named.append(parsed_domain.sheet_name)
    unique_names = list(dict.fromkeys(name for name in named if name is not None))
    sheet_ids = dict(zip(unique_names, await resolver.resolve_many(unique_names), strict=True))

    first_name = parsed_series[0].sheet_name if parsed_series else None
    default_sheet_id = sheet_ids[first_name] if first_name is not None else fallback_sheet_id
    if default_sheet_id is None:
        raise InvalidInputError("Cannot determine the sheet for unqualified chart ranges")

    def sheet_for(parsed: ParsedRange) -> int:
        if parsed.sheet_name is None:
            return default_sheet_id
        return sheet_ids[parsed.sheet_name]

    resolved = [
        ResolvedSeries(
            region=parsed.region.with_sheet(sheet_for(parsed)),
            type=item.type,
            target_axis=item.target_axis,
        )
        for parsed, item in zip(parsed_series, series, strict=True)
    ]

    if parsed_domain is not None:
        domain = parsed_domain.region.with_sheet(sheet_for(parsed_domain))
    elif resolved:
        domain = derive_domain_region(resolved[0].region)
    else:
        domain = None
    return resolved, domain


@command("sheets_create_chart", CreateChartInput)
async def create_chart(params: CreateChartInput, transport: Transport) -> CommandEnvelope:
    """Create an embedded chart."""
    resolver = SheetResolver(transport, params.spreadsheet_id)
    anchor_sheet_id = params.position.overlay_position.anchor_cell.sheet_id
    series, domain = await resolve_chart_sources(
        resolver, params.series, params.domain_range, anchor_sheet_id
    )
    if domain is None:
        raise InvalidInputError("At least one series is required")

    spec = build_chart_spec(params, series, domain)
    response = await transport.batch_update(
        params.spreadsheet_id, [build_add_chart_request(spec, params.position)]
    )
    data = responses.chart_added(response)
    logger.debug("Created chart {}", data.get("chartId"))
    return CommandEnvelope.ok(
        f"Created {params.chart_type} chart",
        chartType=params.chart_type,
        title=params.title,
        **data,
    )


@command("sheets_update_chart", UpdateChartInput)
async def update_chart(params: UpdateChartInput, transport: Transport) -> CommandEnvelope:
    """Update an existing chart, keeping every field not supplied."""
    spreadsheet = await transport.get_spreadsheet(params.spreadsheet_id, fields=_CHART_FIELDS)
    chart = find_chart(spreadsheet, params.chart_id)

    series = None
    domain = None
    if params.series is not None or params.domain_range is not None:
        if params.position is not None:
            fallback = params.position.overlay_position.anchor_cell.sheet_id
        else:
            fallback = chart_anchor_sheet_id(chart)
        resolver = SheetResolver(transport, params.spreadsheet_id)
        resolved, domain = await resolve_chart_sources(
            resolver, params.series or [], params.domain_range, fallback
        )
        series = resolved if params.series is not None else None
        if params.domain_range is None:
            domain = None

    spec = apply_chart_update(chart.get("spec", {}), params, series, domain)
    requests = build_update_chart_requests(params.chart_id, spec, params.position)
    response = await transport.batch_update(params.spreadsheet_id, requests)

    updated_fields = sorted(
        type(params).model_fields[name].alias or name
        for name in params.model_fields_set
        if name not in ("spreadsheet_id", "chart_id")
    )
    return CommandEnvelope.ok(
        f"Updated chart {params.chart_id}",
        chartId=params.chart_id,
        updatedFields=updated_fields,
        **responses.batch_update_replies(response),
    )


@command("sheets_delete_chart", DeleteChartInput)
async def delete_chart(params: DeleteChartInput, transport: Transport) -> CommandEnvelope:
    """Delete an embedded chart."""
    response = await transport.batch_update(
        params.spreadsheet_id, [build_delete_embedded_object_request(params.chart_id)]
    )
    return CommandEnvelope.ok(
        f"Deleted chart {params.chart_id}",
        chartId=params.chart_id,
        **responses.batch_update_replies(response),
    )
