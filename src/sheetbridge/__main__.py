"""CLI entry point for sheetbridge.

Usage:
    python -m sheetbridge list
    python -m sheetbridge run <command> --params '<json>' [--token TOKEN]
    python -m sheetbridge run <command> --params-file params.json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import re
import sys
from pathlib import Path
from typing import Any

from sheetbridge.commands import COMMANDS, dispatch
from sheetbridge.config import get_settings
from sheetbridge.logging import setup_logging
from sheetbridge.transport import GoogleSheetsTransport


def parse_spreadsheet_id(id_or_url: str) -> str:
    """Extract spreadsheet ID from a URL or return as-is if already an ID."""
    # https://docs.google.com/spreadsheets/d/SPREADSHEET_ID/edit...
    url_pattern = r"docs\.google\.com/spreadsheets/d/([a-zA-Z0-9_-]+)"
    match = re.search(url_pattern, id_or_url)
    if match:
        return match.group(1)
    return id_or_url


def load_params(args: argparse.Namespace) -> dict[str, Any]:
    """Read command parameters from --params or --params-file."""
    if args.params_file:
        text = Path(args.params_file).read_text(encoding="utf-8")
    else:
        text = args.params or "{}"
    params = json.loads(text)
    if not isinstance(params, dict):
        raise ValueError("Parameters must be a JSON object")
    for key in ("spreadsheetId", "destinationSpreadsheetId"):
        if isinstance(params.get(key), str):
            params[key] = parse_spreadsheet_id(params[key])
    return params


async def cmd_list(_args: argparse.Namespace) -> int:
    """List the available commands."""
    for name in sorted(COMMANDS):
        print(f"{name:<34} {COMMANDS[name].description}")
    return 0


async def cmd_run(args: argparse.Namespace) -> int:
    """Run one command and print its envelope as JSON."""
    settings = get_settings()

    try:
        params = load_params(args)
    except (OSError, ValueError) as e:
        print(f"Invalid parameters: {e}", file=sys.stderr)
        return 1

    token = args.token or settings.access_token
    if not token:
        print(
            "No access token: pass --token or set SHEETBRIDGE_ACCESS_TOKEN",
            file=sys.stderr,
        )
        return 1

    transport = GoogleSheetsTransport(
        access_token=token,
        timeout=settings.timeout,
        api_base=settings.api_base,
    )
    try:
        envelope = await dispatch(args.name, params, transport)
    finally:
        await transport.close()

    print(json.dumps(envelope.to_dict(), indent=2))
    return 0 if envelope.success else 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    settings = get_settings()
    setup_logging(json_logs=settings.json_logs, log_level=settings.log_level)

    parser = argparse.ArgumentParser(
        prog="sheetbridge",
        description="Run Google Sheets commands with A1 addressing",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # list subcommand
    list_parser = subparsers.add_parser(
        "list",
        help="List available commands",
    )
    list_parser.set_defaults(func=cmd_list)

    # run subcommand
    run_parser = subparsers.add_parser(
        "run",
        help="Run a command and print the result envelope",
    )
    run_parser.add_argument(
        "name",
        help="Command name, e.g. sheets_get_values",
    )
    source = run_parser.add_mutually_exclusive_group()
    source.add_argument(
        "--params",
        default=None,
        help="Command parameters as a JSON object",
    )
    source.add_argument(
        "--params-file",
        default=None,
        help="Path to a JSON file holding the command parameters",
    )
    run_parser.add_argument(
        "--token",
        default=None,
        help="OAuth access token (defaults to SHEETBRIDGE_ACCESS_TOKEN)",
    )
    run_parser.set_defaults(func=cmd_run)

    args = parser.parse_args(argv)
    result: int = asyncio.run(args.func(args))
    return result


if __name__ == "__main__":
    sys.exit(main())
