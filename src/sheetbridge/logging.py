"""Logging configuration using loguru.

Provides:
- Structured JSON logging for machine consumption
- Human-readable logging for development
- Command context tracking (command name, spreadsheet id)
"""

import json
import sys
from contextvars import ContextVar
from datetime import UTC, datetime

from loguru import logger

# Context variables for command-scoped data
command_ctx: ContextVar[str | None] = ContextVar("command", default=None)
spreadsheet_ctx: ContextVar[str | None] = ContextVar("spreadsheet_id", default=None)


def _json_formatter(record: dict) -> str:
    """Format log record as a single JSON line."""
    log_entry = {
        "timestamp": datetime.now(UTC).isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    command = command_ctx.get()
    spreadsheet_id = spreadsheet_ctx.get()
    if command:
        log_entry["command"] = command
    if spreadsheet_id:
        log_entry["spreadsheet_id"] = spreadsheet_id

    if record.get("extra"):
        for key, value in record["extra"].items():
            if key not in log_entry:
                log_entry[key] = value

    if record["exception"]:
        log_entry["exception"] = {
            "type": record["exception"].type.__name__ if record["exception"].type else None,
            "value": str(record["exception"].value) if record["exception"].value else None,
        }

    # Escape braces: loguru treats the returned string as a format template
    return json.dumps(log_entry, default=str).replace("{", "{{").replace("}", "}}") + "\n"


def _dev_formatter(_record: dict) -> str:
    """Format log record for development (human-readable)."""
    command = command_ctx.get()
    spreadsheet_id = spreadsheet_ctx.get()

    context_parts = []
    if command:
        context_parts.append(f"cmd={command}")
    if spreadsheet_id:
        context_parts.append(f"sheet={spreadsheet_id[:12]}")

    context_str = " ".join(context_parts)
    if context_str:
        context_str = f"[{context_str}] "

    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        + context_str
        + "<level>{message}</level>\n"
        "{exception}"
    )


def setup_logging(json_logs: bool = False, log_level: str = "INFO") -> None:
    """Configure loguru.

    Logs go to stderr so command output on stdout stays machine-readable.

    Args:
        json_logs: If True, output one JSON object per line
        log_level: Minimum log level to output
    """
    logger.remove()

    if json_logs:
        logger.add(
            sys.stderr,
            format=_json_formatter,
            level=log_level,
            serialize=False,
        )
    else:
        logger.add(
            sys.stderr,
            format=_dev_formatter,
            level=log_level,
            colorize=True,
        )


def set_command_context(command: str | None = None, spreadsheet_id: str | None = None) -> None:
    """Set context for the current command."""
    if command:
        command_ctx.set(command)
    if spreadsheet_id:
        spreadsheet_ctx.set(spreadsheet_id)


def clear_command_context() -> None:
    """Clear command context after the command completes."""
    command_ctx.set(None)
    spreadsheet_ctx.set(None)
