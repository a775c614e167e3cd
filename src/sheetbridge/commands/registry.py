"""Command registry and dispatch."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any

from loguru import logger

from sheetbridge.logging import clear_command_context, set_command_context
from sheetbridge.models import CommandInput
from sheetbridge.responses import CommandEnvelope, ErrorKind, failure_from_exception
from sheetbridge.transport import Transport
from sheetbridge.validation import validate_input

Handler = Callable[[Any, Transport], Awaitable[CommandEnvelope]]


@dataclass(frozen=True)
class Command:
    """A named command: its parameter model and its async handler."""

    name: str
    input_model: type[CommandInput]
    handler: Handler
    description: str


COMMANDS: dict[str, Command] = {}


def command(name: str, input_model: type[CommandInput]) -> Callable[[Handler], Handler]:
    """Register ``func`` under ``name``; the first docstring line describes it."""

    def decorator(func: Handler) -> Handler:
        if name in COMMANDS:
            raise ValueError(f"Command already registered: {name}")
        doc = (func.__doc__ or "").strip()
        COMMANDS[name] = Command(
            name=name,
            input_model=input_model,
            handler=func,
            description=doc.splitlines()[0] if doc else "",
        )
        return func

    return decorator


async def dispatch(
    name: str, params: Mapping[str, Any] | None, transport: Transport
) -> CommandEnvelope:
    """Validate ``params`` and run the named command.

    Never raises: every failure is returned as a failed envelope.
    """
    cmd = COMMANDS.get(name)
    if cmd is None:
        return CommandEnvelope.fail(ErrorKind.INVALID_INPUT, f"Unknown command: {name}")

    spreadsheet_id = params.get("spreadsheetId") if isinstance(params, Mapping) else None
    set_command_context(name, spreadsheet_id if isinstance(spreadsheet_id, str) else None)
    logger.info("Running command {}", name)
    try:
        validated = validate_input(cmd.input_model, params)
        envelope = await cmd.handler(validated, transport)
        logger.info("Command {} succeeded", name)
        return envelope
    except Exception as e:
        envelope = failure_from_exception(e)
        code = envelope.code.value if envelope.code else None
        logger.warning("Command {} failed [{}]: {}", name, code, envelope.error)
        return envelope
    finally:
        clear_command_context()
