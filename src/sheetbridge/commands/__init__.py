"""Named spreadsheet commands.

Importing this package registers every command in ``COMMANDS``.
"""

from sheetbridge.commands import charts, formatting, sheets, values
from sheetbridge.commands.registry import COMMANDS, Command, command, dispatch

__all__ = [
    "COMMANDS",
    "Command",
    "charts",
    "command",
    "dispatch",
    "formatting",
    "sheets",
    "values",
]
