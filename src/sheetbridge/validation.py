"""Input pre-parsing and validation for command parameters."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import ValidationError

from sheetbridge.exceptions import InvalidInputError
from sheetbridge.models import CommandInput

ModelT = TypeVar("ModelT", bound=CommandInput)


def parse_json_input(value: Any, field_name: str) -> Any:
    """Decode ``value`` if it is a JSON-encoded string, else return it as is.

    Raises:
        InvalidInputError: if the string is not valid JSON
    """
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Invalid JSON in '{field_name}': {e.msg}") from e


def _preparse_path(params: dict[str, Any], path: str) -> None:
    head, sep, tail = path.partition("[].")
    if not sep:
        if head in params:
            params[head] = parse_json_input(params[head], head)
        return

    items = params.get(head)
    if not isinstance(items, list):
        return
    items = [dict(item) if isinstance(item, dict) else item for item in items]
    params[head] = items
    for position, item in enumerate(items):
        if isinstance(item, dict) and tail in item:
            item[tail] = parse_json_input(item[tail], f"{head}[{position}].{tail}")


def preparse_json_fields(params: Mapping[str, Any], paths: tuple[str, ...]) -> dict[str, Any]:
    """Return a copy of ``params`` with the listed JSON string fields decoded.

    Paths are applied in order, so ``data`` must come before ``data[].values``.
    """
    result = dict(params)
    for path in paths:
        _preparse_path(result, path)
    return result


def _format_validation_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(loc) for loc in item["loc"]) or "input"
        parts.append(f"{location}: {item['msg']}")
    return "; ".join(parts)


def validate_input(model_cls: type[ModelT], params: Mapping[str, Any] | None) -> ModelT:
    """Pre-parse JSON string fields and validate ``params`` against ``model_cls``.

    Raises:
        InvalidInputError: on bad JSON or schema violations
    """
    if params is None:
        params = {}
    if not isinstance(params, Mapping):
        raise InvalidInputError("Command parameters must be a JSON object")

    prepared = preparse_json_fields(params, model_cls.json_fields)
    try:
        return model_cls.model_validate(prepared)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid input: {_format_validation_error(e)}") from e
