from __future__ import annotations

import json
import re
from typing import Any

from flask import request

from app.corpoativo.errors import ValidationError

_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_TRUE_STRINGS = frozenset({"1", "true", "yes", "on"})


def read_json_body() -> dict[str, Any]:
    """Parse the request body as a JSON object. An empty body is an empty object."""
    raw = request.get_data(cache=True)
    if not raw or not raw.strip():
        return {}
    try:
        value = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid JSON body.")
    if not isinstance(value, dict):
        raise ValidationError("JSON body must be an object.")
    return value


def clean_str(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def is_blank(value: Any) -> bool:
    return clean_str(value) == ""


def require_fields(payload: dict[str, Any], fields: tuple[str, ...] | list[str]) -> None:
    """Raise ValidationError naming the first missing or blank field."""
    for field in fields:
        if is_blank(payload.get(field)):
            raise ValidationError(f"Missing required field: {field}")


def normalize_email(value: Any) -> str:
    return clean_str(value).lower()


def validate_email(email: str, field: str = "email") -> str:
    if not _EMAIL_RE.match(email):
        raise ValidationError(f"Invalid email format: {field}")
    return email


def parse_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return bool(value)


def parse_int_arg(name: str, default: int, *, minimum: int = 1, maximum: int | None = None) -> int:
    raw = (request.args.get(name) or "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"Query parameter {name} must be an integer.")
    value = max(value, minimum)
    if maximum is not None:
        value = min(value, maximum)
    return value
