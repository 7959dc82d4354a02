"""Coercion between raw model output, Scalar field values, and typed inputs.

Every boundary that reads or writes a Metric value goes through one of these
helpers: parsing (``coerce_scalar``, ``parse_literal``), validation and
correction inputs (``to_float``, ``to_text``, ``to_date``) and formatting
(``format_value``).
"""

import json
import math
import re
from datetime import date, datetime
from types import MappingProxyType
from typing import Any, Mapping

from models import Metric, Scalar

DATE_FORMATS = ("%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y", "%B %d, %Y", "%b %d, %Y")

_NUMBER_NOISE = re.compile(r"[$,\s]")


def coerce_scalar(raw: Any) -> Scalar:
    """Convert a decoded JSON value into a Scalar.

    Lists (the model sometimes answers ``_flags`` with an array) are joined
    with ``"; "``; objects are re-encoded as compact JSON text.
    """
    if raw is None or isinstance(raw, (bool, int, float, str)):
        return raw
    if isinstance(raw, (list, tuple)):
        return "; ".join(str(item) for item in raw if item is not None)
    return json.dumps(raw, separators=(",", ":"), default=str)


def parse_literal(token: str) -> Scalar:
    """Interpret a raw JSON-ish token recovered by the fallback parser.

    ``null`` -> None, ``true``/``false`` -> bool, quoted -> string,
    otherwise a number when it parses as one, else the raw token.
    """
    token = token.strip()
    if token == "null":
        return None
    if token == "true":
        return True
    if token == "false":
        return False
    if token.startswith('"'):
        body = token[1:-1] if len(token) > 1 and token.endswith('"') else token[1:]
        try:
            return json.loads(f'"{body}"')
        except json.JSONDecodeError:
            return body
    try:
        number = float(token)
    except ValueError:
        return token
    if not math.isfinite(number):
        return token
    if number.is_integer() and re.fullmatch(r"-?\d+", token):
        return int(number)
    return number


def to_float(value: Scalar) -> float | None:
    """Numeric reading of a value; None for missing, boolean, non-numeric or non-finite."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        cleaned = _NUMBER_NOISE.sub("", value)
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except (ValueError, OverflowError):
            return None
    return number if math.isfinite(number) else None


def to_text(value: Scalar) -> str | None:
    if value is None:
        return None
    if isinstance(value, bool):
        return "true" if value else "false"
    text = str(value).strip()
    return text or None


def to_date(value: Scalar) -> date | None:
    text = to_text(value)
    if text is None:
        return None

    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass

    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


def format_value(value: Scalar) -> str:
    """Render a value for the human-readable report."""
    if value is None:
        return "(null)"
    if isinstance(value, bool):
        return "Yes" if value else "No"
    return str(value)


def effective_values(metrics: list[Metric]) -> Mapping[str, Scalar]:
    """Read-only snapshot of name -> override-or-extracted value."""
    return MappingProxyType({m.metric: m.final_value for m in metrics})
