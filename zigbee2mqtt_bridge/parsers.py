"""Unit and value type parsing for exposes."""

from __future__ import annotations

from .const import UNITS, VALUE_TYPES
from .types import Expose

DEFAULT_VALUE_TYPE = "string"


def parse_type(expose: Expose) -> str:
    """Return the host schema type for an expose.

    Numeric exposes whose step is a whole number are reported as integers,
    binary exposes as booleans and enum/text exposes as strings. Anything the
    bridge adds later falls back to string.
    """
    value_type = expose.get("type", "")

    if value_type == "numeric":
        step = expose.get("value_step")
        if isinstance(step, int) and not isinstance(step, bool):
            return "integer"

    return VALUE_TYPES.get(value_type, DEFAULT_VALUE_TYPE)


def parse_unit(unit: str | None) -> str | None:
    """Return the host unit name for a raw unit string.

    Unknown units are passed through unchanged.
    """
    if not unit:
        return None
    return UNITS.get(unit, unit)
