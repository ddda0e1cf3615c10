"""Type definitions for the Zigbee2MQTT bridge."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypedDict


class Expose(TypedDict, total=False):
    """Capability node from a device definition's exposes list."""

    type: str  # light, switch, climate, binary, numeric, enum, text, ...
    name: str  # Capability key, absent on some composite nodes
    property: str  # Key used in state payloads
    label: str  # Human readable name
    description: str
    access: int  # Bitmask: 1 = read, 2 = write, 3 = read/write
    features: list[Expose]  # Child nodes of composite capabilities
    values: list[str]  # Enumerated values
    value_min: float
    value_max: float
    value_step: float
    value_on: Any  # Wire value meaning "on" for binary exposes
    value_off: Any  # Wire value meaning "off" for binary exposes
    unit: str  # Raw unit string, e.g. "°C" or "%"


class DefinitionBody(TypedDict, total=False):
    """Model information and exposes of a supported device."""

    model: str
    vendor: str
    description: str
    exposes: list[Expose]


class DeviceDefinition(TypedDict, total=False):
    """Single entry of the bridge/devices payload."""

    ieee_address: str
    friendly_name: str
    type: str  # Coordinator, Router or EndDevice
    supported: bool
    definition: DefinitionBody | None


# "@type" is not a valid identifier, so the functional syntax is required
PropertyDescription = TypedDict(
    "PropertyDescription",
    {
        "@type": str,
        "title": str,
        "description": str,
        "type": str,  # boolean, integer, number, string, object, array
        "unit": str,
        "enum": list[Any],
        "minimum": float,
        "maximum": float,
        "readOnly": bool,
    },
    total=False,
)


class ActionInput(TypedDict, total=False):
    """Input constraints of an action."""

    type: str
    unit: str | None
    enum: list[Any] | None
    minimum: float | None
    maximum: float | None


class ActionDescription(TypedDict, total=False):
    """Description of an invocable action."""

    title: str
    description: str | None
    input: ActionInput


EventDescription = TypedDict(
    "EventDescription",
    {
        "name": str,
        "@type": str,
        "description": str,
    },
    total=False,
)

Snapshot = dict[str, Any]
PublishCallback = Callable[[Exception | None], None]
ListenerCallback = Callable[..., Any]
