"""Typed property wrappers bound to expose leaves."""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
from typing import TYPE_CHECKING, Any, ClassVar, TypeVar

from .color import hs_to_rgb_hex, is_hex_color, xy_to_rgb_hex
from .const import (
    HEATING_COOLING_STATES,
    READ_BIT,
    READ_WRITE_BITS,
    SEMANTIC_PROPERTY_TYPES,
    WRITE_BIT,
    WRITE_TOPIC_SUFFIX,
)
from .exceptions import PropertyError
from .model import Property, validate_input
from .parsers import parse_type, parse_unit
from .transport import MessageBusClient, async_publish
from .types import Expose, PropertyDescription

if TYPE_CHECKING:
    from .model import Device

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_BRIGHTNESS_MAX = 254


def _require_number(value: Any) -> int | float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise TypeError(f"expected a number, got {type(value).__name__}")
    return value


def _mired_to_kelvin(value: Any) -> int:
    mired = _require_number(value)
    if mired <= 0:
        raise ValueError(f"invalid color temperature {mired}")
    return round(1_000_000 / mired)


class Zigbee2MqttProperty(Property[T]):
    """Property backed by one expose of a Zigbee2MQTT device.

    Values arrive through ``update`` with the whole state snapshot, so that a
    wrapper can look at sibling keys, and leave through ``set_value`` as a
    ``{name: value}`` payload on the device's write topic.
    """

    description_overrides: ClassVar[PropertyDescription] = {}
    default_value_on: ClassVar[Any] = True
    default_value_off: ClassVar[Any] = False

    def __init__(
        self,
        device: Device,
        name: str,
        expose: Expose,
        client: MessageBusClient,
        device_topic: str,
    ) -> None:
        """Initialize the property from its expose."""
        self.expose = expose
        self._client = client
        self._device_topic = device_topic
        self._access = expose.get("access", READ_WRITE_BITS)
        super().__init__(device, name, self._build_description(name, expose))

    def _build_description(self, name: str, expose: Expose) -> PropertyDescription:
        description: PropertyDescription = {
            "title": expose.get("label") or name,
            "type": parse_type(expose),
            "readOnly": not self.is_writable(),
        }

        if expose.get("description"):
            description["description"] = expose["description"]

        unit = parse_unit(expose.get("unit"))
        if unit:
            description["unit"] = unit

        if isinstance(expose.get("values"), list):
            description["enum"] = list(expose["values"])

        if expose.get("value_min") is not None:
            description["minimum"] = expose["value_min"]

        if expose.get("value_max") is not None:
            description["maximum"] = expose["value_max"]

        semantic_type = SEMANTIC_PROPERTY_TYPES.get(name)
        if semantic_type:
            description["@type"] = semantic_type

        for key, value in self.describe(expose).items():
            if value is None:
                description.pop(key, None)  # type: ignore[misc]
            else:
                description[key] = value  # type: ignore[literal-required]
        return description

    def describe(self, expose: Expose) -> PropertyDescription:
        """Return description entries that replace the generic ones.

        A ``None`` value removes the entry.
        """
        return dict(self.description_overrides)  # type: ignore[return-value]

    def is_readable(self) -> bool:
        """Return True if the bridge can report this value on request."""
        return bool(self._access & READ_BIT)

    def is_writable(self) -> bool:
        """Return True if the bridge accepts writes for this value."""
        return bool(self._access & WRITE_BIT)

    @property
    def _is_binary(self) -> bool:
        return self.expose.get("type") == "binary"

    def _binary_from_wire(self, value: Any) -> bool:
        return value == self.expose.get("value_on", self.default_value_on)

    def _binary_to_wire(self, value: Any) -> Any:
        if value:
            return self.expose.get("value_on", self.default_value_on)
        return self.expose.get("value_off", self.default_value_off)

    def from_wire(self, value: Any, update: Mapping[str, Any]) -> T:
        """Convert a wire value into the host representation."""
        if self._is_binary:
            return self._binary_from_wire(value)  # type: ignore[return-value]
        return value

    def to_wire(self, value: T) -> Any:
        """Convert a host value into the wire representation."""
        if self._is_binary:
            return self._binary_to_wire(value)
        return value

    def update(self, value: Any, update: Mapping[str, Any]) -> None:
        """Apply a value received from the bridge."""
        try:
            host_value = self.from_wire(value, update)
        except (TypeError, ValueError) as err:
            _LOGGER.debug(
                "Ignoring value %r for %s on %s: %s",
                value,
                self.name,
                self.device.id,
                err,
            )
            return

        self.set_cached_value_and_notify(host_value)

    async def set_value(self, value: T) -> None:
        """Write a value to the device.

        The cached value is left alone until the bridge reports the new state.
        """
        if not self.is_writable():
            raise PropertyError(f"Property {self.name} is read-only", self.device.id)

        validated = validate_input(
            self.description, value, self.device.id, PropertyError
        )

        try:
            wire_value = self.to_wire(validated)
        except (TypeError, ValueError) as err:
            raise PropertyError(
                f"Cannot write {value!r} to {self.name}: {err}", self.device.id
            ) from err

        write_topic = f"{self._device_topic}{WRITE_TOPIC_SUFFIX}"
        payload = json.dumps({self.name: wire_value})

        _LOGGER.debug("Sending %s to %s", payload, write_topic)

        await async_publish(self._client, write_topic, payload, self.device.id)


class OnOffProperty(Zigbee2MqttProperty[bool]):
    """Light or plug power state."""

    description_overrides: ClassVar[PropertyDescription] = {
        "@type": "OnOffProperty",
        "title": "On/Off",
        "type": "boolean",
    }
    default_value_on = "ON"
    default_value_off = "OFF"

    def from_wire(self, value: Any, update: Mapping[str, Any]) -> bool:
        return self._binary_from_wire(value)

    def to_wire(self, value: bool) -> Any:
        return self._binary_to_wire(value)


class BrightnessProperty(Zigbee2MqttProperty[int]):
    """Brightness in percent, scaled from the device's raw level."""

    description_overrides: ClassVar[PropertyDescription] = {
        "@type": "BrightnessProperty",
        "title": "Brightness",
        "type": "integer",
        "unit": "percent",
        "minimum": 0,
        "maximum": 100,
    }

    @property
    def wire_max(self) -> int | float:
        """Raw level corresponding to 100 percent."""
        return self.expose.get("value_max") or DEFAULT_BRIGHTNESS_MAX

    def from_wire(self, value: Any, update: Mapping[str, Any]) -> int:
        return round(_require_number(value) / self.wire_max * 100)

    def to_wire(self, value: int) -> int:
        return round(value * self.wire_max / 100)


class ColorTemperatureProperty(Zigbee2MqttProperty[int]):
    """Color temperature in kelvin; the bridge speaks mired."""

    description_overrides: ClassVar[PropertyDescription] = {
        "@type": "ColorTemperatureProperty",
        "title": "Color temperature",
        "type": "integer",
        "unit": "kelvin",
    }

    def describe(self, expose: Expose) -> PropertyDescription:
        description = super().describe(expose)

        # Mired and kelvin run in opposite directions
        description["minimum"] = self._bound(expose.get("value_max"))
        description["maximum"] = self._bound(expose.get("value_min"))

        return description

    @staticmethod
    def _bound(mired: Any) -> int | None:
        try:
            return _mired_to_kelvin(mired)
        except (TypeError, ValueError):
            return None

    def from_wire(self, value: Any, update: Mapping[str, Any]) -> int:
        return _mired_to_kelvin(value)

    def to_wire(self, value: int) -> int:
        return _mired_to_kelvin(value)


class ColorProperty(Zigbee2MqttProperty[str]):
    """Color as #rrggbb, read from the xy (or hue/saturation) payload."""

    description_overrides: ClassVar[PropertyDescription] = {
        "@type": "ColorProperty",
        "title": "Color",
        "type": "string",
    }

    def update(self, value: Any, update: Mapping[str, Any]) -> None:
        # While the light runs in color temperature mode the color is stale
        if update.get("color_mode") == "color_temp":
            _LOGGER.debug(
                "Ignoring %s on %s while in color_temp mode", self.name, self.device.id
            )
            return

        super().update(value, update)

    def from_wire(self, value: Any, update: Mapping[str, Any]) -> str:
        if not isinstance(value, Mapping):
            raise TypeError(f"expected an object, got {type(value).__name__}")

        if update.get("color_mode") == "hs":
            hue = value.get("hue")
            saturation = value.get("saturation")
            if hue is not None and saturation is not None:
                return hs_to_rgb_hex(_require_number(hue), _require_number(saturation))

        x = value.get("x")
        y = value.get("y")
        if x is None or y is None:
            raise ValueError("missing x/y coordinates")

        return xy_to_rgb_hex(
            _require_number(x), _require_number(y), self._luminance(update)
        )

    def _luminance(self, update: Mapping[str, Any]) -> float:
        brightness = update.get("brightness")
        if isinstance(brightness, bool) or not isinstance(brightness, int | float):
            return 1.0

        sibling = self.device.find_property("brightness")
        if isinstance(sibling, BrightnessProperty):
            wire_max = sibling.wire_max
        else:
            wire_max = DEFAULT_BRIGHTNESS_MAX
        return brightness / wire_max

    def to_wire(self, value: str) -> dict[str, str]:
        if not is_hex_color(value):
            raise ValueError(f"expected #rrggbb, got {value!r}")
        return {"hex": value}


class ContactProperty(Zigbee2MqttProperty[bool]):
    """Open/closed state of a contact sensor; the bridge reports contact=true when closed."""

    description_overrides: ClassVar[PropertyDescription] = {
        "@type": "OpenProperty",
        "title": "Open",
        "type": "boolean",
        "readOnly": True,
    }

    def from_wire(self, value: Any, update: Mapping[str, Any]) -> bool:
        if not isinstance(value, bool):
            raise TypeError(f"expected a boolean, got {type(value).__name__}")
        return not value


class HeatingCoolingProperty(Zigbee2MqttProperty[str]):
    """Whether a thermostat is currently heating, cooling or idle."""

    description_overrides: ClassVar[PropertyDescription] = {
        "@type": "HeatingCoolingProperty",
        "title": "Run mode",
        "type": "string",
        "enum": ["off", "heating", "cooling"],
        "readOnly": True,
    }

    def from_wire(self, value: Any, update: Mapping[str, Any]) -> str:
        if value not in HEATING_COOLING_STATES:
            raise ValueError(f"unknown running state {value!r}")
        return HEATING_COOLING_STATES[value]


class ThermostatModeProperty(Zigbee2MqttProperty[str]):
    """Thermostat system mode, passed through as a string."""

    description_overrides: ClassVar[PropertyDescription] = {
        "@type": "ThermostatModeProperty",
        "type": "string",
    }


PropertyVariant = type[Zigbee2MqttProperty[Any]]

LIGHT_PROPERTIES: dict[str, PropertyVariant] = {
    "state": OnOffProperty,
    "brightness": BrightnessProperty,
    "color_temp": ColorTemperatureProperty,
    "color_xy": ColorProperty,
}

SWITCH_PROPERTIES: dict[str, PropertyVariant] = {
    "state": OnOffProperty,
}

CLIMATE_PROPERTIES: dict[str, PropertyVariant] = {
    "system_mode": ThermostatModeProperty,
    "running_state": HeatingCoolingProperty,
}

GENERIC_PROPERTIES: dict[str, PropertyVariant] = {
    "contact": ContactProperty,
}
