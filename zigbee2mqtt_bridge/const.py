"""Constants for the Zigbee2MQTT bridge."""

from dataclasses import dataclass
from enum import Enum

# MQTT Topics
DEFAULT_TOPIC_PREFIX = "zigbee2mqtt"
TOPIC_BRIDGE_DEVICES = "bridge/devices"
WRITE_TOPIC_SUFFIX = "/set"
READ_TOPIC_SUFFIX = "/get"

# Default values
DEFAULT_MQTT_PORT = 1883
DEFAULT_CONNECT_TIMEOUT = 10.0  # seconds

# Expose access bits
READ_BIT = 1
WRITE_BIT = 2
READ_WRITE_BITS = READ_BIT | WRITE_BIT

# Reserved expose/update key carrying button presses
ACTION_KEY = "action"

# Coordinator entries in bridge/devices carry no exposes
COORDINATOR_TYPE = "Coordinator"

IGNORED_PROPERTIES = frozenset(
    {
        "linkquality",
        "local_temperature_calibration",
        "update",
        "update_available",
        "color_temp_startup",
        "voltage",
        "led_indication",
        "occupancy_timeout",
        "illuminance",
        "motion_sensitivity",
        "requested_brightness_percent",
        "requested_brightness_level",
        "action_side",
        "eurotronic_trv_mode",
        "eurotronic_valve_position",
    }
)

# Light features are renamed when the host name differs from the expose name
PROPERTY_RENAMES = {
    "color_xy": "color",
}

# Raw unit strings reported by the bridge -> host unit names
UNITS = {
    "°C": "degree celsius",
    "°F": "degree fahrenheit",
    "%": "percent",
    "W": "watt",
    "kW": "kilowatt",
    "kWh": "kilowatt hour",
    "V": "volt",
    "A": "ampere",
    "mA": "milliampere",
    "lx": "lux",
    "hPa": "hectopascal",
    "kPa": "kilopascal",
    "ppm": "ppm",
    "ppb": "ppb",
    "µg/m³": "micrograms per cubic metre",
    "mired": "mired",
    "K": "kelvin",
    "s": "second",
    "min": "minute",
    "h": "hour",
    "dB": "decibel",
    "dBm": "decibel milliwatt",
    "m": "metre",
    "cm": "centimetre",
    "mm": "millimetre",
}

# Expose value types -> host JSON schema types
VALUE_TYPES = {
    "binary": "boolean",
    "numeric": "number",
    "enum": "string",
    "text": "string",
    "composite": "object",
    "list": "array",
}

# Generic properties with a well-known semantic type
SEMANTIC_PROPERTY_TYPES = {
    "temperature": "TemperatureProperty",
    "local_temperature": "TemperatureProperty",
    "humidity": "HumidityProperty",
    "power": "InstantaneousPowerProperty",
    "current": "CurrentProperty",
    "occupancy": "MotionProperty",
    "battery": "LevelProperty",
    "current_heating_setpoint": "TargetTemperatureProperty",
    "occupied_heating_setpoint": "TargetTemperatureProperty",
}

# Climate running_state values -> HeatingCoolingProperty values
HEATING_COOLING_STATES = {
    "idle": "off",
    "heat": "heating",
    "cool": "cooling",
    "fan_only": "off",
}


class DeviceCategory(Enum):
    """Semantic category tags attached to a device."""

    LIGHT = "Light"
    SMART_PLUG = "SmartPlug"
    THERMOSTAT = "Thermostat"
    PUSH_BUTTON = "PushButton"


class EventType(Enum):
    """Press variants an event may be tagged with."""

    PRESSED = "PressedEvent"
    DOUBLE_PRESSED = "DoublePressedEvent"
    LONG_PRESSED = "LongPressedEvent"


class ActionStatus(Enum):
    """Lifecycle markers of a requested action."""

    CREATED = "created"
    PENDING = "pending"
    COMPLETED = "completed"


class CallbackEventType(Enum):
    """Callback event types for listener registration."""

    ONLINE_STATUS = "online_status"
    DEVICE_ADDED = "device_added"
    DEVICE_REMOVED = "device_removed"
    PROPERTY_CHANGED = "property_changed"
    EVENT = "event"
    ACTION_STATUS = "action_status"


@dataclass(frozen=True)
class EventRule:
    """Classify an event value as a press variant."""

    pattern: str
    event_type: EventType
    exact: bool = False

    def matches(self, value: str) -> bool:
        """Return True when the rule applies to the event value."""
        if self.exact:
            return value == self.pattern
        return self.pattern in value


# Evaluated in order, the last matching rule decides the tag
EVENT_CLASSIFICATION_RULES = (
    EventRule("single", EventType.PRESSED),
    EventRule("on", EventType.PRESSED, exact=True),
    EventRule("toggle", EventType.PRESSED, exact=True),
    EventRule("double", EventType.DOUBLE_PRESSED),
    EventRule("release", EventType.LONG_PRESSED),
)
