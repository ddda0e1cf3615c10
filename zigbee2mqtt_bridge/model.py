"""Host device model: devices, properties, actions and events."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
from typing import Any, Generic, TypeVar
from uuid import uuid4

import voluptuous as vol

from .const import ActionStatus, CallbackEventType, DeviceCategory
from .exceptions import ActionInputError, PropertyError, Zigbee2MqttError
from .listeners import ListenerMixin
from .types import ActionDescription, EventDescription, PropertyDescription

_LOGGER = logging.getLogger(__name__)

T = TypeVar("T")


def _number(value: Any) -> int | float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise vol.Invalid(f"expected a number, got {value!r}")
    return value


def _integer(value: Any) -> int:
    if isinstance(value, bool):
        raise vol.Invalid(f"expected an integer, got {value!r}")
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if not isinstance(value, int):
        raise vol.Invalid(f"expected an integer, got {value!r}")
    return value


_TYPE_VALIDATORS: dict[str, Callable[[Any], Any]] = {
    "boolean": bool,
    "integer": _integer,
    "number": _number,
    "string": str,
    "object": dict,
    "array": list,
}


def build_input_schema(constraints: Mapping[str, Any]) -> vol.Schema:
    """Build a validator for a value from its type, enum and range constraints."""
    validators: list[Any] = []

    type_validator = _TYPE_VALIDATORS.get(constraints.get("type") or "")
    if type_validator is not None:
        validators.append(type_validator)

    if constraints.get("enum"):
        validators.append(vol.In(constraints["enum"]))

    minimum = constraints.get("minimum")
    maximum = constraints.get("maximum")
    if minimum is not None or maximum is not None:
        validators.append(vol.Range(min=minimum, max=maximum))

    if not validators:
        return vol.Schema(vol.Any(None, object))
    return vol.Schema(vol.All(*validators))


def validate_input(
    constraints: Mapping[str, Any],
    value: Any,
    device_id: str | None = None,
    error_class: type[Zigbee2MqttError] = ActionInputError,
) -> Any:
    """Validate ``value`` against ``constraints``, raising ``error_class``."""
    try:
        return build_input_schema(constraints)(value)
    except vol.Invalid as err:
        raise error_class(f"Invalid input {value!r}: {err}", device_id) from err


class Property(Generic[T]):
    """A named, typed value owned by a device."""

    def __init__(
        self,
        device: Device,
        name: str,
        description: PropertyDescription,
        value: T | None = None,
    ) -> None:
        """Initialize the property."""
        self.device = device
        self.name = name
        self.description = description
        self._value = value

    @property
    def value(self) -> T | None:
        """Return the last known value."""
        return self._value

    def set_cached_value(self, value: T) -> bool:
        """Store a new value, returning True if it changed."""
        changed = value != self._value
        self._value = value
        return changed

    def set_cached_value_and_notify(self, value: T) -> None:
        """Store a new value and notify listeners when it changed."""
        if self.set_cached_value(value):
            self.device.notify_property_changed(self)

    async def set_value(self, value: T) -> None:
        """Set the value from the host side."""
        validated = validate_input(
            self.description, value, self.device.id, PropertyError
        )
        self.set_cached_value_and_notify(validated)

    def as_dict(self) -> dict[str, Any]:
        """Return the property description together with its value."""
        return {**self.description, "name": self.name, "value": self._value}


class Action:
    """A single invocation of a device action."""

    def __init__(self, device: Device, name: str, input_: Any = None) -> None:
        """Initialize the action in the created state."""
        self.id = uuid4().hex
        self.device = device
        self.name = name
        self.input = input_
        self.status = ActionStatus.CREATED
        self.time_requested = datetime.now(timezone.utc)
        self.time_completed: datetime | None = None

    def start(self) -> None:
        """Mark the action as in flight."""
        self.status = ActionStatus.PENDING
        self.device.action_notify(self)

    def finish(self) -> None:
        """Mark the action as completed."""
        self.status = ActionStatus.COMPLETED
        self.time_completed = datetime.now(timezone.utc)
        self.device.action_notify(self)

    def as_dict(self) -> dict[str, Any]:
        """Return a serializable view of the action."""
        return {
            "id": self.id,
            "name": self.name,
            "input": self.input,
            "status": self.status.value,
            "timeRequested": self.time_requested.isoformat(),
            "timeCompleted": (
                self.time_completed.isoformat() if self.time_completed else None
            ),
        }


@dataclass
class Event:
    """An occurrence of a named device event."""

    name: str
    data: Any = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Device(ListenerMixin):
    """Aggregate of the properties, actions and events of one device."""

    def __init__(self, device_id: str, title: str | None = None) -> None:
        """Initialize an empty device."""
        self.id = device_id
        self.title = title or device_id
        self.description: str | None = None
        self.categories: set[DeviceCategory] = set()
        self.properties: dict[str, Property[Any]] = {}
        self.actions: dict[str, ActionDescription] = {}
        self.events: dict[str, EventDescription] = {}

        self._init_listeners(
            CallbackEventType.PROPERTY_CHANGED,
            CallbackEventType.EVENT,
            CallbackEventType.ACTION_STATUS,
        )

    def add_property(self, prop: Property[Any]) -> None:
        """Add a property, replacing any property with the same name."""
        self.properties[prop.name] = prop

    def find_property(self, name: str) -> Property[Any] | None:
        """Return the property called ``name``, if any."""
        return self.properties.get(name)

    def add_action(self, name: str, description: ActionDescription) -> None:
        """Add an action description."""
        self.actions[name] = description

    def add_event(self, name: str, description: EventDescription) -> None:
        """Add an event description."""
        self.events[name] = description

    def has_event(self, name: str) -> bool:
        """Return True if the device declares the event."""
        return name in self.events

    def notify_property_changed(self, prop: Property[Any]) -> None:
        """Tell listeners that a property value changed."""
        self._notify_listeners(CallbackEventType.PROPERTY_CHANGED, self.id, prop)

    def event_notify(self, event: Event) -> None:
        """Tell listeners that an event occurred."""
        _LOGGER.debug("Event %s on %s (%s)", event.name, self.title, self.id)
        self._notify_listeners(CallbackEventType.EVENT, self.id, event)

    def action_notify(self, action: Action) -> None:
        """Tell listeners that an action changed status."""
        self._notify_listeners(CallbackEventType.ACTION_STATUS, self.id, action)

    async def request_action(self, name: str, input_: Any = None) -> Action:
        """Validate and perform an action, returning it once finished."""
        description = self.actions.get(name)
        if description is None:
            raise ActionInputError(f"Unknown action {name}", self.id)

        value = validate_input(description.get("input", {}), input_, self.id)
        action = Action(self, name, value)
        await self.perform_action(action)
        return action

    async def perform_action(self, action: Action) -> None:
        """Carry out an action. Implemented by concrete devices."""
        raise NotImplementedError

    def as_dict(self) -> dict[str, Any]:
        """Return a serializable description of the device."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "@type": sorted(category.value for category in self.categories),
            "properties": {
                name: prop.as_dict() for name, prop in self.properties.items()
            },
            "actions": dict(self.actions),
            "events": dict(self.events),
        }
