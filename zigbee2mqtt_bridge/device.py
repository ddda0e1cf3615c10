"""Zigbee2MQTT device built from a bridge device definition."""

from __future__ import annotations

from collections.abc import Mapping
import json
import logging
from typing import Any

from .const import (
    ACTION_KEY,
    EVENT_CLASSIFICATION_RULES,
    IGNORED_PROPERTIES,
    PROPERTY_RENAMES,
    READ_TOPIC_SUFFIX,
    WRITE_BIT,
    WRITE_TOPIC_SUFFIX,
    DeviceCategory,
    EventType,
)
from .model import Action, Device, Event
from .parsers import parse_type, parse_unit
from .properties import (
    CLIMATE_PROPERTIES,
    GENERIC_PROPERTIES,
    LIGHT_PROPERTIES,
    SWITCH_PROPERTIES,
    PropertyVariant,
    Zigbee2MqttProperty,
)
from .transport import MessageBusClient, async_publish
from .types import DeviceDefinition, EventDescription, Expose

_LOGGER = logging.getLogger(__name__)


def classify_event(value: str) -> EventType | None:
    """Return the press variant of an event value, if any."""
    event_type: EventType | None = None
    for rule in EVENT_CLASSIFICATION_RULES:
        if rule.matches(value):
            event_type = rule.event_type
    return event_type


class Zigbee2MqttDevice(Device):
    """A device behind the Zigbee2MQTT bridge.

    The capability set is derived once from the definition's exposes. State
    snapshots published on the device topic are routed to properties and
    events through ``update``.
    """

    def __init__(
        self,
        device_id: str,
        device_definition: DeviceDefinition,
        client: MessageBusClient,
        topic_prefix: str,
    ) -> None:
        """Initialize the device, detect its capabilities and subscribe."""
        friendly_name = device_definition.get("friendly_name")
        super().__init__(device_id, friendly_name or f"Zigbee2MQTT ({device_id})")
        self.device_definition = device_definition
        self.device_topic = f"{topic_prefix}/{friendly_name}"
        self._client = client

        definition = device_definition.get("definition") or {}
        self.description = definition.get("description")

        self.detect(device_definition)

        _LOGGER.info("Subscribing to %s", self.device_topic)
        client.subscribe(self.device_topic, self._on_subscribed)

    def _on_subscribed(self, error: Exception | None) -> None:
        if error is not None:
            _LOGGER.error("Could not subscribe to %s: %s", self.device_topic, error)

    @property
    def write_topic(self) -> str:
        """Topic accepting {name: value} commands."""
        return f"{self.device_topic}{WRITE_TOPIC_SUFFIX}"

    @property
    def read_topic(self) -> str:
        """Topic accepting read requests."""
        return f"{self.device_topic}{READ_TOPIC_SUFFIX}"

    def detect(self, device_definition: DeviceDefinition) -> None:
        """Create properties, actions and events from the exposes."""
        definition = device_definition.get("definition") or {}

        for expose in definition.get("exposes") or []:
            if not isinstance(expose, Mapping):
                _LOGGER.debug("Ignoring malformed expose: %r", expose)
                continue

            expose_type = expose.get("type") or ""

            if expose_type == "light":
                self._create_feature_properties(
                    expose, DeviceCategory.LIGHT, LIGHT_PROPERTIES
                )
            elif expose_type == "switch":
                self._create_feature_properties(
                    expose, DeviceCategory.SMART_PLUG, SWITCH_PROPERTIES
                )
            elif expose_type == "climate":
                self._create_feature_properties(
                    expose,
                    DeviceCategory.THERMOSTAT,
                    CLIMATE_PROPERTIES,
                    fallback_to_generic=True,
                )
            elif expose.get("name") == ACTION_KEY:
                self.create_events(expose.get("values"))
            elif expose.get("access", 0) == WRITE_BIT:
                self.create_action(expose)
            else:
                self.create_property(expose)

    def _create_feature_properties(
        self,
        expose: Expose,
        category: DeviceCategory,
        variants: Mapping[str, PropertyVariant],
        fallback_to_generic: bool = False,
    ) -> None:
        """Create properties for the features of a composite expose.

        Features without a known variant are dropped, unless the composite
        falls back to generic property creation.
        """
        features = expose.get("features")
        if not isinstance(features, list):
            _LOGGER.warning(
                "Expected features array in %s expose: %s",
                expose.get("type"),
                json.dumps(expose),
            )
            return

        self.categories.add(category)

        for feature in features:
            name = feature.get("name") if isinstance(feature, Mapping) else None
            if not name:
                _LOGGER.debug("Ignoring feature without name: %s", json.dumps(feature))
                continue

            variant = variants.get(name)
            if variant is not None:
                self._add_variant(variant, PROPERTY_RENAMES.get(name, name), feature)
            elif fallback_to_generic:
                self.create_property(feature)

    def _add_variant(self, variant: PropertyVariant, name: str, expose: Expose) -> None:
        _LOGGER.debug("Creating %s %s for %s", variant.__name__, name, self.id)
        self.add_property(variant(self, name, expose, self._client, self.device_topic))

    def create_events(self, values: Any) -> None:
        """Create one event per value of the action expose."""
        if not isinstance(values, list) or not all(
            isinstance(value, str) for value in values
        ):
            _LOGGER.debug("Expected list of event names but got %r", values)
            return

        if not values:
            _LOGGER.debug("Expected list of event names but got an empty list")
            return

        is_push_button = False

        for value in values:
            description: EventDescription = {"name": value}

            event_type = classify_event(value)
            if event_type is not None:
                description["@type"] = event_type.value
                is_push_button = True

            _LOGGER.debug("Creating event %s for %s", description, self.id)
            self.add_event(value, description)

        if is_push_button:
            self.categories.add(DeviceCategory.PUSH_BUTTON)

    def create_action(self, expose: Expose) -> None:
        """Create a write-only action from an expose."""
        name = expose.get("name")
        if not name:
            _LOGGER.debug("Ignoring action without name: %s", json.dumps(expose))
            return

        _LOGGER.debug("Creating action %s for %s", name, self.id)

        self.add_action(
            name,
            {
                "title": expose.get("label") or name,
                "description": expose.get("description"),
                "input": {
                    "type": parse_type(expose),
                    "unit": parse_unit(expose.get("unit")),
                    "enum": expose.get("values"),
                    "minimum": expose.get("value_min"),
                    "maximum": expose.get("value_max"),
                },
            },
        )

    def create_property(self, expose: Expose) -> None:
        """Create a property from a leaf expose unless its name is ignored."""
        name = expose.get("name")
        if not name:
            _LOGGER.debug("Ignoring property without name: %s", json.dumps(expose))
            return

        if name in IGNORED_PROPERTIES:
            return

        if "features" in expose:
            _LOGGER.debug("Ignoring container expose %s on %s", name, self.id)
            return

        self._add_variant(
            GENERIC_PROPERTIES.get(name, Zigbee2MqttProperty), name, expose
        )

    def update(self, update: Any) -> None:
        """Apply a state snapshot received on the device topic."""
        if not isinstance(update, Mapping):
            _LOGGER.debug("Expected object but got %s", type(update).__name__)
            return

        for key, value in update.items():
            if key in IGNORED_PROPERTIES:
                continue

            if key == ACTION_KEY:
                self._trigger_event(value)
                continue

            prop = self.find_property(key)
            if isinstance(prop, Zigbee2MqttProperty):
                prop.update(value, update)
            else:
                _LOGGER.debug(
                    "Property %s does not exist on %s (%s)", key, self.title, self.id
                )

    def _trigger_event(self, value: Any) -> None:
        if not isinstance(value, str):
            _LOGGER.debug(
                "Expected event of type string but got %s", type(value).__name__
            )
            return

        if not self.has_event(value):
            _LOGGER.debug("Event %s does not exist on %s (%s)", value, self.title, self.id)
            return

        self.event_notify(Event(value))

    async def perform_action(self, action: Action) -> None:
        """Send an action to the device.

        The action is marked started before publishing and finished once the
        publish is acknowledged or fails. Failures raise TransportError.
        """
        action.start()

        try:
            payload = json.dumps({action.name: action.input})
            _LOGGER.debug("Sending %s to %s", payload, self.write_topic)
            await async_publish(self._client, self.write_topic, payload, self.id)
        finally:
            action.finish()

    def fetch_values(self) -> None:
        """Ask the bridge to report every readable property."""
        payload = {
            name: ""
            for name, prop in self.properties.items()
            if isinstance(prop, Zigbee2MqttProperty) and prop.is_readable()
        }

        if not payload:
            _LOGGER.debug("%s has no readable properties", self.title)
            return

        read_payload = json.dumps(payload)
        _LOGGER.debug("Sending %s to %s", read_payload, self.read_topic)

        def _on_done(error: Exception | None) -> None:
            if error is not None:
                _LOGGER.warning(
                    "Could not send %s to %s: %s", read_payload, self.read_topic, error
                )

        try:
            self._client.publish(self.read_topic, read_payload, _on_done)
        except (OSError, ValueError) as err:
            _on_done(err)
