"""MQTT client for a Zigbee2MQTT bridge."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import json
import logging
import threading
from typing import Any

import paho.mqtt.client as paho_mqtt
from paho.mqtt.enums import CallbackAPIVersion

from .config import BridgeConfig
from .const import COORDINATOR_TYPE, TOPIC_BRIDGE_DEVICES, CallbackEventType
from .device import Zigbee2MqttDevice
from .exceptions import BridgeConnectionError, TransportError
from .listeners import ListenerMixin
from .types import DeviceDefinition, PublishCallback

_LOGGER = logging.getLogger(__name__)


class Zigbee2MqttBridge(ListenerMixin):
    """MQTT client for a Zigbee2MQTT bridge.

    Implements the message bus contract used by devices and keeps the device
    registry in line with the definitions published on ``bridge/devices``.
    """

    def __init__(self, config: BridgeConfig) -> None:
        """Initialize the bridge client."""
        self.config = config
        self.topic_prefix = config.topic_prefix
        self._devices_topic = f"{self.topic_prefix}/{TOPIC_BRIDGE_DEVICES}"

        self._mqtt_client = paho_mqtt.Client(
            CallbackAPIVersion.VERSION2,
            client_id=config.client_id,
            protocol=paho_mqtt.MQTTv311,
        )
        self._mqtt_client.enable_logger()

        self._connect_result: int | None = None
        self._connection_event = asyncio.Event()
        self._loop: asyncio.AbstractEventLoop | None = None

        self._mqtt_client.on_connect = self._on_connect
        self._mqtt_client.on_disconnect = self._on_disconnect
        self._mqtt_client.on_message = self._on_message
        self._mqtt_client.on_publish = self._on_publish
        self._mqtt_client.on_subscribe = self._on_subscribe

        # Broker acknowledgements, keyed by message id
        self._ack_lock = threading.RLock()
        self._pending_acks: dict[int, PublishCallback] = {}
        self._early_acks: dict[int, Exception | None] = {}

        self._init_listeners(
            CallbackEventType.ONLINE_STATUS,
            CallbackEventType.DEVICE_ADDED,
            CallbackEventType.DEVICE_REMOVED,
        )

        self._devices: dict[str, Zigbee2MqttDevice] = {}
        self._devices_by_topic: dict[str, Zigbee2MqttDevice] = {}

    @property
    def devices(self) -> dict[str, Zigbee2MqttDevice]:
        """Return the known devices keyed by IEEE address."""
        return dict(self._devices)

    def _call_in_loop(self, callback: Callable[..., None], *args: Any) -> None:
        """Run ``callback`` on the event loop from a network thread."""
        if self._loop is None or self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(callback, *args)

    async def connect(self) -> None:
        """Connect to the MQTT broker."""
        self._loop = asyncio.get_running_loop()
        self._connection_event.clear()
        self._connect_result = 0

        if self.config.username:
            self._mqtt_client.username_pw_set(
                self.config.username, self.config.password
            )

        try:
            self._mqtt_client.connect(self.config.host, self.config.port)
            self._mqtt_client.loop_start()
            await asyncio.wait_for(
                self._connection_event.wait(), timeout=self.config.connect_timeout
            )
        except TimeoutError as err:
            raise BridgeConnectionError("Connection timeout") from err
        except (ConnectionRefusedError, OSError) as err:
            raise BridgeConnectionError(f"Network error: {err}") from err

        if self._connect_result == 0:
            _LOGGER.info(
                "Connected to %s:%s with topic prefix %s",
                self.config.host,
                self.config.port,
                self.topic_prefix,
            )
            return

        # MQTT 3.1.1 return codes and their MQTT 5 reason code equivalents
        if self._connect_result in (4, 5, 134, 135):
            raise BridgeConnectionError("Authentication failed")

        raise BridgeConnectionError(
            f"Connection failed with code {self._connect_result}"
        )

    async def disconnect(self) -> None:
        """Disconnect from the MQTT broker."""
        self._mqtt_client.loop_stop()
        self._mqtt_client.disconnect()
        self._connection_event.clear()

    def subscribe(self, topic: str, on_done: PublishCallback) -> None:
        """Subscribe to ``topic``, reporting the broker acknowledgement."""
        self._request(lambda: self._mqtt_client.subscribe(topic), topic, on_done)

    def unsubscribe(self, topic: str) -> None:
        """Stop receiving messages for ``topic``."""
        self._mqtt_client.unsubscribe(topic)

    def publish(self, topic: str, payload: str, on_done: PublishCallback) -> None:
        """Publish ``payload`` on ``topic``, reporting the acknowledgement."""

        def _publish() -> tuple[int, int | None]:
            info = self._mqtt_client.publish(topic, payload)
            return info.rc, info.mid

        self._request(_publish, topic, on_done)

    def _request(
        self,
        send: Callable[[], tuple[int, int | None]],
        topic: str,
        on_done: PublishCallback,
    ) -> None:
        # The acknowledgement may arrive before send() returns
        with self._ack_lock:
            result, mid = send()

            if result != paho_mqtt.MQTT_ERR_SUCCESS or mid is None:
                error = TransportError(
                    f"Request for {topic} refused: {paho_mqtt.error_string(result)}"
                )
                on_done(error)
                return

            if mid in self._early_acks:
                on_done(self._early_acks.pop(mid))
            else:
                self._pending_acks[mid] = on_done

    def _acknowledge(self, mid: int, error: Exception | None = None) -> None:
        with self._ack_lock:
            on_done = self._pending_acks.pop(mid, None)
            if on_done is None:
                self._early_acks[mid] = error
                return
        on_done(error)

    def _on_publish(
        self,
        client: paho_mqtt.Client,
        userdata: Any,
        mid: int,
        reason_code: Any = None,
        properties: Any = None,
    ) -> None:
        self._acknowledge(mid)

    def _on_subscribe(
        self,
        client: paho_mqtt.Client,
        userdata: Any,
        mid: int,
        reason_codes: Any = None,
        properties: Any = None,
    ) -> None:
        failures = [
            code for code in reason_codes or [] if getattr(code, "is_failure", False)
        ]
        if failures:
            self._acknowledge(mid, TransportError(f"Subscription refused: {failures[0]}"))
        else:
            self._acknowledge(mid)

    def _on_connect(
        self,
        client: paho_mqtt.Client,
        userdata: Any,
        flags: Any,
        rc: Any,
        properties: Any = None,
    ) -> None:
        self._connect_result = rc if isinstance(rc, int) else rc.value
        self._call_in_loop(self._connection_event.set)

        if self._connect_result == 0:
            self.subscribe(self._devices_topic, self._on_devices_subscribed)

            # A clean session drops the device subscriptions of the last connection
            self._call_in_loop(self._resubscribe_devices)

            self._call_in_loop(
                self._notify_listeners,
                CallbackEventType.ONLINE_STATUS,
                self.topic_prefix,
                True,
            )

    def _resubscribe_devices(self) -> None:
        for topic, device in list(self._devices_by_topic.items()):
            _LOGGER.debug("Resubscribing to %s", topic)
            self.subscribe(topic, device._on_subscribed)

    def _on_devices_subscribed(self, error: Exception | None) -> None:
        if error is not None:
            _LOGGER.error("Could not subscribe to %s: %s", self._devices_topic, error)
        else:
            _LOGGER.debug("Subscribed to topic %s", self._devices_topic)

    def _on_disconnect(
        self,
        client: paho_mqtt.Client,
        userdata: Any,
        disconnect_flags: Any,
        reason_code: Any,
        properties: Any = None,
    ) -> None:
        if reason_code != 0:
            _LOGGER.warning(
                "Unexpected MQTT disconnection from %s (code %s)",
                self.config.host,
                reason_code,
            )
        else:
            _LOGGER.debug("MQTT disconnected from %s", self.config.host)

        self._call_in_loop(
            self._notify_listeners,
            CallbackEventType.ONLINE_STATUS,
            self.topic_prefix,
            False,
        )

    def _on_message(
        self, client: paho_mqtt.Client, userdata: Any, msg: paho_mqtt.MQTTMessage
    ) -> None:
        try:
            payload_json = json.loads(msg.payload.decode("utf-8", errors="replace"))
        except json.JSONDecodeError:
            _LOGGER.warning("Invalid JSON in MQTT message on %s: %s", msg.topic, msg.payload)
            return

        self._call_in_loop(self.handle_message, msg.topic, payload_json)

    def handle_message(self, topic: str, payload: Any) -> None:
        """Route a decoded message to the device registry or a device."""
        _LOGGER.debug("Received MQTT message on topic %s: %s", topic, payload)

        if topic == self._devices_topic:
            self.handle_device_definitions(payload)
            return

        device = self._devices_by_topic.get(topic)
        if device is None:
            _LOGGER.debug("No device for topic %s", topic)
            return

        device.update(payload)

    def handle_device_definitions(self, definitions: Any) -> None:
        """Rebuild the device registry from a bridge/devices payload.

        Devices whose definition is unchanged are kept; changed definitions
        are rebuilt from scratch and vanished devices are removed.
        """
        if not isinstance(definitions, list):
            _LOGGER.warning("Expected list of device definitions but got %r", definitions)
            return

        seen: set[str] = set()

        for device_definition in definitions:
            device_id = self._device_id(device_definition)
            if device_id is None:
                continue

            seen.add(device_id)
            existing = self._devices.get(device_id)
            if existing is not None:
                if existing.device_definition == device_definition:
                    continue
                self._remove_device(existing)

            self._add_device(device_id, device_definition)

        for device_id in list(self._devices):
            if device_id not in seen:
                self._remove_device(self._devices[device_id])

    def _device_id(self, device_definition: Any) -> str | None:
        if not isinstance(device_definition, dict):
            return None
        if device_definition.get("type") == COORDINATOR_TYPE:
            return None
        if not device_definition.get("definition"):
            _LOGGER.debug(
                "Ignoring %s without definition",
                device_definition.get("friendly_name"),
            )
            return None
        return device_definition.get("ieee_address") or device_definition.get(
            "friendly_name"
        )

    def _add_device(self, device_id: str, device_definition: DeviceDefinition) -> None:
        device = Zigbee2MqttDevice(device_id, device_definition, self, self.topic_prefix)
        self._devices[device_id] = device
        self._devices_by_topic[device.device_topic] = device

        _LOGGER.info("Added device %s (%s)", device.title, device_id)
        self._notify_listeners(CallbackEventType.DEVICE_ADDED, device_id, device)

    def _remove_device(self, device: Zigbee2MqttDevice) -> None:
        self._devices.pop(device.id, None)
        self._devices_by_topic.pop(device.device_topic, None)
        self.unsubscribe(device.device_topic)

        _LOGGER.info("Removed device %s (%s)", device.title, device.id)
        self._notify_listeners(CallbackEventType.DEVICE_REMOVED, device.id, device)
