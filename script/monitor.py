#!/usr/bin/env python3
"""Monitor script for a Zigbee2MQTT bridge.

Connects to the broker configured in the .env file, builds devices from the
bridge's device definitions and logs property changes and events.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
from pathlib import Path
import sys
from typing import Any

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from zigbee2mqtt_bridge.bridge import Zigbee2MqttBridge  # noqa: E402
from zigbee2mqtt_bridge.config import BridgeConfig  # noqa: E402
from zigbee2mqtt_bridge.const import CallbackEventType  # noqa: E402
from zigbee2mqtt_bridge.device import Zigbee2MqttDevice  # noqa: E402
from zigbee2mqtt_bridge.exceptions import Zigbee2MqttError  # noqa: E402
from zigbee2mqtt_bridge.model import Event, Property  # noqa: E402

logging.basicConfig(
    level=logging.DEBUG,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

_LOGGER = logging.getLogger(__name__)

# Disable paho.mqtt.client debug logging
logging.getLogger("paho.mqtt.client").setLevel(logging.WARNING)


class BridgeMonitor:
    """Log what a bridge reports for a while."""

    def __init__(self, config: BridgeConfig, fetch: bool, dump: Path | None) -> None:
        """Initialize the monitor."""
        self.config = config
        self.fetch = fetch
        self.dump = dump
        self.bridge = Zigbee2MqttBridge(config)
        self.events: list[tuple[str, str]] = []

    def _on_online_status(self, prefix: str, is_online: bool) -> None:
        status = "online" if is_online else "offline"
        _LOGGER.info("Bridge %s is now %s", prefix, status)

    def _on_device_added(self, dev_id: str, device: Zigbee2MqttDevice) -> None:
        _LOGGER.info(
            "Device %s (%s): categories=%s properties=%s actions=%s events=%s",
            device.title,
            dev_id,
            sorted(category.value for category in device.categories),
            list(device.properties),
            list(device.actions),
            list(device.events),
        )
        device.register_listener(
            CallbackEventType.PROPERTY_CHANGED, self._on_property_changed
        )
        device.register_listener(CallbackEventType.EVENT, self._on_event)

        if self.fetch:
            device.fetch_values()

    def _on_device_removed(self, dev_id: str, device: Zigbee2MqttDevice) -> None:
        _LOGGER.info("Device %s (%s) removed", device.title, dev_id)

    def _on_property_changed(self, dev_id: str, prop: Property[Any]) -> None:
        _LOGGER.info("Property %s of %s is now %r", prop.name, dev_id, prop.value)

    def _on_event(self, dev_id: str, event: Event) -> None:
        _LOGGER.info("Event %s on %s", event.name, dev_id)
        self.events.append((dev_id, event.name))

    def _write_json_file(self, file_path: Path, data: Any) -> None:
        """Write JSON data to file (blocking operation for use with to_thread)."""
        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2, ensure_ascii=False, default=str)

    async def run(self, duration: float) -> None:
        """Connect, listen for ``duration`` seconds and disconnect."""
        self.bridge.register_listener(
            CallbackEventType.ONLINE_STATUS, self._on_online_status
        )
        self.bridge.register_listener(
            CallbackEventType.DEVICE_ADDED, self._on_device_added
        )
        self.bridge.register_listener(
            CallbackEventType.DEVICE_REMOVED, self._on_device_removed
        )

        await self.bridge.connect()

        try:
            await asyncio.sleep(duration)
        finally:
            await self.bridge.disconnect()

        _LOGGER.info(
            "Saw %d devices and %d events",
            len(self.bridge.devices),
            len(self.events),
        )

        if self.dump:
            data = [device.as_dict() for device in self.bridge.devices.values()]
            await asyncio.to_thread(self._write_json_file, self.dump, data)
            _LOGGER.info("Wrote device descriptions to %s", self.dump)


def main() -> None:
    """Run the monitor."""
    parser = argparse.ArgumentParser(
        description="Log devices, property changes and events of a Zigbee2MQTT bridge"
    )
    parser.add_argument(
        "--env-file",
        help="Path to the .env file (defaults to .env in the project root)",
    )
    parser.add_argument(
        "--host",
        help="MQTT broker host (overrides .env)",
    )
    parser.add_argument(
        "--topic-prefix",
        help="Bridge topic prefix (overrides .env)",
    )
    parser.add_argument(
        "--duration",
        type=float,
        default=60.0,
        help="Seconds to listen before disconnecting",
    )
    parser.add_argument(
        "--fetch",
        action="store_true",
        help="Request current values of every readable property",
    )
    parser.add_argument(
        "--dump",
        type=Path,
        help="Write device descriptions to this JSON file",
    )

    args = parser.parse_args()

    try:
        config = BridgeConfig.from_env(args.env_file or project_root / ".env")
    except Zigbee2MqttError as err:
        if not args.host:
            _LOGGER.error("Invalid configuration: %s", err)
            sys.exit(2)
        config = BridgeConfig(host=args.host)

    # Override with command line arguments if provided
    if args.host:
        config = dataclasses.replace(config, host=args.host)
    if args.topic_prefix:
        config = dataclasses.replace(config, topic_prefix=args.topic_prefix)

    monitor = BridgeMonitor(config, fetch=args.fetch, dump=args.dump)

    try:
        asyncio.run(monitor.run(args.duration))
    except Zigbee2MqttError as err:
        _LOGGER.error("Bridge error: %s", err)
        sys.exit(1)
    except KeyboardInterrupt:
        _LOGGER.info("Monitor interrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    main()
