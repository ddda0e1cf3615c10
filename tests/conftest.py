"""Shared fixtures for the Zigbee2MQTT bridge tests."""

from __future__ import annotations

import json
from typing import Any

import pytest

from zigbee2mqtt_bridge.device import Zigbee2MqttDevice

TOPIC_PREFIX = "zigbee2mqtt"


class FakeClient:
    """Message bus client that records requests and acknowledges them at once."""

    def __init__(self) -> None:
        self.subscriptions: list[str] = []
        self.unsubscriptions: list[str] = []
        self.published: list[tuple[str, Any]] = []
        self.publish_error: Exception | None = None
        self.subscribe_error: Exception | None = None

    def subscribe(self, topic: str, on_done) -> None:
        self.subscriptions.append(topic)
        on_done(self.subscribe_error)

    def unsubscribe(self, topic: str) -> None:
        self.unsubscriptions.append(topic)

    def publish(self, topic: str, payload: str, on_done) -> None:
        self.published.append((topic, json.loads(payload)))
        on_done(self.publish_error)


@pytest.fixture
def client() -> FakeClient:
    """Return a fresh fake client."""
    return FakeClient()


@pytest.fixture
def make_device(client: FakeClient):
    """Build a device from a list of exposes."""

    def _make(
        exposes: list[Any], friendly_name: str = "lamp1", device_id: str = "0x01"
    ) -> Zigbee2MqttDevice:
        return Zigbee2MqttDevice(
            device_id,
            {
                "ieee_address": device_id,
                "friendly_name": friendly_name,
                "type": "Router",
                "definition": {"model": "TEST", "vendor": "Test", "exposes": exposes},
            },
            client,
            TOPIC_PREFIX,
        )

    return _make
