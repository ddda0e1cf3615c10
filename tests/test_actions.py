"""Tests for performing actions and requesting property reads."""

import pytest

from zigbee2mqtt_bridge.const import ActionStatus, CallbackEventType
from zigbee2mqtt_bridge.exceptions import ActionInputError, TransportError
from zigbee2mqtt_bridge.model import Action

ACTION_EXPOSES = [
    {
        "type": "light",
        "features": [
            {"type": "binary", "name": "state", "access": 7},
            {"type": "numeric", "name": "brightness", "access": 7},
        ],
    },
    {
        "type": "numeric",
        "name": "brightness_step",
        "access": 2,
        "value_min": -255,
        "value_max": 255,
        "value_step": 1,
    },
    {"type": "enum", "name": "effect", "access": 2, "values": ["blink", "okay"]},
]


@pytest.fixture
def lamp(make_device):
    """Return a light with two write-only actions."""
    return make_device(ACTION_EXPOSES)


def _record_statuses(device):
    statuses = []
    device.register_listener(
        CallbackEventType.ACTION_STATUS,
        lambda dev_id, action: statuses.append(action.status),
    )
    return statuses


class TestPerformAction:
    """Tests for publishing actions."""

    @pytest.mark.asyncio
    async def test_publishes_and_finishes(self, lamp, client):
        statuses = _record_statuses(lamp)
        published_at_start = []
        lamp.register_listener(
            CallbackEventType.ACTION_STATUS,
            lambda dev_id, action: published_at_start.append(len(client.published)),
        )
        action = Action(lamp, "brightness", 50)

        await lamp.perform_action(action)

        assert client.published == [("zigbee2mqtt/lamp1/set", {"brightness": 50})]
        assert statuses == [ActionStatus.PENDING, ActionStatus.COMPLETED]
        assert published_at_start == [0, 1]
        assert action.time_completed is not None

    @pytest.mark.asyncio
    async def test_failure_still_finishes(self, lamp, client):
        client.publish_error = OSError("broker gone")
        statuses = _record_statuses(lamp)
        action = Action(lamp, "effect", "blink")

        with pytest.raises(TransportError) as exc_info:
            await lamp.perform_action(action)

        assert exc_info.value.cause is client.publish_error
        assert exc_info.value.device_id == "0x01"
        assert statuses == [ActionStatus.PENDING, ActionStatus.COMPLETED]
        assert action.status is ActionStatus.COMPLETED

    @pytest.mark.asyncio
    async def test_refused_publish_still_finishes(self, lamp, client):
        def _refuse(topic, payload, on_done):
            raise OSError("not connected")

        client.publish = _refuse
        action = Action(lamp, "effect", "okay")

        with pytest.raises(TransportError):
            await lamp.perform_action(action)

        assert action.status is ActionStatus.COMPLETED


class TestRequestAction:
    """Tests for validated action requests."""

    @pytest.mark.asyncio
    async def test_valid_input(self, lamp, client):
        action = await lamp.request_action("brightness_step", 40)
        assert action.status is ActionStatus.COMPLETED
        assert client.published == [("zigbee2mqtt/lamp1/set", {"brightness_step": 40})]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("name", "value"),
        [
            ("brightness_step", 300),
            ("brightness_step", 1.5),
            ("brightness_step", "up"),
            ("effect", "fireworks"),
            ("missing", None),
        ],
    )
    async def test_invalid_input_publishes_nothing(self, lamp, client, name, value):
        with pytest.raises(ActionInputError):
            await lamp.request_action(name, value)
        assert client.published == []


class TestFetchValues:
    """Tests for read requests."""

    def test_requests_readable_properties(self, lamp, client):
        lamp.fetch_values()
        assert client.published == [
            ("zigbee2mqtt/lamp1/get", {"state": "", "brightness": ""})
        ]

    def test_skips_write_only_properties(self, make_device, client):
        device = make_device(
            [
                {"type": "numeric", "name": "power", "access": 5},
                {"type": "numeric", "name": "setpoint", "access": 3},
                {"type": "numeric", "name": "target", "access": 6},
            ]
        )
        device.fetch_values()
        assert client.published == [("zigbee2mqtt/lamp1/get", {"power": "", "setpoint": ""})]

    def test_nothing_readable(self, make_device, client):
        device = make_device([{"type": "enum", "name": "effect", "access": 2}])
        device.fetch_values()
        assert client.published == []

    def test_publish_error_is_logged(self, lamp, client, caplog):
        client.publish_error = OSError("broker gone")
        lamp.fetch_values()
        assert "Could not send" in caplog.text

    def test_refused_publish_is_logged(self, lamp, client, caplog):
        def _refuse(topic, payload, on_done):
            raise ValueError("payload too large")

        client.publish = _refuse
        lamp.fetch_values()
        assert "payload too large" in caplog.text
