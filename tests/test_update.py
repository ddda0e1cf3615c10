"""Tests for routing state snapshots to properties and events."""

import pytest

from zigbee2mqtt_bridge.const import CallbackEventType

LAMP_EXPOSES = [
    {
        "type": "light",
        "features": [
            {"type": "binary", "name": "state", "access": 7},
            {"type": "numeric", "name": "brightness", "access": 7},
            {"type": "composite", "name": "color_xy"},
        ],
    },
    {"type": "numeric", "name": "power", "access": 5, "unit": "W"},
]

REMOTE_EXPOSES = [
    {"type": "enum", "name": "action", "access": 1, "values": ["single", "double"]},
    {"type": "numeric", "name": "battery", "access": 1, "unit": "%"},
]


@pytest.fixture
def lamp(make_device):
    """Return a light with a power meter."""
    return make_device(LAMP_EXPOSES)


@pytest.fixture
def remote(make_device):
    """Return a remote with single and double presses."""
    return make_device(REMOTE_EXPOSES, friendly_name="remote1", device_id="0x02")


def _values(device):
    return {name: prop.value for name, prop in device.properties.items()}


class TestPropertyUpdates:
    """Tests for property routing."""

    def test_snapshot_updates_properties(self, lamp):
        lamp.update({"state": "ON", "brightness": 254, "power": 7.5})
        assert _values(lamp) == {
            "state": True,
            "brightness": 100,
            "color": None,
            "power": 7.5,
        }

    def test_update_is_idempotent(self, lamp):
        changes = []
        lamp.register_listener(
            CallbackEventType.PROPERTY_CHANGED,
            lambda dev_id, prop: changes.append(prop.name),
        )
        snapshot = {"state": "OFF", "brightness": 127}

        lamp.update(snapshot)
        first = _values(lamp)
        lamp.update(snapshot)

        assert _values(lamp) == first
        assert changes == ["state", "brightness"]

    def test_unknown_keys_change_nothing(self, lamp):
        lamp.update({"state": "ON"})
        before = _values(lamp)
        lamp.update({"unknown_key": 1, "another": {"nested": True}})
        assert _values(lamp) == before

    def test_ignored_keys_are_skipped(self, lamp):
        lamp.update({"linkquality": 120, "update": {"state": "idle"}})
        assert "linkquality" not in lamp.properties
        assert all(value is None for value in _values(lamp).values())

    @pytest.mark.parametrize("snapshot", [None, "ON", 42, ["state", "ON"]])
    def test_non_mapping_is_ignored(self, lamp, snapshot):
        lamp.update(snapshot)
        assert all(value is None for value in _values(lamp).values())

    def test_bad_value_leaves_other_keys(self, lamp):
        lamp.update({"brightness": 254})
        lamp.update({"brightness": "max", "power": 3})
        assert lamp.properties["brightness"].value == 100
        assert lamp.properties["power"].value == 3

    def test_color_reads_sibling_mode(self, lamp):
        lamp.update(
            {"color": {"hue": 240, "saturation": 100}, "color_mode": "hs"}
        )
        assert lamp.properties["color"].value == "#0000ff"


class TestEventUpdates:
    """Tests for action values becoming events."""

    def test_known_event_is_raised(self, remote):
        events = []
        remote.register_listener(
            CallbackEventType.EVENT, lambda dev_id, event: events.append((dev_id, event))
        )

        remote.update({"action": "single", "battery": 90})

        assert len(events) == 1
        dev_id, event = events[0]
        assert dev_id == "0x02"
        assert event.name == "single"
        assert remote.properties["battery"].value == 90

    def test_unknown_event_is_dropped(self, remote):
        events = []
        remote.register_listener(
            CallbackEventType.EVENT, lambda dev_id, event: events.append(event)
        )

        remote.update({"action": "triple"})
        remote.update({"action": 3})
        remote.update({"action": None})

        assert events == []

    def test_action_is_never_a_property(self, remote):
        remote.update({"action": "double"})
        assert "action" not in remote.properties

    def test_unsubscribe_listener(self, remote):
        events = []
        unsubscribe = remote.register_listener(
            CallbackEventType.EVENT, lambda dev_id, event: events.append(event)
        )
        unsubscribe()
        remote.update({"action": "single"})
        assert events == []
