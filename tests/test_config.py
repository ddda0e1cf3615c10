"""Tests for loading the bridge configuration."""

import pytest

from zigbee2mqtt_bridge.config import BridgeConfig
from zigbee2mqtt_bridge.exceptions import ConfigError

ENV_VARS = (
    "Z2M_MQTT_HOST",
    "Z2M_MQTT_PORT",
    "Z2M_MQTT_USERNAME",
    "Z2M_MQTT_PASSWORD",
    "Z2M_TOPIC_PREFIX",
    "Z2M_CLIENT_ID",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Start every test from an empty environment and working directory."""
    # setenv first so values loaded from env files are undone as well
    for name in ENV_VARS:
        monkeypatch.setenv(name, "")
        monkeypatch.delenv(name)
    monkeypatch.chdir(tmp_path)


def test_defaults(monkeypatch):
    monkeypatch.setenv("Z2M_MQTT_HOST", "broker.local")

    config = BridgeConfig.from_env()

    assert config.host == "broker.local"
    assert config.port == 1883
    assert config.username is None
    assert config.password is None
    assert config.topic_prefix == "zigbee2mqtt"
    assert config.client_id.startswith("z2m_bridge_")


def test_all_values(monkeypatch):
    monkeypatch.setenv("Z2M_MQTT_HOST", "10.0.0.2")
    monkeypatch.setenv("Z2M_MQTT_PORT", "8883")
    monkeypatch.setenv("Z2M_MQTT_USERNAME", "bridge")
    monkeypatch.setenv("Z2M_MQTT_PASSWORD", "secret")
    monkeypatch.setenv("Z2M_TOPIC_PREFIX", "home/z2m/")
    monkeypatch.setenv("Z2M_CLIENT_ID", "bridge-1")

    config = BridgeConfig.from_env()

    assert config.port == 8883
    assert config.username == "bridge"
    assert config.password == "secret"
    assert config.topic_prefix == "home/z2m"
    assert config.client_id == "bridge-1"


def test_env_file(tmp_path):
    env_file = tmp_path / "bridge.env"
    env_file.write_text("Z2M_MQTT_HOST=from-file\nZ2M_MQTT_PORT=1884\n")

    config = BridgeConfig.from_env(env_file)

    assert config.host == "from-file"
    assert config.port == 1884


def test_environment_wins_over_env_file(monkeypatch, tmp_path):
    monkeypatch.setenv("Z2M_MQTT_HOST", "from-env")
    env_file = tmp_path / "bridge.env"
    env_file.write_text("Z2M_MQTT_HOST=from-file\n")

    assert BridgeConfig.from_env(env_file).host == "from-env"


def test_missing_host():
    with pytest.raises(ConfigError, match="Z2M_MQTT_HOST"):
        BridgeConfig.from_env()


def test_bad_port(monkeypatch):
    monkeypatch.setenv("Z2M_MQTT_HOST", "broker.local")
    monkeypatch.setenv("Z2M_MQTT_PORT", "mqtt")

    with pytest.raises(ConfigError, match="Z2M_MQTT_PORT"):
        BridgeConfig.from_env()
