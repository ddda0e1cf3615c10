"""Configuration for the Zigbee2MQTT bridge client."""

from __future__ import annotations

from dataclasses import dataclass, field
import os
from pathlib import Path
import uuid

from dotenv import find_dotenv, load_dotenv

from .const import DEFAULT_CONNECT_TIMEOUT, DEFAULT_MQTT_PORT, DEFAULT_TOPIC_PREFIX
from .exceptions import ConfigError

ENV_HOST = "Z2M_MQTT_HOST"
ENV_PORT = "Z2M_MQTT_PORT"
ENV_USERNAME = "Z2M_MQTT_USERNAME"
ENV_PASSWORD = "Z2M_MQTT_PASSWORD"
ENV_TOPIC_PREFIX = "Z2M_TOPIC_PREFIX"
ENV_CLIENT_ID = "Z2M_CLIENT_ID"


def _generate_client_id() -> str:
    # Unique client_id to avoid conflicts with other bridge clients
    return f"z2m_bridge_{uuid.uuid4().hex[:8]}"


@dataclass(frozen=True)
class BridgeConfig:
    """Connection settings for the MQTT broker the bridge publishes to."""

    host: str
    port: int = DEFAULT_MQTT_PORT
    username: str | None = None
    password: str | None = None
    topic_prefix: str = DEFAULT_TOPIC_PREFIX
    client_id: str = field(default_factory=_generate_client_id)
    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT

    @classmethod
    def from_env(cls, env_file: str | Path | None = None) -> BridgeConfig:
        """Create BridgeConfig from environment variables.

        Values from ``env_file`` (or a ``.env`` file found from the working
        directory) fill in variables that are not already set.
        """
        load_dotenv(env_file or find_dotenv(usecwd=True))

        host = os.getenv(ENV_HOST)
        if not host:
            raise ConfigError(f"{ENV_HOST} is not set")

        port_value = os.getenv(ENV_PORT)
        try:
            port = int(port_value) if port_value else DEFAULT_MQTT_PORT
        except ValueError as err:
            raise ConfigError(f"{ENV_PORT} must be an integer, got {port_value!r}") from err

        topic_prefix = (os.getenv(ENV_TOPIC_PREFIX) or DEFAULT_TOPIC_PREFIX).rstrip("/")

        return cls(
            host=host,
            port=port,
            username=os.getenv(ENV_USERNAME) or None,
            password=os.getenv(ENV_PASSWORD) or None,
            topic_prefix=topic_prefix,
            client_id=os.getenv(ENV_CLIENT_ID) or _generate_client_id(),
        )
