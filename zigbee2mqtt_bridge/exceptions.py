"""Custom exceptions for Zigbee2MQTT bridge operations."""


class Zigbee2MqttError(Exception):
    """Base exception for Zigbee2MQTT bridge operations."""

    def __init__(self, message: str, device_id: str | None = None):
        """Initialize the exception with an optional device identifier."""
        super().__init__(message)
        self.device_id = device_id


class TransportError(Zigbee2MqttError):
    """The message bus refused or failed to deliver a publish."""

    def __init__(
        self,
        message: str,
        cause: BaseException | None = None,
        device_id: str | None = None,
    ):
        """Initialize the exception with the underlying transport failure."""
        super().__init__(message, device_id)
        self.cause = cause


class ActionInputError(Zigbee2MqttError):
    """Action input does not satisfy the action's input schema."""


class PropertyError(Zigbee2MqttError):
    """A property cannot accept the requested value."""


class BridgeConnectionError(Zigbee2MqttError):
    """Connecting to the MQTT broker failed."""


class ConfigError(Zigbee2MqttError):
    """Bridge configuration is missing or malformed."""
