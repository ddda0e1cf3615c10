"""Map Zigbee2MQTT device definitions onto a device/property/action/event model."""

from .bridge import Zigbee2MqttBridge
from .config import BridgeConfig
from .device import Zigbee2MqttDevice

__all__ = ["BridgeConfig", "Zigbee2MqttBridge", "Zigbee2MqttDevice"]
