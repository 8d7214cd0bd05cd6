"""Desktop MQTT explorer: topic tree, message history, traffic simulator and dashboard."""

__version__ = "1.0.0"