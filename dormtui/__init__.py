"""Terminal client for the Dorm campus marketplace, wallet and voting backend."""

__version__ = "0.1.0"
