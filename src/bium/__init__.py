"""bium: inbox, queues and weekly time blocks."""

__version__ = "0.1.0"
