"""Personal assistant agents with background tasks, capability dispatch and rating analytics."""

__version__ = "0.1.0"
