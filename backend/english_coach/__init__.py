"""English Coach - conversational English practice backend."""

__version__ = "0.1.0"
