"""triflow - workflow graph execution service."""

__version__ = "0.1.0"
