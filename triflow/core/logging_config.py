"""Logging configuration for the service."""

import logging


def configure_logging(level: str = "info") -> None:
    """Configure the root logger once, at application startup."""
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=numeric_level,
            format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
        )
    else:
        logging.getLogger().setLevel(numeric_level)

    # Request-level chatter from the HTTP client stack
    for logger_name in ["httpx", "httpcore", "httpcore.http11"]:
        logging.getLogger(logger_name).setLevel(logging.WARNING)
