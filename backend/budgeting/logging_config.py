"""Logging setup for the API process and the recurring processors."""

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s [%(threadName)s] %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger. Existing handlers (e.g. uvicorn's, pytest's) are kept."""
    logging.basicConfig(format=LOG_FORMAT)
    logging.getLogger().setLevel(level.upper())
