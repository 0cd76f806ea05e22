"""Logging helpers."""

from .logging_manager import LoggingManager, get_logger, setup_logging, timed_context  # noqa: F401
