"""
Centralized logging module for the OPC UA bridge.

This module provides a singleton logger that integrates with the device
framework's logging client while providing a fallback to a JSON-formatted
standard library logger.
"""

from typing import Optional, Callable
import logging
import sys

from .formatter import JsonFormatter

LOGGER_NAME = "opcua_bridge"


def _build_fallback_logger(level: int = logging.INFO) -> logging.Logger:
    """Return the stdlib logger used when no framework client is bound."""
    fallback = logging.getLogger(LOGGER_NAME)
    if not fallback.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        fallback.addHandler(handler)
        fallback.setLevel(level)
    return fallback


class OpcuaLogger:
    """
    Singleton logger for the OPC UA bridge.

    Integrates with the framework's logging client when available,
    falls back to the standard library logger otherwise.
    """

    _instance: Optional['OpcuaLogger'] = None

    def __init__(self):
        self._log_debug_fn: Optional[Callable[[str], None]] = None
        self._log_info_fn: Optional[Callable[[str], None]] = None
        self._log_warn_fn: Optional[Callable[[str], None]] = None
        self._log_error_fn: Optional[Callable[[str], None]] = None
        self._initialized = False
        self._fallback = _build_fallback_logger()

    @classmethod
    def get_instance(cls) -> 'OpcuaLogger':
        """Get the singleton logger instance."""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset the singleton instance. Useful for testing."""
        cls._instance = None

    def initialize(self, logging_client) -> bool:
        """
        Bind the logger to the framework's logging client.

        The client is duck-typed: any of ``debug``, ``info``, ``warn``
        (or ``warning``) and ``error`` callables are picked up.

        Args:
            logging_client: Logging client supplied by the device framework

        Returns:
            True if initialization successful, False otherwise
        """
        if logging_client is None:
            return False

        self._log_debug_fn = getattr(logging_client, 'debug', None)
        self._log_info_fn = getattr(logging_client, 'info', None)
        self._log_warn_fn = (
            getattr(logging_client, 'warn', None)
            or getattr(logging_client, 'warning', None)
        )
        self._log_error_fn = getattr(logging_client, 'error', None)
        self._initialized = True
        return True

    def set_level(self, level: str) -> None:
        """Set the fallback logger level from a name such as 'DEBUG'."""
        self._fallback.setLevel(logging.getLevelName(level.upper()))

    def debug(self, message: str) -> None:
        """Log a debug message."""
        if self._initialized and self._log_debug_fn:
            self._log_debug_fn(message)
            return
        self._fallback.debug(message)

    def info(self, message: str) -> None:
        """Log an informational message."""
        if self._initialized and self._log_info_fn:
            self._log_info_fn(message)
            return
        self._fallback.info(message)

    def warn(self, message: str) -> None:
        """Log a warning message."""
        if self._initialized and self._log_warn_fn:
            self._log_warn_fn(message)
            return
        self._fallback.warning(message)

    def error(self, message: str) -> None:
        """Log an error message."""
        if self._initialized and self._log_error_fn:
            self._log_error_fn(message)
            return
        self._fallback.error(message)


# Module-level convenience functions
def get_logger() -> OpcuaLogger:
    """Get the singleton logger instance."""
    return OpcuaLogger.get_instance()


def log_debug(message: str) -> None:
    """Log a debug message."""
    get_logger().debug(message)


def log_info(message: str) -> None:
    """Log an informational message."""
    get_logger().info(message)


def log_warn(message: str) -> None:
    """Log a warning message."""
    get_logger().warn(message)


def log_error(message: str) -> None:
    """Log an error message."""
    get_logger().error(message)
