#!/usr/bin/env python3
"""Structured logging system for PathSieve.

This module provides a structured logging system with:
- Multiple log levels (DEBUG, INFO, WARNING, ERROR)
- Structured context (key-value pairs)
- Console and rotating file handlers
- Thread-local context management
- Component loggers that propagate to the application logger

Example:
    >>> logger = Logger(level=LogLevel.INFO)
    >>> logger.info("Archive written", entries=12, destination="out.zip")
    >>> with logger.add_context(root="/data"):
    ...     logger.debug("Matched file")
"""

import logging
import logging.handlers
import threading
from contextlib import contextmanager
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pathsieve.core.constants import Limits

ROOT_LOGGER_NAME = "pathsieve"


class LogLevel(IntEnum):
    """Log levels matching Python's logging module."""

    DEBUG = logging.DEBUG  # 10
    INFO = logging.INFO  # 20
    WARNING = logging.WARNING  # 30
    ERROR = logging.ERROR  # 40
    CRITICAL = logging.CRITICAL  # 50


class Logger:
    """Structured logger with context support.

    The application logger (``pathsieve``) owns the output handlers and does
    not propagate. Component loggers (``pathsieve.filtering`` and so on) are
    created with ``propagate=True`` and no handlers of their own, so a single
    ``setup_logging`` call routes every component's output.
    """

    # Thread-local storage for context
    _context_stack = threading.local()

    def __init__(
        self,
        name: str = ROOT_LOGGER_NAME,
        level: Optional[Union[LogLevel, str]] = LogLevel.INFO,
        handlers: Optional[List[logging.Handler]] = None,
        propagate: bool = False,
    ):
        """Initialize logger.

        Args:
            name: Logger name for identification
            level: Minimum log level to output (None inherits from parent)
            handlers: Optional list of logging handlers
            propagate: Forward records to the parent logger instead of
                owning handlers
        """
        self.name = name
        self.logger = logging.getLogger(name)

        if level is not None:
            self.set_level(level)

        if propagate:
            if handlers:
                for handler in handlers:
                    self.logger.addHandler(handler)
        else:
            # Configure handlers if not provided
            if handlers is None:
                handlers = [self._create_console_handler()]

            # Clear existing handlers and add new ones
            self.logger.handlers.clear()
            for handler in handlers:
                self.logger.addHandler(handler)

        self.logger.propagate = propagate

    def _create_console_handler(self) -> logging.StreamHandler:
        """Create default console handler with formatting.

        Writes to stderr so command output on stdout stays clean.

        Returns:
            Configured console handler
        """
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        return handler

    def create_file_handler(
        self,
        filename: Union[str, Path],
        max_bytes: int = Limits.LOG_FILE_MAX_BYTES,
        backup_count: int = Limits.LOG_FILE_BACKUP_COUNT,
    ) -> logging.handlers.RotatingFileHandler:
        """Create rotating file handler.

        Args:
            filename: Path to log file
            max_bytes: Maximum size before rotation
            backup_count: Number of backup files to keep

        Returns:
            Configured rotating file handler
        """
        handler = logging.handlers.RotatingFileHandler(
            filename, maxBytes=max_bytes, backupCount=backup_count
        )
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        handler.setFormatter(formatter)
        return handler

    def add_handler(self, handler: logging.Handler) -> None:
        """Add a new output handler."""
        self.logger.addHandler(handler)

    def remove_handler(self, handler: logging.Handler) -> None:
        """Remove an output handler."""
        self.logger.removeHandler(handler)

    def set_level(self, level: Union[LogLevel, str]) -> None:
        """Set the minimum log level.

        Args:
            level: New log level (LogLevel or string)
        """
        if isinstance(level, str):
            level = LogLevel[level.upper()]
        self.logger.setLevel(level)

    def get_level(self) -> LogLevel:
        """Get the effective log level (inherited when unset)."""
        return LogLevel(self.logger.getEffectiveLevel())

    def _get_context(self) -> Dict[str, Any]:
        """Get current thread-local context.

        Returns:
            Combined context from all levels
        """
        if not hasattr(self._context_stack, "stack"):
            self._context_stack.stack = [{}]

        # Merge all context levels
        context = {}
        for ctx in self._context_stack.stack:
            context.update(ctx)
        return context

    def _format_message(self, msg: str, context: Dict[str, Any]) -> str:
        if context:
            ctx_str = " ".join(f"{k}={v}" for k, v in context.items())
            return f"{msg} | {ctx_str}"
        return msg

    @contextmanager
    def add_context(self, **kwargs):
        """Context manager to add temporary context.

        Args:
            **kwargs: Key-value pairs to add to context

        Example:
            >>> with logger.add_context(root="/data", command="compress"):
            ...     logger.info("Discovering files")
        """
        if not hasattr(self._context_stack, "stack"):
            self._context_stack.stack = [{}]

        self._context_stack.stack.append(kwargs)
        try:
            yield
        finally:
            self._context_stack.stack.pop()

    def _log(self, level: int, msg: str, context: Dict[str, Any]) -> None:
        if self.logger.isEnabledFor(level):
            combined_context = self._get_context()
            combined_context.update(context)
            formatted_msg = self._format_message(msg, combined_context)
            self.logger.log(level, formatted_msg, extra={"context": combined_context})

    def debug(self, msg: str, **context) -> None:
        """Log debug message."""
        self._log(logging.DEBUG, msg, context)

    def info(self, msg: str, **context) -> None:
        """Log info message."""
        self._log(logging.INFO, msg, context)

    def warning(self, msg: str, **context) -> None:
        """Log warning message."""
        self._log(logging.WARNING, msg, context)

    def error(self, msg: str, **context) -> None:
        """Log error message."""
        self._log(logging.ERROR, msg, context)

    def exception(self, msg: str, exc: Exception, **context) -> None:
        """Log exception with traceback.

        Args:
            msg: Log message
            exc: Exception to log
            **context: Additional context key-value pairs
        """
        combined_context = self._get_context()
        combined_context.update(context)
        combined_context["exception_type"] = type(exc).__name__
        combined_context["exception_message"] = str(exc)
        formatted_msg = self._format_message(msg, combined_context)
        self.logger.error(formatted_msg, exc_info=exc, extra={"context": combined_context})

    def is_enabled_for(self, level: Union[LogLevel, str]) -> bool:
        """Check if logger is enabled for given level."""
        if isinstance(level, str):
            level = LogLevel[level.upper()]
        return self.logger.isEnabledFor(level)


# Component loggers by name
_loggers: Dict[str, Logger] = {}
_loggers_lock = threading.Lock()


def get_logger(name: str = ROOT_LOGGER_NAME) -> Logger:
    """Get or create a logger instance.

    Names below ``pathsieve.`` become propagating component loggers that
    inherit level and handlers from the application logger.

    Args:
        name: Logger name

    Returns:
        Logger instance
    """
    with _loggers_lock:
        logger = _loggers.get(name)
        if logger is None:
            if name == ROOT_LOGGER_NAME:
                logger = Logger(name=name)
            else:
                logger = Logger(name=name, level=None, propagate=True)
            _loggers[name] = logger
        return logger


def set_global_logger(logger: Logger) -> None:
    """Register a logger as the instance returned for its name."""
    with _loggers_lock:
        _loggers[logger.name] = logger


def reset_loggers() -> None:
    """Forget cached loggers and detach application handlers."""
    with _loggers_lock:
        _loggers.clear()
    app_logger = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()
    app_logger.setLevel(logging.NOTSET)
    app_logger.propagate = True


def configure_logging(
    level: Union[LogLevel, str] = LogLevel.INFO, log_file: Optional[Union[str, Path]] = None
) -> Logger:
    """Configure the application logger's level and handlers.

    Args:
        level: Minimum level for every PathSieve component
        log_file: Optional rotating log file in addition to the console

    Returns:
        The application logger
    """
    logger = Logger(ROOT_LOGGER_NAME, level=level)
    if log_file:
        logger.add_handler(logger.create_file_handler(log_file))
    set_global_logger(logger)
    return logger
