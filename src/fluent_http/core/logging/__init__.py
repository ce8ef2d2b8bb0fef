"""
Structured logging for fluent_http.

Example:
    >>> from fluent_http.core.logging import LoggingConfig
    >>> settings = ClientSettings(logging=LoggingConfig.create(level="DEBUG", format="colored"))
    >>> HTTPClient("http://api.test", settings=settings).get("/items").string()
"""

from .config import LoggingConfig, LogLevel, LogFormat
from .logger import HTTPClientLogger, get_logger, configure_logging
from .formatters import JSONFormatter, TextFormatter, ColoredFormatter, get_formatter
from .filters import (
    CorrelationIdFilter,
    ExtraFieldsFilter,
    set_correlation_id,
    get_correlation_id,
    clear_correlation_id,
)
from .handlers import create_console_handler, create_file_handler

__all__ = [
    # Config
    "LoggingConfig",
    "LogLevel",
    "LogFormat",
    # Logger
    "HTTPClientLogger",
    "get_logger",
    "configure_logging",
    # Formatters
    "JSONFormatter",
    "TextFormatter",
    "ColoredFormatter",
    "get_formatter",
    # Filters
    "CorrelationIdFilter",
    "ExtraFieldsFilter",
    "set_correlation_id",
    "get_correlation_id",
    "clear_correlation_id",
    # Handlers
    "create_console_handler",
    "create_file_handler",
]
