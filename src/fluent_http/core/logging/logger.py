"""
HTTPClientLogger: структурный логгер клиента.

Поля передаются через kwargs и попадают в запись как extra;
перед записью они проходят маскирование чувствительных данных.
"""

import logging
from typing import Any, Optional

from .config import LoggingConfig
from .filters import CorrelationIdFilter, ExtraFieldsFilter
from .formatters import get_formatter
from .handlers import create_console_handler, create_file_handler
from ...utils.sanitizer import mask_sensitive_data

DEFAULT_LOGGER_NAME = "fluent_http"


class HTTPClientLogger:
    """
    Логгер с handlers/форматтером/фильтрами из LoggingConfig.

    Не передаёт записи родительским логгерам: вывод полностью
    определяется конфигом.

    Example:
        >>> logger = HTTPClientLogger(LoggingConfig.create(level="DEBUG", format="json"))
        >>> logger.info("Request started", method="GET", url="http://api.test/items")
        >>> logger.close()
    """

    def __init__(self, config: Optional[LoggingConfig] = None, name: str = DEFAULT_LOGGER_NAME):
        self.config = config or LoggingConfig()
        self.name = name
        self._closed = False

        level = self.config.level.as_int

        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)
        self._logger.propagate = False
        # Повторная инициализация с тем же именем заменяет handlers
        for handler in list(self._logger.handlers):
            self._logger.removeHandler(handler)
            handler.close()

        filters = []
        if self.config.enable_correlation_id:
            filters.append(CorrelationIdFilter())
        if self.config.extra_fields:
            filters.append(ExtraFieldsFilter(self.config.extra_fields))

        formatter = get_formatter(self.config.format.value)

        # Только свои handlers: close() не трогает handlers другого экземпляра
        self._handlers = []

        if self.config.enable_console:
            self._handlers.append(create_console_handler(level, formatter, filters))

        if self.config.enable_file:
            self._handlers.append(create_file_handler(
                file_path=self.config.file_path,
                level=level,
                formatter=formatter,
                max_bytes=self.config.max_bytes,
                backup_count=self.config.backup_count,
                filters=filters,
            ))

        for handler in self._handlers:
            self._logger.addHandler(handler)

    @property
    def logger(self) -> logging.Logger:
        """Нижележащий logging.Logger (например, для добавления своих handlers)."""
        return self._logger

    def _log(self, level: int, message: str, fields: dict, exc_info: bool = False) -> None:
        if self._closed:
            return
        self._logger.log(level, message, extra=mask_sensitive_data(fields), exc_info=exc_info)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """
        Example:
            >>> logger.info("Request completed", status_code=200, duration_ms=150)
        """
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._log(logging.CRITICAL, message, kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Лог с traceback; вызывать из except блока."""
        self._log(logging.ERROR, message, kwargs, exc_info=True)

    def close(self) -> None:
        """Flush и закрыть handlers. Идемпотентно."""
        if self._closed:
            return

        for handler in self._handlers:
            self._logger.removeHandler(handler)
            handler.flush()
            handler.close()
        self._handlers = []

        self._closed = True

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


_default_logger: Optional[HTTPClientLogger] = None


def get_logger(config: Optional[LoggingConfig] = None) -> HTTPClientLogger:
    """
    Общий логгер процесса; config используется только при первом вызове.

    Example:
        >>> get_logger().info("Hello")
    """
    global _default_logger

    if _default_logger is None:
        _default_logger = HTTPClientLogger(config)

    return _default_logger


def configure_logging(config: LoggingConfig) -> HTTPClientLogger:
    """Заменить общий логгер новым с указанной конфигурацией."""
    global _default_logger

    if _default_logger is not None:
        _default_logger.close()
    _default_logger = HTTPClientLogger(config)
    return _default_logger
