"""
Форматтеры: JSON для сборщиков логов, text и colored для терминала.

Поля, переданные через ``extra``, выводятся как ``key=value`` (text)
или как ключи объекта (JSON).
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict

# Стандартные атрибуты LogRecord, не являющиеся extra полями
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord('', 0, '', 0, '', (), None))
) | {'message', 'asctime'}

_TEXT_FORMAT = '[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s'
_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    return {
        key: value for key, value in record.__dict__.items()
        if key not in _RECORD_ATTRS and not key.startswith('_')
    }


class JSONFormatter(logging.Formatter):
    """
    Одна JSON строка на запись.

    Example output:
        {"timestamp": "2024-01-15T10:30:45.123+00:00", "level": "INFO",
         "logger": "fluent_http", "message": "Request started", "method": "GET"}
    """

    def format(self, record: logging.LogRecord) -> str:
        data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(extra_fields(record))

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)

        return json.dumps(data, default=str)


class TextFormatter(logging.Formatter):
    """[timestamp] [level] [logger] message key=value ..."""

    def __init__(self):
        super().__init__(fmt=_TEXT_FORMAT, datefmt=_DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = extra_fields(record)
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


class ColoredFormatter(TextFormatter):
    """TextFormatter с ANSI цветом уровня."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[1;31m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = self.COLORS.get(levelname)
        if color:
            record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


_FORMATTERS = {
    "json": JSONFormatter,
    "text": TextFormatter,
    "colored": ColoredFormatter,
}


def get_formatter(format_type: str) -> logging.Formatter:
    """
    Форматтер по имени.

    Raises:
        ValueError: Неизвестный формат
    """
    formatter_class = _FORMATTERS.get(format_type.lower())
    if formatter_class is None:
        raise ValueError(
            f"Unknown format type: {format_type}. Available: {', '.join(_FORMATTERS)}"
        )
    return formatter_class()
