"""Конфигурация структурного логирования fluent-http."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"

    @property
    def as_int(self) -> int:
        return getattr(logging, self.value)


class LogFormat(str, Enum):
    JSON = "json"
    TEXT = "text"
    COLORED = "colored"


@dataclass(frozen=True)
class LoggingConfig:
    """
    Настройки HTTPClientLogger.

    Attributes:
        level: Минимальный уровень
        format: json / text / colored
        enable_console: Писать в stdout
        enable_file: Писать в файл с ротацией
        file_path: Путь к файлу (обязателен при enable_file)
        max_bytes: Размер файла до ротации
        backup_count: Сколько старых файлов хранить
        enable_correlation_id: Добавлять correlation_id запроса
        extra_fields: Поля, добавляемые в каждую запись

    Example:
        >>> LoggingConfig.create(level="debug", format="json")
    """

    level: LogLevel = LogLevel.INFO
    format: LogFormat = LogFormat.TEXT
    enable_console: bool = True
    enable_file: bool = False
    file_path: Optional[str] = None
    max_bytes: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5
    enable_correlation_id: bool = True
    extra_fields: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Валидация."""
        if self.enable_file and not self.file_path:
            raise ValueError("file_path is required when enable_file is set")
        if self.max_bytes <= 0:
            raise ValueError("max_bytes must be positive")
        if self.backup_count < 0:
            raise ValueError("backup_count must be non-negative")

    @classmethod
    def create(cls, level: str = "INFO", format: str = "text", **kwargs) -> "LoggingConfig":
        """Собрать конфиг из строковых level/format (регистр не важен)."""
        return cls(level=LogLevel(level.upper()), format=LogFormat(format.lower()), **kwargs)
