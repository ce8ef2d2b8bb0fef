"""
Фильтры, добавляющие контекст к записям лога.

Correlation ID хранится в thread-local: dispatch выполняется
в вызывающем потоке, поэтому все записи одного запроса получают один ID.
"""

import logging
import threading
from typing import Any, Dict, Optional

_local = threading.local()


def set_correlation_id(correlation_id: str) -> None:
    _local.correlation_id = correlation_id


def get_correlation_id() -> Optional[str]:
    return getattr(_local, 'correlation_id', None)


def clear_correlation_id() -> None:
    _local.correlation_id = None


class CorrelationIdFilter(logging.Filter):
    """Добавляет ``correlation_id`` текущего потока, если он установлен."""

    def filter(self, record: logging.LogRecord) -> bool:
        correlation_id = get_correlation_id()
        if correlation_id:
            record.correlation_id = correlation_id
        return True


class ExtraFieldsFilter(logging.Filter):
    """
    Добавляет статические поля (service, environment, ...) в каждую запись.

    Поля, переданные при вызове, не перезаписываются.
    """

    def __init__(self, extra_fields: Dict[str, Any]):
        super().__init__()
        self.extra_fields = dict(extra_fields)

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.extra_fields.items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
