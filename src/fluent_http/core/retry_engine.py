"""
Retry engine для повторных попыток диспетчера.

Включает:
- Фиксированный лимит попыток или режим "до успеха"
- Общий дедлайн на все попытки
- Задержку: своя функция или exponential backoff с jitter (по умолчанию без задержки)
"""

import logging
import random
import time
from typing import Callable, Optional

from .config import RetryConfig, RetryMode

logger = logging.getLogger(__name__)


class RetryEngine:
    """
    Механизм retry для одного цикла dispatch.

    Состояния: ATTEMPTING(i) -> SUCCEEDED | EXHAUSTED.
    Ретраятся только ошибки с ``retryable=True`` (транспортные).

    Examples:
        >>> engine = RetryEngine(RetryConfig(max_retries=2))
        >>> engine.start()
        >>> if engine.should_retry(error):
        >>>     time.sleep(engine.get_wait_time())
        >>>     engine.increment()
    """

    def __init__(self, config: RetryConfig, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            config: Конфигурация retry
            clock: Источник монотонного времени (для тестов)
        """
        self.config = config
        self._clock = clock
        self._attempt = 0
        self._started_at: Optional[float] = None

    def start(self) -> None:
        """Начать новый цикл: сбросить счётчик и засечь время для дедлайна."""
        self._attempt = 0
        self._started_at = self._clock()

    def should_retry(self, error: Exception) -> bool:
        """
        Решить нужен ли retry после ошибки текущей попытки.

        Args:
            error: Исключение

        Returns:
            True если нужна ещё одна попытка
        """
        # Фатальные ошибки НЕ ретраим
        if not getattr(error, 'retryable', False):
            return False

        if self.config.mode == RetryMode.UNBOUNDED:
            return True

        # Попытки 0..max_retries включительно
        return self._attempt < self.config.max_retries

    def deadline_exceeded(self) -> bool:
        """Истёк ли общий дедлайн (если задан)."""
        if self.config.deadline is None or self._started_at is None:
            return False
        return self._clock() - self._started_at >= self.config.deadline

    def remaining(self) -> Optional[float]:
        """Секунд до дедлайна или None."""
        if self.config.deadline is None or self._started_at is None:
            return None
        return max(0.0, self.config.deadline - (self._clock() - self._started_at))

    def get_wait_time(self) -> float:
        """
        Вычислить время ожидания перед следующей попыткой.

        Returns:
            Секунды для ожидания (не больше остатка до дедлайна)
        """
        if self.config.delay_func is not None:
            wait = max(0.0, float(self.config.delay_func(self._attempt)))
        else:
            wait = self.config.backoff_base * (
                self.config.backoff_factor ** self._attempt
            )

            # Ограничить максимумом
            wait = min(wait, self.config.backoff_max)

            # Добавить jitter (50-150% от wait)
            if self.config.backoff_jitter and wait > 0:
                jitter = 0.5 + random.random()  # 0.5 to 1.5
                wait = wait * jitter

        remaining = self.remaining()
        if remaining is not None:
            wait = min(wait, remaining)

        return wait

    def increment(self):
        """Увеличить счётчик попыток."""
        self._attempt += 1

    def reset(self):
        """Сбросить счётчик."""
        self._attempt = 0
        self._started_at = None

    @property
    def attempt(self) -> int:
        """Текущая попытка (с 0)."""
        return self._attempt
