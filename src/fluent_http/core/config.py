"""
Система конфигурации для fluent-http.

Все конфиги immutable (frozen dataclasses): клиент копирует настройки
при создании, и последующая замена дефолтов его не затрагивает.
"""

import ssl
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, Optional, Tuple, Union, TYPE_CHECKING

if TYPE_CHECKING:
    import requests
    from requests.adapters import BaseAdapter
    from .logging import LoggingConfig

# Функция выбора прокси: получает подготовленный запрос, возвращает URL прокси или None
ProxyResolver = Callable[["requests.PreparedRequest"], Optional[str]]

# Политика редиректов: получает ответ-редирект, False - остановиться и вернуть его
RedirectPolicy = Callable[["requests.Response"], bool]

# Функция задержки между попытками: номер попытки (с 0) -> секунды
DelayFunc = Callable[[int], float]

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TIMEOUT CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class TimeoutConfig:
    """
    Конфигурация таймаутов.

    Args:
        connect: Таймаут подключения (сек)
        read_write: Таймаут чтения/записи после подключения (сек)

    Examples:
        >>> TimeoutConfig(connect=5, read_write=30)
    """
    connect: float = 60.0
    read_write: float = 60.0

    def __post_init__(self):
        """Валидация."""
        if self.connect <= 0:
            raise ValueError("connect timeout must be positive")
        if self.read_write <= 0:
            raise ValueError("read_write timeout must be positive")

    def as_tuple(self) -> Tuple[float, float]:
        """Вернуть как (connect, read) для requests."""
        return (self.connect, self.read_write)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# TLS CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class TLSConfig:
    """
    TLS настройки, передаваемые транспорту как есть.

    Args:
        verify: True/False или путь к CA bundle
        cert: Клиентский сертификат (путь или (cert, key))
        ssl_context: Готовый ssl.SSLContext для пула соединений

    Examples:
        >>> TLSConfig(verify="/etc/ssl/certs/ca.pem")
        >>> TLSConfig(verify=False)  # Для тестов
    """
    verify: Union[bool, str] = True
    cert: Optional[Union[str, Tuple[str, str]]] = None
    ssl_context: Optional[ssl.SSLContext] = None

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# RETRY CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class RetryMode(str, Enum):
    """Режим retry."""
    FIXED = "fixed"
    UNBOUNDED = "unbounded"


@dataclass(frozen=True)
class RetryConfig:
    """
    Конфигурация retry стратегии.

    Ретраятся только транспортные ошибки. По умолчанию запрос
    выполняется один раз, а повторы идут без задержки.

    Args:
        mode: FIXED (не больше max_retries повторов) или UNBOUNDED (до успеха)
        max_retries: Количество повторов после первой попытки (только FIXED)
        deadline: Общий лимит времени на все попытки (сек); обязателен для UNBOUNDED
        backoff_base: Базовая задержка (сек), 0 = повтор сразу
        backoff_factor: Множитель для exponential backoff
        backoff_max: Максимальная задержка (сек)
        backoff_jitter: Добавлять случайность (против thundering herd)
        delay_func: Своя функция задержки, заменяет backoff_*

    Examples:
        >>> RetryConfig(max_retries=2)
        >>> RetryConfig(mode=RetryMode.UNBOUNDED, deadline=30)
        >>> RetryConfig.from_count(-1, deadline=10)
    """
    mode: RetryMode = RetryMode.FIXED
    max_retries: int = 0
    deadline: Optional[float] = None
    backoff_base: float = 0.0
    backoff_factor: float = 2.0
    backoff_max: float = 60.0
    backoff_jitter: bool = False
    delay_func: Optional[DelayFunc] = None

    def __post_init__(self):
        """Валидация."""
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")
        if self.mode == RetryMode.UNBOUNDED and self.deadline is None:
            raise ValueError("unbounded retry requires a deadline")
        if self.deadline is not None and self.deadline <= 0:
            raise ValueError("deadline must be positive")
        if self.backoff_base < 0:
            raise ValueError("backoff_base must be non-negative")
        if self.backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")
        if self.backoff_max < 0:
            raise ValueError("backoff_max must be non-negative")

    @classmethod
    def from_count(cls, retries: int, deadline: Optional[float] = None, **kwargs) -> 'RetryConfig':
        """
        Построить политику из целого числа повторов.

        Args:
            retries: 0 - один запуск, N>0 - до N повторов, -1 - до успеха
            deadline: Общий лимит времени (обязателен для -1)

        Returns:
            RetryConfig instance
        """
        if retries == -1:
            return cls(mode=RetryMode.UNBOUNDED, deadline=deadline, **kwargs)
        if retries < -1:
            raise ValueError("retries must be -1, 0 or positive")
        return cls(mode=RetryMode.FIXED, max_retries=retries, deadline=deadline, **kwargs)

    @property
    def max_attempts(self) -> Optional[int]:
        """Общее количество попыток (None для UNBOUNDED)."""
        if self.mode == RetryMode.UNBOUNDED:
            return None
        return self.max_retries + 1

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# SECURITY CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class SecurityConfig:
    """
    Конфигурация безопасности.

    Args:
        max_decompressed_size: Максимальный размер распакованного gzip тела
        sensitive_url_params: Дополнительные sensitive параметры для маскирования в логах

    Examples:
        >>> SecurityConfig(max_decompressed_size=50*1024*1024)  # 50MB
    """
    max_decompressed_size: int = 500 * 1024 * 1024  # 500MB
    sensitive_url_params: frozenset = field(default_factory=frozenset)

    def __post_init__(self):
        """Валидация."""
        if self.max_decompressed_size <= 0:
            raise ValueError("max_decompressed_size must be positive")

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# MAIN CONFIG
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

@dataclass(frozen=True)
class ClientSettings:
    """
    Главная конфигурация HTTPClient.

    Args:
        timeout: Таймауты подключения и чтения/записи
        tls: TLS настройки транспорта
        proxy: Функция выбора прокси для запроса
        transport: Свой транспорт (requests adapter); пустые поля
            дополняются из этих настроек
        check_redirect: Политика редиректов
        enable_cookie: Использовать общий cookie jar реестра
        gzip: Прозрачно распаковывать gzip ответы
        show_debug: Сохранять дамп исходящего запроса
        dump_body: Включать тело в дамп
        user_agent: User-Agent по умолчанию
        retry: Политика retry
        strict_uploads: Ошибка чтения файла прерывает multipart запрос
        security: Ограничения безопасности
        logging: Конфигурация логирования (None = без структурных логов)

    Examples:
        >>> settings = ClientSettings()
        >>> settings = ClientSettings.create(retries=2, connect_timeout=5)
    """
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    tls: Optional[TLSConfig] = None
    proxy: Optional[ProxyResolver] = None
    transport: Optional['BaseAdapter'] = None
    check_redirect: Optional[RedirectPolicy] = None
    enable_cookie: bool = False
    gzip: bool = True
    show_debug: bool = False
    dump_body: bool = True
    user_agent: str = ""
    retry: RetryConfig = field(default_factory=RetryConfig)
    strict_uploads: bool = False
    security: SecurityConfig = field(default_factory=SecurityConfig)
    logging: Optional['LoggingConfig'] = None

    @classmethod
    def create(
        cls,
        connect_timeout: Optional[float] = None,
        read_write_timeout: Optional[float] = None,
        retries: int = 0,
        retry_deadline: Optional[float] = None,
        verify_ssl: Optional[bool] = None,
        **kwargs
    ) -> 'ClientSettings':
        """
        Удобный конструктор конфигурации.

        Args:
            connect_timeout: Таймаут подключения (сек)
            read_write_timeout: Таймаут чтения/записи (сек)
            retries: 0 - один запуск, N - до N повторов, -1 - до успеха
            retry_deadline: Общий лимит времени на попытки (обязателен для -1)
            verify_ssl: Проверять SSL (создаёт TLSConfig)
            **kwargs: Остальные поля ClientSettings

        Returns:
            ClientSettings instance

        Examples:
            >>> ClientSettings.create(retries=3)
            >>> ClientSettings.create(retries=-1, retry_deadline=30)
        """
        defaults = TimeoutConfig()
        timeout_cfg = TimeoutConfig(
            connect=connect_timeout or defaults.connect,
            read_write=read_write_timeout or defaults.read_write,
        )

        if verify_ssl is not None and 'tls' not in kwargs:
            kwargs['tls'] = TLSConfig(verify=verify_ssl)

        return cls(
            timeout=timeout_cfg,
            retry=RetryConfig.from_count(retries, deadline=retry_deadline),
            **kwargs
        )

    def with_timeout(self, connect: float, read_write: float) -> 'ClientSettings':
        """
        Создать новый конфиг с изменёнными таймаутами.

        Example:
            >>> new_settings = settings.with_timeout(5, 30)
        """
        return replace(self, timeout=TimeoutConfig(connect=connect, read_write=read_write))

    def with_retries(self, retries: int, deadline: Optional[float] = None) -> 'ClientSettings':
        """
        Создать новый конфиг с изменённым retry.

        Example:
            >>> new_settings = settings.with_retries(5)
        """
        return replace(self, retry=RetryConfig.from_count(retries, deadline=deadline))

    def with_transport(self, transport: 'BaseAdapter') -> 'ClientSettings':
        """Создать новый конфиг со своим транспортом."""
        return replace(self, transport=transport)
