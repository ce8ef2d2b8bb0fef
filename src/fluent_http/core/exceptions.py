"""
Иерархия исключений fluent-http.

Классификация:
- TransportError (retryable=True) - ошибки соединения, ретраятся политикой
- Все остальные (fatal=True) - НЕ ретраить никогда
"""

from typing import Optional

import requests

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# BASE
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class HTTPClientException(Exception):
    """Базовое исключение fluent-http."""

    retryable: bool = False
    fatal: bool = False

    def __init__(self, message: str, **kwargs):
        self.message = message
        super().__init__(message)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# URL
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class URLResolutionError(HTTPClientException):
    """
    Невалидный base или relative URL.

    Возникает до первой сетевой попытки.

    Args:
        message: Сообщение
        url: URL, который не удалось разобрать
    """
    fatal = True

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        msg = message
        if url:
            msg += f" (url: {url})"
        super().__init__(msg)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ТРАНСПОРТНЫЕ ОШИБКИ (retryable=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class TransportError(HTTPClientException):
    """
    Ошибка транспортного уровня - можно ретраить.

    Примеры: connect refused, таймауты, обрыв соединения, прокси.
    """
    retryable = True

    def __init__(self, message: str, url: Optional[str] = None):
        self.url = url
        full_message = f"{message}"
        if url:
            full_message += f" (url: {url})"
        super().__init__(full_message)

class TimeoutError(TransportError):
    """
    Таймаут запроса.

    Args:
        message: Сообщение об ошибке
        url: URL запроса
        timeout_type: Тип таймаута ('connect' или 'read')
    """

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        timeout_type: Optional[str] = None
    ):
        self.timeout_type = timeout_type

        msg = message
        if timeout_type:
            msg += f" ({timeout_type} timeout)"

        super().__init__(msg, url)

class ConnectionError(TransportError):
    """
    Ошибка подключения.

    Примеры:
    - Connection refused
    - Connection reset
    - DNS resolution failed
    """
    pass

class ProxyError(TransportError):
    """Ошибка прокси."""
    pass

class SSLError(TransportError):
    """Ошибка TLS рукопожатия или проверки сертификата."""
    pass

class RetryDeadlineExceededError(TransportError):
    """
    Истёк общий дедлайн неограниченного retry.

    Args:
        deadline: Дедлайн (сек)
        attempts: Сколько попыток было сделано
        last_error: Последняя транспортная ошибка
        url: URL
    """
    retryable = False

    def __init__(
        self,
        deadline: float,
        attempts: int,
        last_error: Optional[Exception] = None,
        url: Optional[str] = None
    ):
        self.deadline = deadline
        self.attempts = attempts
        self.last_error = last_error

        msg = f"Retry deadline ({deadline}s) exceeded after {attempts} attempt(s)"
        if last_error:
            msg += f". Last error: {str(last_error)}"

        super().__init__(msg, url)

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# ФАТАЛЬНЫЕ ОШИБКИ (fatal=True)
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

class EncodingError(HTTPClientException):
    """Не удалось сериализовать параметры в тело запроса (JSON)."""
    fatal = True

class DecodingError(HTTPClientException):
    """
    Не удалось разобрать тело ответа.

    Примеры:
    - Битый JSON / XML
    - Ответ не проходит валидацию модели
    - Битый gzip поток
    """
    fatal = True

class DecompressionBombError(DecodingError):
    """
    Decompression bomb detected.

    Args:
        compressed_size: Размер сжатых данных
        limit: Максимально допустимый размер распакованных данных
        url: URL
    """

    def __init__(self, compressed_size: int, limit: int, url: Optional[str] = None):
        self.compressed_size = compressed_size
        self.limit = limit
        self.url = url

        msg = (
            f"Decompressed body exceeds {limit} bytes "
            f"(compressed: {compressed_size} bytes)"
        )
        if url:
            msg += f" for {url}"
        super().__init__(msg)

class FileIOError(HTTPClientException):
    """
    Ошибка работы с файлом.

    Args:
        message: Сообщение
        path: Путь к файлу
        cause: Исходное исключение
    """
    fatal = True

    def __init__(self, message: str, path: Optional[str] = None, cause: Optional[Exception] = None):
        self.path = path
        self.cause = cause

        msg = message
        if path:
            msg += f" ({path})"
        if cause:
            msg += f": {cause}"
        super().__init__(msg)

class ConfigurationError(HTTPClientException):
    """Ошибка конфигурации."""
    fatal = True

# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━
# УТИЛИТЫ
# ━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━━

def classify_requests_exception(
    exc: Exception,
    url: Optional[str] = None
) -> HTTPClientException:
    """
    Конвертировать requests.exceptions в наши исключения.

    Args:
        exc: Исключение из requests
        url: URL запроса

    Returns:
        Наше исключение с правильной классификацией

    Examples:
        >>> exc = requests.exceptions.ConnectTimeout()
        >>> our_exc = classify_requests_exception(exc, "https://example.com")
        >>> assert isinstance(our_exc, TimeoutError)
        >>> assert our_exc.retryable == True
    """

    if isinstance(exc, (requests.exceptions.MissingSchema,
                        requests.exceptions.InvalidSchema,
                        requests.exceptions.InvalidURL)):
        return URLResolutionError(str(exc) or "Invalid URL", url)

    elif isinstance(exc, requests.exceptions.ConnectTimeout):
        return TimeoutError("Request timeout", url, timeout_type="connect")

    elif isinstance(exc, requests.exceptions.Timeout):
        return TimeoutError("Request timeout", url, timeout_type="read")

    elif isinstance(exc, requests.exceptions.ProxyError):
        return ProxyError("Proxy error", url)

    elif isinstance(exc, requests.exceptions.SSLError):
        return SSLError(f"SSL error: {exc}", url)

    elif isinstance(exc, requests.exceptions.ConnectionError):
        return ConnectionError(f"Connection error: {exc}", url)

    elif isinstance(exc, requests.exceptions.RequestException):
        # Всё остальное из requests - транспортный уровень
        return TransportError(f"Request failed: {exc}", url)

    else:
        # Неизвестная ошибка - оборачиваем
        return HTTPClientException(str(exc))
