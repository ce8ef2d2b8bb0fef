# src/fluent_http/core/http_client.py
import builtins
from typing import Any, List, Optional, Type, Union, TYPE_CHECKING
from urllib.parse import urlparse
import xml.etree.ElementTree as ET

import requests
from pydantic import BaseModel

from .config import ClientSettings
from .dispatcher import Dispatcher
from .exceptions import FileIOError
from .registry import ClientRegistry, get_default_registry
from .request_builder import ContentType, PendingRequest
from .response_decoder import DEFAULT_FILE_CHUNK, ResponseDecoder

# Delayed import to avoid circular dependency
if TYPE_CHECKING:
    from .logging import HTTPClientLogger


class HTTPClient:
    """
    Fluent HTTP клиент для одного запроса.

    Сеттеры накапливают состояние и возвращают self; первый вызов
    ``response()`` / ``bytes()`` / ``to_json()`` и т.п. выполняет запрос
    (с retry), а тело кэшируется для повторных обращений.

    Особенности:
        - Настройки копируются при создании; смена дефолтов реестра
          не влияет на уже созданные клиенты
        - Только транспортные ошибки ретраятся
        - Multipart загрузка идёт потоком, без буферизации файлов

    Example:
        >>> client = HTTPClient("http://api.test/v1").get("/items").param("q", "shoes")
        >>> items = client.to_json()

        >>> with HTTPClient("http://api.test", settings=ClientSettings.create(retries=2)) as c:
        ...     c.post("/upload").file("doc", "/tmp/a.pdf").param("user", "bob").string()
    """

    def __init__(
        self,
        base_url: str,
        settings: Optional[ClientSettings] = None,
        registry: Optional[ClientRegistry] = None,
    ):
        """
        Args:
            base_url: Базовый URL, неизменяемый
            settings: Настройки клиента (по умолчанию - дефолты реестра)
            registry: Реестр с дефолтами и общим cookie jar
        """
        self._registry = registry or get_default_registry()
        # Копия ссылки на frozen настройки
        self._settings = settings or self._registry.default_settings

        self._logger: Optional['HTTPClientLogger'] = None
        if self._settings.logging:
            from .logging import HTTPClientLogger
            domain = urlparse(base_url).netloc or "unknown"
            self._logger = HTTPClientLogger(
                config=self._settings.logging,
                name=f"fluent_http.{domain}"
            )

        self._pending = PendingRequest(base_url=base_url)
        self._dispatcher = Dispatcher(self._settings, self._registry, http_logger=self._logger)
        self._decoder = ResponseDecoder(
            self.response,
            gzip=self._settings.gzip,
            security=self._settings.security,
        )
        self._response: Optional[requests.Response] = None

    def __enter__(self):
        """Поддержка контекстного менеджера"""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False

    def __repr__(self) -> str:
        return f"<HTTPClient {self._pending.method} {self._pending.base_url}{self._pending.relative_url}>"

    # ==================== Fluent setters ====================

    def _method(self, method: str, path: str) -> 'HTTPClient':
        self._pending.method = method
        self._pending.relative_url = path
        return self

    def get(self, path: str = "") -> 'HTTPClient':
        return self._method("GET", path)

    def post(self, path: str = "") -> 'HTTPClient':
        return self._method("POST", path)

    def put(self, path: str = "") -> 'HTTPClient':
        return self._method("PUT", path)

    def patch(self, path: str = "") -> 'HTTPClient':
        return self._method("PATCH", path)

    def delete(self, path: str = "") -> 'HTTPClient':
        return self._method("DELETE", path)

    def head(self, path: str = "") -> 'HTTPClient':
        return self._method("HEAD", path)

    def header(self, key: str, value: str) -> 'HTTPClient':
        """Установить заголовок (последняя запись побеждает)."""
        self._pending.set_header(key, value)
        return self

    def set_host(self, host: str) -> 'HTTPClient':
        """Переопределить Host заголовок."""
        self._pending.host = host
        return self

    def set_basic_auth(self, username: str, password: str) -> 'HTTPClient':
        self._pending.auth = (username, password)
        return self

    def set_content_type(self, content_type: Union[ContentType, str]) -> 'HTTPClient':
        """
        Выбрать кодирование параметров тела.

        Args:
            content_type: ContentType.FORM / ContentType.JSON или "form" / "json"
        """
        self._pending.content_type = ContentType(content_type)
        return self

    def param(self, key: str, value: Any) -> 'HTTPClient':
        """
        Установить параметр.

        В form/query/multipart попадают только строковые значения,
        в JSON - все. Перезапись существующего ключа логируется.
        """
        self._pending.set_param(key, value)
        return self

    def file(self, field_name: str, path: str) -> 'HTTPClient':
        """Прикрепить файл для multipart загрузки (читается при отправке)."""
        self._pending.set_file(field_name, path)
        return self

    def body(self, data: Union[str, bytes]) -> 'HTTPClient':
        """Явное тело запроса; отключает кодирование параметров и файлов."""
        self._pending.body = data
        return self

    # ==================== Dispatch ====================

    @property
    def request(self) -> PendingRequest:
        """Накопленное состояние запроса."""
        return self._pending

    def response(self) -> requests.Response:
        """
        Выполнить запрос (один раз) и вернуть ответ.

        Тело не прочитано; для него используйте bytes()/string()/to_file().

        Raises:
            URLResolutionError, TransportError, EncodingError, FileIOError
        """
        if self._response is None:
            self._response = self._dispatcher.dispatch(self._pending)
        return self._response

    def do_request(self) -> requests.Response:
        """Alias для response()."""
        return self.response()

    # ==================== Decoding ====================

    def bytes(self) -> Optional[bytes]:
        """Тело ответа (кэшируется). None если тела нет."""
        return self._decoder.fetch_body()

    def string(self, encoding: Optional[str] = None) -> str:
        return self._decoder.string(encoding)

    def to_json(self, model: Optional[Type[BaseModel]] = None) -> Any:
        """
        Разобрать ответ как JSON.

        Example:
            >>> user = HTTPClient(url).get("/me").to_json(User)
        """
        return self._decoder.to_json(model)

    def to_xml(self) -> ET.Element:
        return self._decoder.to_xml()

    def decode(self, fmt: str = 'json', model: Optional[Type[BaseModel]] = None) -> Any:
        return self._decoder.decode(fmt, model)

    def to_file(
        self,
        path: str,
        chunk_size: int = DEFAULT_FILE_CHUNK,
        show_progress: bool = False
    ) -> int:
        """
        Сохранить тело ответа в файл потоком.

        Returns:
            Количество записанных байт
        """
        return self._decoder.to_file(path, chunk_size=chunk_size, show_progress=show_progress)

    # ==================== Свойства ====================

    @property
    def settings(self) -> ClientSettings:
        return self._settings

    @property
    def dump(self) -> Optional[builtins.bytes]:
        """Дамп исходящего запроса (только при show_debug)."""
        return self._dispatcher.dump

    @property
    def attempts(self) -> int:
        """Сколько попыток сделал последний dispatch."""
        return self._dispatcher.attempts

    @property
    def upload_errors(self) -> List[FileIOError]:
        """Ошибки чтения файлов при последней multipart загрузке."""
        return list(self._dispatcher.upload_errors)

    # ==================== Управление жизненным циклом ====================

    def close(self):
        """Закрыть ответ, поток загрузки, сессию и handlers логгера."""
        if self._response is not None:
            self._response.close()

        self._dispatcher.close()

        if self._logger is not None:
            self._logger.close()
            self._logger = None


# ==================== Shortcuts ====================

def get(url: str) -> HTTPClient:
    """
    Клиент для GET на полный URL с дефолтными настройками.

    Example:
        >>> get("http://api.test/items").param("q", "shoes").to_json()
    """
    return HTTPClient(url).get()


def post(url: str) -> HTTPClient:
    return HTTPClient(url).post()


def put(url: str) -> HTTPClient:
    return HTTPClient(url).put()


def patch(url: str) -> HTTPClient:
    return HTTPClient(url).patch()


def delete(url: str) -> HTTPClient:
    return HTTPClient(url).delete()


def head(url: str) -> HTTPClient:
    return HTTPClient(url).head()
