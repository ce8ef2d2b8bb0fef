# src/fluent_http/core/response_decoder.py
"""
Чтение и декодирование тела ответа.

Тело читается один раз и кэшируется; gzip распаковывается порциями
с ограничением на размер результата.
"""
import json
import logging
import os
import xml.etree.ElementTree as ET
import zlib
from typing import Any, Callable, Dict, Optional, Type

import requests
from urllib3.exceptions import DecodeError as RawDecodeError, ProtocolError, ReadTimeoutError
from pydantic import BaseModel, ValidationError

from .config import SecurityConfig
from .exceptions import (
    ConnectionError,
    DecodingError,
    DecompressionBombError,
    FileIOError,
    HTTPClientException,
    TimeoutError,
    TransportError,
    classify_requests_exception,
)

logger = logging.getLogger(__name__)

DECOMPRESS_CHUNK = 64 * 1024
DEFAULT_FILE_CHUNK = 8192

SUPPORTED_FORMATS = ('json', 'xml')

# Ошибки чтения тела из сокета
_RAW_READ_ERRORS = (ProtocolError, ReadTimeoutError, OSError)


def is_gzip_encoded(response: requests.Response) -> bool:
    return 'gzip' in response.headers.get('Content-Encoding', '').lower()


def gunzip(data: bytes, limit: int, url: Optional[str] = None) -> bytes:
    """
    Распаковать gzip порциями, не превышая ``limit`` байт.

    Raises:
        DecompressionBombError: Результат больше limit
        DecodingError: Битый или обрезанный gzip поток
    """
    decompressor = zlib.decompressobj(16 + zlib.MAX_WBITS)
    chunks = []
    total = 0

    try:
        pending = data
        while pending:
            chunk = decompressor.decompress(pending, DECOMPRESS_CHUNK)
            total += len(chunk)
            if total > limit:
                raise DecompressionBombError(len(data), limit, url)
            chunks.append(chunk)
            pending = decompressor.unconsumed_tail

        tail = decompressor.flush()
    except zlib.error as e:
        raise DecodingError(f"Invalid gzip body: {e}")

    total += len(tail)
    if total > limit:
        raise DecompressionBombError(len(data), limit, url)
    chunks.append(tail)

    if not decompressor.eof:
        raise DecodingError("Truncated gzip body")

    return b"".join(chunks)


def _read_error(exc: Exception, url: Optional[str] = None) -> TransportError:
    """Ошибка чтения тела ответа как транспортная ошибка."""
    if isinstance(exc, ReadTimeoutError):
        return TimeoutError("Response body read timed out", url, timeout_type="read")
    return ConnectionError(f"Response body read failed: {exc}", url)


def _element_to_dict(element: ET.Element) -> Any:
    """Простое отображение XML в dict: атрибуты и дочерние теги как ключи."""
    children = list(element)
    if not children and not element.attrib:
        return (element.text or "").strip()

    result: Dict[str, Any] = dict(element.attrib)
    for child in children:
        value = _element_to_dict(child)
        if child.tag in result:
            # Повторяющиеся теги собираем в список
            existing = result[child.tag]
            if not isinstance(existing, list):
                result[child.tag] = [existing]
            result[child.tag].append(value)
        else:
            result[child.tag] = value

    text = (element.text or "").strip()
    if text:
        result['text'] = text
    return result


def _validate(model: Type[BaseModel], data: Any) -> BaseModel:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise DecodingError(f"Response does not match {model.__name__}: {e}")


class ResponseDecoder:
    """
    Ленивое чтение ответа одного клиента.

    ``fetch`` вызывается не более одного раза: он выполняет dispatch и
    возвращает ответ со ``stream=True``. Все методы декодирования работают
    с закэшированными байтами.

    Example:
        >>> decoder = ResponseDecoder(client.response, gzip=True, security=SecurityConfig())
        >>> decoder.to_json()
        {'id': 1}
    """

    def __init__(
        self,
        fetch: Callable[[], requests.Response],
        gzip: bool = True,
        security: Optional[SecurityConfig] = None,
    ):
        self._fetch = fetch
        self._gzip = gzip
        self._security = security or SecurityConfig()

        self._fetched = False
        self._body: Optional[bytes] = None
        self._streamed_to_file = False
        self._error: Optional[HTTPClientException] = None

    # ==================== Body ====================

    @staticmethod
    def _preloaded(response: requests.Response) -> bool:
        # Адаптер уже положил тело в response (requests его распаковал)
        return response.raw is None or response._content is not False

    def _read_body(self, response: requests.Response) -> bytes:
        if self._preloaded(response):
            try:
                return response.content or b""
            except requests.exceptions.RequestException as e:
                raise classify_requests_exception(e, response.url) from e

        try:
            # Чтение порциями: urllib3 проверяет Content-Length на обрыв
            body = b"".join(response.raw.stream(DECOMPRESS_CHUNK, decode_content=False))
        except _RAW_READ_ERRORS as e:
            raise _read_error(e, response.url) from e

        if body and self._gzip and is_gzip_encoded(response):
            body = gunzip(body, self._security.max_decompressed_size, response.url)
        return body

    def fetch_body(self) -> Optional[bytes]:
        """
        Тело ответа (распакованное, если gzip включён и объявлен сервером).

        Ошибка чтения запоминается: поток уже израсходован, поэтому
        повторные вызовы поднимают ту же ошибку.

        Returns:
            Байты тела или None, если тела нет

        Raises:
            TransportError: Обрыв соединения или таймаут при чтении тела
            DecodingError: Битый gzip или тело уже записано в файл
            DecompressionBombError: Распакованное тело больше лимита
        """
        if self._fetched:
            return self._body

        if self._error is not None:
            raise self._error

        if self._streamed_to_file:
            raise DecodingError("Response body was already streamed to a file")

        response = self._fetch()
        try:
            body = self._read_body(response)
        except HTTPClientException as e:
            self._error = e
            raise

        self._body = body or None
        self._fetched = True
        return self._body

    def string(self, encoding: Optional[str] = None) -> str:
        body = self.fetch_body()
        if body is None:
            return ""
        response = self._fetch()
        return body.decode(encoding or response.encoding or 'utf-8', errors='replace')

    # ==================== Structured ====================

    def to_json(self, model: Optional[Type[BaseModel]] = None) -> Any:
        """
        Разобрать тело как JSON.

        Args:
            model: pydantic модель для валидации результата

        Raises:
            DecodingError: Пустое тело, битый JSON или невалидные данные
        """
        body = self.fetch_body()
        if body is None:
            raise DecodingError("Cannot decode JSON from an empty body")

        try:
            data = json.loads(body)
        except ValueError as e:
            raise DecodingError(f"Invalid JSON body: {e}")

        if model is not None:
            return _validate(model, data)
        return data

    def to_xml(self) -> ET.Element:
        """Разобрать тело как XML и вернуть корневой элемент."""
        body = self.fetch_body()
        if body is None:
            raise DecodingError("Cannot decode XML from an empty body")

        try:
            return ET.fromstring(body)
        except ET.ParseError as e:
            raise DecodingError(f"Invalid XML body: {e}")

    def decode(self, fmt: str = 'json', model: Optional[Type[BaseModel]] = None) -> Any:
        """
        Декодировать тело в формате ``fmt`` ('json' или 'xml').

        Для XML с моделью дерево сначала переводится в dict
        (атрибуты и дочерние теги становятся ключами).
        """
        fmt = fmt.lower()
        if fmt == 'json':
            return self.to_json(model)
        if fmt == 'xml':
            root = self.to_xml()
            if model is None:
                return root
            return _validate(model, _element_to_dict(root))
        raise DecodingError(f"Unsupported format '{fmt}', expected one of {SUPPORTED_FORMATS}")

    # ==================== File ====================

    def to_file(
        self,
        path: str,
        chunk_size: int = DEFAULT_FILE_CHUNK,
        show_progress: bool = False,
    ) -> int:
        """
        Записать тело ответа в файл, не держа его целиком в памяти.

        Файл открывается до запроса. Живой ответ копируется порциями;
        если тело уже прочитано через fetch_body, пишутся закэшированные байты.
        Пустое тело - успех без записи.

        Args:
            path: Путь к файлу
            chunk_size: Размер порции (байт)
            show_progress: Прогресс-бар (требует tqdm)

        Returns:
            Количество записанных байт

        Raises:
            FileIOError: Не удалось открыть или записать файл
            TransportError: Обрыв соединения или таймаут при чтении тела
            DecompressionBombError: Распакованный поток больше лимита
        """
        try:
            fh = open(path, 'wb')
        except OSError as e:
            raise FileIOError("Cannot open destination file", path, e)

        with fh:
            if self._fetched:
                body = self._body or b""
                try:
                    fh.write(body)
                except OSError as e:
                    raise FileIOError("Cannot write destination file", path, e)
                return len(body)

            response = self._fetch()
            return self._stream_to(response, fh, path, chunk_size, show_progress)

    def _stream_to(self, response, fh, path, chunk_size, show_progress) -> int:
        decode = self._gzip and is_gzip_encoded(response)
        limit = self._security.max_decompressed_size

        if self._preloaded(response):
            decode = False
            chunks = iter([self._read_body(response)])
        else:
            chunks = response.raw.stream(chunk_size, decode_content=decode)

        progress_bar = None
        if show_progress:
            try:
                from tqdm import tqdm
                total = int(response.headers.get('Content-Length', 0)) or None
                progress_bar = tqdm(total=total, unit='B', unit_scale=True)
            except ImportError:
                logger.warning("Install tqdm for progress bar: pip install fluent-http[progress]")

        self._streamed_to_file = True
        written = 0
        try:
            for chunk in chunks:
                if not chunk:
                    continue
                written += len(chunk)
                if decode and written > limit:
                    raise DecompressionBombError(written, limit, response.url)
                try:
                    fh.write(chunk)
                except OSError as e:
                    raise FileIOError("Cannot write destination file", path, e)
                if progress_bar:
                    progress_bar.update(len(chunk))
        except RawDecodeError as e:
            raise DecodingError(f"Invalid gzip body: {e}")
        except _RAW_READ_ERRORS as e:
            raise _read_error(e, response.url) from e
        finally:
            if progress_bar:
                progress_bar.close()

        if written == 0:
            logger.debug(f"Empty response body, nothing written to {os.path.basename(path)}")
        return written
