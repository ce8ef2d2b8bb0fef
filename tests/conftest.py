"""
Pytest configuration and fixtures for fluent-http tests.
"""

import gzip

import pytest
import requests
import responses as responses_lib
from requests.adapters import BaseAdapter

from src.fluent_http.core.config import ClientSettings
from src.fluent_http.core.logging.config import LoggingConfig
from src.fluent_http.core.registry import ClientRegistry


@pytest.fixture
def base_url():
    """Base URL for testing."""
    return "http://api.test/v1"


@pytest.fixture
def mock_responses():
    """Mock HTTP responses using responses library."""
    with responses_lib.RequestsMock() as rsps:
        yield rsps


@pytest.fixture
def registry():
    """Изолированный реестр, чтобы тесты не делили cookie jar и дефолты."""
    reg = ClientRegistry(ClientSettings()).init_once()
    yield reg
    reg.shutdown()


@pytest.fixture
def logging_config():
    """LoggingConfig без вывода в консоль."""
    return LoggingConfig.create(
        level="DEBUG",
        enable_console=False,
        enable_file=False
    )


@pytest.fixture
def gzip_body():
    """Функция для сжатия тела ответа."""
    return gzip.compress


class FailingAdapter(BaseAdapter):
    """
    Транспорт, который падает N раз (или всегда), затем отвечает 200.

    Attributes:
        calls: Количество вызовов send
        bodies: Тела запросов, прочитанные при каждом вызове
    """

    def __init__(self, failures=None, error=None, status=200, body=b"ok"):
        super().__init__()
        self.failures = failures  # None = всегда падать
        self.error = error or requests.exceptions.ConnectionError("connection refused")
        self.status = status
        self.body = body
        self.calls = 0
        self.bodies = []

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.calls += 1

        body = request.body
        if hasattr(body, "read"):
            body = body.read()
        elif body is not None and not isinstance(body, (bytes, str)):
            body = b"".join(body)
        self.bodies.append(body)

        if self.failures is None or self.calls <= self.failures:
            raise self.error

        response = requests.Response()
        response.status_code = self.status
        response._content = self.body
        response._content_consumed = True
        response.url = request.url
        response.request = request
        return response

    def close(self):
        pass


@pytest.fixture
def failing_adapter():
    """Фабрика FailingAdapter."""
    return FailingAdapter
