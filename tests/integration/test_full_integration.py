"""
Интеграционные сценарии: несколько клиентов, общий реестр, retry и файлы.
"""

import json

import pytest
import requests
import responses as responses_lib

from src.fluent_http import (
    ClientSettings,
    ConnectionError,
    HTTPClient,
    RetryConfig,
    TimeoutConfig,
    load_from_file,
)


@pytest.fixture
def cookie_settings():
    return ClientSettings(enable_cookie=True, user_agent="catalog-sync/1.0")


def test_login_then_fetch_with_shared_cookies(mock_responses, registry, cookie_settings):
    """Cookie из ответа одного клиента уходит в запросе другого."""
    mock_responses.add(
        responses_lib.POST,
        "http://shop.test/login",
        body="ok",
        headers={"Set-Cookie": "session=abc123; Path=/"},
    )
    mock_responses.add(responses_lib.GET, "http://shop.test/orders", json={"orders": [1, 2]})

    login = HTTPClient("http://shop.test", settings=cookie_settings, registry=registry)
    login.post("/login").param("user", "bob").param("password", "pw").string()

    orders = HTTPClient("http://shop.test", settings=cookie_settings, registry=registry)
    assert orders.get("/orders").to_json() == {"orders": [1, 2]}

    second = mock_responses.calls[1].request
    assert second.headers["Cookie"] == "session=abc123"
    assert second.headers["User-Agent"] == "catalog-sync/1.0"


def test_redirect_followed_and_body_decoded(mock_responses, registry, gzip_body):
    mock_responses.add(
        responses_lib.GET,
        "http://shop.test/old",
        status=301,
        headers={"Location": "http://shop.test/new"},
    )
    mock_responses.add(
        responses_lib.GET,
        "http://shop.test/new",
        body=gzip_body(b'{"moved": true}'),
        headers={"Content-Encoding": "gzip"},
    )

    client = HTTPClient("http://shop.test", registry=registry).get("/old")

    assert client.to_json() == {"moved": True}
    assert client.response().url == "http://shop.test/new"


def test_redirect_policy_blocks(mock_responses, registry):
    mock_responses.add(
        responses_lib.GET,
        "http://shop.test/old",
        status=302,
        headers={"Location": "http://elsewhere.test/"},
    )
    settings = ClientSettings(check_redirect=lambda response: False)

    client = HTTPClient("http://shop.test", settings=settings, registry=registry).get("/old")

    assert client.response().status_code == 302
    assert len(mock_responses.calls) == 1


def test_retry_recovers_after_transport_errors(mock_responses, registry):
    mock_responses.add(responses_lib.GET, "http://shop.test/flaky", body=requests.exceptions.ConnectionError("reset"))
    mock_responses.add(responses_lib.GET, "http://shop.test/flaky", body=requests.exceptions.ConnectionError("reset"))
    mock_responses.add(responses_lib.GET, "http://shop.test/flaky", body="finally")

    settings = ClientSettings(retry=RetryConfig(max_retries=3))
    client = HTTPClient("http://shop.test", settings=settings, registry=registry).get("/flaky")

    assert client.string() == "finally"
    assert client.attempts == 3


def test_retry_exhausted(mock_responses, registry):
    mock_responses.add(responses_lib.GET, "http://shop.test/down", body=requests.exceptions.ConnectionError("refused"))

    settings = ClientSettings(retry=RetryConfig(max_retries=1))
    client = HTTPClient("http://shop.test", settings=settings, registry=registry).get("/down")

    with pytest.raises(ConnectionError):
        client.bytes()
    assert client.attempts == 2


def test_upload_then_download(mock_responses, registry, tmp_path):
    source = tmp_path / "report.csv"
    source.write_bytes(b"id,name\n1,shoe\n")
    stored = {}

    def upload(request):
        body = request.body
        if hasattr(body, "read"):
            body = body.read()
        stored["body"] = body
        return 201, {}, json.dumps({"id": "r1"})

    mock_responses.add_callback(responses_lib.POST, "http://files.test/reports", callback=upload)
    mock_responses.add(responses_lib.GET, "http://files.test/reports/r1", body=b"id,name\n1,shoe\n")

    created = (
        HTTPClient("http://files.test", registry=registry)
        .post("/reports")
        .file("report", str(source))
        .param("owner", "bob")
        .to_json()
    )
    assert created == {"id": "r1"}
    assert b"id,name\n1,shoe\n" in stored["body"]
    assert b'name="owner"' in stored["body"]

    target = tmp_path / "copy.csv"
    HTTPClient("http://files.test", registry=registry).get(f"/reports/{created['id']}").to_file(str(target))
    assert target.read_bytes() == source.read_bytes()


def test_settings_from_file_drive_client(mock_responses, registry, tmp_path):
    config = tmp_path / "client.yaml"
    config.write_text("connect_timeout: 2\nread_write_timeout: 3\nuser_agent: from-file/1.0\n")
    mock_responses.add(responses_lib.GET, "http://shop.test/ping", body="pong")

    settings = load_from_file(config)
    client = HTTPClient("http://shop.test", settings=settings, registry=registry).get("/ping")

    assert settings.timeout == TimeoutConfig(connect=2, read_write=3)
    assert client.string() == "pong"
    assert mock_responses.calls[0].request.headers["User-Agent"] == "from-file/1.0"
