"""Тесты fluent HTTPClient."""

import json
from email.parser import BytesParser
from email.policy import HTTP

import pytest
import requests
import responses as responses_lib

from src.fluent_http.core.config import ClientSettings, RetryConfig
from src.fluent_http.core.exceptions import ConnectionError, DecodingError
from src.fluent_http.core.http_client import HTTPClient, get, post
from src.fluent_http.core.request_builder import ContentType


def _read_body(request):
    body = request.body
    if hasattr(body, "read"):
        body = body.read()
    if isinstance(body, str):
        body = body.encode()
    return body


def test_setters_return_self(registry, base_url):
    client = HTTPClient(base_url, registry=registry)

    assert client.get("/items") is client
    assert client.header("X-Trace", "1") is client
    assert client.param("q", "shoes") is client
    assert client.set_basic_auth("bob", "pw") is client
    assert client.set_host("other.test") is client
    assert client.set_content_type("json") is client
    assert client.file("doc", "/tmp/doc.txt") is client
    assert client.body(b"raw") is client

    assert client.request.method == "GET"
    assert client.request.content_type is ContentType.JSON
    assert client.request.headers["x-trace"] == "1"


def test_get_with_query(mock_responses, registry, base_url):
    mock_responses.add(responses_lib.GET, f"{base_url}/items", json=[{"id": 1}], status=200)

    client = HTTPClient(base_url, registry=registry).get("/items").param("q", "shoes")

    assert client.to_json() == [{"id": 1}]
    assert mock_responses.calls[0].request.url == f"{base_url}/items?q=shoes"


def test_body_read_once(mock_responses, registry, base_url):
    """Повторное чтение тела не делает второй запрос."""
    mock_responses.add(responses_lib.GET, f"{base_url}/items", body=b"payload")

    client = HTTPClient(base_url, registry=registry).get("/items")

    assert client.bytes() == b"payload"
    assert client.bytes() == b"payload"
    assert client.string() == "payload"
    assert len(mock_responses.calls) == 1


def test_gzip_response(mock_responses, registry, base_url, gzip_body):
    mock_responses.add(
        responses_lib.GET,
        f"{base_url}/data",
        body=gzip_body(b'{"ok": true}'),
        headers={"Content-Encoding": "gzip"},
    )

    client = HTTPClient(base_url, registry=registry).get("/data")

    assert client.to_json() == {"ok": True}
    assert mock_responses.calls[0].request.headers["Accept-Encoding"] == "gzip"


def test_post_json(mock_responses, registry, base_url):
    mock_responses.add(responses_lib.POST, f"{base_url}/items", json={"id": 7}, status=201)

    client = (
        HTTPClient(base_url, registry=registry)
        .post("/items")
        .set_content_type(ContentType.JSON)
        .param("name", "boot")
        .param("size", 42)
    )

    assert client.response().status_code == 201
    request = mock_responses.calls[0].request
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.body) == {"name": "boot", "size": 42}


def test_post_form_skips_non_string_params(mock_responses, registry, base_url):
    mock_responses.add(responses_lib.POST, f"{base_url}/items", body="ok")

    client = HTTPClient(base_url, registry=registry).post("/items").param("name", "boot").param("size", 42)
    client.string()

    request = mock_responses.calls[0].request
    assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
    assert request.body == "name=boot"


def test_multipart_upload(mock_responses, registry, base_url, tmp_path):
    """Два файла и поле уходят одним multipart телом."""
    avatar = tmp_path / "avatar.png"
    avatar.write_bytes(b"PNGDATA")
    notes = tmp_path / "notes.txt"
    notes.write_bytes(b"some notes")

    captured = {}

    def callback(request):
        captured["content_type"] = request.headers["Content-Type"]
        captured["body"] = _read_body(request)
        return 200, {}, "uploaded"

    mock_responses.add_callback(responses_lib.POST, f"{base_url}/upload", callback=callback)

    client = (
        HTTPClient(base_url, registry=registry)
        .post("/upload")
        .file("avatar", str(avatar))
        .file("notes", str(notes))
        .param("user", "bob")
    )

    assert client.string() == "uploaded"
    assert client.upload_errors == []

    message = BytesParser(policy=HTTP).parsebytes(
        f"Content-Type: {captured['content_type']}\r\n\r\n".encode() + captured["body"]
    )
    parts = list(message.iter_parts())
    assert [p.get_param("name", header="content-disposition") for p in parts] == ["avatar", "notes", "user"]
    assert parts[0].get_filename() == "avatar.png"
    assert parts[0].get_payload(decode=True) == b"PNGDATA"
    assert parts[1].get_payload(decode=True) == b"some notes"
    assert parts[2].get_payload(decode=True) == b"bob"


def test_upload_errors_exposed(mock_responses, registry, base_url, tmp_path):
    def callback(request):
        _read_body(request)
        return 200, {}, "ok"

    mock_responses.add_callback(responses_lib.POST, f"{base_url}/upload", callback=callback)

    client = (
        HTTPClient(base_url, registry=registry)
        .post("/upload")
        .file("missing", str(tmp_path / "nope.bin"))
        .param("user", "bob")
    )
    client.string()

    assert len(client.upload_errors) == 1
    assert client.upload_errors[0].path == str(tmp_path / "nope.bin")


def test_explicit_body(mock_responses, registry, base_url):
    mock_responses.add(responses_lib.PUT, f"{base_url}/raw", body="ok")

    client = (
        HTTPClient(base_url, registry=registry)
        .put("/raw")
        .header("Content-Type", "text/plain")
        .param("ignored", "x")
        .body("plain text")
    )
    client.string()

    request = mock_responses.calls[0].request
    assert _read_body(request) == b"plain text"
    assert request.headers["Content-Type"] == "text/plain"


def test_status_codes_are_not_errors(mock_responses, registry, base_url):
    mock_responses.add(responses_lib.GET, f"{base_url}/missing", body="not found", status=404)

    client = HTTPClient(base_url, registry=registry).get("/missing")

    assert client.response().status_code == 404
    assert client.string() == "not found"
    assert client.attempts == 1


def test_decode_error_on_invalid_json(mock_responses, registry, base_url):
    mock_responses.add(responses_lib.GET, f"{base_url}/broken", body="{not json")

    with pytest.raises(DecodingError):
        HTTPClient(base_url, registry=registry).get("/broken").to_json()


def test_to_file(mock_responses, registry, base_url, tmp_path):
    payload = b"x" * 20000
    mock_responses.add(responses_lib.GET, f"{base_url}/file", body=payload)
    target = tmp_path / "download.bin"

    written = HTTPClient(base_url, registry=registry).get("/file").to_file(str(target), chunk_size=4096)

    assert written == len(payload)
    assert target.read_bytes() == payload


def test_transport_error_after_retries(registry, base_url, failing_adapter):
    adapter = failing_adapter()
    settings = ClientSettings(transport=adapter, retry=RetryConfig(max_retries=2))

    client = HTTPClient(base_url, settings=settings, registry=registry).get("/items")

    with pytest.raises(ConnectionError):
        client.bytes()
    assert client.attempts == 3
    assert adapter.calls == 3


def test_dump_available_with_show_debug(registry, base_url, failing_adapter):
    settings = ClientSettings(transport=failing_adapter(failures=0), show_debug=True)

    client = HTTPClient(base_url, settings=settings, registry=registry).post("/items").param("a", "1")
    assert client.dump is None

    client.response()

    assert client.dump.startswith(b"POST /v1/items HTTP/1.1\r\n")
    assert client.dump.endswith(b"\r\n\r\na=1")


def test_settings_copied_on_construct(registry, base_url):
    """Смена дефолтов реестра не влияет на уже созданный клиент."""
    before = HTTPClient(base_url, registry=registry)

    registry.set_default_settings(ClientSettings(gzip=False))
    after = HTTPClient(base_url, registry=registry)

    assert before.settings.gzip is True
    assert after.settings.gzip is False


def test_context_manager_closes(registry, base_url, failing_adapter):
    settings = ClientSettings(transport=failing_adapter(failures=0))

    with HTTPClient(base_url, settings=settings, registry=registry).get("/items") as client:
        assert client.bytes() == b"ok"


def test_structured_logging_client(registry, base_url, failing_adapter, logging_config):
    settings = ClientSettings(transport=failing_adapter(failures=0), logging=logging_config)

    with HTTPClient(base_url, settings=settings, registry=registry) as client:
        assert client.get("/items").string() == "ok"


def test_repr(registry, base_url):
    client = HTTPClient(base_url, registry=registry).delete("/items/1")
    assert repr(client) == f"<HTTPClient DELETE {base_url}/items/1>"


@responses_lib.activate
def test_module_shortcuts():
    responses_lib.add(responses_lib.GET, "http://api.test/ping", body="pong")
    responses_lib.add(responses_lib.POST, "http://api.test/echo", body="echo")

    assert get("http://api.test/ping").string() == "pong"
    assert post("http://api.test/echo").param("k", "v").string() == "echo"
    assert responses_lib.calls[1].request.body == "k=v"


def test_requests_session_not_required(registry, base_url, failing_adapter):
    """Клиент работает через свой транспорт без сетевых вызовов."""
    adapter = failing_adapter(failures=0, status=204, body=b"")
    settings = ClientSettings(transport=adapter)

    client = HTTPClient(base_url, settings=settings, registry=registry).head("/items")

    assert isinstance(client.response(), requests.Response)
    assert client.bytes() is None
    assert adapter.calls == 1
