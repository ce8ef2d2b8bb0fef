"""Тесты потокового multipart тела."""

import logging
from email.parser import BytesParser
from email.policy import HTTP

import pytest

from src.fluent_http.core.exceptions import FileIOError
from src.fluent_http.core.multipart import MultipartStream


def parse_multipart(content_type, body):
    """Разобрать multipart тело стандартным email парсером."""
    message = BytesParser(policy=HTTP).parsebytes(
        f"Content-Type: {content_type}\r\n\r\n".encode() + body
    )
    assert message.is_multipart()
    return list(message.iter_parts())


@pytest.fixture
def files(tmp_path):
    first = tmp_path / "first.bin"
    second = tmp_path / "second.txt"
    first.write_bytes(b"\x00\x01binary")
    second.write_bytes(b"second file")
    return {"avatar": str(first), "notes": str(second)}


def test_parts_order_files_then_fields(files):
    """Файлы в порядке добавления, затем поля."""
    stream = MultipartStream(files, {"user": "bob"})
    body = stream.read()

    parts = parse_multipart(stream.content_type, body)

    assert [p.get_param("name", header="content-disposition") for p in parts] == ["avatar", "notes", "user"]
    assert parts[0].get_filename() == "first.bin"
    assert parts[0].get_content_type() == "application/octet-stream"
    assert parts[0].get_payload(decode=True) == b"\x00\x01binary"
    assert parts[1].get_payload(decode=True) == b"second file"
    assert parts[2].get_filename() is None
    assert parts[2].get_payload(decode=True) == b"bob"


def test_closing_boundary(files):
    stream = MultipartStream(files, {}, boundary="XYZ")
    body = stream.read()
    assert body.startswith(b"--XYZ\r\n")
    assert body.endswith(b"--XYZ--\r\n")
    assert stream.content_type == "multipart/form-data; boundary=XYZ"


def test_read_in_small_chunks_matches_full_read(files):
    full = MultipartStream(files, {"user": "bob"}, boundary="B").read()

    stream = MultipartStream(files, {"user": "bob"}, boundary="B", chunk_size=3, capacity=2)
    pieces = []
    while True:
        piece = stream.read(5)
        if not piece:
            break
        pieces.append(piece)

    assert b"".join(pieces) == full


def test_iteration(files):
    stream = MultipartStream(files, {"user": "bob"}, boundary="B")
    assert b"".join(stream) == MultipartStream(files, {"user": "bob"}, boundary="B").read()


def test_large_file_streams_through_small_pipe(tmp_path):
    """Файл больше ёмкости канала проходит целиком."""
    payload = b"0123456789abcdef" * 32768  # 512KB
    path = tmp_path / "big.bin"
    path.write_bytes(payload)

    stream = MultipartStream({"blob": str(path)}, {}, chunk_size=1024, capacity=2)
    body = stream.read()

    assert payload in body
    assert len(body) < len(payload) + 1024


def test_missing_file_skipped_and_recorded(tmp_path, files, caplog):
    """Ошибка открытия файла логируется, часть пропускается, остальное отправляется."""
    files = dict(files)
    files["missing"] = str(tmp_path / "nope.txt")

    stream = MultipartStream(files, {"user": "bob"})
    with caplog.at_level(logging.WARNING):
        body = stream.read()

    parts = parse_multipart(stream.content_type, body)
    names = [p.get_param("name", header="content-disposition") for p in parts]

    assert names == ["avatar", "notes", "user"]
    assert len(stream.errors) == 1
    assert isinstance(stream.errors[0], FileIOError)
    assert stream.errors[0].path.endswith("nope.txt")
    assert "Cannot open upload file" in caplog.text


def test_strict_mode_raises_to_reader(tmp_path):
    stream = MultipartStream({"missing": str(tmp_path / "nope.txt")}, {"user": "bob"}, strict=True)

    with pytest.raises(FileIOError):
        stream.read()

    assert len(stream.errors) == 1


def test_producer_starts_lazily(files):
    stream = MultipartStream(files, {})
    assert stream._thread is None
    stream.read(1)
    assert stream._thread is not None
    stream.close()


def test_close_stops_producer(tmp_path):
    """После close() продюсер завершается, даже если тело не дочитано."""
    path = tmp_path / "big.bin"
    path.write_bytes(b"x" * (256 * 1024))

    stream = MultipartStream({"blob": str(path)}, {}, chunk_size=1024, capacity=1)
    stream.read(10)
    stream.close()
    stream._thread.join(timeout=5)

    assert stream.closed
    assert not stream._thread.is_alive()
    assert stream.read() == b""


def test_context_manager(files):
    with MultipartStream(files, {}) as stream:
        stream.read(1)
    assert stream.closed
