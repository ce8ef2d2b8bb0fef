# src/fluent_http/core/multipart.py
"""
Streaming multipart/form-data body.

A producer thread renders the parts into a bounded queue (the in-memory
pipe); the transport reads the other end while the producer is still
writing, so an upload is never held in memory as a whole.
"""
import logging
import os
import queue
import threading
from typing import Dict, Iterator, List, Optional

from urllib3.fields import RequestField
from urllib3.filepost import choose_boundary

from .exceptions import FileIOError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
PIPE_CAPACITY = 16  # chunks in flight between producer and transport

# Маркер конца потока
_EOF = object()


class _PipeClosed(Exception):
    """Consumer closed the stream; producer must stop."""


class MultipartStream:
    """
    File-like, iterable multipart body fed by a background producer.

    Parts are written in order: one file part per attachment (in mapping
    order), then one field part per string field, then the closing boundary.

    A file that cannot be opened or read is logged, recorded in ``errors``
    and skipped (or its part truncated); the rest of the body is still
    produced. With ``strict=True`` the first such error ends the stream and
    is raised to the reader instead.

    The producer starts on first read, so an unread stream owns no thread.

    Example:
        >>> stream = MultipartStream({"avatar": "/tmp/a.png"}, {"user": "bob"})
        >>> headers = {"Content-Type": stream.content_type}
        >>> session.post(url, data=stream, headers=headers)
    """

    def __init__(
        self,
        files: Dict[str, str],
        fields: Dict[str, str],
        boundary: Optional[str] = None,
        strict: bool = False,
        chunk_size: int = CHUNK_SIZE,
        capacity: int = PIPE_CAPACITY,
    ):
        self.boundary = boundary or choose_boundary()
        self.errors: List[FileIOError] = []

        self._files = list(files.items())
        self._fields = list(fields.items())
        self._strict = strict
        self._chunk_size = chunk_size

        self._queue: "queue.Queue" = queue.Queue(maxsize=capacity)
        self._closed = threading.Event()
        self._start_lock = threading.Lock()
        self._thread: Optional[threading.Thread] = None
        self._buffer = b""
        self._eof = False

    @property
    def content_type(self) -> str:
        return f"multipart/form-data; boundary={self.boundary}"

    # ==================== Producer ====================

    def start(self) -> None:
        """Start the producer thread. Idempotent."""
        with self._start_lock:
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._produce,
                    name="fluent-http-multipart",
                    daemon=True
                )
                self._thread.start()

    def _produce(self) -> None:
        try:
            try:
                for field_name, path in self._files:
                    self._write_file_part(field_name, path)
                for name, value in self._fields:
                    self._write_field_part(name, value)
                self._put(f"--{self.boundary}--\r\n".encode("latin-1"))
            except _PipeClosed:
                raise
            except Exception as exc:
                # Передаём ошибку читателю вместо молчаливого обрыва
                self._put(exc)
                return
            self._put(_EOF)
        except _PipeClosed:
            logger.debug("Multipart stream closed by consumer before completion")

    def _put(self, item) -> None:
        while not self._closed.is_set():
            try:
                self._queue.put(item, timeout=0.1)
                return
            except queue.Full:
                continue
        raise _PipeClosed()

    def _part_header(self, part: RequestField) -> bytes:
        return f"--{self.boundary}\r\n".encode("latin-1") + part.render_headers().encode("utf-8")

    def _write_file_part(self, field_name: str, path: str) -> None:
        try:
            fh = open(path, "rb")
        except OSError as exc:
            self._file_error(FileIOError("Cannot open upload file", path, exc))
            return

        with fh:
            part = RequestField(name=field_name, data=b"", filename=os.path.basename(path))
            part.make_multipart(content_type="application/octet-stream")
            self._put(self._part_header(part))

            try:
                while True:
                    chunk = fh.read(self._chunk_size)
                    if not chunk:
                        break
                    self._put(chunk)
            except OSError as exc:
                self._file_error(FileIOError("Cannot read upload file", path, exc))

            self._put(b"\r\n")

    def _write_field_part(self, name: str, value: str) -> None:
        part = RequestField(name=name, data=value)
        part.make_multipart()
        self._put(self._part_header(part) + value.encode("utf-8") + b"\r\n")

    def _file_error(self, error: FileIOError) -> None:
        self.errors.append(error)
        logger.warning(f"Multipart upload: {error}")
        if self._strict:
            raise error

    # ==================== Consumer ====================

    def _next_chunk(self) -> Optional[bytes]:
        if self._eof or self._closed.is_set():
            return None

        item = self._queue.get()
        if item is _EOF:
            self._eof = True
            return None
        if isinstance(item, Exception):
            self._eof = True
            raise item
        return item

    def read(self, size: int = -1) -> bytes:
        """Read up to ``size`` bytes (all remaining when negative)."""
        self.start()

        if size is None or size < 0:
            chunks = [self._buffer]
            self._buffer = b""
            while True:
                chunk = self._next_chunk()
                if chunk is None:
                    break
                chunks.append(chunk)
            return b"".join(chunks)

        while len(self._buffer) < size:
            chunk = self._next_chunk()
            if chunk is None:
                break
            self._buffer += chunk

        data, self._buffer = self._buffer[:size], self._buffer[size:]
        return data

    def __iter__(self) -> Iterator[bytes]:
        self.start()

        if self._buffer:
            data, self._buffer = self._buffer, b""
            yield data

        while True:
            chunk = self._next_chunk()
            if chunk is None:
                return
            yield chunk

    def close(self) -> None:
        """Stop the producer and drop unread data. Safe to call multiple times."""
        self._closed.set()
        self._buffer = b""
        while True:
            try:
                self._queue.get_nowait()
            except queue.Empty:
                break

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
