# src/fluent_http/core/dispatcher.py
"""
Dispatch of a pending request: URL resolution, transport and cookie jar
attachment, debug dump and the retry loop.
"""
import logging
import time
import uuid
from typing import Callable, List, Optional, Union, TYPE_CHECKING
from urllib.parse import urlsplit

import requests
from requests.adapters import BaseAdapter
from requests.cookies import RequestsCookieJar
from requests.structures import CaseInsensitiveDict

from .body_encoder import EncodedRequest, encode_body
from .config import ClientSettings, RedirectPolicy
from .exceptions import (
    FileIOError,
    RetryDeadlineExceededError,
    URLResolutionError,
    classify_requests_exception,
)
from .multipart import MultipartStream
from .registry import ClientRegistry
from .request_builder import PendingRequest
from .retry_engine import RetryEngine
from .transport import resolve_transport
from ..utils.sanitizer import mask_url

# Delayed import to avoid circular dependency
if TYPE_CHECKING:
    from .logging import HTTPClientLogger

logger = logging.getLogger(__name__)


def resolve_url(base_url: str, relative_url: str) -> str:
    """
    Join base and relative URL and validate the result.

    The relative part is appended verbatim (it may carry a query string).

    Raises:
        URLResolutionError: If the result is not an absolute http(s) URL

    Example:
        >>> resolve_url("http://api.test/v1", "/items?q=shoes")
        'http://api.test/v1/items?q=shoes'
    """
    url = f"{base_url}{relative_url}"

    try:
        parts = urlsplit(url)
        # .port validates the port lazily
        parts.port
    except ValueError as e:
        raise URLResolutionError(f"Malformed URL: {e}", url)

    if parts.scheme.lower() not in ("http", "https"):
        raise URLResolutionError("URL scheme must be http or https", url)
    if not parts.hostname:
        raise URLResolutionError("URL has no host", url)

    return url


def dump_request(prepared: requests.PreparedRequest, include_body: bool = True) -> bytes:
    """
    Serialize a prepared request as it goes on the wire (HTTP/1.1 framing).

    Streamed bodies are never included.
    """
    parts = urlsplit(prepared.url)
    lines = [f"{prepared.method} {prepared.path_url} HTTP/1.1"]
    lines.append(f"Host: {prepared.headers.get('Host') or parts.netloc}")
    for key, value in prepared.headers.items():
        if key.lower() != 'host':
            lines.append(f"{key}: {value}")

    head = ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")

    body = prepared.body
    if not include_body or body is None:
        return head
    if isinstance(body, str):
        body = body.encode("utf-8")
    if not isinstance(body, bytes):
        return head
    return head + body


class _RedirectPolicySession(requests.Session):
    """Session that asks a policy before following each redirect."""

    def __init__(self, policy: RedirectPolicy):
        super().__init__()
        self._policy = policy

    def get_redirect_target(self, resp):
        target = super().get_redirect_target(resp)
        if target is not None and not self._policy(resp):
            return None
        return target


class Dispatcher:
    """
    Runs one request/retry cycle against the resolved transport.

    Retry state machine: ATTEMPTING(i) -> SUCCEEDED | EXHAUSTED.
    Only transport errors are retried; every completed response (any status
    code) ends the loop. With a FIXED policy of N retries at most N+1
    attempts are made and the last transport error is raised. An UNBOUNDED
    policy retries until success or its deadline.

    Example:
        >>> dispatcher = Dispatcher(ClientSettings(), get_default_registry())
        >>> response = dispatcher.dispatch(pending)
    """

    def __init__(
        self,
        settings: ClientSettings,
        registry: ClientRegistry,
        http_logger: Optional['HTTPClientLogger'] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._settings = settings
        self._registry = registry
        self._logger = http_logger
        self._sleep = sleep
        self._retry_engine = RetryEngine(settings.retry)
        self._session: Optional[requests.Session] = None
        self._stream: Optional[MultipartStream] = None

        self.dump: Optional[bytes] = None
        self.attempts = 0
        self.upload_errors: List[FileIOError] = []

    # ==================== Session ====================

    def _create_session(self, transport: BaseAdapter) -> requests.Session:
        """Create session with the resolved transport and cookie jar."""
        if self._settings.check_redirect is not None:
            session = _RedirectPolicySession(self._settings.check_redirect)
        else:
            session = requests.Session()

        session.mount('http://', transport)
        session.mount('https://', transport)

        tls = self._settings.tls
        if tls is not None:
            session.verify = tls.verify
            session.cert = tls.cert

        if self._settings.enable_cookie:
            session.cookies = self._registry.cookie_jar
        else:
            # Куки живут только в рамках этого dispatch
            session.cookies = RequestsCookieJar()

        return session

    def _get_session(self) -> requests.Session:
        if self._session is None:
            self._session = self._create_session(resolve_transport(self._settings))
        return self._session

    # ==================== Request building ====================

    def _build_headers(self, pending: PendingRequest, encoded: EncodedRequest) -> CaseInsensitiveDict:
        headers = CaseInsensitiveDict(pending.headers)
        headers.update(encoded.headers)

        if pending.host:
            headers['Host'] = pending.host

        if self._settings.user_agent and 'User-Agent' not in headers:
            headers['User-Agent'] = self._settings.user_agent

        if 'Accept-Encoding' not in headers:
            headers['Accept-Encoding'] = 'gzip' if self._settings.gzip else 'identity'

        return headers

    def _prepare(
        self,
        session: requests.Session,
        pending: PendingRequest,
        url: str,
        headers: CaseInsensitiveDict,
        body: Optional[Union[str, bytes, MultipartStream]],
    ) -> requests.PreparedRequest:
        request = requests.Request(
            method=pending.method,
            url=url,
            headers=dict(headers),
            data=body,
            auth=pending.auth,
        )
        return session.prepare_request(request)

    def _capture_dump(
        self,
        session: requests.Session,
        pending: PendingRequest,
        url: str,
        headers: CaseInsensitiveDict,
        encoded: EncodedRequest,
    ) -> Optional[bytes]:
        try:
            # Потоковое тело не материализуем ради дампа
            body = None if encoded.is_streamed else encoded.body
            prepared = self._prepare(session, pending, url, headers, body)
            return dump_request(prepared, include_body=self._settings.dump_body)
        except Exception as e:
            logger.warning(f"Failed to dump request: {e}")
            return None

    def _send(self, session: requests.Session, prepared: requests.PreparedRequest) -> requests.Response:
        env = session.merge_environment_settings(prepared.url, {}, True, None, None)
        return session.send(prepared, allow_redirects=True, timeout=None, **env)

    # ==================== Dispatch ====================

    def dispatch(self, pending: PendingRequest) -> requests.Response:
        """
        Encode, resolve and send the request with retries.

        Args:
            pending: Request state

        Returns:
            Response (body not read; stream=True)

        Raises:
            EncodingError: Params could not be serialized
            URLResolutionError: Base/relative URL invalid, nothing was sent
            TransportError: Last transport error once retries are exhausted
            RetryDeadlineExceededError: Retry deadline elapsed
            FileIOError: Strict multipart upload hit an unreadable file
        """
        encoded = encode_body(pending, strict_uploads=self._settings.strict_uploads)
        url = resolve_url(pending.base_url, encoded.relative_url)
        safe_url = mask_url(url, extra_params=self._settings.security.sensitive_url_params)

        session = self._get_session()
        headers = self._build_headers(pending, encoded)
        request_id = str(uuid.uuid4())

        if self._settings.show_debug:
            self.dump = self._capture_dump(session, pending, url, headers, encoded)

        if self._logger:
            from .logging.filters import set_correlation_id
            set_correlation_id(request_id)
            self._logger.info(
                "Request started",
                method=pending.method,
                url=safe_url,
                retry_mode=self._settings.retry.mode.value,
                max_attempts=self._settings.retry.max_attempts,
                streamed=encoded.is_streamed,
            )

        start_time = time.time()
        self.attempts = 0
        self._retry_engine.start()

        try:
            while True:
                self._close_stream()
                body = encoded.open_body()
                if isinstance(body, MultipartStream):
                    self._stream = body

                self.attempts += 1
                try:
                    prepared = self._prepare(session, pending, url, headers, body)
                    response = self._send(session, prepared)

                except requests.exceptions.RequestException as e:
                    self._collect_upload_errors()
                    our_error = classify_requests_exception(e, url)

                    if isinstance(our_error, URLResolutionError):
                        raise our_error from e

                    if not self._retry_engine.should_retry(our_error):
                        self._log_failure(pending.method, safe_url, our_error, start_time)
                        raise our_error from e

                    if self._retry_engine.deadline_exceeded():
                        deadline_error = RetryDeadlineExceededError(
                            deadline=self._settings.retry.deadline,
                            attempts=self.attempts,
                            last_error=our_error,
                            url=url,
                        )
                        self._log_failure(pending.method, safe_url, deadline_error, start_time)
                        raise deadline_error from e

                    wait_time = self._retry_engine.get_wait_time()

                    if self._logger:
                        self._logger.warning(
                            "Request error (will retry)",
                            method=pending.method,
                            url=safe_url,
                            error=str(our_error),
                            error_type=type(our_error).__name__,
                            attempt=self.attempts,
                            wait_time_s=round(wait_time, 2),
                        )
                    else:
                        logger.debug(
                            f"[{request_id}] attempt {self.attempts} failed ({our_error}), "
                            f"retrying in {wait_time:.2f}s"
                        )

                    if wait_time > 0:
                        self._sleep(wait_time)

                    self._retry_engine.increment()
                    continue

                except Exception:
                    self._collect_upload_errors()
                    self._close_stream()
                    raise

                self._collect_upload_errors()

                if self._logger:
                    self._logger.info(
                        "Request completed",
                        method=pending.method,
                        url=safe_url,
                        status_code=response.status_code,
                        attempt=self.attempts,
                        duration_ms=round((time.time() - start_time) * 1000, 2),
                    )

                return response
        finally:
            self._retry_engine.reset()
            if self._logger:
                from .logging.filters import clear_correlation_id
                clear_correlation_id()

    def _log_failure(self, method: str, url: str, error: Exception, start_time: float) -> None:
        if self._logger:
            self._logger.error(
                "Request failed",
                method=method,
                url=url,
                error=str(error),
                error_type=type(error).__name__,
                attempt=self.attempts,
                duration_ms=round((time.time() - start_time) * 1000, 2),
            )
        else:
            logger.debug(f"{method} {url} failed after {self.attempts} attempt(s): {error}")

    def _collect_upload_errors(self) -> None:
        if self._stream is not None:
            self.upload_errors = list(self._stream.errors)

    def _close_stream(self) -> None:
        if self._stream is not None:
            self._stream.close()
            self._stream = None

    def close(self) -> None:
        """Close the multipart producer (if any) and the session."""
        self._close_stream()
        if self._session is not None:
            self._session.close()
            self._session = None
