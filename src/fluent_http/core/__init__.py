"""Core fluent_http модули."""

from .config import (
    ClientSettings,
    TimeoutConfig,
    TLSConfig,
    RetryConfig,
    RetryMode,
    SecurityConfig,
)
from .registry import ClientRegistry, get_default_registry, set_default_settings
from .request_builder import ContentType, PendingRequest
from .body_encoder import EncodedRequest, encode_body, encode_form, encode_json, build_query_url
from .multipart import MultipartStream
from .transport import (
    Dialer,
    Transport,
    TransportConfig,
    merge_transport_config,
    resolve_transport,
    static_proxy,
)
from .retry_engine import RetryEngine
from .dispatcher import Dispatcher, resolve_url, dump_request
from .response_decoder import ResponseDecoder, gunzip
from .http_client import HTTPClient
from .exceptions import (
    HTTPClientException,
    URLResolutionError,
    TransportError,
    TimeoutError,
    ConnectionError,
    ProxyError,
    SSLError,
    RetryDeadlineExceededError,
    EncodingError,
    DecodingError,
    DecompressionBombError,
    FileIOError,
    ConfigurationError,
    classify_requests_exception,
)

__all__ = [
    # Config
    "ClientSettings",
    "TimeoutConfig",
    "TLSConfig",
    "RetryConfig",
    "RetryMode",
    "SecurityConfig",
    # Registry
    "ClientRegistry",
    "get_default_registry",
    "set_default_settings",
    # Request
    "ContentType",
    "PendingRequest",
    "EncodedRequest",
    "encode_body",
    "encode_form",
    "encode_json",
    "build_query_url",
    "MultipartStream",
    # Transport
    "Dialer",
    "Transport",
    "TransportConfig",
    "merge_transport_config",
    "resolve_transport",
    "static_proxy",
    # Dispatch
    "RetryEngine",
    "Dispatcher",
    "resolve_url",
    "dump_request",
    "ResponseDecoder",
    "gunzip",
    "HTTPClient",
    # Exceptions
    "HTTPClientException",
    "URLResolutionError",
    "TransportError",
    "TimeoutError",
    "ConnectionError",
    "ProxyError",
    "SSLError",
    "RetryDeadlineExceededError",
    "EncodingError",
    "DecodingError",
    "DecompressionBombError",
    "FileIOError",
    "ConfigurationError",
    "classify_requests_exception",
]
