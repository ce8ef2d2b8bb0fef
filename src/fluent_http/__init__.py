"""fluent-http - chainable HTTP client with retries and streaming uploads."""

import logging
from importlib.metadata import version, PackageNotFoundError

from .core.http_client import HTTPClient, get, post, put, patch, delete, head
from .core.config import (
    ClientSettings,
    TimeoutConfig,
    TLSConfig,
    RetryConfig,
    RetryMode,
    SecurityConfig,
)
from .core.registry import ClientRegistry, get_default_registry, set_default_settings
from .core.request_builder import ContentType
from .core.transport import Transport, TransportConfig, Dialer, static_proxy
from .core.env_config import load_from_env, load_from_file
from .core.exceptions import (
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
)

# NullHandler: библиотека не пишет в лог, пока приложение не настроит logging
logging.getLogger('fluent_http').addHandler(logging.NullHandler())

try:
    __version__ = version("fluent-http")
except PackageNotFoundError:
    # Package is not installed (development mode)
    __version__ = "0.0.0-dev"

__all__ = [
    # Client
    "HTTPClient",
    "get",
    "post",
    "put",
    "patch",
    "delete",
    "head",
    "ContentType",

    # Config
    "ClientSettings",
    "TimeoutConfig",
    "TLSConfig",
    "RetryConfig",
    "RetryMode",
    "SecurityConfig",
    "load_from_env",
    "load_from_file",

    # Registry
    "ClientRegistry",
    "get_default_registry",
    "set_default_settings",

    # Transport
    "Transport",
    "TransportConfig",
    "Dialer",
    "static_proxy",

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

    # Version
    "__version__",
]
