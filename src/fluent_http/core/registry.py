"""
Process-scoped registry for shared client state.

Holds the default ClientSettings handed to new clients and the cookie jar
shared by every client that enables cookies. One lock guards both the
settings swap and the one-time jar construction; reads of an existing jar
take no lock.
"""
import logging
import threading
from typing import Optional

from requests.cookies import RequestsCookieJar

from .config import ClientSettings

logger = logging.getLogger(__name__)


class ClientRegistry:
    """
    Shared defaults and cookie jar for a group of clients.

    The application constructs a registry, optionally calls ``init_once()``
    at startup and ``shutdown()`` when done, and passes it to clients.
    Clients created without an explicit registry use the module default
    returned by ``get_default_registry()``.

    Example:
        >>> registry = ClientRegistry(ClientSettings(enable_cookie=True)).init_once()
        >>> client = HTTPClient("https://api.example.com", registry=registry)
        >>> registry.shutdown()
    """

    def __init__(self, default_settings: Optional[ClientSettings] = None):
        self._lock = threading.Lock()
        self._default_settings = default_settings or ClientSettings()
        self._cookie_jar: Optional[RequestsCookieJar] = None
        self._initialized = False

    def init_once(self) -> 'ClientRegistry':
        """
        Initialize shared state. Safe to call multiple times.

        Returns:
            self, for chaining
        """
        with self._lock:
            if self._cookie_jar is None:
                self._cookie_jar = RequestsCookieJar()
            self._initialized = True
        return self

    def shutdown(self) -> None:
        """Drop the shared cookie jar. The registry can be initialized again."""
        with self._lock:
            if self._cookie_jar is not None:
                self._cookie_jar.clear()
            self._cookie_jar = None
            self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def default_settings(self) -> ClientSettings:
        """Settings copied into clients created with this registry."""
        return self._default_settings

    def set_default_settings(self, settings: ClientSettings) -> None:
        """
        Replace default settings.

        Clients constructed earlier keep the settings they copied.
        """
        with self._lock:
            self._default_settings = settings

    @property
    def cookie_jar(self) -> RequestsCookieJar:
        """
        Shared cookie jar, created on first access.

        RequestsCookieJar does its own locking for reads and writes of cookies.
        """
        jar = self._cookie_jar
        if jar is not None:
            return jar

        with self._lock:
            # Double-check: another thread may have created it while we waited
            if self._cookie_jar is None:
                logger.debug("Creating shared cookie jar")
                self._cookie_jar = RequestsCookieJar()
            return self._cookie_jar

    def has_cookie_jar(self) -> bool:
        return self._cookie_jar is not None


# Global registry instance (singleton pattern)
_default_registry: Optional[ClientRegistry] = None
_default_registry_lock = threading.Lock()


def get_default_registry() -> ClientRegistry:
    """
    Get the module default registry, creating it on first call.

    Example:
        >>> registry = get_default_registry()
        >>> registry.set_default_settings(ClientSettings(gzip=False))
    """
    global _default_registry

    if _default_registry is None:
        with _default_registry_lock:
            if _default_registry is None:
                _default_registry = ClientRegistry()

    return _default_registry


def set_default_settings(settings: ClientSettings) -> None:
    """Replace default settings of the module default registry."""
    get_default_registry().set_default_settings(settings)
