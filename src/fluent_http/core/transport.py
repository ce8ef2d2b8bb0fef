# src/fluent_http/core/transport.py
"""
Transport resolution.

A transport is a requests adapter that performs the socket I/O for a request.
The default one is built from ClientSettings; a caller-supplied ``Transport``
keeps every field it set and only gets its unset fields filled from the
settings.
"""
from dataclasses import dataclass
from typing import Optional

from requests.adapters import BaseAdapter, HTTPAdapter
from urllib3.util import Timeout

from .config import ClientSettings, ProxyResolver, TimeoutConfig, TLSConfig

# Фиксированный лимит соединений в пуле на один хост
MAX_IDLE_CONNS_PER_HOST = 100


@dataclass(frozen=True)
class Dialer:
    """
    Connect parameters of a transport.

    Args:
        connect_timeout: Seconds allowed to establish the connection
        read_write_timeout: Seconds allowed per socket read/write once connected
    """
    connect_timeout: float = 60.0
    read_write_timeout: float = 60.0

    def __post_init__(self):
        if self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")
        if self.read_write_timeout <= 0:
            raise ValueError("read_write_timeout must be positive")

    @classmethod
    def from_timeout(cls, timeout: TimeoutConfig) -> 'Dialer':
        return cls(connect_timeout=timeout.connect, read_write_timeout=timeout.read_write)

    def as_timeout(self) -> Timeout:
        """urllib3 Timeout: connect bound, then per-operation read bound."""
        return Timeout(connect=self.connect_timeout, read=self.read_write_timeout)


@dataclass(frozen=True)
class TransportConfig:
    """
    Transport-level settings. ``None`` means "not set".

    Args:
        tls: TLS settings
        proxy: Proxy resolver function
        dialer: Connect/read-write timeouts
    """
    tls: Optional[TLSConfig] = None
    proxy: Optional[ProxyResolver] = None
    dialer: Optional[Dialer] = None


def merge_transport_config(base: TransportConfig, override: TransportConfig) -> TransportConfig:
    """
    Merge two transport configs field by field.

    Every field set on ``override`` wins; fields left as ``None`` are taken
    from ``base``.

    Example:
        >>> base = TransportConfig(dialer=Dialer(5, 30), tls=TLSConfig())
        >>> override = TransportConfig(dialer=Dialer(1, 1))
        >>> merged = merge_transport_config(base, override)
        >>> merged.dialer.connect_timeout, merged.tls is base.tls
        (1, True)
    """
    return TransportConfig(
        tls=override.tls if override.tls is not None else base.tls,
        proxy=override.proxy if override.proxy is not None else base.proxy,
        dialer=override.dialer if override.dialer is not None else base.dialer,
    )


def transport_config_from_settings(settings: ClientSettings) -> TransportConfig:
    """Transport config equivalent of the given client settings."""
    return TransportConfig(
        tls=settings.tls,
        proxy=settings.proxy,
        dialer=Dialer.from_timeout(settings.timeout),
    )


def static_proxy(proxy_url: str) -> ProxyResolver:
    """
    Proxy resolver that routes every request through one proxy.

    Example:
        >>> settings = ClientSettings(proxy=static_proxy("http://proxy:3128"))
    """
    def resolve(request) -> Optional[str]:
        return proxy_url

    return resolve


class Transport(HTTPAdapter):
    """
    HTTPAdapter driven by a TransportConfig.

    Features:
        - Dialer timeouts applied when the caller passes none
        - TLS verify/cert and optional ssl_context for the pool manager
        - Per-request proxy selection through a resolver function
        - Fixed pool size of 100 connections per host, no adapter-level retries

    Example:
        >>> transport = Transport(TransportConfig(dialer=Dialer(2, 10)))
        >>> settings = ClientSettings(transport=transport)  # tls/proxy backfilled
    """

    def __init__(self, config: Optional[TransportConfig] = None, pool_connections: int = 10):
        # Must exist before HTTPAdapter.__init__ calls init_poolmanager
        self.transport_config = config or TransportConfig()
        super().__init__(
            pool_connections=pool_connections,
            pool_maxsize=MAX_IDLE_CONNS_PER_HOST,
            max_retries=0  # Ретраи через RetryEngine
        )

    def apply_defaults(self, defaults: TransportConfig) -> None:
        """Fill fields left unset on this transport from ``defaults``."""
        before = self.transport_config
        self.transport_config = merge_transport_config(defaults, before)

        if _ssl_context(before.tls) is not _ssl_context(self.transport_config.tls):
            # Pool manager was built without the context; rebuild it
            self.init_poolmanager(self._pool_connections, self._pool_maxsize, block=self._pool_block)

    def init_poolmanager(self, connections, maxsize, block=False, **pool_kwargs):
        context = _ssl_context(self.transport_config.tls)
        if context is not None:
            pool_kwargs.setdefault('ssl_context', context)
        super().init_poolmanager(connections, maxsize, block=block, **pool_kwargs)

    def proxy_manager_for(self, proxy, **proxy_kwargs):
        context = _ssl_context(self.transport_config.tls)
        if context is not None:
            proxy_kwargs.setdefault('ssl_context', context)
        return super().proxy_manager_for(proxy, **proxy_kwargs)

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        config = self.transport_config

        if timeout is None and config.dialer is not None:
            timeout = config.dialer.as_timeout()

        if config.tls is not None:
            verify = config.tls.verify
            if config.tls.cert is not None:
                cert = config.tls.cert

        if config.proxy is not None:
            proxy_url = config.proxy(request)
            if proxy_url:
                proxies = {'all': proxy_url}

        return super().send(
            request,
            stream=stream,
            timeout=timeout,
            verify=verify,
            cert=cert,
            proxies=proxies
        )


def _ssl_context(tls: Optional[TLSConfig]):
    return tls.ssl_context if tls is not None else None


def resolve_transport(settings: ClientSettings) -> BaseAdapter:
    """
    Pick the transport for a dispatch.

    - No custom transport: a new ``Transport`` built from the settings.
    - A custom ``Transport``: its unset TLS/proxy/dialer fields are filled
      from the settings; fields it set are kept.
    - Any other adapter: used as-is.

    Args:
        settings: Client settings

    Returns:
        Adapter to mount on the dispatch session
    """
    defaults = transport_config_from_settings(settings)
    transport = settings.transport

    if transport is None:
        return Transport(defaults)

    if isinstance(transport, Transport):
        transport.apply_defaults(defaults)

    return transport
