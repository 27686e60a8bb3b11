"""
Hardened HTTP transport for the Triton API

Every client talks to the API through a transport with fixed timeouts,
no connection reuse, no urllib3 retries and no redirect following.
TLS verification is on unless the caller explicitly opts out.
"""

import logging
import socket
from dataclasses import dataclass
from functools import partial
from typing import Any, Callable, Dict, List, Optional, Tuple

import requests
from requests.adapters import HTTPAdapter
from urllib3.connection import HTTPConnection, HTTPSConnection
from urllib3.connectionpool import HTTPConnectionPool, HTTPSConnectionPool

from triton_client.client.context import current_context


logger = logging.getLogger(__name__)

SocketOption = Tuple[int, int, int]


@dataclass(frozen=True)
class TransportSettings:
    """Transport timeouts, in seconds"""
    dial_timeout: float = 30.0
    keep_alive_interval: int = 30
    tls_handshake_timeout: float = 10.0


DEFAULT_TRANSPORT_SETTINGS = TransportSettings()


def abort_socket(sock: socket.socket) -> None:
    """Shut a socket down so blocked reads and writes on it return"""
    try:
        # Bypass SSLSocket.shutdown, which drops the TLS state under a reader
        socket.socket.shutdown(sock, socket.SHUT_RDWR)
    except OSError:
        # Already closed
        pass


class _ContextBoundConnection:
    """Registers each new socket with the request context bound to the thread"""

    _release_context: Optional[Callable[[], None]] = None

    def connect(self) -> None:
        super().connect()  # type: ignore[misc]
        ctx = current_context()
        if ctx is not None:
            self._release_context = ctx.on_done(partial(abort_socket, self.sock))

    def close(self) -> None:
        release, self._release_context = self._release_context, None
        if release is not None:
            release()
        super().close()  # type: ignore[misc]


class HardenedHTTPConnection(_ContextBoundConnection, HTTPConnection):
    pass


class HardenedHTTPSConnection(_ContextBoundConnection, HTTPSConnection):
    """HTTPS connection whose TLS handshake has its own, shorter timeout"""

    tls_handshake_timeout: float = DEFAULT_TRANSPORT_SETTINGS.tls_handshake_timeout

    def _connect_timeout(self) -> Optional[float]:
        return self.timeout if isinstance(self.timeout, (int, float)) else None

    def _new_conn(self) -> socket.socket:
        sock = super()._new_conn()
        connect_timeout = self._connect_timeout()
        if connect_timeout is None:
            sock.settimeout(self.tls_handshake_timeout)
        else:
            sock.settimeout(min(self.tls_handshake_timeout, connect_timeout))
        return sock

    def connect(self) -> None:
        super().connect()
        self.sock.settimeout(self._connect_timeout())


class HardenedHTTPConnectionPool(HTTPConnectionPool):
    ConnectionCls = HardenedHTTPConnection


class HardenedHTTPSConnectionPool(HTTPSConnectionPool):
    ConnectionCls = HardenedHTTPSConnection


def pool_classes(settings: TransportSettings) -> Dict[str, type]:
    """Connection pool classes carrying the settings' handshake timeout"""
    connection_cls = type(
        "HardenedHTTPSConnection",
        (HardenedHTTPSConnection,),
        {"tls_handshake_timeout": settings.tls_handshake_timeout},
    )
    https_pool_cls = type(
        "HardenedHTTPSConnectionPool",
        (HardenedHTTPSConnectionPool,),
        {"ConnectionCls": connection_cls},
    )
    return {"http": HardenedHTTPConnectionPool, "https": https_pool_cls}


class HardenedAdapter(HTTPAdapter):
    """
    requests adapter enforcing the transport policy

    - ``Connection: close`` on every request, single-connection pools
    - no retries at the urllib3 level
    - TCP keep-alive packets every ``keep_alive_interval`` seconds
    - TLS handshakes bounded by ``tls_handshake_timeout``
    - sockets aborted when the bound request context is done
    - certificate verification unless ``insecure_skip_tls_verify`` is set
    """

    def __init__(
        self,
        settings: TransportSettings = DEFAULT_TRANSPORT_SETTINGS,
        insecure_skip_tls_verify: bool = False,
    ) -> None:
        # init_poolmanager runs inside HTTPAdapter.__init__
        self.settings = settings
        self.insecure_skip_tls_verify = insecure_skip_tls_verify
        self.pool_classes = pool_classes(settings)
        super().__init__(pool_connections=1, pool_maxsize=1, max_retries=0)

    def socket_options(self) -> List[SocketOption]:
        """Socket options for new connections"""
        interval = int(self.settings.keep_alive_interval)
        options: List[SocketOption] = list(HTTPConnection.default_socket_options)
        options.append((socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1))

        if hasattr(socket, "TCP_KEEPIDLE"):
            options.append((socket.IPPROTO_TCP, socket.TCP_KEEPIDLE, interval))
        elif hasattr(socket, "TCP_KEEPALIVE"):
            # macOS names the idle time TCP_KEEPALIVE
            options.append((socket.IPPROTO_TCP, socket.TCP_KEEPALIVE, interval))

        if hasattr(socket, "TCP_KEEPINTVL"):
            options.append((socket.IPPROTO_TCP, socket.TCP_KEEPINTVL, interval))

        return options

    def init_poolmanager(self, connections: int, maxsize: int, block: bool = False, **pool_kwargs: Any) -> None:
        pool_kwargs.setdefault("socket_options", self.socket_options())
        super().init_poolmanager(connections, maxsize, block=block, **pool_kwargs)
        self.poolmanager.pool_classes_by_scheme = self.pool_classes

    def proxy_manager_for(self, proxy: str, **proxy_kwargs: Any):
        proxy_kwargs.setdefault("socket_options", self.socket_options())
        manager = super().proxy_manager_for(proxy, **proxy_kwargs)
        # SOCKS managers bring their own connection classes
        if not proxy.lower().startswith("socks"):
            manager.pool_classes_by_scheme = self.pool_classes
        return manager

    def send(
        self,
        request: requests.PreparedRequest,
        stream: bool = False,
        timeout: Any = None,
        verify: Any = True,
        cert: Any = None,
        proxies: Optional[dict] = None,
    ) -> requests.Response:
        request.headers["Connection"] = "close"

        if self.insecure_skip_tls_verify:
            verify = False

        if timeout is None:
            timeout = (self.settings.dial_timeout, None)

        return super().send(
            request,
            stream=stream,
            timeout=timeout,
            verify=verify,
            cert=cert,
            proxies=proxies,
        )


def build_transport(
    insecure_skip_tls_verify: bool = False,
    settings: TransportSettings = DEFAULT_TRANSPORT_SETTINGS,
) -> HardenedAdapter:
    """
    Build the hardened transport

    Args:
        insecure_skip_tls_verify: Skip certificate verification
        settings: Transport timeouts

    Returns:
        Adapter to mount on a requests session
    """
    if insecure_skip_tls_verify:
        logger.warning("TLS certificate verification is disabled")
    return HardenedAdapter(settings, insecure_skip_tls_verify=insecure_skip_tls_verify)


def mount_transport(session: requests.Session, transport: HTTPAdapter) -> None:
    """Route both http and https traffic of a session through a transport"""
    session.mount("http://", transport)
    session.mount("https://", transport)


def build_http_client(transport: HTTPAdapter) -> requests.Session:
    """
    Create a session bound to a transport

    Redirects are never followed: the session allows zero redirects and
    callers send with ``allow_redirects=False``.
    """
    session = requests.Session()
    mount_transport(session, transport)
    session.max_redirects = 0
    session.headers["Connection"] = "close"
    return session
