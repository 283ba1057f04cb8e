"""
Protocol probes: HTTP, SOCKS4 and SOCKS5 detection.

Each probe opens its own TCP connection, performs one fixed handshake and
answers a plain yes/no. An endpoint that refuses, stalls, resets or replies
with garbage is simply not a proxy, so network errors never leave this
module; they are categorized and logged at debug level.
"""

import errno
import logging
import socket
import struct
from functools import partial
from typing import Callable, Optional, Tuple

from .core import (
    ErrorCategory, ProxyProtocol, ScanConfig, Socks4, Socks5,
    DEFAULT_HTTP_TARGET, DEFAULT_SOCKS4_TARGET_IP, DEFAULT_SOCKS5_TARGET,
    DEFAULT_TARGET_PORT,
)

logger = logging.getLogger(__name__)

HTTP_READ_SIZE = 4096
SOCKS4_REPLY_SIZE = 8
SOCKS5_METHOD_REPLY_SIZE = 2
SOCKS5_CONNECT_REPLY_SIZE = 10

HTTP_VERSION_TOKENS = ("HTTP/1.1", "HTTP/1.0")

Probe = Callable[[str, int, float, float], bool]


# =============================================================================
# Error Classification
# =============================================================================

def classify_error(exc: BaseException, stage: str = "connect") -> ErrorCategory:
    """Map a socket exception to an ErrorCategory."""
    if isinstance(exc, socket.timeout):
        return ErrorCategory.TIMEOUT_CONNECT if stage == "connect" else ErrorCategory.TIMEOUT_READ
    if isinstance(exc, ConnectionRefusedError):
        return ErrorCategory.CONNECTION_REFUSED
    if isinstance(exc, (ConnectionResetError, BrokenPipeError, ConnectionAbortedError)):
        return ErrorCategory.CONNECTION_RESET
    if isinstance(exc, OSError) and exc.errno in (errno.ENETUNREACH, errno.EHOSTUNREACH):
        return ErrorCategory.NETWORK_UNREACHABLE
    return ErrorCategory.UNKNOWN


def _log_miss(protocol: ProxyProtocol, host: str, port: int,
              category: ErrorCategory, detail: str = ""):
    logger.debug(f"{protocol.value} probe {host}:{port}: {category.name} {detail}".rstrip())


def _connect(host: str, port: int, timeout: float,
             protocol: ProxyProtocol) -> Optional[socket.socket]:
    """Open a TCP connection, or return None on any connection error."""
    try:
        return socket.create_connection((host, port), timeout=timeout)
    except OSError as e:
        _log_miss(protocol, host, port, classify_error(e, "connect"), str(e))
        return None


def _exchange(sock: socket.socket, payload: bytes, size: int, timeout: float) -> bytes:
    """Send a request and read one reply of at most ``size`` bytes."""
    sock.settimeout(timeout)
    sock.sendall(payload)
    return sock.recv(size)


# =============================================================================
# Request Builders
# =============================================================================

def build_http_request(target: str = DEFAULT_HTTP_TARGET) -> bytes:
    """Absolute-form GET, as an HTTP proxy expects it."""
    return (
        f"GET http://{target}/ HTTP/1.1\r\n"
        f"Host: {target}\r\n"
        f"Connection: close\r\n"
        f"\r\n"
    ).encode('ascii')


def build_socks4_request(target_ip: str = DEFAULT_SOCKS4_TARGET_IP,
                         target_port: int = DEFAULT_TARGET_PORT) -> bytes:
    """VN(1) + CD(1) + DSTPORT(2) + DSTIP(4) + empty USERID(1)."""
    return (
        bytes([Socks4.VERSION, Socks4.CMD_CONNECT])
        + struct.pack('>H', target_port)
        + socket.inet_aton(target_ip)
        + b'\x00'
    )


def build_socks5_greeting() -> bytes:
    """VER=5, NMETHODS=1, METHOD=0 (no auth)."""
    return bytes([Socks5.VERSION, 0x01, Socks5.AUTH_NONE])


def build_socks5_connect(target: str = DEFAULT_SOCKS5_TARGET,
                         target_port: int = DEFAULT_TARGET_PORT) -> bytes:
    """VER(1) + CMD(1) + RSV(1) + ATYP(1) + DST.ADDR(var) + DST.PORT(2)."""
    domain = target.encode('ascii')
    return bytes([
        Socks5.VERSION,
        Socks5.CMD_CONNECT,
        0x00,  # Reserved
        Socks5.ATYP_DOMAIN,
        len(domain)
    ]) + domain + struct.pack('>H', target_port)


# =============================================================================
# Probes
# =============================================================================

def check_http(host: str, port: int, connect_timeout: float, read_timeout: float,
               target: str = DEFAULT_HTTP_TARGET) -> bool:
    """True if the endpoint answers a proxied GET with an HTTP/1.x response."""
    sock = _connect(host, port, connect_timeout, ProxyProtocol.HTTP)
    if sock is None:
        return False

    with sock:
        try:
            response = _exchange(sock, build_http_request(target), HTTP_READ_SIZE, read_timeout)
        except OSError as e:
            _log_miss(ProxyProtocol.HTTP, host, port, classify_error(e, "read"), str(e))
            return False

    if not response:
        _log_miss(ProxyProtocol.HTTP, host, port, ErrorCategory.SHORT_REPLY)
        return False

    text = response.decode('latin-1')
    return any(token in text for token in HTTP_VERSION_TOKENS)


def check_socks4(host: str, port: int, connect_timeout: float, read_timeout: float,
                 target_ip: str = DEFAULT_SOCKS4_TARGET_IP,
                 target_port: int = DEFAULT_TARGET_PORT) -> bool:
    """True if the endpoint grants a SOCKS4 CONNECT."""
    sock = _connect(host, port, connect_timeout, ProxyProtocol.SOCKS4)
    if sock is None:
        return False

    with sock:
        try:
            reply = _exchange(sock, build_socks4_request(target_ip, target_port),
                              SOCKS4_REPLY_SIZE, read_timeout)
        except OSError as e:
            _log_miss(ProxyProtocol.SOCKS4, host, port, classify_error(e, "read"), str(e))
            return False

    if len(reply) < 2:
        _log_miss(ProxyProtocol.SOCKS4, host, port, ErrorCategory.SHORT_REPLY)
        return False

    if reply[1] != Socks4.REPLY_GRANTED:
        _log_miss(ProxyProtocol.SOCKS4, host, port, ErrorCategory.REJECTED, f"code={reply[1]:#04x}")
        return False

    return True


def check_socks5(host: str, port: int, connect_timeout: float, read_timeout: float,
                 target: str = DEFAULT_SOCKS5_TARGET,
                 target_port: int = DEFAULT_TARGET_PORT) -> bool:
    """True if the endpoint accepts no-auth and a SOCKS5 CONNECT by domain."""
    sock = _connect(host, port, connect_timeout, ProxyProtocol.SOCKS5)
    if sock is None:
        return False

    with sock:
        try:
            # Stage 1: method negotiation
            response = _exchange(sock, build_socks5_greeting(),
                                 SOCKS5_METHOD_REPLY_SIZE, read_timeout)

            if len(response) < 2:
                _log_miss(ProxyProtocol.SOCKS5, host, port, ErrorCategory.SHORT_REPLY, "handshake")
                return False

            if response[1] != Socks5.AUTH_NONE:
                _log_miss(ProxyProtocol.SOCKS5, host, port, ErrorCategory.REJECTED,
                          f"method={response[1]:#04x}")
                return False

            # Stage 2: CONNECT
            reply = _exchange(sock, build_socks5_connect(target, target_port),
                              SOCKS5_CONNECT_REPLY_SIZE, read_timeout)

        except OSError as e:
            _log_miss(ProxyProtocol.SOCKS5, host, port, classify_error(e, "read"), str(e))
            return False

    if len(reply) < 2:
        _log_miss(ProxyProtocol.SOCKS5, host, port, ErrorCategory.SHORT_REPLY, "connect")
        return False

    if reply[1] != Socks5.REPLY_SUCCESS:
        _log_miss(ProxyProtocol.SOCKS5, host, port, ErrorCategory.REJECTED, f"reply={reply[1]:#04x}")
        return False

    return True


# Priority order: the first match wins
PROBES: Tuple[Tuple[ProxyProtocol, Probe], ...] = (
    (ProxyProtocol.HTTP, check_http),
    (ProxyProtocol.SOCKS4, check_socks4),
    (ProxyProtocol.SOCKS5, check_socks5),
)


def probes_for(config: ScanConfig) -> Tuple[Tuple[ProxyProtocol, Probe], ...]:
    """The default probe chain bound to the configured probe targets."""
    return (
        (ProxyProtocol.HTTP, partial(check_http, target=config.http_target)),
        (ProxyProtocol.SOCKS4, partial(check_socks4, target_ip=config.socks4_target_ip,
                                       target_port=config.target_port)),
        (ProxyProtocol.SOCKS5, partial(check_socks5, target=config.socks5_target,
                                       target_port=config.target_port)),
    )
