"""
Shared fixtures: in-process stub servers speaking just enough HTTP,
SOCKS4 and SOCKS5 to satisfy (or fail) the probes.
"""

import socket
import socketserver
import threading

import pytest


# =============================================================================
# Stub Handlers
# =============================================================================

HTTP_RESPONSE = b"HTTP/1.1 200 OK\r\nContent-Length: 0\r\nConnection: close\r\n\r\n"
SOCKS4_GRANTED = b"\x00\x5a\x00\x00\x00\x00\x00\x00"
SOCKS4_REJECTED = b"\x00\x5b\x00\x00\x00\x00\x00\x00"
SOCKS5_NO_AUTH = b"\x05\x00"
SOCKS5_SUCCESS = b"\x05\x00\x00\x01\x00\x00\x00\x00\x00\x00"


def reply_http(sock, first):
    sock.sendall(HTTP_RESPONSE)


def reply_socks4(sock, first):
    sock.sendall(SOCKS4_GRANTED)


def reply_socks5(sock, first):
    # `first` is the greeting; answer it, then the CONNECT request
    sock.sendall(SOCKS5_NO_AUTH)
    if sock.recv(512):
        sock.sendall(SOCKS5_SUCCESS)


def make_handler(http=None, socks4=None, socks5=None):
    """Build a handler dispatching on the first request byte."""

    class Handler(socketserver.BaseRequestHandler):
        def handle(self):
            self.request.settimeout(5)
            try:
                first = self.request.recv(4096)
                if not first:
                    return
                if first[:1] == b"G" and http:
                    http(self.request, first)
                elif first[0] == 0x04 and socks4:
                    socks4(self.request, first)
                elif first[0] == 0x05 and socks5:
                    socks5(self.request, first)
            except OSError:
                pass

    return Handler


class SilentHandler(socketserver.BaseRequestHandler):
    """Accepts and reads, never answers."""

    def handle(self):
        self.request.settimeout(10)
        try:
            while self.request.recv(4096):
                pass
        except OSError:
            pass


class StubServer(socketserver.ThreadingTCPServer):
    daemon_threads = True
    allow_reuse_address = True


@pytest.fixture
def stub_server():
    """Factory: start a stub server for a handler class, return (host, port)."""
    servers = []

    def start(handler):
        server = StubServer(("127.0.0.1", 0), handler)
        thread = threading.Thread(target=server.serve_forever, daemon=True)
        thread.start()
        servers.append(server)
        return server.server_address

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()


@pytest.fixture
def socks5_server(stub_server):
    return stub_server(make_handler(socks5=reply_socks5))


@pytest.fixture
def socks4_server(stub_server):
    return stub_server(make_handler(socks4=reply_socks4))


@pytest.fixture
def http_server(stub_server):
    return stub_server(make_handler(http=reply_http))


@pytest.fixture
def all_protocols_server(stub_server):
    return stub_server(make_handler(http=reply_http, socks4=reply_socks4, socks5=reply_socks5))


@pytest.fixture
def silent_server(stub_server):
    return stub_server(SilentHandler)


@pytest.fixture
def closed_port():
    """A localhost port with nothing listening on it."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.bind(("127.0.0.1", 0))
    port = sock.getsockname()[1]
    sock.close()
    return "127.0.0.1", port
