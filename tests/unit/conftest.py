"""
Shared fixtures: a mock Triton API server and test signers
"""

import ipaddress
import json
import ssl
import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List, Optional
from urllib.parse import urlparse

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa
from cryptography.x509.oid import NameOID

from triton_client.authentication import fingerprint_md5


PROXY_ENV_VARS = (
    "HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY",
    "http_proxy", "https_proxy", "all_proxy",
)


@dataclass
class RecordedRequest:
    method: str
    path: str
    query: str
    headers: Dict[str, List[str]]
    body: bytes

    def header(self, name: str) -> Optional[str]:
        values = self.headers.get(name.lower())
        return values[0] if values else None


@dataclass
class _ServerState:
    requests: List[RecordedRequest] = field(default_factory=list)
    lock: threading.Lock = field(default_factory=threading.Lock)
    # Set on teardown so stalled handlers finish
    release: threading.Event = field(default_factory=threading.Event)

    def hits(self, path: str) -> int:
        with self.lock:
            return sum(1 for r in self.requests if r.path == path)

    def last(self) -> RecordedRequest:
        with self.lock:
            return self.requests[-1]


class _ApiServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address, handler, state: _ServerState):
        super().__init__(address, handler)
        self.state = state


class _Handler(BaseHTTPRequestHandler):
    server: _ApiServer  # type: ignore[assignment]

    def log_message(self, format: str, *args):  # noqa: D401 - silence server logs
        """Suppress default HTTP server logging."""

    def _write(self, status: int, body: bytes = b"", headers: Optional[Dict[str, str]] = None) -> None:
        self.send_response(status)
        for key, value in (headers or {}).items():
            self.send_header(key, value)
        if body:
            self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def _record(self) -> RecordedRequest:
        length = int(self.headers.get("Content-Length") or 0)
        body = self.rfile.read(length) if length else b""
        parsed = urlparse(self.path)
        headers: Dict[str, List[str]] = {}
        for key, value in self.headers.items():
            headers.setdefault(key.lower(), []).append(value)
        recorded = RecordedRequest(
            method=self.command,
            path=parsed.path,
            query=parsed.query,
            headers=headers,
            body=body,
        )
        with self.server.state.lock:
            self.server.state.requests.append(recorded)
        return recorded

    def _trickle_headers(self) -> None:
        # Keeps every read short of the read timeout while never finishing
        try:
            self.wfile.write(b"HTTP/1.1 200 OK\r\n")
            for _ in range(50):
                if self.server.state.release.wait(0.1):
                    return
                self.wfile.write(b"X-Pad: 1\r\n")
        except OSError:
            return

    def _stall_body(self) -> None:
        try:
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", "100")
            self.end_headers()
            self.wfile.write(b'{"a":"')
            self.server.state.release.wait(5)
        except OSError:
            return

    def _dispatch(self) -> None:
        request = self._record()
        path = request.path

        if path == "/resource/123":
            self._write(200, b'{"a":1}')
        elif path == "/resource" and request.method == "POST":
            self._write(409, b'{"code":"Conflict","message":"exists"}')
        elif path == "/echo":
            self._write(200, request.body)
        elif path == "/redirect":
            self._write(
                302,
                b'{"code":"Found","message":"moved"}',
                {"Location": "/resource/123"},
            )
        elif path == "/garbage":
            self._write(500, b"<html>Internal Server Error</html>")
        elif path == "/empty-error":
            self._write(503)
        elif path == "/list-error":
            self._write(400, b'["not", "an", "object"]')
        elif path == "/no-content":
            self._write(204)
        elif path == "/stall":
            self.server.state.release.wait(5)
            try:
                self._write(200, b'{"a":1}')
            except OSError:
                return
        elif path == "/trickle-headers":
            self._trickle_headers()
        elif path == "/stall-body":
            self._stall_body()
        else:
            self._write(404, b'{"code":"ResourceNotFound","message":"no route"}')

    do_GET = _dispatch
    do_POST = _dispatch
    do_PUT = _dispatch
    do_DELETE = _dispatch
    do_HEAD = _dispatch


def _serve(server: _ApiServer):
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return thread


@pytest.fixture(autouse=True)
def _no_proxies(monkeypatch):
    for name in PROXY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def api_server():
    state = _ServerState()
    server = _ApiServer(("127.0.0.1", 0), _Handler, state)
    thread = _serve(server)
    host, port = server.server_address[:2]
    yield f"http://{host}:{port}", state
    state.release.set()
    server.shutdown()
    server.server_close()
    thread.join()


@pytest.fixture(scope="session")
def self_signed_cert(tmp_path_factory):
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "localhost")])
    now = datetime.now(timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(days=1))
        .not_valid_after(now + timedelta(days=1))
        .add_extension(
            x509.SubjectAlternativeName([
                x509.DNSName("localhost"),
                x509.IPAddress(ipaddress.ip_address("127.0.0.1")),
            ]),
            critical=False,
        )
        .sign(key, hashes.SHA256())
    )

    directory = tmp_path_factory.mktemp("tls")
    cert_file = directory / "cert.pem"
    key_file = directory / "key.pem"
    cert_file.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
    key_file.write_bytes(
        key.private_bytes(
            serialization.Encoding.PEM,
            serialization.PrivateFormat.PKCS8,
            serialization.NoEncryption(),
        )
    )
    return cert_file, key_file


@pytest.fixture
def tls_api_server(self_signed_cert):
    cert_file, key_file = self_signed_cert
    context = ssl.SSLContext(ssl.PROTOCOL_TLS_SERVER)
    context.load_cert_chain(str(cert_file), str(key_file))

    state = _ServerState()
    server = _ApiServer(("127.0.0.1", 0), _Handler, state)
    server.socket = context.wrap_socket(server.socket, server_side=True)
    thread = _serve(server)
    host, port = server.server_address[:2]
    yield f"https://{host}:{port}", state
    state.release.set()
    server.shutdown()
    server.server_close()
    thread.join()


class RecordingSigner:
    """Signer that remembers every date it was asked to sign"""

    def __init__(self, name: str = "test") -> None:
        self.name = name
        self.calls: List[str] = []

    def sign(self, date_string: str) -> str:
        self.calls.append(date_string)
        return (
            f'Signature keyId="/{self.name}/keys/00",algorithm="rsa-sha256",'
            f'headers="date",signature="{len(self.calls)}"'
        )


class FailingSigner:
    """Signer that always fails"""

    def __init__(self) -> None:
        self.calls = 0

    def sign(self, date_string: str) -> str:
        self.calls += 1
        raise RuntimeError("signer unavailable")


@pytest.fixture
def signer() -> RecordingSigner:
    return RecordingSigner()


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture(scope="session")
def rsa_key_pem(rsa_key) -> bytes:
    return rsa_key.private_bytes(
        serialization.Encoding.PEM,
        serialization.PrivateFormat.PKCS8,
        serialization.NoEncryption(),
    )


@pytest.fixture(scope="session")
def rsa_fingerprint(rsa_key) -> str:
    return fingerprint_md5(rsa_key.public_key())


def read_json(stream) -> object:
    try:
        return json.loads(stream.read())
    finally:
        stream.close()
