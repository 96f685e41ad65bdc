"""Shared test fixtures for safenet.

Provides an in-process fake gateway served through
:class:`httpx.MockTransport`, isolated config directories, client
factories, and output-state management. The fake gateway performs the
real NaCl key agreement, so the encrypted protocol is exercised end to
end without a network.
"""

from __future__ import annotations

import base64
import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional
from urllib.parse import parse_qsl

import httpx
import pytest
from nacl.exceptions import CryptoError
from nacl.public import Box, PrivateKey, PublicKey
from nacl.secret import SecretBox
from nacl.utils import random as random_bytes

from safenet.auth.credential_store import CredentialStore
from safenet.client.safenet_client import SafeNetClient
from safenet.models import AppIdentity, ClientConfig, ProtocolVariant, RequestConfig
from safenet.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Fake gateway
# ---------------------------------------------------------------------------


class Call:
    """One request as the fake gateway saw it, with body and query opened."""

    def __init__(self, request: httpx.Request, body: bytes, query: dict[str, str]) -> None:
        self.request = request
        self.method = request.method
        self.path = request.url.raw_path.split(b"?", 1)[0].decode("ascii").lstrip("/")
        self.raw_query = request.url.query.decode("ascii") if isinstance(request.url.query, bytes) else request.url.query
        self.headers = request.headers
        self.body = body
        self.query = query

    @property
    def token(self) -> Optional[str]:
        value = self.headers.get("Authorization", "")
        return value[len("Bearer "):] if value.startswith("Bearer ") else None

    def json(self) -> Any:
        return json.loads(self.body)

    def __repr__(self) -> str:
        return f"<Call {self.method} {self.path}>"


Handler = Callable[[Call], tuple[int, Any]]


class FakeGateway:
    """A minimal SAFE Launcher served over ``httpx.MockTransport``.

    ``/auth`` is built in. Every other endpoint is registered with
    :meth:`route`; a handler returns ``(status, payload)`` where payload is
    a dict/list (sent as JSON), ``bytes``, or ``None``. A handler may also
    return an ``httpx.Response``, which is sent unchanged. In the encrypted
    protocol, authenticated responses are sealed with the session key and
    request bodies and queries are opened before the handler sees them.
    """

    def __init__(self, encrypted: bool = True) -> None:
        self.encrypted = encrypted
        self.approve = True
        self.deny_status = 401
        self.permissions: list[str] = ["SAFE_DRIVE_ACCESS"]
        self.calls: list[Call] = []
        self.valid_tokens: set[str] = set()
        self.auth_count = 0
        self.key: Optional[bytes] = None
        self.nonce: Optional[bytes] = None
        self.routes: dict[tuple[str, str], Handler] = {}
        self.fail_connect = False
        self.foreign_public_key = False

    # -- setup ---------------------------------------------------------

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def route(self, method: str, path: str, handler: Any) -> None:
        """Register *handler* (a callable, or a fixed ``(status, payload)``)."""
        if not callable(handler):
            fixed = handler
            handler = lambda call: fixed  # noqa: E731
        self.routes[(method, path)] = handler

    def revoke_all(self) -> None:
        self.valid_tokens.clear()

    # -- inspection ----------------------------------------------------

    def find(self, method: str, path: Optional[str] = None) -> list[Call]:
        return [c for c in self.calls if c.method == method and (path is None or c.path == path)]

    def seal(self, plaintext: bytes) -> bytes:
        assert self.key is not None and self.nonce is not None
        return base64.b64encode(SecretBox(self.key).encrypt(plaintext, self.nonce).ciphertext)

    def open(self, message: bytes) -> bytes:
        assert self.key is not None and self.nonce is not None
        return SecretBox(self.key).decrypt(base64.b64decode(message), self.nonce)

    # -- dispatch ------------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        if self.fail_connect:
            raise httpx.ConnectError("connection refused", request=request)

        body = request.read()
        raw_query = request.url.query
        if isinstance(raw_query, bytes):
            raw_query = raw_query.decode("ascii")
        query = self._open_query(raw_query)
        path = request.url.raw_path.split(b"?", 1)[0].decode("ascii").lstrip("/")

        if self.encrypted and body and path != "auth":
            body = self._try_open(body)
        call = Call(request, body, query)
        self.calls.append(call)

        if path == "auth":
            return self._auth(call)

        authenticated = call.token is not None
        if authenticated and call.token not in self.valid_tokens:
            return httpx.Response(401, json={"errorCode": 401, "description": "Unauthorized"})

        handler = self.routes.get((call.method, path))
        if handler is None:
            status, payload = 404, {"errorCode": -404, "description": f"No route {call.method} {path}"}
        else:
            result = handler(call)
            if isinstance(result, httpx.Response):
                return result
            status, payload = result
        return self._respond(status, payload, sealed=authenticated and self.encrypted)

    def _try_open(self, body: bytes) -> bytes:
        if self.key is None:
            return body
        try:
            return self.open(body)
        except (CryptoError, ValueError):
            return body

    def _open_query(self, raw: str) -> dict[str, str]:
        if not raw:
            return {}
        if self.encrypted and self.key is not None:
            raw = self._try_open(raw.encode("ascii")).decode("utf-8")
        return dict(parse_qsl(raw))

    def _respond(self, status: int, payload: Any, sealed: bool) -> httpx.Response:
        if payload is None:
            content = b""
        elif isinstance(payload, bytes):
            content = payload
        else:
            content = json.dumps(payload).encode("utf-8")
        if sealed and content:
            content = self.seal(content)
        return httpx.Response(status, content=content)

    def _auth(self, call: Call) -> httpx.Response:
        if call.method == "GET":
            return httpx.Response(200 if call.token in self.valid_tokens else 401)
        if call.method == "DELETE":
            if call.token not in self.valid_tokens:
                return httpx.Response(401)
            self.valid_tokens.discard(call.token)
            return httpx.Response(200)

        self.auth_count += 1
        if not self.approve:
            return httpx.Response(self.deny_status)

        token = f"token-{self.auth_count}"
        self.valid_tokens.add(token)
        record: dict[str, Any] = {"token": token, "permissions": list(self.permissions)}
        if self.encrypted:
            payload = call.json()
            client_key = PublicKey(base64.b64decode(payload["publicKey"]))
            client_nonce = base64.b64decode(payload["nonce"])
            gateway_key = PrivateKey.generate()
            self.key = random_bytes(SecretBox.KEY_SIZE)
            self.nonce = random_bytes(SecretBox.NONCE_SIZE)
            sealed = Box(gateway_key, client_key).encrypt(self.key + self.nonce, client_nonce).ciphertext
            record["encryptedKey"] = base64.b64encode(sealed).decode("ascii")
            announced = PrivateKey.generate() if self.foreign_public_key else gateway_key
            record["publicKey"] = base64.b64encode(bytes(announced.public_key)).decode("ascii")
        return httpx.Response(200, json=record)


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager and the log handler installed by the CLI cache
    references to sys.stdout/sys.stderr at creation time; CliRunner swaps
    those streams per invocation.
    """
    yield
    reset_output()
    logger = logging.getLogger("safenet")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG config/data directories into tmp_path and chdir there.

    Clears all SAFENET_* environment variables.
    """
    monkeypatch.setattr("safenet.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ["SAFENET_PROFILE", "SAFENET_BASE_URL", "SAFENET_PROTOCOL"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Gateway and client fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def gateway() -> FakeGateway:
    """Fake gateway speaking the encrypted protocol."""
    return FakeGateway(encrypted=True)


@pytest.fixture
def plain_gateway() -> FakeGateway:
    """Fake gateway speaking the plain protocol."""
    return FakeGateway(encrypted=False)


@pytest.fixture
def app_identity() -> AppIdentity:
    return AppIdentity(
        name="Test App",
        version="1.0.0",
        vendor="Tests",
        id="org.example.tests",
        permissions=["SAFE_DRIVE_ACCESS"],
    )


@pytest.fixture
def make_client(tmp_path: Path, app_identity: AppIdentity):
    """Factory building open clients against a fake gateway.

    Every client gets its own credential file under tmp_path unless a
    ``conf_name`` is shared between calls.
    """
    opened: list[SafeNetClient] = []

    def _make(fake: FakeGateway, conf_name: str = "session.json") -> SafeNetClient:
        config = ClientConfig(
            name="test",
            app=app_identity,
            protocol=ProtocolVariant.ENCRYPTED if fake.encrypted else ProtocolVariant.PLAIN,
            conf_file=str(tmp_path / conf_name),
            request=RequestConfig(timeout=5, max_retries=0),
        )
        client = SafeNetClient(config, http_transport=fake.transport()).open()
        opened.append(client)
        return client

    yield _make
    for client in opened:
        client.close()


@pytest.fixture
def client(gateway: FakeGateway, make_client) -> SafeNetClient:
    """Open client on the encrypted fake gateway."""
    return make_client(gateway)


@pytest.fixture
def plain_client(plain_gateway: FakeGateway, make_client) -> SafeNetClient:
    """Open client on the plain fake gateway."""
    return make_client(plain_gateway)


@pytest.fixture
def store(tmp_path: Path) -> CredentialStore:
    return CredentialStore(tmp_path / "creds" / "session.json")


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()


@pytest.fixture
def cli_gateway(isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> FakeGateway:
    """Encrypted fake gateway behind every client the CLI builds."""
    fake = FakeGateway(encrypted=True)

    def _client(config: ClientConfig, **kwargs: Any) -> SafeNetClient:
        kwargs.setdefault("http_transport", fake.transport())
        return SafeNetClient(config, **kwargs)

    monkeypatch.setattr("safenet.client.safenet_client.SafeNetClient", _client)
    return fake
