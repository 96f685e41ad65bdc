"""The client facade.

:class:`SafeNetClient` wires one profile's transport, session manager,
secure channel and endpoint wrappers together. Each instance owns its own
session and channel; two clients never share mutable state, even when
they point at the same gateway.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import httpx

from safenet.api import (
    AppendableDataApi,
    CipherOptsApi,
    DataIdApi,
    DnsApi,
    ImmutableDataApi,
    NfsApi,
    StructuredDataApi,
)
from safenet.auth.channel import SecureChannel
from safenet.auth.credential_store import CredentialStore
from safenet.auth.session import SessionManager
from safenet.client.gateway import GatewayClient
from safenet.client.transport import GatewayTransport
from safenet.config import conf_file_for, load_profile
from safenet.exceptions import ProtocolError
from safenet.models import AppIdentity, ClientConfig

logger = logging.getLogger(__name__)


class SafeNetClient:
    """Everything needed to talk to one gateway as one application.

    Args:
        config: Connection profile. Defaults to :class:`ClientConfig` with
            the gateway on ``localhost:8100``.
        app: Application identity; overrides ``config.app``.
        http_transport: Optional httpx transport (tests use
            :class:`httpx.MockTransport`).
        store: Credential store; defaults to the profile's ``conf_file``.

    Example::

        app = AppIdentity(name="Demo", id="org.example.demo", permissions=["SAFE_DRIVE_ACCESS"])
        with SafeNetClient(app=app) as client:
            listing = client.nfs.get_directory("/")
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        app: Optional[AppIdentity] = None,
        http_transport: Optional[httpx.BaseTransport] = None,
        store: Optional[CredentialStore] = None,
    ) -> None:
        config = config or ClientConfig()
        if app is not None:
            config = config.model_copy(update={"app": app})
        self.config = config

        self._transport = GatewayTransport(config, http_transport=http_transport)
        self.auth = SessionManager(
            config.app,
            store or CredentialStore(conf_file_for(config)),
            self._transport,
            protocol=config.protocol,
        )
        self.channel: Optional[SecureChannel] = SecureChannel(self.auth) if config.encrypted else None
        self.gateway = GatewayClient(self._transport, self.auth, self.channel)

        self.nfs = NfsApi(self.gateway)
        self.dns = DnsApi(self.gateway)
        self.cipher = CipherOptsApi(self.gateway)
        self.data_id = DataIdApi(self.gateway)
        self.structured_data = StructuredDataApi(self.gateway, self.data_id)
        self.appendable_data = AppendableDataApi(self.gateway, self.data_id)
        self.immutable = ImmutableDataApi(self.gateway, self.data_id, self.cipher)

    @classmethod
    def from_profile(cls, name: str, **kwargs) -> SafeNetClient:
        """Build a client from a saved profile.

        Raises:
            ConfigError: If the profile does not exist or is invalid.
        """
        return cls(load_profile(name), **kwargs)

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def open(self) -> SafeNetClient:
        self._transport.open()
        return self

    def close(self) -> None:
        self._transport.close()

    def __enter__(self) -> SafeNetClient:
        return self.open()

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def conf_file(self) -> Path:
        return self.auth.store.path

    # ------------------------------------------------------------------ #
    # Channel proxies
    # ------------------------------------------------------------------ #

    def encrypt(self, plaintext: Union[bytes, str]) -> str:
        """Seal *plaintext* with the session's symmetric key (base64 out).

        Raises:
            ProtocolError: In the plain protocol, which has no channel.
        """
        return self._require_channel().encrypt(plaintext)

    def decrypt(self, message: Union[bytes, str]) -> bytes:
        """Open a base64 message sealed with the session's symmetric key."""
        return self._require_channel().decrypt(message)

    def _require_channel(self) -> SecureChannel:
        if self.channel is None:
            raise ProtocolError(f"Profile '{self.config.name}' uses the plain protocol; there is no channel")
        return self.channel

    def __repr__(self) -> str:
        return f"<SafeNetClient {self.config.name} {self.config.api_url} ({self.config.protocol.value})>"
