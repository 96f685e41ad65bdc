"""Canonical Pydantic models shared across all safenet modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Session models** -- what the gateway hands out and what is persisted in
the credential file: :class:`AppIdentity`, :class:`Session`.

**Result models** -- typed failures returned (not raised) by every gateway
call: :class:`GatewayFailure` and :class:`AuthDenied`.

**Configuration models** -- serialised as JSON in the user's config
directory: :class:`ProtocolVariant`, :class:`RequestConfig`,
:class:`ClientConfig`, and :class:`GlobalConfig`.

Wire names are camelCase (``encryptedKey``, ``errorCode``); the Python
attributes are snake_case and the models accept either on input.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


DEFAULT_BASE_URL = "http://localhost:8100/"

# Gateway error code for data that does not exist on the network.
PATH_NOT_FOUND = -1502


# --- Session models ---


class AppIdentity(BaseModel):
    """Identity of the application, sent with every authorization request.

    Supplied once when the client is constructed and read-only thereafter.

    Example::

        AppIdentity(
            name="Photo Sync",
            version="1.2.0",
            vendor="Example Ltd",
            id="com.example.photosync",
            permissions=["SAFE_DRIVE_ACCESS", "LOW_LEVEL_API"],
        )
    """

    model_config = ConfigDict(frozen=True)

    name: str = "SafeNet Python App"
    version: str = "0.0.1"
    vendor: str = "Vendor's Name"
    id: str = "org.thevendor.demo"
    permissions: list[str] = Field(
        default_factory=list,
        description="Permissions requested from the user, e.g. SAFE_DRIVE_ACCESS",
    )

    def to_auth_payload(self) -> dict[str, Any]:
        """Return the ``app``/``permissions`` part of a ``POST /auth`` body."""
        return {
            "app": {
                "name": self.name,
                "version": self.version,
                "vendor": self.vendor,
                "id": self.id,
            },
            "permissions": list(self.permissions),
        }


class Session(BaseModel):
    """The persisted credential record created by a successful authorization.

    In the plain protocol only :attr:`token` is present. In the encrypted
    protocol the gateway's response (``token``, ``encryptedKey``,
    ``publicKey``) is merged with the locally generated ``nonce`` and
    ``privateKey`` so that a restarted process can rebuild the channel
    without a new authorization prompt. All binary fields are strict base64.

    Unknown response fields are preserved so the file round-trips.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    token: str
    encrypted_key: Optional[str] = Field(default=None, alias="encryptedKey")
    public_key: Optional[str] = Field(
        default=None,
        alias="publicKey",
        description="The gateway's public key",
    )
    nonce: Optional[str] = None
    private_key: Optional[str] = Field(
        default=None,
        alias="privateKey",
        description="The local ephemeral private key of this session",
    )
    permissions: list[str] = Field(default_factory=list)

    def is_complete(self, encrypted: bool) -> bool:
        """Check the absent-or-complete invariant for a given protocol.

        Args:
            encrypted: Whether the session must carry key material.

        Returns:
            ``True`` when the token is present and, for the encrypted
            protocol, every piece of key material is present too.
        """
        if not self.token:
            return False
        if not encrypted:
            return True
        return all((self.encrypted_key, self.public_key, self.nonce, self.private_key))

    def to_file_dict(self) -> dict[str, Any]:
        """Serialise with wire (camelCase) names, omitting absent fields."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# --- Result models ---


class GatewayFailure(BaseModel):
    """A structured error returned by the gateway.

    Built from the ``{errorCode, description}`` payload of any non-200
    response. Gateway calls *return* this instead of raising, so callers
    must check with ``isinstance(result, GatewayFailure)``.

    Example::

        GatewayFailure(error_code=-1502, description="PathNotFound", status_code=400)
    """

    model_config = ConfigDict(populate_by_name=True)

    error_code: int = Field(alias="errorCode")
    description: str = ""
    status_code: Optional[int] = None

    @classmethod
    def from_payload(cls, payload: Any, status_code: int, fallback: str = "") -> GatewayFailure:
        """Build a failure from a decoded error body.

        Bodies without an ``errorCode`` key fall back to the HTTP status as
        the error code and *fallback* (or the payload itself) as the
        description.
        """
        if isinstance(payload, dict) and "errorCode" in payload:
            try:
                code = int(payload["errorCode"])
            except (TypeError, ValueError):
                code = status_code
            return cls(
                error_code=code,
                description=str(payload.get("description", "")),
                status_code=status_code,
            )
        description = fallback or (str(payload) if payload else "")
        return cls(error_code=status_code, description=description, status_code=status_code)

    def to_payload(self) -> dict[str, Any]:
        """Return the failure in the gateway's wire shape."""
        return {"errorCode": self.error_code, "description": self.description}

    @property
    def is_not_found(self) -> bool:
        return self.error_code == PATH_NOT_FOUND


class AuthDenied(GatewayFailure):
    """Returned when no session could be established for a request."""


# --- Configuration models ---


class ProtocolVariant(str, enum.Enum):
    """Which generation of the gateway protocol a profile speaks.

    ``ENCRYPTED`` negotiates a symmetric channel at authorization time and
    passes bodies and queries through it. ``PLAIN`` relies on the bearer
    token alone.
    """

    ENCRYPTED = "encrypted"
    PLAIN = "plain"


class RequestConfig(BaseModel):
    """HTTP settings applied to every gateway call in a profile."""

    timeout: float = Field(default=30, description="Request timeout in seconds")
    max_retries: int = Field(
        default=2, description="Retries when the connection cannot be established"
    )


class ClientConfig(BaseModel):
    """A named connection profile stored under the ``profiles/`` config directory.

    Bundles the application identity, where the gateway lives, which
    protocol it speaks, and where the session credentials are persisted.

    See Also:
        :func:`~safenet.config.load_profile`: Deserialise a profile by name.
        :func:`~safenet.config.save_profile`: Persist a profile to disk.
    """

    model_config = ConfigDict(extra="allow")

    name: str = "default"
    app: AppIdentity = Field(default_factory=AppIdentity)
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Gateway root URL")
    api_version: Optional[str] = Field(
        default=None, description="API version path segment, e.g. '0.5'"
    )
    protocol: ProtocolVariant = ProtocolVariant.ENCRYPTED
    conf_file: Optional[str] = Field(
        default=None,
        description="Credential file path (defaults to the data directory)",
    )
    request: RequestConfig = Field(default_factory=RequestConfig)

    @property
    def api_url(self) -> str:
        """Base URL including the version segment, always ending in ``/``."""
        url = self.base_url.rstrip("/") + "/"
        if self.api_version:
            url += self.api_version.strip("/") + "/"
        return url

    @property
    def encrypted(self) -> bool:
        """Whether payloads pass through the secure channel."""
        return self.protocol == ProtocolVariant.ENCRYPTED


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/safenet/config.json``.

    See :func:`~safenet.config.resolve_config` for the precedence chain.
    """

    default_profile: Optional[str] = None
    auto_select_single_profile: bool = True
