"""Ephemeral key agreement for the encrypted protocol.

Every authorization attempt in the encrypted protocol generates a fresh
Curve25519 key pair and a 24-byte nonce. The public key and nonce travel
with the ``POST /auth`` body; the gateway answers with its own public key
and ``encryptedKey``, a NaCl box sealed to our key pair with our nonce.
Opening that box yields exactly::

    symmetric_key (32 bytes) || symmetric_nonce (24 bytes)

which seeds the :class:`~safenet.auth.channel.SymmetricCipher`.

The private key and nonce are persisted next to the gateway's response so
that a restarted process can open the box again without re-authorizing.

Security Architecture:
- Key agreement: NaCl Box (Curve25519 + XSalsa20 + Poly1305)
- Channel: NaCl SecretBox (XSalsa20 + Poly1305) with the per-session nonce
"""

from __future__ import annotations

import base64
import binascii
from typing import Optional

from nacl.encoding import Base64Encoder
from nacl.exceptions import CryptoError
from nacl.public import Box, PrivateKey, PublicKey
from nacl.secret import SecretBox
from nacl.utils import random as random_bytes

from safenet.exceptions import DecryptionError
from safenet.models import Session

NONCE_SIZE = Box.NONCE_SIZE
SYMMETRIC_KEY_SIZE = SecretBox.KEY_SIZE
SYMMETRIC_NONCE_SIZE = SecretBox.NONCE_SIZE


def b64encode(data: bytes) -> str:
    """Strict base64 text for *data*."""
    return base64.b64encode(data).decode("ascii")


def b64decode(value: Optional[str], field: str) -> bytes:
    """Decode a strict base64 session field, raising :class:`DecryptionError`."""
    if not value:
        raise DecryptionError(f"Session is missing '{field}'")
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise DecryptionError(f"Session field '{field}' is not valid base64") from exc


class KeyExchange:
    """One authorization attempt's local secrets.

    Args:
        private_key: The ephemeral Curve25519 private key.
        nonce: The 24-byte nonce the gateway must use to seal ``encryptedKey``.
    """

    def __init__(self, private_key: PrivateKey, nonce: bytes) -> None:
        if len(nonce) != NONCE_SIZE:
            raise ValueError(f"nonce must be {NONCE_SIZE} bytes, got {len(nonce)}")
        self._private_key = private_key
        self._nonce = nonce

    @classmethod
    def generate(cls) -> KeyExchange:
        """Create a fresh key pair and nonce. Never reuse across attempts."""
        return cls(PrivateKey.generate(), random_bytes(NONCE_SIZE))

    @property
    def public_key(self) -> PublicKey:
        return self._private_key.public_key

    @property
    def nonce(self) -> bytes:
        return self._nonce

    def auth_fields(self) -> dict[str, str]:
        """Fields added to the ``POST /auth`` body."""
        return {
            "publicKey": self.public_key.encode(encoder=Base64Encoder).decode("ascii"),
            "nonce": b64encode(self._nonce),
        }

    def secrets(self) -> dict[str, str]:
        """Local secrets merged into the persisted session after a 200."""
        return {
            "nonce": b64encode(self._nonce),
            "privateKey": self._private_key.encode(encoder=Base64Encoder).decode("ascii"),
        }


def open_session_key(session: Session) -> tuple[bytes, bytes]:
    """Open the gateway's ``encryptedKey`` box.

    Args:
        session: A complete encrypted-protocol session.

    Returns:
        ``(symmetric_key, symmetric_nonce)``.

    Raises:
        DecryptionError: If any field is missing or malformed, the box does
            not authenticate, or the plaintext has the wrong length.
    """
    cipher_text = b64decode(session.encrypted_key, "encryptedKey")
    nonce = b64decode(session.nonce, "nonce")
    private_key = b64decode(session.private_key, "privateKey")
    gateway_key = b64decode(session.public_key, "publicKey")

    try:
        box = Box(PrivateKey(private_key), PublicKey(gateway_key))
        data = box.decrypt(cipher_text, nonce)
    except (CryptoError, ValueError, TypeError) as exc:
        raise DecryptionError(f"Cannot open the session key: {exc}") from exc

    expected = SYMMETRIC_KEY_SIZE + SYMMETRIC_NONCE_SIZE
    if len(data) != expected:
        raise DecryptionError(
            f"Session key material is {len(data)} bytes, expected {expected}"
        )
    return data[:SYMMETRIC_KEY_SIZE], data[SYMMETRIC_KEY_SIZE:]
