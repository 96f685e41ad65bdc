"""Symmetric channel for the encrypted protocol.

:class:`SymmetricCipher` is a pure function of one session's key material.
:class:`SecureChannel` caches it and ties the cache to the
:class:`~safenet.auth.session.SessionManager` generation counter: whenever
the session is replaced by a new authorization the generation changes and
the next :meth:`~SecureChannel.encrypt` / :meth:`~SecureChannel.decrypt`
rebuilds the cipher from the new session.

Every message in a session is sealed with the same nonce, the one the
gateway handed out inside ``encryptedKey``. The gateway expects exactly
that; a per-message nonce would need a protocol change on both ends.
"""

from __future__ import annotations

import base64
import binascii
import logging
import threading
from typing import TYPE_CHECKING, Optional, Union

from nacl.exceptions import CryptoError
from nacl.secret import SecretBox

from safenet.auth.key_exchange import b64encode, open_session_key
from safenet.exceptions import DecryptionError
from safenet.models import Session

if TYPE_CHECKING:
    from safenet.auth.session import SessionManager

logger = logging.getLogger(__name__)


class SymmetricCipher:
    """Secretbox keyed by one session.

    Args:
        key: 32-byte symmetric key.
        nonce: 24-byte nonce used for every message of the session.
        generation: The session generation this cipher was derived from.
    """

    def __init__(self, key: bytes, nonce: bytes, generation: int = 0) -> None:
        self._box = SecretBox(key)
        self._nonce = nonce
        self.generation = generation

    @classmethod
    def from_session(cls, session: Session, generation: int = 0) -> SymmetricCipher:
        """Derive the cipher by opening the session's ``encryptedKey``.

        Raises:
            DecryptionError: If the key material cannot be opened.
        """
        key, nonce = open_session_key(session)
        return cls(key, nonce, generation)

    @property
    def nonce(self) -> bytes:
        return self._nonce

    def seal(self, plaintext: bytes) -> bytes:
        """Encrypt and authenticate *plaintext*, returning the bare ciphertext."""
        return self._box.encrypt(plaintext, self._nonce).ciphertext

    def open(self, ciphertext: bytes) -> bytes:
        """Verify and decrypt *ciphertext*.

        Raises:
            DecryptionError: If the ciphertext does not authenticate.
        """
        try:
            return self._box.decrypt(ciphertext, self._nonce)
        except CryptoError as exc:
            raise DecryptionError(
                "Payload failed authentication (tampered, or the session key is stale)"
            ) from exc


class SecureChannel:
    """Encrypts request bodies and decrypts responses for one client.

    The cipher is built lazily on first use and rebuilt whenever the
    session generation moves on.

    Args:
        sessions: The session manager owning the key material.
    """

    def __init__(self, sessions: SessionManager) -> None:
        self._sessions = sessions
        self._cipher: Optional[SymmetricCipher] = None
        self._lock = threading.Lock()

    def cipher(self) -> SymmetricCipher:
        """Return the cipher for the current session, deriving it if needed.

        Authorizes first when no session exists at all.
        """
        session, generation = self._sessions.snapshot()
        if session is None:
            self._sessions.get_valid_token()
            session, generation = self._sessions.snapshot()
        assert session is not None

        with self._lock:
            if self._cipher is None or self._cipher.generation != generation:
                logger.debug("Deriving symmetric cipher for session generation %d", generation)
                self._cipher = SymmetricCipher.from_session(session, generation)
            return self._cipher

    def invalidate(self) -> None:
        """Drop the cached cipher."""
        with self._lock:
            self._cipher = None

    def encrypt(self, plaintext: Union[bytes, str]) -> str:
        """Seal *plaintext* and return it as base64 text."""
        if isinstance(plaintext, str):
            plaintext = plaintext.encode("utf-8")
        return b64encode(self.cipher().seal(plaintext))

    def decrypt(self, message: Union[bytes, str]) -> bytes:
        """Decode base64 *message* and open it.

        Raises:
            DecryptionError: On invalid base64 or failed authentication.
        """
        if isinstance(message, str):
            message = message.encode("ascii", errors="replace")
        try:
            ciphertext = base64.b64decode(message.strip(), validate=True)
        except (binascii.Error, ValueError) as exc:
            raise DecryptionError("Encrypted payload is not valid base64") from exc
        return self.cipher().open(ciphertext)
