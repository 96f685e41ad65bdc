"""Session acquisition, persistence and the secure channel."""

from safenet.auth.channel import SecureChannel, SymmetricCipher
from safenet.auth.credential_store import CredentialStore
from safenet.auth.key_exchange import KeyExchange, open_session_key
from safenet.auth.session import SessionManager, SessionState

__all__ = [
    "CredentialStore",
    "KeyExchange",
    "SecureChannel",
    "SessionManager",
    "SessionState",
    "SymmetricCipher",
    "open_session_key",
]
