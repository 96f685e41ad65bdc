"""Session manager -- the authentication state machine.

:class:`SessionManager` owns the one :class:`~safenet.models.Session` of a
client: it authorizes against the gateway, persists the result through a
:class:`~safenet.auth.credential_store.CredentialStore`, probes token
validity lazily, re-authorizes when the probe fails, and revokes.

States (:class:`SessionState`)::

    NoSession --get_valid_token--> Authorizing --200--> Authorized
    Authorizing --non-200--> NoSession         (AuthDeniedError to the caller)
    Authorized --probe fails--> Stale --> Authorizing

There is no background refresh: staleness is discovered on demand, by the
``GET /auth`` probe or by a 401 reported through :meth:`mark_stale`.

Every successful authorization bumps :attr:`SessionManager.generation`;
:class:`~safenet.auth.channel.SecureChannel` rebuilds its cipher when the
generation it cached differs.

The probe/authorize section is serialized by a re-entrant lock. Concurrent
callers that observe a stale session wait for the one authorization in
flight and then reuse its result instead of prompting the user again.
"""

from __future__ import annotations

import enum
import logging
import threading
from typing import TYPE_CHECKING, Any, Optional

from safenet.auth.credential_store import CredentialStore
from safenet.auth.key_exchange import KeyExchange, open_session_key
from safenet.exceptions import AuthDeniedError, DecryptionError, ProtocolError, TokenInvalidError
from safenet.models import AppIdentity, ProtocolVariant, Session

if TYPE_CHECKING:
    from safenet.client.transport import GatewayTransport

logger = logging.getLogger(__name__)

AUTH_PATH = "auth"


class SessionState(str, enum.Enum):
    """Where the authentication state machine currently is."""

    NO_SESSION = "NoSession"
    AUTHORIZING = "Authorizing"
    AUTHORIZED = "Authorized"
    STALE = "Stale"


class SessionManager:
    """Acquire, validate, refresh and revoke the client's session.

    Args:
        identity: The application identity sent with every authorization.
        store: Where the session is persisted.
        transport: Unauthenticated transport to the gateway.
        protocol: Whether the session must carry key material.

    Example::

        sessions = SessionManager(AppIdentity(), CredentialStore(path), transport)
        token = sessions.get_valid_token()
    """

    def __init__(
        self,
        identity: AppIdentity,
        store: CredentialStore,
        transport: GatewayTransport,
        protocol: ProtocolVariant = ProtocolVariant.ENCRYPTED,
    ) -> None:
        self._identity = identity
        self._store = store
        self._transport = transport
        self._protocol = protocol
        self._lock = threading.RLock()
        self._session: Optional[Session] = None
        self._generation = 0
        self._validated_generation: Optional[int] = None
        self._state = SessionState.NO_SESSION
        self._last_denial: Optional[int] = None

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    @property
    def identity(self) -> AppIdentity:
        return self._identity

    @property
    def store(self) -> CredentialStore:
        return self._store

    @property
    def encrypted(self) -> bool:
        return self._protocol == ProtocolVariant.ENCRYPTED

    @property
    def generation(self) -> int:
        """Counter bumped every time the session is replaced."""
        return self._generation

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def last_denial_status(self) -> Optional[int]:
        """HTTP status of the most recent declined authorization, if any."""
        return self._last_denial

    def current_session(self) -> Optional[Session]:
        """Return the in-memory session, falling back to the persisted one."""
        return self.snapshot()[0]

    def snapshot(self) -> tuple[Optional[Session], int]:
        """Return ``(session, generation)`` read under the lock."""
        with self._lock:
            if self._session is None:
                stored = self._store.load()
                if stored is not None and not stored.is_complete(self.encrypted):
                    logger.warning(
                        "Credential file %s lacks key material for the %s protocol; ignoring it",
                        self._store.path, self._protocol.value,
                    )
                elif stored is not None:
                    try:
                        self._check_key_material(stored)
                    except DecryptionError as exc:
                        logger.warning("Credential file %s is unusable (%s); ignoring it", self._store.path, exc)
                    else:
                        self._adopt(stored)
            return self._session, self._generation

    # ------------------------------------------------------------------ #
    # Tokens
    # ------------------------------------------------------------------ #

    def get_token(self) -> str:
        """Return a token without checking its freshness.

        Authorizes when no session exists yet.

        Raises:
            AuthDeniedError: If that authorization is declined.
        """
        session = self.current_session()
        if session is None:
            session = self._authorize_or_raise(stale=False)
        return session.token

    def get_valid_token(self) -> str:
        """Return a token the gateway currently accepts.

        Authorizes when there is no session; otherwise probes ``GET /auth``
        once per session generation and re-authorizes if the probe fails.
        A session that was already validated is not probed again until
        :meth:`mark_stale` is called.

        Raises:
            AuthDeniedError: If authorization is declined.
            TokenInvalidError: If the token went stale and re-authorization
                was declined.
        """
        with self._lock:
            session = self.current_session()
            if session is None:
                self._authorize_or_raise(stale=False)
            elif self._validated_generation != self._generation:
                if self.is_token_valid():
                    self._validated_generation = self._generation
                    self._state = SessionState.AUTHORIZED
                else:
                    logger.info("Session token is no longer valid; re-authorizing")
                    self._state = SessionState.STALE
                    self._authorize_or_raise(stale=True)
            session = self.current_session()
            assert session is not None
            return session.token

    def mark_stale(self) -> None:
        """Force the next :meth:`get_valid_token` to probe the token again."""
        with self._lock:
            if self._session is not None:
                self._validated_generation = None
                self._state = SessionState.STALE

    def is_token_valid(self) -> bool:
        """Probe the gateway with ``GET /auth``; 200 means valid."""
        token = self.get_token()
        response = self._transport.send(
            "GET", AUTH_PATH, headers={"Authorization": f"Bearer {token}"},
        )
        logger.debug("Token validity probe returned HTTP %d", response.status_code)
        return response.status_code == 200

    # ------------------------------------------------------------------ #
    # Authorization
    # ------------------------------------------------------------------ #

    def authorize(self) -> Optional[Session]:
        """Ask the gateway (and through it, the user) for a new session.

        Sends one ``POST /auth`` whose body carries the app identity and,
        in the encrypted protocol, a fresh public key and nonce.

        Returns:
            The new, persisted :class:`~safenet.models.Session`, or
            ``None`` if the gateway answered with anything but 200.

        Raises:
            ProtocolError: If a 200 response lacks the token or, in the
                encrypted protocol, key material that opens with the local
                private key. Nothing is persisted in that case.
        """
        with self._lock:
            previous = self._state
            self._state = SessionState.AUTHORIZING

            payload: dict[str, Any] = self._identity.to_auth_payload()
            exchange: Optional[KeyExchange] = None
            if self.encrypted:
                exchange = KeyExchange.generate()
                payload.update(exchange.auth_fields())

            logger.info("Requesting authorization for %s (%s)", self._identity.name, self._identity.id)
            try:
                response = self._transport.send("POST", AUTH_PATH, json_body=payload)
            except BaseException:
                self._state = previous
                raise

            if response.status_code != 200:
                logger.warning("Authorization declined: HTTP %d", response.status_code)
                self._last_denial = response.status_code
                self._state = SessionState.NO_SESSION if self._session is None else SessionState.STALE
                return None

            try:
                record = dict(response.json())
            except (ValueError, TypeError) as exc:
                self._state = previous
                raise ProtocolError(f"Authorization response is not a JSON object: {exc}") from exc
            if exchange is not None:
                record.update(exchange.secrets())

            try:
                session = Session.model_validate(record)
            except ValueError as exc:
                self._state = previous
                raise ProtocolError(f"Authorization response has no token: {exc}") from exc
            if not session.is_complete(self.encrypted):
                self._state = previous
                raise ProtocolError("Authorization response lacks the encrypted session key")
            try:
                self._check_key_material(session)
            except DecryptionError as exc:
                self._state = previous
                raise ProtocolError(f"Authorization response carries an unusable session key: {exc}") from exc

            self._store.save(session)
            self._adopt(session)
            self._validated_generation = self._generation
            self._last_denial = None
            logger.info("Authorized; session generation %d", self._generation)
            return session

    def revoke(self) -> bool:
        """Revoke the current token with ``DELETE /auth``.

        The persisted session is left alone; call :meth:`forget` to remove
        it as well.

        Returns:
            ``True`` if the gateway answered 200.
        """
        token = self.get_valid_token()
        response = self._transport.send(
            "DELETE", AUTH_PATH, headers={"Authorization": f"Bearer {token}"},
        )
        if response.status_code == 200:
            self.mark_stale()
            return True
        logger.warning("Token revocation failed: HTTP %d", response.status_code)
        return False

    def forget(self) -> None:
        """Drop the in-memory session and delete the credential file."""
        with self._lock:
            self._store.clear()
            self._session = None
            self._validated_generation = None
            self._generation += 1
            self._state = SessionState.NO_SESSION

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _adopt(self, session: Session) -> None:
        """Install *session* as current and start a new generation."""
        self._session = session
        self._generation += 1
        self._state = SessionState.AUTHORIZED

    def _check_key_material(self, session: Session) -> None:
        """Raise DecryptionError unless *session*'s encrypted key opens."""
        if self.encrypted:
            open_session_key(session)

    def _authorize_or_raise(self, stale: bool) -> Session:
        """Authorize, turning a denial into the matching exception."""
        generation = self._generation
        with self._lock:
            # Another caller may have authorized while we waited for the lock.
            if self._generation != generation and self._session is not None:
                return self._session
            session = self.authorize()
        if session is None:
            status = self._last_denial
            if stale:
                raise TokenInvalidError(
                    f"Session token is no longer valid and re-authorization was declined (HTTP {status})",
                    status_code=status,
                )
            raise AuthDeniedError(f"Authorization was declined (HTTP {status})", status_code=status)
        return session
