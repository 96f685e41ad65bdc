"""The authenticated request primitive.

Every endpoint wrapper in :mod:`safenet.api` goes through
:meth:`GatewayClient.request`, which

1. obtains a valid bearer token from the
   :class:`~safenet.auth.session.SessionManager`,
2. in the encrypted protocol, seals the body and the query string through
   the :class:`~safenet.auth.channel.SecureChannel`,
3. sends the request over the :class:`~safenet.client.transport.GatewayTransport`,
4. opens the response body, and
5. returns a :class:`~safenet.client.response.GatewayResponse` for 200 or a
   :class:`~safenet.models.GatewayFailure` for anything else.

Failures the gateway reports are *returned*. Only a broken client raises:
:class:`~safenet.exceptions.DecryptionError` and
:class:`~safenet.exceptions.TransportError` propagate to the caller.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any, Optional, Union
from urllib.parse import urlencode

from safenet.client.response import GatewayResponse, failure_from_body, parse_json
from safenet.exceptions import AuthDeniedError, DecryptionError
from safenet.models import AuthDenied, GatewayFailure

if TYPE_CHECKING:
    from safenet.auth.channel import SecureChannel
    from safenet.auth.session import SessionManager
    from safenet.client.transport import GatewayTransport

logger = logging.getLogger(__name__)

Result = Union[GatewayResponse, GatewayFailure]


def _serialise(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode("utf-8")
    return json.dumps(value).encode("utf-8")


class GatewayClient:
    """Sends authenticated, optionally encrypted requests to the gateway.

    Args:
        transport: An open :class:`GatewayTransport`.
        sessions: The session manager that issues bearer tokens.
        channel: The secure channel; ``None`` selects the plain protocol.

    Example::

        result = gateway.get("nfs/directory/%2Fphotos/false")
        if isinstance(result, GatewayFailure):
            print(result.description)
        else:
            print(result.json())
    """

    def __init__(
        self,
        transport: GatewayTransport,
        sessions: SessionManager,
        channel: Optional[SecureChannel] = None,
    ) -> None:
        self._transport = transport
        self._sessions = sessions
        self._channel = channel

    @property
    def encrypted(self) -> bool:
        return self._channel is not None

    @property
    def channel(self) -> Optional[SecureChannel]:
        return self._channel

    # ------------------------------------------------------------------ #
    # Request primitive
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        body: Any = None,
        *,
        json_body: Any = None,
        encrypt: bool = True,
        authenticated: bool = True,
        decrypt_response: Optional[bool] = None,
    ) -> Result:
        """Send one request and decode its response.

        Args:
            method: HTTP method.
            path: Path relative to the gateway's API root, already
                percent-encoded.
            params: Query parameters. In the encrypted protocol they are
                url-encoded, sealed and sent as the raw query string.
            body: Request body: ``bytes``, ``str``, or anything JSON
                serialisable.
            json_body: Explicit JSON body; takes precedence over *body*.
            encrypt: Pass body and query through the channel. Ignored in
                the plain protocol.
            authenticated: Attach ``Authorization: Bearer <token>``.
            decrypt_response: Open the response body. Defaults to
                ``encrypt and authenticated``; the gateway answers
                unauthenticated requests in the clear.

        Returns:
            :class:`GatewayResponse` for HTTP 200, otherwise the
            :class:`GatewayFailure` parsed from the body. :class:`AuthDenied`
            when no session could be established.

        Raises:
            DecryptionError: If a 200 payload fails authentication. Error
                bodies that do not open are reported as plain text.
            TransportError: If the gateway cannot be reached.
        """
        headers: dict[str, str] = {}
        if authenticated:
            try:
                token = self._sessions.get_valid_token()
            except AuthDeniedError as exc:
                logger.warning("No session for %s %s: %s", method, path, exc)
                status = exc.status_code or 0
                return AuthDenied(error_code=status, description=str(exc), status_code=exc.status_code)
            headers["Authorization"] = f"Bearer {token}"

        sealed = encrypt and self._channel is not None
        if decrypt_response is None:
            decrypt_response = sealed and authenticated
        payload = json_body if json_body is not None else body

        send_kwargs: dict[str, Any] = {}
        if sealed:
            assert self._channel is not None
            if params:
                path = f"{path}?{self._channel.encrypt(urlencode(params))}"
            if payload is not None:
                send_kwargs["content"] = self._channel.encrypt(_serialise(payload))
                headers["Content-Type"] = "text/plain"
        else:
            if params:
                send_kwargs["params"] = params
            if isinstance(payload, bytes):
                send_kwargs["content"] = payload
                headers["Content-Type"] = "application/octet-stream"
            elif isinstance(payload, str):
                send_kwargs["content"] = payload
                headers["Content-Type"] = "text/plain"
            elif payload is not None:
                send_kwargs["json_body"] = payload

        logger.debug("%s %s (encrypted=%s)", method, path.split("?", 1)[0], sealed)
        response = self._transport.send(method, path, headers=headers, **send_kwargs)
        content = response.content

        if response.status_code == 200:
            if decrypt_response and content:
                content = self._open(content)
            return GatewayResponse(response, content)

        if response.status_code == 401 and authenticated:
            logger.info("Gateway rejected the token for %s %s", method, path.split("?", 1)[0])
            self._sessions.mark_stale()
        if decrypt_response and content and parse_json(content) is None:
            try:
                content = self._open(content)
            except DecryptionError:
                # Error pages from proxies arrive in the clear.
                logger.debug("Error body for %s %s is not sealed", method, path.split("?", 1)[0])
        failure = failure_from_body(response, content)
        logger.debug(
            "%s %s failed: HTTP %d errorCode %d", method, path.split("?", 1)[0],
            response.status_code, failure.error_code,
        )
        return failure

    def _open(self, content: bytes) -> bytes:
        assert self._channel is not None
        return self._channel.decrypt(content)

    # ------------------------------------------------------------------ #
    # Convenience verbs
    # ------------------------------------------------------------------ #

    def get(self, path: str, params: Optional[dict[str, Any]] = None, **kwargs: Any) -> Result:
        return self.request("GET", path, params=params, **kwargs)

    def post(self, path: str, body: Any = None, **kwargs: Any) -> Result:
        return self.request("POST", path, body=body, **kwargs)

    def put(self, path: str, body: Any = None, **kwargs: Any) -> Result:
        return self.request("PUT", path, body=body, **kwargs)

    def patch(self, path: str, body: Any = None, **kwargs: Any) -> Result:
        return self.request("PATCH", path, body=body, **kwargs)

    def delete(self, path: str, **kwargs: Any) -> Result:
        return self.request("DELETE", path, **kwargs)
