"""Low-level HTTP transport to the gateway.

:class:`GatewayTransport` wraps :class:`httpx.Client` with the profile's
base URL and timeout, retries requests whose *connection* could not be
established, and maps network failures to
:class:`~safenet.exceptions.TransportError`. It knows nothing about
tokens or encryption; :class:`~safenet.auth.session.SessionManager` uses
it directly for ``/auth`` and :class:`~safenet.client.gateway.GatewayClient`
builds the authenticated primitive on top of it.

Requests that reached the gateway are never retried, whatever their
status: creating a handle twice would leak the first one.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Optional

import httpx

from safenet.exceptions import TransportError
from safenet.models import ClientConfig

logger = logging.getLogger(__name__)


class GatewayTransport:
    """Blocking HTTP transport bound to one gateway.

    Must be used as a context manager (or opened with :meth:`open`) so
    that the underlying connection pool is created and closed.

    Args:
        config: The profile holding ``api_url`` and request settings.
        http_transport: Optional httpx transport, e.g.
            :class:`httpx.MockTransport` in tests.

    Example::

        with GatewayTransport(config) as transport:
            response = transport.send("GET", "auth", headers={"Authorization": "Bearer t"})
    """

    def __init__(
        self,
        config: ClientConfig,
        http_transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._config = config
        self._http_transport = http_transport
        self._client: Optional[httpx.Client] = None

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def open(self) -> GatewayTransport:
        if self._client is None:
            self._client = httpx.Client(
                base_url=self._config.api_url,
                timeout=self._config.request.timeout,
                transport=self._http_transport,
            )
        return self

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def __enter__(self) -> GatewayTransport:
        return self.open()

    def __exit__(self, *args: object) -> None:
        self.close()

    @property
    def is_open(self) -> bool:
        return self._client is not None

    # ------------------------------------------------------------------ #
    # Sending
    # ------------------------------------------------------------------ #

    def send(
        self,
        method: str,
        path: str,
        headers: Optional[dict[str, str]] = None,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
        content: Optional[bytes | str] = None,
    ) -> httpx.Response:
        """Send one request, retrying only failed connection attempts.

        Args:
            method: HTTP method.
            path: Path relative to the profile's ``api_url``; may carry a
                pre-built query string.
            headers: Request headers.
            params: Query parameters.
            json_body: JSON-serialisable body.
            content: Raw body.

        Returns:
            The :class:`httpx.Response`, whatever its status.

        Raises:
            TransportError: When the gateway cannot be reached or the
                connection breaks mid-request.
        """
        assert self._client is not None, "Transport not open -- use as context manager"

        kwargs: dict[str, Any] = {"headers": headers or {}}
        if params:
            kwargs["params"] = params
        if json_body is not None:
            kwargs["json"] = json_body
        elif content is not None:
            kwargs["content"] = content

        max_retries = self._config.request.max_retries
        for attempt in range(max_retries + 1):
            try:
                return self._client.request(method, path, **kwargs)
            except (httpx.ConnectError, httpx.ConnectTimeout) as exc:
                if attempt < max_retries:
                    delay = 2 ** attempt
                    logger.debug(
                        "Connection to gateway failed (%s), retrying in %ds (attempt %d/%d)",
                        exc, delay, attempt + 1, max_retries,
                    )
                    time.sleep(delay)
                    continue
                raise TransportError(
                    f"Cannot reach gateway at {self._config.api_url} "
                    f"after {max_retries + 1} attempts: {exc}"
                ) from exc
            except httpx.HTTPError as exc:
                raise TransportError(f"{method} {path} failed: {exc}") from exc
        raise TransportError(f"{method} {path} failed")  # pragma: no cover
