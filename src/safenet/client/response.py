"""Decoded gateway responses.

:class:`GatewayResponse` is what :class:`~safenet.client.gateway.GatewayClient`
returns for HTTP 200: the status and headers of the underlying
:class:`httpx.Response` plus the body *after* channel decryption.
:func:`failure_from_body` turns the body of any other status into a
:class:`~safenet.models.GatewayFailure`.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from safenet.models import GatewayFailure


class GatewayResponse:
    """A successful (HTTP 200) gateway response with a plaintext body.

    Args:
        response: The raw :class:`httpx.Response`.
        content: The body bytes, already decrypted when the channel is active.
    """

    def __init__(self, response: httpx.Response, content: bytes) -> None:
        self.status_code = response.status_code
        self.headers = response.headers
        self.content = content

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")

    def json(self) -> Any:
        """Parse the body as JSON."""
        return json.loads(self.content)

    def data(self) -> Any:
        """Return the body as JSON when it parses, else as text; ``None`` if empty."""
        if not self.content:
            return None
        try:
            return self.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            return self.text

    def __repr__(self) -> str:
        return f"<GatewayResponse [{self.status_code}] {len(self.content)} bytes>"


def parse_json(content: bytes) -> Optional[Any]:
    """Parse *content* as JSON, returning ``None`` when it is not JSON."""
    if not content:
        return None
    try:
        return json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def failure_from_body(response: httpx.Response, content: bytes) -> GatewayFailure:
    """Build the typed failure for a non-200 response.

    Args:
        response: The raw response (for status and reason phrase).
        content: The plaintext body.
    """
    payload = parse_json(content)
    fallback = response.reason_phrase or ""
    if payload is None and content:
        fallback = content.decode("utf-8", errors="replace")[:200]
    return GatewayFailure.from_payload(payload, response.status_code, fallback=fallback)
