"""Shared plumbing for the endpoint wrappers.

Every wrapper method returns either a plain value or the
:class:`~safenet.models.GatewayFailure` the gateway reported. The helpers
here do the value extraction so that each wrapper stays a one-liner over
:meth:`~safenet.client.gateway.GatewayClient.request`.
"""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Any, Union
from urllib.parse import quote

from safenet.client.response import GatewayResponse
from safenet.handles import handle_id
from safenet.models import GatewayFailure

if TYPE_CHECKING:
    from safenet.client.gateway import GatewayClient, Result


def segment(value: Any) -> str:
    """Percent-encode *value* as a single path segment (``/`` included)."""
    return quote(str(value), safe="")


def flag(value: bool) -> str:
    """Render a boolean path segment."""
    return "true" if value else "false"


def b64(value: Union[str, bytes]) -> str:
    if isinstance(value, str):
        value = value.encode("utf-8")
    return base64.b64encode(value).decode("ascii")


class ApiBase:
    """Base for the endpoint wrappers.

    Args:
        gateway: The request primitive all calls go through.
    """

    def __init__(self, gateway: GatewayClient) -> None:
        self._gateway = gateway

    @staticmethod
    def _handle(result: Result) -> Union[int, GatewayFailure]:
        if isinstance(result, GatewayFailure):
            return result
        return handle_id(result)

    @staticmethod
    def _ok(result: Result) -> Union[bool, GatewayFailure]:
        if isinstance(result, GatewayFailure):
            return result
        return True

    @staticmethod
    def _content(result: Result) -> Union[bytes, GatewayFailure]:
        if isinstance(result, GatewayFailure):
            return result
        return result.content

    @staticmethod
    def _data(result: Result) -> Any:
        if isinstance(result, GatewayFailure):
            return result
        assert isinstance(result, GatewayResponse)
        return result.data()
