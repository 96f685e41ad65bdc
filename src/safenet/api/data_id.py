"""Data-identifier handles (``data-id``).

A data id names a piece of data on the network. It can be derived from a
structured or appendable data name, serialised to bytes to be shared, and
deserialised again in another session.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

from safenet.api.base import ApiBase, b64, segment
from safenet.handles import HandleKind
from safenet.models import GatewayFailure

if TYPE_CHECKING:
    from safenet.client.gateway import GatewayClient


class DataIdApi(ApiBase):
    """Acquire, (de)serialise and drop data-id handles."""

    def __init__(self, gateway: GatewayClient) -> None:
        super().__init__(gateway)
        self.kind = HandleKind(gateway, "data-id", "data-id/{}")

    def get_structured_data_handle(
        self, name: Union[str, bytes], type_tag: int,
    ) -> Union[int, GatewayFailure]:
        """Data id of the structured data called *name* with *type_tag*."""
        body = {"name": b64(name), "typeTag": type_tag}
        return self._handle(self._gateway.post("data-id/structured-data", body))

    def get_appendable_data_handle(
        self, name: Union[str, bytes], is_private: bool = False,
    ) -> Union[int, GatewayFailure]:
        """Data id of the appendable data called *name*."""
        body = {"name": b64(name), "isPrivate": is_private}
        return self._handle(self._gateway.post("data-id/appendable-data", body))

    def serialise(self, handle: int) -> Union[bytes, GatewayFailure]:
        return self._content(self._gateway.get(f"data-id/{segment(handle)}"))

    def deserialise(self, data: bytes) -> Union[int, GatewayFailure]:
        return self._handle(self._gateway.post("data-id", data))

    def drop_handle(self, handle: int) -> Union[bool, GatewayFailure]:
        return self.kind.release(handle)
