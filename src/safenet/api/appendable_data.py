"""Appendable-data handles (``appendable-data``).

Appendable data is a list of data ids that anyone permitted by its filter
can append to.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Iterable, Union

from safenet.api.base import ApiBase, b64, segment
from safenet.exceptions import InvalidUsageError
from safenet.handles import HandleKind, returns_failure, unwrap
from safenet.models import GatewayFailure

if TYPE_CHECKING:
    from safenet.api.data_id import DataIdApi
    from safenet.client.gateway import GatewayClient

FILTER_TYPES = ("BLACK_LIST", "WHITE_LIST")


class AppendableDataApi(ApiBase):
    """Create, inspect, append to and drop appendable-data handles."""

    def __init__(self, gateway: GatewayClient, data_id: DataIdApi) -> None:
        super().__init__(gateway)
        self._data_id = data_id
        self.kind = HandleKind(gateway, "appendable-data", "appendable-data/handle/{}")

    def create(
        self,
        name: Union[str, bytes],
        is_private: bool = False,
        filter_type: str = "BLACK_LIST",
        filter_keys: Iterable[str] = (),
    ) -> Union[int, GatewayFailure]:
        """Create a new, unsaved appendable data and return its handle.

        Raises:
            InvalidUsageError: For an unknown *filter_type*.
        """
        if filter_type not in FILTER_TYPES:
            raise InvalidUsageError(
                f"Unknown filter type '{filter_type}'. Choose from: {', '.join(FILTER_TYPES)}"
            )
        body = {
            "name": b64(name),
            "isPrivate": is_private,
            "filterType": filter_type,
            "filterKey": list(filter_keys),
        }
        return self._handle(self._gateway.post("appendable-data", body))

    def get_handle(self, data_id_handle: int) -> Union[int, GatewayFailure]:
        return self._handle(self._gateway.get(f"appendable-data/handle/{segment(data_id_handle)}"))

    def get_metadata(self, handle: int) -> Union[dict[str, Any], GatewayFailure]:
        """Return ``{isOwner, version, filterType, dataLength, deletedDataLength}``."""
        return self._data(self._gateway.get(f"appendable-data/metadata/{segment(handle)}"))

    def save(self, handle: int) -> Union[bool, GatewayFailure]:
        return self._ok(self._gateway.put(f"appendable-data/{segment(handle)}"))

    def append(self, handle: int, data_id_handle: int) -> Union[bool, GatewayFailure]:
        path = f"appendable-data/{segment(handle)}/{segment(data_id_handle)}"
        return self._ok(self._gateway.put(path))

    def get_data_id_at(self, handle: int, index: int) -> Union[int, GatewayFailure]:
        """Acquire a data-id handle for the entry at *index*."""
        return self._handle(self._gateway.get(f"appendable-data/{segment(handle)}/{segment(index)}"))

    def drop_handle(self, handle: int) -> Union[bool, GatewayFailure]:
        return self.kind.release(handle)

    @returns_failure
    def read_metadata(
        self, name: Union[str, bytes], is_private: bool = False,
    ) -> Union[dict[str, Any], GatewayFailure]:
        """Metadata of the appendable data called *name*, dropping every handle."""
        with self._data_id.kind.hold(self._data_id.get_appendable_data_handle(name, is_private)) as did:
            with self.kind.hold(self.get_handle(did)) as handle:
                return unwrap(self.get_metadata(handle))
