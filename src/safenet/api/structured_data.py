"""Structured-data handles (``structured-data``).

Structured data is a small, mutable, versioned record addressed by a name
and a type tag. Reading one takes two handles (data id, structured data)
that must all be dropped afterwards; :meth:`StructuredDataApi.read_record`
and :meth:`StructuredDataApi.write_record` do the whole dance in one call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Union

from safenet.api.base import ApiBase, b64, segment
from safenet.handles import HandleKind, returns_failure, unwrap
from safenet.models import GatewayFailure

if TYPE_CHECKING:
    from safenet.api.data_id import DataIdApi
    from safenet.client.gateway import GatewayClient

DEFAULT_TYPE_TAG = 500


class StructuredDataApi(ApiBase):
    """Create, read, update and drop structured-data handles.

    Args:
        gateway: The request primitive.
        data_id: Data-id API used by the composite helpers.
    """

    def __init__(self, gateway: GatewayClient, data_id: DataIdApi) -> None:
        super().__init__(gateway)
        self._data_id = data_id
        self.kind = HandleKind(gateway, "structured-data", "structured-data/handle/{}")

    # ------------------------------------------------------------------ #
    # Handle operations
    # ------------------------------------------------------------------ #

    def create(
        self,
        name: Union[str, bytes],
        type_tag: int,
        data: bytes,
        cipher_opts_handle: Optional[int] = None,
    ) -> Union[int, GatewayFailure]:
        """Create a new, unsaved structured data and return its handle."""
        body = {"name": b64(name), "typeTag": type_tag, "data": b64(data)}
        if cipher_opts_handle is not None:
            body["cipherOpts"] = cipher_opts_handle
        return self._handle(self._gateway.post("structured-data", body))

    def get_handle(self, data_id_handle: int) -> Union[int, GatewayFailure]:
        return self._handle(self._gateway.get(f"structured-data/handle/{segment(data_id_handle)}"))

    def read(self, handle: int, version: Optional[int] = None) -> Union[bytes, GatewayFailure]:
        """Read the record's data, optionally at an older *version*."""
        path = f"structured-data/{segment(handle)}"
        if version is not None:
            path += f"/{segment(version)}"
        return self._content(self._gateway.get(path))

    def update(
        self, handle: int, data: bytes, cipher_opts_handle: Optional[int] = None,
    ) -> Union[bool, GatewayFailure]:
        body = {"data": b64(data)}
        if cipher_opts_handle is not None:
            body["cipherOpts"] = cipher_opts_handle
        return self._ok(self._gateway.patch(f"structured-data/{segment(handle)}", body))

    def save(self, handle: int) -> Union[bool, GatewayFailure]:
        """Put the record (created or updated) on the network."""
        return self._ok(self._gateway.put(f"structured-data/{segment(handle)}"))

    def get_data_id_handle(self, handle: int) -> Union[int, GatewayFailure]:
        return self._handle(self._gateway.get(f"structured-data/data-id/{segment(handle)}"))

    def drop_handle(self, handle: int) -> Union[bool, GatewayFailure]:
        return self.kind.release(handle)

    # ------------------------------------------------------------------ #
    # Composites
    # ------------------------------------------------------------------ #

    @returns_failure
    def read_record(
        self, name: Union[str, bytes], type_tag: int = DEFAULT_TYPE_TAG,
    ) -> Union[bytes, GatewayFailure]:
        """Read the structured data called *name*, dropping every handle.

        Example::

            data = client.structured_data.read_record("profile")
            if isinstance(data, GatewayFailure):
                ...
        """
        with self._data_id.kind.hold(self._data_id.get_structured_data_handle(name, type_tag)) as did:
            with self.kind.hold(self.get_handle(did)) as handle:
                return unwrap(self.read(handle))

    @returns_failure
    def write_record(
        self, name: Union[str, bytes], data: bytes, type_tag: int = DEFAULT_TYPE_TAG,
    ) -> Union[bool, GatewayFailure]:
        """Create or overwrite the structured data called *name*.

        Only a not-found failure leads to a create; any other failure from
        the lookup is returned unchanged.
        """
        with self._data_id.kind.hold(self._data_id.get_structured_data_handle(name, type_tag)) as did:
            existing = self.get_handle(did)
            if isinstance(existing, GatewayFailure):
                if not existing.is_not_found:
                    return existing
                with self.kind.hold(self.create(name, type_tag, data)) as handle:
                    return unwrap(self.save(handle))
            with self.kind.hold(existing) as handle:
                unwrap(self.update(handle, data))
                return unwrap(self.save(handle))
