"""Immutable-data readers and writers (``immutable-data``).

Immutable data is written once through a writer handle; closing the
writer with a cipher-options handle yields the data id of the stored
blob. Reading goes through a reader handle opened from that data id.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Union

from safenet.api.base import ApiBase, segment
from safenet.handles import HandleKind, returns_failure, unwrap
from safenet.models import GatewayFailure

if TYPE_CHECKING:
    from safenet.api.cipher import CipherOptsApi
    from safenet.api.data_id import DataIdApi
    from safenet.client.gateway import GatewayClient


class ImmutableDataApi(ApiBase):
    """Writer and reader handles for immutable data.

    Args:
        gateway: The request primitive.
        data_id: Data-id API, for the ids :meth:`close_writer` returns.
        cipher: Cipher-options API, used by :meth:`write_blob`.
    """

    def __init__(self, gateway: GatewayClient, data_id: DataIdApi, cipher: CipherOptsApi) -> None:
        super().__init__(gateway)
        self._data_id = data_id
        self._cipher = cipher
        self.writers = HandleKind(gateway, "immutable-data writer", "immutable-data/writer/{}")
        self.readers = HandleKind(gateway, "immutable-data reader", "immutable-data/reader/{}")

    # ------------------------------------------------------------------ #
    # Writers
    # ------------------------------------------------------------------ #

    def get_writer_handle(self) -> Union[int, GatewayFailure]:
        return self._handle(self._gateway.get("immutable-data/writer"))

    def write(self, handle: int, data: bytes) -> Union[bool, GatewayFailure]:
        return self._ok(self._gateway.post(f"immutable-data/{segment(handle)}", data))

    def close_writer(self, handle: int, cipher_opts_handle: int) -> Union[int, GatewayFailure]:
        """Store what was written and acquire the resulting data-id handle."""
        path = f"immutable-data/{segment(handle)}/{segment(cipher_opts_handle)}"
        return self._handle(self._gateway.put(path))

    def drop_writer_handle(self, handle: int) -> Union[bool, GatewayFailure]:
        return self.writers.release(handle)

    # ------------------------------------------------------------------ #
    # Readers
    # ------------------------------------------------------------------ #

    def get_reader_handle(self, data_id_handle: int) -> Union[int, GatewayFailure]:
        return self._handle(self._gateway.get(f"immutable-data/reader/{segment(data_id_handle)}"))

    def read(self, handle: int) -> Union[bytes, GatewayFailure]:
        return self._content(self._gateway.get(f"immutable-data/{segment(handle)}"))

    def drop_reader_handle(self, handle: int) -> Union[bool, GatewayFailure]:
        return self.readers.release(handle)

    # ------------------------------------------------------------------ #
    # Composites
    # ------------------------------------------------------------------ #

    @returns_failure
    def write_blob(self, data: bytes, enc_type: str = "PLAIN") -> Union[bytes, GatewayFailure]:
        """Store *data* and return its serialised data id.

        Three handles are acquired (writer, cipher options, data id) and all
        of them are dropped before returning, on success or failure.
        """
        with self.writers.hold(self.get_writer_handle()) as writer:
            unwrap(self.write(writer, data))
            with self._cipher.kind.hold(self._cipher.get_handle(enc_type)) as cipher_opts:
                with self._data_id.kind.hold(self.close_writer(writer, cipher_opts)) as did:
                    return unwrap(self._data_id.serialise(did))

    @returns_failure
    def read_blob(self, serialised_data_id: bytes) -> Union[bytes, GatewayFailure]:
        """Read the blob named by a serialised data id from :meth:`write_blob`."""
        with self._data_id.kind.hold(self._data_id.deserialise(serialised_data_id)) as did:
            with self.readers.hold(self.get_reader_handle(did)) as reader:
                return unwrap(self.read(reader))
