"""Cipher-options handles (``cipher-opts``).

A cipher-options handle tells the gateway how to encrypt data it stores
on the network: not at all, with a symmetric key, or to a public key held
in an encrypt-key handle.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Union

from safenet.api.base import ApiBase, segment
from safenet.exceptions import InvalidUsageError
from safenet.handles import HandleKind
from safenet.models import GatewayFailure

if TYPE_CHECKING:
    from safenet.client.gateway import GatewayClient

ENCRYPTION_TYPES = ("PLAIN", "SYMMETRIC", "ASYMMETRIC")


class CipherOptsApi(ApiBase):
    """Acquire and drop cipher-options handles."""

    def __init__(self, gateway: GatewayClient) -> None:
        super().__init__(gateway)
        self.kind = HandleKind(gateway, "cipher-opts", "cipher-opts/{}")

    def get_handle(
        self, enc_type: str = "PLAIN", key_handle: Optional[int] = None,
    ) -> Union[int, GatewayFailure]:
        """Acquire a handle for *enc_type*.

        Args:
            enc_type: ``PLAIN``, ``SYMMETRIC`` or ``ASYMMETRIC``.
            key_handle: Encrypt-key handle, required for ``ASYMMETRIC``.

        Raises:
            InvalidUsageError: For an unknown type or a missing key handle.
        """
        enc_type = enc_type.upper()
        if enc_type not in ENCRYPTION_TYPES:
            raise InvalidUsageError(
                f"Unknown encryption type '{enc_type}'. Choose from: {', '.join(ENCRYPTION_TYPES)}"
            )
        if enc_type == "ASYMMETRIC" and key_handle is None:
            raise InvalidUsageError("ASYMMETRIC cipher options need an encrypt-key handle")

        path = f"cipher-opts/{enc_type}"
        if key_handle is not None:
            path += f"/{segment(key_handle)}"
        return self._handle(self._gateway.get(path))

    def drop_handle(self, handle: int) -> Union[bool, GatewayFailure]:
        return self.kind.release(handle)
