"""Handle discipline for the low-level data APIs.

The gateway hands out integer handles (cipher options, data ids,
structured and appendable data, immutable-data readers and writers) that
stay allocated until the client drops them with a ``DELETE``. This module
makes the acquire -> operate -> release sequence safe:

- :func:`unwrap` turns a :class:`~safenet.models.GatewayFailure` result into
  a :class:`~safenet.exceptions.GatewayError` so composite helpers can be
  written as straight-line code.
- :func:`returns_failure` converts that exception back into the failure
  result at the helper's boundary.
- :meth:`HandleKind.hold` releases a successfully acquired handle exactly
  once on every exit path. A release that fails is logged and never
  replaces the error that caused the unwind.

Example::

    @returns_failure
    def read_record(self, name):
        did = unwrap(self.data_id.get_structured_data_handle(name, 500))
        with self.data_id.kind.hold(did) as did:
            ...
"""

from __future__ import annotations

import functools
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Callable, Iterator, TypeVar, Union

from safenet.client.response import GatewayResponse
from safenet.exceptions import GatewayError, ProtocolError
from safenet.models import GatewayFailure

if TYPE_CHECKING:
    from safenet.client.gateway import GatewayClient

logger = logging.getLogger(__name__)

T = TypeVar("T")
F = TypeVar("F", bound=Callable[..., Any])


def unwrap(result: Union[T, GatewayFailure]) -> T:
    """Return *result*, or raise :class:`GatewayError` if it is a failure."""
    if isinstance(result, GatewayFailure):
        raise GatewayError(result)
    return result


def returns_failure(func: F) -> F:
    """Decorator: a :class:`GatewayError` escaping *func* becomes its failure result."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except GatewayError as exc:
            return exc.failure

    return wrapper  # type: ignore[return-value]


def handle_id(response: GatewayResponse) -> int:
    """Extract the ``handleId`` from a create/get-handle response.

    Raises:
        ProtocolError: If the body carries no integer ``handleId``.
    """
    data = response.data()
    if isinstance(data, dict) and "handleId" in data:
        value = data["handleId"]
    else:
        value = data
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ProtocolError(f"Response carries no handle id: {response.text[:100]!r}") from exc


class HandleKind:
    """One family of gateway handles and how to release them.

    Args:
        gateway: The request primitive.
        label: Name used in log messages, e.g. ``"data-id"``.
        release_path: Path template for the ``DELETE``, formatted with the
            handle id, e.g. ``"data-id/{}"``.
    """

    def __init__(self, gateway: GatewayClient, label: str, release_path: str) -> None:
        self._gateway = gateway
        self.label = label
        self.release_path = release_path

    def release(self, handle: int) -> Union[bool, GatewayFailure]:
        """Drop *handle*. Returns ``True`` or the gateway's failure."""
        result = self._gateway.delete(self.release_path.format(handle))
        if isinstance(result, GatewayFailure):
            return result
        return True

    @contextmanager
    def hold(self, acquired: Union[int, GatewayFailure]) -> Iterator[int]:
        """Scope a handle: yield it and release it on exit.

        Args:
            acquired: The result of the acquiring call. A failure raises
                :class:`GatewayError` before anything is yielded, and
                nothing is released.

        Yields:
            The handle id.
        """
        handle = unwrap(acquired)
        try:
            yield handle
        finally:
            self._release_quietly(handle)

    def _release_quietly(self, handle: int) -> None:
        try:
            outcome = self.release(handle)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Releasing %s handle %d raised: %s", self.label, handle, exc)
            return
        if isinstance(outcome, GatewayFailure):
            logger.warning(
                "Releasing %s handle %d failed: %s (errorCode %d)",
                self.label, handle, outcome.description, outcome.error_code,
            )
        else:
            logger.debug("Released %s handle %d", self.label, handle)
