"""Exception hierarchy for safenet.

All exceptions inherit from :class:`SafeNetError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`safenet.exit_codes`.

Only failures that break the client itself are raised. A gateway that
answers with ``{errorCode, description}`` produces a
:class:`~safenet.models.GatewayFailure` *result*; :class:`GatewayError`
exists so that composite helpers can unwind through a handle scope and be
converted back into that result at the boundary.

Subclass hierarchy::

    SafeNetError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- AuthError           (exit 3)
    |   +-- AuthDeniedError
    |       +-- TokenInvalidError
    +-- GatewayError        (exit 4)
    +-- DecryptionError     (exit 5)
    +-- TransportError      (exit 6)
    +-- ProtocolError       (exit 1)
    +-- ConfigError         (exit 1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from safenet.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_DECRYPTION_FAILURE,
    EXIT_GATEWAY_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
)

if TYPE_CHECKING:
    from safenet.models import GatewayFailure


class SafeNetError(Exception):
    """Base exception for all safenet errors.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(SafeNetError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class AuthError(SafeNetError):
    """Base class for failures to obtain a usable session."""

    exit_code = EXIT_AUTH_FAILURE


class AuthDeniedError(AuthError):
    """Raised when ``POST /auth`` returns anything but 200.

    The user declined the prompt in the gateway, or the application is
    misconfigured. ``status_code`` is the HTTP status of the denial.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TokenInvalidError(AuthDeniedError):
    """Raised when a stale token could not be replaced by re-authorization."""


class GatewayError(SafeNetError):
    """Exception form of a :class:`~safenet.models.GatewayFailure`.

    Raised by :func:`safenet.handles.unwrap` inside composite helpers and
    converted back into the failure result by
    :func:`safenet.handles.returns_failure`.
    """

    exit_code = EXIT_GATEWAY_ERROR

    def __init__(self, failure: GatewayFailure):
        super().__init__(f"{failure.description} (errorCode {failure.error_code})")
        self.failure = failure


class DecryptionError(SafeNetError):
    """Raised when a symmetric or box open fails.

    Caused by a tampered payload or by key material that no longer matches
    the gateway's session. Fatal: retrying with the same keys reproduces it.
    """

    exit_code = EXIT_DECRYPTION_FAILURE


class TransportError(SafeNetError):
    """Raised on network-level failures (timeout, connection refused)."""

    exit_code = EXIT_CONNECTION_ERROR


class ProtocolError(SafeNetError):
    """Raised when a gateway response does not match the negotiated protocol."""

    exit_code = EXIT_GENERIC_FAILURE


class ConfigError(SafeNetError):
    """Raised for configuration problems (missing profiles, invalid JSON)."""

    exit_code = EXIT_GENERIC_FAILURE
