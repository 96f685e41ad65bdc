"""Numeric process exit codes used by the ``safenet`` command line.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~safenet.exceptions.SafeNetError` subclass, so shell
scripts can tell a declined authorization from a broken channel without
parsing stderr.

Example::

    $ safenet nfs ls /photos
    $ echo $?
    4   # EXIT_GATEWAY_ERROR -- the gateway answered with {errorCode, description}
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""Authorization was declined or the session could not be re-established."""

EXIT_GATEWAY_ERROR = 4
"""The gateway rejected the request with a structured error payload."""

EXIT_DECRYPTION_FAILURE = 5
"""The encrypted channel is broken (tampered payload or stale key material)."""

EXIT_CONNECTION_ERROR = 6
"""A network-level error occurred (timeout, connection refused)."""
