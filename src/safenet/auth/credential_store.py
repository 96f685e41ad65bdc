"""Persistent store for the session credential file.

The credential file is a pretty-printed JSON object holding at least
``token`` and, for the encrypted protocol, ``nonce``, ``privateKey``,
``publicKey`` and ``encryptedKey`` (all base64). It is written on every
successful authorization and read whenever no in-memory session is cached.

Files are written atomically via :func:`~safenet.config._atomic_write`
with ``0o600`` permissions so that key material is never world-readable,
even momentarily.

See Also:
    :class:`~safenet.auth.session.SessionManager` -- the only writer.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional, Union

from safenet.config import _atomic_write
from safenet.models import Session

logger = logging.getLogger(__name__)


class CredentialStore:
    """Read/write the session record at a fixed path.

    Pure I/O: no validity checks, no network.

    Args:
        path: Location of the credential file.

    Example::

        store = CredentialStore(Path("~/.local/share/safenet/sessions/default.json"))
        store.save(Session(token="tok123"))
        assert store.load().token == "tok123"
    """

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        """The filesystem path to the credential file."""
        return self._path

    def exists(self) -> bool:
        """Whether a credential file is present on disk."""
        return self._path.is_file()

    def save(self, session: Session) -> None:
        """Persist *session* atomically with ``0o600`` permissions.

        Raises:
            OSError: If the file cannot be written.
        """
        text = json.dumps(session.to_file_dict(), indent=2) + "\n"
        _atomic_write(self._path, text, mode=0o600)

    def load(self) -> Optional[Session]:
        """Load the stored session.

        Returns:
            The :class:`~safenet.models.Session`, or ``None`` if the file
            does not exist or cannot be parsed.
        """
        if not self._path.is_file():
            return None
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return Session.model_validate(data)
        except (json.JSONDecodeError, ValueError, OSError) as exc:
            logger.warning("Ignoring unreadable credential file %s: %s", self._path, exc)
            return None

    def clear(self) -> None:
        """Delete the credential file. No-op when it is already gone."""
        if self._path.is_file():
            self._path.unlink()
