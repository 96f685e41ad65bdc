"""NFS: directories and files in the user's (or the shared) drive.

Paths are sent as one percent-encoded segment followed by the
``isPathShared`` flag, e.g. ``nfs/directory/%2Fphotos%2F2016/false``.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from safenet.api.base import ApiBase, flag, segment
from safenet.models import GatewayFailure


class NfsApi(ApiBase):
    """Directory and file operations.

    Example::

        client.nfs.create_directory("/photos")
        client.nfs.create_file("/photos/cat.txt")
        client.nfs.update_file_content("/photos/cat.txt", b"meow")
        client.nfs.get_file("/photos/cat.txt")  # b"meow"
    """

    @staticmethod
    def _path(kind: str, path: str, is_path_shared: bool) -> str:
        return f"nfs/{kind}/{segment(path)}/{flag(is_path_shared)}"

    @staticmethod
    def _entry_body(
        key: str,
        path: str,
        is_private: bool,
        is_versioned: bool,
        is_path_shared: bool,
        metadata: Optional[str],
    ) -> dict[str, Any]:
        body: dict[str, Any] = {
            key: path,
            "isPrivate": is_private,
            "isVersioned": is_versioned,
            "isPathShared": is_path_shared,
        }
        if metadata is not None:
            body["metadata"] = metadata
        return body

    # ------------------------------------------------------------------ #
    # Directories
    # ------------------------------------------------------------------ #

    def get_directory(
        self, dir_path: str, is_path_shared: bool = False,
    ) -> Union[dict[str, Any], GatewayFailure]:
        """Return the directory listing ``{info, subDirectories, files}``."""
        return self._data(self._gateway.get(self._path("directory", dir_path, is_path_shared)))

    def create_directory(
        self,
        dir_path: str,
        is_private: bool = True,
        is_versioned: bool = False,
        is_path_shared: bool = False,
        metadata: Optional[str] = None,
    ) -> Union[bool, GatewayFailure]:
        body = self._entry_body("dirPath", dir_path, is_private, is_versioned, is_path_shared, metadata)
        return self._ok(self._gateway.post("nfs/directory", body))

    def delete_directory(
        self, dir_path: str, is_path_shared: bool = False,
    ) -> Union[bool, GatewayFailure]:
        return self._ok(self._gateway.delete(self._path("directory", dir_path, is_path_shared)))

    # ------------------------------------------------------------------ #
    # Files
    # ------------------------------------------------------------------ #

    def create_file(
        self,
        file_path: str,
        is_private: bool = True,
        is_versioned: bool = False,
        is_path_shared: bool = False,
        metadata: Optional[str] = None,
    ) -> Union[bool, GatewayFailure]:
        """Create an empty file; write to it with :meth:`update_file_content`."""
        body = self._entry_body("filePath", file_path, is_private, is_versioned, is_path_shared, metadata)
        return self._ok(self._gateway.post("nfs/file", body))

    def get_file(
        self,
        file_path: str,
        offset: int = 0,
        length: Optional[int] = None,
        is_path_shared: bool = False,
    ) -> Union[bytes, GatewayFailure]:
        """Read *length* bytes (all when ``None``) starting at *offset*.

        The ``offset``/``length`` query travels sealed in the encrypted
        protocol.
        """
        params: dict[str, Any] = {"offset": offset}
        if length is not None:
            params["length"] = length
        path = self._path("file", file_path, is_path_shared)
        return self._content(self._gateway.get(path, params=params))

    def update_file_content(
        self,
        file_path: str,
        contents: Union[bytes, str],
        offset: int = 0,
        is_path_shared: bool = False,
    ) -> Union[bool, GatewayFailure]:
        """Write *contents* into the file at *offset*.

        Only the body is sealed; the ``offset`` query is sent in the clear.
        """
        path = f"{self._path('file', file_path, is_path_shared)}?offset={int(offset)}"
        return self._ok(self._gateway.put(path, contents))

    def delete_file(
        self, file_path: str, is_path_shared: bool = False,
    ) -> Union[bool, GatewayFailure]:
        return self._ok(self._gateway.delete(self._path("file", file_path, is_path_shared)))
