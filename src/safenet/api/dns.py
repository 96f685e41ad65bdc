"""DNS: long names, the services registered under them, and public reads.

A long name (``example``) owns services (``www``), each pointing at a home
directory in the owner's drive. :meth:`DnsApi.get_home_dir` and
:meth:`DnsApi.get_file_unauth` read published content without a session
token; the gateway answers them in the clear.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from safenet.api.base import ApiBase, segment
from safenet.models import GatewayFailure


class DnsApi(ApiBase):
    """Register and browse long names and services."""

    def create_long_name(self, long_name: str) -> Union[bool, GatewayFailure]:
        return self._ok(self._gateway.post(f"dns/{segment(long_name)}"))

    def register_service(
        self,
        long_name: str,
        service_name: str,
        service_home_dir_path: str,
        is_path_shared: bool = False,
        metadata: Optional[str] = None,
    ) -> Union[bool, GatewayFailure]:
        """Publish *service_home_dir_path* as ``service_name.long_name``."""
        body: dict[str, Any] = {
            "longName": long_name,
            "serviceName": service_name,
            "serviceHomeDirPath": service_home_dir_path,
            "isPathShared": is_path_shared,
        }
        if metadata is not None:
            body["metadata"] = metadata
        return self._ok(self._gateway.post("dns", body))

    def list_long_names(self) -> Union[list[str], GatewayFailure]:
        return self._data(self._gateway.get("dns"))

    def list_services(self, long_name: str) -> Union[list[str], GatewayFailure]:
        return self._data(self._gateway.get(f"dns/{segment(long_name)}"))

    def get_home_dir(self, long_name: str, service_name: str) -> Union[dict[str, Any], GatewayFailure]:
        """Public listing of the service's home directory."""
        path = f"dns/{segment(service_name)}/{segment(long_name)}"
        return self._data(self._gateway.get(path, authenticated=False, encrypt=False))

    def get_file_unauth(
        self,
        long_name: str,
        service_name: str,
        file_path: str,
        offset: int = 0,
        length: Optional[int] = None,
    ) -> Union[bytes, GatewayFailure]:
        """Public read of a file under a service's home directory.

        The query is still sealed in the encrypted protocol, so a session
        must exist; the response is not.
        """
        params: dict[str, Any] = {"offset": offset}
        if length is not None:
            params["length"] = length
        path = f"dns/{segment(service_name)}/{segment(long_name)}/{segment(file_path)}"
        return self._content(self._gateway.get(path, params=params, authenticated=False))
