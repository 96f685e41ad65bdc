"""Tests for the authenticated request primitive."""

from __future__ import annotations

import json

import httpx
import pytest
from nacl.utils import random as random_bytes

from safenet.client.response import GatewayResponse
from safenet.exceptions import DecryptionError, TransportError
from safenet.models import AuthDenied, GatewayFailure


class TestEncryptedRequests:
    def test_bearer_header(self, client, gateway) -> None:
        gateway.route("GET", "dns", (200, ["example"]))
        result = client.gateway.get("dns")
        assert isinstance(result, GatewayResponse)
        assert gateway.find("GET", "dns")[0].headers["Authorization"] == "Bearer token-1"

    def test_response_is_decrypted(self, client, gateway) -> None:
        gateway.route("GET", "dns", (200, ["example", "other"]))
        result = client.gateway.get("dns")
        assert result.json() == ["example", "other"]

    def test_json_body_is_sealed(self, client, gateway) -> None:
        gateway.route("POST", "nfs/directory", (200, None))
        client.gateway.post("nfs/directory", {"dirPath": "/a"})
        call = gateway.find("POST", "nfs/directory")[0]
        assert call.json() == {"dirPath": "/a"}
        assert call.headers["Content-Type"] == "text/plain"
        assert b"dirPath" not in call.request.content

    def test_bytes_body_is_sealed(self, client, gateway) -> None:
        gateway.route("POST", "immutable-data/3", (200, None))
        client.gateway.post("immutable-data/3", b"\x00\x01binary")
        call = gateway.find("POST", "immutable-data/3")[0]
        assert call.body == b"\x00\x01binary"

    def test_query_is_sealed(self, client, gateway) -> None:
        gateway.route("GET", "nfs/file/%2Fa.txt/false", (200, b"abc"))
        client.gateway.get("nfs/file/%2Fa.txt/false", params={"offset": 2, "length": 5})
        call = gateway.find("GET", "nfs/file/%2Fa.txt/false")[0]
        assert "offset" not in call.raw_query
        assert call.query == {"offset": "2", "length": "5"}

    def test_empty_body_not_decrypted(self, client, gateway) -> None:
        gateway.route("PUT", "structured-data/4", (200, None))
        result = client.gateway.put("structured-data/4")
        assert isinstance(result, GatewayResponse)
        assert result.content == b""
        assert result.data() is None

    def test_encrypt_false_sends_clear(self, client, gateway) -> None:
        gateway.route("POST", "dns", (200, None))
        client.gateway.post("dns", {"longName": "x"}, encrypt=False)
        raw = gateway.find("POST", "dns")[0].request.content
        assert json.loads(raw) == {"longName": "x"}


class TestFailures:
    def test_sealed_error_payload(self, client, gateway) -> None:
        gateway.route("GET", "structured-data/9", (400, {"errorCode": -1502, "description": "PathNotFound"}))
        result = client.gateway.get("structured-data/9")
        assert isinstance(result, GatewayFailure)
        assert result.error_code == -1502
        assert result.description == "PathNotFound"
        assert result.status_code == 400

    def test_error_without_error_code(self, client, gateway) -> None:
        gateway.route("GET", "dns", (500, {"message": "boom"}))
        result = client.gateway.get("dns")
        assert isinstance(result, GatewayFailure)
        assert result.error_code == 500

    def test_unauthorized_marks_stale(self, client, gateway) -> None:
        client.auth.get_valid_token()
        gateway.route("GET", "dns", (200, []))
        gateway.revoke_all()
        first = client.gateway.get("dns")
        assert isinstance(first, GatewayFailure)
        assert first.status_code == 401

        second = client.gateway.get("dns")
        assert isinstance(second, GatewayResponse)
        assert gateway.auth_count == 2

    def test_denied_is_a_result(self, client, gateway) -> None:
        gateway.approve = False
        result = client.gateway.get("dns")
        assert isinstance(result, AuthDenied)
        assert result.status_code == 401
        assert gateway.find("GET", "dns") == []

    def test_response_under_foreign_key_raises(self, client, gateway) -> None:
        client.auth.get_valid_token()
        gateway.key = random_bytes(32)
        gateway.route("GET", "dns", (200, ["example"]))
        with pytest.raises(DecryptionError):
            client.gateway.get("dns")

    def test_clear_error_page_is_a_failure(self, client, gateway) -> None:
        client.auth.get_valid_token()
        gateway.route("GET", "dns", lambda call: httpx.Response(502, content=b"Bad Gateway: launcher restarting"))
        result = client.gateway.get("dns")
        assert isinstance(result, GatewayFailure)
        assert result.error_code == 502
        assert result.description == "Bad Gateway: launcher restarting"

    def test_clear_error_page_under_nfs(self, client, gateway) -> None:
        gateway.route(
            "GET", "nfs/directory/%2F/false", lambda call: httpx.Response(502, content=b"Bad Gateway"),
        )
        result = client.nfs.get_directory("/")
        assert isinstance(result, GatewayFailure)
        assert result.status_code == 502

    def test_transport_error_propagates(self, client, gateway) -> None:
        client.auth.get_valid_token()
        gateway.fail_connect = True
        with pytest.raises(TransportError):
            client.gateway.get("dns")


class TestPlainRequests:
    def test_json_body(self, plain_client, plain_gateway) -> None:
        plain_gateway.route("POST", "nfs/file", (200, None))
        plain_client.gateway.post("nfs/file", {"filePath": "/a"})
        call = plain_gateway.find("POST", "nfs/file")[0]
        assert call.json() == {"filePath": "/a"}
        assert call.headers["Content-Type"] == "application/json"

    def test_bytes_body(self, plain_client, plain_gateway) -> None:
        plain_gateway.route("POST", "immutable-data/1", (200, None))
        plain_client.gateway.post("immutable-data/1", b"raw")
        call = plain_gateway.find("POST", "immutable-data/1")[0]
        assert call.body == b"raw"
        assert call.headers["Content-Type"] == "application/octet-stream"

    def test_query_in_clear(self, plain_client, plain_gateway) -> None:
        plain_gateway.route("GET", "nfs/file/%2Fa/false", (200, b"data"))
        result = plain_client.gateway.get("nfs/file/%2Fa/false", params={"offset": 0})
        assert result.content == b"data"
        assert plain_gateway.find("GET")[-1].raw_query == "offset=0"

    def test_error_payload(self, plain_client, plain_gateway) -> None:
        plain_gateway.route("DELETE", "data-id/5", (400, {"errorCode": -11, "description": "InvalidHandle"}))
        result = plain_client.gateway.delete("data-id/5")
        assert isinstance(result, GatewayFailure)
        assert result.error_code == -11
