"""Tests for immutable-data readers, writers and the blob helpers."""

from __future__ import annotations

from safenet.models import GatewayFailure


def _route_write(gateway) -> None:
    gateway.route("GET", "immutable-data/writer", (200, {"handleId": 1}))
    gateway.route("POST", "immutable-data/1", (200, None))
    gateway.route("GET", "cipher-opts/PLAIN", (200, {"handleId": 2}))
    gateway.route("PUT", "immutable-data/1/2", (200, {"handleId": 3}))
    gateway.route("GET", "data-id/3", (200, b"\x00serialised"))
    for path in ("data-id/3", "cipher-opts/2", "immutable-data/writer/1"):
        gateway.route("DELETE", path, (200, None))


def _deletes(gateway) -> list[str]:
    return [c.path for c in gateway.calls if c.method == "DELETE"]


class TestWriteBlob:
    def test_returns_serialised_id_and_drops_all(self, client, gateway) -> None:
        _route_write(gateway)
        assert client.immutable.write_blob(b"blob bytes") == b"\x00serialised"
        assert gateway.find("POST", "immutable-data/1")[0].body == b"blob bytes"
        assert _deletes(gateway) == ["data-id/3", "cipher-opts/2", "immutable-data/writer/1"]

    def test_failed_write_drops_writer_only(self, client, gateway) -> None:
        _route_write(gateway)
        gateway.route("POST", "immutable-data/1", (400, {"errorCode": -24, "description": "LowBalance"}))
        result = client.immutable.write_blob(b"blob bytes")
        assert isinstance(result, GatewayFailure)
        assert result.description == "LowBalance"
        assert _deletes(gateway) == ["immutable-data/writer/1"]

    def test_failed_close_drops_writer_and_cipher_opts(self, client, gateway) -> None:
        _route_write(gateway)
        gateway.route("PUT", "immutable-data/1/2", (400, {"errorCode": -6, "description": "NetworkFault"}))
        result = client.immutable.write_blob(b"blob bytes")
        assert isinstance(result, GatewayFailure)
        assert _deletes(gateway) == ["cipher-opts/2", "immutable-data/writer/1"]


class TestReadBlob:
    def test_reads_and_drops(self, client, gateway) -> None:
        gateway.route("POST", "data-id", (200, {"handleId": 4}))
        gateway.route("GET", "immutable-data/reader/4", (200, {"handleId": 5}))
        gateway.route("GET", "immutable-data/5", (200, b"blob bytes"))
        gateway.route("DELETE", "immutable-data/reader/5", (200, None))
        gateway.route("DELETE", "data-id/4", (200, None))

        assert client.immutable.read_blob(b"\x00serialised") == b"blob bytes"
        assert gateway.find("POST", "data-id")[0].body == b"\x00serialised"
        assert _deletes(gateway) == ["immutable-data/reader/5", "data-id/4"]

    def test_unknown_id(self, client, gateway) -> None:
        gateway.route("POST", "data-id", (400, {"errorCode": -11, "description": "InvalidHandle"}))
        result = client.immutable.read_blob(b"junk")
        assert isinstance(result, GatewayFailure)
        assert _deletes(gateway) == []


class TestPrimitives:
    def test_drop_writer_and_reader(self, plain_client, plain_gateway) -> None:
        plain_gateway.route("DELETE", "immutable-data/writer/1", (200, None))
        plain_gateway.route("DELETE", "immutable-data/reader/2", (200, None))
        assert plain_client.immutable.drop_writer_handle(1) is True
        assert plain_client.immutable.drop_reader_handle(2) is True
