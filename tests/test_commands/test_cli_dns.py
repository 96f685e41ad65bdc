"""Tests for the ``safenet dns`` commands."""

from __future__ import annotations

import json

from safenet.app import app


class TestDnsCommands:
    def test_list(self, cli_runner, cli_gateway) -> None:
        cli_gateway.route("GET", "dns", (200, ["example", "other"]))
        result = cli_runner.invoke(app, ["--plain", "dns", "list"])
        assert result.exit_code == 0, result.output
        assert "example\nother" in result.output

    def test_list_empty(self, cli_runner, cli_gateway) -> None:
        cli_gateway.route("GET", "dns", (200, []))
        result = cli_runner.invoke(app, ["--plain", "dns", "list"])
        assert result.exit_code == 0
        assert "No long names registered." in result.output

    def test_services_json(self, cli_runner, cli_gateway) -> None:
        cli_gateway.route("GET", "dns/example", (200, ["www"]))
        result = cli_runner.invoke(app, ["--json", "dns", "services", "example"])
        assert result.exit_code == 0
        assert json.loads(result.output) == ["www"]

    def test_create(self, cli_runner, cli_gateway) -> None:
        cli_gateway.route("POST", "dns/example", (200, None))
        result = cli_runner.invoke(app, ["dns", "create", "example"])
        assert result.exit_code == 0
        assert "Registered example" in result.output

    def test_register(self, cli_runner, cli_gateway) -> None:
        cli_gateway.route("POST", "dns", (200, None))
        result = cli_runner.invoke(app, ["dns", "register", "example", "www", "/site"])
        assert result.exit_code == 0, result.output
        assert cli_gateway.find("POST", "dns")[0].json()["serviceHomeDirPath"] == "/site"

    def test_gateway_failure(self, cli_runner, cli_gateway) -> None:
        cli_gateway.route(
            "POST", "dns/example",
            (400, {"errorCode": -1001, "description": "DnsNameAlreadyRegistered"}),
        )
        result = cli_runner.invoke(app, ["dns", "create", "example"])
        assert result.exit_code == 4
        assert "DnsNameAlreadyRegistered" in result.output
