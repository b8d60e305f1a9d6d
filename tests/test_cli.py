"""
Tests for the stxbtc CLI.
"""

import json

from typer.testing import CliRunner

from stxbtc_api.cli import app

runner = CliRunner()

STX_MAINNET = "SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7"
BTC_MAINNET = "1FzTxL9Mxnm2fdmnQEArfhzJHevwbvcH6d"


class TestAddrCommand:
    """Test the addr command."""

    def test_convert(self) -> None:
        result = runner.invoke(app, ["addr", BTC_MAINNET])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["stacks"] == STX_MAINNET

    def test_invalid_address(self) -> None:
        result = runner.invoke(app, ["addr", "nope"])
        assert result.exit_code == 1

    def test_invalid_network(self) -> None:
        result = runner.invoke(app, ["addr", BTC_MAINNET, "--network", "regtest"])
        assert result.exit_code == 1


class TestEncodeDecodeCommands:
    """Test the encode and decode commands."""

    def test_encode_inferred(self) -> None:
        result = runner.invoke(app, ["encode", "true"])
        assert result.exit_code == 0
        assert "type: bool" in result.stdout
        assert "0x03" in result.stdout

    def test_encode_with_type(self) -> None:
        result = runner.invoke(app, ["encode", "5", "--type", '{"optional": "uint128"}'])
        assert result.exit_code == 0
        assert "(optional uint)" in result.stdout
        assert "0x0a01" + (5).to_bytes(16, "big").hex() in result.stdout

    def test_encode_bare_type_name(self) -> None:
        result = runner.invoke(app, ["encode", "5", "--type", "uint128"])
        assert result.exit_code == 0
        assert "type: uint" in result.stdout

    def test_encode_type_mismatch(self) -> None:
        result = runner.invoke(app, ["encode", "yes", "--type", "bool"])
        assert result.exit_code == 1

    def test_decode(self) -> None:
        data = "0x0701" + (42).to_bytes(16, "big").hex()
        result = runner.invoke(app, ["decode", data])
        assert result.exit_code == 0
        assert json.loads(result.stdout) == 42

    def test_decode_no_unwrap(self) -> None:
        data = "0x0701" + (42).to_bytes(16, "big").hex()
        result = runner.invoke(app, ["decode", data, "--no-unwrap"])
        assert result.exit_code == 0
        assert json.loads(result.stdout)["success"] is True

    def test_decode_invalid(self) -> None:
        result = runner.invoke(app, ["decode", "0xff"])
        assert result.exit_code == 1
