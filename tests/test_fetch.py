"""
Tests for the upstream JSON client.
"""

import asyncio

import httpx
import pytest

from stxbtc_api.bitcoin import BlockchainInfoClient
from stxbtc_api.errors import UpstreamError
from stxbtc_api.fetch import JsonClient
from stxbtc_api.stacks import StacksClient


def make_client(cls, handler) -> JsonClient:
    """Client whose transport is served by `handler`."""
    client = cls("https://node.example", timeout=5.0)
    client._client = httpx.AsyncClient(
        base_url=client.base_url, transport=httpx.MockTransport(handler)
    )
    return client


class TestJsonClient:
    """Test fetch results and failures."""

    def test_ok_response(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"stacks_tip": "0xabc"})

        client = make_client(JsonClient, handler)
        result = asyncio.run(client.fetch("GET", "/v2/info"))
        assert result.ok
        assert result.status == 200
        assert result.body == {"stacks_tip": "0xabc"}
        assert result.curl == "curl -i -X GET https://node.example/v2/info"

    def test_post_body_in_curl(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.headers["content-type"] == "application/json"
            return httpx.Response(200, json={"okay": True, "result": "0x03"})

        client = make_client(JsonClient, handler)
        result = asyncio.run(client.fetch("POST", "/call", body={"sender": "S"}))
        assert "-d '{\"sender\": \"S\"}'" in result.curl

    def test_non_2xx_is_returned(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "not found"})

        client = make_client(JsonClient, handler)
        result = asyncio.run(client.fetch("GET", "/missing"))
        assert not result.ok
        assert result.status == 404

    def test_invalid_json(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="<html>bad gateway</html>")

        client = make_client(JsonClient, handler)
        with pytest.raises(UpstreamError) as exc:
            asyncio.run(client.fetch("GET", "/v2/info"))
        assert exc.value.code == "FETCH_ERROR"
        assert exc.value.status == 502

    def test_transport_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(JsonClient, handler)
        with pytest.raises(UpstreamError) as exc:
            asyncio.run(client.fetch("GET", "/v2/info"))
        assert exc.value.status_code == 500


class TestStacksClient:
    """Test error mapping of the Stacks client."""

    def test_call_read_failure(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"okay": False, "cause": "Unchecked(NoSuchContract)"})

        client = make_client(StacksClient, handler)
        with pytest.raises(UpstreamError) as exc:
            asyncio.run(client.call_read("SP1", "c", "f", sender="SP2", arguments=[]))
        assert exc.value.code == "CALL_READ_ERROR"
        assert exc.value.status_code == 400

    def test_data_var(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["proof"] == "0"
            return httpx.Response(200, json={"data": "0x03"})

        client = make_client(StacksClient, handler)
        read = asyncio.run(client.get_data_var("SP1", "c", "v"))
        assert read.data == "0x03"

    def test_invalid_abi(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"functions": [{"args": []}]})

        client = make_client(StacksClient, handler)
        with pytest.raises(UpstreamError) as exc:
            asyncio.run(client.get_contract_interface("SP1", "c"))
        assert exc.value.code == "CONTRACT_ABI_ERROR"

    def test_chain_tip_missing(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"burn_block_height": 800000})

        client = make_client(StacksClient, handler)
        with pytest.raises(UpstreamError) as exc:
            asyncio.run(client.get_chain_tip())
        assert exc.value.code == "FETCH_ERROR"
        assert "stacks_tip" in exc.value.message

    def test_balance_not_an_integer(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"stx": {"balance": "lots"}})

        client = make_client(StacksClient, handler)
        with pytest.raises(UpstreamError):
            asyncio.run(client.get_stx_balance("SP1"))

    def test_balance_body_not_an_object(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["unexpected"])

        client = make_client(StacksClient, handler)
        with pytest.raises(UpstreamError) as exc:
            asyncio.run(client.get_stx_balance("SP1"))
        assert exc.value.status_code == 500


class TestBlockchainInfoClient:
    """Test blockchain.info lookups against malformed bodies."""

    def test_miner_address(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"inputs": [{"prev_out": {"addr": "1Miner"}}]})

        client = make_client(BlockchainInfoClient, handler)
        assert asyncio.run(client.get_miner_address("ab" * 32)) == "1Miner"

    def test_miner_address_body_is_list(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"prev_out": {"addr": "1Miner"}}])

        client = make_client(BlockchainInfoClient, handler)
        assert asyncio.run(client.get_miner_address("ab" * 32)) is None

    def test_miner_address_input_without_prev_out(self) -> None:
        """Coinbase-style inputs have no previous output."""

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"inputs": [{"sequence": 0}]})

        client = make_client(BlockchainInfoClient, handler)
        assert asyncio.run(client.get_miner_address("ab" * 32)) is None

    def test_miner_address_unknown_tx(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"error": "not found"})

        client = make_client(BlockchainInfoClient, handler)
        assert asyncio.run(client.get_miner_address("ab" * 32)) is None

    def test_final_balance_missing(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"address": "1abc"})

        client = make_client(BlockchainInfoClient, handler)
        with pytest.raises(UpstreamError) as exc:
            asyncio.run(client.get_final_balance("1abc"))
        assert "final_balance" in exc.value.message
