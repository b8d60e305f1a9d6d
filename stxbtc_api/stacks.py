"""
Stacks node / extended API client.
"""

from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from .abi import ContractAbi
from .errors import UpstreamError
from .fetch import FetchResult, JsonClient, dig, require_field, require_int


@dataclass
class ClarityRead:
    """A serialized Clarity value returned by the node."""

    data: str
    curl: str


def _fail(code: str, what: str, result: FetchResult) -> UpstreamError:
    return UpstreamError(
        f"{what}: {result.status}",
        code=code,
        status=result.status,
        response=result.body,
        status_code=400,
    )


class StacksClient(JsonClient):
    """Client for the read-only Stacks node endpoints used by the API."""

    async def _get_ok(self, path: str, code: str, what: str) -> dict[str, Any]:
        result = await self.fetch("GET", path)
        if not result.ok:
            raise _fail(code, what, result)
        return result.body

    async def get_contract_interface(self, address: str, contract: str) -> ContractAbi:
        """Fetch and parse a contract's interface."""
        result = await self.fetch("GET", f"/v2/contracts/interface/{address}/{contract}")
        if not result.ok:
            raise _fail("CONTRACT_ABI_ERROR", "Error fetching contract ABI", result)
        try:
            return ContractAbi.model_validate(result.body)
        except ValidationError as e:
            raise UpstreamError(
                f"Invalid contract ABI: {e}",
                code="CONTRACT_ABI_ERROR",
                status=result.status,
                status_code=502,
            )

    async def get_data_var(self, address: str, contract: str, var: str) -> ClarityRead:
        """Read a data variable (serialized)."""
        result = await self.fetch(
            "GET", f"/v2/data_var/{address}/{contract}/{var}", params={"proof": 0}
        )
        if not result.ok or not dig(result.body, "data"):
            raise _fail("CONTRACT_DATA_VAR_READ_ERROR", "Error contract data var read", result)
        return ClarityRead(result.body["data"], result.curl)

    async def get_map_entry(self, address: str, contract: str, map_name: str, key_hex: str) -> ClarityRead:
        """Read a map entry (serialized) by serialized key."""
        result = await self.fetch(
            "POST",
            f"/v2/map_entry/{address}/{contract}/{map_name}",
            params={"proof": 0},
            body=key_hex,
        )
        if not result.ok or not dig(result.body, "data"):
            raise _fail("CONTRACT_DATA_MAP_READ_ERROR", "Error contract map read", result)
        return ClarityRead(result.body["data"], result.curl)

    async def call_read(
        self,
        address: str,
        contract: str,
        function: str,
        sender: str,
        arguments: list[str],
    ) -> ClarityRead:
        """Perform a read-only function call with serialized arguments."""
        result = await self.fetch(
            "POST",
            f"/v2/contracts/call-read/{address}/{contract}/{function}",
            body={"sender": sender, "arguments": arguments},
        )
        if not result.ok or not dig(result.body, "okay"):
            raise _fail("CALL_READ_ERROR", "Error performing call-read", result)
        result_hex = require_field(result.body, "result", what="Error performing call-read")
        return ClarityRead(result_hex, result.curl)

    async def get_chain_tip(self) -> str:
        """Current Stacks chain tip block hash."""
        info = await self._get_ok("/v2/info", "FETCH_ERROR", "Error fetching node info")
        return require_field(info, "stacks_tip", what="Error fetching node info")

    async def get_stx_balance(self, address: str) -> int:
        """STX balance in micro-STX."""
        body = await self._get_ok(
            f"/extended/v1/address/{address}/balances", "FETCH_ERROR", "Error fetching STX balance"
        )
        return require_int(body, "stx", "balance", what="Error fetching STX balance")

    async def get_transaction(self, txid: str) -> dict[str, Any]:
        return await self._get_ok(f"/extended/v1/tx/{txid}", "FETCH_ERROR", "Error fetching transaction")

    async def get_block_by_hash(self, block_hash: str) -> dict[str, Any]:
        return await self._get_ok(f"/extended/v1/block/{block_hash}", "FETCH_ERROR", "Error fetching block")

    async def get_block_by_height(self, height: int) -> dict[str, Any]:
        return await self._get_ok(f"/extended/v1/block/by_height/{height}", "FETCH_ERROR", "Error fetching block")

    async def get_block_by_burn_block_hash(self, burn_block_hash: str) -> dict[str, Any]:
        return await self._get_ok(
            f"/extended/v1/block/by_burn_block_hash/0x{burn_block_hash}", "FETCH_ERROR", "Error fetching block"
        )

    async def get_block_by_burn_block_height(self, height: int) -> dict[str, Any]:
        return await self._get_ok(
            f"/extended/v1/block/by_burn_block_height/{height}", "FETCH_ERROR", "Error fetching block"
        )
