"""
Bitcoin blockchain lookups via the blockchain.info API.
"""

from typing import Optional

import structlog

from .errors import UpstreamError
from .fetch import JsonClient, dig, require_int

logger = structlog.get_logger()

SATS_PER_BTC = 100_000_000


class BlockchainInfoClient(JsonClient):
    """Client for blockchain.info."""

    async def get_final_balance(self, address: str) -> int:
        """Confirmed balance of an address in satoshis."""
        result = await self.fetch("GET", f"/rawaddr/{address}", params={"limit": 0})
        if not result.ok:
            raise UpstreamError(
                f"Error fetching BTC balance: {result.status}",
                status=result.status,
                response=result.body,
                status_code=400,
            )
        return require_int(result.body, "final_balance", what="Error fetching BTC balance")

    async def get_miner_address(self, txid: str) -> Optional[str]:
        """
        Address funding the first input of a transaction.

        For a block commit this is the miner's address. Returns None when
        the transaction is unknown or the input carries no address.
        """
        result = await self.fetch("GET", f"/rawtx/{txid}")
        if not result.ok:
            logger.warning("Miner transaction lookup failed", txid=txid, status=result.status)
            return None

        inputs = dig(result.body, "inputs")
        if not isinstance(inputs, list) or not inputs:
            return None
        addr = dig(inputs[0], "prev_out", "addr")
        return addr if isinstance(addr, str) else None
