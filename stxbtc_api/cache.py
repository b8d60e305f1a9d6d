"""
Chain-tip based HTTP caching.

Responses of the Clarity query helpers only change when the Stacks chain
tip changes, so the tip block hash is used as the response ETag. The tip
itself is reused for a short TTL to avoid asking the node on every request.
"""

import time
from typing import Optional

from .stacks import StacksClient


class ChainTipCache:
    """Memoises the Stacks chain tip for `ttl` seconds."""

    def __init__(self, ttl: float = 5.0):
        self.ttl = ttl
        self._tip: Optional[str] = None
        self._fetched_at = 0.0

    async def get_tip(self, client: StacksClient) -> str:
        now = time.monotonic()
        if self._tip is not None and now - self._fetched_at < self.ttl:
            return self._tip

        self._tip = await client.get_chain_tip()
        self._fetched_at = now
        return self._tip

    def clear(self) -> None:
        self._tip = None
        self._fetched_at = 0.0

    @staticmethod
    def etag(tip: str) -> str:
        return f'"{tip}"'
