"""
Pydantic models for API responses.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


# ============================================================================
# Status
# ============================================================================

class StatusResponse(BaseModel):
    """Service status."""

    status: str = Field(..., description="Service status")
    version: str = Field(..., description="API version")


# ============================================================================
# Addresses
# ============================================================================

class AddressResponse(BaseModel):
    """Both encodings of an address."""

    stacks: str = Field(..., description="Stacks address")
    bitcoin: str = Field(..., description="Bitcoin address")
    network: str = Field(..., description="mainnet, testnet or other")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "stacks": "SP2J6ZY48GV1EZ5V2V5RB9MP66SW86PYKKNRV9EJ7",
                    "bitcoin": "1FzTxL9Mxnm2fdmnQEArfhzJHevwbvcH6d",
                    "network": "mainnet"
                }
            ]
        }
    }


class Balance(BaseModel):
    """Balance of one address."""

    address: str = Field(..., description="Address")
    balance: str = Field(..., description="Balance in whole coins (fixed point)")


class BalancesResponse(BaseModel):
    """STX and BTC balances of an address pair."""

    stacks: Balance
    bitcoin: Balance


# ============================================================================
# Bitcoin info
# ============================================================================

class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BtcInfoFromStxBlockResponse(_CamelModel):
    """Bitcoin anchoring information for a Stacks block."""

    stacks_block_hash: str
    stacks_block_explorer: str
    bitcoin_block_hash: str
    bitcoin_block_explorer: str
    bitcoin_tx: str
    bitcoin_tx_explorer: str
    miner_btc_address: Optional[str] = None
    miner_btc_address_explorer: Optional[str] = None
    miner_stx_address: Optional[str] = None
    miner_stx_address_explorer: Optional[str] = None


class BtcInfoFromStxTxResponse(BtcInfoFromStxBlockResponse):
    """Bitcoin anchoring information for a Stacks transaction."""

    stacks_tx: str
    stacks_tx_explorer: str


class StxBlockResponse(BaseModel):
    """Stacks block anchored in a Bitcoin block."""

    height: int
    hash: str
    parent_block_hash: str


# ============================================================================
# Clarity utils
# ============================================================================

class ClarityDecodeResponse(BaseModel):
    """A decoded Clarity value."""

    type: str = Field(..., description="Clarity type signature")
    value: Any = Field(None, description="JSON projection of the value")

    model_config = {
        "json_schema_extra": {"examples": [{"type": "bool", "value": True}]}
    }


class ClarityEncodeResponse(BaseModel):
    """A serialized Clarity value."""

    type: str = Field(..., description="Clarity type signature")
    serialized: str = Field(..., description="Serialized value (0x...)")

    model_config = {
        "json_schema_extra": {"examples": [{"type": "bool", "serialized": "0x03"}]}
    }


# ============================================================================
# Errors
# ============================================================================

class ErrorResponse(BaseModel):
    """Body of every typed error response."""

    code: str
    error: str
    message: str
    status_code: int = Field(..., alias="statusCode")
    detail: Optional[dict[str, Any]] = None
