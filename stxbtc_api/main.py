"""
Stacks + Bitcoin utility API - human-friendly HTTP endpoints over Stacks and
Bitcoin encodings.

Provides REST endpoints for:
- Address conversion (GET /addr/{address})
- Balances (GET /addr/{address}/balances)
- Bitcoin info for Stacks blocks / transactions (GET /btc-info-from-stx-*)
- Clarity encode / decode (GET /clarity-encode, /clarity-decode)
- Clarity query helpers (GET /data-var, /map-entry, /call-fn)
- Status (GET /status)
"""

import re
from contextlib import asynccontextmanager
from decimal import Decimal
from typing import Any, AsyncGenerator, Optional

import structlog
import uvicorn
from fastapi import Depends, FastAPI, HTTPException, Path, Query, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, RedirectResponse

from . import __version__
from .abi import encode_map_key, function_params, match_args
from .address import Network, translate
from .bitcoin import SATS_PER_BTC, BlockchainInfoClient
from .cache import ChainTipCache
from .clarity_values import to_json, type_signature
from .codec import decode, deserialize, infer_value, serialize
from .config import Settings, get_settings
from .errors import AddressError, StxBtcError, UpstreamError
from .fetch import require_field, require_int
from .models import (
    AddressResponse,
    Balance,
    BalancesResponse,
    BtcInfoFromStxBlockResponse,
    BtcInfoFromStxTxResponse,
    ClarityDecodeResponse,
    ClarityEncodeResponse,
    ErrorResponse,
    StatusResponse,
    StxBlockResponse,
)
from .stacks import ClarityRead, StacksClient

# Configure logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
)

logger = structlog.get_logger()

MICRO_STX_PER_STX = 1_000_000
HASH_PATTERN = r"^(0x)?[0-9a-fA-F]{64}$"


# Global clients (initialized at startup)
_stacks_client: StacksClient | None = None
_bitcoin_client: BlockchainInfoClient | None = None
_tip_cache: ChainTipCache | None = None


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    global _stacks_client, _bitcoin_client, _tip_cache

    settings = get_settings()

    _stacks_client = StacksClient(settings.stacks_api_url, timeout=settings.fetch_timeout)
    _bitcoin_client = BlockchainInfoClient(settings.blockchain_info_api_url, timeout=settings.fetch_timeout)
    _tip_cache = ChainTipCache(ttl=settings.chain_tip_ttl_seconds)

    logger.info(
        "API started",
        version=__version__,
        host=settings.host,
        port=settings.port,
        stacks_api=settings.stacks_api_url,
        blockchain_info_api=settings.blockchain_info_api_url,
    )

    yield

    # Cleanup
    await _stacks_client.close()
    await _bitcoin_client.close()

    logger.info("API stopped")


# Create FastAPI app
app = FastAPI(
    title="Stacks + Bitcoin Utility Service",
    description=(
        "Simple, developer-friendly APIs: Stacks <-> Bitcoin conversions and "
        "automatic Clarity encoding & decoding for Stacks RPC endpoints."
    ),
    version=__version__,
    lifespan=lifespan,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)


# Add CORS middleware
_settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(StxBtcError)
async def stxbtc_error_handler(request: Request, exc: StxBtcError) -> JSONResponse:
    """Render typed failures as JSON error bodies."""
    log = logger.warning if exc.status_code < 500 else logger.error
    log("Request failed", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ============================================================================
# Dependencies
# ============================================================================


def get_stacks_client() -> StacksClient:
    if not _stacks_client:
        raise HTTPException(status_code=503, detail="Stacks client not initialized")
    return _stacks_client


def get_bitcoin_client() -> BlockchainInfoClient:
    if not _bitcoin_client:
        raise HTTPException(status_code=503, detail="Bitcoin client not initialized")
    return _bitcoin_client


def get_tip_cache() -> Optional[ChainTipCache]:
    return _tip_cache


async def chain_tip_etag(
    request: Request,
    response: Response,
    settings: Settings = Depends(get_settings),
    stacks: StacksClient = Depends(get_stacks_client),
    cache: Optional[ChainTipCache] = Depends(get_tip_cache),
) -> None:
    """
    Answer 304 when the client already holds the response for the current
    chain tip, otherwise tag the response with the tip.
    """
    if not settings.cache_enabled or cache is None:
        return

    try:
        tip = await cache.get_tip(stacks)
    except UpstreamError as e:
        logger.warning("Chain tip unavailable, caching skipped", error=e.message)
        return

    etag = ChainTipCache.etag(tip)
    if request.headers.get("if-none-match") == etag:
        raise HTTPException(status_code=304, headers={"ETag": etag})
    response.headers["ETag"] = etag


def _normalize_hash(value: str) -> str:
    value = value.lower()
    return value if value.startswith("0x") else f"0x{value}"


# ============================================================================
# Status
# ============================================================================


@app.get("/", include_in_schema=False)
async def root() -> RedirectResponse:
    return RedirectResponse("/docs")


@app.get("/status", response_model=StatusResponse)
async def status() -> StatusResponse:
    return StatusResponse(status="ok", version=__version__)


# ============================================================================
# Addresses
# ============================================================================


@app.get("/addr/{address}", response_model=AddressResponse, tags=["Utils"])
async def convert_address(
    address: str = Path(..., description="Specify either a Stacks or Bitcoin address"),
    network: Optional[Network] = Query(
        None, description="Specify if the address should be converted to mainnet or testnet"
    ),
) -> AddressResponse:
    """
    Convert between a Stacks or Bitcoin address.

    Returns the Stacks address, Bitcoin address and network version.
    """
    info = translate(address, network)
    return AddressResponse(**info.to_dict())


@app.get("/addr/{address}/balances", response_model=BalancesResponse, tags=["Bitcoin info"])
async def get_balances(
    address: str,
    stacks: StacksClient = Depends(get_stacks_client),
    bitcoin: BlockchainInfoClient = Depends(get_bitcoin_client),
) -> BalancesResponse:
    """Get the STX and BTC balance for an address."""
    info = translate(address, "mainnet")

    micro_stx = await stacks.get_stx_balance(info.stacks)
    sats = await bitcoin.get_final_balance(info.bitcoin)

    return BalancesResponse(
        stacks=Balance(address=info.stacks, balance=f"{Decimal(micro_stx) / MICRO_STX_PER_STX:.6f}"),
        bitcoin=Balance(address=info.bitcoin, balance=f"{Decimal(sats) / SATS_PER_BTC:.8f}"),
    )


# ============================================================================
# Bitcoin info
# ============================================================================


async def _btc_info_for_block(
    block: dict[str, Any],
    settings: Settings,
    bitcoin: BlockchainInfoClient,
) -> dict[str, Any]:
    """Anchoring information shared by the block and transaction lookups."""
    what = "Error reading Stacks block"
    stacks_block_hash = str(require_field(block, "hash", what=what))
    miner_txid = str(require_field(block, "miner_txid", what=what)).removeprefix("0x")
    burn_block_hash = str(require_field(block, "burn_block_hash", what=what)).removeprefix("0x")

    stacks_explorer = settings.stacks_explorer_url.rstrip("/")
    btc_explorer = settings.bitcoin_explorer_url.rstrip("/")

    miner_btc = await bitcoin.get_miner_address(miner_txid)
    miner_stx = None
    if miner_btc:
        try:
            miner_stx = translate(miner_btc).stacks
        except AddressError as e:
            logger.info("Miner address has no Stacks equivalent", address=miner_btc, error=e.message)

    return {
        "stacks_block_hash": stacks_block_hash,
        "stacks_block_explorer": f"{stacks_explorer}/block/{stacks_block_hash}?chain=mainnet",
        "bitcoin_block_hash": burn_block_hash,
        "bitcoin_block_explorer": f"{btc_explorer}/btc/block/{burn_block_hash}",
        "bitcoin_tx": miner_txid,
        "bitcoin_tx_explorer": f"{btc_explorer}/btc/tx/{miner_txid}",
        "miner_btc_address": miner_btc,
        "miner_btc_address_explorer": f"{btc_explorer}/btc/address/{miner_btc}" if miner_btc else None,
        "miner_stx_address": miner_stx,
        "miner_stx_address_explorer": (
            f"{stacks_explorer}/address/{miner_stx}?chain=mainnet" if miner_stx else None
        ),
    }


@app.get(
    "/btc-info-from-stx-tx/{txid}",
    response_model=BtcInfoFromStxTxResponse,
    tags=["Bitcoin info"],
)
async def btc_info_from_stx_tx(
    txid: str = Path(..., pattern=HASH_PATTERN, description="A Stacks transaction ID"),
    settings: Settings = Depends(get_settings),
    stacks: StacksClient = Depends(get_stacks_client),
    bitcoin: BlockchainInfoClient = Depends(get_bitcoin_client),
) -> BtcInfoFromStxTxResponse:
    """Get Bitcoin information for a Stacks transaction."""
    txid = _normalize_hash(txid)
    tx = await stacks.get_transaction(txid)
    # Pending and dropped transactions carry no block
    block_hash = require_field(tx, "block_hash", what=f"Transaction {txid} is not in a block", status_code=400)
    block = await stacks.get_block_by_hash(block_hash)

    info = await _btc_info_for_block(block, settings, bitcoin)
    stacks_explorer = settings.stacks_explorer_url.rstrip("/")
    return BtcInfoFromStxTxResponse(
        stacks_tx=txid,
        stacks_tx_explorer=f"{stacks_explorer}/txid/{txid}?chain=mainnet",
        **info,
    )


@app.get(
    "/btc-info-from-stx-block/{block}",
    response_model=BtcInfoFromStxBlockResponse,
    tags=["Bitcoin info"],
)
async def btc_info_from_stx_block(
    block: str = Path(..., description="A Stacks block hash or block height"),
    settings: Settings = Depends(get_settings),
    stacks: StacksClient = Depends(get_stacks_client),
    bitcoin: BlockchainInfoClient = Depends(get_bitcoin_client),
) -> BtcInfoFromStxBlockResponse:
    """Get Bitcoin information for a Stacks block."""
    if block.isdigit():
        block_data = await stacks.get_block_by_height(int(block))
    elif re.match(HASH_PATTERN, block):
        block_data = await stacks.get_block_by_hash(_normalize_hash(block))
    else:
        raise HTTPException(status_code=400, detail="Expected a Stacks block hash or height")

    info = await _btc_info_for_block(block_data, settings, bitcoin)
    return BtcInfoFromStxBlockResponse(**info)


@app.get("/stx-block", response_model=StxBlockResponse, tags=["Bitcoin info"])
async def stx_block(
    btc_block: str = Query(..., alias="btc-block", description="A Bitcoin block hash or height"),
    stacks: StacksClient = Depends(get_stacks_client),
) -> StxBlockResponse:
    """Get the Stacks block associated with a Bitcoin block."""
    if btc_block.isdigit():
        block = await stacks.get_block_by_burn_block_height(int(btc_block))
    elif re.match(r"^[0-9a-fA-F]{64}$", btc_block):
        block = await stacks.get_block_by_burn_block_hash(btc_block.lower())
    else:
        raise HTTPException(status_code=400, detail="Expected a Bitcoin block hash or height")

    what = "Error reading Stacks block"
    return StxBlockResponse(
        height=require_int(block, "height", what=what),
        hash=require_field(block, "hash", what=what),
        parent_block_hash=require_field(block, "parent_block_hash", what=what),
    )


# ============================================================================
# Clarity utils
# ============================================================================


@app.get("/clarity-decode/{value}", response_model=ClarityDecodeResponse, tags=["Clarity utils"])
async def clarity_decode(value: str = Path(..., examples=["0x03"])) -> ClarityDecodeResponse:
    """Decode a serialized Clarity value (hex) to JSON."""
    cv = deserialize(value)
    return ClarityDecodeResponse(type=type_signature(cv), value=to_json(cv))


@app.get("/clarity-encode/{value}", response_model=ClarityEncodeResponse, tags=["Clarity utils"])
async def clarity_encode(value: str = Path(..., examples=["true"])) -> ClarityEncodeResponse:
    """
    Encode a human readable string or JSON into a serialized Clarity value.

    JSON objects and arrays become tuples and lists.
    """
    cv = infer_value(value)
    return ClarityEncodeResponse(type=type_signature(cv), serialized=f"0x{serialize(cv).hex()}")


# ============================================================================
# Clarity query helpers
# ============================================================================


def _decode_clarity_response(read: ClarityRead, response: Response, no_unwrap: bool) -> Any:
    """Decode a node read into JSON and expose the equivalent curl command."""
    response.headers["x-curl-equiv"] = read.curl
    return decode(read.data, unwrap=not no_unwrap)


@app.get(
    "/data-var/{address}/{contract}/{var}",
    tags=["Clarity query helpers"],
    dependencies=[Depends(chain_tip_etag)],
)
async def data_var(
    address: str,
    contract: str,
    var: str,
    response: Response,
    no_unwrap: bool = Query(False, description="If true, top-level Optional and Response values are not unwrapped"),
    stacks: StacksClient = Depends(get_stacks_client),
) -> Any:
    """Look up a contract data variable, decoded into JSON."""
    read = await stacks.get_data_var(address, contract, var)
    return _decode_clarity_response(read, response, no_unwrap)


@app.get(
    "/map-entry/{address}/{contract}/{map_name}/{key}",
    tags=["Clarity query helpers"],
    dependencies=[Depends(chain_tip_etag)],
)
async def map_entry(
    address: str,
    contract: str,
    map_name: str,
    key: str,
    response: Response,
    key_encoded: bool = Query(False, description="If true, the key is an already serialized Clarity value"),
    no_unwrap: bool = Query(False, description="If true, top-level Optional and Response values are not unwrapped"),
    stacks: StacksClient = Depends(get_stacks_client),
) -> Any:
    """
    Look up a contract map entry by key.

    The key is converted to the map's declared key type unless `key_encoded`
    is set; the entry is decoded into JSON.
    """
    abi = await stacks.get_contract_interface(address, contract)
    serialized_key = encode_map_key(key, abi.map(map_name), encoded=key_encoded)

    read = await stacks.get_map_entry(address, contract, map_name, f"0x{serialized_key.hex()}")
    return _decode_clarity_response(read, response, no_unwrap)


@app.get(
    "/call-fn/{address}/{contract}/{fn}",
    tags=["Clarity query helpers"],
    dependencies=[Depends(chain_tip_etag)],
)
async def call_fn(
    address: str,
    contract: str,
    fn: str,
    response: Response,
    arg: list[str] = Query([], description="Function arguments, in declaration order"),
    sender: Optional[str] = Query(None, description="Sender address for the read-only call"),
    args_encoded: bool = Query(False, description="If true, args are already serialized Clarity values"),
    no_unwrap: bool = Query(False, description="If true, top-level Optional and Response values are not unwrapped"),
    settings: Settings = Depends(get_settings),
    stacks: StacksClient = Depends(get_stacks_client),
) -> Any:
    """
    Perform a read-only function call.

    Arguments are converted to the declared parameter types unless
    `args_encoded` is set; the result is decoded into JSON.
    """
    abi = await stacks.get_contract_interface(address, contract)
    params = function_params(abi.function(fn))
    args = match_args(arg, params, encoded=args_encoded, function_name=fn)

    read = await stacks.call_read(
        address,
        contract,
        fn,
        sender=sender or settings.default_sender,
        arguments=[f"0x{a.hex()}" for a in args],
    )
    return _decode_clarity_response(read, response, no_unwrap)


# ============================================================================
# Entry Point
# ============================================================================


def run() -> None:
    """Run the API server."""
    settings = get_settings()
    uvicorn.run(
        "stxbtc_api.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
