"""
CLI for the Stacks + Bitcoin utility API.
"""

import json
from typing import Optional

import typer
from dotenv import load_dotenv

from .address import translate
from .clarity_types import parse_abi_type
from .clarity_values import type_signature
from .codec import decode, encode, infer_value, serialize
from .errors import StxBtcError

app = typer.Typer(
    name="stxbtc",
    help="Stacks <-> Bitcoin address conversion and Clarity value encoding",
)


def main() -> None:
    """Entry point."""
    load_dotenv()
    app()


def _fail(e: StxBtcError) -> None:
    typer.echo(f"Error [{e.code}]: {e.message}", err=True)
    raise typer.Exit(1)


@app.command()
def addr(
    address: str = typer.Argument(..., help="Stacks or Bitcoin address"),
    network: Optional[str] = typer.Option(
        None, "--network", "-n", help="Convert to mainnet or testnet"
    ),
) -> None:
    """
    Convert between a Stacks and a Bitcoin address.

    Example:
        stxbtc addr 1FzTxL9Mxnm2fdmnQEArfhzJHevwbvcH6d --network testnet
    """
    if network not in (None, "mainnet", "testnet"):
        typer.echo("Error: --network must be mainnet or testnet", err=True)
        raise typer.Exit(1)

    try:
        info = translate(address, network)
    except StxBtcError as e:
        _fail(e)

    typer.echo(json.dumps(info.to_dict(), indent=2))


@app.command("encode")
def encode_value(
    value: str = typer.Argument(..., help="Human readable value or JSON"),
    type_json: Optional[str] = typer.Option(
        None, "--type", "-t", help='ABI type as JSON, e.g. \'"uint128"\' or \'{"optional": "bool"}\''
    ),
) -> None:
    """
    Serialize a value to Clarity hex.

    Without --type the Clarity type is inferred from the value.
    """
    try:
        if type_json is None:
            cv = infer_value(value)
            signature = type_signature(cv)
            data = serialize(cv)
        else:
            try:
                abi_type = json.loads(type_json)
            except json.JSONDecodeError:
                # Bare names such as uint128 need no quoting
                abi_type = type_json
            t = parse_abi_type(abi_type)
            signature = t.signature
            data = encode(value, t)
    except StxBtcError as e:
        _fail(e)

    typer.echo(f"type: {signature}")
    typer.echo(f"0x{data.hex()}")


@app.command("decode")
def decode_value(
    data: str = typer.Argument(..., help="Serialized Clarity value (hex, optional 0x)"),
    no_unwrap: bool = typer.Option(
        False, "--no-unwrap", help="Keep top-level optional and response wrappers"
    ),
) -> None:
    """Decode a serialized Clarity value to JSON."""
    try:
        result = decode(data, unwrap=not no_unwrap)
    except StxBtcError as e:
        _fail(e)

    typer.echo(json.dumps(result, indent=2))


@app.command()
def serve() -> None:
    """Run the HTTP API server."""
    from .main import run

    run()


if __name__ == "__main__":
    main()
