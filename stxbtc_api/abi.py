"""
Contract interface models and the ABI argument matcher.

The contract interface is fetched from the Stacks node per request; only the
`name` and `type` fields of function arguments and map keys are read.
"""

from dataclasses import dataclass
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .clarity_types import TypeDescriptor, parse_abi_type
from .codec import encode, to_bytes
from .errors import ArityMismatch, UnknownAbiMember, ValueDecodeError, ValueEncodeError


class AbiArg(BaseModel):
    """A function argument declaration."""

    model_config = ConfigDict(extra="ignore")

    name: str
    type: Any


class AbiFunction(BaseModel):
    """A function declaration."""

    model_config = ConfigDict(extra="ignore")

    name: str
    access: str = ""
    args: list[AbiArg] = Field(default_factory=list)
    outputs: Any = None


class AbiMap(BaseModel):
    """A data map declaration."""

    model_config = ConfigDict(extra="ignore")

    name: str
    key: Any
    value: Any = None


class ContractAbi(BaseModel):
    """Contract interface document as served by `/v2/contracts/interface`."""

    model_config = ConfigDict(extra="ignore")

    functions: list[AbiFunction] = Field(default_factory=list)
    maps: list[AbiMap] = Field(default_factory=list)
    variables: list[dict[str, Any]] = Field(default_factory=list)

    def function(self, name: str) -> AbiFunction:
        for fn in self.functions:
            if fn.name == name:
                return fn
        raise UnknownAbiMember("function", name)

    def map(self, name: str) -> AbiMap:
        for entry in self.maps:
            if entry.name == name:
                return entry
        raise UnknownAbiMember("map", name)


@dataclass(frozen=True)
class AbiParam:
    """A named, typed parameter."""

    name: str
    type: TypeDescriptor


def function_params(fn: AbiFunction) -> list[AbiParam]:
    """Parse a function's declared argument types, in declaration order."""
    return [AbiParam(arg.name, parse_abi_type(arg.type)) for arg in fn.args]


def _passthrough(raw: str, name: str) -> bytes:
    try:
        return to_bytes(raw)
    except ValueDecodeError:
        raise ValueEncodeError("pre-encoded value is not valid hex", name)


def match_args(
    raw_args: list[str],
    params: list[AbiParam],
    encoded: bool = False,
    function_name: Optional[str] = None,
) -> list[bytes]:
    """
    Serialize caller arguments against the declared parameters.

    The i-th argument is encoded with the i-th parameter's type; the ABI
    order is authoritative. With `encoded`, arguments are taken as
    serialized hex and passed through without checking them against the
    declared types.

    Raises:
        ArityMismatch: before any encoding, if the counts differ
        ValueEncodeError: if an argument does not fit its type
    """
    if len(raw_args) != len(params):
        raise ArityMismatch(expected=len(params), actual=len(raw_args), name=function_name)

    serialized = []
    for raw, param in zip(raw_args, params):
        if encoded:
            serialized.append(_passthrough(raw, param.name))
            continue
        try:
            serialized.append(encode(raw, param.type))
        except ValueEncodeError as e:
            raise e.at(param.name)
    return serialized


def encode_map_key(raw_key: str, entry: AbiMap, encoded: bool = False) -> bytes:
    """Serialize a map key against the map's declared key type."""
    key_param = AbiParam("key", parse_abi_type(entry.key))
    return match_args([raw_key], [key_param], encoded=encoded)[0]
