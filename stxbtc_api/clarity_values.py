"""
Clarity values and their JSON projection.
"""

from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Union

from .address import c32_address


class ClarityTag(IntEnum):
    """Leading type byte of a serialized Clarity value."""

    INT = 0x00
    UINT = 0x01
    BUFFER = 0x02
    BOOL_TRUE = 0x03
    BOOL_FALSE = 0x04
    PRINCIPAL_STANDARD = 0x05
    PRINCIPAL_CONTRACT = 0x06
    RESPONSE_OK = 0x07
    RESPONSE_ERR = 0x08
    OPTIONAL_NONE = 0x09
    OPTIONAL_SOME = 0x0A
    LIST = 0x0B
    TUPLE = 0x0C
    STRING_ASCII = 0x0D
    STRING_UTF8 = 0x0E


@dataclass(frozen=True)
class IntValue:
    value: int


@dataclass(frozen=True)
class UIntValue:
    value: int


@dataclass(frozen=True)
class BoolValue:
    value: bool


@dataclass(frozen=True)
class BufferValue:
    data: bytes


@dataclass(frozen=True)
class StandardPrincipal:
    version: int
    hash160: bytes

    @property
    def address(self) -> str:
        return c32_address(self.version, self.hash160)


@dataclass(frozen=True)
class ContractPrincipal:
    version: int
    hash160: bytes
    name: str

    @property
    def address(self) -> str:
        return f"{c32_address(self.version, self.hash160)}.{self.name}"


@dataclass(frozen=True)
class ResponseOk:
    value: "ClarityValue"


@dataclass(frozen=True)
class ResponseErr:
    value: "ClarityValue"


@dataclass(frozen=True)
class NoneValue:
    pass


@dataclass(frozen=True)
class SomeValue:
    value: "ClarityValue"


@dataclass(frozen=True)
class ListValue:
    items: tuple["ClarityValue", ...]


@dataclass(frozen=True)
class TupleValue:
    fields: tuple[tuple[str, "ClarityValue"], ...]


@dataclass(frozen=True)
class StringAscii:
    value: str


@dataclass(frozen=True)
class StringUtf8:
    value: str


ClarityValue = Union[
    IntValue,
    UIntValue,
    BoolValue,
    BufferValue,
    StandardPrincipal,
    ContractPrincipal,
    ResponseOk,
    ResponseErr,
    NoneValue,
    SomeValue,
    ListValue,
    TupleValue,
    StringAscii,
    StringUtf8,
]

WRAPPER_TYPES = (SomeValue, ResponseOk, ResponseErr)


def type_signature(value: ClarityValue) -> str:
    """
    Render the Clarity type of a concrete value.

    Types that cannot be known from the value alone (the other branch of a
    response, the element type of an empty list) render as `UnknownType`.
    """
    if isinstance(value, IntValue):
        return "int"
    if isinstance(value, UIntValue):
        return "uint"
    if isinstance(value, BoolValue):
        return "bool"
    if isinstance(value, BufferValue):
        return f"(buff {len(value.data)})"
    if isinstance(value, (StandardPrincipal, ContractPrincipal)):
        return "principal"
    if isinstance(value, NoneValue):
        return "(optional UnknownType)"
    if isinstance(value, SomeValue):
        return f"(optional {type_signature(value.value)})"
    if isinstance(value, ResponseOk):
        return f"(response {type_signature(value.value)} UnknownType)"
    if isinstance(value, ResponseErr):
        return f"(response UnknownType {type_signature(value.value)})"
    if isinstance(value, ListValue):
        inner = type_signature(value.items[0]) if value.items else "UnknownType"
        return f"(list {len(value.items)} {inner})"
    if isinstance(value, TupleValue):
        inner = " ".join(f"({name} {type_signature(v)})" for name, v in value.fields)
        return f"(tuple {inner})"
    if isinstance(value, StringAscii):
        return f"(string-ascii {len(value.value)})"
    if isinstance(value, StringUtf8):
        return f"(string-utf8 {len(value.value.encode('utf-8'))})"
    raise TypeError(f"Not a Clarity value: {value!r}")


def to_json(value: ClarityValue) -> Any:
    """
    Project a Clarity value onto plain JSON data.

    Integers stay integers, buffers become 0x-prefixed hex and principals
    their address text. Wrappers keep their type so that `some`, `ok` and
    `err` remain distinguishable.
    """
    if isinstance(value, (IntValue, UIntValue, BoolValue, StringAscii, StringUtf8)):
        return value.value
    if isinstance(value, BufferValue):
        return f"0x{value.data.hex()}"
    if isinstance(value, (StandardPrincipal, ContractPrincipal)):
        return value.address
    if isinstance(value, NoneValue):
        return None
    if isinstance(value, SomeValue):
        return {"type": type_signature(value), "value": to_json(value.value)}
    if isinstance(value, (ResponseOk, ResponseErr)):
        return {
            "type": type_signature(value),
            "value": to_json(value.value),
            "success": isinstance(value, ResponseOk),
        }
    if isinstance(value, ListValue):
        return [to_json(item) for item in value.items]
    if isinstance(value, TupleValue):
        return {name: to_json(v) for name, v in value.fields}
    raise TypeError(f"Not a Clarity value: {value!r}")


def unwrap(value: ClarityValue) -> ClarityValue:
    """
    Strip the outer chain of `some`, `ok` and `err` layers.

    Stops at the first value that is not one of those wrappers; `none` is
    returned as is.
    """
    while isinstance(value, WRAPPER_TYPES):
        value = value.value
    return value
