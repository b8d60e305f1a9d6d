"""
Clarity type descriptors.

A contract interface declares the type of every function argument, map key
and map value as a JSON fragment (`"uint128"`, `{"buffer": {"length": 32}}`,
`{"tuple": [...]}`, ...). `parse_abi_type` turns those fragments into the
closed set of immutable descriptors below; anything outside the set is
rejected.
"""

from dataclasses import dataclass
from typing import Any, Union

from .errors import InvalidAbiType


@dataclass(frozen=True)
class IntType:
    @property
    def signature(self) -> str:
        return "int"


@dataclass(frozen=True)
class UIntType:
    @property
    def signature(self) -> str:
        return "uint"


@dataclass(frozen=True)
class BoolType:
    @property
    def signature(self) -> str:
        return "bool"


@dataclass(frozen=True)
class PrincipalType:
    @property
    def signature(self) -> str:
        return "principal"


@dataclass(frozen=True)
class BufferType:
    max_len: int

    @property
    def signature(self) -> str:
        return f"(buff {self.max_len})"


@dataclass(frozen=True)
class StringAsciiType:
    max_len: int

    @property
    def signature(self) -> str:
        return f"(string-ascii {self.max_len})"


@dataclass(frozen=True)
class StringUtf8Type:
    max_len: int

    @property
    def signature(self) -> str:
        return f"(string-utf8 {self.max_len})"


@dataclass(frozen=True)
class OptionalType:
    inner: "TypeDescriptor"

    @property
    def signature(self) -> str:
        return f"(optional {self.inner.signature})"


@dataclass(frozen=True)
class ResponseType:
    ok: "TypeDescriptor"
    err: "TypeDescriptor"

    @property
    def signature(self) -> str:
        return f"(response {self.ok.signature} {self.err.signature})"


@dataclass(frozen=True)
class TupleType:
    # Ordered as declared in the contract interface
    fields: tuple[tuple[str, "TypeDescriptor"], ...]

    @property
    def field_names(self) -> list[str]:
        return [name for name, _ in self.fields]

    @property
    def signature(self) -> str:
        inner = " ".join(f"({name} {t.signature})" for name, t in self.fields)
        return f"(tuple {inner})"


@dataclass(frozen=True)
class ListType:
    inner: "TypeDescriptor"
    max_len: int

    @property
    def signature(self) -> str:
        return f"(list {self.max_len} {self.inner.signature})"


TypeDescriptor = Union[
    IntType,
    UIntType,
    BoolType,
    PrincipalType,
    BufferType,
    StringAsciiType,
    StringUtf8Type,
    OptionalType,
    ResponseType,
    TupleType,
    ListType,
]

_SIMPLE_TYPES: dict[str, TypeDescriptor] = {
    "int128": IntType(),
    "uint128": UIntType(),
    "bool": BoolType(),
    "principal": PrincipalType(),
    "trait_reference": PrincipalType(),
}


def _length(spec: Any, kind: str) -> int:
    if not isinstance(spec, dict) or not isinstance(spec.get("length"), int) or spec["length"] < 0:
        raise InvalidAbiType(f"Invalid {kind} length declaration: {spec!r}")
    return spec["length"]


def parse_abi_type(abi_type: Any) -> TypeDescriptor:
    """
    Build a TypeDescriptor from a contract interface type fragment.

    Raises:
        InvalidAbiType: if the fragment is not a supported Clarity type
    """
    if isinstance(abi_type, str):
        if abi_type in _SIMPLE_TYPES:
            return _SIMPLE_TYPES[abi_type]
        raise InvalidAbiType(f"Unsupported Clarity ABI type {abi_type!r}")

    if not isinstance(abi_type, dict) or len(abi_type) != 1:
        raise InvalidAbiType(f"Unsupported Clarity ABI type {abi_type!r}")

    (kind, spec), = abi_type.items()

    if kind == "buffer":
        return BufferType(_length(spec, kind))
    if kind == "string-ascii":
        return StringAsciiType(_length(spec, kind))
    if kind == "string-utf8":
        return StringUtf8Type(_length(spec, kind))
    if kind == "optional":
        return OptionalType(parse_abi_type(spec))
    if kind == "response":
        if not isinstance(spec, dict) or "ok" not in spec or "error" not in spec:
            raise InvalidAbiType(f"Invalid response declaration: {spec!r}")
        return ResponseType(parse_abi_type(spec["ok"]), parse_abi_type(spec["error"]))
    if kind == "tuple":
        if not isinstance(spec, list):
            raise InvalidAbiType(f"Invalid tuple declaration: {spec!r}")
        fields = []
        for entry in spec:
            if not isinstance(entry, dict) or not isinstance(entry.get("name"), str) or "type" not in entry:
                raise InvalidAbiType(f"Invalid tuple field declaration: {entry!r}")
            fields.append((entry["name"], parse_abi_type(entry["type"])))
        return TupleType(tuple(fields))
    if kind == "list":
        if not isinstance(spec, dict) or "type" not in spec:
            raise InvalidAbiType(f"Invalid list declaration: {spec!r}")
        return ListType(parse_abi_type(spec["type"]), _length(spec, kind))

    raise InvalidAbiType(f"Unsupported Clarity ABI type {abi_type!r}")
