"""
Clarity value codec.

- `parse_value` / `encode`: type-directed parsing of human or JSON-shaped
  input into a Clarity value and its consensus serialization.
- `deserialize` / `decode`: the reverse direction, optionally unwrapping
  `some` / `ok` / `err` layers before projecting to JSON.
- `infer_value`: best-effort typing of free-form input when no type is known.

Binary layout: one type byte followed by the payload. Integers are 16-byte
big-endian; buffers, strings, lists and tuples carry a u32 length prefix;
tuple field names a u8 length prefix.
"""

import json
import re
from typing import Any, Optional, Union

from .address import c32_address_decode
from .clarity_types import (
    BoolType,
    BufferType,
    IntType,
    ListType,
    OptionalType,
    PrincipalType,
    ResponseType,
    StringAsciiType,
    StringUtf8Type,
    TupleType,
    TypeDescriptor,
    UIntType,
)
from .clarity_values import (
    BoolValue,
    BufferValue,
    ClarityTag,
    ClarityValue,
    ContractPrincipal,
    IntValue,
    ListValue,
    NoneValue,
    ResponseErr,
    ResponseOk,
    SomeValue,
    StandardPrincipal,
    StringAscii,
    StringUtf8,
    TupleValue,
    UIntValue,
    to_json,
)
from .clarity_values import unwrap as unwrap_layers
from .errors import AddressError, MissingField, UnknownField, ValueDecodeError, ValueEncodeError

UINT_MAX = 2**128
INT_MIN = -(2**127)
INT_MAX = 2**127

MAX_CONTRACT_NAME_LENGTH = 128
MAX_DEPTH = 64
# 2**128 has 39 decimal digits
MAX_INTEGER_DIGITS = 40

CONTRACT_NAME_RE = re.compile(r"^[a-zA-Z]([a-zA-Z0-9]|[-_])*$")
CLARITY_NAME_RE = re.compile(r"^[a-zA-Z]([a-zA-Z0-9]|[-_!?+<>=/*])*$")
INT_RE = re.compile(r"^[+-]?[0-9]+$")
UINT_RE = re.compile(r"^u?[0-9]+$")
WRAPPED_RE = re.compile(r"^(some|ok|err)\((.*)\)$", re.DOTALL)


# ============================================================================
# Type-directed parsing
# ============================================================================


def _split_wrapper(raw: Any) -> Optional[tuple[str, Any]]:
    """Split `some(x)` / `ok(x)` / `err(x)` into (tag, inner)."""
    if not isinstance(raw, str):
        return None
    match = WRAPPED_RE.match(raw.strip())
    if match is None:
        return None
    return match.group(1), match.group(2).strip()


def _load_json(raw: Any, expected: type, what: str) -> Any:
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except RecursionError:
            raise ValueEncodeError(f"value nesting exceeds depth {MAX_DEPTH}")
        except ValueError:
            raise ValueEncodeError(f"expected a JSON {what}")
    if not isinstance(raw, expected):
        raise ValueEncodeError(f"expected a JSON {what}")
    return raw


def _parse_integer(raw: Any, pattern: re.Pattern) -> int:
    if isinstance(raw, bool):
        raise ValueEncodeError("expected an integer, got a boolean")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, str) and pattern.match(raw.strip()):
        digits = raw.strip().lstrip("u+-")
        if len(digits) > MAX_INTEGER_DIGITS:
            raise ValueEncodeError(f"integer literal of {len(digits)} digits out of range")
        return int(raw.strip().lstrip("u"))
    raise ValueEncodeError(f"expected a base-10 integer literal, got {raw!r}")


def parse_principal(raw: Any) -> Union[StandardPrincipal, ContractPrincipal]:
    """Parse `SP...` or `SP....contract-name` into a principal value."""
    if not isinstance(raw, str):
        raise ValueEncodeError(f"expected a principal, got {raw!r}")

    address, sep, name = raw.strip().partition(".")
    try:
        version, hash160 = c32_address_decode(address)
    except AddressError as e:
        raise ValueEncodeError(f"invalid principal: {e.message}")

    if not sep:
        return StandardPrincipal(version, hash160)

    if len(name) > MAX_CONTRACT_NAME_LENGTH or not CONTRACT_NAME_RE.fullmatch(name):
        raise ValueEncodeError(f"invalid contract name {name!r}")
    return ContractPrincipal(version, hash160, name)


def _parse_buffer(raw: Any, max_len: int) -> BufferValue:
    if not isinstance(raw, str):
        raise ValueEncodeError(f"expected a hex or text buffer, got {raw!r}")
    if raw[:2].lower() == "0x":
        try:
            data = bytes.fromhex(raw[2:])
        except ValueError:
            raise ValueEncodeError("invalid hex buffer")
    else:
        data = raw.encode("utf-8")
    if len(data) > max_len:
        raise ValueEncodeError(f"buffer of {len(data)} bytes exceeds maximum length {max_len}")
    return BufferValue(data)


def _parse_tuple(raw: Any, t: TupleType) -> TupleValue:
    obj = _load_json(raw, dict, "object")

    names = t.field_names
    missing = [name for name in names if name not in obj]
    if missing:
        raise MissingField("missing tuple field", missing[0])
    extra = [key for key in obj if key not in names]
    if extra:
        raise UnknownField("unknown tuple field", extra[0])

    fields = []
    for name, field_type in t.fields:
        try:
            fields.append((name, parse_value(obj[name], field_type)))
        except ValueEncodeError as e:
            raise e.at(name)
    return TupleValue(tuple(fields))


def _parse_list(raw: Any, t: ListType) -> ListValue:
    items = _load_json(raw, list, "array")
    if len(items) > t.max_len:
        raise ValueEncodeError(f"list of {len(items)} elements exceeds maximum length {t.max_len}")

    values = []
    for i, item in enumerate(items):
        try:
            values.append(parse_value(item, t.inner))
        except ValueEncodeError as e:
            raise e.at(f"[{i}]")
    return ListValue(tuple(values))


def parse_value(raw: Any, t: TypeDescriptor) -> ClarityValue:
    """
    Parse caller input into a Clarity value of type `t`.

    Raises:
        ValueEncodeError: if the input does not fit the type
    """
    if isinstance(t, UIntType):
        n = _parse_integer(raw, UINT_RE)
        if not 0 <= n < UINT_MAX:
            raise ValueEncodeError(f"uint value {n} out of range")
        return UIntValue(n)

    if isinstance(t, IntType):
        n = _parse_integer(raw, INT_RE)
        if not INT_MIN <= n < INT_MAX:
            raise ValueEncodeError(f"int value {n} out of range")
        return IntValue(n)

    if isinstance(t, BoolType):
        if isinstance(raw, bool):
            return BoolValue(raw)
        if raw == "true":
            return BoolValue(True)
        if raw == "false":
            return BoolValue(False)
        raise ValueEncodeError(f"expected true or false, got {raw!r}")

    if isinstance(t, PrincipalType):
        return parse_principal(raw)

    if isinstance(t, BufferType):
        return _parse_buffer(raw, t.max_len)

    if isinstance(t, StringAsciiType):
        if not isinstance(raw, str):
            raise ValueEncodeError(f"expected a string, got {raw!r}")
        if not raw.isascii():
            raise ValueEncodeError("string-ascii value contains non-ASCII characters")
        if len(raw) > t.max_len:
            raise ValueEncodeError(f"string of {len(raw)} bytes exceeds maximum length {t.max_len}")
        return StringAscii(raw)

    if isinstance(t, StringUtf8Type):
        if not isinstance(raw, str):
            raise ValueEncodeError(f"expected a string, got {raw!r}")
        size = len(raw.encode("utf-8"))
        if size > t.max_len:
            raise ValueEncodeError(f"string of {size} bytes exceeds maximum length {t.max_len}")
        return StringUtf8(raw)

    if isinstance(t, OptionalType):
        if raw is None or raw == "none":
            return NoneValue()
        wrapped = _split_wrapper(raw)
        if wrapped is not None and wrapped[0] == "some":
            return SomeValue(parse_value(wrapped[1], t.inner))
        return SomeValue(parse_value(raw, t.inner))

    if isinstance(t, ResponseType):
        wrapped = _split_wrapper(raw)
        if wrapped is None and isinstance(raw, dict) and len(raw) == 1:
            wrapped = next(iter(raw.items()))
        if wrapped is not None and wrapped[0] == "ok":
            return ResponseOk(parse_value(wrapped[1], t.ok))
        if wrapped is not None and wrapped[0] == "err":
            return ResponseErr(parse_value(wrapped[1], t.err))
        raise ValueEncodeError(f"expected ok(...) or err(...), got {raw!r}")

    if isinstance(t, TupleType):
        return _parse_tuple(raw, t)

    if isinstance(t, ListType):
        return _parse_list(raw, t)

    raise ValueEncodeError(f"unsupported type {t!r}")


# ============================================================================
# Serialization
# ============================================================================


def _write_length(buf: bytearray, n: int) -> None:
    buf += n.to_bytes(4, "big")


def _write_name(buf: bytearray, name: str) -> None:
    if len(name) > MAX_CONTRACT_NAME_LENGTH or not CLARITY_NAME_RE.fullmatch(name):
        raise ValueEncodeError("not a valid Clarity name", name)
    raw = name.encode("ascii")
    buf.append(len(raw))
    buf += raw


def _write(buf: bytearray, value: ClarityValue) -> None:
    if isinstance(value, IntValue):
        if not INT_MIN <= value.value < INT_MAX:
            raise ValueEncodeError(f"int value {value.value} out of range")
        buf.append(ClarityTag.INT)
        buf += value.value.to_bytes(16, "big", signed=True)
    elif isinstance(value, UIntValue):
        if not 0 <= value.value < UINT_MAX:
            raise ValueEncodeError(f"uint value {value.value} out of range")
        buf.append(ClarityTag.UINT)
        buf += value.value.to_bytes(16, "big")
    elif isinstance(value, BoolValue):
        buf.append(ClarityTag.BOOL_TRUE if value.value else ClarityTag.BOOL_FALSE)
    elif isinstance(value, BufferValue):
        buf.append(ClarityTag.BUFFER)
        _write_length(buf, len(value.data))
        buf += value.data
    elif isinstance(value, StandardPrincipal):
        buf.append(ClarityTag.PRINCIPAL_STANDARD)
        buf.append(value.version)
        buf += value.hash160
    elif isinstance(value, ContractPrincipal):
        buf.append(ClarityTag.PRINCIPAL_CONTRACT)
        buf.append(value.version)
        buf += value.hash160
        _write_name(buf, value.name)
    elif isinstance(value, ResponseOk):
        buf.append(ClarityTag.RESPONSE_OK)
        _write(buf, value.value)
    elif isinstance(value, ResponseErr):
        buf.append(ClarityTag.RESPONSE_ERR)
        _write(buf, value.value)
    elif isinstance(value, NoneValue):
        buf.append(ClarityTag.OPTIONAL_NONE)
    elif isinstance(value, SomeValue):
        buf.append(ClarityTag.OPTIONAL_SOME)
        _write(buf, value.value)
    elif isinstance(value, ListValue):
        buf.append(ClarityTag.LIST)
        _write_length(buf, len(value.items))
        for item in value.items:
            _write(buf, item)
    elif isinstance(value, TupleValue):
        buf.append(ClarityTag.TUPLE)
        _write_length(buf, len(value.fields))
        for name, field_value in value.fields:
            _write_name(buf, name)
            _write(buf, field_value)
    elif isinstance(value, StringAscii):
        raw = value.value.encode("ascii")
        buf.append(ClarityTag.STRING_ASCII)
        _write_length(buf, len(raw))
        buf += raw
    elif isinstance(value, StringUtf8):
        raw = value.value.encode("utf-8")
        buf.append(ClarityTag.STRING_UTF8)
        _write_length(buf, len(raw))
        buf += raw
    else:
        raise ValueEncodeError(f"not a Clarity value: {value!r}")


def serialize(value: ClarityValue) -> bytes:
    """Serialize a Clarity value to its consensus bytes."""
    buf = bytearray()
    _write(buf, value)
    return bytes(buf)


def encode(raw: Any, t: TypeDescriptor) -> bytes:
    """Parse caller input against `t` and serialize it."""
    return serialize(parse_value(raw, t))


# ============================================================================
# Deserialization
# ============================================================================


class _Reader:
    """Cursor over a serialized Clarity value."""

    def __init__(self, data: bytes):
        self.data = data
        self.pos = 0

    def read(self, n: int) -> bytes:
        if self.pos + n > len(self.data):
            raise ValueDecodeError(f"unexpected end of data at offset {self.pos}")
        chunk = self.data[self.pos : self.pos + n]
        self.pos += n
        return chunk

    def read_byte(self) -> int:
        return self.read(1)[0]

    def read_length(self) -> int:
        return int.from_bytes(self.read(4), "big")

    def read_version(self) -> int:
        version = self.read_byte()
        if version >= 32:
            raise ValueDecodeError(f"invalid principal version {version}")
        return version

    def read_name(self) -> str:
        raw = self.read(self.read_byte())
        try:
            return raw.decode("ascii")
        except UnicodeDecodeError:
            raise ValueDecodeError("name is not valid ASCII")

    def read_value(self, depth: int = 0) -> ClarityValue:
        if depth > MAX_DEPTH:
            raise ValueDecodeError(f"value nesting exceeds depth {MAX_DEPTH}")

        offset = self.pos
        tag = self.read_byte()

        if tag == ClarityTag.INT:
            return IntValue(int.from_bytes(self.read(16), "big", signed=True))
        if tag == ClarityTag.UINT:
            return UIntValue(int.from_bytes(self.read(16), "big"))
        if tag == ClarityTag.BUFFER:
            return BufferValue(self.read(self.read_length()))
        if tag == ClarityTag.BOOL_TRUE:
            return BoolValue(True)
        if tag == ClarityTag.BOOL_FALSE:
            return BoolValue(False)
        if tag == ClarityTag.PRINCIPAL_STANDARD:
            version = self.read_version()
            return StandardPrincipal(version, self.read(20))
        if tag == ClarityTag.PRINCIPAL_CONTRACT:
            version = self.read_version()
            hash160 = self.read(20)
            return ContractPrincipal(version, hash160, self.read_name())
        if tag == ClarityTag.RESPONSE_OK:
            return ResponseOk(self.read_value(depth + 1))
        if tag == ClarityTag.RESPONSE_ERR:
            return ResponseErr(self.read_value(depth + 1))
        if tag == ClarityTag.OPTIONAL_NONE:
            return NoneValue()
        if tag == ClarityTag.OPTIONAL_SOME:
            return SomeValue(self.read_value(depth + 1))
        if tag == ClarityTag.LIST:
            count = self.read_length()
            return ListValue(tuple(self.read_value(depth + 1) for _ in range(count)))
        if tag == ClarityTag.TUPLE:
            count = self.read_length()
            fields = []
            for _ in range(count):
                name = self.read_name()
                fields.append((name, self.read_value(depth + 1)))
            return TupleValue(tuple(fields))
        if tag == ClarityTag.STRING_ASCII:
            raw = self.read(self.read_length())
            try:
                return StringAscii(raw.decode("ascii"))
            except UnicodeDecodeError:
                raise ValueDecodeError("string-ascii value is not valid ASCII")
        if tag == ClarityTag.STRING_UTF8:
            raw = self.read(self.read_length())
            try:
                return StringUtf8(raw.decode("utf-8"))
            except UnicodeDecodeError:
                raise ValueDecodeError("string-utf8 value is not valid UTF-8")

        raise ValueDecodeError(f"unknown type byte 0x{tag:02x} at offset {offset}")


def to_bytes(data: Union[bytes, str]) -> bytes:
    """Accept raw bytes or hex text with an optional 0x prefix."""
    if isinstance(data, bytes):
        return data
    text = data.strip()
    if text[:2].lower() == "0x":
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise ValueDecodeError(f"invalid hex string {data!r}")


def deserialize(data: Union[bytes, str]) -> ClarityValue:
    """
    Read one serialized Clarity value.

    Raises:
        ValueDecodeError: on an unknown type byte, truncated or trailing data
    """
    reader = _Reader(to_bytes(data))
    value = reader.read_value()
    if reader.pos != len(reader.data):
        raise ValueDecodeError(f"{len(reader.data) - reader.pos} trailing bytes after value")
    return value


def decode(data: Union[bytes, str], unwrap: bool = True) -> Any:
    """
    Deserialize a Clarity value and project it to JSON.

    With `unwrap`, outer `some` / `ok` / `err` layers are stripped first and
    `none` becomes None.
    """
    value = deserialize(data)
    if unwrap:
        value = unwrap_layers(value)
    return to_json(value)


# ============================================================================
# Type inference
# ============================================================================


def infer_value(raw: Any, depth: int = 0) -> ClarityValue:
    """
    Build a Clarity value from free-form input without a declared type.

    JSON objects become tuples (fields in name order), arrays become lists,
    `u`-prefixed literals uints, plain integer literals ints, `0x` text
    buffers and Stacks addresses principals. Other text is a string.

    Raises:
        ValueEncodeError: if the input nests deeper than `MAX_DEPTH` or
            holds a value no Clarity type can carry
    """
    if depth > MAX_DEPTH:
        raise ValueEncodeError(f"value nesting exceeds depth {MAX_DEPTH}")

    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith(("{", "[")):
            try:
                parsed = json.loads(text)
            except RecursionError:
                raise ValueEncodeError(f"value nesting exceeds depth {MAX_DEPTH}")
            except ValueError:
                pass
            else:
                return infer_value(parsed, depth)
        if text in ("true", "false"):
            return BoolValue(text == "true")
        if text == "none":
            return NoneValue()
        if re.match(r"^u[0-9]+$", text):
            return parse_value(text, UIntType())
        if INT_RE.match(text):
            return parse_value(text, IntType())
        wrapped = _split_wrapper(text)
        if wrapped is not None:
            tag, inner = wrapped
            wrapper = {"some": SomeValue, "ok": ResponseOk, "err": ResponseErr}[tag]
            return wrapper(infer_value(inner, depth + 1))
        if text[:2].lower() == "0x":
            try:
                return BufferValue(bytes.fromhex(text[2:]))
            except ValueError:
                pass
        if text.startswith("S"):
            try:
                return parse_principal(text)
            except ValueEncodeError:
                pass
        if raw.isascii():
            return StringAscii(raw)
        return StringUtf8(raw)

    if isinstance(raw, bool):
        return BoolValue(raw)
    if isinstance(raw, int):
        return parse_value(raw, IntType())
    if raw is None:
        return NoneValue()
    if isinstance(raw, list):
        return ListValue(tuple(infer_value(item, depth + 1) for item in raw))
    if isinstance(raw, dict):
        return TupleValue(tuple((name, infer_value(raw[name], depth + 1)) for name in sorted(raw)))

    raise ValueEncodeError(f"cannot infer a Clarity type for {raw!r}")
