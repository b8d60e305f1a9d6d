"""
Stacks / Bitcoin address conversion utilities.

Supports:
- Stacks addresses (c32check): SP.../SM... (mainnet), ST.../SN... (testnet)
- Bitcoin legacy addresses (base58check): 1.../3... (mainnet), m.../n.../2... (testnet)

Both formats carry the same 20-byte hash160 payload behind a version byte and
a 4-byte double-SHA256 checksum, so conversion is a re-encoding of the payload
under the other chain's version byte and alphabet.
"""

import hashlib
import re
from dataclasses import dataclass
from typing import Literal, Optional

from .errors import InvalidAddressFormat, InvalidChecksum, UnsupportedVersionByte

# Crockford-style base32 alphabet used by c32check
C32_ALPHABET = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"

# Base58 charset
BASE58_CHARSET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"

STACKS_ADDRESS_RE = re.compile(f"^S[{C32_ALPHABET}]+$")
BASE58_RE = re.compile(f"^[{BASE58_CHARSET}]+$")

Network = Literal["mainnet", "testnet"]

# Stacks version bytes per network and hash type
STACKS_VERSIONS: dict[str, dict[str, int]] = {
    "mainnet": {"p2pkh": 22, "p2sh": 20},
    "testnet": {"p2pkh": 26, "p2sh": 21},
}

# Bitcoin version byte -> Stacks version byte
BTC_TO_STX_VERSION = {0: 22, 5: 20, 111: 26, 196: 21}
STX_TO_BTC_VERSION = {v: k for k, v in BTC_TO_STX_VERSION.items()}

HASH160_LENGTH = 20
CHECKSUM_LENGTH = 4


def sha256d(data: bytes) -> bytes:
    """Double SHA256 hash."""
    return hashlib.sha256(hashlib.sha256(data).digest()).digest()


def _checksum(data: bytes) -> bytes:
    return sha256d(data)[:CHECKSUM_LENGTH]


# ============================================================================
# c32
# ============================================================================


def c32_normalize(s: str) -> str:
    """Map the visually ambiguous characters onto the c32 alphabet."""
    return s.upper().replace("O", "0").replace("L", "1").replace("I", "1")


def c32_encode(data: bytes) -> str:
    """
    Encode bytes as c32.

    Each leading zero byte is kept as one leading "0" character so that the
    byte length survives a round trip.
    """
    num = int.from_bytes(data, "big")
    chars = []
    while num > 0:
        num, rem = divmod(num, 32)
        chars.append(C32_ALPHABET[rem])

    leading = len(data) - len(data.lstrip(b"\x00"))
    return "0" * leading + "".join(reversed(chars))


def c32_decode(s: str) -> bytes:
    """Decode a c32 string to bytes."""
    s = c32_normalize(s)

    num = 0
    for c in s:
        idx = C32_ALPHABET.find(c)
        if idx < 0:
            raise InvalidAddressFormat(f"Invalid c32 character {c!r}")
        num = num * 32 + idx

    leading = len(s) - len(s.lstrip("0"))
    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    return b"\x00" * leading + body


def c32check_encode(version: int, data: bytes) -> str:
    """Encode a version byte and payload as a c32check string."""
    if not 0 <= version < 32:
        raise UnsupportedVersionByte(version)
    checksum = _checksum(bytes([version]) + data)
    return C32_ALPHABET[version] + c32_encode(data + checksum)


def c32check_decode(s: str) -> tuple[int, bytes]:
    """
    Decode a c32check string.

    Returns (version, payload).
    """
    s = c32_normalize(s)
    if len(s) < 2:
        raise InvalidAddressFormat("c32check string is too short")

    version = C32_ALPHABET.find(s[0])
    if version < 0:
        raise InvalidAddressFormat(f"Invalid c32 version character {s[0]!r}")

    decoded = c32_decode(s[1:])
    if len(decoded) < CHECKSUM_LENGTH:
        raise InvalidAddressFormat("c32check string is too short")

    data, checksum = decoded[:-CHECKSUM_LENGTH], decoded[-CHECKSUM_LENGTH:]
    if _checksum(bytes([version]) + data) != checksum:
        raise InvalidChecksum("Invalid c32check string: checksum mismatch")

    return version, data


def c32_address(version: int, hash160: bytes) -> str:
    """Build a Stacks address from a version byte and hash160."""
    if len(hash160) != HASH160_LENGTH:
        raise InvalidAddressFormat(f"Expected a {HASH160_LENGTH}-byte hash, got {len(hash160)} bytes")
    return "S" + c32check_encode(version, hash160)


def c32_address_decode(addr: str) -> tuple[int, bytes]:
    """
    Decode a Stacks address.

    Returns (version, hash160).
    """
    if len(addr) <= 5:
        raise InvalidAddressFormat(f"Invalid Stacks address {addr!r}: too short")
    if addr[0] != "S":
        raise InvalidAddressFormat(f"Invalid Stacks address {addr!r}: must start with 'S'")

    version, data = c32check_decode(addr[1:])
    if len(data) != HASH160_LENGTH:
        raise InvalidAddressFormat(f"Invalid Stacks address {addr!r}: payload is {len(data)} bytes")
    return version, data


# ============================================================================
# base58
# ============================================================================


def base58_encode(data: bytes) -> str:
    """Encode bytes as base58 (one leading '1' per leading zero byte)."""
    num = int.from_bytes(data, "big")
    chars = []
    while num > 0:
        num, rem = divmod(num, 58)
        chars.append(BASE58_CHARSET[rem])

    leading = len(data) - len(data.lstrip(b"\x00"))
    return "1" * leading + "".join(reversed(chars))


def base58_decode(s: str) -> bytes:
    """Decode a base58 string to bytes."""
    num = 0
    for c in s:
        idx = BASE58_CHARSET.find(c)
        if idx < 0:
            raise InvalidAddressFormat(f"Invalid base58 character {c!r}")
        num = num * 58 + idx

    leading = len(s) - len(s.lstrip("1"))
    body = num.to_bytes((num.bit_length() + 7) // 8, "big") if num else b""
    return b"\x00" * leading + body


def base58check_encode(version: int, payload: bytes) -> str:
    """Encode a version byte and payload as base58check."""
    if not 0 <= version < 256:
        raise UnsupportedVersionByte(version)
    data = bytes([version]) + payload
    return base58_encode(data + _checksum(data))


def base58check_decode(addr: str) -> tuple[int, bytes]:
    """
    Decode a base58check encoded string.

    Returns (version, payload).
    """
    combined = base58_decode(addr)
    if len(combined) < 1 + CHECKSUM_LENGTH:
        raise InvalidAddressFormat(f"Invalid base58check string {addr!r}: too short")

    data, checksum = combined[:-CHECKSUM_LENGTH], combined[-CHECKSUM_LENGTH:]
    if _checksum(data) != checksum:
        raise InvalidChecksum("Invalid base58check string: checksum mismatch")

    return data[0], data[1:]


# ============================================================================
# Cross-chain conversion
# ============================================================================


def b58_to_c32(addr: str, version: Optional[int] = None) -> str:
    """Convert a Bitcoin address to the Stacks address with the same hash160."""
    btc_version, hash160 = base58check_decode(addr)
    if version is None:
        version = BTC_TO_STX_VERSION.get(btc_version, btc_version)
    return c32_address(version, hash160)


def c32_to_b58(addr: str, version: Optional[int] = None) -> str:
    """Convert a Stacks address to the Bitcoin address with the same hash160."""
    stx_version, hash160 = c32_address_decode(addr)
    if version is None:
        version = STX_TO_BTC_VERSION.get(stx_version, stx_version)
    return base58check_encode(version, hash160)


def network_of(stacks_version: int) -> str:
    """Network name for a Stacks version byte: mainnet, testnet or other."""
    for network, versions in STACKS_VERSIONS.items():
        if stacks_version in versions.values():
            return network
    return "other"


def hash_type_of(stacks_version: int) -> str:
    """Hash type (p2pkh or p2sh) for a known Stacks version byte."""
    for versions in STACKS_VERSIONS.values():
        for hash_type, version in versions.items():
            if version == stacks_version:
                return hash_type
    raise UnsupportedVersionByte(stacks_version)


def remap_version(stacks_version: int, network: str) -> int:
    """
    Return the version byte for `network` with the same hash type.

    A testnet p2sh address maps to mainnet p2sh, never to mainnet p2pkh.
    """
    if network not in STACKS_VERSIONS:
        raise ValueError(f"Unknown network {network!r}")
    return STACKS_VERSIONS[network][hash_type_of(stacks_version)]


@dataclass(frozen=True)
class DecodedAddress:
    """An address after classification and checksum verification."""

    raw_input: str
    family: Literal["stacks", "bitcoin"]
    version: int
    hash160: bytes

    @property
    def stacks_version(self) -> int:
        if self.family == "stacks":
            return self.version
        return BTC_TO_STX_VERSION.get(self.version, self.version)

    @property
    def network(self) -> str:
        return network_of(self.stacks_version)


@dataclass(frozen=True)
class AddressInfo:
    """Both chains' encodings of one hash160."""

    stacks: str
    bitcoin: str
    network: str

    def to_dict(self) -> dict[str, str]:
        return {"stacks": self.stacks, "bitcoin": self.bitcoin, "network": self.network}


def decode_address(addr: str) -> DecodedAddress:
    """
    Classify and decode a Stacks or Bitcoin address.

    Stacks (c32) is tried first, then Bitcoin base58check.
    """
    if STACKS_ADDRESS_RE.match(addr):
        version, hash160 = c32_address_decode(addr)
        return DecodedAddress(addr, "stacks", version, hash160)

    if addr.lower().startswith(("bc1", "tb1", "bcrt1")):
        raise InvalidAddressFormat(f"Segwit address {addr!r} has no Stacks equivalent")

    if BASE58_RE.match(addr):
        version, hash160 = base58check_decode(addr)
        if len(hash160) != HASH160_LENGTH:
            raise InvalidAddressFormat(f"Invalid Bitcoin address {addr!r}: payload is {len(hash160)} bytes")
        return DecodedAddress(addr, "bitcoin", version, hash160)

    raise InvalidAddressFormat(f"Unrecognized address {addr!r}")


def translate(addr: str, network: Optional[Network] = None) -> AddressInfo:
    """
    Convert a Stacks or Bitcoin address into both encodings.

    When `network` is given and differs from the address's own network, the
    version byte is swapped for the sibling with the same hash type; the
    hash160 is never changed.
    """
    decoded = decode_address(addr.strip())

    version = decoded.stacks_version
    if network is not None and network_of(version) != network:
        version = remap_version(version, network)

    return AddressInfo(
        stacks=c32_address(version, decoded.hash160),
        bitcoin=base58check_encode(STX_TO_BTC_VERSION.get(version, version), decoded.hash160),
        network=network_of(version),
    )
