"""
Error taxonomy for the API.

Every failure raised by the core (address translation, Clarity encoding and
decoding, ABI matching) or by an upstream fetch is a `StxBtcError`. Each one
carries a stable error code and the HTTP status the boundary layer should
answer with; the FastAPI handler in `main` renders them.
"""

from typing import Any, Optional


class StxBtcError(Exception):
    """Base class for all typed failures."""

    code = "INTERNAL_ERROR"
    status_code = 500

    def __init__(self, message: str, detail: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "code": self.code,
            "error": self.__class__.__name__,
            "message": self.message,
            "statusCode": self.status_code,
        }
        if self.detail:
            body["detail"] = self.detail
        return body


# ============================================================================
# Address domain (caller fault)
# ============================================================================


class AddressError(StxBtcError):
    status_code = 400


class InvalidAddressFormat(AddressError):
    code = "INVALID_ADDRESS_FORMAT"


class InvalidChecksum(AddressError):
    code = "INVALID_CHECKSUM"


class UnsupportedVersionByte(AddressError):
    code = "UNSUPPORTED_VERSION_BYTE"

    def __init__(self, version: int):
        super().__init__(
            f"Version byte {version} is not a known mainnet or testnet version",
            {"version": version},
        )
        self.version = version


# ============================================================================
# Value domain
# ============================================================================


class ClarityError(StxBtcError):
    pass


class ValueEncodeError(ClarityError):
    """Caller input does not fit the declared Clarity type."""

    code = "CLARITY_SERIALIZE_ERROR"
    status_code = 400

    def __init__(self, reason: str, field: Optional[str] = None):
        message = f"{field}: {reason}" if field else reason
        super().__init__(message, {"field": field} if field else None)
        self.reason = reason
        self.field = field

    def at(self, segment: str) -> "ValueEncodeError":
        """Return a copy with `segment` prepended to the field path."""
        if self.field is None:
            path = segment
        elif self.field.startswith("["):
            path = f"{segment}{self.field}"
        else:
            path = f"{segment}.{self.field}"
        return type(self)(self.reason, path)


class MissingField(ValueEncodeError):
    pass


class UnknownField(ValueEncodeError):
    pass


class ValueDecodeError(ClarityError):
    """A serialized Clarity value could not be read."""

    code = "CLARITY_DESERIALIZE_ERROR"
    status_code = 500

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


# ============================================================================
# ABI domain
# ============================================================================


class AbiError(StxBtcError):
    code = "CONTRACT_ABI_ERROR"
    status_code = 400


class ArityMismatch(AbiError):
    def __init__(self, expected: int, actual: int, name: Optional[str] = None):
        target = f'Contract function "{name}"' if name else "Contract function"
        super().__init__(
            f"{target} requires {expected} arguments but {actual} were provided",
            {"expected": expected, "actual": actual},
        )
        self.expected = expected
        self.actual = actual


class UnknownAbiMember(AbiError):
    status_code = 404

    def __init__(self, kind: str, name: str):
        super().__init__(f'Contract does not contain a {kind} titled "{name}"', {"kind": kind, "name": name})
        self.kind = kind
        self.name = name


class InvalidAbiType(AbiError):
    """The contract interface declares a type outside the supported set."""

    status_code = 502


# ============================================================================
# Upstream (dependency fault)
# ============================================================================


class UpstreamError(StxBtcError):
    """An upstream call failed or answered with a non-2xx status."""

    def __init__(
        self,
        message: str,
        code: str = "FETCH_ERROR",
        status: Optional[int] = None,
        response: Any = None,
        status_code: int = 500,
    ):
        super().__init__(message, {"status": status, "response": response})
        self.code = code
        self.status = status
        self.response = response
        self.status_code = status_code
