"""Error types raised by the payment authorization engine."""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Closed set of failure kinds surfaced to callers."""

    UNKNOWN_NETWORK = "unknown_network"
    VALIDATION = "validation"
    INVALID_KEY = "invalid_key"
    RPC = "rpc"
    CODEC = "codec"
    FACILITATOR = "facilitator"
    INTERNAL = "internal"


class X402Error(Exception):
    """Base class for payment-related errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Structured representation, safe to return to untrusted callers."""
        return {"kind": self.kind.value, "message": self.message}


class UnknownNetworkError(X402Error):
    """Raised when a network id is not registered."""

    kind = ErrorKind.UNKNOWN_NETWORK

    def __init__(self, network: str):
        super().__init__(f"Unsupported network: {network}")
        self.network = network


class ValidationError(X402Error):
    """Raised when payment requirements fields are malformed."""

    kind = ErrorKind.VALIDATION


class InvalidKeyError(X402Error):
    """Raised when a signing key cannot be parsed for the target chain family.

    The message never contains the key itself.
    """

    kind = ErrorKind.INVALID_KEY


class RpcError(X402Error):
    """Raised when a chain node call fails or times out.

    Transient: the caller may retry with a fresh signing attempt.
    """

    kind = ErrorKind.RPC


class CodecError(X402Error):
    """Raised when an X-PAYMENT header cannot be decoded."""

    kind = ErrorKind.CODEC


class FacilitatorError(X402Error):
    """Raised when the facilitator returns a non-success response."""

    kind = ErrorKind.FACILITATOR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        reason: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if self.status_code is not None:
            data["statusCode"] = self.status_code
        if self.reason is not None:
            data["reason"] = self.reason
        return data
