from __future__ import annotations

import base64
import binascii
import re
from typing import Any, Literal, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from octo_x402.errors import UnknownNetworkError
from octo_x402.networks import DEFAULT_REGISTRY, ChainFamily

x402_VERSION = 1
SCHEME_EXACT = "exact"

_MINOR_UNITS_RE = re.compile(r"[0-9]+")
_NONCE_RE = re.compile(r"0x[0-9a-fA-F]{64}")


def is_minor_units(value: Any) -> bool:
    """Check that a value is a non-negative base-10 integer string."""
    return isinstance(value, str) and bool(_MINOR_UNITS_RE.fullmatch(value))


class PaymentRequirements(BaseModel):
    """Returned by a merchant as json alongside a 402 response code"""

    scheme: Literal["exact"] = SCHEME_EXACT
    network: str
    max_amount_required: str
    pay_to: str
    asset: str
    resource: str
    description: str
    mime_type: str = "application/json"
    max_timeout_seconds: int = Field(gt=0)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )

    @field_validator("max_amount_required")
    def validate_max_amount_required(cls, v):
        if not is_minor_units(v):
            raise ValueError("max_amount_required must be a non-negative integer encoded as a string")
        return v


class EIP3009Authorization(BaseModel):
    from_: str = Field(alias="from")
    to: str
    value: str
    valid_after: str
    valid_before: str
    nonce: str

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )

    @field_validator("value", "valid_after", "valid_before")
    def validate_integer_string(cls, v):
        if not is_minor_units(v):
            raise ValueError("must be a non-negative integer encoded as a string")
        return v

    @field_validator("nonce")
    def validate_nonce(cls, v):
        if not _NONCE_RE.fullmatch(v):
            raise ValueError("nonce must be a 0x-prefixed 32-byte hex string")
        return v

    @model_validator(mode="after")
    def validate_window(self):
        if int(self.valid_before) <= int(self.valid_after):
            raise ValueError("valid_before must be greater than valid_after")
        return self


class ExactEvmPayload(BaseModel):
    authorization: EIP3009Authorization
    signature: str

    model_config = ConfigDict(frozen=True)


class ExactSvmPayload(BaseModel):
    transaction: str

    model_config = ConfigDict(frozen=True)

    @field_validator("transaction")
    def validate_transaction(cls, v):
        try:
            raw = base64.b64decode(v, validate=True)
        except binascii.Error:
            raise ValueError("transaction must be base64 encoded")
        if not raw:
            raise ValueError("transaction must not be empty")
        return v


# Union of payloads for each chain family
SchemePayloads = Union[ExactEvmPayload, ExactSvmPayload]

_PAYLOAD_FAMILIES: dict[type, ChainFamily] = {
    ExactEvmPayload: ChainFamily.EVM,
    ExactSvmPayload: ChainFamily.SVM,
}


class PaymentPayload(BaseModel):
    """Signed payment carried in the X-PAYMENT header.

    The payload variant must match the family of ``network``. Validation
    resolves the network against the registry passed in the validation
    context under ``"registry"``, or the default registry.
    """

    x402_version: Literal[1] = x402_VERSION
    scheme: Literal["exact"] = SCHEME_EXACT
    network: str
    payload: SchemePayloads

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        frozen=True,
    )

    @model_validator(mode="after")
    def validate_payload_family(self, info: ValidationInfo):
        registry = (info.context or {}).get("registry") or DEFAULT_REGISTRY
        try:
            descriptor = registry.describe(self.network)
        except UnknownNetworkError as e:
            raise ValueError(e.message)
        if _PAYLOAD_FAMILIES[type(self.payload)] is not descriptor.family:
            raise ValueError(
                f"payload does not match the {descriptor.family.value} network {self.network}"
            )
        return self

    @property
    def family(self) -> ChainFamily:
        return _PAYLOAD_FAMILIES[type(self.payload)]

    @classmethod
    def create(
        cls, network: str, payload: SchemePayloads, registry: Any = None
    ) -> PaymentPayload:
        """Build an exact-scheme payload, resolving ``network`` in ``registry``."""
        return cls.model_validate(
            {
                "x402_version": x402_VERSION,
                "scheme": SCHEME_EXACT,
                "network": network,
                "payload": payload,
            },
            context={"registry": registry},
        )


class SignedPayment(BaseModel):
    """Result of a signing call: the header value plus what it encodes."""

    payment_header: str
    decoded_payload: PaymentPayload
    consumer_address: str

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class VerifyResponse(BaseModel):
    is_valid: bool = Field(alias="isValid")
    invalid_reason: Optional[str] = Field(None, alias="invalidReason")
    payer: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="allow",
    )


class SettleResponse(BaseModel):
    success: bool
    error_reason: Optional[str] = None
    transaction: Optional[str] = None
    signature: Optional[str] = None
    network: Optional[str] = None
    payer: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="allow",
    )

    @property
    def reference(self) -> Optional[str]:
        """Chain-specific settlement reference (EVM tx hash or SVM signature)."""
        return self.transaction or self.signature
