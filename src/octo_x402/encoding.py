import base64
import binascii
from typing import Optional, Union

from pydantic import ValidationError as PydanticValidationError

from octo_x402.errors import CodecError
from octo_x402.networks import NetworkRegistry
from octo_x402.types import PaymentPayload

X_PAYMENT_HEADER = "X-PAYMENT"


def safe_base64_encode(data: Union[str, bytes]) -> str:
    """Safely encode string or bytes to base64 string.

    Args:
        data: String or bytes to encode

    Returns:
        Base64 encoded string
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("utf-8")


def safe_base64_decode(data: str) -> str:
    """Safely decode base64 string to bytes and then to utf-8 string.

    Args:
        data: Base64 encoded string

    Returns:
        Decoded utf-8 string

    Raises:
        CodecError: If the input is not strict base64 or not utf-8
    """
    try:
        raw = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError) as e:
        raise CodecError(f"Invalid base64: {e}") from e
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise CodecError("Decoded header is not valid utf-8") from e


def encode_payment(payment_payload: PaymentPayload) -> str:
    """Encode a payment payload into the X-PAYMENT header value.

    Args:
        payment_payload: Signed payment payload

    Returns:
        Base64 of the payload's JSON serialization
    """
    return safe_base64_encode(payment_payload.model_dump_json(by_alias=True))


def decode_payment(
    encoded_payment: str, registry: Optional[NetworkRegistry] = None
) -> PaymentPayload:
    """Decode an X-PAYMENT header value back into a PaymentPayload.

    Args:
        encoded_payment: Base64 encoded payment header
        registry: Registry used to resolve the payload's network family

    Returns:
        Decoded PaymentPayload

    Raises:
        CodecError: If the header is not base64, not JSON, or does not match
            the payload schema for its network
    """
    if not encoded_payment or not encoded_payment.strip():
        raise CodecError("Payment header is empty")

    json_str = safe_base64_decode(encoded_payment.strip())
    context = {"registry": registry} if registry is not None else None
    try:
        return PaymentPayload.model_validate_json(json_str, context=context)
    except PydanticValidationError as e:
        errors = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'payload'}: {err['msg']}"
            for err in e.errors()
        )
        raise CodecError(f"Invalid payment payload: {errors}") from e
