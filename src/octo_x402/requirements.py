"""Builds the payment requirements a merchant returns with a 402 response."""

from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from octo_x402.errors import ValidationError
from octo_x402.networks import DEFAULT_REGISTRY, NetworkRegistry
from octo_x402.types import SCHEME_EXACT, PaymentRequirements, is_minor_units

DEFAULT_MIME_TYPE = "application/json"

# Handshake timeout, not the on-chain validity window of an authorization.
DEFAULT_MAX_TIMEOUT_SECONDS = 300


def validate_amount(amount: str) -> str:
    """Ensure an amount is a non-negative base-10 integer string of minor units.

    Raises:
        ValidationError: If the amount is malformed.
    """
    if not is_minor_units(amount):
        raise ValidationError(
            f"amount must be a non-negative integer string in USDC minor units, got {amount!r}"
        )
    return amount


def ensure_asset_matches(
    requirements: PaymentRequirements, registry: Optional[NetworkRegistry] = None
) -> PaymentRequirements:
    """Check that the requirements' asset is the registered USDC asset.

    Raises:
        UnknownNetworkError: If the network is not registered.
        ValidationError: If the asset differs from the network's USDC asset.
    """
    registry = registry or DEFAULT_REGISTRY
    descriptor = registry.describe(requirements.network)
    asset, expected = requirements.asset, descriptor.usdc_asset
    # EVM addresses are hex and case-insensitive; base58 mints are not.
    if descriptor.is_evm:
        asset, expected = asset.lower(), expected.lower()
    if asset != expected:
        raise ValidationError(
            f"asset {requirements.asset} is not the USDC asset for {requirements.network} "
            f"({descriptor.usdc_asset})"
        )
    return requirements


def build_payment_requirements(
    network: str,
    amount: str,
    pay_to: str,
    resource: str,
    description: str,
    mime_type: Optional[str] = None,
    registry: Optional[NetworkRegistry] = None,
) -> PaymentRequirements:
    """Build the canonical requirements object for a payment.

    Args:
        network: Network id, e.g. "base" or "solana-devnet"
        amount: Price in USDC minor units (10**6 = $1) as an integer string
        pay_to: Merchant address receiving the payment
        resource: URL of the paid resource
        description: Human readable description of the purchase
        mime_type: Resource MIME type, defaults to application/json
        registry: Network registry, defaults to the built-in networks

    Returns:
        PaymentRequirements for the "exact" scheme

    Raises:
        UnknownNetworkError: If the network is not registered.
        ValidationError: If a field is malformed or missing.
    """
    registry = registry or DEFAULT_REGISTRY
    descriptor = registry.describe(network)

    validate_amount(amount)
    if not pay_to or not pay_to.strip():
        raise ValidationError("pay_to address is required")
    if not resource or not resource.strip():
        raise ValidationError("resource URL is required")

    try:
        requirements = PaymentRequirements(
            scheme=SCHEME_EXACT,
            network=descriptor.id,
            max_amount_required=amount,
            pay_to=pay_to.strip(),
            asset=descriptor.usdc_asset,
            resource=resource.strip(),
            description=description or "",
            mime_type=mime_type or DEFAULT_MIME_TYPE,
            max_timeout_seconds=DEFAULT_MAX_TIMEOUT_SECONDS,
        )
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid payment requirements: {e}") from e

    return ensure_asset_matches(requirements, registry)
