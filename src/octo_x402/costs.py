"""Consumer-facing cost estimates and network summaries.

Fees are fixed policy constants, not measured on chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Context, Decimal
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from octo_x402.networks import DEFAULT_REGISTRY, NetworkDescriptor, NetworkRegistry
from octo_x402.requirements import validate_amount

USDC_DECIMALS = 6
_MINOR_UNITS_PER_USDC = Decimal(10**USDC_DECIMALS)
_DISPLAY_QUANTUM = Decimal(1).scaleb(-USDC_DECIMALS)
# Wide enough for any uint256 amount without rounding.
_EXACT = Context(prec=100)


class FeePayer(str, Enum):
    CONSUMER = "consumer"
    FACILITATOR = "facilitator"


@dataclass(frozen=True)
class FeePolicy:
    network_fee_usd: Decimal
    fee_payer: FeePayer
    settlement_time: str


EVM_FEE_POLICY = FeePolicy(Decimal("0.001"), FeePayer.FACILITATOR, "~2 seconds")
SVM_FEE_POLICY = FeePolicy(Decimal("0.000005"), FeePayer.CONSUMER, "~400ms")

# Per-network overrides of the family policy.
FEE_POLICY_OVERRIDES: dict[str, FeePolicy] = {
    "avalanche": FeePolicy(Decimal("0.01"), FeePayer.FACILITATOR, "~2 seconds"),
    "avalanche-fuji": FeePolicy(Decimal("0.01"), FeePayer.FACILITATOR, "~2 seconds"),
}

_WHO_PAYS_LABELS = {
    FeePayer.FACILITATOR: "Facilitator pays gas",
    FeePayer.CONSUMER: "Consumer pays transaction fee",
}


def fee_policy(descriptor: NetworkDescriptor) -> FeePolicy:
    if descriptor.id in FEE_POLICY_OVERRIDES:
        return FEE_POLICY_OVERRIDES[descriptor.id]
    return EVM_FEE_POLICY if descriptor.is_evm else SVM_FEE_POLICY


def minor_units_to_usd(amount: str) -> Decimal:
    """Convert a USDC minor-unit integer string to a USD amount."""
    return _EXACT.divide(Decimal(validate_amount(amount)), _MINOR_UNITS_PER_USDC)


def format_usd(value: Decimal) -> str:
    return f"${value.quantize(_DISPLAY_QUANTUM, context=_EXACT)}"


class CostBreakdown(BaseModel):
    network: str
    payment_amount: Decimal
    network_fee: Decimal
    total_cost_to_consumer: Decimal
    who_pays: FeePayer
    settlement_time: str

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    def to_display(self) -> dict[str, str]:
        """Render amounts as dollar strings with six decimals."""
        return {
            "network": self.network,
            "paymentAmount": f"{format_usd(self.payment_amount)} USDC",
            "networkFee": format_usd(self.network_fee),
            "totalCostToConsumer": format_usd(self.total_cost_to_consumer),
            "whoPays": _WHO_PAYS_LABELS[self.who_pays],
            "settlementTime": self.settlement_time,
        }


def estimate_cost(
    network: str, amount: str, registry: Optional[NetworkRegistry] = None
) -> CostBreakdown:
    """Estimate what a payment costs the consumer.

    On EVM networks the facilitator pays gas, so the consumer pays exactly
    the amount. On SVM networks the consumer also pays the transaction fee.

    Args:
        network: Network id
        amount: Payment amount in USDC minor units

    Raises:
        UnknownNetworkError: If the network is not registered.
        ValidationError: If the amount is malformed.
    """
    descriptor = (registry or DEFAULT_REGISTRY).describe(network)
    policy = fee_policy(descriptor)
    amount_usd = minor_units_to_usd(amount)

    if policy.fee_payer is FeePayer.CONSUMER:
        total = _EXACT.add(amount_usd, policy.network_fee_usd)
    else:
        total = amount_usd

    return CostBreakdown(
        network=descriptor.display_name,
        payment_amount=amount_usd,
        network_fee=policy.network_fee_usd,
        total_cost_to_consumer=total,
        who_pays=policy.fee_payer,
        settlement_time=policy.settlement_time,
    )


class NetworkInfo(BaseModel):
    network: str
    name: str
    type: str
    usdc_address: str
    chain_id: Union[int, str]
    rpc_url: str
    fee_structure: str
    settlement_time: str

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


def network_info(network: str, registry: Optional[NetworkRegistry] = None) -> NetworkInfo:
    """Summarize a network for display.

    Raises:
        UnknownNetworkError: If the network is not registered.
    """
    descriptor = (registry or DEFAULT_REGISTRY).describe(network)
    policy = fee_policy(descriptor)
    return NetworkInfo(
        network=descriptor.id,
        name=descriptor.display_name,
        type=descriptor.family.value.upper(),
        usdc_address=descriptor.usdc_asset,
        chain_id=descriptor.chain_id if descriptor.chain_id is not None else "N/A",
        rpc_url=descriptor.rpc_endpoint or "Default provider",
        fee_structure=(
            f"{_WHO_PAYS_LABELS[policy.fee_payer]} (~{format_usd(policy.network_fee_usd)})"
        ),
        settlement_time=policy.settlement_time,
    )

