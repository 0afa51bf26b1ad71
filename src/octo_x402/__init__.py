"""octo-x402: multi-chain x402 payment authorization."""

# Networks
from octo_x402.networks import (
    DEFAULT_REGISTRY,
    SUPPORTED_EVM_NETWORKS,
    SUPPORTED_SVM_NETWORKS,
    ChainFamily,
    NetworkDescriptor,
    NetworkRegistry,
    get_network,
)

# Types
from octo_x402.types import (
    EIP3009Authorization,
    ExactEvmPayload,
    ExactSvmPayload,
    PaymentPayload,
    PaymentRequirements,
    SettleResponse,
    SignedPayment,
    VerifyResponse,
    x402_VERSION,
)

# Errors
from octo_x402.errors import (
    CodecError,
    ErrorKind,
    FacilitatorError,
    InvalidKeyError,
    RpcError,
    UnknownNetworkError,
    ValidationError,
    X402Error,
)

from octo_x402.requirements import build_payment_requirements, ensure_asset_matches
from octo_x402.encoding import X_PAYMENT_HEADER, decode_payment, encode_payment
from octo_x402.costs import CostBreakdown, FeePayer, NetworkInfo, estimate_cost, network_info

# Signing
from octo_x402.exact import ExactEvmSigner
from octo_x402.exact_svm import ExactSvmSigner
from octo_x402.signing import PaymentAuthorizer, PaymentSigner

# Facilitator
from octo_x402.facilitator import FacilitatorClient, FacilitatorConfig
from octo_x402.config import Settings

__all__ = [
    # Networks
    "DEFAULT_REGISTRY",
    "SUPPORTED_EVM_NETWORKS",
    "SUPPORTED_SVM_NETWORKS",
    "ChainFamily",
    "NetworkDescriptor",
    "NetworkRegistry",
    "get_network",
    # Types
    "EIP3009Authorization",
    "ExactEvmPayload",
    "ExactSvmPayload",
    "PaymentPayload",
    "PaymentRequirements",
    "SettleResponse",
    "SignedPayment",
    "VerifyResponse",
    "x402_VERSION",
    # Errors
    "CodecError",
    "ErrorKind",
    "FacilitatorError",
    "InvalidKeyError",
    "RpcError",
    "UnknownNetworkError",
    "ValidationError",
    "X402Error",
    # Requirements, codec, costs
    "build_payment_requirements",
    "ensure_asset_matches",
    "X_PAYMENT_HEADER",
    "decode_payment",
    "encode_payment",
    "CostBreakdown",
    "FeePayer",
    "NetworkInfo",
    "estimate_cost",
    "network_info",
    # Signing
    "ExactEvmSigner",
    "ExactSvmSigner",
    "PaymentAuthorizer",
    "PaymentSigner",
    # Facilitator
    "FacilitatorClient",
    "FacilitatorConfig",
    "Settings",
]
