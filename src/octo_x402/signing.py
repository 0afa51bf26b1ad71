"""Chain-family dispatch for payment signing."""

from __future__ import annotations

from typing import Optional, Protocol

from octo_x402.encoding import encode_payment
from octo_x402.errors import ValidationError
from octo_x402.exact import ExactEvmSigner
from octo_x402.exact_svm import ExactSvmSigner
from octo_x402.networks import DEFAULT_REGISTRY, ChainFamily, NetworkRegistry
from octo_x402.types import PaymentPayload, PaymentRequirements, SignedPayment


class PaymentSigner(Protocol):
    """Signs a payment for one chain family."""

    family: ChainFamily

    def sign(
        self, requirements: PaymentRequirements, signing_key: str
    ) -> tuple[PaymentPayload, str]:
        """Return the signed payload and the consumer address."""
        ...


class PaymentAuthorizer:
    """Selects the signer for a payment by its network's chain family.

    Example:
        ```python
        authorizer = PaymentAuthorizer()
        requirements = build_payment_requirements(
            "base", "10000", merchant, "https://api.example.com/premium", "Premium"
        )
        signed = authorizer.create_payment(requirements, private_key)
        headers = {"X-PAYMENT": signed.payment_header}
        ```
    """

    def __init__(
        self,
        registry: Optional[NetworkRegistry] = None,
        signers: Optional[list[PaymentSigner]] = None,
    ):
        self._registry = registry or DEFAULT_REGISTRY
        self._signers: dict[ChainFamily, PaymentSigner] = {}
        if signers is None:
            signers = [
                ExactEvmSigner(registry=self._registry),
                ExactSvmSigner(registry=self._registry),
            ]
        for signer in signers:
            self.register(signer)

    @property
    def registry(self) -> NetworkRegistry:
        return self._registry

    def register(self, signer: PaymentSigner) -> PaymentAuthorizer:
        """Register the signer for its chain family, replacing any previous one."""
        self._signers[signer.family] = signer
        return self

    def signer_for(self, network: str) -> PaymentSigner:
        """Get the signer for a network.

        Raises:
            UnknownNetworkError: If the network is not registered.
            ValidationError: If no signer handles the network's family.
        """
        family = self._registry.describe(network).family
        try:
            return self._signers[family]
        except KeyError:
            raise ValidationError(
                f"No signer registered for {family.value} network {network}"
            ) from None

    def sign(
        self, requirements: PaymentRequirements, signing_key: str
    ) -> tuple[PaymentPayload, str]:
        return self.signer_for(requirements.network).sign(requirements, signing_key)

    def create_payment(
        self, requirements: PaymentRequirements, signing_key: str
    ) -> SignedPayment:
        """Sign a payment and encode it for the X-PAYMENT header."""
        payload, consumer_address = self.sign(requirements, signing_key)
        return SignedPayment(
            payment_header=encode_payment(payload),
            decoded_payload=payload,
            consumer_address=consumer_address,
        )
