"""Caller-facing operations returning explicit success/error result objects.

Each operation returns ``{"ok": True, "result": ...}`` or
``{"ok": False, "error": {"kind": ..., "message": ...}}``. Stack traces are
never included.
"""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any, Optional, TypeVar, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from octo_x402.config import Settings
from octo_x402.costs import estimate_cost, network_info
from octo_x402.encoding import decode_payment, encode_payment
from octo_x402.errors import ErrorKind, ValidationError, X402Error
from octo_x402.exact import ExactEvmSigner
from octo_x402.exact_svm import ExactSvmSigner
from octo_x402.facilitator import FacilitatorClient, FacilitatorConfig
from octo_x402.networks import NetworkRegistry
from octo_x402.requirements import build_payment_requirements
from octo_x402.signing import PaymentAuthorizer, PaymentSigner
from octo_x402.types import PaymentPayload, PaymentRequirements, SignedPayment

logger = logging.getLogger(__name__)

ToolResult = dict[str, Any]
F = TypeVar("F", bound=Callable[..., Any])


def ok(result: Any) -> ToolResult:
    if isinstance(result, BaseModel):
        result = result.model_dump(mode="json", by_alias=True, exclude_none=True)
    return {"ok": True, "result": result}


def error(err: X402Error) -> ToolResult:
    return {"ok": False, "error": err.to_dict()}


def tool_result(func: F) -> F:
    """Convert an operation's return value or X402Error into a result object."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> ToolResult:
        try:
            return ok(func(*args, **kwargs))
        except X402Error as e:
            logger.info("%s failed: %s: %s", func.__name__, e.kind.value, e.message)
            return error(e)
        except Exception:
            logger.exception("%s failed unexpectedly", func.__name__)
            return {
                "ok": False,
                "error": {"kind": ErrorKind.INTERNAL.value, "message": "Internal error"},
            }

    return wrapper  # type: ignore[return-value]


def parse_requirements(data: Union[PaymentRequirements, dict[str, Any]]) -> PaymentRequirements:
    if isinstance(data, PaymentRequirements):
        return data
    try:
        return PaymentRequirements.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid payment requirements: {e}") from e


def parse_payload(
    data: Union[PaymentPayload, dict[str, Any], str], registry: NetworkRegistry
) -> PaymentPayload:
    """Accept a payload object, its JSON dict, or an X-PAYMENT header value."""
    if isinstance(data, PaymentPayload):
        return data
    if isinstance(data, str):
        return decode_payment(data, registry)
    try:
        return PaymentPayload.model_validate(data, context={"registry": registry})
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid payment payload: {e}") from e


class X402Tools:
    """The operations exposed to tool callers, bound to one configuration."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        facilitator: Optional[FacilitatorClient] = None,
        evm_signer: Optional[ExactEvmSigner] = None,
        svm_signer: Optional[ExactSvmSigner] = None,
    ):
        self.settings = settings or Settings()
        self.registry = self.settings.registry()
        self.facilitator = facilitator or FacilitatorClient(
            FacilitatorConfig(
                url=self.settings.facilitator_url,
                timeout=self.settings.facilitator_timeout,
            )
        )
        self.evm_signer = evm_signer or ExactEvmSigner(registry=self.registry)
        self.svm_signer = svm_signer or ExactSvmSigner(
            registry=self.registry, rpc_timeout=self.settings.rpc_timeout
        )
        self.authorizer = PaymentAuthorizer(
            self.registry, signers=[self.evm_signer, self.svm_signer]
        )

    def close(self) -> None:
        self.facilitator.close()

    @tool_result
    def get_health(self) -> Any:
        return self.facilitator.health()

    @tool_result
    def get_supported_networks(self) -> Any:
        return self.facilitator.supported()

    @tool_result
    def get_stats(self) -> Any:
        return self.facilitator.stats()

    @tool_result
    def create_payment_requirements(
        self,
        network: str,
        amount: str,
        merchant_wallet: str,
        resource: str,
        description: str,
        mime_type: Optional[str] = None,
    ) -> Any:
        return build_payment_requirements(
            network,
            amount,
            merchant_wallet,
            resource,
            description,
            mime_type=mime_type,
            registry=self.registry,
        )

    def _create_payment(
        self,
        signer: PaymentSigner,
        network: str,
        private_key: str,
        payment_requirements: Union[PaymentRequirements, dict[str, Any]],
    ) -> SignedPayment:
        requirements = parse_requirements(payment_requirements)
        if requirements.network != network:
            raise ValidationError(
                f"network {network} does not match the requirements' network {requirements.network}"
            )
        payload, consumer_address = signer.sign(requirements, private_key)
        return SignedPayment(
            payment_header=encode_payment(payload),
            decoded_payload=payload,
            consumer_address=consumer_address,
        )

    @tool_result
    def create_evm_payment(
        self,
        network: str,
        private_key: str,
        payment_requirements: Union[PaymentRequirements, dict[str, Any]],
    ) -> Any:
        return self._create_payment(self.evm_signer, network, private_key, payment_requirements)

    @tool_result
    def create_solana_payment(
        self,
        network: str,
        private_key: str,
        payment_requirements: Union[PaymentRequirements, dict[str, Any]],
    ) -> Any:
        return self._create_payment(self.svm_signer, network, private_key, payment_requirements)

    @tool_result
    def create_payment(
        self,
        private_key: str,
        payment_requirements: Union[PaymentRequirements, dict[str, Any]],
    ) -> Any:
        """Sign with whichever signer handles the requirements' network."""
        requirements = parse_requirements(payment_requirements)
        return self.authorizer.create_payment(requirements, private_key)

    @tool_result
    def verify_payment(
        self,
        payment_payload: Union[PaymentPayload, dict[str, Any], str],
        payment_requirements: Union[PaymentRequirements, dict[str, Any]],
    ) -> Any:
        payload = parse_payload(payment_payload, self.registry)
        requirements = parse_requirements(payment_requirements)
        return self.facilitator.verify(payload, requirements)

    @tool_result
    def settle_payment(
        self,
        payment_payload: Union[PaymentPayload, dict[str, Any], str],
        payment_requirements: Union[PaymentRequirements, dict[str, Any]],
    ) -> Any:
        payload = parse_payload(payment_payload, self.registry)
        requirements = parse_requirements(payment_requirements)
        return self.facilitator.settle(payload, requirements)

    @tool_result
    def decode_payment_header(self, payment_header: str) -> Any:
        return decode_payment(payment_header, self.registry)

    @tool_result
    def calculate_total_cost(self, network: str, amount: str) -> Any:
        return estimate_cost(network, amount, self.registry).to_display()

    @tool_result
    def get_network_info(self, network: str) -> Any:
        return network_info(network, self.registry)

    @tool_result
    def list_networks(self) -> Any:
        return [
            d.model_dump(mode="json", by_alias=True, exclude_none=True)
            for d in self.registry.list()
        ]
