"""Exact payment scheme for EVM networks (EIP-3009 transfer authorizations)."""

import logging
import secrets
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from eth_utils import is_address

from octo_x402.errors import InvalidKeyError, ValidationError
from octo_x402.networks import DEFAULT_REGISTRY, ChainFamily, NetworkRegistry
from octo_x402.requirements import ensure_asset_matches
from octo_x402.types import (
    EIP3009Authorization,
    ExactEvmPayload,
    PaymentPayload,
    PaymentRequirements,
)

logger = logging.getLogger(__name__)

# Must be exactly what name()/version() return on the USDC contract, otherwise
# the facilitator rejects the signature.
EIP712_DOMAIN_NAME = "USD Coin"
EIP712_DOMAIN_VERSION = "2"

# Authorizations are valid immediately for one hour.
VALID_AFTER = 0
DEFAULT_VALIDITY_PERIOD = 3600

MAX_UINT256 = 2**256 - 1

PRIMARY_TYPE = "TransferWithAuthorization"

TRANSFER_WITH_AUTHORIZATION_TYPES = {
    PRIMARY_TYPE: [
        {"name": "from", "type": "address"},
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "validAfter", "type": "uint256"},
        {"name": "validBefore", "type": "uint256"},
        {"name": "nonce", "type": "bytes32"},
    ]
}


def create_nonce() -> str:
    """Create a random 32-byte hex-encoded nonce (0x...) for authorization signatures."""
    return "0x" + secrets.token_hex(32)


@contextmanager
def evm_account(private_key: str) -> Iterator[LocalAccount]:
    """Load an account from a hex private key for the duration of a block.

    Raises:
        InvalidKeyError: If the key is not a valid secp256k1 private key.
            The key is not included in the error or its cause.
    """
    try:
        account = Account.from_key(private_key)
    except Exception:
        raise InvalidKeyError("Signing key is not a valid EVM private key") from None
    try:
        yield account
    finally:
        del account


def build_typed_data(
    chain_id: int,
    verifying_contract: str,
    authorization: EIP3009Authorization,
) -> dict[str, Any]:
    """Build the EIP-712 domain/types/message triple for an authorization."""
    return {
        "types": TRANSFER_WITH_AUTHORIZATION_TYPES,
        "primaryType": PRIMARY_TYPE,
        "domain": {
            "name": EIP712_DOMAIN_NAME,
            "version": EIP712_DOMAIN_VERSION,
            "chainId": chain_id,
            "verifyingContract": verifying_contract,
        },
        "message": {
            "from": authorization.from_,
            "to": authorization.to,
            "value": int(authorization.value),
            "validAfter": int(authorization.valid_after),
            "validBefore": int(authorization.valid_before),
            "nonce": bytes.fromhex(authorization.nonce.removeprefix("0x")),
        },
    }


class ExactEvmSigner:
    """Signs EIP-3009 transferWithAuthorization payloads with a local key.

    No RPC calls are made, so signing cannot fail on network grounds.

    Args:
        registry: Network registry used to resolve chain ids.
        clock: Returns the current unix time in seconds.
        nonce_factory: Returns a fresh 0x-prefixed 32-byte hex nonce.
        validity_period: Seconds the authorization stays valid.
    """

    family = ChainFamily.EVM

    def __init__(
        self,
        registry: Optional[NetworkRegistry] = None,
        clock: Callable[[], float] = time.time,
        nonce_factory: Callable[[], str] = create_nonce,
        validity_period: int = DEFAULT_VALIDITY_PERIOD,
    ):
        self._registry = registry or DEFAULT_REGISTRY
        self._clock = clock
        self._nonce_factory = nonce_factory
        self._validity_period = validity_period

    def sign(
        self, requirements: PaymentRequirements, signing_key: str
    ) -> tuple[PaymentPayload, str]:
        """Create and sign a payment payload answering the requirements.

        Args:
            requirements: Requirements for an EVM network
            signing_key: Hex encoded consumer private key

        Returns:
            The signed payload and the consumer address

        Raises:
            UnknownNetworkError: If the network is not registered.
            ValidationError: If the network is not EVM, the asset is not the
                network's USDC, pay_to is not an EVM address
                or the amount does not fit in a uint256.
            InvalidKeyError: If the key cannot be parsed.
        """
        descriptor = self._registry.describe(requirements.network)
        if not descriptor.is_evm:
            raise ValidationError(f"{requirements.network} is not an EVM network")
        ensure_asset_matches(requirements, self._registry)
        if not is_address(requirements.pay_to):
            raise ValidationError(f"pay_to is not a valid EVM address: {requirements.pay_to}")
        if int(requirements.max_amount_required) > MAX_UINT256:
            raise ValidationError(
                f"amount {requirements.max_amount_required} does not fit in a uint256"
            )

        with evm_account(signing_key) as account:
            now = int(self._clock())
            authorization = EIP3009Authorization(
                from_=account.address,
                to=requirements.pay_to,
                value=requirements.max_amount_required,
                valid_after=str(VALID_AFTER),
                valid_before=str(now + self._validity_period),
                nonce=self._nonce_factory(),
            )
            typed_data = build_typed_data(
                descriptor.chain_id, requirements.asset, authorization
            )

            signed_message = account.sign_typed_data(
                domain_data=typed_data["domain"],
                message_types=typed_data["types"],
                message_data=typed_data["message"],
            )
            signature = signed_message.signature.hex()
            if not signature.startswith("0x"):
                signature = f"0x{signature}"

            consumer_address = account.address

        payload = PaymentPayload.create(
            descriptor.id,
            ExactEvmPayload(authorization=authorization, signature=signature),
            registry=self._registry,
        )
        logger.debug(
            "Signed EVM authorization on %s from %s", descriptor.id, consumer_address
        )
        return payload, consumer_address
