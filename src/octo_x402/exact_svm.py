"""Exact payment scheme implementation for Solana Virtual Machine (SVM)."""

import logging
from typing import Optional

from solana.rpc.api import Client

from octo_x402.errors import ValidationError
from octo_x402.networks import DEFAULT_REGISTRY, ChainFamily, NetworkRegistry
from octo_x402.requirements import ensure_asset_matches
from octo_x402.svm.rpc import (
    DEFAULT_RPC_TIMEOUT,
    account_exists,
    fetch_latest_blockhash,
    get_rpc_client,
    get_rpc_url,
)
from octo_x402.svm.transaction import (
    build_signed_transaction,
    create_transfer_instruction,
    encode_transaction,
    get_associated_token_address_for_owner,
    parse_pubkey,
)
from octo_x402.svm.wallet import solana_keypair
from octo_x402.types import ExactSvmPayload, PaymentPayload, PaymentRequirements

logger = logging.getLogger(__name__)


class ExactSvmSigner:
    """Builds and signs an SPL token transfer for a payment.

    The transaction is bound to a blockhash fetched at signing time, which is
    the only network call. It is signed and returned, never submitted.

    Args:
        registry: Network registry used to resolve RPC endpoints.
        rpc_client: Optional reusable RPC client. When omitted one client is
            created per RPC endpoint and reused for later calls.
        rpc_timeout: Timeout in seconds for clients the signer creates.
        verify_token_accounts: Check that both associated token accounts
            exist before signing, at the cost of two extra RPC calls.
    """

    family = ChainFamily.SVM

    def __init__(
        self,
        registry: Optional[NetworkRegistry] = None,
        rpc_client: Optional[Client] = None,
        rpc_timeout: float = DEFAULT_RPC_TIMEOUT,
        verify_token_accounts: bool = False,
    ):
        self._registry = registry or DEFAULT_REGISTRY
        self._rpc_client = rpc_client
        self._rpc_timeout = rpc_timeout
        self._verify_token_accounts = verify_token_accounts
        self._clients: dict[str, Client] = {}

    def _client_for(self, network: str, rpc_endpoint: Optional[str]) -> Client:
        if rpc_endpoint is None and self._rpc_client is not None:
            return self._rpc_client
        url = get_rpc_url(network, rpc_endpoint, registry=self._registry)
        if url not in self._clients:
            self._clients[url] = get_rpc_client(
                network, url, registry=self._registry, timeout=self._rpc_timeout
            )
        return self._clients[url]

    def sign(
        self,
        requirements: PaymentRequirements,
        signing_key: str,
        rpc_endpoint: Optional[str] = None,
    ) -> tuple[PaymentPayload, str]:
        """Create and sign a payment transaction.

        Args:
            requirements: Requirements for an SVM network
            signing_key: Base58 encoded 64-byte consumer secret key
            rpc_endpoint: Optional RPC URL overriding the registered endpoint

        Returns:
            The signed payload and the consumer address

        Raises:
            UnknownNetworkError: If the network is not registered.
            ValidationError: If the network is not SVM, the asset is not the
                network's USDC, an address is malformed, or a token account
                is missing when verify_token_accounts is set.
            InvalidKeyError: If the key cannot be parsed.
            RpcError: If the blockhash fetch fails or times out.
        """
        descriptor = self._registry.describe(requirements.network)
        if not descriptor.is_svm:
            raise ValidationError(f"{requirements.network} is not an SVM network")
        ensure_asset_matches(requirements, self._registry)

        mint = parse_pubkey(requirements.asset, "asset")
        pay_to = parse_pubkey(requirements.pay_to, "pay_to")
        amount = int(requirements.max_amount_required)

        with solana_keypair(signing_key) as keypair:
            source_ata = get_associated_token_address_for_owner(mint, keypair.pubkey)
            dest_ata = get_associated_token_address_for_owner(mint, pay_to)

            transfer_ix = create_transfer_instruction(
                source=source_ata,
                dest=dest_ata,
                owner=keypair.pubkey,
                amount=amount,
            )

            client = self._client_for(descriptor.id, rpc_endpoint)

            if self._verify_token_accounts:
                for label, ata in (("consumer", source_ata), ("merchant", dest_ata)):
                    if not account_exists(client, ata):
                        raise ValidationError(
                            f"{label} token account {ata} does not exist for mint {mint}"
                        )

            recent_blockhash = fetch_latest_blockhash(client)
            transaction = build_signed_transaction([transfer_ix], keypair, recent_blockhash)
            consumer_address = keypair.address

        payload = PaymentPayload.create(
            descriptor.id,
            ExactSvmPayload(transaction=encode_transaction(transaction)),
            registry=self._registry,
        )
        logger.debug(
            "Signed SVM transfer on %s from %s", descriptor.id, consumer_address
        )
        return payload, consumer_address
