"""Solana Virtual Machine (SVM) support for x402 payments."""

from octo_x402.svm.wallet import (
    Keypair,
    create_keypair_from_base58,
    generate_keypair,
    keypair_to_base58,
    solana_keypair,
)
from octo_x402.svm.rpc import (
    account_exists,
    fetch_latest_blockhash,
    get_rpc_client,
    get_rpc_url,
)
from octo_x402.svm.transaction import (
    build_signed_transaction,
    create_transfer_instruction,
    decode_transaction,
    encode_transaction,
    get_associated_token_address_for_owner,
)

__all__ = [
    "Keypair",
    "create_keypair_from_base58",
    "generate_keypair",
    "keypair_to_base58",
    "solana_keypair",
    "account_exists",
    "fetch_latest_blockhash",
    "get_rpc_client",
    "get_rpc_url",
    "build_signed_transaction",
    "create_transfer_instruction",
    "decode_transaction",
    "encode_transaction",
    "get_associated_token_address_for_owner",
]
