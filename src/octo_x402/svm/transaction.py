"""Solana transaction utilities for x402 payments."""

import base64
from collections.abc import Sequence

from solders.hash import Hash
from solders.instruction import Instruction
from solders.message import MessageV0
from solders.pubkey import Pubkey
from solders.transaction import VersionedTransaction
from spl.token.constants import TOKEN_PROGRAM_ID
from spl.token.instructions import (
    TransferParams,
    get_associated_token_address,
    transfer,
)

from octo_x402.errors import ValidationError
from octo_x402.svm.wallet import Keypair

MAX_U64 = 2**64 - 1


def parse_pubkey(value: str, field: str) -> Pubkey:
    """
    Parse a base58 public key.

    Raises:
        ValidationError: If the value is not a valid public key
    """
    try:
        return Pubkey.from_string(value)
    except ValueError:
        raise ValidationError(f"{field} is not a valid Solana address: {value}") from None


def get_associated_token_address_for_owner(
    mint: Pubkey, owner: Pubkey, token_program_id: Pubkey = TOKEN_PROGRAM_ID
) -> Pubkey:
    """
    Get the associated token account address for an owner and mint.

    The address is a program-derived address; no chain read is made and the
    account is not guaranteed to exist.
    """
    return get_associated_token_address(owner, mint, token_program_id)


def create_transfer_instruction(
    source: Pubkey,
    dest: Pubkey,
    owner: Pubkey,
    amount: int,
    token_program_id: Pubkey = TOKEN_PROGRAM_ID,
) -> Instruction:
    """
    Create an SPL token transfer instruction.

    Args:
        source: Source token account
        dest: Destination token account
        owner: Owner/authority of the source account
        amount: Amount to transfer (in atomic units)
        token_program_id: Token program ID

    Returns:
        Transfer instruction

    Raises:
        ValidationError: If the amount does not fit in a u64
    """
    if amount < 0 or amount > MAX_U64:
        raise ValidationError(f"amount {amount} does not fit in a u64")
    return transfer(
        TransferParams(
            program_id=token_program_id,
            source=source,
            dest=dest,
            owner=owner,
            amount=amount,
        )
    )


def build_signed_transaction(
    instructions: Sequence[Instruction],
    payer: Keypair,
    recent_blockhash: Hash,
) -> VersionedTransaction:
    """
    Compile a v0 message paid by ``payer`` and sign it.

    Args:
        instructions: Instructions to include
        payer: Fee payer and sole signer
        recent_blockhash: Blockhash the transaction is bound to

    Returns:
        Signed versioned transaction
    """
    message = MessageV0.try_compile(
        payer.pubkey,
        list(instructions),
        [],
        recent_blockhash,
    )
    return VersionedTransaction(message, [payer.keypair])


def encode_transaction(transaction: VersionedTransaction) -> str:
    """
    Encode a transaction to base64.

    Args:
        transaction: Transaction to encode

    Returns:
        Base64-encoded transaction
    """
    return base64.b64encode(bytes(transaction)).decode("utf-8")


def decode_transaction(encoded_tx: str) -> VersionedTransaction:
    """
    Decode a base64-encoded transaction.

    Args:
        encoded_tx: Base64-encoded transaction

    Returns:
        Decoded transaction
    """
    tx_bytes = base64.b64decode(encoded_tx)
    return VersionedTransaction.from_bytes(tx_bytes)
