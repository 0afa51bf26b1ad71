"""Solana wallet utilities for x402 payments."""

from collections.abc import Iterator
from contextlib import contextmanager

import base58
from solders.keypair import Keypair as SoldersKeypair
from solders.pubkey import Pubkey

from octo_x402.errors import InvalidKeyError


class Keypair:
    """Wrapper around Solders Keypair for easier usage."""

    def __init__(self, keypair: SoldersKeypair):
        self._keypair = keypair

    @property
    def keypair(self) -> SoldersKeypair:
        """Get the underlying Solders keypair."""
        return self._keypair

    @property
    def pubkey(self) -> Pubkey:
        """Get the public key."""
        return self._keypair.pubkey()

    @property
    def address(self) -> str:
        """Get the base58-encoded address."""
        return str(self.pubkey)

    def __str__(self) -> str:
        return self.address

    def __repr__(self) -> str:
        return f"Keypair({self.address})"


def create_keypair_from_base58(private_key: str) -> Keypair:
    """
    Create a Keypair from a base58-encoded secret key.

    Args:
        private_key: Base58-encoded secret key (64 bytes)

    Returns:
        Keypair instance

    Raises:
        InvalidKeyError: If the key is not base58 or not a 64-byte secret key.
            The key is not included in the error or its cause.
    """
    try:
        secret_bytes = base58.b58decode(private_key)
        solders_keypair = SoldersKeypair.from_bytes(secret_bytes)
    except Exception:
        raise InvalidKeyError("Signing key is not a valid base58 Solana secret key") from None
    return Keypair(solders_keypair)


@contextmanager
def solana_keypair(private_key: str) -> Iterator[Keypair]:
    """Load a keypair from a base58 secret key for the duration of a block."""
    keypair = create_keypair_from_base58(private_key)
    try:
        yield keypair
    finally:
        del keypair


def generate_keypair() -> Keypair:
    """
    Generate a new random keypair.

    Returns:
        Keypair instance
    """
    return Keypair(SoldersKeypair())


def keypair_to_base58(keypair: Keypair) -> str:
    """Encode a keypair's 64-byte secret key as base58."""
    return base58.b58encode(bytes(keypair.keypair)).decode("utf-8")
