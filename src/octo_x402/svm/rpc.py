"""Solana RPC client utilities for x402 payments."""

import logging
from typing import Optional

import httpx
from solana.exceptions import SolanaRpcException
from solana.rpc.api import Client
from solana.rpc.commitment import Finalized
from solana.rpc.core import RPCException
from solders.hash import Hash
from solders.pubkey import Pubkey

from octo_x402.errors import RpcError, ValidationError
from octo_x402.networks import DEFAULT_REGISTRY, NetworkRegistry

logger = logging.getLogger(__name__)

DEFAULT_RPC_TIMEOUT = 10.0

_RPC_ERRORS = (SolanaRpcException, RPCException, httpx.HTTPError)


def get_rpc_url(
    network: str,
    custom_url: Optional[str] = None,
    registry: Optional[NetworkRegistry] = None,
) -> str:
    """
    Get the RPC URL for a given Solana network.

    Args:
        network: Network id ("solana" or "solana-devnet")
        custom_url: Optional custom RPC URL to use instead of the registered one
        registry: Network registry, defaults to the built-in networks

    Returns:
        RPC URL string

    Raises:
        UnknownNetworkError: If the network is not registered
        ValidationError: If the network is not an SVM network
    """
    if custom_url:
        return custom_url

    descriptor = (registry or DEFAULT_REGISTRY).describe(network)
    if not descriptor.is_svm:
        raise ValidationError(f"Unsupported SVM network: {network}")
    return descriptor.rpc_endpoint


def get_rpc_client(
    network: str,
    custom_url: Optional[str] = None,
    registry: Optional[NetworkRegistry] = None,
    timeout: float = DEFAULT_RPC_TIMEOUT,
) -> Client:
    """
    Create a Solana RPC client for the given network.

    Example:
        >>> client = get_rpc_client("solana-devnet")
        >>> blockhash = fetch_latest_blockhash(client)
    """
    url = get_rpc_url(network, custom_url, registry)
    return Client(url, timeout=timeout)


def fetch_latest_blockhash(client: Client) -> Hash:
    """
    Fetch the latest blockhash at finalized commitment.

    The blockhash expires after roughly two minutes, so the transaction
    should be signed and submitted promptly.

    Raises:
        RpcError: If the request fails, times out or returns an RPC error
    """
    try:
        response = client.get_latest_blockhash(commitment=Finalized)
    except _RPC_ERRORS as e:
        logger.warning("Latest blockhash fetch failed: %s", e)
        raise RpcError(f"Failed to fetch latest blockhash: {e}") from e

    value = getattr(response, "value", None)
    if value is None:
        raise RpcError(f"Unexpected RPC response for latest blockhash: {response}")
    return value.blockhash


def account_exists(client: Client, address: Pubkey) -> bool:
    """
    Check whether an account exists on chain.

    Raises:
        RpcError: If the request fails
    """
    try:
        response = client.get_account_info(address, commitment=Finalized)
    except _RPC_ERRORS as e:
        raise RpcError(f"Failed to fetch account {address}: {e}") from e
    return response.value is not None
