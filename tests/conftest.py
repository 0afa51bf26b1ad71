"""Shared fixtures for octo_x402 tests."""

from unittest.mock import MagicMock

import pytest
from eth_account import Account
from solders.hash import Hash

from octo_x402.requirements import build_payment_requirements
from octo_x402.svm.wallet import generate_keypair, keypair_to_base58

MERCHANT_EVM_ADDRESS = "0x0987654321098765432109876543210987654321"
MERCHANT_SVM_ADDRESS = "FSTt5YsTt2dur7ZEqcqQHL4FTR56efDhwgJdEKvYQQea"
RESOURCE_URL = "https://api.example.com/premium"


@pytest.fixture
def evm_account():
    return Account.create()


@pytest.fixture
def evm_key(evm_account):
    return "0x" + bytes(evm_account.key).hex()


@pytest.fixture
def svm_keypair():
    return generate_keypair()


@pytest.fixture
def svm_key(svm_keypair):
    return keypair_to_base58(svm_keypair)


@pytest.fixture
def base_requirements():
    return build_payment_requirements(
        "base", "10000", MERCHANT_EVM_ADDRESS, RESOURCE_URL, "Premium access"
    )


@pytest.fixture
def solana_requirements():
    return build_payment_requirements(
        "solana-devnet", "1000000", MERCHANT_SVM_ADDRESS, RESOURCE_URL, "Premium access"
    )


@pytest.fixture
def blockhash():
    return Hash.new_unique()


@pytest.fixture
def rpc_client(blockhash):
    """Mock Solana RPC client returning a fixed latest blockhash."""
    client = MagicMock()
    client.get_latest_blockhash.return_value = MagicMock(
        value=MagicMock(blockhash=blockhash)
    )
    return client
