"""Supported networks and their USDC deployments."""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from enum import Enum
from types import MappingProxyType
from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

from octo_x402.errors import UnknownNetworkError


class ChainFamily(str, Enum):
    """Transaction model of a network."""

    EVM = "evm"
    SVM = "svm"


class NetworkDescriptor(BaseModel):
    id: str
    family: ChainFamily
    chain_id: Optional[int] = None
    rpc_endpoint: Optional[str] = None
    usdc_asset: str
    display_name: str

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    @model_validator(mode="after")
    def validate_family_fields(self):
        if self.family is ChainFamily.EVM and self.chain_id is None:
            raise ValueError(f"EVM network {self.id} requires a chain id")
        if self.family is ChainFamily.SVM and not self.rpc_endpoint:
            raise ValueError(f"SVM network {self.id} requires an RPC endpoint")
        return self

    @property
    def is_evm(self) -> bool:
        return self.family is ChainFamily.EVM

    @property
    def is_svm(self) -> bool:
        return self.family is ChainFamily.SVM


class NetworkRegistry:
    """Read-only lookup from network id to descriptor.

    Iteration order is the order descriptors were registered in.
    """

    def __init__(self, descriptors: Iterable[NetworkDescriptor]):
        networks: dict[str, NetworkDescriptor] = {}
        for descriptor in descriptors:
            if descriptor.id in networks:
                raise ValueError(f"Duplicate network id: {descriptor.id}")
            networks[descriptor.id] = descriptor
        self._networks = MappingProxyType(networks)

    def describe(self, network: str) -> NetworkDescriptor:
        """Get the descriptor for a network id.

        Raises:
            UnknownNetworkError: If the network is not registered.
        """
        try:
            return self._networks[network]
        except KeyError:
            raise UnknownNetworkError(network) from None

    def list(self) -> list[NetworkDescriptor]:
        return list(self._networks.values())

    def ids(self) -> list[str]:
        return list(self._networks.keys())

    def by_family(self, family: ChainFamily) -> list[NetworkDescriptor]:
        return [d for d in self._networks.values() if d.family is family]

    def with_rpc_endpoints(self, overrides: Mapping[str, str]) -> NetworkRegistry:
        """Return a new registry with SVM RPC endpoints replaced.

        Args:
            overrides: Network id to RPC URL. Empty values are ignored.

        Raises:
            UnknownNetworkError: If an override names an unregistered network.
            ValueError: If an override targets a non-SVM network.
        """
        for network, url in overrides.items():
            if url and not self.describe(network).is_svm:
                raise ValueError(f"RPC endpoint override only applies to SVM networks: {network}")

        return NetworkRegistry(
            d.model_copy(update={"rpc_endpoint": overrides[d.id]})
            if overrides.get(d.id)
            else d
            for d in self._networks.values()
        )

    def __contains__(self, network: object) -> bool:
        return network in self._networks

    def __iter__(self) -> Iterator[NetworkDescriptor]:
        return iter(self._networks.values())

    def __len__(self) -> int:
        return len(self._networks)

    def __repr__(self) -> str:
        return f"NetworkRegistry({', '.join(self._networks)})"


DEFAULT_NETWORKS: tuple[NetworkDescriptor, ...] = (
    NetworkDescriptor(
        id="base",
        family=ChainFamily.EVM,
        chain_id=8453,
        usdc_asset="0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
        display_name="Base Mainnet",
    ),
    NetworkDescriptor(
        id="base-sepolia",
        family=ChainFamily.EVM,
        chain_id=84532,
        usdc_asset="0x036CbD53842c5426634e7929541eC2318f3dCF7e",
        display_name="Base Sepolia Testnet",
    ),
    NetworkDescriptor(
        id="polygon",
        family=ChainFamily.EVM,
        chain_id=137,
        usdc_asset="0x3c499c542cEF5E3811e1192ce70d8cC03d5c3359",
        display_name="Polygon Mainnet",
    ),
    NetworkDescriptor(
        id="polygon-amoy",
        family=ChainFamily.EVM,
        chain_id=80002,
        usdc_asset="0x41e94eb019c0762f9bfcf9fb1e58725bfb0e7582",
        display_name="Polygon Amoy Testnet",
    ),
    NetworkDescriptor(
        id="avalanche",
        family=ChainFamily.EVM,
        chain_id=43114,
        usdc_asset="0xB97EF9Ef8734C71904D8002F8b6Bc66Dd9c48a6E",
        display_name="Avalanche C-Chain",
    ),
    NetworkDescriptor(
        id="avalanche-fuji",
        family=ChainFamily.EVM,
        chain_id=43113,
        usdc_asset="0x5425890298aed601595a70AB815c96711a31Bc65",
        display_name="Avalanche Fuji Testnet",
    ),
    NetworkDescriptor(
        id="solana",
        family=ChainFamily.SVM,
        rpc_endpoint="https://api.mainnet-beta.solana.com",
        usdc_asset="EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v",
        display_name="Solana Mainnet",
    ),
    NetworkDescriptor(
        id="solana-devnet",
        family=ChainFamily.SVM,
        rpc_endpoint="https://api.devnet.solana.com",
        usdc_asset="4zMMC9srt5Ri5X14GAgXhaHii3GnPAEERYPJgZJDncDU",
        display_name="Solana Devnet",
    ),
)

DEFAULT_REGISTRY = NetworkRegistry(DEFAULT_NETWORKS)

SUPPORTED_EVM_NETWORKS = [d.id for d in DEFAULT_REGISTRY.by_family(ChainFamily.EVM)]
SUPPORTED_SVM_NETWORKS = [d.id for d in DEFAULT_REGISTRY.by_family(ChainFamily.SVM)]


def get_network(network: str) -> NetworkDescriptor:
    """Look up a network in the default registry."""
    return DEFAULT_REGISTRY.describe(network)
