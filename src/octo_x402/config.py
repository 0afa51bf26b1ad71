"""Runtime settings read from the environment (and a .env file if present)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional

from dotenv import load_dotenv

from octo_x402.networks import DEFAULT_REGISTRY, NetworkRegistry

DEFAULT_FACILITATOR_URL = "https://facilitator.octox402.xyz"
DEFAULT_FACILITATOR_TIMEOUT = 30.0
DEFAULT_RPC_TIMEOUT = 10.0
DEFAULT_LOG_LEVEL = "INFO"

# Environment variable -> SVM network whose RPC endpoint it overrides
RPC_URL_ENV_VARS = {
    "X402_SOLANA_RPC_URL": "solana",
    "X402_SOLANA_DEVNET_RPC_URL": "solana-devnet",
}


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        parsed = float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None
    if parsed <= 0:
        raise ValueError(f"{name} must be positive, got {value!r}")
    return parsed


@dataclass(frozen=True)
class Settings:
    facilitator_url: str = DEFAULT_FACILITATOR_URL
    facilitator_timeout: float = DEFAULT_FACILITATOR_TIMEOUT
    rpc_timeout: float = DEFAULT_RPC_TIMEOUT
    rpc_overrides: dict[str, str] = field(default_factory=dict)
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> Settings:
        """Build settings from X402_* environment variables.

        Values already in the environment take precedence over the .env file.
        """
        load_dotenv(dotenv_path)

        rpc_overrides = {
            network: os.environ[name]
            for name, network in RPC_URL_ENV_VARS.items()
            if os.getenv(name)
        }
        return cls(
            facilitator_url=os.getenv("X402_FACILITATOR_URL") or DEFAULT_FACILITATOR_URL,
            facilitator_timeout=_float_env("X402_FACILITATOR_TIMEOUT", DEFAULT_FACILITATOR_TIMEOUT),
            rpc_timeout=_float_env("X402_RPC_TIMEOUT", DEFAULT_RPC_TIMEOUT),
            rpc_overrides=rpc_overrides,
            log_level=(os.getenv("X402_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
        )

    def registry(self) -> NetworkRegistry:
        """The default registry with configured RPC endpoints applied."""
        if not self.rpc_overrides:
            return DEFAULT_REGISTRY
        return DEFAULT_REGISTRY.with_rpc_endpoints(self.rpc_overrides)
