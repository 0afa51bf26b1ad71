import os

import pytest

from octo_x402.config import (
    DEFAULT_FACILITATOR_URL,
    Settings,
)
from octo_x402.networks import DEFAULT_REGISTRY


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Isolate os.environ so .env loading cannot leak between tests."""
    env = {k: v for k, v in os.environ.items() if not k.startswith("X402_")}
    monkeypatch.setattr(os, "environ", env)
    return env


@pytest.fixture
def missing_dotenv(tmp_path):
    return str(tmp_path / "missing.env")


def test_defaults(missing_dotenv):
    settings = Settings.from_env(missing_dotenv)
    assert settings.facilitator_url == DEFAULT_FACILITATOR_URL == "https://facilitator.octox402.xyz"
    assert settings.facilitator_timeout == 30.0
    assert settings.rpc_timeout == 10.0
    assert settings.rpc_overrides == {}
    assert settings.log_level == "INFO"
    assert settings.registry() is DEFAULT_REGISTRY


def test_environment_values(clean_env, missing_dotenv):
    clean_env.update(
        {
            "X402_FACILITATOR_URL": "https://facilitator.example.com",
            "X402_FACILITATOR_TIMEOUT": "5",
            "X402_RPC_TIMEOUT": "2.5",
            "X402_SOLANA_DEVNET_RPC_URL": "https://devnet.example.com",
            "X402_LOG_LEVEL": "debug",
        }
    )
    settings = Settings.from_env(missing_dotenv)
    assert settings.facilitator_url == "https://facilitator.example.com"
    assert settings.facilitator_timeout == 5.0
    assert settings.rpc_timeout == 2.5
    assert settings.rpc_overrides == {"solana-devnet": "https://devnet.example.com"}
    assert settings.log_level == "DEBUG"

    registry = settings.registry()
    assert registry.describe("solana-devnet").rpc_endpoint == "https://devnet.example.com"
    assert registry.describe("solana").rpc_endpoint == "https://api.mainnet-beta.solana.com"


def test_dotenv_file(tmp_path):
    dotenv = tmp_path / ".env"
    dotenv.write_text("X402_SOLANA_RPC_URL=https://mainnet.example.com\nX402_RPC_TIMEOUT=3\n")
    settings = Settings.from_env(str(dotenv))
    assert settings.rpc_overrides == {"solana": "https://mainnet.example.com"}
    assert settings.rpc_timeout == 3.0


def test_environment_wins_over_dotenv(clean_env, tmp_path):
    dotenv = tmp_path / ".env"
    dotenv.write_text("X402_FACILITATOR_URL=https://from-file.example.com\n")
    clean_env["X402_FACILITATOR_URL"] = "https://from-env.example.com"
    assert Settings.from_env(str(dotenv)).facilitator_url == "https://from-env.example.com"


def test_empty_values_use_defaults(clean_env, missing_dotenv):
    clean_env.update({"X402_FACILITATOR_URL": "", "X402_RPC_TIMEOUT": " "})
    settings = Settings.from_env(missing_dotenv)
    assert settings.facilitator_url == DEFAULT_FACILITATOR_URL
    assert settings.rpc_timeout == 10.0


@pytest.mark.parametrize("value", ["soon", "0", "-1"])
def test_invalid_timeout(clean_env, missing_dotenv, value):
    clean_env["X402_FACILITATOR_TIMEOUT"] = value
    with pytest.raises(ValueError, match="X402_FACILITATOR_TIMEOUT"):
        Settings.from_env(missing_dotenv)
