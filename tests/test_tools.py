import base64
import json

import httpx
import pytest

from octo_x402.config import Settings
from octo_x402.encoding import decode_payment
from octo_x402.errors import CodecError, ValidationError
from octo_x402.exact_svm import ExactSvmSigner
from octo_x402.facilitator import FacilitatorClient, FacilitatorConfig
from octo_x402.networks import DEFAULT_REGISTRY
from octo_x402.tools import X402Tools, parse_payload, tool_result

from .conftest import MERCHANT_EVM_ADDRESS, MERCHANT_SVM_ADDRESS, RESOURCE_URL


def facilitator_handler(request):
    if request.url.path == "/health":
        return httpx.Response(200, json={"status": "healthy"})
    if request.url.path == "/verify":
        return httpx.Response(200, json={"isValid": True, "payer": "payer"})
    if request.url.path == "/settle":
        return httpx.Response(200, json={"success": False, "errorReason": "nonce_used"})
    return httpx.Response(503, text="unavailable")


@pytest.fixture
def tools(rpc_client):
    facilitator = FacilitatorClient(
        FacilitatorConfig(http_client=httpx.Client(transport=httpx.MockTransport(facilitator_handler)))
    )
    return X402Tools(
        Settings(),
        facilitator=facilitator,
        svm_signer=ExactSvmSigner(rpc_client=rpc_client),
    )


def assert_no_trace(result):
    text = json.dumps(result)
    assert "Traceback" not in text
    assert "File \"" not in text


class TestRequirementsTool:
    def test_create_payment_requirements(self, tools):
        result = tools.create_payment_requirements(
            "base", "10000", MERCHANT_EVM_ADDRESS, RESOURCE_URL, "Premium access"
        )
        assert result["ok"] is True
        assert result["result"] == {
            "scheme": "exact",
            "network": "base",
            "maxAmountRequired": "10000",
            "payTo": MERCHANT_EVM_ADDRESS,
            "asset": "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913",
            "resource": RESOURCE_URL,
            "description": "Premium access",
            "mimeType": "application/json",
            "maxTimeoutSeconds": 300,
        }

    def test_unknown_network(self, tools):
        result = tools.create_payment_requirements(
            "ethereum", "10000", MERCHANT_EVM_ADDRESS, RESOURCE_URL, "Premium"
        )
        assert result == {
            "ok": False,
            "error": {"kind": "unknown_network", "message": "Unsupported network: ethereum"},
        }

    def test_bad_amount(self, tools):
        result = tools.create_payment_requirements(
            "base", "1.5", MERCHANT_EVM_ADDRESS, RESOURCE_URL, "Premium"
        )
        assert result["ok"] is False
        assert result["error"]["kind"] == "validation"
        assert_no_trace(result)


class TestPaymentTools:
    def test_create_evm_payment(self, tools, evm_account, evm_key):
        requirements = tools.create_payment_requirements(
            "base-sepolia", "10000", MERCHANT_EVM_ADDRESS, RESOURCE_URL, "Premium"
        )["result"]
        result = tools.create_evm_payment("base-sepolia", evm_key, requirements)

        assert result["ok"] is True
        signed = result["result"]
        assert signed["consumerAddress"] == evm_account.address
        decoded = decode_payment(signed["paymentHeader"])
        assert decoded.model_dump(mode="json", by_alias=True) == signed["decodedPayload"]

    def test_create_solana_payment(self, tools, svm_keypair, svm_key):
        requirements = tools.create_payment_requirements(
            "solana-devnet", "1000000", MERCHANT_SVM_ADDRESS, RESOURCE_URL, "Premium"
        )["result"]
        result = tools.create_solana_payment("solana-devnet", svm_key, requirements)

        assert result["ok"] is True
        assert result["result"]["consumerAddress"] == svm_keypair.address
        assert "transaction" in result["result"]["decodedPayload"]["payload"]

    def test_create_payment_dispatches_by_network(self, tools, evm_account, evm_key, base_requirements):
        result = tools.create_payment(evm_key, base_requirements)
        assert result["ok"] is True
        assert result["result"]["consumerAddress"] == evm_account.address

    def test_network_mismatch(self, tools, evm_key, base_requirements):
        result = tools.create_evm_payment("polygon", evm_key, base_requirements)
        assert result["error"]["kind"] == "validation"

    def test_evm_tool_rejects_solana_requirements(self, tools, evm_key, solana_requirements):
        result = tools.create_evm_payment("solana-devnet", evm_key, solana_requirements)
        assert result["error"]["kind"] == "validation"

    def test_invalid_key_not_echoed(self, tools, base_requirements):
        bad_key = "0xdeadbeef"
        result = tools.create_evm_payment("base", bad_key, base_requirements)
        assert result["error"]["kind"] == "invalid_key"
        assert bad_key not in json.dumps(result)

    def test_oversized_evm_amount_is_validation_error(self, tools, evm_key):
        requirements = tools.create_payment_requirements(
            "base", str(2**256), MERCHANT_EVM_ADDRESS, RESOURCE_URL, "Premium"
        )["result"]
        result = tools.create_evm_payment("base", evm_key, requirements)
        assert result["error"]["kind"] == "validation"

    def test_malformed_requirements(self, tools, evm_key):
        result = tools.create_evm_payment("base", evm_key, {"network": "base"})
        assert result["error"]["kind"] == "validation"
        assert_no_trace(result)

    def test_rpc_failure(self, tools, rpc_client, svm_key, solana_requirements):
        rpc_client.get_latest_blockhash.side_effect = httpx.ReadTimeout("timed out")
        result = tools.create_solana_payment("solana-devnet", svm_key, solana_requirements)
        assert result["error"]["kind"] == "rpc"

    def test_decode_payment_header(self, tools, evm_key, base_requirements):
        signed = tools.create_evm_payment("base", evm_key, base_requirements)["result"]
        result = tools.decode_payment_header(signed["paymentHeader"])
        assert result == {"ok": True, "result": signed["decodedPayload"]}

    def test_decode_bad_header(self, tools):
        result = tools.decode_payment_header(base64.b64encode(b"{}").decode())
        assert result["error"]["kind"] == "codec"


class TestFacilitatorTools:
    def test_get_health(self, tools):
        assert tools.get_health() == {"ok": True, "result": {"status": "healthy"}}

    def test_facilitator_unavailable(self, tools):
        result = tools.get_stats()
        assert result["error"]["kind"] == "facilitator"
        assert result["error"]["statusCode"] == 503

    def test_verify_payment_from_header(self, tools, evm_key, base_requirements):
        signed = tools.create_evm_payment("base", evm_key, base_requirements)["result"]
        result = tools.verify_payment(signed["paymentHeader"], base_requirements)
        assert result == {"ok": True, "result": {"isValid": True, "payer": "payer"}}

    def test_verify_payment_from_dict(self, tools, evm_key, base_requirements):
        signed = tools.create_evm_payment("base", evm_key, base_requirements)["result"]
        result = tools.verify_payment(signed["decodedPayload"], base_requirements.model_dump(by_alias=True))
        assert result["result"]["isValid"] is True

    def test_settle_failure_is_error(self, tools, evm_key, base_requirements):
        signed = tools.create_evm_payment("base", evm_key, base_requirements)["result"]
        result = tools.settle_payment(signed["decodedPayload"], base_requirements)
        assert result["error"]["kind"] == "facilitator"
        assert result["error"]["reason"] == "nonce_used"


class TestInfoTools:
    def test_calculate_total_cost(self, tools):
        result = tools.calculate_total_cost("solana", "1000000")
        assert result["result"]["totalCostToConsumer"] == "$1.000005"

    def test_get_network_info(self, tools):
        result = tools.get_network_info("avalanche")
        assert result["result"]["chainId"] == 43114
        assert result["result"]["name"] == "Avalanche C-Chain"

    def test_list_networks(self, tools):
        result = tools.list_networks()
        assert [n["id"] for n in result["result"]] == DEFAULT_REGISTRY.ids()

    def test_settings_rpc_override_applies(self):
        tools = X402Tools(Settings(rpc_overrides={"solana": "https://rpc.example.com"}))
        assert tools.get_network_info("solana")["result"]["rpcUrl"] == "https://rpc.example.com"
        tools.close()


class TestToolResult:
    def test_unexpected_exception_is_internal(self):
        @tool_result
        def explode():
            raise RuntimeError("secret internal detail")

        result = explode()
        assert result == {"ok": False, "error": {"kind": "internal", "message": "Internal error"}}

    def test_parse_payload_rejects_bad_dict(self):
        with pytest.raises(ValidationError):
            parse_payload({"network": "base"}, DEFAULT_REGISTRY)

    def test_parse_payload_empty_header(self):
        with pytest.raises(CodecError):
            parse_payload("", DEFAULT_REGISTRY)
