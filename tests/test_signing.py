from unittest.mock import MagicMock

import pytest

from octo_x402.encoding import decode_payment
from octo_x402.errors import UnknownNetworkError, ValidationError
from octo_x402.exact import ExactEvmSigner
from octo_x402.exact_svm import ExactSvmSigner
from octo_x402.networks import ChainFamily
from octo_x402.signing import PaymentAuthorizer


class TestPaymentAuthorizer:
    def test_default_signers(self):
        authorizer = PaymentAuthorizer()
        assert isinstance(authorizer.signer_for("base"), ExactEvmSigner)
        assert isinstance(authorizer.signer_for("solana"), ExactSvmSigner)

    def test_unknown_network(self):
        with pytest.raises(UnknownNetworkError):
            PaymentAuthorizer().signer_for("ethereum")

    def test_missing_signer(self):
        authorizer = PaymentAuthorizer(signers=[ExactEvmSigner()])
        with pytest.raises(ValidationError, match="No signer"):
            authorizer.signer_for("solana-devnet")

    def test_register_replaces_family_signer(self, base_requirements):
        custom = MagicMock(family=ChainFamily.EVM)
        custom.sign.return_value = ("payload", "0xConsumer")
        authorizer = PaymentAuthorizer().register(custom)

        assert authorizer.sign(base_requirements, "key") == ("payload", "0xConsumer")
        custom.sign.assert_called_once_with(base_requirements, "key")

    def test_create_payment_evm(self, evm_account, evm_key, base_requirements):
        signed = PaymentAuthorizer().create_payment(base_requirements, evm_key)
        assert signed.consumer_address == evm_account.address
        assert decode_payment(signed.payment_header) == signed.decoded_payload

    def test_create_payment_svm(self, rpc_client, svm_keypair, svm_key, solana_requirements):
        authorizer = PaymentAuthorizer(
            signers=[ExactEvmSigner(), ExactSvmSigner(rpc_client=rpc_client)]
        )
        signed = authorizer.create_payment(solana_requirements, svm_key)
        assert signed.consumer_address == svm_keypair.address
        assert signed.decoded_payload.family is ChainFamily.SVM
        assert decode_payment(signed.payment_header) == signed.decoded_payload
