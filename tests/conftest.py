import json

import pytest
from eth_account import Account
from eth_account.messages import encode_typed_data

from x402_interceptor.evm.signers import EthAccountSigner
from x402_interceptor.types import PaymentRequirements

USDC_BASE_SEPOLIA = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
PAY_TO = "0x209693bc6afc0c5328ba36faf03c514ef312287c"


class CountingNonceReader:
    """Stands in for ``token.nonces(owner)``: each read returns the next nonce."""

    def __init__(self, start: int = 0):
        self.next_nonce = start
        self.calls = []

    def read_nonce(self, network, token, owner):
        self.calls.append((network, token, owner))
        nonce = self.next_nonce
        self.next_nonce += 1
        return nonce


@pytest.fixture
def account():
    return Account.create()


@pytest.fixture
def signer(account):
    return EthAccountSigner(account)


@pytest.fixture
def nonce_reader():
    return CountingNonceReader(start=7)


@pytest.fixture
def make_requirements():
    def _make(scheme="exact", **overrides):
        fields = {
            "scheme": scheme,
            "network": "base-sepolia",
            "asset": USDC_BASE_SEPOLIA,
            "pay_to": PAY_TO,
            "max_amount_required": "10000",
            "resource": "https://example.com/weather",
            "description": "test",
            "max_timeout_seconds": 300,
            "mime_type": "application/json",
            "extra": {"name": "USDC", "version": "2"},
        }
        fields.update(overrides)
        return PaymentRequirements(**fields)

    return _make


@pytest.fixture
def payment_required_body():
    def _body(*requirements, x402_version=1, error="X-PAYMENT header is required"):
        return json.dumps(
            {
                "x402Version": x402_version,
                "accepts": [r.model_dump(by_alias=True) for r in requirements],
                "error": error,
            }
        ).encode()

    return _body


@pytest.fixture
def recover_signer():
    def _recover(domain, types, message, signature):
        signable = encode_typed_data(
            domain_data=domain, message_types=types, message_data=message
        )
        return Account.recover_message(signable, signature=signature)

    return _recover
