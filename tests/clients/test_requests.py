import base64
import json
from unittest.mock import patch

import pytest
from requests import PreparedRequest, Response

from x402_interceptor.clients.base import get_payment_receipt, x402Client
from x402_interceptor.clients.requests import (
    x402HTTPAdapter,
    x402_http_adapter,
    x402_requests,
)
from x402_interceptor.config import AuthorizationType, EvmConfig, X402Config
from x402_interceptor.encoding import decode_payment_header
from x402_interceptor.exceptions import (
    PaymentError,
    PaymentProtocolError,
    Permit2AllowanceError,
)


def make_response(status_code, content=b"", headers=None):
    response = Response()
    response.status_code = status_code
    response._content = content
    response.headers.update(headers or {})
    return response


def make_request(method="GET", url="https://example.com/weather", **kwargs):
    request = PreparedRequest()
    request.prepare(method, url, **kwargs)
    return request


class FakeServer:
    """Records the requests seen by HTTPAdapter.send and replays responses."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, request, **kwargs):
        self.requests.append(request)
        return self.responses.pop(0)


@pytest.fixture
def adapter(signer):
    return x402_http_adapter(signer)


def permit2_adapter(signer):
    config = X402Config(evm_config=EvmConfig(authorization_type="permit2"))
    return x402_http_adapter(signer, config=config)


def test_x402_requests_mounts_adapter(signer):
    session = x402_requests(signer, max_value=1000)
    adapter = session.get_adapter("https://example.com")

    assert isinstance(adapter, x402HTTPAdapter)
    assert session.get_adapter("http://example.com") is adapter
    assert adapter._client.max_value == 1000


def test_x402_http_adapter_reuses_client(signer):
    client = x402Client(signer)
    assert x402_http_adapter(client)._client is client


def test_adapter_send_success(adapter):
    # Test adapter with successful response
    server = FakeServer(make_response(200, b"success"))

    with patch("requests.adapters.HTTPAdapter.send", side_effect=server):
        response = adapter.send(make_request())

    assert response.status_code == 200
    assert response.content == b"success"
    assert len(server.requests) == 1
    assert get_payment_receipt(response) is None


def test_adapter_send_non_402(adapter):
    # Test adapter with non-402 response
    server = FakeServer(make_response(404, b"not found"))

    with patch("requests.adapters.HTTPAdapter.send", side_effect=server):
        response = adapter.send(make_request())

    assert response.status_code == 404
    assert response.content == b"not found"
    assert len(server.requests) == 1


def test_adapter_pays_and_retries_once(adapter, make_requirements, payment_required_body):
    receipt_header = base64.b64encode(
        json.dumps(
            {"success": True, "transaction": "0x1234", "network": "base-sepolia", "payer": "0x5678"}
        ).encode()
    ).decode()
    server = FakeServer(
        make_response(402, payment_required_body(make_requirements())),
        make_response(200, b"paid content", {"X-PAYMENT-RESPONSE": receipt_header}),
    )
    request = make_request("POST", json={"city": "Lisbon"}, headers={"X-Trace": "abc"})

    with patch("requests.adapters.HTTPAdapter.send", side_effect=server):
        response = adapter.send(request)

    assert response.status_code == 200
    assert response.content == b"paid content"
    assert len(server.requests) == 2

    original, retry = server.requests
    assert retry is not original
    assert "X-PAYMENT" not in original.headers
    assert retry.method == "POST"
    assert retry.url == original.url
    assert retry.body == original.body
    assert retry.headers["X-Trace"] == "abc"
    assert retry.headers["Access-Control-Expose-Headers"] == "X-PAYMENT-RESPONSE"

    payment = decode_payment_header(retry.headers["X-PAYMENT"])
    assert payment.scheme == AuthorizationType.EIP3009
    assert payment.network == "base-sepolia"

    receipt = get_payment_receipt(response)
    assert receipt.success is True
    assert receipt.transaction == "0x1234"
    assert receipt.scheme == "eip3009"


def test_adapter_does_not_retry_twice(adapter, make_requirements, payment_required_body):
    body = payment_required_body(make_requirements())
    server = FakeServer(make_response(402, body), make_response(402, body))

    with patch("requests.adapters.HTTPAdapter.send", side_effect=server):
        response = adapter.send(make_request())

    assert response.status_code == 402
    assert len(server.requests) == 2
    assert get_payment_receipt(response) is None


def test_adapter_malformed_receipt_header(adapter, make_requirements, payment_required_body):
    server = FakeServer(
        make_response(402, payment_required_body(make_requirements())),
        make_response(200, b"paid content", {"X-PAYMENT-RESPONSE": "é"}),
    )

    with patch("requests.adapters.HTTPAdapter.send", side_effect=server):
        response = adapter.send(make_request())

    assert response.status_code == 200
    assert response.content == b"paid content"
    assert len(server.requests) == 2
    assert get_payment_receipt(response) is None


def test_adapter_returns_402_when_nothing_matches(signer, make_requirements, payment_required_body):
    adapter = permit2_adapter(signer)
    body = payment_required_body(make_requirements(scheme="permit"))
    server = FakeServer(make_response(402, body))

    with patch("requests.adapters.HTTPAdapter.send", side_effect=server):
        response = adapter.send(make_request())

    assert response.status_code == 402
    assert response.content == body
    assert len(server.requests) == 1


def test_adapter_invalid_402_body(adapter):
    server = FakeServer(make_response(402, b"payment required"))

    with patch("requests.adapters.HTTPAdapter.send", side_effect=server):
        with pytest.raises(PaymentProtocolError):
            adapter.send(make_request())

    assert len(server.requests) == 1


def test_adapter_wraps_unexpected_errors(adapter, make_requirements, payment_required_body):
    server = FakeServer(make_response(402, payment_required_body(make_requirements())))

    with patch("requests.adapters.HTTPAdapter.send", side_effect=server):
        with patch.object(
            adapter._client, "handle_payment_required", side_effect=RuntimeError("boom")
        ):
            with pytest.raises(PaymentError, match="Failed to handle payment: boom"):
                adapter.send(make_request())


def test_adapter_retry_transport_error_propagates(adapter, make_requirements, payment_required_body):
    first = make_response(402, payment_required_body(make_requirements()))
    calls = []

    def send(request, **kwargs):
        calls.append(request)
        if len(calls) == 1:
            return first
        raise ConnectionError("connection reset")

    with patch("requests.adapters.HTTPAdapter.send", side_effect=send):
        with pytest.raises(ConnectionError):
            adapter.send(make_request())

    assert len(calls) == 2


def test_adapter_permit2_allowance_error(signer, make_requirements, payment_required_body):
    adapter = permit2_adapter(signer)
    server = FakeServer(
        make_response(402, payment_required_body(make_requirements(scheme="permit2"))),
        make_response(402, b'{"error": "Permit2 allowance too low"}'),
    )

    with patch("requests.adapters.HTTPAdapter.send", side_effect=server):
        with pytest.raises(Permit2AllowanceError):
            adapter.send(make_request())

    # Signing succeeded without any allowance check and the retry was sent
    assert len(server.requests) == 2
    assert decode_payment_header(server.requests[1].headers["X-PAYMENT"]).scheme == "permit2"


def test_adapter_permit_flow(signer, make_requirements, payment_required_body, nonce_reader):
    config = X402Config(evm_config=EvmConfig(authorization_type="permit"))
    adapter = x402_http_adapter(signer, config=config, nonce_reader=nonce_reader)
    body = payment_required_body(make_requirements(scheme="permit"))
    server = FakeServer(
        make_response(402, body),
        make_response(200, b"ok"),
        make_response(402, body),
        make_response(200, b"ok"),
    )

    with patch("requests.adapters.HTTPAdapter.send", side_effect=server):
        adapter.send(make_request())
        adapter.send(make_request())

    nonces = [
        int(decode_payment_header(request.headers["X-PAYMENT"]).payload.authorization.nonce)
        for request in server.requests[1::2]
    ]
    assert nonces == [7, 8]
