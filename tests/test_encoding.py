import base64
import json

import pytest

from x402_interceptor.config import AuthorizationType
from x402_interceptor.encoding import (
    decode_payment_header,
    decode_payment_response_header,
    encode_payment_header,
    encode_payment_response_header,
    safe_base64_decode,
    safe_base64_encode,
)
from x402_interceptor.exceptions import PaymentDecodeError, PaymentStage
from x402_interceptor.types import (
    EIP3009Authorization,
    EIP3009Payload,
    PaymentResponseReceipt,
    Permit2Authorization,
    Permit2Payload,
    PermitAuthorization,
    PermitPayload,
    SignedAuthorization,
    TokenPermissions,
)

OWNER = "0x857b06519E91e3A54538791bDbb0E22373e36b66"
SPENDER = "0x209693Bc6afc0C5328bA36FaF03C514EF312287C"
TOKEN = "0x036CbD53842c5426634e7929541eC2318f3dCF7e"
SIGNATURE = "0x" + "ab" * 65


def eip3009_authorization():
    return SignedAuthorization(
        authorization_type=AuthorizationType.EIP3009,
        network="base-sepolia",
        payload=EIP3009Payload(
            signature=SIGNATURE,
            authorization=EIP3009Authorization(
                from_=OWNER,
                to=SPENDER,
                value="10000",
                valid_after="1700000000",
                valid_before="1700000360",
                nonce="0x" + "11" * 32,
            ),
        ),
    )


def permit_authorization():
    return SignedAuthorization(
        authorization_type=AuthorizationType.PERMIT,
        network="base-sepolia",
        payload=PermitPayload(
            signature=SIGNATURE,
            authorization=PermitAuthorization(
                owner=OWNER,
                spender=SPENDER,
                value="10000",
                nonce="3",
                deadline="1700000300",
            ),
        ),
    )


def permit2_authorization():
    return SignedAuthorization(
        authorization_type=AuthorizationType.PERMIT2,
        network="base-sepolia",
        payload=Permit2Payload(
            signature=SIGNATURE,
            permit2_authorization=Permit2Authorization(
                from_=OWNER,
                permitted=TokenPermissions(token=TOKEN, amount="10000"),
                spender=SPENDER,
                nonce=str(2**255 + 12345),
                deadline="1700000300",
                to=SPENDER,
            ),
        ),
    )


def test_safe_base64_encode():
    assert safe_base64_encode("hello") == "aGVsbG8="
    assert safe_base64_encode(b"\x00\x01\x02") == "AAEC"
    assert safe_base64_encode("hello 世界") == "aGVsbG8g5LiW55WM"


def test_safe_base64_decode():
    assert safe_base64_decode("aGVsbG8=") == "hello"
    assert safe_base64_decode("aGVsbG8g5LiW55WM") == "hello 世界"

    # Test invalid base64
    with pytest.raises(Exception):
        safe_base64_decode("invalid base64!")


@pytest.mark.parametrize(
    "build", [eip3009_authorization, permit_authorization, permit2_authorization]
)
def test_payment_header_round_trip(build):
    signed = build()
    decoded = decode_payment_header(encode_payment_header(1, signed))

    assert decoded.x402_version == 1
    assert decoded.scheme == signed.authorization_type
    assert decoded.network == "base-sepolia"
    assert decoded.to_signed_authorization() == signed


def test_payment_header_wire_format():
    header = encode_payment_header(1, eip3009_authorization())
    data = json.loads(base64.b64decode(header))

    assert data["x402Version"] == 1
    assert data["scheme"] == "eip3009"
    assert data["network"] == "base-sepolia"
    assert data["payload"]["signature"] == SIGNATURE
    assert data["payload"]["authorization"] == {
        "from": OWNER,
        "to": SPENDER,
        "value": "10000",
        "validAfter": "1700000000",
        "validBefore": "1700000360",
        "nonce": "0x" + "11" * 32,
    }


def test_permit2_header_uses_camel_case_keys():
    data = json.loads(base64.b64decode(encode_payment_header(1, permit2_authorization())))

    authorization = data["payload"]["permit2Authorization"]
    assert data["scheme"] == "permit2"
    assert authorization["from"] == OWNER
    assert authorization["permitted"] == {"token": TOKEN, "amount": "10000"}
    # uint256 values stay exact as decimal strings
    assert authorization["nonce"] == str(2**255 + 12345)


def test_payment_header_is_deterministic():
    signed = permit_authorization()
    assert encode_payment_header(1, signed) == encode_payment_header(1, signed)


def test_decode_payment_header_invalid():
    # Test invalid base64
    with pytest.raises(PaymentDecodeError) as exc_info:
        decode_payment_header("not base64!")
    assert exc_info.value.stage == PaymentStage.DECODE

    # Test invalid JSON
    with pytest.raises(PaymentDecodeError):
        decode_payment_header(base64.b64encode(b"invalid json").decode())

    # Test non-ASCII header value
    with pytest.raises(PaymentDecodeError):
        decode_payment_header("é")

    # Test payload that does not match the declared scheme
    data = json.loads(base64.b64decode(encode_payment_header(1, permit_authorization())))
    data["scheme"] = "permit2"
    with pytest.raises(PaymentDecodeError):
        decode_payment_header(base64.b64encode(json.dumps(data).encode()).decode())


def test_payment_response_header_round_trip():
    receipt = PaymentResponseReceipt(
        success=True,
        transaction="0x1234",
        network="base-sepolia",
        payer=OWNER,
        scheme="permit",
    )
    assert decode_payment_response_header(encode_payment_response_header(receipt)) == receipt


def test_decode_payment_response_header():
    # Test valid response from a server
    response = {
        "success": True,
        "transaction": "0x1234",
        "network": "base-sepolia",
        "payer": "0x5678",
    }
    encoded = base64.b64encode(json.dumps(response).encode()).decode()
    receipt = decode_payment_response_header(encoded)
    assert receipt.success is True
    assert receipt.transaction == "0x1234"
    assert receipt.payer == "0x5678"
    assert receipt.scheme is None

    # Test camelCase error field
    encoded = base64.b64encode(
        json.dumps({"success": False, "errorReason": "insufficient_funds"}).encode()
    ).decode()
    assert decode_payment_response_header(encoded).error_reason == "insufficient_funds"


def test_decode_payment_response_header_invalid():
    with pytest.raises(PaymentDecodeError, match="not found"):
        decode_payment_response_header(None)

    with pytest.raises(PaymentDecodeError):
        decode_payment_response_header("invalid base64!")

    with pytest.raises(PaymentDecodeError):
        decode_payment_response_header(base64.b64encode(b"invalid json").decode())

    # Test non-ASCII header value
    with pytest.raises(PaymentDecodeError):
        decode_payment_response_header("é")

    # Test missing required success flag
    with pytest.raises(PaymentDecodeError):
        decode_payment_response_header(base64.b64encode(b'{"transaction": "0x1"}').decode())
