import base64
import json
from typing import Optional, Union

from pydantic import ValidationError

from x402_interceptor.exceptions import PaymentDecodeError
from x402_interceptor.types import (
    PaymentPayload,
    PaymentResponseReceipt,
    SignedAuthorization,
)


def safe_base64_encode(data: Union[str, bytes]) -> str:
    """Safely encode string or bytes to base64 string.

    Args:
        data: String or bytes to encode

    Returns:
        Base64 encoded string
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    return base64.b64encode(data).decode("utf-8")


def safe_base64_decode(data: str) -> str:
    """Safely decode base64 string to bytes and then to utf-8 string.

    Args:
        data: Base64 encoded string

    Returns:
        Decoded utf-8 string
    """
    return base64.b64decode(data, validate=True).decode("utf-8")


def _canonical_json(data: dict) -> str:
    return json.dumps(data, separators=(",", ":"), sort_keys=True)


def encode_payment_header(x402_version: int, signed: SignedAuthorization) -> str:
    """Encode a signed authorization into an X-PAYMENT header value.

    The output is deterministic for a given authorization: keys are sorted
    and separators are compact.

    Args:
        x402_version: Protocol version to embed, taken from the 402 response
        signed: Authorization produced by one of the EVM strategies

    Returns:
        Base64 encoded JSON ``{x402Version, scheme, network, payload}``
    """
    payload = PaymentPayload.from_signed_authorization(x402_version, signed)
    return safe_base64_encode(
        _canonical_json(payload.model_dump(mode="json", by_alias=True))
    )


def decode_payment_header(header: str) -> PaymentPayload:
    """Decode an X-PAYMENT header value.

    Raises:
        PaymentDecodeError: If the header is not base64 JSON of a payment payload
    """
    try:
        return PaymentPayload.model_validate_json(safe_base64_decode(header))
    except (ValueError, ValidationError) as e:
        raise PaymentDecodeError(f"Invalid payment header: {e}") from e


def encode_payment_response_header(receipt: PaymentResponseReceipt) -> str:
    """Encode a settlement receipt into an X-PAYMENT-RESPONSE header value."""
    return safe_base64_encode(
        _canonical_json(receipt.model_dump(mode="json", by_alias=True, exclude_none=True))
    )


def decode_payment_response_header(header: Optional[str]) -> PaymentResponseReceipt:
    """Decode the X-PAYMENT-RESPONSE header.

    Args:
        header: The X-PAYMENT-RESPONSE header value, or None if it was absent

    Returns:
        The decoded receipt containing:
        - success: bool
        - transaction: str (hex)
        - network: str
        - payer: str (address)

    Raises:
        PaymentDecodeError: If the header is absent or malformed
    """
    if not header:
        raise PaymentDecodeError("Payment response header not found")
    try:
        return PaymentResponseReceipt.model_validate_json(safe_base64_decode(header))
    except (ValueError, ValidationError) as e:
        raise PaymentDecodeError(f"Invalid payment response header: {e}") from e
