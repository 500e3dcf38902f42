"""Exceptions raised while answering a 402 Payment Required challenge.

Hierarchy:
    PaymentError
    ├── PaymentProtocolError
    ├── PaymentSelectionError
    ├── PaymentAuthorizationError
    │   ├── PermitNotSupportedError
    │   └── NonceFetchError
    ├── Permit2AllowanceError
    └── PaymentDecodeError

Every error carries the authorization ``scheme`` (when known) and the
``stage`` of the payment flow it came from. The underlying exception, if
any, is chained as ``__cause__``.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class PaymentStage(str, Enum):
    PARSE = "parse"
    SELECT = "select"
    TYPED_DATA = "typed_data"
    NONCE = "nonce"
    SIGN = "sign"
    RETRY = "retry"
    DECODE = "decode"


class PaymentError(Exception):
    """Base class for payment-related errors."""

    def __init__(
        self,
        message: str,
        *,
        scheme: Optional[str] = None,
        stage: Optional[PaymentStage] = None,
    ) -> None:
        super().__init__(message)
        self.scheme = scheme
        self.stage = stage


class PaymentProtocolError(PaymentError):
    """Raised when a 402 response body cannot be parsed into payment requirements."""

    def __init__(self, message: str, **kwargs) -> None:
        kwargs.setdefault("stage", PaymentStage.PARSE)
        super().__init__(message, **kwargs)


class PaymentSelectionError(PaymentError):
    """Raised when no payment requirement matches the client configuration."""

    def __init__(self, message: str, **kwargs) -> None:
        kwargs.setdefault("stage", PaymentStage.SELECT)
        super().__init__(message, **kwargs)


class PaymentAuthorizationError(PaymentError):
    """Raised when a signed authorization cannot be produced."""


class PermitNotSupportedError(PaymentAuthorizationError):
    """Raised when the token does not implement EIP-2612 permit/nonces."""

    remediation = (
        "The token does not support EIP-2612 permit; "
        "use authorization_type 'eip3009' or 'permit2' instead."
    )

    def __init__(self, message: str, *, token: Optional[str] = None, **kwargs) -> None:
        kwargs.setdefault("scheme", "permit")
        kwargs.setdefault("stage", PaymentStage.NONCE)
        super().__init__(f"{message}. {self.remediation}", **kwargs)
        self.token = token


class NonceFetchError(PaymentAuthorizationError):
    """Raised when the token nonce could not be read from the chain."""

    def __init__(self, message: str, **kwargs) -> None:
        kwargs.setdefault("scheme", "permit")
        kwargs.setdefault("stage", PaymentStage.NONCE)
        super().__init__(message, **kwargs)


class Permit2AllowanceError(PaymentError):
    """Raised when a Permit2 payment is rejected for missing token approval.

    The signer must approve the Permit2 contract for the token once before
    Permit2 payments can settle.
    """

    def __init__(
        self,
        message: str,
        *,
        token: Optional[str] = None,
        permit2_address: Optional[str] = None,
        status_code: Optional[int] = None,
        **kwargs,
    ) -> None:
        kwargs.setdefault("scheme", "permit2")
        kwargs.setdefault("stage", PaymentStage.RETRY)
        super().__init__(message, **kwargs)
        self.token = token
        self.permit2_address = permit2_address
        self.status_code = status_code


class PaymentDecodeError(PaymentError):
    """Raised when a payment response header is missing or malformed."""

    def __init__(self, message: str, **kwargs) -> None:
        kwargs.setdefault("stage", PaymentStage.DECODE)
        super().__init__(message, **kwargs)
