"""
HTTP client integrations for x402 payment handling.

Core exports:
    - x402Client: Selects, signs and finalizes payments for 402 responses
    - get_payment_receipt: Read the settlement receipt from a paid response

Transports:
    from x402_interceptor.clients.requests import x402_requests
    from x402_interceptor.clients.httpx import x402HttpxClient
"""

from x402_interceptor.clients.base import (
    PaymentAttempt,
    PaymentSelectorCallable,
    get_payment_receipt,
    x402Client,
)

__all__ = [
    "PaymentAttempt",
    "PaymentSelectorCallable",
    "get_payment_receipt",
    "x402Client",
]
