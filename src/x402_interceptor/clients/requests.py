"""requests library wrapper with automatic x402 payment handling.

Provides an HTTPAdapter and convenience functions for sync requests.Session.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

import requests
from eth_account.signers.local import LocalAccount
from requests.adapters import HTTPAdapter

from x402_interceptor.clients.base import (
    PaymentSelectorCallable,
    as_x402_client,
    x402Client,
)
from x402_interceptor.common import RECEIPT_ATTRIBUTE
from x402_interceptor.config import X402Config
from x402_interceptor.evm import NonceReader, Signer
from x402_interceptor.exceptions import PaymentError

logger = logging.getLogger(__name__)


class x402HTTPAdapter(HTTPAdapter):
    """HTTP adapter that handles 402 Payment Required responses.

    Subclasses requests.HTTPAdapter to intercept 402 responses, sign a
    payment authorization and retry the request once with the X-PAYMENT
    header. The retry is a copy of the original request, so the adapter
    keeps no per-request state and can be shared between threads.

    The response to a paid retry carries the decoded settlement receipt (or
    None) in its ``x402_payment_receipt`` attribute.
    """

    def __init__(self, client: x402Client, **kwargs: Any) -> None:
        """Initialize payment adapter.

        Args:
            client: x402Client answering the payment challenges
            **kwargs: Additional arguments for HTTPAdapter
        """
        super().__init__(**kwargs)
        self._client = client

    def send(
        self,
        request: requests.PreparedRequest,
        **kwargs: Any,
    ) -> requests.Response:
        """Send request with automatic 402 payment handling.

        Args:
            request: The prepared request
            **kwargs: Additional send arguments

        Returns:
            Response (original or retried with payment)

        Raises:
            PaymentError: If payment handling fails
        """
        response = super().send(request, **kwargs)

        if response.status_code != 402:
            return response

        try:
            attempt = self._client.handle_payment_required(response.content)
        except PaymentError:
            raise
        except Exception as e:
            raise PaymentError(f"Failed to handle payment: {e}") from e

        if attempt is None:
            return response

        retry_request = request.copy()
        retry_request.headers.update(attempt.headers)
        logger.debug("Retrying %s %s with payment", request.method, request.url)

        retry_response = super().send(retry_request, **kwargs)

        receipt = self._client.process_payment_response(
            attempt,
            retry_response.status_code,
            retry_response.headers,
            retry_response.content if retry_response.status_code >= 300 else None,
        )
        setattr(retry_response, RECEIPT_ATTRIBUTE, receipt)
        return retry_response


def x402_http_adapter(
    client: Union[x402Client, Signer, LocalAccount],
    config: Optional[X402Config] = None,
    max_value: Optional[int] = None,
    payment_requirements_selector: Optional[PaymentSelectorCallable] = None,
    nonce_reader: Optional[NonceReader] = None,
    **kwargs: Any,
) -> x402HTTPAdapter:
    """Create an HTTP adapter with 402 payment handling.

    Args:
        client: x402Client, or a signer to build one around
        config: Client configuration, used when building the client
        max_value: Optional maximum allowed payment amount in base units
        payment_requirements_selector: Optional custom selector for payment requirements
        nonce_reader: Optional nonce source for EIP-2612 permits
        **kwargs: Additional arguments for HTTPAdapter

    Returns:
        x402HTTPAdapter that can be mounted to a session

    Example:
        ```python
        import requests
        from eth_account import Account
        from x402_interceptor.clients.requests import x402_http_adapter

        session = requests.Session()
        adapter = x402_http_adapter(Account.from_key("0x..."))
        session.mount("https://", adapter)
        session.mount("http://", adapter)

        response = session.get("https://api.example.com/paid")
        ```
    """
    x402_client = as_x402_client(
        client,
        config=config,
        max_value=max_value,
        payment_requirements_selector=payment_requirements_selector,
        nonce_reader=nonce_reader,
    )
    return x402HTTPAdapter(x402_client, **kwargs)


def x402_requests(
    client: Union[x402Client, Signer, LocalAccount],
    config: Optional[X402Config] = None,
    max_value: Optional[int] = None,
    payment_requirements_selector: Optional[PaymentSelectorCallable] = None,
    nonce_reader: Optional[NonceReader] = None,
    **kwargs: Any,
) -> requests.Session:
    """Create a requests Session with x402 payment handling.

    Args:
        client: x402Client, or a signer to build one around
        config: Client configuration, used when building the client
        max_value: Optional maximum allowed payment amount in base units
        payment_requirements_selector: Optional custom selector for payment requirements
        nonce_reader: Optional nonce source for EIP-2612 permits
        **kwargs: Additional arguments for HTTPAdapter

    Returns:
        New session with the payment adapter mounted for http and https
    """
    session = requests.Session()
    adapter = x402_http_adapter(
        client,
        config=config,
        max_value=max_value,
        payment_requirements_selector=payment_requirements_selector,
        nonce_reader=nonce_reader,
        **kwargs,
    )
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session
