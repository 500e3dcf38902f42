"""httpx integration with automatic x402 payment handling.

``x402AsyncTransport`` wraps any ``httpx.AsyncBaseTransport``; ``x402HttpxClient``
is an ``httpx.AsyncClient`` with the transport installed.
"""

from __future__ import annotations

import logging
from typing import Any, Optional, Union

import httpx
from eth_account.signers.local import LocalAccount

from x402_interceptor.clients.base import (
    PaymentSelectorCallable,
    as_x402_client,
    x402Client,
)
from x402_interceptor.common import RECEIPT_ATTRIBUTE, RETRY_EXTENSION
from x402_interceptor.config import X402Config
from x402_interceptor.evm import NonceReader, Signer
from x402_interceptor.exceptions import PaymentError

logger = logging.getLogger(__name__)


class x402AsyncTransport(httpx.AsyncBaseTransport):
    """Transport that pays for 402 responses and retries once.

    The paid retry is marked with the ``x402_is_retry`` request extension and
    is never paid for again. Its response carries the decoded settlement
    receipt (or None) in ``response.extensions["x402_payment_receipt"]``.

    Args:
        client: x402Client answering the payment challenges
        transport: Transport performing the actual requests; defaults to
            ``httpx.AsyncHTTPTransport()``
    """

    def __init__(
        self,
        client: x402Client,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._client = client
        self._transport = transport or httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        # Buffer the body so the request can be replayed
        await request.aread()
        response = await self._transport.handle_async_request(request)

        if response.status_code != 402 or request.extensions.get(RETRY_EXTENSION):
            return response

        content = await response.aread()
        try:
            attempt = await self._client.handle_payment_required_async(content)
        except PaymentError:
            raise
        except Exception as e:
            raise PaymentError(f"Failed to handle payment: {e}") from e

        if attempt is None:
            return response

        retry_request = httpx.Request(
            request.method,
            request.url,
            headers=request.headers,
            content=request.content,
            extensions={**request.extensions, RETRY_EXTENSION: True},
        )
        retry_request.headers.update(attempt.headers)
        logger.debug("Retrying %s %s with payment", request.method, request.url)

        retry_response = await self._transport.handle_async_request(retry_request)

        content = None
        if retry_response.status_code >= 300:
            content = await retry_response.aread()
        receipt = self._client.process_payment_response(
            attempt, retry_response.status_code, retry_response.headers, content
        )
        retry_response.extensions[RECEIPT_ATTRIBUTE] = receipt
        return retry_response

    async def aclose(self) -> None:
        await self._transport.aclose()


class x402HttpxClient(httpx.AsyncClient):
    """AsyncClient with built-in x402 payment handling.

    Example:
        ```python
        from eth_account import Account
        from x402_interceptor import X402Config, get_payment_receipt
        from x402_interceptor.clients.httpx import x402HttpxClient

        config = X402Config.model_validate({"evmConfig": {"authorizationType": "permit2"}})
        async with x402HttpxClient(Account.from_key("0x..."), config=config) as client:
            response = await client.get("https://api.example.com/paid")
            print(get_payment_receipt(response))
        ```
    """

    def __init__(
        self,
        client: Union[x402Client, Signer, LocalAccount],
        config: Optional[X402Config] = None,
        max_value: Optional[int] = None,
        payment_requirements_selector: Optional[PaymentSelectorCallable] = None,
        nonce_reader: Optional[NonceReader] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs: Any,
    ):
        """Initialize an AsyncClient with x402 payment handling.

        Args:
            client: x402Client, or a signer to build one around
            config: Client configuration, used when building the client
            max_value: Optional maximum allowed payment amount in base units
            payment_requirements_selector: Optional custom selector for payment requirements
            nonce_reader: Optional nonce source for EIP-2612 permits
            transport: Optional transport to wrap
            **kwargs: Additional arguments to pass to AsyncClient
        """
        self.x402_client = as_x402_client(
            client,
            config=config,
            max_value=max_value,
            payment_requirements_selector=payment_requirements_selector,
            nonce_reader=nonce_reader,
        )
        super().__init__(transport=x402AsyncTransport(self.x402_client, transport), **kwargs)
