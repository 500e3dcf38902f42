"""EIP-2612 nonce lookups over JSON-RPC."""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from web3 import Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError

from x402_interceptor.config import X402Config
from x402_interceptor.evm.constants import NONCES_ABI
from x402_interceptor.exceptions import NonceFetchError, PermitNotSupportedError
from x402_interceptor.networks import get_rpc_url

logger = logging.getLogger(__name__)


class NonceReader(Protocol):
    """Source of the current EIP-2612 nonce for an owner on a token."""

    def read_nonce(self, network: str, token: str, owner: str) -> int: ...


class Web3NonceReader:
    """Reads ``token.nonces(owner)`` with web3.py.

    A fresh provider is created per read so every permit signs over the
    nonce the chain reports at that moment.

    Args:
        config: Client configuration; ``evm_config.rpc_url`` overrides the
            network's default endpoint.
        request_timeout: HTTP timeout for the RPC call, in seconds.
    """

    def __init__(
        self,
        config: Optional[X402Config] = None,
        request_timeout: int = 30,
    ) -> None:
        self._config = config
        self._request_timeout = request_timeout

    def _get_web3_instance(self, network: str) -> Web3:
        rpc_url = get_rpc_url(network, self._config)
        return Web3(
            Web3.HTTPProvider(rpc_url, request_kwargs={"timeout": self._request_timeout})
        )

    def read_nonce(self, network: str, token: str, owner: str) -> int:
        """Return the current permit nonce of ``owner`` on ``token``.

        Raises:
            PermitNotSupportedError: If the token has no callable ``nonces()``
            NonceFetchError: If the RPC endpoint cannot be resolved or reached
        """
        try:
            w3 = self._get_web3_instance(network)
        except ValueError as e:
            raise NonceFetchError(f"Cannot read permit nonce on {network}: {e}") from e

        contract = w3.eth.contract(address=Web3.to_checksum_address(token), abi=NONCES_ABI)
        logger.debug("Reading permit nonce for %s on token %s (%s)", owner, token, network)
        try:
            nonce = contract.functions.nonces(Web3.to_checksum_address(owner)).call()
        except (ContractLogicError, BadFunctionCallOutput) as e:
            raise PermitNotSupportedError(
                f"Token {token} on {network} does not expose nonces()", token=token
            ) from e
        except Exception as e:
            raise NonceFetchError(
                f"Failed to read permit nonce for {owner} on token {token}: {e}"
            ) from e
        return int(nonce)
