"""EVM signer capability and an eth_account implementation.

The interceptor never touches private keys. Anything that can report an
address and sign EIP-712 typed data can pay for a 402.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from x402_interceptor.networks import is_evm_network

if TYPE_CHECKING:
    from eth_account.signers.local import LocalAccount


@runtime_checkable
class Signer(Protocol):
    """Capability required to produce payment authorizations."""

    @property
    def address(self) -> str: ...

    def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        primary_type: str,
        message: dict[str, Any],
    ) -> bytes: ...


def signer_supports_network(signer: Any, network: str) -> bool:
    """Ask the signer whether it can pay on ``network``.

    Signers without a ``supports_network`` method are assumed to be EVM signers.
    """
    supports_network = getattr(signer, "supports_network", None)
    if supports_network is None:
        return is_evm_network(network)
    return bool(supports_network(network))


class EthAccountSigner:
    """Client-side EVM signer using eth_account library.

    Example:
        ```python
        from eth_account import Account
        from x402_interceptor import EthAccountSigner, x402_requests

        signer = EthAccountSigner(Account.from_key("0x..."))
        session = x402_requests(signer)
        ```

    Args:
        account: eth_account LocalAccount instance.
    """

    def __init__(self, account: "LocalAccount") -> None:
        self._account = account

    @property
    def address(self) -> str:
        """The signer's Ethereum address (checksummed)."""
        return self._account.address

    def supports_network(self, network: str) -> bool:
        return is_evm_network(network)

    def sign_typed_data(
        self,
        domain: dict[str, Any],
        types: dict[str, list[dict[str, str]]],
        primary_type: str,
        message: dict[str, Any],
    ) -> bytes:
        """Sign EIP-712 typed data.

        Args:
            domain: EIP-712 domain separator.
            types: Type definitions, without ``EIP712Domain``.
            primary_type: Primary type name (unused, inferred by eth_account).
            message: Message data.

        Returns:
            65-byte ECDSA signature (r, s, v).
        """
        signed = self._account.sign_typed_data(
            domain_data=domain,
            message_types=types,
            message_data=message,
        )
        return bytes(signed.signature)
