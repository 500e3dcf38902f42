"""Helpers shared by the EVM authorization strategies."""

from __future__ import annotations

import logging
import secrets
import time
from typing import Any, Optional

from eth_utils import to_checksum_address

from x402_interceptor.config import AuthorizationType
from x402_interceptor.exceptions import PaymentAuthorizationError, PaymentStage
from x402_interceptor.networks import get_chain_id
from x402_interceptor.types import PaymentRequirements

logger = logging.getLogger(__name__)


def create_nonce() -> bytes:
    """Create a random 32-byte nonce for authorization signatures."""
    return secrets.token_bytes(32)


def create_unordered_nonce() -> int:
    """Create a random 256-bit nonce for Permit2's unordered nonce bitmap."""
    return int.from_bytes(secrets.token_bytes(32), "big")


def current_timestamp(now: Optional[int] = None) -> int:
    return int(time.time()) if now is None else int(now)


def checksum(address: str, field: str, scheme: AuthorizationType) -> str:
    """Checksum an address taken from the payment requirements.

    Raises:
        PaymentAuthorizationError: If the value is not a 20-byte hex address
    """
    try:
        return to_checksum_address(address)
    except (ValueError, TypeError) as e:
        raise PaymentAuthorizationError(
            f"Invalid {field} address: {address!r}",
            scheme=scheme.value,
            stage=PaymentStage.TYPED_DATA,
        ) from e


def get_evm_chain_id(network: str, scheme: AuthorizationType) -> int:
    try:
        return get_chain_id(network)
    except ValueError as e:
        raise PaymentAuthorizationError(
            str(e), scheme=scheme.value, stage=PaymentStage.TYPED_DATA
        ) from e


def get_token_domain(
    requirements: PaymentRequirements, scheme: AuthorizationType
) -> dict[str, Any]:
    """Build the EIP-712 domain of the token contract.

    The token's domain ``name`` and ``version`` must be advertised by the
    server in ``requirements.extra``.

    Raises:
        PaymentAuthorizationError: If ``name``/``version`` are missing or the
            network or asset is invalid
    """
    extra = requirements.extra or {}
    name = extra.get("name")
    version = extra.get("version")
    if not name or not version:
        raise PaymentAuthorizationError(
            "Payment requirements must include the token's EIP-712 domain "
            "'name' and 'version' in extra",
            scheme=scheme.value,
            stage=PaymentStage.TYPED_DATA,
        )
    return {
        "name": name,
        "version": str(version),
        "chainId": get_evm_chain_id(requirements.network, scheme),
        "verifyingContract": checksum(requirements.asset, "asset", scheme),
    }


def resolve_spender(requirements: PaymentRequirements, scheme: AuthorizationType) -> str:
    """Contract allowed to pull the funds: ``extra.spender``, else ``pay_to``."""
    spender = (requirements.extra or {}).get("spender") or requirements.pay_to
    return checksum(spender, "spender", scheme)


def sign_typed_data(
    signer: Any,
    domain: dict[str, Any],
    types: dict[str, list[dict[str, str]]],
    primary_type: str,
    message: dict[str, Any],
    scheme: AuthorizationType,
) -> str:
    """Ask the signer for an EIP-712 signature and return it as 0x-prefixed hex.

    Raises:
        PaymentAuthorizationError: If the signer fails, chained to its error
    """
    try:
        signature = signer.sign_typed_data(domain, types, primary_type, message)
    except PaymentAuthorizationError:
        raise
    except Exception as e:
        raise PaymentAuthorizationError(
            f"Failed to sign {primary_type}: {e}",
            scheme=scheme.value,
            stage=PaymentStage.SIGN,
        ) from e

    if isinstance(signature, (bytes, bytearray)):
        signature = bytes(signature).hex()
    if not signature.startswith("0x"):
        signature = f"0x{signature}"
    logger.debug("Signed %s for %s", primary_type, scheme.value)
    return signature
