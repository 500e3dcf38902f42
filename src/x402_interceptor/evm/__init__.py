from typing import Optional, Union

from x402_interceptor.config import AuthorizationType
from x402_interceptor.evm.constants import PERMIT2_ADDRESS
from x402_interceptor.evm.eip3009 import EIP3009Strategy
from x402_interceptor.evm.nonces import NonceReader, Web3NonceReader
from x402_interceptor.evm.permit import PermitStrategy
from x402_interceptor.evm.permit2 import Permit2Strategy
from x402_interceptor.evm.signers import EthAccountSigner, Signer, signer_supports_network

AuthorizationStrategy = Union[EIP3009Strategy, PermitStrategy, Permit2Strategy]


def get_authorization_strategy(
    authorization_type: AuthorizationType,
    nonce_reader: Optional[NonceReader] = None,
) -> AuthorizationStrategy:
    """Return the strategy that signs authorizations of the given type.

    Args:
        authorization_type: One of ``eip3009``, ``permit`` or ``permit2``
        nonce_reader: Nonce source for ``permit``; ignored by the other types

    Raises:
        ValueError: If the authorization type is not supported
    """
    authorization_type = AuthorizationType(authorization_type)
    if authorization_type is AuthorizationType.EIP3009:
        return EIP3009Strategy()
    if authorization_type is AuthorizationType.PERMIT:
        return PermitStrategy(nonce_reader)
    if authorization_type is AuthorizationType.PERMIT2:
        return Permit2Strategy()
    raise ValueError(f"Unsupported authorization type: {authorization_type}")


__all__ = [
    "AuthorizationStrategy",
    "EIP3009Strategy",
    "EthAccountSigner",
    "NonceReader",
    "PERMIT2_ADDRESS",
    "Permit2Strategy",
    "PermitStrategy",
    "Signer",
    "Web3NonceReader",
    "get_authorization_strategy",
    "signer_supports_network",
]
