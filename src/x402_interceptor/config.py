"""Client configuration for the x402 payment interceptor."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class AuthorizationType(str, Enum):
    """EVM authorization scheme used to pay for a 402 challenge.

    - ``eip3009``: EIP-3009 transferWithAuthorization (USDC or compatible token)
    - ``permit``: EIP-2612 Permit (token must expose ``permit()`` and ``nonces()``)
    - ``permit2``: Uniswap Permit2 (any ERC-20, after a one-time approval of Permit2)
    """

    EIP3009 = "eip3009"
    PERMIT = "permit"
    PERMIT2 = "permit2"


class SvmConfig(BaseModel):
    """Configuration for Solana (SVM) RPC connections."""

    rpc_url: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class EvmConfig(BaseModel):
    """Configuration for EVM operations.

    ``rpc_url`` only changes where nonce lookups go; it has no effect on the
    payment protocol itself.
    """

    authorization_type: AuthorizationType = AuthorizationType.EIP3009
    rpc_url: Optional[str] = None

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class X402Config(BaseModel):
    """Configuration for an x402 client.

    Accepts the camelCase layout used by the JavaScript clients, e.g.
    ``X402Config.model_validate({"evmConfig": {"authorizationType": "permit2"}})``.
    """

    svm_config: SvmConfig = Field(default_factory=SvmConfig)
    evm_config: EvmConfig = Field(default_factory=EvmConfig)

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    @property
    def authorization_type(self) -> AuthorizationType:
        return self.evm_config.authorization_type
