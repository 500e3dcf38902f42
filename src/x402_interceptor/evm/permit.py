"""EIP-2612 Permit strategy."""

from __future__ import annotations

import logging
from typing import Optional

from x402_interceptor.config import AuthorizationType
from x402_interceptor.evm.constants import PERMIT_PRIMARY_TYPE, PERMIT_TYPES
from x402_interceptor.evm.nonces import NonceReader, Web3NonceReader
from x402_interceptor.evm.signers import Signer
from x402_interceptor.evm.utils import (
    checksum,
    current_timestamp,
    get_token_domain,
    resolve_spender,
    sign_typed_data,
)
from x402_interceptor.exceptions import (
    NonceFetchError,
    PaymentAuthorizationError,
    PermitNotSupportedError,
)
from x402_interceptor.types import (
    PaymentRequirements,
    PermitAuthorization,
    PermitPayload,
    SignedAuthorization,
)

logger = logging.getLogger(__name__)


class PermitStrategy:
    """Signs an EIP-2612 ``Permit`` granting the spender the exact amount.

    The nonce is read from ``token.nonces(owner)`` for every authorization;
    it is never cached, so consecutive permits follow the on-chain counter.

    Args:
        nonce_reader: Source of the owner's current nonce. Defaults to a
            web3 reader using the public RPC of the requirement's network.
    """

    authorization_type = AuthorizationType.PERMIT

    def __init__(self, nonce_reader: Optional[NonceReader] = None) -> None:
        self._nonce_reader = nonce_reader or Web3NonceReader()

    def authorize(
        self,
        requirements: PaymentRequirements,
        signer: Signer,
        now: Optional[int] = None,
    ) -> SignedAuthorization:
        scheme = self.authorization_type
        if (requirements.extra or {}).get("supportsEip2612") is False:
            raise PermitNotSupportedError(
                f"Token {requirements.asset} on {requirements.network} "
                "is advertised without EIP-2612 support",
                token=requirements.asset,
            )

        domain = get_token_domain(requirements, scheme)
        owner = checksum(signer.address, "signer", scheme)
        spender = resolve_spender(requirements, scheme)
        value = int(requirements.max_amount_required)
        deadline = current_timestamp(now) + requirements.max_timeout_seconds

        try:
            nonce = self._nonce_reader.read_nonce(
                requirements.network, domain["verifyingContract"], owner
            )
        except PaymentAuthorizationError:
            raise
        except Exception as e:
            raise NonceFetchError(f"Failed to read permit nonce for {owner}: {e}") from e
        logger.debug("Using permit nonce %d for %s", nonce, owner)

        message = {
            "owner": owner,
            "spender": spender,
            "value": value,
            "nonce": nonce,
            "deadline": deadline,
        }
        signature = sign_typed_data(
            signer, domain, PERMIT_TYPES, PERMIT_PRIMARY_TYPE, message, scheme
        )

        return SignedAuthorization(
            authorization_type=scheme,
            network=requirements.network,
            payload=PermitPayload(
                signature=signature,
                authorization=PermitAuthorization(
                    owner=owner,
                    spender=spender,
                    value=str(value),
                    nonce=str(nonce),
                    deadline=str(deadline),
                ),
            ),
        )
