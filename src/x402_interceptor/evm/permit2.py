"""Uniswap Permit2 ``PermitTransferFrom`` strategy."""

from __future__ import annotations

from typing import Optional

from x402_interceptor.config import AuthorizationType
from x402_interceptor.evm.constants import (
    PERMIT2_ADDRESS,
    PERMIT2_DOMAIN_NAME,
    PERMIT2_PRIMARY_TYPE,
    PERMIT2_TYPES,
)
from x402_interceptor.evm.signers import Signer
from x402_interceptor.evm.utils import (
    checksum,
    create_unordered_nonce,
    current_timestamp,
    get_evm_chain_id,
    resolve_spender,
    sign_typed_data,
)
from x402_interceptor.types import (
    PaymentRequirements,
    Permit2Authorization,
    Permit2Payload,
    SignedAuthorization,
    TokenPermissions,
)


class Permit2Strategy:
    """Signs a Permit2 signature transfer for the exact amount.

    The signature is over Permit2's own domain, so it works for any ERC-20.
    Settlement still requires the owner to have approved the Permit2
    contract for the token; that approval is not checked here.
    """

    authorization_type = AuthorizationType.PERMIT2

    def authorize(
        self,
        requirements: PaymentRequirements,
        signer: Signer,
        now: Optional[int] = None,
    ) -> SignedAuthorization:
        scheme = self.authorization_type
        domain = {
            "name": PERMIT2_DOMAIN_NAME,
            "chainId": get_evm_chain_id(requirements.network, scheme),
            "verifyingContract": PERMIT2_ADDRESS,
        }

        owner = checksum(signer.address, "signer", scheme)
        token = checksum(requirements.asset, "asset", scheme)
        recipient = checksum(requirements.pay_to, "pay_to", scheme)
        spender = resolve_spender(requirements, scheme)
        amount = int(requirements.max_amount_required)
        nonce = create_unordered_nonce()
        deadline = current_timestamp(now) + requirements.max_timeout_seconds

        message = {
            "permitted": {"token": token, "amount": amount},
            "spender": spender,
            "nonce": nonce,
            "deadline": deadline,
        }
        signature = sign_typed_data(
            signer, domain, PERMIT2_TYPES, PERMIT2_PRIMARY_TYPE, message, scheme
        )

        return SignedAuthorization(
            authorization_type=scheme,
            network=requirements.network,
            payload=Permit2Payload(
                signature=signature,
                permit2_authorization=Permit2Authorization(
                    from_=owner,
                    permitted=TokenPermissions(token=token, amount=str(amount)),
                    spender=spender,
                    nonce=str(nonce),
                    deadline=str(deadline),
                    to=recipient,
                ),
            ),
        )
