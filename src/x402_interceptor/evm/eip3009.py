"""EIP-3009 transferWithAuthorization strategy."""

from __future__ import annotations

from typing import Optional

from x402_interceptor.config import AuthorizationType
from x402_interceptor.evm.constants import (
    EIP3009_PRIMARY_TYPE,
    EIP3009_TYPES,
    VALID_AFTER_SKEW_SECONDS,
)
from x402_interceptor.evm.signers import Signer
from x402_interceptor.evm.utils import (
    checksum,
    create_nonce,
    current_timestamp,
    get_token_domain,
    sign_typed_data,
)
from x402_interceptor.types import (
    EIP3009Authorization,
    EIP3009Payload,
    PaymentRequirements,
    SignedAuthorization,
)


class EIP3009Strategy:
    """Signs a ``TransferWithAuthorization`` over the token's own domain.

    No chain reads are needed: the nonce is 32 random bytes and the token
    tracks it as used once the transfer settles.
    """

    authorization_type = AuthorizationType.EIP3009

    def authorize(
        self,
        requirements: PaymentRequirements,
        signer: Signer,
        now: Optional[int] = None,
    ) -> SignedAuthorization:
        scheme = self.authorization_type
        domain = get_token_domain(requirements, scheme)

        timestamp = current_timestamp(now)
        valid_after = timestamp - VALID_AFTER_SKEW_SECONDS
        valid_before = timestamp + requirements.max_timeout_seconds
        nonce = create_nonce()

        sender = checksum(signer.address, "signer", scheme)
        recipient = checksum(requirements.pay_to, "pay_to", scheme)
        value = int(requirements.max_amount_required)

        message = {
            "from": sender,
            "to": recipient,
            "value": value,
            "validAfter": valid_after,
            "validBefore": valid_before,
            "nonce": nonce,
        }
        signature = sign_typed_data(
            signer, domain, EIP3009_TYPES, EIP3009_PRIMARY_TYPE, message, scheme
        )

        return SignedAuthorization(
            authorization_type=scheme,
            network=requirements.network,
            payload=EIP3009Payload(
                signature=signature,
                authorization=EIP3009Authorization(
                    from_=sender,
                    to=recipient,
                    value=str(value),
                    valid_after=str(valid_after),
                    valid_before=str(valid_before),
                    nonce=f"0x{nonce.hex()}",
                ),
            ),
        )
