"""x402_interceptor: pay for HTTP 402 responses with signed EVM authorizations."""

from x402_interceptor.common import (
    X_PAYMENT_HEADER,
    X_PAYMENT_RESPONSE_HEADER,
    x402_VERSION,
)

# Configuration
from x402_interceptor.config import (
    AuthorizationType,
    EvmConfig,
    SvmConfig,
    X402Config,
)

# Clients
from x402_interceptor.clients.base import (
    PaymentAttempt,
    get_payment_receipt,
    x402Client,
)

# EVM authorizations
from x402_interceptor.evm import (
    PERMIT2_ADDRESS,
    EIP3009Strategy,
    EthAccountSigner,
    NonceReader,
    Permit2Strategy,
    PermitStrategy,
    Signer,
    Web3NonceReader,
    get_authorization_strategy,
)

# Header codec
from x402_interceptor.encoding import (
    decode_payment_header,
    decode_payment_response_header,
    encode_payment_header,
    encode_payment_response_header,
)

# Errors
from x402_interceptor.exceptions import (
    NonceFetchError,
    PaymentAuthorizationError,
    PaymentDecodeError,
    PaymentError,
    PaymentProtocolError,
    PaymentSelectionError,
    PaymentStage,
    Permit2AllowanceError,
    PermitNotSupportedError,
)

# Types
from x402_interceptor.types import (
    EIP3009Authorization,
    EIP3009Payload,
    PaymentPayload,
    PaymentRequirements,
    PaymentResponseReceipt,
    Permit2Authorization,
    Permit2Payload,
    PermitAuthorization,
    PermitPayload,
    SignedAuthorization,
    TokenPermissions,
    x402PaymentRequiredResponse,
)

__all__ = [
    "AuthorizationType",
    "EIP3009Authorization",
    "EIP3009Payload",
    "EIP3009Strategy",
    "EthAccountSigner",
    "EvmConfig",
    "NonceFetchError",
    "NonceReader",
    "PERMIT2_ADDRESS",
    "PaymentAttempt",
    "PaymentAuthorizationError",
    "PaymentDecodeError",
    "PaymentError",
    "PaymentPayload",
    "PaymentProtocolError",
    "PaymentRequirements",
    "PaymentResponseReceipt",
    "PaymentSelectionError",
    "PaymentStage",
    "Permit2AllowanceError",
    "Permit2Authorization",
    "Permit2Payload",
    "Permit2Strategy",
    "PermitAuthorization",
    "PermitNotSupportedError",
    "PermitPayload",
    "PermitStrategy",
    "SignedAuthorization",
    "Signer",
    "SvmConfig",
    "TokenPermissions",
    "Web3NonceReader",
    "X402Config",
    "X_PAYMENT_HEADER",
    "X_PAYMENT_RESPONSE_HEADER",
    "decode_payment_header",
    "decode_payment_response_header",
    "encode_payment_header",
    "encode_payment_response_header",
    "get_authorization_strategy",
    "get_payment_receipt",
    "x402Client",
    "x402PaymentRequiredResponse",
    "x402_VERSION",
]
