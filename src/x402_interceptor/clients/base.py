import asyncio
import logging
from typing import Any, Callable, List, Mapping, NamedTuple, Optional, Union

from eth_account.signers.local import LocalAccount
from pydantic import ValidationError

from x402_interceptor.common import (
    EXPOSE_HEADERS_HEADER,
    RECEIPT_ATTRIBUTE,
    X_PAYMENT_HEADER,
    X_PAYMENT_RESPONSE_HEADER,
    x402_VERSION,
)
from x402_interceptor.config import AuthorizationType, X402Config
from x402_interceptor.encoding import (
    decode_payment_response_header,
    encode_payment_header,
)
from x402_interceptor.evm import (
    EthAccountSigner,
    NonceReader,
    Signer,
    Web3NonceReader,
    get_authorization_strategy,
    signer_supports_network,
)
from x402_interceptor.evm.constants import ALLOWANCE_ERROR_MARKERS, PERMIT2_ADDRESS
from x402_interceptor.exceptions import (
    PaymentAuthorizationError,
    PaymentDecodeError,
    PaymentError,
    PaymentProtocolError,
    PaymentSelectionError,
    PaymentStage,
    Permit2AllowanceError,
)
from x402_interceptor.types import (
    PaymentRequirements,
    PaymentResponseReceipt,
    SignedAuthorization,
    x402PaymentRequiredResponse,
)

logger = logging.getLogger(__name__)

# Define type for the payment requirements selector
PaymentSelectorCallable = Callable[
    [List[PaymentRequirements], AuthorizationType, Optional[int]],
    PaymentRequirements,
]


class PaymentAttempt(NamedTuple):
    """The single paid retry prepared for one 402 response."""

    requirements: PaymentRequirements
    authorization: SignedAuthorization
    headers: dict[str, str]


class x402Client:
    """Answers 402 Payment Required challenges with signed EVM authorizations.

    The client holds only read-only state (signer, config, selector and the
    authorization strategy), so one instance can serve concurrent requests.

    Example:
        ```python
        from eth_account import Account
        from x402_interceptor import X402Config, x402Client

        config = X402Config.model_validate({"evmConfig": {"authorizationType": "permit2"}})
        client = x402Client(Account.from_key("0x..."), config=config)
        ```
    """

    def __init__(
        self,
        signer: Union[Signer, LocalAccount],
        config: Optional[X402Config] = None,
        max_value: Optional[int] = None,
        payment_requirements_selector: Optional[PaymentSelectorCallable] = None,
        nonce_reader: Optional[NonceReader] = None,
    ):
        """Initialize the x402 client.

        Args:
            signer: Signer producing EIP-712 signatures, or an eth_account
                LocalAccount which is wrapped in an EthAccountSigner
            config: Client configuration; defaults to EIP-3009 authorizations
            max_value: Optional maximum allowed payment amount in base units
            payment_requirements_selector: Optional custom selector for payment requirements
            nonce_reader: Optional nonce source for EIP-2612 permits
        """
        if isinstance(signer, LocalAccount):
            signer = EthAccountSigner(signer)
        self.signer = signer
        self.config = config or X402Config()
        self.max_value = max_value
        self._payment_requirements_selector = (
            payment_requirements_selector or self.default_payment_requirements_selector
        )
        self._strategy = get_authorization_strategy(
            self.config.authorization_type,
            nonce_reader or Web3NonceReader(self.config),
        )

    @property
    def authorization_type(self) -> AuthorizationType:
        return self.config.authorization_type

    def default_payment_requirements_selector(
        self,
        accepts: List[PaymentRequirements],
        authorization_type: AuthorizationType,
        max_value: Optional[int] = None,
    ) -> PaymentRequirements:
        """Select the first requirement the client can pay, in server order.

        A requirement is payable when it accepts ``authorization_type``, its
        network is supported by the signer and, if ``max_value`` is set, its
        amount does not exceed it.

        Args:
            accepts: List of accepted payment requirements
            authorization_type: Authorization type the client is configured for
            max_value: Optional maximum allowed payment amount

        Returns:
            Selected payment requirements

        Raises:
            PaymentSelectionError: If no requirement is payable
        """
        rejected = []
        for payment_requirements in accepts:
            if payment_requirements.authorization_type != authorization_type:
                rejected.append(f"{payment_requirements.scheme}: unsupported authorization type")
                continue

            if not signer_supports_network(self.signer, payment_requirements.network):
                rejected.append(f"{payment_requirements.network}: unsupported network")
                continue

            if max_value is not None:
                max_amount = int(payment_requirements.max_amount_required)
                if max_amount > max_value:
                    rejected.append(
                        f"amount {max_amount} exceeds maximum allowed value {max_value}"
                    )
                    continue

            return payment_requirements

        detail = f" ({'; '.join(rejected)})" if rejected else ""
        raise PaymentSelectionError(
            f"No payment requirement accepts {authorization_type.value}{detail}",
            scheme=authorization_type.value,
        )

    def select_payment_requirements(
        self, accepts: List[PaymentRequirements]
    ) -> PaymentRequirements:
        """Select payment requirements using the configured selector.

        Raises:
            PaymentSelectionError: If the selector finds nothing payable
        """
        try:
            return self._payment_requirements_selector(
                accepts, self.authorization_type, self.max_value
            )
        except PaymentSelectionError:
            raise
        except Exception as e:
            raise PaymentSelectionError(
                f"Payment requirements selector failed: {e}",
                scheme=self.authorization_type.value,
            ) from e

    def parse_payment_required(self, content: Union[str, bytes]) -> x402PaymentRequiredResponse:
        """Parse a 402 response body.

        Raises:
            PaymentProtocolError: If the body is not a valid payment challenge
        """
        try:
            return x402PaymentRequiredResponse.model_validate_json(content)
        except ValidationError as e:
            raise PaymentProtocolError(f"Invalid 402 response body: {e}") from e

    def create_signed_authorization(
        self, payment_requirements: PaymentRequirements
    ) -> SignedAuthorization:
        """Sign an authorization for the requirement with the configured strategy."""
        try:
            return self._strategy.authorize(payment_requirements, self.signer)
        except PaymentError:
            raise
        except Exception as e:
            raise PaymentAuthorizationError(
                f"Failed to create payment authorization: {e}",
                scheme=self.authorization_type.value,
                stage=PaymentStage.SIGN,
            ) from e

    def create_payment_header(
        self,
        payment_requirements: PaymentRequirements,
        x402_version: int = x402_VERSION,
    ) -> str:
        """Create a payment header for the given requirements.

        Args:
            payment_requirements: Selected payment requirements
            x402_version: x402 protocol version

        Returns:
            Signed payment header
        """
        signed = self.create_signed_authorization(payment_requirements)
        return encode_payment_header(x402_version, signed)

    def prepare_payment(self, content: Union[str, bytes]) -> Optional[tuple[int, PaymentRequirements]]:
        """Parse a 402 body and pick the requirement to pay.

        Returns:
            ``(x402_version, requirements)``, or None if nothing is payable

        Raises:
            PaymentProtocolError: If the body is not a valid payment challenge
        """
        payment_required = self.parse_payment_required(content)
        try:
            payment_requirements = self.select_payment_requirements(payment_required.accepts)
        except PaymentSelectionError as e:
            logger.warning("Not paying 402 response: %s", e)
            return None

        logger.debug(
            "Selected %s requirement on %s for %s",
            self.authorization_type.value,
            payment_requirements.network,
            payment_requirements.resource or "<unnamed resource>",
        )
        return payment_required.x402_version, payment_requirements

    def _attempt(
        self,
        x402_version: int,
        payment_requirements: PaymentRequirements,
        signed: SignedAuthorization,
    ) -> PaymentAttempt:
        return PaymentAttempt(
            requirements=payment_requirements,
            authorization=signed,
            headers={
                X_PAYMENT_HEADER: encode_payment_header(x402_version, signed),
                EXPOSE_HEADERS_HEADER: X_PAYMENT_RESPONSE_HEADER,
            },
        )

    def handle_payment_required(self, content: Union[str, bytes]) -> Optional[PaymentAttempt]:
        """Turn a 402 body into the headers for the paid retry.

        Returns:
            The prepared attempt, or None if no requirement is payable and
            the 402 should be returned to the caller

        Raises:
            PaymentProtocolError: If the body is not a valid payment challenge
            PaymentAuthorizationError: If the authorization cannot be signed
        """
        prepared = self.prepare_payment(content)
        if prepared is None:
            return None
        x402_version, payment_requirements = prepared
        signed = self.create_signed_authorization(payment_requirements)
        return self._attempt(x402_version, payment_requirements, signed)

    async def handle_payment_required_async(
        self, content: Union[str, bytes]
    ) -> Optional[PaymentAttempt]:
        """Async variant of :meth:`handle_payment_required`.

        Signing, and the nonce read for permits, run in a worker thread.
        """
        prepared = self.prepare_payment(content)
        if prepared is None:
            return None
        x402_version, payment_requirements = prepared
        signed = await asyncio.to_thread(self.create_signed_authorization, payment_requirements)
        return self._attempt(x402_version, payment_requirements, signed)

    def process_payment_response(
        self,
        attempt: PaymentAttempt,
        status_code: int,
        headers: Mapping[str, str],
        content: Optional[Union[str, bytes]] = None,
    ) -> Optional[PaymentResponseReceipt]:
        """Inspect the response to the paid retry.

        Successful responses yield the decoded X-PAYMENT-RESPONSE receipt when
        the server sent one. A rejected Permit2 payment whose body points at a
        missing token allowance is raised as Permit2AllowanceError; any other
        failure is left for the caller to handle.

        Raises:
            Permit2AllowanceError: If a Permit2 payment failed for lack of approval
        """
        authorization_type = attempt.authorization.authorization_type

        if 200 <= status_code < 300:
            header = headers.get(X_PAYMENT_RESPONSE_HEADER)
            if not header:
                return None
            try:
                receipt = decode_payment_response_header(header)
            except PaymentDecodeError as e:
                logger.warning("Ignoring payment response header: %s", e)
                return None
            if receipt.scheme is None:
                receipt = receipt.model_copy(update={"scheme": authorization_type.value})
            return receipt

        logger.debug("Paid retry rejected with status %d", status_code)
        if authorization_type is AuthorizationType.PERMIT2 and _mentions_allowance(content):
            token = attempt.requirements.asset
            raise Permit2AllowanceError(
                f"Permit2 payment rejected with status {status_code}: the payer has not "
                f"approved the Permit2 contract ({PERMIT2_ADDRESS}) to spend token {token} "
                f"on {attempt.requirements.network}. Approve it once, then retry.",
                token=token,
                permit2_address=PERMIT2_ADDRESS,
                status_code=status_code,
            )
        return None


def _mentions_allowance(content: Optional[Union[str, bytes]]) -> bool:
    if not content:
        return False
    if isinstance(content, bytes):
        content = content.decode("utf-8", errors="replace")
    text = content.lower()
    return any(marker in text for marker in ALLOWANCE_ERROR_MARKERS)


def as_x402_client(client: Union[x402Client, Signer, LocalAccount], **kwargs: Any) -> x402Client:
    """Return ``client`` if it already is an x402Client, else build one around it."""
    if isinstance(client, x402Client):
        return client
    return x402Client(client, **kwargs)


def get_payment_receipt(response: Any) -> Optional[PaymentResponseReceipt]:
    """Return the settlement receipt attached to a paid response, if any.

    Works for both ``requests`` and ``httpx`` responses returned by the
    interceptors in this package.
    """
    extensions = getattr(response, "extensions", None)
    if isinstance(extensions, Mapping) and RECEIPT_ATTRIBUTE in extensions:
        return extensions[RECEIPT_ATTRIBUTE]
    return getattr(response, RECEIPT_ATTRIBUTE, None)
