"""x402 requests client example - EIP-2612 Permit payments.

The token must implement EIP-2612 ``permit()`` and ``nonces()``. The permit
nonce is read from the chain before every payment, using EVM_RPC_URL when set
and the network's public endpoint otherwise.
"""

import logging
import os
import sys

from dotenv import load_dotenv
from eth_account import Account

from x402_interceptor import (
    PaymentError,
    PermitNotSupportedError,
    X402Config,
    get_payment_receipt,
)
from x402_interceptor.clients.requests import x402_requests

# Load environment variables
load_dotenv()


def validate_environment() -> tuple[str, str, str]:
    """Validate required environment variables.

    Returns:
        Tuple of (private_key, base_url, endpoint_path).

    Raises:
        SystemExit: If required environment variables are missing.
    """
    private_key = os.getenv("PRIVATE_KEY")
    base_url = os.getenv("RESOURCE_SERVER_URL")
    endpoint_path = os.getenv("ENDPOINT_PATH")

    missing = []
    if not private_key:
        missing.append("PRIVATE_KEY")
    if not base_url:
        missing.append("RESOURCE_SERVER_URL")
    if not endpoint_path:
        missing.append("ENDPOINT_PATH")

    if missing:
        print(f"Error: Missing required environment variables: {', '.join(missing)}")
        print("Please copy .env-example to .env and fill in the values.")
        sys.exit(1)

    return private_key, base_url, endpoint_path


def main() -> None:
    """Main entry point demonstrating EIP-2612 Permit payments."""
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    private_key, base_url, endpoint_path = validate_environment()

    account = Account.from_key(private_key)
    print(f"Initialized account: {account.address}")

    config = X402Config.model_validate(
        {
            "evmConfig": {
                "authorizationType": "permit",
                "rpcUrl": os.getenv("EVM_RPC_URL") or None,
            }
        }
    )

    url = f"{base_url}{endpoint_path}"
    print(f"Making request to: {url}")
    print("Using authorization type: EIP-2612 Permit\n")

    with x402_requests(account, config=config) as session:
        try:
            response = session.get(url)
        except PermitNotSupportedError as e:
            print(f"Error: {e}")
            sys.exit(1)
        except PaymentError as e:
            print(f"Payment failed during {e.stage.value if e.stage else 'payment'}: {e}")
            sys.exit(1)

        print(f"Response status: {response.status_code}")
        print(f"Response body: {response.text}")

        receipt = get_payment_receipt(response)
        if receipt is not None:
            print("\nPayment response:")
            print(receipt.model_dump_json(indent=2, exclude_none=True))


if __name__ == "__main__":
    main()
