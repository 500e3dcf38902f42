"""x402 requests client example - EIP-3009 payments with a sync requests session."""

import logging
import os
import sys

from dotenv import load_dotenv
from eth_account import Account

from x402_interceptor import get_payment_receipt
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
    """Main entry point demonstrating requests with x402 payments."""
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    private_key, base_url, endpoint_path = validate_environment()

    account = Account.from_key(private_key)
    print(f"Initialized account: {account.address}")

    url = f"{base_url}{endpoint_path}"
    print(f"Making request to: {url}\n")

    # EIP-3009 is the default authorization type
    with x402_requests(account) as session:
        response = session.get(url)

        print(f"Response status: {response.status_code}")
        print(f"Response body: {response.text}")

        receipt = get_payment_receipt(response)
        if receipt is not None:
            print("\nPayment settled successfully!")
            print(f"  Transaction: {receipt.transaction}")
            print(f"  Network: {receipt.network}")
            print(f"  Payer: {receipt.payer}")
        elif response.ok:
            print("\nNo payment response header found")
        else:
            print(f"\nRequest failed (status: {response.status_code})")


if __name__ == "__main__":
    main()
