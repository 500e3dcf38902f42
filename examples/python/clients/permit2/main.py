"""x402 httpx client example - Permit2 payments.

Permit2 works with any ERC-20 token. The payer approves the Permit2 contract
for the token once; every payment after that is an off-chain signature.
"""

import asyncio
import logging
import os
import sys

from dotenv import load_dotenv
from eth_account import Account

from x402_interceptor import (
    PERMIT2_ADDRESS,
    Permit2AllowanceError,
    X402Config,
    get_payment_receipt,
)
from x402_interceptor.clients.httpx import x402HttpxClient

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


async def main() -> None:
    """Main entry point demonstrating Permit2 payments with httpx."""
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

    private_key, base_url, endpoint_path = validate_environment()

    account = Account.from_key(private_key)
    print(f"Initialized account: {account.address}")
    print(f"Permit2 contract: {PERMIT2_ADDRESS}\n")

    config = X402Config.model_validate({"evmConfig": {"authorizationType": "permit2"}})

    async with x402HttpxClient(account, config=config, base_url=base_url) as client:
        print(f"Making request to: {base_url}{endpoint_path}")
        try:
            response = await client.get(endpoint_path)
        except Permit2AllowanceError as e:
            print(f"Error: {e}")
            print("\nTip: Make sure you've approved the Permit2 contract for your token.")
            print(f"   Permit2 Address: {e.permit2_address}")
            print(f"   Token: {e.token}")
            sys.exit(1)

        print(f"Response status: {response.status_code}")
        print(f"Response body: {response.text}")

        receipt = get_payment_receipt(response)
        if receipt is not None:
            print("\nPayment response:")
            print(receipt.model_dump_json(indent=2, exclude_none=True))


if __name__ == "__main__":
    asyncio.run(main())
