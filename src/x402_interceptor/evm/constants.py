"""EVM constants - typed-data definitions, contract addresses, ABIs."""

# Canonical Uniswap Permit2 deployment (same address on every EVM network)
PERMIT2_ADDRESS = "0x000000000022D473030F116dDEE9F6B43aC78BA3"

PERMIT2_DOMAIN_NAME = "Permit2"

# validAfter is backdated to tolerate clock skew between client and chain
VALID_AFTER_SKEW_SECONDS = 60

EIP3009_TYPES = {
    "TransferWithAuthorization": [
        {"name": "from", "type": "address"},
        {"name": "to", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "validAfter", "type": "uint256"},
        {"name": "validBefore", "type": "uint256"},
        {"name": "nonce", "type": "bytes32"},
    ]
}
EIP3009_PRIMARY_TYPE = "TransferWithAuthorization"

PERMIT_TYPES = {
    "Permit": [
        {"name": "owner", "type": "address"},
        {"name": "spender", "type": "address"},
        {"name": "value", "type": "uint256"},
        {"name": "nonce", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
    ]
}
PERMIT_PRIMARY_TYPE = "Permit"

PERMIT2_TYPES = {
    "PermitTransferFrom": [
        {"name": "permitted", "type": "TokenPermissions"},
        {"name": "spender", "type": "address"},
        {"name": "nonce", "type": "uint256"},
        {"name": "deadline", "type": "uint256"},
    ],
    "TokenPermissions": [
        {"name": "token", "type": "address"},
        {"name": "amount", "type": "uint256"},
    ],
}
PERMIT2_PRIMARY_TYPE = "PermitTransferFrom"

# EIP-2612 nonce getter
NONCES_ABI = [
    {
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "nonces",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    }
]

# Substrings a server uses when a Permit2 transfer fails for lack of approval
ALLOWANCE_ERROR_MARKERS = ("allowance", "approval", "approve")
