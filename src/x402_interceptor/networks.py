from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from x402_interceptor.config import X402Config


EVM_NETWORK_TO_CHAIN_ID: dict[str, int] = {
    "base": 8453,
    "base-sepolia": 84532,
    "avalanche": 43114,
    "avalanche-fuji": 43113,
    "polygon": 137,
    "polygon-amoy": 80002,
}

SUPPORTED_SVM_NETWORKS = ["solana", "solana-devnet"]

# Public endpoints, used when no RPC override is configured
EVM_DEFAULT_RPC_URLS: dict[str, str] = {
    "base": "https://mainnet.base.org",
    "base-sepolia": "https://sepolia.base.org",
    "avalanche": "https://api.avax.network/ext/bc/C/rpc",
    "avalanche-fuji": "https://api.avax-test.network/ext/bc/C/rpc",
    "polygon": "https://polygon-rpc.com",
    "polygon-amoy": "https://rpc-amoy.polygon.technology",
}

DEVNET_RPC_URL = "https://api.devnet.solana.com"
MAINNET_RPC_URL = "https://api.mainnet-beta.solana.com"


def is_evm_network(network: str) -> bool:
    """Return True for named EVM networks and CAIP-2 ``eip155:<id>`` identifiers."""
    if network in EVM_NETWORK_TO_CHAIN_ID:
        return True
    if network.startswith("eip155:"):
        return network.split(":", 1)[1].isdigit()
    return False


def is_svm_network(network: str) -> bool:
    return network in SUPPORTED_SVM_NETWORKS or network.startswith("solana:")


def get_chain_id(network: str) -> int:
    """Get the chain ID for a given network.

    Supports human readable names, CAIP-2 identifiers (``eip155:8453``) and
    string encoded chain IDs.

    Raises:
        ValueError: If the network is unknown or not an EVM network.
    """
    if network.isdigit():
        return int(network)
    if network in EVM_NETWORK_TO_CHAIN_ID:
        return EVM_NETWORK_TO_CHAIN_ID[network]
    if network.startswith("eip155:"):
        try:
            return int(network.split(":", 1)[1])
        except ValueError as e:
            raise ValueError(f"Invalid CAIP-2 network format: {network}") from e
    raise ValueError(f"Unsupported network: {network}")


def get_rpc_url(network: str, config: X402Config | None = None) -> str:
    """Resolve the RPC URL for a network, honouring per-family overrides.

    Args:
        network: Network name or CAIP-2 identifier
        config: Optional client configuration carrying RPC overrides

    Returns:
        RPC URL string

    Raises:
        ValueError: If no override is set and the network has no default endpoint
    """
    if is_svm_network(network):
        if config is not None and config.svm_config.rpc_url:
            return config.svm_config.rpc_url
        return DEVNET_RPC_URL if network == "solana-devnet" else MAINNET_RPC_URL

    if config is not None and config.evm_config.rpc_url:
        return config.evm_config.rpc_url

    if network in EVM_DEFAULT_RPC_URLS:
        return EVM_DEFAULT_RPC_URLS[network]

    chain_id = get_chain_id(network)
    for name, known_chain_id in EVM_NETWORK_TO_CHAIN_ID.items():
        if known_chain_id == chain_id:
            return EVM_DEFAULT_RPC_URLS[name]

    raise ValueError(
        f"No default RPC URL for network {network}; set evm_config.rpc_url"
    )
