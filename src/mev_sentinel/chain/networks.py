"""Static metadata for supported EVM networks."""

from __future__ import annotations

from dataclasses import dataclass


class UnknownNetworkError(KeyError):
    """Raised when a chain name is not a supported network."""


@dataclass(frozen=True)
class NetworkInfo:
    name: str
    display_name: str
    chain_id: int
    currency: str
    explorer_url: str
    confirmations: int
    poa: bool = False

    def tx_url(self, tx_hash: str) -> str:
        return f"{self.explorer_url}/tx/{tx_hash}"

    def address_url(self, address: str) -> str:
        return f"{self.explorer_url}/address/{address}"


NETWORKS: dict[str, NetworkInfo] = {
    "ethereum": NetworkInfo("ethereum", "Ethereum Mainnet", 1, "ETH", "https://etherscan.io", 2),
    "sepolia": NetworkInfo("sepolia", "Sepolia Testnet", 11155111, "ETH", "https://sepolia.etherscan.io", 1),
    "polygon": NetworkInfo("polygon", "Polygon Mainnet", 137, "MATIC", "https://polygonscan.com", 3, poa=True),
    "arbitrum": NetworkInfo("arbitrum", "Arbitrum One", 42161, "ETH", "https://arbiscan.io", 1),
    "optimism": NetworkInfo("optimism", "Optimism", 10, "ETH", "https://optimistic.etherscan.io", 1),
    "base": NetworkInfo("base", "Base", 8453, "ETH", "https://basescan.org", 1),
    "bsc": NetworkInfo("bsc", "BNB Smart Chain", 56, "BNB", "https://bscscan.com", 3, poa=True),
    "zksync": NetworkInfo("zksync", "zkSync Era", 324, "ETH", "https://explorer.zksync.io", 1),
}


def get_network(name: str) -> NetworkInfo:
    """Look up a supported network by name.

    Raises:
        UnknownNetworkError: If the network is not supported.
    """
    try:
        return NETWORKS[name.lower()]
    except KeyError:
        raise UnknownNetworkError(f"Unsupported network: {name}") from None
