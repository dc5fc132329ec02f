"""Chain access layer - blocks and transactions from EVM networks."""

from mev_sentinel.chain.client import (
    ChainClientError,
    ChainConnector,
    RPCError,
    Web3ChainConnector,
    build_connectors,
)
from mev_sentinel.chain.models import Block, Transaction
from mev_sentinel.chain.networks import NETWORKS, NetworkInfo, UnknownNetworkError, get_network

__all__ = [
    "Block",
    "ChainClientError",
    "ChainConnector",
    "NETWORKS",
    "NetworkInfo",
    "RPCError",
    "Transaction",
    "UnknownNetworkError",
    "Web3ChainConnector",
    "build_connectors",
    "get_network",
]
