"""EVM chain connector with rate limiting, retries and block caching.

This module provides the block source for the detection engine with:
- A fixed per-request RPC timeout
- Redis caching of decoded blocks (blocks are immutable once confirmed)
- Retry logic with exponential backoff
- Rate limiting to respect provider limits
- Failover to secondary RPC URL
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol

from redis.asyncio import Redis
from web3 import AsyncWeb3
from web3.exceptions import Web3Exception
from web3.middleware import ExtraDataToPOAMiddleware
from web3.providers import AsyncHTTPProvider

from mev_sentinel.chain.models import Block
from mev_sentinel.chain.networks import get_network

if TYPE_CHECKING:
    from mev_sentinel.config import Settings

logger = logging.getLogger(__name__)

# Default configuration
DEFAULT_BLOCK_CACHE_TTL_SECONDS = 3600
DEFAULT_MAX_REQUESTS_PER_SECOND = 25
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.0
DEFAULT_REQUEST_TIMEOUT = 30


class ChainClientError(Exception):
    """Base exception for chain connector errors."""


class RPCError(ChainClientError):
    """Raised when RPC call fails."""


class ChainConnector(Protocol):
    """Block source for one network."""

    async def get_block(self, block_number: int) -> Block: ...

    async def get_latest_block_number(self) -> int: ...


@dataclass
class RateLimiter:
    """Token bucket rate limiter."""

    max_tokens: float
    refill_rate: float  # tokens per second
    tokens: float
    last_refill: float

    @classmethod
    def create(cls, max_requests_per_second: float) -> RateLimiter:
        """Create a rate limiter with specified max requests per second."""
        return cls(
            max_tokens=max_requests_per_second,
            refill_rate=max_requests_per_second,
            tokens=max_requests_per_second,
            last_refill=time.monotonic(),
        )

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self.last_refill
        self.tokens = min(self.max_tokens, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    async def acquire(self, tokens: float = 1.0) -> None:
        """Acquire tokens, waiting if necessary."""
        while True:
            self._refill()
            if self.tokens >= tokens:
                self.tokens -= tokens
                return
            wait_time = (tokens - self.tokens) / self.refill_rate
            await asyncio.sleep(wait_time)


class Web3ChainConnector:
    """Block connector for a single EVM network backed by web3.py.

    Example:
        ```python
        redis = Redis.from_url("redis://localhost:6379")
        connector = Web3ChainConnector(
            "ethereum",
            rpc_url="https://eth.llamarpc.com",
            redis=redis,
        )
        block = await connector.get_block(19_000_000)
        ```
    """

    def __init__(
        self,
        chain: str,
        *,
        rpc_url: str,
        fallback_rpc_url: str | None = None,
        redis: Redis | None = None,
        cache_ttl_seconds: int = DEFAULT_BLOCK_CACHE_TTL_SECONDS,
        max_requests_per_second: float = DEFAULT_MAX_REQUESTS_PER_SECOND,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay_seconds: float = DEFAULT_RETRY_DELAY_SECONDS,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        """Initialize the connector.

        Args:
            chain: Network name (see mev_sentinel.chain.networks).
            rpc_url: Primary RPC endpoint URL.
            fallback_rpc_url: Optional fallback RPC URL for failover.
            redis: Optional Redis client for block caching.
            cache_ttl_seconds: Block cache TTL in seconds (0 disables caching).
            max_requests_per_second: Rate limit for RPC calls.
            max_retries: Maximum retry attempts on failure.
            retry_delay_seconds: Initial delay between retries.
            request_timeout: Per-request HTTP timeout in seconds.
        """
        self.chain = chain
        self._network = get_network(chain)
        self._redis = redis
        self._cache_ttl = cache_ttl_seconds
        self._max_retries = max_retries
        self._retry_delay = retry_delay_seconds
        self._request_timeout = request_timeout

        self._w3 = self._new_web3_client(rpc_url)
        self._w3_fallback: AsyncWeb3[AsyncHTTPProvider] | None = None
        if fallback_rpc_url:
            self._w3_fallback = self._new_web3_client(fallback_rpc_url)

        self._rate_limiter = RateLimiter.create(max_requests_per_second)

        # Track primary RPC health
        self._primary_healthy = True
        self._last_primary_check = 0.0
        self._primary_recovery_interval = 60.0

        self._cache_prefix = f"mev:{chain}:"

    def _new_web3_client(self, rpc_url: str) -> AsyncWeb3[AsyncHTTPProvider]:
        client = AsyncWeb3(
            AsyncHTTPProvider(rpc_url, request_kwargs={"timeout": self._request_timeout})
        )
        if self._network.poa:
            try:
                client.middleware_onion.inject(ExtraDataToPOAMiddleware, layer=0)
            except Exception as e:
                logger.warning("Failed to inject PoA middleware (chain=%s): %s", self.chain, e)
        return client

    async def _get_cached(self, key: str) -> str | None:
        if not self._redis or self._cache_ttl <= 0:
            return None
        try:
            value = await self._redis.get(key)
            if isinstance(value, bytes):
                return value.decode()
            return str(value) if value is not None else None
        except Exception as e:
            logger.warning("Cache get failed: %s", e)
            return None

    async def _set_cached(self, key: str, value: str) -> None:
        if not self._redis or self._cache_ttl <= 0:
            return
        try:
            await self._redis.set(key, value, ex=self._cache_ttl)
        except Exception as e:
            logger.warning("Cache set failed: %s", e)

    def _should_try_primary(self) -> bool:
        if self._primary_healthy:
            return True
        now = time.monotonic()
        if now - self._last_primary_check > self._primary_recovery_interval:
            self._last_primary_check = now
            return True
        return False

    async def _execute_with_retry(self, func_name: str, *args: Any, **kwargs: Any) -> Any:
        """Execute an RPC call with retry and failover logic.

        Raises:
            RPCError: If all retries and failover fail.
        """
        await self._rate_limiter.acquire()

        last_error: Exception | None = None

        if self._should_try_primary():
            ok, result, last_error = await self._attempt(self._w3, "Primary", func_name, *args, **kwargs)
            if ok:
                self._primary_healthy = True
                return result
            self._primary_healthy = False
            self._last_primary_check = time.monotonic()

        if self._w3_fallback:
            ok, result, last_error = await self._attempt(
                self._w3_fallback, "Fallback", func_name, *args, **kwargs
            )
            if ok:
                logger.info("Fallback RPC succeeded for %s (chain=%s)", func_name, self.chain)
                return result

        raise RPCError(f"RPC call {func_name} failed on {self.chain} after all retries: {last_error}")

    async def _attempt(
        self,
        w3: AsyncWeb3[AsyncHTTPProvider],
        label: str,
        func_name: str,
        *args: Any,
        **kwargs: Any,
    ) -> tuple[bool, Any, Exception | None]:
        delay = self._retry_delay
        last_error: Exception | None = None
        for attempt in range(self._max_retries):
            try:
                method = getattr(w3.eth, func_name)
                return True, await method(*args, **kwargs), None
            except (Web3Exception, OSError, asyncio.TimeoutError) as e:
                last_error = e
                logger.warning(
                    "%s RPC %s failed on %s (attempt %d/%d): %s",
                    label,
                    func_name,
                    self.chain,
                    attempt + 1,
                    self._max_retries,
                    e,
                )
                if attempt < self._max_retries - 1:
                    await asyncio.sleep(delay)
                    delay *= 2  # Exponential backoff
        return False, None, last_error

    async def get_block(self, block_number: int) -> Block:
        """Get a block with full transaction objects.

        Raises:
            ValueError: If block_number is negative.
            RPCError: If the block cannot be fetched.
        """
        if block_number < 0:
            raise ValueError("block_number must be >= 0")

        cache_key = f"{self._cache_prefix}block:{block_number}"
        cached = await self._get_cached(cache_key)
        if cached is not None:
            return Block.from_dict(json.loads(cached))

        raw = await self._execute_with_retry("get_block", block_number, full_transactions=True)
        if raw is None:
            raise RPCError(f"Block {block_number} not found on {self.chain}")

        block = Block.from_web3(raw)
        await self._set_cached(cache_key, json.dumps(block.to_dict()))
        return block

    async def get_latest_block_number(self) -> int:
        latest = await self._execute_with_retry("get_block", "latest")
        return int(latest["number"])

    async def health_check(self) -> bool:
        """Check if the connector can reach the RPC."""
        try:
            await self.get_latest_block_number()
            return True
        except RPCError:
            return False

    async def aclose(self) -> None:
        """Close async HTTP provider sessions to avoid leaked aiohttp sessions."""
        providers = [self._w3.provider]
        if self._w3_fallback is not None:
            providers.append(self._w3_fallback.provider)

        for provider in providers:
            disconnect = getattr(provider, "disconnect", None)
            if not callable(disconnect):
                continue
            try:
                result = disconnect()
                if asyncio.iscoroutine(result):
                    await result
            except Exception as e:
                logger.warning("Failed to close RPC provider session: %s", e)


def build_connectors(settings: Settings, *, redis: Redis | None = None) -> dict[str, Web3ChainConnector]:
    """Build one connector per network that has an RPC URL configured."""
    chains = settings.chains
    connectors: dict[str, Web3ChainConnector] = {}
    for chain in chains.configured_chains():
        rpc_url = chains.rpc_url_for(chain)
        if rpc_url is None:
            continue
        connectors[chain] = Web3ChainConnector(
            chain,
            rpc_url=rpc_url,
            fallback_rpc_url=chains.fallback_rpc_url_for(chain),
            redis=redis,
            cache_ttl_seconds=chains.block_cache_ttl_seconds,
            max_requests_per_second=chains.max_requests_per_second,
            max_retries=chains.max_retries,
            request_timeout=chains.rpc_timeout_seconds,
        )
    logger.info("Chain connectors ready: %s", ", ".join(connectors) or "(none)")
    return connectors
