"""Block polling loop.

This module provides the BlockMonitor class that follows each configured
chain's head and feeds newly confirmed blocks through the MEV service for
every monitored contract on that chain.
"""

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from mev_sentinel.chain.client import ChainConnector
from mev_sentinel.chain.networks import get_network
from mev_sentinel.config import MonitorTarget
from mev_sentinel.service import MEVService

logger = logging.getLogger(__name__)

# Default configuration
DEFAULT_POLL_INTERVAL_SECONDS = 12.0
DEFAULT_MAX_CONCURRENCY_PER_CHAIN = 4
DEFAULT_MAX_BLOCKS_PER_TICK = 10


class MonitorState(str, Enum):
    """Monitor lifecycle states."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    STOPPING = "stopping"
    ERROR = "error"


@dataclass
class MonitorStats:
    """Statistics for the monitor."""

    started_at: datetime | None = None
    ticks: int = 0
    blocks_processed: int = 0
    alerts_stored: int = 0
    errors: int = 0
    last_block_by_chain: dict[str, int] = field(default_factory=dict)
    last_error: str | None = None


class BlockMonitor:
    """Polls chains for confirmed blocks and runs MEV detection on them.

    Blocks are processed only once they are `confirmations` deep for their
    network. On the first poll of a chain the monitor starts at the current
    confirmed head rather than replaying history. Per chain, at most
    `max_concurrency_per_chain` analyses run at once.

    Example:
        ```python
        monitor = BlockMonitor(settings.monitor.contracts, connectors, service)
        async with monitor:
            await asyncio.sleep(60)
        ```
    """

    def __init__(
        self,
        targets: Sequence[MonitorTarget],
        connectors: Mapping[str, ChainConnector],
        service: MEVService,
        *,
        poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS,
        max_concurrency_per_chain: int = DEFAULT_MAX_CONCURRENCY_PER_CHAIN,
        max_blocks_per_tick: int = DEFAULT_MAX_BLOCKS_PER_TICK,
        start_blocks: Mapping[str, int] | None = None,
    ) -> None:
        """Initialize the monitor.

        Args:
            targets: Monitored (chain, contract) pairs.
            connectors: Block connector per chain name.
            service: Service used to analyze and persist each block.
            poll_interval_seconds: Delay between polls.
            max_concurrency_per_chain: Concurrent analyses per chain.
            max_blocks_per_tick: Upper bound on blocks advanced per chain per poll.
            start_blocks: Optional first block to process per chain.
        """
        if max_concurrency_per_chain < 1:
            raise ValueError("max_concurrency_per_chain must be >= 1")
        if max_blocks_per_tick < 1:
            raise ValueError("max_blocks_per_tick must be >= 1")

        self._connectors = dict(connectors)
        self._service = service
        self._poll_interval = poll_interval_seconds
        self._max_blocks_per_tick = max_blocks_per_tick

        self._contracts_by_chain: dict[str, list[str]] = defaultdict(list)
        for target in targets:
            if target.chain not in self._connectors:
                logger.warning("Skipping %s on %s: no connector configured", target.contract_address, target.chain)
                continue
            if target.contract_address not in self._contracts_by_chain[target.chain]:
                self._contracts_by_chain[target.chain].append(target.contract_address)

        self._semaphores = {
            chain: asyncio.Semaphore(max_concurrency_per_chain) for chain in self._contracts_by_chain
        }
        # Last block fully processed per chain.
        self._cursors: dict[str, int] = {chain: block - 1 for chain, block in (start_blocks or {}).items()}

        self._state = MonitorState.STOPPED
        self._stats = MonitorStats()
        self._stop_event: asyncio.Event | None = None
        self._loop_task: asyncio.Task[None] | None = None

    @property
    def state(self) -> MonitorState:
        """Current monitor state."""
        return self._state

    @property
    def stats(self) -> MonitorStats:
        """Current monitor statistics."""
        return self._stats

    @property
    def is_running(self) -> bool:
        return self._state == MonitorState.RUNNING

    @property
    def chains(self) -> list[str]:
        return list(self._contracts_by_chain)

    async def start(self) -> None:
        """Start polling in a background task.

        Raises:
            RuntimeError: If the monitor is not stopped.
        """
        if self._state != MonitorState.STOPPED:
            raise RuntimeError(f"Cannot start monitor in state {self._state}")

        self._state = MonitorState.STARTING
        self._stop_event = asyncio.Event()
        logger.info("Starting block monitor for chains: %s", ", ".join(self.chains) or "(none)")

        try:
            if not self._contracts_by_chain:
                raise RuntimeError("No monitored contracts have a configured connector")
            self._loop_task = asyncio.create_task(self._run_loop())
            self._stats.started_at = datetime.now(UTC)
            self._state = MonitorState.RUNNING
            logger.info("Block monitor started")
        except Exception as e:
            self._state = MonitorState.ERROR
            self._stats.last_error = str(e)
            logger.error("Failed to start block monitor: %s", e)
            raise

    async def stop(self) -> None:
        """Stop polling and wait for in-flight work to settle."""
        if self._state in (MonitorState.STOPPED, MonitorState.ERROR):
            self._state = MonitorState.STOPPED
            return

        self._state = MonitorState.STOPPING
        logger.info("Stopping block monitor...")

        if self._stop_event:
            self._stop_event.set()

        if self._loop_task is not None:
            try:
                await asyncio.wait_for(self._loop_task, timeout=self._poll_interval + 5.0)
            except asyncio.TimeoutError:
                self._loop_task.cancel()
                try:
                    await self._loop_task
                except asyncio.CancelledError:
                    pass
            self._loop_task = None

        self._state = MonitorState.STOPPED
        logger.info("Block monitor stopped")

    async def poll_once(self) -> None:
        """Run one poll across all chains."""
        await asyncio.gather(*(self._poll_chain(chain) for chain in self.chains))
        self._stats.ticks += 1

    async def _run_loop(self) -> None:
        assert self._stop_event is not None
        while not self._stop_event.is_set():
            try:
                await self.poll_once()
            except Exception as e:
                self._stats.errors += 1
                self._stats.last_error = str(e)
                logger.exception("Monitor poll failed: %s", e)
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self._poll_interval)
            except asyncio.TimeoutError:
                pass

    async def _poll_chain(self, chain: str) -> None:
        connector = self._connectors[chain]
        try:
            latest = await connector.get_latest_block_number()
        except Exception as e:
            self._stats.errors += 1
            self._stats.last_error = str(e)
            logger.warning("Failed to read head of %s: %s", chain, e)
            return

        confirmed = latest - get_network(chain).confirmations
        if confirmed < 0:
            return
        cursor = self._cursors.get(chain, confirmed - 1)
        if confirmed <= cursor:
            return

        first = cursor + 1
        last = min(confirmed, first + self._max_blocks_per_tick - 1)
        if last < confirmed:
            logger.info("%s is %d block(s) behind; processing %d-%d", chain, confirmed - last, first, last)

        contracts = self._contracts_by_chain[chain]
        await asyncio.gather(
            *(
                self._process(chain, block_number, contract)
                for block_number in range(first, last + 1)
                for contract in contracts
            )
        )
        self._cursors[chain] = last
        self._stats.blocks_processed += last - first + 1
        self._stats.last_block_by_chain[chain] = last

    async def _process(self, chain: str, block_number: int, contract: str) -> None:
        async with self._semaphores[chain]:
            try:
                saved = await self._service.process_block(chain, block_number, contract)
            except Exception as e:
                self._stats.errors += 1
                self._stats.last_error = str(e)
                logger.error("Block %d on %s failed for %s: %s", block_number, chain, contract, e)
                return
        self._stats.alerts_stored += len(saved)

    async def run(self) -> None:
        """Start the monitor and block until stop() is called or the task is cancelled."""
        await self.start()

        try:
            if self._stop_event:
                await self._stop_event.wait()
        except asyncio.CancelledError:
            pass
        finally:
            await self.stop()

    async def __aenter__(self) -> BlockMonitor:
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        """Async context manager exit."""
        await self.stop()
