"""Block analysis orchestration.

This module provides the BlockAnalyzer class that fetches one block, narrows
it to the transactions touching a monitored contract and runs every MEV
detector over them.

Flow:
    Fetch block -> Filter transactions -> Detectors (parallel) -> Composite -> Deduplicate
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol

from mev_sentinel.chain.client import ChainConnector
from mev_sentinel.chain.models import Block, Transaction
from mev_sentinel.detector.base import DetectionContext, default_detectors
from mev_sentinel.detector.composite import CompositeStrategyDetector
from mev_sentinel.detector.models import MEVAlert

logger = logging.getLogger(__name__)

# Default configuration
DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0


class Detector(Protocol):
    """Anything that turns a detection context into alerts."""

    @property
    def name(self) -> str: ...

    async def detect(self, ctx: DetectionContext) -> list[MEVAlert]: ...


def filter_contract_transactions(block: Block, contract_address: str) -> tuple[Transaction, ...]:
    """Return the block's transactions sent from or to the contract, in block order."""
    return tuple(tx for tx in block.transactions if tx.touches(contract_address))


def deduplicate_alerts(alerts: Iterable[MEVAlert]) -> list[MEVAlert]:
    """Drop alerts sharing (contract, attack type, transaction), keeping the first seen."""
    seen: set[tuple[object, ...]] = set()
    unique: list[MEVAlert] = []
    for alert in alerts:
        key = alert.dedup_key
        if key in seen:
            continue
        seen.add(key)
        unique.append(alert)
    return unique


class BlockAnalyzer:
    """Runs all MEV detectors over one block for one contract.

    Connector failures, timeouts and unknown chains are logged and yield no
    alerts. A detector that raises is logged and contributes nothing; the
    other detectors' alerts are still returned. Cancellation propagates.

    Example:
        ```python
        connectors = build_connectors(get_settings())
        analyzer = BlockAnalyzer(connectors)
        alerts = await analyzer.analyze_block("ethereum", 19_000_000, "0xabc...")
        ```
    """

    def __init__(
        self,
        connectors: Mapping[str, ChainConnector],
        *,
        detectors: Sequence[Detector] | None = None,
        composite: Detector | None = None,
        fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
    ) -> None:
        """Initialize the analyzer.

        Args:
            connectors: Block connector per chain name.
            detectors: Pattern detectors in registration order. Defaults to
                the five built-in detectors.
            composite: Composite strategy detector, merged after the others.
            fetch_timeout_seconds: Upper bound on one block fetch.
        """
        if fetch_timeout_seconds <= 0:
            raise ValueError("fetch_timeout_seconds must be > 0")
        self._connectors = dict(connectors)
        self._detectors: list[Detector] = list(detectors) if detectors is not None else default_detectors()
        self._composite: Detector = composite or CompositeStrategyDetector()
        self._fetch_timeout = fetch_timeout_seconds

    @property
    def chains(self) -> list[str]:
        return list(self._connectors)

    async def analyze_block(self, chain: str, block_number: int, contract_address: str) -> list[MEVAlert]:
        """Fetch a block and return the deduplicated MEV alerts for a contract."""
        block = await self._fetch_block(chain, block_number)
        if block is None:
            return []
        return await self.analyze_transactions(chain, block, contract_address)

    async def analyze_transactions(self, chain: str, block: Block, contract_address: str) -> list[MEVAlert]:
        """Run detection over a block that has already been fetched."""
        txs = filter_contract_transactions(block, contract_address)
        if not txs:
            logger.debug("No transactions for %s in block %d (%s)", contract_address, block.number, chain)
            return []

        ctx = DetectionContext(chain=chain, contract_id=contract_address.lower(), block=block, transactions=txs)
        runners = [*self._detectors, self._composite]
        results = await asyncio.gather(
            *(detector.detect(ctx) for detector in runners),
            return_exceptions=True,
        )

        merged: list[MEVAlert] = []
        for detector, res in zip(runners, results, strict=True):
            if isinstance(res, asyncio.CancelledError):
                raise res
            if isinstance(res, BaseException):
                logger.error(
                    "Detector %s failed for %s in block %d (%s): %s",
                    detector.name,
                    contract_address,
                    block.number,
                    chain,
                    res,
                    exc_info=res,
                )
                continue
            merged.extend(res)

        alerts = deduplicate_alerts(merged)
        if alerts:
            logger.info(
                "Block %d on %s: %d MEV alert(s) for %s",
                block.number,
                chain,
                len(alerts),
                contract_address,
            )
        return alerts

    async def _fetch_block(self, chain: str, block_number: int) -> Block | None:
        connector = self._connectors.get(chain)
        if connector is None:
            logger.warning("No connector configured for chain %s", chain)
            return None
        try:
            return await asyncio.wait_for(connector.get_block(block_number), timeout=self._fetch_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Timed out after %.1fs fetching block %d on %s",
                self._fetch_timeout,
                block_number,
                chain,
            )
        except Exception as e:
            logger.warning("Failed to fetch block %d on %s: %s", block_number, chain, e)
        return None
