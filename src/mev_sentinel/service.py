"""MEV query and persistence service.

Wires the Block Analyzer to the alert store: new blocks go through detection
and their alerts are persisted, while reads are served from storage without
re-running detection.
"""

from __future__ import annotations

import logging

from mev_sentinel.analyzer import BlockAnalyzer
from mev_sentinel.detector.models import MEVAlert
from mev_sentinel.stats import DEFAULT_SAMPLE_LIMIT, MEVStats, StatsAggregator
from mev_sentinel.storage.repos import DEFAULT_LIST_LIMIT
from mev_sentinel.storage.store import AlertStore, AlertStoreError

logger = logging.getLogger(__name__)


class MEVService:
    """Entry point for processing blocks and querying MEV history.

    Example:
        ```python
        service = MEVService(BlockAnalyzer(connectors), SqlAlertStore(db))
        saved = await service.process_block("ethereum", 19_000_000, "0xabc...")
        stats = await service.get_stats("0xabc...")
        ```
    """

    def __init__(
        self,
        analyzer: BlockAnalyzer,
        store: AlertStore,
        *,
        stats_sample_limit: int = DEFAULT_SAMPLE_LIMIT,
    ) -> None:
        self._analyzer = analyzer
        self._store = store
        self._stats = StatsAggregator(store, sample_limit=stats_sample_limit)

    @property
    def analyzer(self) -> BlockAnalyzer:
        return self._analyzer

    async def process_block(self, chain: str, block_number: int, contract_address: str) -> list[MEVAlert]:
        """Detect and persist alerts for one block.

        An alert that fails to persist is logged and dropped.

        Returns:
            Alerts newly written to the store.
        """
        alerts = await self._analyzer.analyze_block(chain, block_number, contract_address)
        saved: list[MEVAlert] = []
        for alert in alerts:
            try:
                written = await self._store.save(alert)
            except AlertStoreError as e:
                logger.error("Dropping alert %s (%s): %s", alert.id, alert.attack_type.value, e)
                continue
            if written:
                saved.append(alert)
                logger.info(
                    "Stored %s alert %s: risk=%s, tx=%s, block=%d",
                    alert.attack_type.value,
                    alert.id,
                    alert.risk_level.value,
                    alert.transaction_hash,
                    alert.block_number,
                )
        return saved

    async def get_alerts(self, contract_id: str, limit: int = DEFAULT_LIST_LIMIT) -> list[MEVAlert]:
        """Most recent stored alerts for a contract, newest first."""
        return await self._store.list_by_contract(contract_id, limit=limit)

    async def get_stats(self, contract_id: str) -> MEVStats:
        return await self._stats.stats(contract_id)
