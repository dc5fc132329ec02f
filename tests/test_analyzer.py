"""Tests for the block analyzer."""

from __future__ import annotations

import asyncio
import logging
from unittest.mock import AsyncMock

import pytest
from conftest import CONTRACT, make_alert, make_block, make_tx

from mev_sentinel.analyzer import BlockAnalyzer, deduplicate_alerts, filter_contract_transactions
from mev_sentinel.chain.client import RPCError
from mev_sentinel.detector.models import MEVAttackType

ATTACKER = "0x" + "a" * 40
VICTIM = "0x" + "b" * 40
OTHER = "0x" + "e" * 40


class StaticDetector:
    def __init__(self, name: str, alerts=(), error: Exception | None = None) -> None:
        self.name = name
        self._alerts = list(alerts)
        self._error = error
        self.calls = 0

    async def detect(self, ctx):
        self.calls += 1
        if self._error is not None:
            raise self._error
        return list(self._alerts)


def connector_for(block) -> AsyncMock:
    connector = AsyncMock()
    connector.get_block.return_value = block
    return connector


@pytest.fixture
def frontrun_block():
    return make_block(
        [
            make_tx("0x01", ATTACKER, 200),
            make_tx("0x99", OTHER, 500, recipient=OTHER),
            make_tx("0x02", VICTIM, 50),
        ]
    )


class TestFilterContractTransactions:
    def test_matches_sender_or_recipient_case_insensitively(self) -> None:
        block = make_block(
            [
                make_tx("0x01", ATTACKER, 10, recipient=CONTRACT.upper().replace("0X", "0x")),
                make_tx("0x02", CONTRACT, 10, recipient=OTHER),
                make_tx("0x03", ATTACKER, 10, recipient=OTHER),
                make_tx("0x04", ATTACKER, 10, recipient=None),
            ]
        )
        assert [tx.hash for tx in filter_contract_transactions(block, CONTRACT)] == ["0x01", "0x02"]


class TestDeduplicateAlerts:
    def test_keeps_first_seen(self) -> None:
        first = make_alert("a", MEVAttackType.SANDWICH, tx_hash="0x01")
        dup = make_alert("b", MEVAttackType.SANDWICH, tx_hash="0x01")
        other_type = make_alert("c", MEVAttackType.ARBITRAGE, tx_hash="0x01")
        assert [a.id for a in deduplicate_alerts([first, dup, other_type])] == ["a", "c"]

    def test_idempotent_over_repeated_runs(self) -> None:
        run = [
            make_alert("a", MEVAttackType.SANDWICH, tx_hash="0x01"),
            make_alert("b", MEVAttackType.FRONTRUNNING, tx_hash="0x02"),
        ]
        once = deduplicate_alerts(run)
        assert deduplicate_alerts(run + run) == once
        assert deduplicate_alerts(once) == once


class TestBlockAnalyzer:
    @pytest.mark.asyncio
    async def test_frontrunning_end_to_end(self, frontrun_block) -> None:
        analyzer = BlockAnalyzer({"ethereum": connector_for(frontrun_block)})

        alerts = await analyzer.analyze_block("ethereum", frontrun_block.number, CONTRACT)

        assert len(alerts) == 1
        assert alerts[0].attack_type == MEVAttackType.FRONTRUNNING
        assert alerts[0].attacker_address == ATTACKER
        assert alerts[0].contract_id == CONTRACT

    @pytest.mark.asyncio
    async def test_connector_failure_returns_empty(self, caplog) -> None:
        connector = AsyncMock()
        connector.get_block.side_effect = RPCError("node down")
        analyzer = BlockAnalyzer({"ethereum": connector})

        with caplog.at_level(logging.WARNING):
            alerts = await analyzer.analyze_block("ethereum", 1, CONTRACT)

        assert alerts == []
        assert "node down" in caplog.text

    @pytest.mark.asyncio
    async def test_fetch_timeout_returns_empty(self, caplog) -> None:
        connector = AsyncMock()

        async def slow_block(number: int):
            await asyncio.sleep(5)

        connector.get_block.side_effect = slow_block
        analyzer = BlockAnalyzer({"ethereum": connector}, fetch_timeout_seconds=0.01)

        with caplog.at_level(logging.WARNING):
            assert await analyzer.analyze_block("ethereum", 1, CONTRACT) == []
        assert "Timed out" in caplog.text

    @pytest.mark.asyncio
    async def test_unknown_chain_returns_empty(self) -> None:
        analyzer = BlockAnalyzer({})
        assert await analyzer.analyze_block("ethereum", 1, CONTRACT) == []

    @pytest.mark.asyncio
    async def test_no_contract_transactions_skips_detectors(self) -> None:
        block = make_block([make_tx("0x01", ATTACKER, 100, recipient=OTHER)])
        detector = StaticDetector("sandwich")
        composite = StaticDetector("composite")
        analyzer = BlockAnalyzer({"ethereum": connector_for(block)}, detectors=[detector], composite=composite)

        assert await analyzer.analyze_block("ethereum", 1, CONTRACT) == []
        assert detector.calls == 0
        assert composite.calls == 0

    @pytest.mark.asyncio
    async def test_failing_detector_is_isolated(self, frontrun_block, caplog) -> None:
        good = StaticDetector("good", [make_alert("a", MEVAttackType.SANDWICH, tx_hash="0x01")])
        bad = StaticDetector("bad", error=RuntimeError("boom"))
        analyzer = BlockAnalyzer(
            {"ethereum": connector_for(frontrun_block)},
            detectors=[bad, good],
            composite=StaticDetector("composite"),
        )

        with caplog.at_level(logging.ERROR):
            alerts = await analyzer.analyze_block("ethereum", 1, CONTRACT)

        assert [a.id for a in alerts] == ["a"]
        assert "Detector bad failed" in caplog.text

    @pytest.mark.asyncio
    async def test_composite_merged_last_and_deduplicated(self, frontrun_block) -> None:
        first = StaticDetector("first", [make_alert("p1", MEVAttackType.FRONTRUNNING, tx_hash="0x01")])
        second = StaticDetector("second", [make_alert("p2", MEVAttackType.ARBITRAGE, tx_hash="0x01")])
        composite = StaticDetector("composite", [make_alert("c1", MEVAttackType.FRONTRUNNING, tx_hash="0x01")])
        analyzer = BlockAnalyzer(
            {"ethereum": connector_for(frontrun_block)},
            detectors=[first, second],
            composite=composite,
        )

        alerts = await analyzer.analyze_block("ethereum", 1, CONTRACT)

        assert [a.id for a in alerts] == ["p1", "p2"]

    @pytest.mark.asyncio
    async def test_repeated_runs_are_stable(self, frontrun_block) -> None:
        analyzer = BlockAnalyzer({"ethereum": connector_for(frontrun_block)})
        first = await analyzer.analyze_block("ethereum", 1, CONTRACT)
        second = await analyzer.analyze_block("ethereum", 1, CONTRACT)
        assert [a.id for a in first] == [a.id for a in second]

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self) -> None:
        started = asyncio.Event()
        connector = AsyncMock()

        async def hang(number: int):
            started.set()
            await asyncio.Event().wait()

        connector.get_block.side_effect = hang
        analyzer = BlockAnalyzer({"ethereum": connector})

        task = asyncio.create_task(analyzer.analyze_block("ethereum", 1, CONTRACT))
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    def test_rejects_non_positive_timeout(self) -> None:
        with pytest.raises(ValueError):
            BlockAnalyzer({}, fetch_timeout_seconds=0)
