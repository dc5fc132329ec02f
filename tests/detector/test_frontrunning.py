"""Tests for front-running detection."""

from __future__ import annotations

import pytest
from conftest import CONTRACT, make_block, make_tx

from mev_sentinel.detector.base import DetectionContext, DetectorError
from mev_sentinel.detector.frontrunning import FrontRunningDetector
from mev_sentinel.detector.models import MEVAttackType, RiskLevel

ATTACKER = "0x" + "a" * 40
VICTIM = "0x" + "b" * 40


def make_ctx(*txs) -> DetectionContext:
    return DetectionContext(chain="ethereum", contract_id=CONTRACT, block=make_block(txs), transactions=tuple(txs))


class TestFrontRunningDetector:
    @pytest.mark.asyncio
    async def test_outbid_pair_emits_single_alert(self) -> None:
        high = make_tx("0x01", ATTACKER, 200)
        low = make_tx("0x02", VICTIM, 50)

        alerts = await FrontRunningDetector().detect(make_ctx(low, high))

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.attack_type == MEVAttackType.FRONTRUNNING
        assert alert.transaction_hash == "0x01"
        assert alert.attacker_address == ATTACKER
        assert alert.victim_address == VICTIM
        assert alert.gas_price == "200"
        assert alert.metadata["frontrun_tx"] == "0x01"
        assert alert.metadata["backrun_tx"] == "0x02"
        assert alert.metadata["gas_ratio"] == "4"

    @pytest.mark.asyncio
    async def test_risk_and_confidence_scale_with_ratio(self) -> None:
        alerts = await FrontRunningDetector().detect(
            make_ctx(make_tx("0x01", ATTACKER, 200), make_tx("0x02", VICTIM, 50))
        )
        # ratio 4 -> effective risk 0.8 * 2 = 1.6
        assert alerts[0].risk_level == RiskLevel.CRITICAL
        assert alerts[0].confidence == pytest.approx(0.95)

    @pytest.mark.asyncio
    async def test_small_gap_is_ignored(self) -> None:
        alerts = await FrontRunningDetector().detect(
            make_ctx(make_tx("0x01", ATTACKER, 70), make_tx("0x02", VICTIM, 60))
        )
        assert alerts == []

    @pytest.mark.asyncio
    async def test_ratio_just_above_threshold(self) -> None:
        alerts = await FrontRunningDetector().detect(
            make_ctx(make_tx("0x01", ATTACKER, 80), make_tx("0x02", VICTIM, 50))
        )
        assert len(alerts) == 1
        # ratio 1.6 -> effective 1.28
        assert alerts[0].risk_level == RiskLevel.CRITICAL
        assert alerts[0].confidence == pytest.approx(0.8)

    @pytest.mark.asyncio
    async def test_below_minimum_count_returns_nothing(self) -> None:
        alerts = await FrontRunningDetector().detect(make_ctx(make_tx("0x01", ATTACKER, 500)))
        assert alerts == []

    @pytest.mark.asyncio
    async def test_above_maximum_count_returns_nothing(self) -> None:
        txs = [make_tx(f"0x{i:02x}", ATTACKER, 100 * (i + 1)) for i in range(6)]
        assert await FrontRunningDetector().detect(make_ctx(*txs)) == []

    @pytest.mark.asyncio
    async def test_low_average_gas_returns_nothing(self) -> None:
        alerts = await FrontRunningDetector().detect(
            make_ctx(make_tx("0x01", ATTACKER, 40), make_tx("0x02", VICTIM, 10))
        )
        assert alerts == []

    @pytest.mark.asyncio
    async def test_zero_gas_pair_is_skipped(self) -> None:
        alerts = await FrontRunningDetector().detect(
            make_ctx(make_tx("0x01", ATTACKER, 300), make_tx("0x02", VICTIM, 0))
        )
        assert alerts == []

    @pytest.mark.asyncio
    async def test_every_adjacent_pair_is_evaluated(self) -> None:
        txs = (
            make_tx("0x01", ATTACKER, 400),
            make_tx("0x02", VICTIM, 200),
            make_tx("0x03", VICTIM, 100),
        )
        alerts = await FrontRunningDetector().detect(make_ctx(*txs))
        assert [a.transaction_hash for a in alerts] == ["0x01", "0x02"]

    @pytest.mark.asyncio
    async def test_input_order_is_not_mutated(self) -> None:
        txs = (make_tx("0x02", VICTIM, 50), make_tx("0x01", ATTACKER, 200))
        ctx = make_ctx(*txs)
        await FrontRunningDetector().detect(ctx)
        assert [tx.hash for tx in ctx.transactions] == ["0x02", "0x01"]

    @pytest.mark.asyncio
    async def test_alert_uses_block_timestamp_and_deterministic_id(self) -> None:
        ctx = make_ctx(make_tx("0x01", ATTACKER, 200), make_tx("0x02", VICTIM, 50))
        first = await FrontRunningDetector().detect(ctx)
        second = await FrontRunningDetector().detect(ctx)
        assert first[0].timestamp == ctx.block.timestamp
        assert first[0].id == second[0].id
        assert first[0].id.startswith("mev_")

    def test_risk_is_scored_per_alert(self) -> None:
        tx = make_tx("0x01", ATTACKER, 200)
        detector = FrontRunningDetector()

        with pytest.raises(DetectorError):
            detector.build_alert(make_ctx(tx), tx, description="unscored")

        alert = detector.build_alert(
            make_ctx(tx), tx, description="scored", risk_level=RiskLevel.LOW, confidence=0.5
        )
        assert alert.risk_level == RiskLevel.LOW
