"""Tests for arbitrage detection."""

from __future__ import annotations

import pytest
from conftest import CONTRACT, make_block, make_tx

from mev_sentinel.detector.arbitrage import ArbitrageDetector
from mev_sentinel.detector.base import DetectionContext
from mev_sentinel.detector.models import MEVAttackType, RiskLevel

BOT = "0x" + "a" * 40
USER = "0x" + "b" * 40


def make_ctx(*txs) -> DetectionContext:
    return DetectionContext(chain="ethereum", contract_id=CONTRACT, block=make_block(txs), transactions=tuple(txs))


class TestArbitrageDetector:
    @pytest.mark.asyncio
    async def test_clustered_sender_nonces(self) -> None:
        txs = (
            make_tx("0x01", BOT, 30, nonce=5),
            make_tx("0x02", USER, 30, nonce=100),
            make_tx("0x03", BOT, 30, nonce=7),
        )
        alerts = await ArbitrageDetector().detect(make_ctx(*txs))

        assert len(alerts) == 1
        alert = alerts[0]
        assert alert.attack_type == MEVAttackType.ARBITRAGE
        assert alert.risk_level == RiskLevel.MEDIUM
        assert alert.confidence == pytest.approx(0.7)
        assert alert.transaction_hash == "0x01"
        assert alert.description == "Potential arbitrage detected: 2 rapid transactions"
        assert alert.metadata["transaction_count"] == 2
        assert alert.metadata["nonce_spread"] == 2

    @pytest.mark.asyncio
    async def test_wide_nonce_spread_is_ignored(self) -> None:
        txs = (make_tx("0x01", BOT, 30, nonce=1), make_tx("0x02", BOT, 30, nonce=10))
        assert await ArbitrageDetector().detect(make_ctx(*txs)) == []

    @pytest.mark.asyncio
    async def test_distinct_senders_are_ignored(self) -> None:
        txs = (make_tx("0x01", BOT, 30, nonce=1), make_tx("0x02", USER, 30, nonce=2))
        assert await ArbitrageDetector().detect(make_ctx(*txs)) == []

    @pytest.mark.asyncio
    async def test_one_alert_per_sender(self) -> None:
        txs = (
            make_tx("0x01", BOT, 30, nonce=1),
            make_tx("0x02", USER, 30, nonce=40),
            make_tx("0x03", BOT, 30, nonce=2),
            make_tx("0x04", USER, 30, nonce=41),
        )
        alerts = await ArbitrageDetector().detect(make_ctx(*txs))
        assert [a.transaction_hash for a in alerts] == ["0x01", "0x02"]

    @pytest.mark.asyncio
    async def test_low_average_gas_returns_nothing(self) -> None:
        txs = (make_tx("0x01", BOT, 10, nonce=1), make_tx("0x02", BOT, 10, nonce=2))
        assert await ArbitrageDetector().detect(make_ctx(*txs)) == []

    @pytest.mark.asyncio
    async def test_below_minimum_count_returns_nothing(self) -> None:
        assert await ArbitrageDetector().detect(make_ctx(make_tx("0x01", BOT, 30, nonce=1))) == []
