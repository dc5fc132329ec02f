"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from decimal import Decimal

import pytest

from mev_sentinel.chain.models import WEI_PER_ETHER, WEI_PER_GWEI, Block, Transaction
from mev_sentinel.config import clear_settings_cache
from mev_sentinel.detector.models import MEVAlert, MEVAttackType, RiskLevel

CONTRACT = "0x7a250d5630b4cf539739df2c5dacb4c659f2488d"
BLOCK_TIME = datetime(2026, 1, 15, 12, 0, tzinfo=UTC)


def make_tx(
    tx_hash: str,
    sender: str,
    gas_gwei: str | int,
    *,
    value_ether: str | int = 0,
    nonce: int = 0,
    input_length: int = 0,
    recipient: str | None = CONTRACT,
) -> Transaction:
    return Transaction(
        hash=tx_hash,
        sender=sender,
        recipient=recipient,
        value_wei=int(Decimal(str(value_ether)) * WEI_PER_ETHER),
        gas_price_wei=int(Decimal(str(gas_gwei)) * WEI_PER_GWEI),
        nonce=nonce,
        input_length=input_length,
    )


def make_block(txs: Iterable[Transaction], *, number: int = 19_000_000) -> Block:
    return Block(number=number, timestamp=BLOCK_TIME, transactions=tuple(txs))


def make_alert(
    alert_id: str,
    attack_type: MEVAttackType = MEVAttackType.SANDWICH,
    *,
    tx_hash: str = "0x01",
    risk_level: RiskLevel = RiskLevel.HIGH,
    block_number: int = 19_000_000,
    timestamp: datetime = BLOCK_TIME,
    mev_profit: Decimal | None = None,
    contract_id: str = CONTRACT,
) -> MEVAlert:
    return MEVAlert(
        id=alert_id,
        contract_id=contract_id,
        attack_type=attack_type,
        risk_level=risk_level,
        confidence=0.5,
        description=f"{attack_type.value} alert {alert_id}",
        transaction_hash=tx_hash,
        block_number=block_number,
        gas_price="50",
        timestamp=timestamp,
        mev_profit=mev_profit,
        metadata={"source": "test"},
    )


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def contract_address() -> str:
    """Monitored contract used across tests."""
    return CONTRACT
