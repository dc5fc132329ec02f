"""Tests for storage repositories."""

from datetime import timedelta
from decimal import Decimal

import pytest
from conftest import BLOCK_TIME, CONTRACT, make_alert
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from mev_sentinel.detector.models import MEVAttackType, RiskLevel
from mev_sentinel.storage.models import Base
from mev_sentinel.storage.repos import MEVAlertRepository, alert_to_row

# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
async def async_engine():
    """Create an async SQLite engine for testing."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def async_session(async_engine) -> AsyncSession:
    """Create an async session for testing."""
    session_factory = async_sessionmaker(bind=async_engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def repo(async_session) -> MEVAlertRepository:
    return MEVAlertRepository(async_session)


# ============================================================================
# Row mapping
# ============================================================================


class TestAlertToRow:
    def test_lowercases_identifiers(self) -> None:
        alert = make_alert("a", contract_id=CONTRACT.upper().replace("0X", "0x"), tx_hash="0xABCD")
        row = alert_to_row(alert)
        assert row["contract_id"] == CONTRACT
        assert row["transaction_hash"] == "0xabcd"

    def test_serializes_enums_and_metadata(self) -> None:
        row = alert_to_row(make_alert("a", MEVAttackType.ARBITRAGE, risk_level=RiskLevel.MEDIUM))
        assert row["attack_type"] == "arbitrage"
        assert row["risk_level"] == "medium"
        assert row["metadata_json"] == '{"source": "test"}'


# ============================================================================
# MEVAlertRepository
# ============================================================================


class TestMEVAlertRepository:
    @pytest.mark.asyncio
    async def test_insert_and_read_back(self, repo) -> None:
        alert = make_alert("mev_1", mev_profit=Decimal("1.5"))

        assert await repo.insert(alert) is True
        [stored] = await repo.list_by_contract(CONTRACT)

        assert stored.id == "mev_1"
        assert stored.attack_type == MEVAttackType.SANDWICH
        assert stored.risk_level == RiskLevel.HIGH
        assert stored.timestamp == BLOCK_TIME
        assert stored.mev_profit == Decimal("1.5")
        assert stored.metadata == {"source": "test"}

    @pytest.mark.asyncio
    async def test_duplicate_is_ignored(self, repo) -> None:
        assert await repo.insert(make_alert("mev_1")) is True
        assert await repo.insert(make_alert("mev_1")) is False
        assert await repo.count_by_contract(CONTRACT) == 1

    @pytest.mark.asyncio
    async def test_same_tx_different_id_is_ignored(self, repo) -> None:
        assert await repo.insert(make_alert("mev_1", tx_hash="0x01")) is True
        assert await repo.insert(make_alert("mev_2", tx_hash="0x01")) is False
        assert [a.id for a in await repo.list_by_contract(CONTRACT)] == ["mev_1"]

    @pytest.mark.asyncio
    async def test_same_tx_other_attack_type_is_stored(self, repo) -> None:
        await repo.insert(make_alert("mev_1", MEVAttackType.SANDWICH, tx_hash="0x01"))
        await repo.insert(make_alert("mev_2", MEVAttackType.ARBITRAGE, tx_hash="0x01"))
        assert await repo.count_by_contract(CONTRACT) == 2

    @pytest.mark.asyncio
    async def test_list_newest_first_with_limit(self, repo) -> None:
        for i in range(4):
            await repo.insert(
                make_alert(
                    f"mev_{i}",
                    tx_hash=f"0x0{i}",
                    block_number=100 + i,
                    timestamp=BLOCK_TIME + timedelta(seconds=12 * i),
                )
            )

        alerts = await repo.list_by_contract(CONTRACT, limit=3)

        assert [a.id for a in alerts] == ["mev_3", "mev_2", "mev_1"]

    @pytest.mark.asyncio
    async def test_list_same_timestamp_orders_by_block(self, repo) -> None:
        await repo.insert(make_alert("mev_a", tx_hash="0x0a", block_number=100))
        await repo.insert(make_alert("mev_b", tx_hash="0x0b", block_number=101))

        alerts = await repo.list_by_contract(CONTRACT)

        assert [a.id for a in alerts] == ["mev_b", "mev_a"]

    @pytest.mark.asyncio
    async def test_list_is_case_insensitive_and_scoped(self, repo) -> None:
        other = "0x" + "f" * 40
        await repo.insert(make_alert("mev_1", tx_hash="0x01"))
        await repo.insert(make_alert("mev_2", tx_hash="0x02", contract_id=other))

        alerts = await repo.list_by_contract(CONTRACT.upper().replace("0X", "0x"))

        assert [a.id for a in alerts] == ["mev_1"]

    @pytest.mark.asyncio
    async def test_non_positive_limit_returns_empty(self, repo) -> None:
        await repo.insert(make_alert("mev_1"))
        assert await repo.list_by_contract(CONTRACT, limit=0) == []

    @pytest.mark.asyncio
    async def test_unknown_contract_is_empty(self, repo) -> None:
        assert await repo.list_by_contract("0x" + "0" * 40) == []
        assert await repo.count_by_contract("0x" + "0" * 40) == 0
