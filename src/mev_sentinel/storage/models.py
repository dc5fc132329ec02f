"""SQLAlchemy models for persistent storage.

This module defines the database schema for storing MEV alerts.
"""

from __future__ import annotations

from datetime import UTC, datetime
from decimal import Decimal

from sqlalchemy import DateTime, Float, Index, Integer, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class MEVAlertModel(Base):
    """Append-only MEV alert rows, one per (contract, attack type, transaction)."""

    __tablename__ = "mev_alerts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    contract_id: Mapped[str] = mapped_column(String(42), nullable=False)
    attack_type: Mapped[str] = mapped_column(String(32), nullable=False)
    risk_level: Mapped[str] = mapped_column(String(16), nullable=False)
    confidence: Mapped[float] = mapped_column(Float, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    transaction_hash: Mapped[str] = mapped_column(String(66), nullable=False)
    block_number: Mapped[int] = mapped_column(Integer, nullable=False)
    # Gwei, rendered as a decimal string.
    gas_price: Mapped[str] = mapped_column(String(64), nullable=False)
    mev_profit: Mapped[Decimal | None] = mapped_column(Numeric(38, 18), nullable=True)
    victim_address: Mapped[str | None] = mapped_column(String(42), nullable=True)
    attacker_address: Mapped[str | None] = mapped_column(String(42), nullable=True)
    metadata_json: Mapped[str] = mapped_column(Text, nullable=False, default="{}")
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC)
    )

    __table_args__ = (
        UniqueConstraint(
            "contract_id",
            "attack_type",
            "transaction_hash",
            name="uq_mev_alerts_contract_type_tx",
        ),
        Index("idx_mev_alerts_contract", "contract_id"),
        Index("idx_mev_alerts_contract_ts", "contract_id", "timestamp"),
    )
