"""Create mev_alerts table.

Revision ID: 001_mev_alerts
Revises:
Create Date: 2026-10-17 00:00:00.000000+00:00
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_mev_alerts"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "mev_alerts",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("contract_id", sa.String(42), nullable=False),
        sa.Column("attack_type", sa.String(32), nullable=False),
        sa.Column("risk_level", sa.String(16), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("transaction_hash", sa.String(66), nullable=False),
        sa.Column("block_number", sa.Integer(), nullable=False),
        sa.Column("gas_price", sa.String(64), nullable=False),
        sa.Column("mev_profit", sa.Numeric(38, 18), nullable=True),
        sa.Column("victim_address", sa.String(42), nullable=True),
        sa.Column("attacker_address", sa.String(42), nullable=True),
        sa.Column("metadata_json", sa.Text(), nullable=False, server_default="{}"),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "contract_id",
            "attack_type",
            "transaction_hash",
            name="uq_mev_alerts_contract_type_tx",
        ),
    )
    op.create_index("idx_mev_alerts_contract", "mev_alerts", ["contract_id"])
    op.create_index("idx_mev_alerts_contract_ts", "mev_alerts", ["contract_id", "timestamp"])


def downgrade() -> None:
    op.drop_index("idx_mev_alerts_contract_ts", table_name="mev_alerts")
    op.drop_index("idx_mev_alerts_contract", table_name="mev_alerts")
    op.drop_table("mev_alerts")
