"""create ledger tables

Revision ID: 3f9c1a7d2b10
Revises: 
Create Date: 2026-10-19 09:30:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f9c1a7d2b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "parties",
        sa.Column("conversation_id", sa.String(length=64), primary_key=True),
        sa.Column("handle", sa.String(length=64)),
        sa.Column("phone_number", sa.String(length=20)),
        sa.Column("balance_cents", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_parties_phone_number", "parties", ["phone_number"], unique=True)

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("reference", sa.String(length=100), nullable=False),
        sa.Column(
            "conversation_id", sa.String(length=64), sa.ForeignKey("parties.conversation_id"), nullable=False
        ),
        sa.Column("counterparty_id", sa.String(length=64), sa.ForeignKey("parties.conversation_id")),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="ETB"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("kind", sa.String(length=20), nullable=False),
        sa.Column("details", sa.Text()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_transactions_reference", "transactions", ["reference"], unique=True)
    op.create_index("ix_transactions_conversation_id", "transactions", ["conversation_id"])

    op.create_table(
        "deposit_orders",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("reference", sa.String(length=100), nullable=False),
        sa.Column(
            "conversation_id", sa.String(length=64), sa.ForeignKey("parties.conversation_id"), nullable=False
        ),
        sa.Column("amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=10), nullable=False, server_default="ETB"),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("checkout_url", sa.String(length=500)),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("confirmed_at", sa.DateTime(timezone=True)),
    )
    op.create_index("ix_deposit_orders_reference", "deposit_orders", ["reference"], unique=True)
    op.create_index("ix_deposit_orders_conversation_id", "deposit_orders", ["conversation_id"])


def downgrade() -> None:
    op.drop_index("ix_deposit_orders_conversation_id", table_name="deposit_orders")
    op.drop_index("ix_deposit_orders_reference", table_name="deposit_orders")
    op.drop_table("deposit_orders")

    op.drop_index("ix_transactions_conversation_id", table_name="transactions")
    op.drop_index("ix_transactions_reference", table_name="transactions")
    op.drop_table("transactions")

    op.drop_index("ix_parties_phone_number", table_name="parties")
    op.drop_table("parties")
