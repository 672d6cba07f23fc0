"""Refund tracking, coupon conflicts and bulk quotes

Revision ID: 0002_refunds_and_quotes
Revises: 0001_initial_schema
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "0002_refunds_and_quotes"
down_revision = "0001_initial_schema"
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table("orders") as batch_op:
        batch_op.add_column(
            sa.Column("coupon_conflict", sa.Boolean(), nullable=False, server_default=sa.text("0"))
        )
        batch_op.add_column(sa.Column("refund_status", sa.String(length=16), nullable=True))
        batch_op.add_column(sa.Column("refunded_at", sa.DateTime(), nullable=True))
        batch_op.create_index("ix_orders_refund_status", ["refund_status"])

    with op.batch_alter_table("return_orders") as batch_op:
        batch_op.add_column(sa.Column("refund_status", sa.String(length=16), nullable=True))
        batch_op.add_column(sa.Column("refunded_at", sa.DateTime(), nullable=True))

    op.create_table(
        "quotes",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("quote_id", sa.String(length=16), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("variant_size_id", sa.Integer(), sa.ForeignKey("variant_sizes.id"), nullable=False),
        sa.Column("group", sa.String(length=64), nullable=False),
        sa.Column("product_id", sa.String(length=255), nullable=False),
        sa.Column("color_name", sa.String(length=64), nullable=False),
        sa.Column("size", sa.String(length=16), nullable=False),
        sa.Column("quantity_ordered", sa.Integer(), nullable=False),
        sa.Column("price_cents", sa.Integer(), nullable=False),
        sa.Column("logo_url", sa.String(length=1024), nullable=False),
        sa.Column("logo_position", sa.String(length=64), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_quotes"),
        sa.UniqueConstraint("quote_id", name="uq_quotes_quote_id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_quotes_user_id", "quotes", ["user_id"])


def downgrade():
    op.drop_index("ix_quotes_user_id", table_name="quotes")
    op.drop_table("quotes")

    with op.batch_alter_table("return_orders") as batch_op:
        batch_op.drop_column("refunded_at")
        batch_op.drop_column("refund_status")

    with op.batch_alter_table("orders") as batch_op:
        batch_op.drop_index("ix_orders_refund_status")
        batch_op.drop_column("refunded_at")
        batch_op.drop_column("refund_status")
        batch_op.drop_column("coupon_conflict")
