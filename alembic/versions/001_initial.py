"""Initial schema: users, modules, grants, deals, inventory, sublocations.

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.Numeric(18, 2)


def _owner_column() -> sa.Column:
    return sa.Column(
        "user_id",
        UUID(as_uuid=True),
        sa.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("email", sa.String(255), unique=True, nullable=False),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), server_default=sa.text("'User'"), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "modules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.String(255), nullable=True),
        sa.Column("key", sa.String(50), unique=True, nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "user_modules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _owner_column(),
        sa.Column(
            "module_id",
            sa.Integer(),
            sa.ForeignKey("modules.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("user_id", "module_id", name="uq_user_modules_user_module"),
    )

    op.create_table(
        "deals",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _owner_column(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("company", sa.String(255), nullable=True),
        sa.Column("contact_name", sa.String(255), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("phone", sa.String(50), nullable=True),
        sa.Column("value", MONEY, server_default=sa.text("0"), nullable=False),
        sa.Column("gross_value", MONEY, server_default=sa.text("0"), nullable=False),
        sa.Column("net_value", MONEY, server_default=sa.text("0"), nullable=False),
        sa.Column("status", sa.Integer(), server_default=sa.text("0"), nullable=False),
        sa.Column("priority", sa.Integer(), server_default=sa.text("1"), nullable=False),
        sa.Column("payment_method", sa.Integer(), nullable=True),
        sa.Column("expected_close_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("payment_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("birthday", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.String(2000), nullable=True),
        sa.Column("is_archived", sa.Boolean(), server_default=sa.text("false"), nullable=False, index=True),
        sa.Column("archived_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "inventory_items",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _owner_column(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("quantity", MONEY, server_default=sa.text("0"), nullable=False),
        sa.Column("min_quantity", MONEY, server_default=sa.text("0"), nullable=False),
        sa.Column("unit_price", MONEY, server_default=sa.text("0"), nullable=False),
        sa.Column("category", sa.String(100), nullable=True),
        sa.Column("supplier", sa.String(255), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "sublocations",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        _owner_column(),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("third_party_name", sa.String(255), nullable=True),
        sa.Column("service_value", MONEY, server_default=sa.text("0"), nullable=False),
        sa.Column("discount_percentage", sa.Numeric(5, 2), server_default=sa.text("0"), nullable=False),
        sa.Column("discount_value", MONEY, server_default=sa.text("0"), nullable=False),
        sa.Column("net_value", MONEY, server_default=sa.text("0"), nullable=False),
        sa.Column("service_type", sa.String(100), nullable=True),
        sa.Column("service_date", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("sublocations")
    op.drop_table("inventory_items")
    op.drop_table("deals")
    op.drop_table("user_modules")
    op.drop_table("modules")
    op.drop_table("users")
