"""Initial schema: users, session tokens, catalog, stock ledgers and availability snapshot

Revision ID: 20261017_stock_ledger_initial
Revises:
Create Date: 2026-10-17 09:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261017_stock_ledger_initial"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
    ]


def _audit_columns():
    return [
        sa.Column("is_deleted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        sa.Column("updated_by_user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=True),
        *_timestamps(),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=64), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_users_role", "users", ["role"], unique=False)

    op.create_table(
        "session_tokens",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP"), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_revoked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("revoked_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_session_tokens_user_id", "session_tokens", ["user_id"], unique=False)
    op.create_index("ix_session_tokens_token_hash", "session_tokens", ["token_hash"], unique=True)
    op.create_index("ix_session_tokens_expires_at", "session_tokens", ["expires_at"], unique=False)
    op.create_index("ix_session_tokens_is_revoked", "session_tokens", ["is_revoked"], unique=False)
    op.create_index("ix_session_tokens_user_active", "session_tokens", ["user_id", "is_revoked"], unique=False)

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("package_unit", sa.String(length=255), nullable=False),
        sa.Column("unit", sa.String(length=64), nullable=True),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_products_is_deleted", "products", ["is_deleted"], unique=False)
    op.create_index("ix_products_active_name", "products", ["is_deleted", "name"], unique=False)

    op.create_table(
        "master_kios",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        *_audit_columns(),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_master_kios_is_deleted", "master_kios", ["is_deleted"], unique=False)

    for table, extra in (
        ("stock_masuk", [sa.Column("receipt_photo_ref", sa.String(length=255), nullable=True)]),
        ("stock_keluar", []),
    ):
        op.create_table(
            table,
            sa.Column("id", sa.Integer(), nullable=False),
            sa.Column("user_id", sa.Integer(), nullable=False),
            sa.Column("kios_id", sa.Integer(), nullable=False),
            sa.Column("product_id", sa.Integer(), nullable=False),
            sa.Column("quantity", sa.Integer(), nullable=False),
            sa.Column("business_date", sa.Date(), nullable=False),
            *extra,
            *_audit_columns(),
            sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
            sa.ForeignKeyConstraint(["kios_id"], ["master_kios.id"]),
            sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
            sa.CheckConstraint("quantity > 0", name=f"ck_{table}_quantity_positive"),
            sa.PrimaryKeyConstraint("id"),
            sqlite_autoincrement=True,
        )
        for column in ("user_id", "kios_id", "product_id", "business_date", "is_deleted"):
            op.create_index(f"ix_{table}_{column}", table, [column], unique=False)
        op.create_index(f"ix_{table}_pair_active", table, ["product_id", "kios_id", "is_deleted"], unique=False)
        op.create_index(f"ix_{table}_user_pair", table, ["user_id", "product_id", "kios_id"], unique=False)

    op.create_table(
        "stock_tersedia",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("kios_id", sa.Integer(), nullable=False),
        sa.Column("last_in_date", sa.Date(), nullable=True),
        sa.Column("quantity_in", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("last_out_date", sa.Date(), nullable=True),
        sa.Column("quantity_out", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("quantity_available", sa.Integer(), nullable=False, server_default="0"),
        *_audit_columns(),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
        sa.ForeignKeyConstraint(["kios_id"], ["master_kios.id"]),
        sa.UniqueConstraint("product_id", "kios_id", name="uq_stock_tersedia_product_kios"),
        sa.CheckConstraint("quantity_in >= 0", name="ck_stock_tersedia_quantity_in_non_negative"),
        sa.CheckConstraint("quantity_out >= 0", name="ck_stock_tersedia_quantity_out_non_negative"),
        sa.CheckConstraint("quantity_available >= 0", name="ck_stock_tersedia_quantity_available_non_negative"),
        sa.PrimaryKeyConstraint("id"),
        sqlite_autoincrement=True,
    )
    op.create_index("ix_stock_tersedia_product_id", "stock_tersedia", ["product_id"], unique=False)
    op.create_index("ix_stock_tersedia_kios_id", "stock_tersedia", ["kios_id"], unique=False)
    op.create_index("ix_stock_tersedia_is_deleted", "stock_tersedia", ["is_deleted"], unique=False)


def downgrade():
    op.drop_table("stock_tersedia")
    op.drop_table("stock_keluar")
    op.drop_table("stock_masuk")
    op.drop_table("master_kios")
    op.drop_table("products")
    op.drop_table("session_tokens")
    op.drop_table("users")
