"""Create engagement_categories and file rules under them.

- Categories: bounded-depth tree with a materialized path (ceiling enforced by the app)
- Slugs are unique among live siblings only (partial unique index)
- engagement_rules.category_id: NULL means uncategorized

Revision ID: 002
Revises: 001
Create Date: 2026-10-19
"""

from alembic import op
import sqlalchemy as sa

revision = "002"
down_revision = "001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "engagement_categories",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("slug", sa.String(100), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "parent_id",
            sa.Uuid(),
            sa.ForeignKey("engagement_categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("depth", sa.Integer(), server_default="0", nullable=False),
        sa.Column("path", sa.Text(), nullable=False),
        sa.Column("sort_order", sa.Integer(), server_default="0", nullable=False),
        sa.Column("icon", sa.String(500), nullable=True),
        sa.Column("color", sa.String(7), server_default="#9a9a9a", nullable=True),
        sa.Column("is_active", sa.Boolean(), server_default="true", nullable=False),
        sa.Column("is_deleted", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_by", sa.Uuid(), nullable=True),
        sa.Column("created_by", sa.Uuid(), nullable=True),
        sa.Column("updated_by", sa.Uuid(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("depth >= 0", name="ck_engagement_categories_depth"),
    )
    op.create_index("ix_engagement_categories_slug", "engagement_categories", ["slug"])
    op.create_index("ix_engagement_categories_parent_id", "engagement_categories", ["parent_id"])
    op.create_index("ix_engagement_categories_path", "engagement_categories", ["path"])
    op.create_index("idx_engagement_categories_sort", "engagement_categories", ["parent_id", "sort_order"])
    op.create_index(
        "uq_engagement_categories_parent_slug_live",
        "engagement_categories",
        ["parent_id", "slug"],
        unique=True,
        postgresql_nulls_not_distinct=True,
        postgresql_where=sa.text("is_deleted = false"),
    )

    # ── Rule → category weak reference ────────────────
    op.add_column(
        "engagement_rules",
        sa.Column(
            "category_id",
            sa.Uuid(),
            sa.ForeignKey("engagement_categories.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    op.create_index("ix_engagement_rules_category_id", "engagement_rules", ["category_id"])


def downgrade() -> None:
    op.drop_index("ix_engagement_rules_category_id", table_name="engagement_rules")
    op.drop_column("engagement_rules", "category_id")
    op.drop_table("engagement_categories")
