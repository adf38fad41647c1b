"""Category model."""

import uuid

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from taxonomy.config import settings
from taxonomy.models.base import Base, SoftDeleteMixin, TimestampMixin


class Category(Base, TimestampMixin, SoftDeleteMixin):
    """A node of the engagement taxonomy.

    `depth` and `path` are denormalized from `parent_id` so that ancestor and
    subtree queries are a single indexed lookup. They are only ever written by
    the tree engine.
    """

    __tablename__ = "engagement_categories"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    slug: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Hierarchy (NULL = root)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("engagement_categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
    depth: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    path: Mapped[str] = mapped_column(Text, nullable=False, index=True)  # /root_id/.../id
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    icon: Mapped[str | None] = mapped_column(String(500), nullable=True)
    color: Mapped[str | None] = mapped_column(String(7), default=settings.category_default_color)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)

    __table_args__ = (
        # Slugs only collide among live siblings; roots share the NULL scope
        Index(
            "uq_engagement_categories_parent_slug_live",
            "parent_id",
            "slug",
            unique=True,
            postgresql_nulls_not_distinct=True,
            postgresql_where=text("is_deleted = false"),
            sqlite_where=text("is_deleted = 0"),
        ),
        Index("idx_engagement_categories_sort", "parent_id", "sort_order"),
    )

    @property
    def ancestor_ids(self) -> list[str]:
        """Ids of the ancestors, root first, read from the materialized path."""
        return self.path.strip("/").split("/")[:-1]

    def __repr__(self) -> str:
        return f"<Category {self.slug} depth={self.depth}>"
