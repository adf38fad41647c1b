"""Engagement rule model."""

import uuid

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from taxonomy.models.base import Base, TimestampMixin


class Rule(Base, TimestampMixin):
    """An engagement rule filed under the category tree.

    Rules are owned by the rule-matching engine; the taxonomy only reads and
    rewrites `category_id`. A null `category_id` means uncategorized.
    """

    __tablename__ = "engagement_rules"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    pattern: Mapped[str] = mapped_column(String(500), nullable=False)
    match_type: Mapped[str] = mapped_column(
        String(20), default="contains"
    )  # contains, exact, starts_with
    response: Mapped[str | None] = mapped_column(Text, nullable=True)
    priority: Mapped[int] = mapped_column(Integer, default=0)  # higher = checked first
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    category_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("engagement_categories.id", ondelete="SET NULL"), nullable=True, index=True
    )
