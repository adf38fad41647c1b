"""SQLAlchemy models."""

from taxonomy.models.base import Base
from taxonomy.models.category import Category
from taxonomy.models.rule import Rule

__all__ = [
    "Base",
    "Category",
    "Rule",
]
