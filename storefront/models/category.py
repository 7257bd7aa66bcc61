from __future__ import annotations
from datetime import datetime
from uuid import uuid4
from sqlalchemy import String, DateTime, ForeignKey, Integer, Index
from sqlalchemy.orm import Mapped, mapped_column

from storefront.db.base import Base


def _new_id() -> str:
    return str(uuid4())


class Category(Base):
    __tablename__ = "categories"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100), index=True)
    slug: Mapped[str] = mapped_column(String(120), unique=True, index=True)
    image: Mapped[str | None] = mapped_column(String(500), nullable=True, default=None)
    parent_id: Mapped[str | None] = mapped_column(ForeignKey("categories.id"), nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # No parent/children relationships: children are always derived by grouping
    # rows on parent_id, and ancestry lives in CategoryClosure.

    def __repr__(self) -> str:
        return f"<Category(id={self.id}, slug='{self.slug}', parent_id={self.parent_id})>"


class CategoryClosure(Base):
    """Ancestor index: one row per (ancestor, descendant) pair, including the depth-0 self row"""

    __tablename__ = "category_closure"
    __table_args__ = (
        Index("ix_category_closure_descendant", "descendant_id"),
    )

    ancestor_id: Mapped[str] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    )
    descendant_id: Mapped[str] = mapped_column(
        ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True
    )
    depth: Mapped[int] = mapped_column(Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<CategoryClosure(ancestor={self.ancestor_id}, descendant={self.descendant_id}, depth={self.depth})>"
