"""
Branch (shop) model.
"""
from typing import Optional
from sqlalchemy import String, Boolean
from sqlalchemy.orm import Mapped, mapped_column

from inventra.core.database import Base, UUIDMixin, TimestampMixin


class Branch(UUIDMixin, TimestampMixin, Base):
    """A physical shop holding its own stock."""

    __tablename__ = "branches"

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    # Inactive branches accept no stock mutations
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    def __repr__(self) -> str:
        return f"<Branch(id={self.id}, name={self.name}, active={self.is_active})>"
