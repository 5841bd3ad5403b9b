"""
Product catalogue model.
"""
from typing import Optional
from sqlalchemy import String, Integer, Boolean, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column

from inventra.core.database import Base, UUIDMixin, TimestampMixin


class Product(UUIDMixin, TimestampMixin, Base):
    """Product model. Prices are integers in minor currency units."""

    __tablename__ = "products"

    # Product identification
    name: Mapped[str] = mapped_column(String(500), nullable=False)
    sku: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    barcode: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    unit: Mapped[str] = mapped_column(String(50), default="pcs", nullable=False)

    # Pricing
    cost_price: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    selling_price: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        CheckConstraint("cost_price >= 0", name="cost_price_non_negative"),
        CheckConstraint("selling_price >= 0", name="selling_price_non_negative"),
        Index("idx_products_barcode", "barcode"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, sku={self.sku}, name={self.name})>"
