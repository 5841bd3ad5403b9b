"""
Stock ledger models: current on-hand quantities and the append-only
transaction log they are derived from.
"""
from typing import Optional
import uuid
from sqlalchemy import (
    String, Integer, ForeignKey, Index, Text, CheckConstraint, UniqueConstraint, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventra.core.database import Base, UUIDMixin, TimestampMixin


class StockItem(UUIDMixin, TimestampMixin, Base):
    """
    Current quantity of one product at one branch.

    Written only through ``inventra.inventory.apply_stock_change``; the
    quantity always equals the sum of the pair's ``StockTxn.qty_change``.
    """

    __tablename__ = "stock_items"

    branch_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("branches.id", ondelete="RESTRICT"),
        nullable=False
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False
    )
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    branch = relationship("Branch", lazy="selectin")
    product = relationship("Product", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("branch_id", "product_id", name="uq_stock_items_branch_product"),
        CheckConstraint("quantity >= 0", name="quantity_non_negative"),
        Index("idx_stock_items_branch_updated", "branch_id", "updated_at"),
    )

    def __repr__(self) -> str:
        return f"<StockItem(branch={self.branch_id}, product={self.product_id}, qty={self.quantity})>"


class StockTxn(Base):
    """Immutable ledger entry for a single quantity change."""

    __tablename__ = "stock_txns"

    # Integer key keeps entries with equal timestamps in insertion order
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # RECEIVE, ADJUST, SALE or DAMAGE
    type: Mapped[str] = mapped_column(String(20), nullable=False)

    branch_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("branches.id", ondelete="RESTRICT"),
        nullable=False
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False
    )
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False
    )

    # Signed: positive adds stock, negative removes it
    qty_change: Mapped[int] = mapped_column(Integer, nullable=False)

    # Free text; checkout stores the invoice number here
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # Relationships
    branch = relationship("Branch", lazy="selectin")
    product = relationship("Product", lazy="selectin")
    created_by = relationship("User", lazy="selectin")

    __table_args__ = (
        CheckConstraint(
            "type IN ('RECEIVE', 'ADJUST', 'SALE', 'DAMAGE')",
            name="type_valid"
        ),
        Index("idx_stock_txns_branch_created", "branch_id", "created_at"),
        Index("idx_stock_txns_branch_product_created", "branch_id", "product_id", "created_at"),
        Index("idx_stock_txns_note", "note"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return f"<StockTxn(id={self.id}, type={self.type}, qty_change={self.qty_change})>"
