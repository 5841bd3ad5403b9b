"""
Sales invoice models produced by checkout.
"""
from typing import Optional
import uuid
from sqlalchemy import (
    String, Integer, ForeignKey, Index, Text, CheckConstraint, UniqueConstraint, Uuid
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from inventra.core.database import Base, UUIDMixin, TimestampMixin


class Invoice(TimestampMixin, Base):
    """
    Sales invoice.

    ``id`` is the store-assigned sequence the invoice number is rendered
    from; ``public_id`` is the identifier handed to clients. Drafts carry no
    number and a zero total until checkout finalizes them in the same
    transaction.
    """

    __tablename__ = "invoices"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    public_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        unique=True,
        nullable=False,
        default=uuid.uuid4
    )
    invoice_no: Mapped[Optional[str]] = mapped_column(String(32), unique=True, nullable=True)

    branch_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("branches.id", ondelete="RESTRICT"),
        nullable=False
    )
    created_by_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False
    )

    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    total: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Relationships
    branch = relationship("Branch", lazy="selectin")
    created_by = relationship("User", lazy="selectin")
    items = relationship(
        "InvoiceItem",
        back_populates="invoice",
        order_by="InvoiceItem.line_no",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    __table_args__ = (
        CheckConstraint("total >= 0", name="total_non_negative"),
        Index("idx_invoices_branch_created", "branch_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, number={self.invoice_no}, total={self.total})>"


class InvoiceItem(UUIDMixin, Base):
    """One priced line of an invoice."""

    __tablename__ = "invoice_items"

    invoice_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False
    )
    product_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("products.id", ondelete="RESTRICT"),
        nullable=False
    )

    # Position in the checkout request, starting at 1
    line_no: Mapped[int] = mapped_column(Integer, nullable=False)

    qty: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[int] = mapped_column(Integer, nullable=False)
    line_total: Mapped[int] = mapped_column(Integer, nullable=False)

    # Relationships
    invoice = relationship("Invoice", back_populates="items")
    product = relationship("Product", lazy="selectin")

    __table_args__ = (
        UniqueConstraint("invoice_id", "line_no", name="uq_invoice_items_invoice_line"),
        CheckConstraint("qty > 0", name="qty_positive"),
        CheckConstraint("unit_price >= 0", name="unit_price_non_negative"),
        Index("idx_invoice_items_product", "product_id"),
    )

    def __repr__(self) -> str:
        return f"<InvoiceItem(invoice={self.invoice_id}, line={self.line_no}, qty={self.qty})>"
