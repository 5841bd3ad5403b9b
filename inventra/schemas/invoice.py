"""
Pydantic schemas for checkout requests and invoices.
"""
from typing import Optional
from datetime import datetime
import uuid
from pydantic import BaseModel, Field, ConfigDict

from inventra.schemas.common import BranchSummary, ProductSummary, UserSummary


class CheckoutLine(BaseModel):
    """One requested line of a sale."""
    product_id: uuid.UUID
    qty: int = Field(..., gt=0)
    unit_price: Optional[int] = Field(
        None,
        ge=0,
        description="Minor currency units; defaults to the product selling price"
    )


class CheckoutRequest(BaseModel):
    """Point-of-sale checkout."""
    branch_id: uuid.UUID
    note: Optional[str] = Field(None, max_length=500)
    items: list[CheckoutLine] = Field(..., min_length=1)


class InvoiceItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    line_no: int
    qty: int
    unit_price: int
    line_total: int
    product: ProductSummary


class InvoiceResponse(BaseModel):
    """Full invoice, as printed."""
    model_config = ConfigDict(from_attributes=True)

    public_id: uuid.UUID
    invoice_no: str
    note: Optional[str]
    total: int
    created_at: datetime
    branch: BranchSummary
    created_by: UserSummary
    items: list[InvoiceItemResponse]


class CheckoutResponse(BaseModel):
    invoice: InvoiceResponse


class InvoiceSummary(BaseModel):
    """Invoice history row."""
    model_config = ConfigDict(from_attributes=True)

    public_id: uuid.UUID
    invoice_no: str
    total: int
    created_at: datetime
    branch: BranchSummary
    created_by: UserSummary


class InvoiceListResponse(BaseModel):
    invoices: list[InvoiceSummary]
