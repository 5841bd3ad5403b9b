"""
Pydantic schemas for stock items and ledger entries.
"""
from typing import Optional
from datetime import datetime
import uuid
from pydantic import BaseModel, Field, ConfigDict
from enum import Enum

from inventra.schemas.common import BranchSummary, ProductSummary, UserSummary


class StockTxnType(str, Enum):
    """Ledger entry types."""
    RECEIVE = "RECEIVE"
    ADJUST = "ADJUST"
    SALE = "SALE"
    DAMAGE = "DAMAGE"


class ReductionKind(str, Enum):
    """Entry types allowed for a manual stock reduction."""
    SALE = "SALE"
    DAMAGE = "DAMAGE"


class StockMutationBase(BaseModel):
    branch_id: uuid.UUID
    product_id: uuid.UUID
    note: Optional[str] = Field(None, max_length=500)


class ReceiveStockRequest(StockMutationBase):
    """Goods arriving at a branch."""
    quantity: int = Field(..., gt=0)


class AdjustStockRequest(StockMutationBase):
    """Set the on-hand quantity after a physical count."""
    new_quantity: int = Field(..., ge=0)


class ReduceStockRequest(StockMutationBase):
    """Remove stock outside of checkout (manual sale or damage)."""
    quantity: int = Field(..., gt=0)


class StockItemResponse(BaseModel):
    """Current quantity of one product at one branch."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    branch_id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    updated_at: datetime
    product: ProductSummary
    branch: BranchSummary


class StockItemListResponse(BaseModel):
    items: list[StockItemResponse]


class StockTxnResponse(BaseModel):
    """Schema for a ledger entry."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: StockTxnType
    branch_id: uuid.UUID
    product_id: uuid.UUID
    qty_change: int
    note: Optional[str]
    created_by_id: uuid.UUID
    created_at: datetime


class StockTxnWithDetails(StockTxnResponse):
    """Ledger entry with product, branch and actor details."""
    product: ProductSummary
    branch: BranchSummary
    created_by: UserSummary


class StockMutationResponse(BaseModel):
    """Result of a single stock mutation."""
    item: StockItemResponse
    txn: StockTxnResponse


class StockTxnListResponse(BaseModel):
    """Paginated ledger listing, newest first."""
    items: list[StockTxnWithDetails]
    total: int
    page: int
    page_size: int
    pages: int
