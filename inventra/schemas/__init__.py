"""
Pydantic schemas for request/response validation.
"""
from inventra.schemas.common import BranchSummary, ProductSummary, UserSummary
from inventra.schemas.stock import (
    StockTxnType, ReductionKind, ReceiveStockRequest, AdjustStockRequest,
    ReduceStockRequest, StockItemResponse, StockItemListResponse, StockTxnResponse,
    StockTxnWithDetails, StockMutationResponse, StockTxnListResponse
)
from inventra.schemas.invoice import (
    CheckoutLine, CheckoutRequest, InvoiceItemResponse, InvoiceResponse,
    CheckoutResponse, InvoiceSummary, InvoiceListResponse
)

__all__ = [
    # Shared
    "BranchSummary", "ProductSummary", "UserSummary",

    # Stock schemas
    "StockTxnType", "ReductionKind", "ReceiveStockRequest", "AdjustStockRequest",
    "ReduceStockRequest", "StockItemResponse", "StockItemListResponse", "StockTxnResponse",
    "StockTxnWithDetails", "StockMutationResponse", "StockTxnListResponse",

    # Invoice schemas
    "CheckoutLine", "CheckoutRequest", "InvoiceItemResponse", "InvoiceResponse",
    "CheckoutResponse", "InvoiceSummary", "InvoiceListResponse",
]
