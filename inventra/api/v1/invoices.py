"""
Invoice history and reprint endpoints.
"""
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from inventra.core.database import get_db
from inventra.core.security import Actor, get_current_actor
from inventra.checkout import get_invoice, list_invoices
from inventra.schemas.invoice import CheckoutResponse, InvoiceListResponse

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.get("", response_model=InvoiceListResponse)
async def list_recent_invoices(
    branch_id: Optional[uuid.UUID] = None,
    search: Optional[str] = Query(None, max_length=50),
    take: Optional[int] = Query(None, ge=1, le=200),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Latest invoices.

    - **branch_id**: filter by branch
    - **search**: part of the invoice number, e.g. `000012`
    """
    invoices = await list_invoices(db, branch_id, search, take)
    return InvoiceListResponse.model_validate({"invoices": invoices}, from_attributes=True)


@router.get("/{public_id}", response_model=CheckoutResponse)
async def get_invoice_detail(
    public_id: uuid.UUID,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """Open a single invoice with its items for viewing or printing."""
    invoice = await get_invoice(db, public_id)
    return CheckoutResponse.model_validate({"invoice": invoice}, from_attributes=True)
