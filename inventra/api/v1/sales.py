"""
Checkout API: turns a point-of-sale basket into an invoice.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventra.core.database import get_db
from inventra.core.security import Actor, get_current_actor
from inventra.checkout import checkout
from inventra.schemas.invoice import CheckoutRequest, CheckoutResponse

router = APIRouter(prefix="/sales", tags=["Sales"])


@router.post("/checkout", response_model=CheckoutResponse, status_code=status.HTTP_201_CREATED)
async def create_checkout(
    payload: CheckoutRequest,
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Create an invoice, reduce stock and log a SALE entry per line.

    - **items**: at least one line; **unit_price** defaults to the product's selling price
    - Fails with 409 and nothing persisted when any line is short of stock
    """
    invoice = await checkout(db, payload, actor.id)
    return CheckoutResponse.model_validate({"invoice": invoice}, from_attributes=True)
