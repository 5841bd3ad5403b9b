"""
Inventory API endpoints: stock levels, receiving, adjustments, manual
reductions and the ledger history.
"""
from typing import Optional
import uuid
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from inventra.core.database import get_db
from inventra.core.security import Actor, ROLE_MANAGER, get_current_actor, require_role
from inventra import inventory
from inventra.schemas.stock import (
    AdjustStockRequest,
    ReceiveStockRequest,
    ReduceStockRequest,
    ReductionKind,
    StockItemListResponse,
    StockMutationResponse,
    StockTxnListResponse,
)

router = APIRouter(prefix="/inventory", tags=["Inventory"])


def _mutation_response(result) -> StockMutationResponse:
    item, txn = result
    return StockMutationResponse.model_validate({"item": item, "txn": txn}, from_attributes=True)


@router.get("", response_model=StockItemListResponse)
async def list_stock(
    branch_id: uuid.UUID,
    search: Optional[str] = Query(None, max_length=100),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Current stock list for a branch.

    - **search**: matches product name, SKU or barcode
    """
    items = await inventory.list_stock(db, branch_id, search)
    return StockItemListResponse.model_validate({"items": items}, from_attributes=True)


@router.post("/receive", response_model=StockMutationResponse, status_code=status.HTTP_201_CREATED)
async def receive_stock(
    payload: ReceiveStockRequest,
    actor: Actor = Depends(require_role(ROLE_MANAGER)),
    db: AsyncSession = Depends(get_db)
):
    """Receive stock into a branch."""
    return _mutation_response(await inventory.receive_stock(db, payload, actor.id))


@router.post("/adjust", response_model=StockMutationResponse)
async def adjust_stock(
    payload: AdjustStockRequest,
    actor: Actor = Depends(require_role(ROLE_MANAGER)),
    db: AsyncSession = Depends(get_db)
):
    """
    Set stock to a counted quantity.

    Logs an ADJUST entry with the difference, including a zero difference.
    """
    return _mutation_response(await inventory.adjust_stock(db, payload, actor.id))


@router.post("/sale", response_model=StockMutationResponse, status_code=status.HTTP_201_CREATED)
async def record_sale(
    payload: ReduceStockRequest,
    actor: Actor = Depends(require_role(ROLE_MANAGER)),
    db: AsyncSession = Depends(get_db)
):
    """Reduce stock for a sale made outside checkout."""
    result = await inventory.reduce_stock(db, payload, actor.id, ReductionKind.SALE)
    return _mutation_response(result)


@router.post("/damage", response_model=StockMutationResponse, status_code=status.HTTP_201_CREATED)
async def record_damage(
    payload: ReduceStockRequest,
    actor: Actor = Depends(require_role(ROLE_MANAGER)),
    db: AsyncSession = Depends(get_db)
):
    """Write off damaged stock."""
    result = await inventory.reduce_stock(db, payload, actor.id, ReductionKind.DAMAGE)
    return _mutation_response(result)


@router.get("/txns", response_model=StockTxnListResponse)
async def list_ledger(
    branch_id: uuid.UUID,
    product_id: Optional[uuid.UUID] = None,
    page: int = Query(1, ge=1),
    page_size: Optional[int] = Query(None, ge=1),
    actor: Actor = Depends(get_current_actor),
    db: AsyncSession = Depends(get_db)
):
    """
    Stock history of a branch, newest first.

    - **product_id**: restrict to one product
    """
    txns, total = await inventory.list_ledger(db, branch_id, product_id, page, page_size)
    page_size = inventory.ledger_page_size(page_size)
    return StockTxnListResponse.model_validate(
        {
            "items": txns,
            "total": total,
            "page": page,
            "page_size": page_size,
            "pages": (total + page_size - 1) // page_size,
        },
        from_attributes=True,
    )
