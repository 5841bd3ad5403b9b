"""
Inventory ledger operations.

Every change to ``StockItem.quantity`` goes through ``apply_stock_change``,
which checks the non-negativity rule and appends the matching ``StockTxn``
in the caller's transaction. The public operations below each run as one
unit of work via ``run_in_transaction``.
"""
from dataclasses import dataclass
from typing import Optional
import uuid

from sqlalchemy import select, update, func, or_, desc
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from inventra.core.config import settings
from inventra.core.database import run_in_transaction, utcnow
from inventra.error_handlers import (
    InactiveResourceError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from inventra.logging_config import get_logger
from inventra.models import Branch, Product, StockItem, StockTxn
from inventra.schemas.stock import (
    AdjustStockRequest,
    ReceiveStockRequest,
    ReduceStockRequest,
    ReductionKind,
    StockTxnType,
)

logger = get_logger("inventory")

stock_items = StockItem.__table__

# Dialects with INSERT ... ON CONFLICT DO UPDATE
_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}

_DEFAULT_REDUCTION_NOTES = {
    ReductionKind.SALE: "Sale",
    ReductionKind.DAMAGE: "Damaged",
}


@dataclass(frozen=True)
class LedgerDiscrepancy:
    """A stock row whose quantity disagrees with its ledger history."""
    branch_id: uuid.UUID
    product_id: uuid.UUID
    quantity: int
    ledger_quantity: int


def clean_note(note: Optional[str]) -> Optional[str]:
    if note is None:
        return None
    note = note.strip()
    return note or None


async def ensure_branch(session: AsyncSession, branch_id: uuid.UUID) -> Branch:
    """Load a branch that may receive stock mutations."""
    branch = await session.get(Branch, branch_id)
    if branch is None:
        raise NotFoundError("Branch", branch_id)
    if not branch.is_active:
        raise InactiveResourceError("Branch", branch_id)
    return branch


async def ensure_product(session: AsyncSession, product_id: uuid.UUID) -> Product:
    """Load a product that may take part in stock mutations."""
    product = await session.get(Product, product_id)
    if product is None:
        raise NotFoundError("Product", product_id)
    if not product.is_active:
        raise InactiveResourceError("Product", product_id)
    return product


async def get_quantity(
    session: AsyncSession,
    branch_id: uuid.UUID,
    product_id: uuid.UUID,
    *,
    for_update: bool = False,
) -> int:
    """Current on-hand quantity, 0 when the pair has no stock row yet."""
    stmt = select(StockItem.quantity).where(
        StockItem.branch_id == branch_id,
        StockItem.product_id == product_id,
    )
    if for_update:
        # Locks this single row only (ignored by SQLite)
        stmt = stmt.with_for_update()
    quantity = await session.scalar(stmt)
    return quantity or 0


def _check_sign(txn_type: StockTxnType, delta: int) -> None:
    if isinstance(delta, bool) or not isinstance(delta, int):
        raise ValidationError(f"Quantity change must be an integer, got {delta!r}")
    if txn_type == StockTxnType.RECEIVE and delta <= 0:
        raise ValidationError("RECEIVE requires a positive quantity change")
    if txn_type in (StockTxnType.SALE, StockTxnType.DAMAGE) and delta >= 0:
        raise ValidationError(f"{txn_type.value} requires a negative quantity change")


async def _increment(
    session: AsyncSession,
    branch_id: uuid.UUID,
    product_id: uuid.UUID,
    delta: int,
) -> None:
    now = utcnow()
    insert_fn = _UPSERT_INSERTS.get(session.get_bind().dialect.name)

    if insert_fn is None:
        result = await session.execute(
            update(stock_items)
            .where(
                stock_items.c.branch_id == branch_id,
                stock_items.c.product_id == product_id,
            )
            .values(quantity=stock_items.c.quantity + delta, updated_at=now)
        )
        if result.rowcount == 0:
            session.add(StockItem(branch_id=branch_id, product_id=product_id, quantity=delta))
            await session.flush()
        return

    stmt = insert_fn(stock_items).values(
        id=uuid.uuid4(),
        branch_id=branch_id,
        product_id=product_id,
        quantity=delta,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[stock_items.c.branch_id, stock_items.c.product_id],
        set_={"quantity": stock_items.c.quantity + delta, "updated_at": now},
    )
    await session.execute(stmt)


async def _decrement(
    session: AsyncSession,
    branch_id: uuid.UUID,
    product_id: uuid.UUID,
    delta: int,
) -> bool:
    """Apply a negative delta only if the row stays non-negative."""
    result = await session.execute(
        update(stock_items)
        .where(
            stock_items.c.branch_id == branch_id,
            stock_items.c.product_id == product_id,
            stock_items.c.quantity + delta >= 0,
        )
        .values(quantity=stock_items.c.quantity + delta, updated_at=utcnow())
    )
    return result.rowcount == 1


async def _load_item(session: AsyncSession, branch_id: uuid.UUID, product_id: uuid.UUID) -> StockItem:
    result = await session.execute(
        select(StockItem)
        .where(StockItem.branch_id == branch_id, StockItem.product_id == product_id)
        .execution_options(populate_existing=True)
    )
    return result.scalar_one()


async def apply_stock_change(
    session: AsyncSession,
    *,
    branch_id: uuid.UUID,
    product_id: uuid.UUID,
    delta: int,
    txn_type: StockTxnType,
    actor_id: uuid.UUID,
    note: Optional[str] = None,
) -> tuple[StockItem, StockTxn]:
    """
    Change one stock quantity and append its ledger entry.

    Must be called inside an open transaction; the quantity change and the
    ``StockTxn`` commit or roll back together with it.

    Raises:
        ValidationError: delta has the wrong sign for ``txn_type``
        InsufficientStockError: the change would leave a negative quantity;
            nothing has been written
    """
    txn_type = StockTxnType(txn_type)
    _check_sign(txn_type, delta)

    current = await get_quantity(session, branch_id, product_id, for_update=True)
    if delta < 0 and current + delta < 0:
        logger.warning(
            f"Rejected {txn_type.value} of {-delta} for product {product_id} "
            f"at branch {branch_id}: available {current}"
        )
        raise InsufficientStockError(available=current, requested=-delta, product_id=product_id)

    if delta < 0:
        # Stock may have moved since the read on stores without row locks
        if not await _decrement(session, branch_id, product_id, delta):
            available = await get_quantity(session, branch_id, product_id)
            logger.warning(
                f"Rejected {txn_type.value} of {-delta} for product {product_id} "
                f"at branch {branch_id} at write time: available {available}"
            )
            raise InsufficientStockError(available=available, requested=-delta, product_id=product_id)
    else:
        await _increment(session, branch_id, product_id, delta)

    txn = StockTxn(
        type=txn_type.value,
        branch_id=branch_id,
        product_id=product_id,
        qty_change=delta,
        note=note,
        created_by_id=actor_id,
    )
    session.add(txn)
    await session.flush()

    item = await _load_item(session, branch_id, product_id)
    logger.debug(
        f"{txn_type.value} {delta:+d} product={product_id} branch={branch_id} -> {item.quantity}"
    )
    return item, txn


async def receive_stock(
    session: AsyncSession,
    request: ReceiveStockRequest,
    actor_id: uuid.UUID,
) -> tuple[StockItem, StockTxn]:
    """Add received goods to a branch."""

    async def _receive(s: AsyncSession) -> tuple[StockItem, StockTxn]:
        await ensure_branch(s, request.branch_id)
        await ensure_product(s, request.product_id)
        return await apply_stock_change(
            s,
            branch_id=request.branch_id,
            product_id=request.product_id,
            delta=request.quantity,
            txn_type=StockTxnType.RECEIVE,
            actor_id=actor_id,
            note=clean_note(request.note),
        )

    item, txn = await run_in_transaction(session, _receive)
    logger.info(f"Received {request.quantity} of product {request.product_id} at branch {request.branch_id}")
    return item, txn


async def adjust_stock(
    session: AsyncSession,
    request: AdjustStockRequest,
    actor_id: uuid.UUID,
) -> tuple[StockItem, StockTxn]:
    """
    Set a quantity after a physical count.

    The ledger records the difference to the current quantity. A recount
    that matches the stored quantity is still logged with a zero change.
    """

    async def _adjust(s: AsyncSession) -> tuple[StockItem, StockTxn]:
        await ensure_branch(s, request.branch_id)
        await ensure_product(s, request.product_id)
        current = await get_quantity(s, request.branch_id, request.product_id, for_update=True)
        return await apply_stock_change(
            s,
            branch_id=request.branch_id,
            product_id=request.product_id,
            delta=request.new_quantity - current,
            txn_type=StockTxnType.ADJUST,
            actor_id=actor_id,
            note=clean_note(request.note) or "Manual adjustment",
        )

    item, txn = await run_in_transaction(session, _adjust)
    logger.info(
        f"Adjusted product {request.product_id} at branch {request.branch_id} "
        f"to {item.quantity} ({txn.qty_change:+d})"
    )
    return item, txn


async def reduce_stock(
    session: AsyncSession,
    request: ReduceStockRequest,
    actor_id: uuid.UUID,
    kind: ReductionKind,
) -> tuple[StockItem, StockTxn]:
    """Remove stock outside of checkout, as a manual sale or as damage."""
    kind = ReductionKind(kind)

    async def _reduce(s: AsyncSession) -> tuple[StockItem, StockTxn]:
        await ensure_branch(s, request.branch_id)
        await ensure_product(s, request.product_id)
        return await apply_stock_change(
            s,
            branch_id=request.branch_id,
            product_id=request.product_id,
            delta=-request.quantity,
            txn_type=StockTxnType(kind.value),
            actor_id=actor_id,
            note=clean_note(request.note) or _DEFAULT_REDUCTION_NOTES[kind],
        )

    item, txn = await run_in_transaction(session, _reduce)
    logger.info(
        f"Recorded {kind.value} of {request.quantity} for product {request.product_id} "
        f"at branch {request.branch_id}"
    )
    return item, txn


def ledger_page_size(requested: Optional[int] = None) -> int:
    """Page size actually served: the request, capped at the configured maximum."""
    if requested is None:
        return settings.ledger_page_size
    if requested < 1:
        raise ValidationError("page_size must be at least 1")
    return min(requested, settings.ledger_page_size)


async def list_ledger(
    session: AsyncSession,
    branch_id: uuid.UUID,
    product_id: Optional[uuid.UUID] = None,
    page: int = 1,
    page_size: Optional[int] = None,
) -> tuple[list[StockTxn], int]:
    """Ledger entries of a branch, newest first, with the total count."""
    if page < 1:
        raise ValidationError("page must be at least 1")
    page_size = ledger_page_size(page_size)

    async def _list(s: AsyncSession) -> tuple[list[StockTxn], int]:
        if await s.get(Branch, branch_id) is None:
            raise NotFoundError("Branch", branch_id)

        query = select(StockTxn).where(StockTxn.branch_id == branch_id)
        if product_id:
            query = query.where(StockTxn.product_id == product_id)

        total = await s.scalar(select(func.count()).select_from(query.subquery()))

        query = query.order_by(desc(StockTxn.created_at), desc(StockTxn.id))
        query = query.offset((page - 1) * page_size).limit(page_size)
        result = await s.execute(query)
        return list(result.scalars().all()), total or 0

    return await run_in_transaction(session, _list)


async def list_stock(
    session: AsyncSession,
    branch_id: uuid.UUID,
    search: Optional[str] = None,
) -> list[StockItem]:
    """Current stock of a branch, most recently changed first."""

    async def _list(s: AsyncSession) -> list[StockItem]:
        query = select(StockItem).where(StockItem.branch_id == branch_id)
        term = (search or "").strip()
        if term:
            pattern = f"%{term}%"
            query = query.join(Product, Product.id == StockItem.product_id).where(
                or_(
                    Product.name.ilike(pattern),
                    Product.sku.ilike(pattern),
                    Product.barcode.ilike(pattern),
                )
            )
        query = query.order_by(desc(StockItem.updated_at))
        result = await s.execute(query)
        return list(result.scalars().all())

    return await run_in_transaction(session, _list)


async def find_ledger_discrepancies(
    session: AsyncSession,
    branch_id: Optional[uuid.UUID] = None,
) -> list[LedgerDiscrepancy]:
    """Compare stored quantities with the sum of their ledger entries."""

    async def _audit(s: AsyncSession) -> list[LedgerDiscrepancy]:
        sums_query = select(
            StockTxn.branch_id,
            StockTxn.product_id,
            func.sum(StockTxn.qty_change),
        ).group_by(StockTxn.branch_id, StockTxn.product_id)
        items_query = select(StockItem.branch_id, StockItem.product_id, StockItem.quantity)
        if branch_id:
            sums_query = sums_query.where(StockTxn.branch_id == branch_id)
            items_query = items_query.where(StockItem.branch_id == branch_id)

        ledger = {(b, p): int(total) for b, p, total in (await s.execute(sums_query)).all()}
        stored = {(b, p): qty for b, p, qty in (await s.execute(items_query)).all()}

        mismatches = []
        for key in sorted(set(ledger) | set(stored), key=lambda k: (str(k[0]), str(k[1]))):
            quantity = stored.get(key, 0)
            ledger_quantity = ledger.get(key, 0)
            if quantity != ledger_quantity:
                mismatches.append(LedgerDiscrepancy(key[0], key[1], quantity, ledger_quantity))
        return mismatches

    discrepancies = await run_in_transaction(session, _audit)
    if discrepancies:
        logger.error(f"Ledger audit found {len(discrepancies)} mismatched stock rows")
    return discrepancies
