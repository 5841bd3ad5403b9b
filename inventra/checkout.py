"""
Point-of-sale checkout: one request becomes an invoice, its line items, and
a SALE ledger entry per line, all committed together or not at all.
"""
from typing import Optional
import uuid

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from inventra.core.config import settings
from inventra.core.database import run_in_transaction
from inventra.error_handlers import (
    ConflictError,
    InactiveResourceError,
    InsufficientStockError,
    NotFoundError,
    ValidationError,
)
from inventra.inventory import apply_stock_change, clean_note, get_quantity
from inventra.logging_config import get_logger
from inventra.models import Branch, Invoice, InvoiceItem, Product
from inventra.schemas.invoice import CheckoutRequest
from inventra.schemas.stock import StockTxnType
from inventra.sequencer import format_invoice_number

logger = get_logger("checkout")


def _label(product: Product) -> str:
    return f"{product.name} ({product.sku})"


async def _load_products(session: AsyncSession, request: CheckoutRequest) -> dict[uuid.UUID, Product]:
    """Fetch every referenced product in one query and check all of them."""
    product_ids = {line.product_id for line in request.items}
    result = await session.execute(select(Product).where(Product.id.in_(product_ids)))
    products = {product.id: product for product in result.scalars().all()}

    for line in request.items:
        product = products.get(line.product_id)
        if product is None:
            raise ConflictError(
                f"Product not found: {line.product_id}",
                details={"product_id": str(line.product_id)}
            )
        if not product.is_active:
            raise ConflictError(
                f"Product inactive: {product.name}",
                details={"product_id": str(product.id)}
            )
    return products


def _requested_quantities(request: CheckoutRequest) -> dict[uuid.UUID, int]:
    """Total quantity per product, in first-seen order."""
    totals: dict[uuid.UUID, int] = {}
    for line in request.items:
        totals[line.product_id] = totals.get(line.product_id, 0) + line.qty
    return totals


async def _load_invoice(session: AsyncSession, *criteria) -> Optional[Invoice]:
    result = await session.execute(
        select(Invoice).where(*criteria).execution_options(populate_existing=True)
    )
    return result.scalar_one_or_none()


async def _checkout(session: AsyncSession, request: CheckoutRequest, actor_id: uuid.UUID) -> Invoice:
    branch = await session.get(Branch, request.branch_id)
    if branch is None:
        raise NotFoundError("Branch", request.branch_id)
    if not branch.is_active:
        raise InactiveResourceError("Branch", request.branch_id)

    products = await _load_products(session, request)

    # Every line is checked before anything is written
    for product_id, qty in _requested_quantities(request).items():
        available = await get_quantity(session, request.branch_id, product_id)
        if available < qty:
            raise InsufficientStockError(
                available=available,
                requested=qty,
                product_id=product_id,
                product_label=_label(products[product_id]),
            )

    invoice = Invoice(
        invoice_no=None,
        branch_id=request.branch_id,
        created_by_id=actor_id,
        note=clean_note(request.note),
        total=0,
    )
    session.add(invoice)
    await session.flush()
    invoice_no = format_invoice_number(invoice.id)

    total = 0
    for line_no, line in enumerate(request.items, start=1):
        product = products[line.product_id]
        unit_price = line.unit_price if line.unit_price is not None else product.selling_price
        line_total = unit_price * line.qty
        total += line_total

        try:
            await apply_stock_change(
                session,
                branch_id=request.branch_id,
                product_id=product.id,
                delta=-line.qty,
                txn_type=StockTxnType.SALE,
                actor_id=actor_id,
                note=invoice_no,
            )
        except InsufficientStockError as exc:
            raise InsufficientStockError(
                available=exc.available,
                requested=exc.requested,
                product_id=product.id,
                product_label=_label(product),
            ) from exc

        session.add(InvoiceItem(
            invoice_id=invoice.id,
            product_id=product.id,
            line_no=line_no,
            qty=line.qty,
            unit_price=unit_price,
            line_total=line_total,
        ))

    invoice.invoice_no = invoice_no
    invoice.total = total
    await session.flush()

    return await _load_invoice(session, Invoice.id == invoice.id)


async def checkout(session: AsyncSession, request: CheckoutRequest, actor_id: uuid.UUID) -> Invoice:
    """
    Sell the requested lines at a branch.

    Returns the finalized invoice with branch, creator and line products
    loaded.

    Raises:
        NotFoundError: unknown branch
        InactiveResourceError: branch deactivated
        ConflictError: a line references a missing or inactive product
        InsufficientStockError: a line exceeds the stock on hand; nothing
            from this checkout is persisted
    """

    async def _run(s: AsyncSession) -> Invoice:
        return await _checkout(s, request, actor_id)

    try:
        invoice = await run_in_transaction(session, _run)
    except InsufficientStockError as exc:
        logger.warning(f"Checkout rejected at branch {request.branch_id}: {exc.message}")
        raise

    logger.info(
        f"Checkout {invoice.invoice_no} at branch {request.branch_id}: "
        f"{len(request.items)} line(s), total {invoice.total}"
    )
    return invoice


async def list_invoices(
    session: AsyncSession,
    branch_id: Optional[uuid.UUID] = None,
    search: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[Invoice]:
    """Latest invoices, optionally filtered by branch and invoice number."""
    limit = settings.invoice_list_default if limit is None else limit
    if not 1 <= limit <= settings.invoice_list_max:
        raise ValidationError(f"limit must be between 1 and {settings.invoice_list_max}")

    async def _list(s: AsyncSession) -> list[Invoice]:
        query = select(Invoice).where(Invoice.invoice_no.is_not(None))
        if branch_id:
            query = query.where(Invoice.branch_id == branch_id)
        term = (search or "").strip()
        if term:
            query = query.where(Invoice.invoice_no.ilike(f"%{term}%"))
        query = query.order_by(desc(Invoice.created_at), desc(Invoice.id)).limit(limit)
        result = await s.execute(query)
        return list(result.scalars().all())

    return await run_in_transaction(session, _list)


async def get_invoice(session: AsyncSession, public_id: uuid.UUID) -> Invoice:
    """Full invoice by its public identifier."""

    async def _get(s: AsyncSession) -> Invoice:
        invoice = await _load_invoice(s, Invoice.public_id == public_id)
        if invoice is None:
            raise NotFoundError("Invoice", public_id)
        return invoice

    return await run_in_transaction(session, _get)
