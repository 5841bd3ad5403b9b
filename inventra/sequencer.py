"""Human-readable invoice numbers derived from the invoice sequence id."""
from typing import Optional

from inventra.core.config import settings


def format_invoice_number(
    internal_id: int,
    prefix: Optional[str] = None,
    width: Optional[int] = None,
) -> str:
    """
    Render an invoice sequence id as its printed number.

    >>> format_invoice_number(42, prefix="INV-", width=6)
    'INV-000042'

    Ids wider than ``width`` are rendered in full, so numbers stay unique
    once the padding is exhausted.
    """
    if isinstance(internal_id, bool) or not isinstance(internal_id, int):
        raise ValueError(f"invoice id must be an integer, got {internal_id!r}")
    if internal_id <= 0:
        raise ValueError(f"invoice id must be positive, got {internal_id}")

    prefix = settings.invoice_number_prefix if prefix is None else prefix
    width = settings.invoice_number_width if width is None else width

    return f"{prefix}{internal_id:0{width}d}"
