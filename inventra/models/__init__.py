"""
SQLAlchemy models for Inventra.
Import all models here to ensure they're registered with SQLAlchemy.
"""
from inventra.models.user import User
from inventra.models.branch import Branch
from inventra.models.product import Product
from inventra.models.stock import StockItem, StockTxn
from inventra.models.invoice import Invoice, InvoiceItem

__all__ = [
    "User",
    "Branch",
    "Product",
    "StockItem",
    "StockTxn",
    "Invoice",
    "InvoiceItem",
]
