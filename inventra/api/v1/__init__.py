"""API v1 Router."""
from fastapi import APIRouter

from inventra.api.v1 import inventory, sales, invoices

api_router = APIRouter(prefix="/api/v1")

# Include all route modules
api_router.include_router(inventory.router)
api_router.include_router(sales.router)
api_router.include_router(invoices.router)

__all__ = ["api_router"]
