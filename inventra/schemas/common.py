"""
Compact read-only views of the external entities embedded in responses.
"""
from typing import Optional
import uuid
from pydantic import BaseModel, ConfigDict


class BranchSummary(BaseModel):
    """Branch fields printed on receipts and ledger views."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    address: Optional[str] = None
    phone: Optional[str] = None


class ProductSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    sku: str
    unit: str


class UserSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    full_name: Optional[str] = None
    role: str
