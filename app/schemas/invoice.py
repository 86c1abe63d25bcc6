from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from app.models.invoice import InvoiceStatus
from app.schemas.product import ProductResponse
from app.schemas.user import UserResponse


class InvoiceItemIn(BaseModel):
    product_id: UUID
    quantity: int = Field(..., ge=1)
    total_price: Decimal = Field(..., ge=0, max_digits=15, decimal_places=2)


class InvoiceCreate(BaseModel):
    seller_id: UUID
    client_id: UUID
    status: InvoiceStatus = InvoiceStatus.DRAFT
    items: List[InvoiceItemIn] = Field(..., min_length=1)


class InvoiceUpdate(BaseModel):
    seller_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    status: Optional[InvoiceStatus] = None
    items: Optional[List[InvoiceItemIn]] = Field(None, min_length=1)

    @field_validator("seller_id", "client_id", "status", "items")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("This field may not be null")
        return value


class InvoiceStatusUpdate(BaseModel):
    status: InvoiceStatus


class InvoiceItemResponse(BaseModel):
    id: UUID
    invoice_id: UUID
    product_id: UUID
    quantity: int
    total_price: Decimal
    product: Optional[ProductResponse] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InvoiceResponse(BaseModel):
    id: UUID
    seller_id: Optional[UUID] = None
    client_id: Optional[UUID] = None
    status: InvoiceStatus
    seller: Optional[UserResponse] = None
    client: Optional[UserResponse] = None
    items: List[InvoiceItemResponse] = []
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
