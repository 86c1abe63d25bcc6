from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime
from decimal import Decimal
from uuid import UUID


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    unit_price: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=1000)
    unit_price: Optional[Decimal] = Field(None, ge=0, max_digits=10, decimal_places=2)

    @field_validator("name", "unit_price")
    @classmethod
    def reject_null(cls, v):
        if v is None:
            raise ValueError("This field may not be null")
        return v


class ProductResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str] = None
    unit_price: Decimal
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
