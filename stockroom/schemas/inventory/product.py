from pydantic import BaseModel, ConfigDict, validator
from typing import Optional
from datetime import datetime
from decimal import Decimal

class ProductBase(BaseModel):
    name: str
    unit: str  # e.g. "KG", "Litre", "Pieces"

    @validator('name', 'unit')
    def validate_not_blank(cls, v):
        if not v or not v.strip():
            raise ValueError('Value cannot be blank')
        return v.strip()

class ProductCreate(ProductBase):
    opening_stock: Decimal = Decimal("0")

    @validator('opening_stock')
    def validate_non_negative(cls, v):
        if v < 0:
            raise ValueError('Opening stock cannot be negative')
        return v

class ProductUpdate(BaseModel):
    # current_stock is system-managed, only the mutation engine changes it
    name: Optional[str] = None
    unit: Optional[str] = None
    opening_stock: Optional[Decimal] = None

class ProductRef(BaseModel):
    id: int
    name: str
    unit: str

    model_config = ConfigDict(from_attributes=True)

class ProductResponse(ProductBase):
    id: int
    opening_stock: Decimal
    current_stock: Decimal
    is_active: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
