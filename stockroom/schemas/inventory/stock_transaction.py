from pydantic import BaseModel, ConfigDict, validator
from typing import List, Optional
from datetime import datetime
from decimal import Decimal
from stockroom.models.shared.enums import TransactionType
from stockroom.schemas.inventory.product import ProductRef, ProductResponse

class StockMovementBase(BaseModel):
    product_id: int
    quantity: Decimal
    original_quantity: Optional[Decimal] = None
    original_unit: Optional[str] = None
    remarks: Optional[str] = None

    @validator('quantity')
    def validate_positive_quantity(cls, v):
        if not v.is_finite() or v <= 0:
            raise ValueError('Quantity must be positive')
        return v

class StockInCreate(StockMovementBase):
    po_number: Optional[str] = None

class StockOutCreate(StockMovementBase):
    so_number: Optional[str] = None

class BatchLine(BaseModel):
    product_id: int
    quantity: Decimal
    original_quantity: Optional[Decimal] = None
    original_unit: Optional[str] = None

    @validator('quantity')
    def validate_positive_quantity(cls, v):
        if not v.is_finite() or v <= 0:
            raise ValueError('Quantity must be positive')
        return v

class StockInBatchCreate(BaseModel):
    products: List[BatchLine]
    po_number: Optional[str] = None
    remarks: Optional[str] = None

    @validator('products')
    def validate_products(cls, v):
        if not v:
            raise ValueError('Products array is required')
        return v

class StockOutBatchCreate(BaseModel):
    products: List[BatchLine]
    so_number: Optional[str] = None
    remarks: Optional[str] = None

    @validator('products')
    def validate_products(cls, v):
        if not v:
            raise ValueError('Products array is required')
        return v

class UserRef(BaseModel):
    id: int
    username: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)

class StockTransactionInDB(BaseModel):
    id: int
    product_id: int
    user_id: int
    type: TransactionType
    quantity: Decimal
    original_quantity: Optional[Decimal] = None
    original_unit: Optional[str] = None
    previous_stock: Decimal
    new_stock: Decimal
    transaction_date: datetime
    po_number: Optional[str] = None
    so_number: Optional[str] = None
    remarks: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class StockTransactionResponse(StockTransactionInDB):
    product: Optional[ProductRef] = None
    user: Optional[UserRef] = None

class StockMutationResponse(BaseModel):
    transaction: StockTransactionInDB
    product: ProductResponse

    model_config = ConfigDict(from_attributes=True)

class BatchMutationResponse(BaseModel):
    results: List[StockMutationResponse]
    failed_line: Optional[int] = None
    error: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)
