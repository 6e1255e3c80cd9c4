from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
from stockroom.api.dependencies import get_current_user, require_roles, ADMIN_ROLES
from stockroom.core.database import get_async_session
from stockroom.services.inventory.product_service import ProductService
from stockroom.services.inventory.stock_transaction_service import StockTransactionService
from stockroom.schemas.inventory.product import ProductCreate, ProductUpdate, ProductResponse
from stockroom.schemas.inventory.stock_transaction import StockTransactionResponse
from stockroom.models.auth.user import User

router = APIRouter()

@router.get("/", response_model=List[ProductResponse])
async def get_products(
    active_only: bool = Query(True),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    """Get all products ordered by name"""
    service = ProductService(db)
    return await service.get_products(active_only=active_only)

@router.get("/search", response_model=List[ProductResponse])
async def search_products(
    q: str = Query(..., min_length=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user)
):
    """Search active products by name"""
    service = ProductService(db)
    return await service.search_products(q, limit=limit)

@router.get("/low-stock", response_model=List[ProductResponse])
async def get_low_stock_products(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    """Active products under the dashboard low-stock threshold"""
    service = ProductService(db)
    return await service.get_low_stock_products()

@router.get("/{product_id}/history", response_model=List[StockTransactionResponse])
async def get_product_history(
    product_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    """Get every stock movement of a product"""
    service = StockTransactionService(db)
    return await service.get_product_history(product_id)

@router.get("/{product_id}", response_model=ProductResponse)
async def get_product(
    product_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user)
):
    service = ProductService(db)
    return await service.get_product_by_id(product_id)

@router.post("/", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_data: ProductCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    """Create a product; its current stock starts at the opening stock"""
    service = ProductService(db)
    return await service.create_product(product_data)

@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: int,
    product_data: ProductUpdate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    service = ProductService(db)
    return await service.update_product(product_id, product_data)

@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    """Deactivate a product"""
    service = ProductService(db)
    await service.delete_product(product_id)
