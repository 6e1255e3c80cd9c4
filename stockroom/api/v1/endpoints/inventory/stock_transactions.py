from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
from datetime import date
from stockroom.api.dependencies import get_current_user, require_roles, ADMIN_ROLES, STOCK_IN_ROLES, STOCK_OUT_ROLES
from stockroom.core.database import get_async_session
from stockroom.schemas.common.pagination import PaginatedResponse
from stockroom.services.inventory.stock_mutation_service import BatchLineInput, StockMutationService
from stockroom.services.inventory.stock_transaction_service import StockTransactionService, TransactionFilter
from stockroom.schemas.inventory.stock_transaction import (
    BatchLine, BatchMutationResponse, StockInBatchCreate, StockInCreate,
    StockMutationResponse, StockOutBatchCreate, StockOutCreate, StockTransactionResponse
)
from stockroom.models.shared.enums import TransactionType
from stockroom.models.auth.user import User

router = APIRouter()

def _batch_lines(lines: List[BatchLine]) -> List[BatchLineInput]:
    return [
        BatchLineInput(
            product_id=line.product_id,
            quantity=line.quantity,
            original_quantity=line.original_quantity,
            original_unit=line.original_unit,
        )
        for line in lines
    ]

@router.post("/stock-in", response_model=StockMutationResponse, status_code=status.HTTP_201_CREATED)
async def stock_in(
    movement_data: StockInCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*STOCK_IN_ROLES))
):
    """Receive stock for one product"""
    service = StockMutationService(db)
    quantity, original_quantity, original_unit = await service.resolve_quantity(
        movement_data.product_id, movement_data.quantity,
        movement_data.original_quantity, movement_data.original_unit
    )
    result = await service.apply_stock_in(
        movement_data.product_id,
        current_user.id,
        quantity,
        po_number=movement_data.po_number,
        original_quantity=original_quantity,
        original_unit=original_unit,
        remarks=movement_data.remarks
    )
    return StockMutationResponse.model_validate(result)

@router.post("/stock-out", response_model=StockMutationResponse, status_code=status.HTTP_201_CREATED)
async def stock_out(
    movement_data: StockOutCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*STOCK_OUT_ROLES))
):
    """Issue stock for one product"""
    service = StockMutationService(db)
    quantity, original_quantity, original_unit = await service.resolve_quantity(
        movement_data.product_id, movement_data.quantity,
        movement_data.original_quantity, movement_data.original_unit
    )
    result = await service.apply_stock_out(
        movement_data.product_id,
        current_user.id,
        quantity,
        so_number=movement_data.so_number,
        original_quantity=original_quantity,
        original_unit=original_unit,
        remarks=movement_data.remarks
    )
    return StockMutationResponse.model_validate(result)

@router.post("/stock-in/batch", response_model=BatchMutationResponse, status_code=status.HTTP_201_CREATED)
async def stock_in_batch(
    batch_data: StockInBatchCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*STOCK_IN_ROLES))
):
    """Receive several products; lines apply in order until one fails"""
    lines = _batch_lines(batch_data.products)
    service = StockMutationService(db)
    batch = await service.apply_batch(
        TransactionType.STOCK_IN, lines, current_user.id,
        reference_number=batch_data.po_number,
        remarks=batch_data.remarks
    )
    return BatchMutationResponse.model_validate(batch)

@router.post("/stock-out/batch", response_model=BatchMutationResponse, status_code=status.HTTP_201_CREATED)
async def stock_out_batch(
    batch_data: StockOutBatchCreate,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*STOCK_OUT_ROLES))
):
    """Issue several products; lines apply in order until one fails"""
    lines = _batch_lines(batch_data.products)
    service = StockMutationService(db)
    batch = await service.apply_batch(
        TransactionType.STOCK_OUT, lines, current_user.id,
        reference_number=batch_data.so_number,
        remarks=batch_data.remarks
    )
    return BatchMutationResponse.model_validate(batch)

@router.get("/", response_model=PaginatedResponse[StockTransactionResponse])
async def get_transactions(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    product_id: Optional[int] = Query(None),
    type: Optional[TransactionType] = Query(None),
    user_id: Optional[int] = Query(None),
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    """Get stock transactions with optional filters, newest first"""
    service = StockTransactionService(db)
    filters = TransactionFilter(
        product_id=product_id,
        type=type,
        user_id=user_id,
        from_date=from_date,
        to_date=to_date
    )
    return await service.get_transactions(filters, page_index=page_index, page_size=page_size)

@router.get("/my", response_model=PaginatedResponse[StockTransactionResponse])
async def get_my_transactions(
    page_index: int = Query(1, ge=1),
    page_size: int = Query(100, ge=1, le=1000),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(get_current_user)
):
    """Get the transactions recorded by the current user"""
    service = StockTransactionService(db)
    return await service.get_transactions(
        TransactionFilter(user_id=current_user.id), page_index=page_index, page_size=page_size
    )

@router.get("/today", response_model=List[StockTransactionResponse])
async def get_today_transactions(
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    """Get every movement dated today (UTC), newest first"""
    service = StockTransactionService(db)
    return await service.get_today_transactions()

@router.get("/recent", response_model=List[StockTransactionResponse])
async def get_recent_transactions(
    days: int = Query(7, ge=0, le=366),
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    """Get every movement of the last `days` days, newest first"""
    service = StockTransactionService(db)
    return await service.get_recent_transactions(days=days)

@router.get("/{transaction_id}", response_model=StockTransactionResponse)
async def get_transaction(
    transaction_id: int,
    db: AsyncSession = Depends(get_async_session),
    current_user: User = Depends(require_roles(*ADMIN_ROLES))
):
    service = StockTransactionService(db)
    return await service.get_transaction_by_id(transaction_id)
