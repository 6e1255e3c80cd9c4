import logging
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Optional
from datetime import datetime, timezone
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError, InterfaceError, OperationalError
from sqlalchemy.orm.exc import StaleDataError
from stockroom.models.inventory.product import Product
from stockroom.models.inventory.stock_transaction import StockTransaction
from stockroom.models.shared.enums import TransactionType
from stockroom.services.inventory.product_service import ProductService
from stockroom.services.inventory.stock_transaction_service import (
    StockTransactionEntry, StockTransactionService
)
from stockroom.core.config import settings
from stockroom.core.exceptions import (
    BaseAppException, ConcurrencyConflictError, InsufficientStockError,
    NotFoundError, StorageUnavailableError, ValidationError
)
from stockroom.core.logging_config import log_user_action
from stockroom.utils.units import parse_quantity, resolve_entered_quantity

logger = logging.getLogger(__name__)


@dataclass
class StockMutationResult:
    transaction: StockTransaction
    product: Product


@dataclass
class BatchLineInput:
    product_id: int
    quantity: Any
    original_quantity: Any = None
    original_unit: Optional[str] = None


@dataclass
class BatchResult:
    results: List[StockMutationResult] = field(default_factory=list)
    failed_line: Optional[int] = None
    error: Optional[str] = None


class StockMutationService:
    """
    The only writer of Product.current_stock.

    Every call updates the product balance and appends its transaction row in
    one database transaction. The product row is read with SELECT ... FOR
    UPDATE, and the UPDATE is additionally guarded by the product's version
    counter, so a concurrent writer either blocks on the row lock or turns
    into a stale-data conflict that is retried against the fresh balance.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.product_service = ProductService(db)
        self.transaction_service = StockTransactionService(db)

    async def apply_stock_in(
        self,
        product_id: int,
        user_id: int,
        quantity: Any,
        transaction_date: Optional[datetime] = None,
        po_number: Optional[str] = None,
        original_quantity: Any = None,
        original_unit: Optional[str] = None,
        remarks: Optional[str] = None
    ) -> StockMutationResult:
        """Add quantity to a product's stock and record a stock_in transaction"""
        return await self._apply(
            TransactionType.STOCK_IN, product_id, user_id, quantity, transaction_date,
            po_number, original_quantity, original_unit, remarks
        )

    async def apply_stock_out(
        self,
        product_id: int,
        user_id: int,
        quantity: Any,
        transaction_date: Optional[datetime] = None,
        so_number: Optional[str] = None,
        original_quantity: Any = None,
        original_unit: Optional[str] = None,
        remarks: Optional[str] = None
    ) -> StockMutationResult:
        """Remove quantity from a product's stock and record a stock_out transaction"""
        return await self._apply(
            TransactionType.STOCK_OUT, product_id, user_id, quantity, transaction_date,
            so_number, original_quantity, original_unit, remarks
        )

    async def apply_batch(
        self,
        direction: TransactionType,
        lines: Iterable[BatchLineInput],
        user_id: int,
        reference_number: Optional[str] = None,
        remarks: Optional[str] = None
    ) -> BatchResult:
        """
        Apply several lines from one submission.

        Each line commits on its own. Processing stops at the first failing
        line, including a line whose entered unit cannot be converted; lines
        before it stay applied and are returned in results.
        """
        batch = BatchResult()
        transaction_date = datetime.now(timezone.utc)

        for index, line in enumerate(lines):
            try:
                quantity, original_quantity, original_unit = await self.resolve_quantity(
                    line.product_id, line.quantity, line.original_quantity, line.original_unit
                )
                result = await self._apply(
                    direction, line.product_id, user_id, quantity, transaction_date,
                    reference_number, original_quantity, original_unit, remarks
                )
            except StorageUnavailableError:
                raise
            except BaseAppException as e:
                logger.warning(f"Batch {direction.value} stopped at line {index} (product {line.product_id}): {e.detail}")
                batch.failed_line = index
                batch.error = str(e.detail)
                break
            batch.results.append(result)

        if batch.failed_line is not None:
            # The rollback of the failed line expired the rows applied before it
            for applied in batch.results:
                await self.db.refresh(applied.transaction)
                await self.db.refresh(applied.product)

        return batch

    async def resolve_quantity(
        self,
        product_id: int,
        quantity: Any,
        original_quantity: Any = None,
        original_unit: Optional[str] = None
    ):
        """Convert an entry made in a secondary unit into the product's base unit"""
        if original_quantity is None or not original_unit:
            return quantity, None, None
        product = await self.product_service.get_product_by_id(product_id)
        return resolve_entered_quantity(quantity, product.unit, original_quantity, original_unit)

    async def _apply(
        self,
        direction: TransactionType,
        product_id: int,
        user_id: int,
        quantity: Any,
        transaction_date: Optional[datetime],
        reference_number: Optional[str],
        original_quantity: Any,
        original_unit: Optional[str],
        remarks: Optional[str]
    ) -> StockMutationResult:
        amount = parse_quantity(quantity)
        if amount <= 0:
            raise ValidationError("Quantity must be greater than zero")
        if original_quantity is not None:
            original_quantity = parse_quantity(original_quantity, field="Original quantity")
        transaction_date = transaction_date or datetime.now(timezone.utc)

        attempts = settings.STOCK_MUTATION_MAX_RETRIES + 1
        for attempt in range(1, attempts + 1):
            try:
                transaction, product = await self._apply_once(
                    direction, product_id, user_id, amount, transaction_date,
                    reference_number, original_quantity, original_unit, remarks
                )
                await self.db.commit()
            except StaleDataError as e:
                await self.db.rollback()
                logger.warning(
                    f"Concurrent update on product {product_id} "
                    f"(attempt {attempt}/{attempts}): {e.__class__.__name__}"
                )
                continue
            except IntegrityError as e:
                await self.db.rollback()
                logger.warning(f"Constraint violation during {direction.value} on product {product_id}: {str(e.orig)}")
                raise ValidationError("Stock movement violates a data constraint")
            except (OperationalError, InterfaceError) as e:
                await self.db.rollback()
                logger.error(f"Storage failure during {direction.value} on product {product_id}: {str(e)}")
                raise StorageUnavailableError()
            except BaseAppException as e:
                await self.db.rollback()
                logger.warning(f"Rejected {direction.value} on product {product_id}: {e.detail}")
                raise

            await self.db.refresh(transaction)
            await self.db.refresh(product)

            log_user_action(
                user_id, direction.value, "product", product_id,
                quantity=amount,
                previous_stock=transaction.previous_stock,
                new_stock=transaction.new_stock,
                transaction_id=transaction.id,
            )
            return StockMutationResult(transaction=transaction, product=product)

        logger.error(f"Giving up {direction.value} on product {product_id} after {attempts} attempts")
        raise ConcurrencyConflictError()

    async def _apply_once(
        self,
        direction: TransactionType,
        product_id: int,
        user_id: int,
        amount: Decimal,
        transaction_date: datetime,
        reference_number: Optional[str],
        original_quantity: Optional[Decimal],
        original_unit: Optional[str],
        remarks: Optional[str]
    ):
        product = await self.product_service._lock_product(product_id)
        if not product:
            raise NotFoundError("Product not found")
        if not product.is_active:
            raise ValidationError("Product is inactive")

        previous_stock = Decimal(product.current_stock)
        if direction == TransactionType.STOCK_OUT:
            if amount > previous_stock:
                raise InsufficientStockError(available=previous_stock, requested=amount)
            new_stock = previous_stock - amount
        else:
            new_stock = previous_stock + amount

        self.product_service._set_current_stock(product, new_stock)

        transaction = await self.transaction_service.record(StockTransactionEntry(
            product_id=product.id,
            user_id=user_id,
            type=direction,
            quantity=amount,
            previous_stock=previous_stock,
            new_stock=new_stock,
            transaction_date=transaction_date,
            original_quantity=original_quantity,
            original_unit=original_unit,
            po_number=reference_number if direction == TransactionType.STOCK_IN else None,
            so_number=reference_number if direction == TransactionType.STOCK_OUT else None,
            remarks=remarks,
        ))
        return transaction, product
