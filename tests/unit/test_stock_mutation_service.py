import asyncio
import logging
import pytest
from decimal import Decimal
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError
from stockroom.core.exceptions import (
    ConcurrencyConflictError, InsufficientStockError, NotFoundError,
    StorageUnavailableError, ValidationError
)
from stockroom.models.shared.enums import TransactionType
from stockroom.schemas.inventory.product import ProductCreate
from stockroom.services.inventory.product_service import ProductService
from stockroom.services.inventory.stock_mutation_service import BatchLineInput, StockMutationService
from stockroom.services.inventory.stock_transaction_service import StockTransactionService, TransactionFilter

@pytest.mark.asyncio
class TestStockMutation:
    """Test stock in / stock out against a product's running balance"""

    async def test_stock_in_adds_and_records(self, db, rice, admin_user):
        result = await StockMutationService(db).apply_stock_in(
            rice.id, admin_user.id, "50.00", po_number="PO-1"
        )

        assert result.product.current_stock == Decimal("150.00")
        transaction = result.transaction
        assert transaction.type == TransactionType.STOCK_IN
        assert transaction.quantity == Decimal("50.00")
        assert transaction.previous_stock == Decimal("100.00")
        assert transaction.new_stock == Decimal("150.00")
        assert transaction.po_number == "PO-1"
        assert transaction.so_number is None

    async def test_stock_out_to_exactly_zero(self, db, rice, admin_user):
        service = StockMutationService(db)
        await service.apply_stock_in(rice.id, admin_user.id, "50.00", po_number="PO-1")

        result = await service.apply_stock_out(rice.id, admin_user.id, "150.00", so_number="SO-1")

        assert result.product.current_stock == Decimal("0")
        assert result.transaction.previous_stock == Decimal("150.00")
        assert result.transaction.new_stock == Decimal("0")
        assert result.transaction.so_number == "SO-1"
        assert result.transaction.po_number is None

    async def test_insufficient_stock_changes_nothing(self, db, rice, admin_user):
        # A rejected movement rolls the session back, which expires loaded rows
        rice_id, user_id = rice.id, admin_user.id
        service = StockMutationService(db)
        await service.apply_stock_out(rice_id, user_id, "100.00")

        with pytest.raises(InsufficientStockError) as exc:
            await service.apply_stock_out(rice_id, user_id, "10.00")

        assert exc.value.status_code == 400
        assert exc.value.available == Decimal("0")
        assert exc.value.requested == Decimal("10.00")
        assert "Available: " in exc.value.detail and "Requested: 10.000" in exc.value.detail

        product = await ProductService(db).get_product_by_id(rice_id)
        assert product.current_stock == Decimal("0")
        history = await StockTransactionService(db).get_product_history(rice_id)
        assert len(history) == 1

    @pytest.mark.parametrize("quantity", ["0", "-5", "abc", "NaN"])
    async def test_invalid_quantity_rejected(self, db, rice, admin_user, quantity):
        with pytest.raises(ValidationError):
            await StockMutationService(db).apply_stock_in(rice.id, admin_user.id, quantity)

        assert await StockTransactionService(db).get_product_history(rice.id) == []

    async def test_missing_product(self, db, admin_user):
        with pytest.raises(NotFoundError):
            await StockMutationService(db).apply_stock_in(404, admin_user.id, "1")

    async def test_inactive_product_rejected(self, db, rice, admin_user):
        await ProductService(db).delete_product(rice.id)
        with pytest.raises(ValidationError):
            await StockMutationService(db).apply_stock_out(rice.id, admin_user.id, "1")

    async def test_original_quantity_is_kept(self, db, rice, admin_user):
        result = await StockMutationService(db).apply_stock_in(
            rice.id, admin_user.id, "0.5", original_quantity="500", original_unit="g", remarks="loose bag"
        )
        assert result.transaction.quantity == Decimal("0.5")
        assert result.transaction.original_quantity == Decimal("500")
        assert result.transaction.original_unit == "g"
        assert result.transaction.remarks == "loose bag"

    async def test_balance_matches_history(self, db, rice, admin_user):
        service = StockMutationService(db)
        movements = [("in", "0.1"), ("in", "0.2"), ("out", "0.3"), ("in", "12.345"), ("out", "50"), ("in", "7.005")]
        for direction, quantity in movements:
            if direction == "in":
                await service.apply_stock_in(rice.id, admin_user.id, quantity)
            else:
                await service.apply_stock_out(rice.id, admin_user.id, quantity)

        product = await ProductService(db).get_product_by_id(rice.id)
        history = await StockTransactionService(db).get_product_history(rice.id)

        total_in = sum(t.quantity for t in history if t.type == TransactionType.STOCK_IN)
        total_out = sum(t.quantity for t in history if t.type == TransactionType.STOCK_OUT)
        assert product.current_stock == product.opening_stock + total_in - total_out
        assert product.current_stock == Decimal("69.350")

        # Each row continues from the one before it
        previous = product.opening_stock
        for transaction in history:
            assert transaction.previous_stock == previous
            previous = transaction.new_stock
        assert previous == product.current_stock

    async def test_recorded_snapshots_never_change(self, db, rice, admin_user):
        service = StockMutationService(db)
        first = await service.apply_stock_in(rice.id, admin_user.id, "5")
        await service.apply_stock_out(rice.id, admin_user.id, "30")
        await service.apply_stock_in(rice.id, admin_user.id, "1")

        stored = await StockTransactionService(db).get_transaction_by_id(first.transaction.id)
        await db.refresh(stored)
        assert stored.previous_stock == Decimal("100")
        assert stored.new_stock == Decimal("105")
        assert stored.quantity == Decimal("5")

    async def test_concurrent_stock_out_only_one_wins(self, session_maker, rice, admin_user):
        # Each caller takes 60% of the stock on its own session
        async def take(amount):
            async with session_maker() as session:
                return await StockMutationService(session).apply_stock_out(rice.id, admin_user.id, amount)

        outcomes = await asyncio.gather(take("60"), take("60"), return_exceptions=True)

        succeeded = [o for o in outcomes if not isinstance(o, Exception)]
        failed = [o for o in outcomes if isinstance(o, Exception)]
        assert len(succeeded) == 1
        assert len(failed) == 1
        assert isinstance(failed[0], InsufficientStockError)
        assert failed[0].available == Decimal("40")

        async with session_maker() as session:
            product = await ProductService(session).get_product_by_id(rice.id)
            assert product.current_stock == Decimal("40")
            history = await StockTransactionService(session).get_product_history(rice.id)
            assert len(history) == 1

    async def test_stale_data_is_retried_then_surfaces_conflict(self, db, rice, admin_user, monkeypatch):
        service = StockMutationService(db)
        calls = []

        async def always_stale(*args, **kwargs):
            calls.append(1)
            raise StaleDataError("version mismatch")

        monkeypatch.setattr(service, "_apply_once", always_stale)

        with pytest.raises(ConcurrencyConflictError) as exc:
            await service.apply_stock_out(rice.id, admin_user.id, "1")
        assert exc.value.status_code == 409
        assert len(calls) == 3

    async def test_stale_data_retry_succeeds(self, db, rice, admin_user, monkeypatch):
        service = StockMutationService(db)
        original = service._apply_once
        calls = []

        async def stale_once(*args, **kwargs):
            calls.append(1)
            if len(calls) == 1:
                raise StaleDataError("version mismatch")
            return await original(*args, **kwargs)

        monkeypatch.setattr(service, "_apply_once", stale_once)

        result = await service.apply_stock_out(rice.id, admin_user.id, "1")
        assert result.product.current_stock == Decimal("99")
        assert len(calls) == 2

    async def test_storage_failure_is_not_masked(self, db, rice, admin_user, monkeypatch):
        service = StockMutationService(db)

        async def broken(*args, **kwargs):
            raise OperationalError("UPDATE products", {}, Exception("connection refused"))

        monkeypatch.setattr(service, "_apply_once", broken)

        with pytest.raises(StorageUnavailableError) as exc:
            await service.apply_stock_in(rice.id, admin_user.id, "1")
        assert exc.value.status_code == 503

@pytest.mark.asyncio
class TestBatchMutation:
    """Test multi-line submissions"""

    async def test_batch_stops_at_first_failure(self, db, rice, admin_user):
        products = ProductService(db)
        oil = await products.create_product(ProductCreate(name="Oil", unit="L", opening_stock=Decimal("5")))
        salt = await products.create_product(ProductCreate(name="Salt", unit="KG", opening_stock=Decimal("20")))
        rice_id, oil_id, salt_id = rice.id, oil.id, salt.id

        batch = await StockMutationService(db).apply_batch(
            TransactionType.STOCK_OUT,
            [
                BatchLineInput(product_id=rice_id, quantity="10"),
                BatchLineInput(product_id=oil_id, quantity="8"),
                BatchLineInput(product_id=salt_id, quantity="1"),
            ],
            admin_user.id,
            reference_number="SO-9",
        )

        assert len(batch.results) == 1
        assert batch.failed_line == 1
        assert "Insufficient stock" in batch.error
        assert batch.results[0].transaction.new_stock == Decimal("90")

        assert (await products.get_product_by_id(rice_id)).current_stock == Decimal("90")
        assert (await products.get_product_by_id(oil_id)).current_stock == Decimal("5")
        assert (await products.get_product_by_id(salt_id)).current_stock == Decimal("20")

    async def test_batch_all_lines_share_reference(self, db, rice, admin_user):
        oil = await ProductService(db).create_product(ProductCreate(name="Oil", unit="L"))

        batch = await StockMutationService(db).apply_batch(
            TransactionType.STOCK_IN,
            [BatchLineInput(product_id=rice.id, quantity="1"), BatchLineInput(product_id=oil.id, quantity="2")],
            admin_user.id,
            reference_number="PO-7",
            remarks="weekly delivery",
        )

        assert batch.failed_line is None
        assert batch.error is None
        assert [r.transaction.po_number for r in batch.results] == ["PO-7", "PO-7"]

        data = await StockTransactionService(db).get_transactions(TransactionFilter(type=TransactionType.STOCK_IN))
        assert data["count"] == 2

    async def test_batch_converted_line_for_missing_product(self, db, rice, admin_user):
        rice_id = rice.id

        batch = await StockMutationService(db).apply_batch(
            TransactionType.STOCK_IN,
            [
                BatchLineInput(product_id=rice_id, quantity="1"),
                BatchLineInput(product_id=9999, quantity="1", original_quantity="500", original_unit="g"),
                BatchLineInput(product_id=rice_id, quantity="1"),
            ],
            admin_user.id,
        )

        assert batch.failed_line == 1
        assert batch.error == "Product not found"
        assert len(batch.results) == 1
        assert (await ProductService(db).get_product_by_id(rice_id)).current_stock == Decimal("101")

    async def test_batch_converts_entered_units_per_line(self, db, rice, admin_user):
        batch = await StockMutationService(db).apply_batch(
            TransactionType.STOCK_IN,
            [BatchLineInput(product_id=rice.id, quantity="750", original_quantity="750", original_unit="gm")],
            admin_user.id,
        )

        transaction = batch.results[0].transaction
        assert transaction.quantity == Decimal("0.75")
        assert transaction.original_quantity == Decimal("750")
        assert transaction.original_unit == "gm"
        assert batch.results[0].product.current_stock == Decimal("100.75")

@pytest.mark.asyncio
class TestMovementLogging:
    """Accepted movements are written to the operations log"""

    async def test_accepted_movement_is_logged(self, db, rice, admin_user, caplog):
        with caplog.at_level(logging.INFO, logger="operations"):
            await StockMutationService(db).apply_stock_in(rice.id, admin_user.id, "4")

        records = [r for r in caplog.records if r.name == "operations"]
        assert len(records) == 1
        assert f"User {admin_user.id} performed stock_in on product {rice.id}" in records[0].getMessage()
        assert "new_stock=104" in records[0].getMessage()

    async def test_rejected_movement_is_not_logged(self, db, rice, admin_user, caplog):
        rice_id, user_id = rice.id, admin_user.id
        with caplog.at_level(logging.INFO, logger="operations"):
            with pytest.raises(InsufficientStockError):
                await StockMutationService(db).apply_stock_out(rice_id, user_id, "500")

        assert [r for r in caplog.records if r.name == "operations"] == []
