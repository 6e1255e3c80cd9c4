import pytest
from decimal import Decimal
from httpx import AsyncClient

TRANSACTIONS = "/api/v1/inventory/stock-transaction"

@pytest.mark.asyncio
class TestStockTransactionsAPI:
    """Test stock movement endpoints"""

    async def test_stock_in(self, client: AsyncClient, stock_in_headers, rice):
        response = await client.post(
            f"{TRANSACTIONS}/stock-in",
            json={"product_id": rice.id, "quantity": "50.00", "po_number": "PO-7"},
            headers=stock_in_headers
        )
        assert response.status_code == 201
        body = response.json()
        assert Decimal(body["product"]["current_stock"]) == Decimal("150")
        assert body["transaction"]["type"] == "stock_in"
        assert Decimal(body["transaction"]["previous_stock"]) == Decimal("100")
        assert Decimal(body["transaction"]["new_stock"]) == Decimal("150")
        assert body["transaction"]["po_number"] == "PO-7"
        assert body["transaction"]["so_number"] is None

    async def test_stock_in_entered_in_grams(self, client: AsyncClient, admin_headers, rice):
        response = await client.post(
            f"{TRANSACTIONS}/stock-in",
            json={"product_id": rice.id, "quantity": "2500", "original_quantity": "2500", "original_unit": "g"},
            headers=admin_headers
        )
        assert response.status_code == 201
        transaction = response.json()["transaction"]
        assert Decimal(transaction["quantity"]) == Decimal("2.5")
        assert Decimal(transaction["original_quantity"]) == Decimal("2500")
        assert transaction["original_unit"] == "g"

    async def test_insufficient_stock(self, client: AsyncClient, stock_out_headers, admin_headers, rice):
        response = await client.post(
            f"{TRANSACTIONS}/stock-out", json={"product_id": rice.id, "quantity": "150"}, headers=stock_out_headers
        )
        assert response.status_code == 400
        assert response.json()["detail"].startswith("Insufficient stock")

        response = await client.get(f"{TRANSACTIONS}/", headers=admin_headers)
        assert response.json()["count"] == 0

    async def test_non_positive_quantity_is_rejected(self, client: AsyncClient, stock_out_headers, rice):
        response = await client.post(
            f"{TRANSACTIONS}/stock-out", json={"product_id": rice.id, "quantity": "0"}, headers=stock_out_headers
        )
        assert response.status_code == 422

    async def test_unknown_product(self, client: AsyncClient, stock_in_headers):
        response = await client.post(
            f"{TRANSACTIONS}/stock-in", json={"product_id": 999, "quantity": "1"}, headers=stock_in_headers
        )
        assert response.status_code == 404

    async def test_direction_is_role_gated(self, client: AsyncClient, stock_in_headers, stock_out_headers, rice):
        response = await client.post(
            f"{TRANSACTIONS}/stock-out", json={"product_id": rice.id, "quantity": "1"}, headers=stock_in_headers
        )
        assert response.status_code == 403

        response = await client.post(
            f"{TRANSACTIONS}/stock-in", json={"product_id": rice.id, "quantity": "1"}, headers=stock_out_headers
        )
        assert response.status_code == 403

    async def test_batch_stops_at_first_failure(self, client: AsyncClient, admin_headers, stock_out_headers, rice):
        response = await client.post(
            "/api/v1/inventory/product/", json={"name": "Flour", "unit": "KG", "opening_stock": "5"}, headers=admin_headers
        )
        flour_id = response.json()["id"]

        response = await client.post(
            f"{TRANSACTIONS}/stock-out/batch",
            json={
                "so_number": "SO-42",
                "products": [
                    {"product_id": rice.id, "quantity": "10"},
                    {"product_id": flour_id, "quantity": "6"},
                    {"product_id": rice.id, "quantity": "10"},
                ],
            },
            headers=stock_out_headers
        )
        assert response.status_code == 201
        body = response.json()
        assert body["failed_line"] == 1
        assert "Insufficient stock" in body["error"]
        assert len(body["results"]) == 1
        assert body["results"][0]["transaction"]["so_number"] == "SO-42"
        assert Decimal(body["results"][0]["product"]["current_stock"]) == Decimal("90")

    async def test_empty_batch_is_rejected(self, client: AsyncClient, stock_in_headers):
        response = await client.post(f"{TRANSACTIONS}/stock-in/batch", json={"products": []}, headers=stock_in_headers)
        assert response.status_code == 422

    async def test_my_transactions(self, client: AsyncClient, stock_in_headers, admin_headers, rice):
        await client.post(f"{TRANSACTIONS}/stock-in", json={"product_id": rice.id, "quantity": "1"}, headers=stock_in_headers)
        await client.post(f"{TRANSACTIONS}/stock-in", json={"product_id": rice.id, "quantity": "2"}, headers=admin_headers)

        response = await client.get(f"{TRANSACTIONS}/my", headers=stock_in_headers)
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert Decimal(body["data"][0]["quantity"]) == Decimal("1")
        assert body["data"][0]["product"]["name"] == "Rice"

    async def test_filtered_listing(self, client: AsyncClient, admin_headers, rice):
        await client.post(f"{TRANSACTIONS}/stock-in", json={"product_id": rice.id, "quantity": "5"}, headers=admin_headers)
        await client.post(f"{TRANSACTIONS}/stock-out", json={"product_id": rice.id, "quantity": "3"}, headers=admin_headers)

        response = await client.get(f"{TRANSACTIONS}/", params={"type": "stock_out"}, headers=admin_headers)
        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["type"] == "stock_out"

        response = await client.get(
            f"{TRANSACTIONS}/", params={"from_date": "2026-10-20", "to_date": "2026-10-19"}, headers=admin_headers
        )
        assert response.status_code == 422

    async def test_history_matches_balance(self, client: AsyncClient, admin_headers, rice):
        for path, quantity in (("stock-in", "20"), ("stock-out", "35.25"), ("stock-in", "0.5")):
            await client.post(f"{TRANSACTIONS}/{path}", json={"product_id": rice.id, "quantity": quantity}, headers=admin_headers)

        history = (await client.get(f"/api/v1/inventory/product/{rice.id}/history", headers=admin_headers)).json()
        product = (await client.get(f"/api/v1/inventory/product/{rice.id}", headers=admin_headers)).json()

        assert [t["type"] for t in history] == ["stock_in", "stock_out", "stock_in"]
        assert Decimal(history[-1]["new_stock"]) == Decimal(product["current_stock"]) == Decimal("85.25")

    async def test_batch_missing_product_on_converted_line(self, client: AsyncClient, admin_headers, stock_in_headers, rice):
        response = await client.post(
            f"{TRANSACTIONS}/stock-in/batch",
            json={
                "products": [
                    {"product_id": rice.id, "quantity": "1"},
                    {"product_id": 9999, "quantity": "1", "original_quantity": "500", "original_unit": "g"},
                ],
            },
            headers=stock_in_headers
        )
        assert response.status_code == 201
        body = response.json()
        assert body["failed_line"] == 1
        assert body["error"] == "Product not found"
        assert len(body["results"]) == 1

        product = (await client.get(f"/api/v1/inventory/product/{rice.id}", headers=admin_headers)).json()
        assert Decimal(product["current_stock"]) == Decimal("101")

    async def test_batch_unconvertible_unit_fails_its_line(self, client: AsyncClient, stock_in_headers, rice):
        response = await client.post(
            f"{TRANSACTIONS}/stock-in/batch",
            json={
                "products": [
                    {"product_id": rice.id, "quantity": "2"},
                    {"product_id": rice.id, "quantity": "1", "original_quantity": "3", "original_unit": "litre"},
                ],
            },
            headers=stock_in_headers
        )
        assert response.status_code == 201
        body = response.json()
        assert body["failed_line"] == 1
        assert "Cannot convert" in body["error"]
        assert Decimal(body["results"][0]["product"]["current_stock"]) == Decimal("102")

    async def test_batch_line_quantity_must_be_positive(self, client: AsyncClient, admin_headers, stock_out_headers, rice):
        response = await client.post(
            f"{TRANSACTIONS}/stock-out/batch",
            json={"products": [{"product_id": rice.id, "quantity": "5"}, {"product_id": rice.id, "quantity": "0"}]},
            headers=stock_out_headers
        )
        assert response.status_code == 422

        response = await client.get(f"{TRANSACTIONS}/", headers=admin_headers)
        assert response.json()["count"] == 0

    async def test_today_and_recent_transactions(self, client: AsyncClient, admin_headers, stock_in_headers, rice):
        for quantity in ("1", "2"):
            await client.post(
                f"{TRANSACTIONS}/stock-in", json={"product_id": rice.id, "quantity": quantity}, headers=admin_headers
            )

        response = await client.get(f"{TRANSACTIONS}/today", headers=admin_headers)
        assert response.status_code == 200
        assert [Decimal(t["quantity"]) for t in response.json()] == [Decimal("2"), Decimal("1")]

        response = await client.get(f"{TRANSACTIONS}/recent", params={"days": 3}, headers=admin_headers)
        assert response.status_code == 200
        assert len(response.json()) == 2

        response = await client.get(f"{TRANSACTIONS}/recent", headers=stock_in_headers)
        assert response.status_code == 403
