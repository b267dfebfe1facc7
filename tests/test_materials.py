"""
Materiais: catálogo, preços por fornecedor, entradas com conta a pagar e estoque.
"""
import pytest_asyncio
from sqlalchemy import func, select

from app.models import Cost, MaterialMovement, Payable


@pytest_asyncio.fixture
async def material(client, auth, supplier):
    response = await client.post("/api/materials", json={
        "name": "Chapa MDF 15mm",
        "unit": "un",
        "defaultUnitCostCents": 18000,
        "minQty": 5,
        "supplierPrices": [
            {"supplierId": supplier["id"], "unitCostCents": 20000},
            {"supplierId": supplier["id"], "unitCostCents": 17500},
        ],
    }, headers=auth)
    assert response.status_code == 201, response.text
    return response.json()["material"]


class TestCatalog:

    async def test_duplicate_supplier_prices_collapse(self, material, supplier):
        assert len(material["supplierPrices"]) == 1
        assert material["bestSupplierPrice"]["unitCostCents"] == 17500
        assert material["bestSupplierPrice"]["supplierId"] == supplier["id"]
        assert material["unit"] == "UN"

    async def test_duplicate_name(self, client, auth, material):
        response = await client.post("/api/materials", json={"name": "Chapa MDF 15mm"}, headers=auth)
        assert response.status_code == 409

    async def test_update_prices_same_supplier(self, client, auth, material, supplier):
        response = await client.patch(f"/api/materials/{material['id']}", json={
            "supplierPrices": [{"supplierId": supplier["id"], "unitCostCents": 16000}],
        }, headers=auth)

        assert response.status_code == 200, response.text
        assert response.json()["material"]["bestSupplierPrice"]["unitCostCents"] == 16000

    async def test_price_supplier_must_be_fornecedor(self, client, auth, customer):
        response = await client.post("/api/materials", json={
            "name": "Dobradiça",
            "supplierPrices": [{"supplierId": customer["id"], "unitCostCents": 500}],
        }, headers=auth)
        assert response.status_code == 400

    async def test_delete_disables(self, client, auth, material):
        response = await client.delete(f"/api/materials/{material['id']}", headers=auth)
        assert response.status_code == 200

        listed = (await client.get("/api/materials", headers=auth)).json()["materials"]
        assert listed == []

        fetched = (await client.get(f"/api/materials/{material['id']}", headers=auth)).json()["material"]
        assert fetched["isActive"] is False


class TestMovements:

    async def test_in_requires_supplier_and_cost(self, client, auth, material):
        response = await client.post("/api/materials/movements", json={
            "materialId": material["id"], "type": "IN", "qty": 10,
        }, headers=auth)
        assert response.status_code == 400

    async def test_in_without_payable_records_cost(self, client, auth, material, supplier, session_factory):
        response = await client.post("/api/materials/movements", json={
            "materialId": material["id"],
            "type": "IN",
            "qty": 3,
            "unitCostCents": 17500,
            "supplierId": supplier["id"],
            "nfNumber": "123",
            "occurredAt": "2024-04-02T10:00:00",
        }, headers=auth)

        assert response.status_code == 201, response.text
        movement = response.json()["movement"]
        assert movement["totalCostCents"] == 52500
        assert movement["payableId"] is None

        async with session_factory() as session:
            cost = (await session.execute(select(Cost))).scalar_one()
            assert cost.type == "VARIAVEL"
            assert cost.amount_cents == 52500
            assert cost.year_month == "2024-04"

    async def test_in_with_payable_splits_installments(self, client, auth, material, supplier, session_factory):
        response = await client.post("/api/materials/movements", json={
            "materialId": material["id"],
            "type": "IN",
            "qty": 10,
            "unitCostCents": 10000,
            "supplierId": supplier["id"],
            "occurredAt": "2024-04-02T10:00:00",
            "payable": {"enabled": True, "installmentsCount": 3, "firstDueDate": "2024-05-02", "paidNow": True},
        }, headers=auth)

        assert response.status_code == 201, response.text
        payable_id = response.json()["movement"]["payableId"]
        assert payable_id

        payable = (await client.get(f"/api/payables/{payable_id}", headers=auth)).json()["payable"]
        assert payable["totalCents"] == 100000
        assert [i["amountCents"] for i in payable["installments"]] == [33333, 33333, 33334]
        assert all(i["status"] == "PENDENTE" for i in payable["installments"])

        async with session_factory() as session:
            assert await session.scalar(select(func.count(Cost.id))) == 0

    async def test_single_installment_paid_now(self, client, auth, material, supplier):
        response = await client.post("/api/materials/movements", json={
            "materialId": material["id"],
            "type": "IN",
            "qty": 1,
            "unitCostCents": 5000,
            "supplierId": supplier["id"],
            "payable": {"enabled": True, "installmentsCount": 1, "paidNow": True, "method": "PIX"},
        }, headers=auth)

        payable_id = response.json()["movement"]["payableId"]
        payable = (await client.get(f"/api/payables/{payable_id}", headers=auth)).json()["payable"]
        assert payable["installments"][0]["status"] == "PAGO"
        assert payable["installments"][0]["method"] == "PIX"

    async def test_out_clears_cost_fields(self, client, auth, material, supplier):
        response = await client.post("/api/materials/movements", json={
            "materialId": material["id"],
            "type": "OUT",
            "qty": 2,
            "unitCostCents": 999,
            "supplierId": supplier["id"],
            "nfNumber": "55",
        }, headers=auth)

        movement = response.json()["movement"]
        assert movement["unitCostCents"] is None
        assert movement["supplierId"] is None
        assert movement["nfNumber"] is None

    async def test_stock_and_summary(self, client, auth, material, supplier, session_factory):
        base = {"materialId": material["id"], "occurredAt": "2024-04-10T08:00:00"}
        await client.post("/api/materials/movements", json={
            **base, "type": "IN", "qty": 10, "unitCostCents": 1000, "supplierId": supplier["id"],
        }, headers=auth)
        await client.post("/api/materials/movements", json={**base, "type": "OUT", "qty": 4}, headers=auth)
        await client.post("/api/materials/movements", json={**base, "type": "ADJUST", "qty": 1}, headers=auth)

        stock = (await client.get("/api/materials/stock", headers=auth)).json()["stock"]
        assert stock[0]["balance"] == 7
        assert stock[0]["belowMin"] is False

        summary = (await client.get("/api/materials/summary", params={"month": "2024-04"}, headers=auth)).json()
        assert summary["purchasesCents"] == 10000
        assert summary["materials"][0]["outQty"] == 4

        movements = (await client.get(
            "/api/materials/movements", params={"month": "2024-04", "type": "OUT"}, headers=auth
        )).json()["movements"]
        assert len(movements) == 1

        async with session_factory() as session:
            assert await session.scalar(select(func.count(MaterialMovement.id))) == 3
            assert await session.scalar(select(func.count(Payable.id))) == 0

    async def test_movements_require_filter(self, client, auth):
        response = await client.get("/api/materials/movements", headers=auth)
        assert response.status_code == 400
