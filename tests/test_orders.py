"""
Pedidos: criação com conta a receber, edição financeira e exclusão.
"""
from sqlalchemy import func, select

from app.models import Order, Receivable, ReceivableInstallment


def order_payload(client_id, **overrides):
    payload = {
        "clientId": client_id,
        "items": [
            {"name": "Armário de cozinha", "quantity": 1, "unitPriceCents": 450000},
            {"name": "Prateleira", "quantity": 2, "unitPriceCents": 25000},
        ],
        "discountCents": 20000,
        "paymentMode": "PARCELADO",
        "paymentMethod": "PIX",
        "installmentsCount": 3,
        "firstDueDate": "2024-01-31",
    }
    payload.update(overrides)
    return payload


class TestCreateOrder:

    async def test_creates_order_with_receivable(self, client, auth, customer):
        response = await client.post("/api/orders", json=order_payload(customer["id"]), headers=auth)

        assert response.status_code == 201, response.text
        body = response.json()
        order = body["order"]
        assert order["subtotalCents"] == 500000
        assert order["totalCents"] == 480000
        assert order["status"] == "ORCAMENTO"
        assert [i["name"] for i in order["items"]] == ["Armário de cozinha", "Prateleira"]

        installments = body["receivable"]["installments"]
        assert [i["amountCents"] for i in installments] == [160000, 160000, 160000]
        assert [i["dueDate"][:10] for i in installments] == ["2024-01-31", "2024-02-29", "2024-03-31"]
        assert all(i["status"] == "PENDENTE" for i in installments)

    async def test_avista_paid_now(self, client, auth, customer):
        payload = order_payload(customer["id"], paymentMode="AVISTA", installmentsCount=5, paidNow=True)
        response = await client.post("/api/orders", json=payload, headers=auth)

        assert response.status_code == 201, response.text
        installments = response.json()["receivable"]["installments"]
        assert len(installments) == 1
        assert installments[0]["status"] == "PAGO"
        assert installments[0]["paidAt"] is not None

    async def test_parcelado_requires_valid_count(self, client, auth, customer):
        payload = order_payload(customer["id"], installmentsCount=1)
        response = await client.post("/api/orders", json=payload, headers=auth)

        assert response.status_code == 400
        assert "installmentsCount" in response.json()["message"]

    async def test_empty_items_rejected(self, client, auth, customer):
        response = await client.post("/api/orders", json=order_payload(customer["id"], items=[]), headers=auth)
        assert response.status_code == 400
        assert response.json()["message"].startswith("items")

    async def test_unknown_client(self, client, auth):
        response = await client.post("/api/orders", json=order_payload("nao-existe"), headers=auth)
        assert response.status_code == 404

    async def test_requires_token(self, client, customer):
        response = await client.post("/api/orders", json=order_payload(customer["id"]))
        assert response.status_code == 401
        assert "message" in response.json()


class TestUpdateOrder:

    async def test_reprice_regenerates_installments(self, client, auth, customer):
        created = (await client.post("/api/orders", json=order_payload(customer["id"]), headers=auth)).json()
        order_id = created["order"]["id"]

        response = await client.patch(
            f"/api/orders/{order_id}",
            json={"installmentsCount": 2, "discountCents": 0},
            headers=auth,
        )

        assert response.status_code == 200, response.text
        order = response.json()["order"]
        assert order["totalCents"] == 500000
        assert [i["amountCents"] for i in order["receivable"]["installments"]] == [250000, 250000]

    async def test_status_only_keeps_installments(self, client, auth, customer):
        created = (await client.post("/api/orders", json=order_payload(customer["id"]), headers=auth)).json()
        order_id = created["order"]["id"]
        before = [i["id"] for i in created["receivable"]["installments"]]

        response = await client.patch(f"/api/orders/{order_id}", json={"status": "entregue"}, headers=auth)

        order = response.json()["order"]
        assert order["status"] == "ENTREGUE"
        assert order["deliveredAt"] is not None
        assert [i["id"] for i in order["receivable"]["installments"]] == before

    async def test_paid_installment_blocks_financial_edit(self, client, auth, customer):
        created = (await client.post("/api/orders", json=order_payload(customer["id"]), headers=auth)).json()
        first = created["receivable"]["installments"][0]

        paid = await client.patch(
            f"/api/receivables/installments/{first['id']}", json={"status": "PAGO"}, headers=auth
        )
        assert paid.status_code == 200
        assert paid.json()["installment"]["paidAt"] is not None

        response = await client.patch(
            f"/api/orders/{created['order']['id']}", json={"discountCents": 1000}, headers=auth
        )
        assert response.status_code == 409


class TestDeleteOrder:

    async def test_delete_removes_receivable(self, client, auth, customer, session_factory):
        created = (await client.post("/api/orders", json=order_payload(customer["id"]), headers=auth)).json()

        response = await client.delete(f"/api/orders/{created['order']['id']}", headers=auth)
        assert response.status_code == 200

        async with session_factory() as session:
            assert await session.scalar(select(func.count(Order.id))) == 0
            assert await session.scalar(select(func.count(Receivable.id))) == 0
            assert await session.scalar(select(func.count(ReceivableInstallment.id))) == 0

    async def test_cancel(self, client, auth, customer):
        created = (await client.post("/api/orders", json=order_payload(customer["id"]), headers=auth)).json()

        response = await client.post(f"/api/orders/{created['order']['id']}/cancel", headers=auth)
        assert response.json()["order"]["status"] == "CANCELADO"


class TestTenantIsolation:

    async def test_other_tenant_gets_not_found(self, client, auth, customer, other_tenant):
        created = (await client.post("/api/orders", json=order_payload(customer["id"]), headers=auth)).json()
        order_id = created["order"]["id"]
        other = other_tenant["headers"]

        assert (await client.get(f"/api/orders/{order_id}", headers=other)).status_code == 404
        assert (await client.delete(f"/api/orders/{order_id}", headers=other)).status_code == 404
        assert (await client.get("/api/orders", headers=other)).json()["orders"] == []

    async def test_cannot_use_other_tenant_client(self, client, customer, other_tenant):
        response = await client.post(
            "/api/orders", json=order_payload(customer["id"]), headers=other_tenant["headers"]
        )
        assert response.status_code == 404
