"""
Orçamentos: status, parcelas personalizadas, aprovação atômica e PDF.
"""
from datetime import datetime

import pytest_asyncio
from sqlalchemy import func, select

from app.models import Budget, Client, Order, Receivable, ReceivableInstallment, Salon
from app.schemas import BudgetCreate
from app.services import approval
from app.services.budgets import create_budget


def budget_payload(client_id, **overrides):
    payload = {
        "clientId": client_id,
        "items": [{"name": "Guarda-roupa", "quantity": 1, "unitPriceCents": 300000}],
        "paymentMode": "PARCELADO",
        "paymentMethod": "BOLETO",
        "installmentsCount": 3,
        "firstDueDate": "2024-05-10",
        "notes": "MDF branco",
    }
    payload.update(overrides)
    return payload


@pytest_asyncio.fixture
async def budget(client, auth, customer):
    response = await client.post("/api/budgets", json=budget_payload(customer["id"]), headers=auth)
    assert response.status_code == 201, response.text
    return response.json()["budget"]


class TestCreateBudget:

    async def test_generated_plan(self, budget):
        assert budget["status"] == "RASCUNHO"
        assert budget["totalCents"] == 300000
        assert [i["amountCents"] for i in budget["installments"]] == [100000, 100000, 100000]
        assert not any(i["isCustom"] for i in budget["installments"])

    async def test_custom_installments(self, client, auth, customer):
        payload = budget_payload(
            customer["id"],
            installmentsCount=2,
            installments=[
                {"dueDate": "2024-07-01", "amountCents": 200000},
                {"dueDate": "2024-06-01", "amountCents": 100000},
            ],
        )
        response = await client.post("/api/budgets", json=payload, headers=auth)

        assert response.status_code == 201, response.text
        installments = response.json()["budget"]["installments"]
        assert [i["amountCents"] for i in installments] == [100000, 200000]
        assert all(i["isCustom"] for i in installments)

    async def test_custom_installments_sum_mismatch(self, client, auth, customer):
        payload = budget_payload(
            customer["id"],
            installmentsCount=2,
            installments=[
                {"dueDate": "2024-06-01", "amountCents": 100000},
                {"dueDate": "2024-07-01", "amountCents": 100000},
            ],
        )
        response = await client.post("/api/budgets", json=payload, headers=auth)

        assert response.status_code == 400
        assert "Diferença: 100000" in response.json()["message"]

    async def test_custom_installments_require_parcelado(self, client, auth, customer):
        payload = budget_payload(
            customer["id"],
            paymentMode="AVISTA",
            installments=[
                {"dueDate": "2024-06-01", "amountCents": 150000},
                {"dueDate": "2024-07-01", "amountCents": 150000},
            ],
        )
        response = await client.post("/api/budgets", json=payload, headers=auth)
        assert response.status_code == 400


class TestBudgetStatus:

    async def test_send_then_cancel_locks(self, client, auth, budget):
        sent = await client.post(f"/api/budgets/{budget['id']}/send", headers=auth)
        assert sent.json()["budget"]["status"] == "ENVIADO"
        assert sent.json()["budget"]["sentAt"] is not None

        cancelled = await client.post(f"/api/budgets/{budget['id']}/cancel", headers=auth)
        assert cancelled.json()["budget"]["status"] == "CANCELADO"

        response = await client.patch(f"/api/budgets/{budget['id']}", json={"notes": "x"}, headers=auth)
        assert response.status_code == 409

        response = await client.post(f"/api/budgets/{budget['id']}/approve", headers=auth)
        assert response.status_code == 409

    async def test_patch_cannot_approve(self, client, auth, budget):
        response = await client.patch(f"/api/budgets/{budget['id']}", json={"status": "APROVADO"}, headers=auth)
        assert response.status_code == 409

    async def test_full_update_replaces_items(self, client, auth, budget, customer):
        payload = budget_payload(
            customer["id"],
            items=[{"name": "Cômoda", "quantity": 2, "unitPriceCents": 80000}],
            installmentsCount=2,
        )
        response = await client.patch(f"/api/budgets/{budget['id']}/full", json=payload, headers=auth)

        assert response.status_code == 200, response.text
        updated = response.json()["budget"]
        assert updated["totalCents"] == 160000
        assert [i["name"] for i in updated["items"]] == ["Cômoda"]
        assert len(updated["installments"]) == 2


class TestApproval:

    async def test_approve_creates_order_and_receivable(self, client, auth, budget):
        response = await client.post(f"/api/budgets/{budget['id']}/approve", headers=auth)

        assert response.status_code == 200, response.text
        body = response.json()
        assert body["budget"]["status"] == "APROVADO"
        assert body["budget"]["approvedOrderId"] == body["order"]["id"]
        assert body["order"]["status"] == "PEDIDO"
        assert body["order"]["totalCents"] == 300000
        assert [i["name"] for i in body["order"]["items"]] == ["Guarda-roupa"]

        installments = body["receivable"]["installments"]
        assert sum(i["amountCents"] for i in installments) == 300000
        assert [i["dueDate"][:10] for i in installments] == ["2024-05-10", "2024-06-10", "2024-07-10"]
        assert all(i["status"] == "PENDENTE" and i["method"] == "BOLETO" for i in installments)

    async def test_second_approval_conflicts(self, client, auth, budget):
        first = await client.post(f"/api/budgets/{budget['id']}/approve", headers=auth)
        assert first.status_code == 200

        second = await client.post(f"/api/budgets/{budget['id']}/approve", headers=auth)
        assert second.status_code == 409

        deleted = await client.delete(f"/api/budgets/{budget['id']}", headers=auth)
        assert deleted.status_code == 409

        order_deleted = await client.delete(f"/api/orders/{first.json()['order']['id']}", headers=auth)
        assert order_deleted.status_code == 409

    async def test_custom_installments_copied(self, client, auth, customer):
        payload = budget_payload(
            customer["id"],
            installmentsCount=2,
            installments=[
                {"dueDate": "2024-06-01", "amountCents": 50000},
                {"dueDate": "2024-08-01", "amountCents": 250000},
            ],
        )
        created = (await client.post("/api/budgets", json=payload, headers=auth)).json()["budget"]

        response = await client.post(f"/api/budgets/{created['id']}/approve", headers=auth)

        installments = response.json()["receivable"]["installments"]
        assert [i["amountCents"] for i in installments] == [50000, 250000]
        assert [i["dueDate"][:10] for i in installments] == ["2024-06-01", "2024-08-01"]

    async def test_failure_rolls_back_everything(self, client, auth, budget, session_factory, monkeypatch):
        def broken_receivable(order, plan):
            raise RuntimeError("falha simulada")

        monkeypatch.setattr(approval, "build_receivable", broken_receivable)

        response = await client.post(f"/api/budgets/{budget['id']}/approve", headers=auth)
        assert response.status_code == 500
        assert response.json() == {"message": "Erro interno."}

        async with session_factory() as session:
            assert await session.scalar(select(func.count(Order.id))) == 0
            assert await session.scalar(select(func.count(Receivable.id))) == 0
            assert await session.scalar(select(func.count(ReceivableInstallment.id))) == 0

            stored = await session.get(Budget, budget["id"])
            assert stored.status == "RASCUNHO"
            assert stored.approved_order_id is None

    async def test_other_tenant_cannot_approve(self, client, budget, other_tenant):
        response = await client.post(f"/api/budgets/{budget['id']}/approve", headers=other_tenant["headers"])
        assert response.status_code == 404


class TestBudgetPdf:

    async def test_pdf_download(self, client, auth, budget):
        response = await client.get(f"/api/budgets/{budget['id']}/pdf?download=1", headers=auth)

        assert response.status_code == 200
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"].startswith("attachment")
        assert response.content.startswith(b"%PDF")


class TestApprovedBudgetLock:

    async def test_approved_budget_rejects_edits(self, client, auth, budget, customer):
        approved = await client.post(f"/api/budgets/{budget['id']}/approve", headers=auth)
        assert approved.status_code == 200

        patched = await client.patch(f"/api/budgets/{budget['id']}", json={"notes": "outra cor"}, headers=auth)
        assert patched.status_code == 409

        replaced = await client.patch(
            f"/api/budgets/{budget['id']}/full",
            json=budget_payload(
                customer["id"],
                items=[{"name": "Estante", "quantity": 1, "unitPriceCents": 90000}],
                installmentsCount=2,
            ),
            headers=auth,
        )
        assert replaced.status_code == 409

        for action in ("send", "cancel"):
            response = await client.post(f"/api/budgets/{budget['id']}/{action}", headers=auth)
            assert response.status_code == 409

        stored = (await client.get(f"/api/budgets/{budget['id']}", headers=auth)).json()["budget"]
        assert stored["status"] == "APROVADO"
        assert stored["notes"] == "MDF branco"
        assert [i["name"] for i in stored["items"]] == ["Guarda-roupa"]
        assert [i["amountCents"] for i in stored["installments"]] == [100000, 100000, 100000]


class TestApprovalWithCustomPlan:

    async def test_single_order_receivable_and_installments(self, client, auth, customer, session_factory):
        payload = budget_payload(
            customer["id"],
            installments=[
                {"dueDate": "2024-05-10", "amountCents": 50000},
                {"dueDate": "2024-06-10", "amountCents": 100000},
                {"dueDate": "2024-07-10", "amountCents": 150000},
            ],
        )
        created = (await client.post("/api/budgets", json=payload, headers=auth)).json()["budget"]

        response = await client.post(f"/api/budgets/{created['id']}/approve", headers=auth)
        assert response.status_code == 200, response.text

        async with session_factory() as session:
            assert await session.scalar(select(func.count(Order.id))) == 1
            assert await session.scalar(select(func.count(Receivable.id))) == 1

            rows = (await session.execute(
                select(ReceivableInstallment).order_by(ReceivableInstallment.number)
            )).scalars().all()
            assert [r.amount_cents for r in rows] == [50000, 100000, 150000]
            assert all(r.status == "PENDENTE" for r in rows)


class TestApprovalKeepsQuotedPlan:

    async def test_generated_plan_is_copied(self, db):
        salon = Salon(name="Oficina")
        db.add(salon)
        await db.flush()
        owner = Client(salon_id=salon.id, name="Maria Souza", phone="11988887777")
        db.add(owner)
        await db.commit()

        data = BudgetCreate.model_validate({
            "clientId": owner.id,
            "items": [{"name": "Painel", "quantity": 1, "unitPriceCents": 90000}],
            "paymentMode": "PARCELADO",
            "installmentsCount": 3,
        })
        created = await create_budget(db, salon.id, data, now=datetime(2024, 1, 10))
        assert created.first_due_date == datetime(2024, 1, 10)

        result = await approval.approve_budget(db, salon.id, created.id, now=datetime(2024, 3, 5))

        receivable = await db.scalar(
            select(Receivable)
            .where(Receivable.id == result.receivable_id)
            .execution_options(populate_existing=True)
        )
        assert [i.due_date for i in receivable.installments] == [
            datetime(2024, 1, 10),
            datetime(2024, 2, 10),
            datetime(2024, 3, 10),
        ]
        assert [i.amount_cents for i in receivable.installments] == [30000, 30000, 30000]
