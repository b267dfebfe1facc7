"""
Custos recorrentes, custo diário e saldo de estoque.
"""
from datetime import datetime
from types import SimpleNamespace

import pytest
from sqlalchemy import func, select

from app.core.exceptions import ValidationError
from app.models import Cost, Salon
from app.services.cashflow import daily_cost
from app.services.inventory import compute_stock_balances
from app.services.recurring_costs import ensure_recurring_costs, plan_recurring_costs


def make_cost(year_month, group="g1", recurring=True, amount=50000, occurred_day=5, **kwargs):
    year, month = (int(p) for p in year_month.split("-"))
    defaults = dict(
        salon_id="s1",
        supplier_id=None,
        type="FIXO",
        name="Aluguel",
        description=None,
        category="Estrutura",
        amount_cents=amount,
        occurred_at=datetime(year, month, occurred_day),
        created_at=datetime(year, month, occurred_day),
        year_month=year_month,
        is_recurring=recurring,
        recurring_group_id=group,
    )
    defaults.update(kwargs)
    return SimpleNamespace(**defaults)


class TestPlanRecurringCosts:

    def test_copies_latest_row_into_target_month(self):
        history = [make_cost("2024-01", amount=50000), make_cost("2024-02", amount=55000)]

        rows = plan_recurring_costs(history, "2024-04")

        assert len(rows) == 1
        row = rows[0]
        assert row["amount_cents"] == 55000
        assert row["year_month"] == "2024-04"
        assert row["occurred_at"] == datetime(2024, 4, 1)
        assert row["recurring_group_id"] == "g1"
        assert row["is_recurring"] is True

    def test_group_already_present_is_skipped(self):
        history = [make_cost("2024-03"), make_cost("2024-04")]
        assert plan_recurring_costs(history, "2024-04") == []

    def test_stopped_group_is_not_propagated(self):
        history = [make_cost("2024-01"), make_cost("2024-02", recurring=False)]
        assert plan_recurring_costs(history, "2024-03") == []

    def test_future_rows_are_ignored(self):
        history = [make_cost("2024-06")]
        assert plan_recurring_costs(history, "2024-03") == []

    def test_rows_without_group_are_ignored(self):
        history = [make_cost("2024-01", group=None)]
        assert plan_recurring_costs(history, "2024-02") == []

    def test_one_row_per_group(self):
        history = [
            make_cost("2024-01", group="aluguel"),
            make_cost("2024-01", group="internet", amount=12000, name="Internet"),
        ]
        rows = plan_recurring_costs(history, "2024-02")
        assert sorted(r["recurring_group_id"] for r in rows) == ["aluguel", "internet"]

    def test_same_month_tie_uses_occurred_at(self):
        history = [
            make_cost("2024-01", amount=1000, occurred_day=3),
            make_cost("2024-01", amount=2000, occurred_day=20),
        ]
        rows = plan_recurring_costs(history, "2024-02")
        assert rows[0]["amount_cents"] == 2000

    def test_invalid_month(self):
        with pytest.raises(ValidationError):
            plan_recurring_costs([], "2024-13")


class TestEnsureRecurringCosts:

    async def test_idempotent(self, db):
        salon = Salon(name="Oficina")
        db.add(salon)
        await db.flush()
        db.add(Cost(
            salon_id=salon.id,
            type="FIXO",
            name="Aluguel",
            amount_cents=300000,
            occurred_at=datetime(2024, 1, 10),
            year_month="2024-01",
            is_recurring=True,
            recurring_group_id="aluguel",
        ))
        await db.commit()

        assert await ensure_recurring_costs(db, salon.id, "2024-03") == 1
        assert await ensure_recurring_costs(db, salon.id, "2024-03") == 0

        count = await db.scalar(
            select(func.count(Cost.id)).where(Cost.salon_id == salon.id, Cost.year_month == "2024-03")
        )
        assert count == 1

    async def test_next_month_leaves_previous_row_untouched(self, db):
        salon = Salon(name="Oficina")
        db.add(salon)
        await db.flush()
        db.add(Cost(
            salon_id=salon.id,
            type="FIXO",
            name="Internet",
            amount_cents=12000,
            occurred_at=datetime(2024, 1, 15),
            year_month="2024-01",
            is_recurring=True,
            recurring_group_id="internet",
        ))
        await db.commit()

        month_rows = (
            select(Cost.id, Cost.amount_cents, Cost.occurred_at, Cost.recurring_group_id)
            .where(Cost.salon_id == salon.id, Cost.year_month == "2024-03")
        )

        assert await ensure_recurring_costs(db, salon.id, "2024-03") == 1
        march_before = (await db.execute(month_rows)).all()
        assert len(march_before) == 1

        assert await ensure_recurring_costs(db, salon.id, "2024-04") == 1
        march_after = (await db.execute(month_rows)).all()

        assert march_after == march_before
        assert march_after[0].occurred_at == datetime(2024, 3, 1)

        april = (await db.execute(
            select(Cost.recurring_group_id).where(Cost.salon_id == salon.id, Cost.year_month == "2024-04")
        )).scalars().all()
        assert april == ["internet"]


class TestDailyCost:

    def test_rounds_half_up(self):
        assert daily_cost(100, 22) == 5
        assert daily_cost(110, 22) == 5
        assert daily_cost(33, 22) == 2

    def test_exact(self):
        assert daily_cost(440000, 22) == 20000


class TestStockBalances:

    def test_in_plus_adjust_minus_out(self):
        rows = [
            ("m1", "IN", 10.0),
            ("m1", "OUT", 3.5),
            ("m1", "ADJUST", 1.0),
            ("m2", "OUT", 2.0),
        ]
        balances = compute_stock_balances(rows)

        assert balances["m1"] == pytest.approx(7.5)
        assert balances["m2"] == pytest.approx(-2.0)
