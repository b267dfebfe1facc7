"""
Parcelamento e totais: funções puras de app.services.installments e billing.
"""
from datetime import datetime
from types import SimpleNamespace

import pytest

from app.core.exceptions import ValidationError
from app.services.billing import calc_totals, normalize_payment_terms, resolve_first_due
from app.services.installments import (
    add_months,
    build_custom_plan,
    build_monthly_plan,
    split_into_installments
)
from app.utils.money import format_brl, round_cents


class TestSplitIntoInstallments:

    def test_last_installment_absorbs_remainder(self):
        assert split_into_installments(1000, 3) == [333, 333, 334]

    def test_exact_division(self):
        assert split_into_installments(120000, 4) == [30000, 30000, 30000, 30000]

    @pytest.mark.parametrize("total,count", [(1, 1), (1, 5), (99999, 7), (250000, 24), (0, 3)])
    def test_sum_is_always_total(self, total, count):
        parts = split_into_installments(total, count)
        assert len(parts) == count
        assert sum(parts) == total
        assert all(p >= 0 for p in parts)

    def test_small_total_gives_zero_installments_first(self):
        assert split_into_installments(2, 3) == [0, 0, 2]

    def test_invalid_count(self):
        with pytest.raises(ValueError):
            split_into_installments(100, 0)

    def test_negative_total(self):
        with pytest.raises(ValueError):
            split_into_installments(-1, 2)


class TestMonthlyDueDates:

    def test_month_end_is_clamped(self):
        assert add_months(datetime(2024, 1, 31), 1) == datetime(2024, 2, 29)
        assert add_months(datetime(2023, 1, 31), 1) == datetime(2023, 2, 28)

    def test_year_rollover(self):
        assert add_months(datetime(2024, 11, 15), 3) == datetime(2025, 2, 15)

    def test_plan_numbers_and_dates(self):
        plan = build_monthly_plan(100000, 3, datetime(2024, 12, 10), method="PIX")

        assert [p.number for p in plan] == [1, 2, 3]
        assert [p.due_date for p in plan] == [
            datetime(2024, 12, 10),
            datetime(2025, 1, 10),
            datetime(2025, 2, 10),
        ]
        assert [p.amount_cents for p in plan] == [33333, 33333, 33334]
        assert all(p.status == "PENDENTE" and p.method == "PIX" for p in plan)

    def test_paid_now_settles_first_installment(self):
        paid_at = datetime(2024, 5, 2, 10, 0)
        plan = build_monthly_plan(5000, 1, datetime(2024, 5, 2), paid_now=True, paid_at=paid_at)

        assert plan[0].status == "PAGO"
        assert plan[0].paid_at == paid_at


class TestCustomPlan:

    @staticmethod
    def _inst(day, amount):
        return SimpleNamespace(due_date=datetime(2024, 3, day), amount_cents=amount, method=None)

    def test_sorted_and_renumbered(self):
        plan = build_custom_plan([self._inst(20, 600), self._inst(5, 400)], 1000, 2, method="BOLETO")

        assert [p.amount_cents for p in plan] == [400, 600]
        assert [p.number for p in plan] == [1, 2]
        assert all(p.is_custom and p.method == "BOLETO" for p in plan)

    def test_requires_two_installments(self):
        with pytest.raises(ValidationError, match="pelo menos 2"):
            build_custom_plan([self._inst(5, 1000)], 1000, 1)

    def test_count_must_match(self):
        with pytest.raises(ValidationError, match="installmentsCount é 3"):
            build_custom_plan([self._inst(5, 500), self._inst(6, 500)], 1000, 3)

    def test_sum_must_match_total(self):
        with pytest.raises(ValidationError) as exc:
            build_custom_plan([self._inst(5, 500), self._inst(6, 400)], 1000, 2)
        assert "Diferença: 100" in exc.value.message


class TestTotalsAndTerms:

    def test_totals(self):
        items = [
            SimpleNamespace(quantity=2, unit_price_cents=15000),
            SimpleNamespace(quantity=1, unit_price_cents=5000),
        ]
        totals = calc_totals(items, 3000)

        assert totals.subtotal_cents == 35000
        assert totals.discount_cents == 3000
        assert totals.total_cents == 32000

    def test_discount_larger_than_subtotal_floors_at_zero(self):
        totals = calc_totals([SimpleNamespace(quantity=1, unit_price_cents=1000)], 5000)
        assert totals.total_cents == 0

    def test_avista_forces_single_installment(self):
        terms = normalize_payment_terms("AVISTA", "PIX", 6, paid_now=True)
        assert terms.installments_count == 1
        assert terms.paid_now is True

    def test_default_mode_is_avista(self):
        terms = normalize_payment_terms(None, None, None)
        assert terms.mode == "AVISTA"
        assert terms.installments_count == 1

    def test_parcelado_ignores_paid_now(self):
        terms = normalize_payment_terms("PARCELADO", "CARTAO", 3, paid_now=True)
        assert terms.installments_count == 3
        assert terms.paid_now is False

    @pytest.mark.parametrize("count", [None, 1, 25])
    def test_parcelado_count_bounds(self, count):
        with pytest.raises(ValidationError):
            normalize_payment_terms("PARCELADO", None, count)

    def test_first_due_fallback_order(self):
        now = datetime(2024, 1, 1)
        delivery = datetime(2024, 2, 1)
        first = datetime(2024, 3, 1)

        assert resolve_first_due(first, delivery, now) == first
        assert resolve_first_due(None, delivery, now) == delivery
        assert resolve_first_due(None, None, now) == now


class TestMoney:

    def test_round_half_up(self):
        assert round_cents(2.5) == 3
        assert round_cents(2.4999) == 2
        assert round_cents(1.5 * 3) == 5

    def test_format_brl(self):
        assert format_brl(1234567) == "R$ 12.345,67"
        assert format_brl(5) == "R$ 0,05"
