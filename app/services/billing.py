"""
Marcenaria API - Totals and payment terms
Regras compartilhadas por Pedidos e Orçamentos
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.models.finance import PaymentMode
from app.services.installments import InstallmentPlan, build_monthly_plan


@dataclass(frozen=True)
class Totals:
    subtotal_cents: int
    discount_cents: int
    total_cents: int


@dataclass(frozen=True)
class PaymentTerms:
    """Condição de pagamento já normalizada"""
    mode: str
    method: Optional[str]
    installments_count: int
    paid_now: bool


def line_total(item) -> int:
    return item.quantity * item.unit_price_cents


def calc_totals(items: Sequence, discount_cents: int = 0) -> Totals:
    """subtotal = soma(qtd x preço); total = max(0, subtotal - desconto)"""
    subtotal = sum(line_total(it) for it in items)
    discount = int(discount_cents or 0)
    return Totals(
        subtotal_cents=subtotal,
        discount_cents=discount,
        total_cents=max(0, subtotal - discount),
    )


def normalize_payment_terms(
    mode: Optional[str],
    method: Optional[str],
    installments_count: Optional[int],
    paid_now: bool = False,
) -> PaymentTerms:
    """
    AVISTA (padrão): 1 parcela, paidNow permitido.
    PARCELADO: installmentsCount entre 2 e MAX_INSTALLMENTS, paidNow ignorado.
    """
    mode = mode or PaymentMode.AVISTA.value

    if mode == PaymentMode.PARCELADO.value:
        count = installments_count
        if count is None or not (2 <= count <= settings.MAX_INSTALLMENTS):
            raise ValidationError(
                f"installmentsCount deve ser entre 2 e {settings.MAX_INSTALLMENTS} para PARCELADO."
            )
        return PaymentTerms(mode=mode, method=method, installments_count=count, paid_now=False)

    return PaymentTerms(mode=mode, method=method, installments_count=1, paid_now=bool(paid_now))


def resolve_first_due(
    first_due_date: Optional[datetime],
    expected_delivery_at: Optional[datetime],
    now: datetime,
) -> datetime:
    """firstDueDate -> expectedDeliveryAt -> agora"""
    return first_due_date or expected_delivery_at or now


def plan_for_terms(
    terms: PaymentTerms,
    total_cents: int,
    first_due: datetime,
    now: datetime,
) -> List[InstallmentPlan]:
    """Parcelas mensais para a condição; paidNow quita a primeira em `now`"""
    return build_monthly_plan(
        total_cents,
        terms.installments_count,
        first_due,
        method=terms.method,
        paid_now=terms.paid_now,
        paid_at=now if terms.paid_now else None,
    )
