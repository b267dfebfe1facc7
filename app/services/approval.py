"""
Marcenaria API - Budget approval
Converte orçamento em Pedido + Conta a receber numa única transação.

A virada de status é um UPDATE condicional (status ainda aberto); duas
aprovações simultâneas resultam em uma aprovada e outra em conflito.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError
from app.models import (
    Budget,
    BudgetStatus,
    OPEN_BUDGET_STATUSES,
    Order,
    OrderItem,
    OrderStatus,
    PaymentMode,
    Receivable
)
from app.services.billing import resolve_first_due
from app.services.installments import InstallmentPlan, build_monthly_plan
from app.services.lookups import get_owned
from app.services.orders import build_receivable_installments
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ApprovalResult:
    budget_id: str
    order_id: str
    receivable_id: str


def plan_for_approval(budget: Budget, now: datetime) -> List[InstallmentPlan]:
    """
    PARCELADO: copia as parcelas gravadas no orçamento (geradas ou
    personalizadas), as mesmas do PDF enviado ao cliente.
    PARCELADO sem parcelas gravadas: divide em installmentsCount (mín. 2).
    AVISTA: uma parcela com o total.
    Todas nascem PENDENTE com o método do orçamento.
    """
    method = budget.payment_method
    stored = list(budget.installments or [])

    if budget.payment_mode == PaymentMode.PARCELADO.value and stored:
        return [
            InstallmentPlan(
                number=idx + 1,
                due_date=inst.due_date,
                amount_cents=inst.amount_cents,
                method=method,
            )
            for idx, inst in enumerate(sorted(stored, key=lambda i: i.number))
        ]

    first_due = resolve_first_due(budget.first_due_date, budget.expected_delivery_at, now)
    if budget.payment_mode == PaymentMode.PARCELADO.value:
        count = budget.installments_count if (budget.installments_count or 0) >= 2 else 2
        return build_monthly_plan(budget.total_cents, count, first_due, method=method)

    return build_monthly_plan(budget.total_cents, 1, first_due, method=method)


def build_order(budget: Budget, plan: List[InstallmentPlan]) -> Order:
    return Order(
        salon_id=budget.salon_id,
        client_id=budget.client_id,
        status=OrderStatus.PEDIDO.value,
        expected_delivery_at=budget.expected_delivery_at,
        notes=budget.notes,
        subtotal_cents=budget.subtotal_cents,
        discount_cents=budget.discount_cents,
        total_cents=budget.total_cents,
        payment_mode=budget.payment_mode,
        payment_method=budget.payment_method,
        installments_count=len(plan),
        first_due_date=plan[0].due_date if plan else budget.first_due_date,
        paid_now=False,
        items=[
            OrderItem(
                position=it.position,
                name=it.name,
                description=it.description,
                quantity=it.quantity,
                unit_price_cents=it.unit_price_cents,
                total_cents=it.total_cents,
            )
            for it in budget.items
        ],
    )


def build_receivable(order: Order, plan: List[InstallmentPlan]) -> Receivable:
    return Receivable(
        salon_id=order.salon_id,
        order_id=order.id,
        total_cents=order.total_cents,
        method=order.payment_method,
        installments=build_receivable_installments(order.salon_id, plan),
    )


async def approve_budget(
    db: AsyncSession,
    salon_id: str,
    budget_id: str,
    now: Optional[datetime] = None,
) -> ApprovalResult:
    now = now or utcnow()
    budget = await get_owned(db, Budget, salon_id, budget_id, "Orçamento não encontrado.")

    if budget.status == BudgetStatus.APROVADO.value:
        raise ConflictError("Orçamento já aprovado.")
    if budget.status == BudgetStatus.CANCELADO.value:
        raise ConflictError("Orçamento cancelado não pode ser aprovado.")

    try:
        plan = plan_for_approval(budget, now)

        order = build_order(budget, plan)
        db.add(order)
        await db.flush()

        receivable = build_receivable(order, plan)
        db.add(receivable)
        await db.flush()

        result = await db.execute(
            update(Budget)
            .where(
                Budget.id == budget.id,
                Budget.salon_id == salon_id,
                Budget.status.in_(OPEN_BUDGET_STATUSES),
            )
            .values(
                status=BudgetStatus.APROVADO.value,
                approved_at=now,
                approved_order_id=order.id,
                updated_at=now,
            )
        )
        if result.rowcount != 1:
            raise ConflictError("Orçamento já foi aprovado ou cancelado por outra operação.")

        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.info(f"Orçamento {budget.id} aprovado -> pedido {order.id}")
    return ApprovalResult(budget_id=budget.id, order_id=order.id, receivable_id=receivable.id)
