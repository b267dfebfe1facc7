"""
Marcenaria API - Budget service
Criação, edição completa e transições de status de orçamentos
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError
from app.models import (
    Budget,
    BudgetInstallment,
    BudgetItem,
    BudgetStatus,
    BUDGET_TRANSITIONS,
    PaymentMode
)
from app.schemas import BudgetCreate, BudgetFullUpdate
from app.services.billing import Totals, calc_totals, resolve_first_due
from app.services.installments import InstallmentPlan, build_custom_plan, build_monthly_plan
from app.services.lookups import get_owned, require_client
from app.utils.dates import utcnow


def ensure_editable(budget: Budget):
    """APROVADO e CANCELADO são estados finais"""
    if budget.status == BudgetStatus.APROVADO.value:
        raise ConflictError("Orçamento aprovado não pode ser alterado.")
    if budget.status == BudgetStatus.CANCELADO.value:
        raise ConflictError("Orçamento cancelado não pode ser alterado.")


def ensure_transition(budget: Budget, target: str):
    ensure_editable(budget)
    if target == budget.status:
        return
    if target not in BUDGET_TRANSITIONS.get(budget.status, set()):
        raise ConflictError(f"Transição de {budget.status} para {target} não permitida.")


def plan_budget_installments(data: BudgetCreate, totals: Totals, first_due: datetime) -> List[InstallmentPlan]:
    """
    PARCELADO com lista: valida e usa as parcelas informadas.
    PARCELADO sem lista: gera plano mensal.
    AVISTA: sem parcelas gravadas.
    """
    if data.payment_mode != PaymentMode.PARCELADO.value:
        return []

    if data.installments:
        return build_custom_plan(
            data.installments, totals.total_cents, data.installments_count, data.payment_method
        )

    return build_monthly_plan(totals.total_cents, data.installments_count, first_due)


def _apply(budget: Budget, data: BudgetCreate, now: datetime):
    totals = calc_totals(data.items, data.discount_cents)
    first_due = resolve_first_due(data.first_due_date, data.expected_delivery_at, now)
    plan = plan_budget_installments(data, totals, first_due)

    budget.client_id = data.client_id
    budget.expected_delivery_at = data.expected_delivery_at
    budget.notes = data.notes
    budget.subtotal_cents = totals.subtotal_cents
    budget.discount_cents = totals.discount_cents
    budget.total_cents = totals.total_cents
    budget.payment_mode = data.payment_mode
    budget.payment_method = data.payment_method
    budget.installments_count = data.installments_count
    # data base resolvida: o plano gravado e a aprovação usam a mesma
    budget.first_due_date = plan[0].due_date if plan else first_due
    budget.items = [
        BudgetItem(
            position=idx,
            name=it.name,
            description=it.description,
            quantity=it.quantity,
            unit_price_cents=it.unit_price_cents,
            total_cents=it.quantity * it.unit_price_cents,
        )
        for idx, it in enumerate(data.items)
    ]
    budget.installments = [
        BudgetInstallment(
            number=p.number,
            due_date=p.due_date,
            amount_cents=p.amount_cents,
            is_custom=p.is_custom,
        )
        for p in plan
    ]


async def create_budget(
    db: AsyncSession,
    salon_id: str,
    data: BudgetCreate,
    now: Optional[datetime] = None,
) -> Budget:
    now = now or utcnow()
    await require_client(db, salon_id, data.client_id)

    budget = Budget(salon_id=salon_id, status=BudgetStatus.RASCUNHO.value, items=[], installments=[])
    _apply(budget, data, now)
    db.add(budget)
    await db.commit()
    return budget


async def replace_budget(
    db: AsyncSession,
    salon_id: str,
    budget_id: str,
    data: BudgetFullUpdate,
    now: Optional[datetime] = None,
) -> Budget:
    """Edição completa: substitui itens e parcelas numa única transação"""
    now = now or utcnow()
    budget = await get_owned(db, Budget, salon_id, budget_id, "Orçamento não encontrado.")
    ensure_editable(budget)

    if data.status:
        _check_status_change(budget, data.status)

    await require_client(db, salon_id, data.client_id)
    _apply(budget, data, now)
    if data.status:
        _set_status(budget, data.status, now)

    await db.commit()
    return budget


def _check_status_change(budget: Budget, status: str):
    if status == BudgetStatus.APROVADO.value:
        raise ConflictError("Use a rota de aprovação para aprovar o orçamento.")
    ensure_transition(budget, status)


def _set_status(budget: Budget, status: str, now: datetime):
    budget.status = status
    if status == BudgetStatus.ENVIADO.value and not budget.sent_at:
        budget.sent_at = now


def apply_status(budget: Budget, status: str, now: datetime):
    """Valida a transição (APROVADO só pela aprovação) e aplica"""
    _check_status_change(budget, status)
    _set_status(budget, status, now)


async def change_status(
    db: AsyncSession,
    salon_id: str,
    budget_id: str,
    status: str,
    now: Optional[datetime] = None,
) -> Budget:
    """send/cancel e PATCH de status (APROVADO só pela aprovação)"""
    now = now or utcnow()
    budget = await get_owned(db, Budget, salon_id, budget_id, "Orçamento não encontrado.")

    apply_status(budget, status, now)
    await db.commit()
    return budget


async def delete_budget(db: AsyncSession, salon_id: str, budget_id: str):
    budget = await get_owned(db, Budget, salon_id, budget_id, "Orçamento não encontrado.")
    if budget.status == BudgetStatus.APROVADO.value:
        raise ConflictError("Orçamento aprovado não pode ser excluído.")

    await db.delete(budget)
    await db.commit()
