"""
Marcenaria API - Cash-flow aggregation
Entradas e saídas em intervalos semiabertos [from, to)

Entradas: atendimentos FINALIZADOS (preço do serviço), parcelas a receber
PAGAS (por paidAt) e lançamentos manuais IN.
Saídas: lançamentos manuais OUT, parcelas a pagar PAGAS (por paidAt) e
custos (por occurredAt).
"""
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import (
    Appointment,
    AppointmentStatus,
    CashTransaction,
    CashType,
    Cost,
    CostType,
    InstallmentStatus,
    Payable,
    PayableInstallment,
    Receivable,
    ReceivableInstallment,
    Service
)
from app.utils.dates import EPOCH, iso, parse_month


async def _scalar_sum(db: AsyncSession, stmt) -> int:
    value = await db.scalar(stmt)
    return int(value or 0)


async def calc_cashflow(db: AsyncSession, salon_id: str, start: datetime, end: datetime) -> dict:
    appointments_in = await _scalar_sum(db, (
        select(func.coalesce(func.sum(Service.price), 0))
        .select_from(Appointment)
        .join(Service, Service.id == Appointment.service_id)
        .where(
            Appointment.salon_id == salon_id,
            Appointment.status == AppointmentStatus.FINALIZADO.value,
            Appointment.start_at >= start,
            Appointment.start_at < end,
        )
    ))

    receivables_in = await _scalar_sum(db, (
        select(func.coalesce(func.sum(ReceivableInstallment.amount_cents), 0))
        .where(
            ReceivableInstallment.salon_id == salon_id,
            ReceivableInstallment.status == InstallmentStatus.PAGO.value,
            ReceivableInstallment.paid_at >= start,
            ReceivableInstallment.paid_at < end,
        )
    ))

    manual_in, manual_out = 0, 0
    result = await db.execute(
        select(CashTransaction.type, func.coalesce(func.sum(CashTransaction.amount_cents), 0))
        .where(
            CashTransaction.salon_id == salon_id,
            CashTransaction.occurred_at >= start,
            CashTransaction.occurred_at < end,
        )
        .group_by(CashTransaction.type)
    )
    for tx_type, total in result.all():
        if tx_type == CashType.IN.value:
            manual_in = int(total)
        elif tx_type == CashType.OUT.value:
            manual_out = int(total)

    payables_out = await _scalar_sum(db, (
        select(func.coalesce(func.sum(PayableInstallment.amount_cents), 0))
        .where(
            PayableInstallment.salon_id == salon_id,
            PayableInstallment.status == InstallmentStatus.PAGO.value,
            PayableInstallment.paid_at >= start,
            PayableInstallment.paid_at < end,
        )
    ))

    costs_out = await _scalar_sum(db, (
        select(func.coalesce(func.sum(Cost.amount_cents), 0))
        .where(
            Cost.salon_id == salon_id,
            Cost.occurred_at >= start,
            Cost.occurred_at < end,
        )
    ))

    in_cents = appointments_in + receivables_in + manual_in
    out_cents = manual_out + payables_out + costs_out
    return {
        "inCents": in_cents,
        "outCents": out_cents,
        "balanceCents": in_cents - out_cents,
        "breakdown": {
            "appointmentsInCents": appointments_in,
            "receivablesInCents": receivables_in,
            "manualInCents": manual_in,
            "manualOutCents": manual_out,
            "payablesOutCents": payables_out,
            "costsOutCents": costs_out,
        },
    }


async def running_cashflow(db: AsyncSession, salon_id: str, start: datetime, end: datetime) -> dict:
    """Saldo anterior (desde 1970 até from) + movimento do período"""
    previous = await calc_cashflow(db, salon_id, EPOCH, start)
    period = await calc_cashflow(db, salon_id, start, end)

    previous_balance = previous["balanceCents"]
    return {
        "previousBalanceCents": previous_balance,
        "period": {"from": iso(start), "to": iso(end), "netCents": period["balanceCents"], **period},
        "currentBalanceCents": previous_balance + period["balanceCents"],
    }


async def receivables_by_month(db: AsyncSession, salon_id: str, month: str) -> dict:
    """Parcelas a receber com vencimento no mês"""
    start, end = parse_month(month)
    result = await db.execute(
        select(ReceivableInstallment)
        .where(
            ReceivableInstallment.salon_id == salon_id,
            ReceivableInstallment.due_date >= start,
            ReceivableInstallment.due_date < end,
        )
        .options(selectinload(ReceivableInstallment.receivable).selectinload(Receivable.order))
        .order_by(ReceivableInstallment.due_date)
    )
    installments = result.scalars().all()

    expected = sum(i.amount_cents for i in installments)
    received = sum(i.amount_cents for i in installments if i.status == InstallmentStatus.PAGO.value)

    items = []
    for inst in installments:
        order = inst.receivable.order if inst.receivable else None
        items.append({
            **inst.to_dict(),
            "orderId": order.id if order else None,
            "client": order.client.to_summary() if order and order.client else None,
        })

    return {
        "month": month,
        "expectedCents": expected,
        "receivedCents": received,
        "openCents": max(0, expected - received),
        "items": items,
    }


async def payables_by_month(db: AsyncSession, salon_id: str, month: str) -> dict:
    """Parcelas a pagar com vencimento no mês"""
    start, end = parse_month(month)
    result = await db.execute(
        select(PayableInstallment)
        .where(
            PayableInstallment.salon_id == salon_id,
            PayableInstallment.due_date >= start,
            PayableInstallment.due_date < end,
        )
        .options(selectinload(PayableInstallment.payable))
        .order_by(PayableInstallment.due_date)
    )
    installments = result.scalars().all()

    expected = sum(i.amount_cents for i in installments)
    paid = sum(i.amount_cents for i in installments if i.status == InstallmentStatus.PAGO.value)

    items = []
    for inst in installments:
        payable: Payable = inst.payable
        items.append({
            **inst.to_dict(),
            "description": payable.description if payable else None,
            "supplier": payable.supplier.to_summary() if payable and payable.supplier else None,
        })

    return {
        "month": month,
        "expectedCents": expected,
        "paidCents": paid,
        "openCents": max(0, expected - paid),
        "items": items,
    }


def daily_cost(total_cents: int, work_days: int) -> int:
    """round(total / workDays), meio para cima"""
    return (2 * total_cents + work_days) // (2 * work_days)


async def cost_summary(db: AsyncSession, salon_id: str, month: str, work_days: int) -> dict:
    start, end = parse_month(month)
    result = await db.execute(
        select(Cost.type, func.coalesce(func.sum(Cost.amount_cents), 0))
        .where(
            Cost.salon_id == salon_id,
            Cost.occurred_at >= start,
            Cost.occurred_at < end,
        )
        .group_by(Cost.type)
    )
    by_type = {cost_type: int(total) for cost_type, total in result.all()}

    fixed = by_type.get(CostType.FIXO.value, 0)
    variable = by_type.get(CostType.VARIAVEL.value, 0)
    total = fixed + variable
    return {
        "month": month,
        "workDays": work_days,
        "fixedCents": fixed,
        "variableCents": variable,
        "totalCents": total,
        "dailyCents": daily_cost(total, work_days),
    }
