"""
Marcenaria API - Dashboard API
Resumo da semana e do mês para a tela inicial
"""
from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.database import get_db
from app.models import (
    Client,
    Order,
    OrderStatus,
    PayableInstallment,
    ReceivableInstallment,
    SOLD_ORDER_STATUSES,
    User
)
from app.api.auth import get_current_user
from app.utils.dates import iso, month_key, parse_month, to_naive_utc, utcnow

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])

IN_PROGRESS_ORDER_STATUSES = [
    OrderStatus.PEDIDO.value,
    OrderStatus.EM_PRODUCAO.value,
    OrderStatus.PRONTO.value,
]


def week_monday(value: datetime) -> datetime:
    """Segunda-feira 00:00 da semana de `value`"""
    day = datetime(value.year, value.month, value.day)
    return day - timedelta(days=day.weekday())


async def _amounts_by_day(db: AsyncSession, model, salon_id: str, start: datetime, end: datetime) -> dict:
    result = await db.execute(
        select(model.due_date, model.amount_cents).where(
            model.salon_id == salon_id,
            model.due_date >= start,
            model.due_date < end,
        )
    )
    totals = {}
    for due_date, amount in result.all():
        key = due_date.date().isoformat()
        totals[key] = totals.get(key, 0) + amount
    return totals


@router.get("/overview")
async def overview(
    week_start: Optional[datetime] = Query(None, alias="weekStart"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    now = utcnow()

    clients_count = await db.scalar(
        select(func.count(Client.id)).where(Client.salon_id == user.salon_id)
    )

    month_start, month_end = parse_month(month_key(now))
    orders_row = (await db.execute(
        select(func.count(Order.id), func.coalesce(func.sum(Order.total_cents), 0)).where(
            Order.salon_id == user.salon_id,
            Order.status.in_(SOLD_ORDER_STATUSES),
            Order.created_at >= month_start,
            Order.created_at < month_end,
        )
    )).one()

    deliveries = await db.execute(
        select(Order)
        .where(
            Order.salon_id == user.salon_id,
            Order.expected_delivery_at.isnot(None),
            Order.status.in_(IN_PROGRESS_ORDER_STATUSES),
        )
        .order_by(Order.expected_delivery_at)
        .limit(10)
    )

    start = week_monday(to_naive_utc(week_start) if week_start else now)
    end = start + timedelta(days=7)
    receivables = await _amounts_by_day(db, ReceivableInstallment, user.salon_id, start, end)
    payables = await _amounts_by_day(db, PayableInstallment, user.salon_id, start, end)

    week = []
    for offset in range(7):
        day = (start + timedelta(days=offset)).date().isoformat()
        week.append({
            "date": day,
            "receivablesCents": receivables.get(day, 0),
            "payablesCents": payables.get(day, 0),
        })

    return {
        "clientsCount": int(clients_count or 0),
        "ordersMonth": {
            "month": month_key(now),
            "count": int(orders_row[0] or 0),
            "totalCents": int(orders_row[1] or 0),
        },
        "nextDeliveries": [
            {
                "id": o.id,
                "client": o.client.to_summary() if o.client else None,
                "status": o.status,
                "expectedDeliveryAt": iso(o.expected_delivery_at),
                "totalCents": o.total_cents,
            }
            for o in deliveries.scalars().all()
        ],
        "weekStart": iso(start),
        "week": week,
    }
