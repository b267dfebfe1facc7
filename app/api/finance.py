"""
Marcenaria API - Finance API
Fluxo de caixa, contas do mês, categorias e lançamentos manuais
"""
import logging
from collections import defaultdict
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.database import get_db
from app.models import (
    Appointment,
    AppointmentStatus,
    CashCategory,
    CashTransaction,
    User
)
from app.schemas import CashCategoryCreate, CashTransactionCreate, CashTransactionUpdate
from app.api.auth import get_current_user
from app.core import ConflictError, ValidationError
from app.services.cashflow import (
    calc_cashflow,
    payables_by_month,
    receivables_by_month,
    running_cashflow
)
from app.services.lookups import get_owned
from app.utils.dates import iso, require_range, utcnow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/finance", tags=["Finance"])


# === Fluxo de caixa ===

@router.get("/cashflow")
async def get_cashflow(
    start: Optional[datetime] = Query(None, alias="from"),
    end: Optional[datetime] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Saldo anterior + movimento do período + saldo atual"""
    start, end = require_range(start, end)
    return await running_cashflow(db, user.salon_id, start, end)


@router.get("/flow")
async def get_flow(
    start: Optional[datetime] = Query(None, alias="from"),
    end: Optional[datetime] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    start, end = require_range(start, end)
    flow = await calc_cashflow(db, user.salon_id, start, end)
    return {"from": iso(start), "to": iso(end), **flow}


@router.get("/summary")
async def get_summary(
    start: Optional[datetime] = Query(None, alias="from"),
    end: Optional[datetime] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Receita de atendimentos finalizados (por dia e por serviço) + fluxo"""
    start, end = require_range(start, end)

    result = await db.execute(
        select(Appointment)
        .where(
            Appointment.salon_id == user.salon_id,
            Appointment.status == AppointmentStatus.FINALIZADO.value,
            Appointment.start_at >= start,
            Appointment.start_at < end,
        )
        .order_by(Appointment.start_at.desc())
    )
    appointments = result.scalars().all()

    by_day = defaultdict(int)
    by_service = {}
    total = 0
    for appt in appointments:
        price = appt.service.price if appt.service else 0
        total += price
        by_day[appt.start_at.date().isoformat()] += price

        if appt.service:
            entry = by_service.setdefault(appt.service_id, {
                "serviceId": appt.service_id,
                "name": appt.service.name,
                "count": 0,
                "totalCents": 0,
            })
            entry["count"] += 1
            entry["totalCents"] += price

    flow = await calc_cashflow(db, user.salon_id, start, end)
    return {
        "from": iso(start),
        "to": iso(end),
        "finalizedCount": len(appointments),
        "totalCents": total,
        "byDay": [{"date": day, "totalCents": cents} for day, cents in sorted(by_day.items())],
        "byService": sorted(by_service.values(), key=lambda s: s["totalCents"], reverse=True),
        "lastFinalized": [a.to_dict() for a in appointments[:10]],
        "flow": flow,
    }


@router.get("/receivables/month")
async def get_receivables_month(
    month: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return await receivables_by_month(db, user.salon_id, month)


@router.get("/payables/month")
async def get_payables_month(
    month: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    return await payables_by_month(db, user.salon_id, month)


# === Categorias ===

@router.get("/categories")
async def list_categories(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    result = await db.execute(
        select(CashCategory)
        .where(CashCategory.salon_id == user.salon_id)
        .order_by(CashCategory.name)
    )
    return {"categories": [c.to_dict() for c in result.scalars().all()]}


@router.post("/categories", status_code=status.HTTP_201_CREATED)
async def create_category(
    request: CashCategoryCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    existing = await db.execute(
        select(CashCategory.id).where(
            CashCategory.salon_id == user.salon_id,
            CashCategory.name == request.name,
        )
    )
    if existing.scalar_one_or_none():
        raise ConflictError("Categoria já existe.")

    category = CashCategory(salon_id=user.salon_id, name=request.name, type=request.type)
    db.add(category)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Categoria já existe.")

    return {"category": category.to_dict()}


# === Lançamentos manuais ===

async def _check_category(db: AsyncSession, salon_id: str, category_id: Optional[str], tx_type: str):
    """Categoria precisa ser do salão e, se tipada, do mesmo tipo do lançamento"""
    if not category_id:
        return None

    category = await get_owned(db, CashCategory, salon_id, category_id, "Categoria não encontrada.")
    if category.type and category.type != tx_type:
        raise ValidationError(f"Categoria {category.name} é do tipo {category.type}.")
    return category


async def _load_transaction(db: AsyncSession, salon_id: str, transaction_id: str) -> CashTransaction:
    return await get_owned(db, CashTransaction, salon_id, transaction_id, "Lançamento não encontrado.")


@router.get("/transactions")
async def list_transactions(
    start: Optional[datetime] = Query(None, alias="from"),
    end: Optional[datetime] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    start, end = require_range(start, end)
    result = await db.execute(
        select(CashTransaction)
        .where(
            CashTransaction.salon_id == user.salon_id,
            CashTransaction.occurred_at >= start,
            CashTransaction.occurred_at < end,
        )
        .order_by(CashTransaction.occurred_at.desc())
    )
    return {"transactions": [t.to_dict() for t in result.scalars().all()]}


@router.post("/transactions", status_code=status.HTTP_201_CREATED)
async def create_transaction(
    request: CashTransactionCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    await _check_category(db, user.salon_id, request.category_id, request.type)

    transaction = CashTransaction(
        salon_id=user.salon_id,
        category_id=request.category_id,
        type=request.type,
        source="MANUAL",
        name=request.name,
        amount_cents=request.amount_cents,
        occurred_at=request.occurred_at or utcnow(),
        notes=request.notes,
    )
    db.add(transaction)
    await db.commit()

    transaction = await _load_transaction(db, user.salon_id, transaction.id)
    logger.info(f"Lançamento {transaction.type} de {transaction.amount_cents} registrado (salão {user.salon_id})")
    return {"transaction": transaction.to_dict()}


@router.patch("/transactions/{transaction_id}")
async def update_transaction(
    transaction_id: str,
    request: CashTransactionUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    transaction = await _load_transaction(db, user.salon_id, transaction_id)
    update_data = request.model_dump(exclude_unset=True)

    for field in ("type", "name", "amount_cents", "occurred_at"):
        if update_data.get(field) is not None:
            setattr(transaction, field, update_data[field])
    if "notes" in update_data:
        transaction.notes = update_data["notes"]
    if "category_id" in update_data:
        transaction.category_id = update_data["category_id"]

    await _check_category(db, user.salon_id, transaction.category_id, transaction.type)
    await db.commit()

    transaction = await _load_transaction(db, user.salon_id, transaction_id)
    return {"transaction": transaction.to_dict()}


@router.delete("/transactions/{transaction_id}")
async def delete_transaction(
    transaction_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    transaction = await _load_transaction(db, user.salon_id, transaction_id)
    await db.delete(transaction)
    await db.commit()
    return {"ok": True}
