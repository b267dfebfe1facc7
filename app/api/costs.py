"""
Marcenaria API - Costs API
Custos fixos/variáveis, recorrência mensal e custo diário
"""
import uuid
from datetime import datetime
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from app.database import get_db
from app.models import Cost, CostType, User
from app.schemas import CostCreate, CostUpdate
from app.api.auth import get_current_user
from app.core import ConflictError, ValidationError, settings
from app.services.cashflow import cost_summary
from app.services.lookups import get_owned, require_supplier
from app.services.recurring_costs import ensure_recurring_costs
from app.utils.dates import month_key, parse_month, to_naive_utc, utcnow

router = APIRouter(prefix="/costs", tags=["Costs"])

COST_TYPES = {t.value for t in CostType}


async def _load(db: AsyncSession, salon_id: str, cost_id: str) -> Cost:
    return await get_owned(db, Cost, salon_id, cost_id, "Custo não encontrado.")


@router.get("")
async def list_costs(
    month: Optional[str] = Query(None),
    type_filter: Optional[str] = Query(None, alias="type"),
    supplier_id: Optional[str] = Query(None, alias="supplierId"),
    start: Optional[datetime] = Query(None, alias="from"),
    end: Optional[datetime] = Query(None, alias="to"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Com month: materializa os recorrentes do mês antes de listar"""
    query = select(Cost).where(Cost.salon_id == user.salon_id)

    if month:
        parse_month(month)
        await ensure_recurring_costs(db, user.salon_id, month)
        query = query.where(Cost.year_month == month)
    else:
        if start:
            query = query.where(Cost.occurred_at >= to_naive_utc(start))
        if end:
            query = query.where(Cost.occurred_at < to_naive_utc(end))

    if type_filter:
        wanted = type_filter.strip().upper()
        if wanted not in COST_TYPES:
            raise ValidationError("type inválido (use FIXO ou VARIAVEL).")
        query = query.where(Cost.type == wanted)
    if supplier_id:
        query = query.where(Cost.supplier_id == supplier_id)

    result = await db.execute(query.order_by(Cost.occurred_at.desc(), Cost.created_at.desc()))
    return {"costs": [c.to_dict() for c in result.scalars().all()]}


@router.get("/summary")
async def get_cost_summary(
    month: Optional[str] = Query(None),
    work_days: Optional[int] = Query(None, alias="workDays"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Custo fixo, variável e diário (total / dias úteis)"""
    month = month or month_key(utcnow())
    parse_month(month)

    work_days = settings.DEFAULT_WORK_DAYS if work_days is None else work_days
    if work_days <= 0:
        raise ValidationError("workDays deve ser maior que zero.")

    await ensure_recurring_costs(db, user.salon_id, month)
    return await cost_summary(db, user.salon_id, month, work_days)


@router.get("/{cost_id}")
async def get_cost(
    cost_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    cost = await _load(db, user.salon_id, cost_id)
    return {"cost": cost.to_dict()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_cost(
    request: CostCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    await require_supplier(db, user.salon_id, request.supplier_id)

    occurred_at = request.occurred_at or utcnow()
    group_id = request.recurring_group_id
    if request.is_recurring and not group_id:
        group_id = str(uuid.uuid4())

    cost = Cost(
        salon_id=user.salon_id,
        supplier_id=request.supplier_id,
        type=request.type or CostType.FIXO.value,
        name=request.name,
        description=request.description,
        category=request.category,
        amount_cents=request.amount_cents,
        occurred_at=occurred_at,
        year_month=month_key(occurred_at),
        is_recurring=request.is_recurring,
        recurring_group_id=group_id,
    )
    db.add(cost)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Grupo recorrente já possui custo neste mês.")

    cost = await _load(db, user.salon_id, cost.id)
    return {"cost": cost.to_dict()}


@router.patch("/{cost_id}")
async def update_cost(
    cost_id: str,
    request: CostUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """isRecurring=false encerra o grupo a partir deste mês"""
    cost = await _load(db, user.salon_id, cost_id)
    update_data = request.model_dump(exclude_unset=True)

    if "supplier_id" in update_data:
        await require_supplier(db, user.salon_id, update_data["supplier_id"])
        cost.supplier_id = update_data["supplier_id"]

    for field in ("type", "name", "amount_cents"):
        if update_data.get(field) is not None:
            setattr(cost, field, update_data[field])
    for field in ("description", "category"):
        if field in update_data:
            setattr(cost, field, update_data[field])

    if update_data.get("occurred_at"):
        cost.occurred_at = update_data["occurred_at"]
        cost.year_month = month_key(cost.occurred_at)

    if update_data.get("is_recurring") is not None:
        cost.is_recurring = update_data["is_recurring"]
        if cost.is_recurring and not cost.recurring_group_id:
            cost.recurring_group_id = str(uuid.uuid4())

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Grupo recorrente já possui custo neste mês.")

    cost = await _load(db, user.salon_id, cost_id)
    return {"cost": cost.to_dict()}


@router.delete("/{cost_id}")
async def delete_cost(
    cost_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    cost = await _load(db, user.salon_id, cost_id)
    await db.delete(cost)
    await db.commit()
    return {"ok": True}
