"""
Marcenaria API - Receivables API
Contas a receber e baixa de parcelas
"""
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.database import get_db
from app.models import InstallmentStatus, Order, Receivable, ReceivableInstallment, User
from app.schemas import InstallmentUpdate, ReceivableCreate, ReceivableUpdate
from app.api.auth import get_current_user
from app.core import ConflictError
from app.services.lookups import get_owned
from app.services.orders import build_receivable_installments
from app.services.installments import InstallmentPlan
from app.utils.dates import utcnow

router = APIRouter(prefix="/receivables", tags=["Receivables"])


def apply_installment_update(installment, data, now):
    """
    PAGO grava paidAt (informado ou agora); outro status limpa paidAt.
    paidAt sozinho também pode ser corrigido.
    """
    update_data = data.model_dump(exclude_unset=True)

    if update_data.get("method"):
        installment.method = update_data["method"]

    new_status = update_data.get("status")
    if new_status:
        installment.status = new_status
        if new_status == InstallmentStatus.PAGO.value:
            installment.paid_at = update_data.get("paid_at") or now
        else:
            installment.paid_at = None
    elif "paid_at" in update_data:
        installment.paid_at = update_data["paid_at"]


async def _load(db: AsyncSession, salon_id: str, receivable_id: str) -> Receivable:
    return await get_owned(db, Receivable, salon_id, receivable_id, "Conta a receber não encontrada.")


@router.get("")
async def list_receivables(
    order_id: Optional[str] = Query(None, alias="orderId"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    query = select(Receivable).where(Receivable.salon_id == user.salon_id)
    if order_id:
        query = query.where(Receivable.order_id == order_id)

    result = await db.execute(query.order_by(Receivable.created_at.desc()))
    return {"receivables": [r.to_dict() for r in result.scalars().all()]}


@router.get("/{receivable_id}")
async def get_receivable(
    receivable_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    receivable = await _load(db, user.salon_id, receivable_id)
    return {"receivable": receivable.to_dict()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_receivable(
    request: ReceivableCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Conta a receber manual para um pedido (total = soma das parcelas)"""
    order = await get_owned(db, Order, user.salon_id, request.order_id, "Pedido não encontrado.")
    if order.receivable:
        raise ConflictError("Pedido já possui conta a receber.")

    ordered = sorted(request.installments, key=lambda i: i.due_date)
    plan = [
        InstallmentPlan(
            number=idx + 1,
            due_date=inst.due_date,
            amount_cents=inst.amount_cents,
            method=inst.method or request.method,
        )
        for idx, inst in enumerate(ordered)
    ]

    receivable = Receivable(
        salon_id=user.salon_id,
        order_id=order.id,
        total_cents=sum(p.amount_cents for p in plan),
        method=request.method,
        installments=build_receivable_installments(user.salon_id, plan),
    )
    db.add(receivable)
    await db.commit()

    receivable = await _load(db, user.salon_id, receivable.id)
    return {"receivable": receivable.to_dict()}


@router.patch("/installments/{installment_id}")
async def update_receivable_installment(
    installment_id: str,
    request: InstallmentUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Baixa/estorno de parcela"""
    installment = await get_owned(
        db, ReceivableInstallment, user.salon_id, installment_id, "Parcela não encontrada."
    )
    apply_installment_update(installment, request, utcnow())
    await db.commit()
    return {"installment": installment.to_dict()}


@router.patch("/{receivable_id}")
async def update_receivable(
    receivable_id: str,
    request: ReceivableUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    receivable = await _load(db, user.salon_id, receivable_id)
    if "method" in request.model_fields_set:
        receivable.method = request.method
    await db.commit()

    receivable = await _load(db, user.salon_id, receivable_id)
    return {"receivable": receivable.to_dict()}
