"""
Marcenaria API - Payables API
Contas a pagar (fornecedores) com parcelas
"""
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.database import get_db
from app.models import Payable, PayableInstallment, User
from app.schemas import PayableCreate, PayableInstallmentUpdate, PayableUpdate
from app.api.auth import get_current_user
from app.api.receivables import apply_installment_update
from app.services.lookups import get_owned, require_supplier
from app.utils.dates import utcnow

router = APIRouter(prefix="/payables", tags=["Payables"])


async def _load(db: AsyncSession, salon_id: str, payable_id: str) -> Payable:
    return await get_owned(db, Payable, salon_id, payable_id, "Conta a pagar não encontrada.")


@router.get("")
async def list_payables(
    supplier_id: Optional[str] = Query(None, alias="supplierId"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    query = select(Payable).where(Payable.salon_id == user.salon_id)
    if supplier_id:
        query = query.where(Payable.supplier_id == supplier_id)

    result = await db.execute(query.order_by(Payable.created_at.desc()))
    return {"payables": [p.to_dict() for p in result.scalars().all()]}


@router.get("/{payable_id}")
async def get_payable(
    payable_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    payable = await _load(db, user.salon_id, payable_id)
    return {"payable": payable.to_dict()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_payable(
    request: PayableCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    await require_supplier(db, user.salon_id, request.supplier_id)

    ordered = sorted(request.installments, key=lambda i: i.due_date)
    payable = Payable(
        salon_id=user.salon_id,
        supplier_id=request.supplier_id,
        description=request.description,
        notes=request.notes,
        total_cents=sum(i.amount_cents for i in ordered),
        installments=[
            PayableInstallment(
                salon_id=user.salon_id,
                number=idx + 1,
                due_date=inst.due_date,
                amount_cents=inst.amount_cents,
                method=inst.method or request.method,
            )
            for idx, inst in enumerate(ordered)
        ],
    )
    db.add(payable)
    await db.commit()

    payable = await _load(db, user.salon_id, payable.id)
    return {"payable": payable.to_dict()}


@router.patch("/installments/{installment_id}")
async def update_payable_installment(
    installment_id: str,
    request: PayableInstallmentUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Baixa/edição de parcela; total da conta é recalculado na mesma transação"""
    installment = await get_owned(
        db, PayableInstallment, user.salon_id, installment_id, "Parcela não encontrada."
    )
    apply_installment_update(installment, request, utcnow())

    update_data = request.model_dump(exclude_unset=True)
    if update_data.get("amount_cents"):
        installment.amount_cents = update_data["amount_cents"]
    if update_data.get("due_date"):
        installment.due_date = update_data["due_date"]

    await db.flush()
    payable = await _load(db, user.salon_id, installment.payable_id)
    payable.total_cents = sum(i.amount_cents for i in payable.installments)
    await db.commit()

    return {"installment": installment.to_dict(), "payable": payable.to_dict()}


@router.patch("/{payable_id}")
async def update_payable(
    payable_id: str,
    request: PayableUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    payable = await _load(db, user.salon_id, payable_id)
    update_data = request.model_dump(exclude_unset=True)

    if "supplier_id" in update_data:
        await require_supplier(db, user.salon_id, update_data["supplier_id"])
        payable.supplier_id = update_data["supplier_id"]
    if update_data.get("description"):
        payable.description = update_data["description"]
    if "notes" in update_data:
        payable.notes = update_data["notes"]

    await db.commit()
    payable = await _load(db, user.salon_id, payable_id)
    return {"payable": payable.to_dict()}
