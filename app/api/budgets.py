"""
Marcenaria API - Budgets API
Orçamentos: RASCUNHO -> ENVIADO -> APROVADO (gera pedido) | CANCELADO
"""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_

from app.database import get_db
from app.models import Budget, BudgetStatus, Client, Order, Salon, User
from app.schemas import BudgetCreate, BudgetFullUpdate, BudgetUpdate
from app.api.auth import get_current_user
from app.core import ValidationError
from app.services import budgets as budget_service
from app.services.approval import approve_budget
from app.services.lookups import get_owned
from app.utils.budget_pdf import generate_budget_pdf
from app.utils.dates import utcnow
from app.utils.money import only_digits

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/budgets", tags=["Budgets"])

BUDGET_STATUSES = {s.value for s in BudgetStatus}


async def _load(db: AsyncSession, salon_id: str, budget_id: str) -> Budget:
    return await get_owned(db, Budget, salon_id, budget_id, "Orçamento não encontrado.")


@router.get("")
async def list_budgets(
    q: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    query = (
        select(Budget)
        .join(Client, Client.id == Budget.client_id)
        .where(Budget.salon_id == user.salon_id)
    )

    if status_filter:
        wanted = status_filter.strip().upper()
        if wanted not in BUDGET_STATUSES:
            raise ValidationError("status inválido.")
        query = query.where(Budget.status == wanted)

    if q and q.strip():
        term = q.strip()
        conditions = [Client.name.ilike(f"%{term}%"), Budget.notes.ilike(f"%{term}%")]
        digits = only_digits(term)
        if digits:
            conditions.append(Client.phone.contains(digits))
        query = query.where(or_(*conditions))

    result = await db.execute(query.order_by(Budget.created_at.desc()))
    return {"budgets": [b.to_dict() for b in result.scalars().all()]}


@router.get("/{budget_id}")
async def get_budget(
    budget_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    budget = await _load(db, user.salon_id, budget_id)
    return {"budget": budget.to_dict()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_budget(
    request: BudgetCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    created = await budget_service.create_budget(db, user.salon_id, request)
    budget = await _load(db, user.salon_id, created.id)
    return {"budget": budget.to_dict()}


@router.patch("/{budget_id}")
async def update_budget(
    budget_id: str,
    request: BudgetUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Atualiza status, previsão de entrega e observações"""
    budget = await _load(db, user.salon_id, budget_id)
    budget_service.ensure_editable(budget)

    update_data = request.model_dump(exclude_unset=True)
    if "expected_delivery_at" in update_data:
        budget.expected_delivery_at = update_data["expected_delivery_at"]
    if "notes" in update_data:
        budget.notes = update_data["notes"]

    if update_data.get("status"):
        budget_service.apply_status(budget, update_data["status"], utcnow())

    await db.commit()

    budget = await _load(db, user.salon_id, budget_id)
    return {"budget": budget.to_dict()}


@router.patch("/{budget_id}/full")
async def replace_budget(
    budget_id: str,
    request: BudgetFullUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Edição completa: itens, pagamento e parcelas substituídos"""
    await budget_service.replace_budget(db, user.salon_id, budget_id, request)
    budget = await _load(db, user.salon_id, budget_id)
    return {"budget": budget.to_dict()}


@router.post("/{budget_id}/send")
async def send_budget(
    budget_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    await budget_service.change_status(db, user.salon_id, budget_id, BudgetStatus.ENVIADO.value)
    budget = await _load(db, user.salon_id, budget_id)
    return {"budget": budget.to_dict()}


@router.post("/{budget_id}/cancel")
async def cancel_budget(
    budget_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    await budget_service.change_status(db, user.salon_id, budget_id, BudgetStatus.CANCELADO.value)
    budget = await _load(db, user.salon_id, budget_id)
    return {"budget": budget.to_dict()}


@router.post("/{budget_id}/approve")
async def approve(
    budget_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Aprova: cria pedido (PEDIDO) + conta a receber com parcelas"""
    result = await approve_budget(db, user.salon_id, budget_id)

    budget = await _load(db, user.salon_id, result.budget_id)
    order = await get_owned(db, Order, user.salon_id, result.order_id, "Pedido não encontrado.")
    return {
        "budget": budget.to_dict(),
        "order": order.to_dict(),
        "receivable": order.receivable.to_dict() if order.receivable else None,
    }


@router.delete("/{budget_id}")
async def delete_budget(
    budget_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    await budget_service.delete_budget(db, user.salon_id, budget_id)
    return {"ok": True}


@router.get("/{budget_id}/pdf")
async def budget_pdf(
    budget_id: str,
    download: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """PDF do orçamento (inline ou download=1)"""
    budget = await _load(db, user.salon_id, budget_id)
    salon = await db.get(Salon, user.salon_id)

    pdf_bytes = generate_budget_pdf(budget.to_dict(), salon.to_dict() if salon else {})
    logger.info(f"PDF do orçamento {budget.id} gerado ({len(pdf_bytes)} bytes)")

    disposition = "attachment" if download in ("1", "true") else "inline"
    filename = f"orcamento-{budget.id[:8]}.pdf"
    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'{disposition}; filename="{filename}"'}
    )
