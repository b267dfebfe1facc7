"""
Marcenaria API - Orders API
Pedidos com itens, condição de pagamento e conta a receber
"""
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_

from app.database import get_db
from app.models import Client, Order, OrderStatus, User
from app.schemas import OrderCreate, OrderUpdate
from app.api.auth import get_current_user
from app.core import ValidationError
from app.services import orders as order_service
from app.services.lookups import get_owned
from app.utils.money import only_digits

router = APIRouter(prefix="/orders", tags=["Orders"])

ORDER_STATUSES = {s.value for s in OrderStatus}


async def _load(db: AsyncSession, salon_id: str, order_id: str) -> Order:
    return await get_owned(db, Order, salon_id, order_id, "Pedido não encontrado.")


@router.get("")
async def list_orders(
    q: Optional[str] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Lista pedidos (busca por cliente, telefone ou observações)"""
    query = (
        select(Order)
        .join(Client, Client.id == Order.client_id)
        .where(Order.salon_id == user.salon_id)
    )

    if status_filter:
        wanted = status_filter.strip().upper()
        if wanted not in ORDER_STATUSES:
            raise ValidationError("status inválido.")
        query = query.where(Order.status == wanted)

    if q and q.strip():
        term = q.strip()
        conditions = [Client.name.ilike(f"%{term}%"), Order.notes.ilike(f"%{term}%")]
        digits = only_digits(term)
        if digits:
            conditions.append(Client.phone.contains(digits))
        query = query.where(or_(*conditions))

    result = await db.execute(query.order_by(Order.created_at.desc()))
    return {"orders": [o.to_dict() for o in result.scalars().all()]}


@router.get("/{order_id}")
async def get_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    order = await _load(db, user.salon_id, order_id)
    return {"order": order.to_dict()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    request: OrderCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Cria pedido + conta a receber com parcelas"""
    created = await order_service.create_order(db, user.salon_id, request)
    order = await _load(db, user.salon_id, created.id)
    return {"order": order.to_dict(), "receivable": order.receivable.to_dict() if order.receivable else None}


@router.patch("/{order_id}")
async def update_order(
    order_id: str,
    request: OrderUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Atualização parcial; itens/pagamento enviados recalculam totais e parcelas"""
    await order_service.update_order(db, user.salon_id, order_id, request)
    order = await _load(db, user.salon_id, order_id)
    return {"order": order.to_dict()}


@router.patch("/{order_id}/full")
async def update_order_full(
    order_id: str,
    request: OrderCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Edição completa (mesmo corpo da criação)"""
    data = OrderUpdate(**request.model_dump(by_alias=False))
    await order_service.update_order(db, user.salon_id, order_id, data)
    order = await _load(db, user.salon_id, order_id)
    return {"order": order.to_dict()}


@router.post("/{order_id}/cancel")
async def cancel_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    order = await _load(db, user.salon_id, order_id)
    order.status = OrderStatus.CANCELADO.value
    await db.commit()
    order = await _load(db, user.salon_id, order_id)
    return {"order": order.to_dict()}


@router.delete("/{order_id}")
async def delete_order(
    order_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Exclui pedido, itens, conta a receber e parcelas"""
    await order_service.delete_order(db, user.salon_id, order_id)
    return {"ok": True}
