"""
Marcenaria API - Clients API
CRUD de clientes/fornecedores do salão
"""
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, func

from app.database import get_db
from app.models import (
    Appointment,
    AppointmentStatus,
    Budget,
    Client,
    ClientType,
    Cost,
    MaterialMovement,
    MaterialSupplierPrice,
    Order,
    Payable,
    Service,
    User
)
from app.schemas import ClientCreate, ClientUpdate
from app.api.auth import get_current_user
from app.core import ConflictError
from app.services.lookups import require_client
from app.utils.dates import iso, utcnow
from app.utils.money import only_digits

router = APIRouter(prefix="/clients", tags=["Clients"])


async def _ensure_phone_available(db: AsyncSession, salon_id: str, phone: str, exclude_id: Optional[str] = None):
    query = select(Client.id).where(Client.salon_id == salon_id, Client.phone == phone)
    if exclude_id:
        query = query.where(Client.id != exclude_id)
    if await db.scalar(query):
        raise ConflictError("Já existe um cliente com este telefone.")


@router.get("")
async def list_clients(
    q: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Lista clientes (busca por nome, telefone ou instagram)"""
    query = select(Client).where(Client.salon_id == user.salon_id)

    if q and q.strip():
        term = q.strip()
        conditions = [
            Client.name.ilike(f"%{term}%"),
            Client.instagram.ilike(f"%{term}%"),
        ]
        digits = only_digits(term)
        if digits:
            conditions.append(Client.phone.contains(digits))
        query = query.where(or_(*conditions))

    if type:
        wanted = type.strip().upper()
        if wanted == ClientType.FORNECEDOR.value:
            # fornecedores incluem BOTH
            query = query.where(Client.type.in_([ClientType.FORNECEDOR.value, ClientType.BOTH.value]))
        elif wanted == ClientType.CLIENTE.value:
            query = query.where(Client.type.in_([ClientType.CLIENTE.value, ClientType.BOTH.value]))
        else:
            query = query.where(Client.type == wanted)

    result = await db.execute(query.order_by(Client.name))
    return {"clients": [c.to_dict() for c in result.scalars().all()]}


@router.get("/metrics")
async def client_metrics(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Frequência e gasto por cliente (atendimentos)"""
    result = await db.execute(
        select(Appointment.client_id, Appointment.status, Appointment.start_at, Service.price)
        .join(Service, Service.id == Appointment.service_id)
        .where(Appointment.salon_id == user.salon_id)
    )

    stats = {}
    for client_id, appt_status, start_at, price in result.all():
        entry = stats.setdefault(client_id, {
            "visits": 0, "totalSpentCents": 0, "cancellations": 0,
            "firstVisit": None, "lastVisit": None,
        })
        if appt_status == AppointmentStatus.FINALIZADO.value:
            entry["visits"] += 1
            entry["totalSpentCents"] += price or 0
            if not entry["firstVisit"] or start_at < entry["firstVisit"]:
                entry["firstVisit"] = start_at
            if not entry["lastVisit"] or start_at > entry["lastVisit"]:
                entry["lastVisit"] = start_at
        elif appt_status == AppointmentStatus.CANCELADO.value:
            entry["cancellations"] += 1

    clients = (await db.execute(
        select(Client).where(Client.salon_id == user.salon_id)
    )).scalars().all()

    now = utcnow()
    metrics = []
    for client in clients:
        entry = stats.get(client.id, {})
        visits = entry.get("visits", 0)
        first = entry.get("firstVisit")
        months = 1
        if first:
            months = max(1, (now.year - first.year) * 12 + now.month - first.month + 1)
        metrics.append({
            "client": client.to_summary(),
            "visits": visits,
            "totalSpentCents": entry.get("totalSpentCents", 0),
            "cancellations": entry.get("cancellations", 0),
            "lastVisit": iso(entry.get("lastVisit")),
            "visitsPerMonth": round(visits / months, 2),
        })

    metrics.sort(key=lambda m: m["totalSpentCents"], reverse=True)
    return {"metrics": metrics}


@router.get("/{client_id}")
async def get_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    client = await require_client(db, user.salon_id, client_id)
    return {"client": client.to_dict()}


@router.get("/{client_id}/orders")
async def list_client_orders(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Histórico de pedidos do cliente"""
    client = await require_client(db, user.salon_id, client_id)
    result = await db.execute(
        select(Order)
        .where(Order.salon_id == user.salon_id, Order.client_id == client.id)
        .order_by(Order.created_at.desc())
    )
    return {"client": client.to_summary(), "orders": [o.to_dict() for o in result.scalars().all()]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_client(
    request: ClientCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    await _ensure_phone_available(db, user.salon_id, request.phone)

    data = request.model_dump()
    data["type"] = data.get("type") or ClientType.CLIENTE.value
    client = Client(salon_id=user.salon_id, **data)
    db.add(client)
    await db.commit()

    return {"client": client.to_dict()}


@router.patch("/{client_id}")
async def update_client(
    client_id: str,
    request: ClientUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    client = await require_client(db, user.salon_id, client_id)
    update_data = request.model_dump(exclude_unset=True)

    if update_data.get("phone") and update_data["phone"] != client.phone:
        await _ensure_phone_available(db, user.salon_id, update_data["phone"], exclude_id=client.id)

    for field, value in update_data.items():
        if field in ("name", "phone", "type") and value is None:
            continue
        setattr(client, field, value)

    await db.commit()
    return {"client": client.to_dict()}


@router.delete("/{client_id}")
async def delete_client(
    client_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Exclui cliente sem histórico (atendimentos, pedidos, orçamentos ou compras)"""
    client = await require_client(db, user.salon_id, client_id)

    references = [
        (Appointment.id, Appointment.client_id, "Cliente possui atendimentos e não pode ser excluído."),
        (Order.id, Order.client_id, "Cliente possui pedidos e não pode ser excluído."),
        (Budget.id, Budget.client_id, "Cliente possui orçamentos e não pode ser excluído."),
        (Payable.id, Payable.supplier_id, "Fornecedor possui contas a pagar e não pode ser excluído."),
        (Cost.id, Cost.supplier_id, "Fornecedor possui custos e não pode ser excluído."),
        (MaterialMovement.id, MaterialMovement.supplier_id,
         "Fornecedor possui movimentações de estoque e não pode ser excluído."),
    ]
    for id_column, fk_column, message in references:
        count = await db.scalar(
            select(func.count(id_column)).where(
                id_column.class_.salon_id == user.salon_id,
                fk_column == client.id
            )
        )
        if count:
            raise ConflictError(message)

    prices = await db.scalar(
        select(func.count(MaterialSupplierPrice.id)).where(MaterialSupplierPrice.supplier_id == client.id)
    )
    if prices:
        raise ConflictError("Fornecedor possui preços de materiais e não pode ser excluído.")

    await db.delete(client)
    await db.commit()
    return {"ok": True}
