"""
Marcenaria API - Materials API
Catálogo de materiais, preços por fornecedor, movimentações e estoque
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError

from app.database import get_db
from app.models import (
    Material,
    MaterialMovement,
    MaterialSupplierPrice,
    MaterialUnit,
    MovementType,
    User
)
from app.schemas import MaterialCreate, MaterialUpdate, MovementCreate, SupplierPriceIn
from app.api.auth import get_current_user
from app.core import ConflictError, ValidationError
from app.services.inventory import compute_stock_balances, record_movement
from app.services.lookups import get_owned, require_supplier
from app.utils.dates import parse_month, to_naive_utc

router = APIRouter(prefix="/materials", tags=["Materials"])

MOVEMENT_TYPES = {t.value for t in MovementType}


async def _load(db: AsyncSession, salon_id: str, material_id: str) -> Material:
    return await get_owned(db, Material, salon_id, material_id, "Material não encontrado.")


async def _ensure_name_available(db: AsyncSession, salon_id: str, name: str, exclude_id: Optional[str] = None):
    query = select(Material.id).where(Material.salon_id == salon_id, Material.name == name)
    if exclude_id:
        query = query.where(Material.id != exclude_id)
    if await db.scalar(query):
        raise ConflictError("Já existe um material com este nome.")


async def _build_supplier_prices(
    db: AsyncSession, salon_id: str, prices: List[SupplierPriceIn]
) -> List[MaterialSupplierPrice]:
    """Um preço por fornecedor (o último informado vale)"""
    by_supplier = {}
    for price in prices:
        by_supplier[price.supplier_id] = price.unit_cost_cents

    for supplier_id in by_supplier:
        await require_supplier(db, salon_id, supplier_id)

    return [
        MaterialSupplierPrice(supplier_id=supplier_id, unit_cost_cents=cost)
        for supplier_id, cost in by_supplier.items()
    ]


# === Movimentações / estoque (antes de /{material_id}) ===

@router.get("/movements")
async def list_movements(
    month: Optional[str] = Query(None),
    material_id: Optional[str] = Query(None, alias="materialId"),
    type_filter: Optional[str] = Query(None, alias="type"),
    q: Optional[str] = Query(None),
    start: Optional[datetime] = Query(None, alias="from"),
    end: Optional[datetime] = Query(None, alias="to"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Movimentações por mês ou por material"""
    if not month and not material_id:
        raise ValidationError("Informe month ou materialId.")

    query = (
        select(MaterialMovement)
        .join(Material, Material.id == MaterialMovement.material_id)
        .where(MaterialMovement.salon_id == user.salon_id)
    )

    if month:
        month_start, month_end = parse_month(month)
        query = query.where(
            MaterialMovement.occurred_at >= month_start,
            MaterialMovement.occurred_at < month_end,
        )
    if material_id:
        query = query.where(MaterialMovement.material_id == material_id)
    if start:
        query = query.where(MaterialMovement.occurred_at >= to_naive_utc(start))
    if end:
        query = query.where(MaterialMovement.occurred_at < to_naive_utc(end))

    if type_filter:
        wanted = type_filter.strip().upper()
        if wanted not in MOVEMENT_TYPES:
            raise ValidationError("type inválido (use IN, OUT ou ADJUST).")
        query = query.where(MaterialMovement.type == wanted)

    if q and q.strip():
        term = q.strip()
        query = query.where(or_(
            Material.name.ilike(f"%{term}%"),
            MaterialMovement.nf_number.ilike(f"%{term}%"),
            MaterialMovement.notes.ilike(f"%{term}%"),
        ))

    result = await db.execute(
        query.order_by(MaterialMovement.occurred_at.desc()).limit(limit).offset(offset)
    )
    return {"movements": [m.to_dict() for m in result.scalars().all()]}


@router.post("/movements", status_code=status.HTTP_201_CREATED)
async def create_movement(
    request: MovementCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Entrada pode gerar conta a pagar parcelada"""
    created = await record_movement(db, user.salon_id, request)
    movement = await get_owned(db, MaterialMovement, user.salon_id, created.id, "Movimentação não encontrada.")
    return {"movement": movement.to_dict()}


@router.get("/stock")
async def get_stock(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Saldo = (IN + ADJUST) - OUT, calculado na leitura"""
    result = await db.execute(
        select(MaterialMovement.material_id, MaterialMovement.type, func.sum(MaterialMovement.qty))
        .where(MaterialMovement.salon_id == user.salon_id)
        .group_by(MaterialMovement.material_id, MaterialMovement.type)
    )
    balances = compute_stock_balances(result.all())

    materials = await db.execute(
        select(Material)
        .where(Material.salon_id == user.salon_id, Material.is_active.is_(True))
        .order_by(Material.name)
    )

    stock = []
    for material in materials.scalars().all():
        balance = balances.get(material.id, 0.0)
        stock.append({
            "materialId": material.id,
            "name": material.name,
            "unit": material.unit,
            "minQty": material.min_qty,
            "balance": balance,
            "belowMin": balance < (material.min_qty or 0),
        })
    return {"stock": stock}


@router.get("/summary")
async def get_summary(
    month: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Compras e saídas do mês, top 10 materiais por custo de compra"""
    month_start, month_end = parse_month(month)

    result = await db.execute(
        select(
            MaterialMovement.material_id,
            Material.name,
            MaterialMovement.type,
            func.sum(MaterialMovement.qty),
            func.coalesce(func.sum(MaterialMovement.total_cost_cents), 0),
        )
        .join(Material, Material.id == MaterialMovement.material_id)
        .where(
            MaterialMovement.salon_id == user.salon_id,
            MaterialMovement.occurred_at >= month_start,
            MaterialMovement.occurred_at < month_end,
        )
        .group_by(MaterialMovement.material_id, Material.name, MaterialMovement.type)
    )

    per_material = {}
    purchases_cents, out_qty = 0, 0.0
    for material_id, name, mov_type, qty, cost in result.all():
        entry = per_material.setdefault(material_id, {
            "materialId": material_id,
            "name": name,
            "inQty": 0.0,
            "outQty": 0.0,
            "purchaseCents": 0,
        })
        if mov_type == MovementType.IN.value:
            entry["inQty"] += float(qty or 0)
            entry["purchaseCents"] += int(cost)
            purchases_cents += int(cost)
        elif mov_type == MovementType.OUT.value:
            entry["outQty"] += float(qty or 0)
            out_qty += float(qty or 0)

    top = sorted(per_material.values(), key=lambda e: e["purchaseCents"], reverse=True)[:10]
    return {
        "month": month,
        "purchasesCents": purchases_cents,
        "outQty": out_qty,
        "materials": top,
    }


# === Catálogo ===

@router.get("")
async def list_materials(
    q: Optional[str] = Query(None),
    include_inactive: bool = Query(False, alias="includeInactive"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    query = select(Material).where(Material.salon_id == user.salon_id)
    if not include_inactive:
        query = query.where(Material.is_active.is_(True))
    if q and q.strip():
        term = q.strip()
        query = query.where(or_(Material.name.ilike(f"%{term}%"), Material.sku.ilike(f"%{term}%")))

    result = await db.execute(query.order_by(Material.name))
    return {"materials": [m.to_dict() for m in result.scalars().all()]}


@router.get("/{material_id}")
async def get_material(
    material_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    material = await _load(db, user.salon_id, material_id)
    return {"material": material.to_dict()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_material(
    request: MaterialCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    await _ensure_name_available(db, user.salon_id, request.name)

    material = Material(
        salon_id=user.salon_id,
        name=request.name,
        unit=request.unit or MaterialUnit.UN.value,
        sku=request.sku,
        default_unit_cost_cents=request.default_unit_cost_cents,
        min_qty=request.min_qty,
        notes=request.notes,
        supplier_prices=await _build_supplier_prices(db, user.salon_id, request.supplier_prices),
    )
    db.add(material)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Já existe um material com este nome.")

    material = await _load(db, user.salon_id, material.id)
    return {"material": material.to_dict()}


@router.patch("/{material_id}")
async def update_material(
    material_id: str,
    request: MaterialUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    material = await _load(db, user.salon_id, material_id)
    update_data = request.model_dump(exclude_unset=True)

    if update_data.get("name") and update_data["name"] != material.name:
        await _ensure_name_available(db, user.salon_id, update_data["name"], exclude_id=material.id)
        material.name = update_data["name"]

    for field in ("unit", "default_unit_cost_cents", "min_qty", "is_active"):
        if update_data.get(field) is not None:
            setattr(material, field, update_data[field])
    for field in ("sku", "notes"):
        if field in update_data:
            setattr(material, field, update_data[field])

    if request.supplier_prices is not None:
        # atualiza no lugar: remover e reinserir o mesmo fornecedor viola uq_material_supplier
        wanted = await _build_supplier_prices(db, user.salon_id, request.supplier_prices)
        current = {p.supplier_id: p for p in material.supplier_prices}
        prices = []
        for price in wanted:
            existing = current.get(price.supplier_id)
            if existing:
                existing.unit_cost_cents = price.unit_cost_cents
                prices.append(existing)
            else:
                prices.append(price)
        material.supplier_prices = prices

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("Já existe um material com este nome.")

    material = await _load(db, user.salon_id, material_id)
    return {"material": material.to_dict()}


@router.delete("/{material_id}")
async def delete_material(
    material_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Desativa (movimentações antigas continuam válidas)"""
    material = await _load(db, user.salon_id, material_id)
    material.is_active = False
    await db.commit()
    return {"ok": True}
