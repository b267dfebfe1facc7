"""
Marcenaria API - Inventory service
Movimentações de estoque e saldo calculado na leitura
"""
import logging
from collections import defaultdict
from datetime import datetime
from typing import Dict, Iterable, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.exceptions import ValidationError
from app.models import (
    Cost,
    CostType,
    Material,
    MaterialMovement,
    MovementSource,
    MovementType,
    Order,
    Payable,
    PayableInstallment
)
from app.schemas import MovementCreate
from app.services.installments import build_monthly_plan
from app.services.lookups import get_owned, require_supplier
from app.utils.dates import month_key, utcnow
from app.utils.money import round_cents

logger = logging.getLogger(__name__)

STOCK_CATEGORY = "Estoque"


def compute_stock_balances(rows: Iterable[Tuple[str, str, float]]) -> Dict[str, float]:
    """
    rows: (material_id, type, qty somada).
    saldo = (IN + ADJUST) - OUT
    """
    balances: Dict[str, float] = defaultdict(float)
    for material_id, mov_type, qty in rows:
        qty = float(qty or 0)
        if mov_type == MovementType.OUT.value:
            balances[material_id] -= qty
        else:
            balances[material_id] += qty
    return dict(balances)


def purchase_description(material: Material, nf_number: Optional[str]) -> str:
    description = f"Compra de estoque: {material.name}"
    if nf_number:
        description += f" • NF {nf_number}"
    return description


async def record_movement(
    db: AsyncSession,
    salon_id: str,
    data: MovementCreate,
    now: Optional[datetime] = None,
) -> MaterialMovement:
    """
    Registra a movimentação. Uma entrada (IN) pode gerar conta a pagar
    parcelada; sem conta a pagar, a compra vira custo variável do mês.
    Tudo num único commit.
    """
    now = now or utcnow()
    material = await get_owned(db, Material, salon_id, data.material_id, "Material não encontrado.")
    if not material.is_active:
        raise ValidationError("Material desativado não aceita movimentações.")

    occurred_at = data.occurred_at or now
    unit_cost = data.unit_cost_cents
    supplier_id = data.supplier_id
    nf_number = data.nf_number

    if data.type == MovementType.IN.value:
        if not supplier_id:
            raise ValidationError("supplierId é obrigatório para entrada.")
        await require_supplier(db, salon_id, supplier_id)
        if not unit_cost or unit_cost <= 0:
            raise ValidationError("unitCostCents deve ser maior que zero para entrada.")
    elif data.type == MovementType.OUT.value:
        unit_cost, supplier_id, nf_number = None, None, None
    else:
        await require_supplier(db, salon_id, supplier_id)

    if data.order_id:
        await get_owned(db, Order, salon_id, data.order_id, "Pedido não encontrado.")

    total_cost = round_cents(data.qty * unit_cost) if unit_cost else None

    movement = MaterialMovement(
        salon_id=salon_id,
        material_id=material.id,
        type=data.type,
        source=data.source or MovementSource.MANUAL.value,
        qty=data.qty,
        unit_cost_cents=unit_cost,
        total_cost_cents=total_cost,
        supplier_id=supplier_id,
        nf_number=nf_number,
        order_id=data.order_id,
        notes=data.notes,
        occurred_at=occurred_at,
    )
    db.add(movement)

    if data.type == MovementType.IN.value:
        if data.payable and data.payable.enabled:
            payable = _purchase_payable(salon_id, material, data, total_cost, supplier_id, occurred_at)
            db.add(payable)
            await db.flush()
            movement.payable_id = payable.id
            logger.info(f"Conta a pagar {payable.id} gerada pela entrada de {material.name}")
        else:
            db.add(Cost(
                salon_id=salon_id,
                supplier_id=supplier_id,
                type=CostType.VARIAVEL.value,
                name=f"Compra de material: {material.name}",
                description=purchase_description(material, nf_number),
                category=STOCK_CATEGORY,
                amount_cents=total_cost,
                occurred_at=occurred_at,
                year_month=month_key(occurred_at),
                is_recurring=False,
            ))

    await db.commit()
    return movement


def _purchase_payable(
    salon_id: str,
    material: Material,
    data: MovementCreate,
    total_cost: int,
    supplier_id: str,
    occurred_at: datetime,
) -> Payable:
    opts = data.payable
    count = min(max(int(opts.installments_count or 1), 1), settings.MAX_PURCHASE_INSTALLMENTS)
    paid_now = bool(opts.paid_now) and count == 1
    first_due = opts.first_due_date or occurred_at

    plan = build_monthly_plan(
        total_cost,
        count,
        first_due,
        method=opts.method,
        paid_now=paid_now,
        paid_at=occurred_at,
    )
    return Payable(
        salon_id=salon_id,
        supplier_id=supplier_id,
        description=opts.description or purchase_description(material, data.nf_number),
        total_cents=total_cost,
        installments=[
            PayableInstallment(
                salon_id=salon_id,
                number=p.number,
                due_date=p.due_date,
                amount_cents=p.amount_cents,
                status=p.status,
                paid_at=p.paid_at,
                method=p.method,
            )
            for p in plan
        ],
    )
