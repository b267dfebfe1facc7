"""
Marcenaria API - Order service
Criação e edição de pedidos com a conta a receber sempre consistente
"""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError
from app.models import (
    Budget,
    InstallmentStatus,
    MaterialMovement,
    Order,
    OrderItem,
    OrderStatus,
    Receivable,
    ReceivableInstallment
)
from app.schemas import FINANCIAL_ORDER_FIELDS, OrderCreate, OrderUpdate
from app.services.billing import (
    PaymentTerms,
    calc_totals,
    normalize_payment_terms,
    plan_for_terms,
    resolve_first_due
)
from app.services.installments import InstallmentPlan
from app.services.lookups import get_owned, require_client
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)


def build_order_items(items: Sequence) -> List[OrderItem]:
    return [
        OrderItem(
            position=idx,
            name=it.name,
            description=it.description,
            quantity=it.quantity,
            unit_price_cents=it.unit_price_cents,
            total_cents=it.quantity * it.unit_price_cents,
        )
        for idx, it in enumerate(items)
    ]


def build_receivable_installments(salon_id: str, plan: Sequence[InstallmentPlan]) -> List[ReceivableInstallment]:
    return [
        ReceivableInstallment(
            salon_id=salon_id,
            number=p.number,
            due_date=p.due_date,
            amount_cents=p.amount_cents,
            status=p.status,
            paid_at=p.paid_at,
            method=p.method,
        )
        for p in plan
    ]


async def create_order(
    db: AsyncSession,
    salon_id: str,
    data: OrderCreate,
    now: Optional[datetime] = None,
) -> Order:
    """Cria pedido + itens + conta a receber + parcelas (um commit)"""
    now = now or utcnow()
    await require_client(db, salon_id, data.client_id)

    totals = calc_totals(data.items, data.discount_cents)
    terms = PaymentTerms(
        mode=data.payment_mode,
        method=data.payment_method,
        installments_count=data.installments_count,
        paid_now=data.paid_now,
    )
    first_due = resolve_first_due(data.first_due_date, data.expected_delivery_at, now)
    plan = plan_for_terms(terms, totals.total_cents, first_due, now)

    status = data.status or OrderStatus.ORCAMENTO.value
    order = Order(
        salon_id=salon_id,
        client_id=data.client_id,
        status=status,
        expected_delivery_at=data.expected_delivery_at,
        delivered_at=now if status == OrderStatus.ENTREGUE.value else None,
        notes=data.notes,
        subtotal_cents=totals.subtotal_cents,
        discount_cents=totals.discount_cents,
        total_cents=totals.total_cents,
        payment_mode=terms.mode,
        payment_method=terms.method,
        installments_count=terms.installments_count,
        first_due_date=data.first_due_date,
        paid_now=terms.paid_now,
        items=build_order_items(data.items),
    )
    order.receivable = Receivable(
        salon_id=salon_id,
        total_cents=totals.total_cents,
        method=terms.method,
        installments=build_receivable_installments(salon_id, plan),
    )
    db.add(order)
    await db.commit()

    logger.info(f"Pedido criado: {order.id} ({len(plan)} parcela(s), total {totals.total_cents})")
    return order


async def update_order(
    db: AsyncSession,
    salon_id: str,
    order_id: str,
    data: OrderUpdate,
    now: Optional[datetime] = None,
) -> Order:
    """
    Atualização parcial. Campos financeiros (itens, desconto, pagamento)
    recalculam os totais e regeram as parcelas; bloqueado se alguma
    parcela já foi paga.
    """
    now = now or utcnow()
    order = await get_owned(db, Order, salon_id, order_id, "Pedido não encontrado.")
    sent = data.model_fields_set

    if "client_id" in sent and data.client_id:
        await require_client(db, salon_id, data.client_id)
        order.client_id = data.client_id

    if "expected_delivery_at" in sent:
        order.expected_delivery_at = data.expected_delivery_at
    if "delivered_at" in sent:
        order.delivered_at = data.delivered_at
    if "notes" in sent:
        order.notes = data.notes

    if "status" in sent and data.status:
        order.status = data.status
        if data.status == OrderStatus.ENTREGUE.value and "delivered_at" not in sent and not order.delivered_at:
            order.delivered_at = now

    if sent & FINANCIAL_ORDER_FIELDS:
        _reprice_order(order, data, sent, now)

    await db.commit()
    return order


def _reprice_order(order: Order, data: OrderUpdate, sent: set, now: datetime):
    receivable = order.receivable
    if receivable and any(i.status == InstallmentStatus.PAGO.value for i in receivable.installments):
        raise ConflictError("Pedido possui parcelas pagas; não é possível alterar valores ou pagamento.")

    def pick(field, current):
        return getattr(data, field) if field in sent else current

    if "items" in sent and data.items:
        order.items = build_order_items(data.items)

    totals = calc_totals(order.items, pick("discount_cents", order.discount_cents))
    terms = normalize_payment_terms(
        pick("payment_mode", order.payment_mode),
        pick("payment_method", order.payment_method),
        pick("installments_count", order.installments_count),
        bool(pick("paid_now", False)),
    )
    first_due_date = pick("first_due_date", order.first_due_date)
    first_due = resolve_first_due(first_due_date, order.expected_delivery_at, now)
    plan = plan_for_terms(terms, totals.total_cents, first_due, now)

    order.subtotal_cents = totals.subtotal_cents
    order.discount_cents = totals.discount_cents
    order.total_cents = totals.total_cents
    order.payment_mode = terms.mode
    order.payment_method = terms.method
    order.installments_count = terms.installments_count
    order.first_due_date = first_due_date
    order.paid_now = terms.paid_now

    installments = build_receivable_installments(order.salon_id, plan)
    if receivable:
        receivable.total_cents = totals.total_cents
        receivable.method = terms.method
        receivable.installments = installments
    else:
        order.receivable = Receivable(
            salon_id=order.salon_id,
            total_cents=totals.total_cents,
            method=terms.method,
            installments=installments,
        )


async def delete_order(db: AsyncSession, salon_id: str, order_id: str):
    """Remove pedido, itens, conta a receber e parcelas (um commit)"""
    order = await get_owned(db, Order, salon_id, order_id, "Pedido não encontrado.")

    linked_budget = await db.scalar(
        select(Budget.id).where(Budget.approved_order_id == order.id, Budget.salon_id == salon_id)
    )
    if linked_budget:
        raise ConflictError("Pedido gerado por orçamento aprovado não pode ser excluído.")

    await db.execute(
        update(MaterialMovement)
        .where(MaterialMovement.order_id == order.id, MaterialMovement.salon_id == salon_id)
        .values(order_id=None)
    )
    await db.delete(order)
    await db.commit()
