"""
Marcenaria API - Budget (orçamento) Models
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.dates import iso


class BudgetStatus(str, enum.Enum):
    RASCUNHO = "RASCUNHO"
    ENVIADO = "ENVIADO"
    APROVADO = "APROVADO"
    CANCELADO = "CANCELADO"


# Estados a partir dos quais o orçamento ainda pode mudar
OPEN_BUDGET_STATUSES = (BudgetStatus.RASCUNHO.value, BudgetStatus.ENVIADO.value)

BUDGET_TRANSITIONS = {
    BudgetStatus.RASCUNHO.value: {BudgetStatus.ENVIADO.value, BudgetStatus.CANCELADO.value, BudgetStatus.APROVADO.value},
    BudgetStatus.ENVIADO.value: {BudgetStatus.RASCUNHO.value, BudgetStatus.CANCELADO.value, BudgetStatus.APROVADO.value},
    BudgetStatus.APROVADO.value: set(),
    BudgetStatus.CANCELADO.value: set(),
}


class Budget(Base):
    """Orçamento enviado ao cliente; ao aprovar vira Pedido + Conta a receber"""
    __tablename__ = "budgets"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)

    status = Column(String(20), default=BudgetStatus.RASCUNHO.value, nullable=False, index=True)
    expected_delivery_at = Column(DateTime)
    notes = Column(Text)

    subtotal_cents = Column(Integer, nullable=False, default=0)
    discount_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False, default=0)

    payment_mode = Column(String(20), nullable=False, default="AVISTA")
    payment_method = Column(String(20))
    installments_count = Column(Integer, nullable=False, default=1)
    first_due_date = Column(DateTime)

    sent_at = Column(DateTime)
    approved_at = Column(DateTime)
    approved_order_id = Column(String(36), ForeignKey("orders.id"), unique=True)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("Client", lazy="selectin")
    items = relationship(
        "BudgetItem",
        back_populates="budget",
        cascade="all, delete-orphan",
        order_by="BudgetItem.position",
        lazy="selectin"
    )
    installments = relationship(
        "BudgetInstallment",
        back_populates="budget",
        cascade="all, delete-orphan",
        order_by="BudgetInstallment.number",
        lazy="selectin"
    )

    @property
    def is_locked(self) -> bool:
        return self.status not in OPEN_BUDGET_STATUSES

    def to_dict(self):
        return {
            "id": self.id,
            "clientId": self.client_id,
            "client": self.client.to_summary() if self.client else None,
            "status": self.status,
            "expectedDeliveryAt": iso(self.expected_delivery_at),
            "notes": self.notes,
            "subtotalCents": self.subtotal_cents,
            "discountCents": self.discount_cents,
            "totalCents": self.total_cents,
            "paymentMode": self.payment_mode,
            "paymentMethod": self.payment_method,
            "installmentsCount": self.installments_count,
            "firstDueDate": iso(self.first_due_date),
            "items": [i.to_dict() for i in self.items],
            "installments": [i.to_dict() for i in self.installments],
            "sentAt": iso(self.sent_at),
            "approvedAt": iso(self.approved_at),
            "approvedOrderId": self.approved_order_id,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


class BudgetItem(Base):
    __tablename__ = "budget_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    budget_id = Column(String(36), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False, index=True)

    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False, default=0)

    budget = relationship("Budget", back_populates="items")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "quantity": self.quantity,
            "unitPriceCents": self.unit_price_cents,
            "totalCents": self.total_cents,
        }


class BudgetInstallment(Base):
    """Plano de parcelas sugerido no orçamento (sem status de pagamento)"""
    __tablename__ = "budget_installments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    budget_id = Column(String(36), ForeignKey("budgets.id", ondelete="CASCADE"), nullable=False, index=True)

    number = Column(Integer, nullable=False)
    due_date = Column(DateTime, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    is_custom = Column(Boolean, default=False)

    budget = relationship("Budget", back_populates="installments")

    def to_dict(self):
        return {
            "id": self.id,
            "number": self.number,
            "dueDate": iso(self.due_date),
            "amountCents": self.amount_cents,
            "isCustom": bool(self.is_custom),
        }
