"""
Marcenaria API - Order Models
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.dates import iso


class OrderStatus(str, enum.Enum):
    ORCAMENTO = "ORCAMENTO"
    PEDIDO = "PEDIDO"
    EM_PRODUCAO = "EM_PRODUCAO"
    PRONTO = "PRONTO"
    ENTREGUE = "ENTREGUE"
    CANCELADO = "CANCELADO"


# Status que contam como venda no dashboard
SOLD_ORDER_STATUSES = (
    OrderStatus.PEDIDO.value,
    OrderStatus.EM_PRODUCAO.value,
    OrderStatus.PRONTO.value,
    OrderStatus.ENTREGUE.value,
)


class Order(Base):
    """Pedido de um cliente (itens + condição de pagamento)"""
    __tablename__ = "orders"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)

    status = Column(String(20), default=OrderStatus.ORCAMENTO.value, nullable=False, index=True)
    expected_delivery_at = Column(DateTime, index=True)
    delivered_at = Column(DateTime)
    notes = Column(Text)

    # Valores (centavos)
    subtotal_cents = Column(Integer, nullable=False, default=0)
    discount_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False, default=0)

    # Pagamento
    payment_mode = Column(String(20), nullable=False, default="AVISTA")
    payment_method = Column(String(20))
    installments_count = Column(Integer, nullable=False, default=1)
    first_due_date = Column(DateTime)
    paid_now = Column(Boolean, default=False)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("Client", lazy="selectin")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItem.position",
        lazy="selectin"
    )
    receivable = relationship(
        "Receivable",
        back_populates="order",
        uselist=False,
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "clientId": self.client_id,
            "client": self.client.to_summary() if self.client else None,
            "status": self.status,
            "expectedDeliveryAt": iso(self.expected_delivery_at),
            "deliveredAt": iso(self.delivered_at),
            "notes": self.notes,
            "subtotalCents": self.subtotal_cents,
            "discountCents": self.discount_cents,
            "totalCents": self.total_cents,
            "paymentMode": self.payment_mode,
            "paymentMethod": self.payment_method,
            "installmentsCount": self.installments_count,
            "firstDueDate": iso(self.first_due_date),
            "paidNow": bool(self.paid_now),
            "items": [i.to_dict() for i in self.items],
            "receivable": self.receivable.to_dict() if self.receivable else None,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


class OrderItem(Base):
    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    position = Column(Integer, nullable=False, default=0)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    quantity = Column(Integer, nullable=False, default=1)
    unit_price_cents = Column(Integer, nullable=False, default=0)
    total_cents = Column(Integer, nullable=False, default=0)

    order = relationship("Order", back_populates="items")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "quantity": self.quantity,
            "unitPriceCents": self.unit_price_cents,
            "totalCents": self.total_cents,
        }
