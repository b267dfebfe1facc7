"""
Marcenaria API - Cost Model
Custos fixos/variáveis do mês (recorrentes por grupo)
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.dates import iso


class CostType(str, enum.Enum):
    FIXO = "FIXO"
    VARIAVEL = "VARIAVEL"


class Cost(Base):
    __tablename__ = "costs"
    __table_args__ = (
        # uma linha por grupo recorrente por mês
        UniqueConstraint("salon_id", "recurring_group_id", "year_month", name="uq_costs_group_month"),
        Index("ix_costs_salon_occurred", "salon_id", "occurred_at"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)
    supplier_id = Column(String(36), ForeignKey("clients.id"), index=True)

    type = Column(String(20), nullable=False, default=CostType.FIXO.value)
    name = Column(String(255), nullable=False)
    description = Column(Text)
    category = Column(String(100))
    amount_cents = Column(Integer, nullable=False)
    occurred_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    year_month = Column(String(7), nullable=False, index=True)

    is_recurring = Column(Boolean, default=False, nullable=False)
    recurring_group_id = Column(String(64))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    supplier = relationship("Client", lazy="selectin")

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "amountCents": self.amount_cents,
            "occurredAt": iso(self.occurred_at),
            "yearMonth": self.year_month,
            "isRecurring": bool(self.is_recurring),
            "recurringGroupId": self.recurring_group_id,
            "supplierId": self.supplier_id,
            "supplier": self.supplier.to_summary() if self.supplier else None,
            "createdAt": iso(self.created_at),
        }
