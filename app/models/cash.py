"""
Marcenaria API - Cash (caixa) Models
Categorias e lançamentos manuais de entrada/saída
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.dates import iso


class CashType(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"


class CashCategory(Base):
    __tablename__ = "cash_categories"
    __table_args__ = (
        UniqueConstraint("salon_id", "name", name="uq_cash_categories_salon_name"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    type = Column(String(3))

    created_at = Column(DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "createdAt": iso(self.created_at),
        }


class CashTransaction(Base):
    __tablename__ = "cash_transactions"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)
    category_id = Column(String(36), ForeignKey("cash_categories.id"))

    type = Column(String(3), nullable=False)
    source = Column(String(20), nullable=False, default="MANUAL")
    name = Column(String(255), nullable=False)
    amount_cents = Column(Integer, nullable=False)
    occurred_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = relationship("CashCategory", lazy="selectin")

    def to_dict(self):
        return {
            "id": self.id,
            "type": self.type,
            "source": self.source,
            "name": self.name,
            "amountCents": self.amount_cents,
            "occurredAt": iso(self.occurred_at),
            "notes": self.notes,
            "categoryId": self.category_id,
            "category": self.category.to_dict() if self.category else None,
            "createdAt": iso(self.created_at),
        }
