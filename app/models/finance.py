"""
Marcenaria API - Receivable / Payable Models
Contas a receber (ligadas a pedidos) e contas a pagar (fornecedores)
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.dates import iso


class PaymentMode(str, enum.Enum):
    AVISTA = "AVISTA"
    PARCELADO = "PARCELADO"


class PaymentMethod(str, enum.Enum):
    PIX = "PIX"
    CARTAO = "CARTAO"
    DINHEIRO = "DINHEIRO"
    BOLETO = "BOLETO"
    TRANSFERENCIA = "TRANSFERENCIA"
    OUTRO = "OUTRO"


class InstallmentStatus(str, enum.Enum):
    PENDENTE = "PENDENTE"
    PAGO = "PAGO"
    ATRASADO = "ATRASADO"
    CANCELADO = "CANCELADO"


class Receivable(Base):
    """Conta a receber de um pedido"""
    __tablename__ = "receivables"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, unique=True)

    total_cents = Column(Integer, nullable=False, default=0)
    method = Column(String(20))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    order = relationship("Order", back_populates="receivable")
    installments = relationship(
        "ReceivableInstallment",
        back_populates="receivable",
        cascade="all, delete-orphan",
        order_by="ReceivableInstallment.number",
        lazy="selectin"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "orderId": self.order_id,
            "totalCents": self.total_cents,
            "method": self.method,
            "installments": [i.to_dict() for i in self.installments],
            "createdAt": iso(self.created_at),
        }


class ReceivableInstallment(Base):
    __tablename__ = "receivable_installments"
    __table_args__ = (
        Index("ix_receivable_installments_due", "salon_id", "due_date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False)
    receivable_id = Column(String(36), ForeignKey("receivables.id", ondelete="CASCADE"), nullable=False, index=True)

    number = Column(Integer, nullable=False)
    due_date = Column(DateTime, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    status = Column(String(20), default=InstallmentStatus.PENDENTE.value, nullable=False)
    paid_at = Column(DateTime, index=True)
    method = Column(String(20))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    receivable = relationship("Receivable", back_populates="installments")

    def to_dict(self):
        return {
            "id": self.id,
            "receivableId": self.receivable_id,
            "number": self.number,
            "dueDate": iso(self.due_date),
            "amountCents": self.amount_cents,
            "status": self.status,
            "paidAt": iso(self.paid_at),
            "method": self.method,
        }


class Payable(Base):
    """Conta a pagar (compras, fornecedores)"""
    __tablename__ = "payables"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)
    supplier_id = Column(String(36), ForeignKey("clients.id"), index=True)

    description = Column(String(255), nullable=False)
    total_cents = Column(Integer, nullable=False, default=0)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    supplier = relationship("Client", lazy="selectin")
    installments = relationship(
        "PayableInstallment",
        back_populates="payable",
        cascade="all, delete-orphan",
        order_by="PayableInstallment.number",
        lazy="selectin"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "description": self.description,
            "supplierId": self.supplier_id,
            "supplier": self.supplier.to_summary() if self.supplier else None,
            "totalCents": self.total_cents,
            "notes": self.notes,
            "installments": [i.to_dict() for i in self.installments],
            "createdAt": iso(self.created_at),
        }


class PayableInstallment(Base):
    __tablename__ = "payable_installments"
    __table_args__ = (
        Index("ix_payable_installments_due", "salon_id", "due_date"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False)
    payable_id = Column(String(36), ForeignKey("payables.id", ondelete="CASCADE"), nullable=False, index=True)

    number = Column(Integer, nullable=False)
    due_date = Column(DateTime, nullable=False)
    amount_cents = Column(Integer, nullable=False)
    status = Column(String(20), default=InstallmentStatus.PENDENTE.value, nullable=False)
    paid_at = Column(DateTime, index=True)
    method = Column(String(20))

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    payable = relationship("Payable", back_populates="installments")

    def to_dict(self):
        return {
            "id": self.id,
            "payableId": self.payable_id,
            "number": self.number,
            "dueDate": iso(self.due_date),
            "amountCents": self.amount_cents,
            "status": self.status,
            "paidAt": iso(self.paid_at),
            "method": self.method,
        }
