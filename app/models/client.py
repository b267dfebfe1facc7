"""
Marcenaria API - Client Model
Clientes e fornecedores do salão (mesma tabela, diferenciados por type)
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey, UniqueConstraint

from app.database import Base
from app.utils.dates import iso


class ClientType(str, enum.Enum):
    CLIENTE = "CLIENTE"
    FORNECEDOR = "FORNECEDOR"
    BOTH = "BOTH"


SUPPLIER_TYPES = (ClientType.FORNECEDOR.value, ClientType.BOTH.value)


class Client(Base):
    """Pessoa/empresa cadastrada pelo salão"""
    __tablename__ = "clients"
    __table_args__ = (
        UniqueConstraint("salon_id", "phone", name="uq_clients_salon_phone"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False, index=True)
    phone = Column(String(20), nullable=False)
    type = Column(String(20), default=ClientType.CLIENTE.value, nullable=False)
    instagram = Column(String(100))
    cpf = Column(String(20))
    email = Column(String(255))
    address = Column(Text)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_supplier(self) -> bool:
        return self.type in SUPPLIER_TYPES

    def to_summary(self):
        return {"id": self.id, "name": self.name, "phone": self.phone, "type": self.type}

    def to_dict(self):
        return {
            "id": self.id,
            "salonId": self.salon_id,
            "name": self.name,
            "phone": self.phone,
            "type": self.type,
            "instagram": self.instagram,
            "cpf": self.cpf,
            "email": self.email,
            "address": self.address,
            "notes": self.notes,
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }
