"""
Marcenaria API - Service and Appointment Models
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Boolean, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.dates import iso


class AppointmentStatus(str, enum.Enum):
    AGENDADO = "AGENDADO"
    CONFIRMADO = "CONFIRMADO"
    FINALIZADO = "FINALIZADO"
    CANCELADO = "CANCELADO"


class Service(Base):
    """Serviço oferecido (preço em centavos, duração em minutos)"""
    __tablename__ = "services"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    price = Column(Integer, nullable=False, default=0)
    duration = Column(Integer, nullable=False, default=60)
    is_active = Column(Boolean, default=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "price": self.price,
            "duration": self.duration,
            "isActive": self.is_active,
            "createdAt": iso(self.created_at),
        }


class Appointment(Base):
    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)
    client_id = Column(String(36), ForeignKey("clients.id"), nullable=False, index=True)
    service_id = Column(String(36), ForeignKey("services.id"), nullable=False, index=True)

    start_at = Column(DateTime, nullable=False, index=True)
    end_at = Column(DateTime, nullable=False)
    status = Column(String(20), default=AppointmentStatus.AGENDADO.value, nullable=False)
    notes = Column(Text)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    client = relationship("Client", lazy="selectin")
    service = relationship("Service", lazy="selectin")

    def to_dict(self):
        return {
            "id": self.id,
            "clientId": self.client_id,
            "serviceId": self.service_id,
            "startAt": iso(self.start_at),
            "endAt": iso(self.end_at),
            "status": self.status,
            "notes": self.notes,
            "client": self.client.to_summary() if self.client else None,
            "service": self.service.to_dict() if self.service else None,
            "createdAt": iso(self.created_at),
        }
