"""
Marcenaria API - Salon (tenant) and User Models
"""
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.dates import iso


class Salon(Base):
    """Tenant: a oficina/empresa dona de todos os dados"""
    __tablename__ = "salons"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    phone = Column(String(20))
    address = Column(String(500))
    logo_url = Column(String(500))

    # Horário de funcionamento
    open_time = Column(String(5), default="09:00")
    close_time = Column(String(5), default="18:00")
    working_days = Column(JSON, default=lambda: [1, 2, 3, 4, 5])

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "phone": self.phone,
            "address": self.address,
            "logoUrl": self.logo_url,
            "openTime": self.open_time,
            "closeTime": self.close_time,
            "workingDays": self.working_days or [],
            "createdAt": iso(self.created_at),
            "updatedAt": iso(self.updated_at),
        }


class User(Base):
    """Usuário dono da conta (1 usuário = 1 salão)"""
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, unique=True, index=True)
    phone = Column(String(20))
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)

    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, unique=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    last_login_at = Column(DateTime)

    salon = relationship("Salon", lazy="selectin")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "salonId": self.salon_id,
            "createdAt": iso(self.created_at),
            "lastLoginAt": iso(self.last_login_at),
        }
