"""
Marcenaria API - Client, Service and Appointment Schemas
"""
from typing import Annotated, Optional

from pydantic import AfterValidator, BeforeValidator, EmailStr, Field

from app.models.client import ClientType
from app.models.service import AppointmentStatus
from app.schemas.common import CamelModel, OptionalUtcDatetime, UtcDatetime, upper_or_none
from app.utils.money import only_digits

OptionalClientType = Annotated[Optional[ClientType], BeforeValidator(upper_or_none)]
OptionalAppointmentStatus = Annotated[Optional[AppointmentStatus], BeforeValidator(upper_or_none)]


def _blank_to_none(value):
    if isinstance(value, str) and not value.strip():
        return None
    return value


def _normalize_phone(value):
    if value is None:
        return value
    digits = only_digits(value)
    if len(digits) < 8:
        raise ValueError("telefone deve ter pelo menos 8 dígitos.")
    return digits


Phone = Annotated[str, AfterValidator(_normalize_phone)]


class ClientCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=255)
    phone: Phone
    type: OptionalClientType = None
    instagram: Optional[str] = Field(None, max_length=100)
    cpf: Optional[str] = Field(None, max_length=20)
    email: Annotated[Optional[EmailStr], BeforeValidator(_blank_to_none)] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class ClientUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    phone: Optional[Phone] = None
    type: OptionalClientType = None
    instagram: Optional[str] = Field(None, max_length=100)
    cpf: Optional[str] = Field(None, max_length=20)
    email: Annotated[Optional[EmailStr], BeforeValidator(_blank_to_none)] = None
    address: Optional[str] = None
    notes: Optional[str] = None


class ServiceCreate(CamelModel):
    name: str = Field(..., min_length=2, max_length=255)
    price: int = Field(..., ge=0)
    duration: int = Field(60, gt=0)
    is_active: bool = True


class ServiceUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=2, max_length=255)
    price: Optional[int] = Field(None, ge=0)
    duration: Optional[int] = Field(None, gt=0)
    is_active: Optional[bool] = None


class AppointmentCreate(CamelModel):
    client_id: str = Field(..., min_length=1)
    service_id: str = Field(..., min_length=1)
    start_at: UtcDatetime
    status: OptionalAppointmentStatus = None
    notes: Optional[str] = None


class AppointmentUpdate(CamelModel):
    start_at: OptionalUtcDatetime = None
    status: OptionalAppointmentStatus = None
    notes: Optional[str] = None
