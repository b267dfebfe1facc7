"""
Marcenaria API - Appointments API
"""
from datetime import datetime, timedelta
from typing import Optional
from fastapi import APIRouter, Depends, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.database import get_db
from app.models import Appointment, AppointmentStatus, Service, User
from app.schemas import AppointmentCreate, AppointmentUpdate
from app.api.auth import get_current_user
from app.core import ValidationError
from app.services.lookups import get_owned, require_client
from app.utils.dates import to_naive_utc

router = APIRouter(prefix="/appointments", tags=["Appointments"])


async def _get_appointment(db: AsyncSession, salon_id: str, appointment_id: str) -> Appointment:
    return await get_owned(db, Appointment, salon_id, appointment_id, "Atendimento não encontrado.")


@router.get("")
async def list_appointments(
    start: Optional[datetime] = Query(None, alias="from"),
    end: Optional[datetime] = Query(None, alias="to"),
    status_filter: Optional[str] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    query = select(Appointment).where(Appointment.salon_id == user.salon_id)
    if start:
        query = query.where(Appointment.start_at >= to_naive_utc(start))
    if end:
        query = query.where(Appointment.start_at < to_naive_utc(end))
    if status_filter:
        query = query.where(Appointment.status == status_filter.strip().upper())

    result = await db.execute(query.order_by(Appointment.start_at))
    return {"appointments": [a.to_dict() for a in result.scalars().all()]}


@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    appointment = await _get_appointment(db, user.salon_id, appointment_id)
    return {"appointment": appointment.to_dict()}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    request: AppointmentCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    await require_client(db, user.salon_id, request.client_id)
    service = await get_owned(db, Service, user.salon_id, request.service_id, "Serviço não encontrado.")
    if not service.is_active:
        raise ValidationError("Serviço desativado.")

    appointment = Appointment(
        salon_id=user.salon_id,
        client_id=request.client_id,
        service_id=service.id,
        start_at=request.start_at,
        end_at=request.start_at + timedelta(minutes=service.duration),
        status=request.status or AppointmentStatus.AGENDADO.value,
        notes=request.notes,
    )
    db.add(appointment)
    await db.commit()

    appointment = await _get_appointment(db, user.salon_id, appointment.id)
    return {"appointment": appointment.to_dict()}


@router.patch("/{appointment_id}")
async def update_appointment(
    appointment_id: str,
    request: AppointmentUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    appointment = await _get_appointment(db, user.salon_id, appointment_id)
    update_data = request.model_dump(exclude_unset=True)

    if update_data.get("start_at"):
        duration = appointment.service.duration if appointment.service else 60
        appointment.start_at = update_data["start_at"]
        appointment.end_at = update_data["start_at"] + timedelta(minutes=duration)
    if update_data.get("status"):
        appointment.status = update_data["status"]
    if "notes" in update_data:
        appointment.notes = update_data["notes"]

    await db.commit()
    appointment = await _get_appointment(db, user.salon_id, appointment.id)
    return {"appointment": appointment.to_dict()}


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    appointment = await _get_appointment(db, user.salon_id, appointment_id)
    await db.delete(appointment)
    await db.commit()
    return {"ok": True}
