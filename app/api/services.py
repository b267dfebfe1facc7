"""
Marcenaria API - Services API
Catálogo de serviços (preço em centavos)
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from app.database import get_db
from app.models import Appointment, Service, User
from app.schemas import ServiceCreate, ServiceUpdate
from app.api.auth import get_current_user
from app.core import ConflictError
from app.services.lookups import get_owned

router = APIRouter(prefix="/services", tags=["Services"])


async def _get_service(db: AsyncSession, salon_id: str, service_id: str) -> Service:
    return await get_owned(db, Service, salon_id, service_id, "Serviço não encontrado.")


@router.get("")
async def list_services(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    result = await db.execute(
        select(Service).where(Service.salon_id == user.salon_id).order_by(Service.name)
    )
    return {"services": [s.to_dict() for s in result.scalars().all()]}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_service(
    request: ServiceCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    service = Service(salon_id=user.salon_id, **request.model_dump())
    db.add(service)
    await db.commit()
    return {"service": service.to_dict()}


@router.patch("/{service_id}")
async def update_service(
    service_id: str,
    request: ServiceUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    service = await _get_service(db, user.salon_id, service_id)
    for field, value in request.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(service, field, value)
    await db.commit()
    return {"service": service.to_dict()}


@router.patch("/{service_id}/toggle")
async def toggle_service(
    service_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Ativa/desativa o serviço"""
    service = await _get_service(db, user.salon_id, service_id)
    service.is_active = not service.is_active
    await db.commit()
    return {"service": service.to_dict()}


@router.delete("/{service_id}")
async def delete_service(
    service_id: str,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    service = await _get_service(db, user.salon_id, service_id)

    in_use = await db.scalar(
        select(func.count(Appointment.id)).where(Appointment.service_id == service.id)
    )
    if in_use:
        raise ConflictError("Serviço em uso por atendimentos. Desative em vez de excluir.")

    await db.delete(service)
    await db.commit()
    return {"ok": True}
