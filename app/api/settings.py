"""
Marcenaria API - Salon Settings API
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.auth import get_current_user
from app.core import NotFoundError, ValidationError
from app.database import get_db
from app.models import Salon, User
from app.schemas import SalonSettingsUpdate

router = APIRouter(prefix="/settings", tags=["Settings"])


async def _get_salon(db: AsyncSession, salon_id: str) -> Salon:
    salon = await db.get(Salon, salon_id)
    if not salon:
        raise NotFoundError("Salão não encontrado.")
    return salon


@router.get("")
async def get_settings(
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    salon = await _get_salon(db, user.salon_id)
    return {"salon": salon.to_dict()}


@router.patch("")
async def update_settings(
    request: SalonSettingsUpdate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(get_current_user)
):
    """Atualiza dados e horário de funcionamento do salão"""
    salon = await _get_salon(db, user.salon_id)
    update_data = request.model_dump(exclude_unset=True)

    days = update_data.get("working_days")
    if days is not None:
        if any(d < 0 or d > 6 for d in days):
            raise ValidationError("workingDays deve conter dias entre 0 (domingo) e 6 (sábado).")
        update_data["working_days"] = sorted(set(days))

    for field, value in update_data.items():
        setattr(salon, field, value)

    await db.commit()
    return {"salon": salon.to_dict()}
