"""
Marcenaria API - Tenant-scoped lookups
Toda busca por id filtra pelo salão; registro de outro salão = não encontrado
"""
from typing import Optional, Type, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError, ValidationError
from app.models import Client

T = TypeVar("T")


async def get_owned(
    db: AsyncSession,
    model: Type[T],
    salon_id: str,
    obj_id: str,
    message: str = "Registro não encontrado.",
) -> T:
    """Carrega `model` por id dentro do salão (recarrega relacionamentos)"""
    result = await db.execute(
        select(model)
        .where(model.id == obj_id, model.salon_id == salon_id)
        .execution_options(populate_existing=True)
    )
    obj = result.scalar_one_or_none()
    if not obj:
        raise NotFoundError(message)
    return obj


async def require_client(db: AsyncSession, salon_id: str, client_id: str) -> Client:
    return await get_owned(db, Client, salon_id, client_id, "Cliente não encontrado.")


async def require_supplier(db: AsyncSession, salon_id: str, supplier_id: Optional[str]) -> Optional[Client]:
    """Fornecedor opcional: precisa existir no salão e ser FORNECEDOR ou BOTH"""
    if not supplier_id:
        return None

    supplier = await get_owned(db, Client, salon_id, supplier_id, "Fornecedor não encontrado.")
    if not supplier.is_supplier:
        raise ValidationError("Cliente informado não é fornecedor (type FORNECEDOR ou BOTH).")
    return supplier
