"""
Marcenaria API - Auth API
Cadastro, login e dependência de usuário autenticado (tenant)
"""
from datetime import datetime, timezone
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from slowapi import Limiter
from slowapi.util import get_remote_address
import logging

from app.database import get_db
from app.models import Salon, User
from app.schemas import LoginRequest, RegisterRequest
from app.core import (
    ConflictError,
    verify_password,
    get_password_hash,
    create_access_token,
    verify_access_token,
    settings
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])
security = HTTPBearer(auto_error=False)

# Rate limiter (login/cadastro)
limiter = Limiter(key_func=get_remote_address)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Dependency para obter usuário autenticado; user.salon_id é o tenant"""
    if not credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token não informado."
        )

    payload = verify_access_token(credentials.credentials)
    if not payload or not payload.get("sub") or not payload.get("salon_id"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token inválido ou expirado."
        )

    result = await db.execute(
        select(User).where(
            User.id == payload["sub"],
            User.salon_id == payload["salon_id"]
        )
    )
    user = result.scalar_one_or_none()

    if not user or not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Usuário não encontrado ou inativo."
        )

    return user


def _session_payload(user: User, salon: Salon) -> dict:
    token = create_access_token(data={"sub": user.id, "salon_id": salon.id})
    return {
        "token": token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        "user": user.to_dict(),
        "salon": salon.to_dict(),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def register(
    request: Request,
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db)
):
    """Cria usuário + salão"""
    email = payload.email.lower()

    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise ConflictError("Email já cadastrado.")

    salon = Salon(name=payload.salon_name, phone=payload.phone)
    db.add(salon)
    await db.flush()

    user = User(
        name=payload.name,
        email=email,
        phone=payload.phone,
        hashed_password=get_password_hash(payload.password),
        salon_id=salon.id,
    )
    db.add(user)
    await db.commit()

    logger.info(f"Novo salão cadastrado: {salon.id} ({email})")
    return _session_payload(user, salon)


@router.post("/login")
@limiter.limit(settings.LOGIN_RATE_LIMIT)
async def login(
    request: Request,
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Login por email e senha"""
    result = await db.execute(
        select(User).where(User.email == payload.email.lower())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(payload.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Email ou senha incorretos."
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Conta desativada."
        )

    user.last_login_at = datetime.now(timezone.utc).replace(tzinfo=None)
    await db.commit()

    return _session_payload(user, user.salon)


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    """Usuário e salão do token"""
    return {"user": user.to_dict(), "salon": user.salon.to_dict() if user.salon else None}
