"""
Router per l'autenticazione
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Endpoints per registrazione, login, refresh token e profilo utente.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import CurrentUser, OptionalUser
from app.models.user import UserRole
from app.schemas.token import TokenRefresh, TokenResponse
from app.schemas.user import UserCreate, UserLogin, UserResponse
from app.services.auth_service import AuthService, get_auth_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"],
)


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Registra un nuovo utente",
)
async def register(
    data: UserCreate,
    current_user: OptionalUser,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """
    Registra un nuovo utente nel sistema.

    Se esistono già utenti nel DB serve un token di un admin.
    Il primo utente si registra liberamente e diventa admin.
    """
    if await service.count_users(db) > 0:
        if current_user is None:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Autenticazione richiesta per registrare nuovi utenti",
                headers={"WWW-Authenticate": "Bearer"},
            )
        if current_user.role != UserRole.ADMIN.value:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Solo gli admin possono registrare nuovi utenti",
            )

    user = await service.register(db, data)
    await db.commit()
    return user


@router.post(
    "/login",
    response_model=TokenResponse,
    summary="Effettua il login",
)
async def login(
    data: UserLogin,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    """Effettua il login e restituisce access_token e refresh_token."""
    return await service.login(db, data)


@router.post(
    "/refresh",
    response_model=TokenResponse,
    summary="Aggiorna i token",
)
async def refresh(
    data: TokenRefresh,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
):
    return await service.refresh(db, data.refresh_token)


@router.get(
    "/me",
    response_model=UserResponse,
    summary="Ottieni il profilo utente corrente",
)
async def get_me(current_user: CurrentUser):
    return current_user


__all__ = ["router"]
