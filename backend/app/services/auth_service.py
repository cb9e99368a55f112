"""
Servizio per l'autenticazione
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Business logic per registrazione, login e refresh token degli utenti
del back-office, e login dei laboratori al portale.
"""

import logging
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import ConflictError, DuplicateError, NotFoundError
from app.core.security import (
    TOKEN_TYPE_REFRESH,
    create_access_token,
    create_laboratory_token,
    create_refresh_token,
    decode_token,
    hash_password,
    verify_password,
)
from app.models.user import User, UserRole
from app.schemas.token import (
    LaboratoryIdentity,
    LaboratoryLogin,
    LaboratoryLoginResponse,
    TokenResponse,
)
from app.schemas.user import UserCreate, UserLogin
from app.services.laboratory_service import laboratory_service

logger = logging.getLogger(__name__)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


class AuthService:
    """Servizio per la gestione dell'autenticazione."""

    async def count_users(self, db: AsyncSession) -> int:
        result = await db.execute(select(func.count(User.id)))
        return result.scalar() or 0

    async def register(self, db: AsyncSession, data: UserCreate) -> User:
        """
        Registra un nuovo utente nel sistema.

        Il primo utente registrato diventa sempre admin.

        Raises:
            DuplicateError: Se l'email è già registrata
            ConflictError: Se il database rifiuta la scrittura
        """
        result = await db.execute(select(User).where(User.email == data.email))
        if result.scalar_one_or_none():
            raise DuplicateError(f"L'email {data.email} è già registrata")

        role = data.role
        if await self.count_users(db) == 0:
            role = UserRole.ADMIN

        user = User(
            email=data.email,
            hashed_password=hash_password(data.password),
            full_name=data.full_name,
            role=role.value if isinstance(role, UserRole) else role,
            permissions=dict(data.permissions),
        )

        try:
            db.add(user)
            await db.flush()
            await db.refresh(user)

            logger.info("Registrato utente %s con ruolo %s", user.email, user.role)
            return user

        except IntegrityError as e:
            logger.error("Errore IntegrityError registrazione utente: %s - %s", e.__class__.__name__, e.orig)
            await db.rollback()
            if "email" in str(e.orig).lower():
                raise DuplicateError(f"L'email {data.email} è già registrata")
            raise ConflictError("Errore durante la registrazione dell'utente")

        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy registrazione utente: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante la registrazione dell'utente")

    async def login(self, db: AsyncSession, data: UserLogin) -> TokenResponse:
        """
        Autentica un utente e restituisce i token JWT.

        Raises:
            HTTPException 401: Se le credenziali sono invalide o l'utente è disattivato
        """
        result = await db.execute(select(User).where(User.email == data.email))
        user = result.scalar_one_or_none()

        if not user or not verify_password(data.password, user.hashed_password):
            logger.warning("Login fallito per %s", data.email)
            raise _unauthorized("Email o password non corretti")

        if not user.is_active:
            raise _unauthorized("Utente disattivato")

        return TokenResponse(
            access_token=create_access_token(str(user.id), user.role),
            refresh_token=create_refresh_token(str(user.id), user.role),
            token_type="bearer",
        )

    async def refresh(self, db: AsyncSession, refresh_token: str) -> TokenResponse:
        """
        Aggiorna i token JWT usando un refresh token.

        Raises:
            HTTPException 401: Se il refresh token è invalido
        """
        token_data = decode_token(refresh_token)

        if token_data.type != TOKEN_TYPE_REFRESH:
            raise _unauthorized("Token di accesso non valido per il refresh")

        try:
            user_id = UUID(token_data.sub)
        except ValueError:
            raise _unauthorized("ID utente invalido nel token")

        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()

        if not user:
            raise _unauthorized("Utente non trovato")
        if not user.is_active:
            raise _unauthorized("Utente disattivato")

        return TokenResponse(
            access_token=create_access_token(str(user.id), user.role),
            refresh_token=create_refresh_token(str(user.id), user.role),
            token_type="bearer",
        )

    async def laboratory_login(
        self,
        db: AsyncSession,
        data: LaboratoryLogin,
    ) -> LaboratoryLoginResponse:
        """
        Login del portale laboratori con codice laboratorio e codice di accesso.

        Raises:
            HTTPException 401: Credenziali non valide o laboratorio inattivo
        """
        laboratory = await laboratory_service.authenticate(db, data.username, data.password)
        logger.info("Login laboratorio %s (%s)", laboratory.id, laboratory.codice)

        return LaboratoryLoginResponse(
            laboratory=LaboratoryIdentity(
                id=laboratory.id,
                name=laboratory.nome,
                code=laboratory.codice,
            ),
            token=create_laboratory_token(laboratory.id),
        )

    async def get_user_by_id(self, db: AsyncSession, user_id: UUID) -> User:
        """
        Raises:
            NotFoundError: Se l'utente non esiste
        """
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()

        if not user:
            raise NotFoundError(f"Utente con ID {user_id} non trovato")

        return user


def get_auth_service() -> AuthService:
    """Factory per ottenere un'istanza del servizio di autenticazione."""
    return AuthService()


__all__ = [
    "AuthService",
    "get_auth_service",
]
