"""
Dependency Injection per autenticazione
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Funzioni di dependency injection per autenticazione e autorizzazione:
- utenti del back-office (token "access") con permessi per modulo
- laboratori esterni del portale (token "laboratory")
"""

import logging
from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import AuthorizationError
from app.core.security import TOKEN_TYPE_ACCESS, TOKEN_TYPE_LABORATORY, decode_token
from app.models.laboratory import Laboratory
from app.models.user import User

logger = logging.getLogger(__name__)

# OAuth2 scheme - estrae il token dall'header Authorization
oauth2_scheme = OAuth2PasswordBearer(
    tokenUrl="/api/v1/auth/login",
    auto_error=False,
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """
    Dependency per ottenere l'utente corrente dal token JWT.

    Args:
        token: Token JWT estratto dall'header Authorization
        db: Sessione database

    Returns:
        L'utente corrente

    Raises:
        HTTPException 401: Se il token è assente, invalido, scaduto,
            non è un token di accesso o l'utente non è attivo
    """
    if not token:
        raise _unauthorized("Token di autenticazione non fornito")

    token_data = decode_token(token)

    if token_data.type != TOKEN_TYPE_ACCESS:
        raise _unauthorized("Token non valido per questa operazione")

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

    return user


async def get_optional_user(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Optional[User]:
    """Come get_current_user, ma restituisce None se il token è assente."""
    if not token:
        return None
    return await get_current_user(token=token, db=db)


def require_permission(permission: str):
    """
    Factory per una dependency che verifica un permesso di modulo.

    Il ruolo admin possiede implicitamente ogni permesso.

    Example:
        router = APIRouter(
            dependencies=[Depends(require_permission("scm_admin"))],
        )
    """
    async def permission_checker(
        current_user: Annotated[User, Depends(get_current_user)]
    ) -> User:
        if not current_user.has_permission(permission):
            logger.warning(
                "Utente %s senza permesso %s",
                current_user.email,
                permission,
            )
            raise AuthorizationError(
                f"Accesso negato. Permesso richiesto: {permission}",
                extra={"permission": permission},
            )
        return current_user

    return permission_checker


async def get_current_laboratory(
    token: Optional[str] = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> Laboratory:
    """
    Dependency per il portale laboratori: laboratorio del token.

    Raises:
        HTTPException 401: Token assente o non di tipo laboratorio,
            laboratorio inesistente o disattivato
    """
    if not token:
        raise _unauthorized("Token di autenticazione non fornito")

    token_data = decode_token(token)

    if token_data.type != TOKEN_TYPE_LABORATORY:
        raise _unauthorized("Token laboratorio richiesto")

    try:
        laboratory_id = int(token_data.sub)
    except ValueError:
        raise _unauthorized("ID laboratorio invalido nel token")

    laboratory = await db.get(Laboratory, laboratory_id)
    if not laboratory or not laboratory.attivo:
        raise _unauthorized("Laboratorio non trovato o disattivato")

    return laboratory


# Type aliases per uso comune
CurrentUser = Annotated[User, Depends(get_current_user)]
OptionalUser = Annotated[Optional[User], Depends(get_optional_user)]
CurrentLaboratory = Annotated[Laboratory, Depends(get_current_laboratory)]


__all__ = [
    "get_current_user",
    "get_optional_user",
    "require_permission",
    "get_current_laboratory",
    "oauth2_scheme",
    "CurrentUser",
    "OptionalUser",
    "CurrentLaboratory",
]
