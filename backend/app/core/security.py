"""
Modulo di sicurezza per autenticazione JWT
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Funzioni per hashing di password/codici di accesso e gestione token JWT.
Esistono tre tipi di token:
- "access" / "refresh": utenti del back-office
- "laboratory": laboratori esterni che consultano i propri lanci
"""

from datetime import datetime, timedelta, timezone

from fastapi import HTTPException, status
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.schemas.token import TokenPayload

# Context per hashing password
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"
TOKEN_TYPE_LABORATORY = "laboratory"


def hash_password(password: str) -> str:
    """
    Hasha una password (o un codice di accesso laboratorio) in chiaro.

    Args:
        password: Password in chiaro

    Returns:
        Password hashata
    """
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """
    Verifica una password in chiaro contro una hashata.

    Args:
        plain_password: Password in chiaro
        hashed_password: Password hashata

    Returns:
        True se la password corrisponde, False altrimenti
    """
    return pwd_context.verify(plain_password, hashed_password)


def _encode(subject: str, role: str, token_type: str, expires_in: timedelta) -> str:
    payload = {
        "sub": subject,
        "role": role,
        "exp": datetime.now(timezone.utc) + expires_in,
        "type": token_type,
    }
    return jwt.encode(
        payload,
        settings.secret_key,
        algorithm=settings.jwt_algorithm,
    )


def create_access_token(user_id: str, role: str) -> str:
    """Crea un token di accesso JWT per un utente del back-office."""
    return _encode(
        user_id,
        role,
        TOKEN_TYPE_ACCESS,
        timedelta(minutes=settings.access_token_expire_minutes),
    )


def create_refresh_token(user_id: str, role: str) -> str:
    """Crea un token di refresh JWT per un utente del back-office."""
    return _encode(
        user_id,
        role,
        TOKEN_TYPE_REFRESH,
        timedelta(days=settings.refresh_token_expire_days),
    )


def create_laboratory_token(laboratory_id: int) -> str:
    """Crea il token rilasciato a un laboratorio esterno dopo il login."""
    return _encode(
        str(laboratory_id),
        "laboratory",
        TOKEN_TYPE_LABORATORY,
        timedelta(hours=settings.laboratory_token_expire_hours),
    )


def decode_token(token: str) -> TokenPayload:
    """
    Decodifica e valida un token JWT.

    Args:
        token: Token JWT da decodificare

    Returns:
        TokenPayload con i dati del token

    Raises:
        HTTPException: Se il token è invalido o scaduto
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token invalido o scaduto: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token invalido: missing subject",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return TokenPayload(
        sub=str(payload["sub"]),
        role=payload.get("role") or "",
        exp=datetime.fromtimestamp(int(payload.get("exp", 0)), tz=timezone.utc),
        type=payload.get("type") or "",
    )


# Export delle funzioni
__all__ = [
    "TOKEN_TYPE_ACCESS",
    "TOKEN_TYPE_REFRESH",
    "TOKEN_TYPE_LABORATORY",
    "hash_password",
    "verify_password",
    "create_access_token",
    "create_refresh_token",
    "create_laboratory_token",
    "decode_token",
]
