"""
Schemas Pydantic per l'autenticazione JWT
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Schemas per token JWT, relativi payload e login dei laboratori esterni.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from app.schemas.common import CamelModel


class TokenResponse(BaseModel):
    """
    Schema per la risposta contenente i token JWT.

    Attributes:
        access_token: Token di accesso JWT
        refresh_token: Token di refresh JWT
        token_type: Tipo di token (default: bearer)
    """

    access_token: str = Field(..., description="Token di accesso JWT")
    refresh_token: str = Field(..., description="Token di refresh JWT")
    token_type: str = Field(
        default="bearer",
        description="Tipo di token",
    )


class TokenRefresh(BaseModel):
    """Schema per la richiesta di refresh token."""

    refresh_token: str = Field(..., description="Token di refresh JWT")


class TokenPayload(BaseModel):
    """
    Schema per il payload contenuto nei token JWT.

    Attributes:
        sub: Subject - ID dell'utente o del laboratorio come stringa
        role: Ruolo dell'utente ("laboratory" per i laboratori)
        exp: Expiration - Data/ora di scadenza
        type: Tipo di token ("access", "refresh" o "laboratory")
    """

    sub: str = Field(..., description="ID soggetto")
    role: str = Field(..., description="Ruolo del soggetto")
    exp: datetime = Field(..., description="Data/ora di scadenza")
    type: str = Field(..., description="Tipo di token")


class LaboratoryLogin(BaseModel):
    """Credenziali del portale laboratori: codice laboratorio e codice di accesso."""

    username: str = Field(..., min_length=1, description="Codice laboratorio")
    password: str = Field(..., min_length=1, description="Codice di accesso")


class LaboratoryIdentity(CamelModel):
    id: int
    name: str
    code: str


class LaboratoryLoginResponse(CamelModel):
    laboratory: LaboratoryIdentity
    token: str
    token_type: str = "bearer"


__all__ = [
    "TokenResponse",
    "TokenRefresh",
    "TokenPayload",
    "LaboratoryLogin",
    "LaboratoryIdentity",
    "LaboratoryLoginResponse",
]
