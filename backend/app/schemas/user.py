"""
Schemas Pydantic per l'entità User
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Schemas per validazione e serializzazione dati utente.
"""

from datetime import datetime
from typing import Dict
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.user import UserRole


class UserCreate(BaseModel):
    """
    Schema per la creazione di un nuovo utente.

    Attributes:
        email: Email dell'utente (deve essere univoca)
        password: Password in chiaro (min 8, max 100 caratteri)
        full_name: Nome completo dell'utente
        role: Ruolo dell'utente (default: operator)
        permissions: Permessi per modulo, es. {"scm_admin": true}
    """

    email: EmailStr = Field(..., description="Email univoca dell'utente")
    password: str = Field(
        min_length=8,
        max_length=100,
        description="Password in chiaro (min 8, max 100 caratteri)",
    )
    full_name: str = Field(
        min_length=1,
        max_length=100,
        description="Nome completo dell'utente",
    )
    role: UserRole = Field(
        default=UserRole.OPERATOR,
        description="Ruolo dell'utente",
    )
    permissions: Dict[str, bool] = Field(
        default_factory=dict,
        description="Permessi per modulo",
    )


class UserLogin(BaseModel):
    """Schema per il login utente."""

    email: EmailStr = Field(..., description="Email dell'utente")
    password: str = Field(..., description="Password in chiaro")


class UserResponse(BaseModel):
    """Dati utente esposti dalle API (mai la password)."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="UUID dell'utente")
    email: str = Field(..., description="Email dell'utente")
    full_name: str = Field(..., description="Nome completo dell'utente")
    role: UserRole = Field(..., description="Ruolo dell'utente")
    permissions: Dict[str, bool] = Field(default_factory=dict, description="Permessi per modulo")
    is_active: bool = Field(..., description="Indica se l'utente è attivo")
    created_at: datetime = Field(..., description="Data/ora di creazione")


__all__ = [
    "UserCreate",
    "UserLogin",
    "UserResponse",
]
