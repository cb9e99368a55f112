"""
Schemas Pydantic per i Laboratori esterni
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)
"""

import datetime
from typing import Optional

from pydantic import EmailStr, Field, field_validator

from app.schemas.common import CamelModel


def normalize_codice(v: Optional[str]) -> Optional[str]:
    """Rimuove gli spazi dal codice laboratorio; stringa vuota diventa None."""
    if v is None:
        return None
    v = v.strip()
    return v or None


class LaboratoryBase(CamelModel):
    codice: Optional[str] = Field(None, max_length=50, description="Codice laboratorio (username portale)")
    nome: str = Field(..., min_length=2, max_length=200, description="Ragione sociale")
    indirizzo: Optional[str] = Field(None, max_length=500)
    telefono: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = Field(None, description="Email di contatto")
    attivo: bool = Field(default=True, description="Indica se il laboratorio è attivo")

    @field_validator("codice")
    @classmethod
    def validate_codice(cls, v: Optional[str]) -> Optional[str]:
        return normalize_codice(v)


class LaboratoryCreate(LaboratoryBase):
    access_code: Optional[str] = Field(
        None,
        min_length=4,
        max_length=100,
        description="Codice di accesso al portale (salvato hashato)",
    )


class LaboratoryUpdate(CamelModel):
    codice: Optional[str] = Field(None, max_length=50)
    nome: Optional[str] = Field(None, min_length=2, max_length=200)
    indirizzo: Optional[str] = Field(None, max_length=500)
    telefono: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    access_code: Optional[str] = Field(None, min_length=4, max_length=100)
    attivo: Optional[bool] = None

    @field_validator("codice")
    @classmethod
    def validate_codice(cls, v: Optional[str]) -> Optional[str]:
        return normalize_codice(v)


class LaboratoryRead(LaboratoryBase):
    id: int
    # Validato in uscita: i dati storici potrebbero non essere email valide
    email: Optional[str] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime


class LaboratoryListItem(LaboratoryRead):
    launch_count: int = Field(0, description="Numero di lanci associati")
