import datetime
from typing import Optional

from pydantic import Field

from app.schemas.common import CamelModel


class StandardPhaseBase(CamelModel):
    nome: str = Field(..., min_length=2, max_length=100, description="Nome della fase")
    codice: Optional[str] = Field(None, max_length=50)
    descrizione: Optional[str] = None
    ordine: int = Field(..., ge=0, description="Posizione nel catalogo")
    attivo: bool = Field(default=True, description="Le fasi attive vengono assegnate ai nuovi articoli")


class StandardPhaseCreate(StandardPhaseBase):
    pass


class StandardPhaseUpdate(CamelModel):
    nome: Optional[str] = Field(None, min_length=2, max_length=100)
    codice: Optional[str] = Field(None, max_length=50)
    descrizione: Optional[str] = None
    ordine: Optional[int] = Field(None, ge=0)
    attivo: Optional[bool] = None


class StandardPhaseRead(StandardPhaseBase):
    id: int
    created_at: datetime.datetime
    updated_at: datetime.datetime
