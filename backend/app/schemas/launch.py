"""
Schemas Pydantic per Lanci, Articoli, Fasi e Avanzamento
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Definisce gli schemi di validazione e serializzazione per l'API e le
funzioni di derivazione dei campi calcolati degli articoli (codice,
descrizione, percentuale).
"""

import datetime
from enum import Enum
from typing import Iterable, List, Optional, Tuple

from pydantic import Field, computed_field, field_validator

from app.schemas.common import CamelModel
from app.schemas.laboratory import LaboratoryRead
from app.schemas.standard_phase import StandardPhaseRead


# -------------------------------------------------------------------
# Enum degli stati
# -------------------------------------------------------------------

class LaunchStatus(str, Enum):
    """Stati di un lancio. Alla creazione è sempre IN_PREPARAZIONE."""
    IN_PREPARAZIONE = "IN_PREPARAZIONE"
    IN_LAVORAZIONE = "IN_LAVORAZIONE"
    COMPLETATO = "COMPLETATO"
    BLOCCATO = "BLOCCATO"


class PhaseStatus(str, Enum):
    """Stati di una fase di lavorazione di un articolo."""
    NON_INIZIATA = "NON_INIZIATA"
    IN_CORSO = "IN_CORSO"
    COMPLETATA = "COMPLETATA"
    BLOCCATA = "BLOCCATA"


# -------------------------------------------------------------------
# Funzioni di derivazione standalone
# -------------------------------------------------------------------

def split_codice(codice: str) -> Tuple[str, str]:
    """
    Scompone il codice articolo "COMMESSA-MODELLO" al primo '-'.

    Il modello può a sua volta contenere '-'. Senza separatore il
    modello è stringa vuota.

    Examples:
        >>> split_codice("F02B227-MQ285Q888")
        ('F02B227', 'MQ285Q888')
        >>> split_codice("A-B-C")
        ('A', 'B-C')
    """
    commessa, _, modello = codice.partition("-")
    return commessa, modello


def join_codice(commessa: Optional[str], modello: Optional[str]) -> str:
    """Ricompone il codice articolo; vuoto se manca commessa o modello."""
    if commessa and modello:
        return f"{commessa}-{modello}"
    return ""


def completion_percentage(stati: Iterable[str]) -> int:
    """
    Percentuale di fasi completate, arrotondata all'intero (0.5 per eccesso).

    Un articolo senza fasi vale 0.
    """
    stati = list(stati)
    total = len(stati)
    if total == 0:
        return 0
    completed = sum(1 for s in stati if s == PhaseStatus.COMPLETATA.value)
    # Arrotondamento half-up in aritmetica intera
    return (200 * completed + total) // (2 * total)


# -------------------------------------------------------------------
# Progress Tracking
# -------------------------------------------------------------------

class ProgressTrackingCreate(CamelModel):
    quantita: int = Field(..., ge=0, description="Quantità lavorata in questa registrazione")
    data: Optional[datetime.datetime] = Field(None, description="Data registrazione (default: adesso)")
    note: Optional[str] = None


class ProgressTrackingRead(CamelModel):
    id: int
    phase_id: int
    quantita: int
    data: datetime.datetime
    note: Optional[str] = None


# -------------------------------------------------------------------
# Fasi articolo
# -------------------------------------------------------------------

class ArticlePhaseUpdate(CamelModel):
    """
    Aggiornamento parziale di una fase.

    Impostare stato=COMPLETATA completa automaticamente tutte le fasi
    precedenti dello stesso articolo.
    """

    stato: Optional[PhaseStatus] = None
    data_inizio: Optional[datetime.datetime] = None
    data_fine: Optional[datetime.datetime] = None
    note: Optional[str] = None


class ArticlePhaseRead(CamelModel):
    id: int
    article_id: int
    phase_id: int
    nome: str
    sequenza: int
    stato: PhaseStatus
    data_inizio: Optional[datetime.datetime] = None
    data_fine: Optional[datetime.datetime] = None
    note: Optional[str] = None
    standard_phase: Optional[StandardPhaseRead] = None
    tracking: List[ProgressTrackingRead] = Field(default_factory=list)


# -------------------------------------------------------------------
# Articoli
# -------------------------------------------------------------------

class LaunchArticleCreate(CamelModel):
    codice: str = Field(..., min_length=1, max_length=201, description="Codice COMMESSA-MODELLO")
    descrizione: str = Field(..., max_length=500)
    quantita: int = Field(..., ge=1, description="Numero di paia")
    note: Optional[str] = None

    @field_validator("codice")
    @classmethod
    def validate_codice(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Il codice articolo non può essere vuoto")
        return v


class LaunchArticleUpdate(CamelModel):
    codice: Optional[str] = Field(None, min_length=1, max_length=201)
    descrizione: Optional[str] = Field(None, max_length=500)
    quantita: Optional[int] = Field(None, ge=1)
    note: Optional[str] = None

    @field_validator("codice")
    @classmethod
    def validate_codice(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not v:
            raise ValueError("Il codice articolo non può essere vuoto")
        return v


class LaunchArticleRead(CamelModel):
    id: int
    launch_id: int
    commessa: str
    modello: str
    colore: Optional[str] = None
    quantita: int
    note: Optional[str] = None
    phases: List[ArticlePhaseRead] = Field(default_factory=list)

    @computed_field
    @property
    def codice(self) -> str:
        return join_codice(self.commessa, self.modello)

    @computed_field
    @property
    def descrizione(self) -> Optional[str]:
        return self.colore

    @computed_field
    @property
    def percentuale(self) -> int:
        return completion_percentage(p.stato.value for p in self.phases)


# -------------------------------------------------------------------
# Lanci
# -------------------------------------------------------------------

class LaunchPhaseInput(CamelModel):
    """Fase richiesta alla creazione del lancio, con la sua posizione."""

    standard_phase_id: int = Field(..., description="ID della fase standard")
    ordine: int = Field(..., description="Posizione della fase nella sequenza del lancio")


class LaunchCreate(CamelModel):
    """
    Dati per la creazione di un lancio.

    Lo stato non è accettato: un nuovo lancio nasce sempre IN_PREPARAZIONE.
    """

    numero: str = Field(..., min_length=1, max_length=50)
    laboratory_id: int
    data_lancio: datetime.date
    data_consegna: Optional[datetime.date] = None
    note: Optional[str] = None
    articles: List[LaunchArticleCreate] = Field(default_factory=list)
    phases: List[LaunchPhaseInput] = Field(default_factory=list)


class LaunchUpdate(CamelModel):
    numero: Optional[str] = Field(None, min_length=1, max_length=50)
    laboratory_id: Optional[int] = None
    data_lancio: Optional[datetime.date] = None
    data_consegna: Optional[datetime.date] = None
    stato: Optional[LaunchStatus] = None
    blocked_reason: Optional[str] = None
    note: Optional[str] = None


class LaunchRead(CamelModel):
    id: int
    numero: str
    laboratory_id: int
    data_lancio: datetime.date
    data_consegna: Optional[datetime.date] = None
    stato: LaunchStatus
    blocked_reason: Optional[str] = None
    note: Optional[str] = None
    created_at: datetime.datetime
    updated_at: datetime.datetime
    laboratory: Optional[LaboratoryRead] = None
    articles: List[LaunchArticleRead] = Field(default_factory=list)


class LaboratoryDetail(LaboratoryRead):
    """Dettaglio laboratorio con i lanci più recenti."""

    launch_count: int = 0
    launches: List[LaunchRead] = Field(default_factory=list)
