"""
Modello SQLAlchemy per i Laboratori esterni
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)
"""

from __future__ import annotations
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import IntegerIdMixin, TimestampMixin

if TYPE_CHECKING:
    from app.models.launch import Launch


class Laboratory(Base, IntegerIdMixin, TimestampMixin):
    """
    Laboratorio esterno (terzista) a cui vengono affidati i lanci.

    Un laboratorio può essere eliminato solo se non possiede lanci.
    Il codice di accesso per il portale laboratori è salvato solo in
    forma hashata.
    """

    __tablename__ = "scm_laboratories"

    codice: Mapped[Optional[str]] = mapped_column(
        String(50),
        unique=True,
        nullable=True,
        doc="Codice laboratorio, usato anche come username per il portale",
    )

    nome: Mapped[str] = mapped_column(String(200), nullable=False)
    indirizzo: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    telefono: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    access_code_hash: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Hash del codice di accesso al portale laboratori",
    )

    attivo: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Relationships
    launches: Mapped[List["Launch"]] = relationship(
        "Launch",
        back_populates="laboratory",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"Laboratory(id={self.id!r}, nome={self.nome!r})"
