from __future__ import annotations
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models import Base
from app.models.mixins import IntegerIdMixin, TimestampMixin


class StandardPhase(Base, IntegerIdMixin, TimestampMixin):
    """
    Catalogo delle fasi di lavorazione standard (taglio, cucitura, ...).

    Indipendente dai lanci: le fasi degli articoli lo referenziano ma ne
    copiano il nome al momento della creazione.
    """

    __tablename__ = "scm_standard_phases"

    nome: Mapped[str] = mapped_column(String(100), nullable=False)
    codice: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    descrizione: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    ordine: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    attivo: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (
        Index("ix_scm_standard_phases_ordine", "ordine"),
        CheckConstraint("ordine >= 0", name="ck_scm_standard_phases_ordine"),
    )

    def __repr__(self) -> str:
        return f"StandardPhase(id={self.id!r}, nome={self.nome!r}, ordine={self.ordine!r})"
