"""
Modelli SQLAlchemy per i Lanci di produzione
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

 Contiene:
- Launch: lotto di lavoro affidato a un laboratorio esterno
- LaunchArticle: riga articolo del lancio (commessa + modello, paia)
- ArticlePhase: istanza per-articolo di una fase standard
- ProgressTracking: registrazione (append-only) delle quantità lavorate
"""


from __future__ import annotations
from datetime import date, datetime
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models import Base
from app.models.mixins import IntegerIdMixin, TimestampMixin

if TYPE_CHECKING:
    from app.models.laboratory import Laboratory
    from app.models.standard_phase import StandardPhase


# Gli stati sono definiti in app.schemas.launch (LaunchStatus, PhaseStatus)


class Launch(Base, IntegerIdMixin, TimestampMixin):
    """
    Lancio di produzione affidato a un laboratorio.

    Attributes:
        numero: Numero lancio esterno
        laboratory_id: Laboratorio proprietario
        data_lancio: Data del lancio
        data_consegna: Data di consegna prevista (opzionale)
        stato: IN_PREPARAZIONE, IN_LAVORAZIONE, COMPLETATO, BLOCCATO
        blocked_reason: Motivo del blocco (opzionale)
        note: Note libere

    Relationships:
        laboratory: Laboratorio esterno
        articles: Articoli del lancio (eliminati in cascata)
    """

    __tablename__ = "scm_launches"

    numero: Mapped[str] = mapped_column(String(50), nullable=False)

    laboratory_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("scm_laboratories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    data_lancio: Mapped[date] = mapped_column(Date, nullable=False)
    data_consegna: Mapped[Optional[date]] = mapped_column(Date, nullable=True)

    stato: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="IN_PREPARAZIONE",
    )

    blocked_reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    laboratory: Mapped["Laboratory"] = relationship(
        "Laboratory",
        back_populates="launches",
        lazy="joined",
    )

    articles: Mapped[List["LaunchArticle"]] = relationship(
        "LaunchArticle",
        back_populates="launch",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="LaunchArticle.id",
        lazy="noload",
    )

    __table_args__ = (
        Index("ix_scm_launches_stato", "stato"),
        Index("ix_scm_launches_data_lancio", "data_lancio"),
        CheckConstraint(
            "stato IN ('IN_PREPARAZIONE', 'IN_LAVORAZIONE', 'COMPLETATO', 'BLOCCATO')",
            name="ck_scm_launches_stato",
        ),
    )

    def __repr__(self) -> str:
        return f"<Launch(id={self.id}, numero={self.numero}, stato={self.stato})>"


class LaunchArticle(Base, IntegerIdMixin, TimestampMixin):
    """
    Articolo di un lancio.

    Il codice composito "COMMESSA-MODELLO" viene scomposto al primo '-'.
    La colonna colore contiene la descrizione dell'articolo.
    """

    __tablename__ = "scm_launch_articles"

    launch_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("scm_launches.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    commessa: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    modello: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    colore: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    quantita: Mapped[int] = mapped_column(Integer, nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    launch: Mapped["Launch"] = relationship(
        "Launch",
        back_populates="articles",
        lazy="noload",
    )

    phases: Mapped[List["ArticlePhase"]] = relationship(
        "ArticlePhase",
        back_populates="article",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[ArticlePhase.sequenza, ArticlePhase.id]",
        lazy="noload",
    )

    __table_args__ = (
        CheckConstraint("quantita >= 1", name="ck_scm_launch_articles_quantita"),
    )

    def __repr__(self) -> str:
        return f"<LaunchArticle(id={self.id}, commessa={self.commessa}, modello={self.modello})>"


class ArticlePhase(Base, IntegerIdMixin, TimestampMixin):
    """
    Fase di lavorazione di un articolo.

    La colonna sequenza è la posizione della fase nella pipeline
    dell'articolo: assegnata una sola volta alla creazione, definisce
    l'ordine usato dalla regola di completamento sequenziale.
    """

    __tablename__ = "scm_article_phases"

    article_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("scm_launch_articles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    phase_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("scm_standard_phases.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    nome: Mapped[str] = mapped_column(String(100), nullable=False)
    sequenza: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    stato: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="NON_INIZIATA",
    )

    data_inizio: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    data_fine: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    article: Mapped["LaunchArticle"] = relationship(
        "LaunchArticle",
        back_populates="phases",
        lazy="noload",
    )

    standard_phase: Mapped["StandardPhase"] = relationship(
        "StandardPhase",
        lazy="joined",
    )

    tracking: Mapped[List["ProgressTracking"]] = relationship(
        "ProgressTracking",
        back_populates="phase",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="[ProgressTracking.data.desc(), ProgressTracking.id.desc()]",
        lazy="noload",
    )

    __table_args__ = (
        Index("ix_scm_article_phases_article_sequenza", "article_id", "sequenza"),
        CheckConstraint(
            "stato IN ('NON_INIZIATA', 'IN_CORSO', 'COMPLETATA', 'BLOCCATA')",
            name="ck_scm_article_phases_stato",
        ),
    )

    def __repr__(self) -> str:
        return f"<ArticlePhase(id={self.id}, nome={self.nome}, sequenza={self.sequenza}, stato={self.stato})>"


class ProgressTracking(Base, IntegerIdMixin, TimestampMixin):
    """Registrazione datata della quantità lavorata su una fase. Mai modificata."""

    __tablename__ = "scm_progress_tracking"

    phase_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("scm_article_phases.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    quantita: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    phase: Mapped["ArticlePhase"] = relationship(
        "ArticlePhase",
        back_populates="tracking",
        lazy="noload",
    )

    __table_args__ = (
        CheckConstraint("quantita >= 0", name="ck_scm_progress_tracking_quantita"),
    )

    def __repr__(self) -> str:
        return f"<ProgressTracking(id={self.id}, phase_id={self.phase_id}, quantita={self.quantita})>"
