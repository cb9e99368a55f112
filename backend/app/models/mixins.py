"""
Mixin SQLAlchemy per modelli
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Mixin riutilizzabili per aggiungere funzionalità comuni ai modelli.
"""

import datetime

from sqlalchemy import DateTime, Integer
from sqlalchemy import event
from sqlalchemy.orm import Mapped, mapped_column, Session
from sqlalchemy.sql import func


class IntegerIdMixin:
    """
    Mixin per ID intero autoincrementale.

    Le entità SCM sono identificate da interi: il frontend e i
    laboratori esterni fanno riferimento a lanci e fasi per numero.

    Usage:
        class MyModel(Base, IntegerIdMixin):
            __tablename__ = "my_table"
            ...
    """

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        doc="Primary key intera",
    )


class TimestampMixin:
    """
    Mixin per gestione automatica timestamp creazione e aggiornamento.

    Aggiunge i campi:
    - created_at: data/ora di creazione record (impostato automaticamente)
    - updated_at: data/ora ultimo aggiornamento (aggiornato automaticamente)
    """

    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Data/ora di creazione del record",
    )

    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
        doc="Data/ora ultimo aggiornamento del record",
    )


# ------------------------------------------------------------
# Event Listeners
# ------------------------------------------------------------
@event.listens_for(Session, "before_flush")
def update_timestamp(session: Session, flush_context, instances) -> None:
    """
    Aggiorna updated_at (e created_at per i nuovi record) prima di ogni flush.

    Impostare i valori lato applicazione evita di dover ricaricare
    i default server-side dopo l'INSERT.
    """
    now = datetime.datetime.now(datetime.timezone.utc)

    for obj in session.dirty:
        if isinstance(obj, TimestampMixin) and session.is_modified(obj, include_collections=False):
            obj.updated_at = now

    for obj in session.new:
        if isinstance(obj, TimestampMixin):
            if obj.created_at is None:
                obj.created_at = now
            obj.updated_at = now
