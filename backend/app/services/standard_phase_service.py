"""
Service Layer per il catalogo Fasi Standard
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError, NotFoundError
from app.models import ArticlePhase, StandardPhase
from app.schemas.standard_phase import StandardPhaseCreate, StandardPhaseUpdate

logger = logging.getLogger(__name__)

# Colonne NOT NULL: un null esplicito in aggiornamento viene ignorato
NON_NULLABLE_FIELDS = ("nome", "ordine", "attivo")


class StandardPhaseService:
    """
    Service per il catalogo delle fasi standard.
    """

    async def get_all(self, db: AsyncSession, attivo: Optional[bool] = None) -> List[StandardPhase]:
        """Fasi del catalogo ordinate per ordine (a parità, per id)."""
        query = select(StandardPhase).order_by(StandardPhase.ordine, StandardPhase.id)
        if attivo is not None:
            query = query.where(StandardPhase.attivo == attivo)
        result = await db.execute(query)
        return list(result.scalars().all())

    async def get_by_ids(self, db: AsyncSession, ids: Sequence[int]) -> List[StandardPhase]:
        if not ids:
            return []
        result = await db.execute(select(StandardPhase).where(StandardPhase.id.in_(set(ids))))
        return list(result.scalars().all())

    async def get_by_id(self, db: AsyncSession, id: int) -> StandardPhase:
        result = await db.execute(select(StandardPhase).where(StandardPhase.id == id))
        phase = result.scalar_one_or_none()

        if not phase:
            logger.warning("Fase standard non trovata: %s", id)
            raise NotFoundError(f"Fase standard con ID {id} non trovata")

        return phase

    async def create(self, db: AsyncSession, data: StandardPhaseCreate) -> StandardPhase:
        phase = StandardPhase(**data.model_dump())
        db.add(phase)
        await db.flush()
        await db.refresh(phase)
        logger.info("Creata fase standard %s (%s)", phase.id, phase.nome)
        return phase

    async def update(self, db: AsyncSession, id: int, data: StandardPhaseUpdate) -> StandardPhase:
        """
        Aggiorna una fase del catalogo.

        Il nome copiato nelle fasi articolo già esistenti non viene aggiornato.
        Un null esplicito su nome, ordine o attivo viene ignorato.
        """
        phase = await self.get_by_id(db, id)

        for k, v in data.model_dump(exclude_unset=True).items():
            if v is None and k in NON_NULLABLE_FIELDS:
                continue
            setattr(phase, k, v)

        await db.flush()
        await db.refresh(phase)
        return phase

    async def delete(self, db: AsyncSession, id: int) -> None:
        """Elimina una fase del catalogo. Bloccato se usata da almeno una fase articolo."""
        phase = await self.get_by_id(db, id)

        usage = await db.execute(
            select(func.count(ArticlePhase.id)).where(ArticlePhase.phase_id == id)
        )
        usage_count = usage.scalar() or 0
        if usage_count > 0:
            raise BadRequestError(
                f"Non è possibile eliminare la fase: è utilizzata in {usage_count} articoli",
                extra={"usageCount": usage_count},
            )

        await db.delete(phase)
        await db.flush()
        logger.info("Eliminata fase standard %s", id)


standard_phase_service = StandardPhaseService()
