"""
Service Layer per statistiche lanci e dashboard laboratori
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Aggregazioni di sola lettura, ricalcolate ad ogni richiesta.
"""

import logging
from typing import Iterable, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.models import Launch, LaunchArticle
from app.schemas.launch import LaunchStatus
from app.schemas.statistics import (
    DashboardLaunch,
    DashboardStatistics,
    LaboratoryDashboard,
    ScmStatistics,
)

logger = logging.getLogger(__name__)

# Stato del lancio -> campo di StatusBreakdown
STATUS_BUCKETS = {
    LaunchStatus.IN_PREPARAZIONE.value: "in_preparation",
    LaunchStatus.IN_LAVORAZIONE.value: "in_progress",
    LaunchStatus.COMPLETATO.value: "completed",
    LaunchStatus.BLOCCATO.value: "blocked",
}

DEFAULT_DASHBOARD_DESCRIPTION = "Nessuna descrizione"


def fold_statistics(rows: Iterable[Tuple[str, int]]) -> ScmStatistics:
    """
    Aggrega le righe (stato, paia) di ciascun lancio.

    Ogni riga rappresenta un lancio; un lancio senza articoli ha 0 paia.
    """
    stats = ScmStatistics()
    for stato, pairs in rows:
        pairs = int(pairs or 0)
        stats.total_launches += 1
        stats.total_pairs += pairs

        bucket_name = STATUS_BUCKETS.get(stato)
        if bucket_name is None:
            logger.warning("Stato lancio sconosciuto ignorato nelle statistiche: %s", stato)
            continue
        bucket = getattr(stats.by_status, bucket_name)
        bucket.count += 1
        bucket.pairs += pairs
    return stats


def build_dashboard(launches: Sequence[Launch]) -> LaboratoryDashboard:
    """
    Raggruppa i lanci di un laboratorio per il portale.

    I lanci BLOCCATO contano nei totali ma non compaiono in nessun gruppo.
    """
    dashboard = LaboratoryDashboard()
    groups = dashboard.launches_by_status
    stats = dashboard.statistics

    for launch in launches:
        articles = launch.articles or []
        pairs = sum(a.quantita or 0 for a in articles)
        item = DashboardLaunch(
            id=launch.id,
            code=launch.numero,
            description=launch.note or DEFAULT_DASHBOARD_DESCRIPTION,
            status=launch.stato,
            created_at=launch.data_lancio,
            total_articles=len(articles),
            total_pairs=pairs,
        )

        stats.total_launches += 1
        stats.total_pairs += pairs

        if launch.stato == LaunchStatus.IN_PREPARAZIONE.value:
            groups.preparazione.append(item)
            stats.in_preparation += 1
        elif launch.stato == LaunchStatus.IN_LAVORAZIONE.value:
            groups.lavorazione.append(item)
            stats.in_progress += 1
        elif launch.stato == LaunchStatus.COMPLETATO.value:
            groups.completi.append(item)
            stats.completed += 1

    return dashboard


class StatisticsService:
    """Service per le aggregazioni sui lanci."""

    async def get_statistics(
        self,
        db: AsyncSession,
        laboratory_id: Optional[int] = None,
    ) -> ScmStatistics:
        """
        Conteggio lanci e paia, totale e per stato.

        Args:
            db: Sessione database
            laboratory_id: Se indicato, limita ai lanci del laboratorio
        """
        query = (
            select(
                Launch.id,
                Launch.stato,
                func.coalesce(func.sum(LaunchArticle.quantita), 0).label("pairs"),
            )
            .outerjoin(LaunchArticle, LaunchArticle.launch_id == Launch.id)
            .group_by(Launch.id, Launch.stato)
        )
        if laboratory_id:
            query = query.where(Launch.laboratory_id == laboratory_id)

        result = await db.execute(query)
        stats = fold_statistics((row.stato, row.pairs) for row in result.all())
        logger.debug(
            "Statistiche calcolate (laboratorio=%s): %d lanci, %d paia",
            laboratory_id,
            stats.total_launches,
            stats.total_pairs,
        )
        return stats

    async def get_dashboard(self, db: AsyncSession, laboratory_id: int) -> LaboratoryDashboard:
        """Dashboard del portale per un laboratorio, dal lancio più recente."""
        result = await db.execute(
            select(Launch)
            .where(Launch.laboratory_id == laboratory_id)
            .options(selectinload(Launch.articles))
            .order_by(Launch.data_lancio.desc(), Launch.id.desc())
        )
        return build_dashboard(list(result.scalars().all()))


statistics_service = StatisticsService()
