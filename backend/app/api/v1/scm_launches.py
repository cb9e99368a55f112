"""
Router FastAPI per Lanci, Articoli, Fasi e Avanzamento
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Definisce gli endpoint di amministrazione del tracciamento lanci:
- lanci (lista filtrata, dettaglio, creazione transazionale, modifica)
- articoli di un lancio
- fasi articolo con completamento sequenziale
- registrazioni di avanzamento
- statistiche aggregate
"""

import datetime
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.deps import require_permission
from app.schemas.launch import (
    ArticlePhaseRead,
    ArticlePhaseUpdate,
    LaunchArticleCreate,
    LaunchArticleRead,
    LaunchArticleUpdate,
    LaunchCreate,
    LaunchRead,
    LaunchStatus,
    LaunchUpdate,
    ProgressTrackingCreate,
    ProgressTrackingRead,
)
from app.schemas.statistics import ScmStatistics
from app.services.launch_service import LaunchService, launch_service
from app.services.statistics_service import StatisticsService, statistics_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/scm",
    tags=["SCM - Lanci"],
    dependencies=[Depends(require_permission(settings.scm_admin_permission))],
)


# -------------------------------------------------------------------
# Dependency Injection
# -------------------------------------------------------------------

def get_launch_service() -> LaunchService:
    return launch_service


def get_statistics_service() -> StatisticsService:
    return statistics_service


# -------------------------------------------------------------------
# Statistiche
# -------------------------------------------------------------------

@router.get(
    "/statistics",
    name="scm_statistiche",
    summary="Statistiche lanci",
    description="Numero di lanci e paia, totale e per stato.",
    response_model=ScmStatistics,
)
async def get_statistics(
    laboratory_id: Optional[int] = Query(None, alias="laboratoryId"),
    db: AsyncSession = Depends(get_db),
    service: StatisticsService = Depends(get_statistics_service),
) -> ScmStatistics:
    return await service.get_statistics(db, laboratory_id=laboratory_id)


# -------------------------------------------------------------------
# Lanci
# -------------------------------------------------------------------

@router.get(
    "/launches",
    name="lanci_lista",
    summary="Lista lanci",
    description="Lanci filtrati, dal più recente, con articoli e percentuali.",
    response_model=List[LaunchRead],
)
async def get_launches(
    laboratory_id: Optional[int] = Query(None, alias="laboratoryId"),
    stato: Optional[LaunchStatus] = Query(None),
    data_lancio_from: Optional[datetime.date] = Query(None, alias="dataLancioFrom"),
    data_lancio_to: Optional[datetime.date] = Query(None, alias="dataLancioTo"),
    limit: Optional[int] = Query(None, ge=1, le=1000),
    db: AsyncSession = Depends(get_db),
    service: LaunchService = Depends(get_launch_service),
) -> List[LaunchRead]:
    launches = await service.get_all(
        db,
        laboratory_id=laboratory_id,
        stato=stato,
        data_lancio_from=data_lancio_from,
        data_lancio_to=data_lancio_to,
        limit=limit,
    )
    return [LaunchRead.model_validate(l) for l in launches]


@router.get(
    "/launches/{launch_id}",
    name="lancio_dettaglio",
    summary="Dettaglio lancio",
    description="Lancio completo di articoli, fasi e storico avanzamento.",
    response_model=LaunchRead,
)
async def get_launch(
    launch_id: int,
    db: AsyncSession = Depends(get_db),
    service: LaunchService = Depends(get_launch_service),
) -> LaunchRead:
    return LaunchRead.model_validate(await service.get_by_id(db, launch_id))


@router.post(
    "/launches",
    name="lancio_crea",
    summary="Crea lancio",
    description="Crea un lancio con articoli e fasi in un'unica transazione.",
    response_model=LaunchRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_launch(
    data: LaunchCreate,
    db: AsyncSession = Depends(get_db),
    service: LaunchService = Depends(get_launch_service),
) -> LaunchRead:
    """
    Crea un lancio.

    Raises:
        NotFoundError: Se il laboratorio non esiste
        BadRequestError: Se una o più fasi standard non esistono
    """
    launch = await service.create(db, data)
    await db.commit()
    return LaunchRead.model_validate(launch)


@router.put(
    "/launches/{launch_id}",
    name="lancio_aggiorna",
    summary="Aggiorna lancio",
    response_model=LaunchRead,
)
async def update_launch(
    launch_id: int,
    data: LaunchUpdate,
    db: AsyncSession = Depends(get_db),
    service: LaunchService = Depends(get_launch_service),
) -> LaunchRead:
    launch = await service.update(db, launch_id, data)
    await db.commit()
    return LaunchRead.model_validate(launch)


@router.delete(
    "/launches/{launch_id}",
    name="lancio_elimina",
    summary="Elimina lancio",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_launch(
    launch_id: int,
    db: AsyncSession = Depends(get_db),
    service: LaunchService = Depends(get_launch_service),
) -> None:
    await service.delete(db, launch_id)
    await db.commit()


# -------------------------------------------------------------------
# Articoli
# -------------------------------------------------------------------

@router.post(
    "/launches/{launch_id}/articles",
    name="articolo_crea",
    summary="Aggiungi articolo a un lancio",
    description="Aggiunge un articolo assegnandogli tutte le fasi standard attive.",
    response_model=LaunchArticleRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_article(
    launch_id: int,
    data: LaunchArticleCreate,
    db: AsyncSession = Depends(get_db),
    service: LaunchService = Depends(get_launch_service),
) -> LaunchArticleRead:
    article = await service.add_article(db, launch_id, data)
    await db.commit()
    return LaunchArticleRead.model_validate(article)


@router.put(
    "/articles/{article_id}",
    name="articolo_aggiorna",
    summary="Aggiorna articolo",
    response_model=LaunchArticleRead,
)
async def update_article(
    article_id: int,
    data: LaunchArticleUpdate,
    db: AsyncSession = Depends(get_db),
    service: LaunchService = Depends(get_launch_service),
) -> LaunchArticleRead:
    article = await service.update_article(db, article_id, data)
    await db.commit()
    return LaunchArticleRead.model_validate(article)


@router.delete(
    "/articles/{article_id}",
    name="articolo_elimina",
    summary="Elimina articolo",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_article(
    article_id: int,
    db: AsyncSession = Depends(get_db),
    service: LaunchService = Depends(get_launch_service),
) -> None:
    await service.delete_article(db, article_id)
    await db.commit()


# -------------------------------------------------------------------
# Fasi e avanzamento
# -------------------------------------------------------------------

@router.put(
    "/phases/{phase_id}",
    name="fase_aggiorna",
    summary="Aggiorna fase articolo",
    description=(
        "Aggiorna una fase. Con stato COMPLETATA completa automaticamente "
        "anche tutte le fasi precedenti dello stesso articolo."
    ),
    response_model=ArticlePhaseRead,
)
async def update_phase(
    phase_id: int,
    data: ArticlePhaseUpdate,
    db: AsyncSession = Depends(get_db),
    service: LaunchService = Depends(get_launch_service),
) -> ArticlePhaseRead:
    await service.update_phase(db, phase_id, data)
    await db.commit()
    phase = await service.get_phase(db, phase_id)
    return ArticlePhaseRead.model_validate(phase)


@router.post(
    "/phases/{phase_id}/progress",
    name="avanzamento_crea",
    summary="Registra avanzamento",
    response_model=ProgressTrackingRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_progress(
    phase_id: int,
    data: ProgressTrackingCreate,
    db: AsyncSession = Depends(get_db),
    service: LaunchService = Depends(get_launch_service),
) -> ProgressTrackingRead:
    tracking = await service.add_progress(db, phase_id, data)
    await db.commit()
    return ProgressTrackingRead.model_validate(tracking)


@router.get(
    "/phases/{phase_id}/progress",
    name="avanzamento_lista",
    summary="Storico avanzamento",
    response_model=List[ProgressTrackingRead],
)
async def get_progress(
    phase_id: int,
    db: AsyncSession = Depends(get_db),
    service: LaunchService = Depends(get_launch_service),
) -> List[ProgressTrackingRead]:
    entries = await service.get_progress(db, phase_id)
    return [ProgressTrackingRead.model_validate(e) for e in entries]
