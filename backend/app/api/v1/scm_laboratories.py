"""
Router FastAPI per i Laboratori esterni
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Definisce gli endpoint di amministrazione dell'anagrafica laboratori.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.deps import require_permission
from app.schemas.laboratory import (
    LaboratoryCreate,
    LaboratoryListItem,
    LaboratoryRead,
    LaboratoryUpdate,
)
from app.schemas.launch import LaboratoryDetail, LaunchRead
from app.services.laboratory_service import (
    RECENT_LAUNCHES_LIMIT,
    LaboratoryService,
    laboratory_service,
)
from app.services.launch_service import LaunchService, launch_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/scm/laboratories",
    tags=["SCM - Laboratori"],
    dependencies=[Depends(require_permission(settings.scm_admin_permission))],
)


# -------------------------------------------------------------------
# Dependency Injection
# -------------------------------------------------------------------

def get_laboratory_service() -> LaboratoryService:
    return laboratory_service


def get_launch_service() -> LaunchService:
    return launch_service


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------

@router.get(
    "",
    name="laboratori_lista",
    summary="Lista laboratori",
    description="Laboratori ordinati per nome, con il numero di lanci associati.",
    response_model=List[LaboratoryListItem],
)
async def get_laboratories(
    attivo: Optional[bool] = Query(None, description="Filtra per stato attivo"),
    db: AsyncSession = Depends(get_db),
    service: LaboratoryService = Depends(get_laboratory_service),
) -> List[LaboratoryListItem]:
    rows = await service.get_all(db, attivo=attivo)
    return [
        LaboratoryListItem(
            **LaboratoryRead.model_validate(lab).model_dump(),
            launch_count=count,
        )
        for lab, count in rows
    ]


@router.get(
    "/{laboratory_id}",
    name="laboratorio_dettaglio",
    summary="Dettaglio laboratorio",
    description="Dettaglio laboratorio con i lanci più recenti.",
    response_model=LaboratoryDetail,
)
async def get_laboratory(
    laboratory_id: int,
    db: AsyncSession = Depends(get_db),
    service: LaboratoryService = Depends(get_laboratory_service),
    launches: LaunchService = Depends(get_launch_service),
) -> LaboratoryDetail:
    """
    Recupera un laboratorio con il totale dei lanci e gli ultimi lanci,
    comprensivi dei campi calcolati degli articoli.

    Raises:
        NotFoundError: Se il laboratorio non esiste
    """
    laboratory = await service.get_by_id(db, laboratory_id)
    launch_count = await service.count_launches(db, laboratory_id)
    recent = await launches.get_recent_for_laboratory(db, laboratory_id, RECENT_LAUNCHES_LIMIT)

    return LaboratoryDetail(
        **LaboratoryRead.model_validate(laboratory).model_dump(),
        launch_count=launch_count,
        launches=[LaunchRead.model_validate(l) for l in recent],
    )


@router.post(
    "",
    name="laboratorio_crea",
    summary="Crea laboratorio",
    response_model=LaboratoryRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_laboratory(
    data: LaboratoryCreate,
    db: AsyncSession = Depends(get_db),
    service: LaboratoryService = Depends(get_laboratory_service),
) -> LaboratoryRead:
    """
    Raises:
        DuplicateError: Se il codice laboratorio è già in uso
    """
    laboratory = await service.create(db, data)
    await db.commit()
    return LaboratoryRead.model_validate(laboratory)


@router.put(
    "/{laboratory_id}",
    name="laboratorio_aggiorna",
    summary="Aggiorna laboratorio",
    response_model=LaboratoryRead,
)
async def update_laboratory(
    laboratory_id: int,
    data: LaboratoryUpdate,
    db: AsyncSession = Depends(get_db),
    service: LaboratoryService = Depends(get_laboratory_service),
) -> LaboratoryRead:
    laboratory = await service.update(db, laboratory_id, data)
    await db.commit()
    return LaboratoryRead.model_validate(laboratory)


@router.delete(
    "/{laboratory_id}",
    name="laboratorio_elimina",
    summary="Elimina laboratorio",
    description="Elimina un laboratorio. Rifiutato se il laboratorio ha lanci.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_laboratory(
    laboratory_id: int,
    db: AsyncSession = Depends(get_db),
    service: LaboratoryService = Depends(get_laboratory_service),
) -> None:
    """
    Raises:
        NotFoundError: Se il laboratorio non esiste
        BadRequestError: Se il laboratorio ha almeno un lancio
    """
    await service.delete(db, laboratory_id)
    await db.commit()
