"""
Router FastAPI per il catalogo Fasi Standard
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.deps import require_permission
from app.schemas.standard_phase import (
    StandardPhaseCreate,
    StandardPhaseRead,
    StandardPhaseUpdate,
)
from app.services.standard_phase_service import StandardPhaseService, standard_phase_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/scm/standard-phases",
    tags=["SCM - Fasi Standard"],
    dependencies=[Depends(require_permission(settings.scm_admin_permission))],
)


def get_standard_phase_service() -> StandardPhaseService:
    return standard_phase_service


@router.get(
    "",
    name="fasi_standard_lista",
    summary="Lista fasi standard",
    response_model=List[StandardPhaseRead],
)
async def get_standard_phases(
    attivo: Optional[bool] = Query(None, description="Filtra per stato attivo"),
    db: AsyncSession = Depends(get_db),
    service: StandardPhaseService = Depends(get_standard_phase_service),
) -> List[StandardPhaseRead]:
    phases = await service.get_all(db, attivo=attivo)
    return [StandardPhaseRead.model_validate(p) for p in phases]


@router.get(
    "/{phase_id}",
    name="fase_standard_dettaglio",
    summary="Dettaglio fase standard",
    response_model=StandardPhaseRead,
)
async def get_standard_phase(
    phase_id: int,
    db: AsyncSession = Depends(get_db),
    service: StandardPhaseService = Depends(get_standard_phase_service),
) -> StandardPhaseRead:
    return StandardPhaseRead.model_validate(await service.get_by_id(db, phase_id))


@router.post(
    "",
    name="fase_standard_crea",
    summary="Crea fase standard",
    response_model=StandardPhaseRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_standard_phase(
    data: StandardPhaseCreate,
    db: AsyncSession = Depends(get_db),
    service: StandardPhaseService = Depends(get_standard_phase_service),
) -> StandardPhaseRead:
    phase = await service.create(db, data)
    await db.commit()
    return StandardPhaseRead.model_validate(phase)


@router.put(
    "/{phase_id}",
    name="fase_standard_aggiorna",
    summary="Aggiorna fase standard",
    response_model=StandardPhaseRead,
)
async def update_standard_phase(
    phase_id: int,
    data: StandardPhaseUpdate,
    db: AsyncSession = Depends(get_db),
    service: StandardPhaseService = Depends(get_standard_phase_service),
) -> StandardPhaseRead:
    phase = await service.update(db, phase_id, data)
    await db.commit()
    return StandardPhaseRead.model_validate(phase)


@router.delete(
    "/{phase_id}",
    name="fase_standard_elimina",
    summary="Elimina fase standard",
    description="Elimina una fase del catalogo. Rifiutato se usata da qualche articolo.",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_standard_phase(
    phase_id: int,
    db: AsyncSession = Depends(get_db),
    service: StandardPhaseService = Depends(get_standard_phase_service),
) -> None:
    await service.delete(db, phase_id)
    await db.commit()
