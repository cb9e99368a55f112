"""
Router FastAPI per il portale dei laboratori esterni
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Login con codice laboratorio e dashboard dei propri lanci.
Questi endpoint non richiedono un utente del back-office.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.deps import CurrentLaboratory
from app.schemas.statistics import LaboratoryDashboard
from app.schemas.token import LaboratoryLogin, LaboratoryLoginResponse
from app.services.auth_service import AuthService, get_auth_service
from app.services.statistics_service import StatisticsService, statistics_service

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/scm",
    tags=["SCM - Portale Laboratori"],
)


def get_statistics_service() -> StatisticsService:
    return statistics_service


@router.post(
    "/login",
    name="portale_login",
    summary="Login laboratorio",
    response_model=LaboratoryLoginResponse,
)
async def laboratory_login(
    data: LaboratoryLogin,
    db: AsyncSession = Depends(get_db),
    service: AuthService = Depends(get_auth_service),
) -> LaboratoryLoginResponse:
    """
    Autentica un laboratorio attivo e restituisce un token di tipo laboratory.

    Raises:
        HTTPException 401: Credenziali non valide
    """
    return await service.laboratory_login(db, data)


@router.get(
    "/dashboard",
    name="portale_dashboard",
    summary="Dashboard laboratorio",
    description="Lanci del laboratorio autenticato raggruppati per stato.",
    response_model=LaboratoryDashboard,
)
async def laboratory_dashboard(
    laboratory: CurrentLaboratory,
    db: AsyncSession = Depends(get_db),
    service: StatisticsService = Depends(get_statistics_service),
) -> LaboratoryDashboard:
    return await service.get_dashboard(db, laboratory.id)
