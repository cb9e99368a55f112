"""
Router FastAPI per le impostazioni SCM
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)
"""

from typing import Dict, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.deps import require_permission
from app.schemas.setting import SettingRead, SettingValue
from app.services.setting_service import SettingService, setting_service

router = APIRouter(
    prefix="/scm/settings",
    tags=["SCM - Impostazioni"],
    dependencies=[Depends(require_permission(settings.scm_admin_permission))],
)


def get_setting_service() -> SettingService:
    return setting_service


@router.get(
    "",
    name="impostazioni_lista",
    summary="Tutte le impostazioni",
    response_model=Dict[str, Optional[str]],
)
async def get_settings_map(
    db: AsyncSession = Depends(get_db),
    service: SettingService = Depends(get_setting_service),
) -> Dict[str, Optional[str]]:
    return await service.get_all(db)


@router.post(
    "/batch",
    name="impostazioni_batch",
    summary="Aggiorna più impostazioni",
    description="Crea o aggiorna più impostazioni in un'unica transazione.",
    response_model=Dict[str, Optional[str]],
)
async def set_settings_batch(
    values: Dict[str, Optional[str]],
    db: AsyncSession = Depends(get_db),
    service: SettingService = Depends(get_setting_service),
) -> Dict[str, Optional[str]]:
    result = await service.set_many(db, values)
    await db.commit()
    return result


@router.get(
    "/{key}",
    name="impostazione_dettaglio",
    summary="Singola impostazione",
    response_model=SettingRead,
)
async def get_setting(
    key: str,
    db: AsyncSession = Depends(get_db),
    service: SettingService = Depends(get_setting_service),
) -> SettingRead:
    return SettingRead.model_validate(await service.get(db, key))


@router.put(
    "/{key}",
    name="impostazione_aggiorna",
    summary="Crea o aggiorna un'impostazione",
    response_model=SettingRead,
)
async def set_setting(
    key: str,
    data: SettingValue,
    db: AsyncSession = Depends(get_db),
    service: SettingService = Depends(get_setting_service),
) -> SettingRead:
    setting = await service.set(db, key, data.value)
    await db.commit()
    return SettingRead.model_validate(setting)
