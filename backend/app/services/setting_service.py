"""
Service Layer per le impostazioni chiave/valore del modulo SCM
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)
"""

import logging
from typing import Dict, Mapping, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundError
from app.models import ScmSetting

logger = logging.getLogger(__name__)


class SettingService:
    """Service per le impostazioni SCM."""

    async def get_all(self, db: AsyncSession) -> Dict[str, Optional[str]]:
        result = await db.execute(select(ScmSetting).order_by(ScmSetting.key))
        return {s.key: s.value for s in result.scalars().all()}

    async def get(self, db: AsyncSession, key: str) -> ScmSetting:
        setting = await db.get(ScmSetting, key)
        if not setting:
            logger.warning("Impostazione non trovata: %s", key)
            raise NotFoundError(f"Impostazione {key} non trovata")
        return setting

    async def _upsert(self, db: AsyncSession, key: str, value: Optional[str]) -> ScmSetting:
        setting = await db.get(ScmSetting, key)
        if setting:
            setting.value = value
        else:
            setting = ScmSetting(key=key, value=value)
            db.add(setting)
        return setting

    async def set(self, db: AsyncSession, key: str, value: Optional[str]) -> ScmSetting:
        """Crea o aggiorna un'impostazione."""
        setting = await self._upsert(db, key, value)
        await db.flush()
        logger.info("Impostazione aggiornata: %s", key)
        return setting

    async def set_many(
        self,
        db: AsyncSession,
        values: Mapping[str, Optional[str]],
    ) -> Dict[str, Optional[str]]:
        """
        Crea o aggiorna più impostazioni nella stessa transazione.

        Returns:
            La mappa completa delle impostazioni dopo l'aggiornamento
        """
        for key, value in values.items():
            await self._upsert(db, key, value)
        await db.flush()
        logger.info("Aggiornate %d impostazioni", len(values))
        return await self.get_all(db)


setting_service = SettingService()
