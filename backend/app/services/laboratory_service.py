"""
Service Layer per i Laboratori esterni
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Definisce la logica di business per anagrafica laboratori e login
del portale laboratori.
"""

import logging
from typing import List, Optional, Tuple

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import BadRequestError, ConflictError, DuplicateError, NotFoundError
from app.core.security import hash_password, verify_password
from app.models import Laboratory, Launch
from app.schemas.laboratory import LaboratoryCreate, LaboratoryUpdate

logger = logging.getLogger(__name__)

# Numero di lanci recenti mostrati nel dettaglio laboratorio
RECENT_LAUNCHES_LIMIT = 10

# Colonne NOT NULL: un null esplicito in aggiornamento viene ignorato
NON_NULLABLE_FIELDS = ("nome", "attivo")


class LaboratoryService:
    """
    Service per la gestione delle operazioni CRUD sui laboratori.
    """

    async def get_all(
        self,
        db: AsyncSession,
        attivo: Optional[bool] = None,
    ) -> List[Tuple[Laboratory, int]]:
        """Recupera i laboratori ordinati per nome, con il numero di lanci."""
        query = (
            select(Laboratory, func.count(Launch.id))
            .outerjoin(Launch, Launch.laboratory_id == Laboratory.id)
            .group_by(Laboratory.id)
            .order_by(Laboratory.nome)
        )
        if attivo is not None:
            query = query.where(Laboratory.attivo == attivo)

        result = await db.execute(query)
        return [(lab, count or 0) for lab, count in result.all()]

    async def get_by_id(self, db: AsyncSession, id: int) -> Laboratory:
        """Recupera un laboratorio; NotFoundError se non esiste."""
        result = await db.execute(select(Laboratory).where(Laboratory.id == id))
        laboratory = result.scalar_one_or_none()

        if not laboratory:
            logger.warning("Laboratorio non trovato: %s", id)
            raise NotFoundError(f"Laboratorio con ID {id} non trovato")

        return laboratory

    async def count_launches(self, db: AsyncSession, id: int) -> int:
        result = await db.execute(
            select(func.count(Launch.id)).where(Launch.laboratory_id == id)
        )
        return result.scalar() or 0

    async def _check_codice_available(
        self,
        db: AsyncSession,
        codice: Optional[str],
        exclude_id: Optional[int] = None,
    ) -> None:
        if not codice:
            return
        query = select(Laboratory.id).where(Laboratory.codice == codice)
        if exclude_id is not None:
            query = query.where(Laboratory.id != exclude_id)
        result = await db.execute(query)
        if result.scalar_one_or_none() is not None:
            raise DuplicateError(f"Esiste già un laboratorio con codice {codice}")

    async def create(self, db: AsyncSession, data: LaboratoryCreate) -> Laboratory:
        """Crea un nuovo laboratorio. Il codice di accesso viene salvato hashato."""
        await self._check_codice_available(db, data.codice)

        values = data.model_dump(exclude={"access_code"})
        laboratory = Laboratory(**values)
        if data.access_code:
            laboratory.access_code_hash = hash_password(data.access_code)

        try:
            db.add(laboratory)
            await db.flush()
            await db.refresh(laboratory)

            logger.info("Creato laboratorio %s (%s)", laboratory.id, laboratory.nome)
            return laboratory

        except IntegrityError as e:
            logger.error("Errore IntegrityError creazione laboratorio: %s - %s", e.__class__.__name__, e.orig)
            await db.rollback()
            if "codice" in str(e.orig).lower():
                raise DuplicateError("Codice laboratorio già registrato")
            raise ConflictError("Errore durante la creazione del laboratorio")

        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy creazione laboratorio: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante la creazione del laboratorio")

    async def update(self, db: AsyncSession, id: int, data: LaboratoryUpdate) -> Laboratory:
        """
        Aggiorna parzialmente un laboratorio.

        Un null esplicito su nome o attivo viene ignorato.
        """
        laboratory = await self.get_by_id(db, id)

        update_data = data.model_dump(exclude_unset=True)
        for field in NON_NULLABLE_FIELDS:
            if field in update_data and update_data[field] is None:
                del update_data[field]

        if "codice" in update_data:
            await self._check_codice_available(db, update_data["codice"], exclude_id=id)

        access_code = update_data.pop("access_code", None)
        for k, v in update_data.items():
            setattr(laboratory, k, v)
        if access_code:
            laboratory.access_code_hash = hash_password(access_code)

        try:
            await db.flush()
            await db.refresh(laboratory)
            return laboratory

        except IntegrityError as e:
            logger.error("Errore IntegrityError aggiornamento laboratorio: %s - %s", e.__class__.__name__, e.orig)
            await db.rollback()
            if "codice" in str(e.orig).lower():
                raise DuplicateError("Codice laboratorio già registrato")
            raise ConflictError("Errore durante l'aggiornamento del laboratorio")

        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy aggiornamento laboratorio: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'aggiornamento del laboratorio")

    async def delete(self, db: AsyncSession, id: int) -> None:
        """Elimina un laboratorio. Bloccato se possiede lanci."""
        laboratory = await self.get_by_id(db, id)

        launch_count = await self.count_launches(db, id)
        if launch_count > 0:
            raise BadRequestError(
                f"Non è possibile eliminare il laboratorio: ha {launch_count} lanci associati",
                extra={"launchCount": launch_count},
            )

        await db.delete(laboratory)
        await db.flush()
        logger.info("Eliminato laboratorio %s", id)

    async def authenticate(self, db: AsyncSession, codice: str, access_code: str) -> Laboratory:
        """
        Verifica le credenziali del portale laboratori.

        Raises:
            HTTPException 401: codice inesistente, laboratorio inattivo
                o codice di accesso errato
        """
        result = await db.execute(
            select(Laboratory).where(
                Laboratory.codice == codice,
                Laboratory.attivo.is_(True),
            )
        )
        laboratory = result.scalar_one_or_none()

        if (
            not laboratory
            or not laboratory.access_code_hash
            or not verify_password(access_code, laboratory.access_code_hash)
        ):
            logger.warning("Login laboratorio fallito per codice %s", codice)
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Credenziali non valide",
                headers={"WWW-Authenticate": "Bearer"},
            )

        return laboratory


laboratory_service = LaboratoryService()
