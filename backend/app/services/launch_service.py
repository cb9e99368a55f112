"""
Service Layer per Lanci, Articoli, Fasi e Avanzamento
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Definisce la logica di business del tracciamento lanci:
- creazione di un lancio con fan-out delle fasi per ogni articolo
- regola di completamento sequenziale delle fasi
- aggiunta articoli a lanci esistenti
- registrazione dell'avanzamento quantità per fase

I metodi eseguono solo flush: il commit (e quindi l'atomicità di ogni
operazione multi-riga) è responsabilità del router, mentre get_db esegue
il rollback se la richiesta fallisce.
"""

import datetime
import logging
from typing import List, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.config import settings
from app.core.exceptions import BadRequestError, NotFoundError
from app.models import ArticlePhase, Launch, LaunchArticle, ProgressTracking, StandardPhase
from app.schemas.launch import (
    ArticlePhaseUpdate,
    LaunchArticleCreate,
    LaunchArticleUpdate,
    LaunchCreate,
    LaunchStatus,
    LaunchUpdate,
    PhaseStatus,
    ProgressTrackingCreate,
    split_codice,
)
from app.services.laboratory_service import laboratory_service
from app.services.standard_phase_service import standard_phase_service

logger = logging.getLogger(__name__)


def _now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


# -------------------------------------------------------------------
# Regola di completamento sequenziale
# -------------------------------------------------------------------

def phases_to_autocomplete(phases: Sequence[ArticlePhase], target_id: int) -> List[ArticlePhase]:
    """
    Fasi da completare automaticamente quando la fase target diventa COMPLETATA.

    Args:
        phases: Fasi dell'articolo nell'ordine di sequenza
        target_id: ID della fase che si sta completando

    Returns:
        Le fasi precedenti alla target che non sono ancora COMPLETATA
    """
    ids = [p.id for p in phases]
    if target_id not in ids:
        return []
    position = ids.index(target_id)
    return [p for p in phases[:position] if p.stato != PhaseStatus.COMPLETATA.value]


def has_completed_after(phases: Sequence[ArticlePhase], target_id: int) -> bool:
    """True se una fase successiva alla target è già COMPLETATA."""
    ids = [p.id for p in phases]
    if target_id not in ids:
        return False
    position = ids.index(target_id)
    return any(p.stato == PhaseStatus.COMPLETATA.value for p in phases[position + 1:])


def append_note(note: Optional[str], annotation: str) -> str:
    """Accoda un'annotazione alle note esistenti, separata da un a capo."""
    if note:
        return f"{note}\n{annotation}"
    return annotation


def build_article_phases(
    article_id: int,
    standard_phases: Sequence[StandardPhase],
) -> List[ArticlePhase]:
    """
    Crea le fasi NON_INIZIATA di un articolo, una per fase standard.

    La sequenza è la posizione nella lista ricevuta; il nome viene copiato
    dalla fase standard in questo momento e non più sincronizzato.
    """
    return [
        ArticlePhase(
            article_id=article_id,
            phase_id=standard_phase.id,
            nome=standard_phase.nome,
            sequenza=position,
            stato=PhaseStatus.NON_INIZIATA.value,
        )
        for position, standard_phase in enumerate(standard_phases)
    ]


def _launch_graph(with_tracking: bool = False) -> list:
    phases = selectinload(Launch.articles).selectinload(LaunchArticle.phases)
    if with_tracking:
        return [phases.selectinload(ArticlePhase.tracking)]
    return [phases]


class LaunchService:
    """
    Service per lanci di produzione e relative fasi.
    """

    # ------------------------------------------------------------
    # Lanci
    # ------------------------------------------------------------

    async def get_all(
        self,
        db: AsyncSession,
        laboratory_id: Optional[int] = None,
        stato: Optional[LaunchStatus] = None,
        data_lancio_from: Optional[datetime.date] = None,
        data_lancio_to: Optional[datetime.date] = None,
        limit: Optional[int] = None,
    ) -> List[Launch]:
        """
        Recupera i lanci filtrati, dal più recente, con articoli e fasi.
        """
        query = select(Launch).options(*_launch_graph())

        if laboratory_id:
            query = query.where(Launch.laboratory_id == laboratory_id)
        if stato:
            query = query.where(Launch.stato == stato.value)
        if data_lancio_from:
            query = query.where(Launch.data_lancio >= data_lancio_from)
        if data_lancio_to:
            query = query.where(Launch.data_lancio <= data_lancio_to)

        query = query.order_by(Launch.data_lancio.desc(), Launch.id.desc())
        if limit:
            query = query.limit(limit)

        result = await db.execute(query)
        launches = list(result.scalars().all())
        logger.debug("Recuperati %d lanci", len(launches))
        return launches

    async def get_by_id(self, db: AsyncSession, launch_id: int) -> Launch:
        """
        Recupera un lancio con l'intero grafo: laboratorio, articoli,
        fasi con fase standard e storico avanzamento.

        Raises:
            NotFoundError: Se il lancio non esiste
        """
        query = (
            select(Launch)
            .where(Launch.id == launch_id)
            .options(*_launch_graph(with_tracking=True))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        launch = result.scalar_one_or_none()

        if not launch:
            logger.warning("Lancio non trovato: %s", launch_id)
            raise NotFoundError(f"Lancio con ID {launch_id} non trovato")

        return launch

    async def get_recent_for_laboratory(
        self,
        db: AsyncSession,
        laboratory_id: int,
        limit: int,
    ) -> List[Launch]:
        return await self.get_all(db, laboratory_id=laboratory_id, limit=limit)

    async def _get_launch_row(self, db: AsyncSession, launch_id: int) -> Launch:
        result = await db.execute(select(Launch).where(Launch.id == launch_id))
        launch = result.scalar_one_or_none()
        if not launch:
            logger.warning("Lancio non trovato: %s", launch_id)
            raise NotFoundError(f"Lancio con ID {launch_id} non trovato")
        return launch

    async def create(self, db: AsyncSession, data: LaunchCreate) -> Launch:
        """
        Crea un lancio con i suoi articoli e, per ogni articolo, una fase
        per ciascuna fase richiesta, nell'ordine indicato dal campo ordine.

        Tutte le verifiche avvengono prima di qualsiasi scrittura.

        Raises:
            NotFoundError: Se il laboratorio non esiste
            BadRequestError: Se una o più fasi standard non esistono
        """
        await laboratory_service.get_by_id(db, data.laboratory_id)

        requested_ids = [p.standard_phase_id for p in data.phases]
        found = {
            p.id: p for p in await standard_phase_service.get_by_ids(db, requested_ids)
        }
        missing_ids = list(dict.fromkeys(i for i in requested_ids if i not in found))
        if missing_ids:
            logger.warning("Creazione lancio %s: fasi standard mancanti %s", data.numero, missing_ids)
            raise BadRequestError(
                f"Fasi standard non trovate: {', '.join(str(i) for i in missing_ids)}",
                extra={"missingIds": missing_ids},
            )

        ordered_phases = [
            found[p.standard_phase_id]
            for p in sorted(data.phases, key=lambda p: p.ordine)
        ]

        launch = Launch(
            numero=data.numero,
            laboratory_id=data.laboratory_id,
            data_lancio=data.data_lancio,
            data_consegna=data.data_consegna,
            note=data.note,
            stato=LaunchStatus.IN_PREPARAZIONE.value,
        )
        db.add(launch)
        await db.flush()

        for article_data in data.articles:
            article = self._new_article(launch.id, article_data)
            db.add(article)
            await db.flush()
            db.add_all(build_article_phases(article.id, ordered_phases))

        await db.flush()

        logger.info(
            "Creato lancio %s (numero=%s): %d articoli x %d fasi",
            launch.id,
            launch.numero,
            len(data.articles),
            len(ordered_phases),
        )
        return await self.get_by_id(db, launch.id)

    async def update(self, db: AsyncSession, launch_id: int, data: LaunchUpdate) -> Launch:
        """
        Aggiorna i campi di un lancio.

        Raises:
            NotFoundError: Se il lancio o il nuovo laboratorio non esistono
        """
        launch = await self._get_launch_row(db, launch_id)
        update_data = data.model_dump(exclude_unset=True)

        if update_data.get("laboratory_id"):
            await laboratory_service.get_by_id(db, update_data["laboratory_id"])

        for field in ("numero", "laboratory_id", "data_lancio", "stato"):
            if field in update_data and update_data[field] is None:
                del update_data[field]

        for field, value in update_data.items():
            if isinstance(value, LaunchStatus):
                value = value.value
            setattr(launch, field, value)

        await db.flush()
        logger.info("Aggiornato lancio %s", launch_id)
        return await self.get_by_id(db, launch_id)

    async def delete(self, db: AsyncSession, launch_id: int) -> None:
        """Elimina un lancio; articoli, fasi e avanzamenti seguono in cascata."""
        launch = await self._get_launch_row(db, launch_id)
        await db.delete(launch)
        await db.flush()
        logger.info("Eliminato lancio %s", launch_id)

    # ------------------------------------------------------------
    # Articoli
    # ------------------------------------------------------------

    @staticmethod
    def _new_article(launch_id: int, data: LaunchArticleCreate) -> LaunchArticle:
        commessa, modello = split_codice(data.codice)
        return LaunchArticle(
            launch_id=launch_id,
            commessa=commessa,
            modello=modello,
            colore=data.descrizione,
            quantita=data.quantita,
            note=data.note,
        )

    async def get_article(self, db: AsyncSession, article_id: int) -> LaunchArticle:
        query = (
            select(LaunchArticle)
            .where(LaunchArticle.id == article_id)
            .options(selectinload(LaunchArticle.phases))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        article = result.scalar_one_or_none()

        if not article:
            logger.warning("Articolo non trovato: %s", article_id)
            raise NotFoundError(f"Articolo con ID {article_id} non trovato")

        return article

    async def add_article(
        self,
        db: AsyncSession,
        launch_id: int,
        data: LaunchArticleCreate,
    ) -> LaunchArticle:
        """
        Aggiunge un articolo a un lancio esistente.

        Le fasi non sono scelte dal chiamante: vengono assegnate tutte le
        fasi standard attive, nell'ordine del catalogo.
        """
        await self._get_launch_row(db, launch_id)
        active_phases = await standard_phase_service.get_all(db, attivo=True)

        article = self._new_article(launch_id, data)
        db.add(article)
        await db.flush()
        db.add_all(build_article_phases(article.id, active_phases))
        await db.flush()

        logger.info(
            "Aggiunto articolo %s al lancio %s con %d fasi",
            article.id,
            launch_id,
            len(active_phases),
        )
        return await self.get_article(db, article.id)

    async def update_article(
        self,
        db: AsyncSession,
        article_id: int,
        data: LaunchArticleUpdate,
    ) -> LaunchArticle:
        """Aggiorna un articolo; un nuovo codice viene riscomposto in commessa/modello."""
        article = await self.get_article(db, article_id)
        update_data = data.model_dump(exclude_unset=True)

        codice = update_data.pop("codice", None)
        if codice:
            article.commessa, article.modello = split_codice(codice.strip())

        descrizione = update_data.pop("descrizione", None)
        if descrizione is not None:
            article.colore = descrizione

        if update_data.get("quantita") is not None:
            article.quantita = update_data["quantita"]
        if "note" in update_data:
            article.note = update_data["note"]

        await db.flush()
        return await self.get_article(db, article_id)

    async def delete_article(self, db: AsyncSession, article_id: int) -> None:
        result = await db.execute(select(LaunchArticle).where(LaunchArticle.id == article_id))
        article = result.scalar_one_or_none()
        if not article:
            raise NotFoundError(f"Articolo con ID {article_id} non trovato")

        await db.delete(article)
        await db.flush()
        logger.info("Eliminato articolo %s", article_id)

    # ------------------------------------------------------------
    # Fasi articolo
    # ------------------------------------------------------------

    async def _get_phase_row(self, db: AsyncSession, phase_id: int) -> ArticlePhase:
        result = await db.execute(select(ArticlePhase).where(ArticlePhase.id == phase_id))
        phase = result.scalar_one_or_none()
        if not phase:
            logger.warning("Fase non trovata: %s", phase_id)
            raise NotFoundError(f"Fase con ID {phase_id} non trovata")
        return phase

    async def get_article_phases(self, db: AsyncSession, article_id: int) -> List[ArticlePhase]:
        """Fasi di un articolo nell'ordine di sequenza."""
        result = await db.execute(
            select(ArticlePhase)
            .where(ArticlePhase.article_id == article_id)
            .order_by(ArticlePhase.sequenza, ArticlePhase.id)
        )
        return list(result.scalars().all())

    async def get_phase(self, db: AsyncSession, phase_id: int) -> ArticlePhase:
        """Fase con fase standard e storico avanzamento."""
        query = (
            select(ArticlePhase)
            .where(ArticlePhase.id == phase_id)
            .options(selectinload(ArticlePhase.tracking))
            .execution_options(populate_existing=True)
        )
        result = await db.execute(query)
        phase = result.scalar_one_or_none()

        if not phase:
            logger.warning("Fase non trovata: %s", phase_id)
            raise NotFoundError(f"Fase con ID {phase_id} non trovata")

        return phase

    async def update_phase(
        self,
        db: AsyncSession,
        phase_id: int,
        data: ArticlePhaseUpdate,
    ) -> ArticlePhase:
        """
        Aggiorna una fase applicando la regola di completamento sequenziale.

        Se lo stato richiesto è COMPLETATA, tutte le fasi precedenti non
        ancora completate vengono completate con data fine adesso e
        un'annotazione nelle note; la data fine della fase stessa, se non
        indicata, è adesso. Le modifiche fanno parte della stessa
        transazione della richiesta.

        Raises:
            NotFoundError: Se la fase non esiste
        """
        phase = await self._get_phase_row(db, phase_id)

        update_data = data.model_dump(exclude_unset=True)
        if update_data.get("stato") is None:
            update_data.pop("stato", None)

        if update_data.get("stato") == PhaseStatus.COMPLETATA:
            now = _now()
            siblings = await self.get_article_phases(db, phase.article_id)

            auto_completed = phases_to_autocomplete(siblings, phase.id)
            for previous in auto_completed:
                previous.stato = PhaseStatus.COMPLETATA.value
                previous.data_fine = now
                previous.note = append_note(previous.note, settings.scm_auto_complete_note)

            if has_completed_after(siblings, phase.id):
                logger.warning(
                    "Fase %s completata mentre una fase successiva dell'articolo %s è già completata",
                    phase.id,
                    phase.article_id,
                )

            if update_data.get("data_fine") is None:
                update_data["data_fine"] = now

            if auto_completed:
                logger.info(
                    "Completate automaticamente %d fasi precedenti alla fase %s: %s",
                    len(auto_completed),
                    phase.id,
                    [p.id for p in auto_completed],
                )

        for field, value in update_data.items():
            if isinstance(value, PhaseStatus):
                value = value.value
            setattr(phase, field, value)

        await db.flush()
        return phase

    # ------------------------------------------------------------
    # Avanzamento
    # ------------------------------------------------------------

    async def add_progress(
        self,
        db: AsyncSession,
        phase_id: int,
        data: ProgressTrackingCreate,
    ) -> ProgressTracking:
        """
        Registra una quantità lavorata sulla fase.

        Il totale registrato non è confrontato con le paia dell'articolo.
        """
        await self._get_phase_row(db, phase_id)

        tracking = ProgressTracking(
            phase_id=phase_id,
            quantita=data.quantita,
            data=data.data or _now(),
            note=data.note,
        )
        db.add(tracking)
        await db.flush()
        await db.refresh(tracking)
        return tracking

    async def get_progress(self, db: AsyncSession, phase_id: int) -> List[ProgressTracking]:
        """Registrazioni di avanzamento della fase, dalla più recente."""
        await self._get_phase_row(db, phase_id)

        result = await db.execute(
            select(ProgressTracking)
            .where(ProgressTracking.phase_id == phase_id)
            .order_by(ProgressTracking.data.desc(), ProgressTracking.id.desc())
        )
        return list(result.scalars().all())


launch_service = LaunchService()
