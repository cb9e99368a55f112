"""
Unit tests for LaunchService against a mocked AsyncSession.
"""

import datetime
import logging
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import ValidationError

from app.core.config import settings
from app.core.exceptions import BadRequestError, NotFoundError
from app.models import ArticlePhase, Launch, LaunchArticle, ProgressTracking
from app.schemas.launch import (
    ArticlePhaseUpdate,
    LaunchArticleCreate,
    LaunchArticleUpdate,
    LaunchCreate,
    LaunchStatus,
    LaunchUpdate,
    ProgressTrackingCreate,
    completion_percentage,
    join_codice,
)
from app.services.laboratory_service import laboratory_service
from app.services.launch_service import LaunchService
from app.services.standard_phase_service import standard_phase_service
from tests.conftest import make_launch, make_phase, make_result, make_standard_phase


def _launch_payload(phases, articles=None):
    return LaunchCreate.model_validate(
        {
            "numero": "L2025-001",
            "laboratoryId": 1,
            "dataLancio": "2025-03-10",
            "articles": articles
            if articles is not None
            else [{"codice": "F02B227-MQ285Q888", "descrizione": "Nero lucido", "quantita": 100}],
            "phases": phases,
        }
    )


def _service_returning_created_launch(db) -> LaunchService:
    service = LaunchService()

    async def _get_by_id(_db, launch_id):
        return next(o for o in db.added if isinstance(o, Launch) and o.id == launch_id)

    service.get_by_id = AsyncMock(side_effect=_get_by_id)
    return service


# ============================================================
# Creazione lancio
# ============================================================


class TestCreateLaunch:

    @pytest.mark.asyncio
    async def test_missing_standard_phases_write_nothing(self, recording_db, laboratory):
        """Un id fase inesistente blocca la creazione prima di ogni scrittura."""
        data = _launch_payload(
            [
                {"standardPhaseId": 7, "ordine": 1},
                {"standardPhaseId": 1, "ordine": 2},
                {"standardPhaseId": 9, "ordine": 3},
                {"standardPhaseId": 7, "ordine": 4},
            ]
        )

        with patch.object(laboratory_service, "get_by_id", AsyncMock(return_value=laboratory)), \
             patch.object(
                 standard_phase_service,
                 "get_by_ids",
                 AsyncMock(return_value=[make_standard_phase(1, "Taglio", 1)]),
             ):
            with pytest.raises(BadRequestError) as exc_info:
                await LaunchService().create(recording_db, data)

        assert exc_info.value.status_code == 400
        assert exc_info.value.detail == "Fasi standard non trovate: 7, 9"
        assert exc_info.value.extra == {"missingIds": [7, 9]}
        assert recording_db.added == []
        recording_db.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_laboratory(self, recording_db):
        data = _launch_payload([{"standardPhaseId": 1, "ordine": 1}])
        get_by_ids = AsyncMock(return_value=[])

        with patch.object(
            laboratory_service,
            "get_by_id",
            AsyncMock(side_effect=NotFoundError("Laboratorio con ID 1 non trovato")),
        ), patch.object(standard_phase_service, "get_by_ids", get_by_ids):
            with pytest.raises(NotFoundError):
                await LaunchService().create(recording_db, data)

        get_by_ids.assert_not_awaited()
        assert recording_db.added == []

    @pytest.mark.asyncio
    async def test_fans_out_phases_sorted_by_ordine(self, recording_db, laboratory, standard_phases):
        """Ogni articolo riceve una fase per fase richiesta, nell'ordine indicato."""
        data = _launch_payload(
            [{"standardPhaseId": 2, "ordine": 5}, {"standardPhaseId": 1, "ordine": 1}],
            articles=[
                {"codice": "A1-M1", "descrizione": "Rosso", "quantita": 10},
                {"codice": "A2-M2-X", "descrizione": "Blu", "quantita": 20},
            ],
        )
        service = _service_returning_created_launch(recording_db)

        with patch.object(laboratory_service, "get_by_id", AsyncMock(return_value=laboratory)), \
             patch.object(standard_phase_service, "get_by_ids", AsyncMock(return_value=standard_phases)):
            launch = await service.create(recording_db, data)

        assert launch.stato == "IN_PREPARAZIONE"
        assert launch.laboratory_id == 1

        articles = [o for o in recording_db.added if isinstance(o, LaunchArticle)]
        assert [(a.commessa, a.modello, a.colore) for a in articles] == [
            ("A1", "M1", "Rosso"),
            ("A2", "M2-X", "Blu"),
        ]

        phases = [o for o in recording_db.added if isinstance(o, ArticlePhase)]
        assert len(phases) == 4
        for article in articles:
            own = [p for p in phases if p.article_id == article.id]
            assert [(p.phase_id, p.nome, p.sequenza) for p in own] == [(1, "Taglio", 0), (2, "Cucitura", 1)]
            assert all(p.stato == "NON_INIZIATA" for p in own)

    @pytest.mark.asyncio
    async def test_create_then_complete_second_phase(self, recording_db, laboratory, standard_phases):
        """
        Scenario completo: lancio con un articolo e due fasi, poi la
        seconda fase viene completata e la prima segue per sequenza.
        """
        data = _launch_payload(
            [{"standardPhaseId": 1, "ordine": 1}, {"standardPhaseId": 2, "ordine": 2}]
        )
        service = _service_returning_created_launch(recording_db)

        with patch.object(laboratory_service, "get_by_id", AsyncMock(return_value=laboratory)), \
             patch.object(standard_phase_service, "get_by_ids", AsyncMock(return_value=standard_phases)):
            await service.create(recording_db, data)

        article = next(o for o in recording_db.added if isinstance(o, LaunchArticle))
        phase1, phase2 = [o for o in recording_db.added if isinstance(o, ArticlePhase)]

        assert join_codice(article.commessa, article.modello) == "F02B227-MQ285Q888"
        assert article.colore == "Nero lucido"
        assert article.quantita == 100
        assert completion_percentage([phase1.stato, phase2.stato]) == 0

        phase2.note = "nota dell'operatore"
        recording_db.execute.side_effect = [
            make_result(scalar_one_or_none=phase2),
            make_result(scalars=[phase1, phase2]),
        ]

        await service.update_phase(recording_db, phase2.id, ArticlePhaseUpdate(stato="COMPLETATA"))

        assert phase1.stato == "COMPLETATA"
        assert phase1.note == settings.scm_auto_complete_note
        assert phase1.data_fine is not None
        assert phase2.stato == "COMPLETATA"
        assert phase2.note == "nota dell'operatore"
        assert phase2.data_fine is not None
        assert completion_percentage([phase1.stato, phase2.stato]) == 100


# ============================================================
# Aggiornamento fase
# ============================================================


class TestUpdatePhase:

    @pytest.mark.asyncio
    async def test_completing_appends_to_existing_notes(self, mock_db):
        first = make_phase(1, 0, note="manca materiale")
        second = make_phase(2, 1, stato="COMPLETATA")
        target = make_phase(3, 2, stato="IN_CORSO")
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=target),
            make_result(scalars=[first, second, target]),
        ]

        await LaunchService().update_phase(mock_db, 3, ArticlePhaseUpdate(stato="COMPLETATA"))

        assert first.note == f"manca materiale\n{settings.scm_auto_complete_note}"
        # Una fase già completata non viene toccata
        assert second.note is None
        assert second.data_fine is None
        assert target.stato == "COMPLETATA"
        mock_db.flush.assert_awaited()

    @pytest.mark.asyncio
    async def test_explicit_data_fine_is_kept(self, mock_db):
        target = make_phase(1, 0)
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=target),
            make_result(scalars=[target]),
        ]
        data_fine = datetime.datetime(2025, 3, 15, 17, 30, tzinfo=datetime.timezone.utc)

        await LaunchService().update_phase(
            mock_db, 1, ArticlePhaseUpdate(stato="COMPLETATA", dataFine=data_fine)
        )

        assert target.data_fine == data_fine

    @pytest.mark.asyncio
    async def test_other_states_touch_only_target(self, mock_db):
        target = make_phase(2, 1)
        mock_db.execute.return_value = make_result(scalar_one_or_none=target)

        await LaunchService().update_phase(
            mock_db, 2, ArticlePhaseUpdate(stato="IN_CORSO", note="avviata")
        )

        assert target.stato == "IN_CORSO"
        assert target.note == "avviata"
        assert target.data_fine is None
        assert mock_db.execute.await_count == 1

    @pytest.mark.asyncio
    async def test_completed_later_phase_is_logged(self, mock_db, caplog):
        first = make_phase(1, 0)
        later = make_phase(2, 1, stato="COMPLETATA")
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=first),
            make_result(scalars=[first, later]),
        ]

        with caplog.at_level(logging.WARNING, logger="app.services.launch_service"):
            await LaunchService().update_phase(mock_db, 1, ArticlePhaseUpdate(stato="COMPLETATA"))

        assert first.stato == "COMPLETATA"
        assert later.stato == "COMPLETATA"
        assert "già completata" in caplog.text

    @pytest.mark.asyncio
    async def test_missing_phase(self, mock_db):
        mock_db.execute.return_value = make_result(scalar_one_or_none=None)

        with pytest.raises(NotFoundError):
            await LaunchService().update_phase(mock_db, 99, ArticlePhaseUpdate(stato="COMPLETATA"))


# ============================================================
# Articoli e avanzamento
# ============================================================


class TestArticles:

    @pytest.mark.asyncio
    async def test_add_article_uses_active_catalog(self, recording_db):
        launch = Launch(id=5, numero="L5", laboratory_id=1, stato="IN_LAVORAZIONE")
        recording_db.execute.return_value = make_result(scalar_one_or_none=launch)
        catalog = [make_standard_phase(3, "Taglio", 1), make_standard_phase(8, "Finissaggio", 2)]
        service = LaunchService()
        service.get_article = AsyncMock(side_effect=lambda db, article_id: article_id)

        with patch.object(standard_phase_service, "get_all", AsyncMock(return_value=catalog)) as get_all:
            await service.add_article(
                recording_db,
                5,
                LaunchArticleCreate(codice=" C9-M9 ", descrizione="Bianco", quantita=12),
            )

        get_all.assert_awaited_once_with(recording_db, attivo=True)
        article = next(o for o in recording_db.added if isinstance(o, LaunchArticle))
        assert (article.launch_id, article.commessa, article.modello) == (5, "C9", "M9")
        phases = [o for o in recording_db.added if isinstance(o, ArticlePhase)]
        assert [(p.phase_id, p.sequenza, p.article_id) for p in phases] == [
            (3, 0, article.id),
            (8, 1, article.id),
        ]

    @pytest.mark.asyncio
    async def test_add_article_to_missing_launch(self, recording_db):
        recording_db.execute.return_value = make_result(scalar_one_or_none=None)

        with pytest.raises(NotFoundError):
            await LaunchService().add_article(
                recording_db, 1, LaunchArticleCreate(codice="A-B", descrizione="x", quantita=1)
            )

        assert recording_db.added == []

    @pytest.mark.asyncio
    async def test_update_article_resplits_codice(self, mock_db):
        article = LaunchArticle(id=1, launch_id=1, commessa="OLD", modello="X", colore="Nero", quantita=5)
        service = LaunchService()
        service.get_article = AsyncMock(return_value=article)

        await service.update_article(
            mock_db, 1, LaunchArticleUpdate(codice="NEW-Y-Z", descrizione="Marrone")
        )

        assert (article.commessa, article.modello) == ("NEW", "Y-Z")
        assert article.colore == "Marrone"
        assert article.quantita == 5

    @pytest.mark.asyncio
    async def test_delete_article(self, mock_db):
        article = LaunchArticle(id=3, launch_id=1, commessa="A", modello="B", quantita=1)
        mock_db.execute.return_value = make_result(scalar_one_or_none=article)

        await LaunchService().delete_article(mock_db, 3)

        mock_db.delete.assert_awaited_once_with(article)


class TestProgress:

    @pytest.mark.asyncio
    async def test_add_progress_defaults_date(self, mock_db):
        mock_db.execute.return_value = make_result(scalar_one_or_none=make_phase(4, 0))

        tracking = await LaunchService().add_progress(mock_db, 4, ProgressTrackingCreate(quantita=40))

        assert isinstance(tracking, ProgressTracking)
        assert tracking.phase_id == 4
        assert tracking.quantita == 40
        assert tracking.data is not None
        mock_db.add.assert_called_once_with(tracking)

    @pytest.mark.asyncio
    async def test_add_progress_to_missing_phase(self, mock_db):
        mock_db.execute.return_value = make_result(scalar_one_or_none=None)

        with pytest.raises(NotFoundError):
            await LaunchService().add_progress(mock_db, 4, ProgressTrackingCreate(quantita=1))

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_get_progress_newest_first(self, mock_db):
        older = ProgressTracking(id=1, phase_id=4, quantita=10, data=datetime.datetime(2025, 3, 1, 8, 0))
        newer = ProgressTracking(id=2, phase_id=4, quantita=30, data=datetime.datetime(2025, 3, 2, 8, 0))
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=make_phase(4, 0)),
            make_result(scalars=[newer, older]),
        ]

        result = await LaunchService().get_progress(mock_db, 4)

        assert result == [newer, older]
        sql = str(mock_db.execute.call_args.args[0])
        order_by = sql[sql.index("ORDER BY"):]
        assert order_by.index("scm_progress_tracking.data DESC") < order_by.index(
            "scm_progress_tracking.id DESC"
        )

    @pytest.mark.asyncio
    async def test_get_progress_of_missing_phase(self, mock_db):
        mock_db.execute.return_value = make_result(scalar_one_or_none=None)

        with pytest.raises(NotFoundError):
            await LaunchService().get_progress(mock_db, 99)

        assert mock_db.execute.await_count == 1

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError):
            ProgressTrackingCreate(quantita=-1)

    def test_zero_quantity_accepted(self):
        assert ProgressTrackingCreate(quantita=0).quantita == 0


# ============================================================
# Aggiornamento e lista lanci
# ============================================================


class TestUpdateLaunch:

    @pytest.mark.asyncio
    async def test_explicit_nulls_keep_required_columns(self, mock_db):
        launch = make_launch(1, "IN_LAVORAZIONE", numero="L001", data_lancio=datetime.date(2025, 3, 10))
        mock_db.execute.return_value = make_result(scalar_one_or_none=launch)
        service = LaunchService()
        service.get_by_id = AsyncMock(return_value=launch)

        result = await service.update(
            mock_db,
            1,
            LaunchUpdate.model_validate(
                {"numero": None, "laboratoryId": None, "dataLancio": None, "stato": None, "note": None}
            ),
        )

        assert result is launch
        assert (launch.numero, launch.laboratory_id, launch.stato) == ("L001", 1, "IN_LAVORAZIONE")
        assert launch.data_lancio == datetime.date(2025, 3, 10)
        assert launch.note is None
        mock_db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_stato_is_stored_as_string(self, mock_db):
        launch = make_launch(1, "IN_LAVORAZIONE")
        mock_db.execute.return_value = make_result(scalar_one_or_none=launch)
        service = LaunchService()
        service.get_by_id = AsyncMock(return_value=launch)

        await service.update(
            mock_db,
            1,
            LaunchUpdate(stato=LaunchStatus.BLOCCATO, blocked_reason="Manca materiale"),
        )

        assert launch.stato == "BLOCCATO"
        assert type(launch.stato) is str
        assert launch.blocked_reason == "Manca materiale"

    @pytest.mark.asyncio
    async def test_missing_new_laboratory(self, mock_db):
        launch = make_launch(1, "IN_LAVORAZIONE")
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=launch),
            make_result(scalar_one_or_none=None),
        ]

        with pytest.raises(NotFoundError):
            await LaunchService().update(mock_db, 1, LaunchUpdate(laboratory_id=77))

        assert launch.laboratory_id == 1
        mock_db.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_missing_launch(self, mock_db):
        mock_db.execute.return_value = make_result(scalar_one_or_none=None)

        with pytest.raises(NotFoundError):
            await LaunchService().update(mock_db, 5, LaunchUpdate(note="x"))


class TestListLaunches:

    @pytest.mark.asyncio
    async def test_filters_and_limit(self, mock_db):
        launches = [make_launch(2, "BLOCCATO"), make_launch(1, "BLOCCATO")]
        mock_db.execute.return_value = make_result(scalars=launches)

        result = await LaunchService().get_all(
            mock_db,
            laboratory_id=3,
            stato=LaunchStatus.BLOCCATO,
            data_lancio_from=datetime.date(2025, 1, 1),
            data_lancio_to=datetime.date(2025, 6, 30),
            limit=5,
        )

        assert result == launches
        compiled = mock_db.execute.call_args.args[0].compile()
        sql = str(compiled)
        assert "scm_launches.laboratory_id = :laboratory_id_1" in sql
        assert "scm_launches.stato = :stato_1" in sql
        assert "scm_launches.data_lancio >= :data_lancio_1" in sql
        assert "scm_launches.data_lancio <= :data_lancio_2" in sql
        assert "LIMIT" in sql
        assert compiled.params["laboratory_id_1"] == 3
        assert compiled.params["stato_1"] == "BLOCCATO"
        assert compiled.params["data_lancio_1"] == datetime.date(2025, 1, 1)
        assert compiled.params["data_lancio_2"] == datetime.date(2025, 6, 30)
        assert 5 in compiled.params.values()

    @pytest.mark.asyncio
    async def test_no_filters(self, mock_db):
        mock_db.execute.return_value = make_result(scalars=[])

        assert await LaunchService().get_all(mock_db) == []

        sql = str(mock_db.execute.call_args.args[0])
        assert "WHERE" not in sql
        assert "LIMIT" not in sql
        order_by = sql[sql.index("ORDER BY"):]
        assert order_by.index("scm_launches.data_lancio DESC") < order_by.index("scm_launches.id DESC")


class TestArticleUpdateSchema:

    @pytest.mark.parametrize("codice", ["", "   "])
    def test_blank_codice_rejected(self, codice):
        with pytest.raises(ValidationError):
            LaunchArticleUpdate(codice=codice)

    def test_codice_is_stripped(self):
        assert LaunchArticleUpdate(codice="  C1-M1 ").codice == "C1-M1"

    def test_codice_may_be_omitted(self):
        assert LaunchArticleUpdate(quantita=3).codice is None
