"""
Unit tests for laboratori, fasi standard e impostazioni:
vincoli di eliminazione, codice univoco, login portale e upsert.
"""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError, OperationalError

from app.core.exceptions import BadRequestError, ConflictError, DuplicateError, NotFoundError
from app.core.security import hash_password
from app.models import Laboratory, ScmSetting
from app.schemas.laboratory import LaboratoryCreate, LaboratoryUpdate
from app.schemas.standard_phase import StandardPhaseUpdate
from app.services.laboratory_service import LaboratoryService
from app.services.setting_service import SettingService
from app.services.standard_phase_service import StandardPhaseService
from tests.conftest import make_laboratory, make_result, make_standard_phase


# ============================================================
# Laboratori
# ============================================================


class TestLaboratoryDelete:

    @pytest.mark.asyncio
    async def test_rejected_when_launches_exist(self, mock_db, laboratory):
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=laboratory),
            make_result(scalar=3),
        ]

        with pytest.raises(BadRequestError) as exc_info:
            await LaboratoryService().delete(mock_db, laboratory.id)

        assert exc_info.value.extra == {"launchCount": 3}
        assert "3 lanci" in exc_info.value.detail
        mock_db.delete.assert_not_awaited()
        mock_db.flush.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deleted_when_no_launches(self, mock_db, laboratory):
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=laboratory),
            make_result(scalar=0),
        ]

        await LaboratoryService().delete(mock_db, laboratory.id)

        mock_db.delete.assert_awaited_once_with(laboratory)

    @pytest.mark.asyncio
    async def test_missing_laboratory(self, mock_db):
        mock_db.execute.return_value = make_result(scalar_one_or_none=None)

        with pytest.raises(NotFoundError):
            await LaboratoryService().delete(mock_db, 42)


class TestLaboratoryCreate:

    @pytest.mark.asyncio
    async def test_duplicate_codice(self, mock_db):
        mock_db.execute.return_value = make_result(scalar_one_or_none=7)

        with pytest.raises(DuplicateError):
            await LaboratoryService().create(
                mock_db, LaboratoryCreate(codice="LAB01", nome="Doppione")
            )

        mock_db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_access_code_is_hashed(self, mock_db):
        mock_db.execute.return_value = make_result(scalar_one_or_none=None)

        laboratory = await LaboratoryService().create(
            mock_db,
            LaboratoryCreate(codice=" LAB02 ", nome="Laboratorio Bianchi", accessCode="segreto1"),
        )

        assert isinstance(laboratory, Laboratory)
        assert laboratory.codice == "LAB02"
        assert laboratory.access_code_hash
        assert laboratory.access_code_hash != "segreto1"

    @pytest.mark.asyncio
    async def test_unique_violation_on_flush(self, mock_db):
        mock_db.execute.return_value = make_result(scalar_one_or_none=None)
        mock_db.flush.side_effect = IntegrityError(
            "INSERT INTO scm_laboratories",
            {},
            Exception("UNIQUE constraint failed: scm_laboratories.codice"),
        )

        with pytest.raises(DuplicateError):
            await LaboratoryService().create(
                mock_db, LaboratoryCreate(codice="LAB03", nome="Laboratorio Verdi")
            )

        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_other_integrity_violation(self, mock_db):
        mock_db.execute.return_value = make_result(scalar_one_or_none=None)
        mock_db.flush.side_effect = IntegrityError(
            "INSERT INTO scm_laboratories",
            {},
            Exception("CHECK constraint failed: ck_laboratory"),
        )

        with pytest.raises(ConflictError) as exc_info:
            await LaboratoryService().create(
                mock_db, LaboratoryCreate(codice="LAB03", nome="Laboratorio Verdi")
            )

        assert exc_info.value.status_code == 409
        assert exc_info.value.error_code == "CONFLICT_STATE"
        mock_db.rollback.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_database_error_on_flush(self, mock_db):
        mock_db.execute.return_value = make_result(scalar_one_or_none=None)
        mock_db.flush.side_effect = OperationalError("INSERT", {}, Exception("database is locked"))

        with pytest.raises(ConflictError):
            await LaboratoryService().create(
                mock_db, LaboratoryCreate(codice="LAB03", nome="Laboratorio Verdi")
            )

        mock_db.rollback.assert_awaited_once()


class TestLaboratoryUpdate:

    @pytest.mark.asyncio
    async def test_explicit_nulls_keep_required_columns(self, mock_db, laboratory):
        mock_db.execute.return_value = make_result(scalar_one_or_none=laboratory)

        result = await LaboratoryService().update(
            mock_db,
            laboratory.id,
            LaboratoryUpdate(nome=None, attivo=None, telefono=None),
        )

        assert result.nome == "Laboratorio Rossi"
        assert result.attivo is True
        assert result.telefono is None
        mock_db.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_unique_violation_on_flush(self, mock_db, laboratory):
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=laboratory),
            make_result(scalar_one_or_none=None),
        ]
        mock_db.flush.side_effect = IntegrityError(
            "UPDATE scm_laboratories",
            {},
            Exception('duplicate key value violates unique constraint "scm_laboratories_codice_key"'),
        )

        with pytest.raises(DuplicateError):
            await LaboratoryService().update(mock_db, laboratory.id, LaboratoryUpdate(codice="LAB09"))

        mock_db.rollback.assert_awaited_once()


class TestLaboratoryAuthenticate:

    @pytest.mark.asyncio
    async def test_valid_access_code(self, mock_db):
        laboratory = make_laboratory(access_code_hash=hash_password("segreto1"))
        mock_db.execute.return_value = make_result(scalar_one_or_none=laboratory)

        result = await LaboratoryService().authenticate(mock_db, "LAB01", "segreto1")

        assert result is laboratory

    @pytest.mark.asyncio
    @pytest.mark.parametrize("access_code_hash", [None, "wrong"])
    async def test_invalid_credentials(self, mock_db, access_code_hash):
        stored = hash_password("altro-codice") if access_code_hash == "wrong" else None
        mock_db.execute.return_value = make_result(
            scalar_one_or_none=make_laboratory(access_code_hash=stored)
        )

        with pytest.raises(HTTPException) as exc_info:
            await LaboratoryService().authenticate(mock_db, "LAB01", "segreto1")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_unknown_or_inactive_laboratory(self, mock_db):
        mock_db.execute.return_value = make_result(scalar_one_or_none=None)

        with pytest.raises(HTTPException) as exc_info:
            await LaboratoryService().authenticate(mock_db, "NESSUNO", "segreto1")

        assert exc_info.value.status_code == 401


# ============================================================
# Fasi standard
# ============================================================


class TestStandardPhaseDelete:

    @pytest.mark.asyncio
    async def test_rejected_when_in_use(self, mock_db):
        phase = make_standard_phase(1, "Taglio", 1)
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=phase),
            make_result(scalar=12),
        ]

        with pytest.raises(BadRequestError) as exc_info:
            await StandardPhaseService().delete(mock_db, 1)

        assert exc_info.value.extra == {"usageCount": 12}
        mock_db.delete.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_deleted_when_unused(self, mock_db):
        phase = make_standard_phase(1, "Taglio", 1)
        mock_db.execute.side_effect = [
            make_result(scalar_one_or_none=phase),
            make_result(scalar=0),
        ]

        await StandardPhaseService().delete(mock_db, 1)

        mock_db.delete.assert_awaited_once_with(phase)

    @pytest.mark.asyncio
    async def test_get_by_ids_without_ids_skips_query(self, mock_db):
        assert await StandardPhaseService().get_by_ids(mock_db, []) == []
        mock_db.execute.assert_not_awaited()


class TestStandardPhaseUpdate:

    @pytest.mark.asyncio
    async def test_explicit_nulls_keep_required_columns(self, mock_db):
        phase = make_standard_phase(1, "Taglio", 3)
        mock_db.execute.return_value = make_result(scalar_one_or_none=phase)

        result = await StandardPhaseService().update(
            mock_db, 1, StandardPhaseUpdate(nome=None, ordine=None, attivo=None, descrizione=None)
        )

        assert (result.nome, result.ordine, result.attivo) == ("Taglio", 3, True)
        assert result.descrizione is None

    @pytest.mark.asyncio
    async def test_partial_update(self, mock_db):
        phase = make_standard_phase(1, "Taglio", 3)
        mock_db.execute.return_value = make_result(scalar_one_or_none=phase)

        result = await StandardPhaseService().update(mock_db, 1, StandardPhaseUpdate(ordine=5))

        assert (result.nome, result.ordine) == ("Taglio", 5)


# ============================================================
# Impostazioni
# ============================================================


class TestSettings:

    @pytest.mark.asyncio
    async def test_missing_key(self, mock_db):
        mock_db.get.return_value = None

        with pytest.raises(NotFoundError):
            await SettingService().get(mock_db, "scm.giorni_consegna")

    @pytest.mark.asyncio
    async def test_set_many_updates_and_inserts(self, mock_db):
        existing = ScmSetting(key="scm.giorni_consegna", value="30")
        mock_db.get.side_effect = lambda model, key: existing if key == existing.key else None
        service = SettingService()

        with patch.object(
            service,
            "get_all",
            AsyncMock(return_value={"scm.giorni_consegna": "45", "scm.email_notifiche": "on"}),
        ):
            result = await service.set_many(
                mock_db, {"scm.giorni_consegna": "45", "scm.email_notifiche": "on"}
            )

        assert existing.value == "45"
        added = mock_db.add.call_args.args[0]
        assert (added.key, added.value) == ("scm.email_notifiche", "on")
        assert mock_db.add.call_count == 1
        mock_db.flush.assert_awaited_once()
        assert result == {"scm.giorni_consegna": "45", "scm.email_notifiche": "on"}

    @pytest.mark.asyncio
    async def test_get_all_returns_map(self, mock_db):
        mock_db.execute.return_value = make_result(
            scalars=[ScmSetting(key="a", value="1"), ScmSetting(key="b", value=None)]
        )

        assert await SettingService().get_all(mock_db) == {"a": "1", "b": None}
