"""
Pytest configuration and fixtures for the SCM services.

I service vengono testati contro un mock di AsyncSession: le query
restituiscono oggetti ORM transitori costruiti dalle factory qui sotto.
"""

import datetime
import itertools
from typing import Any, Iterable, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import (
    ArticlePhase,
    Laboratory,
    Launch,
    LaunchArticle,
    StandardPhase,
)
from app.models.user import User, UserRole


# ============================================================
# Fixtures per AsyncSession Mock
# ============================================================


@pytest.fixture
def mock_db():
    """Crea un mock di AsyncSession."""
    db = AsyncMock(spec=AsyncSession)
    db.execute = AsyncMock()
    db.get = AsyncMock(return_value=None)
    db.add = MagicMock()
    db.add_all = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.delete = AsyncMock()
    return db


def make_result(
    scalar_one_or_none: Any = None,
    scalars: Optional[Iterable[Any]] = None,
    scalar: Any = None,
    rows: Optional[Iterable[Any]] = None,
) -> MagicMock:
    """Costruisce il risultato restituito da db.execute."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = scalar_one_or_none
    result.scalars.return_value.all.return_value = list(scalars or [])
    result.scalar.return_value = scalar
    result.all.return_value = list(rows or [])
    return result


@pytest.fixture
def recording_db(mock_db):
    """
    Mock di AsyncSession che registra gli oggetti aggiunti e assegna
    un id intero progressivo ad ogni flush.
    """
    counter = itertools.count(1)
    mock_db.added = []

    def _add(obj):
        mock_db.added.append(obj)

    def _add_all(objs):
        mock_db.added.extend(objs)

    async def _flush():
        for obj in mock_db.added:
            if getattr(obj, "id", None) is None:
                obj.id = next(counter)

    mock_db.add.side_effect = _add
    mock_db.add_all.side_effect = _add_all
    mock_db.flush.side_effect = _flush
    return mock_db


# ============================================================
# Factory per oggetti ORM transitori
# ============================================================


def make_laboratory(**kwargs) -> Laboratory:
    now = datetime.datetime(2025, 3, 1, 9, 0, tzinfo=datetime.timezone.utc)
    values = dict(
        id=1,
        codice="LAB01",
        nome="Laboratorio Rossi",
        attivo=True,
        created_at=now,
        updated_at=now,
    )
    values.update(kwargs)
    return Laboratory(**values)


def make_standard_phase(id: int, nome: str, ordine: int, attivo: bool = True) -> StandardPhase:
    return StandardPhase(id=id, nome=nome, ordine=ordine, attivo=attivo)


def make_phase(
    id: int,
    sequenza: int,
    stato: str = "NON_INIZIATA",
    article_id: int = 1,
    note: Optional[str] = None,
) -> ArticlePhase:
    return ArticlePhase(
        id=id,
        article_id=article_id,
        phase_id=100 + id,
        nome=f"Fase {id}",
        sequenza=sequenza,
        stato=stato,
        note=note,
    )


def make_launch(id: int, stato: str, quantities: Iterable[int] = (), **kwargs) -> Launch:
    launch = Launch(
        id=id,
        numero=kwargs.pop("numero", f"L{id:03d}"),
        laboratory_id=kwargs.pop("laboratory_id", 1),
        data_lancio=kwargs.pop("data_lancio", datetime.date(2025, 3, id % 28 + 1)),
        stato=stato,
        **kwargs,
    )
    launch.articles = [
        LaunchArticle(id=id * 10 + i, launch_id=id, commessa="C", modello="M", quantita=q)
        for i, q in enumerate(quantities)
    ]
    return launch


def make_user(role: str = UserRole.OPERATOR.value, permissions: Optional[dict] = None) -> User:
    return User(
        email="utente@example.com",
        hashed_password="x",
        full_name="Utente Test",
        role=role,
        permissions=permissions or {},
        is_active=True,
    )


@pytest.fixture
def laboratory():
    return make_laboratory()


@pytest.fixture
def standard_phases():
    """Catalogo con due fasi: taglio e cucitura."""
    return [
        make_standard_phase(1, "Taglio", ordine=1),
        make_standard_phase(2, "Cucitura", ordine=2),
    ]
