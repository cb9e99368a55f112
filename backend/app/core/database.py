"""
Configurazione Database - SQLAlchemy 2.0 Async
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Definisce engine, session factory e dependency injection per FastAPI.

Ogni richiesta HTTP lavora su una propria sessione: i service eseguono
solo flush, il router esegue il commit finale e qualsiasi eccezione
sollevata durante la richiesta provoca il rollback dell'intera transazione.
"""

import logging
from typing import Any, AsyncGenerator

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import settings

logger = logging.getLogger(__name__)


def _engine_options(database_url: str) -> dict[str, Any]:
    """
    Opzioni per create_async_engine in base al backend.

    SQLite (usato in sviluppo locale) non accetta i parametri del pool.
    """
    options: dict[str, Any] = {
        "echo": settings.debug,
        "pool_pre_ping": True,
    }
    if not database_url.startswith("sqlite"):
        options["pool_size"] = settings.db_pool_size
        options["max_overflow"] = settings.db_max_overflow
    return options


# ------------------------------------------------------------
# Engine Async SQLAlchemy 2.0
# ------------------------------------------------------------
engine: AsyncEngine = create_async_engine(
    settings.database_url,
    **_engine_options(settings.database_url),
)


if settings.database_url.startswith("sqlite"):
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
        # Le cascate ON DELETE richiedono i vincoli FK attivi
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


# ------------------------------------------------------------
# Session Factory
# ------------------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection per FastAPI.

    Crea una sessione database per ogni richiesta. Se la richiesta
    fallisce, tutte le scritture non ancora committate vengono annullate.

    Yields:
        AsyncSession: Sessione database async
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def init_db() -> None:
    """
    Verifica che il database sia raggiungibile all'avvio.
    """
    try:
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Connessione al database stabilita con successo")
    except Exception as e:
        logger.error("Errore connessione database: %s", e)
        raise


async def close_db() -> None:
    """
    Chiude le connessioni al database allo shutdown.
    """
    await engine.dispose()
    logger.info("Connessioni database chiuse")
