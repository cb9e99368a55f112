"""
Ricrea lo schema del database CoreGRE SCM dai modelli ORM.

Uso:
    python reset_db.py            # elimina e ricrea tutte le tabelle
    python reset_db.py --create   # crea solo le tabelle mancanti
"""

import argparse
import asyncio
import os
import sys

# Aggiungi backend/ alla PYTHONPATH per importare app.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from app.core.database import engine
from app.models import Base


async def reset(drop: bool = True) -> None:
    print(f"Connessione al database ({engine.url.render_as_string(hide_password=True)})...")
    async with engine.begin() as conn:
        if drop:
            await conn.run_sync(Base.metadata.drop_all)
            print("Tabelle eliminate.")
        await conn.run_sync(Base.metadata.create_all)
    await engine.dispose()

    tables = ", ".join(sorted(Base.metadata.tables))
    print(f"Schema pronto: {tables}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Reset dello schema CoreGRE SCM")
    parser.add_argument(
        "--create",
        action="store_true",
        help="Non eliminare le tabelle esistenti, crea solo quelle mancanti",
    )
    args = parser.parse_args()
    asyncio.run(reset(drop=not args.create))
