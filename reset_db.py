import asyncio
import sys
import os

# Aggiungi backend/ alla PYTHONPATH per importare crm.*
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "backend"))

from crm.core.database import engine
from crm.models import Base


async def reset():
    print("Connessione al database CRM, eliminazione tabelle...")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        print("Tabelle eliminate. Creazione tabelle di clienti, proposte e catalogo...")
        await conn.run_sync(Base.metadata.create_all)
    for table in Base.metadata.sorted_tables:
        print(f"  - {table.name}")
    await engine.dispose()
    print("Database resettato con successo!")


if __name__ == "__main__":
    asyncio.run(reset())
