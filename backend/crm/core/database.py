"""
Configurazione Database - SQLAlchemy 2.0 Async
Progetto: ConexHub CRM (Gestionale Proposte)

Engine e session factory condivisi da API, pipeline e script di reset.
Le route ricevono la sessione tramite `get_db`; la pipeline apre le
proprie sessioni da `AsyncSessionLocal`.
"""

import logging
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from crm.core.config import settings

# Logger per questo modulo
logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# Engine Async SQLAlchemy 2.0
# ------------------------------------------------------------
engine: AsyncEngine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    pool_pre_ping=True,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    # Nome visibile in pg_stat_activity
    connect_args={"server_settings": {"application_name": settings.app_name}},
)


# ------------------------------------------------------------
# Session Factory
# ------------------------------------------------------------
# expire_on_commit=False: le proposte restano leggibili dopo il commit
# della route, quando vengono serializzate nella risposta.
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency injection per FastAPI.

    Una sessione per richiesta. Il commit resta alla route; se la
    richiesta termina con un'eccezione la transazione viene annullata.

    Yields:
        AsyncSession: Sessione database async
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            logger.debug("Rollback sessione per %s", e.__class__.__name__)
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Verifica all'avvio che il database sia raggiungibile.
    """
    url = engine.url.render_as_string(hide_password=True)
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Connessione al database stabilita (%s)", url)
    except Exception as e:
        logger.error("Errore connessione database %s: %s", url, e)
        raise


async def close_db() -> None:
    """Chiude il pool di connessioni durante lo shutdown."""
    await engine.dispose()
    logger.info("Connessioni database chiuse")
