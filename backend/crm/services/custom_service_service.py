"""
Service Layer per i servizi personalizzati
Progetto: ConexHub CRM (Gestionale Proposte)

Ogni utente gestisce i propri servizi; modifica ed eliminazione
sono consentite solo al proprietario.
"""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from crm.models import CustomService
from crm.schemas.catalog import CustomServiceCreate, CustomServiceUpdate

# Logger per questo modulo
logger = logging.getLogger(__name__)


class CustomServiceService:
    """Service CRUD per i servizi personalizzati dell'utente."""

    async def get_all(self, db: AsyncSession, user_id: uuid.UUID) -> list[CustomService]:
        """Servizi dell'utente, dal più recente."""
        result = await db.execute(
            select(CustomService)
            .where(CustomService.user_id == user_id)
            .order_by(CustomService.created_at.desc())
        )
        services = list(result.scalars().all())
        logger.debug("Recuperati %s servizi personalizzati per l'utente %s", len(services), user_id)
        return services

    async def get_owned(
        self,
        db: AsyncSession,
        service_id: uuid.UUID,
        user_id: uuid.UUID,
    ) -> CustomService:
        """
        Recupera un servizio verificandone il proprietario.

        Raises:
            NotFoundError: Se il servizio non esiste
            AuthorizationError: Se il servizio appartiene a un altro utente
        """
        result = await db.execute(select(CustomService).where(CustomService.id == service_id))
        service = result.scalar_one_or_none()

        if service is None:
            logger.warning("Servizio personalizzato non trovato: %s", service_id)
            raise NotFoundError(f"Servizio personalizzato con ID {service_id} non trovato")

        if service.user_id != user_id:
            logger.warning("Utente %s non proprietario del servizio %s", user_id, service_id)
            raise AuthorizationError("Servizio personalizzato di un altro utente")

        return service

    async def create(
        self,
        db: AsyncSession,
        data: CustomServiceCreate,
        user_id: uuid.UUID,
    ) -> CustomService:
        service = CustomService(**data.model_dump(), user_id=user_id)

        try:
            db.add(service)
            await db.flush()
            await db.refresh(service)
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy creazione servizio: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante la creazione del servizio")

        logger.info("Creato servizio personalizzato %s '%s' (utente %s)", service.id, service.name, user_id)
        return service

    async def update(
        self,
        db: AsyncSession,
        service_id: uuid.UUID,
        data: CustomServiceUpdate,
        user_id: uuid.UUID,
    ) -> CustomService:
        service = await self.get_owned(db, service_id, user_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(service, field, value)

        try:
            await db.flush()
            await db.refresh(service)
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy aggiornamento servizio: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'aggiornamento del servizio")

        logger.info("Aggiornato servizio personalizzato %s", service_id)
        return service

    async def delete(self, db: AsyncSession, service_id: uuid.UUID, user_id: uuid.UUID) -> None:
        """
        Elimina un servizio personalizzato.

        Le proposte già registrate conservano la propria copia della riga.
        """
        service = await self.get_owned(db, service_id, user_id)

        try:
            await db.delete(service)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy eliminazione servizio: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'eliminazione del servizio")

        logger.info("Eliminato servizio personalizzato %s", service_id)
