"""
Service Layer per l'entità Client
Progetto: ConexHub CRM (Gestionale Proposte)

Definisce la logica di business per la gestione dei clienti:
- Ricerca su nome, email, azienda e telefono
- Registrazione con riferimento all'utente che ha creato il cliente
- Eliminazione fisica (le proposte collegate restano senza cliente)
"""

import logging
import uuid
from typing import Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.exceptions import ConflictError, NotFoundError
from crm.models import Client
from crm.schemas.client import ClientCreate, ClientUpdate

# Logger per questo modulo
logger = logging.getLogger(__name__)


class ClientService:
    """
    Service per la gestione delle operazioni CRUD sui clienti.

    Fornisce metodi asincroni per interagire con il database
    in modo centralizzato, senza dipendenze da FastAPI.

    Usage with Dependency Injection:
        from crm.services.client_service import ClientService

        @router.get("/clients")
        async def get_clients(service: ClientService = Depends(get_client_service)):
            return await service.get_all(db)
    """

    async def get_all(
        self,
        db: AsyncSession,
        page: int = 1,
        per_page: int = 20,
        search: Optional[str] = None,
    ) -> tuple[list[Client], int]:
        """
        Recupera la lista paginata dei clienti ordinata per nome.

        Args:
            db: Sessione database
            page: Numero pagina (default 1)
            per_page: Elementi per pagina (default 20)
            search: Termine di ricerca opzionale

        Returns:
            Tuple di (lista clienti, totale count)
        """
        conditions = []

        if search:
            search_term = f"%{search}%"
            conditions.append(
                or_(
                    Client.name.ilike(search_term),
                    Client.email.ilike(search_term),
                    Client.company.ilike(search_term),
                    Client.phone.ilike(search_term),
                )
            )

        query = select(Client).order_by(Client.name.asc())
        if conditions:
            query = query.where(*conditions)

        offset = (page - 1) * per_page
        query = query.offset(offset).limit(per_page)
        result = await db.execute(query)
        clients = list(result.scalars().all())

        count_query = select(func.count()).select_from(Client)
        if conditions:
            count_query = count_query.where(*conditions)

        count_result = await db.execute(count_query)
        total = count_result.scalar() or 0

        logger.info("Recuperati %s clienti su %s totali (pagina %s)", len(clients), total, page)

        return clients, total

    async def get_by_id(self, db: AsyncSession, client_id: uuid.UUID) -> Client:
        """
        Recupera un cliente tramite ID.

        Raises:
            NotFoundError: Se il cliente non esiste
        """
        result = await db.execute(select(Client).where(Client.id == client_id))
        client = result.scalar_one_or_none()

        if client is None:
            logger.warning("Cliente non trovato: %s", client_id)
            raise NotFoundError(f"Cliente con ID {client_id} non trovato")

        logger.debug("Recuperato cliente: %s - %s", client.id, client.name)
        return client

    async def create(
        self,
        db: AsyncSession,
        client_data: ClientCreate,
        created_by: Optional[uuid.UUID] = None,
    ) -> Client:
        """
        Crea un nuovo cliente.

        Args:
            db: Sessione database
            client_data: Dati del cliente da creare
            created_by: Utente che registra il cliente

        Returns:
            Oggetto Client appena creato

        Raises:
            ConflictError: Se il database genera un errore imprevisto
        """
        client = Client(**client_data.model_dump(), created_by=created_by)

        try:
            db.add(client)
            await db.flush()
            await db.refresh(client)

            logger.info(
                "Creato nuovo cliente: %s - %s (azienda: %s)",
                client.id, client.name, client.company or "N/A",
            )
            return client

        except IntegrityError as e:
            logger.error("Errore IntegrityError creazione cliente: %s - %s", e.__class__.__name__, e.orig)
            await db.rollback()
            raise ConflictError("Errore durante la creazione del cliente")

        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy creazione cliente: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante la creazione del cliente")

    async def update(
        self,
        db: AsyncSession,
        client_id: uuid.UUID,
        client_data: ClientUpdate,
    ) -> Client:
        """
        Aggiorna un cliente esistente.

        Raises:
            NotFoundError: Se il cliente non esiste
            ConflictError: Se il database genera un errore imprevisto
        """
        client = await self.get_by_id(db, client_id)

        # Solo i campi inviati nel payload
        update_data = client_data.model_dump(exclude_unset=True)

        for field, value in update_data.items():
            setattr(client, field, value)

        try:
            await db.flush()
            await db.refresh(client)

            logger.info("Aggiornato cliente: %s - %s", client.id, client.name)
            return client

        except IntegrityError as e:
            logger.error("Errore IntegrityError aggiornamento cliente: %s - %s", e.__class__.__name__, e.orig)
            await db.rollback()
            raise ConflictError("Errore durante l'aggiornamento del cliente")

        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy aggiornamento cliente: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'aggiornamento del cliente")

    async def delete(self, db: AsyncSession, client_id: uuid.UUID) -> None:
        """
        Elimina fisicamente un cliente.

        Raises:
            NotFoundError: Se il cliente non esiste
            ConflictError: Se il database genera un errore imprevisto
        """
        client = await self.get_by_id(db, client_id)

        try:
            await db.delete(client)
            await db.flush()
            logger.info("Eliminato cliente: %s - %s", client.id, client.name)

        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy eliminazione cliente: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'eliminazione del cliente")
