"""
Service Layer per l'entità Proposal
Progetto: ConexHub CRM (Gestionale Proposte)

Logica di persistenza delle proposte:
- Registrazione con righe congelate e share_token
- Aggiornamento con sostituzione integrale delle righe
- Cambio di stato permissivo (qualsiasi stato verso qualsiasi stato)
- Duplicazione come bozza
- Indicatori della pagina Proposte
"""

import datetime
import logging
import uuid
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.exceptions import BusinessValidationError, ConflictError, DuplicateError, NotFoundError
from crm.models import AppUser, Client, Proposal, ProposalItem
from crm.models.proposal import generate_share_token
from crm.schemas.proposal import (
    ProposalCreate,
    ProposalFilters,
    ProposalMetrics,
    ProposalServiceSnapshot,
    ProposalSortField,
    ProposalStatus,
    ProposalUpdate,
    SortOrder,
)
from crm.services.pipeline import period_start
from crm.services.quote_engine import round2

# Logger per questo modulo
logger = logging.getLogger(__name__)

# Sentinella per distinguere "cliente non indicato" da "nessun cliente"
UNSET: Any = object()

# Campi copiati da una proposta all'altra durante la duplicazione
DUPLICATED_FIELDS = (
    "amount",
    "notes",
    "expected_close_date",
    "payment_type",
    "cash_discount_percentage",
    "installment_number",
    "installment_value",
    "manual_installment_total",
    "is_validity_enabled",
    "validity_days",
    "proposal_logo_url",
    "proposal_gradient_theme",
)

ITEM_FIELDS = tuple(ProposalServiceSnapshot.model_fields)

SORT_COLUMNS = {
    ProposalSortField.AMOUNT.value: Proposal.amount,
    ProposalSortField.CREATED_AT.value: Proposal.created_at,
    ProposalSortField.UPDATED_AT.value: Proposal.updated_at,
}


def build_items(services: list[ProposalServiceSnapshot]) -> list[ProposalItem]:
    """Crea le righe ORM rispettando l'ordine del preventivo."""
    items = []
    for position, service in enumerate(services):
        data = service.model_dump()
        data["features"] = list(data["features"])
        items.append(ProposalItem(position=position, **data))
    return items


def copy_items(items: list[ProposalItem]) -> list[ProposalItem]:
    """Copia le righe di una proposta esistente."""
    copies = []
    for position, item in enumerate(items):
        data = {field: getattr(item, field) for field in ITEM_FIELDS}
        data["features"] = list(data["features"] or [])
        copies.append(ProposalItem(position=position, **data))
    return copies


class ProposalService:
    """
    Service per la gestione delle proposte.

    Metodi asincroni senza dipendenze da FastAPI: la transazione viene
    confermata dal chiamante (router o repository della pipeline).
    """

    # ------------------------------------------------------------
    # Lettura
    # ------------------------------------------------------------

    def _conditions(self, filters: ProposalFilters) -> list:
        conditions = []

        if filters.status is not None:
            conditions.append(Proposal.status == filters.status)

        if filters.owner_id is not None:
            conditions.append(Proposal.owner_id == filters.owner_id)

        if filters.client_id is not None:
            conditions.append(Proposal.client_id == filters.client_id)

        if filters.search:
            search_term = f"%{filters.search}%"
            conditions.append(
                or_(
                    Proposal.title.ilike(search_term),
                    Client.name.ilike(search_term),
                    AppUser.name.ilike(search_term),
                )
            )

        start = period_start(filters.period)
        if start is not None:
            conditions.append(Proposal.created_at >= start)

        return conditions

    async def get_all(
        self,
        db: AsyncSession,
        filters: Optional[ProposalFilters] = None,
        page: int = 1,
        per_page: Optional[int] = 20,
    ) -> tuple[list[Proposal], int]:
        """
        Recupera la lista delle proposte filtrata e ordinata.

        Args:
            db: Sessione database
            filters: Ricerca, proprietario, cliente, stato, periodo e ordinamento
            page: Numero pagina (default 1)
            per_page: Elementi per pagina; None restituisce tutte le proposte

        Returns:
            Tuple di (lista proposte, totale count)
        """
        filters = filters or ProposalFilters()
        conditions = self._conditions(filters)

        sort_column = SORT_COLUMNS.get(filters.sort_by, Proposal.updated_at)
        if filters.sort_order == SortOrder.ASC.value:
            order = (sort_column.asc(), Proposal.id.asc())
        else:
            order = (sort_column.desc(), Proposal.id.desc())

        query = (
            select(Proposal)
            .outerjoin(Client, Proposal.client_id == Client.id)
            .outerjoin(AppUser, Proposal.owner_id == AppUser.id)
            .order_by(*order)
        )
        if conditions:
            query = query.where(*conditions)
        if per_page is not None:
            query = query.offset((page - 1) * per_page).limit(per_page)

        result = await db.execute(query)
        proposals = list(result.scalars().unique().all())

        count_query = (
            select(func.count(Proposal.id))
            .select_from(Proposal)
            .outerjoin(Client, Proposal.client_id == Client.id)
            .outerjoin(AppUser, Proposal.owner_id == AppUser.id)
        )
        if conditions:
            count_query = count_query.where(*conditions)
        count_result = await db.execute(count_query)
        total = count_result.scalar() or 0

        logger.debug(
            "Recuperate %s proposte su %s totali (pagina %s, ordinamento %s %s)",
            len(proposals), total, page, filters.sort_by, filters.sort_order,
        )
        return proposals, total

    async def get_by_id(self, db: AsyncSession, proposal_id: uuid.UUID) -> Proposal:
        """
        Recupera una proposta tramite ID.

        Raises:
            NotFoundError: Se la proposta non esiste
        """
        result = await db.execute(
            select(Proposal)
            .where(Proposal.id == proposal_id)
            .execution_options(populate_existing=True)
        )
        proposal = result.scalar_one_or_none()

        if proposal is None:
            logger.warning("Proposta non trovata: %s", proposal_id)
            raise NotFoundError(f"Proposta con ID {proposal_id} non trovata")

        return proposal

    async def get_by_share_token(self, db: AsyncSession, share_token: str) -> Proposal:
        """
        Recupera una proposta tramite il token del link pubblico.

        Raises:
            NotFoundError: Se il token non corrisponde ad alcuna proposta
        """
        result = await db.execute(select(Proposal).where(Proposal.share_token == share_token))
        proposal = result.scalar_one_or_none()

        if proposal is None:
            logger.warning("Token di condivisione non valido")
            raise NotFoundError("Proposta não encontrada ou token inválido.")

        return proposal

    # ------------------------------------------------------------
    # Scrittura
    # ------------------------------------------------------------

    async def _save(self, db: AsyncSession, proposal: Proposal, action: str) -> Proposal:
        try:
            await db.flush()
        except IntegrityError as e:
            logger.error("Errore IntegrityError %s proposta: %s - %s", action, e.__class__.__name__, e.orig)
            await db.rollback()
            if "share_token" in str(e.orig).lower():
                raise DuplicateError("Token di condivisione già in uso")
            raise ConflictError(f"Errore durante {action} della proposta")
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy %s proposta: %s - %s", action, e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError(f"Errore del database durante {action} della proposta")

        return await self.get_by_id(db, proposal.id)

    async def create(
        self,
        db: AsyncSession,
        data: ProposalCreate,
        owner_id: Optional[uuid.UUID] = None,
    ) -> Proposal:
        """
        Registra una nuova proposta con le sue righe.

        Args:
            db: Sessione database
            data: Intestazione e righe congelate
            owner_id: Proprietario, usato se data.owner_id non è indicato

        Returns:
            La proposta creata

        Raises:
            BusinessValidationError: Se manca il proprietario
        """
        owner = data.owner_id or owner_id
        if owner is None:
            raise BusinessValidationError("Proprietario della proposta mancante")

        proposal = Proposal(
            **data.model_dump(exclude={"services", "owner_id"}),
            id=uuid.uuid4(),
            owner_id=owner,
            share_token=generate_share_token(),
        )
        proposal.services = build_items(data.services)

        db.add(proposal)
        created = await self._save(db, proposal, "la creazione")

        logger.info(
            "Creata proposta %s '%s' (stato %s, importo %s, %s righe)",
            created.id, created.title, created.status, created.amount, len(data.services),
        )
        return created

    async def create_draft(
        self,
        db: AsyncSession,
        data: ProposalCreate,
        owner_id: Optional[uuid.UUID] = None,
    ) -> Proposal:
        """Registra la proposta come bozza (stato Rascunho)."""
        draft = data.model_copy(update={"status": ProposalStatus.RASCUNHO.value})
        return await self.create(db, draft, owner_id=owner_id)

    async def update(
        self,
        db: AsyncSession,
        proposal_id: uuid.UUID,
        data: ProposalUpdate,
    ) -> Proposal:
        """
        Aggiorna una proposta.

        Applica solo i campi inviati; se `services` è presente le righe
        esistenti vengono eliminate e sostituite.

        Raises:
            NotFoundError: Se la proposta non esiste
            BusinessValidationError: Se il titolo inviato è vuoto
        """
        proposal = await self.get_by_id(db, proposal_id)

        update_data = data.model_dump(exclude_unset=True, exclude={"services"})

        if "title" in update_data:
            title = (update_data["title"] or "").strip()
            if not title:
                raise BusinessValidationError("O título da proposta é obrigatório.")
            update_data["title"] = title

        if "owner_id" in update_data and update_data["owner_id"] is None:
            del update_data["owner_id"]

        for field, value in update_data.items():
            setattr(proposal, field, value)

        if "services" in data.model_fields_set and data.services is not None:
            proposal.services = build_items(data.services)

        updated = await self._save(db, proposal, "l'aggiornamento")
        logger.info("Aggiornata proposta %s (campi: %s)", proposal_id, sorted(data.model_fields_set))
        return updated

    async def change_status(
        self,
        db: AsyncSession,
        proposal_id: uuid.UUID,
        new_status: ProposalStatus,
    ) -> Proposal:
        """
        Cambia lo stato di una proposta.

        Nessuna matrice di transizione: ogni stato è raggiungibile da ogni
        altro, comprese le proposte già approvate o rifiutate.
        Lo stesso stato non produce modifiche.

        Raises:
            NotFoundError: Se la proposta non esiste
        """
        proposal = await self.get_by_id(db, proposal_id)
        new_status = ProposalStatus(new_status)

        if proposal.status == new_status.value:
            logger.debug("Proposta %s già nello stato %s", proposal_id, new_status.value)
            return proposal

        old_status = proposal.status
        proposal.status = new_status.value

        updated = await self._save(db, proposal, "il cambio di stato")
        logger.info("Proposta %s: stato %s -> %s", proposal_id, old_status, new_status.value)
        return updated

    async def duplicate(
        self,
        db: AsyncSession,
        proposal_id: uuid.UUID,
        owner_id: uuid.UUID,
        new_client_id: Optional[uuid.UUID] = UNSET,
        new_title: Optional[str] = None,
    ) -> Proposal:
        """
        Duplica una proposta come bozza.

        Copia righe e configurazione di pagamento, validità e tema;
        l'originale non viene modificata.

        Args:
            db: Sessione database
            proposal_id: Proposta sorgente
            owner_id: Proprietario della copia (utente corrente)
            new_client_id: Cliente della copia; se omesso resta quello originale
            new_title: Titolo della copia; default "<titolo> (Cópia)"

        Returns:
            La nuova proposta in stato Rascunho
        """
        source = await self.get_by_id(db, proposal_id)

        title = (new_title or "").strip() or f"{source.title} (Cópia)"
        client_id = source.client_id if new_client_id is UNSET else new_client_id

        copy = Proposal(
            id=uuid.uuid4(),
            title=title,
            client_id=client_id,
            owner_id=owner_id,
            status=ProposalStatus.RASCUNHO.value,
            share_token=generate_share_token(),
            **{field: getattr(source, field) for field in DUPLICATED_FIELDS},
        )
        copy.services = copy_items(source.services)

        db.add(copy)
        created = await self._save(db, copy, "la duplicazione")

        logger.info("Duplicata proposta %s in %s '%s'", proposal_id, created.id, created.title)
        return created

    async def delete(self, db: AsyncSession, proposal_id: uuid.UUID) -> None:
        """
        Elimina una proposta; le righe vengono eliminate in cascata.

        Raises:
            NotFoundError: Se la proposta non esiste
            ConflictError: Se il database genera un errore imprevisto
        """
        proposal = await self.get_by_id(db, proposal_id)

        try:
            await db.delete(proposal)
            await db.flush()
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy eliminazione proposta: %s - %s", e.__class__.__name__, e)
            await db.rollback()
            raise ConflictError("Errore del database durante l'eliminazione della proposta")

        logger.info("Eliminata proposta %s '%s'", proposal.id, proposal.title)

    # ------------------------------------------------------------
    # Indicatori
    # ------------------------------------------------------------

    async def get_metrics(
        self,
        db: AsyncSession,
        owner_id: Optional[uuid.UUID] = None,
        now: Optional[datetime.datetime] = None,
    ) -> ProposalMetrics:
        """
        Calcola gli indicatori della pagina Proposte.

        - total_proposals: numero di proposte
        - total_value: somma degli importi
        - this_month: valore delle proposte approvate create nel mese corrente
        - conversion_rate: % di proposte approvate sul totale
        """
        now = now or datetime.datetime.now(datetime.timezone.utc)
        month_start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
        approved = Proposal.status == ProposalStatus.APROVADA.value

        query = select(
            func.count(Proposal.id),
            func.coalesce(func.sum(Proposal.amount), 0),
            func.coalesce(
                func.sum(case((and_(approved, Proposal.created_at >= month_start), Proposal.amount), else_=0)),
                0,
            ),
            func.count(case((approved, 1))),
        )
        if owner_id is not None:
            query = query.where(Proposal.owner_id == owner_id)

        result = await db.execute(query)
        total, total_value, this_month, approved_count = result.one()

        total = total or 0
        conversion_rate = (
            round2(Decimal(approved_count or 0) / Decimal(total) * Decimal("100")) if total else Decimal("0")
        )

        return ProposalMetrics(
            total_proposals=total,
            total_value=Decimal(total_value or 0),
            this_month=Decimal(this_month or 0),
            conversion_rate=conversion_rate,
        )
