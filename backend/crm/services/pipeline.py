"""
Pipeline delle proposte (kanban)
Progetto: ConexHub CRM (Gestionale Proposte)

Raggruppa le proposte per stato e gestisce lo spostamento tra colonne:
aggiornamento ottimistico, persistenza asincrona e riallineamento
completo dalla fonte dati, sia in caso di successo sia di errore.

Il grafo degli stati è permissivo: qualsiasi stato è raggiungibile
da qualsiasi altro.
"""

import asyncio
import datetime
import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Generic, Iterable, Optional, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.exceptions import AppException
from crm.schemas.pipeline import BoardColumn, PipelineBoardRead
from crm.schemas.proposal import (
    ProposalFilters,
    ProposalPeriod,
    ProposalRead,
    ProposalSortField,
    ProposalStatus,
    SortOrder,
)

# Logger per questo modulo
logger = logging.getLogger(__name__)

T = TypeVar("T")


# ------------------------------------------------------------
# Stati
# ------------------------------------------------------------
ACTIVE_STATUSES: tuple[ProposalStatus, ...] = (
    ProposalStatus.RASCUNHO,
    ProposalStatus.CRIADA,
    ProposalStatus.ENVIADA,
    ProposalStatus.NEGOCIANDO,
)

CLOSED_STATUSES: tuple[ProposalStatus, ...] = (
    ProposalStatus.APROVADA,
    ProposalStatus.REJEITADA,
)

TERMINAL_STATUSES: frozenset[ProposalStatus] = frozenset(CLOSED_STATUSES)

# Colonna che accoglie le proposte con stato sconosciuto
FALLBACK_STATUS = ProposalStatus.CRIADA

# Stessi campi della lista proposte
BoardFilters = ProposalFilters

PERIOD_DAYS = {
    ProposalPeriod.LAST_7_DAYS.value: 7,
    ProposalPeriod.LAST_30_DAYS.value: 30,
    ProposalPeriod.LAST_90_DAYS.value: 90,
}


def period_start(period: str, now: Optional[datetime.datetime] = None) -> Optional[datetime.datetime]:
    """
    Inizio della finestra temporale sulla data di creazione.

    'today' parte dalla mezzanotte, gli altri periodi sottraggono N giorni.
    """
    if period in (None, ProposalPeriod.ALL.value):
        return None
    now = now or datetime.datetime.now(datetime.timezone.utc)
    if period == ProposalPeriod.TODAY.value:
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    days = PERIOD_DAYS.get(period)
    if days is None:
        return None
    return now - datetime.timedelta(days=days)


def bucket_status(status: str) -> ProposalStatus:
    """Stato di colonna: gli stati sconosciuti finiscono in 'Criada'."""
    try:
        return ProposalStatus(status)
    except ValueError:
        return FALLBACK_STATUS


# ------------------------------------------------------------
# Funzioni pure: filtro, ordinamento, raggruppamento
# ------------------------------------------------------------

def _matches_search(proposal: ProposalRead, term: str) -> bool:
    term = term.lower()
    if term in proposal.title.lower():
        return True
    if proposal.client is not None and term in (proposal.client.name or "").lower():
        return True
    if proposal.owner is not None and term in (proposal.owner.name or "").lower():
        return True
    return False


def filter_proposals(
    proposals: Iterable[ProposalRead],
    filters: BoardFilters,
    now: Optional[datetime.datetime] = None,
) -> list[ProposalRead]:
    """Applica ricerca, proprietario, cliente, stato e periodo."""
    start = period_start(filters.period, now)
    result = []
    for proposal in proposals:
        if filters.search and not _matches_search(proposal, filters.search):
            continue
        if filters.owner_id is not None and proposal.owner_id != filters.owner_id:
            continue
        if filters.client_id is not None and proposal.client_id != filters.client_id:
            continue
        if filters.status is not None and proposal.status != filters.status:
            continue
        if start is not None and proposal.created_at < start:
            continue
        result.append(proposal)
    return result


def sort_proposals(proposals: Iterable[ProposalRead], filters: BoardFilters) -> list[ProposalRead]:
    """Ordina per importo, data di creazione o di aggiornamento."""
    key_by_field: dict[str, Callable[[ProposalRead], object]] = {
        ProposalSortField.AMOUNT.value: lambda p: Decimal(p.amount),
        ProposalSortField.CREATED_AT.value: lambda p: p.created_at,
        ProposalSortField.UPDATED_AT.value: lambda p: p.updated_at,
    }
    key = key_by_field.get(filters.sort_by, key_by_field[ProposalSortField.UPDATED_AT.value])
    return sorted(proposals, key=key, reverse=filters.sort_order == SortOrder.DESC.value)


def empty_buckets() -> dict[ProposalStatus, list[ProposalRead]]:
    return {status: [] for status in ProposalStatus}


def group_by_status(proposals: Iterable[ProposalRead]) -> dict[ProposalStatus, list[ProposalRead]]:
    """
    Suddivide le proposte nelle colonne, mantenendo l'ordine ricevuto.

    Ogni proposta finisce in esattamente una colonna.
    """
    buckets = empty_buckets()
    for proposal in proposals:
        buckets[bucket_status(proposal.status)].append(proposal)
    return buckets


def build_board(
    proposals: Iterable[ProposalRead],
    filters: Optional[BoardFilters] = None,
    now: Optional[datetime.datetime] = None,
) -> dict[ProposalStatus, list[ProposalRead]]:
    """Filtra, ordina e raggruppa: ricalcolo completo ad ogni chiamata."""
    filters = filters or BoardFilters()
    return group_by_status(sort_proposals(filter_proposals(proposals, filters, now), filters))


def board_to_schema(buckets: dict[ProposalStatus, list[ProposalRead]]) -> PipelineBoardRead:
    """Converte le colonne nello schema di risposta."""
    columns = [
        BoardColumn(
            status=status,
            is_terminal=status in TERMINAL_STATUSES,
            proposals=list(buckets.get(status, [])),
        )
        for status in ProposalStatus
    ]
    active = sum(len(buckets.get(status, [])) for status in ACTIVE_STATUSES)
    closed = sum(len(buckets.get(status, [])) for status in CLOSED_STATUSES)
    return PipelineBoardRead(
        columns=columns,
        active_count=active,
        closed_count=closed,
        total=active + closed,
    )


# ------------------------------------------------------------
# Collaboratori della pipeline
# ------------------------------------------------------------

@dataclass(frozen=True)
class OperationResult(Generic[T]):
    """Esito di una chiamata di persistenza: dati oppure messaggio di errore."""

    data: Optional[T] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ProposalRepository(Protocol):
    """Accesso alle proposte usato dalla pipeline."""

    async def list_proposals(self) -> OperationResult[list[ProposalRead]]:
        ...

    async def update_status(self, proposal_id: uuid.UUID, status: ProposalStatus) -> OperationResult[ProposalRead]:
        ...


class Notifier(Protocol):
    """Notifiche non bloccanti verso l'utente."""

    def success(self, message: str) -> None:
        ...

    def error(self, message: str) -> None:
        ...


class LoggingNotifier:
    """Notifier di default: scrive sul logger e conserva i messaggi emessi."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def success(self, message: str) -> None:
        logger.info(message)
        self.messages.append(("success", message))

    def error(self, message: str) -> None:
        logger.warning(message)
        self.messages.append(("error", message))

    @property
    def last_message(self) -> Optional[str]:
        return self.messages[-1][1] if self.messages else None


# ------------------------------------------------------------
# Pipeline
# ------------------------------------------------------------

class PipelineBoard:
    """
    Stato della pipeline per una sessione.

    Unico proprietario della collezione di proposte e delle colonne.
    Le colonne si modificano solo tramite `refetch()` (sostituzione
    completa) o tramite lo spostamento ottimistico di `move_proposal()`.

    Gli spostamenti sono serializzati da un lock; ogni refetch riceve un
    numero di sequenza e un risultato superato da uno più recente viene
    scartato.
    """

    def __init__(
        self,
        repository: ProposalRepository,
        notifier: Optional[Notifier] = None,
        filters: Optional[BoardFilters] = None,
    ) -> None:
        self._repository = repository
        self._notifier = notifier or LoggingNotifier()
        self._filters = filters or BoardFilters()
        self._proposals: list[ProposalRead] = []
        self._buckets = empty_buckets()
        self._lock = asyncio.Lock()
        self._fetch_sequence = 0

    @property
    def proposals(self) -> list[ProposalRead]:
        return list(self._proposals)

    @property
    def buckets(self) -> dict[ProposalStatus, list[ProposalRead]]:
        return {status: list(items) for status, items in self._buckets.items()}

    @property
    def filters(self) -> BoardFilters:
        return self._filters

    def set_filters(self, filters: BoardFilters) -> None:
        """Cambia filtri e ordinamento e ricalcola le colonne."""
        self._filters = filters
        self._regroup()

    def status_of(self, proposal_id: uuid.UUID) -> Optional[ProposalStatus]:
        """Colonna in cui la proposta è attualmente visibile."""
        for status, items in self._buckets.items():
            if any(p.id == proposal_id for p in items):
                return status
        return None

    def to_schema(self) -> PipelineBoardRead:
        return board_to_schema(self._buckets)

    def _regroup(self) -> None:
        self._buckets = build_board(self._proposals, self._filters)

    async def refetch(self) -> bool:
        """
        Ricarica tutte le proposte dalla fonte dati e ricalcola le colonne.

        Returns:
            True se i dati sono stati sostituiti
        """
        self._fetch_sequence += 1
        sequence = self._fetch_sequence

        result = await self._repository.list_proposals()

        if sequence != self._fetch_sequence:
            logger.debug("Refetch %s superato da uno più recente, risultato scartato", sequence)
            return False

        if not result.ok:
            logger.warning("Caricamento proposte fallito: %s", result.error)
            self._notifier.error("Erro ao carregar propostas.")
            return False

        self._proposals = list(result.data or [])
        self._regroup()
        logger.debug("Pipeline ricaricata: %s proposte", len(self._proposals))
        return True

    async def move_proposal(self, proposal_id: uuid.UUID, new_status: ProposalStatus) -> bool:
        """
        Sposta una proposta in un'altra colonna.

        Proposta sconosciuta o stato invariato: nessuna operazione.
        Altrimenti la proposta viene spostata subito, lo stato viene
        salvato e la pipeline viene sempre ricaricata dalla fonte dati.

        Returns:
            True se il salvataggio è andato a buon fine
        """
        new_status = ProposalStatus(new_status)

        async with self._lock:
            proposal = next((p for p in self._proposals if p.id == proposal_id), None)
            if proposal is None or proposal.status == new_status.value:
                return False

            moved = proposal.model_copy(update={"status": new_status.value})
            for status in self._buckets:
                self._buckets[status] = [p for p in self._buckets[status] if p.id != proposal_id]
            self._buckets[new_status].append(moved)

            result = await self._repository.update_status(proposal_id, new_status)

            if result.ok:
                self._notifier.success(f'Proposta "{proposal.title}" movida para "{new_status.value}"')
            else:
                logger.warning(
                    "Cambio stato proposta %s -> %s fallito: %s",
                    proposal_id, new_status.value, result.error,
                )
                self._notifier.error("Erro ao atualizar status da proposta.")

            await self.refetch()
            return result.ok


# ------------------------------------------------------------
# Repository SQL
# ------------------------------------------------------------

class SqlProposalRepository:
    """
    Adatta ProposalService al protocollo ProposalRepository.

    Ogni chiamata apre una sessione dalla factory; le eccezioni diventano
    OperationResult con errore.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession], service=None) -> None:
        # Import locale: proposal_service importa da questo modulo
        from crm.services.proposal_service import ProposalService

        self._session_factory = session_factory
        self._service = service or ProposalService()

    async def list_proposals(self) -> OperationResult[list[ProposalRead]]:
        try:
            async with self._session_factory() as db:
                proposals, _ = await self._service.get_all(db, per_page=None)
                return OperationResult(data=[ProposalRead.model_validate(p) for p in proposals])
        except AppException as e:
            return OperationResult(error=e.detail)
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy caricamento proposte: %s - %s", e.__class__.__name__, e)
            return OperationResult(error="Errore del database durante il caricamento delle proposte")

    async def update_status(self, proposal_id: uuid.UUID, status: ProposalStatus) -> OperationResult[ProposalRead]:
        try:
            async with self._session_factory() as db:
                proposal = await self._service.change_status(db, proposal_id, status)
                await db.commit()
                return OperationResult(data=ProposalRead.model_validate(proposal))
        except AppException as e:
            return OperationResult(error=e.detail)
        except SQLAlchemyError as e:
            logger.error("Errore SQLAlchemy cambio stato proposta: %s - %s", e.__class__.__name__, e)
            return OperationResult(error="Errore del database durante l'aggiornamento dello stato")

