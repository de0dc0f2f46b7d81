"""
Router FastAPI per l'entità Proposal
Progetto: ConexHub CRM (Gestionale Proposte)

Definisce gli endpoint API per la gestione delle proposte:
lista filtrata, indicatori, dettaglio, modifica, cambio di stato,
duplicazione, eliminazione e snapshot.
"""

import logging
import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.database import get_db
from crm.core.deps import CurrentUser
from crm.schemas.proposal import (
    ProposalCreate,
    ProposalDuplicate,
    ProposalFilters,
    ProposalList,
    ProposalMetrics,
    ProposalPeriod,
    ProposalRead,
    ProposalSortField,
    ProposalStatus,
    ProposalStatusUpdate,
    ProposalUpdate,
    SortOrder,
)
from crm.schemas.snapshot import ProposalSnapshot
from crm.services.proposal_service import UNSET, ProposalService
from crm.services.snapshot_service import build_snapshot

# Logger per questo modulo
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/proposals",
    tags=["Proposte"],
)


# -------------------------------------------------------------------
# Dependency Injection
# -------------------------------------------------------------------

def get_proposal_service() -> ProposalService:
    """Dependency per ottenere un'istanza del ProposalService."""
    return ProposalService()


def get_proposal_filters(
    search: Optional[str] = Query(None, description="Ricerca su titolo, cliente e proprietario"),
    owner_id: Optional[uuid.UUID] = Query(None, description="Filtra per proprietario"),
    client_id: Optional[uuid.UUID] = Query(None, description="Filtra per cliente"),
    status_filter: Optional[ProposalStatus] = Query(None, alias="status", description="Filtra per stato"),
    period: ProposalPeriod = Query(ProposalPeriod.ALL, description="Finestra sulla data di creazione"),
    sort_by: ProposalSortField = Query(ProposalSortField.UPDATED_AT, description="Campo di ordinamento"),
    sort_order: SortOrder = Query(SortOrder.DESC, description="Direzione di ordinamento"),
) -> ProposalFilters:
    """Filtri della lista proposte e della pipeline letti dalla query string."""
    return ProposalFilters(
        search=search,
        owner_id=owner_id,
        client_id=client_id,
        status=status_filter,
        period=period,
        sort_by=sort_by,
        sort_order=sort_order,
    )


# -------------------------------------------------------------------
# Endpoints
# -------------------------------------------------------------------

@router.get(
    "/",
    name="proposte_lista",
    summary="Lista proposte",
    description="Lista paginata delle proposte con filtri e ordinamento.",
    response_model=ProposalList,
)
async def get_proposals(
    current_user: CurrentUser,
    filters: ProposalFilters = Depends(get_proposal_filters),
    page: int = Query(1, ge=1, description="Numero pagina"),
    per_page: int = Query(20, ge=1, le=100, description="Elementi per pagina"),
    db: AsyncSession = Depends(get_db),
    service: ProposalService = Depends(get_proposal_service),
) -> ProposalList:
    proposals, total = await service.get_all(db, filters=filters, page=page, per_page=per_page)

    return ProposalList(
        items=[ProposalRead.model_validate(p) for p in proposals],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get(
    "/metrics",
    name="proposte_indicatori",
    summary="Indicatori delle proposte",
    description="Numero di proposte, valore totale, valore approvato nel mese e tasso di conversione.",
    response_model=ProposalMetrics,
)
async def get_metrics(
    current_user: CurrentUser,
    owner_id: Optional[uuid.UUID] = Query(None, description="Limita agli indicatori di un proprietario"),
    db: AsyncSession = Depends(get_db),
    service: ProposalService = Depends(get_proposal_service),
) -> ProposalMetrics:
    return await service.get_metrics(db, owner_id=owner_id)


@router.post(
    "/",
    name="proposta_crea",
    summary="Crea proposta",
    description="Registra una proposta con le sue righe. Il proprietario di default è l'utente corrente.",
    response_model=ProposalRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_proposal(
    data: ProposalCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: ProposalService = Depends(get_proposal_service),
) -> ProposalRead:
    proposal = await service.create(db, data, owner_id=current_user.id)
    await db.commit()
    return ProposalRead.model_validate(proposal)


@router.get(
    "/{proposal_id}",
    name="proposta_dettaglio",
    summary="Dettaglio proposta",
    response_model=ProposalRead,
)
async def get_proposal(
    proposal_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: ProposalService = Depends(get_proposal_service),
) -> ProposalRead:
    proposal = await service.get_by_id(db, proposal_id)
    return ProposalRead.model_validate(proposal)


@router.put(
    "/{proposal_id}",
    name="proposta_aggiorna",
    summary="Aggiorna proposta",
    description="Aggiorna i campi inviati; se `services` è presente le righe vengono sostituite.",
    response_model=ProposalRead,
)
async def update_proposal(
    proposal_id: uuid.UUID,
    data: ProposalUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: ProposalService = Depends(get_proposal_service),
) -> ProposalRead:
    proposal = await service.update(db, proposal_id, data)
    await db.commit()
    return ProposalRead.model_validate(proposal)


@router.patch(
    "/{proposal_id}/status",
    name="proposta_cambia_stato",
    summary="Cambia stato",
    description="Qualsiasi stato è raggiungibile da qualsiasi altro.",
    response_model=ProposalRead,
)
async def change_status(
    proposal_id: uuid.UUID,
    data: ProposalStatusUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: ProposalService = Depends(get_proposal_service),
) -> ProposalRead:
    proposal = await service.change_status(db, proposal_id, data.status)
    await db.commit()
    return ProposalRead.model_validate(proposal)


@router.post(
    "/{proposal_id}/duplicate",
    name="proposta_duplica",
    summary="Duplica proposta",
    description="Crea una copia in stato Rascunho intestata all'utente corrente.",
    response_model=ProposalRead,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_proposal(
    proposal_id: uuid.UUID,
    current_user: CurrentUser,
    data: Optional[ProposalDuplicate] = Body(None),
    db: AsyncSession = Depends(get_db),
    service: ProposalService = Depends(get_proposal_service),
) -> ProposalRead:
    """
    Duplica una proposta.

    Se il corpo non contiene `new_client_id` la copia mantiene il cliente
    originale; un valore null la lascia senza cliente.
    """
    data = data or ProposalDuplicate()
    new_client_id = data.new_client_id if "new_client_id" in data.model_fields_set else UNSET

    proposal = await service.duplicate(
        db,
        proposal_id,
        owner_id=current_user.id,
        new_client_id=new_client_id,
        new_title=data.new_title,
    )
    await db.commit()
    return ProposalRead.model_validate(proposal)


@router.delete(
    "/{proposal_id}",
    name="proposta_elimina",
    summary="Elimina proposta",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_proposal(
    proposal_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: ProposalService = Depends(get_proposal_service),
) -> None:
    await service.delete(db, proposal_id)
    await db.commit()


@router.get(
    "/{proposal_id}/snapshot",
    name="proposta_snapshot",
    summary="Snapshot della proposta",
    description="Dati completi per anteprima e stampa, ricostruiti dalle righe registrate.",
    response_model=ProposalSnapshot,
)
async def get_snapshot(
    proposal_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: ProposalService = Depends(get_proposal_service),
) -> ProposalSnapshot:
    proposal = await service.get_by_id(db, proposal_id)
    return build_snapshot(proposal)
