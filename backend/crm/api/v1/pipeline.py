"""
Router FastAPI per la pipeline delle proposte
Progetto: ConexHub CRM (Gestionale Proposte)

Colonne per stato nell'ordine di visualizzazione e spostamento
di una proposta tra le colonne.
"""

import logging

from fastapi import APIRouter, Depends

from crm.api.v1.proposals import get_proposal_filters
from crm.core.database import AsyncSessionLocal
from crm.core.deps import CurrentUser
from crm.schemas.pipeline import PipelineBoardRead, PipelineMoveRequest, PipelineMoveResult
from crm.schemas.proposal import ProposalFilters
from crm.services.pipeline import LoggingNotifier, PipelineBoard, ProposalRepository, SqlProposalRepository

# Logger per questo modulo
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/pipeline",
    tags=["Pipeline"],
)


def get_pipeline_repository() -> ProposalRepository:
    """Dependency per la fonte dati della pipeline."""
    return SqlProposalRepository(AsyncSessionLocal)


@router.get(
    "/board",
    name="pipeline_colonne",
    summary="Pipeline delle proposte",
    description="Colonne per stato con conteggi di proposte attive e chiuse.",
    response_model=PipelineBoardRead,
)
async def get_board(
    current_user: CurrentUser,
    filters: ProposalFilters = Depends(get_proposal_filters),
    repository: ProposalRepository = Depends(get_pipeline_repository),
) -> PipelineBoardRead:
    board = PipelineBoard(repository, filters=filters)
    await board.refetch()
    return board.to_schema()


@router.post(
    "/moves",
    name="pipeline_sposta",
    summary="Sposta una proposta",
    description="Cambia lo stato della proposta e restituisce la pipeline ricaricata.",
    response_model=PipelineMoveResult,
)
async def move_proposal(
    move: PipelineMoveRequest,
    current_user: CurrentUser,
    filters: ProposalFilters = Depends(get_proposal_filters),
    repository: ProposalRepository = Depends(get_pipeline_repository),
) -> PipelineMoveResult:
    notifier = LoggingNotifier()
    board = PipelineBoard(repository, notifier=notifier, filters=filters)
    await board.refetch()

    moved = await board.move_proposal(move.proposal_id, move.status)
    logger.debug("Spostamento proposta %s richiesto da %s: %s", move.proposal_id, current_user.email, moved)

    return PipelineMoveResult(
        moved=moved,
        message=notifier.last_message,
        board=board.to_schema(),
    )
