"""
Router FastAPI per la vista pubblica delle proposte
Progetto: ConexHub CRM (Gestionale Proposte)

Accesso in sola lettura tramite share_token, senza autenticazione.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crm.api.v1.proposals import get_proposal_service
from crm.core.database import get_db
from crm.schemas.snapshot import PublicProposalView
from crm.services.proposal_service import ProposalService
from crm.services.snapshot_service import build_public_view

router = APIRouter(
    prefix="/public",
    tags=["Pubblico"],
)


@router.get(
    "/proposals/{share_token}",
    name="proposta_pubblica",
    summary="Proposta condivisa",
    description="Vista pubblica di una proposta tramite il token del link di condivisione.",
    response_model=PublicProposalView,
)
async def get_public_proposal(
    share_token: str,
    db: AsyncSession = Depends(get_db),
    service: ProposalService = Depends(get_proposal_service),
) -> PublicProposalView:
    proposal = await service.get_by_share_token(db, share_token)
    return build_public_view(proposal)
