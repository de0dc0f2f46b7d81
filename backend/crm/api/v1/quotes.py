"""
Router FastAPI per il preventivo
Progetto: ConexHub CRM (Gestionale Proposte)

Calcolo dei totali, validazione dei passi del wizard e registrazione
della proposta (inviata o bozza con link pubblico).
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.database import get_db
from crm.core.deps import CurrentUser
from crm.schemas.proposal import ProposalRead
from crm.schemas.quote import (
    QuoteCalculateRequest,
    QuoteDraft,
    QuoteTotals,
    ShareLink,
    StepValidationResult,
    WizardStep,
)
from crm.services import quote_wizard
from crm.services.quote_engine import calculate_quote

# Logger per questo modulo
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/quotes",
    tags=["Preventivi"],
)


@router.post(
    "/calculate",
    name="preventivo_calcola",
    summary="Calcola i totali del preventivo",
    description="Subtotali, sconti di riga, ripartizione una tantum / mensile e dati del pagamento.",
    response_model=QuoteTotals,
)
async def calculate(request: QuoteCalculateRequest) -> QuoteTotals:
    return calculate_quote(request.services, request.payment)


@router.post(
    "/validate/{step}",
    name="preventivo_valida_passo",
    summary="Valida un passo del wizard",
    response_model=StepValidationResult,
)
async def validate(step: WizardStep, draft: QuoteDraft) -> StepValidationResult:
    """
    Valida il passo indicato.

    Raises:
        BusinessValidationError: 422 con il messaggio del controllo fallito
    """
    return quote_wizard.validate_step(step, draft)


@router.post(
    "/register",
    name="preventivo_registra",
    summary="Registra la proposta",
    description="Crea la proposta in stato Enviada con le righe del carrello congelate.",
    response_model=ProposalRead,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    draft: QuoteDraft,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> ProposalRead:
    proposal = await quote_wizard.register_proposal(db, draft, current_user.id)
    await db.commit()
    return ProposalRead.model_validate(proposal)


@router.post(
    "/share-link",
    name="preventivo_link_pubblico",
    summary="Genera il link pubblico",
    description="Salva la proposta come bozza (Rascunho) e restituisce l'URL di condivisione.",
    response_model=ShareLink,
    status_code=status.HTTP_201_CREATED,
)
async def share_link(
    draft: QuoteDraft,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> ShareLink:
    link = await quote_wizard.generate_share_link(db, draft, current_user.id)
    await db.commit()
    return link
