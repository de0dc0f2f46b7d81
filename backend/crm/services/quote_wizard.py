"""
Wizard di creazione del preventivo e registrazione della proposta
Progetto: ConexHub CRM (Gestionale Proposte)

Il wizard attraversa quattro passi (servizi, impostazioni, cliente,
revisione). Ogni passo viene validato prima di procedere; la revisione
ricontrolla tutti i passi obbligatori.

La registrazione congela le righe del carrello nella proposta:
- register_proposal: proposta inviata (stato Enviada)
- generate_share_link: bozza (stato Rascunho) con link pubblico
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.config import settings
from crm.core.exceptions import BusinessValidationError
from crm.models import Proposal
from crm.schemas.client import ClientCreate
from crm.schemas.proposal import ProposalCreate, ProposalServiceSnapshot, ProposalStatus
from crm.schemas.quote import (
    DiscountType,
    PaymentType,
    QuoteDraft,
    SelectedService,
    ShareLink,
    StepValidationResult,
    WizardStep,
)
from crm.services.client_service import ClientService
from crm.services.proposal_service import ProposalService
from crm.services.quote_engine import QuoteCart, calculate_quote

__all__ = [
    "QuoteDraft",
    "QuoteWizard",
    "STEPS",
    "build_proposal_data",
    "generate_share_link",
    "get_or_create_client_id",
    "register_proposal",
    "snapshot_line",
    "validate_step",
]

# Logger per questo modulo
logger = logging.getLogger(__name__)

STEPS: tuple[WizardStep, ...] = tuple(WizardStep)

MSG_NO_SERVICES = "Selecione pelo menos um serviço para continuar."
MSG_NO_TITLE = "O título da proposta é obrigatório."
MSG_INSTALLMENT = "Para pagamento parcelado, preencha o valor da parcela ou o total parcelado manual."
MSG_CLIENT = "Nome e e-mail do cliente são obrigatórios."
MSG_REVIEW = "Por favor, complete todos os passos obrigatórios antes de revisar."
MSG_NO_CLIENT = "Selecione um cliente existente ou cadastre um novo cliente."
MSG_INVALID_CLIENT = "Dados do cliente inválidos."


# ------------------------------------------------------------
# Validazione dei passi
# ------------------------------------------------------------

def _validate_services(draft: QuoteDraft) -> None:
    if not draft.services:
        raise BusinessValidationError(MSG_NO_SERVICES)


def _validate_settings(draft: QuoteDraft) -> None:
    if not draft.title.strip():
        raise BusinessValidationError(MSG_NO_TITLE)

    payment = draft.payment
    if payment.payment_type == PaymentType.INSTALLMENT:
        manual = payment.manual_installment_total
        if payment.installment_value == 0 and (manual is None or manual == 0):
            raise BusinessValidationError(MSG_INSTALLMENT)


def _validate_client(draft: QuoteDraft) -> None:
    info = draft.client_info
    if not info.name.strip() or not info.email.strip():
        raise BusinessValidationError(MSG_CLIENT)


_VALIDATORS = {
    WizardStep.SERVICES: _validate_services,
    WizardStep.SETTINGS: _validate_settings,
    WizardStep.CLIENT: _validate_client,
}


def validate_step(step: WizardStep, draft: QuoteDraft) -> StepValidationResult:
    """
    Valida un passo del wizard.

    Args:
        step: Passo da validare
        draft: Stato corrente del wizard

    Returns:
        StepValidationResult con valid=True

    Raises:
        BusinessValidationError: Con il messaggio del primo controllo fallito;
            per la revisione il passo mancante è indicato in extra["step"]
    """
    step = WizardStep(step)

    if step == WizardStep.REVIEW:
        for required_step, validator in _VALIDATORS.items():
            try:
                validator(draft)
            except BusinessValidationError as e:
                logger.debug("Revisione bloccata al passo %s: %s", required_step.value, e.detail)
                raise BusinessValidationError(
                    MSG_REVIEW,
                    extra={"step": required_step.value, "reason": e.detail},
                ) from e
        return StepValidationResult(step=step)

    _VALIDATORS[step](draft)
    return StepValidationResult(step=step)


# ------------------------------------------------------------
# Sessione del wizard
# ------------------------------------------------------------

class QuoteWizard:
    """
    Sessione del wizard di preventivo.

    Il carrello è iniettato e resta l'unico proprietario delle righe:
    la bozza restituita da `current_draft` ne contiene sempre una copia
    aggiornata.
    """

    def __init__(self, cart: Optional[QuoteCart] = None, draft: Optional[QuoteDraft] = None) -> None:
        self.cart = cart if cart is not None else QuoteCart()
        self._draft = draft.model_copy(deep=True) if draft is not None else QuoteDraft()
        self._index = 0

    @property
    def current_step(self) -> WizardStep:
        return STEPS[self._index]

    @property
    def step_index(self) -> int:
        return self._index

    def current_draft(self) -> QuoteDraft:
        """Bozza con le righe correnti del carrello."""
        return self._draft.model_copy(update={"services": self.cart.services})

    def update_draft(self, **changes) -> QuoteDraft:
        """Aggiorna i campi della bozza (titolo, cliente, pagamento, tema...)."""
        changes.pop("services", None)
        self._draft = self._draft.model_copy(update=changes)
        return self.current_draft()

    def go_to_next_step(self) -> WizardStep:
        """
        Avanza al passo successivo dopo aver validato quello corrente.

        Raises:
            BusinessValidationError: Se il passo corrente non è valido
        """
        validate_step(self.current_step, self.current_draft())
        self._index = min(self._index + 1, len(STEPS) - 1)
        return self.current_step

    def go_to_previous_step(self) -> WizardStep:
        self._index = max(self._index - 1, 0)
        return self.current_step

    def set_step(self, index: int) -> WizardStep:
        """
        Salta a un passo.

        Tornare indietro è sempre consentito; per andare avanti vengono
        validati tutti i passi intermedi. L'indice è limitato all'intervallo
        dei passi disponibili.
        """
        index = max(0, min(index, len(STEPS) - 1))
        if index > self._index:
            draft = self.current_draft()
            for step in STEPS[self._index:index]:
                validate_step(step, draft)
        self._index = index
        return self.current_step

    def reset(self) -> None:
        """Svuota carrello e bozza dopo la registrazione."""
        self.cart.clear()
        self._draft = QuoteDraft()
        self._index = 0


# ------------------------------------------------------------
# Registrazione
# ------------------------------------------------------------

def snapshot_line(line: SelectedService) -> ProposalServiceSnapshot:
    """Congela una riga del carrello."""
    return ProposalServiceSnapshot(
        service_id=line.id,
        name=line.name,
        description=line.description,
        base_price=line.base_price,
        quantity=line.quantity,
        custom_price=line.custom_price,
        discount=line.discount or Decimal("0"),
        discount_percentage=line.discount_percentage or Decimal("0"),
        discount_type=line.discount_type or DiscountType.PERCENTAGE,
        features=tuple(line.features if line.custom_features is None else line.custom_features),
        category=line.category,
        icon=line.icon,
        is_custom=line.is_custom,
        billing_type=line.billing_type,
    )


async def get_or_create_client_id(
    db: AsyncSession,
    draft: QuoteDraft,
    owner_id: uuid.UUID,
    client_service: Optional[ClientService] = None,
) -> Optional[uuid.UUID]:
    """
    Risolve il cliente della proposta.

    - cliente esistente selezionato: il suo ID
    - nuovo cliente: viene creato dai dati del wizard
    - altrimenti None

    Raises:
        BusinessValidationError: Se i dati del nuovo cliente non sono validi
    """
    if not draft.is_new_client:
        return draft.selected_client_id

    info = draft.client_info
    try:
        client_data = ClientCreate(
            name=info.name,
            email=info.email,
            company=info.company,
            phone=info.phone,
        )
    except PydanticValidationError as e:
        logger.warning("Dati cliente non validi nel wizard: %s", e.errors())
        raise BusinessValidationError(MSG_INVALID_CLIENT) from e

    client_service = client_service or ClientService()
    client = await client_service.create(db, client_data, created_by=owner_id)
    return client.id


async def build_proposal_data(
    db: AsyncSession,
    draft: QuoteDraft,
    owner_id: uuid.UUID,
    status: ProposalStatus = ProposalStatus.ENVIADA,
    client_service: Optional[ClientService] = None,
) -> Optional[ProposalCreate]:
    """
    Costruisce i dati della proposta a partire dalla bozza.

    Returns:
        ProposalCreate con righe congelate e amount = totale finale,
        oppure None se non è possibile determinare un cliente
    """
    client_id = await get_or_create_client_id(db, draft, owner_id, client_service)
    if client_id is None:
        logger.warning("Registrazione proposta interrotta: nessun cliente per '%s'", draft.title)
        return None

    payment = draft.payment
    totals = calculate_quote(draft.services, payment)

    return ProposalCreate(
        title=draft.title,
        amount=totals.final_total,
        client_id=client_id,
        owner_id=owner_id,
        status=status,
        notes=draft.notes or None,
        payment_type=payment.payment_type,
        cash_discount_percentage=payment.cash_discount_percentage,
        installment_number=payment.installment_number,
        installment_value=payment.installment_value,
        manual_installment_total=payment.manual_installment_total,
        is_validity_enabled=draft.is_validity_enabled,
        validity_days=draft.validity_days,
        proposal_logo_url=draft.proposal_logo_url,
        proposal_gradient_theme=draft.proposal_gradient_theme,
        services=[snapshot_line(line) for line in draft.services],
    )


async def register_proposal(
    db: AsyncSession,
    draft: QuoteDraft,
    owner_id: uuid.UUID,
    proposal_service: Optional[ProposalService] = None,
    client_service: Optional[ClientService] = None,
) -> Proposal:
    """
    Registra la proposta (stato Enviada).

    Il chiamante svuota il carrello dopo la registrazione.

    Raises:
        BusinessValidationError: Se un passo obbligatorio non è valido
            o il cliente non è determinabile
    """
    validate_step(WizardStep.REVIEW, draft)

    data = await build_proposal_data(db, draft, owner_id, ProposalStatus.ENVIADA, client_service)
    if data is None:
        raise BusinessValidationError(MSG_NO_CLIENT)

    proposal_service = proposal_service or ProposalService()
    proposal = await proposal_service.create(db, data)

    logger.info("Proposta registrata dal wizard: %s (importo %s)", proposal.id, proposal.amount)
    return proposal


async def generate_share_link(
    db: AsyncSession,
    draft: QuoteDraft,
    owner_id: uuid.UUID,
    proposal_service: Optional[ProposalService] = None,
    client_service: Optional[ClientService] = None,
) -> ShareLink:
    """
    Salva la bozza (stato Rascunho) e restituisce il link pubblico.

    Raises:
        BusinessValidationError: Se un passo obbligatorio non è valido
            o il cliente non è determinabile
    """
    validate_step(WizardStep.REVIEW, draft)

    data = await build_proposal_data(db, draft, owner_id, ProposalStatus.RASCUNHO, client_service)
    if data is None:
        raise BusinessValidationError(MSG_NO_CLIENT)

    proposal_service = proposal_service or ProposalService()
    proposal = await proposal_service.create_draft(db, data)

    url = f"{settings.public_base_url}/p/{proposal.share_token}"
    logger.info("Link pubblico generato per la bozza %s", proposal.id)
    return ShareLink(url=url, share_token=proposal.share_token, proposal_id=proposal.id)
