"""
Snapshot della proposta e vista pubblica
Progetto: ConexHub CRM (Gestionale Proposte)

Ricostruisce i dati di una proposta registrata a partire dalle righe
congelate, applicando valori di default sicuri ai campi mancanti.
"""

import logging
from decimal import Decimal
from typing import Iterable, Optional

from crm.core.config import settings
from crm.schemas.catalog import BillingType
from crm.schemas.proposal import ProposalServiceSnapshot
from crm.schemas.quote import DiscountType, PaymentType, SelectedPayment
from crm.schemas.snapshot import (
    ProposalFigures,
    ProposalSnapshot,
    PublicProposalView,
    SnapshotClient,
    SnapshotPayment,
    SnapshotTheme,
    SnapshotTotals,
    SnapshotValidity,
)
from crm.services.quote_engine import line_total, round2

# Logger per questo modulo
logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Valori mostrati quando la proposta non ha un cliente associato
DEFAULT_CLIENT_NAME = "Cliente"
DEFAULT_CLIENT_EMAIL = "contato@conexhub.com.br"
DEFAULT_CLIENT_COMPANY = "Empresa"
DEFAULT_CLIENT_PHONE = "(XX) X XXXX-XXXX"


def safe_decimal(value) -> Decimal:
    """Converte in Decimal; None, stringa vuota e valori non numerici diventano 0."""
    if value is None or value == "":
        return ZERO
    try:
        result = Decimal(str(value))
    except ArithmeticError:
        return ZERO
    return result if result.is_finite() else ZERO


def normalize_proposal(proposal) -> ProposalFigures:
    """Porta a zero i campi numerici nulli della proposta."""
    return ProposalFigures(
        amount=safe_decimal(proposal.amount),
        cash_discount_percentage=safe_decimal(proposal.cash_discount_percentage),
        installment_number=int(safe_decimal(proposal.installment_number)),
        installment_value=safe_decimal(proposal.installment_value),
        manual_installment_total=safe_decimal(proposal.manual_installment_total),
    )


def compute_totals(figures: ProposalFigures) -> tuple[Decimal, Decimal]:
    """
    Calcola totale in contanti e totale rateizzato di una proposta.

    - total_cash = amount × (1 − sconto% / 100)
    - total_installment = totale manuale se > 0, altrimenti rata × numero
      rate se entrambi > 0, altrimenti amount

    Returns:
        Tuple (total_cash, total_installment), arrotondati a due decimali
    """
    base = figures.amount
    total_cash = round2(base * (1 - figures.cash_discount_percentage / Decimal("100")))

    if figures.manual_installment_total > ZERO:
        total_installment = figures.manual_installment_total
    elif figures.installment_value > ZERO and figures.installment_number > 0:
        total_installment = figures.installment_value * figures.installment_number
    else:
        total_installment = base

    return total_cash, round2(total_installment)


def reconstruct_service(item) -> ProposalServiceSnapshot:
    """
    Ricostruisce una riga congelata con valori di default sicuri.

    Il prezzo personalizzato è mantenuto solo se maggiore di zero e la
    quantità è almeno 1.
    """
    custom_price = safe_decimal(item.custom_price)
    quantity = int(safe_decimal(item.quantity))
    features = item.features if isinstance(item.features, (list, tuple)) else []

    discount_type = item.discount_type
    if discount_type not in (DiscountType.PERCENTAGE.value, DiscountType.VALUE.value):
        discount_type = DiscountType.PERCENTAGE.value

    billing_type = item.billing_type
    if billing_type not in (BillingType.ONE_TIME.value, BillingType.MONTHLY.value):
        billing_type = BillingType.ONE_TIME.value

    return ProposalServiceSnapshot(
        service_id=str(item.service_id or ""),
        name=item.name or "Serviço",
        description=item.description or "",
        base_price=safe_decimal(item.base_price),
        quantity=quantity if quantity >= 1 else 1,
        custom_price=custom_price if custom_price > ZERO else None,
        discount=safe_decimal(item.discount),
        discount_percentage=safe_decimal(item.discount_percentage),
        discount_type=discount_type,
        features=tuple(features),
        category=item.category or "Geral",
        icon=item.icon or "✨",
        is_custom=bool(item.is_custom),
        billing_type=billing_type,
    )


def calculate_service_total(service: ProposalServiceSnapshot) -> Decimal:
    """Totale di riga non negativo."""
    return max(ZERO, line_total(service))


def calculate_service_totals(services: Iterable[ProposalServiceSnapshot]) -> tuple[Decimal, Decimal]:
    """
    Totali per tipo di fatturazione delle righe ricostruite.

    Returns:
        Tuple (one_time_total, monthly_total)
    """
    one_time = ZERO
    monthly = ZERO
    for service in services:
        if service.billing_type == BillingType.ONE_TIME:
            one_time += calculate_service_total(service)
        elif service.billing_type == BillingType.MONTHLY:
            monthly += calculate_service_total(service)
    return one_time, monthly


def resolve_logo_url(logo_url: Optional[str]) -> str:
    """Restituisce il logo da usare: gli URL assoluti restano invariati."""
    if not logo_url:
        return settings.default_logo_url
    return logo_url


def _snapshot_client(proposal) -> SnapshotClient:
    client = getattr(proposal, "client", None)
    if client is None:
        return SnapshotClient(
            name=DEFAULT_CLIENT_NAME,
            email=DEFAULT_CLIENT_EMAIL,
            company=DEFAULT_CLIENT_COMPANY,
            phone=DEFAULT_CLIENT_PHONE,
        )
    return SnapshotClient(
        id=client.id,
        name=client.name or DEFAULT_CLIENT_NAME,
        email=client.email or DEFAULT_CLIENT_EMAIL,
        company=client.company or DEFAULT_CLIENT_COMPANY,
        phone=client.phone or DEFAULT_CLIENT_PHONE,
    )


def build_snapshot(proposal) -> ProposalSnapshot:
    """
    Costruisce lo snapshot completo di una proposta registrata.

    Args:
        proposal: Proposta con cliente e righe caricati

    Returns:
        ProposalSnapshot con cliente, righe, pagamento, validità, tema e totali
    """
    figures = normalize_proposal(proposal)
    total_cash, total_installment = compute_totals(figures)

    services = [reconstruct_service(item) for item in proposal.services or []]
    one_time, monthly = calculate_service_totals(services)

    logo_url = proposal.proposal_logo_url or settings.default_logo_url

    logger.debug("Snapshot proposta %s: %s righe", proposal.id, len(services))

    return ProposalSnapshot(
        id=proposal.id,
        title=proposal.title,
        amount=figures.amount,
        status=proposal.status,
        created_at=proposal.created_at,
        updated_at=proposal.updated_at,
        notes=proposal.notes,
        client=_snapshot_client(proposal),
        services=services,
        payment=SnapshotPayment(
            type=proposal.payment_type or PaymentType.CASH.value,
            cash_discount_percentage=figures.cash_discount_percentage,
            installment_number=figures.installment_number,
            installment_value=figures.installment_value,
            manual_installment_total=figures.manual_installment_total,
        ),
        validity=SnapshotValidity(
            enabled=bool(proposal.is_validity_enabled),
            days=int(safe_decimal(proposal.validity_days)),
        ),
        theme=SnapshotTheme(
            logo_url=logo_url,
            resolved_logo_url=resolve_logo_url(logo_url),
            gradient_theme=proposal.proposal_gradient_theme or settings.default_gradient_theme,
        ),
        totals=SnapshotTotals(
            one_time_total=one_time,
            monthly_total=monthly,
            subtotal=one_time + monthly,
            total_cash=total_cash,
            total_installment=total_installment,
        ),
    )


def build_public_view(proposal) -> PublicProposalView:
    """
    Costruisce la vista pubblica di una proposta.

    I totali una tantum e mensili sono ricavati dalle righe registrate
    con la stessa regola di aggregazione del carrello; l'importo registrato
    è mostrato come totale finale e come totale rateizzato.
    """
    amount = safe_decimal(proposal.amount)
    services = [reconstruct_service(item) for item in proposal.services or []]

    one_time = sum(
        (line_total(s) for s in services if s.billing_type == BillingType.ONE_TIME),
        ZERO,
    )
    monthly = sum(
        (line_total(s) for s in services if s.billing_type == BillingType.MONTHLY),
        ZERO,
    )

    return PublicProposalView(
        title=proposal.title,
        notes=proposal.notes or "",
        client=_snapshot_client(proposal),
        services=services,
        subtotal=one_time + monthly,
        total=one_time + monthly,
        one_time_total=one_time,
        monthly_total=monthly,
        cash_discount=ZERO,
        final_total=amount,
        installment_total=amount,
        selected_payment=SelectedPayment(
            name="Valor Total",
            fee=ZERO,
            installments=1,
            type=PaymentType.CASH,
            installment_value=amount,
            total_installment_value=amount,
        ),
        is_validity_enabled=False,
        validity_days=0,
        proposal_logo_url=settings.default_logo_url,
        proposal_gradient_theme=settings.default_gradient_theme,
    )
