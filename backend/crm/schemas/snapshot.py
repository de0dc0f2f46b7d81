"""
Schemas Pydantic per lo snapshot della proposta e la vista pubblica
Progetto: ConexHub CRM (Gestionale Proposte)
"""

import datetime
import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from crm.schemas.proposal import ProposalServiceSnapshot
from crm.schemas.quote import SelectedPayment


class ProposalFigures(BaseModel):
    """Campi numerici della proposta con i valori nulli portati a zero."""

    model_config = ConfigDict(frozen=True)

    amount: Decimal
    cash_discount_percentage: Decimal
    installment_number: int
    installment_value: Decimal
    manual_installment_total: Decimal


class SnapshotClient(BaseModel):
    id: Optional[uuid.UUID] = None
    name: str
    email: str
    company: str
    phone: str


class SnapshotPayment(BaseModel):
    type: str
    cash_discount_percentage: Decimal
    installment_number: int
    installment_value: Decimal
    manual_installment_total: Decimal


class SnapshotValidity(BaseModel):
    enabled: bool
    days: int


class SnapshotTheme(BaseModel):
    logo_url: str
    resolved_logo_url: str
    gradient_theme: str


class SnapshotTotals(BaseModel):
    one_time_total: Decimal
    monthly_total: Decimal
    subtotal: Decimal
    total_cash: Decimal
    total_installment: Decimal


class ProposalSnapshot(BaseModel):
    """
    Fotografia completa di una proposta registrata, unica fonte dati
    per anteprima e stampa.
    """

    id: uuid.UUID
    title: str
    amount: Decimal
    status: str
    created_at: datetime.datetime
    updated_at: datetime.datetime
    notes: Optional[str] = None
    client: SnapshotClient
    services: list[ProposalServiceSnapshot]
    payment: SnapshotPayment
    validity: SnapshotValidity
    theme: SnapshotTheme
    totals: SnapshotTotals


class PublicProposalView(BaseModel):
    """
    Vista in sola lettura servita tramite share_token.

    Nessuno sconto per contanti e nessuna validità: l'importo registrato
    è sia il totale finale sia il totale rateizzato.
    """

    title: str
    notes: str
    client: SnapshotClient
    services: list[ProposalServiceSnapshot]
    subtotal: Decimal
    total: Decimal
    one_time_total: Decimal
    monthly_total: Decimal
    cash_discount: Decimal
    final_total: Decimal
    installment_total: Decimal
    selected_payment: SelectedPayment
    is_validity_enabled: bool
    validity_days: int
    proposal_logo_url: str
    proposal_gradient_theme: str
