"""
Schemas Pydantic per il progetto ConexHub CRM

Questo modulo contiene tutti gli schemi Pydantic utilizzati per la validazione
e serializzazione delle richieste e delle risposte API.
"""

# es: from crm.schemas import ProposalRead, ClientRead, etc.

from crm.schemas.catalog import (
    BillingType,
    CustomServiceCreate,
    CustomServiceRead,
    CustomServiceUpdate,
    PaymentOptionRead,
    ServiceItem,
)
from crm.schemas.client import ClientCreate, ClientList, ClientRead, ClientUpdate
from crm.schemas.quote import (
    ClientInfo,
    DiscountType,
    PaymentConfig,
    PaymentType,
    QuoteCalculateRequest,
    QuoteDraft,
    QuoteTotals,
    SelectedPayment,
    SelectedService,
    ShareLink,
    StepValidationResult,
    WizardStep,
)
from crm.schemas.proposal import (
    ProposalCreate,
    ProposalDuplicate,
    ProposalFilters,
    ProposalList,
    ProposalMetrics,
    ProposalPeriod,
    ProposalRead,
    ProposalServiceSnapshot,
    ProposalSortField,
    ProposalStatus,
    ProposalStatusUpdate,
    ProposalUpdate,
    SortOrder,
)
from crm.schemas.pipeline import BoardColumn, PipelineBoardRead, PipelineMoveRequest, PipelineMoveResult
from crm.schemas.snapshot import ProposalSnapshot, PublicProposalView
from crm.schemas.token import TokenPayload

__all__ = [
    # Catalogo
    "BillingType",
    "CustomServiceCreate",
    "CustomServiceRead",
    "CustomServiceUpdate",
    "PaymentOptionRead",
    "ServiceItem",
    # Clienti
    "ClientCreate",
    "ClientList",
    "ClientRead",
    "ClientUpdate",
    # Preventivo
    "ClientInfo",
    "DiscountType",
    "PaymentConfig",
    "PaymentType",
    "QuoteCalculateRequest",
    "QuoteDraft",
    "QuoteTotals",
    "SelectedPayment",
    "SelectedService",
    "ShareLink",
    "StepValidationResult",
    "WizardStep",
    # Proposte
    "ProposalCreate",
    "ProposalDuplicate",
    "ProposalFilters",
    "ProposalList",
    "ProposalMetrics",
    "ProposalPeriod",
    "ProposalRead",
    "ProposalServiceSnapshot",
    "ProposalSortField",
    "ProposalStatus",
    "ProposalStatusUpdate",
    "ProposalUpdate",
    "SortOrder",
    # Pipeline
    "BoardColumn",
    "PipelineBoardRead",
    "PipelineMoveRequest",
    "PipelineMoveResult",
    # Snapshot
    "ProposalSnapshot",
    "PublicProposalView",
    # Auth
    "TokenPayload",
]
