"""
Schemas Pydantic per l'entità Proposal
Progetto: ConexHub CRM (Gestionale Proposte)

Definisce stati, righe congelate, filtri e schemi di lettura/scrittura
delle proposte.
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
)

from crm.schemas.catalog import BillingType
from crm.schemas.quote import DiscountType, PaymentType


# -------------------------------------------------------------------
# Enum per gli stati della proposta
# -------------------------------------------------------------------

class ProposalStatus(str, Enum):
    """Stati della proposta, nell'ordine di visualizzazione della pipeline."""
    RASCUNHO = "Rascunho"       # Bozza
    CRIADA = "Criada"           # Creata
    ENVIADA = "Enviada"         # Inviata
    NEGOCIANDO = "Negociando"   # In trattativa
    APROVADA = "Aprovada"       # Approvata (finale)
    REJEITADA = "Rejeitada"     # Rifiutata (finale)


class ProposalPeriod(str, Enum):
    """Finestra temporale sulla data di creazione."""
    ALL = "all"
    TODAY = "today"
    LAST_7_DAYS = "7days"
    LAST_30_DAYS = "30days"
    LAST_90_DAYS = "90days"


class ProposalSortField(str, Enum):
    """Campi di ordinamento disponibili."""
    AMOUNT = "amount"
    CREATED_AT = "created_at"
    UPDATED_AT = "updated_at"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


# -------------------------------------------------------------------
# Righe congelate
# -------------------------------------------------------------------
class ProposalServiceSnapshot(BaseModel):
    """
    Copia immutabile di una riga del carrello al momento della registrazione.

    Tipo distinto da SelectedService: una proposta registrata non viene
    ripreziata se il catalogo cambia.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True, use_enum_values=True, validate_default=True)

    service_id: str
    name: str
    description: Optional[str] = None
    base_price: Decimal = Decimal("0")
    quantity: int = Field(1, ge=1)
    custom_price: Optional[Decimal] = None
    discount: Decimal = Decimal("0")
    discount_percentage: Decimal = Decimal("0")
    discount_type: DiscountType = DiscountType.PERCENTAGE
    features: tuple[str, ...] = ()
    category: Optional[str] = None
    icon: Optional[str] = None
    is_custom: bool = False
    billing_type: BillingType = BillingType.ONE_TIME


# -------------------------------------------------------------------
# Filtri
# -------------------------------------------------------------------
class ProposalFilters(BaseModel):
    """
    Filtri e ordinamento della lista proposte e della pipeline.

    La ricerca confronta, senza distinzione di maiuscole, titolo,
    nome del cliente e nome del proprietario.
    """

    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    search: Optional[str] = None
    owner_id: Optional[uuid.UUID] = None
    client_id: Optional[uuid.UUID] = None
    status: Optional[ProposalStatus] = None
    period: ProposalPeriod = ProposalPeriod.ALL
    sort_by: ProposalSortField = ProposalSortField.UPDATED_AT
    sort_order: SortOrder = SortOrder.DESC


# -------------------------------------------------------------------
# Scrittura
# -------------------------------------------------------------------
class ProposalBase(BaseModel):
    """Campi di intestazione condivisi."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True, validate_default=True)

    title: str = Field(..., min_length=1, max_length=255, description="Titolo della proposta")
    amount: Decimal = Field(Decimal("0"), description="Totale finale al momento della registrazione")
    client_id: Optional[uuid.UUID] = None
    status: ProposalStatus = ProposalStatus.ENVIADA
    notes: Optional[str] = None
    expected_close_date: Optional[datetime.date] = None
    payment_type: PaymentType = PaymentType.CASH
    cash_discount_percentage: Decimal = Field(Decimal("0"), ge=0, le=100)
    installment_number: Optional[int] = Field(None, ge=0)
    installment_value: Optional[Decimal] = Field(None, ge=0)
    manual_installment_total: Optional[Decimal] = None
    is_validity_enabled: bool = True
    validity_days: int = Field(30, ge=0)
    proposal_logo_url: Optional[str] = Field(None, max_length=500)
    proposal_gradient_theme: Optional[str] = Field(None, max_length=20)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Il titolo della proposta è obbligatorio")
        return v


class ProposalCreate(ProposalBase):
    """Schema per la creazione di una proposta con le sue righe."""

    owner_id: Optional[uuid.UUID] = Field(None, description="Proprietario (default: utente corrente)")
    services: list[ProposalServiceSnapshot] = Field(default_factory=list)


class ProposalUpdate(BaseModel):
    """
    Aggiornamento parziale.

    Se `services` è presente le righe vengono sostituite integralmente.
    """

    model_config = ConfigDict(use_enum_values=True)

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    amount: Optional[Decimal] = None
    client_id: Optional[uuid.UUID] = None
    owner_id: Optional[uuid.UUID] = None
    status: Optional[ProposalStatus] = None
    notes: Optional[str] = None
    expected_close_date: Optional[datetime.date] = None
    payment_type: Optional[PaymentType] = None
    cash_discount_percentage: Optional[Decimal] = Field(None, ge=0, le=100)
    installment_number: Optional[int] = Field(None, ge=0)
    installment_value: Optional[Decimal] = Field(None, ge=0)
    manual_installment_total: Optional[Decimal] = None
    is_validity_enabled: Optional[bool] = None
    validity_days: Optional[int] = Field(None, ge=0)
    proposal_logo_url: Optional[str] = Field(None, max_length=500)
    proposal_gradient_theme: Optional[str] = Field(None, max_length=20)
    services: Optional[list[ProposalServiceSnapshot]] = None


class ProposalStatusUpdate(BaseModel):
    """Schema per il cambio di stato (drag-and-drop o menu)."""
    status: ProposalStatus = Field(..., description="Nuovo stato della proposta")


class ProposalDuplicate(BaseModel):
    """
    Parametri di duplicazione.

    new_client_id assente mantiene il cliente originale; null lo rimuove.
    """
    new_client_id: Optional[uuid.UUID] = None
    new_title: Optional[str] = Field(None, max_length=255)


# -------------------------------------------------------------------
# Lettura
# -------------------------------------------------------------------
class ProposalClientSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: Optional[str] = None
    company: Optional[str] = None
    phone: Optional[str] = None


class ProposalOwnerSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    name: str
    email: Optional[str] = None


class ProposalRead(BaseModel):
    """Proposta restituita dall'API, con righe, cliente e proprietario."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    amount: Decimal
    client_id: Optional[uuid.UUID] = None
    owner_id: uuid.UUID
    # Stato grezzo: valori sconosciuti vengono letti senza errore
    status: str
    notes: Optional[str] = None
    expected_close_date: Optional[datetime.date] = None
    payment_type: str
    cash_discount_percentage: Decimal
    installment_number: Optional[int] = None
    installment_value: Optional[Decimal] = None
    manual_installment_total: Optional[Decimal] = None
    is_validity_enabled: bool
    validity_days: int
    proposal_logo_url: Optional[str] = None
    proposal_gradient_theme: Optional[str] = None
    share_token: str
    created_at: datetime.datetime
    updated_at: datetime.datetime
    client: Optional[ProposalClientSummary] = None
    owner: Optional[ProposalOwnerSummary] = None
    services: list[ProposalServiceSnapshot] = Field(default_factory=list)


class ProposalList(BaseModel):
    """Lista paginata di proposte."""

    model_config = ConfigDict(from_attributes=True)

    items: list[ProposalRead] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1)

    @computed_field
    def total_pages(self) -> int:
        """Numero totale di pagine: ceil(total / per_page)."""
        if self.per_page > 0:
            return (self.total + self.per_page - 1) // self.per_page
        return 0


class ProposalMetrics(BaseModel):
    """Indicatori della pagina Proposte."""

    total_proposals: int = 0
    total_value: Decimal = Decimal("0")
    this_month: Decimal = Field(Decimal("0"), description="Valore approvato creato nel mese corrente")
    conversion_rate: Decimal = Field(Decimal("0"), description="% di proposte approvate")
