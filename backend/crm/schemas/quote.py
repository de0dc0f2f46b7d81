"""
Schemas Pydantic per il preventivo (carrello e calcolo totali)
Progetto: ConexHub CRM (Gestionale Proposte)
"""

import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from crm.core.config import settings
from crm.schemas.catalog import ServiceItem


class DiscountType(str, Enum):
    """Origine dello sconto di riga."""
    PERCENTAGE = "percentage"
    VALUE = "value"


class PaymentType(str, Enum):
    """Modalità di pagamento del preventivo."""
    CASH = "cash"
    INSTALLMENT = "installment"


class SelectedService(ServiceItem):
    """
    Riga del carrello.

    Estende il servizio con quantità, prezzo personalizzato e sconto.
    Lo sconto è sempre un importo assoluto; discount_percentage è derivato
    secondo discount_type.
    """

    quantity: int = Field(1, ge=1, description="Quantità (>= 1)")
    custom_price: Optional[Decimal] = Field(None, description="Prezzo che sostituisce base_price nel calcolo")
    discount: Decimal = Field(Decimal("0"), description="Sconto assoluto di riga")
    discount_percentage: Decimal = Field(Decimal("0"), description="Sconto in % (derivato)")
    discount_type: DiscountType = Field(DiscountType.PERCENTAGE, description="Origine dello sconto")
    custom_features: Optional[list[str]] = Field(None, description="Caratteristiche mostrate nella proposta")


class PaymentConfig(BaseModel):
    """Configurazione di pagamento del preventivo."""

    model_config = ConfigDict(use_enum_values=True)

    payment_type: PaymentType = PaymentType.CASH
    cash_discount_percentage: Decimal = Field(
        default_factory=lambda: settings.default_cash_discount_percentage,
        ge=0,
        le=100,
        description="Sconto per pagamento in contanti (%)",
    )
    installment_number: int = Field(
        default_factory=lambda: settings.default_installment_number,
        ge=1,
        description="Numero di rate",
    )
    installment_value: Decimal = Field(Decimal("0"), ge=0, description="Valore della singola rata")
    manual_installment_total: Optional[Decimal] = Field(None, description="Totale rateizzato inserito a mano")


class SelectedPayment(BaseModel):
    """Riepilogo della modalità di pagamento scelta."""

    name: str
    fee: Decimal
    installments: int
    type: PaymentType
    installment_value: Optional[Decimal] = None
    total_installment_value: Optional[Decimal] = None


class QuoteTotals(BaseModel):
    """Tutte le cifre derivate dal carrello e dalla configurazione di pagamento."""

    original_subtotal: Decimal
    subtotal: Decimal
    total: Decimal
    one_time_total: Decimal
    monthly_total: Decimal
    cash_discount: Decimal
    cash_total: Decimal
    final_total: Decimal
    total_installment_value: Decimal
    installment_interest_rate: Decimal
    selected_payment: SelectedPayment


class QuoteCalculateRequest(BaseModel):
    """Richiesta di calcolo del preventivo."""

    services: list[SelectedService] = Field(default_factory=list)
    payment: PaymentConfig = Field(default_factory=PaymentConfig)


# -------------------------------------------------------------------
# Wizard
# -------------------------------------------------------------------
class WizardStep(str, Enum):
    """Passi del wizard di creazione preventivo, in ordine."""
    SERVICES = "services"
    SETTINGS = "settings"
    CLIENT = "client"
    REVIEW = "review"


class ClientInfo(BaseModel):
    """Dati cliente raccolti dal wizard."""

    id: Optional[uuid.UUID] = None
    name: str = ""
    email: str = ""
    company: str = ""
    phone: str = ""


class QuoteDraft(BaseModel):
    """
    Stato completo del wizard: righe, cliente, titolo, pagamento,
    validità e tema grafico.
    """

    services: list[SelectedService] = Field(default_factory=list)
    is_new_client: bool = False
    selected_client_id: Optional[uuid.UUID] = None
    client_info: ClientInfo = Field(default_factory=ClientInfo)
    title: str = ""
    notes: str = ""
    payment: PaymentConfig = Field(default_factory=PaymentConfig)
    is_validity_enabled: bool = True
    validity_days: int = Field(default_factory=lambda: settings.default_validity_days, ge=0)
    proposal_logo_url: str = Field(default_factory=lambda: settings.default_logo_url)
    proposal_gradient_theme: str = Field(default_factory=lambda: settings.default_gradient_theme)


class StepValidationResult(BaseModel):
    """Esito della validazione di un passo."""

    step: WizardStep
    valid: bool = True


class ShareLink(BaseModel):
    """Link pubblico generato per una bozza."""

    url: str
    share_token: str
    proposal_id: uuid.UUID
