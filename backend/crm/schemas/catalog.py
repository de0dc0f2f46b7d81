"""
Schemas Pydantic per il catalogo servizi
Progetto: ConexHub CRM (Gestionale Proposte)

Servizi del catalogo statico, servizi personalizzati e opzioni di pagamento.
"""

import datetime
import uuid
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BillingType(str, Enum):
    """Tipo di fatturazione del servizio."""
    ONE_TIME = "one_time"   # Una tantum
    MONTHLY = "monthly"     # Ricorrente mensile


class ServiceItem(BaseModel):
    """
    Servizio offribile in un preventivo.

    Usato sia per il catalogo statico sia per i servizi personalizzati
    (is_custom=True). Immutabile a runtime: il carrello ne copia i dati.
    """

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    id: str = Field(..., description="Identificativo del servizio")
    name: str = Field(..., description="Nome del servizio")
    description: str = Field("", description="Descrizione")
    base_price: Decimal = Field(..., description="Prezzo base")
    category: str = Field(..., description="Categoria")
    icon: str = Field("✨", description="Icona")
    features: list[str] = Field(default_factory=list, description="Caratteristiche ordinate")
    popular: bool = Field(False, description="Servizio in evidenza")
    billing_type: BillingType = Field(BillingType.ONE_TIME, description="Tipo di fatturazione")
    is_custom: bool = Field(False, description="Servizio personalizzato dell'utente")

    @field_validator("description", mode="before")
    @classmethod
    def none_description_to_empty(cls, v):
        return v or ""


class PaymentOptionRead(BaseModel):
    """Voce della tabella fissa delle opzioni di pagamento."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    fee: Decimal = Field(..., description="Commissione in %")
    installments: int = Field(..., ge=1)


# -------------------------------------------------------------------
# Servizi personalizzati
# -------------------------------------------------------------------
class CustomServiceBase(BaseModel):
    """Campi condivisi dei servizi personalizzati."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True, validate_default=True)

    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None)
    base_price: Decimal = Field(..., ge=0, description="Prezzo base")
    category: str = Field("Outros Serviços", max_length=100)
    icon: str = Field("✨", max_length=20)
    features: list[str] = Field(default_factory=list)
    popular: bool = False
    billing_type: BillingType = BillingType.ONE_TIME


class CustomServiceCreate(CustomServiceBase):
    """Schema per la creazione di un servizio personalizzato."""


class CustomServiceUpdate(BaseModel):
    """Aggiornamento parziale di un servizio personalizzato."""

    model_config = ConfigDict(use_enum_values=True)

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    base_price: Optional[Decimal] = Field(None, ge=0)
    category: Optional[str] = Field(None, max_length=100)
    icon: Optional[str] = Field(None, max_length=20)
    features: Optional[list[str]] = None
    popular: Optional[bool] = None
    billing_type: Optional[BillingType] = None


class CustomServiceRead(CustomServiceBase):
    """Servizio personalizzato restituito dall'API."""

    id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime.datetime
    updated_at: datetime.datetime
