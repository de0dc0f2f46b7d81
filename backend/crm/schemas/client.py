"""
Schemas Pydantic per l'entità Client
Progetto: ConexHub CRM (Gestionale Proposte)
"""
# Definisce gli schemi di validazione e serializzazione per l'API.

import datetime
import re
import uuid
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    computed_field,
    field_validator,
)


# -------------------------------------------------------------------
# Funzioni di normalizzazione
# -------------------------------------------------------------------

def normalize_phone(phone: Optional[str]) -> Optional[str]:
    """
    Normalizza il telefono nel formato mascherato brasiliano.

    11 cifre → (XX) XXXXX-XXXX, 10 cifre → (XX) XXXX-XXXX.
    Altri formati vengono mantenuti così come inseriti.

    Args:
        phone: Numero di telefono da normalizzare

    Returns:
        Numero di telefono normalizzato o None
    """
    if phone is None:
        return None

    stripped = phone.strip()
    if not stripped:
        return None

    digits = re.sub(r"\D", "", stripped)
    if len(digits) == 11:
        return f"({digits[:2]}) {digits[2:7]}-{digits[7:]}"
    if len(digits) == 10:
        return f"({digits[:2]}) {digits[2:6]}-{digits[6:]}"
    return stripped


class ClientValidatorsMixin(BaseModel):
    """Validatori condivisi tra creazione e aggiornamento."""

    @field_validator("email", mode="before", check_fields=False)
    @classmethod
    def empty_email_to_none(cls, v):
        """Il form invia stringa vuota quando l'email non è compilata."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("phone", check_fields=False)
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone(v)

    @field_validator("company", check_fields=False)
    @classmethod
    def empty_company_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v


class ClientBase(ClientValidatorsMixin):
    """
    Schema base per i dati anagrafici del cliente.
    """

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Nome del cliente",
    )

    email: Optional[EmailStr] = Field(
        None,
        description="Indirizzo email",
    )

    company: Optional[str] = Field(
        None,
        max_length=255,
        description="Azienda",
    )

    phone: Optional[str] = Field(
        None,
        max_length=20,
        description="Telefono (normalizzato in (XX) XXXXX-XXXX)",
    )

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Il nome del cliente è obbligatorio")
        return v


class ClientCreate(ClientBase):
    """Schema per la creazione di un cliente."""


class ClientUpdate(ClientValidatorsMixin):
    """
    Schema per l'aggiornamento parziale di un cliente.

    Tutti i campi sono opzionali: vengono applicati solo quelli inviati.
    """

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    company: Optional[str] = Field(None, max_length=255)
    phone: Optional[str] = Field(None, max_length=20)


class ClientRead(ClientBase):
    """
    Schema per la risposta API che include i campi di sistema.
    """

    # Le righe storiche possono contenere email non valide: in lettura non si rivalida
    email: Optional[str] = None

    id: uuid.UUID = Field(..., description="UUID del cliente")
    created_by: Optional[uuid.UUID] = Field(None, description="Utente che ha creato il cliente")
    created_at: datetime.datetime = Field(..., description="Data/ora di creazione")
    updated_at: datetime.datetime = Field(..., description="Data/ora ultimo aggiornamento")


# -------------------------------------------------------------------
# Schemas per Lista Paginata
# -------------------------------------------------------------------
class ClientList(BaseModel):
    """
    Schema per risposte paginate.
    """

    model_config = ConfigDict(from_attributes=True)

    items: list[ClientRead] = Field(default_factory=list)
    total: int = Field(..., ge=0)
    page: int = Field(..., ge=1)
    per_page: int = Field(..., ge=1)

    @computed_field
    def total_pages(self) -> int:
        """Numero totale di pagine: ceil(total / per_page)."""
        if self.per_page > 0:
            return (self.total + self.per_page - 1) // self.per_page
        return 0
