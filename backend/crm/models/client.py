"""
Modello SQLAlchemy per l'entità Client
Progetto: ConexHub CRM (Gestionale Proposte)

Anagrafica dei clienti destinatari delle proposte.
"""


from __future__ import annotations
import uuid
from typing import Optional, TYPE_CHECKING, List

from sqlalchemy import ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crm.models import Base
from crm.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from crm.models.proposal import Proposal


class Client(Base, UUIDMixin, TimestampMixin):
    """
    Modello per l'anagrafica clienti.

    Un cliente può essere creato dalla pagina Clienti oppure inline
    durante la creazione di una proposta ("novo cliente").

    Attributes:
        id: UUID primary key
        name: Nome (obbligatorio)
        email: Email (opzionale)
        company: Azienda (opzionale)
        phone: Telefono nel formato (XX) XXXXX-XXXX
        created_by: Utente che ha creato il cliente

    Relationships:
        proposals: Proposte associate al cliente
    """

    __tablename__ = "clients"

    # ------------------------------------------------------------
    # Colonne Dati Anagrafici
    # ------------------------------------------------------------
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        doc="Nome del cliente",
    )

    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Indirizzo email",
    )

    company: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        doc="Azienda",
    )

    phone: Mapped[Optional[str]] = mapped_column(
        String(20),
        nullable=True,
        doc="Numero di telefono (formato mascherato)",
    )

    created_by: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("app_users.id", ondelete="SET NULL"),
        nullable=True,
        doc="Utente che ha registrato il cliente",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    proposals: Mapped[List["Proposal"]] = relationship(
        "Proposal",
        back_populates="client",
        lazy="noload",
        doc="Proposte associate al cliente",
    )

    def __repr__(self) -> str:
        return f"<Client(id={self.id}, name={self.name})>"
