"""
Modelli SQLAlchemy per Proposal e ProposalItem
Progetto: ConexHub CRM (Gestionale Proposte)

Una proposta registrata conserva una copia congelata delle righe del
preventivo: le variazioni successive del catalogo non la ricalcolano.
"""

from __future__ import annotations
import datetime
import secrets
import uuid
from decimal import Decimal
from typing import Optional, TYPE_CHECKING, List

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crm.models import Base
from crm.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from crm.models.client import Client
    from crm.models.user import AppUser


def generate_share_token() -> str:
    """Genera il token opaco che abilita la lettura pubblica della proposta."""
    return secrets.token_urlsafe(24)


class Proposal(Base, UUIDMixin, TimestampMixin):
    """
    Modello per le proposte commerciali.

    Attributes:
        title: Titolo della proposta (obbligatorio)
        amount: Totale finale al momento della registrazione
        client_id: Cliente destinatario (nullable)
        owner_id: Utente proprietario
        status: Stato nella pipeline (Rascunho, Criada, Enviada, Negociando, Aprovada, Rejeitada)
        notes: Note libere
        expected_close_date: Data prevista di chiusura
        payment_type: 'cash' o 'installment'
        cash_discount_percentage: Sconto per pagamento in contanti (%)
        installment_number / installment_value / manual_installment_total: Configurazione rate
        is_validity_enabled / validity_days: Validità della proposta
        proposal_logo_url / proposal_gradient_theme: Tema grafico
        share_token: Token per il link pubblico

    Relationships:
        client: Cliente destinatario
        owner: Utente proprietario
        services: Righe congelate, ordinate per posizione
    """

    __tablename__ = "proposals"

    # ------------------------------------------------------------
    # Colonne Dati Principali
    # ------------------------------------------------------------
    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Titolo della proposta",
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="Totale finale (snapshot, non ricalcolato)",
    )

    client_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        Uuid,
        ForeignKey("clients.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        doc="Cliente destinatario",
    )

    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("app_users.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
        doc="Utente proprietario",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="Enviada",
        doc="Stato della proposta",
    )

    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    expected_close_date: Mapped[Optional[datetime.date]] = mapped_column(
        Date,
        nullable=True,
        doc="Data prevista di chiusura",
    )

    # ------------------------------------------------------------
    # Configurazione Pagamento
    # ------------------------------------------------------------
    payment_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="cash",
    )

    cash_discount_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        default=Decimal("0.00"),
    )

    installment_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    installment_value: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    manual_installment_total: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    # ------------------------------------------------------------
    # Validità e Tema
    # ------------------------------------------------------------
    is_validity_enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    validity_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)

    proposal_logo_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    proposal_gradient_theme: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    share_token: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        default=generate_share_token,
        doc="Token opaco per la visualizzazione pubblica",
    )

    # ------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------
    client: Mapped[Optional["Client"]] = relationship(
        "Client",
        back_populates="proposals",
        lazy="joined",
    )

    owner: Mapped["AppUser"] = relationship(
        "AppUser",
        back_populates="proposals",
        lazy="joined",
    )

    services: Mapped[List["ProposalItem"]] = relationship(
        "ProposalItem",
        back_populates="proposal",
        cascade="all, delete-orphan",
        order_by="ProposalItem.position",
        lazy="selectin",
        doc="Righe del preventivo congelate alla registrazione",
    )

    __table_args__ = (
        Index("ix_proposals_status", "status"),
        Index("ix_proposals_status_updated", "status", "updated_at"),
    )

    def __repr__(self) -> str:
        return f"<Proposal(id={self.id}, title={self.title}, status={self.status})>"


class ProposalItem(Base, UUIDMixin):
    """
    Riga congelata di una proposta (tabella proposal_services).

    Copia i dati della riga del carrello al momento della registrazione:
    prezzo base, quantità, prezzo personalizzato e sconto non seguono
    più il catalogo.
    """

    __tablename__ = "proposal_services"

    proposal_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("proposals.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        doc="Ordine della riga nel preventivo",
    )

    service_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        doc="ID del servizio di catalogo o personalizzato",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    base_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    custom_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(12, 2), nullable=True)

    discount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False, default=Decimal("0.00"))

    discount_percentage: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=Decimal("0.00"))

    discount_type: Mapped[str] = mapped_column(String(20), nullable=False, default="percentage")

    features: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    category: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    icon: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    is_custom: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    billing_type: Mapped[str] = mapped_column(String(20), nullable=False, default="one_time")

    proposal: Mapped["Proposal"] = relationship(
        "Proposal",
        back_populates="services",
    )

    def __repr__(self) -> str:
        return f"<ProposalItem(id={self.id}, proposal_id={self.proposal_id}, name={self.name})>"
