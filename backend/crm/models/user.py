"""
Modello SQLAlchemy per l'entità AppUser
Progetto: ConexHub CRM (Gestionale Proposte)

Profilo applicativo degli utenti. L'autenticazione è gestita dal provider
esterno: qui vivono solo i dati usati dal CRM (nome, ruolo, stato).
"""

from __future__ import annotations
from enum import Enum
from typing import TYPE_CHECKING, List

from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from crm.models import Base
from crm.models.mixins import TimestampMixin, UUIDMixin

if TYPE_CHECKING:
    from crm.models.proposal import Proposal


class UserRole(str, Enum):
    """Ruoli utente nel sistema."""
    ADMIN = "admin"
    USER = "user"


class AppUser(Base, UUIDMixin, TimestampMixin):
    """
    Utente del CRM, proprietario delle proposte.

    Attributes:
        id: UUID coincidente con il subject del token del provider
        name: Nome visualizzato (usato dalla ricerca della pipeline)
        email: Email univoca
        role: Ruolo (admin, user)
        is_active: Indica se l'utente è attivo
    """

    __tablename__ = "app_users"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Nome completo dell'utente",
    )

    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
        doc="Email univoca dell'utente",
    )

    role: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=UserRole.USER.value,
        doc="Ruolo dell'utente",
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=True,
        doc="Utente abilitato all'uso del CRM",
    )

    proposals: Mapped[List["Proposal"]] = relationship(
        "Proposal",
        back_populates="owner",
        lazy="noload",
    )

    def __repr__(self) -> str:
        return f"<AppUser(id={self.id}, email={self.email}, role={self.role})>"
