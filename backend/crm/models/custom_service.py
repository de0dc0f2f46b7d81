"""
Modello SQLAlchemy per i servizi personalizzati
Progetto: ConexHub CRM (Gestionale Proposte)

Servizi definiti dall'utente che si aggiungono al catalogo statico.
"""

from __future__ import annotations
import uuid
from decimal import Decimal
from typing import Optional

from sqlalchemy import JSON, Boolean, ForeignKey, Numeric, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from crm.models import Base
from crm.models.mixins import TimestampMixin, UUIDMixin


class CustomService(Base, UUIDMixin, TimestampMixin):
    """
    Servizio personalizzato di proprietà di un utente.

    Ha la stessa forma di un servizio del catalogo (nome, prezzo base,
    categoria, icona, caratteristiche, tipo di fatturazione).
    """

    __tablename__ = "custom_services"

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("app_users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Proprietario del servizio",
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    base_price: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
        doc="Prezzo base",
    )

    category: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="Outros Serviços",
    )

    icon: Mapped[str] = mapped_column(String(20), nullable=False, default="✨")

    features: Mapped[list] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        doc="Lista ordinata delle caratteristiche",
    )

    popular: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    billing_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="one_time",
        doc="Tipo di fatturazione: 'one_time' o 'monthly'",
    )

    def __repr__(self) -> str:
        return f"<CustomService(id={self.id}, name={self.name}, user_id={self.user_id})>"
