"""
Modelli Database SQLAlchemy
Progetto: ConexHub CRM (Gestionale Proposte)

Import centralizzato di tutti i modelli per reset_db.py e usage generico.
"""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class per tutti i modelli SQLAlchemy."""
    pass


# Import modelli implementati
from crm.models.user import AppUser
from crm.models.client import Client
from crm.models.custom_service import CustomService
from crm.models.proposal import Proposal, ProposalItem

__all__ = [
    "Base",
    "AppUser",
    "Client",
    "CustomService",
    "Proposal",
    "ProposalItem",
]
