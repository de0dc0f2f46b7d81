"""
Schemas Pydantic per i token JWT
Progetto: ConexHub CRM (Gestionale Proposte)
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class TokenPayload(BaseModel):
    """
    Payload dei token emessi dal provider di autenticazione.

    Attributes:
        sub: Subject - ID dell'utente come stringa
        email: Email dell'utente (se presente nel token)
        role: Ruolo riportato dal provider
        exp: Data/ora di scadenza
    """

    sub: str = Field(..., description="ID utente")
    email: Optional[str] = Field(None, description="Email dell'utente")
    role: Optional[str] = Field(None, description="Ruolo riportato dal provider")
    exp: Optional[datetime] = Field(None, description="Data/ora di scadenza")


__all__ = ["TokenPayload"]
