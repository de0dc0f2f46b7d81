"""
Schemas Pydantic per la pipeline delle proposte (kanban)
Progetto: ConexHub CRM (Gestionale Proposte)
"""

import uuid
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from crm.schemas.proposal import ProposalRead, ProposalStatus


class BoardColumn(BaseModel):
    """Colonna della pipeline: uno stato con le sue proposte ordinate."""

    status: ProposalStatus
    is_terminal: bool = Field(False, description="Colonna di chiusura (Aprovada, Rejeitada)")
    proposals: list[ProposalRead] = Field(default_factory=list)

    @computed_field
    def count(self) -> int:
        return len(self.proposals)

    @computed_field
    def total_amount(self) -> Decimal:
        return sum((p.amount for p in self.proposals), Decimal("0"))


class PipelineBoardRead(BaseModel):
    """Pipeline completa: colonne nell'ordine degli stati e conteggi di gruppo."""

    columns: list[BoardColumn] = Field(default_factory=list)
    active_count: int = 0
    closed_count: int = 0
    total: int = 0


class PipelineMoveRequest(BaseModel):
    """Spostamento di una proposta in un'altra colonna."""

    proposal_id: uuid.UUID
    status: ProposalStatus


class PipelineMoveResult(BaseModel):
    """Esito dello spostamento, con la pipeline riallineata alla fonte dati."""

    moved: bool
    message: Optional[str] = None
    board: PipelineBoardRead
