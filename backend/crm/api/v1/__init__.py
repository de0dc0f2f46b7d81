"""
API v1 Routes
Progetto: ConexHub CRM (Gestionale Proposte)

Router versione 1 dell'API.
"""

from fastapi import APIRouter

from crm.api.v1 import catalog, clients, pipeline, proposals, public, quotes

# Router aggregato per v1
api_v1_router = APIRouter(prefix="/api/v1")

# Includi i router dei moduli
api_v1_router.include_router(clients.router)
api_v1_router.include_router(catalog.router)
api_v1_router.include_router(quotes.router)
api_v1_router.include_router(proposals.router)
api_v1_router.include_router(pipeline.router)
api_v1_router.include_router(public.router)

# Esportazione
__all__ = ["api_v1_router"]
