"""
API Routes
Progetto: ConexHub CRM (Gestionale Proposte)

Modulo per l'aggregazione dei router versionati.
"""

from crm.api.v1 import api_v1_router

# Esportazione router
__all__ = ["api_v1_router"]
