"""
Router FastAPI per il catalogo servizi
Progetto: ConexHub CRM (Gestionale Proposte)

Catalogo statico, servizi personalizzati dell'utente e opzioni di pagamento.
"""

import logging
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.database import get_db
from crm.core.deps import CurrentUser
from crm.core.exceptions import NotFoundError
from crm.schemas.catalog import (
    CustomServiceCreate,
    CustomServiceRead,
    CustomServiceUpdate,
    PaymentOptionRead,
    ServiceItem,
)
from crm.services.catalog import PAYMENT_OPTIONS, get_available_services, get_payment_option
from crm.services.custom_service_service import CustomServiceService

# Logger per questo modulo
logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/catalog",
    tags=["Catalogo"],
)


def get_custom_service_service() -> CustomServiceService:
    """Dependency per ottenere un'istanza del CustomServiceService."""
    return CustomServiceService()


@router.get(
    "/services",
    name="catalogo_servizi",
    summary="Servizi disponibili",
    description="Catalogo statico seguito dai servizi personalizzati dell'utente.",
    response_model=list[ServiceItem],
)
async def get_services(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: CustomServiceService = Depends(get_custom_service_service),
) -> list[ServiceItem]:
    custom_services = await service.get_all(db, current_user.id)
    return get_available_services(custom_services)


@router.get(
    "/payment-options",
    name="catalogo_opzioni_pagamento",
    summary="Opzioni di pagamento",
    response_model=list[PaymentOptionRead],
)
async def get_payment_options() -> list[PaymentOptionRead]:
    return list(PAYMENT_OPTIONS)


@router.get(
    "/payment-options/{option_id}",
    name="catalogo_opzione_pagamento",
    summary="Dettaglio opzione di pagamento",
    response_model=PaymentOptionRead,
)
async def get_payment_option_detail(option_id: str) -> PaymentOptionRead:
    """
    Restituisce un'opzione di pagamento (es. 'pix', 'credit-12x').

    Raises:
        NotFoundError: 404 se l'ID non è nella tabella
    """
    option = get_payment_option(option_id)
    if option is None:
        raise NotFoundError(f"Opzione di pagamento '{option_id}' non trovata")
    return option


# -------------------------------------------------------------------
# Servizi personalizzati
# -------------------------------------------------------------------

@router.get(
    "/custom-services",
    name="servizi_personalizzati_lista",
    summary="Servizi personalizzati",
    response_model=list[CustomServiceRead],
)
async def get_custom_services(
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: CustomServiceService = Depends(get_custom_service_service),
) -> list[CustomServiceRead]:
    custom_services = await service.get_all(db, current_user.id)
    return [CustomServiceRead.model_validate(s) for s in custom_services]


@router.post(
    "/custom-services",
    name="servizio_personalizzato_crea",
    summary="Crea servizio personalizzato",
    response_model=CustomServiceRead,
    status_code=status.HTTP_201_CREATED,
)
async def create_custom_service(
    data: CustomServiceCreate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: CustomServiceService = Depends(get_custom_service_service),
) -> CustomServiceRead:
    custom_service = await service.create(db, data, current_user.id)
    await db.commit()
    return CustomServiceRead.model_validate(custom_service)


@router.put(
    "/custom-services/{service_id}",
    name="servizio_personalizzato_aggiorna",
    summary="Aggiorna servizio personalizzato",
    response_model=CustomServiceRead,
)
async def update_custom_service(
    service_id: uuid.UUID,
    data: CustomServiceUpdate,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: CustomServiceService = Depends(get_custom_service_service),
) -> CustomServiceRead:
    """
    Aggiorna un servizio personalizzato.

    Raises:
        NotFoundError: Se il servizio non esiste
        AuthorizationError: Se il servizio appartiene a un altro utente
    """
    custom_service = await service.update(db, service_id, data, current_user.id)
    await db.commit()
    return CustomServiceRead.model_validate(custom_service)


@router.delete(
    "/custom-services/{service_id}",
    name="servizio_personalizzato_elimina",
    summary="Elimina servizio personalizzato",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_custom_service(
    service_id: uuid.UUID,
    current_user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    service: CustomServiceService = Depends(get_custom_service_service),
) -> None:
    await service.delete(db, service_id, current_user.id)
    await db.commit()
