"""
Dependency Injection per autenticazione
Progetto: ConexHub CRM (Gestionale Proposte)

Risolve l'utente corrente a partire dal token Bearer.
"""

from typing import Annotated, Optional
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from crm.core.database import get_db
from crm.core.security import decode_token
from crm.models.user import AppUser

# Estrae il token dall'header Authorization
bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> AppUser:
    """
    Dependency per ottenere l'utente corrente dal token JWT.

    Args:
        credentials: Credenziali Bearer estratte dall'header Authorization
        db: Sessione database

    Returns:
        L'utente applicativo corrispondente al subject del token

    Raises:
        HTTPException 401: Se il token manca, è invalido o l'utente non è attivo
    """
    if credentials is None or not credentials.credentials:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token di autenticazione non fornito",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token_data = decode_token(credentials.credentials)

    try:
        user_id = UUID(token_data.sub)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="ID utente invalido nel token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    result = await db.execute(select(AppUser).where(AppUser.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Utente non trovato",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Utente disattivato",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


# Type alias per uso comune
CurrentUser = Annotated[AppUser, Depends(get_current_user)]


__all__ = [
    "get_current_user",
    "bearer_scheme",
    "CurrentUser",
]
