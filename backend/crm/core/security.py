"""
Modulo di sicurezza per la verifica dei token JWT
Progetto: ConexHub CRM (Gestionale Proposte)

I token vengono emessi dal provider di autenticazione esterno:
il backend si limita a verificarne firma, scadenza e audience.
"""

from datetime import datetime, timezone

from fastapi import HTTPException, status
from jose import JWTError, jwt

from crm.core.config import settings
from crm.schemas.token import TokenPayload


def decode_token(token: str) -> TokenPayload:
    """
    Decodifica e valida un token JWT.

    Args:
        token: Token JWT da decodificare

    Returns:
        TokenPayload con i dati del token

    Raises:
        HTTPException: Se il token è invalido o scaduto
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
        )
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token invalido o scaduto: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token invalido: missing subject",
            headers={"WWW-Authenticate": "Bearer"},
        )

    exp = payload.get("exp")
    return TokenPayload(
        sub=payload["sub"],
        email=payload.get("email"),
        role=payload.get("role"),
        exp=datetime.fromtimestamp(exp, tz=timezone.utc) if exp is not None else None,
    )


__all__ = ["decode_token"]
