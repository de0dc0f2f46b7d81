"""
Eccezioni di dominio del CRM
Progetto: ConexHub CRM (Gestionale Proposte)

I service sollevano queste eccezioni; main.py le converte in una
risposta JSON uniforme tramite `AppException.to_response()`:

    {"detail": ..., "error_code": ..., "extra": ...}

BusinessValidationError copre le regole del preventivo e del wizard
(carrello vuoto, titolo mancante, cliente non indicato). Gli errori di
formato del payload restano pydantic.ValidationError, gestiti da FastAPI.
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "DuplicateError",
    "BusinessValidationError",
    "ConflictError",
    "AuthorizationError",
]


class AppException(Exception):
    """
    Base delle eccezioni del CRM.

    Attributes:
        status_code: HTTP status code della risposta
        error_code: Codice stabile usato dal frontend per scegliere il messaggio
        detail: Messaggio per l'utente (in portoghese per gli errori del wizard)
        extra: Dati strutturati, es. il passo del wizard non completato
    """

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"
    default_detail: str = "Errore interno del server"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.detail = detail if detail is not None else self.default_detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(self.detail)

    def to_response(self) -> Dict[str, Any]:
        """Corpo JSON della risposta di errore."""
        return {
            "detail": self.detail,
            "error_code": self.error_code,
            "extra": self.extra,
        }


class NotFoundError(AppException):
    """Proposta, cliente, servizio personalizzato o share_token inesistente."""

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"
    default_detail: str = "Risorsa non trovata"


class DuplicateError(AppException):
    """Violazione di un vincolo unique, in pratica lo share_token della proposta."""

    status_code: int = 409
    error_code: str = "DUPLICATE_RESOURCE"
    default_detail: str = "Risorsa già esistente"


class BusinessValidationError(ValueError, AppException):
    """
    Regola del preventivo non rispettata.

    Eredita da ValueError così può essere sollevata anche dai validatori
    Pydantic. Per il passo di revisione `extra` contiene
    {"step": <passo mancante>, "reason": <messaggio del passo>}.

    Esempi:
        - "Selecione pelo menos um serviço para continuar."
        - "O título da proposta é obrigatório."
        - "Selecione um cliente existente ou cadastre um novo cliente."
    """

    status_code: int = 422
    error_code: str = "BUSINESS_VALIDATION_ERROR"
    default_detail: str = "Validazione dati fallita"

    def __init__(
        self,
        detail: Optional[str] = None,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        # ValueError non deve ricevere gli argomenti di AppException
        AppException.__init__(self, detail, error_code, extra)


class ConflictError(AppException):
    """Errore del database durante il salvataggio; la transazione è già annullata."""

    status_code: int = 409
    error_code: str = "CONFLICT_STATE"
    default_detail: str = "Conflitto di stato"


class AuthorizationError(AppException):
    """Accesso a un servizio personalizzato di un altro utente."""

    status_code: int = 403
    error_code: str = "FORBIDDEN"
    default_detail: str = "Accesso non autorizzato"
