"""
Eccezioni Custom per l'applicazione.
Progetto: CoreGRE SCM (Tracciamento Lanci di Produzione)

Definisce eccezioni specifiche del dominio per una gestione
centralizzata degli errori. Ogni eccezione porta con sé lo status HTTP
e un codice errore stabile per il frontend; la conversione in risposta
JSON avviene nell'handler registrato in app.main.
"""

from typing import Any, Dict, Optional

__all__ = [
    "AppException",
    "NotFoundError",
    "BadRequestError",
    "DuplicateError",
    "AuthorizationError",
    "ConflictError",
]


class AppException(Exception):
    """
    Base exception per l'applicazione.

    Attributes:
        status_code: HTTP status code da restituire al client
        error_code: Identificativo univoco dell'errore per il frontend
        detail: Messaggio di errore leggibile per l'utente
        extra: Dizionario con dati aggiuntivi per il frontend
    """

    status_code: int = 500
    error_code: str = "INTERNAL_SERVER_ERROR"

    def __init__(
        self,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.detail = detail
        self.error_code = error_code if error_code is not None else self.error_code
        self.extra = extra
        self.status_code = self.__class__.status_code
        super().__init__(detail)


class NotFoundError(AppException):
    """
    Eccezione sollevata quando una risorsa non viene trovata.

    Utilizzata per laboratori, lanci, articoli, fasi e impostazioni
    inesistenti.
    """

    status_code: int = 404
    error_code: str = "RESOURCE_NOT_FOUND"

    def __init__(
        self,
        detail: str = "Risorsa non trovata",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class BadRequestError(AppException):
    """
    Eccezione sollevata per violazioni di integrità referenziale
    che il database non rifiuterebbe in modo leggibile.

    Esempi di utilizzo:
        - "Non è possibile eliminare il laboratorio: ha 3 lanci associati"
        - "Fasi standard non trovate: 7, 9"
    """

    status_code: int = 400
    error_code: str = "BAD_REQUEST"

    def __init__(
        self,
        detail: str = "Richiesta non valida",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class DuplicateError(AppException):
    """
    Eccezione sollevata quando si tenta di creare una risorsa duplicata
    (es. email utente o codice laboratorio già esistente).
    """

    status_code: int = 409
    error_code: str = "DUPLICATE_RESOURCE"

    def __init__(
        self,
        detail: str = "Risorsa già esistente",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class AuthorizationError(AppException):
    """
    Eccezione sollevata quando l'utente autenticato non possiede
    il permesso richiesto dall'endpoint.
    """

    status_code: int = 403
    error_code: str = "FORBIDDEN"

    def __init__(
        self,
        detail: str = "Accesso non autorizzato",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)


class ConflictError(AppException):
    """
    Eccezione sollevata quando il database rifiuta una scrittura per un
    vincolo non riconducibile a un duplicato noto.
    """

    status_code: int = 409
    error_code: str = "CONFLICT_STATE"

    def __init__(
        self,
        detail: str = "Conflitto di stato",
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(detail, error_code, extra)
