"""
Excepciones relacionadas con la lógica de dominio.
"""
from fpl_sync.shared.exceptions.base import AppException


class DomainException(AppException):
    """Excepción base para errores de dominio."""

    def __init__(self, message: str, error_code: str = "DOMAIN_ERROR", details=None):
        super().__init__(
            message=message,
            status_code=400,
            error_code=error_code,
            details=details
        )


class ValidationException(DomainException):
    """Excepción para errores de validación."""

    def __init__(self, message: str, field: str = None):
        details = {"field": field} if field else None
        super().__init__(
            message=message,
            error_code="VALIDATION_ERROR",
            details=details
        )


class UnknownEntityKindException(DomainException):
    """Excepción cuando se pide sincronizar/leer un tipo de entidad no registrado."""

    def __init__(self, kind: str, valid_kinds: list[str]):
        super().__init__(
            message=f"El tipo de entidad '{kind}' no es válido",
            error_code="UNKNOWN_ENTITY_KIND",
            details={"kind": kind, "valid_kinds": valid_kinds}
        )
        self.status_code = 404


class EventNotResolvedException(DomainException):
    """Excepción cuando no se puede determinar el evento (gameweek) actual."""

    def __init__(self):
        super().__init__(
            message="No se pudo determinar el evento actual desde bootstrap-static",
            error_code="EVENT_NOT_RESOLVED",
        )
        self.status_code = 409
