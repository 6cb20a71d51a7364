"""
Excepción base para todas las excepciones de fpl_sync.
"""
from typing import Any, Dict, Optional


class AppException(Exception):
    """
    Excepción base de la aplicación.

    Las excepciones de sync (fetch, transform, persist, enumeracion) y las
    de dominio heredan de esta clase. `details` lleva el contexto del fallo
    (kind, subject, evento, etapa) y se devuelve tal cual en la respuesta.
    """

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        """
        Args:
            message: Mensaje de error descriptivo
            status_code: Código de estado HTTP
            error_code: Código de error de la API
            details: Contexto del fallo (subject, evento, etapa...)
        """
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Cuerpo JSON de la respuesta de error."""
        return {
            "error": self.error_code,
            "message": self.message,
            "details": self.details,
        }
