"""
Excepciones del pipeline de sincronización FPL -> Postgres/Redis.

Cada etapa del pipeline por subject tiene su propio tipo de error.
Todas salvo EnumerationError se capturan en el borde de cada subject
y se convierten en un SubjectOutcome; EnumerationError aborta la corrida.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional

from fpl_sync.shared.exceptions.base import AppException


class SyncStage(str, Enum):
    """Etapa del pipeline en la que ocurrió un error."""

    ENUMERATION = "enumeration"
    FETCH = "fetch"
    VALIDATION = "validation"
    MAPPING = "mapping"
    EXISTENCE_CHECK = "existence_check"
    UPSERT = "upsert"


class SyncError(AppException):
    """Excepción base para errores del pipeline de sincronización."""

    stage: SyncStage = SyncStage.FETCH
    default_status_code: int = 502

    def __init__(
        self,
        message: str,
        *,
        subject_id: Any = None,
        secondary_key: Any = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = {"stage": self.stage.value}
        if subject_id is not None:
            merged["subject_id"] = subject_id
        if secondary_key is not None:
            merged["secondary_key"] = secondary_key
        merged.update(details or {})
        super().__init__(
            message=message,
            status_code=self.default_status_code,
            error_code=f"SYNC_{self.stage.name}_ERROR",
            details=merged,
        )
        self.subject_id = subject_id
        self.secondary_key = secondary_key


class FetchError(SyncError):
    """API upstream inalcanzable o respuesta no exitosa."""

    stage = SyncStage.FETCH


class PayloadValidationError(SyncError):
    """El payload upstream no tiene la forma esperada."""

    stage = SyncStage.VALIDATION


class MappingError(SyncError):
    """Fallo semántico al transformar un payload bien formado."""

    stage = SyncStage.MAPPING
    default_status_code = 422


class ExistenceCheckError(SyncError):
    """No se pudo verificar si el registro ya existe en el repositorio."""

    stage = SyncStage.EXISTENCE_CHECK
    default_status_code = 503


class UpsertError(SyncError):
    """El batch-upsert falló (store inalcanzable o constraint inesperado)."""

    stage = SyncStage.UPSERT
    default_status_code = 503


class EnumerationError(SyncError):
    """No se pudo listar los subjects: error fatal para toda la corrida."""

    stage = SyncStage.ENUMERATION
    default_status_code = 503


class RepositoryError(AppException):
    """Error de lectura/escritura del repositorio fuera del pipeline de sync."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(
            message=message,
            status_code=503,
            error_code="REPOSITORY_ERROR",
            details=details,
        )


class CacheStoreError(AppException):
    """Error de I/O contra el cache store."""

    def __init__(self, message: str, key: str):
        super().__init__(
            message=message,
            status_code=503,
            error_code="CACHE_STORE_ERROR",
            details={"key": key},
        )
        self.key = key


class CacheDecodeError(AppException):
    """La entrada de cache existe pero no se puede leer como registros válidos."""

    def __init__(self, message: str, key: str):
        super().__init__(
            message=message,
            status_code=500,
            error_code="CACHE_DECODE_ERROR",
            details={"key": key},
        )
        self.key = key
