"""
DTOs para los endpoints de sincronizacion y lectura de registros.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from fpl_sync.domain.entities.records import CanonicalRecord
from fpl_sync.domain.entities.sync import SyncBatchResult


class SyncRequestDTO(BaseModel):
    """
    Request opcional para lanzar una sincronizacion.

    - event_id: evento a sincronizar; por defecto el evento actual
    - entry_ids: entries explicitos; por defecto los registrados en entry_infos
    """
    event_id: Optional[int] = Field(None, ge=1, le=38, description="Evento (gameweek)")
    entry_ids: Optional[List[int]] = Field(None, min_length=1, description="Entries a sincronizar")


class SyncBatchResultDTO(BaseModel):
    """Resultado agregado de una corrida. No incluye errores por entry."""
    kind: str
    event_id: Optional[int] = None
    attempted: int
    succeeded: int
    skipped_existing: int
    empty: int
    failed: int
    records_written: int
    mapping_failures: int
    failures_by_stage: Dict[str, int]
    started_at: datetime
    finished_at: Optional[datetime] = None
    duration_seconds: float

    @classmethod
    def from_result(cls, result: SyncBatchResult) -> "SyncBatchResultDTO":
        return cls(
            kind=result.kind,
            event_id=result.secondary_key,
            attempted=result.attempted,
            succeeded=result.succeeded,
            skipped_existing=result.skipped_existing,
            empty=result.empty,
            failed=result.failed,
            records_written=result.records_written,
            mapping_failures=result.mapping_failures,
            failures_by_stage=result.failures_by_stage,
            started_at=result.started_at,
            finished_at=result.finished_at,
            duration_seconds=result.duration_seconds,
        )


class RecordsResponseDTO(BaseModel):
    """Registros de un tipo de entidad."""
    kind: str
    event_id: Optional[int] = None
    count: int
    records: List[Dict[str, Any]]

    @classmethod
    def from_records(cls, kind: str, records: List[CanonicalRecord], event_id: Optional[int] = None) -> "RecordsResponseDTO":
        return cls(
            kind=kind,
            event_id=event_id,
            count=len(records),
            records=[record.model_dump(mode="json") for record in records],
        )
