"""
Tipos de resultado del motor de sincronizacion.

El resultado de una corrida solo contiene conteos: los errores por subject
se registran en los logs, nunca se devuelven al caller.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Iterable, Optional

from fpl_sync.shared.utils.datetime_utils import utc_now


class IdempotencyPolicy(str, Enum):
    """
    Politica ante un registro cuya clave natural ya existe.

    SKIP_EXISTING: historial append-only; el subject/evento ya sincronizado
    no se vuelve a escribir.
    OVERWRITE_LAST_KNOWN: el snapshot actual se sobrescribe y los valores
    anteriores se conservan en los campos last_*.
    """

    SKIP_EXISTING = "skip_existing"
    OVERWRITE_LAST_KNOWN = "overwrite_last_known"


class OutcomeStatus(str, Enum):
    """Resultado de la sincronizacion de un subject."""

    SUCCEEDED = "succeeded"
    SKIPPED_EXISTING = "skipped_existing"
    EMPTY = "empty"
    FAILED = "failed"


@dataclass(frozen=True)
class SubjectOutcome:
    """Resultado del pipeline de un subject."""

    subject_id: int
    status: OutcomeStatus
    secondary_key: Optional[int] = None
    written: int = 0
    mapping_failures: int = 0
    stage: Optional[str] = None  # etapa del fallo, solo si status == FAILED

    @classmethod
    def succeeded(cls, subject_id: int, secondary_key: Optional[int], written: int, mapping_failures: int = 0) -> "SubjectOutcome":
        return cls(subject_id, OutcomeStatus.SUCCEEDED, secondary_key, written, mapping_failures)

    @classmethod
    def skipped(cls, subject_id: int, secondary_key: Optional[int]) -> "SubjectOutcome":
        return cls(subject_id, OutcomeStatus.SKIPPED_EXISTING, secondary_key)

    @classmethod
    def empty(cls, subject_id: int, secondary_key: Optional[int]) -> "SubjectOutcome":
        return cls(subject_id, OutcomeStatus.EMPTY, secondary_key)

    @classmethod
    def failed(cls, subject_id: int, secondary_key: Optional[int], stage: str) -> "SubjectOutcome":
        return cls(subject_id, OutcomeStatus.FAILED, secondary_key, stage=stage)


@dataclass
class SyncBatchResult:
    """
    Resumen de una corrida del orquestador.

    attempted = succeeded + skipped_existing + empty + failed.
    """

    kind: str
    secondary_key: Optional[int] = None
    attempted: int = 0
    succeeded: int = 0
    skipped_existing: int = 0
    empty: int = 0
    failed: int = 0
    records_written: int = 0
    mapping_failures: int = 0
    failures_by_stage: Dict[str, int] = field(default_factory=dict)
    started_at: datetime = field(default_factory=utc_now)
    finished_at: Optional[datetime] = None

    @classmethod
    def from_outcomes(
        cls,
        kind: str,
        outcomes: Iterable[SubjectOutcome],
        *,
        secondary_key: Optional[int] = None,
        started_at: Optional[datetime] = None,
    ) -> "SyncBatchResult":
        outcomes = list(outcomes)
        statuses = Counter(o.status for o in outcomes)
        stages = Counter(o.stage for o in outcomes if o.status is OutcomeStatus.FAILED)
        return cls(
            kind=kind,
            secondary_key=secondary_key,
            attempted=len(outcomes),
            succeeded=statuses[OutcomeStatus.SUCCEEDED],
            skipped_existing=statuses[OutcomeStatus.SKIPPED_EXISTING],
            empty=statuses[OutcomeStatus.EMPTY],
            failed=statuses[OutcomeStatus.FAILED],
            records_written=sum(o.written for o in outcomes),
            mapping_failures=sum(o.mapping_failures for o in outcomes),
            failures_by_stage={str(stage): count for stage, count in stages.items()},
            started_at=started_at or utc_now(),
            finished_at=utc_now(),
        )

    @property
    def duration_seconds(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()
