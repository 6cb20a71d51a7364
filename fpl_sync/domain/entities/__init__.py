"""
Entidades del dominio.
"""
from fpl_sync.domain.entities.sync import (
    IdempotencyPolicy,
    OutcomeStatus,
    SubjectOutcome,
    SyncBatchResult
)
from fpl_sync.domain.entities.records import (
    CanonicalRecord,
    EntryInfo,
    EntryEventPick,
    EntryEventTransfer,
    PickItem,
    RECORD_TYPES
)

__all__ = [
    "IdempotencyPolicy",
    "OutcomeStatus",
    "SubjectOutcome",
    "SyncBatchResult",
    "CanonicalRecord",
    "EntryInfo",
    "EntryEventPick",
    "EntryEventTransfer",
    "PickItem",
    "RECORD_TYPES"
]
