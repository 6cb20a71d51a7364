"""
Descripcion de cada tipo de entidad para el repositorio SQL generico:
modelo ORM, registro canonico y columnas de la clave natural.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Generic, Optional, Tuple, Type, TypeVar

from fpl_sync.domain.entities.records import (
    CanonicalRecord,
    EntryEventPick,
    EntryEventTransfer,
    EntryInfo,
)
from fpl_sync.domain.entities.sync import IdempotencyPolicy
from fpl_sync.infrastructure.database.models import (
    EntryEventPickModel,
    EntryEventTransferModel,
    EntryInfoModel,
)

R = TypeVar("R", bound=CanonicalRecord)


@dataclass(frozen=True)
class EntitySpec(Generic[R]):
    """
    Mapeo registro canonico <-> fila.

    - record_type: clase del registro (define clave natural y politica)
    - model: modelo ORM con una restriccion unica sobre conflict_columns
    """

    record_type: Type[R]
    model: Any

    @property
    def kind(self) -> str:
        return self.record_type.kind

    @property
    def policy(self) -> IdempotencyPolicy:
        return self.record_type.idempotency_policy

    @property
    def conflict_columns(self) -> Tuple[str, ...]:
        return self.record_type.conflict_fields

    @property
    def subject_column(self) -> str:
        return self.record_type.subject_field

    @property
    def secondary_column(self) -> Optional[str]:
        return self.record_type.secondary_field

    @property
    def record_columns(self) -> Tuple[str, ...]:
        return tuple(self.record_type.model_fields.keys())

    def column(self, name: str):
        return getattr(self.model, name)

    def to_row(self, record: R) -> Dict[str, Any]:
        # Modo python: conserva datetime; los modelos anidados quedan como dict (JSON)
        return record.model_dump()

    def from_row(self, row: Any) -> R:
        return self.record_type.model_validate(
            {name: getattr(row, name) for name in self.record_columns}
        )


ENTRY_INFO_SPEC = EntitySpec(record_type=EntryInfo, model=EntryInfoModel)
ENTRY_EVENT_PICK_SPEC = EntitySpec(record_type=EntryEventPick, model=EntryEventPickModel)
ENTRY_EVENT_TRANSFER_SPEC = EntitySpec(record_type=EntryEventTransfer, model=EntryEventTransferModel)

ENTITY_SPECS: Dict[str, EntitySpec] = {
    spec.kind: spec
    for spec in (ENTRY_INFO_SPEC, ENTRY_EVENT_PICK_SPEC, ENTRY_EVENT_TRANSFER_SPEC)
}
