"""
Registros canonicos sincronizados desde la API de FPL.

Cada tipo de registro declara su clave natural (subject + clave secundaria
opcional) y su politica de idempotencia. Los registros son inmutables: una
vez mapeados solo se persisten o se serializan al cache.
"""
from __future__ import annotations

from datetime import datetime
from typing import Any, ClassVar, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from fpl_sync.domain.entities.sync import IdempotencyPolicy
from fpl_sync.shared.utils.datetime_utils import ensure_utc


def _key_token(value: Any) -> str:
    if isinstance(value, datetime):
        return ensure_utc(value).strftime("%Y%m%dT%H%M%SZ")
    return str(value)


class CanonicalRecord(BaseModel):
    """
    Base de los registros canonicos.

    Atributos de clase:
    - kind: nombre del tipo de entidad (prefijo de la clave de cache)
    - subject_field: campo que identifica al subject (entry)
    - secondary_field: campo de la clave secundaria (evento) o None
    - conflict_fields: columnas de la restriccion unica en el repositorio
    - idempotency_policy: que hacer ante un conflicto de clave natural
    """

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[str] = ""
    subject_field: ClassVar[str] = "entry_id"
    secondary_field: ClassVar[Optional[str]] = None
    conflict_fields: ClassVar[Tuple[str, ...]] = ("entry_id",)
    idempotency_policy: ClassVar[IdempotencyPolicy] = IdempotencyPolicy.SKIP_EXISTING

    @property
    def subject_id(self) -> int:
        return getattr(self, self.subject_field)

    @property
    def secondary_key(self) -> Optional[int]:
        if self.secondary_field is None:
            return None
        return getattr(self, self.secondary_field)

    def conflict_key(self) -> Tuple[Any, ...]:
        """Valores de la restriccion unica, en orden."""
        return tuple(getattr(self, name) for name in self.conflict_fields)

    def cache_field(self) -> str:
        """Nombre del campo del hash de cache para este registro."""
        return ":".join(_key_token(value) for value in self.conflict_key())

    def carry_over(self, previous: "CanonicalRecord") -> "CanonicalRecord":
        """
        Combina este registro con la version ya persistida.

        Solo aplica a entidades con politica OVERWRITE_LAST_KNOWN; por
        defecto el registro nuevo reemplaza al anterior tal cual.
        """
        return self


class EntryInfo(CanonicalRecord):
    """Snapshot de un equipo (entry) de FPL."""

    kind: ClassVar[str] = "entry_info"
    conflict_fields: ClassVar[Tuple[str, ...]] = ("entry_id",)
    idempotency_policy: ClassVar[IdempotencyPolicy] = IdempotencyPolicy.OVERWRITE_LAST_KNOWN

    entry_id: int = Field(gt=0)
    entry_name: str
    player_name: str
    region: Optional[str] = None
    started_event: Optional[int] = None
    overall_points: Optional[int] = None
    overall_rank: Optional[int] = None
    bank: Optional[int] = None
    team_value: Optional[int] = None
    total_transfers: Optional[int] = None

    # Ultimo valor conocido antes de la sincronizacion actual
    last_entry_name: Optional[str] = None
    last_overall_points: Optional[int] = None
    last_overall_rank: Optional[int] = None
    last_team_value: Optional[int] = None
    used_entry_names: List[str] = Field(default_factory=list)

    def carry_over(self, previous: "CanonicalRecord") -> "EntryInfo":
        """
        Desplaza los valores actuales del registro persistido a los campos last_*.

        used_entry_names acumula todos los nombres vistos, sin duplicados y en
        orden de aparicion.
        """
        if not isinstance(previous, EntryInfo):
            return self

        names = list(previous.used_entry_names)
        for name in (previous.entry_name, self.entry_name):
            if name and name not in names:
                names.append(name)

        return self.model_copy(
            update={
                "last_entry_name": previous.entry_name,
                "last_overall_points": previous.overall_points,
                "last_overall_rank": previous.overall_rank,
                "last_team_value": previous.team_value,
                "used_entry_names": names,
            }
        )


class PickItem(BaseModel):
    """Un jugador dentro del equipo elegido para un evento."""

    model_config = ConfigDict(frozen=True)

    element: int
    position: int
    multiplier: int
    is_captain: bool = False
    is_vice_captain: bool = False


class EntryEventPick(CanonicalRecord):
    """Equipo elegido por un entry para un evento (gameweek). Append-only."""

    kind: ClassVar[str] = "entry_event_pick"
    secondary_field: ClassVar[Optional[str]] = "event_id"
    conflict_fields: ClassVar[Tuple[str, ...]] = ("entry_id", "event_id")

    entry_id: int = Field(gt=0)
    event_id: int = Field(gt=0)
    chip: Optional[str] = None
    picks: List[PickItem]
    points: Optional[int] = None
    transfers: int = 0
    transfers_cost: int = 0


class EntryEventTransfer(CanonicalRecord):
    """Transferencia realizada por un entry en un evento. Append-only."""

    kind: ClassVar[str] = "entry_event_transfer"
    secondary_field: ClassVar[Optional[str]] = "event_id"
    conflict_fields: ClassVar[Tuple[str, ...]] = (
        "entry_id",
        "event_id",
        "element_in_id",
        "element_out_id",
        "transfer_time",
    )

    entry_id: int = Field(gt=0)
    event_id: int = Field(gt=0)
    element_in_id: int
    element_in_cost: int
    element_out_id: int
    element_out_cost: int
    transfer_time: datetime

    @field_validator("transfer_time")
    @classmethod
    def transfer_time_utc(cls, v: datetime) -> datetime:
        return ensure_utc(v)


RECORD_TYPES = {
    record_type.kind: record_type
    for record_type in (EntryInfo, EntryEventPick, EntryEventTransfer)
}
