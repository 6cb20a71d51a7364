"""
Contratos del lado upstream del pipeline: cliente FPL, fuente de registros
crudos y mapper a registros canonicos.
"""
from __future__ import annotations

from typing import Any, List, Optional, Protocol, Sequence, TypeVar

from fpl_sync.domain.entities.records import CanonicalRecord

RawT = TypeVar("RawT")
R = TypeVar("R", bound=CanonicalRecord)


class IFplClient(Protocol):
    """Cliente HTTP de la API de FPL."""

    async def get_bootstrap(self) -> Any:
        ...

    async def get_current_event(self) -> Optional[int]:
        ...

    async def get_entry(self, entry_id: int) -> Any:
        ...

    async def get_entry_picks(self, entry_id: int, event_id: int) -> Any:
        ...

    async def get_entry_transfers(self, entry_id: int) -> List[Any]:
        ...

    async def close(self) -> None:
        ...


class RecordSource(Protocol[RawT, R]):
    """
    Fuente de registros de un tipo de entidad.

    fetch devuelve payloads crudos ya validados en forma (FetchError /
    PayloadValidationError si no); map los transforma en registros canonicos
    de a uno, levantando MappingError sin valores por defecto.
    """

    kind: str

    async def fetch(self, subject_id: int, secondary_key: Optional[int] = None) -> Sequence[RawT]:
        ...

    def map(self, raw: RawT, subject_id: int, secondary_key: Optional[int] = None) -> R:
        ...
