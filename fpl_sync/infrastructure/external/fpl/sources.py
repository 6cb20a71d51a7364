"""
Fuentes de registros por tipo de entidad: combinan un endpoint del cliente
FPL con su mapper.
"""
from __future__ import annotations

from typing import Dict, List, Optional

from fpl_sync.application.interfaces.upstream_client import IFplClient
from fpl_sync.domain.entities.records import EntryEventPick, EntryEventTransfer, EntryInfo
from fpl_sync.infrastructure.external.fpl.mappers import (
    map_entry_event_pick,
    map_entry_event_transfer,
    map_entry_info,
)
from fpl_sync.infrastructure.external.fpl.schemas import (
    EntryResponse,
    PicksResponse,
    TransferResponse,
)
from fpl_sync.shared.exceptions.sync import FetchError


def _require_event(kind: str, subject_id: int, event_id: Optional[int]) -> int:
    if event_id is None:
        raise FetchError(f"{kind} requiere un evento", subject_id=subject_id)
    return event_id


class EntryInfoSource:
    kind = EntryInfo.kind

    def __init__(self, client: IFplClient) -> None:
        self._client = client

    async def fetch(self, subject_id: int, secondary_key: Optional[int] = None) -> List[EntryResponse]:
        entry = await self._client.get_entry(subject_id)
        return [entry] if entry is not None else []

    def map(self, raw: EntryResponse, subject_id: int, secondary_key: Optional[int] = None) -> EntryInfo:
        return map_entry_info(raw, subject_id)


class EntryEventPickSource:
    kind = EntryEventPick.kind

    def __init__(self, client: IFplClient) -> None:
        self._client = client

    async def fetch(self, subject_id: int, secondary_key: Optional[int] = None) -> List[PicksResponse]:
        event_id = _require_event(self.kind, subject_id, secondary_key)
        picks = await self._client.get_entry_picks(subject_id, event_id)
        return [picks] if picks is not None else []

    def map(self, raw: PicksResponse, subject_id: int, secondary_key: Optional[int] = None) -> EntryEventPick:
        return map_entry_event_pick(raw, subject_id, _require_event(self.kind, subject_id, secondary_key))


class EntryEventTransferSource:
    """El endpoint devuelve todo el historial; se filtra al evento pedido."""

    kind = EntryEventTransfer.kind

    def __init__(self, client: IFplClient) -> None:
        self._client = client

    async def fetch(self, subject_id: int, secondary_key: Optional[int] = None) -> List[TransferResponse]:
        event_id = _require_event(self.kind, subject_id, secondary_key)
        transfers = await self._client.get_entry_transfers(subject_id)
        return [t for t in transfers if t.event == event_id]

    def map(self, raw: TransferResponse, subject_id: int, secondary_key: Optional[int] = None) -> EntryEventTransfer:
        return map_entry_event_transfer(raw, subject_id, _require_event(self.kind, subject_id, secondary_key))


def build_sources(client: IFplClient) -> Dict[str, object]:
    """Una fuente por tipo de entidad, indexada por kind."""
    return {
        source.kind: source
        for source in (
            EntryInfoSource(client),
            EntryEventPickSource(client),
            EntryEventTransferSource(client),
        )
    }
