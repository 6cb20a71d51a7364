"""
Esquemas de los payloads crudos de la API de FPL.

Solo validan la forma de la respuesta (tipos y campos obligatorios); las
reglas semanticas viven en los mappers. Los campos extra se ignoran.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, TypeAdapter


class _FplPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)


class FplEvent(_FplPayload):
    id: int
    name: Optional[str] = None
    is_current: bool = False
    is_next: bool = False
    finished: bool = False


class BootstrapStaticResponse(_FplPayload):
    events: List[FplEvent]


class EntryResponse(_FplPayload):
    id: int
    name: str
    player_first_name: str
    player_last_name: str
    player_region_name: Optional[str] = None
    started_event: Optional[int] = None
    summary_overall_points: Optional[int] = None
    summary_overall_rank: Optional[int] = None
    last_deadline_bank: Optional[int] = None
    last_deadline_value: Optional[int] = None
    last_deadline_total_transfers: Optional[int] = None


class PickResponseItem(_FplPayload):
    element: int
    position: int
    multiplier: int
    is_captain: bool = False
    is_vice_captain: bool = False


class EntryHistoryResponse(_FplPayload):
    event: int
    points: Optional[int] = None
    event_transfers: int = 0
    event_transfers_cost: int = 0


class PicksResponse(_FplPayload):
    active_chip: Optional[str] = None
    entry_history: EntryHistoryResponse
    picks: List[PickResponseItem]


class TransferResponse(_FplPayload):
    element_in: int
    element_in_cost: int
    element_out: int
    element_out_cost: int
    entry: int
    event: int
    time: str


TransfersResponse = TypeAdapter(List[TransferResponse])
