"""
Mapeo payload FPL -> registro canonico.

Funciones puras que fallan cerrado: cualquier componente de la clave
natural ausente, inconsistente o invalido levanta MappingError para ese
payload, sin valores por defecto.
"""
from __future__ import annotations

from pydantic import ValidationError

from fpl_sync.domain.entities.records import (
    EntryEventPick,
    EntryEventTransfer,
    EntryInfo,
    PickItem,
)
from fpl_sync.infrastructure.external.fpl.schemas import (
    EntryResponse,
    PicksResponse,
    TransferResponse,
)
from fpl_sync.shared.exceptions.sync import MappingError
from fpl_sync.shared.utils.datetime_utils import parse_iso_datetime


def _build(record_type, values: dict, subject_id: int, secondary_key=None):
    try:
        return record_type.model_validate(values)
    except ValidationError as e:
        raise MappingError(
            f"{record_type.__name__} invalido: {e.error_count()} errores",
            subject_id=subject_id,
            secondary_key=secondary_key,
            details={"errors": e.errors(include_url=False, include_context=False, include_input=False)[:5]},
        ) from e


def map_entry_info(raw: EntryResponse, subject_id: int) -> EntryInfo:
    if raw.id != subject_id:
        raise MappingError(
            f"El payload corresponde al entry {raw.id}, no a {subject_id}",
            subject_id=subject_id,
        )
    entry_name = raw.name.strip()
    if not entry_name:
        raise MappingError("Entry sin nombre", subject_id=subject_id)

    return _build(
        EntryInfo,
        {
            "entry_id": raw.id,
            "entry_name": entry_name,
            "player_name": f"{raw.player_first_name} {raw.player_last_name}".strip(),
            "region": raw.player_region_name,
            "started_event": raw.started_event,
            "overall_points": raw.summary_overall_points,
            "overall_rank": raw.summary_overall_rank,
            "bank": raw.last_deadline_bank,
            "team_value": raw.last_deadline_value,
            "total_transfers": raw.last_deadline_total_transfers,
            "used_entry_names": [entry_name],
        },
        subject_id,
    )


def map_entry_event_pick(raw: PicksResponse, subject_id: int, event_id: int) -> EntryEventPick:
    if raw.entry_history.event != event_id:
        raise MappingError(
            f"Picks del evento {raw.entry_history.event}, se pidio {event_id}",
            subject_id=subject_id,
            secondary_key=event_id,
        )
    if not raw.picks:
        raise MappingError("Respuesta de picks sin jugadores", subject_id=subject_id, secondary_key=event_id)

    return _build(
        EntryEventPick,
        {
            "entry_id": subject_id,
            "event_id": event_id,
            "chip": raw.active_chip,
            "picks": [
                PickItem(
                    element=p.element,
                    position=p.position,
                    multiplier=p.multiplier,
                    is_captain=p.is_captain,
                    is_vice_captain=p.is_vice_captain,
                )
                for p in sorted(raw.picks, key=lambda p: p.position)
            ],
            "points": raw.entry_history.points,
            "transfers": raw.entry_history.event_transfers,
            "transfers_cost": raw.entry_history.event_transfers_cost,
        },
        subject_id,
        event_id,
    )


def map_entry_event_transfer(raw: TransferResponse, subject_id: int, event_id: int) -> EntryEventTransfer:
    if raw.entry != subject_id or raw.event != event_id:
        raise MappingError(
            f"Transfer de ({raw.entry}, {raw.event}), se esperaba ({subject_id}, {event_id})",
            subject_id=subject_id,
            secondary_key=event_id,
        )
    transfer_time = parse_iso_datetime(raw.time)
    if transfer_time is None:
        raise MappingError(
            f"Fecha de transfer invalida: {raw.time!r}",
            subject_id=subject_id,
            secondary_key=event_id,
        )

    return _build(
        EntryEventTransfer,
        {
            "entry_id": subject_id,
            "event_id": event_id,
            "element_in_id": raw.element_in,
            "element_in_cost": raw.element_in_cost,
            "element_out_id": raw.element_out,
            "element_out_cost": raw.element_out_cost,
            "transfer_time": transfer_time,
        },
        subject_id,
        event_id,
    )
