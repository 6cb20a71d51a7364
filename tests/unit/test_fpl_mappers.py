"""
Tests de los mappers FPL: fallan cerrado ante claves ausentes o inconsistentes.
"""
from datetime import datetime, timezone

import pytest

from fpl_sync.infrastructure.external.fpl.mappers import (
    map_entry_event_pick,
    map_entry_event_transfer,
    map_entry_info,
)
from fpl_sync.infrastructure.external.fpl.schemas import EntryResponse, PicksResponse, TransferResponse
from fpl_sync.shared.exceptions.sync import MappingError


def _entry(**overrides) -> EntryResponse:
    data = {
        "id": 101,
        "name": "  Team 101 ",
        "player_first_name": "Jane",
        "player_last_name": "Doe",
        "player_region_name": "England",
        "last_deadline_bank": 5,
        "last_deadline_value": 1002,
    }
    data.update(overrides)
    return EntryResponse.model_validate(data)


def _picks(event: int = 5, picks=None) -> PicksResponse:
    return PicksResponse.model_validate(
        {
            "active_chip": "bboost",
            "entry_history": {"event": event, "points": 80, "event_transfers": 2, "event_transfers_cost": 4},
            "picks": picks if picks is not None else [
                {"element": 20, "position": 2, "multiplier": 1, "is_vice_captain": True},
                {"element": 10, "position": 1, "multiplier": 2, "is_captain": True},
            ],
        }
    )


def _transfer(**overrides) -> TransferResponse:
    data = {
        "element_in": 1,
        "element_in_cost": 55,
        "element_out": 2,
        "element_out_cost": 60,
        "entry": 101,
        "event": 5,
        "time": "2024-09-14T10:30:00Z",
    }
    data.update(overrides)
    return TransferResponse.model_validate(data)


def test_map_entry_info():
    info = map_entry_info(_entry(), 101)

    assert info.entry_name == "Team 101"
    assert info.player_name == "Jane Doe"
    assert info.region == "England"
    assert info.bank == 5
    assert info.team_value == 1002
    assert info.used_entry_names == ["Team 101"]


def test_map_entry_info_rejects_other_entry():
    with pytest.raises(MappingError):
        map_entry_info(_entry(id=999), 101)


def test_map_entry_info_rejects_blank_name():
    with pytest.raises(MappingError):
        map_entry_info(_entry(name="   "), 101)


def test_map_entry_event_pick_orders_by_position():
    pick = map_entry_event_pick(_picks(), 101, 5)

    assert pick.chip == "bboost"
    assert pick.transfers == 2
    assert pick.transfers_cost == 4
    assert [p.element for p in pick.picks] == [10, 20]
    assert pick.picks[0].is_captain


def test_map_entry_event_pick_rejects_other_event():
    with pytest.raises(MappingError) as exc_info:
        map_entry_event_pick(_picks(event=4), 101, 5)
    assert exc_info.value.secondary_key == 5


def test_map_entry_event_pick_rejects_empty_team():
    with pytest.raises(MappingError):
        map_entry_event_pick(_picks(picks=[]), 101, 5)


def test_map_entry_event_transfer():
    transfer = map_entry_event_transfer(_transfer(), 101, 5)

    assert transfer.element_in_id == 1
    assert transfer.element_out_id == 2
    assert transfer.transfer_time == datetime(2024, 9, 14, 10, 30, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "overrides",
    [{"entry": 202}, {"event": 6}, {"time": "yesterday"}],
    ids=["other-entry", "other-event", "bad-time"],
)
def test_map_entry_event_transfer_fails_closed(overrides):
    with pytest.raises(MappingError):
        map_entry_event_transfer(_transfer(**overrides), 101, 5)


def test_invalid_canonical_values_raise_mapping_error():
    # entry_id debe ser positivo en el registro canonico
    with pytest.raises(MappingError):
        map_entry_info(_entry(id=0), 0)
