"""
Tests de integracion de los casos de uso de sync y lectura.

Usa el contenedor real (repositorios SQLite, cache en memoria, fuentes y
mappers FPL) con un cliente FPL falso.
"""
from unittest.mock import AsyncMock

import pytest

from fpl_sync.core.config import Settings
from fpl_sync.infrastructure.container import build_container
from fpl_sync.infrastructure.external.fpl.schemas import EntryResponse, PicksResponse, TransferResponse
from fpl_sync.shared.exceptions.domain import (
    EventNotResolvedException,
    UnknownEntityKindException,
    ValidationException,
)
from fpl_sync.shared.exceptions.sync import EnumerationError, FetchError, RepositoryError


def _entry(entry_id: int, name: str = "Team", points: int = 100) -> EntryResponse:
    return EntryResponse(
        id=entry_id,
        name=f"{name} {entry_id}",
        player_first_name="Jane",
        player_last_name="Doe",
        summary_overall_points=points,
        summary_overall_rank=5000,
    )


def _picks(event_id: int, points: int = 60) -> PicksResponse:
    return PicksResponse.model_validate(
        {
            "active_chip": None,
            "entry_history": {"event": event_id, "points": points, "event_transfers": 1, "event_transfers_cost": 0},
            "picks": [
                {"element": 11, "position": 2, "multiplier": 1},
                {"element": 10, "position": 1, "multiplier": 2, "is_captain": True},
            ],
        }
    )


def _transfer(entry_id: int, event_id: int, element_in: int) -> TransferResponse:
    return TransferResponse(
        element_in=element_in,
        element_in_cost=55,
        element_out=300,
        element_out_cost=60,
        entry=entry_id,
        event=event_id,
        time="2024-09-14T10:30:00Z",
    )


class FakeFplClient:
    """Cliente FPL en memoria. Un valor Exception se levanta en vez de devolverse."""

    def __init__(self):
        self.current_event = 5
        self.entries = {}
        self.picks = {}
        self.transfers = {}
        self.closed = False

    @staticmethod
    def _value(value):
        if isinstance(value, Exception):
            raise value
        return value

    async def get_bootstrap(self):
        return None

    async def get_current_event(self):
        return self.current_event

    async def get_entry(self, entry_id):
        return self._value(self.entries.get(entry_id))

    async def get_entry_picks(self, entry_id, event_id):
        return self._value(self.picks.get((entry_id, event_id)))

    async def get_entry_transfers(self, entry_id):
        return self._value(self.transfers.get(entry_id, []))

    async def close(self):
        self.closed = True


@pytest.fixture
def fpl_client():
    return FakeFplClient()


@pytest.fixture
def container(session_factory, memory_store, fpl_client):
    settings = Settings(CACHE_SEASON="2425", CACHE_TTL_SECONDS=60, UPSERT_BATCH_SIZE=2)
    return build_container(
        settings,
        session_factory=session_factory,
        cache_store=memory_store,
        fpl_client=fpl_client,
    )


async def _seed_entries(container, fpl_client, ids=(101, 303)):
    for entry_id in ids:
        fpl_client.entries[entry_id] = _entry(entry_id)
    await container.sync_use_cases.sync_entry_infos(list(ids))


@pytest.mark.asyncio
async def test_failed_entry_does_not_block_the_rest(container, fpl_client):
    fpl_client.entries = {
        101: _entry(101),
        202: FetchError("timeout", subject_id=202),
        303: _entry(303),
    }

    result = await container.sync_use_cases.sync_entry_infos([101, 202, 303])

    assert (result.attempted, result.succeeded, result.failed) == (3, 2, 1)
    assert result.failures_by_stage == {"fetch": 1}
    infos = await container.read_use_cases.get_entry_infos()
    assert [i.entry_id for i in infos] == [101, 303]


@pytest.mark.asyncio
async def test_sync_populates_cache_for_readers(container, fpl_client, memory_store):
    await _seed_entries(container, fpl_client)
    fpl_client.picks = {(101, 5): _picks(5), (303, 5): _picks(5, points=70)}

    result = await container.sync_use_cases.sync_entry_event_picks()

    assert result.secondary_key == 5
    assert result.succeeded == 2
    assert await memory_store.get_all("entry_event_pick::2425::5") is not None
    picks = await container.read_use_cases.get_entry_event_picks(5)
    assert [(p.entry_id, p.points) for p in picks] == [(101, 60), (303, 70)]
    assert [item.position for item in picks[0].picks] == [1, 2]


@pytest.mark.asyncio
async def test_existing_event_picks_are_not_rewritten(container, fpl_client):
    await _seed_entries(container, fpl_client, ids=(101,))
    fpl_client.picks = {(101, 5): _picks(5, points=60)}
    await container.sync_use_cases.sync_entry_event_picks(5)

    fpl_client.picks = {(101, 5): _picks(5, points=99)}
    result = await container.sync_use_cases.sync_entry_event_picks(5)

    assert result.skipped_existing == 1
    assert result.records_written == 0
    picks = await container.read_use_cases.get_entry_event_picks(5)
    assert [p.points for p in picks] == [60]


@pytest.mark.asyncio
async def test_missing_upstream_data_is_a_no_op(container, fpl_client):
    await _seed_entries(container, fpl_client, ids=(101,))

    result = await container.sync_use_cases.sync_entry_event_picks(5)

    assert result.empty == 1
    assert result.failed == 0
    assert await container.read_use_cases.get_entry_event_picks(5) == []


@pytest.mark.asyncio
async def test_transfers_are_filtered_to_the_event(container, fpl_client):
    await _seed_entries(container, fpl_client, ids=(101,))
    fpl_client.transfers = {101: [_transfer(101, 4, 1), _transfer(101, 5, 2), _transfer(101, 5, 3)]}

    result = await container.sync_use_cases.sync_entry_event_transfers(5)

    assert result.records_written == 2
    transfers = await container.read_use_cases.get_entry_event_transfers(5)
    assert [t.element_in_id for t in transfers] == [2, 3]


@pytest.mark.asyncio
async def test_entry_info_resync_keeps_last_known_values(container, fpl_client):
    fpl_client.entries = {101: _entry(101, "Old", points=100)}
    await container.sync_use_cases.sync_entry_infos([101])

    fpl_client.entries = {101: _entry(101, "New", points=150)}
    await container.sync_use_cases.sync_entry_infos([101])

    [info] = await container.read_use_cases.get_entry_infos()
    assert info.entry_name == "New 101"
    assert info.last_entry_name == "Old 101"
    assert info.last_overall_points == 100
    assert info.used_entry_names == ["Old 101", "New 101"]


@pytest.mark.asyncio
async def test_refresh_replaces_existing_event_rows(container, fpl_client):
    await _seed_entries(container, fpl_client)
    fpl_client.picks = {(101, 5): _picks(5, 60), (303, 5): _picks(5, 70)}
    await container.sync_use_cases.sync_entry_event_picks(5)

    fpl_client.picks = {(101, 5): _picks(5, 61), (303, 5): _picks(5, 71)}
    result = await container.sync_use_cases.refresh("entry_event_pick", event_id=5)

    assert result.succeeded == 2
    picks = await container.read_use_cases.get_entry_event_picks(5)
    assert [p.points for p in picks] == [61, 71]


@pytest.mark.asyncio
async def test_refresh_with_explicit_entries_only_touches_those(container, fpl_client):
    await _seed_entries(container, fpl_client)
    fpl_client.picks = {(101, 5): _picks(5, 60), (303, 5): _picks(5, 70)}
    await container.sync_use_cases.sync_entry_event_picks(5)

    fpl_client.picks = {(101, 5): _picks(5, 61), (303, 5): _picks(5, 71)}
    await container.sync_use_cases.refresh("entry_event_pick", event_id=5, subject_ids=[303])

    picks = await container.read_use_cases.get_entry_event_picks(5)
    assert [p.points for p in picks] == [60, 71]


@pytest.mark.asyncio
async def test_refresh_entry_info_enumerates_before_deleting(container, fpl_client):
    await _seed_entries(container, fpl_client)

    result = await container.sync_use_cases.refresh("entry_info")

    assert result.attempted == 2
    assert [i.entry_id for i in await container.read_use_cases.get_entry_infos()] == [101, 303]


@pytest.mark.asyncio
async def test_refresh_invalidates_cache_when_delete_fails(container, fpl_client):
    await _seed_entries(container, fpl_client)
    fpl_client.picks = {(101, 5): _picks(5, 60), (303, 5): _picks(5, 70)}
    await container.sync_use_cases.sync_entry_event_picks(5)
    assert len(await container.read_use_cases.get_entry_event_picks(5)) == 2

    repo = container.bindings["entry_event_pick"].repository
    real_delete = repo.delete_by_subject

    async def delete_first_then_fail(subject_ids, secondary_key=None):
        await real_delete(list(subject_ids)[0], secondary_key)
        raise RepositoryError("db caida")

    repo.delete_by_subjects = AsyncMock(side_effect=delete_first_then_fail)

    with pytest.raises(RepositoryError):
        await container.sync_use_cases.refresh("entry_event_pick", event_id=5, subject_ids=[101, 303])

    cached = await container.read_use_cases.get_entry_event_picks(5)
    stored = await repo.find_by_secondary(5)
    assert [(p.entry_id, p.points) for p in cached] == [(p.entry_id, p.points) for p in stored]
    assert [(p.entry_id, p.points) for p in cached] == [(303, 70)]


@pytest.mark.asyncio
async def test_transfer_resync_with_unchanged_upstream_keeps_rows(container, fpl_client):
    await _seed_entries(container, fpl_client, ids=(101,))
    fpl_client.transfers = {101: [_transfer(101, 5, 2), _transfer(101, 5, 3)]}
    repo = container.bindings["entry_event_transfer"].repository

    first = await container.sync_use_cases.sync_entry_event_transfers(5)
    rows_before = await repo.find_by_secondary(5)

    second = await container.sync_use_cases.sync_entry_event_transfers(5)
    rows_after = await repo.find_by_secondary(5)

    assert first.records_written == 2
    assert second.skipped_existing == 1
    assert second.records_written == 0
    assert len(rows_after) == 2
    assert rows_after == rows_before
    assert await container.read_use_cases.get_entry_event_transfers(5) == rows_after


@pytest.mark.asyncio
async def test_write_through_failure_invalidates_the_key(container, fpl_client, memory_store):
    await _seed_entries(container, fpl_client, ids=(101,))
    # Entrada previa en cache para el evento
    await container.read_use_cases.get_entry_event_picks(5)
    assert await memory_store.get_all("entry_event_pick::2425::5") is not None

    repo = container.bindings["entry_event_pick"].repository
    repo.find_by_secondary = AsyncMock(side_effect=RepositoryError("db caida"))
    fpl_client.picks = {(101, 5): _picks(5)}

    result = await container.sync_use_cases.sync_entry_event_picks(5)

    assert result.succeeded == 1
    assert await memory_store.get_all("entry_event_pick::2425::5") is None


@pytest.mark.asyncio
async def test_event_must_be_resolvable(container, fpl_client):
    fpl_client.current_event = None

    with pytest.raises(EventNotResolvedException):
        await container.sync_use_cases.sync_entry_event_picks()


@pytest.mark.asyncio
async def test_enumeration_failure_aborts_the_run(container, fpl_client):
    repo = container.bindings["entry_info"].repository
    repo.list_subject_ids = AsyncMock(side_effect=RepositoryError("db caida"))

    with pytest.raises(EnumerationError):
        await container.sync_use_cases.sync_entry_event_picks(5)


@pytest.mark.asyncio
async def test_unknown_kind_is_rejected(container):
    with pytest.raises(UnknownEntityKindException):
        await container.sync_use_cases.sync("chips")
    with pytest.raises(UnknownEntityKindException):
        await container.read_use_cases.get("chips")


@pytest.mark.asyncio
async def test_per_event_read_requires_event(container):
    with pytest.raises(ValidationException):
        await container.read_use_cases.get("entry_event_pick")


@pytest.mark.asyncio
async def test_container_close_releases_resources(container, fpl_client, memory_store):
    await memory_store.set_all("k", {"a": "1"}, 60)

    await container.close()

    assert fpl_client.closed
    assert len(memory_store) == 0
