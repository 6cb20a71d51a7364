"""
Tests del cliente FPL con httpx.MockTransport (sin red).
"""
import httpx
import pytest

from fpl_sync.infrastructure.external.fpl.fpl_client import FplClient
from fpl_sync.shared.exceptions.sync import FetchError, PayloadValidationError, SyncStage


BOOTSTRAP = {
    "events": [
        {"id": 4, "is_current": False, "finished": True},
        {"id": 5, "is_current": True},
        {"id": 6, "is_next": True},
    ],
    "elements": [],
}

ENTRY = {
    "id": 101,
    "name": "Team 101",
    "player_first_name": "Jane",
    "player_last_name": "Doe",
    "summary_overall_points": 120,
    "favourite_team": 3,
}


def _client(handler, max_retries: int = 2) -> FplClient:
    return FplClient(
        base_url="https://fpl.test/api",
        max_retries=max_retries,
        backoff_s=0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_get_entry_validates_payload():
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/entry/101/"
        return httpx.Response(200, json=ENTRY)

    client = _client(handler)
    entry = await client.get_entry(101)
    await client.close()

    assert entry.id == 101
    assert entry.summary_overall_points == 120


@pytest.mark.asyncio
async def test_not_found_means_no_data():
    client = _client(lambda request: httpx.Response(404, json={"detail": "Not found."}))

    assert await client.get_entry(101) is None
    assert await client.get_entry_picks(101, 5) is None
    assert await client.get_entry_transfers(101) == []
    await client.close()


@pytest.mark.asyncio
async def test_retries_server_errors_then_succeeds():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) < 3:
            return httpx.Response(503)
        return httpx.Response(200, json=ENTRY)

    client = _client(handler, max_retries=2)
    entry = await client.get_entry(101)
    await client.close()

    assert entry.id == 101
    assert len(calls) == 3


@pytest.mark.asyncio
async def test_gives_up_after_max_retries():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(429)

    client = _client(handler, max_retries=1)
    with pytest.raises(FetchError) as exc_info:
        await client.get_entry(101)
    await client.close()

    assert len(calls) == 2
    assert exc_info.value.subject_id == 101
    assert exc_info.value.details["status_code"] == 429


@pytest.mark.asyncio
async def test_transport_errors_are_retried_and_wrapped():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    client = _client(handler, max_retries=2)
    with pytest.raises(FetchError):
        await client.get_entry(101)
    await client.close()

    assert len(calls) == 3


@pytest.mark.asyncio
async def test_client_errors_are_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(403)

    client = _client(handler)
    with pytest.raises(FetchError):
        await client.get_entry(101)
    await client.close()

    assert len(calls) == 1


@pytest.mark.asyncio
async def test_malformed_payload_raises_validation_error():
    client = _client(lambda request: httpx.Response(200, json={"id": "abc"}))

    with pytest.raises(PayloadValidationError) as exc_info:
        await client.get_entry(101)
    await client.close()

    assert exc_info.value.stage is SyncStage.VALIDATION
    assert exc_info.value.details["errors"]


@pytest.mark.asyncio
async def test_non_json_body_raises_validation_error():
    client = _client(lambda request: httpx.Response(200, text="<html>maintenance</html>"))

    with pytest.raises(PayloadValidationError):
        await client.get_entry(101)
    await client.close()


@pytest.mark.asyncio
async def test_transfers_list_is_validated():
    transfers = [
        {
            "element_in": 1,
            "element_in_cost": 55,
            "element_out": 2,
            "element_out_cost": 60,
            "entry": 101,
            "event": 5,
            "time": "2024-09-14T10:30:00Z",
        }
    ]
    client = _client(lambda request: httpx.Response(200, json=transfers))

    result = await client.get_entry_transfers(101)
    await client.close()

    assert [t.element_in for t in result] == [1]


@pytest.mark.asyncio
async def test_bootstrap_is_fetched_once_per_client():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json=BOOTSTRAP)

    client = _client(handler)
    assert await client.get_current_event() == 5
    assert await client.get_current_event() == 5
    await client.close()

    assert calls == ["/api/bootstrap-static/"]


@pytest.mark.asyncio
async def test_current_event_none_in_preseason():
    bootstrap = {"events": [{"id": 1, "is_next": True}]}
    client = _client(lambda request: httpx.Response(200, json=bootstrap))

    assert await client.get_current_event() is None
    await client.close()
