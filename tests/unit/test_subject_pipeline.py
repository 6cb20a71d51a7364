"""
Tests del pipeline por subject: una etapa fallida levanta el error de esa
etapa y nada se escribe.
"""
from unittest.mock import AsyncMock, MagicMock

import pytest

from fpl_sync.application.services.subject_pipeline import SubjectPipeline
from fpl_sync.domain.entities.records import EntryEventPick, PickItem
from fpl_sync.domain.entities.sync import IdempotencyPolicy, OutcomeStatus
from fpl_sync.shared.exceptions.sync import (
    ExistenceCheckError,
    FetchError,
    MappingError,
    PayloadValidationError,
    SyncStage,
    UpsertError,
)


def _pick(entry_id: int, event_id: int = 5) -> EntryEventPick:
    return EntryEventPick(
        entry_id=entry_id,
        event_id=event_id,
        picks=[PickItem(element=1, position=1, multiplier=1)],
    )


class FakeSource:
    """Fuente que devuelve payloads crudos (dicts) y los mapea a picks."""

    kind = "entry_event_pick"

    def __init__(self, raws=None, fetch_error=None):
        self.raws = raws if raws is not None else []
        self.fetch_error = fetch_error

    async def fetch(self, subject_id, secondary_key=None):
        if self.fetch_error is not None:
            raise self.fetch_error
        return self.raws

    def map(self, raw, subject_id, secondary_key=None):
        if raw.get("bad"):
            raise MappingError("payload invalido", subject_id=subject_id, secondary_key=secondary_key)
        return _pick(subject_id, secondary_key)


@pytest.fixture
def repository():
    repo = MagicMock()
    repo.find_existing = AsyncMock(return_value=None)
    repo.batch_upsert = AsyncMock(return_value=1)
    return repo


@pytest.mark.asyncio
async def test_success_writes_mapped_records(repository):
    pipeline = SubjectPipeline(FakeSource([{}]), repository, IdempotencyPolicy.SKIP_EXISTING)

    outcome = await pipeline.run(1, 5)

    assert outcome.status is OutcomeStatus.SUCCEEDED
    assert outcome.written == 1
    repository.batch_upsert.assert_awaited_once_with([_pick(1, 5)])


@pytest.mark.asyncio
async def test_empty_fetch_is_a_no_op(repository):
    pipeline = SubjectPipeline(FakeSource([]), repository, IdempotencyPolicy.SKIP_EXISTING)

    outcome = await pipeline.run(1, 5)

    assert outcome.status is OutcomeStatus.EMPTY
    repository.find_existing.assert_not_awaited()
    repository.batch_upsert.assert_not_awaited()


@pytest.mark.asyncio
async def test_existing_record_is_skipped(repository):
    repository.find_existing.return_value = _pick(1, 5)
    pipeline = SubjectPipeline(FakeSource([{}]), repository, IdempotencyPolicy.SKIP_EXISTING)

    outcome = await pipeline.run(1, 5)

    assert outcome.status is OutcomeStatus.SKIPPED_EXISTING
    repository.batch_upsert.assert_not_awaited()


@pytest.mark.asyncio
async def test_overwrite_policy_does_not_check_existence(repository):
    pipeline = SubjectPipeline(FakeSource([{}]), repository, IdempotencyPolicy.OVERWRITE_LAST_KNOWN)

    outcome = await pipeline.run(1, 5)

    assert outcome.status is OutcomeStatus.SUCCEEDED
    repository.find_existing.assert_not_awaited()


@pytest.mark.asyncio
async def test_fetch_sync_errors_propagate_unchanged(repository):
    error = PayloadValidationError("forma invalida", subject_id=1)
    pipeline = SubjectPipeline(FakeSource(fetch_error=error), repository, IdempotencyPolicy.SKIP_EXISTING)

    with pytest.raises(PayloadValidationError) as exc_info:
        await pipeline.run(1, 5)

    assert exc_info.value is error
    assert exc_info.value.stage is SyncStage.VALIDATION


@pytest.mark.asyncio
async def test_unexpected_fetch_error_becomes_fetch_error(repository):
    pipeline = SubjectPipeline(FakeSource(fetch_error=RuntimeError("boom")), repository, IdempotencyPolicy.SKIP_EXISTING)

    with pytest.raises(FetchError) as exc_info:
        await pipeline.run(1, 5)

    assert exc_info.value.subject_id == 1
    assert exc_info.value.secondary_key == 5


@pytest.mark.asyncio
async def test_existence_check_failure_aborts_before_write(repository):
    repository.find_existing.side_effect = RuntimeError("db caida")
    pipeline = SubjectPipeline(FakeSource([{}]), repository, IdempotencyPolicy.SKIP_EXISTING)

    with pytest.raises(ExistenceCheckError):
        await pipeline.run(1, 5)

    repository.batch_upsert.assert_not_awaited()


@pytest.mark.asyncio
async def test_partial_mapping_failures_are_counted(repository):
    pipeline = SubjectPipeline(FakeSource([{}, {"bad": True}]), repository, IdempotencyPolicy.SKIP_EXISTING)

    outcome = await pipeline.run(1, 5)

    assert outcome.status is OutcomeStatus.SUCCEEDED
    assert outcome.mapping_failures == 1
    repository.batch_upsert.assert_awaited_once_with([_pick(1, 5)])


@pytest.mark.asyncio
async def test_all_mapping_failures_raise_mapping_error(repository):
    pipeline = SubjectPipeline(FakeSource([{"bad": True}]), repository, IdempotencyPolicy.SKIP_EXISTING)

    with pytest.raises(MappingError):
        await pipeline.run(1, 5)

    repository.batch_upsert.assert_not_awaited()


@pytest.mark.asyncio
async def test_upsert_failure_raises_upsert_error(repository):
    repository.batch_upsert.side_effect = RuntimeError("constraint")
    pipeline = SubjectPipeline(FakeSource([{}]), repository, IdempotencyPolicy.SKIP_EXISTING)

    with pytest.raises(UpsertError) as exc_info:
        await pipeline.run(1, 5)

    assert exc_info.value.details["stage"] == "upsert"
