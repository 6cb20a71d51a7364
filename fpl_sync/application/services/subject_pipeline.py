"""
Pipeline de sincronizacion de un subject.

Etapas estrictamente secuenciales:
fetch -> (vacio: no-op) -> existence check -> (existe: skip) -> map -> batch upsert

Cada fallo se levanta como el SyncError de su etapa; el orquestador lo
captura en el borde del subject.
"""
from __future__ import annotations

from typing import Generic, List, Optional, Sequence, Tuple, TypeVar

from loguru import logger

from fpl_sync.application.interfaces.upstream_client import RecordSource
from fpl_sync.domain.entities.records import CanonicalRecord
from fpl_sync.domain.entities.sync import IdempotencyPolicy, SubjectOutcome
from fpl_sync.domain.repositories.record_repository import IRecordRepository
from fpl_sync.shared.exceptions.sync import (
    ExistenceCheckError,
    FetchError,
    MappingError,
    SyncError,
    UpsertError,
)

R = TypeVar("R", bound=CanonicalRecord)


class SubjectPipeline(Generic[R]):
    """
    Ejecuta el pipeline de un tipo de entidad para un subject.

    La politica de idempotencia decide si el existence check es una guarda:
    con SKIP_EXISTING un registro existente termina el pipeline sin escribir;
    con OVERWRITE_LAST_KNOWN el conflicto lo resuelve el batch upsert.
    """

    def __init__(
        self,
        source: RecordSource,
        repository: IRecordRepository[R],
        policy: IdempotencyPolicy,
    ) -> None:
        self._source = source
        self._repository = repository
        self._policy = policy

    @property
    def kind(self) -> str:
        return self._source.kind

    async def run(self, subject_id: int, secondary_key: Optional[int] = None) -> SubjectOutcome:
        context = {"subject_id": subject_id, "secondary_key": secondary_key}

        raws = await self._fetch(subject_id, secondary_key)
        if not raws:
            logger.debug(f"[{self.kind}] Sin datos upstream para {subject_id} (evento {secondary_key})")
            return SubjectOutcome.empty(subject_id, secondary_key)

        if self._policy is IdempotencyPolicy.SKIP_EXISTING:
            try:
                existing = await self._repository.find_existing(subject_id, secondary_key)
            except Exception as e:
                raise ExistenceCheckError(
                    f"No se pudo verificar existencia: {e}", **context
                ) from e
            if existing is not None:
                return SubjectOutcome.skipped(subject_id, secondary_key)

        records, mapping_failures = self._map_all(raws, subject_id, secondary_key)
        if not records:
            raise MappingError(
                f"Ningun registro mapeable ({mapping_failures} fallidos)", **context
            )

        try:
            written = await self._repository.batch_upsert(records)
        except Exception as e:
            raise UpsertError(f"Batch upsert fallido: {e}", **context) from e

        return SubjectOutcome.succeeded(subject_id, secondary_key, written, mapping_failures)

    async def _fetch(self, subject_id: int, secondary_key: Optional[int]) -> Sequence:
        try:
            return await self._source.fetch(subject_id, secondary_key)
        except SyncError:
            raise
        except Exception as e:
            raise FetchError(
                f"Error inesperado consultando upstream: {e}",
                subject_id=subject_id,
                secondary_key=secondary_key,
            ) from e

    def _map_all(self, raws: Sequence, subject_id: int, secondary_key: Optional[int]) -> Tuple[List[R], int]:
        """Mapea cada payload por separado; un fallo no afecta a los hermanos."""
        records: List[R] = []
        failures = 0
        for raw in raws:
            try:
                records.append(self._source.map(raw, subject_id, secondary_key))
            except MappingError as e:
                failures += 1
                logger.bind(
                    kind=self.kind,
                    subject_id=subject_id,
                    secondary_key=secondary_key,
                    stage=e.stage.value,
                ).warning(f"[{self.kind}] Registro descartado para {subject_id}: {e.message}")
        return records, failures
