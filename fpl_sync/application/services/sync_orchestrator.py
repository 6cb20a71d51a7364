"""
Orquestador de sincronizacion con fan-out por subject.

- Enumera los subjects (unico error fatal: EnumerationError)
- Lanza una tarea por subject, todas a la vez, y espera el conjunto completo
- Cada error de un subject se registra con su contexto y se convierte en un
  SubjectOutcome; nunca aborta a los demas subjects
- Agrega los resultados en un SyncBatchResult

Por defecto no hay tope de concurrencia. max_concurrency > 0 activa un
semaforo (opt-in via SYNC_MAX_CONCURRENCY).
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, List, Optional, Sequence

from loguru import logger

from fpl_sync.domain.entities.sync import SubjectOutcome, SyncBatchResult
from fpl_sync.shared.exceptions.sync import EnumerationError, SyncError
from fpl_sync.shared.utils.datetime_utils import utc_now

SyncOne = Callable[[int], Awaitable[SubjectOutcome]]
SubjectSource = Callable[[], Awaitable[Sequence[int]]]

UNEXPECTED_STAGE = "unexpected"


class SyncOrchestrator:
    """
    Orquestador del fan-out para un tipo de entidad (y evento, si aplica).
    """

    def __init__(
        self,
        *,
        kind: str,
        sync_one: SyncOne,
        subject_source: SubjectSource,
        secondary_key: Optional[int] = None,
        max_concurrency: int = 0,
    ) -> None:
        self._kind = kind
        self._sync_one = sync_one
        self._subject_source = subject_source
        self._secondary_key = secondary_key
        self._max_concurrency = max_concurrency

    async def sync(self, subject_ids: Optional[Iterable[int]] = None) -> SyncBatchResult:
        """
        Ejecuta una corrida completa.

        Args:
            subject_ids: IDs explicitos; si es None se enumeran desde la fuente

        Returns:
            SyncBatchResult: Conteos agregados de la corrida

        Raises:
            EnumerationError: Si no se pudo obtener la lista de subjects
        """
        started_at = utc_now()
        ids = await self.enumerate_subjects(subject_ids)

        logger.info(
            f"[{self._kind}] Iniciando sync de {len(ids)} subjects"
            + (f" (evento {self._secondary_key})" if self._secondary_key is not None else "")
        )

        semaphore = asyncio.Semaphore(self._max_concurrency) if self._max_concurrency > 0 else None
        outcomes: List[SubjectOutcome] = await asyncio.gather(
            *(self._run_one(subject_id, semaphore) for subject_id in ids)
        )

        result = SyncBatchResult.from_outcomes(
            self._kind,
            outcomes,
            secondary_key=self._secondary_key,
            started_at=started_at,
        )
        self._log_summary(result)
        return result

    async def enumerate_subjects(self, subject_ids: Optional[Iterable[int]]) -> List[int]:
        if subject_ids is None:
            try:
                subject_ids = await self._subject_source()
            except EnumerationError:
                raise
            except Exception as e:
                logger.error(f"[{self._kind}] No se pudieron enumerar los subjects: {e}")
                raise EnumerationError(
                    f"No se pudieron enumerar los subjects de {self._kind}: {e}",
                    details={"kind": self._kind},
                ) from e
        # Sin duplicados, conservando el orden
        return list(dict.fromkeys(int(s) for s in subject_ids))

    async def _run_one(self, subject_id: int, semaphore: Optional[asyncio.Semaphore]) -> SubjectOutcome:
        if semaphore is None:
            return await self._guarded(subject_id)
        async with semaphore:
            return await self._guarded(subject_id)

    async def _guarded(self, subject_id: int) -> SubjectOutcome:
        """Borde de aislamiento de un subject."""
        try:
            return await self._sync_one(subject_id)
        except SyncError as e:
            logger.bind(
                kind=self._kind,
                subject_id=subject_id,
                secondary_key=self._secondary_key,
                stage=e.stage.value,
            ).error(f"[{self._kind}] Fallo el subject {subject_id} en {e.stage.value}: {e.message}")
            return SubjectOutcome.failed(subject_id, self._secondary_key, e.stage.value)
        except Exception as e:
            logger.bind(
                kind=self._kind,
                subject_id=subject_id,
                secondary_key=self._secondary_key,
                stage=UNEXPECTED_STAGE,
            ).exception(f"[{self._kind}] Error inesperado en el subject {subject_id}: {type(e).__name__}")
            return SubjectOutcome.failed(subject_id, self._secondary_key, UNEXPECTED_STAGE)

    def _log_summary(self, result: SyncBatchResult) -> None:
        summary = (
            f"[{self._kind}] Sync finalizado en {result.duration_seconds:.2f}s: "
            f"intentados={result.attempted} ok={result.succeeded} "
            f"existentes={result.skipped_existing} vacios={result.empty} "
            f"fallidos={result.failed} escritos={result.records_written}"
        )
        if result.failed:
            logger.warning(f"{summary} etapas={result.failures_by_stage}")
        else:
            logger.success(summary)
