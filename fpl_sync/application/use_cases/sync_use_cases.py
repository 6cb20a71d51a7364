"""
Casos de uso de sincronizacion FPL -> Postgres -> cache.

Flujo por tipo de entidad:
- resolver el evento (si la entidad es por evento)
- fan-out del pipeline por entry (SyncOrchestrator)
- write-through: releer el repositorio y repoblar la clave de cache

El refresh completo borra filas y cache antes de sincronizar.
"""
from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Awaitable, Callable, Iterable, Mapping, Optional, Type

from loguru import logger

from fpl_sync.application.interfaces.upstream_client import RecordSource
from fpl_sync.application.services.cache_aside import CacheAsideReader, Loader
from fpl_sync.application.services.subject_pipeline import SubjectPipeline
from fpl_sync.application.services.sync_orchestrator import SyncOrchestrator
from fpl_sync.domain.entities.records import CanonicalRecord
from fpl_sync.domain.entities.sync import SyncBatchResult
from fpl_sync.domain.repositories.record_repository import IRecordRepository
from fpl_sync.shared.exceptions.domain import EventNotResolvedException, UnknownEntityKindException
from fpl_sync.shared.exceptions.sync import RepositoryError

EventResolver = Callable[[], Awaitable[Optional[int]]]


@dataclass(frozen=True)
class EntityBinding:
    """Colaboradores de un tipo de entidad."""

    record_type: Type[CanonicalRecord]
    source: RecordSource
    repository: IRecordRepository
    reader: CacheAsideReader

    @property
    def kind(self) -> str:
        return self.record_type.kind

    @property
    def per_event(self) -> bool:
        return self.record_type.secondary_field is not None

    def loader(self, event_id: Optional[int] = None) -> Loader:
        """Lectura autoritativa que respalda la clave de cache."""
        if self.per_event:
            return partial(self.repository.find_by_secondary, event_id)
        return self.repository.find_all


def get_binding(bindings: Mapping[str, EntityBinding], kind: str) -> EntityBinding:
    binding = bindings.get(kind)
    if binding is None:
        raise UnknownEntityKindException(kind, sorted(bindings))
    return binding


class SyncUseCases:
    """
    Casos de uso de sincronizacion.

    Los subjects son los entries registrados en entry_infos; pasar
    subject_ids explicitos evita la enumeracion (p.ej. para empezar a seguir
    entries nuevos).
    """

    def __init__(
        self,
        bindings: Mapping[str, EntityBinding],
        *,
        subject_repository: IRecordRepository,
        event_resolver: EventResolver,
        max_concurrency: int = 0,
    ) -> None:
        self._bindings = bindings
        self._subject_repository = subject_repository
        self._event_resolver = event_resolver
        self._max_concurrency = max_concurrency

    @property
    def kinds(self) -> list:
        return sorted(self._bindings)

    async def sync_entry_infos(self, subject_ids: Optional[Iterable[int]] = None) -> SyncBatchResult:
        return await self.sync("entry_info", subject_ids=subject_ids)

    async def sync_entry_event_picks(
        self,
        event_id: Optional[int] = None,
        subject_ids: Optional[Iterable[int]] = None,
    ) -> SyncBatchResult:
        return await self.sync("entry_event_pick", event_id=event_id, subject_ids=subject_ids)

    async def sync_entry_event_transfers(
        self,
        event_id: Optional[int] = None,
        subject_ids: Optional[Iterable[int]] = None,
    ) -> SyncBatchResult:
        return await self.sync("entry_event_transfer", event_id=event_id, subject_ids=subject_ids)

    async def sync(
        self,
        kind: str,
        *,
        event_id: Optional[int] = None,
        subject_ids: Optional[Iterable[int]] = None,
    ) -> SyncBatchResult:
        """
        Sincroniza un tipo de entidad y repuebla su clave de cache.

        Args:
            kind: Tipo de entidad
            event_id: Evento; si se omite se usa el evento actual
            subject_ids: Entries explicitos; si se omite se enumeran

        Returns:
            SyncBatchResult: Conteos de la corrida

        Raises:
            UnknownEntityKindException: Tipo no registrado
            EventNotResolvedException: No hay evento actual
            EnumerationError: No se pudieron listar los entries
        """
        binding = get_binding(self._bindings, kind)
        event_id = await self._resolve_event(binding, event_id)
        orchestrator = self._orchestrator(binding, event_id)

        result = await orchestrator.sync(subject_ids)
        await self._write_through(binding, event_id)
        return result

    async def refresh(
        self,
        kind: str,
        *,
        event_id: Optional[int] = None,
        subject_ids: Optional[Iterable[int]] = None,
    ) -> SyncBatchResult:
        """
        Refresh explicito: borra filas e invalida el cache antes de sincronizar.

        - con subject_ids: borra solo esos entries (y evento, si aplica)
        - sin subject_ids: borra el evento completo, o toda la tabla si la
          entidad no es por evento
        Los entries se enumeran antes de borrar, porque entry_infos es la
        fuente de subjects. El cache se invalida aunque el borrado falle.
        """
        binding = get_binding(self._bindings, kind)
        event_id = await self._resolve_event(binding, event_id)
        orchestrator = self._orchestrator(binding, event_id)

        explicit = subject_ids is not None
        ids = await orchestrator.enumerate_subjects(subject_ids)

        try:
            if explicit:
                deleted = await binding.repository.delete_by_subjects(ids, event_id)
            elif binding.per_event:
                deleted = await binding.repository.delete_by_secondary(event_id)
            else:
                deleted = await binding.repository.delete_all()
        finally:
            await binding.reader.invalidate(event_id)
        logger.info(f"[{kind}] Refresh: {deleted} filas eliminadas, re-sincronizando {len(ids)} entries")

        result = await orchestrator.sync(ids)
        await self._write_through(binding, event_id)
        return result

    def _orchestrator(self, binding: EntityBinding, event_id: Optional[int]) -> SyncOrchestrator:
        pipeline = SubjectPipeline(binding.source, binding.repository, binding.record_type.idempotency_policy)
        return SyncOrchestrator(
            kind=binding.kind,
            sync_one=partial(pipeline.run, secondary_key=event_id),
            subject_source=self._subject_repository.list_subject_ids,
            secondary_key=event_id,
            max_concurrency=self._max_concurrency,
        )

    async def _resolve_event(self, binding: EntityBinding, event_id: Optional[int]) -> Optional[int]:
        if not binding.per_event:
            return None
        if event_id is not None:
            return event_id
        current = await self._event_resolver()
        if current is None:
            raise EventNotResolvedException()
        logger.info(f"[{binding.kind}] Evento actual: {current}")
        return current

    async def _write_through(self, binding: EntityBinding, event_id: Optional[int]) -> None:
        """
        Repuebla el cache con lo persistido. Si la relectura falla se invalida
        la clave, para que la proxima lectura vaya al repositorio.
        """
        try:
            records = await binding.reader.populate(binding.loader(event_id), event_id)
        except RepositoryError as e:
            logger.error(f"[{binding.kind}] No se pudo releer para repoblar el cache: {e.message}")
            await binding.reader.invalidate(event_id)
            return
        logger.info(f"[{binding.kind}] Cache repoblado con {len(records)} registros")
