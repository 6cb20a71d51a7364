"""
Composicion de dependencias: cliente FPL, cache store, repositorios y
casos de uso. Lo usan el startup de la API y el script de cron.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fpl_sync.application.interfaces.cache_store import CacheStore
from fpl_sync.application.services.cache_aside import CacheAsideReader
from fpl_sync.application.services.record_cache import RecordCache
from fpl_sync.application.use_cases.read_use_cases import RecordReadUseCases
from fpl_sync.application.use_cases.sync_use_cases import EntityBinding, SyncUseCases
from fpl_sync.core.config import Settings
from fpl_sync.domain.entities.records import EntryInfo
from fpl_sync.infrastructure.cache.factory import create_cache_store
from fpl_sync.infrastructure.external.fpl.fpl_client import FplClient
from fpl_sync.infrastructure.external.fpl.sources import build_sources
from fpl_sync.infrastructure.repositories.entity_specs import ENTITY_SPECS
from fpl_sync.infrastructure.repositories.sql_record_repository import build_repositories


@dataclass
class Container:
    """Recursos de larga vida de un proceso (API o cron)."""

    fpl_client: FplClient
    cache_store: CacheStore
    bindings: Dict[str, EntityBinding]
    sync_use_cases: SyncUseCases
    read_use_cases: RecordReadUseCases

    async def close(self) -> None:
        await self.fpl_client.close()
        await self.cache_store.close()
        logger.info("Cliente FPL y cache store cerrados")


def build_container(
    settings: Settings,
    *,
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
    cache_store: Optional[CacheStore] = None,
    fpl_client: Optional[FplClient] = None,
) -> Container:
    """
    Construye el contenedor a partir de la configuracion.

    Los colaboradores se pueden inyectar (tests, scripts).
    """
    if session_factory is None:
        from fpl_sync.infrastructure.database.session import AsyncSessionLocal
        session_factory = AsyncSessionLocal

    if fpl_client is None:
        fpl_client = FplClient.from_settings(settings)
    if cache_store is None:
        cache_store = create_cache_store(settings)

    repositories = build_repositories(
        session_factory,
        ENTITY_SPECS.values(),
        upsert_batch_size=settings.UPSERT_BATCH_SIZE,
    )
    sources = build_sources(fpl_client)
    season = settings.cache_season

    bindings: Dict[str, EntityBinding] = {}
    for kind, spec in ENTITY_SPECS.items():
        cache = RecordCache(
            cache_store,
            spec.record_type,
            season=season,
            ttl_seconds=settings.CACHE_TTL_SECONDS,
        )
        bindings[kind] = EntityBinding(
            record_type=spec.record_type,
            source=sources[kind],
            repository=repositories[kind],
            reader=CacheAsideReader(cache),
        )

    sync_use_cases = SyncUseCases(
        bindings,
        subject_repository=repositories[EntryInfo.kind],
        event_resolver=fpl_client.get_current_event,
        max_concurrency=settings.SYNC_MAX_CONCURRENCY,
    )
    logger.debug(f"Contenedor construido: temporada {season}, entidades {sorted(bindings)}")
    return Container(
        fpl_client=fpl_client,
        cache_store=cache_store,
        bindings=bindings,
        sync_use_cases=sync_use_cases,
        read_use_cases=RecordReadUseCases(bindings),
    )
