"""
Servicios de aplicacion.

Contiene la logica reutilizable por los casos de uso: cache-aside,
pipeline por subject y orquestador del fan-out.
"""
from fpl_sync.application.services.cache_aside import CacheAsideReader, ReadState
from fpl_sync.application.services.record_cache import RecordCache, build_cache_key
from fpl_sync.application.services.subject_pipeline import SubjectPipeline
from fpl_sync.application.services.sync_orchestrator import SyncOrchestrator

__all__ = [
    # Cache
    "CacheAsideReader",
    "ReadState",
    "RecordCache",
    "build_cache_key",
    # Sync
    "SubjectPipeline",
    "SyncOrchestrator",
]
