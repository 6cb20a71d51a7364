"""
Seleccion del cache store segun CACHE_BACKEND.
"""
from loguru import logger

from fpl_sync.application.interfaces.cache_store import CacheStore
from fpl_sync.core.config import Settings
from fpl_sync.infrastructure.cache.memory_cache_store import InMemoryCacheStore
from fpl_sync.infrastructure.cache.redis_cache_store import RedisCacheStore
from fpl_sync.shared.exceptions.domain import ValidationException


def create_cache_store(settings: Settings) -> CacheStore:
    """
    Crea el cache store configurado.

    Args:
        settings: Configuracion de la aplicacion

    Returns:
        CacheStore: RedisCacheStore o InMemoryCacheStore
    """
    backend = settings.CACHE_BACKEND.lower()
    if backend == "redis":
        logger.info("Cache store: Redis")
        return RedisCacheStore.from_url(settings.REDIS_URL)
    if backend == "memory":
        logger.info("Cache store: memoria (no compartido entre procesos)")
        return InMemoryCacheStore()
    raise ValidationException(f"CACHE_BACKEND no soportado: {settings.CACHE_BACKEND}", field="CACHE_BACKEND")
