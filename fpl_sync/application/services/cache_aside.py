"""
Lector cache-aside.

Flujo por lectura de una clave:
- CACHE_HIT: la entrada existe y se decodifica -> se retorna
- CACHE_MISS_OR_MALFORMED: no existe o es ilegible -> se lee el repositorio,
  se repuebla el cache con el conjunto completo y se retorna
- FALLBACK_FAILED: el repositorio falla -> el error se propaga

El cache nunca es la fuente de verdad: un fallo del store se trata como miss
en la lectura y como advertencia en el repoblado.
"""
from __future__ import annotations

from enum import Enum
from typing import Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from loguru import logger

from fpl_sync.application.services.record_cache import RecordCache
from fpl_sync.domain.entities.records import CanonicalRecord
from fpl_sync.shared.exceptions.sync import CacheDecodeError, CacheStoreError

R = TypeVar("R", bound=CanonicalRecord)

Loader = Callable[[], Awaitable[Sequence[R]]]


class ReadState(str, Enum):
    CACHE_HIT = "cache_hit"
    CACHE_MISS_OR_MALFORMED = "cache_miss_or_malformed"


class CacheAsideReader(Generic[R]):
    """Sirve lecturas desde el cache y se auto-repara ante un miss."""

    def __init__(self, cache: RecordCache[R]) -> None:
        self._cache = cache

    @property
    def cache(self) -> RecordCache[R]:
        return self._cache

    async def read(self, loader: Loader, subkey: Optional[object] = None) -> List[R]:
        """
        Lee la clave aplicando cache-aside.

        Args:
            loader: Lectura autoritativa en el repositorio
            subkey: Sub-clave (evento) o None

        Returns:
            List[R]: Registros de la clave
        """
        records, _ = await self.read_with_state(loader, subkey)
        return records

    async def read_with_state(self, loader: Loader, subkey: Optional[object] = None) -> Tuple[List[R], ReadState]:
        cached = await self._try_cache(subkey)
        if cached is not None:
            return cached, ReadState.CACHE_HIT

        # Un fallo del repositorio se propaga: un miss nunca es un exito vacio.
        records = list(await loader())
        await self._try_populate(records, subkey)
        return records, ReadState.CACHE_MISS_OR_MALFORMED

    async def populate(self, loader: Loader, subkey: Optional[object] = None) -> List[R]:
        """
        Repuebla la clave con una relectura autoritativa (write-through).

        Returns:
            List[R]: Registros escritos en el cache
        """
        records = list(await loader())
        await self._try_populate(records, subkey)
        return records

    async def invalidate(self, subkey: Optional[object] = None) -> None:
        try:
            await self._cache.invalidate(subkey)
        except CacheStoreError as e:
            logger.warning(f"No se pudo invalidar {e.key}: {e.message}")

    async def _try_cache(self, subkey: Optional[object]) -> Optional[List[R]]:
        try:
            return await self._cache.read(subkey)
        except CacheDecodeError as e:
            logger.warning(f"Entrada de cache ilegible, se trata como miss: {e.key} ({e.message})")
        except CacheStoreError as e:
            logger.warning(f"Cache no disponible, se lee del repositorio: {e.key} ({e.message})")
        return None

    async def _try_populate(self, records: List[R], subkey: Optional[object]) -> None:
        try:
            await self._cache.write(records, subkey)
        except CacheStoreError as e:
            logger.warning(f"No se pudo poblar el cache {e.key}: {e.message}")
