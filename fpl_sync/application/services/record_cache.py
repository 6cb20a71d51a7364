"""
Serializacion de conjuntos de registros canonicos en un hash del cache store.

Formato del hash bajo la clave `prefix::season[::subkey]`:
- un campo por registro: clave natural unida por ':' -> JSON del registro
- `__count__`: cantidad de registros escritos

El campo `__count__` permite guardar un conjunto vacio (un hash vacio no
existe en Redis) y detectar entradas truncadas o corruptas.
"""
from __future__ import annotations

from typing import Dict, Generic, List, Optional, Sequence, Type, TypeVar

from loguru import logger
from pydantic import ValidationError

from fpl_sync.application.interfaces.cache_store import CacheStore
from fpl_sync.domain.entities.records import CanonicalRecord
from fpl_sync.shared.exceptions.sync import CacheDecodeError

R = TypeVar("R", bound=CanonicalRecord)

KEY_SEPARATOR = "::"
COUNT_FIELD = "__count__"


def build_cache_key(prefix: str, season: str, subkey: Optional[object] = None) -> str:
    """
    Construye la clave namespaced del cache.

    Ejemplos:
    - build_cache_key("entry_info", "2425") -> 'entry_info::2425'
    - build_cache_key("entry_event_pick", "2425", 10) -> 'entry_event_pick::2425::10'
    """
    parts = [prefix, season]
    if subkey is not None:
        parts.append(str(subkey))
    return KEY_SEPARATOR.join(parts)


def encode_records(records: Sequence[CanonicalRecord]) -> Dict[str, str]:
    """Serializa registros a un mapping campo -> JSON, con el campo de conteo."""
    mapping: Dict[str, str] = {}
    for record in records:
        mapping[record.cache_field()] = record.model_dump_json()
    mapping[COUNT_FIELD] = str(len(mapping))
    return mapping


def decode_records(key: str, mapping: Dict[str, str], record_type: Type[R]) -> List[R]:
    """
    Reconstruye los registros desde el hash.

    Raises:
        CacheDecodeError: Si falta el conteo, no coincide o algun registro es invalido
    """
    raw_count = mapping.get(COUNT_FIELD)
    if raw_count is None:
        raise CacheDecodeError("Entrada de cache sin campo de conteo", key=key)
    try:
        expected = int(raw_count)
    except ValueError as e:
        raise CacheDecodeError(f"Conteo invalido en cache: {raw_count!r}", key=key) from e

    fields = {name: value for name, value in mapping.items() if name != COUNT_FIELD}
    if len(fields) != expected:
        raise CacheDecodeError(
            f"Entrada de cache incompleta: {len(fields)} registros, se esperaban {expected}",
            key=key,
        )

    records: List[R] = []
    for name, value in fields.items():
        try:
            record = record_type.model_validate_json(value)
        except ValidationError as e:
            raise CacheDecodeError(f"Registro ilegible en campo '{name}'", key=key) from e
        if record.cache_field() != name:
            raise CacheDecodeError(f"El campo '{name}' no coincide con la clave del registro", key=key)
        records.append(record)

    records.sort(key=lambda r: r.conflict_key())
    return records


class RecordCache(Generic[R]):
    """
    Acceso tipado al cache de un tipo de registro.

    No decide politicas (fallback, reintentos): solo construye claves,
    serializa y delega en el CacheStore.
    """

    def __init__(
        self,
        store: CacheStore,
        record_type: Type[R],
        *,
        season: str,
        ttl_seconds: int,
    ) -> None:
        self._store = store
        self._record_type = record_type
        self._season = season
        self._ttl_seconds = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def key(self, subkey: Optional[object] = None) -> str:
        return build_cache_key(self._record_type.kind, self._season, subkey)

    async def read(self, subkey: Optional[object] = None) -> Optional[List[R]]:
        """
        Lee el conjunto cacheado.

        Returns:
            Optional[List[R]]: Registros (posiblemente lista vacia) o None si no hay entrada

        Raises:
            CacheDecodeError: Si la entrada existe pero es ilegible
            CacheStoreError: Si el store falla
        """
        key = self.key(subkey)
        mapping = await self._store.get_all(key)
        if not mapping:
            return None
        return decode_records(key, mapping, self._record_type)

    async def write(self, records: Sequence[R], subkey: Optional[object] = None) -> None:
        """Reemplaza la entrada completa con el TTL configurado."""
        key = self.key(subkey)
        await self._store.set_all(key, encode_records(records), self._ttl_seconds)
        logger.debug(f"Cache poblado: {key} ({len(records)} registros, ttl={self._ttl_seconds}s)")

    async def invalidate(self, subkey: Optional[object] = None) -> None:
        key = self.key(subkey)
        await self._store.delete(key)
        logger.debug(f"Cache invalidado: {key}")
