"""
Cache store en memoria (desarrollo y tests).

Misma semantica que Redis: hash completo por clave, TTL por clave,
expiracion perezosa al leer.
"""
from __future__ import annotations

import asyncio
import time
from typing import Callable, Dict, Mapping, Optional, Tuple


class InMemoryCacheStore:
    """Implementacion de CacheStore en memoria con reloj inyectable."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: Dict[str, Tuple[Dict[str, str], float]] = {}
        self._lock = asyncio.Lock()

    async def get_all(self, key: str) -> Optional[Dict[str, str]]:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None

            mapping, expires_at = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None

            return dict(mapping)

    async def set_all(self, key: str, mapping: Mapping[str, str], ttl_seconds: int) -> None:
        async with self._lock:
            if not mapping:
                self._entries.pop(key, None)
                return
            self._entries[key] = (dict(mapping), self._clock() + ttl_seconds)

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._entries.pop(key, None)

    async def ping(self) -> bool:
        return True

    async def ttl(self, key: str) -> Optional[float]:
        """Segundos restantes de la clave o None si no existe."""
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            remaining = entry[1] - self._clock()
            return remaining if remaining > 0 else None

    async def close(self) -> None:
        async with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
