"""
Contrato del cache store (hash key-value con TTL).
"""
from __future__ import annotations

from typing import Dict, Mapping, Optional, Protocol


class CacheStore(Protocol):
    """
    Store de hashes con TTL.

    - get_all: None si la clave no existe o expiro
    - set_all: reemplaza el hash completo (nunca merge) y fija el TTL
    - delete: invalida la clave explicitamente
    - ping: True si el backend responde (health check)

    Las implementaciones levantan CacheStoreError ante fallos de I/O.
    """

    async def get_all(self, key: str) -> Optional[Dict[str, str]]:
        ...

    async def set_all(self, key: str, mapping: Mapping[str, str], ttl_seconds: int) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        ...
