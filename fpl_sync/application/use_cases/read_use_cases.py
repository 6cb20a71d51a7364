"""
Casos de uso de lectura: cache-aside sobre cada tipo de entidad.
"""
from __future__ import annotations

from typing import List, Mapping, Optional

from fpl_sync.application.use_cases.sync_use_cases import EntityBinding, get_binding
from fpl_sync.domain.entities.records import (
    CanonicalRecord,
    EntryEventPick,
    EntryEventTransfer,
    EntryInfo,
)
from fpl_sync.shared.exceptions.domain import ValidationException


class RecordReadUseCases:
    """
    Lecturas servidas desde el cache, con fallback al repositorio.
    """

    def __init__(self, bindings: Mapping[str, EntityBinding]) -> None:
        self._bindings = bindings

    async def get(self, kind: str, event_id: Optional[int] = None) -> List[CanonicalRecord]:
        """
        Obtiene los registros de un tipo de entidad.

        Args:
            kind: Tipo de entidad
            event_id: Evento (obligatorio para entidades por evento)

        Returns:
            List[CanonicalRecord]: Registros ordenados por clave natural
        """
        binding = get_binding(self._bindings, kind)
        if binding.per_event:
            if event_id is None:
                raise ValidationException(f"{kind} requiere event_id", field="event_id")
        else:
            event_id = None
        return await binding.reader.read(binding.loader(event_id), event_id)

    async def get_entry_infos(self) -> List[EntryInfo]:
        return await self.get(EntryInfo.kind)

    async def get_entry_event_picks(self, event_id: int) -> List[EntryEventPick]:
        return await self.get(EntryEventPick.kind, event_id)

    async def get_entry_event_transfers(self, event_id: int) -> List[EntryEventTransfer]:
        return await self.get(EntryEventTransfer.kind, event_id)
