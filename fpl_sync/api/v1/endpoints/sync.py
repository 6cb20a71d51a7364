"""
Endpoints para sincronizacion FPL -> PostgreSQL -> cache.

La respuesta solo trae conteos: los fallos por entry se consultan en los logs.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from loguru import logger

from fpl_sync.api.v1.dependencies.use_case_deps import get_sync_use_cases
from fpl_sync.application.dto.sync_dto import SyncBatchResultDTO, SyncRequestDTO
from fpl_sync.application.use_cases.sync_use_cases import SyncUseCases


router = APIRouter(prefix="/sync", tags=["Sync"])


@router.post(
    "/{kind}",
    response_model=SyncBatchResultDTO,
    status_code=status.HTTP_200_OK,
    summary="Sincroniza un tipo de entidad",
)
async def sync_kind(
    kind: str,
    request: Optional[SyncRequestDTO] = Body(None),
    use_cases: SyncUseCases = Depends(get_sync_use_cases),
) -> SyncBatchResultDTO:
    """
    Ejecuta el fan-out de sincronizacion para `kind`
    (entry_info, entry_event_pick, entry_event_transfer).

    Solo falla si no se pueden enumerar los entries o resolver el evento.
    """
    request = request or SyncRequestDTO()
    logger.info(f"Sync solicitado: {kind} (evento={request.event_id}, entries={request.entry_ids})")
    result = await use_cases.sync(kind, event_id=request.event_id, subject_ids=request.entry_ids)
    return SyncBatchResultDTO.from_result(result)


@router.post(
    "/{kind}/refresh",
    response_model=SyncBatchResultDTO,
    status_code=status.HTTP_200_OK,
    summary="Refresh completo de un tipo de entidad",
)
async def refresh_kind(
    kind: str,
    request: Optional[SyncRequestDTO] = Body(None),
    use_cases: SyncUseCases = Depends(get_sync_use_cases),
) -> SyncBatchResultDTO:
    """
    Borra filas y cache de `kind` (para el evento o los entries indicados)
    y vuelve a sincronizar.
    """
    request = request or SyncRequestDTO()
    logger.warning(f"Refresh solicitado: {kind} (evento={request.event_id}, entries={request.entry_ids})")
    result = await use_cases.refresh(kind, event_id=request.event_id, subject_ids=request.entry_ids)
    return SyncBatchResultDTO.from_result(result)
