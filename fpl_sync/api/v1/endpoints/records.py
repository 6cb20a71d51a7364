"""
Endpoints de lectura de registros (cache-aside).
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from fpl_sync.api.v1.dependencies.use_case_deps import get_read_use_cases
from fpl_sync.application.dto.sync_dto import RecordsResponseDTO
from fpl_sync.application.use_cases.read_use_cases import RecordReadUseCases


router = APIRouter(prefix="/records", tags=["Records"])


@router.get("/{kind}", response_model=RecordsResponseDTO)
async def get_records(
    kind: str,
    event_id: Optional[int] = Query(None, ge=1, description="Evento (obligatorio para entidades por evento)"),
    use_cases: RecordReadUseCases = Depends(get_read_use_cases),
) -> RecordsResponseDTO:
    """Obtiene los registros de `kind`, desde cache o repositorio."""
    records = await use_cases.get(kind, event_id)
    return RecordsResponseDTO.from_records(kind, records, event_id)
