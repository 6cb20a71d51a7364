"""
Data Transfer Objects (DTOs) para la capa de aplicacion.
"""
from .sync_dto import RecordsResponseDTO, SyncBatchResultDTO, SyncRequestDTO

__all__ = [
    "RecordsResponseDTO",
    "SyncBatchResultDTO",
    "SyncRequestDTO",
]
