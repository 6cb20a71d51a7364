"""
Casos de uso de la aplicacion.
"""
from .read_use_cases import RecordReadUseCases
from .sync_use_cases import EntityBinding, SyncUseCases

__all__ = ["EntityBinding", "RecordReadUseCases", "SyncUseCases"]
