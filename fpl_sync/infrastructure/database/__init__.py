"""
Configuración de base de datos.

Importa todos los modelos para que se registren con Base
antes de crear las tablas.
"""
from fpl_sync.infrastructure.database.models import (
    EntryInfoModel,
    EntryEventPickModel,
    EntryEventTransferModel
)
