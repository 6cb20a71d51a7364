"""
Dependencias para inyeccion de casos de uso.

El contenedor se construye en el startup y vive en app.state.
"""
from fastapi import Request

from fpl_sync.application.use_cases.read_use_cases import RecordReadUseCases
from fpl_sync.application.use_cases.sync_use_cases import SyncUseCases
from fpl_sync.infrastructure.container import Container
from fpl_sync.shared.exceptions.base import AppException


def get_container(request: Request) -> Container:
    """
    Dependencia para obtener el contenedor de la aplicacion.

    Returns:
        Container: Contenedor creado en el startup
    """
    container = getattr(request.app.state, "container", None)
    if container is None:
        raise AppException(
            message="La aplicacion aun no termino de iniciar",
            status_code=503,
            error_code="SERVICE_UNAVAILABLE",
        )
    return container


def get_sync_use_cases(request: Request) -> SyncUseCases:
    """
    Dependencia para obtener los casos de uso de sincronizacion.

    Returns:
        SyncUseCases: Instancia de casos de uso de sincronizacion
    """
    return get_container(request).sync_use_cases


def get_read_use_cases(request: Request) -> RecordReadUseCases:
    """
    Dependencia para obtener los casos de uso de lectura.

    Returns:
        RecordReadUseCases: Instancia de casos de uso de lectura
    """
    return get_container(request).read_use_cases
