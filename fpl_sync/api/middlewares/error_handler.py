"""
Middleware para errores no capturados por los exception handlers.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from loguru import logger

from fpl_sync.shared.exceptions.base import AppException


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Convierte cualquier excepcion no manejada en un 500 generico.

    El log lleva metodo y ruta como contexto de loguru, igual que el
    pipeline lleva subject y etapa.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as exc:
            logger.bind(method=request.method, path=request.url.path).opt(exception=exc).error(
                f"Error no manejado en {request.method} {request.url.path}: {type(exc).__name__}"
            )
            error = AppException(
                "Ha ocurrido un error interno del servidor",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                error_code="INTERNAL_SERVER_ERROR",
            )
            return JSONResponse(status_code=error.status_code, content=error.to_dict())
