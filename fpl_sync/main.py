"""
Punto de entrada principal de la aplicación FastAPI.
Configura la aplicación, middlewares, rutas y eventos.
"""
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fpl_sync.core.config import settings
from fpl_sync.core.events import startup_handler, shutdown_handler
from fpl_sync.api.v1.router import api_router
from fpl_sync.api.middlewares.error_handler import ErrorHandlerMiddleware
from fpl_sync.shared.exceptions.base import AppException


def create_application() -> FastAPI:
    """
    Factory para crear y configurar la aplicación FastAPI.

    Returns:
        FastAPI: Instancia configurada de la aplicación
    """
    application = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="Sincronización FPL -> PostgreSQL con cache Redis",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
    )

    # Middleware personalizado para manejo de errores
    application.add_middleware(ErrorHandlerMiddleware)

    # Registrar eventos de inicio y cierre
    application.add_event_handler("startup", startup_handler(application))
    application.add_event_handler("shutdown", shutdown_handler(application))

    # Incluir routers de la API
    application.include_router(api_router, prefix="/api")

    # Manejador global de excepciones personalizadas
    @application.exception_handler(AppException)
    async def app_exception_handler(request, exc: AppException):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Health check endpoint
    @application.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """
        Estado de la aplicación. Si el contenedor esta listo, tambien
        verifica que el cache store responda.
        """
        container = getattr(request.app.state, "container", None)
        if container is None:
            cache_status = "not_initialized"
        elif await container.cache_store.ping():
            cache_status = "ok"
        else:
            cache_status = "unavailable"

        return {
            "status": "degraded" if cache_status == "unavailable" else "healthy",
            "app_name": settings.APP_NAME,
            "version": settings.APP_VERSION,
            "environment": settings.ENVIRONMENT,
            "cache_backend": settings.CACHE_BACKEND,
            "cache": cache_status,
            "season": settings.cache_season
        }

    return application


# Crear instancia de la aplicación
app = create_application()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "fpl_sync.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
