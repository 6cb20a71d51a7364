"""
Script para ejecutar el servidor en modo desarrollo.
"""
import uvicorn
from fpl_sync.core.config import settings


if __name__ == "__main__":
    uvicorn.run(
        "fpl_sync.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=True,
        log_level=settings.LOG_LEVEL.lower()
    )
