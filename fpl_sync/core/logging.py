"""
Configuracion de loguru.

Los fallos por entry se loguean con logger.bind(subject_id=..., stage=...),
por lo que el formato incluye el contexto `extra`.
"""
import sys

from loguru import logger

from fpl_sync.core.config import Settings

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level> <dim>{extra}</dim>"
)


def configure_logging(settings: Settings, *, file_sink: bool = True) -> None:
    """
    Reemplaza los sinks por defecto de loguru.

    Args:
        settings: Configuracion de la aplicacion
        file_sink: Si True, agrega el archivo rotativo LOG_FILE
    """
    logger.remove()
    logger.add(sys.stderr, level=settings.LOG_LEVEL, format=LOG_FORMAT, colorize=True)

    if file_sink:
        logger.add(
            settings.LOG_FILE,
            rotation="500 MB",
            retention="10 days",
            level=settings.LOG_LEVEL,
            format=LOG_FORMAT,
            colorize=False,
            enqueue=True,
        )
