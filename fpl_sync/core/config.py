"""
Configuracion central de la aplicacion.
Gestiona variables de entorno y configuraciones globales.
Soporta configuracion dinamica para desarrollo (ENVIRONMENT=development)
y produccion (ENVIRONMENT=production).
"""
from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

from fpl_sync.shared.utils.datetime_utils import season_code


class Settings(BaseSettings):
    """
    Clase de configuracion de la aplicacion.
    Lee variables de entorno y proporciona valores por defecto.

    Grupos:
    - Base de datos: DATABASE_URL completa o por componentes
    - Cache: Redis (o memoria en desarrollo/tests) y TTL por entrada
    - FPL: URL base, user agent, timeout y reintentos del transporte HTTP
    - Sync: tamano de batch y tope opcional de concurrencia del fan-out
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",  # Ignorar campos extra del .env
    )

    # Configuracion de la aplicacion
    APP_NAME: str = Field(default="FPL Sync")
    APP_VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=False)
    ENVIRONMENT: str = Field(default="production")

    # Configuracion del servidor
    HOST: str = Field(default="0.0.0.0")
    PORT: int = Field(default=8000)

    # Base de datos - Componentes separados
    DATABASE_HOST: str = Field(default="localhost")
    DATABASE_PORT: int = Field(default=5432)
    DATABASE_USER: str = Field(default="fpl_user")
    DATABASE_PASSWORD: str = Field(default="fpl_pass")
    DATABASE_NAME: str = Field(default="fpl_db")

    # Base de datos - URL completa (override de componentes si se proporciona)
    DATABASE_URL: str = Field(default="")
    DB_POOL_SIZE: int = Field(default=5)
    DB_MAX_OVERFLOW: int = Field(default=10)

    # Cache
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    CACHE_BACKEND: str = Field(default="redis")  # "redis" o "memory"
    CACHE_TTL_SECONDS: int = Field(default=86400)
    CACHE_SEASON: str = Field(default="")

    # API FPL
    FPL_API_BASE_URL: str = Field(default="https://fantasy.premierleague.com/api")
    FPL_USER_AGENT: str = Field(
        default=(
            "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
            "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
        )
    )
    FPL_TIMEOUT_SECONDS: float = Field(default=20.0)
    FPL_MAX_RETRIES: int = Field(default=2)
    FPL_BACKOFF_SECONDS: float = Field(default=0.5)

    # Sync
    # 0 = fan-out sin tope (una tarea por entry, todas a la vez).
    SYNC_MAX_CONCURRENCY: int = Field(default=0)
    UPSERT_BATCH_SIZE: int = Field(default=200)

    # Logging
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FILE: str = Field(default="logs/app.log")

    @computed_field
    @property
    def effective_database_url(self) -> str:
        """
        Retorna la URL de base de datos efectiva.
        Si DATABASE_URL esta definida, la usa directamente.
        Si no, construye la URL desde los componentes individuales.
        """
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )

    @computed_field
    @property
    def cache_season(self) -> str:
        """Temporada usada en las claves de cache (p.ej. '2425')."""
        return self.CACHE_SEASON or season_code()

    @computed_field
    @property
    def is_development(self) -> bool:
        """Indica si el entorno es de desarrollo."""
        return self.ENVIRONMENT.lower() == "development"


# Instancia global de configuracion
settings = Settings()
