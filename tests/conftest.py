"""
Configuración de fixtures para pytest.
"""
import os

# Antes de importar settings: cache en memoria y SQLite para los tests.
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

import fpl_sync.infrastructure.database  # noqa: F401  registra los modelos
from fpl_sync.infrastructure.cache.memory_cache_store import InMemoryCacheStore
from fpl_sync.infrastructure.database.session import Base
from fpl_sync.infrastructure.repositories.entity_specs import ENTITY_SPECS
from fpl_sync.infrastructure.repositories.sql_record_repository import build_repositories


class FakeClock:
    """Reloj manual para controlar la expiracion del cache."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest_asyncio.fixture
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory sobre un archivo SQLite por test.
    Cada repositorio abre su propia sesion, por eso no se usa :memory:.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store(clock: FakeClock) -> InMemoryCacheStore:
    return InMemoryCacheStore(clock=clock)


@pytest.fixture
def repositories(session_factory):
    """Repositorios SQL con batch chico para ejercitar el chunking."""
    return build_repositories(session_factory, ENTITY_SPECS.values(), upsert_batch_size=2)
