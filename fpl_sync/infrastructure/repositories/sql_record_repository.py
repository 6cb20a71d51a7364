"""
Repositorio SQLAlchemy generico para registros canonicos.

Idempotencia:
- UPSERT con ON CONFLICT sobre la restriccion unica de la clave natural
- SKIP_EXISTING: ON CONFLICT DO NOTHING (la fila existente no se toca)
- OVERWRITE_LAST_KNOWN: se leen las filas existentes, se combinan con
  carry_over() y se escribe con ON CONFLICT DO UPDATE

Cada llamada abre su propia sesion y hace commit al final: ninguna
transaccion abarca mas de un subject.
"""
from __future__ import annotations

from typing import Any, Dict, Generic, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar

from loguru import logger
from sqlalchemy import delete, func, select, tuple_
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fpl_sync.domain.entities.records import CanonicalRecord
from fpl_sync.domain.entities.sync import IdempotencyPolicy
from fpl_sync.domain.repositories.record_repository import IRecordRepository
from fpl_sync.infrastructure.repositories.entity_specs import EntitySpec
from fpl_sync.shared.exceptions.sync import RepositoryError

R = TypeVar("R", bound=CanonicalRecord)

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def _chunks(rows: List[Dict[str, Any]], size: int) -> Iterator[List[Dict[str, Any]]]:
    for i in range(0, len(rows), size):
        yield rows[i:i + size]


class SqlRecordRepository(IRecordRepository[R], Generic[R]):
    """
    Implementacion del repositorio para un EntitySpec.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        spec: EntitySpec[R],
        *,
        upsert_batch_size: int = 200,
    ) -> None:
        self._session_factory = session_factory
        self._spec = spec
        self._upsert_batch_size = max(1, upsert_batch_size)

    @property
    def spec(self) -> EntitySpec[R]:
        return self._spec

    # ------------------------------------------------------------------
    # Lecturas
    # ------------------------------------------------------------------

    def _ordered(self, query):
        return query.order_by(*(self._spec.column(c) for c in self._spec.conflict_columns))

    async def _fetch(self, query, action: str) -> List[R]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(query)
                return [self._spec.from_row(row) for row in result.scalars().all()]
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Error leyendo {self._spec.kind} ({action}): {e}",
                details={"kind": self._spec.kind, "action": action},
            ) from e

    async def find_existing(self, subject_id: int, secondary_key: Optional[int] = None) -> Optional[R]:
        query = select(self._spec.model).where(self._spec.column(self._spec.subject_column) == subject_id)
        if self._spec.secondary_column is not None and secondary_key is not None:
            query = query.where(self._spec.column(self._spec.secondary_column) == secondary_key)
        rows = await self._fetch(self._ordered(query).limit(1), "find_existing")
        return rows[0] if rows else None

    async def find_all(self) -> List[R]:
        return await self._fetch(self._ordered(select(self._spec.model)), "find_all")

    async def find_by_subject(self, subject_id: int) -> List[R]:
        query = select(self._spec.model).where(self._spec.column(self._spec.subject_column) == subject_id)
        return await self._fetch(self._ordered(query), "find_by_subject")

    async def find_by_secondary(self, secondary_key: int) -> List[R]:
        if self._spec.secondary_column is None:
            raise RepositoryError(
                f"{self._spec.kind} no tiene clave secundaria",
                details={"kind": self._spec.kind},
            )
        query = select(self._spec.model).where(self._spec.column(self._spec.secondary_column) == secondary_key)
        return await self._fetch(self._ordered(query), "find_by_secondary")

    async def list_subject_ids(self) -> List[int]:
        column = self._spec.column(self._spec.subject_column)
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(column).distinct().order_by(column))
                return [int(value) for value in result.scalars().all()]
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Error listando subjects de {self._spec.kind}: {e}",
                details={"kind": self._spec.kind, "action": "list_subject_ids"},
            ) from e

    async def count(self) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(func.count()).select_from(self._spec.model))
                return int(result.scalar_one())
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Error contando {self._spec.kind}: {e}",
                details={"kind": self._spec.kind, "action": "count"},
            ) from e

    # ------------------------------------------------------------------
    # Escrituras
    # ------------------------------------------------------------------

    async def batch_upsert(self, records: Sequence[R]) -> int:
        """
        UPSERT por lotes de UPSERT_BATCH_SIZE filas.

        Los registros repetidos dentro del mismo lote se colapsan (gana el
        ultimo): Postgres rechaza un ON CONFLICT DO UPDATE que toca la misma
        fila dos veces en una sentencia.
        """
        unique: Dict[Tuple[Any, ...], R] = {}
        for record in records:
            unique[record.conflict_key()] = record
        if not unique:
            return 0

        try:
            async with self._session_factory() as session:
                to_write = list(unique.values())
                if self._spec.policy is IdempotencyPolicy.OVERWRITE_LAST_KNOWN:
                    to_write = await self._carry_over(session, to_write)

                rows = [self._spec.to_row(record) for record in to_write]
                insert = self._insert_for(session)
                total = 0
                for chunk in _chunks(rows, self._upsert_batch_size):
                    stmt = self._conflict_clause(insert(self._spec.model).values(chunk))
                    result = await session.execute(stmt)
                    total += max(result.rowcount or 0, 0)
                await session.commit()
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Error en batch upsert de {self._spec.kind}: {e}",
                details={"kind": self._spec.kind, "action": "batch_upsert", "rows": len(unique)},
            ) from e

        logger.debug(f"[{self._spec.kind}] Upsert de {len(rows)} filas ({total} afectadas)")
        return total

    def _insert_for(self, session: AsyncSession):
        dialect = session.get_bind().dialect.name
        insert = _INSERTS.get(dialect)
        if insert is None:
            raise RepositoryError(
                f"Dialecto no soportado para upsert: {dialect}",
                details={"kind": self._spec.kind, "dialect": dialect},
            )
        return insert

    def _conflict_clause(self, stmt):
        index_elements = list(self._spec.conflict_columns)
        if self._spec.policy is IdempotencyPolicy.SKIP_EXISTING:
            return stmt.on_conflict_do_nothing(index_elements=index_elements)

        set_ = {
            name: stmt.excluded[name]
            for name in self._spec.record_columns
            if name not in index_elements
        }
        set_["updated_at"] = func.now()
        return stmt.on_conflict_do_update(index_elements=index_elements, set_=set_)

    async def _carry_over(self, session: AsyncSession, records: List[R]) -> List[R]:
        """Combina cada registro con su version persistida (si existe)."""
        columns = [self._spec.column(c) for c in self._spec.conflict_columns]
        keys = [record.conflict_key() for record in records]
        if len(columns) == 1:
            condition = columns[0].in_([key[0] for key in keys])
        else:
            condition = tuple_(*columns).in_(keys)

        result = await session.execute(select(self._spec.model).where(condition))
        previous = {}
        for row in result.scalars().all():
            record = self._spec.from_row(row)
            previous[record.conflict_key()] = record

        return [
            record.carry_over(previous[record.conflict_key()]) if record.conflict_key() in previous else record
            for record in records
        ]

    async def _delete(self, stmt, action: str) -> int:
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
                deleted = max(result.rowcount or 0, 0)
        except SQLAlchemyError as e:
            raise RepositoryError(
                f"Error eliminando {self._spec.kind} ({action}): {e}",
                details={"kind": self._spec.kind, "action": action},
            ) from e
        logger.info(f"[{self._spec.kind}] {action}: {deleted} filas eliminadas")
        return deleted

    async def delete_all(self) -> int:
        return await self._delete(delete(self._spec.model), "delete_all")

    async def delete_by_subject(self, subject_id: int, secondary_key: Optional[int] = None) -> int:
        stmt = delete(self._spec.model).where(self._spec.column(self._spec.subject_column) == subject_id)
        if self._spec.secondary_column is not None and secondary_key is not None:
            stmt = stmt.where(self._spec.column(self._spec.secondary_column) == secondary_key)
        return await self._delete(stmt, "delete_by_subject")

    async def delete_by_subjects(self, subject_ids: Iterable[int], secondary_key: Optional[int] = None) -> int:
        ids = list(dict.fromkeys(subject_ids))
        if not ids:
            return 0
        stmt = delete(self._spec.model).where(self._spec.column(self._spec.subject_column).in_(ids))
        if self._spec.secondary_column is not None and secondary_key is not None:
            stmt = stmt.where(self._spec.column(self._spec.secondary_column) == secondary_key)
        return await self._delete(stmt, "delete_by_subjects")

    async def delete_by_secondary(self, secondary_key: int) -> int:
        if self._spec.secondary_column is None:
            raise RepositoryError(
                f"{self._spec.kind} no tiene clave secundaria",
                details={"kind": self._spec.kind},
            )
        stmt = delete(self._spec.model).where(self._spec.column(self._spec.secondary_column) == secondary_key)
        return await self._delete(stmt, "delete_by_secondary")


def build_repositories(
    session_factory: async_sessionmaker[AsyncSession],
    specs: Iterable[EntitySpec],
    *,
    upsert_batch_size: int = 200,
) -> Dict[str, SqlRecordRepository]:
    """Un repositorio por tipo de entidad, indexado por kind."""
    return {
        spec.kind: SqlRecordRepository(session_factory, spec, upsert_batch_size=upsert_batch_size)
        for spec in specs
    }
