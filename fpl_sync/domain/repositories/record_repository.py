"""
Interfaz del repositorio de registros canonicos.
Define el contrato que debe cumplir cualquier implementacion.
"""
from abc import ABC, abstractmethod
from typing import Generic, Iterable, List, Optional, Sequence, TypeVar

from fpl_sync.domain.entities.records import CanonicalRecord

R = TypeVar("R", bound=CanonicalRecord)


class IRecordRepository(ABC, Generic[R]):
    """
    Interfaz del repositorio de un tipo de registro.

    La garantia central es la de batch_upsert: se puede llamar repetidamente
    con registros solapados sin duplicar filas ni fallar por conflicto.
    """

    @abstractmethod
    async def find_existing(self, subject_id: int, secondary_key: Optional[int] = None) -> Optional[R]:
        """
        Busca un registro ya persistido para la clave natural.
        Se usa solo como guarda de idempotencia antes de escribir.

        Args:
            subject_id: ID del subject (entry)
            secondary_key: Clave secundaria (evento) o None

        Returns:
            Optional[R]: Registro encontrado o None
        """
        pass

    @abstractmethod
    async def find_all(self) -> List[R]:
        """
        Obtiene todos los registros.

        Returns:
            List[R]: Lista de registros
        """
        pass

    @abstractmethod
    async def find_by_subject(self, subject_id: int) -> List[R]:
        """
        Obtiene los registros de un subject.

        Args:
            subject_id: ID del subject

        Returns:
            List[R]: Lista de registros del subject
        """
        pass

    @abstractmethod
    async def find_by_secondary(self, secondary_key: int) -> List[R]:
        """
        Obtiene los registros de una clave secundaria (evento).

        Args:
            secondary_key: Clave secundaria

        Returns:
            List[R]: Lista de registros
        """
        pass

    @abstractmethod
    async def list_subject_ids(self) -> List[int]:
        """
        Lista los IDs de subject distintos presentes en el repositorio.

        Returns:
            List[int]: IDs ordenados ascendentemente
        """
        pass

    @abstractmethod
    async def batch_upsert(self, records: Sequence[R]) -> int:
        """
        Inserta registros de forma idempotente.

        Ante un conflicto de clave natural conserva la fila existente
        (SKIP_EXISTING) o sobrescribe el snapshot (OVERWRITE_LAST_KNOWN).

        Args:
            records: Registros a escribir

        Returns:
            int: Filas afectadas segun el driver
        """
        pass

    @abstractmethod
    async def delete_all(self) -> int:
        """
        Elimina todos los registros. Solo para refresh completo.

        Returns:
            int: Filas eliminadas
        """
        pass

    @abstractmethod
    async def delete_by_subject(self, subject_id: int, secondary_key: Optional[int] = None) -> int:
        """
        Elimina los registros de un subject (opcionalmente de un solo evento).

        Args:
            subject_id: ID del subject
            secondary_key: Restringe a una clave secundaria si se indica

        Returns:
            int: Filas eliminadas
        """
        pass

    @abstractmethod
    async def delete_by_subjects(self, subject_ids: Iterable[int], secondary_key: Optional[int] = None) -> int:
        """
        Elimina los registros de varios subjects en una sola transaccion.

        Args:
            subject_ids: IDs de los subjects
            secondary_key: Restringe a una clave secundaria si se indica

        Returns:
            int: Filas eliminadas
        """
        pass

    @abstractmethod
    async def delete_by_secondary(self, secondary_key: int) -> int:
        """
        Elimina todos los registros de una clave secundaria (evento).

        Args:
            secondary_key: Clave secundaria

        Returns:
            int: Filas eliminadas
        """
        pass
