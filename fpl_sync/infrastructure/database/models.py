"""
Modelos de base de datos (ORM).

Las columnas de negocio tienen el mismo nombre que los campos del registro
canonico correspondiente; created_at/updated_at son solo tecnicas.
"""
from sqlalchemy import Column, Integer, String, DateTime, JSON, UniqueConstraint
from sqlalchemy.sql import func

from fpl_sync.infrastructure.database.session import Base


class EntryInfoModel(Base):
    """
    Modelo de base de datos para el snapshot de un entry.
    Una fila por entry; los campos last_* guardan el valor previo.
    """

    __tablename__ = "entry_infos"

    entry_id = Column(Integer, primary_key=True, autoincrement=False)
    entry_name = Column(String(255), nullable=False)
    player_name = Column(String(255), nullable=False)
    region = Column(String(255), nullable=True)
    started_event = Column(Integer, nullable=True)
    overall_points = Column(Integer, nullable=True)
    overall_rank = Column(Integer, nullable=True)
    bank = Column(Integer, nullable=True)
    team_value = Column(Integer, nullable=True)
    total_transfers = Column(Integer, nullable=True)
    last_entry_name = Column(String(255), nullable=True)
    last_overall_points = Column(Integer, nullable=True)
    last_overall_rank = Column(Integer, nullable=True)
    last_team_value = Column(Integer, nullable=True)
    used_entry_names = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<EntryInfo(entry_id={self.entry_id}, entry_name={self.entry_name})>"


class EntryEventPickModel(Base):
    """Modelo de base de datos para el equipo de un entry en un evento."""

    __tablename__ = "entry_event_picks"
    __table_args__ = (
        UniqueConstraint("entry_id", "event_id", name="uq_entry_event_picks_entry_event"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    entry_id = Column(Integer, nullable=False, index=True)
    event_id = Column(Integer, nullable=False, index=True)
    chip = Column(String(50), nullable=True)
    picks = Column(JSON, nullable=False)  # Lista de PickItem serializados
    points = Column(Integer, nullable=True)
    transfers = Column(Integer, nullable=False, default=0)
    transfers_cost = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return f"<EntryEventPick(entry_id={self.entry_id}, event_id={self.event_id})>"


class EntryEventTransferModel(Base):
    """Modelo de base de datos para las transferencias de un entry en un evento."""

    __tablename__ = "entry_event_transfers"
    __table_args__ = (
        UniqueConstraint(
            "entry_id",
            "event_id",
            "element_in_id",
            "element_out_id",
            "transfer_time",
            name="uq_entry_event_transfers_natural_key",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    entry_id = Column(Integer, nullable=False, index=True)
    event_id = Column(Integer, nullable=False, index=True)
    element_in_id = Column(Integer, nullable=False)
    element_in_cost = Column(Integer, nullable=False)
    element_out_id = Column(Integer, nullable=False)
    element_out_cost = Column(Integer, nullable=False)
    transfer_time = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    def __repr__(self):
        return (
            f"<EntryEventTransfer(entry_id={self.entry_id}, event_id={self.event_id}, "
            f"in={self.element_in_id}, out={self.element_out_id})>"
        )
