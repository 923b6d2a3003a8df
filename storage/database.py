"""Relationale Ablage (SQLAlchemy 2.x, Standard: SQLite).

Tabellen:
  semesters         Semester
  staff / children  Verzeichnis (von dieser Anwendung nur gelesen)
  schedule_entries  datierte Einträge, gehören zu genau einem Semester
  entry_children    Kind-Zuordnungen, (entry_id, child_id) eindeutig
"""

import logging
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    create_engine,
    event,
)
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class SemesterRow(Base):
    __tablename__ = "semesters"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String)
    start_date: Mapped[date] = mapped_column(Date)
    end_date: Mapped[date] = mapped_column(Date)


class StaffRow(Base):
    __tablename__ = "staff"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String)
    last_name: Mapped[str] = mapped_column(String)


class ChildRow(Base):
    __tablename__ = "children"
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(String)
    last_name: Mapped[str] = mapped_column(String)


class ScheduleEntryRow(Base):
    __tablename__ = "schedule_entries"
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    semester_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("semesters.id", ondelete="CASCADE"), index=True)
    staff_id: Mapped[int] = mapped_column(Integer, ForeignKey("staff.id"), index=True)
    day_of_week: Mapped[int] = mapped_column(Integer)
    start_time: Mapped[datetime] = mapped_column(DateTime)
    end_time: Mapped[datetime] = mapped_column(DateTime)
    activity: Mapped[str] = mapped_column(String)
    cancelled: Mapped[bool] = mapped_column(Boolean, default=False)

    staff: Mapped[StaffRow] = relationship()
    children: Mapped[list["EntryChildRow"]] = relationship(
        back_populates="entry",
        foreign_keys="EntryChildRow.entry_id",
        cascade="all, delete-orphan",
        order_by="EntryChildRow.child_id",
    )


class EntryChildRow(Base):
    __tablename__ = "entry_children"
    entry_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("schedule_entries.id", ondelete="CASCADE"), primary_key=True)
    child_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("children.id", ondelete="CASCADE"), primary_key=True)
    # Herkunft bei Umbuchung (None = ursprünglich hier eingeplant)
    original_entry_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("schedule_entries.id", ondelete="SET NULL"), nullable=True, index=True)

    entry: Mapped[ScheduleEntryRow] = relationship(
        back_populates="children", foreign_keys=[entry_id])
    child: Mapped[ChildRow] = relationship()


def _set_sqlite_pragma(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.close()


def create_session_factory(url: str, echo: bool = False) -> sessionmaker:
    """Engine + Tabellen anlegen und eine Session-Factory zurückgeben.

    `sqlite://` (In-Memory) teilt sich eine einzige Verbindung, damit alle
    Sessions dieselbe Datenbank sehen. Damit teilen sich gleichzeitige
    Sessions aus mehreren Threads auch eine Transaktion: ein Commit oder
    Rollback wirkt auf die halbfertige Arbeit der anderen. In-Memory daher
    nur für Tests und Einzelaufrufe; parallele Importe brauchen eine
    Datei-Datenbank oder einen Server.
    """
    parsed = make_url(url)
    kwargs: dict = {"echo": echo}
    is_sqlite = parsed.get_backend_name() == "sqlite"
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if parsed.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, **kwargs)
    if is_sqlite:
        event.listen(engine, "connect", _set_sqlite_pragma)
    Base.metadata.create_all(engine)
    logger.debug(f"Datenbank bereit: {parsed.render_as_string(hide_password=True)}")
    return sessionmaker(bind=engine, expire_on_commit=False)
