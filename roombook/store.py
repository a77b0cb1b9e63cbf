"""Snapshot persistence for the room collection.

The whole room list, reservations included, is written as one JSON blob
under a fixed key and replaced wholesale on every save.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional, Protocol, Sequence

from pydantic import TypeAdapter, ValidationError
from sqlalchemy import DateTime, String, Text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Mapped, mapped_column, sessionmaker

from .database import Base, create_db_engine, create_session_factory
from .errors import SnapshotCorrupted
from .models import Room

logger = logging.getLogger(__name__)

DEFAULT_SNAPSHOT_KEY = "rooms"

_rooms_adapter = TypeAdapter(List[Room])


def dump_rooms(rooms: Sequence[Room]) -> str:
    return _rooms_adapter.dump_json(list(rooms), by_alias=True).decode("utf-8")


def parse_rooms(payload: str) -> List[Room]:
    try:
        return _rooms_adapter.validate_json(payload)
    except ValidationError as exc:
        raise SnapshotCorrupted(f"Stored room snapshot is invalid: {exc.error_count()} error(s)") from exc


class SnapshotStore(Protocol):
    def save(self, rooms: Sequence[Room]) -> None:
        ...

    def load(self) -> Optional[List[Room]]:
        ...


class MemorySnapshotStore:
    """Keeps serialized snapshots in a dict. Nothing survives the process."""

    def __init__(self, key: str = DEFAULT_SNAPSHOT_KEY) -> None:
        self.key = key
        self._blobs: Dict[str, str] = {}

    def save(self, rooms: Sequence[Room]) -> None:
        self._blobs[self.key] = dump_rooms(rooms)

    def load(self) -> Optional[List[Room]]:
        payload = self._blobs.get(self.key)
        if payload is None:
            return None
        return parse_rooms(payload)


class SnapshotRecord(Base):
    __tablename__ = "snapshots"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    payload: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class SqlSnapshotStore:
    """Key-value snapshot table on any SQLAlchemy database."""

    def __init__(self, session_factory: sessionmaker, key: str = DEFAULT_SNAPSHOT_KEY) -> None:
        self.session_factory = session_factory
        self.key = key

    @classmethod
    def from_url(cls, database_url: str, key: str = DEFAULT_SNAPSHOT_KEY) -> "SqlSnapshotStore":
        engine = create_db_engine(database_url)
        create_tables(engine)
        return cls(create_session_factory(engine), key=key)

    def save(self, rooms: Sequence[Room]) -> None:
        payload = dump_rooms(rooms)
        with self.session_factory() as session:
            record = session.get(SnapshotRecord, self.key)
            if record is None:
                session.add(SnapshotRecord(key=self.key, payload=payload))
            else:
                record.payload = payload
                record.updated_at = datetime.utcnow()
            session.commit()
        logger.debug("Saved snapshot %r with %d room(s)", self.key, len(rooms))

    def load(self) -> Optional[List[Room]]:
        with self.session_factory() as session:
            record = session.get(SnapshotRecord, self.key)
            if record is None:
                return None
            payload = record.payload
        return parse_rooms(payload)


def create_tables(engine: Engine) -> None:
    Base.metadata.create_all(bind=engine)
