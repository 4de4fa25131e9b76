"""Score store: weekly score/time tables and the announcement pointer."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional, Type, Union

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, select

from ..core.time import epoch_ms
from ..errors import PersistenceError
from ..models import POINTER_ID, CyclePointer, ScoreRecord, TimeRecord, sanitize_key

logger = logging.getLogger("stoken_server.services.store")

TABLES: Dict[str, Type[SQLModel]] = {
    "users": ScoreRecord,
    "times": TimeRecord,
    "link": CyclePointer,
}

# Tables holding a single row at a fixed primary key.
SINGLETONS = {"link"}


class ScoreStore:
    """Table-level get/set/clear over the ``users``, ``times`` and ``link`` tables.

    Every SQLAlchemy failure is re-raised as :class:`PersistenceError`.
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def _session(self) -> Iterator[Session]:
        try:
            with Session(self.engine) as session:
                yield session
        except SQLAlchemyError as exc:
            logger.error(f"Score store failure: {exc}")
            raise PersistenceError(str(exc)) from exc

    def create_tables(self, reset: bool = False) -> None:
        try:
            if reset:
                SQLModel.metadata.drop_all(self.engine)
            SQLModel.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc)) from exc

    @staticmethod
    def _model(table: str) -> Type[SQLModel]:
        try:
            return TABLES[table]
        except KeyError:
            raise ValueError(f"Unknown table: {table}") from None

    @staticmethod
    def _build(model: Type[SQLModel], key: Any, record: Union[Mapping[str, Any], SQLModel]) -> SQLModel:
        values = record.model_dump() if isinstance(record, SQLModel) else dict(record)
        if model is CyclePointer:
            values["id"] = key
        else:
            values["key"] = key
        return model(**values)

    @staticmethod
    def _primary_key(table: str, key: str) -> Any:
        return POINTER_ID if table in SINGLETONS else sanitize_key(key)

    # Key-value access -------------------------------------------------------

    def get(self, table: str) -> Any:
        """Read a whole table.

        ``users`` and ``times`` come back keyed by sanitized username; the
        singleton ``link`` table returns its one record. Empty tables give None.
        """

        model = self._model(table)
        with self._session() as session:
            rows = session.exec(select(model)).all()
        if not rows:
            return None
        if table in SINGLETONS:
            return rows[0]
        return {row.key: row for row in rows}

    def set(self, table: str, key: str, record: Union[Mapping[str, Any], SQLModel]) -> SQLModel:
        """Create or overwrite one record. ``key`` is ignored for ``link``."""

        model = self._model(table)
        pk = self._primary_key(table, key)
        new = self._build(model, pk, record)
        with self._session() as session:
            existing = session.get(model, pk)
            if existing:
                for field, value in new.model_dump(exclude={"key", "id"}).items():
                    setattr(existing, field, value)
                new = existing
            session.add(new)
            session.commit()
            session.refresh(new)
        return new

    def set_all(self, table: str, records: Mapping[str, Union[Mapping[str, Any], SQLModel]]) -> None:
        """Replace the whole table in one transaction; an empty mapping clears it."""

        model = self._model(table)
        with self._session() as session:
            for row in session.exec(select(model)).all():
                session.delete(row)
            session.flush()
            for key, record in records.items():
                session.add(self._build(model, self._primary_key(table, key), record))
            session.commit()

    # Typed helpers ----------------------------------------------------------

    def scores(self) -> List[ScoreRecord]:
        return list((self.get("users") or {}).values())

    def times(self) -> List[TimeRecord]:
        return list((self.get("times") or {}).values())

    def get_score(self, username: str) -> Optional[ScoreRecord]:
        with self._session() as session:
            return session.get(ScoreRecord, sanitize_key(username))

    def get_time(self, username: str) -> Optional[TimeRecord]:
        with self._session() as session:
            return session.get(TimeRecord, sanitize_key(username))

    def submit(
        self,
        username: str,
        highscore: Optional[float] = None,
        time: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> Dict[str, Any]:
        """Record a submission, overwriting the player's previous entry.

        A score is only written when ``highscore > 0`` and a time only when
        ``time > 0``. The returned payload echoes the unsanitized username.
        """

        timestamp = timestamp if timestamp is not None else epoch_ms()
        highscore = float(highscore) if highscore else 0.0
        time = int(time) if time else 0

        if highscore > 0:
            self.set(
                "users",
                username,
                {"username": username, "highscore": highscore, "timestamp": timestamp},
            )
        if time > 0:
            self.set(
                "times",
                username,
                {"username": username, "time": time, "timestamp": timestamp},
            )

        return {
            "username": username,
            "highscore": highscore,
            "time": time,
            "timestamp": timestamp,
        }

    def pointer(self) -> Optional[CyclePointer]:
        return self.get("link")

    def save_pointer(self, link: str, week: int) -> CyclePointer:
        """Overwrite the singleton pointer."""

        return self.set("link", "", {"link": link, "week": week})

    def clear_leaderboards(self) -> None:
        """Wipe the score and time tables together; the pointer is untouched."""

        with self._session() as session:
            for model in (ScoreRecord, TimeRecord):
                for row in session.exec(select(model)).all():
                    session.delete(row)
            session.commit()


__all__ = ["ScoreStore", "TABLES"]
