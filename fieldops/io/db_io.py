# fieldops/io/db_io.py
from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Mapping, Optional

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from fieldops.config import config
from fieldops.io.base import KeyValueStore, RecordStoreUnavailableError
from fieldops.io.record_store import JsonRecordStore


DATABASE_URL = config.store.database_url

engine = create_engine(DATABASE_URL, echo=config.store.echo, future=True)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)

Base = declarative_base()


class KeyValueEntry(Base):
    __tablename__ = config.store.table_name

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)  # JSON-строка, схему не проверяем
    updated_at = Column(DateTime, nullable=True)


def _ensure_sqlite_dir(database_url: str) -> None:
    # SQLite не создаёт каталоги сам
    if database_url.startswith("sqlite:///"):
        db_path = database_url[len("sqlite:///"):]
        if db_path and db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)


def make_session_factory(database_url: str, echo: bool = False) -> sessionmaker:
    """
    Создаёт отдельную фабрику сессий (например, для временной БД в тестах)
    и сразу создаёт таблицу, если её нет.
    """
    _ensure_sqlite_dir(database_url)
    own_engine: Engine = create_engine(database_url, echo=echo, future=True)
    Base.metadata.create_all(own_engine)
    return sessionmaker(bind=own_engine, autoflush=False, autocommit=False, expire_on_commit=False)


def init_db(bind: Optional[Engine] = None) -> None:
    """Создаёт таблицу key/value в основной БД."""
    if bind is None:
        _ensure_sqlite_dir(DATABASE_URL)
    Base.metadata.create_all(bind or engine)


@contextmanager
def get_session(session_factory: Optional[sessionmaker] = None) -> Iterator[Session]:
    session: Session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


class SqlKeyValueStore(KeyValueStore):
    """
    Key/value хранилище в таблице kv_store.

    set_many пишет все ключи в одной транзакции, на этом держится
    атомарность групповой операции approve (статусы + новые заказы).
    """

    def __init__(self, session_factory: Optional[sessionmaker] = None) -> None:
        self._session_factory = session_factory or SessionLocal

    def get(self, key: str) -> Optional[str]:
        try:
            with get_session(self._session_factory) as session:
                entry: KeyValueEntry | None = session.get(KeyValueEntry, key)
                return None if entry is None else entry.value
        except SQLAlchemyError as exc:
            raise RecordStoreUnavailableError(f"Failed to read key '{key}'") from exc

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def set_many(self, items: Mapping[str, str]) -> None:
        now = datetime.now()
        try:
            with get_session(self._session_factory) as session:
                for key, value in items.items():
                    session.merge(KeyValueEntry(key=key, value=value, updated_at=now))
        except SQLAlchemyError as exc:
            raise RecordStoreUnavailableError(
                f"Failed to write keys {sorted(items)}"
            ) from exc


def make_sql_record_store(session_factory: Optional[sessionmaker] = None) -> JsonRecordStore:
    """RecordStore поверх SQL-таблицы (по умолчанию основная БД из конфига)."""
    return JsonRecordStore(SqlKeyValueStore(session_factory))
