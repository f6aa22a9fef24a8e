"""
Storage engine for eventmark.

Owns the SQLAlchemy engine for a single SQLite file, applies Alembic
migrations once at open, and exposes transactional execute/query primitives.
A Storage is an explicitly owned object: create one at startup, pass it to
the consumers that need it, and close it at shutdown.
"""

import logging
import os
import threading

from collections.abc import Callable, Iterator, Mapping, Sequence
from contextlib import contextmanager, nullcontext
from dataclasses import dataclass
from pathlib import Path
from types import TracebackType
from typing import Any

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from sqlalchemy import Connection, Engine, Row, create_engine, event, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool
from sqlalchemy.sql.expression import Executable

from eventmark.constants import IN_MEMORY_DATABASE
from eventmark.exceptions import PersistenceError, StorageInitError

logger = logging.getLogger(__name__)

MIGRATIONS_DIR = Path(__file__).parent / "migrations"

Statement = Executable | str
Params = Mapping[str, Any] | Sequence[Mapping[str, Any]] | None


@dataclass(frozen=True)
class ExecuteResult:
    """Outcome of a write statement."""

    rows_affected: int
    last_insert_id: int | None = None


def _as_executable(stmt: Statement) -> Executable:
    if isinstance(stmt, str):
        return text(stmt)
    return stmt


def build_alembic_config(database_url: str) -> Config:
    """
    Build an Alembic config pointing at the packaged migrations.

    Args:
        database_url: SQLAlchemy URL of the target database

    Returns:
        Alembic Config usable with alembic.command
    """
    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIR))
    config.set_main_option("sqlalchemy.url", database_url)
    return config


class Transaction:
    """
    A transaction scope over one pooled connection.

    Usage:
        with storage.begin_transaction() as tx:
            tx.execute(stmt, params)
            tx.commit()
        # Leaving the block without commit() rolls back
    """

    def __init__(
        self,
        connection: Connection,
        on_close: Callable[[], None] | None = None,
    ):
        self._connection = connection
        self._on_close = on_close
        self._transaction = connection.begin()
        self._finished = False

    @property
    def is_active(self) -> bool:
        return not self._finished

    @property
    def connection(self) -> Connection:
        return self._connection

    def _check_active(self) -> None:
        if self._finished:
            raise PersistenceError("Transaction is no longer active")

    def execute(self, stmt: Statement, params: Params = None) -> ExecuteResult:
        """
        Execute a write statement inside this transaction.

        Args:
            stmt: SQLAlchemy statement or SQL text with named placeholders
            params: Bound parameters (never interpolated into the statement)

        Returns:
            Rows affected and, for single-row inserts, the generated id

        Raises:
            PersistenceError: If the engine rejects the statement
        """
        self._check_active()
        try:
            result = self._connection.execute(_as_executable(stmt), params)
        except SQLAlchemyError as e:
            raise PersistenceError(f"Statement failed: {e}") from e

        last_insert_id = getattr(result, "lastrowid", None)
        return ExecuteResult(
            rows_affected=result.rowcount, last_insert_id=last_insert_id
        )

    def query(self, stmt: Statement, params: Params = None) -> list[Row[Any]]:
        """
        Run a read statement inside this transaction.

        Raises:
            PersistenceError: If the engine rejects the statement
        """
        self._check_active()
        try:
            return list(self._connection.execute(_as_executable(stmt), params).all())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Query failed: {e}") from e

    def commit(self) -> None:
        """
        Commit all writes made in this scope.

        Raises:
            PersistenceError: If the commit fails (writes are rolled back)
        """
        self._check_active()
        try:
            self._transaction.commit()
        except SQLAlchemyError as e:
            self.rollback()
            raise PersistenceError(f"Failed to commit transaction: {e}") from e
        finally:
            self._close()

    def rollback(self) -> None:
        """Undo all writes made in this scope. Safe to call more than once."""
        if self._finished:
            return
        try:
            if self._transaction.is_active:
                self._transaction.rollback()
        except SQLAlchemyError as e:
            logger.error(f"Rollback failed: {e}")
            raise PersistenceError(f"Failed to roll back transaction: {e}") from e
        finally:
            self._close()

    def _close(self) -> None:
        if self._finished:
            return
        self._finished = True
        try:
            self._connection.close()
        finally:
            if self._on_close is not None:
                self._on_close()

    def __enter__(self) -> "Transaction":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.rollback()


class Storage:
    """
    Handle to a single local SQLite database file.

    An in-memory database lives on one shared DBAPI connection, and
    returning that connection to the pool rolls back whatever is open on
    it. An open Transaction there holds a lock until it finishes. Reads
    from the owning thread run on the transaction's own connection.
    """

    def __init__(self, engine: Engine, location: str):
        self._engine = engine
        self.location = location
        self._lock = threading.RLock() if location == IN_MEMORY_DATABASE else None
        self._active: Transaction | None = None

    @classmethod
    def open(cls, location: str | os.PathLike[str]) -> "Storage":
        """
        Open (creating if absent) a database and bring its schema up to date.

        Args:
            location: Path to the SQLite database file, or ":memory:"

        Returns:
            A ready Storage handle

        Raises:
            StorageInitError: If the directory cannot be created, the file
                cannot be opened, or a migration fails
        """
        location = str(location)
        if not location:
            raise StorageInitError(f"Invalid database path: {location!r}")

        in_memory = location == IN_MEMORY_DATABASE

        if not in_memory:
            db_dir = os.path.dirname(location)
            if db_dir:
                try:
                    os.makedirs(db_dir, exist_ok=True)
                except OSError as e:
                    raise StorageInitError(
                        f"Cannot create database directory {db_dir}: {e}"
                    ) from e

        try:
            engine = cls._create_engine(location, in_memory=in_memory)
        except SQLAlchemyError as e:
            raise StorageInitError(f"Cannot open database {location}: {e}") from e

        try:
            cls._run_migrations(engine)
        except Exception as e:
            engine.dispose()
            raise StorageInitError(
                f"Failed to initialize database {location}: {e}"
            ) from e

        logger.info(f"Database initialized at: {location}")
        return cls(engine, location)

    @staticmethod
    def _create_engine(location: str, *, in_memory: bool) -> Engine:
        if in_memory:
            engine = create_engine(
                "sqlite://",
                echo=False,
                connect_args={"check_same_thread": False},
                poolclass=StaticPool,
            )
        else:
            engine = create_engine(
                f"sqlite:///{location}",
                echo=False,
                connect_args={"check_same_thread": False, "timeout": 30.0},
                pool_pre_ping=True,
            )

        @event.listens_for(engine, "connect")
        def set_sqlite_pragma(dbapi_conn: Any, connection_record: Any) -> None:
            cursor = dbapi_conn.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            if not in_memory:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.close()

        return engine

    @staticmethod
    def _run_migrations(engine: Engine) -> None:
        config = build_alembic_config(str(engine.url))
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, "head")

    @property
    def engine(self) -> Engine:
        return self._engine

    def _acquire(self) -> None:
        if self._lock is None:
            return
        self._lock.acquire()
        if self._active is not None:
            self._lock.release()
            raise PersistenceError(
                "A transaction is already open on this in-memory database"
            )

    def _release(self) -> None:
        if self._lock is None:
            return
        self._active = None
        self._lock.release()

    @contextmanager
    def _reading(self) -> Iterator[Connection]:
        with self._lock if self._lock is not None else nullcontext():
            if self._active is not None:
                yield self._active.connection
                return
            with self._engine.connect() as connection:
                yield connection

    def begin_transaction(self) -> Transaction:
        """
        Acquire a connection and open a transaction on it.

        On an in-memory database this waits for any transaction open in
        another thread, and refuses to nest inside one open in this thread.

        Raises:
            PersistenceError: If no connection can be acquired or begun
        """
        self._acquire()

        try:
            connection = self._engine.connect()
        except SQLAlchemyError as e:
            self._release()
            raise PersistenceError(f"Failed to start transaction: {e}") from e

        try:
            tx = Transaction(connection, on_close=self._release)
        except SQLAlchemyError as e:
            connection.close()
            self._release()
            raise PersistenceError(f"Failed to start transaction: {e}") from e

        if self._lock is not None:
            self._active = tx
        return tx

    def execute(self, stmt: Statement, params: Params = None) -> ExecuteResult:
        """Execute one write statement in its own transaction."""
        with self.begin_transaction() as tx:
            result = tx.execute(stmt, params)
            tx.commit()
        return result

    def query(self, stmt: Statement, params: Params = None) -> list[Row[Any]]:
        """Run one read statement outside an explicit transaction."""
        try:
            with self._reading() as connection:
                return list(connection.execute(_as_executable(stmt), params).all())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Query failed: {e}") from e

    def current_revision(self) -> str | None:
        """Return the applied migration revision, or None for an empty database."""
        with self._reading() as connection:
            return MigrationContext.configure(connection).get_current_revision()

    def journal_mode(self) -> str:
        """Return SQLite's active journal mode (e.g. 'wal')."""
        with self._reading() as connection:
            mode = connection.execute(text("PRAGMA journal_mode")).scalar()
        return str(mode).lower()

    def close(self) -> None:
        """Dispose of all pooled connections."""
        self._engine.dispose()
        logger.debug(f"Database closed: {self.location}")

    def __enter__(self) -> "Storage":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
