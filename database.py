"""Store handle: engine lifecycle, schema creation and per-request sessions."""
import logging
import time
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, Session, create_engine

import models  # noqa: F401  (registers the tables on SQLModel.metadata)

logger = logging.getLogger(__name__)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine. Opened once at startup, closed at shutdown."""

    def __init__(
        self,
        url: str,
        echo: bool = False,
        retries: int = 10,
        retry_delay: float = 2.0,
    ):
        self.url = url
        self.echo = echo
        self.retries = max(1, retries)
        self.retry_delay = retry_delay
        self._engine: Optional[Engine] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    def _create_engine(self) -> Engine:
        kwargs = {"echo": self.echo}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            # in-memory databases live in a single connection
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True

        engine = create_engine(self.url, **kwargs)
        if engine.dialect.name == "sqlite":
            event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    def open(self) -> "Database":
        """
        Create the engine and the tables.
        The database may come up after the API, so retry a few times before giving up.
        """
        if self._engine is not None:
            return self

        engine = self._create_engine()
        last_exc: Optional[Exception] = None
        for attempt in range(1, self.retries + 1):
            try:
                SQLModel.metadata.create_all(engine)
                self._engine = engine
                logger.info(
                    "Database ready, tables created (%s)",
                    engine.url.render_as_string(hide_password=True),
                )
                return self
            except OperationalError as exc:
                last_exc = exc
                logger.warning(
                    "Database not ready yet (attempt %d/%d); waiting %.1fs...",
                    attempt,
                    self.retries,
                    self.retry_delay,
                )
                if attempt < self.retries:
                    time.sleep(self.retry_delay)

        engine.dispose()
        logger.error("Giving up connecting to the database.")
        raise last_exc

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            logger.info("Database connections closed")

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Provide a session that is closed when the block exits."""
        with Session(self.engine) as session:
            yield session
