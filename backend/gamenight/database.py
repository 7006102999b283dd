import logging
import os
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError as SAIntegrityError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from . import errors

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parents[1]
DEFAULT_DB_PATH = BASE_DIR / "gamenight.db"


def normalize_database_url(raw_url: str | None) -> str:
    if not raw_url:
        return f"sqlite:///{DEFAULT_DB_PATH}"

    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql+psycopg://", 1)

    if raw_url.startswith("postgresql://"):
        return raw_url.replace("postgresql://", "postgresql+psycopg://", 1)

    return raw_url


def make_engine(url: str, **kwargs: object):
    engine_kwargs: dict[str, object] = dict(kwargs)
    if url.startswith("sqlite"):
        connect_args = dict(engine_kwargs.pop("connect_args", {}) or {})
        connect_args.setdefault("check_same_thread", False)
        engine_kwargs["connect_args"] = connect_args

    new_engine = create_engine(url, **engine_kwargs)

    if url.startswith("sqlite"):
        # SQLite ignores foreign keys unless asked per connection.
        @event.listens_for(new_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, _record) -> None:
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


DATABASE_URL = normalize_database_url(os.getenv("DATABASE_URL"))

engine = make_engine(
    DATABASE_URL,
    connect_args={"timeout": 30} if DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(
    bind=engine,
    autoflush=False,
    autocommit=False,
    expire_on_commit=False,
)
Base = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def storage_guard() -> Iterator[None]:
    """Translate driver-level connectivity failures into StorageUnavailableError."""
    try:
        yield
    except OperationalError as exc:
        logger.error("Database unavailable: %s", exc)
        raise errors.StorageUnavailableError("Database is unavailable.") from exc


@contextmanager
def commit_or_rollback(db: Session) -> Iterator[Session]:
    """Run a unit of work and commit it, or roll the whole unit back.

    Nothing written inside the block is visible to other sessions unless the
    commit succeeds.
    """
    try:
        yield db
        db.commit()
    except SAIntegrityError as exc:
        db.rollback()
        logger.warning("Write rolled back on constraint violation: %s", exc.orig)
        raise errors.IntegrityError("Write conflicted with existing data and was rolled back.") from exc
    except OperationalError as exc:
        db.rollback()
        logger.error("Write rolled back, database unavailable: %s", exc)
        raise errors.StorageUnavailableError("Database is unavailable.") from exc
    except Exception:
        db.rollback()
        raise
