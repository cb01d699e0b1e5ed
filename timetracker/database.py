from __future__ import annotations

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from . import models
from .config import settings
from .errors import StorageError
from .store import Store

logger = logging.getLogger(__name__)


def build_engine(db_path: Path) -> Engine:
    return create_engine(
        f"sqlite:///{db_path}",
        connect_args={"timeout": 30},
        future=True,
    )


def migrate(engine: Engine) -> None:
    """Create missing tables and indexes. Safe to run on every startup."""
    models.Base.metadata.create_all(bind=engine)


@contextmanager
def open_store(db_path: Optional[Path] = None) -> Generator[Store, None, None]:
    """Open the local database for one command and always release it."""
    path = Path(db_path) if db_path is not None else settings.database_path
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        engine = build_engine(path)
        migrate(engine)
    except (OSError, SQLAlchemyError) as exc:
        raise StorageError(f"Could not open database at {path}: {exc}") from exc

    logger.debug("opened store at %s", path)
    SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    session = SessionLocal()
    try:
        yield Store(session)
    finally:
        session.close()
        engine.dispose()
        logger.debug("closed store at %s", path)
