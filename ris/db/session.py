# ris/db/session.py
from contextlib import contextmanager
from typing import Iterator

import structlog
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session

from ris.core.config import settings

logger = structlog.get_logger(__name__)

# pool_pre_ping for resilience against db connection drops
engine_args = {"pool_pre_ping": True}
if str(settings.SQLALCHEMY_DATABASE_URI).startswith("sqlite"):
    engine_args["connect_args"] = {"check_same_thread": False}

engine = create_engine(
    str(settings.SQLALCHEMY_DATABASE_URI),
    **engine_args
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def transaction_scope(db: Session) -> Iterator[Session]:
    """
    Run a unit of work against ``db``.

    Commits when the block exits normally and rolls back on every exception
    path, so multi-row writes are applied completely or not at all. The
    exception is re-raised after the rollback.
    """
    try:
        yield db
        db.commit()
    except BaseException:
        db.rollback()
        raise


def init_db():
    from ris.db.base import Base
    # Import all models here so they register with Base.metadata
    from ris.db import models  # noqa F401
    logger.info("DB_CREATE_TABLES_START")
    Base.metadata.create_all(bind=engine)
    logger.info("DB_CREATE_TABLES_DONE")


def try_connect_db() -> bool:
    """Attempts to connect to the database to verify connection."""
    try:
        connection = engine.connect()
        connection.close()
        logger.info("DB_CONNECTION_OK")
        return True
    except Exception as e:
        logger.error("DB_CONNECTION_FAILED", error=str(e))
        return False


if __name__ == "__main__":
    import argparse
    from ris.core.logging_config import configure_json_logging

    configure_json_logging("ris-db-utils")
    parser = argparse.ArgumentParser(description="Database Utils")
    parser.add_argument(
        '--init',
        action='store_true',
        help='Initialize database (create tables)'
        )
    parser.add_argument(
        '--connect-test',
        action='store_true',
        help='Test database connection'
        )
    args = parser.parse_args()

    if args.connect_test:
        try_connect_db()
    if args.init:
        if try_connect_db():
            init_db()
        else:
            logger.warning("DB_INIT_SKIPPED", reason="connection failure")
