# ris/tests/conftest.py

import os
from datetime import date
from typing import Callable, Generator

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ris import crud
from ris.db import models  # noqa F401
from ris.db.base import Base
from ris.schemas.enums import Gender

ORDER_DAY = date(2024, 6, 1)


def _enable_sqlite_foreign_keys(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _set_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False, "timeout": 30}}
        if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        engine = create_engine(url, **kwargs)
        _enable_sqlite_foreign_keys(engine)
        return engine
    return create_engine(url, pool_pre_ping=True)


@pytest.fixture(scope="function")
def engine() -> Generator[Engine, None, None]:
    """
    Fresh schema per test. SQLite in memory by default; TEST_DATABASE_URL may
    point at a Postgres database, which must be a dedicated '_test' database.
    """
    url = os.getenv("TEST_DATABASE_URL", "sqlite://")
    if not url.startswith("sqlite") and "_test" not in url.rsplit("/", 1)[-1]:
        pytest.fail(
            "FATAL: TEST_DATABASE_URL does not name a '_test' database. "
            "Refusing to drop tables on it."
        )
    test_engine = make_engine(url)
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture(scope="function")
def db(engine: Engine) -> Generator[Session, None, None]:
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db_session = TestingSessionLocal()
    yield db_session
    db_session.close()


@pytest.fixture
def order_day() -> date:
    return ORDER_DAY


# --- catalog factories ---

@pytest.fixture
def make_modality(db: Session) -> Callable:
    def _make(code: str = "DX", aet=None, is_active: bool = True):
        obj = crud.modality.create(db, obj_in={
            "code": code,
            "name": f"{code} modality",
            "aet": aet if aet is not None else [f"{code}_ROOM1", f"{code}_ROOM2"],
            "is_active": is_active,
        })
        db.commit()
        return obj
    return _make


@pytest.fixture
def make_procedure(db: Session) -> Callable:
    def _make(modality, code: str = "DX-CHEST", **overrides):
        data = {
            "code": code,
            "name": "Chest X-ray PA",
            "loinc_code": "36643-5",
            "loinc_display": "XR Chest 2 Views",
            "modality_id": modality.id,
        }
        data.update(overrides)
        obj = crud.procedure.create(db, obj_in=data)
        db.commit()
        return obj
    return _make


@pytest.fixture
def modality(make_modality):
    return make_modality("DX")


@pytest.fixture
def procedure(make_procedure, modality):
    return make_procedure(modality)


@pytest.fixture
def practitioner(db: Session):
    obj = crud.practitioner.create(db, obj_in={"name": "Dr. Sari Wulandari", "ihs_number": "N10000001", "profession": "Radiologist"})
    db.commit()
    return obj


@pytest.fixture
def user(db: Session):
    obj = crud.user.create(db, obj_in={"name": "Front Desk", "email": "frontdesk@example.org"})
    db.commit()
    return obj


@pytest.fixture
def patient(db: Session):
    obj = crud.patient.create(db, obj_in={
        "name": "Budi Santoso",
        "mrn": "MRN-0001",
        "ihs_number": "P02478375538",
        "gender": Gender.MALE,
        "birth_date": date(1980, 6, 2),
    })
    db.commit()
    return obj


@pytest.fixture
def engine_factory() -> Callable[[str], Engine]:
    return make_engine
