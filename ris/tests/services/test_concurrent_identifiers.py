"""
Concurrent order creation against one shared database file: every accession
and order number handed out must be distinct.
"""
import threading
from datetime import date

import pytest
from sqlalchemy.orm import sessionmaker

from ris import crud
from ris.db.base import Base
from ris.schemas.enums import AccessionScheme
from ris.schemas.order import DetailOrderCreate, OrderCreate
from ris.services.order_service import OrderService

WORKERS = 4
DAY = date(2024, 6, 1)


@pytest.fixture
def shared_engine(tmp_path, engine_factory):
    engine = engine_factory(f"sqlite:///{tmp_path / 'orders.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


def test_parallel_creation_yields_unique_identifiers(shared_engine):
    Session = sessionmaker(autocommit=False, autoflush=False, bind=shared_engine)
    with Session() as setup:
        dx = crud.modality.create(setup, obj_in={"code": "DX", "name": "Digital Radiography", "aet": ["DX_ROOM1"]})
        proc = crud.procedure.create(setup, obj_in={
            "code": "DX-CHEST", "name": "Chest X-ray", "loinc_code": "36643-5",
            "loinc_display": "XR Chest 2 Views", "modality_id": dx.id,
        })
        actor = crud.user.create(setup, obj_in={"name": "Scheduler", "email": "scheduler@example.org"})
        setup.commit()
        procedure_id, actor_id = proc.id, actor.id

    barrier = threading.Barrier(WORKERS)
    results, errors = [], []

    def worker(n):
        with Session() as db:
            order_in = OrderCreate(
                patient_name=f"Patient {n}",
                details=[DetailOrderCreate(procedure_id=procedure_id), DetailOrderCreate(procedure_id=procedure_id)],
            )
            barrier.wait()
            try:
                results.append(OrderService(db).create_order(order_in, actor_id, on=DAY, scheme=AccessionScheme.CONTIGUOUS))
            except Exception as e:  # surfaced by the assertions below
                errors.append(e)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(WORKERS)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=120)

    assert errors == []
    assert all(r.ok for r in results), [r.error for r in results if not r.ok]
    orders = [r.data for r in results]
    accession_numbers = [d.accession_number for o in orders for d in o.details]
    order_numbers = [o.order_number for o in orders]

    assert len(orders) == WORKERS
    assert len(set(accession_numbers)) == len(accession_numbers) == WORKERS * 2
    assert len(set(order_numbers)) == WORKERS
    assert all(a.startswith("DX20240601") for a in accession_numbers)
