"""
Tests for order and detail order persistence queries.
"""
from datetime import datetime, timezone

import pytest

from ris import crud
from ris.db.models.order import DetailOrder, Order
from ris.schemas.enums import DetailOrderStatus, OrderPriority


@pytest.fixture
def seed(db, procedure):
    """Persist one order per (order_number, accession numbers) pair."""
    def _seed(order_number, *accession_numbers, patient_name="Budi Santoso", status=DetailOrderStatus.IN_REQUEST):
        order = Order(order_number=order_number, patient_name=patient_name, patient_mrn=f"MRN-{order_number[-4:]}")
        db.add(order)
        db.flush()
        for accession_number in accession_numbers:
            db.add(DetailOrder(
                order_id=order.id,
                procedure_id=procedure.id,
                accession_number=accession_number,
                order_number=order_number,
                order_date=datetime(2024, 6, 1, 8, 0, tzinfo=timezone.utc),
                order_priority=OrderPriority.ROUTINE,
                order_status=status,
            ))
        db.commit()
        return order
    return _seed


class TestHighestIdentifier:

    def test_overflow_suffix_sorts_above_999(self, db, seed):
        seed("ORD-20240601-0001", "DX20240601999", "DX202406011000")
        assert crud.detail_order.last_accession_number(db, prefix="DX20240601") == "DX202406011000"

    def test_prefix_scopes_day_and_modality(self, db, seed):
        seed("ORD-20240601-0001", "DX20240601004", "CT20240601009")
        seed("ORD-20240602-0001", "DX20240602007")
        assert crud.detail_order.last_accession_number(db, prefix="DX20240601") == "DX20240601004"
        assert crud.detail_order.last_accession_number(db, prefix="MR20240601") is None

    def test_schemes_do_not_mix(self, db, seed):
        seed("ORD-20240601-0001", "DX20240601004", "DX-20240601-002")
        assert crud.detail_order.last_accession_number(db, prefix="DX-20240601-") == "DX-20240601-002"

    def test_last_order_number(self, db, seed):
        seed("ORD-20240601-0002", "DX20240601001")
        seed("ORD-20240601-0010", "DX20240601002")
        assert crud.order.last_order_number(db, prefix="ORD-20240601-") == "ORD-20240601-0010"


class TestDetailLookup:

    def test_detail_resolves_only_through_its_order(self, db, seed):
        a = seed("ORD-20240601-0001", "DX20240601001")
        b = seed("ORD-20240601-0002", "DX20240601002")
        detail_id = a.details[0].id
        assert crud.detail_order.get_for_order(db, order_id=a.id, detail_id=detail_id) is not None
        assert crud.detail_order.get_for_order(db, order_id=b.id, detail_id=detail_id) is None

    def test_delete_with_details(self, db, seed):
        order = seed("ORD-20240601-0001", "DX20240601001", "DX20240601002")
        order_id = order.id
        assert crud.order.delete_with_details(db, order_id=order_id) is True
        db.commit()
        assert crud.order.get(db, order_id) is None
        assert crud.detail_order.count_for_order(db, order_id=order_id) == 0
        assert crud.order.delete_with_details(db, order_id=order_id) is False


class TestPaginatedQuery:

    def test_filters_on_any_detail_line(self, db, seed):
        seed("ORD-20240601-0001", "DX20240601001", status=DetailOrderStatus.FINAL)
        seed("ORD-20240601-0002", "DX20240601002")
        items, total = crud.order.get_orders_paginated(db, order_status=DetailOrderStatus.FINAL)
        assert total == 1
        assert items[0].order_number == "ORD-20240601-0001"

    def test_sort_and_search(self, db, seed):
        seed("ORD-20240601-0001", "DX20240601001", patient_name="Zaenal")
        seed("ORD-20240601-0002", "DX20240601002", patient_name="Ani")
        items, total = crud.order.get_orders_paginated(db, sort="patient_name", direction="asc")
        assert [o.patient_name for o in items] == ["Ani", "Zaenal"]
        _, total = crud.order.get_orders_paginated(db, search="zae")
        assert total == 1
