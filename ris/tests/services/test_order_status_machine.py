"""
Tests for detail order status transitions and the dispatch gate.
"""
from datetime import datetime, timezone

import pytest

from ris.core.result import ErrorKind
from ris.db.models.order import DetailOrder
from ris.schemas.enums import DetailOrderStatus
from ris.services import order_status_machine

NOW = datetime(2024, 6, 1, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def ready_detail():
    """A detail line with every dispatch prerequisite in place."""
    return DetailOrder(
        id=1,
        accession_number="DX20240601001",
        order_number="ORD-20240601-0001",
        order_status=DetailOrderStatus.IN_REQUEST,
        modality_id=3,
        ae_title="DX_ROOM1",
        performer_id=7,
    )


class TestTransition:

    @pytest.mark.parametrize("current, target", [
        (DetailOrderStatus.IN_QUEUE, DetailOrderStatus.IN_PROGRESS),
        (DetailOrderStatus.IN_PROGRESS, DetailOrderStatus.FINAL),
    ])
    def test_forward_edges(self, ready_detail, current, target):
        ready_detail.order_status = current
        result = order_status_machine.transition(ready_detail, target, now=NOW)
        assert result.ok
        assert ready_detail.order_status == target
        assert ready_detail.status_updated_at == NOW

    def test_final_sets_finalized_at(self, ready_detail):
        ready_detail.order_status = DetailOrderStatus.IN_PROGRESS
        order_status_machine.transition(ready_detail, DetailOrderStatus.FINAL, now=NOW)
        assert ready_detail.finalized_at == NOW

    @pytest.mark.parametrize("current, target", [
        (DetailOrderStatus.IN_REQUEST, DetailOrderStatus.FINAL),
        (DetailOrderStatus.IN_REQUEST, DetailOrderStatus.IN_PROGRESS),
        (DetailOrderStatus.FINAL, DetailOrderStatus.IN_REQUEST),
        (DetailOrderStatus.IN_PROGRESS, DetailOrderStatus.IN_QUEUE),
    ])
    def test_illegal_edges_are_rejected(self, ready_detail, current, target):
        ready_detail.order_status = current
        result = order_status_machine.transition(ready_detail, target)
        assert not result.ok
        assert result.error.kind == ErrorKind.VALIDATION
        assert current.value in result.error.message and target.value in result.error.message
        assert ready_detail.order_status == current

    def test_same_state_is_a_no_op(self, ready_detail):
        result = order_status_machine.transition(ready_detail, DetailOrderStatus.IN_REQUEST, now=NOW)
        assert result.ok
        assert ready_detail.status_updated_at is None

    def test_override_allows_skipping(self, ready_detail):
        result = order_status_machine.transition(ready_detail, DetailOrderStatus.FINAL, override=True, now=NOW)
        assert result.ok
        assert ready_detail.order_status == DetailOrderStatus.FINAL

    def test_override_into_queue_still_checks_dispatch(self, ready_detail):
        ready_detail.order_status = DetailOrderStatus.FINAL
        ready_detail.ae_title = None
        result = order_status_machine.transition(ready_detail, DetailOrderStatus.IN_QUEUE, override=True)
        assert result.error.kind == ErrorKind.PRECONDITION_FAILED
        assert result.error.field == "ae_title"
        assert ready_detail.order_status == DetailOrderStatus.FINAL


class TestDispatchCheck:

    def test_ready_detail_passes(self, ready_detail):
        assert order_status_machine.check_dispatch(ready_detail).ok
        assert order_status_machine.can_push_to_mwl(ready_detail) is True

    @pytest.mark.parametrize("cleared, expected", [
        ("accession_number", "accession_number"),
        ("modality_id", "modality"),
        ("ae_title", "ae_title"),
        ("performer_id", "performer"),
    ])
    def test_reports_missing_field(self, ready_detail, cleared, expected):
        setattr(ready_detail, cleared, None)
        assert order_status_machine.check_dispatch(ready_detail).missing_field == expected

    def test_reports_first_missing_field(self, ready_detail):
        ready_detail.ae_title = None
        ready_detail.performer_id = None
        assert order_status_machine.check_dispatch(ready_detail).missing_field == "ae_title"

    def test_exchange_performer_id_is_enough(self, ready_detail):
        ready_detail.performer_id = None
        ready_detail.performer_ss_id = "N10000001"
        assert order_status_machine.check_dispatch(ready_detail).ok

    def test_cannot_push_once_queued(self, ready_detail):
        ready_detail.order_status = DetailOrderStatus.IN_QUEUE
        assert order_status_machine.can_push_to_mwl(ready_detail) is False


class TestStudyInstanceUid:

    def test_minted_on_entering_queue(self, ready_detail):
        assert order_status_machine.transition(ready_detail, DetailOrderStatus.IN_QUEUE, now=NOW).ok
        assert ready_detail.study_instance_uid

    def test_requeue_keeps_existing_uid(self, ready_detail):
        ready_detail.study_instance_uid = "1.2.826.0.1.3680043.8.498.7"
        ready_detail.order_status = DetailOrderStatus.FINAL
        assert order_status_machine.transition(ready_detail, DetailOrderStatus.IN_QUEUE, override=True).ok
        assert ready_detail.study_instance_uid == "1.2.826.0.1.3680043.8.498.7"

    def test_failed_dispatch_mints_nothing(self, ready_detail):
        ready_detail.performer_id = None
        assert not order_status_machine.transition(ready_detail, DetailOrderStatus.IN_QUEUE).ok
        assert ready_detail.study_instance_uid is None
