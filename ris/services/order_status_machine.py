# ris/services/order_status_machine.py
"""
Detail order status transitions and the dispatch gate.

    IN_REQUEST -> IN_QUEUE -> IN_PROGRESS -> FINAL

Every status change goes through ``transition``. Entering IN_QUEUE hands the
line to imaging hardware, so that edge always runs ``check_dispatch`` first,
including for authorized overwrites.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Dict, FrozenSet, Optional, Tuple

import structlog
from pydicom.uid import generate_uid

from ris.core.result import ErrorKind, ServiceResult
from ris.db.models.order import DetailOrder
from ris.schemas.dispatch import DispatchProjection
from ris.schemas.enums import DetailOrderStatus

logger = structlog.get_logger(__name__)

TRANSITIONS: Dict[DetailOrderStatus, FrozenSet[DetailOrderStatus]] = {
    DetailOrderStatus.IN_REQUEST: frozenset({DetailOrderStatus.IN_QUEUE}),
    DetailOrderStatus.IN_QUEUE: frozenset({DetailOrderStatus.IN_PROGRESS}),
    DetailOrderStatus.IN_PROGRESS: frozenset({DetailOrderStatus.FINAL}),
    DetailOrderStatus.FINAL: frozenset(),
}

# Checked in this order; the first failure is reported.
DISPATCH_REQUIREMENTS: Tuple[Tuple[str, Callable[[DetailOrder], bool]], ...] = (
    ("accession_number", lambda d: bool(d.accession_number)),
    ("modality", lambda d: d.modality_id is not None),
    ("ae_title", lambda d: bool(d.ae_title)),
    ("performer", lambda d: d.performer_id is not None or bool(d.performer_ss_id)),
)


@dataclass(frozen=True)
class DispatchCheck:
    missing_field: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.missing_field is None


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def check_dispatch(detail: DetailOrder) -> DispatchCheck:
    """Fail fast: name the first requirement the detail line does not meet."""
    for field, satisfied in DISPATCH_REQUIREMENTS:
        if not satisfied(detail):
            return DispatchCheck(missing_field=field)
    return DispatchCheck()


def can_push_to_mwl(detail: DetailOrder) -> bool:
    return detail.order_status == DetailOrderStatus.IN_REQUEST and check_dispatch(detail).ok


def is_allowed(current: DetailOrderStatus, target: DetailOrderStatus) -> bool:
    return target in TRANSITIONS[current]


def transition(
    detail: DetailOrder,
    target: DetailOrderStatus,
    *,
    override: bool = False,
    now: Optional[datetime] = None,
) -> ServiceResult[DetailOrder]:
    """
    Move ``detail`` to ``target`` in memory; the caller commits.

    Adjacent forward edges only, unless ``override`` (an authorized caller
    overwriting the status). Requests for the current status are no-ops. On
    failure the detail is left untouched.
    """
    target = DetailOrderStatus(target)
    current = DetailOrderStatus(detail.order_status)
    log = logger.bind(detail_order_id=detail.id, from_status=current.value, to_status=target.value)

    if target == current:
        return ServiceResult.success(detail)

    if not override and not is_allowed(current, target):
        log.info("STATUS_TRANSITION_REJECTED")
        return ServiceResult.failure(
            ErrorKind.VALIDATION,
            f"Illegal status transition {current.value} -> {target.value}",
            field="order_status",
        )

    if target == DetailOrderStatus.IN_QUEUE:
        check = check_dispatch(detail)
        if not check.ok:
            log.info("DISPATCH_PRECONDITION_FAILED", missing_field=check.missing_field)
            return ServiceResult.failure(
                ErrorKind.PRECONDITION_FAILED,
                f"Cannot dispatch detail order: {check.missing_field} is not set",
                field=check.missing_field,
            )
        if not detail.study_instance_uid:
            detail.study_instance_uid = generate_uid()

    now = now or _utcnow()
    detail.order_status = target
    detail.status_updated_at = now
    if target == DetailOrderStatus.FINAL:
        detail.finalized_at = now
    log.info("STATUS_TRANSITION_APPLIED", override=override)
    return ServiceResult.success(detail)


def build_projection(detail: DetailOrder) -> DispatchProjection:
    """Worklist projection of a detail line that passed ``check_dispatch``."""
    order = detail.order
    procedure = detail.procedure
    return DispatchProjection(
        accession_number=detail.accession_number,
        modality_code=detail.modality.code,
        ae_title=detail.ae_title,
        study_instance_uid=detail.study_instance_uid,
        performer_display=detail.performer_display,
        procedure_code=detail.loinc_code or (procedure.loinc_code if procedure else None),
        procedure_display=detail.loinc_display or detail.code_text or (procedure.name if procedure else None),
        scheduled_datetime=detail.schedule_date,
        patient_name=order.patient_name,
        patient_mrn=order.patient_mrn,
        patient_birth_date=order.patient_birth_date,
        patient_age=order.patient_age,
        patient_gender=order.patient_gender,
    )
