# ris/services/order_service.py
"""
Order lifecycle: creation with identifier assignment, listing, PATCH-style
updates, assignment, ServiceRequest ingestion, status changes, dispatch,
finalization and deletion.

Expected outcomes come back as ServiceResult. Database faults other than
identifier collisions propagate to the API boundary.
"""
from collections import defaultdict
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import structlog
from pydicom.dataset import Dataset
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ris import crud
from ris.core.config import settings
from ris.core.result import ErrorKind, ServiceResult
from ris.crud.crud_order import total_pages
from ris.db.models.order import DetailOrder, Order
from ris.db.models.procedure import Procedure
from ris.db.session import transaction_scope
from ris.schemas.dispatch import DispatchProjection
from ris.schemas.enums import AccessionScheme, DetailOrderStatus, OrderPriority
from ris.schemas.order import (
    AssignmentIn,
    CodeDisplay,
    DetailOrderRead,
    DetailOrderUpdate,
    ExamRead,
    FinalizeIn,
    FullOrderRead,
    ModalityRef,
    OrderCreate,
    OrderListResponse,
    OrderUpdate,
    PaginationMeta,
    PersonRef,
    UserRef,
)
from ris.schemas.service_request import MappedServiceRequest
from ris.services import identifier_service, order_status_machine
from ris.services.service_request_builder import build_service_request
from ris.services.service_request_mapper import map_service_request
from ris.services.worklist_service import render_worklist_dataset

logger = structlog.get_logger(__name__)

DIAGNOSTIC_FIELDS = ("observation_notes", "diagnostic_conclusion")
# PATCHable columns that are NOT NULL in the store
REQUIRED_DETAIL_FIELDS = ("order_priority",)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _age_on(birth_date: Optional[date], on: date) -> Optional[int]:
    if birth_date is None:
        return None
    years = on.year - birth_date.year
    if (on.month, on.day) < (birth_date.month, birth_date.day):
        years -= 1
    return max(years, 0)


def _code_display(code: Optional[str], display: Optional[str]) -> Optional[CodeDisplay]:
    if code is None and display is None:
        return None
    return CodeDisplay(code=code, display=display)


def _person(pk: Optional[int], ss_id: Optional[str], display: Optional[str]) -> Optional[PersonRef]:
    if pk is None and ss_id is None and display is None:
        return None
    return PersonRef(id=pk, ss_id=ss_id, display=display)


def format_detail(detail: DetailOrder) -> DetailOrderRead:
    procedure = detail.procedure
    modality = detail.modality
    return DetailOrderRead(
        id=detail.id,
        order_id=detail.order_id,
        accession_number=detail.accession_number,
        order_number=detail.order_number,
        external_accession_number=detail.external_accession_number,
        study_instance_uid=detail.study_instance_uid,
        order_date=detail.order_date,
        schedule_date=detail.schedule_date,
        occurrence_datetime=detail.occurrence_datetime,
        order_priority=detail.order_priority,
        order_status=detail.order_status,
        order_from=detail.order_from,
        status_updated_at=detail.status_updated_at,
        request_status=detail.request_status,
        request_intent=detail.request_intent,
        code_text=detail.code_text,
        notes=detail.notes,
        require_fasting=detail.require_fasting,
        require_pregnancy_check=detail.require_pregnancy_check,
        require_use_contrast=detail.require_use_contrast,
        service_request_id=detail.service_request_id,
        observation_id=detail.observation_id,
        procedure_ss_id=detail.procedure_ss_id,
        allergy_intolerance_id=detail.allergy_intolerance_id,
        observation_notes=detail.observation_notes,
        diagnostic_conclusion=detail.diagnostic_conclusion,
        finalized_at=detail.finalized_at,
        exam=ExamRead(
            id=procedure.id,
            code=procedure.code,
            name=procedure.name,
            loinc_code=procedure.loinc_code,
            loinc_display=procedure.loinc_display,
            require_fasting=procedure.require_fasting,
            require_pregnancy_check=procedure.require_pregnancy_check,
            require_use_contrast=procedure.require_use_contrast,
        ) if procedure is not None else None,
        modality=ModalityRef(
            id=modality.id if modality else None,
            code=modality.code if modality else None,
            name=modality.name if modality else None,
            ae_title=detail.ae_title,
        ) if modality is not None or detail.ae_title else None,
        requester=_person(detail.requester_id, detail.requester_ss_id, detail.requester_display),
        performer=_person(detail.performer_id, detail.performer_ss_id, detail.performer_display),
        loinc=_code_display(detail.loinc_code, detail.loinc_display),
        kptl=_code_display(detail.kptl_code, detail.kptl_display),
        contrast=_code_display(detail.contrast_code, detail.contrast_display),
        diagnosis=_code_display(detail.diagnosis_code, detail.diagnosis_display),
        can_push_to_mwl=order_status_machine.can_push_to_mwl(detail),
    )


def format_order(order: Order) -> FullOrderRead:
    return FullOrderRead(
        id=order.id,
        order_number=order.order_number,
        patient_id=order.patient_id,
        practitioner_id=order.practitioner_id,
        practitioner_name=order.practitioner.name if order.practitioner else None,
        encounter_ss_id=order.encounter_ss_id,
        service_id=order.service_id,
        patient_name=order.patient_name,
        patient_mrn=order.patient_mrn,
        patient_birth_date=order.patient_birth_date,
        patient_age=order.patient_age,
        patient_gender=order.patient_gender,
        created_by=UserRef.model_validate(order.created_by) if order.created_by else None,
        created_at=order.created_at,
        updated_at=order.updated_at,
        details=[format_detail(detail) for detail in order.details],
    )


class OrderService:
    """Operations on the Order/DetailOrder aggregate, bound to one session."""

    def __init__(self, db_session: Session):
        self.db = db_session

    # ------------------------------------------------------------------ reads

    def get_order(self, order_id: int) -> ServiceResult[FullOrderRead]:
        order = crud.order.get_full(self.db, order_id=order_id)
        if order is None:
            return ServiceResult.failure(ErrorKind.NOT_FOUND, f"Order {order_id} not found")
        return ServiceResult.success(format_order(order))

    def list_orders(
        self,
        *,
        page: int = 1,
        per_page: Optional[int] = None,
        search: Optional[str] = None,
        patient_id: Optional[int] = None,
        practitioner_id: Optional[int] = None,
        order_status: Optional[DetailOrderStatus] = None,
        order_priority: Optional[OrderPriority] = None,
        order_from: Optional[str] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        sort: str = "created_at",
        direction: str = "desc",
    ) -> OrderListResponse:
        page = max(page, 1)
        per_page = per_page or settings.ORDERS_DEFAULT_PAGE_SIZE
        per_page = max(1, min(per_page, settings.ORDERS_MAX_PAGE_SIZE))
        items, total = crud.order.get_orders_paginated(
            self.db,
            skip=(page - 1) * per_page,
            limit=per_page,
            search=search,
            patient_id=patient_id,
            practitioner_id=practitioner_id,
            order_status=order_status,
            order_priority=order_priority,
            order_from=order_from,
            date_from=date_from,
            date_to=date_to,
            sort=sort,
            direction=direction,
        )
        pages = total_pages(total, per_page)
        return OrderListResponse(
            items=[format_order(order) for order in items],
            meta=PaginationMeta(
                total=total,
                page=page,
                per_page=per_page,
                total_pages=pages,
                has_next_page=page < pages,
                has_prev_page=page > 1,
            ),
        )

    # ---------------------------------------------------------------- create

    def create_order(
        self,
        order_in: OrderCreate,
        actor_id: Optional[int],
        *,
        on: Optional[date] = None,
        scheme: Optional[AccessionScheme] = None,
    ) -> ServiceResult[FullOrderRead]:
        """
        Create an Order with one DetailOrder per requested procedure.

        All rows are written in one transaction. Identifiers are computed from
        the store; when a concurrent creation wins the race for the same
        identifier the unique constraint rejects the write, the transaction
        rolls back and the identifiers are recomputed, up to
        IDENTIFIER_MAX_ATTEMPTS times.
        """
        on = on or identifier_service.ris_today()
        scheme = identifier_service.resolve_scheme(scheme)
        log = logger.bind(actor_id=actor_id, detail_count=len(order_in.details))

        resolved = self._resolve_creation_refs(order_in, actor_id)
        if not resolved.ok:
            log.info("ORDER_CREATE_REJECTED", reason=resolved.error.message)
            return ServiceResult.failure(resolved.error.kind, resolved.error.message, resolved.error.field)
        context = resolved.data

        order_floor = 0
        accession_floors: Dict[str, int] = defaultdict(int)
        max_attempts = settings.IDENTIFIER_MAX_ATTEMPTS

        for attempt in range(1, max_attempts + 1):
            order_seq = max(identifier_service.next_order_sequence(self.db, on=on), order_floor + 1)
            baselines = {
                code: max(
                    identifier_service.next_accession_sequence(self.db, code, on=on, scheme=scheme),
                    accession_floors[code] + 1,
                )
                for code in {proc.modality.code for proc in context["procedures"]}
            }
            try:
                with transaction_scope(self.db):
                    order, used = self._insert_order(order_in, actor_id, context, on, scheme, order_seq, baselines)
            except IntegrityError as e:
                if not identifier_service.is_identifier_collision(e):
                    raise
                log.warning("IDENTIFIER_COLLISION_RETRY", attempt=attempt, max_attempts=max_attempts, error=str(e.orig))
                order_floor = order_seq
                for code, start in baselines.items():
                    accession_floors[code] = start
                continue

            log.info(
                "ORDER_CREATED",
                order_id=order.id,
                order_number=order.order_number,
                accession_numbers=used,
                attempt=attempt,
            )
            return self.get_order(order.id)

        log.error("IDENTIFIER_RETRIES_EXHAUSTED", max_attempts=max_attempts)
        return ServiceResult.failure(
            ErrorKind.CONFLICT,
            f"Could not allocate unique identifiers after {max_attempts} attempts",
            field="accession_number",
        )

    def _resolve_creation_refs(self, order_in: OrderCreate, actor_id: Optional[int]) -> ServiceResult[Dict[str, Any]]:
        """Every lookup happens before the first write."""
        patient = None
        if order_in.patient_id is not None:
            patient = crud.patient.get(self.db, order_in.patient_id)
            if patient is None:
                return ServiceResult.failure(ErrorKind.VALIDATION, f"Patient {order_in.patient_id} not found", "patient_id")

        practitioner = None
        if order_in.practitioner_id is not None:
            practitioner = crud.practitioner.get(self.db, order_in.practitioner_id)
            if practitioner is None:
                return ServiceResult.failure(
                    ErrorKind.VALIDATION, f"Practitioner {order_in.practitioner_id} not found", "practitioner_id"
                )

        if actor_id is not None and crud.user.get(self.db, actor_id) is None:
            return ServiceResult.failure(ErrorKind.VALIDATION, f"User {actor_id} not found", "created_by")

        catalog = crud.procedure.get_many(self.db, ids=[d.procedure_id for d in order_in.details])
        procedures: List[Procedure] = []
        requesters: List[Any] = []
        mapped: List[Dict[str, Any]] = []
        for index, detail_in in enumerate(order_in.details):
            proc = catalog.get(detail_in.procedure_id)
            if proc is None or not proc.is_active:
                return ServiceResult.failure(
                    ErrorKind.VALIDATION,
                    f"Procedure {detail_in.procedure_id} not found or inactive",
                    f"details[{index}].procedure_id",
                )
            procedures.append(proc)

            requester = practitioner
            if detail_in.requester_id is not None:
                requester = crud.practitioner.get(self.db, detail_in.requester_id)
                if requester is None:
                    return ServiceResult.failure(
                        ErrorKind.VALIDATION,
                        f"Practitioner {detail_in.requester_id} not found",
                        f"details[{index}].requester_id",
                    )
            requesters.append(requester)

            updates: Dict[str, Any] = {}
            if detail_in.service_request is not None:
                converted = self._mapped_updates(map_service_request(detail_in.service_request))
                if not converted.ok:
                    return ServiceResult.failure(
                        converted.error.kind, converted.error.message, f"details[{index}].{converted.error.field}"
                    )
                updates = converted.data
            mapped.append(updates)

        return ServiceResult.success({
            "patient": patient,
            "practitioner": practitioner,
            "procedures": procedures,
            "requesters": requesters,
            "mapped": mapped,
        })

    def _insert_order(
        self,
        order_in: OrderCreate,
        actor_id: Optional[int],
        context: Dict[str, Any],
        on: date,
        scheme: AccessionScheme,
        order_seq: int,
        baselines: Dict[str, int],
    ) -> Tuple[Order, List[str]]:
        patient = context["patient"]
        now = _utcnow()
        order_number = identifier_service.format_order_number(on, order_seq)

        birth_date = patient.birth_date if patient else order_in.patient_birth_date
        order = Order(
            patient_id=patient.id if patient else None,
            practitioner_id=order_in.practitioner_id,
            created_by_id=actor_id,
            encounter_ss_id=order_in.encounter_ss_id,
            service_id=order_in.service_id,
            order_number=order_number,
            patient_name=patient.name if patient else order_in.patient_name,
            patient_mrn=patient.mrn if patient else order_in.patient_mrn,
            patient_birth_date=birth_date,
            patient_age=_age_on(birth_date, on),
            patient_gender=patient.gender if patient else order_in.patient_gender,
        )
        self.db.add(order)
        self.db.flush()

        next_seq = dict(baselines)
        used: List[str] = []
        for detail_in, proc, requester, updates in zip(
            order_in.details, context["procedures"], context["requesters"], context["mapped"]
        ):
            code = proc.modality.code
            accession_number = identifier_service.format_accession_number(code, on, next_seq[code], scheme)
            next_seq[code] += 1
            detail = DetailOrder(
                order_id=order.id,
                procedure_id=proc.id,
                accession_number=accession_number,
                order_number=order_number,
                order_date=now,
                schedule_date=detail_in.schedule_date or now,
                order_priority=detail_in.order_priority,
                order_status=DetailOrderStatus.IN_REQUEST,
                order_from=detail_in.order_from,
                status_updated_at=now,
                requester_id=requester.id if requester else None,
                requester_ss_id=requester.ihs_number if requester else None,
                requester_display=requester.name if requester else None,
                loinc_code=proc.loinc_code,
                loinc_display=proc.loinc_display,
                code_text=proc.name,
                contrast_code=proc.contrast_kfa_code if proc.require_use_contrast else None,
                contrast_display=proc.contrast_name if proc.require_use_contrast else None,
                diagnosis_code=detail_in.diagnosis_code,
                diagnosis_display=detail_in.diagnosis_display,
                notes=detail_in.notes,
                # point-in-time copy of the catalog flags
                require_fasting=proc.require_fasting,
                require_pregnancy_check=proc.require_pregnancy_check,
                require_use_contrast=proc.require_use_contrast,
            )
            for field, value in updates.items():
                setattr(detail, field, value)
            self.db.add(detail)
            used.append(accession_number)
        self.db.flush()
        return order, used

    # ---------------------------------------------------------------- update

    def update_order(self, order_id: int, order_in: OrderUpdate) -> ServiceResult[FullOrderRead]:
        order = crud.order.get(self.db, order_id)
        if order is None:
            return ServiceResult.failure(ErrorKind.NOT_FOUND, f"Order {order_id} not found")
        update_data = order_in.model_dump(exclude_unset=True)
        if update_data.get("practitioner_id") is not None and crud.practitioner.get(self.db, update_data["practitioner_id"]) is None:
            return ServiceResult.failure(
                ErrorKind.VALIDATION, f"Practitioner {update_data['practitioner_id']} not found", "practitioner_id"
            )
        with transaction_scope(self.db):
            crud.order.update(self.db, db_obj=order, obj_in=update_data)
        logger.info("ORDER_UPDATED", order_id=order_id, fields=sorted(update_data))
        return self.get_order(order_id)

    def update_detail_order(
        self, order_id: int, detail_id: int, detail_in: DetailOrderUpdate
    ) -> ServiceResult[DetailOrderRead]:
        """
        PATCH a detail line. A status in the payload is an authorized
        overwrite and still passes through the state machine. Diagnostic
        fields are only accepted when the line ends up FINAL.
        """
        detail = crud.detail_order.get_for_order(self.db, order_id=order_id, detail_id=detail_id)
        if detail is None:
            return self._detail_not_found(order_id, detail_id)

        update_data = detail_in.model_dump(exclude_unset=True)
        for field in REQUIRED_DETAIL_FIELDS:
            if field in update_data and update_data[field] is None:
                return ServiceResult.failure(ErrorKind.VALIDATION, f"{field} cannot be null", field)
        target = update_data.pop("order_status", None)
        resulting_status = DetailOrderStatus(target) if target is not None else detail.order_status
        diagnostics = {k: update_data.pop(k) for k in DIAGNOSTIC_FIELDS if k in update_data}
        if diagnostics and resulting_status != DetailOrderStatus.FINAL:
            return ServiceResult.failure(
                ErrorKind.VALIDATION,
                "Diagnostic results can only be recorded on a FINAL detail order",
                next(iter(diagnostics)),
            )

        with transaction_scope(self.db):
            if target is not None:
                result = order_status_machine.transition(detail, target, override=True)
                if not result.ok:
                    return ServiceResult.failure(result.error.kind, result.error.message, result.error.field)
            update_data.update(diagnostics)
            crud.detail_order.update(self.db, db_obj=detail, obj_in=update_data)

        logger.info("DETAIL_ORDER_UPDATED", order_id=order_id, detail_order_id=detail_id,
                    fields=sorted(update_data), status=detail.order_status.value)
        return ServiceResult.success(format_detail(detail))

    def assign_modality_and_performer(
        self, order_id: int, detail_id: int, assignment: AssignmentIn
    ) -> ServiceResult[DetailOrderRead]:
        detail = crud.detail_order.get_for_order(self.db, order_id=order_id, detail_id=detail_id)
        if detail is None:
            return self._detail_not_found(order_id, detail_id)

        modality = crud.modality.get(self.db, assignment.modality_id)
        if modality is None or not modality.is_active:
            return ServiceResult.failure(
                ErrorKind.VALIDATION, f"Modality {assignment.modality_id} not found or inactive", "modality_id"
            )
        if not modality.serves_ae_title(assignment.ae_title):
            return ServiceResult.failure(
                ErrorKind.VALIDATION,
                f"AE title '{assignment.ae_title}' is not served by modality {modality.code}",
                "ae_title",
            )
        performer = crud.practitioner.get(self.db, assignment.performer_id)
        if performer is None:
            return ServiceResult.failure(
                ErrorKind.VALIDATION, f"Practitioner {assignment.performer_id} not found", "performer_id"
            )

        with transaction_scope(self.db):
            detail.modality = modality
            detail.ae_title = assignment.ae_title
            detail.performer = performer
            detail.performer_ss_id = performer.ihs_number
            detail.performer_display = performer.name

        logger.info("DETAIL_ORDER_ASSIGNED", order_id=order_id, detail_order_id=detail_id,
                    modality=modality.code, ae_title=assignment.ae_title, performer_id=performer.id)
        return ServiceResult.success(format_detail(detail))

    def apply_service_request(
        self, order_id: int, detail_id: int, payload: Any
    ) -> ServiceResult[DetailOrderRead]:
        detail = crud.detail_order.get_for_order(self.db, order_id=order_id, detail_id=detail_id)
        if detail is None:
            return self._detail_not_found(order_id, detail_id)
        try:
            mapped = map_service_request(payload)
        except ValueError as e:
            return ServiceResult.failure(ErrorKind.VALIDATION, str(e), "service_request")

        converted = self._mapped_updates(mapped)
        if not converted.ok:
            return ServiceResult.failure(converted.error.kind, converted.error.message, converted.error.field)

        with transaction_scope(self.db):
            for field, value in converted.data.items():
                setattr(detail, field, value)

        logger.info("SERVICE_REQUEST_APPLIED", order_id=order_id, detail_order_id=detail_id,
                    fields=sorted(converted.data))
        return ServiceResult.success(format_detail(detail))

    def _mapped_updates(self, mapped: MappedServiceRequest) -> ServiceResult[Dict[str, Any]]:
        """Mapped fields as column values; a mapped modality code must resolve to a modality row."""
        updates = mapped.model_dump(exclude_unset=True)
        modality_code = updates.pop("modality_code", None)
        if modality_code is not None:
            modality = crud.modality.get_by_code(self.db, code=modality_code)
            if modality is None:
                return ServiceResult.failure(ErrorKind.VALIDATION, f"Unknown modality code '{modality_code}'", "modality_code")
            updates["modality_id"] = modality.id
        # keep each practitioner FK pointing at the person the mapped ss_id names
        for role in ("requester", "performer"):
            ss_id = updates.get(f"{role}_ss_id")
            if ss_id is None:
                continue
            person = crud.practitioner.get_by_ihs_number(self.db, ihs_number=ss_id)
            updates[f"{role}_id"] = person.id if person else None
            if person is not None and not updates.get(f"{role}_display"):
                updates[f"{role}_display"] = person.name
        if "order_priority" in updates:
            updates["order_priority"] = OrderPriority(updates["order_priority"])
        return ServiceResult.success(updates)

    # ---------------------------------------------------------------- status

    def transition_status(
        self, order_id: int, detail_id: int, target: DetailOrderStatus, *, override: bool = False
    ) -> ServiceResult[DetailOrderRead]:
        detail = crud.detail_order.get_for_order(self.db, order_id=order_id, detail_id=detail_id)
        if detail is None:
            return self._detail_not_found(order_id, detail_id)
        with transaction_scope(self.db):
            result = order_status_machine.transition(detail, target, override=override)
        if not result.ok:
            return ServiceResult.failure(result.error.kind, result.error.message, result.error.field)
        return ServiceResult.success(format_detail(detail))

    def dispatch_detail_order(self, order_id: int, detail_id: int) -> ServiceResult[DispatchProjection]:
        """
        Gate and hand off a detail line to the worklist: run the dispatch
        checks, move it to IN_QUEUE and return the projection the worklist
        collaborator needs.
        """
        detail = crud.detail_order.get_for_order(self.db, order_id=order_id, detail_id=detail_id)
        if detail is None:
            return self._detail_not_found(order_id, detail_id)

        with transaction_scope(self.db):
            result = order_status_machine.transition(detail, DetailOrderStatus.IN_QUEUE)
        if not result.ok:
            return ServiceResult.failure(result.error.kind, result.error.message, result.error.field)

        projection = order_status_machine.build_projection(detail)
        logger.info("DETAIL_ORDER_DISPATCHED", order_id=order_id, detail_order_id=detail_id,
                    accession_number=detail.accession_number, ae_title=detail.ae_title)
        return ServiceResult.success(projection)

    def finalize_detail_order(
        self, order_id: int, detail_id: int, finalize_in: FinalizeIn
    ) -> ServiceResult[DetailOrderRead]:
        """IN_PROGRESS -> FINAL, writing the diagnostic result in the same commit."""
        detail = crud.detail_order.get_for_order(self.db, order_id=order_id, detail_id=detail_id)
        if detail is None:
            return self._detail_not_found(order_id, detail_id)

        with transaction_scope(self.db):
            result = order_status_machine.transition(detail, DetailOrderStatus.FINAL)
            if result.ok:
                detail.observation_notes = finalize_in.observation_notes
                detail.diagnostic_conclusion = finalize_in.diagnostic_conclusion
        if not result.ok:
            return ServiceResult.failure(result.error.kind, result.error.message, result.error.field)

        logger.info("DETAIL_ORDER_FINALIZED", order_id=order_id, detail_order_id=detail_id,
                    accession_number=detail.accession_number)
        return ServiceResult.success(format_detail(detail))

    def worklist_item(self, order_id: int, detail_id: int) -> ServiceResult[Dataset]:
        """Worklist dataset for a detail line that has been dispatched and not yet started."""
        detail = crud.detail_order.get_for_order(self.db, order_id=order_id, detail_id=detail_id)
        if detail is None:
            return self._detail_not_found(order_id, detail_id)
        if detail.order_status != DetailOrderStatus.IN_QUEUE:
            return ServiceResult.failure(
                ErrorKind.PRECONDITION_FAILED,
                f"Detail order is {detail.order_status.value}, only IN_QUEUE lines are on the worklist",
                "order_status",
            )
        return ServiceResult.success(render_worklist_dataset(order_status_machine.build_projection(detail)))

    def export_service_request(self, order_id: int, detail_id: int) -> ServiceResult[Dict[str, Any]]:
        """Outbound ServiceRequest for the health-exchange client."""
        detail = crud.detail_order.get_for_order(self.db, order_id=order_id, detail_id=detail_id)
        if detail is None:
            return self._detail_not_found(order_id, detail_id)
        return ServiceResult.success(build_service_request(detail, detail.order, settings.ORGANIZATION_ID))

    # ---------------------------------------------------------------- delete

    def delete_order(self, order_id: int) -> ServiceResult[bool]:
        with transaction_scope(self.db):
            deleted = crud.order.delete_with_details(self.db, order_id=order_id)
        if not deleted:
            return ServiceResult.failure(ErrorKind.NOT_FOUND, f"Order {order_id} not found")
        return ServiceResult.success(True)

    def delete_detail_order(self, order_id: int, detail_id: int) -> ServiceResult[bool]:
        detail = crud.detail_order.get_for_order(self.db, order_id=order_id, detail_id=detail_id)
        if detail is None:
            return self._detail_not_found(order_id, detail_id)
        if crud.detail_order.count_for_order(self.db, order_id=order_id) <= 1:
            return ServiceResult.failure(
                ErrorKind.PRECONDITION_FAILED,
                "Cannot delete the last detail order of an order; delete the order instead",
                "detail_id",
            )
        with transaction_scope(self.db):
            crud.detail_order.delete_by_id(self.db, detail_id=detail_id)
        logger.info("DETAIL_ORDER_DELETED", order_id=order_id, detail_order_id=detail_id)
        return ServiceResult.success(True)

    def purge_all_orders(self) -> ServiceResult[Dict[str, int]]:
        """Administrative purge: every detail line, then every order, in one transaction."""
        with transaction_scope(self.db):
            details_deleted, orders_deleted = crud.order.purge_all(self.db)
        logger.warning("ORDERS_PURGED", details_deleted=details_deleted, orders_deleted=orders_deleted)
        return ServiceResult.success({"details_deleted": details_deleted, "orders_deleted": orders_deleted})

    @staticmethod
    def _detail_not_found(order_id: int, detail_id: int) -> ServiceResult:
        return ServiceResult.failure(
            ErrorKind.NOT_FOUND, f"Detail order {detail_id} not found on order {order_id}"
        )
