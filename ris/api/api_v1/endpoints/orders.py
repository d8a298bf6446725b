# ris/api/api_v1/endpoints/orders.py

from datetime import date
from typing import Any, Optional

import structlog
from fastapi import APIRouter, Body, Depends, Query, Response, status

from ris import schemas
from ris.api import deps
from ris.api.errors import raise_for_result
from ris.services.order_service import OrderService

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/", response_model=schemas.OrderListResponse)
def read_orders(
    service: OrderService = Depends(deps.get_order_service),
    page: int = Query(1, ge=1),
    per_page: Optional[int] = Query(None, ge=1, description="Clamped to ORDERS_MAX_PAGE_SIZE."),
    search: Optional[str] = Query(None, description="Matches patient name, MRN, practitioner name or order number."),
    patient_id: Optional[int] = None,
    practitioner_id: Optional[int] = None,
    order_status: Optional[schemas.DetailOrderStatus] = None,
    order_priority: Optional[schemas.OrderPriority] = None,
    order_from: Optional[schemas.OrderOrigin] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    sort: str = "created_at",
    direction: str = Query("desc", alias="dir", pattern="^(asc|desc|ASC|DESC)$"),
):
    """
    List orders with their detail lines. Status, priority and origin filters
    match when any detail line of the order matches.
    """
    return service.list_orders(
        page=page,
        per_page=per_page,
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


@router.get("/{order_id}", response_model=schemas.FullOrderRead)
def read_order(order_id: int, service: OrderService = Depends(deps.get_order_service)):
    return raise_for_result(service.get_order(order_id))


@router.post("/", response_model=schemas.FullOrderRead, status_code=status.HTTP_201_CREATED)
def create_order(
    *,
    order_in: schemas.OrderCreate,
    actor_id: int = Depends(deps.get_actor_id),
    service: OrderService = Depends(deps.get_order_service),
):
    """
    Create an order with one detail line per procedure. Order and accession
    numbers are assigned here and never supplied by the caller.
    """
    return raise_for_result(service.create_order(order_in, actor_id))


@router.patch("/{order_id}", response_model=schemas.FullOrderRead)
def update_order(
    order_id: int,
    order_in: schemas.OrderUpdate,
    service: OrderService = Depends(deps.get_order_service),
):
    return raise_for_result(service.update_order(order_id, order_in))


@router.delete("/{order_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_order(order_id: int, service: OrderService = Depends(deps.get_order_service)):
    raise_for_result(service.delete_order(order_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{order_id}/details/{detail_id}", response_model=schemas.DetailOrderRead)
def update_detail_order(
    order_id: int,
    detail_id: int,
    detail_in: schemas.DetailOrderUpdate,
    service: OrderService = Depends(deps.get_order_service),
):
    """
    Partial update of a detail line. ``order_status`` here is an authorized
    overwrite; moving into IN_QUEUE is still gated by the dispatch checks.
    """
    return raise_for_result(service.update_detail_order(order_id, detail_id, detail_in))


@router.delete("/{order_id}/details/{detail_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_detail_order(order_id: int, detail_id: int, service: OrderService = Depends(deps.get_order_service)):
    raise_for_result(service.delete_detail_order(order_id, detail_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.put("/{order_id}/details/{detail_id}/assignment", response_model=schemas.DetailOrderRead)
def assign_detail_order(
    order_id: int,
    detail_id: int,
    assignment: schemas.AssignmentIn,
    service: OrderService = Depends(deps.get_order_service),
):
    return raise_for_result(service.assign_modality_and_performer(order_id, detail_id, assignment))


@router.post("/{order_id}/details/{detail_id}/service-request", response_model=schemas.DetailOrderRead)
def apply_service_request(
    order_id: int,
    detail_id: int,
    payload: Any = Body(..., description="FHIR ServiceRequest resource."),
    service: OrderService = Depends(deps.get_order_service),
):
    return raise_for_result(service.apply_service_request(order_id, detail_id, payload))


@router.get("/{order_id}/details/{detail_id}/service-request")
def export_service_request(order_id: int, detail_id: int, service: OrderService = Depends(deps.get_order_service)):
    """Outbound FHIR ServiceRequest for the detail line."""
    return raise_for_result(service.export_service_request(order_id, detail_id))


@router.post("/{order_id}/details/{detail_id}/dispatch", response_model=schemas.DispatchProjection)
def dispatch_detail_order(order_id: int, detail_id: int, service: OrderService = Depends(deps.get_order_service)):
    """
    Move a detail line to IN_QUEUE and return the worklist projection.
    412 names the first missing prerequisite.
    """
    return raise_for_result(service.dispatch_detail_order(order_id, detail_id))


@router.get("/{order_id}/details/{detail_id}/worklist-item")
def read_worklist_item(order_id: int, detail_id: int, service: OrderService = Depends(deps.get_order_service)):
    """DICOM JSON rendering of the Modality Worklist item for a dispatched detail line."""
    dataset = raise_for_result(service.worklist_item(order_id, detail_id))
    return dataset.to_json_dict()


@router.post("/{order_id}/details/{detail_id}/finalize", response_model=schemas.DetailOrderRead)
def finalize_detail_order(
    order_id: int,
    detail_id: int,
    finalize_in: schemas.FinalizeIn,
    service: OrderService = Depends(deps.get_order_service),
):
    return raise_for_result(service.finalize_detail_order(order_id, detail_id, finalize_in))
