# ris/services/service_request_mapper.py
"""
Maps an inbound FHIR ServiceRequest onto DetailOrder fields.

Each field is extracted on its own, so a malformed or missing element only
costs that element. When several array entries satisfy the same predicate
the first one wins. Fields that are not found are left unset on the result.
"""
import copy
from typing import Any, Callable, Dict, Iterable, Optional, Union

import structlog

from ris.schemas.enums import OrderPriority
from ris.schemas.service_request import (
    CodeableConcept,
    Coding,
    MappedServiceRequest,
    Reference,
    ServiceRequestPayload,
)

logger = structlog.get_logger(__name__)

ACSN_TYPE_CODE = "ACSN"
SERVICE_REQUEST_SYSTEM_MARKER = "/servicerequest/"
LOINC_SYSTEM_MARKER = "loinc.org"
KPTL_SYSTEM_MARKER = "kptl"
DICOM_MODALITY_SYSTEM_MARKER = "dicom.nema.org"
AE_TITLE_SYSTEM_MARKER = "ae-title"
CONTRAST_SYSTEM_MARKER = "kfa"

SUPPORTING_INFO_TARGETS = {
    "Observation/": "observation_id",
    "Procedure/": "procedure_ss_id",
    "AllergyIntolerance/": "allergy_intolerance_id",
}


def _system_contains(coding: Coding, marker: str) -> bool:
    return marker in (coding.system or "").lower()


def _first(items: Iterable[Any], predicate: Callable[[Any], bool]) -> Optional[Any]:
    for item in items:
        if predicate(item):
            return item
    return None


def _codings(concepts: Iterable[Optional[CodeableConcept]]) -> Iterable[Coding]:
    for concept in concepts:
        if concept is None:
            continue
        yield from concept.coding


def parse_payload(payload: Union[ServiceRequestPayload, Dict[str, Any]]) -> ServiceRequestPayload:
    if isinstance(payload, ServiceRequestPayload):
        return payload
    if not isinstance(payload, dict):
        raise ValueError("ServiceRequest payload must be a JSON object")
    return ServiceRequestPayload.model_validate(payload)


def map_service_request(payload: Union[ServiceRequestPayload, Dict[str, Any]]) -> MappedServiceRequest:
    """
    Derive DetailOrder fields from a ServiceRequest.

    Raises ValueError only when the payload is not an object at all; every
    nested oddity degrades to "field not found".
    """
    request = parse_payload(payload)
    found: Dict[str, Any] = {}

    # --- status / intent / priority / occurrence ---
    if request.status:
        found["request_status"] = request.status
    if request.intent:
        found["request_intent"] = request.intent
    if request.priority:
        priority = OrderPriority.normalize(request.priority)
        if priority is not None:
            found["order_priority"] = priority.value
        else:
            logger.warning("SERVICE_REQUEST_UNKNOWN_PRIORITY", priority=request.priority)
    if request.occurrenceDateTime:
        found["occurrence_datetime"] = request.occurrenceDateTime

    # --- identifiers ---
    acsn = _first(
        request.identifier,
        lambda ident: ident.value and ident.type is not None
        and any((c.code or "").upper() == ACSN_TYPE_CODE for c in ident.type.coding),
    )
    if acsn is not None:
        found["external_accession_number"] = acsn.value

    sr_ident = _first(
        request.identifier,
        lambda ident: ident.value and SERVICE_REQUEST_SYSTEM_MARKER in (ident.system or "").lower(),
    )
    if sr_ident is not None:
        found["service_request_id"] = sr_ident.value

    # --- procedure coding ---
    procedure_codings = list(_codings([*request.category, request.code]))
    loinc = _first(procedure_codings, lambda c: c.code and _system_contains(c, LOINC_SYSTEM_MARKER))
    if loinc is not None:
        found["loinc_code"] = loinc.code
        if loinc.display:
            found["loinc_display"] = loinc.display
    kptl = _first(procedure_codings, lambda c: c.code and _system_contains(c, KPTL_SYSTEM_MARKER))
    if kptl is not None:
        found["kptl_code"] = kptl.code
        if kptl.display:
            found["kptl_display"] = kptl.display
    if request.code is not None and request.code.text:
        found["code_text"] = request.code.text

    # --- orderDetail: modality, AE title, contrast ---
    detail_codings = list(_codings(request.orderDetail))
    modality = _first(detail_codings, lambda c: c.code and _system_contains(c, DICOM_MODALITY_SYSTEM_MARKER))
    if modality is not None:
        found["modality_code"] = modality.code.upper()
    ae_title = _first(detail_codings, lambda c: (c.display or c.code) and _system_contains(c, AE_TITLE_SYSTEM_MARKER))
    if ae_title is not None:
        found["ae_title"] = ae_title.display or ae_title.code
    contrast = _first(detail_codings, lambda c: c.code and _system_contains(c, CONTRAST_SYSTEM_MARKER))
    if contrast is not None:
        found["contrast_code"] = contrast.code
        found["contrast_display"] = contrast.display or contrast.code

    # --- requester / performer ---
    found.update(_reference_fields(request.requester, "requester"))
    performer = _first(request.performer, lambda ref: ref.referenced_id or ref.display)
    found.update(_reference_fields(performer, "performer"))

    # --- reasonCode ---
    if request.reasonCode and request.reasonCode[0].coding:
        reason = request.reasonCode[0].coding[0]
        if reason.code:
            found["diagnosis_code"] = reason.code
        if reason.display:
            found["diagnosis_display"] = reason.display

    # --- supportingInfo ---
    for prefix, field in SUPPORTING_INFO_TARGETS.items():
        ref = _first(request.supportingInfo, lambda r: (r.reference or "").startswith(prefix) and r.referenced_id)
        if ref is not None:
            found[field] = ref.referenced_id

    if isinstance(payload, dict):
        found["service_request_json"] = copy.deepcopy(payload)
    else:
        found["service_request_json"] = request.model_dump(mode="json", exclude_unset=True)
    logger.debug("SERVICE_REQUEST_MAPPED", fields=sorted(found))
    return MappedServiceRequest(**found)


def _reference_fields(ref: Optional[Reference], role: str) -> Dict[str, str]:
    if ref is None:
        return {}
    fields = {}
    if ref.referenced_id:
        fields[f"{role}_ss_id"] = ref.referenced_id
    if ref.display:
        fields[f"{role}_display"] = ref.display
    return fields
