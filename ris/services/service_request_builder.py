# ris/services/service_request_builder.py
"""
Builds the outbound FHIR ServiceRequest for the health-information exchange.
The inverse of ``service_request_mapper``; the HTTP/OAuth client that posts it
lives outside this service.
"""
from typing import Any, Dict, List, Optional

from ris.db.models.order import DetailOrder, Order

SERVICE_REQUEST_ID_SYSTEM = "http://sys-ids.kemkes.go.id/servicerequest/{organization_id}"
ACSN_ID_SYSTEM = "http://sys-ids.kemkes.go.id/acsn/{organization_id}"
IDENTIFIER_TYPE_SYSTEM = "http://terminology.hl7.org/CodeSystem/v2-0203"
SNOMED_SYSTEM = "http://snomed.info/sct"
LOINC_SYSTEM = "http://loinc.org"
KPTL_SYSTEM = "http://terminology.kemkes.go.id/CodeSystem/kptl"
DICOM_DCM_SYSTEM = "http://dicom.nema.org/resources/ontology/DCM"
AE_TITLE_SYSTEM = "http://sys-ids.kemkes.go.id/ae-title"
KFA_SYSTEM = "http://sys-ids.kemkes.go.id/kfa"
ICD10_SYSTEM = "http://hl7.org/fhir/sid/icd-10"

IMAGING_CATEGORY = {"system": SNOMED_SYSTEM, "code": "363679005", "display": "Imaging"}


def _identifiers(detail: DetailOrder, organization_id: str) -> List[Dict[str, Any]]:
    identifiers: List[Dict[str, Any]] = []
    if detail.service_request_id:
        identifiers.append({
            "system": SERVICE_REQUEST_ID_SYSTEM.format(organization_id=organization_id),
            "value": detail.service_request_id,
        })
    identifiers.append({
        "use": "usual",
        "type": {"coding": [{"system": IDENTIFIER_TYPE_SYSTEM, "code": "ACSN"}]},
        "system": ACSN_ID_SYSTEM.format(organization_id=organization_id),
        "value": detail.accession_number,
    })
    return identifiers


def _code(detail: DetailOrder) -> Dict[str, Any]:
    loinc_code = detail.loinc_code or (detail.procedure.loinc_code if detail.procedure else None)
    loinc_display = detail.loinc_display or (detail.procedure.loinc_display if detail.procedure else None)
    coding = [{"system": LOINC_SYSTEM, "code": loinc_code, "display": loinc_display}]
    if detail.kptl_code and detail.kptl_display:
        coding.append({"system": KPTL_SYSTEM, "code": detail.kptl_code, "display": detail.kptl_display})
    return {"coding": coding, "text": detail.code_text or loinc_display}


def _order_detail(detail: DetailOrder) -> List[Dict[str, Any]]:
    entries: List[Dict[str, Any]] = []
    modality_code = detail.modality.code if detail.modality else None
    if modality_code:
        entries.append({
            "coding": [{"system": DICOM_DCM_SYSTEM, "code": modality_code}],
            "text": f"Modality Code: {modality_code}",
        })
    if detail.ae_title:
        entries.append({"coding": [{"system": AE_TITLE_SYSTEM, "display": detail.ae_title}]})
    if detail.contrast_code:
        entries.append({"coding": [{
            "system": KFA_SYSTEM,
            "code": detail.contrast_code,
            "display": detail.contrast_display or detail.contrast_code,
        }]})
    return entries


def build_service_request(
    detail: DetailOrder,
    order: Order,
    organization_id: str,
    *,
    patient_ihs_number: Optional[str] = None,
) -> Dict[str, Any]:
    """
    ServiceRequest resource for one detail line.

    Optional elements (occurrenceDateTime, performer, reasonCode,
    supportingInfo) are only emitted when the detail carries the data.
    """
    if patient_ihs_number is None and order.patient is not None:
        patient_ihs_number = order.patient.ihs_number

    resource: Dict[str, Any] = {
        "resourceType": "ServiceRequest",
        "identifier": _identifiers(detail, organization_id),
        "status": detail.request_status or "active",
        "intent": detail.request_intent or "original-order",
        "priority": detail.order_priority.value.lower(),
        "category": [{"coding": [dict(IMAGING_CATEGORY)]}],
        "code": _code(detail),
        "orderDetail": _order_detail(detail),
        "subject": {"reference": f"Patient/{patient_ihs_number}"},
        "encounter": {"reference": f"Encounter/{order.encounter_ss_id}"},
        "requester": {
            "reference": f"Practitioner/{detail.requester_ss_id}",
            "display": detail.requester_display,
        },
    }

    if detail.occurrence_datetime:
        resource["occurrenceDateTime"] = detail.occurrence_datetime
    elif detail.schedule_date:
        resource["occurrenceDateTime"] = detail.schedule_date.isoformat()

    if detail.performer_ss_id:
        resource["performer"] = [{
            "reference": f"Practitioner/{detail.performer_ss_id}",
            "display": detail.performer_display,
        }]

    if detail.diagnosis_code:
        resource["reasonCode"] = [{"coding": [{
            "system": ICD10_SYSTEM,
            "code": detail.diagnosis_code,
            "display": detail.diagnosis_display or detail.diagnosis_code,
        }]}]

    supporting_info = [
        {"reference": f"{resource_type}/{value}"}
        for resource_type, value in (
            ("Observation", detail.observation_id),
            ("Procedure", detail.procedure_ss_id),
            ("AllergyIntolerance", detail.allergy_intolerance_id),
        )
        if value
    ]
    if supporting_info:
        resource["supportingInfo"] = supporting_info

    return resource
