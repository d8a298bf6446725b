# ris/schemas/service_request.py
"""
Typed view of an inbound FHIR ServiceRequest.

Producers send partially populated and loosely typed payloads. Every element
here is optional and the annotated validators coerce malformed values away
(a string where a list was expected becomes an empty list, a number where a
string was expected becomes its text) so validation at the boundary never
rejects a payload for shape noise. Unknown keys are kept.
"""
from typing import Annotated, Any, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field


def _text_or_none(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    if isinstance(value, bool):
        return str(value).lower()
    text = str(value).strip()
    return text or None


def _object_or_none(value: Any) -> Any:
    if isinstance(value, (dict, BaseModel)):
        return value
    return None


def _objects_only(value: Any) -> List[Any]:
    if isinstance(value, (dict, BaseModel)):
        value = [value]
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, (dict, BaseModel))]


Text = Annotated[Optional[str], BeforeValidator(_text_or_none)]


class FhirElement(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)


class Coding(FhirElement):
    system: Text = None
    code: Text = None
    display: Text = None


class CodeableConcept(FhirElement):
    coding: Annotated[List[Coding], BeforeValidator(_objects_only)] = Field(default_factory=list)
    text: Text = None


class Identifier(FhirElement):
    use: Text = None
    type: Annotated[Optional[CodeableConcept], BeforeValidator(_object_or_none)] = None
    system: Text = None
    value: Text = None


class Reference(FhirElement):
    reference: Text = None
    display: Text = None

    @property
    def referenced_id(self) -> Optional[str]:
        """Id part of ``ResourceType/id``; None when there is no reference."""
        if not self.reference:
            return None
        return self.reference.split("/")[-1] or None


IdentifierList = Annotated[List[Identifier], BeforeValidator(_objects_only)]
ConceptList = Annotated[List[CodeableConcept], BeforeValidator(_objects_only)]
ReferenceList = Annotated[List[Reference], BeforeValidator(_objects_only)]


class ServiceRequestPayload(FhirElement):
    resourceType: Text = None
    id: Text = None
    status: Text = None
    intent: Text = None
    priority: Text = None
    occurrenceDateTime: Text = None
    identifier: IdentifierList = Field(default_factory=list)
    category: ConceptList = Field(default_factory=list)
    code: Annotated[Optional[CodeableConcept], BeforeValidator(_object_or_none)] = None
    orderDetail: ConceptList = Field(default_factory=list)
    subject: Annotated[Optional[Reference], BeforeValidator(_object_or_none)] = None
    encounter: Annotated[Optional[Reference], BeforeValidator(_object_or_none)] = None
    requester: Annotated[Optional[Reference], BeforeValidator(_object_or_none)] = None
    performer: ReferenceList = Field(default_factory=list)
    reasonCode: ConceptList = Field(default_factory=list)
    supportingInfo: ReferenceList = Field(default_factory=list)


class MappedServiceRequest(BaseModel):
    """
    DetailOrder fields derived from a ServiceRequest.
    Only fields the mapper actually found are set; apply with
    ``model_dump(exclude_unset=True)`` so absent data never overwrites
    stored values.
    """
    request_status: Optional[str] = None
    request_intent: Optional[str] = None
    order_priority: Optional[str] = None
    occurrence_datetime: Optional[str] = None
    external_accession_number: Optional[str] = None
    service_request_id: Optional[str] = None
    loinc_code: Optional[str] = None
    loinc_display: Optional[str] = None
    kptl_code: Optional[str] = None
    kptl_display: Optional[str] = None
    code_text: Optional[str] = None
    modality_code: Optional[str] = None
    ae_title: Optional[str] = None
    contrast_code: Optional[str] = None
    contrast_display: Optional[str] = None
    requester_ss_id: Optional[str] = None
    requester_display: Optional[str] = None
    performer_ss_id: Optional[str] = None
    performer_display: Optional[str] = None
    diagnosis_code: Optional[str] = None
    diagnosis_display: Optional[str] = None
    observation_id: Optional[str] = None
    procedure_ss_id: Optional[str] = None
    allergy_intolerance_id: Optional[str] = None
    service_request_json: Optional[dict] = None
