# ris/schemas/order.py
from datetime import date, datetime
from typing import Annotated, Any, Dict, List, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field

from .enums import DetailOrderStatus, Gender, OrderOrigin, OrderPriority


def _normalize_priority(value: Any) -> Any:
    normalized = OrderPriority.normalize(value)
    # Leave unknown values in place so pydantic reports them
    return normalized if normalized is not None else value


Priority = Annotated[OrderPriority, BeforeValidator(_normalize_priority)]


# --- Input ---

class DetailOrderCreate(BaseModel):
    procedure_id: int = Field(..., description="Procedure catalog entry (LOINC-coded).")
    schedule_date: Optional[datetime] = None
    order_priority: Priority = OrderPriority.ROUTINE
    order_from: OrderOrigin = OrderOrigin.INTERNAL
    requester_id: Optional[int] = Field(None, description="Defaults to the order's practitioner.")
    notes: Optional[str] = None
    diagnosis_code: Optional[str] = Field(None, max_length=32)
    diagnosis_display: Optional[str] = Field(None, max_length=255)
    service_request: Optional[Dict[str, Any]] = Field(
        None, description="Inbound FHIR ServiceRequest enriching this line."
    )


class OrderCreate(BaseModel):
    patient_id: Optional[int] = None
    practitioner_id: Optional[int] = None
    encounter_ss_id: Optional[str] = Field(None, max_length=128)
    service_id: Optional[str] = Field(None, max_length=128)

    # Snapshot for patients not resolvable locally; ignored when patient_id resolves.
    patient_name: Optional[str] = Field(None, max_length=255)
    patient_mrn: Optional[str] = Field(None, max_length=64)
    patient_birth_date: Optional[date] = None
    patient_gender: Optional[Gender] = None

    details: List[DetailOrderCreate] = Field(..., min_length=1)


class OrderUpdate(BaseModel):
    practitioner_id: Optional[int] = None
    encounter_ss_id: Optional[str] = Field(None, max_length=128)
    service_id: Optional[str] = Field(None, max_length=128)


class DetailOrderUpdate(BaseModel):
    schedule_date: Optional[datetime] = None
    order_priority: Optional[Priority] = None
    notes: Optional[str] = None
    diagnosis_code: Optional[str] = Field(None, max_length=32)
    diagnosis_display: Optional[str] = Field(None, max_length=255)
    contrast_code: Optional[str] = Field(None, max_length=64)
    contrast_display: Optional[str] = Field(None, max_length=255)
    order_status: Optional[DetailOrderStatus] = Field(
        None, description="Authorized overwrite; still subject to the dispatch checks."
    )
    observation_notes: Optional[str] = None
    diagnostic_conclusion: Optional[str] = None


class AssignmentIn(BaseModel):
    modality_id: int
    ae_title: str = Field(..., min_length=1, max_length=16)
    performer_id: int


class FinalizeIn(BaseModel):
    observation_notes: Optional[str] = None
    diagnostic_conclusion: Optional[str] = None


# --- Output ---

class CodeDisplay(BaseModel):
    code: Optional[str] = None
    display: Optional[str] = None


class PersonRef(BaseModel):
    id: Optional[int] = None
    ss_id: Optional[str] = None
    display: Optional[str] = None


class ExamRead(BaseModel):
    id: int
    code: str
    name: str
    loinc_code: Optional[str] = None
    loinc_display: Optional[str] = None
    require_fasting: bool
    require_pregnancy_check: bool
    require_use_contrast: bool


class ModalityRef(BaseModel):
    id: Optional[int] = None
    code: Optional[str] = None
    name: Optional[str] = None
    ae_title: Optional[str] = None


class DetailOrderRead(BaseModel):
    id: int
    order_id: int
    accession_number: str
    order_number: str
    external_accession_number: Optional[str] = None
    study_instance_uid: Optional[str] = None
    order_date: Optional[datetime] = None
    schedule_date: Optional[datetime] = None
    occurrence_datetime: Optional[str] = None
    order_priority: OrderPriority
    order_status: DetailOrderStatus
    order_from: OrderOrigin
    status_updated_at: Optional[datetime] = None
    request_status: Optional[str] = None
    request_intent: Optional[str] = None
    code_text: Optional[str] = None
    notes: Optional[str] = None
    require_fasting: bool
    require_pregnancy_check: bool
    require_use_contrast: bool
    service_request_id: Optional[str] = None
    observation_id: Optional[str] = None
    procedure_ss_id: Optional[str] = None
    allergy_intolerance_id: Optional[str] = None
    observation_notes: Optional[str] = None
    diagnostic_conclusion: Optional[str] = None
    finalized_at: Optional[datetime] = None

    exam: Optional[ExamRead] = None
    modality: Optional[ModalityRef] = None
    requester: Optional[PersonRef] = None
    performer: Optional[PersonRef] = None
    loinc: Optional[CodeDisplay] = None
    kptl: Optional[CodeDisplay] = None
    contrast: Optional[CodeDisplay] = None
    diagnosis: Optional[CodeDisplay] = None
    can_push_to_mwl: bool = False


class UserRef(BaseModel):
    id: int
    name: str
    email: str

    model_config = ConfigDict(from_attributes=True)


class FullOrderRead(BaseModel):
    id: int
    order_number: str
    patient_id: Optional[int] = None
    practitioner_id: Optional[int] = None
    practitioner_name: Optional[str] = None
    encounter_ss_id: Optional[str] = None
    service_id: Optional[str] = None
    patient_name: Optional[str] = None
    patient_mrn: Optional[str] = None
    patient_birth_date: Optional[date] = None
    patient_age: Optional[int] = None
    patient_gender: Optional[Gender] = None
    created_by: Optional[UserRef] = None
    created_at: datetime
    updated_at: datetime
    details: List[DetailOrderRead] = Field(default_factory=list)


class PaginationMeta(BaseModel):
    total: int
    page: int
    per_page: int
    total_pages: int
    has_next_page: bool
    has_prev_page: bool


class OrderListResponse(BaseModel):
    items: List[FullOrderRead]
    meta: PaginationMeta
