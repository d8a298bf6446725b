# ris/schemas/dispatch.py
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from .enums import Gender


class DispatchProjection(BaseModel):
    """
    Read-only view of a DetailOrder handed to the worklist/PACS collaborator
    once the dispatch checks pass. Nothing else leaves the engine.
    """
    model_config = ConfigDict(frozen=True)

    accession_number: str
    modality_code: str
    ae_title: str
    study_instance_uid: Optional[str] = None
    performer_display: Optional[str] = None
    procedure_code: Optional[str] = None
    procedure_display: Optional[str] = None
    scheduled_datetime: Optional[datetime] = None

    patient_name: Optional[str] = None
    patient_mrn: Optional[str] = None
    patient_birth_date: Optional[date] = None
    patient_age: Optional[int] = None
    patient_gender: Optional[Gender] = None
