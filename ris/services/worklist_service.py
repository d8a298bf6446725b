# ris/services/worklist_service.py
"""Renders a dispatch projection as a Modality Worklist item. No network I/O."""
from pydicom.dataset import Dataset
from pydicom.uid import generate_uid

from ris.schemas.dispatch import DispatchProjection
from ris.schemas.enums import Gender

DICOM_SEX = {Gender.MALE: "M", Gender.FEMALE: "F"}


def _person_name(name: str) -> str:
    """'Jane Doe' -> 'Doe^Jane'. Names that already carry '^' pass through."""
    if not name or "^" in name:
        return name or ""
    parts = name.split()
    if len(parts) < 2:
        return name
    return f"{parts[-1]}^{' '.join(parts[:-1])}"


def render_worklist_dataset(projection: DispatchProjection) -> Dataset:
    """Converts a DispatchProjection into a pydicom Dataset shaped as a DMWL item."""
    ds = Dataset()

    # Patient Level
    ds.PatientName = _person_name(projection.patient_name or "")
    ds.PatientID = projection.patient_mrn or ""
    ds.PatientBirthDate = projection.patient_birth_date.strftime('%Y%m%d') if projection.patient_birth_date else ""
    ds.PatientSex = DICOM_SEX.get(projection.patient_gender, "O") if projection.patient_gender else ""
    if projection.patient_age is not None:
        ds.PatientAge = f"{min(projection.patient_age, 999):03d}Y"

    # Study Level
    # lines queued before the uid column existed get a fresh one per render
    ds.StudyInstanceUID = projection.study_instance_uid or generate_uid()
    ds.AccessionNumber = projection.accession_number
    ds.RequestedProcedureID = projection.accession_number
    ds.RequestedProcedureDescription = projection.procedure_display or ""

    code_item = Dataset()
    code_item.CodeValue = projection.procedure_code or ""
    code_item.CodingSchemeDesignator = "LN"
    code_item.CodeMeaning = projection.procedure_display or ""
    ds.RequestedProcedureCodeSequence = [code_item]

    # Scheduled Procedure Step Sequence
    sps_item = Dataset()
    sps_item.Modality = projection.modality_code
    sps_item.ScheduledStationAETitle = projection.ae_title
    if projection.scheduled_datetime:
        sps_item.ScheduledProcedureStepStartDate = projection.scheduled_datetime.strftime('%Y%m%d')
        sps_item.ScheduledProcedureStepStartTime = projection.scheduled_datetime.strftime('%H%M%S')
    sps_item.ScheduledPerformingPhysicianName = _person_name(projection.performer_display or "")
    sps_item.ScheduledProcedureStepDescription = projection.procedure_display or ""
    sps_item.ScheduledProcedureStepID = projection.accession_number
    sps_item.ScheduledProcedureStepStatus = "SCHEDULED"
    ds.ScheduledProcedureStepSequence = [sps_item]

    ds.SpecificCharacterSet = "ISO_IR 100"

    return ds
