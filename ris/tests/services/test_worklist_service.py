"""
Tests for rendering dispatch projections as Modality Worklist items.
"""
from datetime import date, datetime

import pytest

from ris.schemas.dispatch import DispatchProjection
from ris.schemas.enums import Gender
from ris.services.worklist_service import render_worklist_dataset


@pytest.fixture
def projection():
    return DispatchProjection(
        accession_number="DX20240601001",
        modality_code="DX",
        ae_title="DX_ROOM1",
        performer_display="Rudi Hartono",
        procedure_code="36643-5",
        procedure_display="XR Chest 2 Views",
        scheduled_datetime=datetime(2024, 6, 1, 9, 30, 0),
        patient_name="Budi Santoso",
        patient_mrn="MRN-0001",
        patient_birth_date=date(1980, 6, 2),
        patient_age=43,
        patient_gender=Gender.MALE,
    )


class TestRenderWorklistDataset:

    def test_patient_module(self, projection):
        ds = render_worklist_dataset(projection)
        assert str(ds.PatientName) == "Santoso^Budi"
        assert ds.PatientID == "MRN-0001"
        assert ds.PatientBirthDate == "19800602"
        assert ds.PatientSex == "M"
        assert ds.PatientAge == "043Y"

    def test_scheduled_procedure_step(self, projection):
        ds = render_worklist_dataset(projection)
        assert ds.AccessionNumber == "DX20240601001"
        sps = ds.ScheduledProcedureStepSequence[0]
        assert sps.Modality == "DX"
        assert sps.ScheduledStationAETitle == "DX_ROOM1"
        assert sps.ScheduledProcedureStepStartDate == "20240601"
        assert sps.ScheduledProcedureStepStartTime == "093000"
        assert str(sps.ScheduledPerformingPhysicianName) == "Hartono^Rudi"
        assert ds.RequestedProcedureCodeSequence[0].CodeValue == "36643-5"

    def test_missing_schedule_and_demographics(self, projection):
        projection = projection.model_copy(update={
            "scheduled_datetime": None,
            "patient_birth_date": None,
            "patient_gender": None,
            "patient_age": None,
        })
        ds = render_worklist_dataset(projection)
        assert ds.PatientBirthDate == ""
        assert ds.PatientSex == ""
        assert "PatientAge" not in ds
        assert "ScheduledProcedureStepStartDate" not in ds.ScheduledProcedureStepSequence[0]

    def test_study_instance_uid_from_projection(self, projection):
        projection = projection.model_copy(update={"study_instance_uid": "1.2.826.0.1.3680043.8.498.101"})
        ds = render_worklist_dataset(projection)
        assert ds.StudyInstanceUID == "1.2.826.0.1.3680043.8.498.101"

    def test_study_instance_uid_minted_when_absent(self, projection):
        ds = render_worklist_dataset(projection)
        assert "StudyInstanceUID" in ds
        assert ds.StudyInstanceUID.is_valid
