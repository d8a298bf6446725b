"""
Tests for mapping inbound FHIR ServiceRequests onto detail order fields.
"""
import pytest

from ris.services.service_request_mapper import map_service_request


@pytest.fixture
def service_request():
    return {
        "resourceType": "ServiceRequest",
        "identifier": [
            {"system": "http://sys-ids.kemkes.go.id/servicerequest/10000004", "value": "SR-77"},
            {
                "use": "usual",
                "type": {"coding": [{"system": "http://terminology.hl7.org/CodeSystem/v2-0203", "code": "ACSN"}]},
                "system": "http://sys-ids.kemkes.go.id/acsn/10000004",
                "value": "EXT-ACC-1",
            },
        ],
        "status": "active",
        "intent": "original-order",
        "priority": "asap",
        "category": [{"coding": [{"system": "http://snomed.info/sct", "code": "363679005", "display": "Imaging"}]}],
        "code": {
            "coding": [
                {"system": "http://loinc.org", "code": "24648-8", "display": "XR Chest PA upright"},
                {"system": "http://terminology.kemkes.go.id/CodeSystem/kptl", "code": "31243.00", "display": "Radiografi thorax"},
            ],
            "text": "Pemeriksaan CXR PA",
        },
        "orderDetail": [
            {"coding": [{"system": "http://dicom.nema.org/resources/ontology/DCM", "code": "dx"}]},
            {"coding": [{"system": "http://sys-ids.kemkes.go.id/ae-title", "display": "XR0001"}]},
            {"coding": [{"system": "http://sys-ids.kemkes.go.id/kfa", "code": "91000123", "display": "Iohexol"}]},
        ],
        "occurrenceDateTime": "2024-06-01T09:00:00+07:00",
        "requester": {"reference": "Practitioner/N10000001", "display": "Dr. Sari"},
        "performer": [{"reference": "Practitioner/N10000002", "display": "Dr. Rudi"}],
        "reasonCode": [{"coding": [{"system": "http://hl7.org/fhir/sid/icd-10", "code": "J18.9", "display": "Pneumonia"}]}],
        "supportingInfo": [
            {"reference": "Observation/obs-1"},
            {"reference": "Procedure/proc-1"},
            {"reference": "AllergyIntolerance/allergy-1"},
        ],
    }


class TestMapServiceRequest:

    def test_maps_complete_request(self, service_request):
        mapped = map_service_request(service_request)

        assert mapped.service_request_id == "SR-77"
        assert mapped.external_accession_number == "EXT-ACC-1"
        assert mapped.request_status == "active"
        assert mapped.request_intent == "original-order"
        assert mapped.order_priority == "URGENT"
        assert mapped.loinc_code == "24648-8"
        assert mapped.kptl_code == "31243.00"
        assert mapped.code_text == "Pemeriksaan CXR PA"
        assert mapped.modality_code == "DX"
        assert mapped.ae_title == "XR0001"
        assert mapped.contrast_code == "91000123"
        assert mapped.contrast_display == "Iohexol"
        assert mapped.occurrence_datetime == "2024-06-01T09:00:00+07:00"
        assert mapped.requester_ss_id == "N10000001"
        assert mapped.requester_display == "Dr. Sari"
        assert mapped.performer_ss_id == "N10000002"
        assert mapped.diagnosis_code == "J18.9"
        assert mapped.observation_id == "obs-1"
        assert mapped.procedure_ss_id == "proc-1"
        assert mapped.allergy_intolerance_id == "allergy-1"
        assert mapped.service_request_json == service_request

    def test_first_match_wins(self, service_request):
        service_request["code"]["coding"].append(
            {"system": "http://loinc.org", "code": "99999-9", "display": "Second"}
        )
        assert map_service_request(service_request).loinc_code == "24648-8"

    def test_missing_elements_stay_unset(self):
        mapped = map_service_request({"resourceType": "ServiceRequest", "status": "active"})
        assert mapped.model_dump(exclude_unset=True).keys() == {"request_status", "service_request_json"}

    def test_malformed_elements_only_cost_themselves(self, service_request):
        service_request["identifier"] = "not-a-list"
        service_request["orderDetail"] = [None, 42, {"coding": "broken"}]
        service_request["requester"] = ["unexpected"]

        mapped = map_service_request(service_request)

        assert mapped.service_request_id is None
        assert mapped.modality_code is None
        assert mapped.requester_ss_id is None
        assert mapped.loinc_code == "24648-8"
        assert mapped.diagnosis_code == "J18.9"

    def test_unknown_priority_is_ignored(self, service_request):
        service_request["priority"] = "whenever"
        assert "order_priority" not in map_service_request(service_request).model_dump(exclude_unset=True)

    def test_stored_payload_is_a_copy(self, service_request):
        mapped = map_service_request(service_request)
        service_request["status"] = "revoked"
        assert mapped.service_request_json["status"] == "active"

    def test_non_object_payload_is_rejected(self):
        with pytest.raises(ValueError):
            map_service_request(["ServiceRequest"])
