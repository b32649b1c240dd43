from homecare.domain.summaries.schemas import SummaryInput
from homecare.domain.summaries.service import normalize_summary, validate_summary

VALID_SUMMARY = {
    "caution_medication_refusal": True,
    "approach_type": "careful",
    "approach_note": "Speak slowly",
    "primary_contact_name": "Tanaka Jiro",
    "primary_contact_relation": "Son",
    "primary_contact_phone": "090-1234-5678",
    "recent_changes": "Appetite has dropped this week",
    "prohibited_actions": "Do not visit before 10:00",
}


class TestSummaryValidation:
    def test_valid_form_has_no_errors(self):
        assert validate_summary(SummaryInput(**VALID_SUMMARY)) == []

    def test_every_error_is_reported(self):
        errors = validate_summary(SummaryInput())
        assert "Approach type is required" in errors
        assert "Primary contact name is required" in errors
        assert "Primary contact relation is required" in errors
        assert "Primary contact phone is required" in errors
        assert "Recent changes are required" in errors

    def test_unknown_approach_type(self):
        errors = validate_summary(SummaryInput(**{**VALID_SUMMARY, "approach_type": "gentle"}))
        assert len(errors) == 1
        assert errors[0].startswith("Approach type must be one of")

    def test_phone_format(self):
        errors = validate_summary(
            SummaryInput(**{**VALID_SUMMARY, "primary_contact_phone": "090 1234", "secondary_contact_phone": "abc"})
        )
        assert len(errors) == 2

    def test_other_caution_needs_text(self):
        errors = validate_summary(SummaryInput(**{**VALID_SUMMARY, "caution_other": True}))
        assert errors == ["Describe the other caution"]

    def test_length_limits(self):
        errors = validate_summary(
            SummaryInput(**{**VALID_SUMMARY, "recent_changes": "x" * 301, "free_note": "y" * 501})
        )
        assert errors == [
            "Recent changes must be 300 characters or fewer",
            "Free note must be 500 characters or fewer",
        ]

    def test_other_text_is_cleared_without_flag(self):
        values = normalize_summary(SummaryInput(**{**VALID_SUMMARY, "caution_other_text": "stale"}))
        assert values["caution_other_text"] is None


class TestSummaryEndpoints:
    def test_create_then_read(self, client, seed, auth_headers):
        patient_id = seed["patients"]["tanaka"].id
        response = client.put(
            f"/api/patients/{patient_id}/summary", headers=auth_headers("staff"), json=VALID_SUMMARY
        )
        assert response.status_code == 200
        body = response.json()
        assert body["approach_type"] == "careful"
        assert body["recent_changes_updated_by_name"] == "Sam Staff"
        assert body["updated_by_name"] == "Sam Staff"

        detail = client.get(f"/api/patients/{patient_id}", headers=auth_headers("viewer")).json()
        assert detail["summary"]["primary_contact_name"] == "Tanaka Jiro"

    def test_summary_absent(self, client, seed, auth_headers):
        patient_id = seed["patients"]["tanaka"].id
        response = client.get(f"/api/patients/{patient_id}/summary", headers=auth_headers("staff"))
        assert response.status_code == 200
        assert response.json() is None

    def test_validation_errors_are_returned_together(self, client, seed, auth_headers):
        patient_id = seed["patients"]["tanaka"].id
        response = client.put(
            f"/api/patients/{patient_id}/summary", headers=auth_headers("staff"), json={"approach_type": "normal"}
        )
        assert response.status_code == 422
        assert len(response.json()["detail"]["errors"]) == 4

    def test_viewer_cannot_save(self, client, seed, auth_headers):
        patient_id = seed["patients"]["tanaka"].id
        response = client.put(
            f"/api/patients/{patient_id}/summary", headers=auth_headers("viewer"), json=VALID_SUMMARY
        )
        assert response.status_code == 403

    def test_other_tenant_cannot_read(self, client, seed, auth_headers):
        patient_id = seed["patients"]["tanaka"].id
        response = client.get(f"/api/patients/{patient_id}/summary", headers=auth_headers("other_admin"))
        assert response.status_code == 404

    def test_update_records_history(self, client, seed, auth_headers):
        patient_id = seed["patients"]["tanaka"].id
        url = f"/api/patients/{patient_id}/summary"
        first = client.put(url, headers=auth_headers("staff"), json=VALID_SUMMARY).json()

        # Saving identical content leaves no history entry
        client.put(url, headers=auth_headers("staff"), json=VALID_SUMMARY)
        assert client.get(f"{url}/history", headers=auth_headers("staff")).json() == []

        changed = {**VALID_SUMMARY, "approach_note": "Use the side door"}
        response = client.put(url, headers=auth_headers("admin"), json=changed)
        assert response.status_code == 200
        body = response.json()
        assert body["updated_by_name"] == "Alice Admin"
        # Recent changes were not edited, so their author stays the same
        assert body["recent_changes_updated_by_name"] == "Sam Staff"
        assert body["recent_changes_updated_at"] == first["recent_changes_updated_at"]

        history = client.get(f"{url}/history", headers=auth_headers("staff")).json()
        assert len(history) == 1
        assert history[0]["changed_fields"] == ["approach_note"]
        assert history[0]["snapshot"]["approach_note"] == "Speak slowly"
        assert history[0]["changed_by_name"] == "Alice Admin"

    def test_recent_changes_author_follows_edits(self, client, seed, auth_headers):
        patient_id = seed["patients"]["tanaka"].id
        url = f"/api/patients/{patient_id}/summary"
        client.put(url, headers=auth_headers("staff"), json=VALID_SUMMARY)

        changed = {**VALID_SUMMARY, "recent_changes": "Started a new medication"}
        body = client.put(url, headers=auth_headers("admin"), json=changed).json()
        assert body["recent_changes_updated_by_name"] == "Alice Admin"

        history = client.get(f"{url}/history", headers=auth_headers("staff")).json()
        assert history[0]["changed_fields"] == ["recent_changes"]
