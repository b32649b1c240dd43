import re

from homecare.domain.documents.service import MAX_FILE_SIZE, build_storage_path, file_extension
from homecare.models import PatientDocument

PDF_BYTES = b"%PDF-1.4 minimal"


def upload(client, headers, patient_id, name="facesheet.pdf", body=PDF_BYTES, mime="application/pdf", **form):
    data = {"patient_id": str(patient_id), **form}
    return client.post(
        "/api/documents/upload", headers=headers, data=data, files={"file": (name, body, mime)}
    )


class TestStoragePaths:
    def test_file_extension(self):
        assert file_extension("scan.PDF") == "pdf"
        assert file_extension("photo.jpeg") == "jpeg"
        assert file_extension("noext") == "bin"
        assert file_extension("weird.p?f") == "bin"
        assert file_extension(None) == "bin"

    def test_storage_path_layout(self):
        path = build_storage_path(12, "scan.png")
        assert re.fullmatch(r"12/\d{13}_[0-9a-f-]{36}\.png", path)
        assert build_storage_path(12, "scan.png") != path


class TestDocumentEndpoints:
    def test_upload_list_download_delete(self, client, seed, storage, auth_headers):
        headers = auth_headers("staff")
        patient_id = seed["patients"]["tanaka"].id

        response = upload(client, headers, patient_id, type="facesheet", description="Intake form")
        assert response.status_code == 200
        document = response.json()
        assert document["type"] == "facesheet"
        assert document["file_size"] == len(PDF_BYTES)
        assert document["uploaded_by_name"] == "Sam Staff"
        assert document["storage_path"].startswith(f"{patient_id}/")
        assert storage.objects[document["storage_path"]] == (PDF_BYTES, "application/pdf")

        listed = client.get("/api/documents", headers=headers, params={"patient_id": patient_id}).json()
        assert [d["id"] for d in listed] == [document["id"]]

        signed = client.get(f"/api/documents/{document['id']}", headers=auth_headers("viewer")).json()
        assert signed["url"].startswith("https://storage.test/")
        assert signed["document"]["file_name"] == "facesheet.pdf"

        assert client.delete(f"/api/documents/{document['id']}", headers=headers).json() == {"success": True}
        assert storage.objects == {}
        assert client.get(f"/api/documents/{document['id']}", headers=headers).status_code == 404

    def test_type_defaults_to_other(self, client, seed, auth_headers):
        response = upload(client, auth_headers("staff"), seed["patients"]["home"].id, "photo.png", mime="image/png")
        assert response.status_code == 200
        assert response.json()["type"] == "other"

    def test_list_requires_patient(self, client, seed, auth_headers):
        response = client.get("/api/documents", headers=auth_headers("staff"))
        assert response.status_code == 400

    def test_missing_file(self, client, seed, auth_headers):
        response = client.post(
            "/api/documents/upload",
            headers=auth_headers("staff"),
            data={"patient_id": str(seed["patients"]["home"].id)},
        )
        assert response.status_code == 400
        assert response.json()["detail"] == "File and patient ID are required"

    def test_rejects_large_files(self, client, seed, auth_headers):
        body = b"0" * (MAX_FILE_SIZE + 1)
        response = upload(client, auth_headers("staff"), seed["patients"]["home"].id, body=body)
        assert response.status_code == 400

    def test_rejects_unsupported_types(self, client, seed, auth_headers):
        response = upload(
            client, auth_headers("staff"), seed["patients"]["home"].id, "notes.txt", b"hi", "text/plain"
        )
        assert response.status_code == 400

    def test_rejects_unknown_document_type(self, client, seed, auth_headers):
        response = upload(client, auth_headers("staff"), seed["patients"]["home"].id, type="invoice")
        assert response.status_code == 400

    def test_storage_failure(self, client, seed, storage, auth_headers):
        storage.fail_uploads = True
        response = upload(client, auth_headers("staff"), seed["patients"]["home"].id)
        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to upload file"

    def test_viewer_cannot_upload(self, client, seed, auth_headers):
        response = upload(client, auth_headers("viewer"), seed["patients"]["home"].id)
        assert response.status_code == 403

    def test_other_tenant_cannot_access(self, client, seed, auth_headers):
        patient_id = seed["patients"]["tanaka"].id
        document = upload(client, auth_headers("staff"), patient_id).json()

        other = auth_headers("other_admin")
        assert client.get(f"/api/documents/{document['id']}", headers=other).status_code == 404
        assert client.get("/api/documents", headers=other, params={"patient_id": patient_id}).status_code == 404
        assert upload(client, other, patient_id).status_code == 404

    def test_failed_save_removes_uploaded_object(self, client, db, seed, storage, auth_headers, monkeypatch):
        def failing_commit():
            raise RuntimeError("database unavailable")

        monkeypatch.setattr(db, "commit", failing_commit)
        response = upload(client, auth_headers("staff"), seed["patients"]["home"].id)
        monkeypatch.undo()

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to upload file"
        assert storage.objects == {}
        assert db.query(PatientDocument).count() == 0
