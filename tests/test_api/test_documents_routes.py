"""
Document Routes Tests.
Appointment uploads, presigned claim uploads, listing and streaming.
"""

import pytest
from fastapi import status

from claimportal.core.enums import AppointmentStatus
from tests.fixtures.factories import add_appointment, add_claim, add_document, auth_headers


def upload(client, user, appointment, patient, files, types):
    return client.post(
        "/documents",
        data={
            "appointment_id": str(appointment.id),
            "patient_id": str(patient.id),
            "types": types,
        },
        files=[("files", f) for f in files],
        headers=auth_headers(user),
    )


XRAY = ("xray.png", b"\x89PNG....", "image/png")
NOTES = ("notes.pdf", b"%PDF-1.4", "application/pdf")


@pytest.mark.api
class TestAppointmentUploads:
    def test_doctor_uploads_to_accepted_appointment(self, client, db, storage, patient, doctor):
        appointment = add_appointment(db, patient, doctor, status=AppointmentStatus.ACCEPTED)

        response = upload(
            client, doctor, appointment, patient, [XRAY, NOTES], ["SCAN_REPORT", "MEDICAL_REPORT"]
        )

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["message"] == "2 document(s) uploaded successfully"
        keys = [d["filename"] for d in body["documents"]]
        assert all(k.startswith(f"medical-reports/{appointment.id}/") for k in keys)
        assert keys[0].endswith(".png")
        assert [d["original_name"] for d in body["documents"]] == ["xray.png", "notes.pdf"]
        assert set(storage.objects) == set(keys)
        assert body["documents"][0]["url"] == storage.object_url(keys[0])

    def test_pending_appointment_is_not_found(self, client, db, patient, doctor):
        appointment = add_appointment(db, patient, doctor)

        response = upload(client, doctor, appointment, patient, [XRAY], ["SCAN_REPORT"])

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_wrong_patient_is_not_found(self, client, db, patient, other_patient, doctor):
        appointment = add_appointment(db, patient, doctor, status=AppointmentStatus.ACCEPTED)

        response = upload(client, doctor, appointment, other_patient, [XRAY], ["SCAN_REPORT"])

        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_patient_cannot_upload(self, client, db, patient, doctor):
        appointment = add_appointment(db, patient, doctor, status=AppointmentStatus.ACCEPTED)

        response = upload(client, patient, appointment, patient, [XRAY], ["SCAN_REPORT"])

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_disallowed_mime_type(self, client, db, storage, patient, doctor):
        appointment = add_appointment(db, patient, doctor, status=AppointmentStatus.CONSULTED)
        script = ("run.sh", b"echo hi", "application/x-sh")

        response = upload(
            client, doctor, appointment, patient, [XRAY, script], ["SCAN_REPORT", "MEDICAL_REPORT"]
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "File type application/x-sh is not allowed"
        assert storage.objects == {}

    def test_failed_upload_removes_stored_files(self, client, db, storage, patient, doctor, monkeypatch):
        appointment = add_appointment(db, patient, doctor, status=AppointmentStatus.ACCEPTED)
        store = storage.upload_file

        async def fail_after_first(object_name, file_data, content_type="application/octet-stream", metadata=None):
            if storage.objects:
                raise RuntimeError("storage unavailable")
            return await store(object_name, file_data, content_type=content_type, metadata=metadata)

        monkeypatch.setattr(storage, "upload_file", fail_after_first)

        with pytest.raises(RuntimeError):
            upload(client, doctor, appointment, patient, [XRAY, NOTES], ["SCAN_REPORT", "MEDICAL_REPORT"])

        assert storage.objects == {}
        listing = client.get("/documents", headers=auth_headers(doctor))
        assert listing.json()["documents"] == []

    def test_types_must_match_files(self, client, db, patient, doctor):
        appointment = add_appointment(db, patient, doctor, status=AppointmentStatus.ACCEPTED)

        response = upload(
            client, doctor, appointment, patient, [XRAY, NOTES], ["SCAN_REPORT"]
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Each file needs a document type"


@pytest.mark.api
class TestViewing:
    def test_stream_with_download_headers(self, client, db, storage, patient, doctor):
        appointment = add_appointment(db, patient, doctor, status=AppointmentStatus.ACCEPTED)
        key = f"medical-reports/{appointment.id}/scan.pdf"
        storage.objects[key] = (b"%PDF-1.4 scan", "application/pdf")
        document = add_document(db, doctor, key, appointment=appointment, original_name="scan.pdf")

        response = client.get(f"/documents/{document.id}/view", headers=auth_headers(patient))

        assert response.status_code == status.HTTP_200_OK
        assert response.content == b"%PDF-1.4 scan"
        assert response.headers["content-type"] == "application/pdf"
        assert response.headers["content-disposition"] == (
            "attachment; filename=\"scan.pdf\"; filename*=UTF-8''scan.pdf"
        )
        assert response.headers["cache-control"] == "private, max-age=3600"

    def test_non_latin_file_name_is_encoded(self, client, db, storage, patient, doctor):
        appointment = add_appointment(db, patient, doctor, status=AppointmentStatus.ACCEPTED)
        key = f"medical-reports/{appointment.id}/report.pdf"
        storage.objects[key] = (b"%PDF-1.4", "application/pdf")
        document = add_document(
            db, doctor, key, appointment=appointment, original_name="检查报告.pdf"
        )

        response = client.get(f"/documents/{document.id}/view", headers=auth_headers(patient))

        assert response.status_code == status.HTTP_200_OK
        assert response.headers["content-disposition"] == (
            "attachment; filename=\"download.pdf\"; "
            "filename*=UTF-8''%E6%A3%80%E6%9F%A5%E6%8A%A5%E5%91%8A.pdf"
        )

    def test_missing_object_is_404(self, client, db, patient, doctor):
        appointment = add_appointment(db, patient, doctor, status=AppointmentStatus.ACCEPTED)
        document = add_document(db, doctor, "medical-reports/gone.pdf", appointment=appointment)

        response = client.get(f"/documents/{document.id}/view", headers=auth_headers(doctor))

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Document file not found"

    def test_stranger_cannot_view(self, client, db, storage, patient, other_patient, doctor):
        claim = add_claim(db, patient)
        storage.objects["claims/x.pdf"] = (b"data", "application/pdf")
        document = add_document(db, patient, "claims/x.pdf", claim=claim)

        response = client.get(f"/documents/{document.id}/view", headers=auth_headers(other_patient))

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.api
class TestListing:
    def test_scoped_per_role(
        self, client, db, patient, other_patient, doctor, other_doctor, insurer
    ):
        appointment = add_appointment(db, patient, doctor, status=AppointmentStatus.ACCEPTED)
        visit_doc = add_document(db, doctor, "medical-reports/a.pdf", appointment=appointment)
        claim_doc = add_document(db, patient, "claims/b.pdf", claim=add_claim(db, patient))
        add_document(db, other_patient, "claims/c.pdf", claim=add_claim(db, other_patient))

        as_patient = client.get("/documents", headers=auth_headers(patient)).json()
        as_doctor = client.get("/documents", headers=auth_headers(doctor)).json()
        as_other_doctor = client.get("/documents", headers=auth_headers(other_doctor)).json()
        as_insurer = client.get("/documents", headers=auth_headers(insurer)).json()

        assert {d["id"] for d in as_patient["documents"]} == {str(visit_doc.id), str(claim_doc.id)}
        assert [d["id"] for d in as_doctor["documents"]] == [str(visit_doc.id)]
        assert as_other_doctor["documents"] == []
        assert as_insurer["pagination"]["total"] == 3

    def test_reviewer_filters_by_patient(self, client, db, patient, other_patient, insurer):
        mine = add_document(db, patient, "claims/b.pdf", claim=add_claim(db, patient))
        add_document(db, other_patient, "claims/c.pdf", claim=add_claim(db, other_patient))

        body = client.get(
            "/documents", params={"patient_id": str(patient.id)}, headers=auth_headers(insurer)
        ).json()

        assert [d["id"] for d in body["documents"]] == [str(mine.id)]

    def test_foreign_appointment_filter_is_404(self, client, db, patient, other_patient, doctor):
        appointment = add_appointment(db, other_patient, doctor)

        response = client.get(
            "/documents",
            params={"appointment_id": str(appointment.id)},
            headers=auth_headers(patient),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.api
class TestPresignedUploads:
    def test_presign_for_own_claim(self, client, db, patient):
        claim = add_claim(db, patient)

        response = client.post(
            "/upload",
            json={"file_name": "../receipt.pdf", "file_type": "application/pdf", "claim_id": str(claim.id)},
            headers=auth_headers(patient),
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["key"].startswith(f"claims/{claim.id}/")
        assert body["key"].endswith("-receipt.pdf")
        assert body["upload_url"].startswith(body["download_url"])

    def test_presign_without_claim_uses_temp_folder(self, client, patient):
        response = client.post(
            "/upload",
            json={"file_name": "receipt.pdf", "file_type": "application/pdf"},
            headers=auth_headers(patient),
        )

        assert response.json()["key"].startswith("claims/temp/")

    def test_presign_for_foreign_claim(self, client, db, patient, other_patient):
        claim = add_claim(db, patient)

        response = client.post(
            "/upload",
            json={"file_name": "r.pdf", "file_type": "application/pdf", "claim_id": str(claim.id)},
            headers=auth_headers(other_patient),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_register_uploaded_documents(self, client, db, storage, patient):
        claim = add_claim(db, patient)
        key = f"claims/{claim.id}/1700000000000-receipt.pdf"

        response = client.put(
            "/upload",
            json={
                "claim_id": str(claim.id),
                "documents": [
                    {
                        "key": key,
                        "original_name": "receipt.pdf",
                        "url": storage.object_url(key),
                        "size": 2048,
                        "mime_type": "application/pdf",
                    }
                ],
            },
            headers=auth_headers(patient),
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["message"] == "1 document(s) registered successfully"
        detail = client.get(f"/claims/{claim.id}", headers=auth_headers(patient)).json()
        assert [d["filename"] for d in detail["documents"]] == [key]
        assert detail["documents"][0]["type"] == "MEDICAL_REPORT"
