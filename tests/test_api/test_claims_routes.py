"""
Claim Routes Tests.
Filing, review workflow, pagination, deletion and report attachments.
"""

import re
from datetime import UTC, datetime, timedelta

import pytest
from fastapi import status

from claimportal.core.enums import ClaimStatus
from tests.fixtures.factories import add_claim, add_report, attach, auth_headers

CLAIM_NUMBER = re.compile(r"^CLM-\d{6}-[A-Z0-9]{6}$")


def file_claim(client, patient, doctor=None, amount="300.00"):
    payload = {
        "diagnosis": "Fractured wrist",
        "treatment_date": (datetime.now(UTC) - timedelta(days=2)).isoformat(),
        "claim_amount": amount,
        "description": "ER visit and cast",
    }
    if doctor is not None:
        payload["doctor_id"] = str(doctor.id)
    return client.post("/claims", json=payload, headers=auth_headers(patient))


@pytest.mark.api
class TestFiling:
    def test_patient_files_draft(self, client, patient, doctor):
        response = file_claim(client, patient, doctor)

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["status"] == "DRAFT"
        assert CLAIM_NUMBER.match(body["claim_number"])
        assert body["claim_amount"] == "300.00"
        assert body["patient"]["id"] == str(patient.id)
        assert body["doctor"]["id"] == str(doctor.id)
        assert body["payments"] == []
        assert body["attached_reports"] == []

    def test_only_patients_file(self, client, doctor):
        response = file_claim(client, doctor)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Only patients can create claims"

    def test_amount_must_be_positive(self, client, patient):
        response = file_claim(client, patient, amount="0")
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_doctor_id_must_be_a_doctor(self, client, patient, banker):
        response = file_claim(client, patient, banker)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Invalid doctor selected"


@pytest.mark.api
class TestListing:
    def test_second_page_of_25(self, client, db, patient):
        start = datetime(2025, 1, 1, tzinfo=UTC)
        claims = [
            add_claim(db, patient, created_at=start + timedelta(minutes=i)) for i in range(25)
        ]

        response = client.get(
            "/claims", params={"page": 2, "limit": 10}, headers=auth_headers(patient)
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["pagination"] == {"page": 2, "limit": 10, "total": 25, "total_pages": 3}
        newest_first = [str(c.id) for c in reversed(claims)]
        assert [c["id"] for c in body["claims"]] == newest_first[10:20]

    def test_limit_above_100_rejected(self, client, patient):
        response = client.get("/claims", params={"limit": 101}, headers=auth_headers(patient))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_page_zero_rejected(self, client, patient):
        response = client.get("/claims", params={"page": 0}, headers=auth_headers(patient))
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_reviewers_do_not_see_drafts_by_default(self, client, db, patient, insurer):
        add_claim(db, patient)
        submitted = add_claim(db, patient, status=ClaimStatus.SUBMITTED)
        headers = auth_headers(insurer)

        default = client.get("/claims", headers=headers).json()
        with_drafts = client.get("/claims", params={"include_drafts": "true"}, headers=headers)
        drafts_only = client.get("/claims", params={"status": "DRAFT"}, headers=headers)

        assert [c["id"] for c in default["claims"]] == [str(submitted.id)]
        assert with_drafts.json()["pagination"]["total"] == 2
        assert drafts_only.json()["pagination"]["total"] == 1

    def test_patients_and_doctors_see_their_own(
        self, client, db, patient, other_patient, doctor, other_doctor
    ):
        mine = add_claim(db, patient, doctor)
        add_claim(db, other_patient, other_doctor)

        as_patient = client.get("/claims", headers=auth_headers(patient)).json()
        as_doctor = client.get("/claims", headers=auth_headers(doctor)).json()

        assert [c["id"] for c in as_patient["claims"]] == [str(mine.id)]
        assert [c["id"] for c in as_doctor["claims"]] == [str(mine.id)]

    def test_stranger_cannot_view(self, client, db, patient, other_patient):
        claim = add_claim(db, patient)

        response = client.get(f"/claims/{claim.id}", headers=auth_headers(other_patient))

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.api
class TestReviewWorkflow:
    def test_full_lifecycle_to_paid(self, client, patient, doctor, insurer, banker):
        claim_id = file_claim(client, patient, doctor).json()["id"]

        submitted = client.put(
            f"/claims/{claim_id}", json={"status": "SUBMITTED"}, headers=auth_headers(patient)
        )
        assert submitted.status_code == status.HTTP_200_OK
        assert submitted.json()["submitted_at"] is not None

        review = client.patch(
            f"/claims/{claim_id}", json={"status": "UNDER_REVIEW"}, headers=auth_headers(insurer)
        )
        assert review.json()["message"] == "Claim status updated to UNDER_REVIEW"

        approved = client.patch(
            f"/claims/{claim_id}",
            json={"status": "APPROVED", "approved_amount": "275.00"},
            headers=auth_headers(insurer),
        )
        assert approved.status_code == status.HTTP_200_OK
        assert approved.json()["claim"]["approved_amount"] == "275.00"
        assert approved.json()["claim"]["approved_at"] is not None

        payment = client.post(
            "/payments",
            json={"claim_id": claim_id, "amount": "275.00", "payment_method": "BANK_TRANSFER"},
            headers=auth_headers(banker),
        )
        assert payment.status_code == status.HTTP_201_CREATED
        assert payment.json()["status"] == "PROCESSING"

        completed = client.patch(
            f"/payments/{payment.json()['id']}",
            json={"status": "COMPLETED", "transaction_id": "TX-1"},
            headers=auth_headers(banker),
        )
        assert completed.status_code == status.HTTP_200_OK
        assert completed.json()["payment_date"] is not None
        assert completed.json()["claim"]["status"] == "PAID"

        claim = client.get(f"/claims/{claim_id}", headers=auth_headers(patient)).json()
        assert claim["status"] == "PAID"
        assert claim["paid_at"] is not None
        assert claim["payments"][0]["status"] == "COMPLETED"
        assert claim["payments"][0]["amount"] == "275.00"

    def test_bank_cannot_pay_submitted_claim(self, client, db, patient, banker):
        claim = add_claim(db, patient, status=ClaimStatus.SUBMITTED)

        response = client.patch(
            f"/claims/{claim.id}", json={"status": "PAID"}, headers=auth_headers(banker)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Only approved claims can be marked as paid"

    def test_bank_cannot_approve(self, client, db, patient, banker):
        claim = add_claim(db, patient, status=ClaimStatus.UNDER_REVIEW)

        response = client.patch(
            f"/claims/{claim.id}", json={"status": "APPROVED"}, headers=auth_headers(banker)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Bank users can only update claims to PAID status"

    def test_patient_cannot_patch(self, client, db, patient):
        claim = add_claim(db, patient, status=ClaimStatus.SUBMITTED)

        response = client.patch(
            f"/claims/{claim.id}", json={"status": "UNDER_REVIEW"}, headers=auth_headers(patient)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Only insurance and bank users can update claim status"

    def test_rejection_records_reason(self, client, db, patient, insurer):
        claim = add_claim(db, patient, status=ClaimStatus.UNDER_REVIEW)

        response = client.patch(
            f"/claims/{claim.id}",
            json={"status": "REJECTED", "rejection_reason": "Not covered"},
            headers=auth_headers(insurer),
        )

        body = response.json()["claim"]
        assert body["status"] == "REJECTED"
        assert body["rejection_reason"] == "Not covered"
        assert body["rejected_at"] is not None

    def test_skipping_review_is_400(self, client, db, patient, insurer):
        claim = add_claim(db, patient, status=ClaimStatus.SUBMITTED)

        response = client.patch(
            f"/claims/{claim.id}", json={"status": "APPROVED"}, headers=auth_headers(insurer)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == (
            "Invalid claim status transition from SUBMITTED to APPROVED"
        )


@pytest.mark.api
class TestUpdate:
    def test_patient_edits_draft(self, client, db, patient):
        claim = add_claim(db, patient)

        response = client.put(
            f"/claims/{claim.id}",
            json={"claim_amount": "120.456", "diagnosis": "Sprain"},
            headers=auth_headers(patient),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

        response = client.put(
            f"/claims/{claim.id}",
            json={"claim_amount": "120.45", "diagnosis": "Sprain"},
            headers=auth_headers(patient),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["claim_amount"] == "120.45"
        assert response.json()["diagnosis"] == "Sprain"

    def test_patient_cannot_edit_submitted(self, client, db, patient):
        claim = add_claim(db, patient, status=ClaimStatus.SUBMITTED)

        response = client.put(
            f"/claims/{claim.id}", json={"diagnosis": "Other"}, headers=auth_headers(patient)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_doctor_limited_to_clinical_fields(self, client, db, patient, doctor):
        claim = add_claim(db, patient, doctor, status=ClaimStatus.SUBMITTED)
        headers = auth_headers(doctor)

        allowed = client.put(
            f"/claims/{claim.id}", json={"description": "Confirmed fracture"}, headers=headers
        )
        denied = client.put(f"/claims/{claim.id}", json={"claim_amount": "1.00"}, headers=headers)

        assert allowed.status_code == status.HTTP_200_OK
        assert allowed.json()["description"] == "Confirmed fracture"
        assert denied.status_code == status.HTTP_403_FORBIDDEN
        assert denied.json()["detail"] == "Not allowed to update claim fields: claim_amount"

    def test_reviewers_edit_descriptive_fields(self, client, db, patient, insurer, banker):
        claim = add_claim(db, patient, status=ClaimStatus.SUBMITTED)

        by_insurer = client.put(
            f"/claims/{claim.id}", json={"description": "reviewed"}, headers=auth_headers(insurer)
        )
        by_bank = client.put(
            f"/claims/{claim.id}", json={"diagnosis": "Fracture"}, headers=auth_headers(banker)
        )

        assert by_insurer.status_code == status.HTTP_200_OK
        assert by_insurer.json()["description"] == "reviewed"
        assert by_bank.status_code == status.HTTP_200_OK
        assert by_bank.json()["diagnosis"] == "Fracture"
        assert by_bank.json()["status"] == "SUBMITTED"

    def test_reviewer_cannot_change_amount(self, client, db, patient, insurer):
        claim = add_claim(db, patient, status=ClaimStatus.SUBMITTED)
        headers = auth_headers(insurer)

        amount = client.put(f"/claims/{claim.id}", json={"claim_amount": "1.00"}, headers=headers)
        approved = client.put(
            f"/claims/{claim.id}", json={"approved_amount": "10.00"}, headers=headers
        )

        assert amount.status_code == status.HTTP_403_FORBIDDEN
        assert amount.json()["detail"] == "Not allowed to update claim fields: claim_amount"
        assert approved.status_code == status.HTTP_200_OK
        assert approved.json()["approved_amount"] is None

    def test_required_field_cannot_be_cleared(self, client, db, patient):
        claim = add_claim(db, patient)

        response = client.put(
            f"/claims/{claim.id}", json={"treatment_date": None}, headers=auth_headers(patient)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.api
class TestDelete:
    def test_owner_deletes_draft(self, client, db, patient):
        claim = add_claim(db, patient)
        headers = auth_headers(patient)

        response = client.delete(f"/claims/{claim.id}", headers=headers)

        assert response.status_code == status.HTTP_200_OK
        assert client.get(f"/claims/{claim.id}", headers=headers).status_code == 404

    def test_submitted_claim_cannot_be_deleted(self, client, db, patient):
        claim = add_claim(db, patient, status=ClaimStatus.SUBMITTED)

        response = client.delete(f"/claims/{claim.id}", headers=auth_headers(patient))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Only draft claims can be deleted by their owner"

    def test_other_patient_cannot_delete(self, client, db, patient, other_patient):
        claim = add_claim(db, patient)

        response = client.delete(f"/claims/{claim.id}", headers=auth_headers(other_patient))

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.api
class TestReportAttachments:
    def test_attach_and_detach(self, client, db, patient, doctor):
        claim = add_claim(db, patient, doctor)
        report = add_report(db, patient, doctor)
        headers = auth_headers(patient)

        attached = client.post(
            f"/claims/{claim.id}/attach-report", json={"report_id": str(report.id)}, headers=headers
        )

        assert attached.status_code == status.HTTP_201_CREATED
        assert attached.json()["attachment"]["report"]["id"] == str(report.id)
        detail = client.get(f"/claims/{claim.id}", headers=headers).json()
        assert [a["report_id"] for a in detail["attached_reports"]] == [str(report.id)]

        detached = client.post(
            f"/claims/{claim.id}/detach-report", json={"report_id": str(report.id)}, headers=headers
        )

        assert detached.status_code == status.HTTP_200_OK
        detail = client.get(f"/claims/{claim.id}", headers=headers).json()
        assert detail["attached_reports"] == []

    def test_duplicate_attachment_rejected(self, client, db, patient, doctor):
        claim = add_claim(db, patient)
        report = add_report(db, patient, doctor)
        attach(db, claim, report, patient)

        response = client.post(
            f"/claims/{claim.id}/attach-report",
            json={"report_id": str(report.id)},
            headers=auth_headers(patient),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Report is already attached to this claim"

    def test_missing_report_id(self, client, db, patient):
        claim = add_claim(db, patient)

        response = client.post(
            f"/claims/{claim.id}/attach-report", json={}, headers=auth_headers(patient)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Report ID is required"

    def test_unknown_report(self, client, db, patient):
        claim = add_claim(db, patient)

        response = client.post(
            f"/claims/{claim.id}/attach-report",
            json={"report_id": "00000000-0000-0000-0000-000000000000"},
            headers=auth_headers(patient),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Report not found"

    def test_foreign_report_forbidden(self, client, db, patient, other_patient, doctor):
        claim = add_claim(db, patient)
        report = add_report(db, other_patient, doctor)

        response = client.post(
            f"/claims/{claim.id}/attach-report",
            json={"report_id": str(report.id)},
            headers=auth_headers(patient),
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_detach_unattached_is_404(self, client, db, patient, doctor):
        claim = add_claim(db, patient)
        report = add_report(db, patient, doctor)

        response = client.post(
            f"/claims/{claim.id}/detach-report",
            json={"report_id": str(report.id)},
            headers=auth_headers(patient),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Report is not attached to this claim"
