"""
Payment Routes Tests.
Bank payments, their workflow and who can see them.
"""

import pytest
from fastapi import status

from claimportal.core.enums import ClaimStatus, PaymentStatus
from tests.fixtures.factories import add_claim, add_payment, auth_headers


def pay(client, banker, claim, amount="275.00"):
    return client.post(
        "/payments",
        json={"claim_id": str(claim.id), "amount": amount},
        headers=auth_headers(banker),
    )


@pytest.mark.api
class TestCreate:
    def test_bank_pays_approved_claim(self, client, db, patient, banker):
        claim = add_claim(db, patient, status=ClaimStatus.APPROVED)

        response = pay(client, banker, claim)

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body["status"] == "PROCESSING"
        assert body["amount"] == "275.00"
        assert body["processed_by"] == str(banker.id)
        assert body["processor"]["id"] == str(banker.id)
        assert body["claim"]["claim_number"] == claim.claim_number

    def test_claim_must_be_approved(self, client, db, patient, banker):
        claim = add_claim(db, patient, status=ClaimStatus.UNDER_REVIEW)

        response = pay(client, banker, claim)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Can only create payments for approved or paid claims"

    def test_one_active_payment_per_claim(self, client, db, patient, banker):
        claim = add_claim(db, patient, status=ClaimStatus.APPROVED)
        add_payment(db, claim)

        response = pay(client, banker, claim)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Payment already exists for this claim"

    def test_failed_payment_can_be_retried(self, client, db, patient, banker):
        claim = add_claim(db, patient, status=ClaimStatus.APPROVED)
        add_payment(db, claim, status=PaymentStatus.FAILED)

        response = pay(client, banker, claim)

        assert response.status_code == status.HTTP_201_CREATED

    def test_only_bank_creates(self, client, db, patient, insurer):
        claim = add_claim(db, patient, status=ClaimStatus.APPROVED)

        response = pay(client, insurer, claim)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Only bank users can create payments"

    def test_unknown_claim(self, client, banker):
        response = client.post(
            "/payments",
            json={"claim_id": "00000000-0000-0000-0000-000000000000", "amount": "10.00"},
            headers=auth_headers(banker),
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()["detail"] == "Claim not found"


@pytest.mark.api
class TestStatusUpdates:
    def test_unknown_status(self, client, db, patient, banker):
        payment = add_payment(db, add_claim(db, patient, status=ClaimStatus.APPROVED))

        response = client.patch(
            f"/payments/{payment.id}", json={"status": "BOUNCED"}, headers=auth_headers(banker)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == "Invalid payment status"

    def test_failure_keeps_claim_approved(self, client, db, patient, banker):
        claim = add_claim(db, patient, status=ClaimStatus.APPROVED)
        payment = add_payment(db, claim)

        response = client.patch(
            f"/payments/{payment.id}",
            json={"status": "FAILED", "failure_reason": "Account closed"},
            headers=auth_headers(banker),
        )

        body = response.json()
        assert body["status"] == "FAILED"
        assert body["failure_reason"] == "Account closed"
        assert body["claim"]["status"] == "APPROVED"

    def test_refund_only_after_completion(self, client, db, patient, banker):
        payment = add_payment(db, add_claim(db, patient, status=ClaimStatus.APPROVED))

        response = client.patch(
            f"/payments/{payment.id}", json={"status": "REFUNDED"}, headers=auth_headers(banker)
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["detail"] == (
            "Invalid payment status transition from PROCESSING to REFUNDED"
        )

    def test_completing_second_payment_keeps_claim_paid(self, client, db, patient, banker):
        claim = add_claim(db, patient, status=ClaimStatus.PAID)
        payment = add_payment(db, claim)

        response = client.patch(
            f"/payments/{payment.id}", json={"status": "COMPLETED"}, headers=auth_headers(banker)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["claim"]["status"] == "PAID"

    def test_insurer_cannot_update(self, client, db, patient, insurer):
        payment = add_payment(db, add_claim(db, patient, status=ClaimStatus.APPROVED))

        response = client.patch(
            f"/payments/{payment.id}", json={"status": "COMPLETED"}, headers=auth_headers(insurer)
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


@pytest.mark.api
class TestVisibility:
    def test_patient_sees_own_payments(self, client, db, patient, other_patient, insurer):
        mine = add_payment(db, add_claim(db, patient, status=ClaimStatus.APPROVED))
        add_payment(db, add_claim(db, other_patient, status=ClaimStatus.APPROVED))

        as_patient = client.get("/payments", headers=auth_headers(patient)).json()
        as_insurer = client.get("/payments", headers=auth_headers(insurer)).json()

        assert [p["id"] for p in as_patient["payments"]] == [str(mine.id)]
        assert as_insurer["pagination"]["total"] == 2

    def test_status_filter(self, client, db, patient, banker):
        add_payment(db, add_claim(db, patient, status=ClaimStatus.APPROVED))
        failed = add_payment(
            db, add_claim(db, patient, status=ClaimStatus.APPROVED), status=PaymentStatus.FAILED
        )

        body = client.get(
            "/payments", params={"status": "FAILED"}, headers=auth_headers(banker)
        ).json()

        assert [p["id"] for p in body["payments"]] == [str(failed.id)]

    def test_doctor_cannot_list(self, client, doctor):
        response = client.get("/payments", headers=auth_headers(doctor))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["detail"] == "Not authorized to view payments"

    def test_other_patient_cannot_view(self, client, db, patient, other_patient):
        payment = add_payment(db, add_claim(db, patient, status=ClaimStatus.APPROVED))

        response = client.get(f"/payments/{payment.id}", headers=auth_headers(other_patient))

        assert response.status_code == status.HTTP_403_FORBIDDEN
