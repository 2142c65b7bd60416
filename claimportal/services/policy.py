"""
Authorization Policy for the Claims Portal.

A single declarative table decides who may do what. Each entry is keyed by
(role, action, resource) and holds a predicate over the acting principal and
the facts of the resource being touched. Keys absent from the table deny.

The module is pure: no database access, no request state. Services gather
the facts, then call `enforce()` before mutating anything.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any
from uuid import UUID

from claimportal.core.enums import AppointmentStatus, ClaimStatus, UserRole
from claimportal.utils.errors import PermissionDeniedError


# =============================================================================
# Types
# =============================================================================


@dataclass(frozen=True)
class Principal:
    """The authenticated actor making a request."""

    id: UUID
    role: UserRole

    @classmethod
    def from_user(cls, user: Any) -> "Principal":
        return cls(id=user.id, role=UserRole(user.role))


class Action(str, Enum):
    """Operations guarded by the policy."""

    VIEW = "VIEW"
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    RESCHEDULE = "RESCHEDULE"
    TRANSITION = "TRANSITION"  # Reviewer status change (insurance, bank, doctor)
    SUBMIT = "SUBMIT"  # Patient submitting their own draft
    ATTACH_REPORT = "ATTACH_REPORT"
    DETACH_REPORT = "DETACH_REPORT"
    UPLOAD = "UPLOAD"


class Resource(str, Enum):
    """Guarded resource kinds."""

    APPOINTMENT = "APPOINTMENT"
    CLAIM = "CLAIM"
    PATIENT_REPORT = "PATIENT_REPORT"
    PAYMENT = "PAYMENT"
    DOCUMENT = "DOCUMENT"
    PATIENT_ROSTER = "PATIENT_ROSTER"


@dataclass(frozen=True)
class ResourceFacts:
    """
    Ownership and state facts about the resource being accessed.

    Attributes:
        patient_id: Patient on the record (for payments and documents, the
            patient of the linked claim or appointment)
        doctor_id: Doctor on the record; for report creation, the doctor of
            the linked appointment
        status: Current status of the record
        target_status: Requested status for transitions
        report_patient_id: Patient of the report being attached to a claim
    """

    patient_id: UUID | None = None
    doctor_id: UUID | None = None
    status: Enum | None = None
    target_status: Enum | None = None
    report_patient_id: UUID | None = None


@dataclass(frozen=True)
class Decision:
    """Outcome of a policy lookup."""

    allowed: bool
    reason: str | None = None


Predicate = Callable[[Principal, ResourceFacts], bool]


@dataclass(frozen=True)
class Rule:
    """Table entry: grant when `check` holds, otherwise deny with `message`."""

    check: Predicate
    message: str


class ListScope(str, Enum):
    """How much of a collection a role may list."""

    ALL = "ALL"
    AS_PATIENT = "AS_PATIENT"  # Rows where the caller is the patient
    AS_DOCTOR = "AS_DOCTOR"  # Rows where the caller is the doctor


# =============================================================================
# Predicates
# =============================================================================


def _always(principal: Principal, facts: ResourceFacts) -> bool:
    return True


def _is_patient(principal: Principal, facts: ResourceFacts) -> bool:
    return facts.patient_id is not None and facts.patient_id == principal.id


def _is_doctor(principal: Principal, facts: ResourceFacts) -> bool:
    return facts.doctor_id is not None and facts.doctor_id == principal.id


def _status_is(status: Enum) -> Predicate:
    def check(principal: Principal, facts: ResourceFacts) -> bool:
        return facts.status == status

    return check


def _target_in(*targets: Enum) -> Predicate:
    allowed = frozenset(targets)

    def check(principal: Principal, facts: ResourceFacts) -> bool:
        return facts.target_status in allowed

    return check


def _all_of(*predicates: Predicate) -> Predicate:
    def check(principal: Principal, facts: ResourceFacts) -> bool:
        return all(predicate(principal, facts) for predicate in predicates)

    return check


def _owns_report(principal: Principal, facts: ResourceFacts) -> bool:
    return facts.report_patient_id is not None and facts.report_patient_id == principal.id


def _doctor_if_linked(principal: Principal, facts: ResourceFacts) -> bool:
    # A report without an appointment carries no doctor fact
    return facts.doctor_id is None or facts.doctor_id == principal.id


# =============================================================================
# Policy Table
# =============================================================================

PATIENT = UserRole.PATIENT
DOCTOR = UserRole.DOCTOR
INSURANCE = UserRole.INSURANCE
BANK = UserRole.BANK

A = Action
R = Resource

_ALLOW = Rule(_always, "")

DOCTOR_APPOINTMENT_TARGETS = (
    AppointmentStatus.ACCEPTED,
    AppointmentStatus.REJECTED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.CONSULTED,
)
PATIENT_APPOINTMENT_TARGETS = (AppointmentStatus.CANCELLED,)

INSURANCE_CLAIM_TARGETS = (
    ClaimStatus.SUBMITTED,
    ClaimStatus.UNDER_REVIEW,
    ClaimStatus.APPROVED,
    ClaimStatus.REJECTED,
)
BANK_CLAIM_TARGETS = (ClaimStatus.PAID,)


POLICY: dict[tuple[UserRole, Action, Resource], Rule] = {
    # ------------------------------------------------------------------ Appointments
    (PATIENT, A.VIEW, R.APPOINTMENT): Rule(_is_patient, "Not authorized to view this appointment"),
    (DOCTOR, A.VIEW, R.APPOINTMENT): Rule(_is_doctor, "Not authorized to view this appointment"),
    (INSURANCE, A.VIEW, R.APPOINTMENT): _ALLOW,
    (BANK, A.VIEW, R.APPOINTMENT): _ALLOW,
    (PATIENT, A.CREATE, R.APPOINTMENT): _ALLOW,
    (PATIENT, A.UPDATE, R.APPOINTMENT): Rule(
        _is_patient, "Not authorized to update this appointment"
    ),
    (DOCTOR, A.UPDATE, R.APPOINTMENT): Rule(_is_doctor, "Not authorized to update this appointment"),
    (INSURANCE, A.UPDATE, R.APPOINTMENT): _ALLOW,
    (BANK, A.UPDATE, R.APPOINTMENT): _ALLOW,
    (PATIENT, A.RESCHEDULE, R.APPOINTMENT): Rule(
        _is_patient, "Not authorized to reschedule this appointment"
    ),
    (DOCTOR, A.RESCHEDULE, R.APPOINTMENT): Rule(
        _is_doctor, "Not authorized to reschedule this appointment"
    ),
    (PATIENT, A.TRANSITION, R.APPOINTMENT): Rule(
        _all_of(_is_patient, _target_in(*PATIENT_APPOINTMENT_TARGETS)),
        "Patients can only cancel their own appointments",
    ),
    (DOCTOR, A.TRANSITION, R.APPOINTMENT): Rule(
        _all_of(_is_doctor, _target_in(*DOCTOR_APPOINTMENT_TARGETS)),
        "Doctors can only accept, reject, cancel or consult their own appointments",
    ),
    (INSURANCE, A.TRANSITION, R.APPOINTMENT): _ALLOW,
    (BANK, A.TRANSITION, R.APPOINTMENT): _ALLOW,
    (PATIENT, A.DELETE, R.APPOINTMENT): Rule(
        _all_of(_is_patient, _status_is(AppointmentStatus.PENDING)),
        "Only the patient can delete a pending appointment",
    ),
    (DOCTOR, A.UPLOAD, R.APPOINTMENT): Rule(
        _is_doctor, "Only the appointment's doctor can upload documents"
    ),
    # ------------------------------------------------------------------ Claims
    (PATIENT, A.VIEW, R.CLAIM): Rule(_is_patient, "Not authorized to view this claim"),
    (DOCTOR, A.VIEW, R.CLAIM): Rule(_is_doctor, "Not authorized to view this claim"),
    (INSURANCE, A.VIEW, R.CLAIM): _ALLOW,
    (BANK, A.VIEW, R.CLAIM): _ALLOW,
    (PATIENT, A.CREATE, R.CLAIM): _ALLOW,
    (PATIENT, A.UPDATE, R.CLAIM): Rule(
        _all_of(_is_patient, _status_is(ClaimStatus.DRAFT)),
        "Patients can only edit their own draft claims",
    ),
    (DOCTOR, A.UPDATE, R.CLAIM): Rule(_is_doctor, "Not authorized to update this claim"),
    (INSURANCE, A.UPDATE, R.CLAIM): _ALLOW,
    (BANK, A.UPDATE, R.CLAIM): _ALLOW,
    (INSURANCE, A.TRANSITION, R.CLAIM): Rule(
        _target_in(*INSURANCE_CLAIM_TARGETS),
        "Insurance users can only set claims to SUBMITTED, UNDER_REVIEW, APPROVED or REJECTED",
    ),
    (BANK, A.TRANSITION, R.CLAIM): Rule(
        _target_in(*BANK_CLAIM_TARGETS), "Bank users can only update claims to PAID status"
    ),
    (PATIENT, A.SUBMIT, R.CLAIM): Rule(
        _all_of(_is_patient, _status_is(ClaimStatus.DRAFT), _target_in(ClaimStatus.SUBMITTED)),
        "Patients can only submit their own draft claims",
    ),
    (PATIENT, A.DELETE, R.CLAIM): Rule(
        _all_of(_is_patient, _status_is(ClaimStatus.DRAFT)),
        "Only draft claims can be deleted by their owner",
    ),
    (PATIENT, A.ATTACH_REPORT, R.CLAIM): Rule(
        _all_of(_is_patient, _owns_report),
        "You can only attach your own reports to your own claims",
    ),
    (PATIENT, A.DETACH_REPORT, R.CLAIM): Rule(
        _is_patient, "You can only detach reports from your own claims"
    ),
    (PATIENT, A.UPLOAD, R.CLAIM): Rule(_is_patient, "Not authorized to add documents to this claim"),
    (DOCTOR, A.UPLOAD, R.CLAIM): Rule(_is_doctor, "Not authorized to add documents to this claim"),
    # ------------------------------------------------------------------ Patient reports
    (PATIENT, A.VIEW, R.PATIENT_REPORT): Rule(_is_patient, "Not authorized to view this report"),
    (DOCTOR, A.VIEW, R.PATIENT_REPORT): Rule(_is_doctor, "Not authorized to view this report"),
    (INSURANCE, A.VIEW, R.PATIENT_REPORT): _ALLOW,
    (BANK, A.VIEW, R.PATIENT_REPORT): _ALLOW,
    (DOCTOR, A.CREATE, R.PATIENT_REPORT): Rule(
        _doctor_if_linked, "You can only create reports for your own appointments"
    ),
    (DOCTOR, A.UPDATE, R.PATIENT_REPORT): Rule(
        _is_doctor, "You can only update reports you created"
    ),
    (DOCTOR, A.DELETE, R.PATIENT_REPORT): Rule(
        _is_doctor, "You can only delete reports you created"
    ),
    # ------------------------------------------------------------------ Payments
    (PATIENT, A.VIEW, R.PAYMENT): Rule(_is_patient, "Not authorized to view this payment"),
    (INSURANCE, A.VIEW, R.PAYMENT): _ALLOW,
    (BANK, A.VIEW, R.PAYMENT): _ALLOW,
    (BANK, A.CREATE, R.PAYMENT): _ALLOW,
    (BANK, A.TRANSITION, R.PAYMENT): _ALLOW,
    # ------------------------------------------------------------------ Documents
    (PATIENT, A.VIEW, R.DOCUMENT): Rule(_is_patient, "Not authorized to view this document"),
    (DOCTOR, A.VIEW, R.DOCUMENT): Rule(_is_doctor, "Not authorized to view this document"),
    (INSURANCE, A.VIEW, R.DOCUMENT): _ALLOW,
    (BANK, A.VIEW, R.DOCUMENT): _ALLOW,
    # ------------------------------------------------------------------ Patient roster
    (DOCTOR, A.VIEW, R.PATIENT_ROSTER): _ALLOW,
}


# Denial messages when a role has no entry at all
DEFAULT_DENIALS: dict[tuple[Action, Resource], str] = {
    (A.CREATE, R.APPOINTMENT): "Only patients can book appointments",
    (A.RESCHEDULE, R.APPOINTMENT): "Only the patient or doctor can reschedule an appointment",
    (A.DELETE, R.APPOINTMENT): "Only the patient can delete a pending appointment",
    (A.UPLOAD, R.APPOINTMENT): "Only the appointment's doctor can upload documents",
    (A.CREATE, R.CLAIM): "Only patients can create claims",
    (A.TRANSITION, R.CLAIM): "Only insurance and bank users can update claim status",
    (A.SUBMIT, R.CLAIM): "Only the patient can submit a draft claim",
    (A.DELETE, R.CLAIM): "Only draft claims can be deleted by their owner",
    (A.ATTACH_REPORT, R.CLAIM): "Only patients can attach reports to claims",
    (A.DETACH_REPORT, R.CLAIM): "Only patients can detach reports from claims",
    (A.UPLOAD, R.CLAIM): "Not authorized to add documents to this claim",
    (A.CREATE, R.PATIENT_REPORT): "Only doctors can create patient reports",
    (A.UPDATE, R.PATIENT_REPORT): "Only doctors can update patient reports",
    (A.DELETE, R.PATIENT_REPORT): "Only doctors can delete patient reports",
    (A.VIEW, R.PAYMENT): "Not authorized to view payments",
    (A.CREATE, R.PAYMENT): "Only bank users can create payments",
    (A.TRANSITION, R.PAYMENT): "Only bank users can update payments",
    (A.VIEW, R.PATIENT_ROSTER): "Only doctors can view patient records",
}

FALLBACK_DENIAL = "You do not have permission to perform this action"


# Collection visibility per role
LIST_SCOPES: dict[tuple[UserRole, Resource], ListScope] = {
    (PATIENT, R.APPOINTMENT): ListScope.AS_PATIENT,
    (DOCTOR, R.APPOINTMENT): ListScope.AS_DOCTOR,
    (INSURANCE, R.APPOINTMENT): ListScope.ALL,
    (BANK, R.APPOINTMENT): ListScope.ALL,
    (PATIENT, R.CLAIM): ListScope.AS_PATIENT,
    (DOCTOR, R.CLAIM): ListScope.AS_DOCTOR,
    (INSURANCE, R.CLAIM): ListScope.ALL,
    (BANK, R.CLAIM): ListScope.ALL,
    (PATIENT, R.PATIENT_REPORT): ListScope.AS_PATIENT,
    (DOCTOR, R.PATIENT_REPORT): ListScope.AS_DOCTOR,
    (INSURANCE, R.PATIENT_REPORT): ListScope.ALL,
    (BANK, R.PATIENT_REPORT): ListScope.ALL,
    (PATIENT, R.PAYMENT): ListScope.AS_PATIENT,
    (INSURANCE, R.PAYMENT): ListScope.ALL,
    (BANK, R.PAYMENT): ListScope.ALL,
    (PATIENT, R.DOCUMENT): ListScope.AS_PATIENT,
    (DOCTOR, R.DOCUMENT): ListScope.AS_DOCTOR,
    (INSURANCE, R.DOCUMENT): ListScope.ALL,
    (BANK, R.DOCUMENT): ListScope.ALL,
    (DOCTOR, R.PATIENT_ROSTER): ListScope.AS_DOCTOR,
}


# Clinical and descriptive fields; the amount and the patient's doctor stay with the patient
REVIEWER_CLAIM_FIELDS = frozenset({"diagnosis", "description", "treatment_date"})

# Descriptive claim fields each role may change through a general update
CLAIM_EDITABLE_FIELDS: dict[UserRole, frozenset[str]] = {
    PATIENT: frozenset({"diagnosis", "description", "treatment_date", "claim_amount", "doctor_id"}),
    DOCTOR: frozenset({"diagnosis", "description"}),
    INSURANCE: REVIEWER_CLAIM_FIELDS,
    BANK: REVIEWER_CLAIM_FIELDS,
}


# =============================================================================
# Operations
# =============================================================================


def authorize(
    principal: Principal,
    action: Action,
    resource: Resource,
    facts: ResourceFacts | None = None,
) -> Decision:
    """
    Look up the rule for (role, action, resource) and evaluate it.

    Args:
        principal: Acting user
        action: Requested operation
        resource: Kind of resource
        facts: Ownership/state facts; empty facts when omitted

    Returns:
        Decision with a denial reason when not allowed
    """
    facts = facts or ResourceFacts()
    rule = POLICY.get((principal.role, action, resource))

    if rule is None:
        return Decision(False, DEFAULT_DENIALS.get((action, resource), FALLBACK_DENIAL))

    if rule.check(principal, facts):
        return Decision(True)

    return Decision(False, rule.message or FALLBACK_DENIAL)


def enforce(
    principal: Principal,
    action: Action,
    resource: Resource,
    facts: ResourceFacts | None = None,
) -> None:
    """
    Authorize or raise.

    Raises:
        PermissionDeniedError: When the policy denies the request
    """
    decision = authorize(principal, action, resource, facts)
    if not decision.allowed:
        raise PermissionDeniedError(decision.reason or FALLBACK_DENIAL)


def list_scope(principal: Principal, resource: Resource) -> ListScope:
    """
    Visibility of a collection for the principal's role.

    Raises:
        PermissionDeniedError: When the role may not list the resource at all
    """
    scope = LIST_SCOPES.get((principal.role, resource))
    if scope is None:
        raise PermissionDeniedError(
            DEFAULT_DENIALS.get((Action.VIEW, resource), FALLBACK_DENIAL)
        )
    return scope


def editable_claim_fields(role: UserRole) -> frozenset[str]:
    """Descriptive claim fields the role may change."""
    return CLAIM_EDITABLE_FIELDS.get(role, frozenset())


def claim_status_action(principal: Principal) -> Action:
    """Patients submit their drafts; every other role reviews."""
    if principal.role is UserRole.PATIENT:
        return Action.SUBMIT
    return Action.TRANSITION
