"""
Services Layer for the Claims Portal.

Exports the entity services, the authorization policy and the status state
machines.
"""

from claimportal.services.policy import (
    Action,
    Decision,
    Principal,
    Resource,
    ResourceFacts,
    authorize,
    enforce,
)
from claimportal.services.state_machines import (
    InvalidTransitionError,
    StateMachine,
    Transition,
    TransitionResult,
    appointment_machine,
    claim_machine,
    payment_machine,
)
from claimportal.services.storage import ObjectNotFoundError, StorageService, get_storage
from claimportal.services.users_service import UsersService, get_users_service
from claimportal.services.appointments_service import (
    AppointmentsService,
    get_appointments_service,
)
from claimportal.services.claims_service import (
    ClaimsService,
    generate_claim_number,
    get_claims_service,
)
from claimportal.services.patient_reports_service import (
    PatientReportsService,
    get_patient_reports_service,
)
from claimportal.services.payments_service import PaymentsService, get_payments_service
from claimportal.services.documents_service import DocumentsService, get_documents_service

__all__ = [
    # Policy
    "Action",
    "Decision",
    "Principal",
    "Resource",
    "ResourceFacts",
    "authorize",
    "enforce",
    # State machines
    "InvalidTransitionError",
    "StateMachine",
    "Transition",
    "TransitionResult",
    "appointment_machine",
    "claim_machine",
    "payment_machine",
    # Storage
    "ObjectNotFoundError",
    "StorageService",
    "get_storage",
    # Entity services
    "UsersService",
    "get_users_service",
    "AppointmentsService",
    "get_appointments_service",
    "ClaimsService",
    "generate_claim_number",
    "get_claims_service",
    "PatientReportsService",
    "get_patient_reports_service",
    "PaymentsService",
    "get_payments_service",
    "DocumentsService",
    "get_documents_service",
]
