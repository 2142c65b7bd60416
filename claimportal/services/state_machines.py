"""
Status State Machines.

One explicit transition table per entity, shared by every handler that
changes a status:

Appointment:
    PENDING -> ACCEPTED | REJECTED | CANCELLED
    ACCEPTED -> CONSULTED
    ACCEPTED -> COMPLETED      (automatic, report created)
    CONSULTED -> COMPLETED     (automatic, report created)

Claim:
    DRAFT -> SUBMITTED         (stamps submitted_at)
    SUBMITTED -> UNDER_REVIEW
    UNDER_REVIEW -> APPROVED   (stamps approved_at)
    UNDER_REVIEW -> REJECTED   (stamps rejected_at)
    APPROVED -> PAID           (stamps paid_at)

Payment:
    PENDING -> PROCESSING | COMPLETED | FAILED | CANCELLED
    PROCESSING -> COMPLETED | FAILED | CANCELLED
    COMPLETED -> REFUNDED

Edges into COMPLETED stamp payment_date.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional

from claimportal.core.enums import AppointmentStatus, ClaimStatus, PaymentStatus
from claimportal.utils.errors import ValidationError
from claimportal.utils.logging import get_logger

logger = get_logger(__name__)


class InvalidTransitionError(ValidationError):
    """Raised when a requested status change is not an edge of the machine."""


@dataclass(frozen=True)
class Transition:
    """A valid state transition."""

    source: Enum
    target: Enum
    stamp: Optional[str] = None  # Timestamp attribute set when the edge fires
    automatic: bool = False  # Fired by the system only, never by a request


@dataclass
class TransitionResult:
    """Result of a transition attempt."""

    success: bool
    source: Enum
    target: Enum
    error: Optional[str] = None
    transition: Optional[Transition] = None


# =============================================================================
# Transition Tables
# =============================================================================

AS = AppointmentStatus
CS = ClaimStatus
PS = PaymentStatus

APPOINTMENT_TRANSITIONS: list[Transition] = [
    # From PENDING
    Transition(AS.PENDING, AS.ACCEPTED),
    Transition(AS.PENDING, AS.REJECTED),
    Transition(AS.PENDING, AS.CANCELLED),
    # From ACCEPTED
    Transition(AS.ACCEPTED, AS.CONSULTED),
    Transition(AS.ACCEPTED, AS.COMPLETED, automatic=True),
    # From CONSULTED
    Transition(AS.CONSULTED, AS.COMPLETED, automatic=True),
]

CLAIM_TRANSITIONS: list[Transition] = [
    Transition(CS.DRAFT, CS.SUBMITTED, stamp="submitted_at"),
    Transition(CS.SUBMITTED, CS.UNDER_REVIEW),
    Transition(CS.UNDER_REVIEW, CS.APPROVED, stamp="approved_at"),
    Transition(CS.UNDER_REVIEW, CS.REJECTED, stamp="rejected_at"),
    Transition(CS.APPROVED, CS.PAID, stamp="paid_at"),
]

PAYMENT_TRANSITIONS: list[Transition] = [
    # From PENDING
    Transition(PS.PENDING, PS.PROCESSING),
    Transition(PS.PENDING, PS.COMPLETED, stamp="payment_date"),
    Transition(PS.PENDING, PS.FAILED),
    Transition(PS.PENDING, PS.CANCELLED),
    # From PROCESSING
    Transition(PS.PROCESSING, PS.COMPLETED, stamp="payment_date"),
    Transition(PS.PROCESSING, PS.FAILED),
    Transition(PS.PROCESSING, PS.CANCELLED),
    # From COMPLETED
    Transition(PS.COMPLETED, PS.REFUNDED),
]

# Error messages for targets with a dedicated explanation
CLAIM_MESSAGES: dict[Enum, str] = {
    CS.PAID: "Only approved claims can be marked as paid",
}


# =============================================================================
# State Machine
# =============================================================================


@dataclass
class StateMachine:
    """
    Table-driven state machine for one entity's `status` attribute.

    Example:
        >>> claim_machine.apply(claim, ClaimStatus.SUBMITTED)
        >>> claim.status, claim.submitted_at is not None
        (<ClaimStatus.SUBMITTED: 'SUBMITTED'>, True)
    """

    name: str
    transitions: list[Transition]
    messages: dict[Enum, str] = field(default_factory=dict)
    _edges: dict[tuple[Enum, Enum], Transition] = field(init=False, repr=False)
    _from_status_map: dict[Enum, list[Transition]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._edges = {}
        self._from_status_map = {}
        for transition in self.transitions:
            self._edges[(transition.source, transition.target)] = transition
            self._from_status_map.setdefault(transition.source, []).append(transition)

    def get_valid_transitions(self, status: Enum) -> list[Transition]:
        """All edges leaving a status."""
        return self._from_status_map.get(status, [])

    def next_statuses(self, status: Enum, include_automatic: bool = False) -> list[Enum]:
        """Statuses reachable in one step."""
        return [
            t.target
            for t in self.get_valid_transitions(status)
            if include_automatic or not t.automatic
        ]

    def can_transition(self, source: Enum, target: Enum, automatic: bool = False) -> bool:
        transition = self._edges.get((source, target))
        if transition is None:
            return False
        return automatic or not transition.automatic

    def validate(self, source: Enum, target: Enum, automatic: bool = False) -> TransitionResult:
        """
        Check a requested edge without touching any entity.

        Args:
            source: Current status
            target: Requested status
            automatic: True when the system fires the edge as a side effect

        Returns:
            TransitionResult with an error message on failure
        """
        transition = self._edges.get((source, target))

        if transition is None or (transition.automatic and not automatic):
            error = self.messages.get(target) or (
                f"Invalid {self.name} status transition from {source.value} to {target.value}"
            )
            return TransitionResult(success=False, source=source, target=target, error=error)

        return TransitionResult(
            success=True, source=source, target=target, transition=transition
        )

    def apply(
        self,
        entity: Any,
        target: Enum,
        automatic: bool = False,
        now: Optional[datetime] = None,
    ) -> TransitionResult:
        """
        Validate and perform a transition on `entity`.

        Sets `entity.status` and, when the edge defines one, its timestamp.

        Raises:
            InvalidTransitionError: When the edge is not allowed
        """
        result = self.validate(entity.status, target, automatic=automatic)
        if not result.success:
            logger.warning(
                f"Rejected {self.name} transition for {getattr(entity, 'id', '?')}: {result.error}"
            )
            raise InvalidTransitionError(result.error or "Invalid status transition")

        entity.status = target
        if result.transition is not None and result.transition.stamp:
            setattr(entity, result.transition.stamp, now or datetime.now(UTC))

        logger.info(
            f"{self.name.capitalize()} {getattr(entity, 'id', '?')} transitioned: "
            f"{result.source.value} -> {target.value}"
        )
        return result


# =============================================================================
# Machine Instances
# =============================================================================

appointment_machine = StateMachine("appointment", APPOINTMENT_TRANSITIONS)
claim_machine = StateMachine("claim", CLAIM_TRANSITIONS, CLAIM_MESSAGES)
payment_machine = StateMachine("payment", PAYMENT_TRANSITIONS)
