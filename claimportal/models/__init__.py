"""
SQLAlchemy Models for the Claims Portal.

This module exports all database models for the application.
"""

from claimportal.models.base import Base, TimeStampedModel, UUIDModel
from claimportal.models.user import User
from claimportal.models.appointment import Appointment
from claimportal.models.patient_report import PatientReport
from claimportal.models.claim import Claim, ClaimReport
from claimportal.models.document import Document
from claimportal.models.payment import Payment

__all__ = [
    # Base
    "Base",
    "TimeStampedModel",
    "UUIDModel",
    # Identity
    "User",
    # Clinical
    "Appointment",
    "PatientReport",
    "Document",
    # Claims
    "Claim",
    "ClaimReport",
    "Payment",
]
