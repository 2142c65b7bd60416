"""
User Model
SQLAlchemy model for portal accounts
Source: https://docs.sqlalchemy.org/en/20/orm/quickstart.html
"""

from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from claimportal.core.enums import UserRole
from claimportal.models.base import Base, TimeStampedModel, UUIDModel


class User(Base, UUIDModel, TimeStampedModel):
    """
    Portal account for every role.

    The role is chosen at signup and there is no operation that changes it.
    Passwords are stored as bcrypt hashes only.
    """

    __tablename__ = "users"

    # Authentication
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), nullable=False, index=True)

    # Profile
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(50))
    address: Mapped[str | None] = mapped_column(Text)

    # Account Status
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<User {self.email} ({self.role.value})>"
