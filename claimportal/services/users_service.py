"""
Users Service.

Signup, credential checks and the user directory.
"""

from collections import defaultdict
from datetime import UTC, datetime
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from claimportal.core.enums import UserRole
from claimportal.models.claim import Claim
from claimportal.models.user import User
from claimportal.schemas.common import PageParams
from claimportal.schemas.user import UserClaimSummary, UserCreate, UserWithClaims
from claimportal.services.queries import get_or_404, paginate
from claimportal.utils.auth import get_password_hash, verify_password
from claimportal.utils.errors import ValidationError
from claimportal.utils.logging import get_logger

logger = get_logger(__name__)


class UsersService:
    """Service for portal accounts."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> User | None:
        result = await self.session.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def create_user(self, data: UserCreate) -> User:
        """
        Register a new account.

        Raises:
            ValidationError: When the email is already registered
        """
        if await self.get_by_email(data.email):
            raise ValidationError("User already exists")

        user = User(
            email=data.email.lower(),
            hashed_password=get_password_hash(data.password),
            name=data.name,
            role=data.role,
            phone=data.phone,
            address=data.address,
            is_active=True,
        )
        self.session.add(user)

        try:
            await self.session.commit()
        except IntegrityError as err:
            # Concurrent signup with the same email
            await self.session.rollback()
            raise ValidationError("User already exists") from err

        logger.info(f"User registered: {user.email} ({user.role.value})")
        return user

    async def authenticate(self, email: str, password: str) -> User | None:
        """Return the user when the credentials match, None otherwise."""
        user = await self.get_by_email(email)
        if user is None or not verify_password(password, user.hashed_password):
            return None
        return user

    async def record_login(self, user: User) -> None:
        user.last_login = datetime.now(UTC)
        await self.session.commit()

    async def get_user(self, user_id: UUID) -> User:
        return await get_or_404(self.session, User, user_id, "User not found")

    async def get_doctor(self, doctor_id: UUID) -> User | None:
        """The user with that id when it is an active doctor."""
        user = await self.session.get(User, doctor_id)
        if user is None or user.role != UserRole.DOCTOR or not user.is_active:
            return None
        return user

    async def get_patient(self, patient_id: UUID) -> User | None:
        """The user with that id when it is an active patient."""
        user = await self.session.get(User, patient_id)
        if user is None or user.role != UserRole.PATIENT or not user.is_active:
            return None
        return user

    async def list_users(
        self,
        params: PageParams,
        role: UserRole | None = None,
        search: str | None = None,
        with_claims: bool = False,
    ) -> tuple[list[UserWithClaims], int]:
        """
        List active users.

        Args:
            role: Only users with this role
            search: Case-insensitive substring of name or email
            with_claims: Embed the claims each user filed as patient
        """
        query = select(User).where(User.is_active.is_(True))
        if role is not None:
            query = query.where(User.role == role)
        if search:
            pattern = f"%{search.strip().lower()}%"
            query = query.where(
                or_(func.lower(User.name).like(pattern), func.lower(User.email).like(pattern))
            )

        users, total = await paginate(self.session, query, params, User.name.asc(), User.id)

        claims_by_patient: dict[UUID, list[UserClaimSummary]] = defaultdict(list)
        if with_claims and users:
            result = await self.session.execute(
                select(Claim)
                .where(Claim.patient_id.in_([u.id for u in users]))
                .order_by(Claim.created_at.desc())
            )
            for claim in result.scalars():
                claims_by_patient[claim.patient_id].append(UserClaimSummary.model_validate(claim))

        items = []
        for user in users:
            item = UserWithClaims.model_validate(user)
            item.claims = claims_by_patient.get(user.id, [])
            items.append(item)
        return items, total


def get_users_service(session: AsyncSession) -> UsersService:
    """Get users service instance."""
    return UsersService(session)
