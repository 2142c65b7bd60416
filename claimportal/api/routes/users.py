"""
User Routes
Signup, directory listing and the current profile
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from claimportal.api.deps import get_current_user
from claimportal.core.enums import UserRole
from claimportal.db.connection import get_session
from claimportal.models.user import User
from claimportal.schemas.common import PageParams, Pagination, page_params
from claimportal.schemas.user import UserCreate, UserListResponse, UserResponse
from claimportal.services.users_service import get_users_service

router = APIRouter(prefix="/users", tags=["Users"])


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_data: UserCreate,
    session: AsyncSession = Depends(get_session),
) -> User:
    """Register a new account. No authentication required."""
    return await get_users_service(session).create_user(user_data)


@router.get("", response_model=UserListResponse)
async def list_users(
    role: UserRole | None = Query(None, description="Only users with this role"),
    search: str | None = Query(None, description="Name or email substring"),
    with_claims: bool = Query(False, description="Embed claims filed as patient"),
    params: PageParams = Depends(page_params),
    current_user: User = Depends(get_current_user),  # noqa: ARG001
    session: AsyncSession = Depends(get_session),
) -> UserListResponse:
    """Directory of active users, e.g. the doctor picker when booking."""
    users, total = await get_users_service(session).list_users(
        params, role=role, search=search, with_claims=with_claims
    )
    return UserListResponse(users=users, pagination=Pagination.build(params, total))


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: User = Depends(get_current_user),
) -> User:
    """Get current user information."""
    return current_user
