"""User profile routes."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from signdesk.api.dependencies.auth import CurrentUser
from signdesk.api.dependencies.database import get_db
from signdesk.models.user import User
from signdesk.schemas.auth import UserResponse
from signdesk.schemas.users import UserProfileUpdate
from signdesk.users.service import UserService

router = APIRouter()


async def get_user_service(
    db: Annotated[AsyncSession, Depends(get_db)],
) -> UserService:
    return UserService(db)


@router.get("/me", response_model=UserResponse)
async def get_profile(current_user: CurrentUser) -> User:
    """Get the caller's profile."""
    return current_user


@router.put("/me", response_model=UserResponse)
async def update_profile(
    data: UserProfileUpdate,
    current_user: CurrentUser,
    user_service: Annotated[UserService, Depends(get_user_service)],
) -> User:
    """Update the caller's display name."""
    return await user_service.update_profile(current_user, data)
