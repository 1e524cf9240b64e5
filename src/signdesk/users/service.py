"""Profile and password updates.

Each operation writes a fixed set of columns. Subscription and quota
fields are owned by ``QuotaLedger`` and never touched here.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from signdesk.core.exceptions import InvalidCredentialsError, ValidationError
from signdesk.core.logging import LoggerMixin
from signdesk.core.security import get_password_hash, verify_password
from signdesk.models.user import User
from signdesk.schemas.users import UserProfileUpdate


class UserService(LoggerMixin):
    """Service for a user's own account details."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def update_profile(self, user: User, data: UserProfileUpdate) -> User:
        """Update the user's display name."""
        user.full_name = data.full_name.strip()
        await self.db.flush()
        await self.db.refresh(user)

        self.logger.info("user_profile_updated", user_id=str(user.id))

        return user

    async def change_password(
        self,
        user: User,
        current_password: str,
        new_password: str,
    ) -> None:
        """Replace the user's password.

        Raises:
            InvalidCredentialsError: If ``current_password`` is wrong
            ValidationError: If the new password equals the current one
        """
        if not verify_password(current_password, user.hashed_password):
            raise InvalidCredentialsError("Current password is incorrect")
        if current_password == new_password:
            raise ValidationError(
                "New password must differ from the current password",
                field="new_password",
            )

        user.hashed_password = get_password_hash(new_password)
        await self.db.flush()

        self.logger.info("user_password_changed", user_id=str(user.id))
