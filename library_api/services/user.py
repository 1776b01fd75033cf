"""User service - admin management of user accounts."""

import builtins
import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.core.exceptions import ForbiddenError
from library_api.models.user import User, UserRole
from library_api.schemas.user import UserCreate, UserUpdate
from library_api.services.auth import AuthService, Principal, hash_password

logger = logging.getLogger(__name__)


class UserService:
    """Service for managing user accounts."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list(
        self, page: int = 1, page_size: int = 10, role: UserRole | None = None
    ) -> tuple[builtins.list[User], int]:
        """List users, newest first.

        Returns a tuple of (users, total_count).
        """
        count_query = select(func.count(User.id))
        query = select(User)
        if role is not None:
            count_query = count_query.where(User.role == role)
            query = query.where(User.role == role)

        total = (await self.db.execute(count_query)).scalar() or 0

        offset = (page - 1) * page_size
        result = await self.db.execute(
            query.order_by(User.created_at.desc(), User.id.desc()).offset(offset).limit(page_size)
        )
        return list(result.scalars().all()), total

    async def get(self, user_id: UUID) -> User | None:
        """Get a user by ID."""
        result = await self.db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    async def create(self, data: UserCreate) -> User:
        """Create a user with any role."""
        await AuthService(self.db).ensure_unique(username=data.username, email=data.email)

        user = User(
            username=data.username,
            email=data.email.lower(),
            password_hash=hash_password(data.password),
            role=data.role,
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)

        logger.info(f"Created user {user.username} with role {user.role.value}")
        return user

    async def update(self, user_id: UUID, data: UserUpdate, actor: Principal) -> User | None:
        """Update a user.

        Only a super_admin may change its own role.
        """
        user = await self.get(user_id)
        if not user:
            return None

        update_data = data.model_dump(exclude_unset=True, exclude_none=True)

        if (
            "role" in update_data
            and user.id == actor.id
            and update_data["role"] != user.role
            and actor.role != UserRole.SUPER_ADMIN
        ):
            raise ForbiddenError("Cannot change your own role")

        await AuthService(self.db).ensure_unique(
            username=update_data.get("username"),
            email=update_data.get("email"),
            exclude_id=user.id,
        )

        password = update_data.pop("password", None)
        if password is not None:
            user.password_hash = hash_password(password)
        if "email" in update_data:
            update_data["email"] = update_data["email"].lower()

        for field, value in update_data.items():
            setattr(user, field, value)

        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def delete(self, user_id: UUID, actor: Principal) -> bool:
        """Delete a user. Blacklist entries of the user are kept."""
        if user_id == actor.id:
            raise ForbiddenError("Cannot delete your own account")

        user = await self.get(user_id)
        if not user:
            return False

        await self.db.delete(user)
        await self.db.flush()
        logger.info(f"Deleted user {user.username}")
        return True
