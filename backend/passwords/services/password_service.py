"""Persistence service for password objects."""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError
from ..models import Password, PasswordRevision


class PasswordService:
    """Service for loading and saving passwords."""

    def __init__(self, db: AsyncSession):
        """Initialize the password service.

        Args:
            db: Database session
        """
        self.db = db

    async def find_by_uuid(self, uuid: str, user_id: Optional[str] = None) -> Password:
        """Load a password by its uuid.

        Args:
            uuid: uuid of the password
            user_id: When given, only a password owned by this user is found

        Raises:
            NotFoundError: If no matching password exists
        """
        stmt = select(Password).where(Password.uuid == uuid)
        if user_id is not None:
            stmt = stmt.where(Password.user_id == user_id)

        result = await self.db.execute(stmt)
        password = result.scalar_one_or_none()
        if password is None:
            raise NotFoundError("Object not found")
        return password

    async def save(self, password: Password) -> Password:
        """Stage the password and flush it to the database without committing."""
        self.db.add(password)
        await self.db.flush()
        return password

    async def set_revision(self, password: Password, revision: PasswordRevision) -> Password:
        """Point the password at a new current revision and save it."""
        password.revision = revision.uuid
        return await self.save(password)
