"""Persistence service for shares."""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import ConflictError, NotFoundError
from ..models import Share, generate_uuid


class ShareService:
    """Service for querying and storing share records."""

    def __init__(self, db: AsyncSession):
        """Initialize the share service.

        Args:
            db: Database session
        """
        self.db = db

    async def find_by_uuid(self, uuid: str) -> Share:
        """Load a share by its uuid.

        Raises:
            NotFoundError: If no share has this uuid
        """
        share = await self.db.get(Share, uuid)
        if share is None:
            raise NotFoundError("Object not found")
        return share

    async def find_received(self, uuid: str, receiver: str) -> Share:
        """Load a share by its uuid, only if it was shared with ``receiver``.

        Raises:
            NotFoundError: If no such share was received by this user
        """
        stmt = select(Share).where(and_(Share.uuid == uuid, Share.receiver == receiver))
        result = await self.db.execute(stmt)
        share = result.scalar_one_or_none()
        if share is None:
            raise NotFoundError("Object not found")
        return share

    async def find_by_source_password_and_receiver(
        self, password_uuid: str, receiver: str
    ) -> Optional[Share]:
        """Return the share of a password with a receiver, if there is one."""
        stmt = select(Share).where(
            and_(Share.source_password == password_uuid, Share.receiver == receiver)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def find_by_source_password(self, password_uuid: str) -> List[Share]:
        """Return all shares created from a password."""
        stmt = select(Share).where(Share.source_password == password_uuid)
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def find_by_user_or_receiver(self, uid: str) -> List[Share]:
        """Return the shares a user owns or receives, oldest first."""
        stmt = (
            select(Share)
            .where(or_(Share.user_id == uid, Share.receiver == uid))
            .order_by(Share.created_at, Share.uuid)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    def create(
        self,
        password_uuid: str,
        receiver: str,
        share_type: str,
        editable: bool,
        expires: Optional[datetime],
        shareable: bool,
        user_id: str,
    ) -> Share:
        """Build a new share owned by ``user_id``. It is persisted by :meth:`save`."""
        return Share(
            uuid=generate_uuid(),
            user_id=user_id,
            receiver=receiver,
            type=share_type,
            source_password=password_uuid,
            target_password=None,
            editable=editable,
            shareable=shareable,
            expires=expires,
            source_updated=True,
            target_updated=False,
        )

    async def save(self, share: Share) -> Share:
        """Stage the share and flush it to the database without committing.

        Raises:
            ConflictError: If the password is already shared with the receiver
        """
        self.db.add(share)
        try:
            await self.db.flush()
        except IntegrityError:
            # A concurrent request created the same share first
            raise ConflictError("Password already shared with user")
        return share

    async def delete(self, share: Share) -> None:
        """Remove the share."""
        await self.db.delete(share)
        await self.db.flush()
