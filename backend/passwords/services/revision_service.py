"""Persistence service for password revisions."""

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..exceptions import NotFoundError
from ..models import PasswordRevision, generate_uuid

# Content columns carried over when a revision is cloned
CLONED_FIELDS = (
    "model",
    "user_id",
    "label",
    "username",
    "password",
    "url",
    "notes",
    "hash",
    "cse_type",
    "cse_key",
    "sse_type",
)


class PasswordRevisionService:
    """Service for loading, cloning and saving password revisions."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_uuid(self, uuid: str) -> PasswordRevision:
        """Load a revision by its uuid.

        Raises:
            NotFoundError: If no revision has this uuid
        """
        revision = await self.db.get(PasswordRevision, uuid)
        if revision is None:
            raise NotFoundError("Object not found")
        return revision

    def clone(
        self, revision: PasswordRevision, overrides: Optional[Dict[str, Any]] = None
    ) -> PasswordRevision:
        """Copy a revision under a new uuid, applying ``overrides`` to the copy.

        The copy is not persisted; pass it to :meth:`save`.
        """
        values = {field: getattr(revision, field) for field in CLONED_FIELDS}
        values.update(overrides or {})

        unknown = set(values) - set(CLONED_FIELDS)
        if unknown:
            raise ValueError(f"Cannot override revision fields: {', '.join(sorted(unknown))}")

        return PasswordRevision(uuid=generate_uuid(), **values)

    async def save(self, revision: PasswordRevision) -> PasswordRevision:
        """Stage the revision and flush it to the database without committing."""
        self.db.add(revision)
        await self.db.flush()
        return revision
