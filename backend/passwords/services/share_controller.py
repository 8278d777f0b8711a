"""Share policy controller.

This module validates and applies share operations on passwords: creating a
share after checking the sharing policy, receiver, expiry, re-share rights and
encryption of the password's current revision; updating and deleting shares
owned by the acting user; and searching for users to share with.

Every read and check of an operation runs before its first write, so a
rejected request never leaves a new revision, share or flag behind. Writes are
flushed but not committed; the caller commits once the operation returns.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from ..config import settings
from ..encryption import CSE_ENCRYPTION_NONE, default_sse_type
from ..exceptions import ConflictError, ForbiddenError, InvalidInputError
from ..host.base import (
    SHAREAPI_ALLOW_RESHARING,
    SHAREAPI_ALLOW_USER_ENUMERATION,
    AppConfig,
    GroupManager,
    ShareManager,
    UserManager,
)
from ..models import SHARE_TYPE_USER, Share
from .password_service import PasswordService
from .revision_service import PasswordRevisionService
from .share_service import ShareService

logger = logging.getLogger(__name__)

SUPPORTED_SHARE_TYPES = [SHARE_TYPE_USER]


class SharePolicyController:
    """Request-scoped share operations for one acting user."""

    def __init__(
        self,
        user_id: str,
        config: AppConfig,
        share_manager: ShareManager,
        user_manager: UserManager,
        group_manager: GroupManager,
        share_service: ShareService,
        password_service: PasswordService,
        revision_service: PasswordRevisionService,
        clock: Callable[[], float] = time.time,
        search_limit: Optional[int] = None,
    ):
        """Initialize the controller.

        Args:
            user_id: uid of the user performing the request
            config: Host configuration store for sharing policy flags
            share_manager: Host sharing policy
            user_manager: Host user directory
            group_manager: Host group directory
            share_service: Share persistence
            password_service: Password persistence
            revision_service: Password revision persistence
            clock: Returns the current unix time, used for expiry checks
            search_limit: Maximum number of partners fetched per search
        """
        self.user_id = user_id
        self.config = config
        self.share_manager = share_manager
        self.user_manager = user_manager
        self.group_manager = group_manager
        self.share_service = share_service
        self.password_service = password_service
        self.revision_service = revision_service
        self.clock = clock
        self.search_limit = search_limit or settings.USER_SEARCH_LIMIT

    async def create(
        self,
        password: str,
        receiver: str,
        share_type: str = SHARE_TYPE_USER,
        expires: Optional[int] = None,
        editable: bool = False,
        shareable: bool = False,
    ) -> str:
        """Share a password with another user.

        Args:
            password: uuid of the password to share
            receiver: uid of the user receiving the share
            share_type: Share type, only "user" is supported
            expires: Unix time the share expires at, 0 or None for never
            editable: Whether the receiver may edit the password
            shareable: Whether the receiver may share the password again

        Returns:
            uuid of the new share

        Raises:
            ForbiddenError: Sharing disabled, invalid receiver or re-share refused
            InvalidInputError: Expiry not in the future or unsupported type
            ConflictError: Already shared with receiver or revision uses CSE
            NotFoundError: Password not owned by the user, originating share or
                revision missing
        """
        await self._check_access_permissions()

        partners = await self.get_share_partners("")
        if receiver not in partners:
            raise ForbiddenError("Invalid receiver uid")

        expires_at = self._validate_expires(expires)
        if share_type not in SUPPORTED_SHARE_TYPES:
            raise InvalidInputError("Invalid share type")

        model = await self.password_service.find_by_uuid(password, self.user_id)
        if model.share_id:
            source_share = await self.share_service.find_received(
                model.share_id, self.user_id
            )
            resharing = await self.config.get_policy_flag(SHAREAPI_ALLOW_RESHARING)
            if not source_share.shareable or not resharing:
                raise ForbiddenError("Sharing not allowed")
            # A re-share can never grant more than the share it came from
            if not source_share.editable:
                editable = False

        existing = await self.share_service.find_by_source_password_and_receiver(
            model.uuid, receiver
        )
        if existing is not None:
            raise ConflictError("Password already shared with user")

        revision = await self.revision_service.find_by_uuid(model.revision)
        if revision.cse_type != CSE_ENCRYPTION_NONE:
            raise ConflictError("CSE type does not support sharing")

        # All checks passed, apply writes
        if revision.sse_type != default_sse_type():
            old_sse_type = revision.sse_type
            revision = self.revision_service.clone(
                revision, {"sse_type": default_sse_type()}
            )
            await self.revision_service.save(revision)
            await self.password_service.set_revision(model, revision)
            logger.info(
                f"Upgraded password {model.uuid} from {old_sse_type} to "
                f"{revision.sse_type} in revision {revision.uuid}"
            )

        share = self.share_service.create(
            model.uuid, receiver, share_type, editable, expires_at, shareable, self.user_id
        )
        await self.share_service.save(share)

        if not model.has_shares:
            model.has_shares = True
            await self.password_service.save(model)

        logger.info(
            f"User {self.user_id} shared password {model.uuid} with {receiver} "
            f"as {share.uuid} (editable={editable}, shareable={shareable})"
        )
        return share.uuid

    async def update(
        self,
        share_id: str,
        expires: Optional[int] = None,
        editable: bool = False,
        shareable: bool = True,
    ) -> str:
        """Change expiry and permissions of a share owned by the acting user.

        Returns:
            uuid of the share

        Raises:
            ForbiddenError: Sharing disabled or the share belongs to someone else
            InvalidInputError: Expiry not in the future
            NotFoundError: No such share
        """
        await self._check_access_permissions()
        expires_at = self._validate_expires(expires)

        share = await self._find_owned_share(share_id)
        share.expires = expires_at
        share.editable = editable
        share.shareable = shareable
        share.source_updated = True
        await self.share_service.save(share)

        logger.info(f"User {self.user_id} updated share {share.uuid}")
        return share.uuid

    async def delete(self, share_id: str) -> str:
        """Delete a share owned by the acting user.

        The source password keeps its ``has_shares`` flag unless
        ``CLEAR_HAS_SHARES_ON_DELETE`` is enabled and no share is left.
        """
        await self._check_access_permissions()

        share = await self._find_owned_share(share_id)
        share_uuid = share.uuid
        source_uuid = share.source_password
        await self.share_service.delete(share)

        if settings.CLEAR_HAS_SHARES_ON_DELETE:
            remaining = await self.share_service.find_by_source_password(source_uuid)
            if not remaining:
                model = await self.password_service.find_by_uuid(source_uuid, self.user_id)
                if model.has_shares:
                    model.has_shares = False
                    await self.password_service.save(model)

        logger.info(f"User {self.user_id} deleted share {share_uuid}")
        return share_uuid

    async def info(self) -> Dict[str, Any]:
        """Describe the sharing capabilities available to the acting user."""
        await self._check_access_permissions()

        enabled = await self.share_manager.share_api_enabled()
        if enabled:
            enabled = not await self.share_manager.sharing_disabled_for_user(self.user_id)

        return {
            "enabled": enabled,
            "resharing": await self.config.get_policy_flag(SHAREAPI_ALLOW_RESHARING),
            "types": list(SUPPORTED_SHARE_TYPES),
        }

    async def partners(self, search: str = "") -> Dict[str, str]:
        """Search for users to share with, if the host allows user enumeration."""
        await self._check_access_permissions()

        if not await self.config.get_policy_flag(SHAREAPI_ALLOW_USER_ENUMERATION):
            return {}
        return await self.get_share_partners(search)

    async def list_shares(self) -> List[Share]:
        """Return shares the acting user owns or receives."""
        await self._check_access_permissions()
        return await self.share_service.find_by_user_or_receiver(self.user_id)

    async def show(self, share_id: str) -> Share:
        """Return one share the acting user owns or receives.

        Raises:
            ForbiddenError: The acting user is neither owner nor receiver
            NotFoundError: No such share
        """
        await self._check_access_permissions()

        share = await self.share_service.find_by_uuid(share_id)
        if self.user_id not in (share.user_id, share.receiver):
            raise ForbiddenError("Access denied")
        return share

    async def get_share_partners(self, pattern: str) -> Dict[str, str]:
        """Map uid to display name for users the acting user may share with.

        When the host restricts sharing to group members, the user's groups are
        searched one by one and merged; later groups overwrite earlier entries
        and scanning stops once the limit is reached after a group. Otherwise
        the whole directory is searched. The acting user is never included.
        """
        partners: Dict[str, str] = {}
        if await self.share_manager.share_with_group_members_only():
            for gid in await self.group_manager.get_user_group_ids(self.user_id):
                users = await self.group_manager.display_names_in_group(
                    gid, pattern, self.search_limit
                )
                for uid, name in users.items():
                    if uid == self.user_id:
                        continue
                    partners[uid] = name
                if len(partners) >= self.search_limit:
                    break
        else:
            for user in await self.user_manager.search(pattern, self.search_limit):
                if user.uid == self.user_id:
                    continue
                partners[user.uid] = user.display_name

        return partners

    async def share_to_dict(self, share: Share) -> Dict[str, Any]:
        """Serialize a share as seen by the acting user."""
        is_owner = share.user_id == self.user_id
        owner = await self.user_manager.get(share.user_id)
        receiver = await self.user_manager.get(share.receiver)

        return {
            "id": share.uuid,
            "created": _timestamp(share.created_at),
            "updated": _timestamp(share.updated_at),
            "expires": _timestamp(share.expires),
            "editable": share.editable,
            "shareable": share.shareable,
            "updatePending": share.source_updated or share.target_updated,
            "password": share.source_password if is_owner else share.target_password,
            "owner": {
                "id": share.user_id,
                "name": owner.display_name if owner else share.user_id,
            },
            "receiver": {
                "id": share.receiver,
                "name": receiver.display_name if receiver else share.receiver,
            },
        }

    async def _check_access_permissions(self) -> None:
        if not await self.share_manager.share_api_enabled():
            raise ForbiddenError("Sharing disabled")
        if await self.share_manager.sharing_disabled_for_user(self.user_id):
            raise ForbiddenError("Sharing disabled for user")

    def _validate_expires(self, expires: Optional[int]) -> Optional[datetime]:
        if not expires:
            return None
        if expires <= self.clock():
            raise InvalidInputError("Invalid expiration date")
        try:
            return datetime.fromtimestamp(expires, tz=timezone.utc)
        except (OverflowError, ValueError, OSError):
            raise InvalidInputError("Invalid expiration date")

    async def _find_owned_share(self, share_id: str) -> Share:
        share = await self.share_service.find_by_uuid(share_id)
        if share.user_id != self.user_id:
            raise ForbiddenError("Access denied")
        return share


def _timestamp(value: Optional[datetime]) -> Optional[int]:
    """Convert a stored datetime to unix seconds; naive values are UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())
