"""SQLAlchemy implementation of the host platform interfaces.

Users, groups and configuration values are read from the service's own
database. Every call queries fresh; nothing is cached between requests, so
policy changes apply to the next request.
"""

import json
import logging
from typing import Dict, List, Optional

from sqlalchemy import and_, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import AppConfigValue, GroupMembership, User
from .base import (
    CORE_APP_ID,
    POLICY_DEFAULTS,
    SHAREAPI_ENABLED,
    SHAREAPI_EXCLUDE_GROUPS,
    SHAREAPI_EXCLUDE_GROUPS_LIST,
    SHAREAPI_ONLY_GROUP_MEMBERS,
    AppConfig,
    GroupManager,
    HostUser,
    ShareManager,
    UserManager,
)

logger = logging.getLogger(__name__)


def _matches(pattern: str):
    """Build the uid/display name filter for a search pattern.

    The pattern matches literally; ``%`` and ``_`` are not wildcards.
    """
    escaped = pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    like = f"%{escaped}%"
    return or_(
        User.uid.ilike(like, escape="\\"),
        User.display_name.ilike(like, escape="\\"),
    )


class SQLAlchemyAppConfig(AppConfig):
    """Configuration values stored in the ``app_config`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_app_value(self, app_id: str, key: str, default: str = "") -> str:
        stmt = select(AppConfigValue.config_value).where(
            and_(AppConfigValue.app_id == app_id, AppConfigValue.config_key == key)
        )
        result = await self.db.execute(stmt)
        value = result.scalar_one_or_none()

        return default if value is None else value

    async def set_app_value(self, app_id: str, key: str, value: str) -> None:
        entry = await self.db.get(AppConfigValue, (app_id, key))
        if entry is None:
            entry = AppConfigValue(app_id=app_id, config_key=key)
            self.db.add(entry)
        entry.config_value = value
        await self.db.flush()


class SQLAlchemyUserManager(UserManager):
    """User directory backed by the ``users`` table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def search(self, pattern: str, limit: Optional[int] = None) -> List[HostUser]:
        stmt = select(User).where(User.is_active.is_(True)).order_by(User.uid)
        if pattern:
            stmt = stmt.where(_matches(pattern))
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.db.execute(stmt)
        return [HostUser(user.uid, user.display_name) for user in result.scalars()]

    async def get(self, uid: str) -> Optional[HostUser]:
        user = await self.db.get(User, uid)
        if user is None:
            return None
        return HostUser(user.uid, user.display_name)


class SQLAlchemyGroupManager(GroupManager):
    """Group directory backed by the ``group_users`` association table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_group_ids(self, uid: str) -> List[str]:
        stmt = (
            select(GroupMembership.gid)
            .where(GroupMembership.uid == uid)
            .order_by(GroupMembership.gid)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars())

    async def display_names_in_group(
        self, gid: str, pattern: str = "", limit: Optional[int] = None
    ) -> Dict[str, str]:
        stmt = (
            select(User.uid, User.display_name)
            .join(GroupMembership, GroupMembership.uid == User.uid)
            .where(and_(GroupMembership.gid == gid, User.is_active.is_(True)))
            .order_by(User.uid)
        )
        if pattern:
            stmt = stmt.where(_matches(pattern))
        if limit is not None:
            stmt = stmt.limit(limit)

        result = await self.db.execute(stmt)
        return {uid: display_name for uid, display_name in result.all()}


class SQLAlchemyShareManager(ShareManager):
    """Sharing policy derived from core configuration values and group membership."""

    def __init__(self, config: AppConfig, group_manager: GroupManager):
        self.config = config
        self.group_manager = group_manager

    async def share_api_enabled(self) -> bool:
        return await self.config.get_policy_flag(SHAREAPI_ENABLED)

    async def share_with_group_members_only(self) -> bool:
        return await self.config.get_policy_flag(SHAREAPI_ONLY_GROUP_MEMBERS)

    async def sharing_disabled_for_user(self, uid: str) -> bool:
        """Apply the group exclusion policy to a user.

        ``shareapi_exclude_groups`` is "yes" to deny members of the listed
        groups, "allow" to permit only members of the listed groups, and
        anything else to leave sharing open to everyone.
        """
        mode = await self.config.get_app_value(
            CORE_APP_ID, SHAREAPI_EXCLUDE_GROUPS, POLICY_DEFAULTS[SHAREAPI_EXCLUDE_GROUPS]
        )
        if mode not in ("yes", "allow"):
            return False

        raw_list = await self.config.get_app_value(
            CORE_APP_ID,
            SHAREAPI_EXCLUDE_GROUPS_LIST,
            POLICY_DEFAULTS[SHAREAPI_EXCLUDE_GROUPS_LIST],
        )
        try:
            listed = set(json.loads(raw_list))
        except (TypeError, ValueError):
            logger.warning(f"Ignoring malformed {SHAREAPI_EXCLUDE_GROUPS_LIST}: {raw_list!r}")
            listed = set()

        member_of = set(await self.group_manager.get_user_group_ids(uid))
        if mode == "allow":
            return not (member_of & listed)
        return bool(member_of & listed)
