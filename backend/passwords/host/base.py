"""Host platform interfaces consumed by the share workflow.

The password manager runs inside a larger platform that owns the user and
group directories, the global sharing policy and a key/value configuration
store. These abstract classes define the contract the share controller
relies on, keeping it independent of how the platform stores that data.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

CORE_APP_ID = "core"

# Policy keys in the "core" configuration namespace, with their defaults
SHAREAPI_ENABLED = "shareapi_enabled"
SHAREAPI_ALLOW_RESHARING = "shareapi_allow_resharing"
SHAREAPI_ALLOW_USER_ENUMERATION = "shareapi_allow_share_dialog_user_enumeration"
SHAREAPI_ONLY_GROUP_MEMBERS = "shareapi_only_share_with_group_members"
SHAREAPI_EXCLUDE_GROUPS = "shareapi_exclude_groups"
SHAREAPI_EXCLUDE_GROUPS_LIST = "shareapi_exclude_groups_list"

POLICY_DEFAULTS = {
    SHAREAPI_ENABLED: "yes",
    SHAREAPI_ALLOW_RESHARING: "yes",
    SHAREAPI_ALLOW_USER_ENUMERATION: "no",
    SHAREAPI_ONLY_GROUP_MEMBERS: "no",
    SHAREAPI_EXCLUDE_GROUPS: "no",
    SHAREAPI_EXCLUDE_GROUPS_LIST: "[]",
}


@dataclass
class HostUser:
    """A directory entry: user id and the name shown in share dialogs."""

    uid: str
    display_name: str


class AppConfig(ABC):
    """Key/value configuration store of the host platform."""

    @abstractmethod
    async def get_app_value(self, app_id: str, key: str, default: str = "") -> str:
        """Return the stored value, or ``default`` when the key is unset."""
        pass

    @abstractmethod
    async def set_app_value(self, app_id: str, key: str, value: str) -> None:
        """Store a value, replacing any previous one."""
        pass

    async def get_policy_flag(self, key: str) -> bool:
        """Read a yes/no sharing policy flag from the core namespace."""
        value = await self.get_app_value(CORE_APP_ID, key, POLICY_DEFAULTS[key])
        return value == "yes"


class ShareManager(ABC):
    """Global sharing policy of the host platform."""

    @abstractmethod
    async def share_api_enabled(self) -> bool:
        pass

    @abstractmethod
    async def sharing_disabled_for_user(self, uid: str) -> bool:
        pass

    @abstractmethod
    async def share_with_group_members_only(self) -> bool:
        pass


class UserManager(ABC):
    """User directory of the host platform."""

    @abstractmethod
    async def search(self, pattern: str, limit: Optional[int] = None) -> List[HostUser]:
        """Find active users whose uid or display name contains ``pattern``.

        Args:
            pattern: Case-insensitive substring; empty matches everyone
            limit: Maximum number of users to return

        Returns:
            Matching users ordered by uid
        """
        pass

    @abstractmethod
    async def get(self, uid: str) -> Optional[HostUser]:
        pass


class GroupManager(ABC):
    """Group directory of the host platform."""

    @abstractmethod
    async def get_user_group_ids(self, uid: str) -> List[str]:
        pass

    @abstractmethod
    async def display_names_in_group(
        self, gid: str, pattern: str = "", limit: Optional[int] = None
    ) -> Dict[str, str]:
        """Map uid to display name for active group members matching ``pattern``."""
        pass
