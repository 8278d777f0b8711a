"""SQLAlchemy database models for the Passwords share API."""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, func, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .database import Base
from .encryption import CSE_ENCRYPTION_NONE, default_sse_type

SHARE_TYPE_USER = "user"


def generate_uuid() -> str:
    """Return a new random UUID in its 36 character string form."""
    return str(uuid.uuid4())


class TimestampMixin:
    """Mixin to add created_at and updated_at timestamps to models."""

    # Fetch server-generated timestamps on flush; async sessions cannot lazy load
    __mapper_args__ = {"eager_defaults": True}

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# Host directory and configuration


class User(Base, TimestampMixin):
    """A user of the host platform, identified by its login uid."""

    __tablename__ = "users"

    uid: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[Optional[str]] = mapped_column(String(320), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    memberships: Mapped[List["GroupMembership"]] = relationship(
        "GroupMembership", back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("idx_user_display_name", "display_name"),
        Index("idx_user_active", "is_active"),
    )


class Group(Base, TimestampMixin):
    """A user group of the host platform."""

    __tablename__ = "groups"

    gid: Mapped[str] = mapped_column(String(64), primary_key=True)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)

    members: Mapped[List["GroupMembership"]] = relationship(
        "GroupMembership", back_populates="group", cascade="all, delete-orphan"
    )


class GroupMembership(Base):
    """Association between a group and one of its users."""

    __tablename__ = "group_users"

    gid: Mapped[str] = mapped_column(
        String(64), ForeignKey("groups.gid", ondelete="CASCADE"), primary_key=True
    )
    uid: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.uid", ondelete="CASCADE"), primary_key=True
    )

    group: Mapped["Group"] = relationship("Group", back_populates="members")
    user: Mapped["User"] = relationship("User", back_populates="memberships")

    __table_args__ = (Index("idx_group_users_uid", "uid"),)


class AppConfigValue(Base):
    """Key/value application configuration, e.g. ``core/shareapi_allow_resharing``."""

    __tablename__ = "app_config"

    app_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    config_key: Mapped[str] = mapped_column(String(64), primary_key=True)
    config_value: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


# Password objects


class Password(Base, TimestampMixin):
    """A stored password entry. Its content lives in the current revision."""

    __tablename__ = "passwords"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    revision: Mapped[str] = mapped_column(String(36), nullable=False)
    # Set when this password is the receiver's copy of a share
    share_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    has_shares: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    __table_args__ = (Index("idx_password_share_id", "share_id"),)


class PasswordRevision(Base, TimestampMixin):
    """A versioned content snapshot of a password."""

    __tablename__ = "password_revisions"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    model: Mapped[str] = mapped_column(
        String(36), ForeignKey("passwords.uuid", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    label: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    username: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    password: Mapped[str] = mapped_column(Text, default="", nullable=False)
    url: Mapped[str] = mapped_column(String(2048), default="", nullable=False)
    notes: Mapped[str] = mapped_column(Text, default="", nullable=False)
    hash: Mapped[str] = mapped_column(String(128), default="", nullable=False)
    cse_type: Mapped[str] = mapped_column(
        String(10), default=CSE_ENCRYPTION_NONE, nullable=False
    )
    cse_key: Mapped[str] = mapped_column(String(36), default="", nullable=False)
    sse_type: Mapped[str] = mapped_column(
        String(10), default=default_sse_type, nullable=False
    )


class Share(Base, TimestampMixin):
    """A grant of access to a password from its owner to a receiver."""

    __tablename__ = "shares"

    uuid: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    receiver: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    type: Mapped[str] = mapped_column(String(16), default=SHARE_TYPE_USER, nullable=False)
    source_password: Mapped[str] = mapped_column(
        String(36), ForeignKey("passwords.uuid", ondelete="CASCADE"), nullable=False
    )
    target_password: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    editable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    shareable: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    expires: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    source_updated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    target_updated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # One share per source password and receiver
    __table_args__ = (
        Index("idx_share_source_receiver", "source_password", "receiver", unique=True),
    )
