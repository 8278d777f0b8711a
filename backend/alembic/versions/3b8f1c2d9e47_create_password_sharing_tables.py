"""Create directory, configuration, password and share tables

Revision ID: 3b8f1c2d9e47
Revises:
Create Date: 2026-10-19 09:12:41.503118

"""
from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3b8f1c2d9e47"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    """Create all tables of the share service."""

    # Host directory and configuration
    op.create_table(
        "users",
        sa.Column("uid", sa.String(length=64), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("uid"),
    )
    op.create_index("idx_user_display_name", "users", ["display_name"])
    op.create_index("idx_user_active", "users", ["is_active"])

    op.create_table(
        "groups",
        sa.Column("gid", sa.String(length=64), nullable=False),
        sa.Column("display_name", sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("gid"),
    )

    op.create_table(
        "group_users",
        sa.Column("gid", sa.String(length=64), nullable=False),
        sa.Column("uid", sa.String(length=64), nullable=False),
        sa.ForeignKeyConstraint(["gid"], ["groups.gid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["uid"], ["users.uid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("gid", "uid"),
    )
    op.create_index("idx_group_users_uid", "group_users", ["uid"])

    op.create_table(
        "app_config",
        sa.Column("app_id", sa.String(length=32), nullable=False),
        sa.Column("config_key", sa.String(length=64), nullable=False),
        sa.Column("config_value", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("app_id", "config_key"),
    )

    # Passwords and shares
    op.create_table(
        "passwords",
        sa.Column("uuid", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("revision", sa.String(length=36), nullable=False),
        sa.Column("share_id", sa.String(length=36), nullable=True),
        sa.Column("has_shares", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index(op.f("ix_passwords_user_id"), "passwords", ["user_id"])
    op.create_index("idx_password_share_id", "passwords", ["share_id"])

    op.create_table(
        "password_revisions",
        sa.Column("uuid", sa.String(length=36), nullable=False),
        sa.Column("model", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("label", sa.String(length=255), nullable=False),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("password", sa.Text(), nullable=False),
        sa.Column("url", sa.String(length=2048), nullable=False),
        sa.Column("notes", sa.Text(), nullable=False),
        sa.Column("hash", sa.String(length=128), nullable=False),
        sa.Column("cse_type", sa.String(length=10), nullable=False),
        sa.Column("cse_key", sa.String(length=36), nullable=False),
        sa.Column("sse_type", sa.String(length=10), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["model"], ["passwords.uuid"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index(op.f("ix_password_revisions_model"), "password_revisions", ["model"])

    op.create_table(
        "shares",
        sa.Column("uuid", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("receiver", sa.String(length=64), nullable=False),
        sa.Column("type", sa.String(length=16), nullable=False),
        sa.Column("source_password", sa.String(length=36), nullable=False),
        sa.Column("target_password", sa.String(length=36), nullable=True),
        sa.Column("editable", sa.Boolean(), nullable=False),
        sa.Column("shareable", sa.Boolean(), nullable=False),
        sa.Column("expires", sa.DateTime(timezone=True), nullable=True),
        sa.Column("source_updated", sa.Boolean(), nullable=False),
        sa.Column("target_updated", sa.Boolean(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(
            ["source_password"], ["passwords.uuid"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("uuid"),
    )
    op.create_index(op.f("ix_shares_user_id"), "shares", ["user_id"])
    op.create_index(op.f("ix_shares_receiver"), "shares", ["receiver"])
    op.create_index(
        "idx_share_source_receiver",
        "shares",
        ["source_password", "receiver"],
        unique=True,
    )


def downgrade() -> None:
    """Drop all tables of the share service."""

    op.drop_index("idx_share_source_receiver", table_name="shares")
    op.drop_index(op.f("ix_shares_receiver"), table_name="shares")
    op.drop_index(op.f("ix_shares_user_id"), table_name="shares")
    op.drop_table("shares")

    op.drop_index(op.f("ix_password_revisions_model"), table_name="password_revisions")
    op.drop_table("password_revisions")

    op.drop_index("idx_password_share_id", table_name="passwords")
    op.drop_index(op.f("ix_passwords_user_id"), table_name="passwords")
    op.drop_table("passwords")

    op.drop_table("app_config")

    op.drop_index("idx_group_users_uid", table_name="group_users")
    op.drop_table("group_users")
    op.drop_table("groups")

    op.drop_index("idx_user_active", table_name="users")
    op.drop_index("idx_user_display_name", table_name="users")
    op.drop_table("users")
