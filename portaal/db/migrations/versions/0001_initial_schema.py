"""initial schema: dealers, files, messages, sessões, preferências e logs

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _id():
    return sa.Column("id", sa.String(), primary_key=True)


def _ts(name: str, nullable: bool = True):
    return sa.Column(name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=nullable)


def _user_fk(unique: bool = False, nullable: bool = False):
    return sa.Column(
        "user_id",
        sa.String(),
        sa.ForeignKey("dealers.id", ondelete="CASCADE"),
        nullable=nullable,
        unique=unique,
    )


def upgrade() -> None:
    op.create_table(
        "dealers",
        _id(),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("phone", sa.String()),
        sa.Column("company", sa.String()),
        sa.Column("role", sa.String(), nullable=False, server_default="dealer"),
        sa.Column("profile_picture", sa.String()),
        sa.Column("notes", sa.Text()),
        sa.Column("status", sa.String(), nullable=False, server_default="active"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _ts("created_at"),
        _ts("registration_date"),
        sa.Column("last_login", sa.DateTime(timezone=True)),
        sa.Column("last_activity", sa.DateTime(timezone=True)),
        sa.CheckConstraint("role IN ('admin', 'dealer', 'manager')", name="ck_dealers_role"),
        sa.CheckConstraint("status IN ('active', 'inactive')", name="ck_dealers_status"),
    )
    op.create_index("ix_dealers_email", "dealers", ["email"], unique=True)
    op.create_index("ix_dealers_role", "dealers", ["role"])
    op.create_index("ix_dealers_status", "dealers", ["status"])
    op.create_index("ix_dealers_is_active", "dealers", ["is_active"])
    op.create_index("ix_dealers_last_activity", "dealers", ["last_activity"])

    op.create_table(
        "files",
        _id(),
        _user_fk(nullable=True),
        sa.Column("filename", sa.String(), nullable=False),
        sa.Column("folder", sa.String(), nullable=False),
        sa.Column("status", sa.String(), nullable=False, server_default="pending"),
        sa.Column("url", sa.String(), nullable=False),
        _ts("created_at"),
        sa.CheckConstraint("status IN ('pending', 'approved', 'rejected')", name="ck_files_status"),
    )
    op.create_index("ix_files_user_id", "files", ["user_id"])
    op.create_index("ix_files_status", "files", ["status"])

    op.create_table(
        "messages",
        _id(),
        sa.Column("sender_id", sa.String(), sa.ForeignKey("dealers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("receiver_id", sa.String(), sa.ForeignKey("dealers.id", ondelete="CASCADE"), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("read", sa.Boolean(), nullable=False, server_default=sa.false()),
        _ts("timestamp"),
    )
    op.create_index("ix_messages_sender_id", "messages", ["sender_id"])
    op.create_index("ix_messages_receiver_id", "messages", ["receiver_id"])
    op.create_index("ix_messages_timestamp", "messages", ["timestamp"])

    op.create_table(
        "user_sessions",
        _id(),
        _user_fk(),
        _ts("session_start"),
        sa.Column("session_end", sa.DateTime(timezone=True)),
        sa.Column("ip_address", sa.String()),
        sa.Column("user_agent", sa.String()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index("ix_user_sessions_user_id", "user_sessions", ["user_id"])

    op.create_table(
        "user_preferences",
        _id(),
        _user_fk(unique=True),
        sa.Column("language", sa.String(), nullable=False, server_default="nl"),
        sa.Column("theme", sa.String(), nullable=False, server_default="light"),
        sa.Column("notifications_enabled", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("email_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("chat_notifications", sa.Boolean(), nullable=False, server_default=sa.true()),
        _ts("created_at"),
        _ts("updated_at"),
    )

    op.create_table(
        "login_logs",
        _id(),
        _user_fk(),
        sa.Column("ip_address", sa.String()),
        _ts("timestamp"),
    )
    op.create_table(
        "download_logs",
        _id(),
        _user_fk(),
        sa.Column("file_id", sa.String(), sa.ForeignKey("files.id", ondelete="CASCADE"), nullable=False),
        _ts("timestamp"),
    )
    op.create_table(
        "upload_logs",
        _id(),
        _user_fk(),
        sa.Column("filename", sa.String(), nullable=False),
        sa.Column("folder", sa.String(), nullable=False),
        _ts("timestamp"),
    )
    op.create_table(
        "chat_logs",
        _id(),
        _user_fk(),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("details", sa.JSON()),
        _ts("timestamp"),
    )


def downgrade() -> None:
    for table in (
        "chat_logs",
        "upload_logs",
        "download_logs",
        "login_logs",
        "user_preferences",
        "user_sessions",
        "messages",
        "files",
        "dealers",
    ):
        op.drop_table(table)
