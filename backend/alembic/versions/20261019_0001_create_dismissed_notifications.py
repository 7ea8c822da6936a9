"""Create the dismissed notification ledger table."""

from collections.abc import Sequence

from alembic import op
import sqlalchemy as sa

revision: str = "20261019_0001"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

TIMESTAMP_DEFAULT = sa.text("CURRENT_TIMESTAMP")


def upgrade() -> None:
    op.create_table(
        "dismissed_notifications",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("notification_id", sa.String(length=191), nullable=False),
        sa.Column(
            "dismissed_at",
            sa.DateTime(timezone=True),
            server_default=TIMESTAMP_DEFAULT,
            nullable=False,
        ),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column(
            "dismiss_count",
            sa.Integer(),
            server_default=sa.text("1"),
            nullable=False,
        ),
        sa.UniqueConstraint(
            "user_id",
            "notification_id",
            name="ux_dismissed_notifications_user_notification",
        ),
    )
    op.create_index(
        "ix_dismissed_notifications_user_id",
        "dismissed_notifications",
        ["user_id"],
        unique=False,
    )
    op.create_index(
        "ix_dismissed_notifications_user_dismissed_at_id",
        "dismissed_notifications",
        ["user_id", "dismissed_at", "id"],
        unique=False,
    )
    op.create_index(
        "ix_dismissed_notifications_expires_at",
        "dismissed_notifications",
        ["expires_at"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(
        "ix_dismissed_notifications_expires_at",
        table_name="dismissed_notifications",
    )
    op.drop_index(
        "ix_dismissed_notifications_user_dismissed_at_id",
        table_name="dismissed_notifications",
    )
    op.drop_index("ix_dismissed_notifications_user_id", table_name="dismissed_notifications")
    op.drop_table("dismissed_notifications")
