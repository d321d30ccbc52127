"""Local store schema: app settings, saved credentials, identity session.

Revision ID: 001
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa


# revision identifiers
revision = "001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    ]


def upgrade():
    op.create_table(
        "app_settings",
        sa.Column("key", sa.String(100), primary_key=True),
        sa.Column("value", sa.Text(), nullable=True),
        *_timestamps(),
    )

    # Single-row tables
    op.create_table(
        "saved_credentials",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(320), nullable=False),
        sa.Column("password", sa.String(1024), nullable=False),
        *_timestamps(),
    )
    op.create_table(
        "identity_sessions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("uid", sa.String(128), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("display_name", sa.String(255), nullable=True),
        sa.Column("refresh_token", sa.String(2000), nullable=True),
        *_timestamps(),
    )


def downgrade():
    op.drop_table("identity_sessions")
    op.drop_table("saved_credentials")
    op.drop_table("app_settings")
