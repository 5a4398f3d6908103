"""add wordpress sites, content items and scheduled jobs

Revision ID: 0001_scheduled_jobs
Revises:
Create Date: 2026-10-19 00:00:00
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "0001_scheduled_jobs"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "wordpress_sites",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("site_name", sa.String(length=255), nullable=False),
        sa.Column("site_url", sa.String(length=2048), nullable=False),
        sa.Column("username", sa.String(length=255), nullable=False),
        sa.Column("app_password", sa.String(length=4096), nullable=False),
        sa.Column("is_connected", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_sync", sa.DateTime(timezone=True), nullable=True),
        sa.Column("site_info", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_wordpress_sites_client_id", "wordpress_sites", ["client_id"], unique=False)

    op.create_table(
        "content_items",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("wordpress_site_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="article"),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="draft"),
        sa.Column("title", sa.String(length=255), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("meta_description", sa.String(length=512), nullable=True),
        sa.Column("focus_keyword", sa.String(length=255), nullable=True),
        sa.Column("featured_image_url", sa.String(length=2048), nullable=True),
        sa.Column("wordpress_post_id", sa.Integer(), nullable=True),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["wordpress_site_id"], ["wordpress_sites.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_check_constraint(
        "ck_content_items_status_values",
        "content_items",
        "status IN ('draft', 'scheduled', 'published', 'failed')",
    )
    op.create_index("ix_content_items_client_id", "content_items", ["client_id"], unique=False)
    op.create_index("ix_content_items_wordpress_site_id", "content_items", ["wordpress_site_id"], unique=False)

    op.create_table(
        "jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("client_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("content_item_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("job_type", sa.String(length=64), nullable=False),
        sa.Column("status", sa.String(length=32), nullable=False, server_default="pending"),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("attempts", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("max_attempts", sa.Integer(), nullable=False, server_default="3"),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("job_data", postgresql.JSONB(astext_type=sa.Text()), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.ForeignKeyConstraint(["content_item_id"], ["content_items.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_check_constraint(
        "ck_jobs_status_values",
        "jobs",
        "status IN ('pending', 'running', 'completed', 'failed')",
    )
    op.create_check_constraint("ck_jobs_attempts_non_negative", "jobs", "attempts >= 0")
    op.create_index("ix_jobs_due", "jobs", ["status", "scheduled_for"], unique=False)
    op.create_index("ix_jobs_client_id", "jobs", ["client_id"], unique=False)
    op.create_index("ix_jobs_content_item_id", "jobs", ["content_item_id"], unique=False)
    op.create_index("ix_jobs_job_type", "jobs", ["job_type"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_jobs_job_type", table_name="jobs")
    op.drop_index("ix_jobs_content_item_id", table_name="jobs")
    op.drop_index("ix_jobs_client_id", table_name="jobs")
    op.drop_index("ix_jobs_due", table_name="jobs")
    op.drop_constraint("ck_jobs_attempts_non_negative", "jobs", type_="check")
    op.drop_constraint("ck_jobs_status_values", "jobs", type_="check")
    op.drop_table("jobs")

    op.drop_index("ix_content_items_wordpress_site_id", table_name="content_items")
    op.drop_index("ix_content_items_client_id", table_name="content_items")
    op.drop_constraint("ck_content_items_status_values", "content_items", type_="check")
    op.drop_table("content_items")

    op.drop_index("ix_wordpress_sites_client_id", table_name="wordpress_sites")
    op.drop_table("wordpress_sites")
