"""initial: wordpress_sites, campaigns, content_jobs, campaign_logs

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "wordpress_sites",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("site_name", sa.String(255), nullable=False),
        sa.Column("site_url", sa.String(500), nullable=False),
        sa.Column("username", sa.String(255), nullable=False),
        sa.Column("password_encrypted", sa.Text(), nullable=False),
        sa.Column("api_endpoint", sa.String(500), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default=sa.text("true"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_wordpress_sites_user_id", "wordpress_sites", ["user_id"])

    op.create_table(
        "campaigns",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("wordpress_site_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("topic", sa.String(255), nullable=False),
        sa.Column("context", sa.Text(), server_default="", nullable=False),
        sa.Column("tone_of_voice", sa.String(50), server_default="conversational", nullable=False),
        sa.Column("writing_style", sa.String(50), server_default="pas", nullable=False),
        sa.Column("imperfection_list", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("schedule", sa.String(20), server_default="24h", nullable=True),
        sa.Column("schedule_hours", sa.Numeric(5, 2), nullable=True),
        sa.Column("content_types", postgresql.JSONB(), server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("content_type_variables", postgresql.JSONB(), server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column("status", sa.String(20), server_default="active", nullable=False),
        sa.Column("next_publish_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["wordpress_site_id"], ["wordpress_sites.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint(
            "schedule_hours IS NULL OR (schedule_hours >= 0.10 AND schedule_hours <= 168.00)",
            name="ck_campaigns_schedule_hours_range",
        ),
    )
    op.create_index("ix_campaigns_status_next_publish", "campaigns", ["status", "next_publish_at"])

    op.create_table(
        "content_jobs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("campaign_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(20), server_default="pending", nullable=False),
        sa.Column("content_type", sa.String(64), nullable=True),
        sa.Column("title", sa.String(500), nullable=True),
        sa.Column("keywords", postgresql.JSONB(), nullable=True),
        sa.Column("generated_content", postgresql.JSONB(), nullable=True),
        sa.Column("featured_image_url", sa.String(1000), nullable=True),
        sa.Column("remote_post_id", sa.String(64), nullable=True),
        sa.Column("remote_post_url", sa.String(1000), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("scheduled_for", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_content_jobs_status_created", "content_jobs", ["status", "created_at"])
    # Tối đa một job pending | in_progress cho mỗi campaign.
    op.create_index(
        "ux_content_jobs_active_campaign",
        "content_jobs",
        ["campaign_id"],
        unique=True,
        postgresql_where=sa.text("status IN ('pending', 'in_progress')"),
    )

    op.create_table(
        "campaign_logs",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("campaign_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("event_type", sa.String(50), nullable=False),
        sa.Column("message", sa.Text(), nullable=False),
        sa.Column("severity", sa.String(20), server_default="info", nullable=False),
        sa.Column("metadata", postgresql.JSONB(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=True),
        sa.ForeignKeyConstraint(["campaign_id"], ["campaigns.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_campaign_logs_campaign_created", "campaign_logs", ["campaign_id", "created_at"])


def downgrade() -> None:
    op.drop_index("ix_campaign_logs_campaign_created", table_name="campaign_logs")
    op.drop_table("campaign_logs")
    op.drop_index("ux_content_jobs_active_campaign", table_name="content_jobs")
    op.drop_index("ix_content_jobs_status_created", table_name="content_jobs")
    op.drop_table("content_jobs")
    op.drop_index("ix_campaigns_status_next_publish", table_name="campaigns")
    op.drop_table("campaigns")
    op.drop_index("ix_wordpress_sites_user_id", table_name="wordpress_sites")
    op.drop_table("wordpress_sites")
