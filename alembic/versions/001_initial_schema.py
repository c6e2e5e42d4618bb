"""Initial schema

Revision ID: 001_initial
Revises:
Create Date: 2026-10-19

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_initial"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # Create enums with conditional check (Postgres doesn't support IF NOT EXISTS for TYPE)
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE autocreateperiod AS ENUM ('every 1 week', 'every 2 weeks');
        EXCEPTION WHEN duplicate_object THEN NULL;
        END $$;
    """)
    op.execute("""
        DO $$ BEGIN
            CREATE TYPE batchstatus AS ENUM ('active', 'paused', 'completed');
        EXCEPTION WHEN duplicate_object THEN NULL;
        END $$;
    """)

    op.create_table(
        "properties",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("client_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("price", sa.String(50), nullable=True),
        sa.Column("sales_start_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_properties_client_id", "properties", ["client_id"])

    op.create_table(
        "inquiries",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("client_id", sa.String(64), nullable=False),
        sa.Column("property_id", sa.String(64), nullable=False),
        sa.Column("customer_id", sa.String(64), nullable=True),
        sa.Column("customer_name", sa.String(255), nullable=True),
        sa.Column("inquired_at", sa.DateTime(), nullable=False),
        sa.Column("category", sa.String(50), nullable=False),
        sa.Column("type", sa.String(50), nullable=False),
        sa.Column("title", sa.String(255), nullable=True),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_inquiries_client_id", "inquiries", ["client_id"])
    op.create_index("ix_inquiries_property_id", "inquiries", ["property_id"])
    op.create_index("ix_inquiries_inquired_at", "inquiries", ["inquired_at"])

    op.create_table(
        "batch_report_settings",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("client_id", sa.String(64), nullable=False),
        sa.Column("employee_id", sa.String(64), nullable=False),
        sa.Column("property_id", sa.String(64), nullable=False),
        sa.Column("property_name", sa.String(255), nullable=False),
        sa.Column("weekday", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column(
            "auto_create_period",
            postgresql.ENUM(
                "every 1 week",
                "every 2 weeks",
                name="autocreateperiod",
                create_type=False,
            ),
            nullable=False,
        ),
        sa.Column("auto_generate", sa.Boolean(), nullable=False),
        sa.Column("execution_time", sa.String(5), nullable=False),
        sa.Column("next_execution_date", sa.DateTime(), nullable=False),
        sa.Column(
            "status",
            postgresql.ENUM(
                "active",
                "paused",
                "completed",
                name="batchstatus",
                create_type=False,
            ),
            nullable=False,
        ),
        sa.Column("last_execution_date", sa.DateTime(), nullable=True),
        sa.Column("execution_count", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("client_id", "created_at", name="uq_batch_setting_client_created"),
    )
    op.create_index("ix_batch_report_settings_client_id", "batch_report_settings", ["client_id"])
    op.create_index(
        "ix_batch_report_settings_property_id", "batch_report_settings", ["property_id"]
    )
    op.create_index(
        "ix_batch_report_settings_next_execution_date",
        "batch_report_settings",
        ["next_execution_date"],
    )
    op.create_index("ix_batch_report_settings_status", "batch_report_settings", ["status"])

    op.create_table(
        "reports",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("client_id", sa.String(64), nullable=False),
        sa.Column("property_id", sa.String(64), nullable=False),
        sa.Column("batch_setting_id", sa.String(36), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("report_start_date", sa.Date(), nullable=False),
        sa.Column("report_end_date", sa.Date(), nullable=False),
        sa.Column("summary", sa.Text(), nullable=True),
        sa.Column("current_status", sa.String(50), nullable=True),
        sa.Column("inquiries_count", sa.Integer(), nullable=False),
        sa.Column("customer_interactions", sa.JSON(), nullable=False),
        sa.Column("is_draft", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.Column("deleted_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_reports_client_id", "reports", ["client_id"])
    op.create_index("ix_reports_property_id", "reports", ["property_id"])
    op.create_index("ix_reports_batch_setting_id", "reports", ["batch_setting_id"])

    op.create_table(
        "job_runs",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("job_id", sa.String(100), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(), nullable=False),
        sa.Column("started_at", sa.DateTime(), nullable=False),
        sa.Column("finished_at", sa.DateTime(), nullable=False),
        sa.Column("outcome", sa.String(20), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_job_runs_job_id", "job_runs", ["job_id"])
    op.create_index("ix_job_runs_scheduled_at", "job_runs", ["scheduled_at"])


def downgrade() -> None:
    op.drop_index("ix_job_runs_scheduled_at", table_name="job_runs")
    op.drop_index("ix_job_runs_job_id", table_name="job_runs")
    op.drop_table("job_runs")
    op.drop_index("ix_reports_batch_setting_id", table_name="reports")
    op.drop_index("ix_reports_property_id", table_name="reports")
    op.drop_index("ix_reports_client_id", table_name="reports")
    op.drop_table("reports")
    op.drop_index("ix_batch_report_settings_status", table_name="batch_report_settings")
    op.drop_index(
        "ix_batch_report_settings_next_execution_date", table_name="batch_report_settings"
    )
    op.drop_index("ix_batch_report_settings_property_id", table_name="batch_report_settings")
    op.drop_index("ix_batch_report_settings_client_id", table_name="batch_report_settings")
    op.drop_table("batch_report_settings")
    op.drop_index("ix_inquiries_inquired_at", table_name="inquiries")
    op.drop_index("ix_inquiries_property_id", table_name="inquiries")
    op.drop_index("ix_inquiries_client_id", table_name="inquiries")
    op.drop_table("inquiries")
    op.drop_index("ix_properties_client_id", table_name="properties")
    op.drop_table("properties")
    op.execute("DROP TYPE IF EXISTS batchstatus")
    op.execute("DROP TYPE IF EXISTS autocreateperiod")
