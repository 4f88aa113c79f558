"""init

Revision ID: 0001_init
Revises:
Create Date: 2026-10-17 00:00:00.000000
"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
    ]


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("first_name", sa.String(length=120), nullable=True),
        sa.Column("last_name", sa.String(length=120), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "groups",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("gophish_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "group_users",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("group_id", "user_id", name="uq_group_users_group_user"),
    )
    op.create_index("ix_group_users_group_id", "group_users", ["group_id"], unique=False)
    op.create_index("ix_group_users_user_id", "group_users", ["user_id"], unique=False)

    op.create_table(
        "attack_simulations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("template", sa.String(length=255), nullable=False),
        sa.Column("url", sa.String(length=500), nullable=False),
        sa.Column("page", sa.String(length=255), nullable=False),
        sa.Column("smtp", sa.String(length=255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "courses",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("attack_simulation_id", sa.String(length=36), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.ForeignKeyConstraint(["attack_simulation_id"], ["attack_simulations.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "bundles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("bundle_type", sa.String(length=100), nullable=False),
        sa.Column("seat_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("CURRENT_TIMESTAMP")),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "bundle_courses",
        sa.Column("bundle_id", sa.String(length=36), nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(["bundle_id"], ["bundles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("bundle_id", "course_id"),
    )

    op.create_table(
        "email_templates",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("type", sa.String(length=100), nullable=False),
        sa.Column("subject", sa.String(length=500), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_email_templates_name", "email_templates", ["name"], unique=True)

    op.create_table(
        "scheduled_emails",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("template_id", sa.String(length=36), nullable=False),
        sa.Column("custom_subject", sa.String(length=500), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("created_by", sa.String(length=36), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["template_id"], ["email_templates.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_scheduled_emails_template_id", "scheduled_emails", ["template_id"], unique=False)
    op.create_index("ix_scheduled_emails_status", "scheduled_emails", ["status"], unique=False)
    op.create_index("ix_scheduled_emails_created_by", "scheduled_emails", ["created_by"], unique=False)
    op.create_index("ix_scheduled_emails_scheduled_at", "scheduled_emails", ["scheduled_at"], unique=False)

    op.create_table(
        "scheduled_email_recipients",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("scheduled_email_id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(["scheduled_email_id"], ["scheduled_emails.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("scheduled_email_id", "user_id", name="uq_scheduled_email_recipients_pair"),
    )
    op.create_index(
        "ix_scheduled_email_recipients_scheduled_email_id",
        "scheduled_email_recipients",
        ["scheduled_email_id"],
        unique=False,
    )
    op.create_index(
        "ix_scheduled_email_recipients_user_id", "scheduled_email_recipients", ["user_id"], unique=False
    )

    op.create_table(
        "schedule_attack_simulations",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("bundle_id", sa.String(length=36), nullable=False),
        sa.Column("campaign_type", sa.String(length=100), nullable=False),
        sa.Column("launch_date", sa.Date(), nullable=False),
        sa.Column("launch_time", sa.Time(), nullable=False),
        sa.Column("timezone", sa.String(length=64), nullable=False, server_default="UTC"),
        sa.Column("launch_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="draft"),
        sa.Column("launch_status", sa.String(length=32), nullable=False, server_default="Schedule Later"),
        sa.Column("created_by", sa.String(length=36), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["bundle_id"], ["bundles.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_schedule_attack_simulations_bundle_id", "schedule_attack_simulations", ["bundle_id"], unique=False
    )
    op.create_index(
        "ix_schedule_attack_simulations_launch_at", "schedule_attack_simulations", ["launch_at"], unique=False
    )

    op.create_table(
        "schedule_attack_simulation_groups",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("schedule_id", sa.String(length=36), nullable=False),
        sa.Column("group_id", sa.String(length=36), nullable=False),
        sa.ForeignKeyConstraint(["schedule_id"], ["schedule_attack_simulations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["group_id"], ["groups.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("schedule_id", "group_id", name="uq_schedule_attack_simulation_groups_pair"),
    )
    op.create_index(
        "ix_schedule_attack_simulation_groups_schedule_id",
        "schedule_attack_simulation_groups",
        ["schedule_id"],
        unique=False,
    )

    op.create_table(
        "user_courses",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("course_id", sa.String(length=36), nullable=False),
        sa.Column("schedule_attack_simulation_id", sa.String(length=36), nullable=True),
        sa.Column("launch_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="pending"),
        sa.Column("visibility", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["course_id"], ["courses.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["schedule_attack_simulation_id"], ["schedule_attack_simulations.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_courses_user_id", "user_courses", ["user_id"], unique=False)
    op.create_index("ix_user_courses_course_id", "user_courses", ["course_id"], unique=False)
    op.create_index(
        "ix_user_courses_schedule_attack_simulation_id",
        "user_courses",
        ["schedule_attack_simulation_id"],
        unique=False,
    )
    op.create_index("ix_user_courses_launch_date", "user_courses", ["launch_date"], unique=False)
    op.create_index("ix_user_courses_expiry_date", "user_courses", ["expiry_date"], unique=False)
    op.create_index("ix_user_courses_status", "user_courses", ["status"], unique=False)

    op.create_table(
        "discounts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("bundle_id", sa.String(length=36), nullable=True),
        sa.Column("percentage", sa.Float(), nullable=True),
        sa.Column("seats_percentage", sa.Float(), nullable=True),
        sa.Column("seats_threshold", sa.Integer(), nullable=True),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_discounts_bundle_id", "discounts", ["bundle_id"], unique=False)

    op.create_table(
        "bundle_purchases",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("bundle_id", sa.String(length=36), nullable=False),
        sa.Column("discount_id", sa.String(length=36), nullable=True),
        sa.Column("seats_purchased", sa.Integer(), nullable=False),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("purchased_by", sa.String(length=36), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["bundle_id"], ["bundles.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["discount_id"], ["discounts.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["purchased_by"], ["users.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_bundle_purchases_bundle_id", "bundle_purchases", ["bundle_id"], unique=False)
    op.create_index("ix_bundle_purchases_discount_id", "bundle_purchases", ["discount_id"], unique=False)
    op.create_index("ix_bundle_purchases_purchased_by", "bundle_purchases", ["purchased_by"], unique=False)

    op.create_table(
        "tokens",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("token", sa.String(length=512), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_tokens_user_id", "tokens", ["user_id"], unique=False)
    op.create_index("ix_tokens_expires_at", "tokens", ["expires_at"], unique=False)


def downgrade():
    op.drop_index("ix_tokens_expires_at", table_name="tokens")
    op.drop_index("ix_tokens_user_id", table_name="tokens")
    op.drop_table("tokens")
    op.drop_index("ix_bundle_purchases_purchased_by", table_name="bundle_purchases")
    op.drop_index("ix_bundle_purchases_discount_id", table_name="bundle_purchases")
    op.drop_index("ix_bundle_purchases_bundle_id", table_name="bundle_purchases")
    op.drop_table("bundle_purchases")
    op.drop_index("ix_discounts_bundle_id", table_name="discounts")
    op.drop_table("discounts")
    op.drop_index("ix_user_courses_status", table_name="user_courses")
    op.drop_index("ix_user_courses_expiry_date", table_name="user_courses")
    op.drop_index("ix_user_courses_launch_date", table_name="user_courses")
    op.drop_index("ix_user_courses_schedule_attack_simulation_id", table_name="user_courses")
    op.drop_index("ix_user_courses_course_id", table_name="user_courses")
    op.drop_index("ix_user_courses_user_id", table_name="user_courses")
    op.drop_table("user_courses")
    op.drop_index("ix_schedule_attack_simulation_groups_schedule_id", table_name="schedule_attack_simulation_groups")
    op.drop_table("schedule_attack_simulation_groups")
    op.drop_index("ix_schedule_attack_simulations_launch_at", table_name="schedule_attack_simulations")
    op.drop_index("ix_schedule_attack_simulations_bundle_id", table_name="schedule_attack_simulations")
    op.drop_table("schedule_attack_simulations")
    op.drop_index("ix_scheduled_email_recipients_user_id", table_name="scheduled_email_recipients")
    op.drop_index("ix_scheduled_email_recipients_scheduled_email_id", table_name="scheduled_email_recipients")
    op.drop_table("scheduled_email_recipients")
    op.drop_index("ix_scheduled_emails_scheduled_at", table_name="scheduled_emails")
    op.drop_index("ix_scheduled_emails_created_by", table_name="scheduled_emails")
    op.drop_index("ix_scheduled_emails_status", table_name="scheduled_emails")
    op.drop_index("ix_scheduled_emails_template_id", table_name="scheduled_emails")
    op.drop_table("scheduled_emails")
    op.drop_index("ix_email_templates_name", table_name="email_templates")
    op.drop_table("email_templates")
    op.drop_table("bundle_courses")
    op.drop_table("bundles")
    op.drop_table("courses")
    op.drop_table("attack_simulations")
    op.drop_index("ix_group_users_user_id", table_name="group_users")
    op.drop_index("ix_group_users_group_id", table_name="group_users")
    op.drop_table("group_users")
    op.drop_table("groups")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
