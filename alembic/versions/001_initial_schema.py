"""Initial database schema

Revision ID: 001_initial_schema
Revises: None
Create Date: 2025-06-01

Creates profiles, plans, fixed points and feedback for CityFlow.
"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None

travel_pace = postgresql.ENUM("slow", "moderate", "intensive", name="travel_pace", create_type=False)
plan_status = postgresql.ENUM("draft", "generated", "archived", name="plan_status", create_type=False)
feedback_rating = postgresql.ENUM("thumbs_up", "thumbs_down", name="feedback_rating", create_type=False)


def upgrade() -> None:
    """Create initial database schema."""
    bind = op.get_bind()
    travel_pace.create(bind, checkfirst=True)
    plan_status.create(bind, checkfirst=True)
    feedback_rating.create(bind, checkfirst=True)

    # Create profiles table (id is the identity provider's user id)
    op.create_table(
        "profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("preferences", postgresql.ARRAY(sa.Text), nullable=True),
        sa.Column("travel_pace", travel_pace, nullable=True),
        sa.Column("generations_remaining", sa.Integer, nullable=False, server_default="5"),
        sa.Column("onboarding_completed", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint(
            "generations_remaining >= 0",
            name="ck_profiles_generations_remaining_non_negative",
        ),
    )

    # Create plans table
    op.create_table(
        "plans",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("destination", sa.String(255), nullable=False),
        sa.Column("start_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("end_date", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("status", plan_status, nullable=False, server_default="draft", index=True),
        sa.Column("generated_content", postgresql.JSONB(astext_type=sa.Text()), nullable=True,
                  comment="AI-generated itinerary (summary, currency, days)"),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("end_date >= start_date", name="ck_plans_end_after_start"),
    )
    op.create_index("ix_plans_user_id_status", "plans", ["user_id", "status"])

    # Create fixed_points table
    op.create_table(
        "fixed_points",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("plan_id", postgresql.UUID(as_uuid=True),
                  sa.ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("location", sa.String(255), nullable=False),
        sa.Column("event_at", sa.TIMESTAMP(timezone=True), nullable=False),
        sa.Column("event_duration", sa.Integer, nullable=False, comment="Duration in minutes"),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("event_duration > 0", name="ck_fixed_points_event_duration_positive"),
    )

    # Create feedback table
    op.create_table(
        "feedback",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("plan_id", postgresql.UUID(as_uuid=True),
                  sa.ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("rating", feedback_rating, nullable=False),
        sa.Column("comment", sa.Text, nullable=True),
        sa.Column("created_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.UniqueConstraint("plan_id", "user_id", name="uq_feedback_plan_id_user_id"),
    )


def downgrade() -> None:
    """Drop all tables and enum types."""
    op.drop_table("feedback")
    op.drop_table("fixed_points")
    op.drop_index("ix_plans_user_id_status", table_name="plans")
    op.drop_table("plans")
    op.drop_table("profiles")

    bind = op.get_bind()
    feedback_rating.drop(bind, checkfirst=True)
    plan_status.drop(bind, checkfirst=True)
    travel_pace.drop(bind, checkfirst=True)
