"""Initial tables: attempt_windows, assessment_sessions, answer_records, security_incidents, test_items, profiles.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "attempt_windows",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("identifier", sa.String(64), nullable=False),
        sa.Column("endpoint", sa.String(32), nullable=False),
        sa.Column("attempt_count", sa.Integer(), nullable=False),
        sa.Column("first_attempt_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_attempt_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_attempt_windows_identifier"), "attempt_windows", ["identifier"], unique=False)
    op.create_index(op.f("ix_attempt_windows_first_attempt_at"), "attempt_windows", ["first_attempt_at"], unique=False)

    op.create_table(
        "assessment_sessions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("session_type", sa.String(32), nullable=False),
        sa.Column("total_questions", sa.Integer(), nullable=False),
        sa.Column("current_question", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("time_limit_minutes", sa.Integer(), nullable=False),
        sa.Column("questions_json", sa.Text(), nullable=False),
        sa.Column("question_presented_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("current_answered", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_assessment_sessions_user_id"), "assessment_sessions", ["user_id"], unique=False)

    op.create_table(
        "answer_records",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("session_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("item_id", sa.String(64), nullable=False),
        sa.Column("user_answer", sa.Boolean(), nullable=False),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("time_taken_seconds", sa.Integer(), nullable=False),
        sa.Column("question_number", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_answer_records_session_id"), "answer_records", ["session_id"], unique=False)
    op.create_index(op.f("ix_answer_records_user_id"), "answer_records", ["user_id"], unique=False)

    op.create_table(
        "security_incidents",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("incident_type", sa.String(32), nullable=False),
        sa.Column("severity", sa.String(16), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("ip_address", sa.String(64), nullable=True),
        sa.Column("user_agent", sa.String(512), nullable=True),
        sa.Column("geolocation_country", sa.String(64), nullable=True),
        sa.Column("time_to_decision_seconds", sa.Integer(), nullable=True),
        sa.Column("missed_iocs_json", sa.Text(), nullable=False, server_default="[]"),
        sa.Column("raw_event_json", sa.Text(), nullable=False, server_default="{}"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_security_incidents_user_id"), "security_incidents", ["user_id"], unique=False)
    op.create_index(op.f("ix_security_incidents_timestamp"), "security_incidents", ["timestamp"], unique=False)
    op.create_index(op.f("ix_security_incidents_ip_address"), "security_incidents", ["ip_address"], unique=False)

    op.create_table(
        "test_items",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(512), nullable=True),
        sa.Column("is_phishing", sa.Boolean(), nullable=False),
        sa.Column("explanation", sa.Text(), nullable=True),
        sa.Column("difficulty_level", sa.String(32), nullable=False, server_default="beginner"),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column("indicators_json", sa.Text(), nullable=False, server_default="[]"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "profiles",
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("user_id"),
    )


def downgrade() -> None:
    op.drop_table("profiles")
    op.drop_table("test_items")
    op.drop_index(op.f("ix_security_incidents_ip_address"), table_name="security_incidents")
    op.drop_index(op.f("ix_security_incidents_timestamp"), table_name="security_incidents")
    op.drop_index(op.f("ix_security_incidents_user_id"), table_name="security_incidents")
    op.drop_table("security_incidents")
    op.drop_index(op.f("ix_answer_records_user_id"), table_name="answer_records")
    op.drop_index(op.f("ix_answer_records_session_id"), table_name="answer_records")
    op.drop_table("answer_records")
    op.drop_index(op.f("ix_assessment_sessions_user_id"), table_name="assessment_sessions")
    op.drop_table("assessment_sessions")
    op.drop_index(op.f("ix_attempt_windows_first_attempt_at"), table_name="attempt_windows")
    op.drop_index(op.f("ix_attempt_windows_identifier"), table_name="attempt_windows")
    op.drop_table("attempt_windows")
